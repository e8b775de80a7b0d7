# src/shared/security.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from src.shared.config import Settings, get_settings
from src.shared.exceptions import UnauthenticatedError
from src.shared.logging import get_logger
from src.shared.roles import Role, parse_role

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    """Authenticated caller as carried by the bearer token."""
    id: int
    email: Optional[str]
    role: Optional[Role]
    token: str

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles


def decode_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Verify signature/expiry and return the claims.

    Raises:
        UnauthenticatedError: expired, malformed or wrongly signed token.
    """
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise UnauthenticatedError("Token has expired")
    except JWTError as e:
        logger.info("auth.invalid_token", error=str(e))
        raise UnauthenticatedError("Invalid token")


def identity_from_claims(claims: Dict[str, Any], token: str) -> CallerIdentity:
    raw_id = claims.get("id", claims.get("sub"))
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError):
        raise UnauthenticatedError("Token does not identify a user")

    role = claims.get("role")
    if isinstance(role, dict):
        role = role.get("name")
    return CallerIdentity(
        id=user_id,
        email=claims.get("email") or None,
        role=parse_role(role),
        token=token,
    )
