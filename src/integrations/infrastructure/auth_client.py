from __future__ import annotations

from typing import Any, Dict, Optional

from src.integrations.domain.gateways import RemoteUser
from src.integrations.infrastructure.http_client import ServiceClient
from src.shared.roles import Role


def _to_user(user_id: int, body: Dict[str, Any]) -> Optional[RemoteUser]:
    data = body.get("data")
    if isinstance(data, dict) and isinstance(data.get("user"), dict):
        data = data["user"]
    if not isinstance(data, dict):
        return None

    role = data.get("role")
    if isinstance(role, dict):
        role = role.get("name")
    name = data.get("name") or data.get("fullName") or data.get("username")
    return RemoteUser(
        id=int(data.get("id", user_id)),
        name=name,
        email=data.get("email"),
        role=str(role).lower() if role else None,
        raw=data,
    )


class AuthServiceClient(ServiceClient):
    """`GET /api/users/{id}` on the auth service; implements UserDirectory and RoleVerifier."""

    service_name = "auth"

    async def get_user(self, user_id: int, token: str) -> Optional[RemoteUser]:
        body = await self.get_json(f"/api/users/{user_id}", token)
        return _to_user(user_id, body) if body is not None else None

    async def is_veterinarian(self, user_id: int, token: str) -> bool:
        user = await self.get_user(user_id, token)
        return user is not None and user.role == Role.VETERINARIAN.value
