from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from src.shared.config import get_settings
from src.shared.exceptions import UnauthenticatedError
from src.shared.roles import Role, is_staff, parse_role
from src.shared.security import decode_token, identity_from_claims


def _token(claims, secret=None):
    s = get_settings()
    return jwt.encode(claims, secret or s.secret_key, algorithm=s.jwt_algorithm)


def test_decode_round_trip_and_identity():
    token = _token({"id": 5, "email": "ana@vetcare.test", "role": "Veterinarian"})
    caller = identity_from_claims(decode_token(token), token)
    assert caller.id == 5
    assert caller.role == Role.VETERINARIAN


def test_role_may_arrive_as_object_and_id_as_sub():
    caller = identity_from_claims({"sub": "10", "role": {"name": "client"}}, "t")
    assert caller.id == 10
    assert caller.role == Role.CLIENT
    assert caller.email is None


def test_wrong_signature_and_expiry_are_unauthenticated():
    with pytest.raises(UnauthenticatedError):
        decode_token(_token({"id": 1}, secret="another-secret-entirely"))
    expired = _token({"id": 1, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)})
    with pytest.raises(UnauthenticatedError) as exc:
        decode_token(expired)
    assert "expired" in exc.value.message


def test_claims_without_user_id_are_rejected():
    with pytest.raises(UnauthenticatedError):
        identity_from_claims({"email": "x@y.z"}, "t")


def test_role_helpers():
    assert parse_role("unknown") is None
    assert is_staff(Role.RECEPTIONIST)
    assert not is_staff(Role.VETERINARIAN)
    assert not is_staff(None)
