import pytest

from src.appointments.application.services.enrichment import PLACEHOLDER, DisplayNameResolver
from src.integrations.domain.gateways import RemotePet, RemoteUser
from src.shared.domain.result import Available, Unavailable, attempt
from src.shared.exceptions import DependencyError

pytestmark = pytest.mark.anyio


async def test_attempt_folds_failures_and_absence():
    async def boom():
        raise DependencyError("down")

    async def absent():
        return None

    async def found():
        return "Firulais"

    assert isinstance(await attempt("pet", boom), Unavailable)
    assert isinstance(await attempt("pet", absent), Unavailable)
    assert await attempt("pet", found) == Available("Firulais")


async def test_resolver_memoizes_and_substitutes_placeholder():
    calls = {"users": 0}

    class Users:
        async def get_user(self, user_id, token):
            calls["users"] += 1
            if user_id == 99:
                raise DependencyError("auth down")
            return RemoteUser(user_id, "Dr. Ana", "ana@vetcare.test", "veterinarian")

    class Pets:
        async def get_pet(self, pet_id, token):
            return RemotePet(pet_id, None, "c@vetcare.test")

    names = DisplayNameResolver(Users(), Pets(), "token")
    assert await names.user_name(5) == "Dr. Ana"
    assert await names.user_name(5) == "Dr. Ana"
    assert calls["users"] == 1
    assert await names.user_name(99) == PLACEHOLDER
    assert await names.pet_name(1) == PLACEHOLDER
