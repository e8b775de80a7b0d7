import httpx
import pytest

from src.integrations.infrastructure.auth_client import AuthServiceClient
from src.integrations.infrastructure.patients_client import PatientsServiceClient
from src.shared.exceptions import DependencyError, UnauthenticatedError

pytestmark = pytest.mark.anyio


def _auth(handler) -> AuthServiceClient:
    return AuthServiceClient("http://auth.test", transport=httpx.MockTransport(handler))


def _patients(handler) -> PatientsServiceClient:
    return PatientsServiceClient("http://patients.test", transport=httpx.MockTransport(handler))


async def test_user_lookup_forwards_token_and_reads_nested_user():
    seen = {}

    def handler(request: httpx.Request):
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        return httpx.Response(200, json={
            "success": True,
            "data": {"user": {"id": 5, "fullName": "Dr. Ana", "email": "ana@vetcare.test", "role": {"name": "VETERINARIAN"}}},
        })

    client = _auth(handler)
    user = await client.get_user(5, "tok")
    assert seen == {"auth": "Bearer tok", "path": "/api/users/5"}
    assert (user.name, user.role) == ("Dr. Ana", "veterinarian")
    assert await client.is_veterinarian(5, "tok")
    await client.aclose()


async def test_not_found_means_absent():
    client = _auth(lambda r: httpx.Response(404, json={"success": False, "message": "User not found"}))
    assert await client.get_user(5, "tok") is None
    assert await client.is_veterinarian(5, "tok") is False


async def test_unauthorized_propagates():
    client = _auth(lambda r: httpx.Response(401, json={"message": "jwt expired"}))
    with pytest.raises(UnauthenticatedError):
        await client.get_user(5, "tok")


async def test_server_error_keeps_upstream_message():
    client = _patients(lambda r: httpx.Response(503, json={"message": "database offline"}))
    with pytest.raises(DependencyError) as exc:
        await client.get_pet(1, "tok")
    assert exc.value.error == "database offline"
    assert exc.value.status_code == 500


async def test_timeout_is_dependency_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(DependencyError) as exc:
        await _patients(handler).get_pet(1, "tok")
    assert exc.value.error == "timeout"


async def test_pet_owner_as_string_or_object():
    bodies = {
        "/api/patients/pets/1": {"success": True, "data": {"id": 1, "petName": "Firulais", "owner": "carla@vetcare.test"}},
        "/api/patients/pets/2": {"success": True, "data": {"id": 2, "name": "Misu", "owner": {"email": "omar@vetcare.test"}}},
    }
    client = _patients(lambda r: httpx.Response(200, json=bodies[r.url.path]))
    assert (await client.get_pet(1, "tok")).name == "Firulais"
    assert await client.is_owned_by(1, "carla@vetcare.test", "tok")
    assert await client.is_owned_by(2, "omar@vetcare.test", "tok")
    assert not await client.is_owned_by(2, "carla@vetcare.test", "tok")
