from __future__ import annotations

from typing import Any, Dict, Optional

from src.integrations.domain.gateways import RemotePet
from src.integrations.infrastructure.http_client import ServiceClient


def _owner_email(data: Dict[str, Any]) -> Optional[str]:
    owner = data.get("owner")
    if isinstance(owner, dict):
        return owner.get("email")
    return owner


def _to_pet(pet_id: int, body: Dict[str, Any]) -> Optional[RemotePet]:
    data = body.get("data")
    if not isinstance(data, dict):
        return None
    return RemotePet(
        id=int(data.get("id", pet_id)),
        name=data.get("petName") or data.get("name"),
        owner_email=_owner_email(data),
        species=data.get("species"),
        breed=data.get("breed"),
        age=data.get("age"),
        weight=data.get("weight"),
        gender=data.get("gender"),
        raw=data,
    )


class PatientsServiceClient(ServiceClient):
    """`GET /api/patients/pets/{id}`; implements PetDirectory and PetOwnershipVerifier."""

    service_name = "patients"

    async def get_pet(self, pet_id: int, token: str) -> Optional[RemotePet]:
        body = await self.get_json(f"/api/patients/pets/{pet_id}", token)
        return _to_pet(pet_id, body) if body is not None else None

    async def is_owned_by(self, pet_id: int, owner_email: str, token: str) -> bool:
        pet = await self.get_pet(pet_id, token)
        return pet is not None and pet.owner_email is not None and pet.owner_email == owner_email
