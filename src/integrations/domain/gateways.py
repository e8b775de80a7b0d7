"""
Capabilities the clinical workflow needs from the Auth and Patients services.

The workflow depends on these protocols only; the httpx clients in
`src.integrations.infrastructure` implement them, tests use in-memory fakes.
`token` is always the caller's raw bearer token, forwarded as-is.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class RemoteUser:
    id: int
    name: Optional[str]
    email: Optional[str]
    role: Optional[str]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class RemotePet:
    id: int
    name: Optional[str]
    owner_email: Optional[str]
    species: Optional[str] = None
    breed: Optional[str] = None
    age: Optional[Any] = None
    weight: Optional[Any] = None
    gender: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


@runtime_checkable
class UserDirectory(Protocol):
    async def get_user(self, user_id: int, token: str) -> Optional[RemoteUser]:
        """None when the user does not exist."""
        ...


@runtime_checkable
class RoleVerifier(Protocol):
    async def is_veterinarian(self, user_id: int, token: str) -> bool:
        """False when the user is absent or holds another role."""
        ...


@runtime_checkable
class PetDirectory(Protocol):
    async def get_pet(self, pet_id: int, token: str) -> Optional[RemotePet]:
        """None when the pet does not exist."""
        ...


@runtime_checkable
class PetOwnershipVerifier(Protocol):
    async def is_owned_by(self, pet_id: int, owner_email: str, token: str) -> bool:
        """Exact comparison of the pet's registered owner email with `owner_email`."""
        ...
