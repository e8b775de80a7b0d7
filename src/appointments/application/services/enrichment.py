from __future__ import annotations

from typing import Dict

from src.integrations.domain.gateways import PetDirectory, RemotePet, RemoteUser, UserDirectory
from src.shared.domain.result import Lookup, attempt

PLACEHOLDER = "Not available"


class DisplayNameResolver:
    """
    Best-effort, per-request memoized lookups of pets and users for display.
    Every failure becomes `Unavailable`; callers pick the placeholder.
    """

    def __init__(self, users: UserDirectory, pets: PetDirectory, token: str) -> None:
        self._users = users
        self._pets = pets
        self._token = token
        self._user_cache: Dict[int, Lookup[RemoteUser]] = {}
        self._pet_cache: Dict[int, Lookup[RemotePet]] = {}

    async def pet(self, pet_id: int) -> Lookup[RemotePet]:
        if pet_id not in self._pet_cache:
            self._pet_cache[pet_id] = await attempt("pet", lambda: self._pets.get_pet(pet_id, self._token))
        return self._pet_cache[pet_id]

    async def user(self, user_id: int) -> Lookup[RemoteUser]:
        if user_id not in self._user_cache:
            self._user_cache[user_id] = await attempt("user", lambda: self._users.get_user(user_id, self._token))
        return self._user_cache[user_id]

    async def pet_name(self, pet_id: int) -> str:
        return (await self.pet(pet_id)).map(lambda p: p.name or PLACEHOLDER).or_else(PLACEHOLDER)

    async def user_name(self, user_id: int) -> str:
        return (await self.user(user_id)).map(lambda u: u.name or u.email or PLACEHOLDER).or_else(PLACEHOLDER)
