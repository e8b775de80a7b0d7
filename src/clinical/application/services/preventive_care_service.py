"""
Vaccination and deworming registries.

Both share one workflow: veterinarian-only writes, remote pet verification,
partial updates that tell an omitted field apart from an explicitly cleared
one, soft delete and the upcoming-dose window.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

from src.clinical.domain.entities.preventive_care import AdministrationRoute, Deworming, ParasiteType, Vaccination
from src.clinical.domain.repositories.clinical_repos import PreventiveCareRepository
from src.integrations.domain.gateways import PetDirectory
from src.shared.domain.calendar import parse_date, window
from src.shared.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from src.shared.logging import get_logger
from src.shared.roles import Role
from src.shared.security import CallerIdentity

if TYPE_CHECKING:
    from src.unit_of_work import ClinicUnitOfWork

logger = get_logger(__name__)

T = TypeVar("T", Vaccination, Deworming)
Coercer = Callable[[str, Any], Any]


def _text(name: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _date(name: str, value: Any):
    if value in (None, ""):
        return None
    return parse_date(value, name)


def _decimal(name: str, value: Any) -> Optional[Decimal]:
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise InvalidInputError(f"{name} must be a number", details={"field": name})


def _int(name: str, value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be an integer", details={"field": name})


def _choice(enum_cls: Type[Enum]) -> Coercer:
    def coerce(name: str, value: Any):
        if value in (None, ""):
            return None
        try:
            return enum_cls(value)
        except ValueError:
            allowed = ", ".join(m.value for m in enum_cls)
            raise InvalidInputError(f"{name} must be one of: {allowed}", details={"field": name})
    return coerce


class _PreventiveCareService(Generic[T]):
    kind: str
    entity_class: Type[T]
    required: Tuple[str, ...]
    fields: Dict[str, Coercer]
    defaults: Dict[str, Any] = {}

    def __init__(self, uow: "ClinicUnitOfWork", *, pets: PetDirectory, upcoming_days: int = 30) -> None:
        self._uow = uow
        self._pets = pets
        self._upcoming_days = upcoming_days

    def _repo(self, uow: "ClinicUnitOfWork") -> PreventiveCareRepository[T]:
        raise NotImplementedError

    def _require_veterinarian(self, caller: CallerIdentity) -> None:
        if not caller.has_role(Role.VETERINARIAN):
            raise ForbiddenError(f"Only veterinarians can register or modify a {self.kind}")

    async def _verify_pet(self, pet_id: int, caller: CallerIdentity) -> None:
        if await self._pets.get_pet(pet_id, caller.token) is None:
            raise NotFoundError("Pet not found")

    @staticmethod
    async def _verify_record(uow: "ClinicUnitOfWork", record_id: Optional[int]) -> None:
        if record_id is not None and await uow.medical_records.get(record_id) is None:
            raise NotFoundError("Medical record not found")

    def _coerce(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {name: coerce(name, values[name]) for name, coerce in self.fields.items() if name in values}

    # ---------- reads ----------

    async def list_for_pet(self, pet_id: int, caller: CallerIdentity) -> List[T]:
        await self._verify_pet(pet_id, caller)
        async with self._uow as uow:
            return await self._repo(uow).list_for_pet(pet_id)

    async def upcoming(self, days: Optional[int] = None) -> List[T]:
        days = self._upcoming_days if days is None else days
        if days < 0:
            raise InvalidInputError("days must be zero or positive", details={"field": "days"})
        start, end = window(days)
        async with self._uow as uow:
            return await self._repo(uow).list_upcoming(start, end)

    # ---------- writes ----------

    async def create(self, pet_id: int, caller: CallerIdentity, data: Mapping[str, Any]) -> T:
        self._require_veterinarian(caller)
        values = {**self.defaults, **{k: v for k, v in self._coerce(data).items() if v is not None}}
        missing = [name for name in self.required if values.get(name) is None]
        if missing:
            raise InvalidInputError(
                f"Required fields: {', '.join(self.required)}",
                details={"missing": missing},
            )
        await self._verify_pet(pet_id, caller)

        async with self._uow as uow:
            await self._verify_record(uow, values.get("record_id"))
            entry = await self._repo(uow).add(self.entity_class(pet_id=pet_id, veterinarian_id=caller.id, **values))
            await uow.commit()

        logger.info(f"{self.kind}.created", entry_id=entry.id, pet_id=pet_id)
        return entry

    async def update(self, entry_id: int, caller: CallerIdentity, changes: Mapping[str, Any]) -> T:
        """Only supplied keys change; required fields keep their value when sent empty."""
        self._require_veterinarian(caller)
        values = self._coerce(changes)

        async with self._uow as uow:
            repo = self._repo(uow)
            entry = await repo.get(entry_id)
            if entry is None:
                raise NotFoundError(f"{self.kind.capitalize()} not found")
            if "record_id" in values:
                await self._verify_record(uow, values["record_id"])
            for name, value in values.items():
                if value is None and name in self.required:
                    continue
                setattr(entry, name, value)
            entry = await repo.update(entry)
            await uow.commit()

        logger.info(f"{self.kind}.updated", entry_id=entry_id, fields=sorted(values))
        return entry

    async def delete(self, entry_id: int, caller: CallerIdentity) -> None:
        self._require_veterinarian(caller)
        async with self._uow as uow:
            if not await self._repo(uow).soft_delete(entry_id):
                raise NotFoundError(f"{self.kind.capitalize()} not found")
            await uow.commit()
        logger.info(f"{self.kind}.deleted", entry_id=entry_id)


class VaccinationService(_PreventiveCareService[Vaccination]):
    kind = "vaccination"
    entity_class = Vaccination
    required = ("vaccine_name", "application_date")
    fields = {
        "vaccine_name": _text,
        "application_date": _date,
        "next_dose_date": _date,
        "batch_number": _text,
        "manufacturer": _text,
        "observations": _text,
        "record_id": _int,
    }

    def _repo(self, uow: "ClinicUnitOfWork") -> PreventiveCareRepository[Vaccination]:
        return uow.vaccinations


class DewormingService(_PreventiveCareService[Deworming]):
    kind = "deworming"
    entity_class = Deworming
    required = ("product", "parasite_type", "application_date")
    defaults = {"parasite_type": ParasiteType.INTERNAL}
    fields = {
        "product": _text,
        "parasite_type": _choice(ParasiteType),
        "application_date": _date,
        "next_dose_date": _date,
        "weight_kg": _decimal,
        "dose": _text,
        "route": _choice(AdministrationRoute),
        "observations": _text,
        "record_id": _int,
    }

    def _repo(self, uow: "ClinicUnitOfWork") -> PreventiveCareRepository[Deworming]:
        return uow.dewormings
