from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Generic, List, Optional, TypeVar

from src.clinical.domain.entities.attachment import MedicalAttachment
from src.clinical.domain.entities.medical_record import MedicalRecord, VitalSigns
from src.clinical.domain.entities.preventive_care import Deworming, Vaccination

T = TypeVar("T")


class MedicalRecordRepository(ABC):
    @abstractmethod
    async def get(self, record_id: int, *, include_inactive: bool = False) -> Optional[MedicalRecord]:
        ...

    @abstractmethod
    async def get_by_appointment(self, appointment_id: int) -> Optional[MedicalRecord]:
        """Active record of an appointment (unique per appointment)."""

    @abstractmethod
    async def list_for_pet(self, pet_id: int) -> List[MedicalRecord]:
        """Active records, most recent visit first."""

    @abstractmethod
    async def add(self, record: MedicalRecord) -> MedicalRecord:
        ...

    @abstractmethod
    async def update(self, record: MedicalRecord) -> MedicalRecord:
        ...


class VitalSignsRepository(ABC):
    @abstractmethod
    async def get_by_record(self, record_id: int) -> Optional[VitalSigns]:
        ...

    @abstractmethod
    async def add(self, vitals: VitalSigns) -> VitalSigns:
        ...

    @abstractmethod
    async def update(self, vitals: VitalSigns) -> VitalSigns:
        ...


class AttachmentRepository(ABC):
    @abstractmethod
    async def get(self, attachment_id: int, *, include_inactive: bool = False) -> Optional[MedicalAttachment]:
        ...

    @abstractmethod
    async def list_for_record(self, record_id: int) -> List[MedicalAttachment]:
        """Active attachments, newest first."""

    @abstractmethod
    async def add_all(self, attachments: List[MedicalAttachment]) -> List[MedicalAttachment]:
        ...

    @abstractmethod
    async def soft_delete(self, attachment_id: int) -> bool:
        ...


class PreventiveCareRepository(ABC, Generic[T]):
    """Shared contract of vaccinations and dewormings."""

    @abstractmethod
    async def get(self, entry_id: int, *, include_inactive: bool = False) -> Optional[T]:
        ...

    @abstractmethod
    async def list_for_pet(self, pet_id: int) -> List[T]:
        """Active entries, latest application first."""

    @abstractmethod
    async def list_upcoming(self, start: date, end: date) -> List[T]:
        """Active entries whose next dose falls in [start, end], soonest first."""

    @abstractmethod
    async def add(self, entry: T) -> T:
        ...

    @abstractmethod
    async def update(self, entry: T) -> T:
        ...

    @abstractmethod
    async def soft_delete(self, entry_id: int) -> bool:
        ...


class VaccinationRepository(PreventiveCareRepository[Vaccination]):
    pass


class DewormingRepository(PreventiveCareRepository[Deworming]):
    pass
