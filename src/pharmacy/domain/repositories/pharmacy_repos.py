from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from src.pharmacy.domain.entities.pharmacy_order import PharmacyOrder, PharmacyOrderStatus
from src.pharmacy.domain.entities.prescription import Medication, Prescription


class PrescriptionRepository(ABC):
    @abstractmethod
    async def get_by_appointment(self, appointment_id: int) -> Optional[Prescription]:
        ...

    @abstractmethod
    async def list_for_client(self, client_id: int) -> List[Prescription]:
        """Newest first."""

    @abstractmethod
    async def add(self, prescription: Prescription) -> Prescription:
        ...


class MedicationRepository(ABC):
    @abstractmethod
    async def list_for_prescription(self, prescription_id: int) -> List[Medication]:
        ...

    @abstractmethod
    async def list_for_record(self, record_id: int) -> List[Medication]:
        ...

    @abstractmethod
    async def add_all(self, medications: List[Medication]) -> List[Medication]:
        ...


class PharmacyOrderRepository(ABC):
    @abstractmethod
    async def get(self, order_id: int) -> Optional[PharmacyOrder]:
        ...

    @abstractmethod
    async def get_by_prescription(self, prescription_id: int) -> Optional[PharmacyOrder]:
        ...

    @abstractmethod
    async def list_orders(self, *, status: Optional[PharmacyOrderStatus] = None) -> List[PharmacyOrder]:
        """Newest first."""

    @abstractmethod
    async def list_for_client(self, client_id: int) -> List[PharmacyOrder]:
        ...

    @abstractmethod
    async def add(self, order: PharmacyOrder) -> PharmacyOrder:
        ...

    @abstractmethod
    async def update(self, order: PharmacyOrder) -> PharmacyOrder:
        ...
