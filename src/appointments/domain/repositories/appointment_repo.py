from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, time
from typing import List, Optional

from src.appointments.domain.entities.appointment import Appointment, AppointmentStatus


class AppointmentRepository(ABC):
    """Finders return active rows only unless `include_inactive=True`."""

    @abstractmethod
    async def get(self, appointment_id: int, *, include_inactive: bool = False) -> Optional[Appointment]:
        ...

    @abstractmethod
    async def add(self, appointment: Appointment) -> Appointment:
        """
        Insert a booking. A second live booking of the same (date, time,
        veterinarian) slot violates `uq_appointments_vet_slot` and raises
        sqlalchemy IntegrityError at flush.
        """

    @abstractmethod
    async def update(self, appointment: Appointment) -> Appointment:
        ...

    @abstractmethod
    async def soft_delete(self, appointment_id: int) -> bool:
        ...

    @abstractmethod
    async def find_slot_occupant(self, on: date, at: time, veterinarian_id: int) -> Optional[Appointment]:
        """Active, non-cancelled appointment holding the exact slot, if any."""

    @abstractmethod
    async def list_for_veterinarian_on(self, veterinarian_id: int, on: date) -> List[Appointment]:
        """Active appointments of a veterinarian on one day, earliest first."""

    @abstractmethod
    async def list_for_client(
        self,
        client_id: int,
        *,
        status: Optional[AppointmentStatus] = None,
        include_inactive: bool = False,
    ) -> List[Appointment]:
        """Most recent first (date desc, then time desc)."""
