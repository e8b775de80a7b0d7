from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from src.shared.exceptions import InvalidStateError


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass(slots=True)
class Appointment:
    """
    One booked consultation slot.

    Lifecycle: pending → confirmed | cancelled, then completed through
    attention only. Cancelled and completed are terminal for attention.
    Rows are never removed; `is_active=False` hides them from finders.
    """
    date: date
    time: time
    reason: str
    pet_id: int
    client_id: int
    veterinarian_id: int
    status: AppointmentStatus = AppointmentStatus.PENDING
    procedure: Optional[str] = None
    diagnosis: Optional[str] = None
    indications: Optional[str] = None
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def book(
        cls,
        *,
        date: date,
        time: time,
        reason: str,
        pet_id: int,
        client_id: int,
        veterinarian_id: int,
    ) -> "Appointment":
        return cls(
            date=date,
            time=time,
            reason=reason.strip(),
            pet_id=pet_id,
            client_id=client_id,
            veterinarian_id=veterinarian_id,
        )

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED

    @property
    def has_clinical_summary(self) -> bool:
        """Diagnosis and procedure were both recorded at attention time."""
        return bool(self.diagnosis and self.diagnosis.strip()) and bool(self.procedure and self.procedure.strip())

    def record_attention(
        self,
        *,
        procedure: Optional[str] = None,
        diagnosis: Optional[str] = None,
        indications: Optional[str] = None,
    ) -> None:
        # sole entry into COMPLETED
        if self.is_cancelled:
            raise InvalidStateError("Cannot record attention on a cancelled appointment")
        if procedure is not None:
            self.procedure = procedure
        if diagnosis is not None:
            self.diagnosis = diagnosis
        if indications is not None:
            self.indications = indications
        self.status = AppointmentStatus.COMPLETED

    def confirm(self) -> None:
        if self.status != AppointmentStatus.PENDING:
            raise InvalidStateError(f"Only pending appointments can be confirmed (current: {self.status.value})")
        self.status = AppointmentStatus.CONFIRMED

    def cancel(self) -> None:
        if self.status in (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED):
            raise InvalidStateError(f"A {self.status.value} appointment cannot be cancelled")
        self.status = AppointmentStatus.CANCELLED
