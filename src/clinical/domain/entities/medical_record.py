from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from src.appointments.domain.entities.appointment import Appointment
from src.shared.domain.calendar import normalize_optional_date
from src.shared.exceptions import InvalidInputError


class MedicalRecordStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    FINALIZED = "finalized"


class Hydration(str, Enum):
    NORMAL = "normal"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


# Optional narrative fields: an explicit empty value clears them.
CLINICAL_TEXT_FIELDS = (
    "history",
    "physical_exam",
    "diagnosis",
    "treatment",
    "procedures_performed",
    "observations",
)


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True)
class MedicalRecord:
    """Clinical documentation of one appointment (at most one per appointment)."""
    appointment_id: int
    pet_id: int
    veterinarian_id: int
    client_id: int
    date: date
    chief_complaint: str
    history: Optional[str] = None
    physical_exam: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    procedures_performed: Optional[str] = None
    observations: Optional[str] = None
    next_consultation: Optional[date] = None
    status: MedicalRecordStatus = MedicalRecordStatus.IN_PROGRESS
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def open_for(cls, appointment: Appointment, veterinarian_id: int, fields: Mapping[str, Any]) -> "MedicalRecord":
        record = cls(
            appointment_id=appointment.id,
            pet_id=appointment.pet_id,
            veterinarian_id=veterinarian_id,
            client_id=appointment.client_id,
            date=appointment.date,
            chief_complaint=_clean_text(fields.get("chief_complaint")) or appointment.reason,
            next_consultation=normalize_optional_date(fields.get("next_consultation")),
        )
        for name in CLINICAL_TEXT_FIELDS:
            setattr(record, name, _clean_text(fields.get(name)))
        return record

    def apply_changes(self, changes: Mapping[str, Any]) -> None:
        """
        Partial update: only keys present in `changes` are touched.
        The chief complaint cannot be cleared; an empty value keeps the prior one.
        """
        if "chief_complaint" in changes:
            self.chief_complaint = _clean_text(changes["chief_complaint"]) or self.chief_complaint
        for name in CLINICAL_TEXT_FIELDS:
            if name in changes:
                setattr(self, name, _clean_text(changes[name]))
        if "next_consultation" in changes:
            self.next_consultation = normalize_optional_date(changes["next_consultation"])
        if changes.get("status") is not None:
            try:
                self.status = MedicalRecordStatus(changes["status"])
            except ValueError:
                allowed = ", ".join(s.value for s in MedicalRecordStatus)
                raise InvalidInputError(f"status must be one of: {allowed}", details={"field": "status"})


VITAL_FIELDS = (
    "temperature",
    "weight",
    "heart_rate",
    "respiratory_rate",
    "blood_pressure",
    "body_condition",
    "hydration",
)


@dataclass(slots=True)
class VitalSigns:
    record_id: int
    temperature: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    heart_rate: Optional[int] = None
    respiratory_rate: Optional[int] = None
    blood_pressure: Optional[str] = None
    body_condition: Optional[int] = None
    hydration: Hydration = Hydration.NORMAL
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_values(cls, record_id: int, values: Mapping[str, Any]) -> "VitalSigns":
        vitals = cls(record_id=record_id)
        vitals.merge(values)
        return vitals

    def merge(self, values: Mapping[str, Any]) -> None:
        for name in VITAL_FIELDS:
            if name not in values:
                continue
            value = values[name]
            if name == "hydration":
                value = _hydration(value)
            elif name == "body_condition" and value is not None and not 1 <= int(value) <= 5:
                raise InvalidInputError("body_condition must be between 1 and 5", details={"field": name})
            setattr(self, name, value)


def _hydration(value: Any) -> Hydration:
    if value in (None, ""):
        return Hydration.NORMAL
    try:
        return Hydration(value)
    except ValueError:
        allowed = ", ".join(h.value for h in Hydration)
        raise InvalidInputError(f"hydration must be one of: {allowed}", details={"field": "hydration"})


@dataclass(frozen=True, slots=True)
class MedicalRecordDetail:
    """A record with the rows it owns by reference, as returned to callers."""
    record: MedicalRecord
    vital_signs: Optional[VitalSigns] = None
    attachments: list = field(default_factory=list)
    medications: list = field(default_factory=list)