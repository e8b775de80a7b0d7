"""
Clinical API Schemas

Request models only shape and type the payload; partial updates rely on
`model_dump(exclude_unset=True)` so an omitted field and an explicit empty
value stay distinguishable.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.clinical.domain.entities.attachment import AttachmentCategory
from src.clinical.domain.entities.medical_record import Hydration, MedicalRecordStatus
from src.clinical.domain.entities.preventive_care import AdministrationRoute, ParasiteType
from src.pharmacy.api.schemas import MedicationRead


class VitalSignsPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    temperature: Optional[Decimal] = Field(None, ge=0, lt=1000)
    weight: Optional[Decimal] = Field(None, ge=0)
    heart_rate: Optional[int] = Field(None, ge=0)
    respiratory_rate: Optional[int] = Field(None, ge=0)
    blood_pressure: Optional[str] = Field(None, max_length=20)
    body_condition: Optional[int] = None
    hydration: Optional[str] = None


class MedicalRecordFields(BaseModel):
    model_config = ConfigDict(extra="ignore")

    chief_complaint: Optional[str] = None
    history: Optional[str] = None
    physical_exam: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    procedures_performed: Optional[str] = None
    observations: Optional[str] = None
    next_consultation: Optional[str] = Field(None, description="YYYY-MM-DD; blank or invalid values are stored as null")
    vital_signs: Optional[VitalSignsPayload] = None

    def clinical_fields(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"vital_signs"})

    def vital_values(self) -> Optional[dict]:
        return self.vital_signs.model_dump(exclude_unset=True) if self.vital_signs is not None else None


class MedicalRecordUpdateRequest(MedicalRecordFields):
    status: Optional[str] = Field(None, description="in_progress | finalized")


class VaccinationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    vaccine_name: Optional[str] = Field(None, max_length=200)
    application_date: Optional[str] = None
    next_dose_date: Optional[str] = None
    batch_number: Optional[str] = Field(None, max_length=100)
    manufacturer: Optional[str] = Field(None, max_length=200)
    observations: Optional[str] = None
    record_id: Optional[int] = None


class DewormingPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    product: Optional[str] = Field(None, max_length=200)
    parasite_type: Optional[str] = None
    application_date: Optional[str] = None
    next_dose_date: Optional[str] = None
    weight_kg: Optional[Decimal] = Field(None, ge=0)
    dose: Optional[str] = Field(None, max_length=100)
    route: Optional[str] = None
    observations: Optional[str] = None
    record_id: Optional[int] = None


# ---------- responses ----------

class VitalSignsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    record_id: int
    temperature: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    heart_rate: Optional[int] = None
    respiratory_rate: Optional[int] = None
    blood_pressure: Optional[str] = None
    body_condition: Optional[int] = None
    hydration: Hydration


class AttachmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    record_id: int
    file_name: str
    category: AttachmentCategory
    file_size: int
    mime_type: str
    description: Optional[str] = None
    uploaded_by: int
    created_at: Optional[dt.datetime] = None


class MedicalRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appointment_id: int
    pet_id: int
    veterinarian_id: int
    client_id: int
    date: dt.date
    chief_complaint: str
    history: Optional[str] = None
    physical_exam: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    procedures_performed: Optional[str] = None
    observations: Optional[str] = None
    next_consultation: Optional[dt.date] = None
    status: MedicalRecordStatus
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    vital_signs: Optional[VitalSignsRead] = None
    attachments: List[AttachmentRead] = Field(default_factory=list)
    medications: List[MedicationRead] = Field(default_factory=list)


class VaccinationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    pet_id: int
    record_id: Optional[int] = None
    vaccine_name: str
    application_date: dt.date
    next_dose_date: Optional[dt.date] = None
    batch_number: Optional[str] = None
    manufacturer: Optional[str] = None
    veterinarian_id: int
    observations: Optional[str] = None


class DewormingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    pet_id: int
    record_id: Optional[int] = None
    product: str
    parasite_type: ParasiteType
    application_date: dt.date
    next_dose_date: Optional[dt.date] = None
    weight_kg: Optional[Decimal] = None
    dose: Optional[str] = None
    route: Optional[AdministrationRoute] = None
    veterinarian_id: int
    observations: Optional[str] = None
