from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.clinical.domain.entities.attachment import AttachmentCategory
from src.clinical.domain.entities.medical_record import Hydration, MedicalRecordStatus
from src.clinical.domain.entities.preventive_care import AdministrationRoute, ParasiteType
from src.shared.database import Base, IdMixin, SoftDeleteMixin, TimestampMixin, enum_column


class MedicalRecordORM(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """One per appointment; pet/client/date are copied from the appointment at creation."""
    __tablename__ = "medical_records"

    appointment_id: Mapped[int] = mapped_column(ForeignKey("appointments.id"), unique=True, nullable=False)
    pet_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    veterinarian_id: Mapped[int] = mapped_column(Integer, nullable=False)
    client_id: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    chief_complaint: Mapped[str] = mapped_column(Text, nullable=False)
    history: Mapped[Optional[str]] = mapped_column(Text)
    physical_exam: Mapped[Optional[str]] = mapped_column(Text)
    diagnosis: Mapped[Optional[str]] = mapped_column(Text)
    treatment: Mapped[Optional[str]] = mapped_column(Text)
    procedures_performed: Mapped[Optional[str]] = mapped_column(Text)
    observations: Mapped[Optional[str]] = mapped_column(Text)
    next_consultation: Mapped[Optional[dt.date]] = mapped_column(Date)
    status: Mapped[MedicalRecordStatus] = mapped_column(
        enum_column(MedicalRecordStatus), nullable=False, default=MedicalRecordStatus.IN_PROGRESS
    )


class VitalSignsORM(IdMixin, TimestampMixin, Base):
    __tablename__ = "vital_signs"

    record_id: Mapped[int] = mapped_column(ForeignKey("medical_records.id"), unique=True, nullable=False)
    temperature: Mapped[Optional[Decimal]] = mapped_column(Numeric(4, 1))
    weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 2))
    heart_rate: Mapped[Optional[int]] = mapped_column(Integer)
    respiratory_rate: Mapped[Optional[int]] = mapped_column(Integer)
    blood_pressure: Mapped[Optional[str]] = mapped_column(String(20))
    body_condition: Mapped[Optional[int]] = mapped_column(Integer)
    hydration: Mapped[Hydration] = mapped_column(enum_column(Hydration), nullable=False, default=Hydration.NORMAL)

    __table_args__ = (
        CheckConstraint("body_condition IS NULL OR body_condition BETWEEN 1 AND 5", name="ck_vital_signs_body_condition"),
    )


class MedicalAttachmentORM(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "medical_attachments"

    record_id: Mapped[int] = mapped_column(ForeignKey("medical_records.id"), nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[AttachmentCategory] = mapped_column(
        enum_column(AttachmentCategory), nullable=False, default=AttachmentCategory.OTHER
    )
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    uploaded_by: Mapped[int] = mapped_column(Integer, nullable=False)


class VaccinationORM(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "vaccinations"

    pet_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    record_id: Mapped[Optional[int]] = mapped_column(ForeignKey("medical_records.id"))
    vaccine_name: Mapped[str] = mapped_column(String(200), nullable=False)
    application_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    next_dose_date: Mapped[Optional[dt.date]] = mapped_column(Date, index=True)
    batch_number: Mapped[Optional[str]] = mapped_column(String(100))
    manufacturer: Mapped[Optional[str]] = mapped_column(String(200))
    veterinarian_id: Mapped[int] = mapped_column(Integer, nullable=False)
    observations: Mapped[Optional[str]] = mapped_column(Text)


class DewormingORM(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "dewormings"

    pet_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    record_id: Mapped[Optional[int]] = mapped_column(ForeignKey("medical_records.id"))
    product: Mapped[str] = mapped_column(String(200), nullable=False)
    parasite_type: Mapped[ParasiteType] = mapped_column(
        enum_column(ParasiteType), nullable=False, default=ParasiteType.INTERNAL
    )
    application_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    next_dose_date: Mapped[Optional[dt.date]] = mapped_column(Date, index=True)
    weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 2))
    dose: Mapped[Optional[str]] = mapped_column(String(100))
    route: Mapped[Optional[AdministrationRoute]] = mapped_column(enum_column(AdministrationRoute))
    veterinarian_id: Mapped[int] = mapped_column(Integer, nullable=False)
    observations: Mapped[Optional[str]] = mapped_column(Text)
