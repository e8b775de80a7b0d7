from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.pharmacy.domain.entities.pharmacy_order import PharmacyOrderStatus
from src.shared.database import Base, IdMixin, SoftDeleteMixin, TimestampMixin, enum_column


class PrescriptionORM(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "prescriptions"

    appointment_id: Mapped[int] = mapped_column(ForeignKey("appointments.id"), unique=True, nullable=False)
    veterinarian_id: Mapped[int] = mapped_column(Integer, nullable=False)
    client_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    pet_id: Mapped[int] = mapped_column(Integer, nullable=False)
    observations: Mapped[Optional[str]] = mapped_column(Text)


class MedicationORM(IdMixin, TimestampMixin, Base):
    __tablename__ = "medications"

    prescription_id: Mapped[Optional[int]] = mapped_column(ForeignKey("prescriptions.id"), index=True)
    record_id: Mapped[Optional[int]] = mapped_column(ForeignKey("medical_records.id"), index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    dosage: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="unit")
    duration: Mapped[Optional[str]] = mapped_column(String(100))
    instructions: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_medications_quantity"),)


class PharmacyOrderORM(IdMixin, TimestampMixin, Base):
    __tablename__ = "pharmacy_orders"

    prescription_id: Mapped[int] = mapped_column(ForeignKey("prescriptions.id"), unique=True, nullable=False)
    client_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    status: Mapped[PharmacyOrderStatus] = mapped_column(
        enum_column(PharmacyOrderStatus), nullable=False, default=PharmacyOrderStatus.PENDING, index=True
    )
    medications: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
