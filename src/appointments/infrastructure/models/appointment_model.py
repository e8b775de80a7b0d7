from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import Date, Index, Integer, Text, Time, text
from sqlalchemy.orm import Mapped, mapped_column

from src.appointments.domain.entities.appointment import AppointmentStatus
from src.shared.database import Base, IdMixin, SoftDeleteMixin, TimestampMixin, enum_column


class AppointmentORM(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Mirrors public.appointments.

    - uq_appointments_vet_slot: one live booking per (date, time, veterinarian_id);
      cancelled and deactivated rows release the slot.
    """
    __tablename__ = "appointments"

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    pet_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    client_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    veterinarian_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        enum_column(AppointmentStatus), nullable=False, default=AppointmentStatus.PENDING
    )
    procedure: Mapped[Optional[str]] = mapped_column(Text)
    diagnosis: Mapped[Optional[str]] = mapped_column(Text)
    indications: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index(
            "uq_appointments_vet_slot",
            "date",
            "time",
            "veterinarian_id",
            unique=True,
            postgresql_where=text("is_active AND status <> 'cancelled'"),
            sqlite_where=text("is_active = 1 AND status <> 'cancelled'"),
        ),
        Index("ix_appointments_vet_date", "veterinarian_id", "date"),
    )
