from __future__ import annotations

from datetime import date, time
from typing import List, Optional

from src.appointments.domain.entities.appointment import Appointment, AppointmentStatus
from src.appointments.domain.repositories.appointment_repo import AppointmentRepository
from src.appointments.infrastructure.models.appointment_model import AppointmentORM
from src.shared.infrastructure.database.sqlalchemy_repository import SQLAlchemyRepository


class AppointmentRepositoryImpl(SQLAlchemyRepository[Appointment, AppointmentORM], AppointmentRepository):
    model_class = AppointmentORM
    entity_class = Appointment

    async def find_slot_occupant(self, on: date, at: time, veterinarian_id: int) -> Optional[Appointment]:
        stmt = self._select().where(
            AppointmentORM.date == on,
            AppointmentORM.time == at,
            AppointmentORM.veterinarian_id == veterinarian_id,
            AppointmentORM.status != AppointmentStatus.CANCELLED,
        )
        return await self._first(stmt)

    async def list_for_veterinarian_on(self, veterinarian_id: int, on: date) -> List[Appointment]:
        stmt = (
            self._select()
            .where(AppointmentORM.veterinarian_id == veterinarian_id, AppointmentORM.date == on)
            .order_by(AppointmentORM.time.asc())
        )
        return await self._all(stmt)

    async def list_for_client(
        self,
        client_id: int,
        *,
        status: Optional[AppointmentStatus] = None,
        include_inactive: bool = False,
    ) -> List[Appointment]:
        stmt = self._select(include_inactive=include_inactive).where(AppointmentORM.client_id == client_id)
        if status is not None:
            stmt = stmt.where(AppointmentORM.status == status)
        stmt = stmt.order_by(AppointmentORM.date.desc(), AppointmentORM.time.desc())
        return await self._all(stmt)
