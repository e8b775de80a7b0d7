from __future__ import annotations

from typing import List, Optional

from src.pharmacy.domain.entities.pharmacy_order import PharmacyOrder, PharmacyOrderStatus
from src.pharmacy.domain.entities.prescription import Medication, Prescription
from src.pharmacy.domain.repositories.pharmacy_repos import (
    MedicationRepository,
    PharmacyOrderRepository,
    PrescriptionRepository,
)
from src.pharmacy.infrastructure.models.pharmacy_models import MedicationORM, PharmacyOrderORM, PrescriptionORM
from src.shared.infrastructure.database.sqlalchemy_repository import SQLAlchemyRepository


class PrescriptionRepositoryImpl(SQLAlchemyRepository[Prescription, PrescriptionORM], PrescriptionRepository):
    model_class = PrescriptionORM
    entity_class = Prescription

    async def get_by_appointment(self, appointment_id: int) -> Optional[Prescription]:
        return await self._first(self._select().where(PrescriptionORM.appointment_id == appointment_id))

    async def list_for_client(self, client_id: int) -> List[Prescription]:
        stmt = (
            self._select()
            .where(PrescriptionORM.client_id == client_id)
            .order_by(PrescriptionORM.created_at.desc(), PrescriptionORM.id.desc())
        )
        return await self._all(stmt)


class MedicationRepositoryImpl(SQLAlchemyRepository[Medication, MedicationORM], MedicationRepository):
    model_class = MedicationORM
    entity_class = Medication

    async def list_for_prescription(self, prescription_id: int) -> List[Medication]:
        stmt = self._select().where(MedicationORM.prescription_id == prescription_id).order_by(MedicationORM.id)
        return await self._all(stmt)

    async def list_for_record(self, record_id: int) -> List[Medication]:
        stmt = self._select().where(MedicationORM.record_id == record_id).order_by(MedicationORM.id)
        return await self._all(stmt)


class PharmacyOrderRepositoryImpl(SQLAlchemyRepository[PharmacyOrder, PharmacyOrderORM], PharmacyOrderRepository):
    model_class = PharmacyOrderORM
    entity_class = PharmacyOrder

    async def get_by_prescription(self, prescription_id: int) -> Optional[PharmacyOrder]:
        return await self._first(self._select().where(PharmacyOrderORM.prescription_id == prescription_id))

    async def list_orders(self, *, status: Optional[PharmacyOrderStatus] = None) -> List[PharmacyOrder]:
        stmt = self._select()
        if status is not None:
            stmt = stmt.where(PharmacyOrderORM.status == status)
        return await self._all(stmt.order_by(PharmacyOrderORM.created_at.desc(), PharmacyOrderORM.id.desc()))

    async def list_for_client(self, client_id: int) -> List[PharmacyOrder]:
        stmt = (
            self._select()
            .where(PharmacyOrderORM.client_id == client_id)
            .order_by(PharmacyOrderORM.created_at.desc(), PharmacyOrderORM.id.desc())
        )
        return await self._all(stmt)
