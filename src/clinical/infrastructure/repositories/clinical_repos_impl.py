from __future__ import annotations

from datetime import date
from typing import List, Optional

from src.clinical.domain.entities.attachment import MedicalAttachment
from src.clinical.domain.entities.medical_record import MedicalRecord, VitalSigns
from src.clinical.domain.entities.preventive_care import Deworming, Vaccination
from src.clinical.domain.repositories.clinical_repos import (
    AttachmentRepository,
    DewormingRepository,
    MedicalRecordRepository,
    VaccinationRepository,
    VitalSignsRepository,
)
from src.clinical.infrastructure.models.clinical_models import (
    DewormingORM,
    MedicalAttachmentORM,
    MedicalRecordORM,
    VaccinationORM,
    VitalSignsORM,
)
from src.shared.infrastructure.database.sqlalchemy_repository import SQLAlchemyRepository


class MedicalRecordRepositoryImpl(SQLAlchemyRepository[MedicalRecord, MedicalRecordORM], MedicalRecordRepository):
    model_class = MedicalRecordORM
    entity_class = MedicalRecord

    async def get_by_appointment(self, appointment_id: int) -> Optional[MedicalRecord]:
        return await self._first(self._select().where(MedicalRecordORM.appointment_id == appointment_id))

    async def list_for_pet(self, pet_id: int) -> List[MedicalRecord]:
        stmt = (
            self._select()
            .where(MedicalRecordORM.pet_id == pet_id)
            .order_by(MedicalRecordORM.date.desc(), MedicalRecordORM.id.desc())
        )
        return await self._all(stmt)


class VitalSignsRepositoryImpl(SQLAlchemyRepository[VitalSigns, VitalSignsORM], VitalSignsRepository):
    model_class = VitalSignsORM
    entity_class = VitalSigns

    async def get_by_record(self, record_id: int) -> Optional[VitalSigns]:
        return await self._first(self._select().where(VitalSignsORM.record_id == record_id))


class AttachmentRepositoryImpl(SQLAlchemyRepository[MedicalAttachment, MedicalAttachmentORM], AttachmentRepository):
    model_class = MedicalAttachmentORM
    entity_class = MedicalAttachment

    async def list_for_record(self, record_id: int) -> List[MedicalAttachment]:
        stmt = (
            self._select()
            .where(MedicalAttachmentORM.record_id == record_id)
            .order_by(MedicalAttachmentORM.created_at.desc(), MedicalAttachmentORM.id.desc())
        )
        return await self._all(stmt)


class VaccinationRepositoryImpl(SQLAlchemyRepository[Vaccination, VaccinationORM], VaccinationRepository):
    model_class = VaccinationORM
    entity_class = Vaccination

    async def list_for_pet(self, pet_id: int) -> List[Vaccination]:
        stmt = (
            self._select()
            .where(VaccinationORM.pet_id == pet_id)
            .order_by(VaccinationORM.application_date.desc(), VaccinationORM.id.desc())
        )
        return await self._all(stmt)

    async def list_upcoming(self, start: date, end: date) -> List[Vaccination]:
        stmt = (
            self._select()
            .where(VaccinationORM.next_dose_date.between(start, end))
            .order_by(VaccinationORM.next_dose_date.asc())
        )
        return await self._all(stmt)


class DewormingRepositoryImpl(SQLAlchemyRepository[Deworming, DewormingORM], DewormingRepository):
    model_class = DewormingORM
    entity_class = Deworming

    async def list_for_pet(self, pet_id: int) -> List[Deworming]:
        stmt = (
            self._select()
            .where(DewormingORM.pet_id == pet_id)
            .order_by(DewormingORM.application_date.desc(), DewormingORM.id.desc())
        )
        return await self._all(stmt)

    async def list_upcoming(self, start: date, end: date) -> List[Deworming]:
        stmt = (
            self._select()
            .where(DewormingORM.next_dose_date.between(start, end))
            .order_by(DewormingORM.next_dose_date.asc())
        )
        return await self._all(stmt)
