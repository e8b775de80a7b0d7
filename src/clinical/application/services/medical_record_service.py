from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Mapping, Optional

from src.clinical.domain.entities.medical_record import MedicalRecord, MedicalRecordDetail, VitalSigns
from src.integrations.domain.gateways import PetDirectory
from src.shared.exceptions import ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from src.shared.logging import get_logger
from src.shared.roles import Role, is_staff
from src.shared.security import CallerIdentity

if TYPE_CHECKING:
    from src.unit_of_work import ClinicUnitOfWork

logger = get_logger(__name__)


def _require_veterinarian(caller: CallerIdentity) -> None:
    if not caller.has_role(Role.VETERINARIAN):
        raise ForbiddenError("Only veterinarians can manage medical records")


class MedicalRecordService:
    def __init__(self, uow: "ClinicUnitOfWork", *, pets: PetDirectory) -> None:
        self._uow = uow
        self._pets = pets

    async def create_medical_record(
        self,
        appointment_id: int,
        caller: CallerIdentity,
        fields: Mapping[str, Any],
        vital_signs: Optional[Mapping[str, Any]] = None,
    ) -> MedicalRecordDetail:
        _require_veterinarian(caller)

        async with self._uow as uow:
            appointment = await uow.appointments.get(appointment_id)
            if appointment is None:
                raise NotFoundError("Appointment not found")
            if appointment.is_cancelled:
                raise InvalidStateError("Cannot open a medical record for a cancelled appointment")

            existing = await uow.medical_records.get_by_appointment(appointment_id)
            if existing is not None:
                raise ConflictError(
                    "A medical record already exists for this appointment",
                    details=await self._detail(uow, existing),
                )

            record = await uow.medical_records.add(MedicalRecord.open_for(appointment, caller.id, fields))
            vitals = None
            if vital_signs:
                # same transaction: no vital signs without their record
                vitals = await uow.vital_signs.add(VitalSigns.from_values(record.id, vital_signs))
            await uow.commit()

        logger.info("medical_record.created", record_id=record.id, appointment_id=appointment_id)
        return MedicalRecordDetail(record=record, vital_signs=vitals)

    async def get_medical_record(self, appointment_id: int, caller: CallerIdentity) -> MedicalRecordDetail:
        async with self._uow as uow:
            record = await uow.medical_records.get_by_appointment(appointment_id)
            if record is None:
                raise NotFoundError("No medical record exists for this appointment")
            if not (
                caller.has_role(Role.VETERINARIAN)
                or is_staff(caller.role)
                or record.client_id == caller.id
            ):
                raise ForbiddenError("You do not have access to this medical record")
            return await self._detail(uow, record)

    async def update_medical_record(
        self,
        appointment_id: int,
        caller: CallerIdentity,
        changes: Mapping[str, Any],
        vital_signs: Optional[Mapping[str, Any]] = None,
    ) -> MedicalRecordDetail:
        _require_veterinarian(caller)

        async with self._uow as uow:
            record = await uow.medical_records.get_by_appointment(appointment_id)
            if record is None:
                raise NotFoundError("No medical record exists for this appointment")

            record.apply_changes(changes)
            record = await uow.medical_records.update(record)

            if vital_signs:
                vitals = await uow.vital_signs.get_by_record(record.id)
                if vitals is None:
                    await uow.vital_signs.add(VitalSigns.from_values(record.id, vital_signs))
                else:
                    vitals.merge(vital_signs)
                    await uow.vital_signs.update(vitals)

            detail = await self._detail(uow, record)
            await uow.commit()

        logger.info("medical_record.updated", record_id=record.id, fields=sorted(changes))
        return detail

    async def get_pet_medical_history(self, pet_id: int, caller: CallerIdentity) -> List[MedicalRecordDetail]:
        pet = await self._pets.get_pet(pet_id, caller.token)
        if pet is None:
            raise NotFoundError("Pet not found")
        if caller.has_role(Role.CLIENT) and pet.owner_email != caller.email:
            raise ForbiddenError("The pet does not belong to the authenticated client")

        async with self._uow as uow:
            records = await uow.medical_records.list_for_pet(pet_id)
            return [await self._detail(uow, r) for r in records]

    @staticmethod
    async def _detail(uow: "ClinicUnitOfWork", record: MedicalRecord) -> MedicalRecordDetail:
        return MedicalRecordDetail(
            record=record,
            vital_signs=await uow.vital_signs.get_by_record(record.id),
            attachments=await uow.attachments.list_for_record(record.id),
            medications=await uow.medications.list_for_record(record.id),
        )
