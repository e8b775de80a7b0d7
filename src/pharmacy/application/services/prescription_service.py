from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence

from src.pharmacy.domain.entities.pharmacy_order import PharmacyOrder
from src.pharmacy.domain.entities.prescription import Medication, Prescription
from src.shared.exceptions import ConflictError, ForbiddenError, InvalidInputError, InvalidStateError, NotFoundError
from src.shared.logging import get_logger
from src.shared.roles import Role, is_staff
from src.shared.security import CallerIdentity

if TYPE_CHECKING:
    from src.unit_of_work import ClinicUnitOfWork

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PrescriptionDetail:
    prescription: Prescription
    medications: List[Medication]
    pharmacy_order: Optional[PharmacyOrder]


class PrescriptionService:
    """
    Issues prescriptions for attended appointments.

    The prescription, its medication lines and the derived pharmacy order are
    written in one unit of work: either all three persist or none do.
    """

    def __init__(self, uow: "ClinicUnitOfWork") -> None:
        self._uow = uow

    async def create_prescription(
        self,
        appointment_id: int,
        caller: CallerIdentity,
        *,
        medications: Sequence[Mapping[str, Any]],
        observations: Optional[str] = None,
    ) -> PrescriptionDetail:
        if not caller.has_role(Role.VETERINARIAN):
            raise ForbiddenError("Only veterinarians can issue prescriptions")
        if not medications:
            raise InvalidInputError("At least one medication is required")
        lines = [Medication.from_line(line, i) for i, line in enumerate(medications)]

        async with self._uow as uow:
            appointment = await uow.appointments.get(appointment_id)
            if appointment is None:
                raise NotFoundError("Appointment not found")
            if appointment.veterinarian_id != caller.id:
                raise ForbiddenError("This appointment is assigned to another veterinarian")
            if not appointment.has_clinical_summary:
                raise InvalidStateError("Diagnosis and procedure must be recorded before prescribing")
            if await uow.prescriptions.get_by_appointment(appointment_id) is not None:
                raise ConflictError("A prescription already exists for this appointment")

            prescription = await uow.prescriptions.add(
                Prescription(
                    appointment_id=appointment.id,
                    veterinarian_id=caller.id,
                    client_id=appointment.client_id,
                    pet_id=appointment.pet_id,
                    observations=(observations or "").strip() or None,
                )
            )
            record = await uow.medical_records.get_by_appointment(appointment_id)
            saved = await uow.medications.add_all(
                [
                    replace(m, prescription_id=prescription.id, record_id=record.id if record else None)
                    for m in lines
                ]
            )
            order = await uow.pharmacy_orders.add(
                PharmacyOrder.derive(
                    prescription_id=prescription.id,
                    client_id=appointment.client_id,
                    medications=saved,
                    notes=f"Prescription issued for appointment #{appointment.id}",
                )
            )
            await uow.commit()

        logger.info(
            "prescription.created",
            prescription_id=prescription.id,
            appointment_id=appointment_id,
            order_id=order.id,
            total_items=order.total_items,
        )
        return PrescriptionDetail(prescription=prescription, medications=saved, pharmacy_order=order)

    async def get_prescription(self, appointment_id: int, caller: CallerIdentity) -> PrescriptionDetail:
        async with self._uow as uow:
            prescription = await uow.prescriptions.get_by_appointment(appointment_id)
            if prescription is None:
                raise NotFoundError("No prescription exists for this appointment")
            if not (
                is_staff(caller.role)
                or prescription.veterinarian_id == caller.id
                or prescription.client_id == caller.id
            ):
                raise ForbiddenError("You do not have access to this prescription")
            return await self._detail(uow, prescription)

    async def get_client_prescriptions(self, caller: CallerIdentity) -> List[PrescriptionDetail]:
        async with self._uow as uow:
            prescriptions = await uow.prescriptions.list_for_client(caller.id)
            return [await self._detail(uow, p) for p in prescriptions]

    @staticmethod
    async def _detail(uow: "ClinicUnitOfWork", prescription: Prescription) -> PrescriptionDetail:
        return PrescriptionDetail(
            prescription=prescription,
            medications=await uow.medications.list_for_prescription(prescription.id),
            pharmacy_order=await uow.pharmacy_orders.get_by_prescription(prescription.id),
        )
