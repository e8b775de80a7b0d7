# src/unit_of_work.py
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from src.appointments.infrastructure.repositories.appointment_repo_impl import AppointmentRepositoryImpl
from src.clinical.infrastructure.repositories.clinical_repos_impl import (
    AttachmentRepositoryImpl,
    DewormingRepositoryImpl,
    MedicalRecordRepositoryImpl,
    VaccinationRepositoryImpl,
    VitalSignsRepositoryImpl,
)
from src.pharmacy.infrastructure.repositories.pharmacy_repos_impl import (
    MedicationRepositoryImpl,
    PharmacyOrderRepositoryImpl,
    PrescriptionRepositoryImpl,
)
from src.shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork


class ClinicUnitOfWork(SQLAlchemyUnitOfWork):
    """Every repository of the service, bound to the session of the current block."""

    appointments: AppointmentRepositoryImpl
    medical_records: MedicalRecordRepositoryImpl
    vital_signs: VitalSignsRepositoryImpl
    attachments: AttachmentRepositoryImpl
    vaccinations: VaccinationRepositoryImpl
    dewormings: DewormingRepositoryImpl
    prescriptions: PrescriptionRepositoryImpl
    medications: MedicationRepositoryImpl
    pharmacy_orders: PharmacyOrderRepositoryImpl

    async def __aenter__(self) -> "ClinicUnitOfWork":
        await super().__aenter__()
        return self

    def _bind_repositories(self, session: AsyncSession) -> None:
        self.appointments = AppointmentRepositoryImpl(session)
        self.medical_records = MedicalRecordRepositoryImpl(session)
        self.vital_signs = VitalSignsRepositoryImpl(session)
        self.attachments = AttachmentRepositoryImpl(session)
        self.vaccinations = VaccinationRepositoryImpl(session)
        self.dewormings = DewormingRepositoryImpl(session)
        self.prescriptions = PrescriptionRepositoryImpl(session)
        self.medications = MedicationRepositoryImpl(session)
        self.pharmacy_orders = PharmacyOrderRepositoryImpl(session)
