# src/dependencies.py
from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.appointments.application.services.appointment_service import AppointmentService
from src.clinical.application.services.attachment_service import AttachmentService
from src.clinical.application.services.medical_record_service import MedicalRecordService
from src.clinical.application.services.preventive_care_service import DewormingService, VaccinationService
from src.clinical.infrastructure.storage.local_storage import LocalFileStorage
from src.integrations.infrastructure.auth_client import AuthServiceClient
from src.integrations.infrastructure.patients_client import PatientsServiceClient
from src.pharmacy.application.services.pharmacy_order_service import PharmacyOrderService
from src.pharmacy.application.services.prescription_service import PrescriptionService
from src.shared.config import Settings, get_settings
from src.shared.database import get_session_factory
from src.shared.exceptions import ForbiddenError, UnauthenticatedError
from src.shared.infrastructure.messaging.event_bus import EventPublisher
from src.shared.logging import bind_request_context
from src.shared.roles import Role
from src.shared.security import CallerIdentity, decode_token, identity_from_claims
from src.unit_of_work import ClinicUnitOfWork

bearer_scheme = HTTPBearer(auto_error=False)


# --- Current caller & role guard ---
async def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CallerIdentity:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise UnauthenticatedError("Access token required")
    token = credentials.credentials
    caller = identity_from_claims(decode_token(token), token)
    bind_request_context(user_id=caller.id, role=caller.role.value if caller.role else None)
    return caller


def require_roles(*roles: Role) -> Callable[..., CallerIdentity]:
    """
    Dependency generator that only admits callers holding one of `roles`.

    Usage:
        @router.put("/pharmacy/orders/{order_id}/status")
        async def update(caller = Depends(require_roles(Role.ADMIN, Role.VETERINARIAN))): ...
    """
    def _enforce(caller: CallerIdentity = Depends(get_caller)) -> CallerIdentity:
        if not caller.has_role(*roles):
            raise ForbiddenError("Your role does not allow this operation")
        return caller

    return _enforce


# --- Lifespan-owned collaborators (attached to app.state in src.main) ---
def get_app_settings() -> Settings:
    return get_settings()


def get_auth_client(request: Request) -> AuthServiceClient:
    return request.app.state.auth_client


def get_patients_client(request: Request) -> PatientsServiceClient:
    return request.app.state.patients_client


def get_event_bus(request: Request) -> EventPublisher:
    return request.app.state.event_bus


def get_file_storage(request: Request) -> LocalFileStorage:
    return request.app.state.file_storage


def get_uow() -> ClinicUnitOfWork:
    return ClinicUnitOfWork(get_session_factory())


# --- Service constructors ---
def get_appointment_service(
    uow: ClinicUnitOfWork = Depends(get_uow),
    auth: AuthServiceClient = Depends(get_auth_client),
    patients: PatientsServiceClient = Depends(get_patients_client),
    events: EventPublisher = Depends(get_event_bus),
    settings: Settings = Depends(get_app_settings),
) -> AppointmentService:
    return AppointmentService(
        uow,
        users=auth,
        pets=patients,
        roles=auth,
        ownership=patients,
        events=events,
        event_timeout=settings.event_publish_timeout_seconds,
    )


def get_medical_record_service(
    uow: ClinicUnitOfWork = Depends(get_uow),
    patients: PatientsServiceClient = Depends(get_patients_client),
) -> MedicalRecordService:
    return MedicalRecordService(uow, pets=patients)


def get_attachment_service(
    uow: ClinicUnitOfWork = Depends(get_uow),
    storage: LocalFileStorage = Depends(get_file_storage),
    settings: Settings = Depends(get_app_settings),
) -> AttachmentService:
    return AttachmentService(uow, storage, max_bytes=settings.max_upload_bytes, max_files=settings.max_upload_files)


def get_vaccination_service(
    uow: ClinicUnitOfWork = Depends(get_uow),
    patients: PatientsServiceClient = Depends(get_patients_client),
    settings: Settings = Depends(get_app_settings),
) -> VaccinationService:
    return VaccinationService(uow, pets=patients, upcoming_days=settings.upcoming_window_days)


def get_deworming_service(
    uow: ClinicUnitOfWork = Depends(get_uow),
    patients: PatientsServiceClient = Depends(get_patients_client),
    settings: Settings = Depends(get_app_settings),
) -> DewormingService:
    return DewormingService(uow, pets=patients, upcoming_days=settings.upcoming_window_days)


def get_prescription_service(uow: ClinicUnitOfWork = Depends(get_uow)) -> PrescriptionService:
    return PrescriptionService(uow)


def get_pharmacy_order_service(uow: ClinicUnitOfWork = Depends(get_uow)) -> PharmacyOrderService:
    return PharmacyOrderService(uow)
