import os

os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["AUTO_CREATE_SCHEMA"] = "false"
os.environ["LOG_FORMAT"] = "console"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import date, datetime, timedelta, timezone
from typing import Dict, Optional

import httpx
import pytest
from jose import jwt

from src.shared.config import get_settings

get_settings.cache_clear()

from src import dependencies
from src.appointments.application.services.appointment_service import AppointmentService
from src.clinical.application.services.attachment_service import AttachmentService
from src.clinical.application.services.medical_record_service import MedicalRecordService
from src.clinical.application.services.preventive_care_service import DewormingService, VaccinationService
from src.clinical.infrastructure.storage.local_storage import LocalFileStorage
from src.integrations.domain.gateways import RemotePet, RemoteUser
from src.main import create_app
from src.pharmacy.application.services.pharmacy_order_service import PharmacyOrderService
from src.pharmacy.application.services.prescription_service import PrescriptionService
from src.shared.database import configure_database, dispose_engine, get_session_factory, init_models
from src.shared.exceptions import DependencyError
from src.shared.infrastructure.messaging.event_bus import InMemoryEventBus
from src.shared.logging import setup_logging
from src.shared.roles import Role, parse_role
from src.shared.security import CallerIdentity
from src.unit_of_work import ClinicUnitOfWork

ADMIN_ID = 1
RECEPTIONIST_ID = 2
VET_ID = 5
OTHER_VET_ID = 6
CLIENT_ID = 10
OTHER_CLIENT_ID = 11

CLIENT_EMAIL = "carla@vetcare.test"
OTHER_CLIENT_EMAIL = "omar@vetcare.test"

PET_ID = 1
OTHER_PET_ID = 2


@pytest.fixture(scope="session", autouse=True)
def _logging():
    setup_logging(get_settings())


@pytest.fixture
def anyio_backend():
    return "asyncio"


# ---------- remote service fakes ----------

class FakeAuthService:
    """UserDirectory + RoleVerifier over a dict; `failing` simulates an outage."""

    def __init__(self) -> None:
        self.users: Dict[int, RemoteUser] = {
            ADMIN_ID: RemoteUser(ADMIN_ID, "Alba Admin", "admin@vetcare.test", "admin"),
            RECEPTIONIST_ID: RemoteUser(RECEPTIONIST_ID, "Rita Desk", "desk@vetcare.test", "receptionist"),
            VET_ID: RemoteUser(VET_ID, "Dr. Ana Ruiz", "ana@vetcare.test", "veterinarian"),
            OTHER_VET_ID: RemoteUser(OTHER_VET_ID, "Dr. Luis Paz", "luis@vetcare.test", "veterinarian"),
            CLIENT_ID: RemoteUser(CLIENT_ID, "Carla Client", CLIENT_EMAIL, "client"),
            OTHER_CLIENT_ID: RemoteUser(OTHER_CLIENT_ID, "Omar Owner", OTHER_CLIENT_EMAIL, "client"),
        }
        self.failing = False

    async def get_user(self, user_id: int, token: str) -> Optional[RemoteUser]:
        if self.failing:
            raise DependencyError("auth service timed out", service="auth", upstream="timeout")
        return self.users.get(user_id)

    async def is_veterinarian(self, user_id: int, token: str) -> bool:
        user = await self.get_user(user_id, token)
        return user is not None and user.role == Role.VETERINARIAN.value


class FakePatientsService:
    """PetDirectory + PetOwnershipVerifier over a dict."""

    def __init__(self) -> None:
        self.pets: Dict[int, RemotePet] = {
            PET_ID: RemotePet(PET_ID, "Firulais", CLIENT_EMAIL, species="dog"),
            OTHER_PET_ID: RemotePet(OTHER_PET_ID, "Misu", OTHER_CLIENT_EMAIL, species="cat"),
        }
        self.failing = False
        self.names_failing = False

    async def get_pet(self, pet_id: int, token: str) -> Optional[RemotePet]:
        if self.failing or self.names_failing:
            raise DependencyError("patients service timed out", service="patients", upstream="timeout")
        return self.pets.get(pet_id)

    async def is_owned_by(self, pet_id: int, owner_email: str, token: str) -> bool:
        if self.failing:
            raise DependencyError("patients service timed out", service="patients", upstream="timeout")
        pet = self.pets.get(pet_id)
        return pet is not None and pet.owner_email == owner_email


@pytest.fixture
def auth_service() -> FakeAuthService:
    return FakeAuthService()


@pytest.fixture
def patients_service() -> FakePatientsService:
    return FakePatientsService()


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


# ---------- callers ----------

def mint_token(user_id: int, role: Optional[str], email: Optional[str], *, expires_in: int = 3600) -> str:
    settings = get_settings()
    claims = {
        "id": user_id,
        "email": email,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def make_caller(user_id: int, role: Optional[str], email: Optional[str]) -> CallerIdentity:
    return CallerIdentity(id=user_id, email=email, role=parse_role(role), token=mint_token(user_id, role, email))


@pytest.fixture
def admin() -> CallerIdentity:
    return make_caller(ADMIN_ID, "admin", "admin@vetcare.test")


@pytest.fixture
def receptionist() -> CallerIdentity:
    return make_caller(RECEPTIONIST_ID, "receptionist", "desk@vetcare.test")


@pytest.fixture
def vet() -> CallerIdentity:
    return make_caller(VET_ID, "veterinarian", "ana@vetcare.test")


@pytest.fixture
def other_vet() -> CallerIdentity:
    return make_caller(OTHER_VET_ID, "veterinarian", "luis@vetcare.test")


@pytest.fixture
def client_caller() -> CallerIdentity:
    return make_caller(CLIENT_ID, "client", CLIENT_EMAIL)


@pytest.fixture
def other_client() -> CallerIdentity:
    return make_caller(OTHER_CLIENT_ID, "client", OTHER_CLIENT_EMAIL)


@pytest.fixture
def tomorrow() -> str:
    return (date.today() + timedelta(days=1)).isoformat()


# ---------- persistence ----------

@pytest.fixture
async def database():
    engine = configure_database("sqlite+aiosqlite:///:memory:")
    await init_models(engine)
    yield get_session_factory()
    await dispose_engine()


@pytest.fixture
def uow(database) -> ClinicUnitOfWork:
    return ClinicUnitOfWork(database)


# ---------- services ----------

@pytest.fixture
def appointment_service(uow, auth_service, patients_service, event_bus) -> AppointmentService:
    return AppointmentService(
        uow,
        users=auth_service,
        pets=patients_service,
        roles=auth_service,
        ownership=patients_service,
        events=event_bus,
    )


@pytest.fixture
def medical_record_service(uow, patients_service) -> MedicalRecordService:
    return MedicalRecordService(uow, pets=patients_service)


@pytest.fixture
def vaccination_service(uow, patients_service) -> VaccinationService:
    return VaccinationService(uow, pets=patients_service)


@pytest.fixture
def deworming_service(uow, patients_service) -> DewormingService:
    return DewormingService(uow, pets=patients_service)


@pytest.fixture
def file_storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "uploads")


@pytest.fixture
def attachment_service(uow, file_storage) -> AttachmentService:
    return AttachmentService(uow, file_storage, max_bytes=1024, max_files=3)


@pytest.fixture
def prescription_service(uow) -> PrescriptionService:
    return PrescriptionService(uow)


@pytest.fixture
def pharmacy_order_service(uow) -> PharmacyOrderService:
    return PharmacyOrderService(uow)


@pytest.fixture
def book(appointment_service, client_caller, tomorrow):
    """Book a slot for the default client/pet/vet; keyword overrides per call."""
    async def _book(**overrides):
        values = dict(date=tomorrow, time="10:00", reason="checkup", pet_id=PET_ID, veterinarian_id=VET_ID)
        values.update(overrides)
        caller = values.pop("caller", client_caller)
        return await appointment_service.create_appointment(caller, **values)
    return _book


@pytest.fixture
async def attended(book, appointment_service, vet):
    """A completed appointment with diagnosis and procedure recorded."""
    appointment = await book()
    return await appointment_service.update_attention(
        appointment.id, vet, diagnosis="healthy", procedure="checkup"
    )


# ---------- HTTP ----------

@pytest.fixture
def app(database, auth_service, patients_service, event_bus, file_storage):
    application = create_app(get_settings())
    application.dependency_overrides[dependencies.get_auth_client] = lambda: auth_service
    application.dependency_overrides[dependencies.get_patients_client] = lambda: patients_service
    application.dependency_overrides[dependencies.get_event_bus] = lambda: event_bus
    application.dependency_overrides[dependencies.get_file_storage] = lambda: file_storage
    return application


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def bearer():
    def _headers(caller: CallerIdentity) -> Dict[str, str]:
        return {"Authorization": f"Bearer {caller.token}"}
    return _headers
