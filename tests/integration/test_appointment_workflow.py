from datetime import date, timedelta

import anyio
import pytest

from src.appointments.application.services.appointment_service import AppointmentService
from src.appointments.application.services.enrichment import PLACEHOLDER
from src.appointments.domain.entities.appointment import AppointmentStatus
from src.appointments.infrastructure.repositories.appointment_repo_impl import AppointmentRepositoryImpl
from src.shared.exceptions import (
    DependencyError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    SchedulingConflictError,
    UnauthenticatedError,
)
from src.shared.security import CallerIdentity

pytestmark = pytest.mark.anyio


async def test_booking_is_pending_active_with_unique_id(book):
    first = await book()
    second = await book(time="11:00")
    assert first.status == AppointmentStatus.PENDING
    assert first.is_active is True
    assert first.id != second.id
    assert first.created_at is not None


async def test_missing_fields_are_reported(appointment_service, client_caller):
    with pytest.raises(InvalidInputError) as exc:
        await appointment_service.create_appointment(
            client_caller, date=None, time="10:00", reason="  ", pet_id=1, veterinarian_id=None
        )
    assert set(exc.value.details["missing"]) == {"date", "reason", "veterinarian_id"}


async def test_caller_without_email_is_unauthenticated(book):
    anonymous = CallerIdentity(id=10, email=None, role=None, token="t")
    with pytest.raises(UnauthenticatedError):
        await book(caller=anonymous)


async def test_past_date_and_bad_time_rejected(book):
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    with pytest.raises(InvalidInputError):
        await book(date=yesterday)
    with pytest.raises(InvalidInputError):
        await book(time="25:00")


async def test_today_is_bookable(book):
    appointment = await book(date=date.today().isoformat())
    assert appointment.date == date.today()


async def test_pet_of_someone_else_is_forbidden(book):
    with pytest.raises(ForbiddenError):
        await book(pet_id=2)


async def test_non_veterinarian_target_is_invalid_input(book):
    with pytest.raises(InvalidInputError):
        await book(veterinarian_id=10)
    with pytest.raises(InvalidInputError):
        await book(veterinarian_id=404)


async def test_remote_failure_aborts_without_write(book, patients_service, appointment_service, client_caller):
    patients_service.failing = True
    with pytest.raises(DependencyError):
        await book()
    patients_service.failing = False
    assert await appointment_service.get_client_appointments(client_caller) == []


async def test_occupied_slot_conflicts(book, tomorrow):
    await book()
    with pytest.raises(SchedulingConflictError) as exc:
        await book(time="10:00:00")
    assert exc.value.details == {"date": tomorrow, "time": "10:00:00"}


async def test_other_veterinarian_same_slot_is_free(book):
    await book()
    assert (await book(veterinarian_id=6)).veterinarian_id == 6


async def test_cancelled_occupant_releases_slot(book, appointment_service, client_caller):
    first = await book()
    await appointment_service.cancel_appointment(first.id, client_caller)
    again = await book()
    assert again.id != first.id


async def test_unique_index_catches_lost_race(book, monkeypatch):
    await book()

    async def no_occupant(self, on, at, veterinarian_id):
        return None

    monkeypatch.setattr(AppointmentRepositoryImpl, "find_slot_occupant", no_occupant)
    with pytest.raises(SchedulingConflictError):
        await book()


async def test_created_event_carries_snapshot(book, event_bus):
    appointment = await book()
    [envelope] = event_bus.published
    assert envelope["event_type"] == "appointment.created"
    data = envelope["data"]
    assert data["appointment_id"] == appointment.id
    assert data["pet_name"] == "Firulais"
    assert data["client_email"] == "carla@vetcare.test"
    assert data["veterinarian_email"] == "ana@vetcare.test"
    assert data["veterinarian_name"] == "Dr. Ana Ruiz"
    assert data["time"] == "10:00:00"


async def test_enrichment_failure_never_fails_booking(book, auth_service, event_bus):
    async def flaky(user_id, token):
        raise DependencyError("auth down", service="auth", upstream="timeout")

    async def always_vet(user_id, token):
        return True

    # role gate passes, the post-commit lookups fail
    auth_service.is_veterinarian = always_vet
    auth_service.get_user = flaky
    appointment = await book()
    assert appointment.id is not None
    assert event_bus.published == []


async def test_stalled_broker_does_not_hold_booking(uow, auth_service, patients_service, client_caller, tomorrow):
    class StalledBus:
        async def publish(self, name, payload):
            await anyio.sleep(3600)

    service = AppointmentService(
        uow,
        users=auth_service,
        pets=patients_service,
        roles=auth_service,
        ownership=patients_service,
        events=StalledBus(),
        event_timeout=0.05,
    )
    with anyio.fail_after(5):
        appointment = await service.create_appointment(
            client_caller, date=tomorrow, time="10:00", reason="checkup", pet_id=1, veterinarian_id=5
        )
    assert appointment.status == AppointmentStatus.PENDING
    assert (await service.get_appointment(appointment.id, client_caller)).id == appointment.id


async def test_schedule_for_veterinarian_ordered_with_names(book, appointment_service, vet, tomorrow):
    await book(time="15:00")
    await book(time="09:00")
    entries = await appointment_service.get_veterinarian_schedule(vet, tomorrow)
    assert [e.appointment.time.strftime("%H:%M") for e in entries] == ["09:00", "15:00"]
    assert entries[0].pet_name == "Firulais"
    assert entries[0].client_name == "Carla Client"


async def test_schedule_uses_placeholder_when_lookups_fail(book, appointment_service, patients_service, vet, tomorrow):
    await book()
    patients_service.names_failing = True
    [entry] = await appointment_service.get_veterinarian_schedule(vet, tomorrow)
    assert entry.pet_name == PLACEHOLDER
    assert entry.client_name == "Carla Client"


async def test_schedule_defaults_to_today_and_requires_vet_role(book, appointment_service, vet, client_caller):
    await book(date=date.today().isoformat())
    assert len(await appointment_service.get_veterinarian_schedule(vet)) == 1
    with pytest.raises(ForbiddenError):
        await appointment_service.get_veterinarian_schedule(client_caller)
    with pytest.raises(InvalidInputError):
        await appointment_service.get_veterinarian_schedule(vet, "tomorrow")


async def test_client_list_order_filter_and_inactive(book, appointment_service, client_caller, admin, tomorrow):
    later = (date.today() + timedelta(days=2)).isoformat()
    a = await book(time="08:00")
    b = await book(time="12:00")
    c = await book(date=later, time="08:00")
    await appointment_service.cancel_appointment(a.id, client_caller)
    await appointment_service.deactivate_appointment(b.id, admin)

    entries = await appointment_service.get_client_appointments(client_caller)
    assert [e.appointment.id for e in entries] == [c.id, a.id]
    assert entries[0].veterinarian_name == "Dr. Ana Ruiz"

    cancelled = await appointment_service.get_client_appointments(client_caller, status="cancelled")
    assert [e.appointment.id for e in cancelled] == [a.id]

    everything = await appointment_service.get_client_appointments(client_caller, include_inactive=True)
    assert [e.appointment.id for e in everything] == [c.id, b.id, a.id]

    with pytest.raises(InvalidInputError):
        await appointment_service.get_client_appointments(client_caller, status="archived")


async def test_attention_completes_appointment(book, appointment_service, vet):
    appointment = await book()
    updated = await appointment_service.update_attention(appointment.id, vet, diagnosis="healthy")
    assert updated.status == AppointmentStatus.COMPLETED
    updated = await appointment_service.update_attention(appointment.id, vet, procedure="checkup")
    assert (updated.diagnosis, updated.procedure) == ("healthy", "checkup")


async def test_attention_guards(book, appointment_service, vet, other_vet, client_caller):
    appointment = await book()
    with pytest.raises(InvalidInputError):
        await appointment_service.update_attention(appointment.id, vet)
    with pytest.raises(InvalidInputError):
        await appointment_service.update_attention(appointment.id, vet, procedure="   ", diagnosis="")
    assert (await appointment_service.get_appointment(appointment.id, vet)).status == AppointmentStatus.PENDING
    with pytest.raises(NotFoundError):
        await appointment_service.update_attention(9999, vet, diagnosis="x")
    with pytest.raises(ForbiddenError):
        await appointment_service.update_attention(appointment.id, other_vet, diagnosis="x")
    with pytest.raises(ForbiddenError):
        await appointment_service.update_attention(appointment.id, client_caller, diagnosis="x")


async def test_blank_attention_payload_is_rejected_over_http(client, bearer, book, vet):
    appointment = await book()
    resp = await client.put(f"/api/appointments/{appointment.id}/attention", json={"procedure": "   "}, headers=bearer(vet))
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_input"


@pytest.mark.parametrize("who", ["vet", "other_vet", "client_caller", "admin"])
async def test_attention_on_cancelled_is_invalid_state_for_any_role(book, appointment_service, client_caller, request, who):
    appointment = await book()
    await appointment_service.cancel_appointment(appointment.id, client_caller)
    with pytest.raises(InvalidStateError):
        await appointment_service.update_attention(appointment.id, request.getfixturevalue(who), diagnosis="x")


async def test_get_appointment_visibility(book, appointment_service, client_caller, other_client, vet, receptionist):
    appointment = await book()
    for caller in (client_caller, vet, receptionist):
        assert (await appointment_service.get_appointment(appointment.id, caller)).id == appointment.id
    with pytest.raises(ForbiddenError):
        await appointment_service.get_appointment(appointment.id, other_client)


async def test_confirm_and_cancel_rules(book, appointment_service, vet, other_client, receptionist):
    appointment = await book()
    with pytest.raises(ForbiddenError):
        await appointment_service.confirm_appointment(appointment.id, other_client)
    confirmed = await appointment_service.confirm_appointment(appointment.id, vet)
    assert confirmed.status == AppointmentStatus.CONFIRMED
    with pytest.raises(InvalidStateError):
        await appointment_service.confirm_appointment(appointment.id, receptionist)

    with pytest.raises(ForbiddenError):
        await appointment_service.cancel_appointment(appointment.id, other_client)
    await appointment_service.update_attention(appointment.id, vet, diagnosis="ok", procedure="exam")
    with pytest.raises(InvalidStateError):
        await appointment_service.cancel_appointment(appointment.id, receptionist)


async def test_deactivate_is_admin_only_and_hides_row(book, appointment_service, admin, vet, client_caller):
    appointment = await book()
    with pytest.raises(ForbiddenError):
        await appointment_service.deactivate_appointment(appointment.id, vet)
    await appointment_service.deactivate_appointment(appointment.id, admin)
    with pytest.raises(NotFoundError):
        await appointment_service.get_appointment(appointment.id, client_caller)
    with pytest.raises(NotFoundError):
        await appointment_service.deactivate_appointment(appointment.id, admin)
