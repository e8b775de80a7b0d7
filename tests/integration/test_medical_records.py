import datetime as dt

import pytest

from src.clinical.domain.entities.medical_record import Hydration, MedicalRecordStatus
from src.shared.exceptions import ConflictError, ForbiddenError, InvalidInputError, InvalidStateError, NotFoundError

pytestmark = pytest.mark.anyio


async def test_record_copies_appointment_and_defaults_complaint(attended, medical_record_service, vet):
    detail = await medical_record_service.create_medical_record(attended.id, vet, {"diagnosis": "  otitis  "})
    record = detail.record
    assert record.id is not None
    assert (record.pet_id, record.client_id, record.date) == (attended.pet_id, attended.client_id, attended.date)
    assert record.chief_complaint == "checkup"
    assert record.diagnosis == "otitis"
    assert record.status == MedicalRecordStatus.IN_PROGRESS
    assert detail.vital_signs is None


async def test_record_with_vitals_is_written_together(attended, medical_record_service, vet, client_caller):
    await medical_record_service.create_medical_record(
        attended.id,
        vet,
        {"chief_complaint": "limping"},
        {"temperature": 38.5, "heart_rate": 90, "body_condition": 3},
    )
    detail = await medical_record_service.get_medical_record(attended.id, client_caller)
    assert detail.vital_signs is not None
    assert float(detail.vital_signs.temperature) == 38.5
    assert detail.vital_signs.hydration == Hydration.NORMAL


async def test_invalid_vitals_roll_back_the_record(attended, medical_record_service, vet):
    with pytest.raises(InvalidInputError):
        await medical_record_service.create_medical_record(attended.id, vet, {}, {"body_condition": 9})
    with pytest.raises(NotFoundError):
        await medical_record_service.get_medical_record(attended.id, vet)


async def test_duplicate_record_conflicts_and_keeps_original(attended, medical_record_service, vet):
    first = await medical_record_service.create_medical_record(attended.id, vet, {"diagnosis": "first"})
    with pytest.raises(ConflictError) as exc:
        await medical_record_service.create_medical_record(attended.id, vet, {"diagnosis": "second"})
    assert exc.value.details.record.id == first.record.id
    current = await medical_record_service.get_medical_record(attended.id, vet)
    assert current.record.diagnosis == "first"


@pytest.mark.parametrize("raw", ["Invalid date", "", "null", "2025-13-45"])
async def test_unusable_next_consultation_is_stored_empty(attended, medical_record_service, vet, raw):
    detail = await medical_record_service.create_medical_record(attended.id, vet, {"next_consultation": raw})
    assert detail.record.next_consultation is None


async def test_next_consultation_accepts_timestamps(attended, medical_record_service, vet):
    detail = await medical_record_service.create_medical_record(
        attended.id, vet, {"next_consultation": "2030-02-01T09:30:00Z"}
    )
    assert detail.record.next_consultation == dt.date(2030, 2, 1)


async def test_cancelled_or_missing_appointment(book, appointment_service, medical_record_service, vet, client_caller):
    appointment = await book()
    await appointment_service.cancel_appointment(appointment.id, client_caller)
    with pytest.raises(InvalidStateError):
        await medical_record_service.create_medical_record(appointment.id, vet, {})
    with pytest.raises(NotFoundError):
        await medical_record_service.create_medical_record(9999, vet, {})


async def test_only_veterinarians_write_records(attended, medical_record_service, receptionist):
    with pytest.raises(ForbiddenError):
        await medical_record_service.create_medical_record(attended.id, receptionist, {})


async def test_partial_update_touches_only_supplied_fields(attended, medical_record_service, vet):
    await medical_record_service.create_medical_record(
        attended.id, vet, {"chief_complaint": "vomiting", "history": "two days", "treatment": "fluids"}
    )
    detail = await medical_record_service.update_medical_record(
        attended.id, vet, {"treatment": "", "chief_complaint": "", "status": "finalized"}, {"weight": 12.4}
    )
    record = detail.record
    assert record.history == "two days"
    assert record.treatment is None
    assert record.chief_complaint == "vomiting"
    assert record.status == MedicalRecordStatus.FINALIZED
    assert float(detail.vital_signs.weight) == 12.4

    detail = await medical_record_service.update_medical_record(attended.id, vet, {}, {"heart_rate": 100})
    assert float(detail.vital_signs.weight) == 12.4
    assert detail.vital_signs.heart_rate == 100


async def test_update_rejects_unknown_status(attended, medical_record_service, vet):
    await medical_record_service.create_medical_record(attended.id, vet, {})
    with pytest.raises(InvalidInputError):
        await medical_record_service.update_medical_record(attended.id, vet, {"status": "archived"})


async def test_record_visibility(attended, medical_record_service, vet, other_client, receptionist):
    await medical_record_service.create_medical_record(attended.id, vet, {})
    assert (await medical_record_service.get_medical_record(attended.id, receptionist)).record
    with pytest.raises(ForbiddenError):
        await medical_record_service.get_medical_record(attended.id, other_client)


async def test_history_newest_first_and_owner_only(
    book, appointment_service, medical_record_service, vet, client_caller, other_client
):
    later = (dt.date.today() + dt.timedelta(days=5)).isoformat()
    first = await book()
    second = await book(date=later)
    for appointment in (first, second):
        await appointment_service.update_attention(appointment.id, vet, diagnosis="ok", procedure="exam")
        await medical_record_service.create_medical_record(appointment.id, vet, {})

    history = await medical_record_service.get_pet_medical_history(1, client_caller)
    assert [d.record.appointment_id for d in history] == [second.id, first.id]
    assert await medical_record_service.get_pet_medical_history(1, vet)

    with pytest.raises(ForbiddenError):
        await medical_record_service.get_pet_medical_history(1, other_client)
    with pytest.raises(NotFoundError):
        await medical_record_service.get_pet_medical_history(404, vet)


async def test_http_record_roundtrip(client, bearer, attended, vet):
    url = f"/api/appointments/{attended.id}/medical-record"
    resp = await client.post(
        url,
        json={"diagnosis": "otitis", "next_consultation": "Invalid date", "vital_signs": {"temperature": 38.2}},
        headers=bearer(vet),
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["next_consultation"] is None
    assert data["vital_signs"]["hydration"] == "normal"
    assert data["attachments"] == []

    again = await client.post(url, json={"diagnosis": "other"}, headers=bearer(vet))
    assert again.status_code == 400
    assert again.json()["code"] == "conflict"
    existing = again.json()["data"]
    assert "record" not in existing
    assert existing["id"] == data["id"]
    assert existing["diagnosis"] == "otitis"
    assert set(existing) == set(data)
