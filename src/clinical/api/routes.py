# src/clinical/api/routes.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse

from src.clinical.api.schemas import (
    AttachmentRead,
    DewormingPayload,
    DewormingRead,
    MedicalRecordFields,
    MedicalRecordRead,
    MedicalRecordUpdateRequest,
    VaccinationPayload,
    VaccinationRead,
    VitalSignsRead,
)
from src.clinical.application.services.attachment_service import AttachmentService, UploadedFile
from src.clinical.application.services.medical_record_service import MedicalRecordService
from src.clinical.application.services.preventive_care_service import DewormingService, VaccinationService
from src.clinical.domain.entities.medical_record import MedicalRecordDetail
from src.dependencies import (
    get_attachment_service,
    get_caller,
    get_deworming_service,
    get_medical_record_service,
    get_vaccination_service,
)
from src.pharmacy.api.schemas import MedicationRead
from src.shared.exceptions import ConflictError
from src.shared.http.responses import created, ok
from src.shared.security import CallerIdentity

router = APIRouter(prefix="/api/appointments", tags=["clinical"])


def _record(detail: MedicalRecordDetail) -> dict:
    body = MedicalRecordRead.model_validate(detail.record).model_dump()
    body["vital_signs"] = VitalSignsRead.model_validate(detail.vital_signs).model_dump() if detail.vital_signs else None
    body["attachments"] = [AttachmentRead.model_validate(a).model_dump() for a in detail.attachments]
    body["medications"] = [MedicationRead.model_validate(m).model_dump() for m in detail.medications]
    return body


# ---------- medical records ----------

@router.get("/patients/{pet_id}/medical-history")
async def pet_medical_history(
    pet_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: MedicalRecordService = Depends(get_medical_record_service),
):
    return ok([_record(d) for d in await svc.get_pet_medical_history(pet_id, caller)])


@router.post("/{appointment_id}/medical-record")
async def create_medical_record(
    appointment_id: int,
    payload: MedicalRecordFields,
    caller: CallerIdentity = Depends(get_caller),
    svc: MedicalRecordService = Depends(get_medical_record_service),
):
    try:
        detail = await svc.create_medical_record(
            appointment_id, caller, payload.clinical_fields(), payload.vital_values()
        )
    except ConflictError as e:
        # the existing record goes out in the same shape as a successful read
        if isinstance(e.details, MedicalRecordDetail):
            e.details = _record(e.details)
        raise
    return created(_record(detail), "Medical record created")


@router.get("/{appointment_id}/medical-record")
async def get_medical_record(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: MedicalRecordService = Depends(get_medical_record_service),
):
    return ok(_record(await svc.get_medical_record(appointment_id, caller)))


@router.put("/{appointment_id}/medical-record")
async def update_medical_record(
    appointment_id: int,
    payload: MedicalRecordUpdateRequest,
    caller: CallerIdentity = Depends(get_caller),
    svc: MedicalRecordService = Depends(get_medical_record_service),
):
    detail = await svc.update_medical_record(
        appointment_id, caller, payload.clinical_fields(), payload.vital_values()
    )
    return ok(_record(detail), "Medical record updated")


# ---------- attachments ----------

@router.post("/medical-records/{record_id}/attachments")
async def upload_attachments(
    record_id: int,
    files: Optional[List[UploadFile]] = File(None),
    categories: Optional[List[str]] = Form(None),
    descriptions: Optional[List[str]] = Form(None),
    caller: CallerIdentity = Depends(get_caller),
    svc: AttachmentService = Depends(get_attachment_service),
):
    uploads = [
        UploadedFile(
            filename=f.filename or "file",
            content_type=f.content_type or "application/octet-stream",
            content=await f.read(),
        )
        for f in files or []
    ]
    attachments = await svc.upload(record_id, caller, uploads, categories, descriptions)
    return created(
        [AttachmentRead.model_validate(a).model_dump() for a in attachments],
        f"{len(attachments)} file(s) uploaded",
    )


@router.get("/medical-records/{record_id}/attachments")
async def list_attachments(
    record_id: int,
    _: CallerIdentity = Depends(get_caller),
    svc: AttachmentService = Depends(get_attachment_service),
):
    return ok([AttachmentRead.model_validate(a).model_dump() for a in await svc.list_for_record(record_id)])


@router.get("/medical-records/attachments/{attachment_id}/download")
async def download_attachment(
    attachment_id: int,
    _: CallerIdentity = Depends(get_caller),
    svc: AttachmentService = Depends(get_attachment_service),
):
    attachment = await svc.get_download(attachment_id)
    return FileResponse(attachment.file_url, media_type=attachment.mime_type, filename=attachment.file_name)


@router.delete("/medical-records/attachments/{attachment_id}")
async def delete_attachment(
    attachment_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: AttachmentService = Depends(get_attachment_service),
):
    await svc.delete(attachment_id, caller)
    return ok(message="Attachment deleted")


# ---------- vaccinations ----------

def _vaccination(v) -> dict:
    return VaccinationRead.model_validate(v).model_dump()


@router.get("/vaccinations/upcoming")
async def upcoming_vaccinations(
    days: Optional[int] = Query(None, ge=0),
    _: CallerIdentity = Depends(get_caller),
    svc: VaccinationService = Depends(get_vaccination_service),
):
    return ok([_vaccination(v) for v in await svc.upcoming(days)])


@router.get("/patients/{pet_id}/vaccinations")
async def list_vaccinations(
    pet_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: VaccinationService = Depends(get_vaccination_service),
):
    return ok([_vaccination(v) for v in await svc.list_for_pet(pet_id, caller)])


@router.post("/patients/{pet_id}/vaccinations")
async def create_vaccination(
    pet_id: int,
    payload: VaccinationPayload,
    caller: CallerIdentity = Depends(get_caller),
    svc: VaccinationService = Depends(get_vaccination_service),
):
    entry = await svc.create(pet_id, caller, payload.model_dump(exclude_unset=True))
    return created(_vaccination(entry), "Vaccination registered")


@router.put("/vaccinations/{vaccination_id}")
async def update_vaccination(
    vaccination_id: int,
    payload: VaccinationPayload,
    caller: CallerIdentity = Depends(get_caller),
    svc: VaccinationService = Depends(get_vaccination_service),
):
    entry = await svc.update(vaccination_id, caller, payload.model_dump(exclude_unset=True))
    return ok(_vaccination(entry), "Vaccination updated")


@router.delete("/vaccinations/{vaccination_id}")
async def delete_vaccination(
    vaccination_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: VaccinationService = Depends(get_vaccination_service),
):
    await svc.delete(vaccination_id, caller)
    return ok(message="Vaccination deleted")


# ---------- dewormings ----------

def _deworming(d) -> dict:
    return DewormingRead.model_validate(d).model_dump()


@router.get("/dewormings/upcoming")
async def upcoming_dewormings(
    days: Optional[int] = Query(None, ge=0),
    _: CallerIdentity = Depends(get_caller),
    svc: DewormingService = Depends(get_deworming_service),
):
    return ok([_deworming(d) for d in await svc.upcoming(days)])


@router.get("/patients/{pet_id}/dewormings")
async def list_dewormings(
    pet_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: DewormingService = Depends(get_deworming_service),
):
    return ok([_deworming(d) for d in await svc.list_for_pet(pet_id, caller)])


@router.post("/patients/{pet_id}/dewormings")
async def create_deworming(
    pet_id: int,
    payload: DewormingPayload,
    caller: CallerIdentity = Depends(get_caller),
    svc: DewormingService = Depends(get_deworming_service),
):
    entry = await svc.create(pet_id, caller, payload.model_dump(exclude_unset=True))
    return created(_deworming(entry), "Deworming registered")


@router.put("/dewormings/{deworming_id}")
async def update_deworming(
    deworming_id: int,
    payload: DewormingPayload,
    caller: CallerIdentity = Depends(get_caller),
    svc: DewormingService = Depends(get_deworming_service),
):
    entry = await svc.update(deworming_id, caller, payload.model_dump(exclude_unset=True))
    return ok(_deworming(entry), "Deworming updated")


@router.delete("/dewormings/{deworming_id}")
async def delete_deworming(
    deworming_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: DewormingService = Depends(get_deworming_service),
):
    await svc.delete(deworming_id, caller)
    return ok(message="Deworming deleted")
