# src/appointments/api/routes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.appointments.api.schemas import (
    AppointmentCreateRequest,
    AppointmentRead,
    AttentionRequest,
    ClientAppointmentRead,
    ScheduleEntryRead,
)
from src.appointments.application.services.appointment_service import AppointmentService
from src.dependencies import get_appointment_service, get_caller
from src.shared.http.responses import created, ok
from src.shared.security import CallerIdentity

router = APIRouter(prefix="/api/appointments", tags=["appointments"])


def _read(appointment) -> dict:
    return AppointmentRead.model_validate(appointment).model_dump()


@router.post("")
async def create_appointment(
    payload: AppointmentCreateRequest,
    caller: CallerIdentity = Depends(get_caller),
    svc: AppointmentService = Depends(get_appointment_service),
):
    appointment = await svc.create_appointment(
        caller,
        date=payload.date,
        time=payload.time,
        reason=payload.reason,
        pet_id=payload.pet_id,
        veterinarian_id=payload.veterinarian_id,
    )
    return created(_read(appointment), "Appointment created")


@router.get("")
async def list_my_appointments(
    status: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    caller: CallerIdentity = Depends(get_caller),
    svc: AppointmentService = Depends(get_appointment_service),
):
    entries = await svc.get_client_appointments(caller, status=status, include_inactive=include_inactive)
    return ok([
        ClientAppointmentRead(
            **_read(e.appointment), pet_name=e.pet_name, veterinarian_name=e.veterinarian_name
        ).model_dump()
        for e in entries
    ])


@router.get("/veterinarian/schedule")
async def veterinarian_schedule(
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    caller: CallerIdentity = Depends(get_caller),
    svc: AppointmentService = Depends(get_appointment_service),
):
    entries = await svc.get_veterinarian_schedule(caller, date)
    return ok([
        ScheduleEntryRead(**_read(e.appointment), pet_name=e.pet_name, client_name=e.client_name).model_dump()
        for e in entries
    ])


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: AppointmentService = Depends(get_appointment_service),
):
    return ok(_read(await svc.get_appointment(appointment_id, caller)))


@router.put("/{appointment_id}/attention")
async def record_attention(
    appointment_id: int,
    payload: AttentionRequest,
    caller: CallerIdentity = Depends(get_caller),
    svc: AppointmentService = Depends(get_appointment_service),
):
    appointment = await svc.update_attention(
        appointment_id,
        caller,
        procedure=payload.procedure,
        diagnosis=payload.diagnosis,
        indications=payload.indications,
    )
    return ok(_read(appointment), "Attention recorded")


@router.patch("/{appointment_id}/confirm")
async def confirm_appointment(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: AppointmentService = Depends(get_appointment_service),
):
    return ok(_read(await svc.confirm_appointment(appointment_id, caller)), "Appointment confirmed")


@router.patch("/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: AppointmentService = Depends(get_appointment_service),
):
    return ok(_read(await svc.cancel_appointment(appointment_id, caller)), "Appointment cancelled")


@router.delete("/{appointment_id}")
async def deactivate_appointment(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: AppointmentService = Depends(get_appointment_service),
):
    await svc.deactivate_appointment(appointment_id, caller)
    return ok(message="Appointment deactivated")
