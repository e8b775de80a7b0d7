# src/pharmacy/api/routes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.dependencies import get_caller, get_pharmacy_order_service, get_prescription_service, require_roles
from src.pharmacy.api.schemas import (
    MedicationRead,
    OrderStatusRequest,
    PharmacyOrderRead,
    PrescriptionCreateRequest,
    PrescriptionRead,
)
from src.pharmacy.application.services.pharmacy_order_service import PharmacyOrderService
from src.pharmacy.application.services.prescription_service import PrescriptionDetail, PrescriptionService
from src.shared.http.responses import created, ok
from src.shared.roles import Role
from src.shared.security import CallerIdentity

router = APIRouter(prefix="/api/appointments", tags=["pharmacy"])

pharmacy_staff = require_roles(Role.ADMIN, Role.RECEPTIONIST, Role.VETERINARIAN)


def _prescription(detail: PrescriptionDetail) -> dict:
    p = detail.prescription
    return PrescriptionRead(
        id=p.id,
        appointment_id=p.appointment_id,
        veterinarian_id=p.veterinarian_id,
        client_id=p.client_id,
        pet_id=p.pet_id,
        observations=p.observations,
        created_at=p.created_at,
        medications=[MedicationRead.model_validate(m) for m in detail.medications],
        pharmacy_order=PharmacyOrderRead.model_validate(detail.pharmacy_order) if detail.pharmacy_order else None,
    ).model_dump()


def _order(order) -> dict:
    return PharmacyOrderRead.model_validate(order).model_dump()


# ---------- prescriptions ----------

@router.get("/prescriptions/mine")
async def my_prescriptions(
    caller: CallerIdentity = Depends(get_caller),
    svc: PrescriptionService = Depends(get_prescription_service),
):
    return ok([_prescription(d) for d in await svc.get_client_prescriptions(caller)])


@router.post("/{appointment_id}/prescription")
async def create_prescription(
    appointment_id: int,
    payload: PrescriptionCreateRequest,
    caller: CallerIdentity = Depends(get_caller),
    svc: PrescriptionService = Depends(get_prescription_service),
):
    detail = await svc.create_prescription(
        appointment_id,
        caller,
        medications=[m.model_dump() for m in payload.medications],
        observations=payload.observations,
    )
    return created(_prescription(detail), "Prescription created and sent to the pharmacy")


@router.get("/{appointment_id}/prescription")
async def get_prescription(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: PrescriptionService = Depends(get_prescription_service),
):
    return ok(_prescription(await svc.get_prescription(appointment_id, caller)))


# ---------- pharmacy orders ----------

@router.get("/pharmacy/orders")
async def list_pharmacy_orders(
    status: Optional[str] = Query(None),
    _: CallerIdentity = Depends(pharmacy_staff),
    svc: PharmacyOrderService = Depends(get_pharmacy_order_service),
):
    return ok([_order(o) for o in await svc.list_orders(status)])


@router.get("/pharmacy/orders/mine")
async def my_pharmacy_orders(
    caller: CallerIdentity = Depends(get_caller),
    svc: PharmacyOrderService = Depends(get_pharmacy_order_service),
):
    return ok([_order(o) for o in await svc.get_client_orders(caller)])


@router.get("/pharmacy/orders/{order_id}")
async def get_pharmacy_order(
    order_id: int,
    caller: CallerIdentity = Depends(get_caller),
    svc: PharmacyOrderService = Depends(get_pharmacy_order_service),
):
    return ok(_order(await svc.get_order(order_id, caller)))


@router.put("/pharmacy/orders/{order_id}/status")
async def update_pharmacy_order_status(
    order_id: int,
    payload: OrderStatusRequest,
    _: CallerIdentity = Depends(pharmacy_staff),
    svc: PharmacyOrderService = Depends(get_pharmacy_order_service),
):
    order = await svc.update_status(order_id, payload.status, payload.notes)
    return ok(_order(order), "Pharmacy order updated")
