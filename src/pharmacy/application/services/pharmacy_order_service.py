from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from src.pharmacy.domain.entities.pharmacy_order import PharmacyOrder, PharmacyOrderStatus
from src.shared.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from src.shared.logging import get_logger
from src.shared.roles import Role, is_staff
from src.shared.security import CallerIdentity

if TYPE_CHECKING:
    from src.unit_of_work import ClinicUnitOfWork

logger = get_logger(__name__)


def parse_order_status(value: Optional[str], *, required: bool = True) -> Optional[PharmacyOrderStatus]:
    if value in (None, ""):
        if required:
            raise InvalidInputError("status is required", details={"field": "status"})
        return None
    try:
        return PharmacyOrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in PharmacyOrderStatus)
        raise InvalidInputError(f"status must be one of: {allowed}", details={"field": "status"})


class PharmacyOrderService:
    def __init__(self, uow: "ClinicUnitOfWork") -> None:
        self._uow = uow

    async def update_status(self, order_id: int, status: Optional[str], notes: Optional[str] = None) -> PharmacyOrder:
        """Re-sending `delivered` keeps the first delivery timestamp."""
        new_status = parse_order_status(status)
        async with self._uow as uow:
            order = await uow.pharmacy_orders.get(order_id)
            if order is None:
                raise NotFoundError("Pharmacy order not found")
            previous = order.status
            order.move_to(new_status, notes)
            order = await uow.pharmacy_orders.update(order)
            await uow.commit()

        logger.info("pharmacy_order.status_changed", order_id=order_id, previous=previous.value, status=new_status.value)
        return order

    async def list_orders(self, status: Optional[str] = None) -> List[PharmacyOrder]:
        wanted = parse_order_status(status, required=False)
        async with self._uow as uow:
            return await uow.pharmacy_orders.list_orders(status=wanted)

    async def get_order(self, order_id: int, caller: CallerIdentity) -> PharmacyOrder:
        async with self._uow as uow:
            order = await uow.pharmacy_orders.get(order_id)
        if order is None:
            raise NotFoundError("Pharmacy order not found")
        if not (is_staff(caller.role) or caller.has_role(Role.VETERINARIAN) or order.client_id == caller.id):
            raise ForbiddenError("You do not have access to this pharmacy order")
        return order

    async def get_client_orders(self, caller: CallerIdentity) -> List[PharmacyOrder]:
        async with self._uow as uow:
            return await uow.pharmacy_orders.list_for_client(caller.id)
