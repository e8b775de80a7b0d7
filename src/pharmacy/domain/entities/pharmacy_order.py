from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from src.pharmacy.domain.entities.prescription import Medication


class PharmacyOrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class PharmacyOrder:
    """
    Fulfillment ticket derived from a prescription.

    `medications` is a snapshot of (name, quantity, unit) taken at creation
    and never rewritten; `total_items` is the sum of its quantities. Only
    status, notes and delivered_at change afterwards.
    """
    prescription_id: int
    client_id: int
    medications: List[Dict[str, Any]] = field(default_factory=list)
    total_items: int = 0
    status: PharmacyOrderStatus = PharmacyOrderStatus.PENDING
    notes: Optional[str] = None
    delivered_at: Optional[datetime] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def derive(
        cls,
        *,
        prescription_id: int,
        client_id: int,
        medications: Sequence[Medication],
        notes: Optional[str] = None,
    ) -> "PharmacyOrder":
        snapshot = [m.snapshot() for m in medications]
        return cls(
            prescription_id=prescription_id,
            client_id=client_id,
            medications=snapshot,
            total_items=sum(line["quantity"] for line in snapshot),
            notes=notes,
        )

    def move_to(self, status: PharmacyOrderStatus, notes: Optional[str] = None) -> None:
        self.status = status
        if notes is not None:
            self.notes = notes
        if status == PharmacyOrderStatus.DELIVERED and self.delivered_at is None:
            self.delivered_at = datetime.now(timezone.utc)
