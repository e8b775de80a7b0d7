from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional

from src.shared.exceptions import InvalidInputError

DEFAULT_UNIT = "unit"


@dataclass(slots=True)
class Medication:
    name: str
    dosage: str
    quantity: int
    prescription_id: Optional[int] = None
    record_id: Optional[int] = None
    unit: str = DEFAULT_UNIT
    duration: Optional[str] = None
    instructions: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_line(cls, line: Mapping[str, Any], index: int = 0) -> "Medication":
        name = str(line.get("name") or "").strip()
        dosage = str(line.get("dosage") or "").strip()
        if not name or not dosage:
            raise InvalidInputError("Each medication needs a name and a dosage", details={"line": index})
        if len(name) > 200:
            raise InvalidInputError("Medication name is limited to 200 characters", details={"line": index})
        quantity = line.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidInputError("Medication quantity must be an integer of at least 1", details={"line": index})
        return cls(
            name=name,
            dosage=dosage,
            quantity=quantity,
            unit=(str(line.get("unit") or "").strip() or DEFAULT_UNIT),
            duration=(str(line.get("duration") or "").strip() or None),
            instructions=(str(line.get("instructions") or "").strip() or None),
        )

    def snapshot(self) -> dict:
        return {"name": self.name, "quantity": self.quantity, "unit": self.unit}


@dataclass(slots=True)
class Prescription:
    """Issued once per attended appointment; pet and client are copied from it."""
    appointment_id: int
    veterinarian_id: int
    client_id: int
    pet_id: int
    observations: Optional[str] = None
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    medications: List[Medication] = field(default_factory=list)
