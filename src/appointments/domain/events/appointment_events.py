from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, time
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class AppointmentCreated:
    """Denormalized booking snapshot for the notification consumers."""
    name = "appointment.created"

    appointment_id: int
    date: date
    time: time
    reason: str
    pet_id: int
    pet_name: Optional[str]
    client_id: int
    client_name: Optional[str]
    client_email: str
    veterinarian_id: int
    veterinarian_name: Optional[str]
    veterinarian_email: str

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["date"] = self.date.isoformat()
        payload["time"] = self.time.strftime("%H:%M:%S")
        return payload
