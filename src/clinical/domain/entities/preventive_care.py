"""
Vaccinations and dewormings: independently addressable per pet, optionally
linked to the medical record of the visit where they were applied.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class ParasiteType(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    BOTH = "both"


class AdministrationRoute(str, Enum):
    ORAL = "oral"
    TOPICAL = "topical"
    INJECTABLE = "injectable"


@dataclass(slots=True)
class Vaccination:
    pet_id: int
    vaccine_name: str
    application_date: date
    veterinarian_id: int
    record_id: Optional[int] = None
    next_dose_date: Optional[date] = None
    batch_number: Optional[str] = None
    manufacturer: Optional[str] = None
    observations: Optional[str] = None
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class Deworming:
    pet_id: int
    product: str
    application_date: date
    veterinarian_id: int
    parasite_type: ParasiteType = ParasiteType.INTERNAL
    record_id: Optional[int] = None
    next_dose_date: Optional[date] = None
    weight_kg: Optional[Decimal] = None
    dose: Optional[str] = None
    route: Optional[AdministrationRoute] = None
    observations: Optional[str] = None
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
