"""
Prescription & Pharmacy API Schemas
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.pharmacy.domain.entities.pharmacy_order import PharmacyOrderStatus


class MedicationLine(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    dosage: str = Field(..., min_length=1, max_length=200)
    quantity: int = Field(..., ge=1)
    unit: Optional[str] = Field(None, max_length=50, description="Defaults to 'unit'")
    duration: Optional[str] = Field(None, max_length=100)
    instructions: Optional[str] = None


class PrescriptionCreateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    observations: Optional[str] = None
    medications: List[MedicationLine] = Field(default_factory=list)


class OrderStatusRequest(BaseModel):
    """Status is validated by the service so an unknown value reports the allowed list."""
    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    notes: Optional[str] = None


class MedicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    prescription_id: Optional[int] = None
    record_id: Optional[int] = None
    name: str
    dosage: str
    quantity: int
    unit: str
    duration: Optional[str] = None
    instructions: Optional[str] = None


class PharmacyOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    prescription_id: int
    client_id: int
    status: PharmacyOrderStatus
    medications: List[Dict[str, Any]]
    total_items: int
    notes: Optional[str] = None
    delivered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PrescriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appointment_id: int
    veterinarian_id: int
    client_id: int
    pet_id: int
    observations: Optional[str] = None
    created_at: Optional[datetime] = None
    medications: List[MedicationRead] = Field(default_factory=list)
    pharmacy_order: Optional[PharmacyOrderRead] = None
