"""
Appointment API Schemas
"""
from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.appointments.domain.entities.appointment import AppointmentStatus


class AppointmentCreateRequest(BaseModel):
    """Missing fields are reported by the service with the full list of required names."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    date: Optional[str] = Field(None, description="YYYY-MM-DD, today or later")
    time: Optional[str] = Field(None, description="HH:MM or HH:MM:SS")
    reason: Optional[str] = Field(None, max_length=2000)
    pet_id: Optional[int] = Field(None, gt=0)
    veterinarian_id: Optional[int] = Field(None, gt=0)


class AttentionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    procedure: Optional[str] = None
    diagnosis: Optional[str] = None
    indications: Optional[str] = None


class AppointmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: dt.date
    time: dt.time
    reason: str
    pet_id: int
    client_id: int
    veterinarian_id: int
    status: AppointmentStatus
    procedure: Optional[str] = None
    diagnosis: Optional[str] = None
    indications: Optional[str] = None
    is_active: bool
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class ScheduleEntryRead(AppointmentRead):
    pet_name: str
    client_name: str


class ClientAppointmentRead(AppointmentRead):
    pet_name: str
    veterinarian_name: str
