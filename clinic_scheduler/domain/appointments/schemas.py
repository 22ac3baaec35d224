"""Appointment domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Appointment, AppointmentStatus
from ...shared.validators import validate_time_slot


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment or blocking a slot"""

    patientId: Optional[int] = None
    providerId: Optional[int] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None
    reason: Optional[str] = None
    status: Optional[AppointmentStatus] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_slot(v)


class AppointmentUpdate(BaseModel):
    """Schema for rescheduling or changing the status of an appointment"""

    date: Optional[dt.date] = None
    time: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    reason: Optional[str] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_slot(v)


class AppointmentResponse(BaseModel):
    """Appointment joined with patient and provider display names"""

    id: int
    patientId: int
    patientName: Optional[str] = None
    providerId: int
    providerName: Optional[str] = None
    date: dt.date
    time: str
    status: AppointmentStatus
    reason: str
    createdAt: Optional[dt.datetime] = None
    updatedAt: Optional[dt.datetime] = None

    @classmethod
    def from_model(cls, appointment: Appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            patientId=appointment.patient_id,
            patientName=appointment.patient.name if appointment.patient else None,
            providerId=appointment.provider_id,
            providerName=appointment.provider.name if appointment.provider else None,
            date=appointment.date,
            time=appointment.time,
            status=appointment.status,
            reason=appointment.reason,
            createdAt=appointment.created_at,
            updatedAt=appointment.updated_at,
        )


class AppointmentEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: AppointmentResponse


class AppointmentListEnvelope(BaseModel):
    success: bool = True
    count: int
    data: list[AppointmentResponse]
