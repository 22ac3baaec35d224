"""Appointment router - FastAPI endpoints for booking and schedule management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import AppointmentStatus, User
from ...schemas import MessageResponse
from .schemas import (
    AppointmentCreate,
    AppointmentEnvelope,
    AppointmentListEnvelope,
    AppointmentResponse,
    AppointmentUpdate,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@router.get("", response_model=AppointmentListEnvelope)
async def list_appointments(
    patient_id: Optional[int] = Query(None, alias="patientId"),
    provider_id: Optional[int] = Query(None, alias="providerId"),
    status: Optional[AppointmentStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """List appointments; patients and providers only ever see their own"""
    appointments = service.list_appointments(current_user, patient_id, provider_id, status)
    data = [AppointmentResponse.from_model(a) for a in appointments]
    return AppointmentListEnvelope(count=len(data), data=data)


@router.get("/{appointment_id}", response_model=AppointmentEnvelope)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get a single appointment the caller is allowed to see"""
    appointment = service.get_appointment(appointment_id, current_user)
    return AppointmentEnvelope(data=AppointmentResponse.from_model(appointment))


@router.post("", response_model=AppointmentEnvelope, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment, or block a slot with status=blocked"""
    logger.info(f"📥 Appointment request from user {current_user.id}")
    appointment = service.create_appointment(
        patient_id=data.patientId,
        provider_id=data.providerId,
        date=data.date,
        time=data.time,
        reason=data.reason,
        status=data.status,
    )
    message = (
        "Time slot blocked successfully"
        if appointment.status == AppointmentStatus.BLOCKED
        else "Appointment booked successfully"
    )
    return AppointmentEnvelope(message=message, data=AppointmentResponse.from_model(appointment))


@router.patch("/{appointment_id}", response_model=AppointmentEnvelope)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Reschedule or change the status of an appointment the caller owns"""
    appointment = service.update_appointment(
        appointment_id,
        date=data.date,
        time=data.time,
        status=data.status,
        reason=data.reason,
        user=current_user,
    )
    return AppointmentEnvelope(data=AppointmentResponse.from_model(appointment))


@router.delete("/{appointment_id}", response_model=MessageResponse)
async def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Delete an appointment the caller owns"""
    return service.delete_appointment(appointment_id, current_user)
