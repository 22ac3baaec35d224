"""Appointment service - Booking rules, conflict detection and status transitions"""

import datetime as dt
import logging
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ...models import (
    ACTIVE_STATUSES,
    STATUS_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    Role,
    User,
)
from ...shared.validators import validate_time_slot
from .access import can_view, scope_filters
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE_MESSAGE = "This time slot is unavailable. Please choose another."


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, today: Callable[[], dt.date] = dt.date.today):
        self.db = db
        self.repo = AppointmentRepository()
        self.today = today

    # ------------------------------------------------------------------
    # Conflict detection
    # ------------------------------------------------------------------

    def has_conflict(
        self,
        provider_id: int,
        date: dt.date,
        time: str,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        """True when an active appointment already occupies the provider's slot"""
        occupants = self.repo.find_active_in_slot(
            self.db, provider_id, date, time, exclude_appointment_id
        )
        return len(occupants) > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_appointments(
        self,
        user: User,
        patient_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> list[Appointment]:
        """List appointments visible to the user"""
        filters = scope_filters(user, patient_id, provider_id, status)
        return self.repo.list_appointments(
            self.db, filters.patient_id, filters.provider_id, filters.status
        )

    def get_appointment(self, appointment_id: int, user: Optional[User] = None) -> Appointment:
        """Get a specific appointment, checking ownership when a user is given"""
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if user is not None and not can_view(user, appointment):
            logger.warning(f"⚠️ User {user.id} denied access to appointment {appointment_id}")
            raise ForbiddenError("Access denied")
        return appointment

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_appointment(
        self,
        patient_id: Optional[int],
        provider_id: Optional[int],
        date: Optional[dt.date],
        time: Optional[str],
        reason: Optional[str],
        status: Optional[AppointmentStatus] = None,
    ) -> Appointment:
        """Book an appointment, or block a slot when status is ``blocked``"""
        required = (patient_id, provider_id, date, _present(time), _present(reason))
        if not all(required):
            raise ValidationError("Missing required fields")

        if date < self.today():
            raise NotFoundError("Cannot book appointments in the past")

        status = status or AppointmentStatus.BOOKED
        if status not in ACTIVE_STATUSES:
            raise ValidationError(
                f"New appointments must be '{AppointmentStatus.BOOKED.value}' "
                f"or '{AppointmentStatus.BLOCKED.value}'"
            )

        patient = self.repo.get_user(self.db, patient_id)
        if status == AppointmentStatus.BLOCKED:
            # Providers block time by booking themselves
            if not patient:
                raise NotFoundError("Patient not found")
        elif not patient or patient.role != Role.PATIENT:
            raise NotFoundError("Patient not found")

        provider = self.repo.get_user(self.db, provider_id)
        if not provider or provider.role != Role.PROVIDER:
            raise NotFoundError("Provider not found")

        time = _normalize_slot(time)
        if self.has_conflict(provider_id, date, time):
            logger.warning(
                f"🚫 Slot conflict for provider {provider_id} on {date.isoformat()} at {time}"
            )
            raise ConflictError(SLOT_UNAVAILABLE_MESSAGE)

        try:
            appointment = self.repo.create_appointment(
                self.db,
                patient_id=patient_id,
                provider_id=provider_id,
                date=date,
                time=time,
                reason=reason.strip(),
                status=status,
            )
        except IntegrityError as e:
            # Lost a race with a concurrent booking for the same slot
            self.db.rollback()
            logger.warning(f"🚫 Slot taken concurrently for provider {provider_id}: {e.orig}")
            raise ConflictError(SLOT_UNAVAILABLE_MESSAGE) from e

        logger.info(
            f"✅ Appointment {appointment.id} {status.value} for provider {provider_id} "
            f"on {date.isoformat()} at {time}"
        )
        return appointment

    def update_appointment(
        self,
        appointment_id: int,
        date: Optional[dt.date] = None,
        time: Optional[str] = None,
        status: Optional[AppointmentStatus] = None,
        reason: Optional[str] = None,
        user: Optional[User] = None,
    ) -> Appointment:
        """Reschedule an appointment and/or move it along its status lifecycle"""
        appointment = self.get_appointment(appointment_id, user)
        current_status = appointment.status

        if time is not None:
            time = _normalize_slot(time)
            if not time:
                raise ValidationError("Time cannot be empty")
        if reason is not None:
            reason = reason.strip()
            if not reason:
                raise ValidationError("Reason cannot be empty")

        status_changed = status is not None and status != current_status
        rescheduling = (date is not None and date != appointment.date) or (
            time is not None and time != appointment.time
        )
        reason_changed = reason is not None and reason != appointment.reason

        if not STATUS_TRANSITIONS[current_status] and (
            status_changed or rescheduling or reason_changed
        ):
            raise ValidationError(f"Cannot modify a {current_status.value} appointment")

        if status_changed and status not in STATUS_TRANSITIONS[current_status]:
            raise ValidationError(
                f"Cannot change status from {current_status.value} to {status.value}"
            )

        new_status = status if status_changed else current_status

        if rescheduling:
            new_date = date if date is not None else appointment.date
            new_time = time if time is not None else appointment.time

            if new_date < self.today():
                raise ValidationError("Cannot move appointments into the past")

            if new_status in ACTIVE_STATUSES and self.has_conflict(
                appointment.provider_id, new_date, new_time, exclude_appointment_id=appointment.id
            ):
                logger.warning(
                    f"🚫 Reschedule of appointment {appointment.id} to {new_date.isoformat()} "
                    f"{new_time} conflicts"
                )
                raise ConflictError(SLOT_UNAVAILABLE_MESSAGE)

        updates = {
            "date": date,
            "time": time,
            "status": new_status if status_changed else None,
            "reason": reason,
        }

        try:
            appointment = self.repo.update_appointment(self.db, appointment, **updates)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"🚫 Slot taken concurrently for appointment {appointment_id}: {e.orig}")
            raise ConflictError(SLOT_UNAVAILABLE_MESSAGE) from e

        if status_changed:
            logger.info(
                f"🔄 Appointment {appointment.id} status {current_status.value} -> {new_status.value}"
            )
        if rescheduling:
            logger.info(
                f"📅 Appointment {appointment.id} moved to {appointment.date.isoformat()} "
                f"at {appointment.time}"
            )
        return appointment

    def delete_appointment(self, appointment_id: int, user: Optional[User] = None) -> dict:
        """Delete an appointment"""
        appointment = self.get_appointment(appointment_id, user)
        self.repo.delete_appointment(self.db, appointment)
        logger.info(f"🗑️ Appointment {appointment_id} deleted")
        return {"success": True, "message": "Deleted"}


def _present(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def _normalize_slot(time: str) -> str:
    try:
        return validate_time_slot(time)
    except ValueError as e:
        raise ValidationError(str(e)) from e
