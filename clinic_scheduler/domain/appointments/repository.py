"""Appointment repository - Database operations for appointments"""

import datetime as dt
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import ACTIVE_STATUSES, Appointment, AppointmentStatus, User


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get an appointment with patient and provider loaded"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.patient), joinedload(Appointment.provider))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def list_appointments(
        db: Session,
        patient_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> list[Appointment]:
        """List appointments matching the given filters, newest date first"""
        query = db.query(Appointment).options(
            joinedload(Appointment.patient), joinedload(Appointment.provider)
        )

        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if provider_id is not None:
            query = query.filter(Appointment.provider_id == provider_id)
        if status is not None:
            query = query.filter(Appointment.status == status)

        return query.order_by(Appointment.date.desc(), Appointment.time, Appointment.id).all()

    @staticmethod
    def find_active_in_slot(
        db: Session,
        provider_id: int,
        date: dt.date,
        time: str,
        exclude_appointment_id: Optional[int] = None,
    ) -> list[Appointment]:
        """Active (booked/blocked) appointments occupying a provider's slot"""
        query = db.query(Appointment).filter(
            Appointment.provider_id == provider_id,
            Appointment.date == date,
            Appointment.time == time,
            Appointment.status.in_(ACTIVE_STATUSES),
        )

        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return query.all()

    @staticmethod
    def create_appointment(db: Session, **appointment_data) -> Appointment:
        """Create a new appointment"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Update an appointment with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(appointment, key):
                setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        """Delete an appointment"""
        db.delete(appointment)
        db.commit()

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.get(User, user_id)
