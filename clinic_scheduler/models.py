import enum

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Role(str, enum.Enum):
    PATIENT = "patient"
    PROVIDER = "provider"
    ADMIN = "admin"


# Roles accepted by the public registration endpoint; admins are seeded
SELF_REGISTERABLE_ROLES = (Role.PATIENT, Role.PROVIDER)


class AppointmentStatus(str, enum.Enum):
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    BLOCKED = "blocked"


# Statuses that occupy a provider's slot
ACTIVE_STATUSES = (AppointmentStatus.BOOKED, AppointmentStatus.BLOCKED)

# booked -> completed/cancelled, blocked -> cancelled (unblock); the rest are terminal
STATUS_TRANSITIONS = {
    AppointmentStatus.BOOKED: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.BLOCKED: {AppointmentStatus.CANCELLED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


_ACTIVE_SLOT_CLAUSE = text("status IN ('booked', 'blocked')")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(
        Enum(Role, name="user_role", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=Role.PATIENT,
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    time = Column(String(20), nullable=False)  # Slot label, e.g. "10:00" or "2:00 PM"
    status = Column(
        Enum(
            AppointmentStatus,
            name="appointment_status",
            native_enum=False,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=AppointmentStatus.BOOKED,
        index=True,
    )
    reason = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("User", foreign_keys=[patient_id])
    provider = relationship("User", foreign_keys=[provider_id])

    # At most one active appointment per provider slot, enforced by the database
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "provider_id",
            "date",
            "time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_CLAUSE,
            sqlite_where=_ACTIVE_SLOT_CLAUSE,
        ),
    )
