"""Role-based scoping of appointment reads"""

from dataclasses import dataclass
from typing import Optional

from ...models import Appointment, AppointmentStatus, Role, User


@dataclass(frozen=True)
class AppointmentFilters:
    patient_id: Optional[int] = None
    provider_id: Optional[int] = None
    status: Optional[AppointmentStatus] = None


def scope_filters(
    user: User,
    patient_id: Optional[int] = None,
    provider_id: Optional[int] = None,
    status: Optional[AppointmentStatus] = None,
) -> AppointmentFilters:
    """
    Narrow a list query to what the caller may see.

    Patients are pinned to their own appointments and providers to their
    own schedule, whatever filters they asked for. Admins' filters pass
    through unchanged. The status filter always applies.
    """
    role = user.role
    if role == Role.PATIENT:
        return AppointmentFilters(patient_id=user.id, status=status)
    if role == Role.PROVIDER:
        return AppointmentFilters(provider_id=user.id, status=status)
    if role == Role.ADMIN:
        return AppointmentFilters(patient_id=patient_id, provider_id=provider_id, status=status)
    raise AssertionError(f"Unhandled role: {role!r}")


def can_view(user: User, appointment: Appointment) -> bool:
    role = user.role
    if role == Role.PATIENT:
        return appointment.patient_id == user.id
    if role == Role.PROVIDER:
        return appointment.provider_id == user.id
    if role == Role.ADMIN:
        return True
    raise AssertionError(f"Unhandled role: {role!r}")
