import pytest

from clinic_scheduler.domain.appointments.access import AppointmentFilters, can_view, scope_filters
from clinic_scheduler.models import Appointment, AppointmentStatus, Role, User


def make_user(user_id: int, role: Role) -> User:
    return User(id=user_id, email=f"user{user_id}@example.com", name="Someone", role=role)


class TestScopeFilters:
    def test_patient_is_pinned_to_self(self) -> None:
        patient = make_user(1, Role.PATIENT)

        filters = scope_filters(patient, patient_id=2, provider_id=3, status=AppointmentStatus.BOOKED)

        assert filters == AppointmentFilters(patient_id=1, status=AppointmentStatus.BOOKED)

    def test_provider_is_pinned_to_own_schedule(self) -> None:
        provider = make_user(5, Role.PROVIDER)

        filters = scope_filters(provider, patient_id=2, provider_id=6)

        assert filters == AppointmentFilters(provider_id=5)

    def test_admin_filters_pass_through(self) -> None:
        admin = make_user(9, Role.ADMIN)

        filters = scope_filters(admin, patient_id=2, provider_id=6, status=AppointmentStatus.BLOCKED)

        assert filters == AppointmentFilters(
            patient_id=2, provider_id=6, status=AppointmentStatus.BLOCKED
        )

    def test_unknown_role_is_a_programming_error(self) -> None:
        with pytest.raises(AssertionError):
            scope_filters(make_user(1, "receptionist"))


class TestCanView:
    @pytest.mark.parametrize(
        "user, expected",
        [
            (make_user(1, Role.PATIENT), True),
            (make_user(2, Role.PATIENT), False),
            (make_user(5, Role.PROVIDER), True),
            (make_user(6, Role.PROVIDER), False),
            (make_user(9, Role.ADMIN), True),
        ],
    )
    def test_ownership(self, user, expected) -> None:
        appointment = Appointment(id=1, patient_id=1, provider_id=5)

        assert can_view(user, appointment) is expected
