import os

# Configuration is read at import time, so it must be in place before the package loads
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import datetime as dt  # noqa: E402
from collections.abc import Callable, Iterator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from passlib.context import CryptContext  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from clinic_scheduler import security_utils  # noqa: E402
from clinic_scheduler.database import Database  # noqa: E402
from clinic_scheduler.domain.appointments.service import AppointmentService  # noqa: E402
from clinic_scheduler.main import create_app  # noqa: E402
from clinic_scheduler.models import Appointment, AppointmentStatus, Role, User  # noqa: E402
from clinic_scheduler.security_utils import create_access_token  # noqa: E402

PASSWORD = "password123"
TODAY = dt.date(2026, 1, 1)


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        security_utils, "pwd_context", CryptContext(schemes=["bcrypt"], bcrypt__rounds=4)
    )


@pytest.fixture
def database() -> Iterator[Database]:
    database = Database("sqlite://", slow_query_logging=False)
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture
def db_session(database: Database) -> Iterator[Session]:
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    def _make_user(email: str, name: str, role: Role) -> User:
        user = User(
            email=email,
            name=name,
            role=role,
            password_hash=security_utils.hash_password(PASSWORD),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def patient(make_user: Callable[..., User]) -> User:
    return make_user("john@example.com", "John Doe", Role.PATIENT)


@pytest.fixture
def other_patient(make_user: Callable[..., User]) -> User:
    return make_user("jane@example.com", "Jane Roe", Role.PATIENT)


@pytest.fixture
def provider(make_user: Callable[..., User]) -> User:
    return make_user("sarah@clinic.com", "Dr. Sarah Smith", Role.PROVIDER)


@pytest.fixture
def other_provider(make_user: Callable[..., User]) -> User:
    return make_user("mike@clinic.com", "Dr. Mike Johnson", Role.PROVIDER)


@pytest.fixture
def admin(make_user: Callable[..., User]) -> User:
    return make_user("admin@healthtech.com", "Master Administrator", Role.ADMIN)


@pytest.fixture
def service(db_session: Session) -> AppointmentService:
    return AppointmentService(db_session, today=lambda: TODAY)


@pytest.fixture
def add_appointment(db_session: Session) -> Callable[..., Appointment]:
    """Insert an appointment directly, bypassing the booking rules"""

    def _add(
        patient: User,
        provider: User,
        date: dt.date,
        time: str = "10:00",
        status: AppointmentStatus = AppointmentStatus.BOOKED,
        reason: str = "Annual Checkup",
    ) -> Appointment:
        appointment = Appointment(
            patient_id=patient.id,
            provider_id=provider.id,
            date=date,
            time=time,
            status=status,
            reason=reason,
        )
        db_session.add(appointment)
        db_session.commit()
        db_session.refresh(appointment)
        return appointment

    return _add


@pytest.fixture
def client(database: Database) -> Iterator[TestClient]:
    with TestClient(create_app(database)) as test_client:
        yield test_client


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.email, user.role.value)
    return {"Authorization": f"Bearer {token}"}


def future_date(days: int = 30) -> dt.date:
    return dt.date.today() + dt.timedelta(days=days)
