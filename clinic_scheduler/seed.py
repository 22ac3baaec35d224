"""
Seed the database with demo accounts and appointments.

The admin account can only be created here; public registration refuses
the admin role.

Usage: python -m clinic_scheduler.seed [--reset-appointments]
"""

import argparse
import logging
import os
import sys
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .config import DATABASE_URL
from .database import Database
from .models import Appointment, AppointmentStatus, Role, User
from .security_utils import hash_password

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

DEMO_PASSWORD = os.getenv("SEED_PASSWORD", "password123")
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@healthtech.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "Password123")

DEMO_USERS = [
    ("john@example.com", "John Doe", Role.PATIENT),
    ("sarah@clinic.com", "Dr. Sarah Smith", Role.PROVIDER),
    ("mike@clinic.com", "Dr. Mike Johnson", Role.PROVIDER),
]


def upsert_user(
    db: Session, email: str, name: str, role: Role, password: str, reset_password: bool = False
) -> User:
    """Create the user if missing; optionally reset the password of an existing one"""
    user = db.query(User).filter(User.email == email).first()
    if user:
        if reset_password:
            user.password_hash = hash_password(password)
        return user

    user = User(email=email, name=name, role=role, password_hash=hash_password(password))
    db.add(user)
    db.flush()
    return user


def seed(db: Session, reset_appointments: bool = False, today: Optional[date] = None) -> dict:
    today = today or date.today()

    users = {
        email: upsert_user(db, email, name, role, DEMO_PASSWORD)
        for email, name, role in DEMO_USERS
    }
    upsert_user(
        db, ADMIN_EMAIL, "Master Administrator", Role.ADMIN, ADMIN_PASSWORD, reset_password=True
    )
    logger.info("✅ Users & Admin created")

    if reset_appointments:
        deleted = db.query(Appointment).delete(synchronize_session=False)
        logger.info(f"🧹 Removed {deleted} existing appointments")

    patient = users["john@example.com"]
    sarah = users["sarah@clinic.com"]
    mike = users["mike@clinic.com"]

    created = 0
    if reset_appointments or db.query(Appointment).count() == 0:
        db.add_all(
            [
                Appointment(
                    patient_id=patient.id,
                    provider_id=sarah.id,
                    date=today + timedelta(days=7),
                    time="10:00",
                    status=AppointmentStatus.BOOKED,
                    reason="Annual Checkup",
                ),
                Appointment(
                    patient_id=patient.id,
                    provider_id=mike.id,
                    date=today + timedelta(days=12),
                    time="14:00",
                    status=AppointmentStatus.BOOKED,
                    reason="Follow-up Visit",
                ),
                Appointment(
                    patient_id=patient.id,
                    provider_id=sarah.id,
                    date=today - timedelta(days=28),
                    time="09:00",
                    status=AppointmentStatus.COMPLETED,
                    reason="Blood Test Results",
                ),
            ]
        )
        created = 3
        logger.info("✅ Appointments created")

    db.commit()
    return {"users": len(users) + 1, "appointments": created}


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the clinic scheduler database")
    parser.add_argument(
        "--reset-appointments",
        action="store_true",
        help="Delete all appointments before inserting the demo ones",
    )
    args = parser.parse_args(argv)

    database = Database(DATABASE_URL)
    database.create_all()
    db = database.session()
    try:
        seed(db, reset_appointments=args.reset_appointments)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Seed failed: {e}")
        return 1
    finally:
        db.close()
        database.dispose()

    logger.info("")
    logger.info("📧 Test credentials:")
    for email, _, role in DEMO_USERS:
        logger.info(f"   {role.value.capitalize():<9} {email} / {DEMO_PASSWORD}")
    logger.info(f"   Admin     {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
