"""
Account Service
Registration, login and token issuing
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from ..models import SELF_REGISTERABLE_ROLES, Role, User
from ..security_utils import (
    create_access_token,
    hash_password,
    log_security_event,
    verify_password,
)
from ..shared.validators import validate_email

logger = logging.getLogger(__name__)


def issue_token(user: User) -> str:
    return create_access_token(user.id, user.email, user.role.value)


class AuthService:
    """Service for user accounts and credentials"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def register(
        self,
        email: Optional[str],
        password: Optional[str],
        name: Optional[str],
        role: Optional[str],
    ) -> tuple[User, str]:
        """Create a patient or provider account and return it with a fresh token"""
        if not email or not password or not name or not role:
            raise ValidationError("Missing required fields: email, password, name, role")

        try:
            email = validate_email(email)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        try:
            resolved_role = Role(role)
        except ValueError:
            resolved_role = None
        if resolved_role not in SELF_REGISTERABLE_ROLES:
            raise ValidationError('Role must be either "patient" or "provider"')

        if self.get_user_by_email(email):
            raise ConflictError("User with this email already exists")

        user = User(
            email=email,
            password_hash=hash_password(password),
            name=name.strip(),
            role=resolved_role,
        )
        self.db.add(user)
        try:
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError as e:
            # Email taken between the check and the insert
            self.db.rollback()
            logger.error(f"❌ Email registered concurrently: {e.orig}")
            raise ConflictError("User with this email already exists") from e

        log_security_event("register", user_id=user.id, email=user.email)
        logger.info(f"🆕 New {user.role.value} registered: {user.id}")
        return user, issue_token(user)

    def login(self, email: Optional[str], password: Optional[str]) -> tuple[User, str]:
        """Check credentials and return the user with a fresh token"""
        if not email or not password:
            raise ValidationError("Email and password are required")

        email = email.strip().lower()
        user = self.get_user_by_email(email)

        if not user or not verify_password(password, user.password_hash):
            log_security_event("failed_login", email=email)
            raise AuthError("Invalid email or password")

        log_security_event("login", user_id=user.id, email=user.email)
        return user, issue_token(user)

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
