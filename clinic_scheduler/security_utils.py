"""
Security Utilities
Password hashing, bearer-token signing and audit logging helpers
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

# Token signing
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import JWT_ALGORITHM, JWT_EXPIRES_MINUTES, JWT_SECRET

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenExpired(Exception):
    """The token signature is valid but its ``exp`` claim has passed."""


class TokenInvalid(Exception):
    """The token is malformed or its signature does not verify."""


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def create_access_token(
    user_id: int, email: str, role: str, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed bearer token carrying the user's id, email and role

    Args:
        expires_delta: Token lifetime (default JWT_EXPIRES_MINUTES)
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=JWT_EXPIRES_MINUTES)

    to_encode = {
        "userId": user_id,
        "email": email,
        "role": role,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jose_jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a bearer token

    Raises:
        TokenExpired: signature is valid but the token has expired
        TokenInvalid: anything else wrong with the token
    """
    try:
        payload = jose_jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpired(str(e)) from e
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        raise TokenInvalid(str(e)) from e

    if not isinstance(payload.get("userId"), int):
        raise TokenInvalid("Token missing userId claim")
    return payload


# ============================================================================
# AUDIT LOGGING
# ============================================================================


def log_security_event(
    event_type: str,
    user_id: Optional[int] = None,
    email: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
):
    """
    Log security-related events for audit trail

    Args:
        event_type: Type of security event (login, failed_login, register, ...)
        user_id: User identifier
        email: Masked before logging
        details: Additional event details
    """
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "user_id": user_id,
        "email": mask_email(email) if email else None,
        "details": details or {},
    }

    logger.info(f"SECURITY_EVENT: {log_entry}")


def mask_email(email: str) -> str:
    """Mask email for privacy: jo***@gm***.com"""
    if not email or "@" not in email:
        return "***@***.***"
    local, domain = email.split("@", 1)
    domain_parts = domain.split(".")
    masked_local = f"{local[:2]}***" if len(local) > 2 else f"{local[:1]}***"
    masked_domain = (
        f"{domain_parts[0][:2]}***" if len(domain_parts[0]) > 2 else f"{domain_parts[0][:1]}***"
    )
    return f"{masked_local}@{masked_domain}.{domain_parts[-1]}"
