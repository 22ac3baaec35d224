import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .exceptions import AuthError, ForbiddenError, NotFoundError
from .models import Role, User
from .security_utils import TokenExpired, TokenInvalid, decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported with our own 401 body
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token in the Authorization header to a User row"""

    if not credentials or not credentials.credentials:
        logger.warning("❌ No credentials provided")
        raise AuthError("Access token required")

    try:
        payload = decode_access_token(credentials.credentials)
    except TokenExpired as e:
        logger.info("ℹ️ Expired token presented")
        raise AuthError("Token expired") from e
    except TokenInvalid as e:
        raise ForbiddenError("Invalid token") from e

    user = db.get(User, payload["userId"])
    if not user:
        logger.warning(f"⚠️ Token references missing user {payload['userId']}")
        raise NotFoundError("User not found")

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


def require_role(*allowed_roles: Role):
    """
    Create a dependency that only lets the given roles through.

    Example usage:
        @router.get("/stats")
        async def stats(current_user: User = Depends(require_role(Role.ADMIN))):
            ...
    """

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            logger.warning(
                f"⚠️ User {current_user.id} ({current_user.role.value}) denied access, "
                f"requires one of {[r.value for r in allowed_roles]}"
            )
            raise ForbiddenError("Access denied. Insufficient permissions.")
        return current_user

    return role_checker
