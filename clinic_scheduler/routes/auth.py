import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import AUTH_RATE_LIMIT, AUTH_RATE_LIMIT_WINDOW
from ..database import get_db
from ..models import User
from ..rate_limiter import create_rate_limiter
from ..schemas import (
    AuthPayload,
    AuthResponse,
    DataResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from ..services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Rate limiters
rate_limit_register = create_rate_limiter(
    limit=AUTH_RATE_LIMIT,
    window_seconds=AUTH_RATE_LIMIT_WINDOW,
    key_prefix="register",
    use_ip=True,
)
rate_limit_login = create_rate_limiter(
    limit=AUTH_RATE_LIMIT,
    window_seconds=AUTH_RATE_LIMIT_WINDOW,
    key_prefix="login",
    use_ip=True,
)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_register),
):
    """Register a patient or provider account"""
    user, token = service.register(data.email, data.password, data.name, data.role)
    return AuthResponse(
        message="User registered successfully",
        data=AuthPayload(user=UserResponse.from_model(user), token=token),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_login),
):
    """Exchange email and password for a bearer token"""
    user, token = service.login(data.email, data.password)
    return AuthResponse(
        message="Login successful",
        data=AuthPayload(user=UserResponse.from_model(user), token=token),
    )


@router.get("/me", response_model=DataResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the user the bearer token belongs to"""
    return DataResponse(data=UserResponse.from_model(current_user))
