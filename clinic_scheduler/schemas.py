from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from .models import Role, User


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: Role
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            createdAt=user.created_at,
        )


class ProviderResponse(BaseModel):
    id: int
    name: str
    email: str


class AuthPayload(BaseModel):
    user: UserResponse
    token: str


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    data: AuthPayload


class DataResponse(BaseModel):
    success: bool = True
    count: Optional[int] = None
    data: Any


class MessageResponse(BaseModel):
    success: bool = True
    message: str
