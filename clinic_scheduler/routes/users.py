import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import Role, User
from ..schemas import DataResponse, ProviderResponse, UserResponse
from ..services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/providers", response_model=DataResponse)
async def list_providers(db: Session = Depends(get_db)):
    """Public provider directory used by the booking form"""
    providers = db.query(User).filter(User.role == Role.PROVIDER).order_by(User.name).all()
    logger.debug(f"📋 Provider directory requested: {len(providers)} providers")
    data = [ProviderResponse(id=p.id, name=p.name, email=p.email) for p in providers]
    return DataResponse(count=len(data), data=data)


@router.get("", response_model=DataResponse)
async def list_users(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List all users"""
    users = db.query(User).order_by(User.id).all()
    data = [UserResponse.from_model(u) for u in users]
    return DataResponse(count=len(data), data=data)


@router.get("/{user_id}", response_model=DataResponse)
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get a single user"""
    user = AuthService(db).get_user(user_id)
    logger.debug(f"👤 User {current_user.id} looked up user {user_id}")
    return DataResponse(data=UserResponse.from_model(user))
