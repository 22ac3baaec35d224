import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import require_role
from ..database import get_db
from ..models import Appointment, Role, User
from ..schemas import DataResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

RECENT_USERS_LIMIT = 10


@router.get("/stats", response_model=DataResponse)
async def get_system_stats(
    current_user: User = Depends(require_role(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Aggregate user and appointment counts for the admin dashboard"""
    counts_by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    total_users = db.query(func.count(User.id)).scalar()
    total_appointments = db.query(func.count(Appointment.id)).scalar()
    logger.info(f"📊 Admin {current_user.id} viewed system stats")

    return DataResponse(
        data={
            "totalUsers": total_users,
            "providers": counts_by_role.get(Role.PROVIDER, 0),
            "patients": counts_by_role.get(Role.PATIENT, 0),
            "appointments": total_appointments,
            "systemStatus": "Healthy",
        }
    )


@router.get("/users", response_model=DataResponse)
async def get_recent_users(
    current_user: User = Depends(require_role(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Most recently created users"""
    users = (
        db.query(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(RECENT_USERS_LIMIT)
        .all()
    )
    logger.info(f"👥 Admin {current_user.id} listed {len(users)} recent users")
    data = [UserResponse.from_model(u) for u in users]
    return DataResponse(count=len(data), data=data)
