"""
Users API endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List, Optional

from saas_starter.core.database import get_session
from saas_starter.core.dependencies import get_current_user, get_optional_user
from saas_starter.models import User
from saas_starter.schemas.team import ActivityResponse
from saas_starter.schemas.user import UserResponse
from saas_starter.services import team_service

router = APIRouter()


def build_activity_response(session: Session, user: User) -> List[ActivityResponse]:
    return [
        ActivityResponse(
            id=entry.id,
            action=entry.action,
            timestamp=entry.timestamp,
            ip_address=entry.ip_address,
            user_name=user_name,
        )
        for entry, user_name in team_service.get_activity_logs(session, user.id)
    ]


@router.get("/user", response_model=Optional[UserResponse])
async def get_user(user: Optional[User] = Depends(get_optional_user)):
    """Current user, or null without a session"""
    if user is None:
        return None
    return UserResponse.model_validate(user)


@router.get("/activity", response_model=List[ActivityResponse])
async def list_activity(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Last ten actions of the current user"""
    return build_activity_response(session, user)
