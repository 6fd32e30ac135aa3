"""
Dashboard endpoints. The session middleware redirects anonymous visitors to /sign-in.
"""

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
from typing import Any, Dict

from saas_starter.api.team import build_team_response
from saas_starter.api.users import build_activity_response
from saas_starter.core.database import get_session
from saas_starter.core.dependencies import get_current_user, resolve_membership
from saas_starter.core.errors import NoTeam
from saas_starter.models import Team, User
from saas_starter.schemas.user import UserResponse

router = APIRouter()


@router.get("")
async def dashboard(
    request: Request,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    try:
        membership = resolve_membership(request, session, user)
    except NoTeam:
        membership = None

    team = session.get(Team, membership.team_id) if membership else None
    return {
        "user": UserResponse.model_validate(user),
        "team": build_team_response(session, team) if team else None,
        "role": membership.role.value if membership else None,
    }


@router.get("/activity")
async def dashboard_activity(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return {"activity": build_activity_response(session, user)}
