"""
Authentication dependencies for FastAPI
"""

from fastapi import Depends, Request
from sqlmodel import Session
from typing import Optional
import uuid
import structlog

from saas_starter.core.auth import verify_session_token
from saas_starter.core.config import get_settings
from saas_starter.core.database import get_session
from saas_starter.core.errors import Forbidden, InvalidToken, NoTeam, Unauthenticated
from saas_starter.models import Team, TeamMember, User
from saas_starter.services import team_service

logger = structlog.get_logger(__name__)
settings = get_settings()


def client_ip(request: Request) -> Optional[str]:
    """Originating client address, honouring a proxy's X-Forwarded-For"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def resolve_user(request: Request, session: Session) -> Optional[User]:
    """User behind the session cookie, or None for anonymous/invalid/deleted"""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    try:
        payload = verify_session_token(token)
    except InvalidToken as e:
        logger.debug(f"Rejected session token: {e.message}")
        return None
    return team_service.get_active_user(session, payload.user_id)


def resolve_membership(request: Request, session: Session, user: User) -> TeamMember:
    """Membership selected by the team header, defaulting to the user's first team"""
    requested = request.headers.get(settings.TEAM_HEADER)
    if requested:
        try:
            team_id = uuid.UUID(requested)
        except ValueError:
            raise Forbidden("Access denied to this team")
        membership = team_service.get_membership(session, user.id, team_id)
        if membership is None:
            raise Forbidden("Access denied to this team")
        return membership

    membership = team_service.get_membership(session, user.id)
    if membership is None:
        raise NoTeam()
    return membership


async def get_optional_user(
    request: Request,
    session: Session = Depends(get_session)
) -> Optional[User]:
    return resolve_user(request, session)


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user)
) -> User:
    """Get current user from the session cookie"""
    if user is None:
        raise Unauthenticated()
    logger.debug(f"User authenticated: {user.id}")
    return user


async def get_current_membership(
    request: Request,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
) -> TeamMember:
    return resolve_membership(request, session, user)


async def get_current_team(
    membership: TeamMember = Depends(get_current_membership),
    session: Session = Depends(get_session)
) -> Team:
    """Get the team the current request is scoped to"""
    return session.get(Team, membership.team_id)
