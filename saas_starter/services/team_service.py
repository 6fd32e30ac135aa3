"""
Team, membership and activity queries
"""

from sqlmodel import Session, select
from typing import List, Optional
import uuid

import structlog

from saas_starter.models import ActivityLog, ActivityType, Team, TeamMember, User

logger = structlog.get_logger(__name__)


def get_active_user(session: Session, user_id: uuid.UUID) -> Optional[User]:
    """Load a user unless soft-deleted"""
    return session.exec(
        select(User).where(User.id == user_id, User.deleted_at.is_(None))
    ).first()


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(
        select(User).where(User.email == email, User.deleted_at.is_(None))
    ).first()


def get_memberships_for_user(session: Session, user_id: uuid.UUID) -> List[TeamMember]:
    """All memberships of a user, oldest first"""
    return list(session.exec(
        select(TeamMember)
        .where(TeamMember.user_id == user_id)
        .order_by(TeamMember.joined_at)
    ).all())


def get_membership(
    session: Session,
    user_id: uuid.UUID,
    team_id: Optional[uuid.UUID] = None,
) -> Optional[TeamMember]:
    """Membership in the given team, or the user's first team when no team is given"""
    if team_id is None:
        memberships = get_memberships_for_user(session, user_id)
        return memberships[0] if memberships else None
    return session.exec(
        select(TeamMember).where(
            TeamMember.user_id == user_id,
            TeamMember.team_id == team_id,
        )
    ).first()


def get_team_by_customer_id(session: Session, customer_id: str) -> Optional[Team]:
    return session.exec(
        select(Team).where(Team.stripe_customer_id == customer_id)
    ).first()


def get_team_members(session: Session, team_id: uuid.UUID) -> List[tuple[TeamMember, User]]:
    return list(session.exec(
        select(TeamMember, User)
        .join(User, User.id == TeamMember.user_id)
        .where(TeamMember.team_id == team_id)
        .order_by(TeamMember.joined_at)
    ).all())


def log_activity(
    session: Session,
    team_id: Optional[uuid.UUID],
    user_id: uuid.UUID,
    action: ActivityType,
    ip_address: Optional[str] = None,
) -> Optional[ActivityLog]:
    """Append an audit entry. Users outside any team leave no entry."""
    if team_id is None:
        return None
    entry = ActivityLog(
        team_id=team_id,
        user_id=user_id,
        action=action,
        ip_address=ip_address,
    )
    session.add(entry)
    return entry


def get_activity_logs(session: Session, user_id: uuid.UUID, limit: int = 10) -> List[tuple[ActivityLog, Optional[str]]]:
    """Most recent activity of a user with the user's name"""
    return list(session.exec(
        select(ActivityLog, User.name)
        .join(User, User.id == ActivityLog.user_id, isouter=True)
        .where(ActivityLog.user_id == user_id)
        .order_by(ActivityLog.timestamp.desc())
        .limit(limit)
    ).all())
