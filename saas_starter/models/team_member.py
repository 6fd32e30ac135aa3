"""
Team membership with per-team role
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import UniqueConstraint
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from enum import Enum
import uuid

from saas_starter.core.timestamps import utc_now

if TYPE_CHECKING:
    from saas_starter.models.team import Team
    from saas_starter.models.user import User


class TeamRole(str, Enum):
    """Roles a user can hold inside a team"""
    OWNER = "owner"
    MEMBER = "member"


class TeamMember(SQLModel, table=True):
    """Links a user to a team"""

    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("user_id", "team_id", name="uq_team_member_user_team"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    team_id: uuid.UUID = Field(foreign_key="teams.id", index=True)
    role: TeamRole = Field(default=TeamRole.MEMBER)
    joined_at: datetime = Field(default_factory=utc_now)

    user: Optional["User"] = Relationship(back_populates="memberships")
    team: Optional["Team"] = Relationship(back_populates="members")
