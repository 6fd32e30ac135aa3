"""
Activity log - append-only audit trail
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Index
from datetime import datetime
from typing import Optional
from enum import Enum
import uuid

from saas_starter.core.timestamps import utc_now


class ActivityType(str, Enum):
    """User actions recorded in the audit trail"""
    SIGN_UP = "SIGN_UP"
    SIGN_IN = "SIGN_IN"
    SIGN_OUT = "SIGN_OUT"
    UPDATE_PASSWORD = "UPDATE_PASSWORD"
    DELETE_ACCOUNT = "DELETE_ACCOUNT"
    UPDATE_ACCOUNT = "UPDATE_ACCOUNT"
    CREATE_TEAM = "CREATE_TEAM"
    REMOVE_TEAM_MEMBER = "REMOVE_TEAM_MEMBER"
    INVITE_TEAM_MEMBER = "INVITE_TEAM_MEMBER"
    ACCEPT_INVITATION = "ACCEPT_INVITATION"
    REVOKE_INVITATION = "REVOKE_INVITATION"


class ActivityLog(SQLModel, table=True):
    """Audit entry. Rows are only ever inserted."""

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("idx_activity_log_user_timestamp", "user_id", "timestamp"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    team_id: uuid.UUID = Field(foreign_key="teams.id", index=True)
    user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    action: ActivityType = Field(index=True)
    timestamp: datetime = Field(default_factory=utc_now)
    ip_address: Optional[str] = Field(default=None, max_length=45)
