"""
Invitation model
Pending invite of an email address into a team, accepted or revoked exactly once
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from enum import Enum
import uuid

from saas_starter.core.timestamps import utc_now
from saas_starter.models.team_member import TeamRole


class InvitationStatus(str, Enum):
    """Status of an invitation"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"


class Invitation(SQLModel, table=True):
    """Team invitation"""

    __tablename__ = "invitations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    team_id: uuid.UUID = Field(foreign_key="teams.id", index=True)
    email: str = Field(index=True, max_length=255)
    role: TeamRole = Field(default=TeamRole.MEMBER)
    invited_by: uuid.UUID = Field(foreign_key="users.id")
    invited_at: datetime = Field(default_factory=utc_now)
    status: InvitationStatus = Field(default=InvitationStatus.PENDING, index=True)
    responded_at: Optional[datetime] = None

    def can_transition_to(self, new_status: InvitationStatus) -> tuple[bool, str]:
        """Check if invitation can transition to new status"""
        valid_transitions = {
            InvitationStatus.PENDING: [
                InvitationStatus.ACCEPTED,
                InvitationStatus.REVOKED,
            ],
            InvitationStatus.ACCEPTED: [],
            InvitationStatus.REVOKED: [],
        }

        if new_status in valid_transitions.get(self.status, []):
            return True, "Can transition"
        return False, f"Cannot transition from {self.status.value} to {new_status.value}"

    def accept(self) -> None:
        allowed, reason = self.can_transition_to(InvitationStatus.ACCEPTED)
        if not allowed:
            raise ValueError(reason)
        self.status = InvitationStatus.ACCEPTED
        self.responded_at = utc_now()

    def revoke(self) -> None:
        allowed, reason = self.can_transition_to(InvitationStatus.REVOKED)
        if not allowed:
            raise ValueError(reason)
        self.status = InvitationStatus.REVOKED
        self.responded_at = utc_now()
