"""
User model with soft delete
"""

from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
import uuid

from saas_starter.core.timestamps import utc_now

if TYPE_CHECKING:
    from saas_starter.models.team_member import TeamMember


class User(SQLModel, table=True):
    """Account holder. Rows are soft-deleted so audit entries keep their reference."""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Authentication
    email: str = Field(unique=True, index=True, nullable=False, max_length=255)
    password_hash: str = Field(nullable=False)

    # Profile
    name: Optional[str] = Field(default=None, max_length=100)
    role: str = Field(default="member", max_length=20)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = Field(default=None, index=True)

    # Relationships
    memberships: List["TeamMember"] = Relationship(back_populates="user")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        """Mark deleted and free the email address for a new account"""
        if self.is_deleted:
            raise ValueError("User is already deleted")
        now = utc_now()
        self.deleted_at = now
        self.updated_at = now
        self.email = f"{self.email}-{self.id}-deleted"
