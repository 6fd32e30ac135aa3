"""
Team model - tenant and billing boundary
"""

from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
import uuid

from saas_starter.core.timestamps import utc_now

if TYPE_CHECKING:
    from saas_starter.models.team_member import TeamMember


class Team(SQLModel, table=True):
    """Team model for multi-tenant architecture"""

    __tablename__ = "teams"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=100)

    # Billing
    stripe_customer_id: Optional[str] = Field(default=None, unique=True, index=True, max_length=255)
    stripe_subscription_id: Optional[str] = Field(default=None, unique=True, max_length=255)
    stripe_product_id: Optional[str] = Field(default=None, max_length=255)
    plan_name: Optional[str] = Field(default=None, max_length=50)
    subscription_status: Optional[str] = Field(default=None, max_length=20)
    subscription_updated_at: Optional[datetime] = Field(
        default=None,
        description="Creation time of the last Stripe event applied to this team"
    )

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    # Relationships
    members: List["TeamMember"] = Relationship(back_populates="team")

    def apply_subscription(
        self,
        subscription_id: Optional[str],
        product_id: Optional[str],
        plan_name: Optional[str],
        status: str,
    ) -> None:
        """Overwrite the billing fields with the processor's current view"""
        self.stripe_subscription_id = subscription_id
        self.stripe_product_id = product_id
        self.plan_name = plan_name
        self.subscription_status = status
        self.updated_at = utc_now()
