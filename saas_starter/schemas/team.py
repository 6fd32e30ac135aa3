"""
Pydantic schemas for teams, invitations and activity
"""

from pydantic import BaseModel, EmailStr
from typing import List, Optional
from datetime import datetime
import uuid

from saas_starter.models.activity_log import ActivityType
from saas_starter.models.team_member import TeamRole


class InviteMemberForm(BaseModel):
    email: EmailStr
    role: TeamRole = TeamRole.MEMBER


class RemoveMemberForm(BaseModel):
    member_id: uuid.UUID


class RevokeInvitationForm(BaseModel):
    invitation_id: uuid.UUID


class CheckoutForm(BaseModel):
    price_id: str


class MemberResponse(BaseModel):
    id: uuid.UUID
    role: TeamRole
    joined_at: datetime
    user_id: uuid.UUID
    name: Optional[str]
    email: str


class TeamResponse(BaseModel):
    id: uuid.UUID
    name: str
    plan_name: Optional[str]
    subscription_status: Optional[str]
    stripe_customer_id: Optional[str]
    members: List[MemberResponse] = []


class InvitationResponse(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    email: str
    role: TeamRole
    status: str
    invited_at: datetime


class ActivityResponse(BaseModel):
    id: uuid.UUID
    action: ActivityType
    timestamp: datetime
    ip_address: Optional[str]
    user_name: Optional[str]
