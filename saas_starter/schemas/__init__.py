"""
Schemas module
"""

from saas_starter.schemas.token import SessionPayload
from saas_starter.schemas.user import (
    SignUpForm,
    SignInForm,
    UpdateAccountForm,
    UpdatePasswordForm,
    DeleteAccountForm,
    UserResponse,
)
from saas_starter.schemas.team import (
    InviteMemberForm,
    RemoveMemberForm,
    RevokeInvitationForm,
    CheckoutForm,
    MemberResponse,
    TeamResponse,
    InvitationResponse,
    ActivityResponse,
)

__all__ = [
    "SessionPayload",
    "SignUpForm",
    "SignInForm",
    "UpdateAccountForm",
    "UpdatePasswordForm",
    "DeleteAccountForm",
    "UserResponse",
    "InviteMemberForm",
    "RemoveMemberForm",
    "RevokeInvitationForm",
    "CheckoutForm",
    "MemberResponse",
    "TeamResponse",
    "InvitationResponse",
    "ActivityResponse",
]
