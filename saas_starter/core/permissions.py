"""
RBAC (Role-Based Access Control) permission system
"""

from enum import Enum
from typing import Set, Union

from fastapi import Depends

from saas_starter.core.dependencies import get_current_membership
from saas_starter.core.errors import Forbidden
from saas_starter.models.team_member import TeamMember, TeamRole


class Permission(str, Enum):
    """Permission definitions"""
    # Team permissions
    TEAM_VIEW = "team:view"
    ACTIVITY_VIEW = "activity:view"

    # Member management
    MEMBER_INVITE = "member:invite"
    MEMBER_REMOVE = "member:remove"
    INVITATION_REVOKE = "invitation:revoke"

    # Billing
    BILLING_MANAGE = "billing:manage"


# Role permission mapping
ROLE_PERMISSIONS = {
    TeamRole.OWNER: {
        # Owners have all permissions
        Permission.TEAM_VIEW,
        Permission.ACTIVITY_VIEW,
        Permission.MEMBER_INVITE,
        Permission.MEMBER_REMOVE,
        Permission.INVITATION_REVOKE,
        Permission.BILLING_MANAGE,
    },
    TeamRole.MEMBER: {
        Permission.TEAM_VIEW,
        Permission.ACTIVITY_VIEW,
    },
}


def get_permissions_for_role(role: Union[TeamRole, str]) -> Set[Permission]:
    """Get permissions for a given role"""
    try:
        role = TeamRole(role.lower() if isinstance(role, str) else role)
    except ValueError:
        return set()
    return ROLE_PERMISSIONS.get(role, set())


def has_permission(required_permission: Permission, user_permissions: Set[Permission]) -> bool:
    """Check if user has required permission"""
    return required_permission in user_permissions


def check_permission(membership: TeamMember, required_permission: Permission) -> None:
    """Raise Forbidden unless the membership's role grants the permission"""
    if not has_permission(required_permission, get_permissions_for_role(membership.role)):
        raise Forbidden(f"Permission required: {required_permission.value}")


def require_permission(required_permission: Permission):
    """Dependency factory to check permissions on the resolved membership"""
    async def dependency(membership: TeamMember = Depends(get_current_membership)) -> TeamMember:
        check_permission(membership, required_permission)
        return membership
    return dependency
