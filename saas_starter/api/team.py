"""
Team API endpoints - members and invitations
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlmodel import Session, select
from typing import List
import structlog

from saas_starter.core.actions import ActionContext, read_payload, run_action, team_scoped, validated_action
from saas_starter.core.database import get_session
from saas_starter.core.dependencies import get_current_team
from saas_starter.core.errors import AppError, NotFound
from saas_starter.core.permissions import Permission, check_permission, require_permission
from saas_starter.models import ActivityType, Invitation, InvitationStatus, Team, TeamMember, User
from saas_starter.schemas.team import (
    InvitationResponse, InviteMemberForm, MemberResponse, RemoveMemberForm, RevokeInvitationForm,
    TeamResponse,
)
from saas_starter.services import team_service

logger = structlog.get_logger(__name__)
router = APIRouter()


def build_team_response(session: Session, team: Team) -> TeamResponse:
    members = [
        MemberResponse(
            id=member.id,
            role=member.role,
            joined_at=member.joined_at,
            user_id=user.id,
            name=user.name,
            email=user.email,
        )
        for member, user in team_service.get_team_members(session, team.id)
    ]
    return TeamResponse(
        id=team.id,
        name=team.name,
        plan_name=team.plan_name,
        subscription_status=team.subscription_status,
        stripe_customer_id=team.stripe_customer_id,
        members=members,
    )


@validated_action(InviteMemberForm)
@team_scoped
async def invite_member(data: InviteMemberForm, ctx: ActionContext):
    """
    Record a pending invitation

    No email is sent; callers build the sign-up link from the returned invitation_id.
    """
    check_permission(ctx.membership, Permission.MEMBER_INVITE)
    session = ctx.session

    existing_member = session.exec(
        select(TeamMember)
        .join(User, User.id == TeamMember.user_id)
        .where(TeamMember.team_id == ctx.team.id, User.email == data.email)
    ).first()
    if existing_member:
        raise AppError("User is already a member of this team")

    pending = session.exec(
        select(Invitation).where(
            Invitation.team_id == ctx.team.id,
            Invitation.email == data.email,
            Invitation.status == InvitationStatus.PENDING,
        )
    ).first()
    if pending:
        raise AppError("An invitation has already been sent to this email")

    invitation = Invitation(
        team_id=ctx.team.id,
        email=data.email,
        role=data.role,
        invited_by=ctx.user.id,
    )
    session.add(invitation)
    team_service.log_activity(
        session, ctx.team.id, ctx.user.id, ActivityType.INVITE_TEAM_MEMBER, ctx.ip_address
    )
    session.commit()

    logger.info(f"Invitation {invitation.id} created for team {ctx.team.id}")
    return {"success": "Invitation sent successfully", "invitation_id": str(invitation.id)}


@team_scoped
@validated_action(RevokeInvitationForm)
async def revoke_invitation(data: RevokeInvitationForm, ctx: ActionContext):
    check_permission(ctx.membership, Permission.INVITATION_REVOKE)
    invitation = ctx.session.get(Invitation, data.invitation_id)
    if invitation is None or invitation.team_id != ctx.team.id:
        raise NotFound("Invitation not found")

    try:
        invitation.revoke()
    except ValueError as e:
        raise AppError(str(e))
    ctx.session.add(invitation)
    team_service.log_activity(
        ctx.session, ctx.team.id, ctx.user.id, ActivityType.REVOKE_INVITATION, ctx.ip_address
    )
    ctx.session.commit()
    return {"success": "Invitation revoked"}


@team_scoped
@validated_action(RemoveMemberForm)
async def remove_member(data: RemoveMemberForm, ctx: ActionContext):
    check_permission(ctx.membership, Permission.MEMBER_REMOVE)
    member = ctx.session.exec(
        select(TeamMember).where(
            TeamMember.id == data.member_id,
            TeamMember.team_id == ctx.team.id,
        )
    ).first()
    if member is None:
        raise NotFound("Team member not found")
    if member.user_id == ctx.user.id:
        raise AppError("You cannot remove yourself from the team")

    ctx.session.delete(member)
    team_service.log_activity(
        ctx.session, ctx.team.id, ctx.user.id, ActivityType.REMOVE_TEAM_MEMBER, ctx.ip_address
    )
    ctx.session.commit()

    logger.info(f"Member {data.member_id} removed from team {ctx.team.id}")
    return {"success": "Team member removed successfully"}


@router.get("", response_model=TeamResponse)
async def get_team(
    team: Team = Depends(get_current_team),
    membership: TeamMember = Depends(require_permission(Permission.TEAM_VIEW)),
    session: Session = Depends(get_session),
):
    """Team of the current request with its members"""
    return build_team_response(session, team)


@router.get("/invitations", response_model=List[InvitationResponse])
async def list_invitations(
    team: Team = Depends(get_current_team),
    membership: TeamMember = Depends(require_permission(Permission.MEMBER_INVITE)),
    session: Session = Depends(get_session),
):
    """Pending invitations of the team"""
    invitations = session.exec(
        select(Invitation)
        .where(Invitation.team_id == team.id, Invitation.status == InvitationStatus.PENDING)
        .order_by(Invitation.invited_at)
    ).all()
    return [
        InvitationResponse(
            id=invitation.id,
            team_id=invitation.team_id,
            email=invitation.email,
            role=invitation.role,
            status=invitation.status.value,
            invited_at=invitation.invited_at,
        )
        for invitation in invitations
    ]


@router.post("/invitations")
async def invite_member_route(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
):
    payload = await read_payload(request)
    return await run_action(invite_member, payload, request, response, session)


@router.post("/invitations/{invitation_id}/revoke")
async def revoke_invitation_route(
    invitation_id: str,
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
):
    return await run_action(revoke_invitation, {"invitation_id": invitation_id}, request, response, session)


@router.post("/members/{member_id}/remove")
async def remove_member_route(
    member_id: str,
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
):
    return await run_action(remove_member, {"member_id": member_id}, request, response, session)
