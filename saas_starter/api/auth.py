"""
Auth API endpoints - sign up, sign in, sign out
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from typing import Any, Dict, Optional
import stripe
import structlog

from saas_starter.core.actions import ActionContext, authenticated, read_payload, run_action, validated_action
from saas_starter.core.auth import clear_session_cookie, hash_password, set_session_cookie, verify_password
from saas_starter.core.database import get_session
from saas_starter.core.errors import AppError
from saas_starter.models import (
    ActivityType, Invitation, InvitationStatus, Team, TeamMember, TeamRole, User,
)
from saas_starter.schemas.user import SignInForm, SignUpForm
from saas_starter.services import billing, team_service
from saas_starter.services.stripe_service import StripeService, get_stripe_service

logger = structlog.get_logger(__name__)
router = APIRouter()


def _after_sign_in(ctx: ActionContext, team: Optional[Team], price_id: Optional[str]) -> Dict[str, Any]:
    if price_id and team is not None:
        try:
            return {"redirect": billing.create_checkout(ctx.stripe, team, ctx.user.id, price_id)}
        except stripe.StripeError as e:
            logger.error(f"Failed to start checkout: {e}")
            raise AppError("Unable to start checkout. Please try again.")
    return {"redirect": "/dashboard"}


@validated_action(SignUpForm)
async def sign_up(data: SignUpForm, ctx: ActionContext):
    """Create a user and either join the inviting team or a new own team"""
    session = ctx.session

    if team_service.get_user_by_email(session, data.email):
        raise AppError("Failed to create user. Please try again.")

    invitation = None
    if data.invite_id:
        invitation = session.exec(
            select(Invitation).where(
                Invitation.id == data.invite_id,
                Invitation.email == data.email,
                Invitation.status == InvitationStatus.PENDING,
            )
        ).first()
        if invitation is None:
            raise AppError("Invalid or expired invitation.")

    new_user = User(
        email=data.email,
        name=data.name,
        password_hash=hash_password(data.password),
        role=invitation.role.value if invitation else TeamRole.OWNER.value,
    )
    session.add(new_user)

    if invitation:
        team = session.get(Team, invitation.team_id)
        role = invitation.role
        invitation.accept()
        session.add(invitation)
        team_service.log_activity(session, team.id, new_user.id, ActivityType.ACCEPT_INVITATION, ctx.ip_address)
    else:
        team = Team(name=f"{data.email}'s Team")
        session.add(team)
        role = TeamRole.OWNER
        team_service.log_activity(session, team.id, new_user.id, ActivityType.CREATE_TEAM, ctx.ip_address)

    session.add(TeamMember(user_id=new_user.id, team_id=team.id, role=role))
    team_service.log_activity(session, team.id, new_user.id, ActivityType.SIGN_UP, ctx.ip_address)
    try:
        session.commit()
    except IntegrityError as e:
        logger.warning(f"Sign-up conflict for {data.email}: {e.orig}")
        raise AppError("Failed to create user. Please try again.")
    session.refresh(new_user)

    logger.info(f"User registered: {new_user.id}")

    ctx.user = new_user
    set_session_cookie(ctx.response, new_user.id)
    return _after_sign_in(ctx, team, data.price_id)


@validated_action(SignInForm)
async def sign_in(data: SignInForm, ctx: ActionContext):
    session = ctx.session
    user = team_service.get_user_by_email(session, data.email)
    if user is None or not verify_password(data.password, user.password_hash):
        raise AppError("Invalid email or password. Please try again.")

    membership = team_service.get_membership(session, user.id)
    team = session.get(Team, membership.team_id) if membership else None
    team_service.log_activity(
        session, team.id if team else None, user.id, ActivityType.SIGN_IN, ctx.ip_address
    )
    session.commit()

    logger.info(f"User logged in: {user.id}")

    ctx.user = user
    set_session_cookie(ctx.response, user.id)
    return _after_sign_in(ctx, team, data.price_id)


@authenticated
async def sign_out(data: Any, ctx: ActionContext):
    membership = team_service.get_membership(ctx.session, ctx.user.id)
    team_service.log_activity(
        ctx.session,
        membership.team_id if membership else None,
        ctx.user.id,
        ActivityType.SIGN_OUT,
        ctx.ip_address,
    )
    ctx.session.commit()
    clear_session_cookie(ctx.response)
    return {"redirect": "/sign-in"}


@router.post("/sign-up")
async def sign_up_route(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Register a new user"""
    payload = await read_payload(request)
    return await run_action(sign_up, payload, request, response, session, stripe_service)


@router.post("/sign-in")
async def sign_in_route(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Login user"""
    payload = await read_payload(request)
    return await run_action(sign_in, payload, request, response, session, stripe_service)


@router.post("/sign-out")
async def sign_out_route(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
):
    return await run_action(sign_out, None, request, response, session)
