"""
Account API endpoints - profile, password and account deletion
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import structlog

from saas_starter.core.actions import ActionContext, authenticated, read_payload, run_action, validated_action
from saas_starter.core.auth import clear_session_cookie, hash_password, verify_password
from saas_starter.core.database import get_session
from saas_starter.core.errors import AppError
from saas_starter.core.timestamps import utc_now
from saas_starter.models import ActivityType, TeamMember
from saas_starter.schemas.user import DeleteAccountForm, UpdateAccountForm, UpdatePasswordForm
from saas_starter.services import team_service

logger = structlog.get_logger(__name__)
router = APIRouter()


def _log(ctx: ActionContext, action: ActivityType) -> None:
    membership = team_service.get_membership(ctx.session, ctx.user.id)
    team_service.log_activity(
        ctx.session,
        membership.team_id if membership else None,
        ctx.user.id,
        action,
        ctx.ip_address,
    )


@validated_action(UpdateAccountForm)
@authenticated
async def update_account(data: UpdateAccountForm, ctx: ActionContext):
    user = ctx.user
    if data.email != user.email:
        existing = team_service.get_user_by_email(ctx.session, data.email)
        if existing is not None:
            raise AppError("Email is already in use.")

    user.name = data.name
    user.email = data.email
    user.updated_at = utc_now()
    ctx.session.add(user)
    _log(ctx, ActivityType.UPDATE_ACCOUNT)
    try:
        ctx.session.commit()
    except IntegrityError:
        raise AppError("Email is already in use.")

    logger.info(f"Account updated: {user.id}")
    return {"name": user.name, "success": "Account updated successfully."}


@validated_action(UpdatePasswordForm)
@authenticated
async def update_password(data: UpdatePasswordForm, ctx: ActionContext):
    user = ctx.user
    if not verify_password(data.current_password, user.password_hash):
        raise AppError("Current password is incorrect.")
    if data.current_password == data.new_password:
        raise AppError("New password must be different from the current password.")
    if data.new_password != data.confirm_password:
        raise AppError("New password and confirmation password do not match.")

    user.password_hash = hash_password(data.new_password)
    user.updated_at = utc_now()
    ctx.session.add(user)
    _log(ctx, ActivityType.UPDATE_PASSWORD)
    ctx.session.commit()

    logger.info(f"Password updated: {user.id}")
    return {"success": "Password updated successfully."}


@validated_action(DeleteAccountForm)
@authenticated
async def delete_account(data: DeleteAccountForm, ctx: ActionContext):
    """Soft-delete the account; activity entries keep pointing at the row"""
    user = ctx.user
    if not verify_password(data.password, user.password_hash):
        raise AppError("Incorrect password. Account deletion failed.")

    _log(ctx, ActivityType.DELETE_ACCOUNT)
    user.soft_delete()
    ctx.session.add(user)

    memberships = ctx.session.exec(
        select(TeamMember).where(TeamMember.user_id == user.id)
    ).all()
    for membership in memberships:
        ctx.session.delete(membership)
    ctx.session.commit()

    logger.info(f"Account deleted: {user.id}")
    clear_session_cookie(ctx.response)
    return {"redirect": "/sign-in"}


@router.post("")
async def update_account_route(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
):
    payload = await read_payload(request)
    return await run_action(update_account, payload, request, response, session)


@router.post("/password")
async def update_password_route(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
):
    payload = await read_payload(request)
    return await run_action(update_password, payload, request, response, session)


@router.post("/delete")
async def delete_account_route(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
):
    payload = await read_payload(request)
    return await run_action(delete_account, payload, request, response, session)
