"""
Stripe billing endpoints - checkout, customer portal and pricing data
"""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
from typing import Any, Dict, List, Optional
import uuid
import stripe
import structlog

from saas_starter.core.actions import ActionContext, read_payload, run_action, team_scoped, validated_action
from saas_starter.core.auth import set_session_cookie
from saas_starter.core.database import get_session
from saas_starter.core.errors import AppError
from saas_starter.core.permissions import Permission, check_permission
from saas_starter.models import Team
from saas_starter.schemas.team import CheckoutForm
from saas_starter.services import billing, team_service
from saas_starter.services.stripe_service import StripeService, get_stripe_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@validated_action(CheckoutForm)
@team_scoped
async def start_checkout(data: CheckoutForm, ctx: ActionContext):
    check_permission(ctx.membership, Permission.BILLING_MANAGE)
    try:
        url = billing.create_checkout(ctx.stripe, ctx.team, ctx.user.id, data.price_id)
    except stripe.StripeError as e:
        logger.error(f"Failed to create checkout session: {e}")
        raise AppError("Unable to start checkout. Please try again.")
    return {"redirect": url}


@team_scoped
async def open_customer_portal(data: Any, ctx: ActionContext):
    check_permission(ctx.membership, Permission.BILLING_MANAGE)
    if not ctx.team.stripe_customer_id or not ctx.team.stripe_product_id:
        return {"redirect": "/pricing"}
    try:
        portal = ctx.stripe.create_portal_session(ctx.team.stripe_customer_id)
    except stripe.StripeError as e:
        logger.error(f"Failed to create portal session: {e}")
        raise AppError("Unable to open the billing portal. Please try again.")
    return {"redirect": portal["url"]}


@router.post("/checkout")
async def checkout_route(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    payload = await read_payload(request)
    return await run_action(start_checkout, payload, request, response, session, stripe_service)


@router.get("/checkout")
async def checkout_success(
    session_id: Optional[str] = None,
    session: Session = Depends(get_session),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """Stripe redirects here after a successful checkout"""
    if not session_id:
        return RedirectResponse("/pricing", status_code=303)

    try:
        checkout = stripe_service.get_checkout_result(session_id)
        user_id = checkout.get("user_id")
        if not user_id:
            raise ValueError("No user ID found in session's client_reference_id")
        user = team_service.get_active_user(session, uuid.UUID(user_id))
        if user is None:
            raise ValueError(f"User {user_id} not found")
        membership = team_service.get_membership(session, user.id)
        if membership is None:
            raise ValueError(f"User {user_id} is not associated with any team")

        team = session.get(Team, membership.team_id)
        billing.apply_checkout(session, team, checkout)
    except (stripe.StripeError, ValueError, IntegrityError) as e:
        session.rollback()
        logger.error(f"Error handling successful checkout: {e}")
        return RedirectResponse("/error", status_code=303)

    response = RedirectResponse("/dashboard", status_code=303)
    set_session_cookie(response, user.id)
    return response


@router.post("/portal")
async def portal_route(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    return await run_action(open_customer_portal, None, request, response, session, stripe_service)


@router.get("/prices")
async def list_prices(stripe_service: StripeService = Depends(get_stripe_service)) -> List[Dict[str, Any]]:
    try:
        return stripe_service.list_prices()
    except stripe.StripeError as e:
        logger.error(f"Failed to list Stripe prices: {e}")
        raise AppError("Unable to load pricing")


@router.get("/products")
async def list_products(stripe_service: StripeService = Depends(get_stripe_service)) -> List[Dict[str, Any]]:
    try:
        return stripe_service.list_products()
    except stripe.StripeError as e:
        logger.error(f"Failed to list Stripe products: {e}")
        raise AppError("Unable to load pricing")
