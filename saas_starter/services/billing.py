"""
Subscription sync from Stripe onto teams
"""

from datetime import datetime
from sqlmodel import Session
from typing import Any, Callable, Dict, Optional
import structlog

from saas_starter.core.timestamps import as_utc
from saas_starter.models import Team
from saas_starter.services import team_service

logger = structlog.get_logger(__name__)

SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}
ACTIVE_STATUSES = {"active", "trialing"}
ENDED_STATUSES = {"canceled", "unpaid", "incomplete_expired"}


def _first_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def _product_id(item: Dict[str, Any]) -> Optional[str]:
    price = item.get("price") or item.get("plan") or {}
    product = price.get("product")
    if isinstance(product, dict):
        return product.get("id")
    return product


def _plan_name(item: Dict[str, Any]) -> Optional[str]:
    price = item.get("price") or item.get("plan") or {}
    product = price.get("product")
    if isinstance(product, dict) and product.get("name"):
        return product["name"]
    return price.get("nickname")


def handle_subscription_change(
    session: Session,
    subscription: Dict[str, Any],
    event_created: Optional[datetime] = None,
    resolve_product_name: Optional[Callable[[str], Optional[str]]] = None,
) -> Optional[Team]:
    """
    Overwrite the team's subscription fields with the processor's state

    Args:
        session: Database session
        subscription: Stripe subscription object (as dict)
        event_created: Creation time of the carrying event, for the stale-event guard
        resolve_product_name: Looks up a plan name when the payload only has a product id

    Returns:
        Updated team, or None when nothing was written
    """
    if not isinstance(subscription, dict):
        logger.warning("Subscription payload is not an object, ignoring")
        return None

    customer_id = subscription.get("customer")
    status = subscription.get("status")
    if not customer_id or not status:
        logger.warning("Subscription payload without customer or status, ignoring")
        return None

    team = team_service.get_team_by_customer_id(session, customer_id)
    if team is None:
        logger.error(f"Team not found for Stripe customer: {customer_id}")
        return None

    event_created = as_utc(event_created)
    last_applied = as_utc(team.subscription_updated_at)
    if event_created is not None and last_applied is not None and event_created < last_applied:
        logger.info(f"Stale subscription event for team {team.id}, ignoring")
        return None

    item = _first_item(subscription)
    if status in ACTIVE_STATUSES:
        product_id = _product_id(item)
        plan_name = _plan_name(item)
        if plan_name is None and product_id and resolve_product_name is not None:
            plan_name = resolve_product_name(product_id)
        team.apply_subscription(subscription.get("id"), product_id, plan_name, status)
    elif status in ENDED_STATUSES:
        team.apply_subscription(None, None, None, status)
    else:
        team.apply_subscription(
            subscription.get("id"), team.stripe_product_id, team.plan_name, status
        )

    if event_created is not None:
        team.subscription_updated_at = event_created
    session.add(team)
    session.commit()
    session.refresh(team)

    logger.info(f"Team {team.id} subscription status set to {status}")
    return team


def create_checkout(stripe_service, team: Team, user_id, price_id: str) -> str:
    """Start a subscription checkout for the team, returning the hosted page URL"""
    checkout = stripe_service.create_checkout_session(
        price_id=price_id,
        user_id=str(user_id),
        customer_id=team.stripe_customer_id,
    )
    return checkout["url"]


def apply_checkout(session: Session, team: Team, checkout: Dict[str, Any]) -> Team:
    """Store the result of a completed checkout on the team"""
    team.stripe_customer_id = checkout["customer_id"]
    team.apply_subscription(
        checkout["subscription_id"],
        checkout["product_id"],
        checkout["plan_name"],
        checkout["status"],
    )
    session.add(team)
    session.commit()
    session.refresh(team)
    logger.info(f"Checkout completed for team {team.id}")
    return team
