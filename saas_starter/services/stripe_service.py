"""
Stripe Billing Service
Handles integration with the Stripe API for subscription checkout and webhooks
"""

import json
from typing import Any, Dict, List, Optional

import stripe
import structlog

from saas_starter.core.config import get_settings
from saas_starter.core.errors import AppError, InvalidSignature

logger = structlog.get_logger(__name__)

WEBHOOK_TOLERANCE_SECONDS = 300


def _id(value: Any) -> Optional[str]:
    """Id of an expandable field, whether Stripe returned the object or just its id"""
    if value is None or isinstance(value, str):
        return value
    return value.id


class StripeService:
    """Thin wrapper over the stripe SDK. Swapped for a fake in tests."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        trial_days: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key if secret_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET
        self.base_url = (base_url or settings.BASE_URL).rstrip("/")
        self.trial_days = trial_days if trial_days is not None else settings.STRIPE_TRIAL_DAYS

        if self.secret_key:
            stripe.api_key = self.secret_key
        else:
            logger.warning("STRIPE_SECRET_KEY not set, Stripe API calls will fail")

    def create_checkout_session(
        self,
        price_id: str,
        user_id: str,
        customer_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a subscription Checkout Session

        Args:
            price_id: Stripe price to subscribe to
            user_id: Our user id, echoed back as client_reference_id
            customer_id: Existing Stripe customer of the team, if any

        Returns:
            Dict with id and url of the hosted checkout page
        """
        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": "subscription",
            "success_url": f"{self.base_url}/api/stripe/checkout?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.base_url}/pricing",
            "client_reference_id": user_id,
            "allow_promotion_codes": True,
            "subscription_data": {"trial_period_days": self.trial_days},
        }
        if customer_id:
            params["customer"] = customer_id

        session = stripe.checkout.Session.create(**params)
        logger.info(f"Created checkout session {session.id} for user {user_id}")
        return {"id": session.id, "url": session.url}

    def get_checkout_result(self, session_id: str) -> Dict[str, Any]:
        """
        Resolve a completed checkout into the fields stored on the team

        Returns:
            Dict with user_id, customer_id, subscription_id, product_id, plan_name, status
        """
        session = stripe.checkout.Session.retrieve(
            session_id, expand=["customer", "subscription"]
        )
        customer_id = _id(session.customer)
        subscription_id = _id(session.subscription)
        if not customer_id or not subscription_id:
            raise ValueError("Checkout session has no customer or subscription")

        subscription = stripe.Subscription.retrieve(
            subscription_id, expand=["items.data.price.product"]
        )
        items = subscription["items"]["data"]
        if not items:
            raise ValueError("Subscription has no items")
        product = items[0].price.product
        if isinstance(product, str):
            product = stripe.Product.retrieve(product)

        return {
            "user_id": session.client_reference_id,
            "customer_id": customer_id,
            "subscription_id": subscription_id,
            "product_id": product.id,
            "plan_name": product.name,
            "status": subscription.status,
        }

    def create_portal_session(self, customer_id: str) -> Dict[str, Any]:
        """Create a billing portal session returning to the dashboard"""
        portal = stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=f"{self.base_url}/dashboard",
        )
        return {"id": portal.id, "url": portal.url}

    def get_product_name(self, product_id: Optional[str]) -> Optional[str]:
        if not product_id:
            return None
        return stripe.Product.retrieve(product_id).name

    def list_prices(self) -> List[Dict[str, Any]]:
        """Active recurring prices"""
        prices = stripe.Price.list(active=True, type="recurring", expand=["data.product"])
        return [
            {
                "id": price.id,
                "product_id": _id(price.product),
                "unit_amount": price.unit_amount,
                "currency": price.currency,
                "interval": price.recurring.interval if price.recurring else None,
                "trial_period_days": price.recurring.trial_period_days if price.recurring else None,
            }
            for price in prices.data
        ]

    def list_products(self) -> List[Dict[str, Any]]:
        """Active products with their default price"""
        products = stripe.Product.list(active=True, expand=["data.default_price"])
        return [
            {
                "id": product.id,
                "name": product.name,
                "description": product.description,
                "default_price_id": _id(product.default_price),
            }
            for product in products.data
        ]

    def create_product(
        self,
        name: str,
        description: str,
        unit_amount: int,
        currency: str = "usd",
        interval: str = "month",
        trial_period_days: int = 7,
    ) -> Dict[str, Any]:
        """Create a product and its recurring price"""
        product = stripe.Product.create(name=name, description=description)
        price = stripe.Price.create(
            product=product.id,
            unit_amount=unit_amount,
            currency=currency,
            recurring={"interval": interval, "trial_period_days": trial_period_days},
        )
        logger.info(f"Created Stripe product {name}: {product.id} / {price.id}")
        return {"product_id": product.id, "price_id": price.id}

    def verify_webhook(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Verify a webhook signature and parse the event

        Args:
            payload: Raw request body
            sig_header: Value of the Stripe-Signature header

        Returns:
            Event as a plain dict

        Raises:
            InvalidSignature: header missing, secret unset or signature mismatch
            AppError: signed body is not a JSON object
        """
        if not self.webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET not set, rejecting webhook")
            raise InvalidSignature()
        if not sig_header:
            raise InvalidSignature()

        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        except UnicodeDecodeError:
            raise InvalidSignature()
        try:
            stripe.WebhookSignature.verify_header(
                body, sig_header, self.webhook_secret, WEBHOOK_TOLERANCE_SECONDS
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise InvalidSignature()

        try:
            event = json.loads(body)
        except ValueError:
            raise AppError("Invalid webhook payload")
        if not isinstance(event, dict):
            raise AppError("Invalid webhook payload")
        return event


def get_stripe_service() -> StripeService:
    """Dependency returning the configured Stripe service"""
    return StripeService()
