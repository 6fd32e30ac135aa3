"""
Seed a local database with a test owner, a team and Stripe products

Run with ``python -m saas_starter.scripts.seed`` after migrating.
"""

import sys

from sqlmodel import Session
import stripe
import structlog

from saas_starter.core.auth import hash_password
from saas_starter.core.config import get_settings
from saas_starter.core.database import engine
from saas_starter.models import Team, TeamMember, TeamRole, User
from saas_starter.services import team_service
from saas_starter.services.stripe_service import StripeService

logger = structlog.get_logger(__name__)

SEED_EMAIL = "test@test.com"
SEED_PASSWORD = "admin123"

SEED_PRODUCTS = [
    {"name": "Base", "description": "Base subscription plan", "unit_amount": 800},
    {"name": "Plus", "description": "Plus subscription plan", "unit_amount": 1200},
]


def seed_database(session: Session) -> dict:
    """Create the test owner and their team, unless already present"""
    existing = team_service.get_user_by_email(session, SEED_EMAIL)
    if existing is not None:
        logger.info(f"Seed user already exists: {existing.id}")
        return {"created": False, "user_id": str(existing.id)}

    user = User(
        email=SEED_EMAIL,
        password_hash=hash_password(SEED_PASSWORD),
        role=TeamRole.OWNER.value,
    )
    team = Team(name="Test Team")
    session.add(user)
    session.add(team)
    session.add(TeamMember(user_id=user.id, team_id=team.id, role=TeamRole.OWNER))
    session.commit()

    logger.info(f"Seeded user {user.id} in team {team.id}")
    return {"created": True, "user_id": str(user.id), "team_id": str(team.id)}


def seed_stripe_products(stripe_service: StripeService) -> list:
    created = []
    for product in SEED_PRODUCTS:
        created.append(stripe_service.create_product(trial_period_days=7, **product))
    return created


def main():
    """Main entry point for seeding"""
    settings = get_settings()

    with Session(engine) as session:
        results = seed_database(session)
        logger.info(f"Database seed results: {results}")

    if not settings.STRIPE_SECRET_KEY:
        logger.info("STRIPE_SECRET_KEY not set, skipping Stripe products")
        return

    try:
        products = seed_stripe_products(StripeService())
    except stripe.StripeError as e:
        logger.error(f"Failed to create Stripe products: {e}")
        sys.exit(1)
    logger.info(f"Created Stripe products: {products}")


if __name__ == "__main__":
    main()
