"""
Test configuration for pytest
"""

import hashlib
import hmac
import json
import os
import time
from typing import Callable, Generator, Optional

import pytest

# Test environment variables
WEBHOOK_SECRET = "whsec_test_secret"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["AUTH_SECRET"] = "test-auth-secret"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = WEBHOOK_SECRET
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session

import saas_starter.models  # noqa: F401
from saas_starter.core.auth import hash_password
from saas_starter.core.database import get_session
from saas_starter.main import app
from saas_starter.models import Team, TeamMember, TeamRole, User
from saas_starter.services.stripe_service import StripeService, get_stripe_service

PASSWORD = "password123"


# Create test engine using in-memory SQLite shared across threads
test_engine = create_engine(
    "sqlite://",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


class FakeStripeService(StripeService):
    """StripeService with real webhook verification and canned API responses"""

    def __init__(self):
        super().__init__(secret_key="", webhook_secret=WEBHOOK_SECRET, base_url="http://localhost:3000")
        self.products = {"prod_base": "Base", "prod_plus": "Plus"}
        self.checkout_calls = []
        self.checkout_result = None

    def create_checkout_session(self, price_id, user_id, customer_id=None):
        self.checkout_calls.append(
            {"price_id": price_id, "user_id": user_id, "customer_id": customer_id}
        )
        session_id = f"cs_test_{len(self.checkout_calls)}"
        return {"id": session_id, "url": f"https://checkout.stripe.com/c/pay/{session_id}"}

    def get_checkout_result(self, session_id):
        if self.checkout_result is None:
            raise ValueError("Unknown checkout session")
        return self.checkout_result

    def create_portal_session(self, customer_id):
        return {"id": "bps_test", "url": f"https://billing.stripe.com/p/session/{customer_id}"}

    def get_product_name(self, product_id):
        return self.products.get(product_id)

    def list_prices(self):
        return [{
            "id": "price_base",
            "product_id": "prod_base",
            "unit_amount": 800,
            "currency": "usd",
            "interval": "month",
            "trial_period_days": 7,
        }]

    def list_products(self):
        return [{"id": "prod_base", "name": "Base", "description": None, "default_price_id": "price_base"}]


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header the way Stripe does"""
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{payload}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def stripe_service() -> FakeStripeService:
    return FakeStripeService()


@pytest.fixture
def client(db: Session, stripe_service: FakeStripeService) -> Generator[TestClient, None, None]:
    """API client bound to the test database and fake Stripe"""
    app.dependency_overrides[get_session] = lambda: db
    app.dependency_overrides[get_stripe_service] = lambda: stripe_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory creating a user, optionally inside a team"""
    def factory(
        email: str,
        team: Optional[Team] = None,
        role: TeamRole = TeamRole.OWNER,
        name: Optional[str] = None,
    ) -> User:
        user = User(email=email, name=name, password_hash=hash_password(PASSWORD), role=role.value)
        db.add(user)
        if team is not None:
            db.add(TeamMember(user_id=user.id, team_id=team.id, role=role))
        db.commit()
        db.refresh(user)
        return user
    return factory


@pytest.fixture
def team(db: Session) -> Team:
    team = Team(name="Acme", stripe_customer_id="cus_123")
    db.add(team)
    db.commit()
    db.refresh(team)
    return team


@pytest.fixture
def owner(make_user, team: Team) -> User:
    return make_user("owner@acme.io", team=team, role=TeamRole.OWNER, name="Olive Owner")


@pytest.fixture
def member(make_user, team: Team) -> User:
    return make_user("member@acme.io", team=team, role=TeamRole.MEMBER, name="Max Member")


@pytest.fixture
def login(client: TestClient) -> Callable[[str], None]:
    """Sign in through the API so the client holds a real session cookie"""
    def do_login(email: str, password: str = PASSWORD) -> None:
        response = client.post("/api/auth/sign-in", json={"email": email, "password": password})
        assert response.status_code == 200, response.json()
    return do_login


def subscription_event(
    status: str,
    customer: str = "cus_123",
    event_type: str = "customer.subscription.updated",
    created: Optional[int] = None,
    product: str = "prod_base",
    subscription_id: str = "sub_123",
) -> str:
    """Serialized Stripe subscription event"""
    return json.dumps({
        "id": f"evt_{status}_{created}",
        "object": "event",
        "type": event_type,
        "created": created or int(time.time()),
        "data": {
            "object": {
                "id": subscription_id,
                "object": "subscription",
                "customer": customer,
                "status": status,
                "items": {"data": [{"price": {"id": "price_base", "product": product}}]},
            }
        },
    })
