"""Shared pytest fixtures: in-memory database, API client and fakes."""
import os

# must be set before storefront.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["BREVO_API_KEY"] = ""
os.environ["SECRET_KEY"] = "test-secret"

from decimal import Decimal

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from storefront import models  # noqa: F401
from storefront.database import engine
from storefront.main import app
from storefront.models.product import Product
from storefront.models.user import User
from storefront.services.payment_service import ChargeResult, get_payment_gateway
from storefront.utils.hash import hash_password
from storefront.utils.token import create_access_token


class FakeGateway:
    """Stands in for StripeGateway; records every call."""

    currency = "usd"

    def __init__(self):
        self.intents = []
        self.charges = []
        self.decline = False
        self.charge_status = "succeeded"
        self.events = {}

    def create_intent(self, amount_cents, metadata=None):
        intent_id = f"pi_test_{len(self.intents) + 1}"
        self.intents.append({"id": intent_id, "amount": amount_cents, "metadata": metadata})
        return intent_id, f"{intent_id}_secret"

    def charge(self, amount_cents, *, payment_intent_id=None, payment_method_id=None, metadata=None):
        if not payment_intent_id and not payment_method_id:
            raise HTTPException(400, "Payment information is missing")
        self.charges.append({
            "amount": amount_cents,
            "payment_intent_id": payment_intent_id,
            "payment_method_id": payment_method_id,
        })
        if self.decline:
            raise HTTPException(402, "Your card was declined.")
        return ChargeResult(
            payment_intent_id=payment_intent_id or f"pi_auto_{len(self.charges)}",
            status=self.charge_status,
            payment_method_id=payment_method_id,
        )

    def parse_webhook(self, payload, signature):
        if signature != "valid":
            raise HTTPException(400, "Webhook Error: bad signature")
        return self.events[payload.decode()]


@pytest.fixture
def session():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as db:
        yield db
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(session, gateway):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_user(session, email, role="user"):
    user = User(
        first_name="Ada",
        last_name="Lovelace",
        email=email,
        password=hash_password("secret123"),
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def user(session):
    return _make_user(session, "ada@example.com")


@pytest.fixture
def other_user(session):
    return _make_user(session, "grace@example.com")


@pytest.fixture
def admin(session):
    return _make_user(session, "admin@example.com", role="admin")


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'user_id': user.id})}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def products(session):
    rows = [
        Product(name="Linen Shirt", price=Decimal("50.00"), stock=10),
        Product(name="Canvas Tote", price=Decimal("10.00"), stock=5),
        Product(name="Retired Cap", price=Decimal("15.00"), stock=5, is_active=False),
    ]
    for row in rows:
        session.add(row)
    session.commit()
    for row in rows:
        session.refresh(row)
    return rows
