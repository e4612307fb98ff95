"""
Shared fixtures.

The environment is configured before homezy is imported so the engine binds
to a single in-memory SQLite connection and rate limiting never touches Redis.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REALTIME_REDIS_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key-for-homezy"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ.pop("RESEND_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from homezy.database import Base, SessionLocal, engine  # noqa: E402
from homezy.domain.credits.service import CreditService  # noqa: E402
from homezy.main import app  # noqa: E402
from homezy.models import ProProfile, User  # noqa: E402
from homezy.security_utils import create_access_token, hash_password  # noqa: E402

TEST_PASSWORD = "Password123"


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


# ============================================================================
# APP AND DATABASE
# ============================================================================


@pytest.fixture
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as test_client:
        yield test_client
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(client):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# USERS
# ============================================================================


@pytest.fixture
def make_user(db):
    """Factory: make_user(email, role="homeowner", verification_status=None, credits=0)"""

    def _make_user(
        email: str,
        role: str = "homeowner",
        verification_status: str = None,
        credits: int = 0,
        first_name: str = "Test",
        last_name: str = "User",
        **fields,
    ) -> User:
        user = User(
            email=email,
            password_hash=hash_password(TEST_PASSWORD),
            first_name=first_name,
            last_name=last_name,
            role=role,
            **fields,
        )
        if role == "pro":
            user.pro_profile = ProProfile(
                verification_status=verification_status or "pending",
                business_name=f"{first_name} Services",
                service_categories=["plumbing"],
                service_areas=["dubai"],
            )
        db.add(user)
        db.commit()
        db.refresh(user)
        if credits:
            CreditService(db).add_credits(
                user.id, credits, credit_type="paid", type="purchase", description="Test top-up"
            )
            db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def homeowner(make_user):
    return make_user("owner@example.com", first_name="Hana", last_name="Owner", phone="+971501234567")


@pytest.fixture
def homeowner_headers(homeowner):
    return auth_headers(homeowner)


@pytest.fixture
def other_homeowner(make_user):
    return make_user("other.owner@example.com", first_name="Omar", last_name="Other")


@pytest.fixture
def pro(make_user):
    return make_user(
        "pro@example.com", role="pro", verification_status="basic", credits=100, first_name="Pat"
    )


@pytest.fixture
def pro_headers(pro):
    return auth_headers(pro)


@pytest.fixture
def comprehensive_pro(make_user):
    return make_user(
        "pro.plus@example.com",
        role="pro",
        verification_status="comprehensive",
        credits=100,
        first_name="Cara",
    )


@pytest.fixture
def unverified_pro(make_user):
    return make_user("new.pro@example.com", role="pro", verification_status="pending", first_name="Nia")


@pytest.fixture
def unverified_pro_headers(unverified_pro):
    return auth_headers(unverified_pro)


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role="admin", first_name="Ada", last_name="Admin")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


# ============================================================================
# MARKETPLACE HELPERS
# ============================================================================


def lead_payload(**overrides) -> dict:
    payload = {
        "title": "Fix leaking kitchen sink",
        "description": "The kitchen sink has been leaking under the cabinet for a week and needs a plumber.",
        "category": "plumbing",
        "emirate": "dubai",
        "neighborhood": "Jumeirah",
        "full_address": "Villa 12, Street 4, Jumeirah 1",
        "budget_bracket": "1k-5k",
        "urgency": "flexible",
    }
    payload.update(overrides)
    return payload


def quote_payload(lead_id: int, **overrides) -> dict:
    payload = {
        "lead_id": lead_id,
        "estimated_start_date": "2030-01-10T09:00:00",
        "estimated_completion_date": "2030-01-12T17:00:00",
        "approach": "Replace the trap and reseal all joints under the sink.",
        "items": [
            {"description": "Labour", "category": "labor", "quantity": 4, "unit_price": 150, "total": 600},
            {"description": "Parts", "category": "materials", "quantity": 1, "unit_price": 200, "total": 200},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def post_lead(client, homeowner_headers):
    def _post_lead(headers=None, **overrides) -> dict:
        response = client.post("/leads", json=lead_payload(**overrides), headers=headers or homeowner_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _post_lead


@pytest.fixture
def claimed_lead(client, post_lead, pro_headers):
    lead = post_lead()
    response = client.post(f"/leads/{lead['id']}/claim", headers=pro_headers)
    assert response.status_code == 201, response.text
    return lead


@pytest.fixture
def submitted_quote(client, claimed_lead, pro_headers):
    response = client.post("/quotes", json=quote_payload(claimed_lead["id"]), headers=pro_headers)
    assert response.status_code == 201, response.text
    return response.json()
