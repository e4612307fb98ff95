"""Credit balances, FIFO spending, purchases, webhooks and expiry"""

import json
from datetime import datetime, timedelta

import pytest

from conftest import auth_headers
from homezy.domain.credits.service import CreditService, package_pricing
from homezy.exceptions import AppError
from homezy.models import CreditPurchase, CreditTransaction
from homezy.security_utils import create_webhook_signature

WEBHOOK_SECRET = "test-webhook-secret"


def signed_webhook(client, payload: dict, secret: str = WEBHOOK_SECRET):
    body = json.dumps(payload).encode()
    return client.post(
        "/credits/webhooks/payment",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Homezy-Signature": create_webhook_signature(secret, body),
        },
    )


# ============================================================================
# SPENDING
# ============================================================================


class TestSpending:
    def test_free_credits_spent_first(self, db, make_user):
        pro = make_user("fifo@example.com", role="pro", verification_status="basic")
        service = CreditService(db)
        service.add_credits(pro.id, 20, credit_type="paid", type="purchase")
        service.add_credits(pro.id, 5, credit_type="free", type="bonus")

        tx = service.spend_credits(pro.id, 8, "Claimed lead")
        assert tx.meta["free_used"] == 5
        assert tx.meta["paid_used"] == 3
        assert tx.amount == -8
        assert tx.balance_before == 25
        assert tx.balance_after == 17

        balance = service.get_balance(pro.id)
        assert balance.free_credits == 0
        assert balance.paid_credits == 17
        assert balance.lifetime_spent == 8

    def test_paid_grants_drain_oldest_first(self, db, make_user):
        pro = make_user("oldest@example.com", role="pro", verification_status="basic")
        service = CreditService(db)
        first = service.add_credits(pro.id, 4, credit_type="paid", type="purchase")
        second = service.add_credits(pro.id, 10, credit_type="paid", type="purchase")

        service.spend_credits(pro.id, 6, "Claimed lead")
        db.refresh(first)
        db.refresh(second)
        assert first.remaining_amount == 0
        assert second.remaining_amount == 8

    def test_expired_grants_are_not_spendable(self, db, make_user):
        pro = make_user("stale@example.com", role="pro", verification_status="basic")
        service = CreditService(db)
        service.add_credits(
            pro.id, 50, credit_type="paid", type="purchase", expires_at=datetime.utcnow() - timedelta(days=1)
        )
        service.add_credits(pro.id, 3, credit_type="paid", type="purchase")

        with pytest.raises(AppError) as exc_info:
            service.spend_credits(pro.id, 5, "Claimed lead")
        assert exc_info.value.code == "INSUFFICIENT_CREDITS"

    def test_refund_restores_lifetime_spent(self, db, make_user):
        pro = make_user("refund@example.com", role="pro", verification_status="basic", credits=30)
        service = CreditService(db)
        service.spend_credits(pro.id, 10, "Claimed lead")
        tx = service.refund_credits(pro.id, 10, "Lead cancelled")

        balance = service.get_balance(pro.id)
        assert balance.total_balance == 30
        assert balance.lifetime_spent == 0
        assert tx.type == "refund"
        assert tx.expires_at is not None

    def test_rejects_non_positive_amounts(self, db, make_user):
        pro = make_user("zero@example.com", role="pro", verification_status="basic")
        with pytest.raises(AppError):
            CreditService(db).add_credits(pro.id, 0)


# ============================================================================
# API
# ============================================================================


class TestBalanceEndpoints:
    def test_balance(self, client, pro_headers):
        response = client.get("/credits/balance", headers=pro_headers)
        assert response.status_code == 200
        assert response.json()["total_balance"] == 100

    def test_homeowners_have_no_balance(self, client, homeowner_headers):
        assert client.get("/credits/balance", headers=homeowner_headers).status_code == 403

    def test_transactions_after_claim(self, client, claimed_lead, pro_headers):
        response = client.get("/credits/transactions?type=spend", headers=pro_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        spend = body["transactions"][0]
        assert spend["amount"] == -10
        assert spend["lead_id"] == claimed_lead["id"]

    def test_packages_include_vat(self, client):
        response = client.get("/credits/packages")
        assert response.status_code == 200
        starter = next(p for p in response.json() if p["id"] == "starter")
        assert starter["price_aed"] == 250
        assert starter["vat_aed"] == 12.5
        assert starter["total_aed"] == 262.5

    def test_unknown_package(self):
        with pytest.raises(AppError) as exc_info:
            package_pricing("platinum")
        assert exc_info.value.code == "INVALID_PACKAGE"


class TestPurchases:
    def test_purchase_completes_through_webhook(self, client, db, pro, pro_headers):
        response = client.post("/credits/purchases", json={"package_id": "professional"}, headers=pro_headers)
        assert response.status_code == 201
        purchase = response.json()
        assert purchase["status"] == "pending"
        assert purchase["payment_reference"].startswith("hz_")

        response = signed_webhook(
            client, {"event": "payment.succeeded", "payment_reference": purchase["payment_reference"]}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        balance = client.get("/credits/balance", headers=pro_headers).json()
        assert balance["total_balance"] == 100 + 150 + 10
        assert balance["free_credits"] == 10

    def test_webhook_is_idempotent(self, client, db, pro, pro_headers):
        purchase = client.post("/credits/purchases", json={"package_id": "starter"}, headers=pro_headers).json()
        payload = {"event": "payment.succeeded", "payment_reference": purchase["payment_reference"]}
        signed_webhook(client, payload)
        signed_webhook(client, payload)

        db.expire_all()
        grants = (
            db.query(CreditTransaction)
            .filter(CreditTransaction.purchase_id == purchase["id"])
            .count()
        )
        assert grants == 1
        assert client.get("/credits/balance", headers=pro_headers).json()["total_balance"] == 150

    def test_bad_signature_rejected(self, client, pro_headers):
        purchase = client.post("/credits/purchases", json={"package_id": "starter"}, headers=pro_headers).json()
        response = signed_webhook(
            client,
            {"event": "payment.succeeded", "payment_reference": purchase["payment_reference"]},
            secret="wrong-secret",
        )
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_SIGNATURE"

    def test_failed_payment(self, client, db, pro_headers):
        purchase = client.post("/credits/purchases", json={"package_id": "starter"}, headers=pro_headers).json()
        response = signed_webhook(
            client, {"event": "payment.failed", "payment_reference": purchase["payment_reference"]}
        )
        assert response.json()["status"] == "failed"
        db.expire_all()
        assert db.query(CreditPurchase).filter(CreditPurchase.id == purchase["id"]).one().status == "failed"


class TestAdminCredits:
    def test_grant_bonus(self, client, pro, admin_headers, pro_headers):
        response = client.post(
            "/admin/credits/grant",
            json={"professional_id": pro.id, "amount": 25, "reason": "Launch promotion"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["credit_type"] == "free"
        assert client.get("/credits/balance", headers=pro_headers).json()["total_balance"] == 125

    def test_grant_to_homeowner_is_404(self, client, homeowner, admin_headers):
        response = client.post(
            "/admin/credits/grant",
            json={"professional_id": homeowner.id, "amount": 5, "reason": "Oops"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_pros_cannot_grant(self, client, pro, pro_headers):
        response = client.post(
            "/admin/credits/grant",
            json={"professional_id": pro.id, "amount": 5, "reason": "Free money"},
            headers=pro_headers,
        )
        assert response.status_code == 403

    def test_admin_transaction_log(self, client, pro, admin_headers):
        response = client.get(f"/admin/credits/transactions?professional_id={pro.id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 1


# ============================================================================
# EXPIRY
# ============================================================================


class TestExpiry:
    def test_expire_old_credits(self, db, make_user):
        pro = make_user("expiring@example.com", role="pro", verification_status="basic")
        service = CreditService(db)
        service.add_credits(
            pro.id, 12, credit_type="paid", type="purchase", expires_at=datetime.utcnow() + timedelta(days=1)
        )
        service.add_credits(pro.id, 3, credit_type="free", type="bonus")

        result = service.expire_old_credits(now=datetime.utcnow() + timedelta(days=2))
        assert result == {"expired_grants": 1, "credits_expired": 12}

        balance = service.get_balance(pro.id)
        assert balance.total_balance == 3
        assert balance.paid_credits == 0

        expiry = db.query(CreditTransaction).filter(CreditTransaction.type == "expiry").one()
        assert expiry.amount == -12

    def test_nothing_to_expire(self, db, make_user):
        make_user("fresh@example.com", role="pro", verification_status="basic", credits=10)
        assert CreditService(db).expire_old_credits() == {"expired_grants": 0, "credits_expired": 0}

    def test_package_bonus_outlives_purchased_credits(self, db, make_user):
        pro = make_user("bundle@example.com", role="pro", verification_status="basic")
        service = CreditService(db)
        purchase = service.create_purchase(pro.id, "professional")
        service.complete_purchase(purchase.payment_reference)

        grants = db.query(CreditTransaction).filter(CreditTransaction.purchase_id == purchase.id).all()
        paid = next(g for g in grants if g.credit_type == "paid")
        bonus = next(g for g in grants if g.credit_type == "free")
        assert bonus.expires_at is None
        assert (paid.expires_at - datetime.utcnow()).days in (179, 180)

        result = service.expire_old_credits(now=datetime.utcnow() + timedelta(days=181))
        assert result == {"expired_grants": 1, "credits_expired": 150}

        balance = service.get_balance(pro.id)
        assert balance.total_balance == 10
        assert balance.free_credits == 10

    def test_free_grants_with_an_expiry_are_not_swept(self, db, make_user):
        pro = make_user("legacy@example.com", role="pro", verification_status="basic")
        service = CreditService(db)
        service.add_credits(
            pro.id, 5, credit_type="free", type="bonus", expires_at=datetime.utcnow() - timedelta(days=1)
        )
        assert service.expire_old_credits() == {"expired_grants": 0, "credits_expired": 0}

    def test_balance_excludes_lapsed_grants_before_the_job_runs(self, db, make_user):
        pro = make_user("lapsed@example.com", role="pro", verification_status="basic")
        service = CreditService(db)
        service.add_credits(
            pro.id, 50, credit_type="paid", type="purchase", expires_at=datetime.utcnow() - timedelta(days=1)
        )
        service.add_credits(pro.id, 8, credit_type="paid", type="purchase")

        balance = service.get_balance(pro.id)
        assert balance.total_balance == 8
        assert balance.paid_credits == 8

    def test_spend_sweeps_lapsed_grants(self, db, make_user):
        pro = make_user("sweep@example.com", role="pro", verification_status="basic")
        service = CreditService(db)
        service.add_credits(
            pro.id, 50, credit_type="paid", type="purchase", expires_at=datetime.utcnow() - timedelta(days=1)
        )
        service.add_credits(pro.id, 8, credit_type="paid", type="purchase")

        tx = service.spend_credits(pro.id, 5, "Claimed lead")
        assert tx.balance_before == 8
        assert tx.balance_after == 3

        expiry = db.query(CreditTransaction).filter(CreditTransaction.type == "expiry").one()
        assert expiry.amount == -50


def test_claim_spends_from_signup_style_bonus_first(client, db, post_lead, make_user):
    pro = make_user("bonus@example.com", role="pro", verification_status="basic", credits=20)
    CreditService(db).grant_bonus(pro.id, 10, "Welcome bonus")
    lead = post_lead()

    response = client.post(f"/leads/{lead['id']}/claim", headers=auth_headers(pro))
    assert response.status_code == 201

    balance = CreditService(db).get_balance(pro.id)
    db.refresh(balance)
    assert balance.free_credits == 0
    assert balance.paid_credits == 20
