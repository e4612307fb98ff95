"""Lead posting, marketplace visibility, claiming and direct leads"""

from datetime import datetime, timedelta

import pytest

from conftest import auth_headers, lead_payload
from homezy.domain.leads.service import calculate_credit_cost
from homezy.models import CreditBalance, CreditTransaction, Lead, LeadClaim, Notification, Quote


def balance_of(db, user_id: int) -> int:
    db.expire_all()
    return db.query(CreditBalance).filter(CreditBalance.professional_id == user_id).one().total_balance


# ============================================================================
# CREDIT COST
# ============================================================================


class TestCreditCost:
    @pytest.mark.parametrize(
        "bracket, urgency, status, expected",
        [
            ("500-1k", "flexible", "basic", 5),
            ("1k-5k", "flexible", "basic", 10),
            ("1k-5k", "flexible", "comprehensive", 9),
            ("5k-15k", "emergency", "basic", 30),
            ("5k-15k", "emergency", "comprehensive", 26),
            ("150k+", "urgent", None, 125),
            ("500-1k", "emergency", "comprehensive", 7),
        ],
    )
    def test_cost_table(self, bracket, urgency, status, expected):
        assert calculate_credit_cost(bracket, urgency, status) == expected

    def test_cost_is_at_least_one(self):
        for bracket in ("500-1k", "1k-5k", "5k-15k", "15k-50k", "50k-150k", "150k+"):
            assert calculate_credit_cost(bracket, "planning", "comprehensive") >= 1


# ============================================================================
# POSTING
# ============================================================================


class TestCreateLead:
    def test_create_indirect_lead(self, client, homeowner_headers):
        response = client.post("/leads", json=lead_payload(), headers=homeowner_headers)
        assert response.status_code == 201
        lead = response.json()
        assert lead["status"] == "open"
        assert lead["lead_type"] == "indirect"
        assert lead["claim_count"] == 0
        assert lead["max_claims"] == 5
        assert lead["slots_remaining"] == 5
        assert lead["is_owner"] is True
        assert lead["full_address"] == "Villa 12, Street 4, Jumeirah 1"

    def test_lead_expires_in_seven_days(self, client, homeowner_headers):
        lead = client.post("/leads", json=lead_payload(), headers=homeowner_headers).json()
        expires_at = datetime.fromisoformat(lead["expires_at"])
        created_at = datetime.fromisoformat(lead["created_at"])
        assert timedelta(days=6, hours=23) < expires_at - created_at <= timedelta(days=7, minutes=1)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": "Too short"},
            {"description": "Not nearly long enough"},
            {"category": "teleportation"},
            {"emirate": "atlantis"},
            {"budget_bracket": "1m+"},
            {"urgency": "yesterday"},
        ],
    )
    def test_validation(self, client, homeowner_headers, overrides):
        response = client.post("/leads", json=lead_payload(**overrides), headers=homeowner_headers)
        assert response.status_code == 422

    def test_pros_cannot_post_leads(self, client, pro_headers):
        response = client.post("/leads", json=lead_payload(), headers=pro_headers)
        assert response.status_code == 403

    def test_my_leads(self, client, post_lead, homeowner_headers):
        post_lead()
        post_lead(title="Repaint the living room walls")
        response = client.get("/leads/me", headers=homeowner_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 2


class TestUpdateAndCancel:
    def test_update_before_claims(self, client, post_lead, homeowner_headers):
        lead = post_lead()
        response = client.patch(
            f"/leads/{lead['id']}", json={"urgency": "urgent"}, headers=homeowner_headers
        )
        assert response.status_code == 200
        assert response.json()["urgency"] == "urgent"

    def test_update_locked_after_claim(self, client, claimed_lead, homeowner_headers):
        response = client.patch(
            f"/leads/{claimed_lead['id']}", json={"urgency": "urgent"}, headers=homeowner_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "LEAD_LOCKED"

    def test_other_homeowner_cannot_view(self, client, post_lead, other_homeowner):
        lead = post_lead()
        response = client.get(f"/leads/{lead['id']}", headers=auth_headers(other_homeowner))
        assert response.status_code == 403

    def test_cancel_refunds_claims(self, client, db, claimed_lead, homeowner_headers, pro):
        assert balance_of(db, pro.id) == 90

        response = client.post(f"/leads/{claimed_lead['id']}/cancel", headers=homeowner_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["refunded_claims"] == 1
        assert body["lead"]["status"] == "cancelled"
        assert balance_of(db, pro.id) == 100

        claim = db.query(LeadClaim).filter(LeadClaim.lead_id == claimed_lead["id"]).one()
        assert claim.refunded is True

    def test_cancel_reason_reaches_pros(self, client, db, claimed_lead, submitted_quote, homeowner_headers, pro):
        response = client.post(
            f"/leads/{claimed_lead['id']}/cancel",
            json={"reason": "  Fixed it myself  "},
            headers=homeowner_headers,
        )
        assert response.status_code == 200

        refund = (
            db.query(CreditTransaction)
            .filter(CreditTransaction.professional_id == pro.id, CreditTransaction.type == "refund")
            .one()
        )
        assert refund.description.endswith("(Fixed it myself)")

        notification = (
            db.query(Notification)
            .filter(Notification.user_id == pro.id, Notification.type == "lead_cancelled")
            .one()
        )
        assert "Reason: Fixed it myself" in notification.message
        assert notification.data["reason"] == "Fixed it myself"

        quote = db.query(Quote).filter(Quote.id == submitted_quote["id"]).one()
        assert quote.decline_reason == "Fixed it myself"

    def test_cancel_twice(self, client, post_lead, homeowner_headers):
        lead = post_lead()
        client.post(f"/leads/{lead['id']}/cancel", headers=homeowner_headers)
        response = client.post(f"/leads/{lead['id']}/cancel", headers=homeowner_headers)
        assert response.status_code == 400


# ============================================================================
# MARKETPLACE
# ============================================================================


class TestMarketplace:
    def test_contact_details_hidden_until_claimed(self, client, post_lead, pro_headers):
        lead = post_lead()
        response = client.get("/leads/marketplace", headers=pro_headers)
        assert response.status_code == 200
        listed = response.json()["leads"][0]
        assert listed["id"] == lead["id"]
        assert listed["full_address"] is None
        assert listed["homeowner"] is None
        assert listed["has_claimed"] is False
        assert listed["credit_cost"] == 10

    def test_comprehensive_pro_sees_discounted_cost(self, client, post_lead, comprehensive_pro):
        post_lead()
        response = client.get("/leads/marketplace", headers=auth_headers(comprehensive_pro))
        assert response.json()["leads"][0]["credit_cost"] == 9

    def test_filters(self, client, post_lead, pro_headers):
        post_lead()
        post_lead(title="Install new ceiling lights", category="electrical", emirate="sharjah")

        response = client.get("/leads/marketplace?category=electrical", headers=pro_headers)
        assert [lead["category"] for lead in response.json()["leads"]] == ["electrical"]

        response = client.get("/leads/marketplace?emirate=dubai", headers=pro_headers)
        assert [lead["emirate"] for lead in response.json()["leads"]] == ["dubai"]

        response = client.get("/leads/marketplace?search=ceiling", headers=pro_headers)
        assert response.json()["total"] == 1

    def test_expired_leads_hidden(self, client, db, post_lead, pro_headers):
        lead = post_lead()
        db.query(Lead).filter(Lead.id == lead["id"]).update(
            {Lead.expires_at: datetime.utcnow() - timedelta(minutes=1)}
        )
        db.commit()
        response = client.get("/leads/marketplace", headers=pro_headers)
        assert response.json()["total"] == 0

    def test_pending_direct_leads_hidden(self, client, post_lead, pro, comprehensive_pro):
        post_lead(target_professional_id=pro.id)
        response = client.get("/leads/marketplace", headers=auth_headers(comprehensive_pro))
        assert response.json()["total"] == 0


# ============================================================================
# CLAIMING
# ============================================================================


class TestClaim:
    def test_claim_unlocks_contact_and_spends_credits(self, client, db, post_lead, pro, pro_headers):
        lead = post_lead()
        response = client.post(f"/leads/{lead['id']}/claim", headers=pro_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["credits_spent"] == 10
        assert body["balance_after"] == 90
        assert body["lead"]["claim_count"] == 1
        assert body["lead"]["full_address"] == "Villa 12, Street 4, Jumeirah 1"
        assert body["lead"]["homeowner"]["phone"] == "+971501234567"
        assert balance_of(db, pro.id) == 90

        detail = client.get(f"/leads/{lead['id']}", headers=pro_headers).json()
        assert detail["has_claimed"] is True
        assert detail["homeowner"]["email"] == "owner@example.com"

    def test_homeowner_is_notified(self, client, db, claimed_lead, homeowner):
        notification = db.query(Notification).filter(Notification.user_id == homeowner.id).one()
        assert notification.type == "lead_claimed"
        assert notification.data["lead_id"] == claimed_lead["id"]

    def test_duplicate_claim(self, client, db, claimed_lead, pro, pro_headers):
        response = client.post(f"/leads/{claimed_lead['id']}/claim", headers=pro_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_CLAIMED"
        assert balance_of(db, pro.id) == 90

    def test_unverified_pro_cannot_claim(self, client, post_lead, unverified_pro_headers):
        lead = post_lead()
        response = client.post(f"/leads/{lead['id']}/claim", headers=unverified_pro_headers)
        assert response.status_code == 403
        assert response.json()["code"] == "PRO_NOT_VERIFIED"

    def test_insufficient_credits(self, client, db, post_lead, make_user):
        broke = make_user("broke@example.com", role="pro", verification_status="basic")
        lead = post_lead()
        response = client.post(f"/leads/{lead['id']}/claim", headers=auth_headers(broke))
        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_CREDITS"
        db.expire_all()
        assert db.query(Lead).filter(Lead.id == lead["id"]).one().claim_count == 0

    def test_fifth_claim_fills_lead(self, client, db, post_lead, make_user):
        lead = post_lead()
        pros = [
            make_user(f"pro{i}@example.com", role="pro", verification_status="basic", credits=50)
            for i in range(6)
        ]
        for pro in pros[:5]:
            response = client.post(f"/leads/{lead['id']}/claim", headers=auth_headers(pro))
            assert response.status_code == 201

        db.expire_all()
        stored = db.query(Lead).filter(Lead.id == lead["id"]).one()
        assert stored.claim_count == 5
        assert stored.status == "full"

        response = client.post(f"/leads/{lead['id']}/claim", headers=auth_headers(pros[5]))
        assert response.status_code == 400
        assert response.json()["code"] == "LEAD_FULL"
        assert balance_of(db, pros[5].id) == 50

    def test_lost_race_rolls_back_credits(self, client, db, post_lead, pro, pro_headers):
        lead = post_lead()
        # Another pro took the last slot between the status check and the update
        db.query(Lead).filter(Lead.id == lead["id"]).update({Lead.claim_count: 5})
        db.commit()

        response = client.post(f"/leads/{lead['id']}/claim", headers=pro_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "LEAD_FULL"
        assert balance_of(db, pro.id) == 100
        assert db.query(LeadClaim).count() == 0

    def test_cannot_claim_expired_lead(self, client, db, post_lead, pro_headers):
        lead = post_lead()
        db.query(Lead).filter(Lead.id == lead["id"]).update(
            {Lead.expires_at: datetime.utcnow() - timedelta(seconds=1)}
        )
        db.commit()
        response = client.post(f"/leads/{lead['id']}/claim", headers=pro_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "LEAD_NOT_CLAIMABLE"

    def test_claimed_list_and_claims_for_owner(self, client, claimed_lead, pro_headers, homeowner_headers):
        claimed = client.get("/leads/claimed", headers=pro_headers).json()
        assert claimed["total"] == 1
        assert claimed["leads"][0]["claim"]["credits_cost"] == 10

        claims = client.get(f"/leads/{claimed_lead['id']}/claims", headers=homeowner_headers).json()
        assert len(claims) == 1
        assert claims[0]["professional"]["first_name"] == "Pat"


# ============================================================================
# DIRECT LEADS
# ============================================================================


class TestDirectLeads:
    def test_direct_lead_requires_verified_target(self, client, homeowner_headers, unverified_pro):
        response = client.post(
            "/leads", json=lead_payload(target_professional_id=unverified_pro.id), headers=homeowner_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TARGET_PROFESSIONAL"

    def test_direct_lead_created_pending(self, client, db, post_lead, pro, pro_headers):
        lead = post_lead(target_professional_id=pro.id)
        assert lead["lead_type"] == "direct"
        assert lead["direct_lead_status"] == "pending"

        listed = client.get("/leads/direct", headers=pro_headers).json()
        assert [item["id"] for item in listed] == [lead["id"]]
        assert db.query(Notification).filter(Notification.user_id == pro.id).count() == 1

    def test_accept_is_free(self, client, db, post_lead, pro, pro_headers):
        lead = post_lead(target_professional_id=pro.id)
        response = client.post(f"/leads/direct/{lead['id']}/accept", headers=pro_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["direct_lead_status"] == "accepted"
        assert body["claim_count"] == 1
        assert body["has_claimed"] is True
        assert balance_of(db, pro.id) == 100

    def test_direct_lead_cannot_be_claimed_from_marketplace(self, client, post_lead, pro, comprehensive_pro):
        lead = post_lead(target_professional_id=pro.id)
        response = client.post(f"/leads/{lead['id']}/claim", headers=auth_headers(comprehensive_pro))
        assert response.status_code == 403
        assert response.json()["code"] == "DIRECT_LEAD"

    def test_decline_makes_lead_public(self, client, post_lead, pro, pro_headers, comprehensive_pro):
        lead = post_lead(target_professional_id=pro.id)
        response = client.post(
            f"/leads/direct/{lead['id']}/decline", json={"reason": "Fully booked"}, headers=pro_headers
        )
        assert response.status_code == 200
        assert response.json()["direct_lead_status"] == "declined"

        market = client.get("/leads/marketplace", headers=auth_headers(comprehensive_pro)).json()
        assert [item["id"] for item in market["leads"]] == [lead["id"]]

        response = client.post(f"/leads/{lead['id']}/claim", headers=auth_headers(comprehensive_pro))
        assert response.status_code == 201

    def test_other_pro_cannot_see_pending_direct_lead(self, client, post_lead, pro, comprehensive_pro):
        lead = post_lead(target_professional_id=pro.id)
        response = client.get(f"/leads/{lead['id']}", headers=auth_headers(comprehensive_pro))
        assert response.status_code == 403

    def test_only_target_can_accept(self, client, post_lead, pro, comprehensive_pro):
        lead = post_lead(target_professional_id=pro.id)
        response = client.post(f"/leads/direct/{lead['id']}/accept", headers=auth_headers(comprehensive_pro))
        assert response.status_code == 403
