"""Admin dashboard, pro verification and user moderation"""

from homezy.models import Notification


class TestDashboard:
    def test_counts(self, client, admin_headers, homeowner, pro, unverified_pro, claimed_lead):
        stats = client.get("/admin/dashboard", headers=admin_headers).json()
        assert stats["users_by_role"] == {"homeowner": 1, "pro": 2, "admin": 1}
        assert stats["pros_by_verification"]["basic"] == 1
        assert stats["pros_by_verification"]["pending"] == 1
        assert stats["leads_by_status"]["open"] == 1
        assert stats["credits"]["purchased"] == 100
        assert stats["credits"]["spent"] == 10
        assert stats["revenue"]["completed_purchases"] == 0

    def test_admin_only(self, client, homeowner_headers, pro_headers):
        assert client.get("/admin/dashboard", headers=homeowner_headers).status_code == 403
        assert client.get("/admin/dashboard", headers=pro_headers).status_code == 403
        assert client.get("/admin/dashboard").status_code in (401, 403)


class TestProVerification:
    def test_list_and_filter(self, client, admin_headers, pro, unverified_pro):
        listed = client.get("/admin/pros", headers=admin_headers).json()
        assert listed["total"] == 2

        pending = client.get("/admin/pros?verification_status=pending", headers=admin_headers).json()
        assert [u["id"] for u in pending["users"]] == [unverified_pro.id]

        found = client.get("/admin/pros?search=Pat", headers=admin_headers).json()
        assert [u["id"] for u in found["users"]] == [pro.id]

    def test_detail(self, client, admin_headers, pro, claimed_lead):
        detail = client.get(f"/admin/pros/{pro.id}", headers=admin_headers).json()
        assert detail["credit_balance"] == 90
        assert detail["lifetime_spent"] == 10
        assert detail["claims"] == 1
        assert detail["last_claim_at"] is not None

    def test_detail_for_homeowner_is_404(self, client, admin_headers, homeowner):
        assert client.get(f"/admin/pros/{homeowner.id}", headers=admin_headers).status_code == 404

    def test_approve(self, client, db, admin, admin_headers, unverified_pro):
        response = client.post(
            f"/admin/pros/{unverified_pro.id}/approve", json={"level": "comprehensive"}, headers=admin_headers
        )
        assert response.status_code == 200
        profile = response.json()["pro_profile"]
        assert profile["verification_status"] == "comprehensive"
        assert profile["verified_at"] is not None

        notification = db.query(Notification).filter(Notification.user_id == unverified_pro.id).one()
        assert notification.type == "pro_approved"

    def test_approved_pro_can_claim(self, client, admin_headers, unverified_pro, unverified_pro_headers, post_lead):
        lead = post_lead()
        assert client.post(f"/leads/{lead['id']}/claim", headers=unverified_pro_headers).status_code == 403

        client.post(f"/admin/pros/{unverified_pro.id}/approve", json={"level": "basic"}, headers=admin_headers)
        response = client.post(f"/leads/{lead['id']}/claim", headers=unverified_pro_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_CREDITS"

    def test_invalid_level(self, client, admin_headers, unverified_pro):
        response = client.post(
            f"/admin/pros/{unverified_pro.id}/approve", json={"level": "platinum"}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_reject(self, client, db, admin_headers, unverified_pro):
        response = client.post(
            f"/admin/pros/{unverified_pro.id}/reject",
            json={"reason": "  Trade licence expired  "},
            headers=admin_headers,
        )
        profile = response.json()["pro_profile"]
        assert profile["verification_status"] == "rejected"
        assert profile["rejection_reason"] == "Trade licence expired"

        notification = db.query(Notification).filter(Notification.user_id == unverified_pro.id).one()
        assert notification.type == "pro_rejected"

    def test_reject_needs_reason(self, client, admin_headers, unverified_pro):
        response = client.post(
            f"/admin/pros/{unverified_pro.id}/reject", json={"reason": "  "}, headers=admin_headers
        )
        assert response.status_code == 422


class TestUsers:
    def test_homeowners(self, client, admin_headers, homeowner, other_homeowner):
        listed = client.get("/admin/homeowners?search=omar", headers=admin_headers).json()
        assert [u["id"] for u in listed["users"]] == [other_homeowner.id]

    def test_deactivate_blocks_login(self, client, admin_headers, homeowner, homeowner_headers):
        response = client.patch(
            f"/admin/users/{homeowner.id}/status", json={"is_active": False}, headers=admin_headers
        )
        assert response.json()["is_active"] is False
        assert client.get("/leads/me", headers=homeowner_headers).status_code in (401, 403)

    def test_admins_cannot_be_deactivated(self, client, admin, admin_headers):
        response = client.patch(f"/admin/users/{admin.id}/status", json={"is_active": False}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "CANNOT_DEACTIVATE_ADMIN"

    def test_unknown_user(self, client, admin_headers):
        assert client.get("/admin/users/9999", headers=admin_headers).status_code == 404


class TestLeads:
    def test_list_shows_contact_details(self, client, admin_headers, claimed_lead):
        listed = client.get("/admin/leads?status=open", headers=admin_headers).json()
        assert listed["total"] == 1
        assert listed["leads"][0]["full_address"] == "Villa 12, Street 4, Jumeirah 1"

    def test_detail(self, client, admin_headers, submitted_quote, claimed_lead, pro):
        detail = client.get(f"/admin/leads/{claimed_lead['id']}", headers=admin_headers).json()
        assert detail["lead"]["id"] == claimed_lead["id"]
        assert detail["claims"][0]["professional"]["id"] == pro.id
        assert detail["quotes"][0]["total"] == 840
