"""Quote submission and the homeowner accept/decline flow"""

from conftest import auth_headers, quote_payload
from homezy.models import Lead, LeadClaim, Notification
from homezy.models_home import HomeProject


class TestSubmit:
    def test_submit_computes_vat(self, client, db, submitted_quote, claimed_lead, pro):
        assert submitted_quote["status"] == "pending"
        assert submitted_quote["subtotal"] == 800
        assert submitted_quote["vat"] == 40
        assert submitted_quote["total"] == 840
        assert submitted_quote["lead_title"] == claimed_lead["title"]

        db.expire_all()
        assert db.query(Lead).filter(Lead.id == claimed_lead["id"]).one().status == "quoted"
        claim = db.query(LeadClaim).filter(LeadClaim.professional_id == pro.id).one()
        assert claim.quote_submitted is True

    def test_homeowner_notified(self, client, db, submitted_quote, homeowner):
        types = {n.type for n in db.query(Notification).filter(Notification.user_id == homeowner.id)}
        assert "quote_received" in types

    def test_must_claim_first(self, client, post_lead, pro_headers):
        lead = post_lead()
        response = client.post("/quotes", json=quote_payload(lead["id"]), headers=pro_headers)
        assert response.status_code == 403
        assert response.json()["code"] == "LEAD_NOT_CLAIMED"

    def test_one_quote_per_pro(self, client, submitted_quote, claimed_lead, pro_headers):
        response = client.post("/quotes", json=quote_payload(claimed_lead["id"]), headers=pro_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "QUOTE_EXISTS"

    def test_item_total_must_match(self, client, claimed_lead, pro_headers):
        payload = quote_payload(
            claimed_lead["id"],
            items=[{"description": "Labour", "quantity": 2, "unit_price": 100, "total": 500}],
        )
        response = client.post("/quotes", json=payload, headers=pro_headers)
        assert response.status_code == 422

    def test_completion_after_start(self, client, claimed_lead, pro_headers):
        payload = quote_payload(claimed_lead["id"], estimated_completion_date="2030-01-01T09:00:00")
        response = client.post("/quotes", json=payload, headers=pro_headers)
        assert response.status_code == 422

    def test_my_quotes(self, client, submitted_quote, pro_headers, claimed_lead):
        response = client.get("/quotes/me", headers=pro_headers)
        assert response.json()["total"] == 1
        mine = client.get(f"/quotes/lead/{claimed_lead['id']}/mine", headers=pro_headers)
        assert mine.json()["id"] == submitted_quote["id"]


class TestEditAndWithdraw:
    def test_update_recomputes_totals(self, client, submitted_quote, pro_headers):
        response = client.patch(
            f"/quotes/{submitted_quote['id']}",
            json={"items": [{"description": "Labour", "quantity": 2, "unit_price": 500, "total": 1000}]},
            headers=pro_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["subtotal"] == 1000
        assert body["total"] == 1050

    def test_other_pro_cannot_edit(self, client, submitted_quote, comprehensive_pro):
        response = client.patch(
            f"/quotes/{submitted_quote['id']}", json={"notes": "Mine now"}, headers=auth_headers(comprehensive_pro)
        )
        assert response.status_code == 403

    def test_withdraw(self, client, db, submitted_quote, pro, pro_headers):
        response = client.post(f"/quotes/{submitted_quote['id']}/withdraw", headers=pro_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "withdrawn"

        db.expire_all()
        claim = db.query(LeadClaim).filter(LeadClaim.professional_id == pro.id).one()
        assert claim.quote_submitted is False

        again = client.post(f"/quotes/{submitted_quote['id']}/withdraw", headers=pro_headers)
        assert again.status_code == 400

    def test_resubmit_after_withdraw(self, client, db, submitted_quote, claimed_lead, pro, pro_headers):
        client.post(f"/quotes/{submitted_quote['id']}/withdraw", headers=pro_headers)

        response = client.post(
            "/quotes",
            json=quote_payload(
                claimed_lead["id"],
                items=[{"description": "Revised job", "quantity": 1, "unit_price": 600, "total": 600}],
            ),
            headers=pro_headers,
        )
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["id"] == submitted_quote["id"]
        assert body["status"] == "pending"
        assert body["total"] == 630

        db.expire_all()
        claim = db.query(LeadClaim).filter(LeadClaim.professional_id == pro.id).one()
        assert claim.quote_submitted is True


class TestHomeownerDecisions:
    def _second_quote(self, client, lead_id, pro):
        headers = auth_headers(pro)
        assert client.post(f"/leads/{lead_id}/claim", headers=headers).status_code == 201
        response = client.post(
            "/quotes",
            json=quote_payload(
                lead_id,
                items=[{"description": "Full job", "quantity": 1, "unit_price": 700, "total": 700}],
            ),
            headers=headers,
        )
        assert response.status_code == 201
        return response.json()

    def test_list_sorted_by_price(self, client, submitted_quote, claimed_lead, comprehensive_pro, homeowner_headers):
        cheaper = self._second_quote(client, claimed_lead["id"], comprehensive_pro)
        response = client.get(f"/quotes/lead/{claimed_lead['id']}?sort=price-low", headers=homeowner_headers)
        assert response.status_code == 200
        assert [q["id"] for q in response.json()["quotes"]] == [cheaper["id"], submitted_quote["id"]]

    def test_other_homeowner_cannot_list(self, client, submitted_quote, claimed_lead, other_homeowner):
        response = client.get(f"/quotes/lead/{claimed_lead['id']}", headers=auth_headers(other_homeowner))
        assert response.status_code == 403

    def test_accept_declines_others_and_opens_project(
        self, client, db, submitted_quote, claimed_lead, comprehensive_pro, homeowner, homeowner_headers
    ):
        other = self._second_quote(client, claimed_lead["id"], comprehensive_pro)

        response = client.post(f"/quotes/{submitted_quote['id']}/accept", headers=homeowner_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["quote"]["status"] == "accepted"
        assert body["declined_quotes"] == 1

        other_now = client.get(f"/quotes/{other['id']}", headers=homeowner_headers).json()
        assert other_now["status"] == "declined"

        db.expire_all()
        lead = db.query(Lead).filter(Lead.id == claimed_lead["id"]).one()
        assert lead.status == "accepted"
        assert lead.accepted_quote_id == submitted_quote["id"]

        project = db.query(HomeProject).filter(HomeProject.id == body["home_project_id"]).one()
        assert project.homeowner_id == homeowner.id
        assert project.linked_quote_id == submitted_quote["id"]
        assert project.budget_estimated == 840
        assert project.category == "custom"

        pro_notifications = db.query(Notification).filter(Notification.user_id == comprehensive_pro.id).all()
        assert "quote_declined" in {n.type for n in pro_notifications}

    def test_cannot_accept_twice(self, client, submitted_quote, homeowner_headers):
        client.post(f"/quotes/{submitted_quote['id']}/accept", headers=homeowner_headers)
        response = client.post(f"/quotes/{submitted_quote['id']}/accept", headers=homeowner_headers)
        assert response.status_code == 400

    def test_pro_cannot_accept_own_quote(self, client, submitted_quote, pro_headers):
        response = client.post(f"/quotes/{submitted_quote['id']}/accept", headers=pro_headers)
        assert response.status_code == 403

    def test_decline_with_reason(self, client, submitted_quote, homeowner_headers):
        response = client.post(
            f"/quotes/{submitted_quote['id']}/decline", json={"reason": "Over budget"}, headers=homeowner_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "declined"
        assert response.json()["decline_reason"] == "Over budget"

    def test_quote_visible_to_parties_only(self, client, submitted_quote, pro_headers, other_homeowner):
        assert client.get(f"/quotes/{submitted_quote['id']}", headers=pro_headers).status_code == 200
        response = client.get(f"/quotes/{submitted_quote['id']}", headers=auth_headers(other_homeowner))
        assert response.status_code == 403
