"""Service history records, timeline and quote linking"""

from conftest import auth_headers


def add_record(client, headers, **overrides):
    payload = {
        "title": "Annual AC maintenance",
        "category": "hvac",
        "service_type": "maintenance",
        "provider_name": "Cool Breeze",
        "cost": 450,
        "completed_at": "2026-04-10T12:00:00",
    }
    payload.update(overrides)
    response = client.post("/service-history", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestRecords:
    def test_manual_record(self, client, homeowner_headers):
        record = add_record(client, homeowner_headers, rating=4)
        assert record["provider_type"] == "external"
        assert record["rating"] == 4
        assert record["documents"] == []

    def test_validation(self, client, homeowner_headers):
        for bad in ({"category": "wizardry"}, {"service_type": "magic"}, {"rating": 6}):
            payload = {
                "title": "Bad",
                "category": "hvac",
                "service_type": "repair",
                "completed_at": "2026-01-01T00:00:00",
                **bad,
            }
            assert client.post("/service-history", json=payload, headers=homeowner_headers).status_code == 422

    def test_list_filters(self, client, homeowner_headers):
        add_record(client, homeowner_headers)
        add_record(client, homeowner_headers, title="Fix socket", category="electrical", service_type="repair")

        everything = client.get("/service-history", headers=homeowner_headers).json()
        assert len(everything) == 2
        repairs = client.get("/service-history?service_type=repair", headers=homeowner_headers).json()
        assert [r["title"] for r in repairs] == ["Fix socket"]

    def test_timeline_groups_by_year(self, client, homeowner_headers):
        add_record(client, homeowner_headers, cost=450, completed_at="2026-04-10T12:00:00")
        add_record(client, homeowner_headers, cost=300, completed_at="2026-09-01T12:00:00")
        add_record(client, homeowner_headers, cost=200, completed_at="2024-06-01T12:00:00")

        timeline = client.get("/service-history/timeline", headers=homeowner_headers).json()
        assert [group["year"] for group in timeline] == [2026, 2024]
        assert timeline[0]["count"] == 2
        assert timeline[0]["total_cost"] == 750
        assert timeline[0]["services"][0]["completed_at"].startswith("2026-09-01")

    def test_latest_by_category(self, client, homeowner_headers):
        add_record(client, homeowner_headers, title="Old AC service", completed_at="2025-04-10T12:00:00")
        add_record(client, homeowner_headers, title="New AC service", completed_at="2026-04-10T12:00:00")
        add_record(client, homeowner_headers, title="Pest treatment", category="pest-control")

        latest = client.get("/service-history/latest-by-category", headers=homeowner_headers).json()
        assert latest["hvac"]["title"] == "New AC service"
        assert latest["pest-control"]["title"] == "Pest treatment"

    def test_update_and_delete(self, client, homeowner_headers):
        record = add_record(client, homeowner_headers)
        response = client.patch(f"/service-history/{record['id']}", json={"rating": 5}, headers=homeowner_headers)
        assert response.json()["rating"] == 5
        assert client.delete(f"/service-history/{record['id']}", headers=homeowner_headers).status_code == 200
        assert client.get(f"/service-history/{record['id']}", headers=homeowner_headers).status_code == 404

    def test_owner_isolation(self, client, homeowner_headers, other_homeowner):
        record = add_record(client, homeowner_headers)
        response = client.get(f"/service-history/{record['id']}", headers=auth_headers(other_homeowner))
        assert response.status_code == 404


class TestQuoteLinking:
    def test_accepted_quote_fills_provider(self, client, submitted_quote, homeowner_headers, pro):
        client.post(f"/quotes/{submitted_quote['id']}/accept", headers=homeowner_headers)

        record = add_record(
            client, homeowner_headers, quote_id=submitted_quote["id"], provider_name=None, cost=None
        )
        assert record["provider_type"] == "homezy"
        assert record["professional_id"] == pro.id
        assert record["provider_name"] == pro.full_name
        assert record["cost"] == 840

    def test_pending_quote_rejected(self, client, submitted_quote, homeowner_headers):
        response = client.post(
            "/service-history",
            json={
                "title": "Sink fixed",
                "category": "plumbing",
                "service_type": "repair",
                "completed_at": "2026-04-10T12:00:00",
                "quote_id": submitted_quote["id"],
            },
            headers=homeowner_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "QUOTE_NOT_ACCEPTED"

    def test_other_homeowners_quote_not_found(self, client, submitted_quote, homeowner_headers, other_homeowner):
        client.post(f"/quotes/{submitted_quote['id']}/accept", headers=homeowner_headers)
        response = client.post(
            "/service-history",
            json={
                "title": "Not my job",
                "category": "plumbing",
                "service_type": "repair",
                "completed_at": "2026-04-10T12:00:00",
                "quote_id": submitted_quote["id"],
            },
            headers=auth_headers(other_homeowner),
        )
        assert response.status_code == 404
