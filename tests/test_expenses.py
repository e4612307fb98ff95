"""Home expense tracking"""

from conftest import auth_headers


def add_expense(client, headers, **overrides):
    payload = {
        "title": "AC service",
        "category": "maintenance",
        "amount": 350,
        "date": "2026-03-14T10:00:00",
        "vendor_name": "Cool Breeze",
        "tags": ["AC", "summer", "ac "],
    }
    payload.update(overrides)
    response = client.post("/expenses", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestExpenses:
    def test_create_normalizes_fields(self, client, homeowner_headers):
        expense = add_expense(client, homeowner_headers, currency="aed")
        assert expense["currency"] == "AED"
        assert expense["tags"] == ["ac", "summer"]
        assert expense["vendor_type"] == "external"

    def test_only_aed(self, client, homeowner_headers):
        response = client.post(
            "/expenses",
            json={"title": "Sofa", "category": "furniture", "amount": 900, "currency": "USD", "date": "2026-01-01T00:00:00"},
            headers=homeowner_headers,
        )
        assert response.status_code == 422

    def test_amount_must_be_positive(self, client, homeowner_headers):
        response = client.post(
            "/expenses",
            json={"title": "Refund", "category": "other", "amount": 0, "date": "2026-01-01T00:00:00"},
            headers=homeowner_headers,
        )
        assert response.status_code == 422

    def test_list_filters_and_order(self, client, homeowner_headers):
        add_expense(client, homeowner_headers, title="January repair", category="repair", date="2026-01-05T09:00:00")
        add_expense(client, homeowner_headers, title="March service", date="2026-03-14T10:00:00")
        add_expense(client, homeowner_headers, title="Old bill", category="utilities", date="2025-11-01T09:00:00")

        listed = client.get("/expenses", headers=homeowner_headers).json()
        assert [e["title"] for e in listed["expenses"]] == ["March service", "January repair", "Old bill"]

        repairs = client.get("/expenses?category=repair", headers=homeowner_headers).json()
        assert repairs["total"] == 1

        this_year = client.get(
            "/expenses?start_date=2026-01-01T00:00:00&end_date=2026-12-31T23:59:59", headers=homeowner_headers
        ).json()
        assert this_year["total"] == 2

    def test_reversed_date_range(self, client, homeowner_headers):
        response = client.get(
            "/expenses?start_date=2026-12-01T00:00:00&end_date=2026-01-01T00:00:00", headers=homeowner_headers
        )
        assert response.status_code == 400

    def test_summary_by_category_and_month(self, client, homeowner_headers):
        add_expense(client, homeowner_headers, amount=350, date="2026-03-14T10:00:00")
        add_expense(client, homeowner_headers, amount=150, date="2026-03-20T10:00:00")
        add_expense(client, homeowner_headers, category="repair", amount=1000, date="2026-05-02T10:00:00")
        add_expense(client, homeowner_headers, amount=999, date="2025-12-31T10:00:00")

        summary = client.get("/expenses/summary?year=2026", headers=homeowner_headers).json()
        assert summary["total"] == 1500
        assert summary["count"] == 3
        assert summary["by_category"] == {"maintenance": 500, "repair": 1000}
        assert summary["by_month"] == {"2026-03": 500, "2026-05": 1000}

    def test_links_must_belong_to_owner(self, client, homeowner_headers, other_homeowner):
        project = client.post(
            "/home-projects", json={"name": "Their project"}, headers=auth_headers(other_homeowner)
        ).json()
        response = client.post(
            "/expenses",
            json={
                "title": "Tiles",
                "category": "renovation",
                "amount": 700,
                "date": "2026-02-01T00:00:00",
                "home_project_id": project["id"],
            },
            headers=homeowner_headers,
        )
        assert response.status_code == 404

    def test_update_and_delete(self, client, homeowner_headers):
        expense = add_expense(client, homeowner_headers)
        response = client.patch(f"/expenses/{expense['id']}", json={"amount": 400}, headers=homeowner_headers)
        assert response.json()["amount"] == 400
        assert response.json()["title"] == "AC service"

        assert client.delete(f"/expenses/{expense['id']}", headers=homeowner_headers).status_code == 200
        assert client.get(f"/expenses/{expense['id']}", headers=homeowner_headers).status_code == 404

    def test_owner_isolation(self, client, homeowner_headers, other_homeowner):
        expense = add_expense(client, homeowner_headers)
        response = client.get(f"/expenses/{expense['id']}", headers=auth_headers(other_homeowner))
        assert response.status_code == 404
