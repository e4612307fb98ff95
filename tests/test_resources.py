"""Help-center articles: public reads and the admin CMS"""

from homezy.domain.resources.service import calculate_reading_time


def create_resource(client, headers, **overrides):
    payload = {
        "title": "How to Hire a Plumber in Dubai",
        "excerpt": "What to check before you let anyone near your pipes.",
        "content_body": "<p>" + "word " * 450 + "</p>",
        "category": "hiring-guides",
        "tags": ["Plumbing", "hiring"],
        "status": "published",
    }
    payload.update(overrides)
    response = client.post("/admin/resources", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestAdminCms:
    def test_create_derives_slug_and_reading_time(self, client, admin_headers, admin):
        resource = create_resource(client, admin_headers)
        assert resource["slug"] == "how-to-hire-a-plumber-in-dubai"
        assert resource["reading_time"] == 3
        assert resource["tags"] == ["plumbing", "hiring"]
        assert resource["published_at"] is not None
        assert resource["created_by"] == admin.id

    def test_without_status_is_draft(self, client, admin_headers):
        resource = create_resource(client, admin_headers, status=None)
        assert resource["status"] == "draft"
        assert resource["published_at"] is None

    def test_html_is_sanitized(self, client, admin_headers):
        resource = create_resource(
            client,
            admin_headers,
            title="<b>Safe</b> title here",
            content_body='<p onclick="steal()">Hello</p><script>alert(1)</script><iframe src="x"></iframe>',
        )
        assert resource["title"] == "Safe title here"
        assert "<script" not in resource["content_body"]
        assert "onclick" not in resource["content_body"]
        assert "<iframe" not in resource["content_body"]
        assert "<p>Hello</p>" in resource["content_body"]

    def test_duplicate_slug(self, client, admin_headers):
        create_resource(client, admin_headers)
        response = client.post(
            "/admin/resources",
            json={"title": "How to hire a plumber in Dubai", "excerpt": "Again", "category": "hiring-guides"},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["code"] == "SLUG_TAKEN"

    def test_invalid_slug(self, client, admin_headers):
        response = client.post(
            "/admin/resources",
            json={"title": "Title", "slug": "Bad Slug!", "excerpt": "x", "category": "hiring-guides"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_update_recomputes_reading_time(self, client, admin_headers):
        resource = create_resource(client, admin_headers)
        response = client.patch(
            f"/admin/resources/{resource['id']}", json={"content_body": "<p>short</p>"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["reading_time"] == 1

    def test_bulk_update_and_delete(self, client, admin_headers):
        ids = [create_resource(client, admin_headers, title=f"Seasonal tip number {i}")["id"] for i in range(3)]

        response = client.post("/admin/resources/bulk-update", json={"ids": ids, "featured": True}, headers=admin_headers)
        assert response.json() == {"updated": 3}
        assert len(client.get("/resources/featured").json()) == 3

        response = client.post("/admin/resources/bulk-delete", json={"ids": ids[:2]}, headers=admin_headers)
        assert response.json() == {"deleted": 2}

    def test_bulk_update_needs_changes(self, client, admin_headers):
        resource = create_resource(client, admin_headers)
        response = client.post("/admin/resources/bulk-update", json={"ids": [resource["id"]]}, headers=admin_headers)
        assert response.status_code == 400

    def test_stats(self, client, admin_headers):
        create_resource(client, admin_headers)
        create_resource(client, admin_headers, title="Draft article title", status="draft")
        stats = client.get("/admin/resources/stats", headers=admin_headers).json()
        assert stats["total"] == 2
        assert stats["published"] == 1
        assert stats["draft"] == 1

    def test_non_admins_blocked(self, client, homeowner_headers):
        assert client.get("/admin/resources", headers=homeowner_headers).status_code == 403


class TestPublic:
    def test_drafts_are_hidden(self, client, admin_headers):
        draft = create_resource(client, admin_headers, status="draft")
        assert client.get("/resources").json()["total"] == 0
        assert client.get(f"/resources/{draft['slug']}").status_code == 404

    def test_view_counter(self, client, admin_headers):
        resource = create_resource(client, admin_headers)
        client.get(f"/resources/{resource['slug']}")
        second = client.get(f"/resources/{resource['slug']}").json()
        assert second["view_count"] == 2
        assert client.get("/resources/popular").json()[0]["id"] == resource["id"]

    def test_filters(self, client, admin_headers):
        create_resource(client, admin_headers)
        create_resource(
            client,
            admin_headers,
            title="Growing your contracting business",
            category="pro-business-tips",
            target_audience="pro",
            tags=["marketing"],
        )

        assert client.get("/resources?category=pro-business-tips").json()["total"] == 1
        assert client.get("/resources?tag=plumbing").json()["total"] == 1
        assert client.get("/resources?audience=homeowner").json()["total"] == 1
        assert client.get("/resources?audience=pro").json()["total"] == 2
        assert client.get("/resources?search=contracting").json()["total"] == 1

    def test_categories(self, client, admin_headers):
        create_resource(client, admin_headers)
        create_resource(client, admin_headers, title="Second hiring guide here")
        assert client.get("/resources/categories").json() == [{"category": "hiring-guides", "count": 2}]

    def test_related_prefers_explicit_links(self, client, admin_headers):
        a = create_resource(client, admin_headers, title="Article A about tiling", category="diy-vs-hire")
        b = create_resource(client, admin_headers, title="Article B about grout", category="case-studies")
        c = create_resource(
            client, admin_headers, title="Article C about tools", category="diy-vs-hire", related_resource_ids=[b["id"]]
        )

        related = client.get(f"/resources/{c['slug']}/related").json()
        assert [r["id"] for r in related] == [b["id"], a["id"]]


def test_reading_time_rounds_up():
    assert calculate_reading_time(None) == 1
    assert calculate_reading_time("word " * 201) == 2
    assert calculate_reading_time("<p>" + "word " * 200 + "</p>") == 1
