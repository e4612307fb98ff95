"""Pro portfolios, the Ideas gallery and photo moderation"""

import pytest

from conftest import auth_headers


@pytest.fixture
def portfolio_project(client, pro_headers):
    response = client.post(
        "/portfolio/projects",
        json={"name": "Jumeirah villa kitchen", "service_category": "kitchen-remodeling", "location_emirate": "Dubai"},
        headers=pro_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def photo(client, portfolio_project, pro_headers):
    response = client.post(
        f"/portfolio/projects/{portfolio_project['id']}/photos",
        json={
            "image_url": "https://cdn.example.com/kitchen.jpg",
            "caption": "Finished island",
            "room_categories": ["kitchen", "kitchen"],
        },
        headers=pro_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def published_photo(client, photo, admin_headers):
    response = client.post(f"/admin/ideas/photos/{photo['id']}/publish", headers=admin_headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestPortfolio:
    def test_create_project(self, portfolio_project):
        assert portfolio_project["location_emirate"] == "dubai"
        assert portfolio_project["photos"] == []

    def test_add_photo_defaults(self, photo):
        assert photo["room_categories"] == ["kitchen"]
        assert photo["admin_status"] == "active"
        assert photo["is_published_to_ideas"] is False
        assert photo["professional"]["business_name"] == "Pat Services"

    def test_upload_photo(self, client, monkeypatch, portfolio_project, pro_headers):
        monkeypatch.setattr(
            "homezy.domain.ideas.service.upload_file",
            lambda content, key, mime_type: f"https://cdn.example.com/{key}",
        )
        response = client.post(
            f"/portfolio/projects/{portfolio_project['id']}/photos/upload",
            files={"file": ("after.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg")},
            data={"photo_type": "after", "room_categories": "kitchen, dining-room"},
            headers=pro_headers,
        )
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["photo_type"] == "after"
        assert body["room_categories"] == ["kitchen", "dining-room"]
        assert body["image_url"].startswith("https://cdn.example.com/portfolio/")

    def test_upload_rejects_bad_room(self, client, monkeypatch, portfolio_project, pro_headers):
        monkeypatch.setattr("homezy.domain.ideas.service.upload_file", lambda *args, **kwargs: "unused")
        response = client.post(
            f"/portfolio/projects/{portfolio_project['id']}/photos/upload",
            files={"file": ("after.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg")},
            data={"room_categories": "dungeon"},
            headers=pro_headers,
        )
        assert response.status_code == 400

    def test_other_pro_cannot_edit(self, client, portfolio_project, comprehensive_pro):
        response = client.patch(
            f"/portfolio/projects/{portfolio_project['id']}",
            json={"name": "Stolen"},
            headers=auth_headers(comprehensive_pro),
        )
        assert response.status_code == 403

    def test_public_projects_hide_removed_photos(self, client, photo, portfolio_project, pro, admin_headers):
        client.patch(
            f"/admin/ideas/photos/{photo['id']}/status",
            json={"status": "removed", "reason": "Watermarked"},
            headers=admin_headers,
        )
        projects = client.get(f"/portfolio/pros/{pro.id}/projects").json()
        assert projects[0]["photos"] == []

    def test_public_projects_need_approved_pro(self, client, unverified_pro):
        assert client.get(f"/portfolio/pros/{unverified_pro.id}/projects").status_code == 404


class TestGallery:
    def test_unpublished_photos_are_hidden(self, client, photo):
        assert client.get("/ideas").json()["total"] == 0
        assert client.get(f"/ideas/{photo['id']}").status_code == 404

    def test_published_photo_visible(self, client, published_photo):
        gallery = client.get("/ideas?room=kitchen").json()
        assert [p["id"] for p in gallery["photos"]] == [published_photo["id"]]
        assert client.get("/ideas?room=bathroom").json()["total"] == 0

        detail = client.get(f"/ideas/{published_photo['id']}").json()
        assert detail["view_count"] == 1

    def test_room_counts(self, client, published_photo):
        counts = {row["room"]: row["count"] for row in client.get("/ideas/rooms").json()}
        assert counts["kitchen"] == 1
        assert counts["bathroom"] == 0

    def test_save_is_idempotent(self, client, published_photo, homeowner_headers):
        url = f"/ideas/{published_photo['id']}/save"
        client.post(url, headers=homeowner_headers)
        response = client.post(url, headers=homeowner_headers)
        assert response.json() == {"photo_id": published_photo["id"], "is_saved": True, "save_count": 1}

        saved = client.get("/ideas/saved", headers=homeowner_headers).json()
        assert saved["total"] == 1
        assert saved["photos"][0]["is_saved"] is True

        gallery = client.get("/ideas", headers=homeowner_headers).json()
        assert gallery["photos"][0]["is_saved"] is True

        response = client.delete(url, headers=homeowner_headers)
        assert response.json()["save_count"] == 0

    def test_opting_out_unpublishes(self, client, published_photo, pro_headers):
        response = client.patch(
            f"/portfolio/photos/{published_photo['id']}", json={"allow_ideas": False}, headers=pro_headers
        )
        assert response.json()["is_published_to_ideas"] is False
        assert client.get("/ideas").json()["total"] == 0

    def test_deactivated_pro_leaves_gallery(self, client, db, published_photo, pro):
        pro.is_active = False
        db.commit()
        assert client.get("/ideas").json()["total"] == 0


class TestModeration:
    def test_cannot_publish_without_consent(self, client, photo, pro_headers, admin_headers):
        client.patch(f"/portfolio/photos/{photo['id']}", json={"allow_ideas": False}, headers=pro_headers)
        response = client.post(f"/admin/ideas/photos/{photo['id']}/publish", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "IDEAS_NOT_ALLOWED"

    def test_removal_requires_reason(self, client, photo, admin_headers):
        response = client.patch(
            f"/admin/ideas/photos/{photo['id']}/status", json={"status": "removed"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_removal_unpublishes(self, client, published_photo, admin_headers):
        response = client.patch(
            f"/admin/ideas/photos/{published_photo['id']}/status",
            json={"status": "removed", "reason": "Copyright claim"},
            headers=admin_headers,
        )
        body = response.json()
        assert body["admin_status"] == "removed"
        assert body["is_published_to_ideas"] is False
        assert body["removal_reason"] == "Copyright claim"

    def test_flagged_photo_cannot_be_published(self, client, photo, admin_headers):
        client.patch(f"/admin/ideas/photos/{photo['id']}/status", json={"status": "flagged"}, headers=admin_headers)
        response = client.post(f"/admin/ideas/photos/{photo['id']}/publish", headers=admin_headers)
        assert response.json()["code"] == "PHOTO_NOT_ACTIVE"

    def test_bulk_status(self, client, photo, admin_headers):
        response = client.post(
            "/admin/ideas/photos/bulk-status",
            json={"photo_ids": [photo["id"]], "status": "flagged"},
            headers=admin_headers,
        )
        assert response.json() == {"updated": 1}
        flagged = client.get("/admin/ideas/photos?status=flagged", headers=admin_headers).json()
        assert flagged["total"] == 1

    def test_pros_cannot_moderate(self, client, photo, pro_headers):
        response = client.post(f"/admin/ideas/photos/{photo['id']}/publish", headers=pro_headers)
        assert response.status_code == 403
