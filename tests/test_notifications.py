"""Notification inbox"""

from conftest import auth_headers
from homezy.services.notification_service import create_notification


class TestInbox:
    def test_list_and_unread_count(self, client, db, homeowner, homeowner_headers):
        create_notification(db, homeowner.id, "quote_received", "New quote", "You have a quote", {"quote_id": 1})
        create_notification(db, homeowner.id, "lead_claimed", "Claimed", "A pro is interested")

        response = client.get("/notifications", headers=homeowner_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["unread_count"] == 2
        assert body["notifications"][0]["type"] == "lead_claimed"
        assert body["notifications"][1]["data"] == {"quote_id": 1}

        assert client.get("/notifications/unread-count", headers=homeowner_headers).json() == {"unread_count": 2}

    def test_mark_one_read(self, client, db, homeowner, homeowner_headers):
        notification = create_notification(db, homeowner.id, "lead_claimed", "Claimed", "A pro is interested")
        response = client.post(f"/notifications/{notification.id}/read", headers=homeowner_headers)
        assert response.status_code == 200
        assert response.json()["is_read"] is True

        unread = client.get("/notifications?unread_only=true", headers=homeowner_headers).json()
        assert unread["total"] == 0

    def test_mark_all_read(self, client, db, homeowner, homeowner_headers):
        for i in range(3):
            create_notification(db, homeowner.id, "new_message", f"Message {i}", "Hello")
        response = client.post("/notifications/read-all", headers=homeowner_headers)
        assert response.json()["updated"] == 3
        assert client.get("/notifications/unread-count", headers=homeowner_headers).json() == {"unread_count": 0}

    def test_cannot_read_someone_elses(self, client, db, homeowner, other_homeowner):
        notification = create_notification(db, homeowner.id, "lead_claimed", "Claimed", "A pro is interested")
        response = client.post(f"/notifications/{notification.id}/read", headers=auth_headers(other_homeowner))
        assert response.status_code == 404

    def test_requires_login(self, client):
        assert client.get("/notifications").status_code == 401
