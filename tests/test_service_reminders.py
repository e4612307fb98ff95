"""Recurring maintenance reminders and the daily reminder run"""

import asyncio
from datetime import datetime, timedelta

import pytest

from conftest import auth_headers
from homezy import worker
from homezy.domain.service_reminders.service import ServiceReminderService
from homezy.models import Notification
from homezy.models_home import ServiceHistory, ServiceReminder
from homezy.services import status_automation


def add_reminder(client, headers, **overrides):
    payload = {"title": "AC filter change", "category": "hvac", "frequency": "quarterly"}
    payload.update(overrides)
    response = client.post("/service-reminders", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def due_in(days: int) -> str:
    return (datetime.utcnow() + timedelta(days=days)).replace(hour=12, minute=0, second=0, microsecond=0).isoformat()


def sent_thresholds(db, reminder_id: int) -> list[int]:
    db.expire_all()
    reminder = db.query(ServiceReminder).filter(ServiceReminder.id == reminder_id).one()
    return [entry["days_before_due"] for entry in reminder.reminders_sent]


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    async def fake_send(**kwargs):
        sent.append(kwargs)

    monkeypatch.setattr("homezy.worker.send_service_reminder_email", fake_send)
    return sent


class TestReminders:
    def test_due_date_from_last_service(self, client, homeowner_headers):
        reminder = add_reminder(client, homeowner_headers, last_service_date="2026-01-01T09:00:00")
        assert reminder["next_due_date"] == "2026-04-02T09:00:00"
        assert reminder["reminder_lead_days"] == [30, 7, 1]
        assert reminder["status"] == "active"

    def test_custom_frequency_needs_interval(self, client, homeowner_headers):
        payload = {"title": "Pool service", "category": "pool-maintenance", "frequency": "custom"}
        assert client.post("/service-reminders", json=payload, headers=homeowner_headers).status_code == 422

        reminder = add_reminder(
            client,
            homeowner_headers,
            frequency="custom",
            custom_interval_days=10,
            last_service_date="2026-03-01T00:00:00",
        )
        assert reminder["next_due_date"] == "2026-03-11T00:00:00"

    def test_lead_days_normalized(self, client, homeowner_headers):
        reminder = add_reminder(client, homeowner_headers, reminder_lead_days=[1, 14, 14, 3])
        assert reminder["reminder_lead_days"] == [14, 3, 1]

    def test_property_must_be_own(self, client, homeowner_headers, other_homeowner):
        prop = client.post("/properties", json={"name": "Marina flat"}, headers=auth_headers(other_homeowner)).json()
        response = client.post(
            "/service-reminders",
            json={"title": "Deep clean", "category": "cleaning", "frequency": "monthly", "property_id": prop["id"]},
            headers=homeowner_headers,
        )
        assert response.status_code == 404

    def test_owner_isolation(self, client, homeowner_headers, other_homeowner):
        reminder = add_reminder(client, homeowner_headers)
        response = client.get(f"/service-reminders/{reminder['id']}", headers=auth_headers(other_homeowner))
        assert response.status_code == 404

    def test_pros_have_no_reminders(self, client, pro_headers):
        assert client.get("/service-reminders", headers=pro_headers).status_code == 403

    def test_upcoming_and_overdue(self, client, homeowner_headers):
        soon = add_reminder(client, homeowner_headers, title="Soon", next_due_date=due_in(5))
        add_reminder(client, homeowner_headers, title="Later", next_due_date=due_in(60))
        late = add_reminder(client, homeowner_headers, title="Late", next_due_date=due_in(-3))

        upcoming = client.get("/service-reminders/upcoming?days=30", headers=homeowner_headers).json()
        assert [r["id"] for r in upcoming] == [soon["id"]]
        overdue = client.get("/service-reminders/overdue", headers=homeowner_headers).json()
        assert [r["id"] for r in overdue] == [late["id"]]

        client.post(f"/service-reminders/{late['id']}/pause", headers=homeowner_headers)
        assert client.get("/service-reminders/overdue", headers=homeowner_headers).json() == []

    def test_snooze_pause_resume(self, client, homeowner_headers):
        reminder = add_reminder(client, homeowner_headers)
        url = f"/service-reminders/{reminder['id']}"

        snoozed = client.post(f"{url}/snooze", json={"days": 3}, headers=homeowner_headers).json()
        assert snoozed["status"] == "snoozed"
        assert snoozed["snooze_until"] is not None

        paused = client.post(f"{url}/pause", headers=homeowner_headers).json()
        assert paused["status"] == "paused"
        response = client.post(f"{url}/snooze", json={"days": 3}, headers=homeowner_headers)
        assert response.json()["code"] == "REMINDER_PAUSED"

        resumed = client.post(f"{url}/resume", headers=homeowner_headers).json()
        assert resumed["status"] == "active"
        assert resumed["snooze_until"] is None

    def test_complete_rolls_forward_and_logs_service(self, client, db, homeowner_headers):
        reminder = add_reminder(client, homeowner_headers, frequency="monthly", next_due_date=due_in(2))

        response = client.post(
            f"/service-reminders/{reminder['id']}/complete",
            json={"completed_at": "2026-05-01T10:00:00", "cost": 120, "provider_name": "Cool Breeze"},
            headers=homeowner_headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["reminder"]["last_service_date"] == "2026-05-01T10:00:00"
        assert body["reminder"]["next_due_date"] == "2026-05-31T10:00:00"
        assert body["reminder"]["reminders_sent"] == []

        record = db.query(ServiceHistory).filter(ServiceHistory.id == body["service_record_id"]).one()
        assert record.service_type == "maintenance"
        assert record.category == "hvac"
        assert record.cost == 120

    def test_complete_without_history_record(self, client, homeowner_headers):
        reminder = add_reminder(client, homeowner_headers)
        body = client.post(
            f"/service-reminders/{reminder['id']}/complete", json={"record_service": False}, headers=homeowner_headers
        ).json()
        assert body["service_record_id"] is None

    def test_update_and_delete(self, client, homeowner_headers):
        reminder = add_reminder(client, homeowner_headers)
        url = f"/service-reminders/{reminder['id']}"

        updated = client.patch(url, json={"title": "AC filter + coil clean"}, headers=homeowner_headers).json()
        assert updated["title"] == "AC filter + coil clean"
        response = client.patch(url, json={"frequency": "custom"}, headers=homeowner_headers)
        assert response.json()["code"] == "INVALID_INTERVAL"

        assert client.delete(url, headers=homeowner_headers).status_code == 200
        assert client.get(url, headers=homeowner_headers).status_code == 404


class TestDailyRun:
    def test_each_threshold_fires_once(self, client, db, homeowner, homeowner_headers):
        reminder = add_reminder(client, homeowner_headers, next_due_date=due_in(10))
        service = ServiceReminderService(db)
        now = datetime.utcnow()

        emails = service.send_due_reminders(now)
        assert [e["days_until_due"] for e in emails] == [10]
        assert emails[0]["to"] == homeowner.email
        assert sent_thresholds(db, reminder["id"]) == [30]
        assert service.send_due_reminders(now) == []

        service.send_due_reminders(now + timedelta(days=3))
        assert sent_thresholds(db, reminder["id"]) == [30, 7]

        notifications = (
            db.query(Notification)
            .filter(Notification.user_id == homeowner.id, Notification.type == "service_reminder")
            .all()
        )
        assert len(notifications) == 2
        assert notifications[0].data["reminder_id"] == reminder["id"]

    def test_missed_thresholds_collapse_to_nearest(self, client, db, homeowner_headers):
        reminder = add_reminder(client, homeowner_headers, next_due_date=due_in(5))
        ServiceReminderService(db).send_due_reminders()
        assert sent_thresholds(db, reminder["id"]) == [7]

    def test_paused_and_overdue_are_skipped(self, client, db, homeowner_headers):
        paused = add_reminder(client, homeowner_headers, next_due_date=due_in(1))
        client.post(f"/service-reminders/{paused['id']}/pause", headers=homeowner_headers)
        add_reminder(client, homeowner_headers, next_due_date=due_in(-2))

        assert ServiceReminderService(db).send_due_reminders() == []

    def test_snooze_ends_on_schedule(self, client, db, homeowner_headers):
        reminder = add_reminder(client, homeowner_headers, next_due_date=due_in(6))
        client.post(f"/service-reminders/{reminder['id']}/snooze", json={"days": 2}, headers=homeowner_headers)
        service = ServiceReminderService(db)

        assert service.send_due_reminders() == []
        assert len(service.send_due_reminders(datetime.utcnow() + timedelta(days=3))) == 1
        db.expire_all()
        stored = db.query(ServiceReminder).filter(ServiceReminder.id == reminder["id"]).one()
        assert stored.status == "active"
        assert stored.snooze_until is None

    def test_status_automation_summary(self, client, db, homeowner_headers):
        add_reminder(client, homeowner_headers, next_due_date=due_in(1))
        assert status_automation.send_service_reminders(db) == {"reminders_sent": 1}

    def test_worker_sends_emails(self, client, db, homeowner, homeowner_headers, sent_emails):
        add_reminder(client, homeowner_headers, title="Water tank cleaning", next_due_date=due_in(7))

        assert asyncio.run(worker.send_service_reminders_task({})) == {"reminders_sent": 1}
        assert sent_emails[0]["to"] == homeowner.email
        assert sent_emails[0]["reminder_title"] == "Water tank cleaning"
        assert sent_emails[0]["property_name"] == "your home"
