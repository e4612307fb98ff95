"""
Service reminders - recurring maintenance with reminders ahead of the due date.

A reminder is due every `frequency` interval after the last service. Each
entry in reminder_lead_days (e.g. 30, 7, 1 days before) fires at most once
per due date; completing the service rolls the due date forward and clears
the sent log.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import REMINDER_FREQUENCIES
from ...exceptions import BadRequestError, NotFoundError
from ...models import User
from ...models_home import Property, ServiceHistory, ServiceReminder
from ...services.notification_service import create_notification
from .schemas import ReminderComplete, ReminderCreate, ReminderSnooze, ReminderUpdate

logger = logging.getLogger(__name__)


def interval_days(frequency: str, custom_interval_days: Optional[int] = None) -> int:
    days = REMINDER_FREQUENCIES.get(frequency)
    if days is None:
        if not custom_interval_days:
            raise BadRequestError("custom_interval_days is required for a custom frequency", code="INVALID_INTERVAL")
        return custom_interval_days
    return days


def days_until(due: datetime, now: datetime) -> int:
    return (due.date() - now.date()).days


class ServiceReminderService:
    def __init__(self, db: Session):
        self.db = db

    def _get_own(self, reminder_id: int, owner: User) -> ServiceReminder:
        reminder = (
            self.db.query(ServiceReminder)
            .filter(ServiceReminder.id == reminder_id, ServiceReminder.homeowner_id == owner.id)
            .first()
        )
        if not reminder:
            raise NotFoundError("Service reminder not found")
        return reminder

    def _check_property(self, property_id: Optional[int], owner: User):
        if property_id is None:
            return
        found = (
            self.db.query(Property.id)
            .filter(Property.id == property_id, Property.owner_id == owner.id)
            .first()
        )
        if not found:
            raise NotFoundError("Property not found")

    def create_reminder(self, owner: User, data: ReminderCreate, now: Optional[datetime] = None) -> ServiceReminder:
        now = now or datetime.utcnow()
        self._check_property(data.property_id, owner)
        values = data.model_dump()
        if values["next_due_date"] is None:
            start = data.last_service_date or now
            values["next_due_date"] = start + timedelta(days=interval_days(data.frequency, data.custom_interval_days))

        reminder = ServiceReminder(homeowner_id=owner.id, status="active", reminders_sent=[], **values)
        self.db.add(reminder)
        self.db.commit()
        self.db.refresh(reminder)
        logger.info(f"✅ Service reminder {reminder.id} for user {owner.id} due {reminder.next_due_date.date()}")
        return reminder

    def list_reminders(
        self,
        owner: User,
        status: Optional[str] = None,
        category: Optional[str] = None,
        property_id: Optional[int] = None,
    ) -> list[ServiceReminder]:
        query = self.db.query(ServiceReminder).filter(ServiceReminder.homeowner_id == owner.id)
        if status:
            query = query.filter(ServiceReminder.status == status)
        if category:
            query = query.filter(ServiceReminder.category == category)
        if property_id is not None:
            query = query.filter(ServiceReminder.property_id == property_id)
        return query.order_by(ServiceReminder.next_due_date.asc(), ServiceReminder.id.asc()).all()

    def upcoming(self, owner: User, days: int = 30, now: Optional[datetime] = None) -> list[ServiceReminder]:
        """Non-paused reminders due between now and `days` from now"""
        now = now or datetime.utcnow()
        return (
            self.db.query(ServiceReminder)
            .filter(
                ServiceReminder.homeowner_id == owner.id,
                ServiceReminder.status != "paused",
                ServiceReminder.next_due_date >= now,
                ServiceReminder.next_due_date <= now + timedelta(days=days),
            )
            .order_by(ServiceReminder.next_due_date.asc())
            .all()
        )

    def overdue(self, owner: User, now: Optional[datetime] = None) -> list[ServiceReminder]:
        now = now or datetime.utcnow()
        return (
            self.db.query(ServiceReminder)
            .filter(
                ServiceReminder.homeowner_id == owner.id,
                ServiceReminder.status != "paused",
                ServiceReminder.next_due_date < now,
            )
            .order_by(ServiceReminder.next_due_date.asc())
            .all()
        )

    def get_reminder(self, reminder_id: int, owner: User) -> ServiceReminder:
        return self._get_own(reminder_id, owner)

    def update_reminder(self, reminder_id: int, owner: User, data: ReminderUpdate) -> ServiceReminder:
        reminder = self._get_own(reminder_id, owner)
        updates = {key: value for key, value in data.model_dump(exclude_unset=True).items() if value is not None}
        if "property_id" in updates:
            self._check_property(updates["property_id"], owner)

        frequency = updates.get("frequency", reminder.frequency)
        custom_days = updates.get("custom_interval_days", reminder.custom_interval_days)
        if frequency == "custom" and not custom_days:
            raise BadRequestError("custom_interval_days is required for a custom frequency", code="INVALID_INTERVAL")

        for key, value in updates.items():
            setattr(reminder, key, value)
        if "next_due_date" in updates:
            reminder.reminders_sent = []
        self.db.commit()
        self.db.refresh(reminder)
        return reminder

    def delete_reminder(self, reminder_id: int, owner: User) -> dict:
        reminder = self._get_own(reminder_id, owner)
        self.db.delete(reminder)
        self.db.commit()
        return {"message": "Service reminder deleted"}

    def snooze(
        self, reminder_id: int, owner: User, data: ReminderSnooze, now: Optional[datetime] = None
    ) -> ServiceReminder:
        now = now or datetime.utcnow()
        reminder = self._get_own(reminder_id, owner)
        if reminder.status == "paused":
            raise BadRequestError("Resume the reminder before snoozing it", code="REMINDER_PAUSED")
        reminder.status = "snoozed"
        reminder.snooze_until = now + timedelta(days=data.days)
        self.db.commit()
        self.db.refresh(reminder)
        return reminder

    def pause(self, reminder_id: int, owner: User) -> ServiceReminder:
        reminder = self._get_own(reminder_id, owner)
        reminder.status = "paused"
        reminder.snooze_until = None
        self.db.commit()
        self.db.refresh(reminder)
        return reminder

    def resume(self, reminder_id: int, owner: User) -> ServiceReminder:
        reminder = self._get_own(reminder_id, owner)
        reminder.status = "active"
        reminder.snooze_until = None
        self.db.commit()
        self.db.refresh(reminder)
        return reminder

    def complete(
        self, reminder_id: int, owner: User, data: ReminderComplete, now: Optional[datetime] = None
    ) -> dict:
        """Mark the service done: roll the due date forward and optionally log it in service history"""
        reminder = self._get_own(reminder_id, owner)
        completed_at = data.completed_at or now or datetime.utcnow()

        reminder.last_service_date = completed_at
        reminder.next_due_date = completed_at + timedelta(
            days=interval_days(reminder.frequency, reminder.custom_interval_days)
        )
        reminder.reminders_sent = []
        reminder.status = "active"
        reminder.snooze_until = None

        record = None
        if data.record_service:
            record = ServiceHistory(
                homeowner_id=owner.id,
                property_id=reminder.property_id,
                title=reminder.title,
                description=reminder.description,
                category=reminder.category,
                service_type="maintenance",
                provider_type="external",
                provider_name=data.provider_name,
                cost=data.cost,
                completed_at=completed_at,
                notes=data.notes,
                documents=[],
            )
            self.db.add(record)

        self.db.commit()
        self.db.refresh(reminder)
        logger.info(f"✅ Service reminder {reminder.id} completed, next due {reminder.next_due_date.date()}")
        return {"reminder": reminder, "service_record_id": record.id if record else None}

    @staticmethod
    def reminder_to_send(reminder: ServiceReminder, now: datetime) -> Optional[int]:
        """
        The lead-day threshold that should fire now, if any.

        Thresholds at or above the days left have been reached; the smallest
        of those not already sent for this due date is the one to send, so a
        missed 30-day reminder is skipped once the 7-day one applies.
        """
        remaining = days_until(reminder.next_due_date, now)
        if remaining < 0:
            return None
        due_key = reminder.next_due_date.date().isoformat()
        sent = {entry["days_before_due"] for entry in reminder.reminders_sent or [] if entry.get("due_date") == due_key}
        reached = [day for day in reminder.reminder_lead_days or [] if day >= remaining]
        if not reached:
            return None
        target = min(reached)
        return None if target in sent else target

    def send_due_reminders(self, now: Optional[datetime] = None) -> list[dict]:
        """
        Record and notify every reminder whose next threshold has been reached.

        Returns the email payloads for the caller to deliver.
        """
        now = now or datetime.utcnow()

        woken = (
            self.db.query(ServiceReminder)
            .filter(ServiceReminder.status == "snoozed", ServiceReminder.snooze_until <= now)
            .all()
        )
        for reminder in woken:
            reminder.status = "active"
            reminder.snooze_until = None
        self.db.flush()

        candidates = (
            self.db.query(ServiceReminder)
            .filter(ServiceReminder.status == "active", ServiceReminder.next_due_date >= now - timedelta(days=1))
            .all()
        )

        emails = []
        for reminder in candidates:
            target = self.reminder_to_send(reminder, now)
            if target is None:
                continue
            remaining = days_until(reminder.next_due_date, now)
            due_date = reminder.next_due_date.date().isoformat()
            # Reassign so the JSON column is flagged dirty
            reminder.reminders_sent = list(reminder.reminders_sent or []) + [
                {"sent_at": now.isoformat(), "days_before_due": target, "due_date": due_date}
            ]

            owner = self.db.query(User).filter(User.id == reminder.homeowner_id).first()
            prop = (
                self.db.query(Property).filter(Property.id == reminder.property_id).first()
                if reminder.property_id
                else None
            )
            create_notification(
                self.db,
                reminder.homeowner_id,
                "service_reminder",
                "Service reminder",
                f"{reminder.title} is due on {due_date}.",
                data={"reminder_id": reminder.id, "due_date": due_date, "days_until_due": remaining},
                commit=False,
            )
            if owner and owner.email:
                emails.append(
                    {
                        "to": owner.email,
                        "first_name": owner.first_name or "there",
                        "reminder_title": reminder.title,
                        "property_name": prop.name if prop else "your home",
                        "due_date": due_date,
                        "days_until_due": remaining,
                    }
                )

        self.db.commit()
        if emails or woken:
            logger.info(f"🔔 Service reminders: {len(emails)} sent, {len(woken)} snoozes ended")
        return emails
