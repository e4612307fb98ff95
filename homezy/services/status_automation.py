"""
Time-based status transitions.

Each function takes an open session, applies one kind of transition and
returns a summary dict. They are run by the arq worker on a schedule and can
be called directly from tests or a shell.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.credits.service import CreditService
from ..domain.leads.service import LeadService
from ..domain.service_reminders.service import ServiceReminderService

logger = logging.getLogger(__name__)


def expire_old_leads(db: Session, now: Optional[datetime] = None) -> dict:
    """Marketplace leads past expires_at -> expired"""
    return LeadService(db).expire_old_leads(now)


def convert_expired_direct_leads(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Direct leads the pro never answered -> public marketplace leads.

    The lead keeps its id and claim slots; it simply becomes visible to
    every approved pro.
    """
    return LeadService(db).convert_expired_direct_leads(now)


def expire_old_credits(db: Session, now: Optional[datetime] = None) -> dict:
    """Unspent credit grants past expires_at are written off"""
    return CreditService(db).expire_old_credits(now)


def send_service_reminders(db: Session, now: Optional[datetime] = None, emails: Optional[list] = None) -> dict:
    """Maintenance reminders whose next lead-day threshold has been reached"""
    payloads = ServiceReminderService(db).send_due_reminders(now)
    if emails is not None:
        emails.extend(payloads)
    return {"reminders_sent": len(payloads)}


def run_all(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    summary = {}
    summary.update(convert_expired_direct_leads(db, now))
    summary.update(expire_old_leads(db, now))
    summary.update(expire_old_credits(db, now))
    summary.update(send_service_reminders(db, now))
    logger.info(f"✅ Status automation complete: {summary}")
    return summary
