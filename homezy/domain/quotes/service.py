"""Quote service - pricing proposals and the accept/decline flow"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...constants import HOME_PROJECT_CATEGORIES, PLATFORM_CONFIG
from ...email_service import send_new_quote_email, send_quote_accepted_email
from ...exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from ...models import Lead, LeadClaim, Quote, User
from ...models_home import HomeProject
from ...services.notification_service import create_notification
from .repository import QuoteRepository
from .schemas import QuoteCreate, QuoteUpdate

logger = logging.getLogger(__name__)

QUOTABLE_LEAD_STATUSES = ("open", "quoted", "full")


def calculate_totals(items: list[dict]) -> dict:
    subtotal = round(sum(float(item["total"]) for item in items), 2)
    vat = round(subtotal * PLATFORM_CONFIG["VAT_RATE"], 2)
    return {"subtotal": subtotal, "vat": vat, "total": round(subtotal + vat, 2)}


def serialize_quote(quote: Quote, include_professional: bool = True) -> dict:
    data = {
        "id": quote.id,
        "lead_id": quote.lead_id,
        "professional_id": quote.professional_id,
        "estimated_start_date": quote.estimated_start_date,
        "estimated_completion_date": quote.estimated_completion_date,
        "estimated_duration_days": quote.estimated_duration_days,
        "approach": quote.approach,
        "warranty": quote.warranty,
        "items": quote.items or [],
        "subtotal": quote.subtotal,
        "vat": quote.vat,
        "total": quote.total,
        "notes": quote.notes,
        "attachments": quote.attachments or [],
        "status": quote.status,
        "accepted_at": quote.accepted_at,
        "declined_at": quote.declined_at,
        "decline_reason": quote.decline_reason,
        "created_at": quote.created_at,
        "updated_at": quote.updated_at,
        "professional": None,
        "lead_title": quote.lead.title if quote.lead else None,
    }
    if include_professional and quote.professional:
        pro = quote.professional
        profile = pro.pro_profile
        data["professional"] = {
            "id": pro.id,
            "first_name": pro.first_name,
            "last_name": pro.last_name,
            "business_name": profile.business_name if profile else None,
            "verification_status": profile.verification_status if profile else None,
            "rating_average": (profile.rating_average or 0.0) if profile else 0.0,
        }
    return data


class QuoteService:
    """Service layer for quote business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = QuoteRepository()

    def _get_quote_or_404(self, quote_id: int) -> Quote:
        quote = self.repo.get_quote(self.db, quote_id)
        if not quote:
            raise NotFoundError("Quote not found")
        return quote

    def _get_lead_or_404(self, lead_id: int) -> Lead:
        lead = self.db.query(Lead).filter(Lead.id == lead_id).first()
        if not lead:
            raise NotFoundError("Lead not found")
        return lead

    def _ensure_lead_owner(self, lead: Lead, user: User):
        if lead.homeowner_id != user.id and user.role != "admin":
            raise ForbiddenError("Only the homeowner who posted this lead can do this")

    # ------------------------------------------------------------------
    # Pro side
    # ------------------------------------------------------------------

    def submit_quote(
        self, pro: User, data: QuoteCreate, background_tasks: Optional[BackgroundTasks] = None
    ) -> dict:
        lead = self._get_lead_or_404(data.lead_id)

        claim = (
            self.db.query(LeadClaim)
            .filter(LeadClaim.lead_id == lead.id, LeadClaim.professional_id == pro.id)
            .first()
        )
        if not claim:
            raise ForbiddenError("You must claim this lead before submitting a quote", code="LEAD_NOT_CLAIMED")
        if lead.status not in QUOTABLE_LEAD_STATUSES:
            raise BadRequestError(f"Quotes can no longer be submitted for this lead ({lead.status})")
        existing = self.repo.get_for_lead_and_pro(self.db, lead.id, pro.id)
        if existing and existing.status != "withdrawn":
            raise ConflictError("You have already submitted a quote for this lead", code="QUOTE_EXISTS")

        items = [item.model_dump() for item in data.items]
        fields = {
            "estimated_start_date": data.estimated_start_date,
            "estimated_completion_date": data.estimated_completion_date,
            "estimated_duration_days": data.estimated_duration_days,
            "approach": data.approach,
            "warranty": data.warranty,
            "items": items,
            "notes": data.notes,
            "attachments": data.attachments,
            "status": "pending",
            **calculate_totals(items),
        }
        now = datetime.utcnow()
        try:
            if existing:
                # A withdrawn quote is replaced in place (one row per lead and pro)
                quote = existing
                for key, value in fields.items():
                    setattr(quote, key, value)
                quote.created_at = now
            else:
                quote = Quote(lead_id=lead.id, professional_id=pro.id, **fields)
                self.db.add(quote)
            claim.quote_submitted = True
            claim.quote_submitted_at = now
            if lead.status == "open":
                lead.status = "quoted"
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("You have already submitted a quote for this lead", code="QUOTE_EXISTS") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(quote)
        logger.info(f"✅ Pro {pro.id} quoted AED {quote.total} on lead {lead.id}")

        create_notification(
            self.db,
            lead.homeowner_id,
            "quote_received",
            "New quote received",
            f"{pro.full_name} sent a quote of AED {quote.total:,.2f} for {lead.title}",
            {"lead_id": lead.id, "quote_id": quote.id},
        )
        if background_tasks is not None:
            homeowner = lead.homeowner
            background_tasks.add_task(
                send_new_quote_email,
                homeowner.email,
                homeowner.first_name,
                pro.full_name,
                lead.title,
                quote.total,
            )
        return serialize_quote(quote)

    def update_quote(self, quote_id: int, pro: User, data: QuoteUpdate) -> dict:
        quote = self._get_quote_or_404(quote_id)
        if quote.professional_id != pro.id:
            raise ForbiddenError("You can only edit your own quotes")
        if quote.status != "pending":
            raise BadRequestError("Only pending quotes can be edited")

        updates = data.model_dump(exclude_unset=True)
        start = updates.get("estimated_start_date") or quote.estimated_start_date
        end = updates.get("estimated_completion_date") or quote.estimated_completion_date
        if end <= start:
            raise BadRequestError("Estimated completion date must be after the start date")

        for key, value in updates.items():
            if value is not None:
                setattr(quote, key, value)
        if updates.get("items"):
            for key, value in calculate_totals(updates["items"]).items():
                setattr(quote, key, value)

        self.db.commit()
        self.db.refresh(quote)
        logger.info(f"✅ Quote {quote.id} updated")
        return serialize_quote(quote)

    def withdraw_quote(self, quote_id: int, pro: User) -> dict:
        quote = self._get_quote_or_404(quote_id)
        if quote.professional_id != pro.id:
            raise ForbiddenError("You can only withdraw your own quotes")
        if quote.status != "pending":
            raise BadRequestError("Only pending quotes can be withdrawn")

        quote.status = "withdrawn"
        claim = (
            self.db.query(LeadClaim)
            .filter(LeadClaim.lead_id == quote.lead_id, LeadClaim.professional_id == pro.id)
            .first()
        )
        if claim:
            claim.quote_submitted = False
            claim.quote_submitted_at = None
        self.db.commit()
        self.db.refresh(quote)
        logger.info(f"⚠️ Quote {quote.id} withdrawn by pro {pro.id}")
        return serialize_quote(quote)

    def my_quotes(self, pro: User, status: Optional[str] = None) -> dict:
        quotes = self.repo.list_for_pro(self.db, pro.id, status)
        return {"quotes": [serialize_quote(q, include_professional=False) for q in quotes], "total": len(quotes)}

    def my_quote_for_lead(self, lead_id: int, pro: User) -> dict:
        quote = self.repo.get_for_lead_and_pro(self.db, lead_id, pro.id)
        if not quote:
            raise NotFoundError("You have not quoted on this lead")
        return serialize_quote(quote, include_professional=False)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_quote(self, quote_id: int, user: User) -> dict:
        quote = self._get_quote_or_404(quote_id)
        allowed = (
            user.role == "admin"
            or quote.professional_id == user.id
            or quote.lead.homeowner_id == user.id
        )
        if not allowed:
            raise ForbiddenError("You do not have access to this quote")
        return serialize_quote(quote)

    def list_for_lead(self, lead_id: int, user: User, sort: str = "newest") -> dict:
        lead = self._get_lead_or_404(lead_id)
        self._ensure_lead_owner(lead, user)
        quotes = self.repo.list_for_lead(self.db, lead.id, sort)
        return {"quotes": [serialize_quote(q) for q in quotes], "total": len(quotes)}

    # ------------------------------------------------------------------
    # Homeowner decisions
    # ------------------------------------------------------------------

    def accept_quote(
        self, quote_id: int, user: User, background_tasks: Optional[BackgroundTasks] = None
    ) -> dict:
        """Accept one quote, decline the rest and open a home project for the work"""
        quote = self._get_quote_or_404(quote_id)
        lead = quote.lead
        self._ensure_lead_owner(lead, user)

        if quote.status != "pending":
            raise BadRequestError(f"Only pending quotes can be accepted (this one is {quote.status})")
        if lead.status in ("cancelled", "expired", "accepted"):
            raise BadRequestError(f"Cannot accept a quote on a lead that is {lead.status}")

        now = datetime.utcnow()
        others = self.repo.pending_for_lead(self.db, lead.id, exclude_id=quote.id)
        try:
            quote.status = "accepted"
            quote.accepted_at = now
            for other in others:
                other.status = "declined"
                other.declined_at = now
                other.decline_reason = "Homeowner accepted another quote"

            lead.status = "accepted"
            lead.accepted_quote_id = quote.id

            project = HomeProject(
                homeowner_id=lead.homeowner_id,
                name=lead.title,
                description=lead.description,
                category=lead.category if lead.category in HOME_PROJECT_CATEGORIES else "custom",
                status="planning",
                budget_estimated=quote.total,
                start_date=quote.estimated_start_date,
                target_end_date=quote.estimated_completion_date,
                tasks=[],
                cost_items=[],
                linked_lead_id=lead.id,
                linked_quote_id=quote.id,
            )
            self.db.add(project)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(quote)
        self.db.refresh(project)
        logger.info(f"✅ Quote {quote.id} accepted on lead {lead.id}, {len(others)} other(s) declined")

        homeowner = lead.homeowner
        create_notification(
            self.db,
            quote.professional_id,
            "quote_accepted",
            "Your quote was accepted",
            f"{homeowner.full_name} accepted your quote for {lead.title}",
            {"lead_id": lead.id, "quote_id": quote.id},
        )
        for other in others:
            create_notification(
                self.db,
                other.professional_id,
                "quote_declined",
                "Quote not selected",
                f"The homeowner chose another quote for {lead.title}",
                {"lead_id": lead.id, "quote_id": other.id},
            )
        if background_tasks is not None:
            background_tasks.add_task(
                send_quote_accepted_email,
                quote.professional.email,
                quote.professional.first_name,
                homeowner.full_name,
                lead.title,
            )

        return {
            "message": "Quote accepted",
            "quote": serialize_quote(quote),
            "declined_quotes": len(others),
            "home_project_id": project.id,
        }

    def decline_quote(self, quote_id: int, user: User, reason: Optional[str] = None) -> dict:
        quote = self._get_quote_or_404(quote_id)
        self._ensure_lead_owner(quote.lead, user)
        if quote.status != "pending":
            raise BadRequestError("Only pending quotes can be declined")

        quote.status = "declined"
        quote.declined_at = datetime.utcnow()
        quote.decline_reason = reason
        self.db.commit()
        self.db.refresh(quote)
        logger.info(f"⚠️ Quote {quote.id} declined")

        create_notification(
            self.db,
            quote.professional_id,
            "quote_declined",
            "Quote declined",
            f"Your quote for {quote.lead.title} was declined" + (f": {reason}" if reason else ""),
            {"lead_id": quote.lead_id, "quote_id": quote.id},
        )
        return serialize_quote(quote)
