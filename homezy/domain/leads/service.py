"""
Lead service - posting, browsing and claiming service requests.

Address and contact details stay hidden until a pro has claimed the lead.
Claiming spends credits and takes a slot in the same transaction.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...constants import (
    BUDGET_BRACKETS,
    CLAIMABLE_LEAD_STATUSES,
    PLATFORM_CONFIG,
    URGENCY_LEVELS,
)
from ...exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from ...models import Lead, LeadClaim, Quote, User
from ...services.notification_service import create_notification
from ..credits.service import CreditService
from ..users.repository import UserRepository
from .repository import LeadRepository
from .schemas import LeadCreate, LeadUpdate

logger = logging.getLogger(__name__)


def calculate_credit_cost(
    budget_bracket: str, urgency: str, verification_status: Optional[str] = None
) -> int:
    """Credits a pro pays to claim a lead"""
    base = BUDGET_BRACKETS[budget_bracket]["credits"]
    multiplier = URGENCY_LEVELS.get(urgency, {}).get("multiplier", 1.0)
    cost = max(1, math.ceil(round(base * multiplier, 6)))
    if verification_status == "comprehensive":
        discounted = cost * (1 - PLATFORM_CONFIG["COMPREHENSIVE_DISCOUNT"])
        cost = max(1, math.ceil(round(discounted, 6)))
    return cost


def serialize_claim(claim: LeadClaim, include_professional: bool = False) -> dict:
    data = {
        "id": claim.id,
        "lead_id": claim.lead_id,
        "professional_id": claim.professional_id,
        "credits_cost": claim.credits_cost,
        "claimed_at": claim.claimed_at,
        "quote_submitted": claim.quote_submitted,
        "quote_submitted_at": claim.quote_submitted_at,
    }
    if include_professional and claim.professional:
        pro = claim.professional
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


def serialize_lead(
    lead: Lead,
    viewer: Optional[User] = None,
    has_claimed: bool = False,
    credit_cost: Optional[int] = None,
    claim: Optional[LeadClaim] = None,
) -> dict:
    is_owner = viewer is not None and viewer.id == lead.homeowner_id
    unlocked = is_owner or has_claimed or (viewer is not None and viewer.role == "admin")

    data = {
        "id": lead.id,
        "public_id": lead.public_id,
        "homeowner_id": lead.homeowner_id,
        "title": lead.title,
        "description": lead.description,
        "category": lead.category,
        "emirate": lead.emirate,
        "neighborhood": lead.neighborhood,
        "full_address": lead.full_address if unlocked else None,
        "budget_bracket": lead.budget_bracket,
        "budget_label": BUDGET_BRACKETS.get(lead.budget_bracket, {}).get("label"),
        "urgency": lead.urgency,
        "timeline": lead.timeline,
        "attachments": lead.attachments or [],
        "preferences": lead.preferences or {},
        "lead_type": lead.lead_type,
        "target_professional_id": lead.target_professional_id,
        "direct_lead_status": lead.direct_lead_status,
        "direct_lead_expires_at": lead.direct_lead_expires_at,
        "status": lead.status,
        "claim_count": lead.claim_count,
        "max_claims": lead.max_claims,
        "slots_remaining": max(0, lead.max_claims - lead.claim_count),
        "expires_at": lead.expires_at,
        "created_at": lead.created_at,
        "updated_at": lead.updated_at,
        "homeowner": None,
        "has_claimed": has_claimed,
        "is_owner": is_owner,
        "credit_cost": credit_cost,
        "claim": None,
    }
    if unlocked and lead.homeowner:
        data["homeowner"] = {
            "id": lead.homeowner.id,
            "first_name": lead.homeowner.first_name,
            "last_name": lead.homeowner.last_name,
            "email": lead.homeowner.email,
            "phone": lead.homeowner.phone,
        }
    if claim is not None:
        data["claim"] = serialize_claim(claim)
    return data


class LeadService:
    """Service layer for lead business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LeadRepository()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_lead_or_404(self, lead_id: int) -> Lead:
        lead = self.repo.get_lead(self.db, lead_id)
        if not lead:
            raise NotFoundError("Lead not found")
        return lead

    def _get_owned_lead(self, lead_id: int, user: User) -> Lead:
        lead = self._get_lead_or_404(lead_id)
        if lead.homeowner_id != user.id and user.role != "admin":
            raise ForbiddenError("You can only manage your own leads")
        return lead

    @staticmethod
    def _in_marketplace(lead: Lead) -> bool:
        return lead.lead_type == "indirect" or lead.direct_lead_status in ("declined", "converted")

    def cost_for(self, lead: Lead, pro: User) -> int:
        status = pro.pro_profile.verification_status if pro.pro_profile else None
        return calculate_credit_cost(lead.budget_bracket, lead.urgency, status)

    # ------------------------------------------------------------------
    # Homeowner operations
    # ------------------------------------------------------------------

    def create_lead(self, homeowner: User, data: LeadCreate) -> dict:
        now = datetime.utcnow()
        lead_data = data.model_dump(exclude={"target_professional_id"})
        lead_data.update(
            homeowner_id=homeowner.id,
            status="open",
            claim_count=0,
            max_claims=PLATFORM_CONFIG["MAX_LEAD_CLAIMS"],
            expires_at=now + timedelta(days=PLATFORM_CONFIG["LEAD_EXPIRY_DAYS"]),
            lead_type="indirect",
        )

        target = None
        if data.target_professional_id is not None:
            target = UserRepository.get_approved_pro(self.db, data.target_professional_id)
            if not target:
                raise BadRequestError(
                    "Direct leads can only be sent to verified professionals",
                    code="INVALID_TARGET_PROFESSIONAL",
                )
            lead_data.update(
                lead_type="direct",
                target_professional_id=target.id,
                direct_lead_status="pending",
                direct_lead_expires_at=now
                + timedelta(hours=PLATFORM_CONFIG["DIRECT_LEAD_EXPIRY_HOURS"]),
            )

        lead = self.repo.create_lead(self.db, **lead_data)
        logger.info(f"✅ Lead {lead.id} created by user {homeowner.id} ({lead.lead_type})")

        if target:
            create_notification(
                self.db,
                target.id,
                "direct_lead_received",
                "New direct request",
                f"{homeowner.first_name} sent you a request: {lead.title}",
                {"lead_id": lead.id},
            )
        return serialize_lead(lead, homeowner)

    def update_lead(self, lead_id: int, user: User, data: LeadUpdate) -> dict:
        lead = self._get_owned_lead(lead_id, user)
        if lead.status != "open" or lead.claim_count > 0:
            raise BadRequestError(
                "Leads can only be edited while open and before any professional claims them",
                code="LEAD_LOCKED",
            )
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(lead, key, value)
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"✅ Lead {lead.id} updated")
        return serialize_lead(lead, user)

    def cancel_lead(self, lead_id: int, user: User, reason: Optional[str] = None) -> dict:
        """Cancel a lead and refund every pro who paid to claim it"""
        lead = self._get_owned_lead(lead_id, user)
        if lead.status == "accepted":
            raise BadRequestError("A lead with an accepted quote cannot be cancelled")
        if lead.status == "cancelled":
            raise BadRequestError("Lead is already cancelled")

        credits = CreditService(self.db)
        refunded = []
        try:
            for claim in lead.claims:
                if claim.refunded or claim.credits_cost <= 0:
                    continue
                credits.refund_credits(
                    claim.professional_id,
                    claim.credits_cost,
                    f"Refund for cancelled lead: {lead.title}" + (f" ({reason})" if reason else ""),
                    lead_id=lead.id,
                    commit=False,
                )
                claim.refunded = True
                refunded.append(claim.professional_id)

            now = datetime.utcnow()
            for quote in lead.quotes:
                if quote.status == "pending":
                    quote.status = "declined"
                    quote.declined_at = now
                    quote.decline_reason = reason or "Lead cancelled by homeowner"

            lead.status = "cancelled"
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(lead)
        logger.info(f"✅ Lead {lead.id} cancelled, refunded {len(refunded)} claim(s)")

        for claim in lead.claims:
            create_notification(
                self.db,
                claim.professional_id,
                "lead_cancelled",
                "Lead cancelled",
                f'The homeowner cancelled "{lead.title}".'
                + (f" Reason: {reason}" if reason else "")
                + (" Your credits were refunded." if claim.professional_id in refunded else ""),
                {"lead_id": lead.id, "reason": reason},
            )
        return {"message": "Lead cancelled", "refunded_claims": len(refunded), "lead": serialize_lead(lead, user)}

    def my_leads(self, homeowner: User, status: Optional[str], limit: int, offset: int) -> dict:
        leads, total = self.repo.list_homeowner_leads(self.db, homeowner.id, status, limit, offset)
        return {
            "leads": [serialize_lead(lead, homeowner) for lead in leads],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    def claims_for_lead(self, lead_id: int, user: User) -> list[dict]:
        self._get_owned_lead(lead_id, user)
        return [
            serialize_claim(claim, include_professional=True)
            for claim in self.repo.list_claims(self.db, lead_id)
        ]

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_lead(self, lead_id: int, viewer: User) -> dict:
        lead = self._get_lead_or_404(lead_id)

        if viewer.role == "admin" or viewer.id == lead.homeowner_id:
            return serialize_lead(lead, viewer)

        if viewer.role != "pro":
            raise ForbiddenError("You do not have access to this lead")

        claim = self.repo.get_claim(self.db, lead.id, viewer.id)
        if not claim and not self._in_marketplace(lead) and lead.target_professional_id != viewer.id:
            raise ForbiddenError("This lead was sent directly to another professional")

        return serialize_lead(
            lead,
            viewer,
            has_claimed=claim is not None,
            credit_cost=self.cost_for(lead, viewer),
            claim=claim,
        )

    def browse_marketplace(self, pro: User, limit: int = 20, offset: int = 0, **filters) -> dict:
        leads, total = self.repo.browse_marketplace(
            self.db, datetime.utcnow(), limit=limit, offset=offset, **filters
        )
        claimed = self.repo.claimed_lead_ids(self.db, pro.id, [lead.id for lead in leads])
        return {
            "leads": [
                serialize_lead(
                    lead,
                    pro,
                    has_claimed=lead.id in claimed,
                    credit_cost=self.cost_for(lead, pro),
                )
                for lead in leads
            ],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    def my_claimed_leads(self, pro: User, limit: int, offset: int) -> dict:
        rows, total = self.repo.list_claimed_leads(self.db, pro.id, limit, offset)
        return {
            "leads": [
                serialize_lead(lead, pro, has_claimed=True, claim=claim) for lead, claim in rows
            ],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    # ------------------------------------------------------------------
    # Claiming
    # ------------------------------------------------------------------

    def claim_lead(self, lead_id: int, pro: User) -> dict:
        """Spend credits and take one of the lead's claim slots, all or nothing"""
        lead = self._get_lead_or_404(lead_id)
        now = datetime.utcnow()

        if lead.homeowner_id == pro.id:
            raise BadRequestError("You cannot claim your own lead")
        if not self._in_marketplace(lead):
            raise ForbiddenError(
                "This is a direct request. Accept it from your direct leads instead.",
                code="DIRECT_LEAD",
            )
        if lead.status not in CLAIMABLE_LEAD_STATUSES or lead.expires_at <= now:
            if lead.status == "full":
                raise BadRequestError("This lead has reached its maximum number of claims", code="LEAD_FULL")
            raise BadRequestError("This lead is no longer accepting claims", code="LEAD_NOT_CLAIMABLE")
        if self.repo.get_claim(self.db, lead.id, pro.id):
            raise ConflictError("You have already claimed this lead", code="ALREADY_CLAIMED")

        cost = self.cost_for(lead, pro)
        logger.info(f"📥 Pro {pro.id} claiming lead {lead.id} for {cost} credits")

        try:
            spend = CreditService(self.db).spend_credits(
                pro.id,
                cost,
                f"Claimed lead: {lead.title}",
                lead_id=lead.id,
                metadata={"urgency": lead.urgency, "budget_bracket": lead.budget_bracket},
                commit=False,
            )
            if not self.repo.increment_claim_count(self.db, lead.id, now):
                raise BadRequestError(
                    "This lead has reached its maximum number of claims", code="LEAD_FULL"
                )
            claim = LeadClaim(lead_id=lead.id, professional_id=pro.id, credits_cost=cost, claimed_at=now)
            self.db.add(claim)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("You have already claimed this lead", code="ALREADY_CLAIMED") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(lead)
        self.db.refresh(claim)
        logger.info(f"✅ Pro {pro.id} claimed lead {lead.id} ({lead.claim_count}/{lead.max_claims})")

        create_notification(
            self.db,
            lead.homeowner_id,
            "lead_claimed",
            "A professional is interested",
            f"{pro.full_name} claimed your request: {lead.title}",
            {"lead_id": lead.id, "professional_id": pro.id},
        )

        return {
            "message": "Lead claimed successfully",
            "claim": serialize_claim(claim),
            "lead": serialize_lead(lead, pro, has_claimed=True, credit_cost=cost, claim=claim),
            "credits_spent": cost,
            "balance_after": spend.balance_after,
        }

    # ------------------------------------------------------------------
    # Direct leads
    # ------------------------------------------------------------------

    def list_direct_leads(self, pro: User, direct_status: Optional[str] = None) -> list[dict]:
        leads = self.repo.list_direct_leads(self.db, pro.id, direct_status)
        claimed = self.repo.claimed_lead_ids(self.db, pro.id, [lead.id for lead in leads])
        return [serialize_lead(lead, pro, has_claimed=lead.id in claimed) for lead in leads]

    def _get_direct_lead(self, lead_id: int, pro: User) -> Lead:
        lead = self._get_lead_or_404(lead_id)
        if lead.lead_type != "direct" or lead.target_professional_id != pro.id:
            raise ForbiddenError("This request was not sent to you")
        if lead.direct_lead_status != "pending":
            raise BadRequestError(f"This request has already been {lead.direct_lead_status}")
        return lead

    def accept_direct_lead(self, lead_id: int, pro: User) -> dict:
        """Accepting a direct request claims it at no credit cost"""
        lead = self._get_direct_lead(lead_id, pro)
        now = datetime.utcnow()
        if lead.direct_lead_expires_at and lead.direct_lead_expires_at <= now:
            raise BadRequestError("This request has expired", code="DIRECT_LEAD_EXPIRED")
        if lead.status not in CLAIMABLE_LEAD_STATUSES:
            raise BadRequestError("This lead is no longer accepting claims", code="LEAD_NOT_CLAIMABLE")

        try:
            if not self.repo.increment_claim_count(self.db, lead.id, now, direct=True):
                raise BadRequestError("This lead is no longer accepting claims", code="LEAD_NOT_CLAIMABLE")
            claim = LeadClaim(lead_id=lead.id, professional_id=pro.id, credits_cost=0, claimed_at=now)
            self.db.add(claim)
            self.db.query(Lead).filter(Lead.id == lead.id).update(
                {Lead.direct_lead_status: "accepted"}, synchronize_session=False
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("You have already claimed this lead", code="ALREADY_CLAIMED") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(lead)
        self.db.refresh(claim)
        logger.info(f"✅ Pro {pro.id} accepted direct lead {lead.id}")

        create_notification(
            self.db,
            lead.homeowner_id,
            "direct_lead_accepted",
            "Your request was accepted",
            f"{pro.full_name} accepted your request: {lead.title}",
            {"lead_id": lead.id, "professional_id": pro.id},
        )
        return serialize_lead(lead, pro, has_claimed=True, credit_cost=0, claim=claim)

    def decline_direct_lead(self, lead_id: int, pro: User, reason: Optional[str] = None) -> dict:
        """Declining releases the request to the public marketplace"""
        lead = self._get_direct_lead(lead_id, pro)
        lead.direct_lead_status = "declined"
        lead.converted_to_public_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"⚠️ Pro {pro.id} declined direct lead {lead.id}, now public")

        message = f"{pro.full_name} could not take your request, so it is now open to other professionals."
        if reason:
            message += f" Reason: {reason}"
        create_notification(
            self.db,
            lead.homeowner_id,
            "direct_lead_declined",
            "Your request is now public",
            message,
            {"lead_id": lead.id},
        )
        return serialize_lead(lead, pro)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list_all_leads(self, admin: User, limit: int = 20, offset: int = 0, **filters) -> dict:
        leads, total = self.repo.list_all(self.db, limit=limit, offset=offset, **filters)
        return {
            "leads": [serialize_lead(lead, admin) for lead in leads],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    def admin_lead_detail(self, lead_id: int, admin: User) -> dict:
        lead = self._get_lead_or_404(lead_id)
        quotes = self.db.query(Quote).filter(Quote.lead_id == lead.id).all()
        return {
            "lead": serialize_lead(lead, admin),
            "claims": [
                serialize_claim(claim, include_professional=True)
                for claim in self.repo.list_claims(self.db, lead.id)
            ],
            "quotes": [
                {
                    "id": quote.id,
                    "professional_id": quote.professional_id,
                    "status": quote.status,
                    "total": quote.total,
                    "created_at": quote.created_at,
                }
                for quote in quotes
            ],
        }

    # ------------------------------------------------------------------
    # Scheduled jobs
    # ------------------------------------------------------------------

    def expire_old_leads(self, now: Optional[datetime] = None) -> dict:
        now = now or datetime.utcnow()
        expired = self.repo.expire_leads(self.db, now)
        self.db.commit()
        if expired:
            logger.info(f"⏰ Expired {expired} lead(s)")
        return {"expired": expired}

    def convert_expired_direct_leads(self, now: Optional[datetime] = None) -> dict:
        now = now or datetime.utcnow()
        converted = self.repo.convert_expired_direct_leads(self.db, now)
        self.db.commit()
        if converted:
            logger.info(f"⏰ Converted {converted} unanswered direct lead(s) to public")
        return {"converted": converted}
