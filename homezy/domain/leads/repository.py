"""Lead repository - Database operations for leads and claims"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, case, or_
from sqlalchemy.orm import Session, joinedload

from ...constants import (
    BUDGET_BRACKETS,
    CLAIMABLE_LEAD_STATUSES,
    MARKETPLACE_LEAD_STATUSES,
    URGENCY_LEVELS,
)
from ...models import Lead, LeadClaim, User
from ...shared.queries import paginate, text_search


def marketplace_visible():
    """Indirect leads, plus direct leads that were declined or timed out"""
    return or_(
        Lead.lead_type == "indirect",
        and_(Lead.lead_type == "direct", Lead.direct_lead_status.in_(("declined", "converted"))),
    )


class LeadRepository:
    """Repository for lead database operations"""

    @staticmethod
    def create_lead(db: Session, **lead_data) -> Lead:
        lead = Lead(**lead_data)
        db.add(lead)
        db.commit()
        db.refresh(lead)
        return lead

    @staticmethod
    def get_lead(db: Session, lead_id: int) -> Optional[Lead]:
        return (
            db.query(Lead)
            .options(joinedload(Lead.homeowner))
            .filter(Lead.id == lead_id)
            .first()
        )

    @staticmethod
    def get_claim(db: Session, lead_id: int, professional_id: int) -> Optional[LeadClaim]:
        return (
            db.query(LeadClaim)
            .filter(LeadClaim.lead_id == lead_id, LeadClaim.professional_id == professional_id)
            .first()
        )

    @staticmethod
    def claimed_lead_ids(db: Session, professional_id: int, lead_ids: list[int]) -> set[int]:
        if not lead_ids:
            return set()
        rows = (
            db.query(LeadClaim.lead_id)
            .filter(LeadClaim.professional_id == professional_id, LeadClaim.lead_id.in_(lead_ids))
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def list_claims(db: Session, lead_id: int) -> list[LeadClaim]:
        return (
            db.query(LeadClaim)
            .options(joinedload(LeadClaim.professional).joinedload(User.pro_profile))
            .filter(LeadClaim.lead_id == lead_id)
            .order_by(LeadClaim.claimed_at.asc())
            .all()
        )

    @staticmethod
    def increment_claim_count(db: Session, lead_id: int, now: datetime, direct: bool = False) -> int:
        """Atomically take a claim slot. Returns the number of rows updated (0 or 1).

        The WHERE clause carries the capacity check so concurrent claims can never
        push claim_count past max_claims. Reaching the cap flips the status to full.
        """
        query = db.query(Lead).filter(
            Lead.id == lead_id,
            Lead.claim_count < Lead.max_claims,
            Lead.status.in_(CLAIMABLE_LEAD_STATUSES),
        )
        if not direct:
            query = query.filter(Lead.expires_at > now)
        return query.update(
            {
                Lead.claim_count: Lead.claim_count + 1,
                Lead.status: case(
                    (Lead.claim_count + 1 >= Lead.max_claims, "full"), else_=Lead.status
                ),
                Lead.updated_at: now,
            },
            synchronize_session=False,
        )

    @staticmethod
    def browse_marketplace(
        db: Session,
        now: datetime,
        category: Optional[str] = None,
        emirate: Optional[str] = None,
        budget_bracket: Optional[str] = None,
        urgency: Optional[str] = None,
        has_slots: Optional[bool] = None,
        search: Optional[str] = None,
        sort: str = "newest",
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Lead], int]:
        query = db.query(Lead).filter(
            Lead.status.in_(MARKETPLACE_LEAD_STATUSES),
            Lead.expires_at > now,
            marketplace_visible(),
        )
        if category:
            query = query.filter(Lead.category == category)
        if emirate:
            query = query.filter(Lead.emirate == emirate)
        if budget_bracket:
            query = query.filter(Lead.budget_bracket == budget_bracket)
        if urgency:
            query = query.filter(Lead.urgency == urgency)
        if has_slots:
            query = query.filter(Lead.claim_count < Lead.max_claims)
        if search:
            query = query.filter(text_search(search, Lead.title, Lead.description))

        if sort == "urgency":
            urgency_rank = case(
                {key: level["rank"] for key, level in URGENCY_LEVELS.items()},
                value=Lead.urgency,
                else_=len(URGENCY_LEVELS),
            )
            query = query.order_by(urgency_rank.asc(), Lead.created_at.desc())
        elif sort == "ending-soon":
            query = query.order_by(Lead.expires_at.asc())
        elif sort == "budget-high":
            budget_rank = case(
                {key: index for index, key in enumerate(BUDGET_BRACKETS)},
                value=Lead.budget_bracket,
                else_=-1,
            )
            query = query.order_by(budget_rank.desc(), Lead.created_at.desc())
        else:
            query = query.order_by(Lead.created_at.desc(), Lead.id.desc())

        return paginate(query, limit, offset)

    @staticmethod
    def list_homeowner_leads(
        db: Session, homeowner_id: int, status: Optional[str], limit: int, offset: int
    ) -> tuple[list[Lead], int]:
        query = db.query(Lead).filter(Lead.homeowner_id == homeowner_id)
        if status:
            query = query.filter(Lead.status == status)
        query = query.order_by(Lead.created_at.desc(), Lead.id.desc())
        return paginate(query, limit, offset)

    @staticmethod
    def list_claimed_leads(
        db: Session, professional_id: int, limit: int, offset: int
    ) -> tuple[list[tuple[Lead, LeadClaim]], int]:
        query = (
            db.query(Lead, LeadClaim)
            .join(LeadClaim, LeadClaim.lead_id == Lead.id)
            .options(joinedload(Lead.homeowner))
            .filter(LeadClaim.professional_id == professional_id)
            .order_by(LeadClaim.claimed_at.desc(), LeadClaim.id.desc())
        )
        return paginate(query, limit, offset)

    @staticmethod
    def list_direct_leads(
        db: Session, professional_id: int, direct_status: Optional[str]
    ) -> list[Lead]:
        query = db.query(Lead).filter(
            Lead.lead_type == "direct", Lead.target_professional_id == professional_id
        )
        if direct_status:
            query = query.filter(Lead.direct_lead_status == direct_status)
        return query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()

    @staticmethod
    def list_all(
        db: Session,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Lead], int]:
        query = db.query(Lead).options(joinedload(Lead.homeowner))
        if status:
            query = query.filter(Lead.status == status)
        if category:
            query = query.filter(Lead.category == category)
        if search:
            query = query.filter(text_search(search, Lead.title, Lead.description))
        query = query.order_by(Lead.created_at.desc(), Lead.id.desc())
        return paginate(query, limit, offset)

    @staticmethod
    def expire_leads(db: Session, now: datetime) -> int:
        return (
            db.query(Lead)
            .filter(Lead.status.in_(MARKETPLACE_LEAD_STATUSES), Lead.expires_at <= now)
            .update({Lead.status: "expired", Lead.updated_at: now}, synchronize_session=False)
        )

    @staticmethod
    def convert_expired_direct_leads(db: Session, now: datetime) -> int:
        return (
            db.query(Lead)
            .filter(
                Lead.lead_type == "direct",
                Lead.direct_lead_status == "pending",
                Lead.direct_lead_expires_at <= now,
            )
            .update(
                {
                    Lead.direct_lead_status: "converted",
                    Lead.converted_to_public_at: now,
                    Lead.updated_at: now,
                },
                synchronize_session=False,
            )
        )
