"""Quote repository - Database operations for quotes"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Quote, User


class QuoteRepository:
    """Repository for quote database operations"""

    @staticmethod
    def get_quote(db: Session, quote_id: int) -> Optional[Quote]:
        return (
            db.query(Quote)
            .options(
                joinedload(Quote.lead),
                joinedload(Quote.professional).joinedload(User.pro_profile),
            )
            .filter(Quote.id == quote_id)
            .first()
        )

    @staticmethod
    def get_for_lead_and_pro(db: Session, lead_id: int, professional_id: int) -> Optional[Quote]:
        return (
            db.query(Quote)
            .filter(Quote.lead_id == lead_id, Quote.professional_id == professional_id)
            .first()
        )

    @staticmethod
    def list_for_lead(db: Session, lead_id: int, sort: str = "newest") -> list[Quote]:
        query = (
            db.query(Quote)
            .options(joinedload(Quote.professional).joinedload(User.pro_profile))
            .filter(Quote.lead_id == lead_id)
        )
        if sort == "price-low":
            query = query.order_by(Quote.total.asc(), Quote.id.asc())
        elif sort == "price-high":
            query = query.order_by(Quote.total.desc(), Quote.id.asc())
        else:
            query = query.order_by(Quote.created_at.desc(), Quote.id.desc())
        return query.all()

    @staticmethod
    def list_for_pro(db: Session, professional_id: int, status: Optional[str] = None) -> list[Quote]:
        query = (
            db.query(Quote)
            .options(joinedload(Quote.lead))
            .filter(Quote.professional_id == professional_id)
        )
        if status:
            query = query.filter(Quote.status == status)
        return query.order_by(Quote.created_at.desc(), Quote.id.desc()).all()

    @staticmethod
    def pending_for_lead(db: Session, lead_id: int, exclude_id: Optional[int] = None) -> list[Quote]:
        query = db.query(Quote).filter(Quote.lead_id == lead_id, Quote.status == "pending")
        if exclude_id is not None:
            query = query.filter(Quote.id != exclude_id)
        return query.all()
