"""Review repository - Database operations for reviews"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Review
from ...shared.queries import paginate


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_review(db: Session, review_id: int) -> Optional[Review]:
        return db.query(Review).options(joinedload(Review.homeowner)).filter(Review.id == review_id).first()

    @staticmethod
    def get_for_lead(db: Session, lead_id: int) -> Optional[Review]:
        return db.query(Review).options(joinedload(Review.homeowner)).filter(Review.lead_id == lead_id).first()

    @staticmethod
    def list_for_pro(
        db: Session, professional_id: int, limit: int = 10, offset: int = 0, min_rating: Optional[int] = None
    ) -> tuple[list[Review], int]:
        query = (
            db.query(Review)
            .options(joinedload(Review.homeowner), joinedload(Review.lead))
            .filter(Review.professional_id == professional_id)
        )
        if min_rating:
            query = query.filter(Review.overall_rating >= min_rating)
        query = query.order_by(Review.created_at.desc(), Review.id.desc())
        return paginate(query, limit, offset)

    @staticmethod
    def all_for_pro(db: Session, professional_id: int) -> list[Review]:
        return db.query(Review).filter(Review.professional_id == professional_id).all()

    @staticmethod
    def rating_summary(db: Session, professional_id: int) -> tuple[int, Optional[float]]:
        """(count, average overall rating) for a pro"""
        count, average = (
            db.query(func.count(Review.id), func.avg(Review.overall_rating))
            .filter(Review.professional_id == professional_id)
            .one()
        )
        return count, average
