"""
Review service - homeowners rate the pro whose quote they accepted.

A lead gets at most one review, written by its homeowner once the lead is
accepted. Every new review recomputes the pro's rating_average and
review_count on ProProfile, which the directory sorts by.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...constants import REVIEW_RATING_CATEGORIES
from ...email_service import send_review_received_email
from ...exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from ...models import Lead, ProProfile, Quote, Review, User
from ...services.notification_service import create_notification
from ...utils.sanitization import strip_tags
from .repository import ReviewRepository
from .schemas import ReviewCreate

logger = logging.getLogger(__name__)


def serialize_review(review: Review) -> dict:
    homeowner = review.homeowner
    return {
        "id": review.id,
        "lead_id": review.lead_id,
        "quote_id": review.quote_id,
        "professional_id": review.professional_id,
        # Public pages show first name and last initial only
        "homeowner": {
            "id": homeowner.id,
            "first_name": homeowner.first_name,
            "last_initial": (homeowner.last_name or "")[:1],
        },
        "lead_title": review.lead.title if review.lead else None,
        "overall_rating": review.overall_rating,
        "category_ratings": review.category_ratings or {},
        "review_text": review.review_text,
        "photos": review.photos or [],
        "would_recommend": review.would_recommend,
        "project_completed": review.project_completed,
        "professional_response": review.professional_response,
        "responded_at": review.responded_at,
        "created_at": review.created_at,
    }


def review_stats(reviews: list[Review]) -> dict:
    total = len(reviews)
    breakdown = {str(stars): 0 for stars in range(5, 0, -1)}
    if not total:
        return {
            "average_rating": 0.0,
            "total_reviews": 0,
            "would_recommend_percent": 0.0,
            "category_averages": {category: 0.0 for category in REVIEW_RATING_CATEGORIES},
            "rating_breakdown": breakdown,
        }

    for review in reviews:
        breakdown[str(review.overall_rating)] += 1
    return {
        "average_rating": round(sum(r.overall_rating for r in reviews) / total, 1),
        "total_reviews": total,
        "would_recommend_percent": round(100 * sum(1 for r in reviews if r.would_recommend) / total, 1),
        "category_averages": {
            category: round(sum((r.category_ratings or {}).get(category, 0) for r in reviews) / total, 1)
            for category in REVIEW_RATING_CATEGORIES
        },
        "rating_breakdown": breakdown,
    }


class ReviewService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def _get_review_or_404(self, review_id: int) -> Review:
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise NotFoundError("Review not found")
        return review

    def _accepted_quote(self, lead: Lead) -> Optional[Quote]:
        return self.db.query(Quote).filter(Quote.lead_id == lead.id, Quote.status == "accepted").first()

    def _eligibility(self, homeowner: User, lead_id: int) -> tuple[Optional[str], Optional[str], Optional[Quote]]:
        """(reason, error code, accepted quote); reason is None when a review is allowed"""
        lead = self.db.query(Lead).filter(Lead.id == lead_id).first()
        if not lead:
            return "Lead not found", "NOT_FOUND", None
        if lead.homeowner_id != homeowner.id:
            return "You can only review your own projects", "FORBIDDEN", None
        if lead.status != "accepted":
            return "Only projects with an accepted quote can be reviewed", "LEAD_NOT_ACCEPTED", None
        if self.repo.get_for_lead(self.db, lead.id):
            return "You have already reviewed this project", "REVIEW_EXISTS", None
        quote = self._accepted_quote(lead)
        if not quote:
            return "No accepted quote found for this lead", "LEAD_NOT_ACCEPTED", None
        return None, None, quote

    def can_review(self, homeowner: User, lead_id: int) -> dict:
        reason, _, quote = self._eligibility(homeowner, lead_id)
        if reason:
            return {"can_review": False, "reason": reason}
        profile = quote.professional.pro_profile if quote.professional else None
        return {
            "can_review": True,
            "professional_id": quote.professional_id,
            "business_name": profile.business_name if profile else None,
        }

    def update_pro_rating(self, professional_id: int):
        """Recompute the aggregate on ProProfile; the caller commits"""
        count, average = self.repo.rating_summary(self.db, professional_id)
        profile = self.db.query(ProProfile).filter(ProProfile.user_id == professional_id).first()
        if not profile:
            return
        profile.review_count = count
        profile.rating_average = round(float(average), 1) if count else 0.0

    def submit_review(
        self, homeowner: User, data: ReviewCreate, background_tasks: Optional[BackgroundTasks] = None
    ) -> dict:
        reason, code, quote = self._eligibility(homeowner, data.lead_id)
        if code == "NOT_FOUND":
            raise NotFoundError(reason)
        if code == "FORBIDDEN":
            raise ForbiddenError(reason)
        if code == "REVIEW_EXISTS":
            raise ConflictError(reason, code=code)
        if reason:
            raise BadRequestError(reason, code=code)

        try:
            review = Review(
                lead_id=data.lead_id,
                quote_id=quote.id,
                professional_id=quote.professional_id,
                homeowner_id=homeowner.id,
                overall_rating=data.overall_rating,
                category_ratings=data.category_ratings.model_dump(),
                review_text=strip_tags(data.review_text),
                photos=data.photos,
                would_recommend=data.would_recommend,
                project_completed=data.project_completed,
            )
            self.db.add(review)
            self.db.flush()
            self.update_pro_rating(quote.professional_id)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("You have already reviewed this project", code="REVIEW_EXISTS") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(review)
        logger.info(f"⭐ Homeowner {homeowner.id} rated pro {review.professional_id} {review.overall_rating}/5")

        lead_title = review.lead.title
        create_notification(
            self.db,
            review.professional_id,
            "review_received",
            "New review",
            f"{homeowner.first_name} left you a {review.overall_rating}-star review for {lead_title}",
            {"review_id": review.id, "lead_id": review.lead_id},
        )
        if background_tasks is not None:
            pro = review.professional
            background_tasks.add_task(
                send_review_received_email,
                pro.email,
                pro.first_name,
                homeowner.first_name,
                lead_title,
                review.overall_rating,
            )
        return serialize_review(review)

    def respond(self, review_id: int, pro: User, text: str) -> dict:
        review = self._get_review_or_404(review_id)
        if review.professional_id != pro.id:
            raise ForbiddenError("You can only respond to your own reviews")
        if review.professional_response:
            raise BadRequestError("You have already responded to this review", code="ALREADY_RESPONDED")

        review.professional_response = strip_tags(text)
        review.responded_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"✅ Pro {pro.id} responded to review {review.id}")
        return serialize_review(review)

    def get_for_lead(self, lead_id: int, user: User) -> dict:
        review = self.repo.get_for_lead(self.db, lead_id)
        if not review:
            raise NotFoundError("This project has not been reviewed")
        if user.role != "admin" and user.id not in (review.homeowner_id, review.professional_id):
            raise ForbiddenError("You do not have access to this review")
        return serialize_review(review)

    def list_for_pro(
        self, professional_id: int, limit: int = 10, offset: int = 0, min_rating: Optional[int] = None
    ) -> dict:
        pro = self.db.query(User).filter(User.id == professional_id, User.role == "pro").first()
        if not pro or not pro.is_approved_pro:
            raise NotFoundError("Professional not found")

        reviews, total = self.repo.list_for_pro(self.db, professional_id, limit, offset, min_rating)
        return {
            "reviews": [serialize_review(review) for review in reviews],
            "total": total,
            "limit": limit,
            "offset": offset,
            "stats": review_stats(self.repo.all_for_pro(self.db, professional_id)),
        }

    def delete_review(self, review_id: int) -> dict:
        """Admin moderation; the pro's aggregate is recomputed"""
        review = self._get_review_or_404(review_id)
        professional_id = review.professional_id
        self.db.delete(review)
        self.db.flush()
        self.update_pro_rating(professional_id)
        self.db.commit()
        logger.warning(f"⚠️ Review {review_id} removed by admin")
        return {"message": "Review deleted"}
