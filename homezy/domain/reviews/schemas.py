"""Review schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import (
    MAX_REVIEW_PHOTOS,
    REVIEW_TEXT_MAX_LENGTH,
    REVIEW_TEXT_MIN_LENGTH,
)


class CategoryRatings(BaseModel):
    professionalism: int = Field(..., ge=1, le=5)
    quality: int = Field(..., ge=1, le=5)
    timeliness: int = Field(..., ge=1, le=5)
    value: int = Field(..., ge=1, le=5)
    communication: int = Field(..., ge=1, le=5)


class ReviewCreate(BaseModel):
    lead_id: int
    overall_rating: int = Field(..., ge=1, le=5)
    category_ratings: CategoryRatings
    review_text: str
    photos: list[str] = Field(default_factory=list, max_length=MAX_REVIEW_PHOTOS)
    would_recommend: bool
    project_completed: bool = True

    @field_validator("review_text")
    @classmethod
    def validate_review_text(cls, v):
        v = v.strip()
        if not REVIEW_TEXT_MIN_LENGTH <= len(v) <= REVIEW_TEXT_MAX_LENGTH:
            raise ValueError(
                f"Review must be between {REVIEW_TEXT_MIN_LENGTH} and {REVIEW_TEXT_MAX_LENGTH} characters"
            )
        return v


class ReviewReply(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)


class ReviewAuthor(BaseModel):
    id: int
    first_name: str
    last_initial: str


class ReviewResponse(BaseModel):
    id: int
    lead_id: int
    quote_id: Optional[int] = None
    professional_id: int
    homeowner: ReviewAuthor
    lead_title: Optional[str] = None
    overall_rating: int
    category_ratings: dict[str, int]
    review_text: str
    photos: list[str] = []
    would_recommend: bool
    project_completed: bool
    professional_response: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ReviewStats(BaseModel):
    average_rating: float
    total_reviews: int
    would_recommend_percent: float
    category_averages: dict[str, float]
    rating_breakdown: dict[str, int]


class ReviewListResponse(BaseModel):
    reviews: list[ReviewResponse]
    total: int
    limit: int
    offset: int
    stats: ReviewStats


class ReviewEligibility(BaseModel):
    can_review: bool
    reason: Optional[str] = None
    professional_id: Optional[int] = None
    business_name: Optional[str] = None

