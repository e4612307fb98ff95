"""Quote domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...constants import QUOTE_ITEM_CATEGORIES
from ...shared.validators import validate_choice


class QuoteItem(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    category: str = "labor"
    quantity: float = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    total: float = Field(..., ge=0)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, QUOTE_ITEM_CATEGORIES, "category")

    @model_validator(mode="after")
    def check_total(self):
        if abs(self.quantity * self.unit_price - self.total) > 0.01:
            raise ValueError(
                f"Item total {self.total} does not match quantity x unit price "
                f"({round(self.quantity * self.unit_price, 2)})"
            )
        return self


class QuoteBase(BaseModel):
    estimated_start_date: datetime
    estimated_completion_date: datetime
    estimated_duration_days: Optional[int] = Field(None, ge=1)
    approach: str = Field(..., min_length=20, max_length=5000)
    warranty: Optional[str] = Field(None, max_length=1000)
    items: list[QuoteItem] = Field(..., min_length=1, max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)
    attachments: list[str] = Field(default_factory=list, max_length=10)

    @model_validator(mode="after")
    def check_dates(self):
        if self.estimated_completion_date <= self.estimated_start_date:
            raise ValueError("Estimated completion date must be after the start date")
        return self


class QuoteCreate(QuoteBase):
    lead_id: int


class QuoteUpdate(BaseModel):
    estimated_start_date: Optional[datetime] = None
    estimated_completion_date: Optional[datetime] = None
    estimated_duration_days: Optional[int] = Field(None, ge=1)
    approach: Optional[str] = Field(None, min_length=20, max_length=5000)
    warranty: Optional[str] = Field(None, max_length=1000)
    items: Optional[list[QuoteItem]] = Field(None, min_length=1, max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)
    attachments: Optional[list[str]] = Field(None, max_length=10)


class QuoteDecline(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class QuoteProfessional(BaseModel):
    id: int
    first_name: str
    last_name: str
    business_name: Optional[str] = None
    verification_status: Optional[str] = None
    rating_average: float = 0.0


class QuoteResponse(BaseModel):
    id: int
    lead_id: int
    professional_id: int
    estimated_start_date: datetime
    estimated_completion_date: datetime
    estimated_duration_days: Optional[int] = None
    approach: str
    warranty: Optional[str] = None
    items: list[dict]
    subtotal: float
    vat: float
    total: float
    notes: Optional[str] = None
    attachments: list[str] = []
    status: str
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    decline_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    professional: Optional[QuoteProfessional] = None
    lead_title: Optional[str] = None


class QuoteListResponse(BaseModel):
    quotes: list[QuoteResponse]
    total: int


class QuoteAcceptResponse(BaseModel):
    message: str
    quote: QuoteResponse
    declined_quotes: int
    home_project_id: Optional[int] = None
