"""Lead domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import BUDGET_BRACKETS, SERVICE_CATEGORIES, URGENCY_LEVELS
from ...shared.validators import validate_choice, validate_emirate


class LeadCreate(BaseModel):
    """Schema for posting a new lead"""

    title: str = Field(..., min_length=10, max_length=100)
    description: str = Field(..., min_length=50, max_length=2000)
    category: str
    emirate: str
    neighborhood: Optional[str] = Field(None, max_length=255)
    full_address: Optional[str] = Field(None, max_length=500)
    budget_bracket: str
    urgency: str = "flexible"
    timeline: Optional[str] = Field(None, max_length=255)
    attachments: list[str] = Field(default_factory=list, max_length=10)
    preferences: dict[str, Any] = Field(default_factory=dict)
    # Set to send the lead straight to one pro instead of the marketplace
    target_professional_id: Optional[int] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, SERVICE_CATEGORIES, "category")

    @field_validator("emirate")
    @classmethod
    def validate_emirate_field(cls, v):
        return validate_emirate(v)

    @field_validator("budget_bracket")
    @classmethod
    def validate_budget(cls, v):
        return validate_choice(v, list(BUDGET_BRACKETS), "budget_bracket")

    @field_validator("urgency")
    @classmethod
    def validate_urgency(cls, v):
        return validate_choice(v, list(URGENCY_LEVELS), "urgency")


class LeadUpdate(BaseModel):
    """Schema for editing a lead before anyone claims it"""

    title: Optional[str] = Field(None, min_length=10, max_length=100)
    description: Optional[str] = Field(None, min_length=50, max_length=2000)
    category: Optional[str] = None
    emirate: Optional[str] = None
    neighborhood: Optional[str] = Field(None, max_length=255)
    full_address: Optional[str] = Field(None, max_length=500)
    budget_bracket: Optional[str] = None
    urgency: Optional[str] = None
    timeline: Optional[str] = Field(None, max_length=255)
    attachments: Optional[list[str]] = Field(None, max_length=10)
    preferences: Optional[dict[str, Any]] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, SERVICE_CATEGORIES, "category")

    @field_validator("emirate")
    @classmethod
    def validate_emirate_field(cls, v):
        return validate_emirate(v)

    @field_validator("budget_bracket")
    @classmethod
    def validate_budget(cls, v):
        return validate_choice(v, list(BUDGET_BRACKETS), "budget_bracket")

    @field_validator("urgency")
    @classmethod
    def validate_urgency(cls, v):
        return validate_choice(v, list(URGENCY_LEVELS), "urgency")


class LeadContact(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class ClaimInfo(BaseModel):
    id: int
    credits_cost: int
    claimed_at: Optional[datetime] = None
    quote_submitted: bool
    quote_submitted_at: Optional[datetime] = None


class LeadResponse(BaseModel):
    id: int
    public_id: Optional[str] = None
    homeowner_id: int
    title: str
    description: str
    category: str
    emirate: str
    neighborhood: Optional[str] = None
    full_address: Optional[str] = None
    budget_bracket: str
    budget_label: Optional[str] = None
    urgency: str
    timeline: Optional[str] = None
    attachments: list[str] = []
    preferences: dict[str, Any] = {}
    lead_type: str
    target_professional_id: Optional[int] = None
    direct_lead_status: Optional[str] = None
    direct_lead_expires_at: Optional[datetime] = None
    status: str
    claim_count: int
    max_claims: int
    slots_remaining: int
    expires_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    homeowner: Optional[LeadContact] = None
    has_claimed: bool = False
    is_owner: bool = False
    credit_cost: Optional[int] = None
    claim: Optional[ClaimInfo] = None


class LeadListResponse(BaseModel):
    leads: list[LeadResponse]
    total: int
    limit: int
    offset: int


class ClaimProfessional(BaseModel):
    id: int
    first_name: str
    last_name: str
    business_name: Optional[str] = None
    verification_status: Optional[str] = None
    rating_average: float = 0.0


class LeadClaimResponse(BaseModel):
    id: int
    lead_id: int
    professional_id: int
    credits_cost: int
    claimed_at: Optional[datetime] = None
    quote_submitted: bool
    quote_submitted_at: Optional[datetime] = None
    professional: Optional[ClaimProfessional] = None


class ClaimResult(BaseModel):
    message: str
    claim: LeadClaimResponse
    lead: LeadResponse
    credits_spent: int
    balance_after: int


class DirectLeadDecline(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class LeadCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v):
        if v is None:
            return None
        return v.strip() or None
