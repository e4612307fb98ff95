"""User and professional profile schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import SERVICE_CATEGORIES
from ...shared.validators import validate_emirate, validate_uae_phone


class ProProfileResponse(BaseModel):
    id: int
    business_name: Optional[str] = None
    slug: Optional[str] = None
    bio: Optional[str] = None
    service_categories: list[str] = []
    service_areas: list[str] = []
    years_experience: Optional[int] = None
    website: Optional[str] = None
    verification_status: str
    verification_documents: list[dict] = []
    rejection_reason: Optional[str] = None
    verified_at: Optional[datetime] = None
    rating_average: float = 0.0
    review_count: int = 0

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: int
    public_id: Optional[str] = None
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    is_active: bool
    email_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    pro_profile: Optional[ProProfileResponse] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    avatar_url: Optional[str] = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_uae_phone(v)
        return v


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class ProProfileUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=2, max_length=255)
    bio: Optional[str] = Field(None, max_length=2000)
    service_categories: Optional[list[str]] = None
    service_areas: Optional[list[str]] = None
    years_experience: Optional[int] = Field(None, ge=0, le=80)
    website: Optional[str] = Field(None, max_length=500)

    @field_validator("service_categories")
    @classmethod
    def validate_categories(cls, v):
        if v is None:
            return v
        invalid = [c for c in v if c not in SERVICE_CATEGORIES]
        if invalid:
            raise ValueError(f"Unknown service categories: {', '.join(invalid)}")
        return list(dict.fromkeys(v))

    @field_validator("service_areas")
    @classmethod
    def validate_areas(cls, v):
        if v is None:
            return v
        return list(dict.fromkeys(validate_emirate(e) for e in v))


class PublicProResponse(BaseModel):
    """What homeowners see about a pro"""

    id: int
    first_name: str
    last_name: str
    avatar_url: Optional[str] = None
    business_name: Optional[str] = None
    slug: Optional[str] = None
    bio: Optional[str] = None
    service_categories: list[str] = []
    service_areas: list[str] = []
    years_experience: Optional[int] = None
    website: Optional[str] = None
    verification_status: str
    rating_average: float = 0.0
    review_count: int = 0
    member_since: Optional[datetime] = None


class ProSearchResponse(BaseModel):
    pros: list[PublicProResponse]
    total: int
    limit: int
    offset: int


class UploadResponse(BaseModel):
    url: str
    key: str
    content_type: str
    size: int
