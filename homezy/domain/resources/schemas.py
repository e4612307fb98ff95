"""Resource (CMS) schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import (
    CONTENT_FORMATS,
    RESOURCE_AUDIENCES,
    RESOURCE_CATEGORIES,
    RESOURCE_STATUSES,
    RESOURCE_TYPES,
)
from ...shared.validators import validate_choice, validate_slug


class ResourceFields(BaseModel):
    """Validators shared by create and update"""

    @field_validator("slug", check_fields=False)
    @classmethod
    def validate_slug_field(cls, v):
        return validate_slug(v)

    @field_validator("type", check_fields=False)
    @classmethod
    def validate_type(cls, v):
        return validate_choice(v, RESOURCE_TYPES, "type")

    @field_validator("category", check_fields=False)
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, RESOURCE_CATEGORIES, "category")

    @field_validator("target_audience", check_fields=False)
    @classmethod
    def validate_audience(cls, v):
        return validate_choice(v, RESOURCE_AUDIENCES, "target_audience")

    @field_validator("content_format", check_fields=False)
    @classmethod
    def validate_format(cls, v):
        return validate_choice(v, CONTENT_FORMATS, "content_format")

    @field_validator("status", check_fields=False)
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, RESOURCE_STATUSES, "status")


class ResourceCreate(ResourceFields):
    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=200)
    excerpt: str = Field(..., min_length=1, max_length=500)
    content_body: Optional[str] = None
    content_format: str = "html"
    video_url: Optional[str] = Field(None, max_length=500)
    type: str = "guide"
    category: str
    tags: list[str] = Field(default_factory=list, max_length=20)
    target_audience: str = "both"
    author_name: Optional[str] = Field(None, max_length=255)
    author_title: Optional[str] = Field(None, max_length=255)
    author_avatar: Optional[str] = Field(None, max_length=500)
    featured_image: Optional[str] = Field(None, max_length=500)
    featured: bool = False
    popular: bool = False
    related_resource_ids: list[int] = Field(default_factory=list)
    status: Optional[str] = None
    published_at: Optional[datetime] = None


class ResourceUpdate(ResourceFields):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=200)
    excerpt: Optional[str] = Field(None, min_length=1, max_length=500)
    content_body: Optional[str] = None
    content_format: Optional[str] = None
    video_url: Optional[str] = Field(None, max_length=500)
    type: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[list[str]] = Field(None, max_length=20)
    target_audience: Optional[str] = None
    author_name: Optional[str] = Field(None, max_length=255)
    author_title: Optional[str] = Field(None, max_length=255)
    author_avatar: Optional[str] = Field(None, max_length=500)
    featured_image: Optional[str] = Field(None, max_length=500)
    featured: Optional[bool] = None
    popular: Optional[bool] = None
    related_resource_ids: Optional[list[int]] = None
    status: Optional[str] = None
    published_at: Optional[datetime] = None


class ResourceBulkUpdate(ResourceFields):
    ids: list[int] = Field(..., min_length=1, max_length=100)
    status: Optional[str] = None
    featured: Optional[bool] = None
    popular: Optional[bool] = None


class ResourceBulkDelete(BaseModel):
    ids: list[int] = Field(..., min_length=1, max_length=100)


class ResourceResponse(BaseModel):
    id: int
    slug: str
    title: str
    excerpt: str
    content_body: Optional[str] = None
    content_format: str
    video_url: Optional[str] = None
    reading_time: Optional[int] = None
    type: str
    category: str
    tags: list[str] = []
    target_audience: str
    author_name: Optional[str] = None
    author_title: Optional[str] = None
    author_avatar: Optional[str] = None
    featured_image: Optional[str] = None
    featured: bool
    popular: bool
    view_count: int
    related_resource_ids: list[int] = []
    status: str
    published_at: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResourceListResponse(BaseModel):
    resources: list[ResourceResponse]
    total: int
    limit: int
    offset: int


class CategoryCount(BaseModel):
    category: str
    count: int


class ResourceStats(BaseModel):
    total: int
    published: int
    draft: int
    archived: int
    total_views: int
