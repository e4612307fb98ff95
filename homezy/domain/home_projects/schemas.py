"""Home project schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import (
    COST_CATEGORIES,
    COST_STATUSES,
    HOME_PROJECT_CATEGORIES,
    HOME_PROJECT_STATUSES,
    TASK_PRIORITIES,
    TASK_STATUSES,
)
from ...shared.validators import validate_choice


class HomeProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    property_id: Optional[int] = None
    category: str = "custom"
    status: str = "planning"
    budget_estimated: Optional[float] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    target_end_date: Optional[datetime] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, HOME_PROJECT_CATEGORIES, "category")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, HOME_PROJECT_STATUSES, "status")


class HomeProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    property_id: Optional[int] = None
    category: Optional[str] = None
    status: Optional[str] = None
    budget_estimated: Optional[float] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    target_end_date: Optional[datetime] = None
    actual_end_date: Optional[datetime] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, HOME_PROJECT_CATEGORIES, "category")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, HOME_PROJECT_STATUSES, "status")


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    status: str = "todo"
    priority: str = "medium"
    due_date: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, TASK_STATUSES, "status")

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        return validate_choice(v, TASK_PRIORITIES, "priority")


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, TASK_STATUSES, "status")

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        return validate_choice(v, TASK_PRIORITIES, "priority")


class CostItemCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    category: str = "other"
    estimated: float = Field(0.0, ge=0)
    actual: Optional[float] = Field(None, ge=0)
    status: str = "estimated"

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, COST_CATEGORIES, "category")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, COST_STATUSES, "status")


class CostItemUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = None
    estimated: Optional[float] = Field(None, ge=0)
    actual: Optional[float] = Field(None, ge=0)
    status: Optional[str] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, COST_CATEGORIES, "category")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, COST_STATUSES, "status")


class HomeProjectResponse(BaseModel):
    id: int
    homeowner_id: int
    property_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    category: str
    status: str
    is_default: bool
    budget_estimated: Optional[float] = None
    budget_actual: float
    start_date: Optional[datetime] = None
    target_end_date: Optional[datetime] = None
    actual_end_date: Optional[datetime] = None
    tasks: list[dict] = []
    cost_items: list[dict] = []
    linked_lead_id: Optional[int] = None
    linked_quote_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryBudget(BaseModel):
    estimated: float
    actual: float


class BudgetSummary(BaseModel):
    project_id: int
    budget_estimated: Optional[float] = None
    items_estimated: float
    actual: float
    variance: float
    by_category: dict[str, CategoryBudget]
