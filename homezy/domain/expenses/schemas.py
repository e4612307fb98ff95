"""Expense schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import EXPENSE_CATEGORIES, VENDOR_TYPES
from ...shared.validators import validate_choice


class ExpenseFields(BaseModel):
    """Validators shared by create and update"""

    @field_validator("category", check_fields=False)
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, EXPENSE_CATEGORIES, "category")

    @field_validator("vendor_type", check_fields=False)
    @classmethod
    def validate_vendor_type(cls, v):
        return validate_choice(v, VENDOR_TYPES, "vendor_type")

    @field_validator("currency", check_fields=False)
    @classmethod
    def validate_currency(cls, v):
        if v is not None and v.upper() != "AED":
            raise ValueError("Only AED is supported")
        return v.upper() if v else v

    @field_validator("tags", check_fields=False)
    @classmethod
    def clean_tags(cls, v):
        if v is None:
            return v
        return list(dict.fromkeys(t.strip().lower() for t in v if t and t.strip()))


class ExpenseCreate(ExpenseFields):
    title: str = Field(..., min_length=1, max_length=255)
    category: str
    amount: float = Field(..., gt=0)
    currency: str = "AED"
    date: datetime
    property_id: Optional[int] = None
    home_project_id: Optional[int] = None
    vendor_name: Optional[str] = Field(None, max_length=255)
    vendor_type: str = "external"
    receipt_url: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)
    tags: list[str] = []


class ExpenseUpdate(ExpenseFields):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    currency: Optional[str] = None
    date: Optional[datetime] = None
    property_id: Optional[int] = None
    home_project_id: Optional[int] = None
    vendor_name: Optional[str] = Field(None, max_length=255)
    vendor_type: Optional[str] = None
    receipt_url: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)
    tags: Optional[list[str]] = None


class ExpenseResponse(BaseModel):
    id: int
    homeowner_id: int
    property_id: Optional[int] = None
    home_project_id: Optional[int] = None
    title: str
    category: str
    amount: float
    currency: str
    date: datetime
    vendor_name: Optional[str] = None
    vendor_type: str
    receipt_url: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpenseListResponse(BaseModel):
    expenses: list[ExpenseResponse]
    total: int
    limit: int
    offset: int


class ExpenseSummary(BaseModel):
    year: Optional[int] = None
    total: float
    count: int
    by_category: dict[str, float]
    by_month: dict[str, float]
