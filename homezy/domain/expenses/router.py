"""Expense router"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_homeowner
from ...database import get_db
from ...models import User
from .schemas import ExpenseCreate, ExpenseListResponse, ExpenseResponse, ExpenseSummary, ExpenseUpdate
from .service import ExpenseService

router = APIRouter(prefix="/expenses", tags=["Expenses"])


def get_expense_service(db: Session = Depends(get_db)) -> ExpenseService:
    return ExpenseService(db)


@router.post("", response_model=ExpenseResponse, status_code=201)
async def create_expense(
    data: ExpenseCreate,
    current_user: User = Depends(require_homeowner),
    service: ExpenseService = Depends(get_expense_service),
):
    return service.create_expense(current_user, data)


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    property_id: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_homeowner),
    service: ExpenseService = Depends(get_expense_service),
):
    return service.list_expenses(
        current_user,
        property_id=property_id,
        category=category,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )


@router.get("/summary", response_model=ExpenseSummary)
async def expense_summary(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    property_id: Optional[int] = Query(None),
    current_user: User = Depends(require_homeowner),
    service: ExpenseService = Depends(get_expense_service),
):
    return service.summary(current_user, year=year, property_id=property_id)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: int,
    current_user: User = Depends(require_homeowner),
    service: ExpenseService = Depends(get_expense_service),
):
    return service.get_expense(expense_id, current_user)


@router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    current_user: User = Depends(require_homeowner),
    service: ExpenseService = Depends(get_expense_service),
):
    return service.update_expense(expense_id, current_user, data)


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    current_user: User = Depends(require_homeowner),
    service: ExpenseService = Depends(get_expense_service),
):
    return service.delete_expense(expense_id, current_user)


__all__ = ["router"]
