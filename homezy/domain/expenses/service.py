"""Expense service"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import BadRequestError, NotFoundError
from ...models import User
from ...models_home import Expense, HomeProject, Property
from ...shared.queries import paginate
from .schemas import ExpenseCreate, ExpenseUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "category", "amount", "date", "currency", "vendor_type")


class ExpenseService:
    def __init__(self, db: Session):
        self.db = db

    def _get_own(self, expense_id: int, owner: User) -> Expense:
        expense = (
            self.db.query(Expense)
            .filter(Expense.id == expense_id, Expense.homeowner_id == owner.id)
            .first()
        )
        if not expense:
            raise NotFoundError("Expense not found")
        return expense

    def _check_links(self, owner: User, property_id: Optional[int], home_project_id: Optional[int]):
        if property_id is not None:
            found = (
                self.db.query(Property.id)
                .filter(Property.id == property_id, Property.owner_id == owner.id)
                .first()
            )
            if not found:
                raise NotFoundError("Property not found")
        if home_project_id is not None:
            found = (
                self.db.query(HomeProject.id)
                .filter(HomeProject.id == home_project_id, HomeProject.homeowner_id == owner.id)
                .first()
            )
            if not found:
                raise NotFoundError("Project not found")

    def create_expense(self, owner: User, data: ExpenseCreate) -> Expense:
        self._check_links(owner, data.property_id, data.home_project_id)
        expense = Expense(homeowner_id=owner.id, **data.model_dump())
        self.db.add(expense)
        self.db.commit()
        self.db.refresh(expense)
        logger.info(f"✅ Expense {expense.id} recorded for user {owner.id}: {expense.amount} {expense.currency}")
        return expense

    def list_expenses(
        self,
        owner: User,
        property_id: Optional[int] = None,
        category: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> dict:
        if start_date and end_date and start_date > end_date:
            raise BadRequestError("start_date must be before end_date")

        query = self.db.query(Expense).filter(Expense.homeowner_id == owner.id)
        if property_id is not None:
            query = query.filter(Expense.property_id == property_id)
        if category:
            query = query.filter(Expense.category == category)
        if start_date:
            query = query.filter(Expense.date >= start_date)
        if end_date:
            query = query.filter(Expense.date <= end_date)

        query = query.order_by(Expense.date.desc(), Expense.id.desc())
        expenses, total = paginate(query, limit, offset)
        return {"expenses": expenses, "total": total, "limit": limit, "offset": offset}

    def get_expense(self, expense_id: int, owner: User) -> Expense:
        return self._get_own(expense_id, owner)

    def update_expense(self, expense_id: int, owner: User, data: ExpenseUpdate) -> Expense:
        expense = self._get_own(expense_id, owner)
        updates = data.model_dump(exclude_unset=True)
        self._check_links(owner, updates.get("property_id"), updates.get("home_project_id"))

        for key, value in updates.items():
            if key in REQUIRED_FIELDS and value is None:
                continue
            setattr(expense, key, value)
        self.db.commit()
        self.db.refresh(expense)
        return expense

    def delete_expense(self, expense_id: int, owner: User) -> dict:
        expense = self._get_own(expense_id, owner)
        self.db.delete(expense)
        self.db.commit()
        return {"message": "Expense deleted"}

    def summary(self, owner: User, year: Optional[int] = None, property_id: Optional[int] = None) -> dict:
        """Totals by category and by calendar month (YYYY-MM)"""
        query = self.db.query(Expense).filter(Expense.homeowner_id == owner.id)
        if property_id is not None:
            query = query.filter(Expense.property_id == property_id)
        if year is not None:
            query = query.filter(Expense.date >= datetime(year, 1, 1), Expense.date < datetime(year + 1, 1, 1))

        total = 0.0
        count = 0
        by_category: dict[str, float] = {}
        by_month: dict[str, float] = {}
        for expense in query.order_by(Expense.date.asc()).all():
            total += expense.amount
            count += 1
            by_category[expense.category] = round(by_category.get(expense.category, 0.0) + expense.amount, 2)
            month = expense.date.strftime("%Y-%m")
            by_month[month] = round(by_month.get(month, 0.0) + expense.amount, 2)

        return {
            "year": year,
            "total": round(total, 2),
            "count": count,
            "by_category": by_category,
            "by_month": by_month,
        }
