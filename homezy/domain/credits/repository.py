"""Credit repository - Database operations for balances, grants and purchases"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import CreditBalance, CreditPurchase, CreditTransaction
from ...shared.queries import paginate


class CreditRepository:
    """Repository for credit database operations"""

    @staticmethod
    def get_balance(db: Session, professional_id: int, for_update: bool = False) -> Optional[CreditBalance]:
        query = db.query(CreditBalance).filter(CreditBalance.professional_id == professional_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def create_balance(db: Session, professional_id: int) -> CreditBalance:
        balance = CreditBalance(professional_id=professional_id)
        db.add(balance)
        db.flush()
        return balance

    @staticmethod
    def spendable_grants(
        db: Session, professional_id: int, credit_type: str, now: datetime
    ) -> list[CreditTransaction]:
        """Unspent, unexpired grants of one credit type, oldest first"""
        return (
            db.query(CreditTransaction)
            .filter(
                CreditTransaction.professional_id == professional_id,
                CreditTransaction.credit_type == credit_type,
                CreditTransaction.remaining_amount > 0,
                or_(CreditTransaction.expires_at.is_(None), CreditTransaction.expires_at > now),
            )
            .order_by(CreditTransaction.created_at.asc(), CreditTransaction.id.asc())
            .all()
        )

    @staticmethod
    def expired_grants(
        db: Session, now: datetime, professional_id: Optional[int] = None
    ) -> list[CreditTransaction]:
        """Unspent paid grants past their expiry; free credits never expire"""
        query = db.query(CreditTransaction).filter(
            CreditTransaction.credit_type == "paid",
            CreditTransaction.remaining_amount > 0,
            CreditTransaction.expires_at.isnot(None),
            CreditTransaction.expires_at <= now,
        )
        if professional_id is not None:
            query = query.filter(CreditTransaction.professional_id == professional_id)
        return query.order_by(CreditTransaction.professional_id, CreditTransaction.id).all()

    @staticmethod
    def list_transactions(
        db: Session,
        professional_id: Optional[int] = None,
        type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[CreditTransaction], int]:
        query = db.query(CreditTransaction)
        if professional_id is not None:
            query = query.filter(CreditTransaction.professional_id == professional_id)
        if type:
            query = query.filter(CreditTransaction.type == type)
        query = query.order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
        return paginate(query, limit, offset)

    @staticmethod
    def create_purchase(db: Session, professional_id: int, **purchase_data) -> CreditPurchase:
        purchase = CreditPurchase(professional_id=professional_id, **purchase_data)
        db.add(purchase)
        db.commit()
        db.refresh(purchase)
        return purchase

    @staticmethod
    def get_purchase_by_reference(
        db: Session, payment_reference: str, for_update: bool = False
    ) -> Optional[CreditPurchase]:
        query = db.query(CreditPurchase).filter(CreditPurchase.payment_reference == payment_reference)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def list_purchases(db: Session, professional_id: int) -> list[CreditPurchase]:
        return (
            db.query(CreditPurchase)
            .filter(CreditPurchase.professional_id == professional_id)
            .order_by(CreditPurchase.created_at.desc(), CreditPurchase.id.desc())
            .all()
        )
