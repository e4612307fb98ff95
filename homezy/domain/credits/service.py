"""
Credit service - balances, FIFO spending, refunds and package purchases.

Every credit that enters a balance is recorded as a grant transaction with a
remaining_amount. Spending drains free grants first, then paid grants oldest
first, skipping expired ones. The balance row is a running summary of the
unspent grants.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import CREDIT_PACKAGES, PLATFORM_CONFIG
from ...exceptions import BadRequestError, NotFoundError
from ...models import CreditBalance, CreditPurchase, CreditTransaction, User
from ...security_utils import generate_payment_reference
from .repository import CreditRepository

logger = logging.getLogger(__name__)

GRANT_TYPES = ("purchase", "bonus", "refund", "adjustment")


def serialize_transaction(tx: CreditTransaction) -> dict:
    return {
        "id": tx.id,
        "professional_id": tx.professional_id,
        "type": tx.type,
        "credit_type": tx.credit_type,
        "amount": tx.amount,
        "balance_before": tx.balance_before,
        "balance_after": tx.balance_after,
        "description": tx.description,
        "lead_id": tx.lead_id,
        "purchase_id": tx.purchase_id,
        "remaining_amount": tx.remaining_amount,
        "expires_at": tx.expires_at,
        "metadata": tx.meta or {},
        "created_at": tx.created_at,
    }


def package_pricing(package_id: str) -> dict:
    package = CREDIT_PACKAGES.get(package_id)
    if not package:
        raise BadRequestError(
            f"Unknown credit package. Choose one of: {', '.join(CREDIT_PACKAGES)}",
            code="INVALID_PACKAGE",
        )
    price = float(package["price_aed"])
    vat = round(price * PLATFORM_CONFIG["VAT_RATE"], 2)
    return {
        "id": package_id,
        "name": package["name"],
        "credits": package["credits"],
        "bonus_credits": package["bonus_credits"],
        "price_aed": price,
        "vat_aed": vat,
        "total_aed": round(price + vat, 2),
        "price_per_credit": round(price / (package["credits"] + package["bonus_credits"]), 2),
    }


class CreditService:
    """Service layer for credit business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CreditRepository()

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------

    def _ensure_balance(self, professional_id: int, for_update: bool = False) -> CreditBalance:
        balance = self.repo.get_balance(self.db, professional_id, for_update=for_update)
        if not balance:
            balance = self.repo.create_balance(self.db, professional_id)
        return balance

    def ensure_professional(self, professional_id: int) -> User:
        pro = self.db.query(User).filter(User.id == professional_id, User.role == "pro").first()
        if not pro:
            raise NotFoundError("Professional not found")
        return pro

    def get_balance(self, professional_id: int) -> CreditBalance:
        """Balance row, with the pro's lapsed grants swept out first"""
        balance = self.repo.get_balance(self.db, professional_id)
        swept = self._expire_grants(self.repo.expired_grants(self.db, datetime.utcnow(), professional_id))
        if not balance or swept:
            balance = self._ensure_balance(professional_id)
            self.db.commit()
            self.db.refresh(balance)
        return balance

    # ------------------------------------------------------------------
    # Grants and spending
    # ------------------------------------------------------------------

    def add_credits(
        self,
        professional_id: int,
        amount: int,
        credit_type: str = "paid",
        type: str = "purchase",
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        lead_id: Optional[int] = None,
        purchase_id: Optional[int] = None,
        metadata: Optional[dict] = None,
        commit: bool = True,
    ) -> CreditTransaction:
        if amount <= 0:
            raise BadRequestError("Credit amount must be positive", code="INVALID_AMOUNT")
        if credit_type not in ("free", "paid"):
            raise BadRequestError("Credit type must be free or paid")
        if type not in GRANT_TYPES:
            raise BadRequestError(f"Cannot add credits with transaction type {type}")

        balance = self._ensure_balance(professional_id, for_update=True)
        before = balance.total_balance

        balance.total_balance += amount
        if credit_type == "free":
            balance.free_credits += amount
        else:
            balance.paid_credits += amount

        if type == "refund":
            # Refunds give back spending rather than count as new earnings
            balance.lifetime_spent = max(0, balance.lifetime_spent - amount)
        else:
            balance.lifetime_earned += amount
        if type == "purchase":
            balance.last_purchase_at = datetime.utcnow()

        tx = CreditTransaction(
            professional_id=professional_id,
            type=type,
            credit_type=credit_type,
            amount=amount,
            balance_before=before,
            balance_after=balance.total_balance,
            description=description,
            lead_id=lead_id,
            purchase_id=purchase_id,
            remaining_amount=amount,
            expires_at=expires_at,
            meta=metadata or {},
        )
        self.db.add(tx)

        if commit:
            self.db.commit()
            self.db.refresh(tx)
        else:
            self.db.flush()

        logger.info(f"✅ Added {amount} {credit_type} credits ({type}) to pro {professional_id}")
        return tx

    def spend_credits(
        self,
        professional_id: int,
        amount: int,
        description: str,
        lead_id: Optional[int] = None,
        metadata: Optional[dict] = None,
        commit: bool = True,
    ) -> CreditTransaction:
        """Spend free credits first, then paid grants FIFO (expired grants are skipped)"""
        if amount <= 0:
            raise BadRequestError("Credit amount must be positive", code="INVALID_AMOUNT")

        now = datetime.utcnow()
        self._expire_grants(self.repo.expired_grants(self.db, now, professional_id))
        balance = self._ensure_balance(professional_id, for_update=True)
        free_grants = self.repo.spendable_grants(self.db, professional_id, "free", now)
        paid_grants = self.repo.spendable_grants(self.db, professional_id, "paid", now)

        available = sum(g.remaining_amount for g in free_grants + paid_grants)
        if available < amount:
            raise BadRequestError(
                f"Insufficient credits. You have {available} credits but need {amount}.",
                code="INSUFFICIENT_CREDITS",
            )

        needed = amount
        free_used = 0
        paid_used = 0
        consumed = []
        for grant in free_grants + paid_grants:
            if needed == 0:
                break
            take = min(grant.remaining_amount, needed)
            grant.remaining_amount -= take
            needed -= take
            consumed.append({"transaction_id": grant.id, "amount": take})
            if grant.credit_type == "free":
                free_used += take
            else:
                paid_used += take

        before = balance.total_balance
        balance.free_credits = max(0, balance.free_credits - free_used)
        balance.paid_credits = max(0, balance.paid_credits - paid_used)
        balance.total_balance = balance.free_credits + balance.paid_credits
        balance.lifetime_spent += amount
        balance.last_spend_at = now

        tx = CreditTransaction(
            professional_id=professional_id,
            type="spend",
            credit_type="paid" if paid_used else "free",
            amount=-amount,
            balance_before=before,
            balance_after=balance.total_balance,
            description=description,
            lead_id=lead_id,
            meta={
                **(metadata or {}),
                "free_used": free_used,
                "paid_used": paid_used,
                "consumed": consumed,
            },
        )
        self.db.add(tx)

        if commit:
            self.db.commit()
            self.db.refresh(tx)
        else:
            self.db.flush()

        logger.info(
            f"💳 Pro {professional_id} spent {amount} credits (free={free_used}, paid={paid_used})"
        )
        return tx

    def refund_credits(
        self,
        professional_id: int,
        amount: int,
        reason: str,
        lead_id: Optional[int] = None,
        commit: bool = True,
    ) -> CreditTransaction:
        """Refunds come back as paid credits with a fresh expiry"""
        expires_at = datetime.utcnow() + timedelta(days=PLATFORM_CONFIG["REFUND_CREDIT_EXPIRY_DAYS"])
        return self.add_credits(
            professional_id,
            amount,
            credit_type="paid",
            type="refund",
            description=reason,
            expires_at=expires_at,
            lead_id=lead_id,
            commit=commit,
        )

    def grant_bonus(
        self, professional_id: int, amount: int, reason: str, granted_by: Optional[int] = None
    ) -> CreditTransaction:
        return self.add_credits(
            professional_id,
            amount,
            credit_type="free",
            type="bonus",
            description=reason,
            metadata={"granted_by": granted_by} if granted_by else None,
        )

    def list_transactions(
        self,
        professional_id: Optional[int],
        type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> dict:
        transactions, total = self.repo.list_transactions(
            self.db, professional_id, type, limit, offset
        )
        return {
            "transactions": [serialize_transaction(t) for t in transactions],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    def list_packages(self) -> list[dict]:
        return [package_pricing(package_id) for package_id in CREDIT_PACKAGES]

    def create_purchase(self, professional_id: int, package_id: str) -> CreditPurchase:
        pricing = package_pricing(package_id)
        purchase = self.repo.create_purchase(
            self.db,
            professional_id,
            package_id=package_id,
            credits=pricing["credits"],
            bonus_credits=pricing["bonus_credits"],
            price_aed=pricing["price_aed"],
            vat_aed=pricing["vat_aed"],
            total_aed=pricing["total_aed"],
            payment_reference=generate_payment_reference(),
            status="pending",
        )
        logger.info(
            f"📥 Purchase {purchase.payment_reference} created for pro {professional_id} ({package_id})"
        )
        return purchase

    def list_purchases(self, professional_id: int) -> list[CreditPurchase]:
        return self.repo.list_purchases(self.db, professional_id)

    def complete_purchase(self, payment_reference: str) -> CreditPurchase:
        """Credit a paid purchase. Safe to call more than once."""
        purchase = self.repo.get_purchase_by_reference(self.db, payment_reference, for_update=True)
        if not purchase:
            raise NotFoundError("Purchase not found")
        if purchase.status == "completed":
            logger.info(f"ℹ️ Purchase {payment_reference} already completed, skipping")
            return purchase
        if purchase.status == "failed":
            raise BadRequestError("Purchase has failed and cannot be completed")

        expires_at = datetime.utcnow() + timedelta(days=PLATFORM_CONFIG["PURCHASED_CREDIT_EXPIRY_DAYS"])
        package_name = CREDIT_PACKAGES[purchase.package_id]["name"]

        try:
            self.add_credits(
                purchase.professional_id,
                purchase.credits,
                credit_type="paid",
                type="purchase",
                description=f"{package_name} package",
                expires_at=expires_at,
                purchase_id=purchase.id,
                commit=False,
            )
            if purchase.bonus_credits:
                self.add_credits(
                    purchase.professional_id,
                    purchase.bonus_credits,
                    credit_type="free",
                    type="bonus",
                    description=f"{package_name} package bonus",
                    expires_at=None,
                    purchase_id=purchase.id,
                    commit=False,
                )
            purchase.status = "completed"
            purchase.completed_at = datetime.utcnow()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(purchase)
        logger.info(f"✅ Purchase {payment_reference} completed")
        return purchase

    def fail_purchase(self, payment_reference: str) -> CreditPurchase:
        purchase = self.repo.get_purchase_by_reference(self.db, payment_reference)
        if not purchase:
            raise NotFoundError("Purchase not found")
        if purchase.status == "pending":
            purchase.status = "failed"
            self.db.commit()
            self.db.refresh(purchase)
            logger.warning(f"⚠️ Purchase {payment_reference} failed")
        return purchase

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    def _expire_grants(self, grants: list[CreditTransaction]) -> int:
        """Zero out the given grants in the current transaction; returns the credits lost"""
        total_expired = 0
        for grant in grants:
            amount = grant.remaining_amount
            balance = self._ensure_balance(grant.professional_id, for_update=True)
            before = balance.total_balance

            balance.paid_credits = max(0, balance.paid_credits - amount)
            balance.total_balance = balance.free_credits + balance.paid_credits
            grant.remaining_amount = 0

            self.db.add(
                CreditTransaction(
                    professional_id=grant.professional_id,
                    type="expiry",
                    credit_type=grant.credit_type,
                    amount=-amount,
                    balance_before=before,
                    balance_after=balance.total_balance,
                    description="Credits expired",
                    meta={"grant_id": grant.id},
                )
            )
            total_expired += amount
        if grants:
            self.db.flush()
        return total_expired

    def expire_old_credits(self, now: Optional[datetime] = None) -> dict:
        """Zero out unspent paid grants past their expiry and record the loss"""
        now = now or datetime.utcnow()
        grants = self.repo.expired_grants(self.db, now)

        try:
            total_expired = self._expire_grants(grants)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if grants:
            logger.info(f"⏰ Expired {total_expired} credits across {len(grants)} grants")
        return {"expired_grants": len(grants), "credits_expired": total_expired}
