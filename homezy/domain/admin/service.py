"""
Admin service - platform statistics, pro verification and user moderation.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...constants import LEAD_STATUSES, QUOTE_STATUSES, USER_ROLES, VERIFICATION_STATUSES
from ...email_service import send_pro_approved_email, send_pro_rejected_email
from ...exceptions import BadRequestError, NotFoundError
from ...models import (
    CreditBalance,
    CreditPurchase,
    CreditTransaction,
    Lead,
    LeadClaim,
    ProProfile,
    Quote,
    User,
)
from ...services.notification_service import create_notification
from ...shared.queries import paginate, text_search

logger = logging.getLogger(__name__)


def _counts_by(db: Session, column, keys) -> dict[str, int]:
    counts = {key: 0 for key in keys}
    for value, count in db.query(column, func.count()).group_by(column).all():
        counts[value] = count
    return counts


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def _credit_sum(self, type: str) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(CreditTransaction.amount), 0))
            .filter(CreditTransaction.type == type)
            .scalar()
        )
        return abs(int(total or 0))

    def dashboard_stats(self) -> dict:
        revenue_total, vat_total, purchases = (
            self.db.query(
                func.coalesce(func.sum(CreditPurchase.total_aed), 0.0),
                func.coalesce(func.sum(CreditPurchase.vat_aed), 0.0),
                func.count(CreditPurchase.id),
            )
            .filter(CreditPurchase.status == "completed")
            .one()
        )

        return {
            "users_by_role": _counts_by(self.db, User.role, USER_ROLES),
            "pros_by_verification": _counts_by(self.db, ProProfile.verification_status, VERIFICATION_STATUSES),
            "leads_by_status": _counts_by(self.db, Lead.status, LEAD_STATUSES),
            "quotes_by_status": _counts_by(self.db, Quote.status, QUOTE_STATUSES),
            "credits": {
                "purchased": self._credit_sum("purchase"),
                "spent": self._credit_sum("spend"),
                "refunded": self._credit_sum("refund"),
                "bonus": self._credit_sum("bonus"),
            },
            "revenue": {
                "total_aed": round(float(revenue_total), 2),
                "vat_aed": round(float(vat_total), 2),
                "completed_purchases": purchases,
            },
        }

    # ------------------------------------------------------------------
    # Professionals
    # ------------------------------------------------------------------

    def _get_pro(self, pro_id: int) -> User:
        pro = (
            self.db.query(User)
            .options(joinedload(User.pro_profile))
            .filter(User.id == pro_id, User.role == "pro")
            .first()
        )
        if not pro or not pro.pro_profile:
            raise NotFoundError("Professional not found")
        return pro

    def list_pros(
        self,
        verification_status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> dict:
        query = (
            self.db.query(User)
            .join(ProProfile, ProProfile.user_id == User.id)
            .options(joinedload(User.pro_profile))
            .filter(User.role == "pro")
        )
        if verification_status:
            query = query.filter(ProProfile.verification_status == verification_status)
        if search:
            query = query.filter(
                text_search(search, User.email, User.first_name, User.last_name, ProProfile.business_name)
            )
        query = query.order_by(User.created_at.desc(), User.id.desc())
        users, total = paginate(query, limit, offset)
        return {"users": users, "total": total, "limit": limit, "offset": offset}

    def pro_detail(self, pro_id: int) -> dict:
        pro = self._get_pro(pro_id)
        balance = self.db.query(CreditBalance).filter(CreditBalance.professional_id == pro.id).first()
        claims = self.db.query(LeadClaim).filter(LeadClaim.professional_id == pro.id)
        last_claim_at = claims.with_entities(func.max(LeadClaim.claimed_at)).scalar()
        quotes = self.db.query(Quote).filter(Quote.professional_id == pro.id)
        return {
            "user": pro,
            "credit_balance": balance.total_balance if balance else 0,
            "lifetime_spent": balance.lifetime_spent if balance else 0,
            "claims": claims.count(),
            "quotes": quotes.count(),
            "accepted_quotes": quotes.filter(Quote.status == "accepted").count(),
            "last_claim_at": last_claim_at.isoformat() if last_claim_at else None,
        }

    def approve_pro(
        self, pro_id: int, level: str, admin: User, background_tasks: Optional[BackgroundTasks] = None
    ) -> User:
        pro = self._get_pro(pro_id)
        profile = pro.pro_profile
        profile.verification_status = level
        profile.verified_at = datetime.utcnow()
        profile.verified_by = admin.id
        profile.rejection_reason = None

        create_notification(
            self.db,
            pro.id,
            "pro_approved",
            "You're verified!",
            f"Your account has been approved with {level} verification. You can now claim leads.",
            data={"verification_status": level},
            commit=False,
        )
        self.db.commit()
        self.db.refresh(pro)
        logger.info(f"✅ Pro {pro.id} approved ({level}) by admin {admin.id}")

        if background_tasks is not None:
            background_tasks.add_task(send_pro_approved_email, pro.email, pro.first_name, level)
        return pro

    def reject_pro(
        self, pro_id: int, reason: str, admin: User, background_tasks: Optional[BackgroundTasks] = None
    ) -> User:
        pro = self._get_pro(pro_id)
        profile = pro.pro_profile
        profile.verification_status = "rejected"
        profile.rejection_reason = reason
        profile.verified_at = None
        profile.verified_by = admin.id

        create_notification(
            self.db,
            pro.id,
            "pro_rejected",
            "Verification update",
            f"Your verification was not approved: {reason}",
            data={"reason": reason},
            commit=False,
        )
        self.db.commit()
        self.db.refresh(pro)
        logger.info(f"⚠️ Pro {pro.id} rejected by admin {admin.id}")

        if background_tasks is not None:
            background_tasks.add_task(send_pro_rejected_email, pro.email, pro.first_name, reason)
        return pro

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_homeowners(self, search: Optional[str] = None, limit: int = 20, offset: int = 0) -> dict:
        query = self.db.query(User).filter(User.role == "homeowner")
        if search:
            query = query.filter(text_search(search, User.email, User.first_name, User.last_name))
        query = query.order_by(User.created_at.desc(), User.id.desc())
        users, total = paginate(query, limit, offset)
        return {"users": users, "total": total, "limit": limit, "offset": offset}

    def get_user(self, user_id: int) -> User:
        user = self.db.query(User).options(joinedload(User.pro_profile)).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def set_user_active(self, user_id: int, is_active: bool, admin: User) -> User:
        user = self.get_user(user_id)
        if not is_active and user.role == "admin":
            raise BadRequestError("Admin accounts cannot be deactivated", code="CANNOT_DEACTIVATE_ADMIN")

        user.is_active = is_active
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"{'✅' if is_active else '⚠️'} User {user.id} {'activated' if is_active else 'deactivated'} by admin {admin.id}")
        return user
