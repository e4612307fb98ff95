"""Auth service - registration, credential checks, token refresh and password reset"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL, PASSWORD_RESET_EXPIRE_MINUTES
from ...constants import PLATFORM_CONFIG
from ...email_service import send_password_reset_email
from ...exceptions import BadRequestError, ConflictError, ForbiddenError, UnauthorizedError
from ...models import User
from ...security_utils import (
    check_password_strength,
    constant_time_compare,
    create_password_reset_token,
    create_token_pair,
    hash_password,
    password_fingerprint,
    verify_jwt_token,
    verify_password,
)
from ..credits.service import CreditService
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def _auth_payload(self, user: User) -> dict:
        return {"user": user, **create_token_pair(user)}

    def register(self, data) -> dict:
        logger.info(f"📥 Registering {data.role} account for {data.email}")

        if self.repo.get_by_email(self.db, data.email):
            raise ConflictError("An account with this email already exists", code="EMAIL_TAKEN")

        strength = check_password_strength(data.password)
        if not strength["is_valid"]:
            raise BadRequestError(
                "; ".join(strength["feedback"]) or "Password is too weak", code="WEAK_PASSWORD"
            )

        try:
            user = self.repo.create_user(
                self.db,
                email=data.email,
                password_hash=hash_password(data.password),
                first_name=data.first_name.strip(),
                last_name=data.last_name.strip(),
                phone=data.phone,
                role=data.role,
            )
            if user.role == "pro":
                if data.business_name:
                    user.pro_profile.business_name = data.business_name.strip()
                CreditService(self.db).add_credits(
                    user.id,
                    PLATFORM_CONFIG["SIGNUP_BONUS_CREDITS"],
                    credit_type="free",
                    type="bonus",
                    description="Welcome bonus",
                    commit=False,
                )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("An account with this email already exists", code="EMAIL_TAKEN") from e

        self.db.refresh(user)
        logger.info(f"✅ User {user.id} registered as {user.role}")
        return self._auth_payload(user)

    def login(self, email: str, password: str) -> dict:
        user = self.repo.get_by_email(self.db, email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"⚠️ Failed login for {email}")
            raise UnauthorizedError("Invalid email or password", code="INVALID_CREDENTIALS")
        if not user.is_active:
            raise ForbiddenError("This account has been deactivated", code="ACCOUNT_DISABLED")

        user.last_login_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)
        return self._auth_payload(user)

    def refresh(self, refresh_token: str) -> dict:
        payload = verify_jwt_token(refresh_token, expected_type="refresh")
        if not payload:
            raise UnauthorizedError("Invalid or expired refresh token", code="INVALID_TOKEN")

        user = self.repo.get_by_id(self.db, int(payload["sub"]))
        if not user or not user.is_active:
            raise UnauthorizedError("Invalid or expired refresh token", code="INVALID_TOKEN")
        return create_token_pair(user)

    def forgot_password(self, email: str, background_tasks: Optional[BackgroundTasks] = None) -> dict:
        """Email a reset link; the response never reveals whether the account exists"""
        response = {"message": "If an account exists with this email, you will receive a reset link."}
        user = self.repo.get_by_email(self.db, email)
        if not user or not user.is_active:
            logger.info(f"Password reset requested for unknown or inactive account: {email}")
            return response

        token = create_password_reset_token(user)
        reset_url = f"{FRONTEND_URL}/auth/reset-password?token={token}"
        logger.info(f"📧 Password reset link issued for user {user.id}")
        if background_tasks is not None:
            background_tasks.add_task(
                send_password_reset_email, user.email, user.first_name, reset_url, PASSWORD_RESET_EXPIRE_MINUTES
            )
        return response

    def reset_password(self, token: str, new_password: str) -> dict:
        payload = verify_jwt_token(token, expected_type="reset")
        user = self.repo.get_by_id(self.db, int(payload["sub"])) if payload else None
        if (
            not user
            or not user.is_active
            or not constant_time_compare(payload.get("pwd", ""), password_fingerprint(user.password_hash))
        ):
            raise BadRequestError("This reset link is invalid or has expired", code="INVALID_RESET_TOKEN")

        strength = check_password_strength(new_password)
        if not strength["is_valid"]:
            raise BadRequestError(
                "; ".join(strength["feedback"]) or "Password is too weak", code="WEAK_PASSWORD"
            )

        user.password_hash = hash_password(new_password)
        self.db.commit()
        logger.info(f"✅ Password reset for user {user.id}")
        return {"message": "Password reset successful"}
