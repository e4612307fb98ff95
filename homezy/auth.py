import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, joinedload

from .database import get_db
from .exceptions import ForbiddenError, UnauthorizedError
from .models import User
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 from us, not a framework 403
security = HTTPBearer(auto_error=False)


def get_user_from_token(token: str, db: Session) -> Optional[User]:
    """Resolve an access token to an active user, or None"""
    payload = verify_jwt_token(token, expected_type="access")
    if not payload:
        return None

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None

    user = (
        db.query(User)
        .options(joinedload(User.pro_profile))
        .filter(User.id == user_id)
        .first()
    )
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if not credentials or not credentials.credentials:
        raise UnauthorizedError("Not authenticated. Please provide a valid Bearer token.")

    user = get_user_from_token(credentials.credentials, db)
    if not user:
        logger.warning("❌ Rejected request with invalid or expired token")
        raise UnauthorizedError("Invalid or expired token", code="INVALID_TOKEN")
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Current user for public endpoints that personalise output when logged in"""
    if not credentials or not credentials.credentials:
        return None
    return get_user_from_token(credentials.credentials, db)


def require_roles(*roles: str):
    """
    Create a dependency that only lets the given roles through.

    Example usage:
        @router.post("/leads")
        async def create_lead(user: User = Depends(require_roles("homeowner", "admin"))):
            ...
    """

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(
                f"⚠️ User {current_user.id} ({current_user.role}) denied; requires {', '.join(roles)}"
            )
            raise ForbiddenError(
                f"This action requires one of the following roles: {', '.join(roles)}",
                code="INSUFFICIENT_ROLE",
            )
        return current_user

    return role_checker


require_admin = require_roles("admin")
require_pro = require_roles("pro")
require_homeowner = require_roles("homeowner")


async def require_approved_pro(current_user: User = Depends(require_pro)) -> User:
    if not current_user.is_approved_pro:
        raise ForbiddenError(
            "Your professional account must be verified before you can do this",
            code="PRO_NOT_VERIFIED",
        )
    return current_user
