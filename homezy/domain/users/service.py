"""User service - profiles, pro profiles and verification documents"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import VERIFICATION_DOCUMENT_TYPES
from ...exceptions import BadRequestError, NotFoundError, UnauthorizedError
from ...models import User
from ...security_utils import check_password_strength, hash_password, verify_password
from ...shared.validators import slugify
from ...utils.storage import generate_storage_key, upload_file, validate_upload
from .repository import UserRepository
from .schemas import ChangePasswordRequest, ProProfileUpdate, PublicProResponse, UserUpdate

logger = logging.getLogger(__name__)


def to_public_pro(user: User) -> PublicProResponse:
    profile = user.pro_profile
    return PublicProResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        avatar_url=user.avatar_url,
        business_name=profile.business_name,
        slug=profile.slug,
        bio=profile.bio,
        service_categories=profile.service_categories or [],
        service_areas=profile.service_areas or [],
        years_experience=profile.years_experience,
        website=profile.website,
        verification_status=profile.verification_status,
        rating_average=profile.rating_average or 0.0,
        review_count=profile.review_count or 0,
        member_since=user.created_at,
    )


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def update_profile(self, user: User, data: UserUpdate) -> User:
        updates = data.model_dump(exclude_unset=True)
        return self.repo.update_user(self.db, user, **updates)

    def change_password(self, user: User, data: ChangePasswordRequest) -> dict:
        if not verify_password(data.current_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect", code="INVALID_CREDENTIALS")

        strength = check_password_strength(data.new_password)
        if not strength["is_valid"]:
            raise BadRequestError("; ".join(strength["feedback"]) or "Password is too weak", code="WEAK_PASSWORD")

        user.password_hash = hash_password(data.new_password)
        self.db.commit()
        logger.info(f"✅ Password changed for user {user.id}")
        return {"message": "Password updated"}

    # ------------------------------------------------------------------
    # Pro profile
    # ------------------------------------------------------------------

    def _unique_slug(self, business_name: str, profile_id: int) -> str:
        base = slugify(business_name) or "pro"
        slug = base
        suffix = 2
        while self.repo.slug_taken(self.db, slug, exclude_profile_id=profile_id):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    def update_pro_profile(self, user: User, data: ProProfileUpdate) -> User:
        profile = user.pro_profile
        updates = data.model_dump(exclude_unset=True)

        for key, value in updates.items():
            if value is not None:
                setattr(profile, key, value)

        if data.business_name:
            profile.slug = self._unique_slug(data.business_name, profile.id)

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ Pro profile updated for user {user.id}")
        return user

    def add_verification_document(
        self, user: User, document_type: str, filename: str, content_type: str, content: bytes
    ) -> User:
        if document_type not in VERIFICATION_DOCUMENT_TYPES:
            raise BadRequestError(
                f"Document type must be one of: {', '.join(VERIFICATION_DOCUMENT_TYPES)}"
            )

        is_valid, error = validate_upload(filename, len(content), content_type, documents=True)
        if not is_valid:
            raise BadRequestError(error, code="INVALID_FILE")

        key = generate_storage_key("verification", user.id, filename)
        upload_file(content, key, content_type, private=True, metadata={"user_id": str(user.id)})

        profile = user.pro_profile
        documents = list(profile.verification_documents or [])
        documents.append(
            {
                "type": document_type,
                "key": key,
                "filename": filename,
                "uploaded_at": datetime.utcnow().isoformat(),
            }
        )
        profile.verification_documents = documents

        # A rejected pro goes back into the review queue
        if profile.verification_status == "rejected":
            profile.verification_status = "pending"
            profile.rejection_reason = None

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"📥 Verification document ({document_type}) uploaded by pro {user.id}")
        return user

    # ------------------------------------------------------------------
    # Public directory
    # ------------------------------------------------------------------

    def search_pros(
        self,
        category: Optional[str],
        emirate: Optional[str],
        verification_level: Optional[str],
        search: Optional[str],
        limit: int,
        offset: int,
    ) -> dict:
        pros, total = self.repo.search_pros(
            self.db, category, emirate, verification_level, search, limit, offset
        )
        return {
            "pros": [to_public_pro(p) for p in pros],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    def get_public_pro(self, pro_id: int) -> PublicProResponse:
        pro = self.repo.get_approved_pro(self.db, pro_id)
        if not pro:
            raise NotFoundError("Professional not found")
        return to_public_pro(pro)
