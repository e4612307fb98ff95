"""User router - profile, pro directory and upload endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_pro
from ...database import get_db
from ...exceptions import BadRequestError
from ...models import User
from ...utils.storage import generate_storage_key, upload_file, validate_upload
from .schemas import (
    ChangePasswordRequest,
    ProProfileResponse,
    ProProfileUpdate,
    ProSearchResponse,
    PublicProResponse,
    UploadResponse,
    UserResponse,
    UserUpdate,
)
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])
pros_router = APIRouter(prefix="/pros", tags=["Professionals"])
uploads_router = APIRouter(prefix="/uploads", tags=["Uploads"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


# ============================================================================
# CURRENT USER
# ============================================================================


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.update_profile(current_user, data)


@router.post("/me/change-password")
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.change_password(current_user, data)


# ============================================================================
# PROFESSIONAL PROFILE
# ============================================================================


@pros_router.get("/me", response_model=ProProfileResponse)
async def get_my_pro_profile(current_user: User = Depends(require_pro)):
    return current_user.pro_profile


@pros_router.patch("/me", response_model=ProProfileResponse)
async def update_my_pro_profile(
    data: ProProfileUpdate,
    current_user: User = Depends(require_pro),
    service: UserService = Depends(get_user_service),
):
    user = service.update_pro_profile(current_user, data)
    return user.pro_profile


@pros_router.post("/me/verification-documents", response_model=ProProfileResponse)
async def upload_verification_document(
    document_type: str = Form(...),
    file: UploadFile = File(...),
    current_user: User = Depends(require_pro),
    service: UserService = Depends(get_user_service),
):
    """Upload a trade license, Emirates ID or insurance certificate for review"""
    content = await file.read()
    user = service.add_verification_document(
        current_user,
        document_type,
        file.filename or "document",
        file.content_type or "application/octet-stream",
        content,
    )
    return user.pro_profile


# ============================================================================
# PUBLIC DIRECTORY
# ============================================================================


@pros_router.get("/search", response_model=ProSearchResponse)
async def search_pros(
    category: Optional[str] = Query(None),
    emirate: Optional[str] = Query(None),
    verification_level: Optional[str] = Query(None, pattern="^(basic|comprehensive)$"),
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: UserService = Depends(get_user_service),
):
    return service.search_pros(category, emirate, verification_level, search, limit, offset)


@pros_router.get("/{pro_id}", response_model=PublicProResponse)
async def get_pro(pro_id: int, service: UserService = Depends(get_user_service)):
    return service.get_public_pro(pro_id)


# ============================================================================
# UPLOADS
# ============================================================================


@uploads_router.post("/images", response_model=UploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    """Upload an image (lead attachment, avatar, message attachment) and return its URL"""
    content = await file.read()
    filename = file.filename or "image"
    content_type = file.content_type or "application/octet-stream"

    is_valid, error = validate_upload(filename, len(content), content_type)
    if not is_valid:
        raise BadRequestError(error, code="INVALID_FILE")

    key = generate_storage_key("images", current_user.id, filename)
    url = upload_file(content, key, content_type)
    return UploadResponse(url=url, key=key, content_type=content_type, size=len(content))


__all__ = ["router", "pros_router", "uploads_router"]
