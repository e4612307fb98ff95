"""Auth router - register, login, refresh, password reset and current user"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from ..users.schemas import UserResponse
from .schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

rate_limit_register = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="register")
rate_limit_login = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")
rate_limit_refresh = create_rate_limiter(limit=30, window_seconds=300, key_prefix="refresh")
rate_limit_password_reset = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="password_reset")


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    data: RegisterRequest,
    _: None = Depends(rate_limit_register),
    service: AuthService = Depends(get_auth_service),
):
    return service.register(data)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    _: None = Depends(rate_limit_login),
    service: AuthService = Depends(get_auth_service),
):
    return service.login(data.email, data.password)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    data: RefreshRequest,
    _: None = Depends(rate_limit_refresh),
    service: AuthService = Depends(get_auth_service),
):
    return service.refresh(data.refresh_token)


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    _: None = Depends(rate_limit_password_reset),
    service: AuthService = Depends(get_auth_service),
):
    return service.forgot_password(data.email, background_tasks)


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest,
    _: None = Depends(rate_limit_password_reset),
    service: AuthService = Depends(get_auth_service),
):
    return service.reset_password(data.token, data.new_password)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


__all__ = ["router"]
