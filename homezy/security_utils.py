"""
Security utilities: password hashing, JWT issuing and verification,
webhook signatures and small helpers used across the API.
"""

import hashlib
import hmac
import logging
import re
import secrets
import time
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    BCRYPT_ROUNDS,
    JWT_ALGORITHM,
    JWT_AUDIENCE,
    JWT_ISSUER,
    PASSWORD_RESET_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
    SECRET_KEY,
)
from .constants import PLATFORM_CONFIG

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

# Maximum age of a signed webhook in seconds (5 minutes)
MAX_WEBHOOK_AGE_SECONDS = 300


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def check_password_strength(password: str) -> dict[str, Any]:
    """
    Check password strength and return detailed feedback

    Returns:
        dict with 'score' (0-4), 'strength' (weak/fair/good/strong),
        'feedback' (list of suggestions), and 'is_valid' (bool)
    """
    min_length = PLATFORM_CONFIG["MIN_PASSWORD_LENGTH"]
    score = 0
    feedback = []

    if len(password) < min_length:
        feedback.append(f"Password must be at least {min_length} characters long")
    elif len(password) >= 12:
        score += 2
    else:
        score += 1

    has_letter = bool(re.search(r"[A-Za-z]", password))
    has_digit = bool(re.search(r"\d", password))

    if has_letter:
        score += 1
    else:
        feedback.append("Add letters")

    if has_digit:
        score += 1
    else:
        feedback.append("Add numbers")

    if re.search(r'[!@#$%^&*(),.?":{}|<>]', password):
        score += 1

    common_passwords = ["password", "12345678", "qwerty123", "password1", "homezy123"]
    if password.lower() in common_passwords:
        score = 0
        feedback.append("This is a commonly used password - choose something unique")

    if score <= 1:
        strength = "weak"
    elif score == 2:
        strength = "fair"
    elif score == 3:
        strength = "good"
    else:
        strength = "strong"

    return {
        "score": min(score, 4),
        "strength": strength,
        "feedback": feedback,
        "is_valid": len(password) >= min_length and has_letter and has_digit and score > 0,
    }


# ============================================================================
# JWT TOKENS
# ============================================================================


def _create_token(user, token_type: str, expires_delta: timedelta, extra: Optional[dict] = None) -> str:
    now = datetime.utcnow()
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "jti": secrets.token_hex(8),
        **(extra or {}),
    }
    return jose_jwt.encode(payload, SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_access_token(user) -> str:
    return _create_token(user, "access", timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(user) -> str:
    return _create_token(user, "refresh", timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))


def password_fingerprint(password_hash: str) -> str:
    """Short keyed digest of the stored hash; changes whenever the password does"""
    return compute_hmac_sha256(SECRET_KEY, password_hash.encode("utf-8"))[:16]


def create_password_reset_token(user) -> str:
    """Single-use in effect: the token dies once the password it was issued against changes"""
    return _create_token(
        user,
        "reset",
        timedelta(minutes=PASSWORD_RESET_EXPIRE_MINUTES),
        extra={"pwd": password_fingerprint(user.password_hash)},
    )


def create_token_pair(user) -> dict[str, Any]:
    return {
        "access_token": create_access_token(user),
        "refresh_token": create_refresh_token(user),
        "token_type": "bearer",
        "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


def verify_jwt_token(token: str, expected_type: str = "access") -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid and of the expected type, None otherwise
    """
    try:
        payload = jose_jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None

    if payload.get("type") != expected_type:
        logger.warning(f"⚠️ Wrong token type: expected {expected_type}, got {payload.get('type')}")
        return None
    return payload


# ============================================================================
# WEBHOOK SIGNATURES
# ============================================================================


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks."""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def create_webhook_signature(secret: str, payload: bytes, timestamp: Optional[int] = None) -> str:
    """Signature header value in the form t=<unix>,v1=<hex>"""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.".encode() + payload
    return f"t={timestamp},v1={compute_hmac_sha256(secret, signed)}"


def verify_webhook_signature(
    secret: str, payload: bytes, header: Optional[str], max_age: int = MAX_WEBHOOK_AGE_SECONDS
) -> bool:
    """Check a t=<unix>,v1=<hex> signature header against the raw body"""
    if not secret or not header:
        return False

    parts = dict(part.split("=", 1) for part in header.split(",") if "=" in part)
    timestamp = parts.get("t")
    signature = parts.get("v1")
    if not timestamp or not signature:
        return False

    try:
        age = abs(int(time.time()) - int(timestamp))
    except ValueError:
        return False
    if age > max_age:
        logger.warning(f"⚠️ Webhook timestamp too old: {age}s")
        return False

    expected = compute_hmac_sha256(secret, f"{timestamp}.".encode() + payload)
    return constant_time_compare(expected, signature)


def generate_payment_reference() -> str:
    return f"hz_{secrets.token_hex(12)}"
