"""Shared validation utilities"""

import re
from typing import Optional

from ..constants import EMIRATES


def validate_uae_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a UAE mobile number to E.164 format.

    Accepts 05XXXXXXXX, 5XXXXXXXX, 9715XXXXXXXX, +971 5X XXX XXXX and
    00971 prefixed forms.

    Returns:
        Normalized phone number (+9715XXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    if digits.startswith("00971"):
        digits = digits[5:]
    elif digits.startswith("971"):
        digits = digits[3:]
    elif digits.startswith("0"):
        digits = digits[1:]

    if len(digits) != 9 or not digits.startswith("5"):
        raise ValueError("Phone number must be a valid UAE mobile number (e.g. 050 123 4567)")

    return f"+971{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_emirate(emirate: Optional[str]) -> Optional[str]:
    if emirate is None:
        return emirate
    normalized = emirate.strip().lower().replace(" ", "-")
    if normalized not in EMIRATES:
        raise ValueError(f"Emirate must be one of: {', '.join(EMIRATES)}")
    return normalized


def validate_choice(value: Optional[str], choices, field_name: str) -> Optional[str]:
    """Raise ValueError unless value is one of choices (None passes)"""
    if value is None:
        return value
    if value not in choices:
        raise ValueError(f"{field_name} must be one of: {', '.join(choices)}")
    return value


def slugify(value: str, max_length: int = 200) -> str:
    """Lower-case, hyphen separated slug: 'Hiring a Plumber!' -> 'hiring-a-plumber'"""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug[:max_length].rstrip("-")


SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def validate_slug(slug: Optional[str]) -> Optional[str]:
    if slug is None:
        return slug
    slug = slug.strip().lower()
    if not SLUG_PATTERN.match(slug):
        raise ValueError("Slug may only contain lowercase letters, numbers and single hyphens")
    return slug
