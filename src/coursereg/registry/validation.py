"""Field validation helpers for names and student contact details."""

from __future__ import annotations

import re

from coursereg.registry.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s-]{10,}$")
REGISTRATION_NUMBER_PATTERN = re.compile(r"^[A-Z0-9]{6,}$")


def is_valid_email(email: str) -> bool:
    """Accept ``local@domain.tld`` with no whitespace and a single "@"."""
    return EMAIL_PATTERN.match(email) is not None


def is_valid_phone(phone: str) -> bool:
    """Accept an optional leading "+" followed by 10+ digits, spaces or dashes."""
    return PHONE_PATTERN.match(phone) is not None


def is_valid_registration_number(registration_number: str) -> bool:
    """Registration numbers are 6+ uppercase letters or digits."""
    return REGISTRATION_NUMBER_PATTERN.match(registration_number) is not None


def normalize_name(value: str, field_name: str = "name") -> str:
    """Trim surrounding whitespace from a name.

    Raises:
        ValidationError: If nothing is left after trimming
    """
    name = value.strip() if value else ""
    if not name:
        raise ValidationError(f"{field_name} must not be blank")
    return name
