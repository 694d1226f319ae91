import re
import secrets
import string
from datetime import datetime, timezone
from typing import List, Tuple

PASSWORD_SPECIAL_CHARACTERS = "!@#$%^&*"
PINCODE_PATTERN = re.compile(r"^\d{5,6}$")


def utcnow() -> datetime:
    # naive UTC, matching what the database hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_otp(length=6):
    return ''.join(secrets.choice(string.digits) for _ in range(length))


def validate_password(password: str) -> Tuple[bool, List[str]]:
    """Check a password against the signup policy.

    Every violated rule is reported, not just the first one.
    """
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[a-zA-Z]", password):
        errors.append("Password must contain at least one letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    if not any(char in PASSWORD_SPECIAL_CHARACTERS for char in password):
        errors.append(
            f"Password must contain at least one special character ({PASSWORD_SPECIAL_CHARACTERS})"
        )
    return not errors, errors


def normalize_phone(phone: str, country_code: str = "91") -> str:
    """Best-effort canonical form: digits only, prefixed with '+'.

    A bare 10 digit local number gets the default country code. Raises
    ValueError when the input holds no digits at all.
    """
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValueError("Phone number must contain digits")
    if len(digits) == 10:
        return f"+{country_code}{digits}"
    return f"+{digits}"


def is_valid_pincode(pincode: str) -> bool:
    return bool(PINCODE_PATTERN.match(pincode or ""))
