"""
Contact-field validation shared by the public enquiry form and the admin API
"""
import re
from typing import Optional, Tuple

PHONE_PATTERN = re.compile(r"^[+]?[\d\s()-]{7,20}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

INVALID_PHONE_MESSAGE = "Please enter a valid phone number"
INVALID_EMAIL_MESSAGE = "Please enter a valid email address"


def normalize_phone(phone: Optional[str]) -> str:
    """Phone with all whitespace removed"""
    return re.sub(r"\s+", "", phone or "")


def is_valid_phone(phone: Optional[str]) -> bool:
    return bool(PHONE_PATTERN.match(normalize_phone(phone)))


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and bool(EMAIL_PATTERN.match(email))


def split_name(full_name: Optional[str]) -> Tuple[str, str]:
    """'Jane van Dyke' -> ('Jane', 'van Dyke')"""
    parts = (full_name or "").strip().split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def join_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return " ".join(part for part in (first_name, last_name) if part).strip()
