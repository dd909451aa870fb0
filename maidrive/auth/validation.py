"""Phone number, verification code and email checks"""

import re
from typing import Optional

from ..utils.exceptions import InvalidPhoneFormat

COUNTRY_CODE = "+93"

LOCAL_PHONE_PATTERN = re.compile(r"^07[0-9]{8}$")
NORMALIZED_PHONE_PATTERN = re.compile(r"^\+93[0-9]{9,10}$")
CODE_PATTERN = re.compile(r"^[0-9]{6}$")
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

_NON_PHONE_CHARS = re.compile(r"[^0-9+]")


def is_valid_local_phone(raw: str) -> bool:
    """True for exactly 10 digits starting with 07."""
    return bool(LOCAL_PHONE_PATTERN.fullmatch(raw or ""))


def normalize_phone(raw: str) -> str:
    """
    Convert user input to the +93 international form.

    "0700123456" -> "+93700123456"
    "93700123456" -> "+93700123456"
    "+93700123456" -> unchanged
    """
    cleaned = _NON_PHONE_CHARS.sub("", raw or "")
    if cleaned.startswith(COUNTRY_CODE):
        return cleaned
    if cleaned.startswith("93"):
        return "+" + cleaned
    if cleaned.startswith("0"):
        return COUNTRY_CODE + cleaned[1:]
    return COUNTRY_CODE + cleaned


def is_valid_normalized_phone(phone_number: str) -> bool:
    return bool(NORMALIZED_PHONE_PATTERN.fullmatch(phone_number or ""))


def is_international_input(raw: str) -> bool:
    """Input the user typed with the country code already in place."""
    cleaned = _NON_PHONE_CHARS.sub("", raw or "")
    return cleaned.startswith(COUNTRY_CODE) or cleaned.startswith("93")


def is_valid_code(code: str) -> bool:
    return bool(CODE_PATTERN.fullmatch(code or ""))


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.fullmatch(email or ""))


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Strip whitespace; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_phone(raw: str) -> str:
    """
    Validate user input and return the normalized phone number.

    Local input must be 10 digits starting with 07; input that already
    carries the country code only has to normalize to a valid number.

    Raises:
        InvalidPhoneFormat: If the input is neither
    """
    cleaned = _NON_PHONE_CHARS.sub("", (raw or "").strip())
    if not (is_valid_local_phone(cleaned) or is_international_input(cleaned)):
        raise InvalidPhoneFormat()
    normalized = normalize_phone(cleaned)
    if not is_valid_normalized_phone(normalized):
        raise InvalidPhoneFormat()
    return normalized
