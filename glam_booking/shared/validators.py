"""Shared validation utilities"""

import re
from datetime import datetime, time
from typing import Optional


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Accepts French national numbers (0X XX XX XX XX) and international
    numbers with a leading +.

    Returns:
        Normalized phone number in E.164 format (+33XXXXXXXXX for French numbers)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    stripped = phone.strip()
    digits = re.sub(r"\D", "", stripped)

    if stripped.startswith("+"):
        if not 8 <= len(digits) <= 15:
            raise ValueError("International phone numbers must have 8 to 15 digits")
        return f"+{digits}"

    # National French format: 10 digits starting with 0
    if len(digits) == 10 and digits.startswith("0"):
        return f"+33{digits[1:]}"

    raise ValueError("Phone number must be a French number (0X XX XX XX XX) or start with +")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def parse_hhmm(value: str) -> time:
    """
    Parse a 24h "HH:MM" string into a time.

    Raises:
        ValueError: If the string is not a valid HH:MM time
    """
    if not isinstance(value, str) or not re.match(r"^\d{2}:\d{2}$", value.strip()):
        raise ValueError(f"Invalid time '{value}'; expected HH:MM (24h)")
    return datetime.strptime(value.strip(), "%H:%M").time()


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")
