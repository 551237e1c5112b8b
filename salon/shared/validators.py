"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return name
    name = name.strip()
    if len(name) < 2:
        raise ValueError("Name must have at least 2 characters")
    return name


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Trimmed lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email
    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """Accept any formatting as long as the number has at least 8 digits."""
    if not phone:
        return phone
    digits = re.sub(r"\D", "", phone)
    if len(digits) < 8:
        raise ValueError("Phone number must have at least 8 digits")
    return phone.strip()


def validate_password(password: Optional[str]) -> Optional[str]:
    """Minimum 8 characters, at least one digit and one special character."""
    if password is None:
        return password
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain a number")
    if not re.search(r"[^A-Za-z0-9]", password):
        raise ValueError("Password must contain a special character")
    return password


def validate_birth_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not DATE_PATTERN.match(text):
        raise ValueError("Birth date must use YYYY-MM-DD")
    return datetime.strptime(text, "%Y-%m-%d").date()
