"""Lenient coercion of form and JSON values."""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

def blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")

def clean_str(value) -> Optional[str]:
    """Trimmed string, or None when blank."""
    if blank(value):
        return None
    return str(value).strip()

def to_int(value) -> Optional[int]:
    if blank(value):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValueError(f"Invalid number: {value}")

def to_decimal(value) -> Optional[Decimal]:
    if blank(value):
        return None
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid number: {value}")

def parse_date(value) -> Optional[date]:
    """Accept a date, a datetime or an ISO string (date or timestamp)."""
    if blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValueError(f"Invalid date: {value}")

def split_name(name: str):
    """Split a full name into first and last name."""
    parts = (name or "").strip().split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])

def iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None
