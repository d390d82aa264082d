"""
Field Transforms

Functions that turn raw form values into display strings for the
transaction summary. Each transform is registered by name and is
referenced from the canonical field table in normalizer.py.

Transforms never raise: unparseable input becomes an empty string
(currency, percentage) or passes through unchanged (date).
"""

import logging
import math
import re
from datetime import datetime, date
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

# Type alias for transform functions
TransformFunc = Callable[[Any], str]

_NON_NUMERIC = re.compile(r'[^0-9.]+')
_US_DATE = re.compile(r'^\d{1,2}/\d{1,2}/\d{4}$')
_ISO_DATE = re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})(?:T.*)?$')

ROLE_LABELS = {
    'LISTINGAGENT': 'LISTING AGENT',
    'LISTING_AGENT': 'LISTING AGENT',
    'BUYERSAGENT': 'BUYERS AGENT',
    'BUYERS_AGENT': 'BUYERS AGENT',
    'BUYERAGENT': 'BUYERS AGENT',
    'BUYER_AGENT': 'BUYERS AGENT',
    'DUALAGENT': 'DUAL AGENT',
    'DUAL_AGENT': 'DUAL AGENT',
}


def parse_amount(value: Any) -> Optional[float]:
    """
    Parse a number out of form input.

    Strings are stripped of everything but digits and the decimal
    point first, so "$350,000" and "2.5%" both parse. Amounts on the
    summary are unsigned.

    Examples:
        "$350,000" -> 350000.0
        "abc" -> None
        float('nan') -> None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = abs(float(value))
    else:
        cleaned = _NON_NUMERIC.sub('', str(value))
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None

    if not math.isfinite(number):
        return None
    return number


def transform_currency(value: Any) -> str:
    """
    Format a number as US currency.

    Examples:
        350000 -> "$350,000.00"
        "1234.5" -> "$1,234.50"
        "n/a" -> ""
    """
    number = parse_amount(value)
    if number is None:
        if value not in (None, ''):
            logger.warning(f"Could not format as currency: {value!r}")
        return ""
    return f"${number:,.2f}"


def transform_percentage(value: Any) -> str:
    """
    Format a number as a percentage with one decimal place.

    Examples:
        6 -> "6.0%"
        "2.75" -> "2.8%"
        "" -> ""
    """
    number = parse_amount(value)
    if number is None:
        if value not in (None, ''):
            logger.warning(f"Could not format as percentage: {value!r}")
        return ""
    return f"{number:.1f}%"


def transform_date(value: Any) -> str:
    """
    Format a date in short US format (mm/dd/yyyy).

    Examples:
        "2025-05-06" -> "05/06/2025"
        "05/06/2025" -> "05/06/2025"
        "next Friday" -> "next Friday"
    """
    if value is None:
        return ""

    if isinstance(value, (datetime, date)):
        return value.strftime("%m/%d/%Y")

    text = str(value).strip()
    if not text or _US_DATE.match(text):
        return text

    match = _ISO_DATE.match(text)
    if match:
        year, month, day = match.groups()
        return f"{month}/{day}/{year}"

    return text


def transform_role(value: Any) -> str:
    """
    Normalize an agent role to its display label.

    Examples:
        "listingAgent" -> "LISTING AGENT"
        "DUAL_AGENT" -> "DUAL AGENT"
        "broker" -> "BROKER"
    """
    if value is None:
        return ""
    role = str(value).strip().upper()
    return ROLE_LABELS.get(role, role)


def transform_client_type(value: Any) -> str:
    """Collapse client type variants ("buyer", "Buyers") to BUYER / SELLER."""
    if value is None:
        return ""
    client_type = str(value).strip().upper()
    if 'BUYER' in client_type:
        return 'BUYER'
    if 'SELLER' in client_type:
        return 'SELLER'
    return client_type


def transform_yes_no(value: Any) -> str:
    """Booleans and yes/no strings to YES / NO."""
    if value is None or value == '':
        return ""
    if isinstance(value, bool):
        return 'YES' if value else 'NO'
    text = str(value).strip().upper()
    if text in ('TRUE', 'Y', 'YES'):
        return 'YES'
    if text in ('FALSE', 'N', 'NO'):
        return 'NO'
    return text


def transform_uppercase(value: Any) -> str:
    """Convert to uppercase."""
    if value is None:
        return ""
    return str(value).upper()


def transform_none(value: Any) -> str:
    """No transformation - just convert to string."""
    if value is None:
        return ""
    return str(value).strip()


# Registry of available transforms
TRANSFORMS: Dict[str, TransformFunc] = {
    'currency': transform_currency,
    'percentage': transform_percentage,
    'date': transform_date,
    'role': transform_role,
    'client_type': transform_client_type,
    'yes_no': transform_yes_no,
    'uppercase': transform_uppercase,
    'none': transform_none,
}


def get_transform(name: str) -> Optional[TransformFunc]:
    """Get a transform function by name."""
    return TRANSFORMS.get(name)


def apply_transform(value: Any, transform_name: Optional[str]) -> str:
    """
    Apply a named transform to a value.

    If transform_name is None or not found, returns the trimmed string.
    """
    if value is None:
        return ""

    if not transform_name:
        return transform_none(value)

    transform_func = get_transform(transform_name)
    if transform_func:
        return transform_func(value)

    logger.warning(f"Unknown transform: {transform_name}")
    return transform_none(value)
