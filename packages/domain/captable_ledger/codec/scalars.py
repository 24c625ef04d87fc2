"""Scalar normalizers shared by every converter.

Pure functions covering the impedance mismatches between the two encodings:
- Calendar dates vs. ledger times
- Padded ledger decimals vs. minimal decimal strings
- Explicit null (ledger) vs. omission (portable) for optional values
- Comment lists (empty strings are never stored)
"""

import logging
from typing import Any, Dict, List, Optional

from .validation import decimal_text, require_date, to_date, to_decimal

logger = logging.getLogger(__name__)

LEDGER_MIDNIGHT = "T00:00:00.000Z"


# =============================================================================
# Dates
# =============================================================================

def date_to_ledger_time(value: Any, field_path: str = "date") -> str:
    """Convert a calendar date to a ledger time.

    Appends midnight UTC when no time component is present; values that
    already carry a ``T`` are returned unchanged.

    Args:
        value: 'YYYY-MM-DD', a ledger time, or a ``datetime.date``
        field_path: Path reported on failure

    Returns:
        Ledger time string, e.g. '2024-01-15T00:00:00.000Z'

    Raises:
        ValidationError: INVALID_TYPE for non-strings, INVALID_FORMAT if the
            date part is not a YYYY-MM-DD calendar date
    """
    day = to_date(value, field_path, blank_is_missing=False)
    if isinstance(value, str) and "T" in value:
        return value
    return day.isoformat() + LEDGER_MIDNIGHT


def ledger_time_to_date(value: str) -> str:
    """Return the calendar date part of a ledger time."""
    return value.split("T", 1)[0]


def optional_date(value: Any, field_path: str) -> Optional[str]:
    """Encode an optional date; absent or empty becomes None."""
    if value is None or value == "":
        return None
    return date_to_ledger_time(value, field_path)


def encode_date(value: Any, field_path: str) -> str:
    """Validate a required calendar date and convert it to a ledger time."""
    to_date(value, field_path)
    return date_to_ledger_time(value, field_path)


def decode_date(value: Any, field_path: str) -> str:
    """Validate a required ledger time and return its calendar date."""
    return ledger_time_to_date(require_date(unwrap_optional(value), field_path, allow_time=True))


def decode_optional_date(value: Any) -> Optional[str]:
    """Decode an optional ledger time (bare or Some-wrapped) to a date."""
    value = unwrap_optional(value)
    if not value:
        return None
    return ledger_time_to_date(value)


# =============================================================================
# Decimals
# =============================================================================

def normalize_numeric_string(value: str, field_path: str = "value") -> str:
    """Canonicalize a decimal string.

    Strips trailing fractional zeros (and the point when nothing remains).
    '5000000.0000000000' → '5000000', '0.00' → '0', '-0.0' → '0'.

    Raises:
        ValidationError: INVALID_FORMAT for exponents or non-decimal input
    """
    value = decimal_text(value, field_path)
    if "." in value:
        value = value.rstrip("0").rstrip(".")
    if value == "-0":
        value = "0"
    return value


def number_to_string(value: Any, field_path: str = "value") -> str:
    """Convert an int, Decimal or decimal string to a canonical decimal string.

    Raises:
        ValidationError: INVALID_TYPE for bools, floats and other types;
            INVALID_FORMAT for non-finite decimals or malformed strings
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return normalize_numeric_string(format(to_decimal(value, field_path), "f"), field_path)


def optional_numeric(value: Any, field_path: str) -> Optional[str]:
    """Encode an optional numeric; absent or empty becomes None."""
    if value is None or value == "":
        return None
    return number_to_string(value, field_path)


def decode_numeric(value: Any, field_path: str) -> str:
    """Normalize a ledger numeric (string or int) for the portable side."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return normalize_numeric_string(value, field_path)


# =============================================================================
# Optionals and Comments
# =============================================================================

def optional_string(value: Any) -> Optional[str]:
    """Empty string or None normalize to None (the ledger rejects '')."""
    if value is None or value == "":
        return None
    return value


def unwrap_optional(value: Any) -> Any:
    """Accept both optional encodings of the ledger JSON API.

    ``{"tag": "Some", "value": x}`` → x, ``{"tag": "None"}`` → None, and any
    other value is returned unchanged.
    """
    if isinstance(value, dict) and value.get("tag") in ("Some", "None") and set(value) <= {"tag", "value"}:
        return value.get("value") if value["tag"] == "Some" else None
    return value


def clean_comments(comments: Optional[List[Any]]) -> List[str]:
    """Drop empty and whitespace-only comments for the ledger side."""
    if not comments:
        return []
    return [c for c in comments if isinstance(c, str) and c.strip()]


def put_optional(target: Dict[str, Any], key: str, value: Any) -> None:
    """Set ``key`` on a portable document only when ``value`` is present.

    None, '' and empty lists are treated as absent.
    """
    if value is None or value == "" or value == []:
        return
    target[key] = value


def put_comments(target: Dict[str, Any], comments: Optional[List[Any]]) -> None:
    """Attach cleaned comments to a portable document, omitting empty lists."""
    put_optional(target, "comments", clean_comments(comments))


# =============================================================================
# Deprecated Fields
# =============================================================================

def normalize_singular_to_array(
    singular: Any,
    values: Optional[List[Any]],
    deprecated_field: str,
    replacement_field: str,
    context: Optional[str] = None,
) -> List[Any]:
    """Resolve a deprecated singular field against its array replacement.

    A non-empty array wins and the singular value is ignored. Otherwise a
    present singular value becomes a one-element list and a deprecation
    warning is logged.

    Example:
        >>> normalize_singular_to_array("FOUNDER", None, "current_relationship", "current_relationships")
        ['FOUNDER']
    """
    if isinstance(values, list) and values:
        return values
    if singular is None or singular == "":
        return [] if values is None else values
    logger.warning(
        "Field '%s' is deprecated; use '%s' instead%s",
        deprecated_field, replacement_field, f" ({context})" if context else "",
    )
    return [singular]
