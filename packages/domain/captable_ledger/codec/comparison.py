"""Semantic equality for portable documents.

Used to decide whether a source document and its ledger read-out differ.
Two documents are equal when they match after normalization:
- Numeric strings compare as decimals ('100' == '100.00' == 100)
- Strings are trimmed
- None, blank strings, empty lists/objects and 0-0 share number ranges are
  all "absent"
- Internal bookkeeping fields and deprecated fields are ignored
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import Field

from ..schemas.base import DomainModel

logger = logging.getLogger(__name__)

DEFAULT_INTERNAL_FIELDS = (
    "__v",
    "_id",
    "_source",
    "issuer",
    "tx_hash",
    "createdAt",
    "updatedAt",
    "is_onchain_synced",
    "vestings",
)

DEFAULT_DEPRECATED_FIELDS = ("option_grant_type",)

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")


class ComparisonResult(DomainModel):
    """Outcome of ``ocf_compare``."""

    equal: bool = Field(description="True if the documents are semantically equal")

    differences: List[str] = Field(
        default_factory=list,
        description="One entry per differing path, e.g. 'quantity: \"100\" != \"200\"'"
    )


def _as_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    if isinstance(value, str) and _NUMBER_RE.match(value.strip()):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return None
    return None


def _is_zero_share_range(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    if "starting_share_number" not in value or "ending_share_number" not in value:
        return False
    return _as_decimal(value["starting_share_number"]) == 0 and _as_decimal(value["ending_share_number"]) == 0


def is_absent(value: Any) -> bool:
    """True for values the portable format treats as "not present"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, list):
        return all(is_absent(item) for item in value) or all(_is_zero_share_range(item) for item in value)
    if isinstance(value, Mapping):
        return _is_zero_share_range(value) or all(is_absent(item) for item in value.values())
    return False


def ocf_compare(
    expected: Any,
    actual: Any,
    ignored_fields: Optional[Iterable[str]] = None,
    deprecated_fields: Optional[Iterable[str]] = None,
) -> ComparisonResult:
    """Compare two portable documents and list every differing path.

    Args:
        expected: Source document
        actual: Read-back document
        ignored_fields: Keys skipped at every depth (default: internal fields)
        deprecated_fields: Additional skipped keys (default: deprecated fields)

    Returns:
        ComparisonResult with ``equal`` and ``differences``
    """
    skipped = set(DEFAULT_INTERNAL_FIELDS if ignored_fields is None else ignored_fields)
    skipped |= set(DEFAULT_DEPRECATED_FIELDS if deprecated_fields is None else deprecated_fields)
    differences: List[str] = []

    def compare(a: Any, b: Any, path: str) -> bool:
        if is_absent(a) and is_absent(b):
            return True
        if is_absent(a) or is_absent(b):
            differences.append(f"{path}: one side is empty")
            return False

        if isinstance(a, Mapping) and isinstance(b, Mapping):
            keys = [k for k in dict.fromkeys([*a, *b]) if k not in skipped]
            results = [compare(a.get(k), b.get(k), f"{path}.{k}" if path else k) for k in keys]
            return all(results)

        if isinstance(a, list) and isinstance(b, list):
            if len(a) != len(b):
                a = [item for item in a if not is_absent(item)]
                b = [item for item in b if not is_absent(item)]
                if len(a) != len(b):
                    differences.append(f"{path}: length mismatch ({len(a)} vs {len(b)})")
                    return False
            results = [compare(x, y, f"{path}[{i}]") for i, (x, y) in enumerate(zip(a, b))]
            return all(results)

        number_a, number_b = _as_decimal(a), _as_decimal(b)
        if number_a is not None and number_b is not None:
            equal = number_a == number_b
        elif isinstance(a, str) and isinstance(b, str):
            equal = a.strip() == b.strip()
        elif type(a) is not type(b):
            differences.append(f"{path}: type mismatch ({type(a).__name__} vs {type(b).__name__})")
            return False
        else:
            equal = a == b

        if not equal:
            differences.append(f"{path}: {a!r} != {b!r}")
        return equal

    equal = compare(expected, actual, "")
    if differences:
        logger.debug("Comparison found %d differences: %s", len(differences), differences)
    return ComparisonResult(equal=equal, differences=differences)


def ocf_deep_equal(expected: Any, actual: Any, **options: Any) -> bool:
    """Shorthand for ``ocf_compare(...).equal``."""
    return ocf_compare(expected, actual, **options).equal


def strip_internal_fields(document: Mapping[str, Any], fields: Optional[Iterable[str]] = None) -> dict:
    """Copy of ``document`` without internal and deprecated keys, at every depth."""
    removed = set(fields) if fields is not None else {*DEFAULT_INTERNAL_FIELDS, *DEFAULT_DEPRECATED_FIELDS}

    def strip(value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: strip(v) for k, v in value.items() if k not in removed}
        if isinstance(value, list):
            return [strip(item) for item in value]
        return value

    return strip(document)
