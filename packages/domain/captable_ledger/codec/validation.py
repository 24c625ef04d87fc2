"""Field validation.

Validation runs through pydantic. Each helper checks one value against an
annotated type from ``schemas.values`` (``validate_model`` checks a whole
document or value object against a model) and converts the first pydantic
error into ``ValidationError`` carrying the field path, a machine-readable
code and the received value. Converters call these at entry, before
building any output, so the first invalid field is what gets reported.

Field paths follow ``<entity>.<field>[.<nested>]``, e.g.
``equityCompensationIssuance.quantity``; list positions render as
``[i]``.

Error codes:
- REQUIRED_FIELD_MISSING: missing key, None, blank string or empty list
- INVALID_TYPE: wrong JSON type (``*_type`` errors)
- OUT_OF_RANGE: numeric bound violated
- INVALID_FORMAT: everything else (patterns, calendar dates, currencies)
"""

from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import Annotated, Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..errors import ErrorCode, ValidationError
from ..schemas.base import DomainModel
from ..schemas.values import (
    CalendarDate,
    DecimalInput,
    DecimalText,
    Flag,
    IntegerInput,
    JsonArray,
    JsonObject,
    LedgerDate,
    Monetary,
    NonEmptyArray,
    OptionalText,
    PartyId,
    RequiredText,
    TextList,
)

T = TypeVar("T")
M = TypeVar("M", bound=DomainModel)

_TEXT = TypeAdapter(RequiredText)
_OPTIONAL_TEXT = TypeAdapter(OptionalText)
_FLAG = TypeAdapter(Flag)
_DECIMAL = TypeAdapter(DecimalInput)
_DECIMAL_TEXT = TypeAdapter(DecimalText)
_INTEGER = TypeAdapter(IntegerInput)
_CALENDAR_DATE = TypeAdapter(CalendarDate)
_LEDGER_DATE = TypeAdapter(LedgerDate)
_OBJECT = TypeAdapter(JsonObject)
_ARRAY = TypeAdapter(JsonArray)
_NON_EMPTY_ARRAY = TypeAdapter(NonEmptyArray)
_TEXT_LIST = TypeAdapter(TextList)
_PARTY = TypeAdapter(PartyId)
_MONETARY = TypeAdapter(Monetary)


# =============================================================================
# Error Translation
# =============================================================================

_MISSING_ERRORS = {"missing", "blank_string", "too_short"}
_RANGE_ERRORS = {"greater_than", "greater_than_equal", "less_than", "less_than_equal"}

_MESSAGES = {
    "too_short": "Must contain at least one element",
    "date_parsing": "Invalid calendar date '{input}'",
    "date_from_datetime_parsing": "Invalid calendar date '{input}'",
    "greater_than": "Value {input} must be greater than {gt}",
    "greater_than_equal": "Value {input} is below minimum {ge}",
    "less_than": "Value {input} must be less than {lt}",
    "less_than_equal": "Value {input} is above maximum {le}",
}


def _join_path(field_path: str, loc: Tuple[Any, ...]) -> str:
    path = field_path
    for part in loc:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _error_code(error: Dict[str, Any], blank_is_missing: bool) -> ErrorCode:
    kind = error["type"]
    if kind in _MISSING_ERRORS or (blank_is_missing and _is_blank(error.get("input"))):
        return ErrorCode.REQUIRED_FIELD_MISSING
    if kind in _RANGE_ERRORS:
        return ErrorCode.OUT_OF_RANGE
    if kind.endswith("_type") or kind == "is_instance_of":
        return ErrorCode.INVALID_TYPE
    return ErrorCode.INVALID_FORMAT


def _error_message(error: Dict[str, Any], code: ErrorCode, expected_type: str, top_level: bool) -> str:
    kind = error["type"]
    if kind in _MESSAGES:
        return _MESSAGES[kind].format(input=error.get("input"), **error.get("ctx", {}))
    if code == ErrorCode.REQUIRED_FIELD_MISSING:
        return "Required field is missing or empty"
    if code == ErrorCode.INVALID_TYPE and top_level and kind in ("dict_type", "list_type", "string_type",
                                                                 "bool_type", "int_type", "model_type"):
        return f"Expected {expected_type}, got {type(error.get('input')).__name__}"
    return error["msg"]


def _translate(
    exc: PydanticValidationError,
    field_path: str,
    expected_type: str,
    value: Any,
    blank_is_missing: bool = True,
) -> ValidationError:
    error = exc.errors()[0]
    loc = tuple(error.get("loc", ()))
    code = _error_code(error, blank_is_missing)
    received = value if not loc else (None if error["type"] == "missing" else error.get("input"))
    return ValidationError(
        _join_path(field_path, loc),
        _error_message(error, code, expected_type, top_level=not loc),
        code=code,
        expected_type=expected_type,
        received_value=received,
        cause=exc,
    )


def validate_value(
    adapter: TypeAdapter,
    value: Any,
    field_path: str,
    expected_type: str,
    blank_is_missing: bool = True,
) -> Any:
    """Validate ``value`` with a pydantic adapter, raising ``ValidationError``.

    Args:
        adapter: TypeAdapter over one of the ``schemas.values`` types
        value: Candidate value
        field_path: Path reported on failure
        expected_type: Human-readable type name for the error
        blank_is_missing: Report None and blank strings as
            REQUIRED_FIELD_MISSING instead of a type or format error

    Returns:
        The validated (possibly coerced) value
    """
    try:
        return adapter.validate_python(value)
    except PydanticValidationError as exc:
        raise _translate(exc, field_path, expected_type, value, blank_is_missing) from exc


def validate_model(model: Type[M], value: Any, field_path: str) -> M:
    """Validate a document or value object against a pydantic model.

    Example:
        >>> header = validate_model(TransactionHeader, transfer, "stockTransfer")
        >>> header.id
        'xfer-1'
    """
    data = dict(value) if isinstance(value, Mapping) else value
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise _translate(exc, field_path, "object", value) from exc


# =============================================================================
# Strings
# =============================================================================

def require_string(value: Any, field_path: str) -> str:
    """Require a non-empty string."""
    validate_value(_TEXT, value, field_path, "string")
    return value


def optional_string_field(value: Any, field_path: str) -> Optional[str]:
    """Accept None/'' (returned as None) or a string."""
    return validate_value(_OPTIONAL_TEXT, value, field_path, "string", blank_is_missing=False)


def require_bool(value: Any, field_path: str) -> bool:
    """Require a boolean."""
    return validate_value(_FLAG, value, field_path, "boolean")


def optional_bool(value: Any, field_path: str) -> Optional[bool]:
    """Accept None or a boolean."""
    if value is None:
        return None
    return require_bool(value, field_path)


# =============================================================================
# Numerics
# =============================================================================

@lru_cache(maxsize=None)
def _bounded_decimal(
    minimum: Optional[Decimal] = None,
    maximum: Optional[Decimal] = None,
    exclusive_minimum: Optional[Decimal] = None,
) -> TypeAdapter:
    bounds = {
        key: bound
        for key, bound in (("ge", minimum), ("le", maximum), ("gt", exclusive_minimum))
        if bound is not None
    }
    return TypeAdapter(Annotated[DecimalInput, Field(**bounds)])


@lru_cache(maxsize=None)
def _bounded_int(minimum: int) -> TypeAdapter:
    return TypeAdapter(Annotated[int, Field(ge=minimum)])


def require_numeric(value: Any, field_path: str) -> Any:
    """Require a decimal-shaped value (int, Decimal or decimal string).

    Floats are rejected: binary floating point cannot represent ledger
    decimals exactly.
    """
    validate_value(_DECIMAL, value, field_path, "decimal")
    return value


def optional_numeric_field(value: Any, field_path: str) -> Any:
    """Accept None/'' (returned as None) or a decimal-shaped value."""
    if value is None or value == "":
        return None
    return require_numeric(value, field_path)


def to_decimal(value: Any, field_path: str) -> Decimal:
    """Validate a decimal-shaped value and return it as ``Decimal``.

    None is reported as a type error rather than a missing field; callers
    use this for values already known to be present.
    """
    return validate_value(_DECIMAL, value, field_path, "decimal", blank_is_missing=False)


def decimal_text(value: Any, field_path: str) -> str:
    """Require a plain decimal string (no exponent, no separators)."""
    return validate_value(_DECIMAL_TEXT, value, field_path, "decimal string", blank_is_missing=False)


def validate_numeric_range(
    value: Any,
    field_path: str,
    minimum: Optional[Decimal] = None,
    maximum: Optional[Decimal] = None,
) -> Decimal:
    """Require a decimal within [minimum, maximum] (inclusive bounds).

    Raises:
        ValidationError: OUT_OF_RANGE if outside the bounds
    """
    return validate_value(_bounded_decimal(minimum, maximum), value, field_path, "decimal")


def validate_positive(value: Any, field_path: str) -> Decimal:
    """Require a strictly positive decimal."""
    return validate_value(_bounded_decimal(exclusive_minimum=Decimal(0)), value, field_path, "decimal")


def validate_non_negative(value: Any, field_path: str) -> Decimal:
    """Require a decimal >= 0."""
    return validate_numeric_range(value, field_path, minimum=Decimal(0))


def require_int(value: Any, field_path: str, minimum: Optional[int] = None) -> int:
    """Require an integer (or an integral decimal string) >= minimum."""
    number = validate_value(_INTEGER, value, field_path, "integer")
    if minimum is not None:
        validate_value(_bounded_int(minimum), number, field_path, "integer")
    return number


# =============================================================================
# Dates
# =============================================================================

def require_date(value: Any, field_path: str, allow_time: bool = False) -> str:
    """Require a real calendar date in YYYY-MM-DD form.

    Args:
        value: Candidate date string
        field_path: Path reported on failure
        allow_time: Accept ledger times ('2024-01-15T00:00:00.000Z') and
            validate only the date part
    """
    text = require_string(value, field_path)
    validate_value(_LEDGER_DATE if allow_time else _CALENDAR_DATE, text, field_path, "date")
    return text


def to_date(value: Any, field_path: str, blank_is_missing: bool = True) -> date:
    """Validate a date, a calendar date string or a ledger time and return the date."""
    return validate_value(_LEDGER_DATE, value, field_path, "date", blank_is_missing=blank_is_missing)


def optional_date_field(value: Any, field_path: str, allow_time: bool = False) -> Optional[str]:
    """Accept None/'' (returned as None) or a valid date."""
    if value is None or value == "":
        return None
    return require_date(value, field_path, allow_time=allow_time)


# =============================================================================
# Containers
# =============================================================================

def require_mapping(value: Any, field_path: str) -> Mapping[str, Any]:
    """Require a JSON object."""
    validate_value(_OBJECT, value, field_path, "object")
    return value


def require_list(value: Any, field_path: str) -> List[Any]:
    """Require a JSON array (possibly empty)."""
    return validate_value(_ARRAY, value, field_path, "array")


def optional_list(value: Any, field_path: str) -> List[Any]:
    """Accept None (returned as []) or an array."""
    if value is None:
        return []
    return require_list(value, field_path)


def require_non_empty_list(value: Any, field_path: str) -> List[Any]:
    """Require an array with at least one element."""
    return validate_value(_NON_EMPTY_ARRAY, value, field_path, "array")


def validate_list_items(
    items: List[Any],
    field_path: str,
    validator: Callable[[Any, str], T],
) -> List[T]:
    """Apply ``validator`` to every element, reporting ``path[i]`` on failure."""
    return [validator(item, f"{field_path}[{index}]") for index, item in enumerate(items)]


def require_string_list(value: Any, field_path: str, non_empty: bool = False) -> List[str]:
    """Require an array of non-empty strings."""
    items = require_non_empty_list(value, field_path) if non_empty else optional_list(value, field_path)
    return validate_value(_TEXT_LIST, items, field_path, "string")


# =============================================================================
# Domain Shapes
# =============================================================================

def require_monetary(value: Any, field_path: str) -> Dict[str, Any]:
    """Require ``{amount: decimal, currency: 'XXX'}``."""
    validate_value(_MONETARY, dict(value) if isinstance(value, Mapping) else value, field_path, "monetary")
    return dict(value)


def optional_monetary(value: Any, field_path: str) -> Optional[Dict[str, Any]]:
    """Accept None or a monetary value."""
    if value is None:
        return None
    return require_monetary(value, field_path)


def validate_party_id(value: Any, field_path: str = "party") -> str:
    """Require a ledger party id (non-empty, no whitespace)."""
    return validate_value(_PARTY, value, field_path, "party")


def validate_contract_id(value: Any, field_path: str = "contractId") -> str:
    """Require a ledger contract id (non-empty string)."""
    return require_string(value, field_path)
