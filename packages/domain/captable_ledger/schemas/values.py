"""Value types shared by portable documents and ledger records.

Annotated scalar types carry the field rules (non-empty text, decimal
shaped numbers, calendar dates, currency codes) and the small models below
describe the value objects nested in many entities. The codec validates
incoming dicts against these through ``codec.validation``, which turns
pydantic errors into ``ValidationError`` with a field path and a code.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BeforeValidator, Field, Strict, StrictBool, StrictStr
from pydantic_core import PydanticCustomError

from .base import DATE_PATTERN, DECIMAL_PATTERN, DomainModel

_DECIMAL_RE = re.compile(DECIMAL_PATTERN)
_DATE_RE = re.compile(DATE_PATTERN)
_INTEGRAL_RE = re.compile(r'^-?\d+(\.0+)?$')
_CURRENCY_RE = re.compile(r'^[A-Z]{3}$')
_WHITESPACE_RE = re.compile(r'\s')


# =============================================================================
# Validators
# =============================================================================

def _not_blank(value: str) -> str:
    if not value.strip():
        raise PydanticCustomError("blank_string", "Required field is missing or empty")
    return value


def _empty_to_none(value: Any) -> Any:
    return None if value == "" else value


def _absent_to_none(value: Any) -> Any:
    return value or None


def _decimal_input(value: Any) -> Any:
    if isinstance(value, (bool, float)):
        raise PydanticCustomError(
            "decimal_type",
            "Expected decimal string or integer, got {type_name}",
            {"type_name": type(value).__name__},
        )
    if isinstance(value, Decimal) and not value.is_finite():
        raise PydanticCustomError("finite_number", "Decimal must be finite")
    if isinstance(value, str):
        if not _DECIMAL_RE.match(value.strip()):
            raise PydanticCustomError("decimal_format", "Invalid decimal string '{value}'", {"value": value})
        return value.strip()
    return value


def _decimal_text(value: str) -> str:
    if not _DECIMAL_RE.match(value):
        raise PydanticCustomError("decimal_format", "Invalid decimal string '{value}'", {"value": value})
    return value


def _integer_input(value: Any) -> Any:
    if isinstance(value, (bool, float)) or (isinstance(value, str) and not _INTEGRAL_RE.match(value.strip())):
        raise PydanticCustomError("integer_type", "Expected integer, got {value}", {"value": repr(value)})
    if isinstance(value, str):
        return int(value.strip().split(".")[0])
    return value


def _day_part(value: Any, allow_time: bool) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise PydanticCustomError(
            "date_type", "Expected date string, got {type_name}", {"type_name": type(value).__name__},
        )
    day = value.split("T", 1)[0] if allow_time else value
    if not _DATE_RE.match(day):
        raise PydanticCustomError(
            "date_format", "Invalid date format '{value}', expected YYYY-MM-DD", {"value": value},
        )
    return day


def _calendar_day(value: Any) -> Any:
    return _day_part(value, allow_time=False)


def _ledger_day(value: Any) -> Any:
    return _day_part(value, allow_time=True)


def _currency(value: str) -> str:
    if not _CURRENCY_RE.match(value):
        raise PydanticCustomError(
            "currency_format", "Invalid ISO 4217 currency code '{value}'", {"value": value},
        )
    return value


def _party(value: str) -> str:
    if _WHITESPACE_RE.search(value):
        raise PydanticCustomError("party_format", "Party id must not contain whitespace")
    return value


# =============================================================================
# Scalar Types
# =============================================================================

RequiredText = Annotated[StrictStr, AfterValidator(_not_blank)]

OptionalText = Annotated[Optional[StrictStr], BeforeValidator(_empty_to_none)]

Flag = StrictBool

DecimalInput = Annotated[
    Decimal,
    BeforeValidator(_decimal_input),
    Field(description="Integer, Decimal or decimal string ('1000', '0.25'); floats are rejected"),
]

OptionalDecimal = Annotated[Optional[DecimalInput], BeforeValidator(_empty_to_none)]

DecimalText = Annotated[StrictStr, AfterValidator(_decimal_text)]

IntegerInput = Annotated[
    int,
    BeforeValidator(_integer_input),
    Field(description="Integer or integral string ('3', '3.0')"),
]

CalendarDate = Annotated[
    date,
    BeforeValidator(_calendar_day),
    Field(description="Calendar date: 'YYYY-MM-DD' or a date"),
]

LedgerDate = Annotated[
    date,
    BeforeValidator(_ledger_day),
    Field(description="Calendar date or ledger time ('2024-01-15T00:00:00.000Z')"),
]

OptionalLedgerDate = Annotated[Optional[LedgerDate], BeforeValidator(_empty_to_none)]

CurrencyCode = Annotated[RequiredText, AfterValidator(_currency)]

PartyId = Annotated[RequiredText, AfterValidator(_party)]

JsonObject = Dict[Any, Any]

JsonArray = Annotated[List[Any], Strict()]

NonEmptyArray = Annotated[List[Any], Strict(), Field(min_length=1)]

TextList = List[RequiredText]


# =============================================================================
# Value Objects
# =============================================================================
#
# Enum literals are typed ``Any``: the enum dictionaries check them and
# report unknown values with their own codes.
#

class Monetary(DomainModel):
    """Amount and ISO 4217 currency."""

    amount: DecimalInput
    currency: CurrencyCode


class Ratio(DomainModel):
    numerator: DecimalInput
    denominator: DecimalInput


class Name(DomainModel):
    legal_name: RequiredText
    first_name: OptionalText = None
    last_name: OptionalText = None


class Address(DomainModel):
    address_type: Any = None
    street_suite: OptionalText = None
    city: OptionalText = None
    country_subdivision: OptionalText = None
    country: RequiredText
    postal_code: OptionalText = None


class Email(DomainModel):
    email_type: Any = None
    email_address: RequiredText


class Phone(DomainModel):
    phone_type: Any = None
    phone_number: RequiredText


class TaxId(DomainModel):
    tax_id: RequiredText
    country: RequiredText


class ContactLists(DomainModel):
    """Phones and emails of a contact; either list may be omitted."""

    phone_numbers: Optional[List[Phone]] = None
    emails: Optional[List[Email]] = None


class PrimaryContact(DomainModel):
    name: Name
    phone_numbers: Optional[List[Phone]] = None
    emails: Optional[List[Email]] = None


class SecurityExemption(DomainModel):
    description: RequiredText
    jurisdiction: RequiredText


OptionalMonetary = Annotated[Optional[Monetary], BeforeValidator(_absent_to_none)]
OptionalAddress = Annotated[Optional[Address], BeforeValidator(_absent_to_none)]
OptionalEmail = Annotated[Optional[Email], BeforeValidator(_absent_to_none)]
OptionalPhone = Annotated[Optional[Phone], BeforeValidator(_absent_to_none)]
OptionalContactLists = Annotated[Optional[ContactLists], BeforeValidator(_absent_to_none)]
OptionalPrimaryContact = Annotated[Optional[PrimaryContact], BeforeValidator(_absent_to_none)]
