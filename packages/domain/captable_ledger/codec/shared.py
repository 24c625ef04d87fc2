"""Sub-converters for value types embedded in many entities.

Each pair ``encode_x`` / ``decode_x`` converts one nested value between the
portable and ledger encodings. Entity converters compose these so that a
value type is always converted the same way wherever it appears:

- Monetary, ratios
- Addresses, emails, phones, names, contact info, tax ids
- Security law exemptions, share number ranges
- Vesting schedules (date/amount pairs) and termination windows
- Initial shares authorized (numeric vs. special-value tagged union)
- Capitalization definition rules
"""

import logging
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..errors import ErrorCode, ParseError
from ..schemas.values import Address, Email, Name, Phone, Ratio, SecurityExemption, TaxId
from . import enums
from .scalars import (
    date_to_ledger_time,
    decode_numeric,
    ledger_time_to_date,
    number_to_string,
    put_optional,
    unwrap_optional,
)
from .validation import (
    optional_list,
    require_date,
    require_mapping,
    require_monetary,
    require_numeric,
    require_string,
    validate_list_items,
    validate_model,
)

logger = logging.getLogger(__name__)

_NUMERIC_SHARES_RE = re.compile(r"^\d+(\.\d+)?$")


# =============================================================================
# Monetary and Ratio
# =============================================================================

def encode_monetary(value: Any, field_path: str) -> Dict[str, str]:
    """Portable monetary → ``{amount, currency}`` with a canonical amount."""
    money = require_monetary(value, field_path)
    return {
        "amount": number_to_string(money["amount"], f"{field_path}.amount"),
        "currency": money["currency"],
    }


def encode_optional_monetary(value: Any, field_path: str) -> Optional[Dict[str, str]]:
    if not value:
        return None
    return encode_monetary(value, field_path)


def decode_monetary(value: Any, field_path: str) -> Dict[str, str]:
    """Ledger monetary → portable, normalizing padded amounts."""
    money = require_mapping(unwrap_optional(value), field_path)
    return {
        "amount": decode_numeric(money.get("amount"), f"{field_path}.amount"),
        "currency": require_string(money.get("currency"), f"{field_path}.currency"),
    }


def decode_optional_monetary(value: Any, field_path: str) -> Optional[Dict[str, str]]:
    value = unwrap_optional(value)
    if not value:
        return None
    return decode_monetary(value, field_path)


def encode_ratio(numerator: Any, denominator: Any, field_path: str) -> Dict[str, str]:
    """Two portable numbers → ledger ``{numerator, denominator}``."""
    ratio = validate_model(Ratio, {"numerator": numerator, "denominator": denominator}, field_path)
    return {
        "numerator": number_to_string(ratio.numerator, f"{field_path}.numerator"),
        "denominator": number_to_string(ratio.denominator, f"{field_path}.denominator"),
    }


def decode_ratio(value: Any, field_path: str) -> Dict[str, str]:
    ratio = require_mapping(unwrap_optional(value), field_path)
    return {
        "numerator": decode_numeric(ratio.get("numerator"), f"{field_path}.numerator"),
        "denominator": decode_numeric(ratio.get("denominator"), f"{field_path}.denominator"),
    }


# =============================================================================
# Contact Details
# =============================================================================

def encode_address(value: Any, field_path: str) -> Dict[str, Any]:
    """Portable address → ledger; empty optional parts become null."""
    address = validate_model(Address, value, field_path)
    return {
        "address_type": enums.ADDRESS_TYPE.encode(address.address_type, f"{field_path}.address_type"),
        "street_suite": address.street_suite,
        "city": address.city,
        "country_subdivision": address.country_subdivision,
        "country": address.country,
        "postal_code": address.postal_code,
    }


def decode_address(value: Any, field_path: str) -> Dict[str, Any]:
    """Ledger address → portable; null parts are omitted."""
    address = validate_model(Address, value, field_path)
    result: Dict[str, Any] = {
        "address_type": enums.ADDRESS_TYPE.decode(address.address_type, f"{field_path}.address_type"),
    }
    put_optional(result, "street_suite", address.street_suite)
    put_optional(result, "city", address.city)
    put_optional(result, "country_subdivision", address.country_subdivision)
    result["country"] = address.country
    put_optional(result, "postal_code", address.postal_code)
    return result


def encode_email(value: Any, field_path: str) -> Dict[str, str]:
    email = validate_model(Email, value, field_path)
    return {
        "email_type": enums.EMAIL_TYPE.encode(email.email_type, f"{field_path}.email_type"),
        "email_address": email.email_address,
    }


def decode_email(value: Any, field_path: str) -> Dict[str, str]:
    email = validate_model(Email, value, field_path)
    return {
        "email_type": enums.EMAIL_TYPE.decode(email.email_type, f"{field_path}.email_type"),
        "email_address": email.email_address,
    }


def encode_phone(value: Any, field_path: str) -> Dict[str, str]:
    phone = validate_model(Phone, value, field_path)
    return {
        "phone_type": enums.PHONE_TYPE.encode(phone.phone_type, f"{field_path}.phone_type"),
        "phone_number": phone.phone_number,
    }


def decode_phone(value: Any, field_path: str) -> Dict[str, str]:
    phone = validate_model(Phone, value, field_path)
    return {
        "phone_type": enums.PHONE_TYPE.decode(phone.phone_type, f"{field_path}.phone_type"),
        "phone_number": phone.phone_number,
    }


def encode_name(value: Any, field_path: str) -> Dict[str, Any]:
    name = validate_model(Name, value, field_path)
    return {
        "legal_name": name.legal_name,
        "first_name": name.first_name,
        "last_name": name.last_name,
    }


def decode_name(value: Any, field_path: str) -> Dict[str, Any]:
    name = validate_model(Name, value, field_path)
    result: Dict[str, Any] = {"legal_name": name.legal_name}
    put_optional(result, "first_name", name.first_name)
    put_optional(result, "last_name", name.last_name)
    return result


def encode_contact_lists(value: Any, field_path: str) -> Dict[str, List[Dict[str, str]]]:
    info = require_mapping(value, field_path)
    phones = optional_list(info.get("phone_numbers"), f"{field_path}.phone_numbers")
    emails = optional_list(info.get("emails"), f"{field_path}.emails")
    return {
        "phone_numbers": validate_list_items(phones, f"{field_path}.phone_numbers", encode_phone),
        "emails": validate_list_items(emails, f"{field_path}.emails", encode_email),
    }


def decode_contact_lists(value: Any, field_path: str) -> Dict[str, List[Dict[str, str]]]:
    info = require_mapping(value, field_path)
    phones = optional_list(info.get("phone_numbers"), f"{field_path}.phone_numbers")
    emails = optional_list(info.get("emails"), f"{field_path}.emails")
    result: Dict[str, Any] = {}
    put_optional(result, "phone_numbers", validate_list_items(phones, f"{field_path}.phone_numbers", decode_phone))
    put_optional(result, "emails", validate_list_items(emails, f"{field_path}.emails", decode_email))
    return result


def encode_tax_id(value: Any, field_path: str) -> Dict[str, str]:
    tax = validate_model(TaxId, value, field_path)
    return {"tax_id": tax.tax_id, "country": tax.country}


decode_tax_id = encode_tax_id


# =============================================================================
# Securities
# =============================================================================

def encode_exemption(value: Any, field_path: str) -> Dict[str, str]:
    exemption = validate_model(SecurityExemption, value, field_path)
    return {"description": exemption.description, "jurisdiction": exemption.jurisdiction}


decode_exemption = encode_exemption


def encode_exemptions(value: Any, field_path: str) -> List[Dict[str, str]]:
    return validate_list_items(optional_list(value, field_path), field_path, encode_exemption)


def decode_exemptions(value: Any, field_path: str) -> List[Dict[str, str]]:
    return validate_list_items(optional_list(value, field_path), field_path, decode_exemption)


def _is_zero_range(share_range: Dict[str, Any]) -> bool:
    return (
        str(share_range.get("starting_share_number")) == "0"
        and str(share_range.get("ending_share_number")) == "0"
    )


def encode_share_ranges(value: Any, field_path: str) -> List[Dict[str, str]]:
    """Share number ranges; 0-0 placeholder ranges are dropped."""
    ranges = []
    for index, item in enumerate(optional_list(value, field_path)):
        share_range = require_mapping(item, f"{field_path}[{index}]")
        if _is_zero_range(share_range):
            continue
        ranges.append({
            "starting_share_number": number_to_string(
                share_range.get("starting_share_number"), f"{field_path}[{index}].starting_share_number"),
            "ending_share_number": number_to_string(
                share_range.get("ending_share_number"), f"{field_path}[{index}].ending_share_number"),
        })
    return ranges


def decode_share_ranges(value: Any, field_path: str) -> List[Dict[str, str]]:
    ranges = []
    for index, item in enumerate(optional_list(value, field_path)):
        share_range = require_mapping(item, f"{field_path}[{index}]")
        ranges.append({
            "starting_share_number": decode_numeric(
                share_range.get("starting_share_number"), f"{field_path}[{index}].starting_share_number"),
            "ending_share_number": decode_numeric(
                share_range.get("ending_share_number"), f"{field_path}[{index}].ending_share_number"),
        })
    return ranges


# =============================================================================
# Vesting Schedules and Termination Windows
# =============================================================================

def encode_vestings(value: Any, field_path: str) -> List[Dict[str, str]]:
    """Explicit vesting schedule; zero-amount entries are dropped."""
    vestings = []
    for index, item in enumerate(optional_list(value, field_path)):
        vesting = require_mapping(item, f"{field_path}[{index}]")
        amount = number_to_string(vesting.get("amount"), f"{field_path}[{index}].amount")
        if Decimal(amount) <= 0:
            logger.debug("Dropping non-positive vesting at %s[%d]: %s", field_path, index, amount)
            continue
        vestings.append({
            "date": date_to_ledger_time(
                require_date(vesting.get("date"), f"{field_path}[{index}].date"), f"{field_path}[{index}].date"),
            "amount": amount,
        })
    return vestings


def decode_vestings(value: Any, field_path: str) -> List[Dict[str, str]]:
    vestings = []
    for index, item in enumerate(optional_list(value, field_path)):
        vesting = require_mapping(item, f"{field_path}[{index}]")
        vestings.append({
            "date": ledger_time_to_date(require_string(vesting.get("date"), f"{field_path}[{index}].date")),
            "amount": decode_numeric(vesting.get("amount"), f"{field_path}[{index}].amount"),
        })
    return vestings


def encode_termination_window(value: Any, field_path: str) -> Dict[str, str]:
    window = require_mapping(value, field_path)
    return {
        "reason": enums.TERMINATION_REASON.encode(window.get("reason"), f"{field_path}.reason"),
        "period": number_to_string(
            require_numeric(window.get("period"), f"{field_path}.period"), f"{field_path}.period"),
        "period_type": enums.PERIOD_TYPE.encode(window.get("period_type"), f"{field_path}.period_type"),
    }


def decode_termination_window(value: Any, field_path: str) -> Dict[str, str]:
    window = require_mapping(value, field_path)
    return {
        "reason": enums.TERMINATION_REASON.decode(window.get("reason"), f"{field_path}.reason"),
        "period": decode_numeric(window.get("period"), f"{field_path}.period"),
        "period_type": enums.PERIOD_TYPE.decode(window.get("period_type"), f"{field_path}.period_type"),
    }


# =============================================================================
# Initial Shares Authorized
# =============================================================================

def encode_initial_shares(value: Any, field_path: str) -> Dict[str, str]:
    """Encode authorized shares as a numeric-or-enum tagged union.

    Numeric values route to ``OcfInitialSharesNumeric``; 'UNLIMITED' routes
    to the unlimited enum tag; anything else routes to not-applicable. The
    catch-all keeps the wire format forward compatible with new special
    values, and is logged whenever it absorbs something unexpected.
    """
    if isinstance(value, (int, Decimal)) and not isinstance(value, bool):
        return {"tag": "OcfInitialSharesNumeric", "value": number_to_string(value, field_path)}
    text = value.strip() if isinstance(value, str) else value
    if isinstance(text, str) and _NUMERIC_SHARES_RE.match(text):
        return {"tag": "OcfInitialSharesNumeric", "value": number_to_string(text, field_path)}
    if text == "UNLIMITED":
        return {"tag": "OcfInitialSharesEnum", "value": enums.AUTHORIZED_SHARES.encode("UNLIMITED", field_path)}
    if text != "NOT_APPLICABLE":
        logger.warning(
            "Unrecognized initial shares value %r at '%s'; encoding as NOT_APPLICABLE",
            value, field_path,
        )
    return {"tag": "OcfInitialSharesEnum", "value": enums.AUTHORIZED_SHARES.encode("NOT_APPLICABLE", field_path)}


def decode_initial_shares(value: Any, field_path: str) -> str:
    """Decode the authorized shares tagged union.

    Bare numeric strings (older contract versions) are accepted as well.
    """
    value = unwrap_optional(value)
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return decode_numeric(value, field_path)
    union = require_mapping(value, field_path)
    tag = union.get("tag")
    if tag == "OcfInitialSharesNumeric":
        return decode_numeric(union.get("value"), f"{field_path}.value")
    if tag == "OcfInitialSharesEnum":
        return enums.AUTHORIZED_SHARES.decode(union.get("value"), f"{field_path}.value")
    raise ParseError(
        f"Unknown initial shares tag {tag!r} at '{field_path}'",
        source=field_path,
        code=ErrorCode.UNKNOWN_ENUM_VALUE,
        received_value=value,
    )


# =============================================================================
# Capitalization Definition Rules
# =============================================================================

CAPITALIZATION_RULE_FLAGS = (
    "include_outstanding_shares",
    "include_outstanding_options",
    "include_outstanding_unissued_options",
    "include_this_security",
    "include_other_converting_securities",
    "include_option_pool_topup_for_promised_options",
    "include_additional_option_pool_topup",
    "include_new_money",
)


def encode_capitalization_rules(value: Any, field_path: str) -> Optional[Dict[str, bool]]:
    """Rules object → eight explicit booleans (missing flags are False)."""
    if not value:
        return None
    rules = require_mapping(value, field_path)
    return {flag: bool(rules.get(flag)) for flag in CAPITALIZATION_RULE_FLAGS}


def decode_capitalization_rules(value: Any, field_path: str) -> Optional[Dict[str, bool]]:
    value = unwrap_optional(value)
    if not value:
        return None
    rules = require_mapping(value, field_path)
    return {flag: bool(rules.get(flag)) for flag in CAPITALIZATION_RULE_FLAGS}
