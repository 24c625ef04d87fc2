"""Transaction sequencer.

Ledger read-outs arrive in storage order, which is not business-event order.
The downstream engine replays transactions in sequence, so the sequencer
assigns every transaction a strict total order:

1. Calendar day of ``date``
2. Weight of ``object_type`` within the day (creation before consumption
   before destruction)
3. ``security_id`` (transactions without one group together)
4. Ledger creation timestamp (missing timestamps sort last)
5. ``id``

The composite key ``day|weight|group|created|id`` compares byte-wise in
exactly that order.
"""

import re
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping

from .errors import ErrorCode, ValidationError
from .codec.validation import require_date

NO_SECURITY_GROUP = "_no_security_"
MAX_CREATED_AT = "9999-12-31T23:59:59.999Z"
DEFAULT_WEIGHT = 50

_ISO_FRACTION = re.compile(r"(T\d{2}:\d{2}:\d{2})(\.\d+)?")


def _weights(*groups) -> Dict[str, int]:
    table: Dict[str, int] = {}
    for weight, object_types in groups:
        for object_type in object_types:
            table[object_type] = weight
    return table


TRANSACTION_WEIGHTS: Mapping[str, int] = MappingProxyType(_weights(
    (5, ("TX_ISSUER_AUTHORIZED_SHARES_ADJUSTMENT", "TX_STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT",
         "TX_STOCK_PLAN_POOL_ADJUSTMENT", "TX_STOCK_PLAN_RETURN_TO_POOL")),
    (10, ("TX_STOCK_ISSUANCE", "TX_EQUITY_COMPENSATION_ISSUANCE", "TX_PLAN_SECURITY_ISSUANCE",
          "TX_CONVERTIBLE_ISSUANCE", "TX_WARRANT_ISSUANCE")),
    (11, ("TX_STOCK_ACCEPTANCE", "TX_EQUITY_COMPENSATION_ACCEPTANCE", "TX_PLAN_SECURITY_ACCEPTANCE",
          "TX_WARRANT_ACCEPTANCE")),
    (12, ("TX_VESTING_START",)),
    (13, ("TX_VESTING_EVENT",)),
    (14, ("TX_VESTING_ACCELERATION",)),
    (15, ("TX_STOCK_CLASS_SPLIT",)),
    (16, ("TX_STOCK_RETRACTION", "TX_EQUITY_COMPENSATION_RETRACTION", "TX_PLAN_SECURITY_RETRACTION",
          "TX_CONVERTIBLE_RETRACTION", "TX_WARRANT_RETRACTION")),
    (17, ("TX_STOCK_CONSOLIDATION",)),
    (18, ("TX_STOCK_CLASS_CONVERSION_RATIO_ADJUSTMENT",)),
    (19, ("TX_EQUITY_COMPENSATION_REPRICING",)),
    (20, ("TX_STOCK_TRANSFER", "TX_EQUITY_COMPENSATION_TRANSFER", "TX_PLAN_SECURITY_TRANSFER",
          "TX_CONVERTIBLE_TRANSFER", "TX_WARRANT_TRANSFER")),
    (22, ("TX_CONVERTIBLE_ACCEPTANCE",)),
    (25, ("TX_EQUITY_COMPENSATION_RELEASE", "TX_PLAN_SECURITY_RELEASE")),
    (30, ("TX_EQUITY_COMPENSATION_EXERCISE", "TX_PLAN_SECURITY_EXERCISE", "TX_WARRANT_EXERCISE")),
    (35, ("TX_CONVERTIBLE_CONVERSION", "TX_STOCK_CONVERSION")),
    (40, ("TX_STOCK_REPURCHASE", "TX_STOCK_REISSUANCE", "TX_STOCK_CANCELLATION",
          "TX_EQUITY_COMPENSATION_CANCELLATION", "TX_PLAN_SECURITY_CANCELLATION",
          "TX_WARRANT_CANCELLATION", "TX_CONVERTIBLE_CANCELLATION")),
    (45, ("TX_STAKEHOLDER_RELATIONSHIP_CHANGE_EVENT", "TX_STAKEHOLDER_STATUS_CHANGE_EVENT")),
))


def transaction_weight(transaction: Mapping[str, Any]) -> int:
    """Within-day priority of a transaction; unknown types get 50."""
    return TRANSACTION_WEIGHTS.get(transaction.get("object_type"), DEFAULT_WEIGHT)


def _parse_iso_timestamp(value: str) -> datetime:
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    match = _ISO_FRACTION.search(text)
    if match and match.group(2):
        digits = (match.group(2)[1:] + "000000")[:6]
        text = f"{text[:match.start(2)]}.{digits}{text[match.end(2):]}"
    return datetime.fromisoformat(text)


def _utc_millis(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def created_at_key(value: Any) -> str:
    """Normalize a ledger creation timestamp for the sort key.

    ISO strings (any fractional precision, any offset; naive means UTC),
    datetimes and epoch milliseconds all become
    ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC, so the keys compare
    chronologically. Anything missing or unparseable sorts as maximally
    late.

    Example:
        >>> created_at_key("2024-06-01T12:00:00.5+02:00")
        '2024-06-01T10:00:00.500Z'
    """
    if isinstance(value, bool) or value is None or value == "":
        return MAX_CREATED_AT
    if isinstance(value, datetime):
        return _utc_millis(value)
    if isinstance(value, (int, float)):
        try:
            return _utc_millis(datetime.fromtimestamp(value / 1000, tz=timezone.utc))
        except (OverflowError, OSError, ValueError):
            return MAX_CREATED_AT
    if isinstance(value, str):
        try:
            return _utc_millis(_parse_iso_timestamp(value))
        except (OverflowError, ValueError):
            return MAX_CREATED_AT
    return MAX_CREATED_AT


def _transaction_day(transaction: Mapping[str, Any]) -> str:
    raw = transaction.get("date")
    try:
        return require_date(raw, "date", allow_time=True).split("T", 1)[0]
    except ValidationError as exc:
        code = ErrorCode.REQUIRED_FIELD_MISSING if raw is None or raw == "" else ErrorCode.INVALID_FORMAT
        raise ValidationError(
            "date",
            f"Transaction has missing or invalid date "
            f"(id: {transaction.get('id')}, object_type: {transaction.get('object_type')}, "
            f"date: \"{raw}\")",
            code=code, expected_type="date", received_value=raw, cause=exc,
        )


def transaction_sort_key(transaction: Mapping[str, Any]) -> str:
    """Composite sort key ``day|weight|group|created|id``.

    Example:
        >>> transaction_sort_key({"id": "tx-1", "date": "2025-03-15",
        ...                       "object_type": "TX_STOCK_ISSUANCE", "security_id": "sec-1"})
        '2025-03-15|010|sec-1|9999-12-31T23:59:59.999Z|tx-1'

    Raises:
        ValidationError: If ``date`` is missing or not a valid calendar date
    """
    created = transaction.get("createdAt")
    if created is None:
        created = transaction.get("created_at")
    return "|".join((
        _transaction_day(transaction),
        f"{transaction_weight(transaction):03d}",
        transaction.get("security_id") or NO_SECURITY_GROUP,
        created_at_key(created),
        str(transaction.get("id") or ""),
    ))


def sort_transactions(transactions: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Return the transactions in replay order.

    The input is not modified. Sorting the same set twice yields the same
    order.
    """
    keyed = [(transaction_sort_key(tx), tx) for tx in transactions]
    keyed.sort(key=lambda pair: pair[0])
    return [tx for _, tx in keyed]
