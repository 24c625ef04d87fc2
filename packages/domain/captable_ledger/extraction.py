"""Ledger extraction orchestration.

Reads every referenced contract through a ``LedgerClient`` with bounded
concurrency, then assembles the manifest once all reads have finished (the
sequencer needs the complete transaction set).

This is the only asynchronous module; the conversion core it calls is
synchronous and pure.

Example:
    result = await extract_manifest(client, {
        "issuer": ["00ab..."],
        "stakeholder": ["00cd...", "00ef..."],
        "stockIssuance": ["0012..."],
    })
    result.manifest.model_dump(by_alias=True)
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple, Union

from .codec.registry import extract_create_argument, extract_created_at
from .config import get_settings
from .errors import ContractError, ErrorCode, OcpError
from .manifest import LedgerRecord, assemble_manifest
from .schemas.manifest import DecodeFailure, ManifestResult

logger = logging.getLogger(__name__)


class LedgerClient(Protocol):
    """Read access to the ledger JSON API.

    Transport, authentication, timeouts and retries are the client's concern.
    """

    async def get_events_by_contract_id(self, contract_id: str) -> Dict[str, Any]:
        """Return the contract's events.

        Expected shape::

            {"created": {"createdEvent": {"createArgument": {...},
                                          "createdAt": "2025-03-15T10:30:00.000Z"}}}
        """
        ...


ContractReferences = Union[Mapping[str, Iterable[str]], Iterable[Tuple[str, str]]]


def _flatten(references: ContractReferences) -> List[Tuple[str, str]]:
    if isinstance(references, Mapping):
        return [(entity_type, cid) for entity_type, ids in references.items() for cid in ids]
    return [(entity_type, cid) for entity_type, cid in references]


async def fetch_record(client: LedgerClient, entity_type: str, contract_id: str) -> LedgerRecord:
    """Read one contract and wrap its create argument.

    Raises:
        ContractError: RESULT_NOT_FOUND if the issuer contract has no created event
        ParseError: INVALID_RESPONSE for any other malformed response
    """
    response = await client.get_events_by_contract_id(contract_id)
    if entity_type == "issuer" and not (response or {}).get("created"):
        raise ContractError(
            f"Issuer contract {contract_id} returned no created event",
            contract_id=contract_id, code=ErrorCode.RESULT_NOT_FOUND,
        )
    return LedgerRecord(
        entity_type=entity_type,
        contract_id=contract_id,
        create_argument=extract_create_argument(response, contract_id),
        created_at=extract_created_at(response),
    )


async def fetch_records(
    client: LedgerClient,
    references: ContractReferences,
    max_concurrency: Optional[int] = None,
) -> Tuple[List[LedgerRecord], List[DecodeFailure]]:
    """Read every referenced contract, at most ``max_concurrency`` at a time.

    A failed read is logged and reported; it never cancels the other reads.

    Args:
        client: Ledger client
        references: ``{entity_type: [contract_id, ...]}`` or
            ``[(entity_type, contract_id), ...]``
        max_concurrency: Concurrent read limit (default from settings)

    Returns:
        (records, failures), records in reference order
    """
    limit = max_concurrency or get_settings().max_concurrency
    if limit < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {limit}")
    semaphore = asyncio.Semaphore(limit)
    pending = _flatten(references)

    async def guarded(entity_type: str, contract_id: str) -> Union[LedgerRecord, DecodeFailure]:
        async with semaphore:
            try:
                return await fetch_record(client, entity_type, contract_id)
            except OcpError as exc:
                logger.warning(
                    "Skipping %s contract %s: [%s] %s",
                    entity_type, contract_id, exc.code.value, exc.message,
                )
                return DecodeFailure(
                    entity_type=entity_type, contract_id=contract_id,
                    code=exc.code.value, message=exc.message,
                )
            except Exception as exc:
                logger.warning(
                    "Skipping %s contract %s: client error %s",
                    entity_type, contract_id, exc, exc_info=True,
                )
                return DecodeFailure(
                    entity_type=entity_type, contract_id=contract_id,
                    code="UNEXPECTED", message=str(exc),
                )

    results = await asyncio.gather(*(guarded(entity_type, cid) for entity_type, cid in pending))
    records = [item for item in results if isinstance(item, LedgerRecord)]
    failures = [item for item in results if isinstance(item, DecodeFailure)]
    return records, failures


async def extract_manifest(
    client: LedgerClient,
    references: ContractReferences,
    max_concurrency: Optional[int] = None,
    strict: Optional[bool] = None,
) -> ManifestResult:
    """Read, decode, sequence and assemble a manifest.

    Read failures and decode failures are both reported in
    ``ManifestResult.failures``.
    """
    records, failures = await fetch_records(client, references, max_concurrency)
    result = assemble_manifest(records, strict=strict)
    result.failures = failures + result.failures
    return result
