"""Manifest assembly and replication diffing.

Decoded ledger records are grouped by category into a ``Manifest``; the
transactions collection is put in replay order by the sequencer. A record
that fails to decode, for any reason, is logged and recorded as a failure so
that one malformed entity never hides the rest of the read-out.

The replication diff compares a source of truth against the ledger state
and lists the creates, edits and deletes needed to bring the ledger in line.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .codec import registry
from .codec.comparison import ocf_deep_equal
from .errors import ContractError, ErrorCode, OcpError, ValidationError
from .schemas.manifest import (
    DecodeFailure,
    Manifest,
    ManifestResult,
    PortableObject,
    ReplicationDiff,
    ReplicationItem,
    SecurityIdConflict,
)
from .sequencer import transaction_sort_key

logger = logging.getLogger(__name__)

ISSUANCE_ENTITY_TYPES = frozenset({
    "stockIssuance",
    "convertibleIssuance",
    "equityCompensationIssuance",
    "warrantIssuance",
})

LedgerDataMap = Dict[str, Dict[str, PortableObject]]


# =============================================================================
# Ledger Records
# =============================================================================

@dataclass(frozen=True)
class LedgerRecord:
    """One contract read from the ledger.

    Attributes:
        entity_type: Registered entity type (e.g. 'stockIssuance')
        contract_id: Ledger contract id
        create_argument: Contract create argument holding the ``*_data`` record
        created_at: Ledger creation timestamp, used to order same-day transactions
    """

    entity_type: str
    contract_id: str
    create_argument: Mapping[str, Any]
    created_at: Optional[str] = None


def _failure(record_type: str, contract_id: Optional[str], exc: Exception) -> DecodeFailure:
    code = exc.code.value if isinstance(exc, OcpError) else "UNEXPECTED"
    message = exc.message if isinstance(exc, OcpError) else str(exc)
    return DecodeFailure(entity_type=record_type, contract_id=contract_id, code=code, message=message)


# =============================================================================
# Assembly
# =============================================================================

def assemble_manifest(records: Iterable[LedgerRecord], strict: Optional[bool] = None) -> ManifestResult:
    """Decode ledger records and group them into a manifest.

    Args:
        records: Ledger records in any order
        strict: Enum strictness override passed to the decoders

    Returns:
        ManifestResult whose manifest holds every record that decoded, with
        transactions in replay order, and whose failures list the rest
    """
    manifest = Manifest()
    failures: List[DecodeFailure] = []
    transactions: List[Tuple[str, PortableObject]] = []

    for record in records:
        try:
            spec = registry.get_spec(record.entity_type)
            document = registry.decode_create_argument(record.entity_type, record.create_argument, strict=strict)
            if spec.collection == "issuer":
                if manifest.issuer is not None:
                    raise ValidationError(
                        "issuer", "Ledger read-out contains more than one issuer",
                        code=ErrorCode.SCHEMA_MISMATCH, received_value=document.get("id"),
                    )
                manifest.issuer = document
            elif spec.is_transaction:
                sort_key = transaction_sort_key({**document, "createdAt": record.created_at})
                transactions.append((sort_key, document))
            else:
                getattr(manifest, spec.collection).append(document)
        except OcpError as exc:
            logger.warning(
                "Skipping %s contract %s: [%s] %s",
                record.entity_type, record.contract_id, exc.code.value, exc.message,
            )
            failures.append(_failure(record.entity_type, record.contract_id, exc))
        except Exception as exc:
            logger.exception(
                "Skipping %s contract %s after unexpected decode error",
                record.entity_type, record.contract_id,
            )
            failures.append(_failure(record.entity_type, record.contract_id, exc))

    transactions.sort(key=lambda pair: pair[0])
    manifest.transactions = [document for _, document in transactions]

    logger.info(
        "Assembled manifest: %d objects, %d transactions, %d skipped",
        count_manifest_objects(manifest) - len(manifest.transactions),
        len(manifest.transactions),
        len(failures),
    )
    return ManifestResult(manifest=manifest, failures=failures)


def count_manifest_objects(manifest: Manifest) -> int:
    """Total number of portable objects in the manifest (issuer included)."""
    total = 1 if manifest.issuer else 0
    for items in manifest.collections().values():
        total += len(items)
    return total + len(manifest.transactions)


def build_ledger_data_map(manifest: Manifest) -> LedgerDataMap:
    """Index a manifest as ``{entity_type: {id: document}}``.

    Plan security object types index under their equity compensation
    entity type.

    Raises:
        ValidationError: If a document has no id or an unknown object_type
    """
    result: LedgerDataMap = {}
    documents: List[PortableObject] = [manifest.issuer] if manifest.issuer else []
    for items in manifest.collections().values():
        documents.extend(items)
    documents.extend(manifest.transactions)

    for document in documents:
        object_type = registry.object_type_of(document)
        spec = registry.spec_for_object_type(object_type)
        if spec is None:
            raise ValidationError(
                "object_type", f"Unsupported object_type: {object_type}",
                code=ErrorCode.UNKNOWN_ENTITY_TYPE, received_value=object_type,
            )
        doc_id = document.get("id")
        if not isinstance(doc_id, str) or not doc_id:
            raise ValidationError(
                f"{spec.entity_type}.id", "Missing or invalid id",
                code=ErrorCode.REQUIRED_FIELD_MISSING, received_value=doc_id,
            )
        result.setdefault(spec.entity_type, {})[doc_id] = document
    return result


# =============================================================================
# Replication Diff
# =============================================================================

def _normalize_document(document: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(document)
    object_type = result.get("object_type")
    if object_type in registry.PLAN_SECURITY_OBJECT_TYPES:
        result["object_type"] = registry.PLAN_SECURITY_OBJECT_TYPES[object_type]
    return result


def _security_id_conflict(
    item: Mapping[str, Any],
    entity_type: str,
    security_ids: Mapping[str, Set[str]],
) -> Optional[SecurityIdConflict]:
    data = item.get("data")
    security_id = data.get("security_id") if isinstance(data, Mapping) else None
    if not isinstance(security_id, str) or security_id not in security_ids.get(entity_type, set()):
        return None
    return SecurityIdConflict(
        ocf_id=item["ocf_id"],
        entity_type=entity_type,
        security_id=security_id,
        message=(
            f"{entity_type} id=\"{item['ocf_id']}\" has security_id=\"{security_id}\" which already "
            f"exists on the ledger under a different object id"
        ),
    )


def compute_replication_diff(
    source_items: Iterable[Mapping[str, Any]],
    ledger_entities: Mapping[str, Iterable[str]],
    ledger_data: Optional[LedgerDataMap] = None,
    security_ids: Optional[Mapping[str, Set[str]]] = None,
) -> ReplicationDiff:
    """Operations needed to make the ledger match the source.

    The source is the truth: items missing on the ledger are created, items
    only on the ledger are deleted. Items on both are edits only when
    ``ledger_data`` is given and the documents differ semantically.

    Args:
        source_items: ``{"ocf_id", "entity_type", "data"}`` mappings; plan
            security entity types are matched as equity compensation
        ledger_entities: Ids on the ledger per entity type
        ledger_data: ``build_ledger_data_map`` output for edit detection
        security_ids: Security ids on the ledger per issuance entity type;
            issuance creates reusing one are reported as conflicts

    Raises:
        ContractError: RESULT_NOT_FOUND if ``ledger_data`` lacks an id that
            ``ledger_entities`` lists
        ValidationError: If a compared source item's data is not an object
    """
    diff = ReplicationDiff()
    source_ids: Dict[str, Set[str]] = {}
    seen: Set[Tuple[str, str]] = set()
    ledger_ids = {entity_type: set(ids) for entity_type, ids in ledger_entities.items()}

    for item in source_items:
        entity_type = registry.resolve_entity_type(item["entity_type"])
        ocf_id = item["ocf_id"]
        if (entity_type, ocf_id) in seen:
            continue
        seen.add((entity_type, ocf_id))
        source_ids.setdefault(entity_type, set()).add(ocf_id)

        if ocf_id not in ledger_ids.get(entity_type, set()):
            diff.creates.append(ReplicationItem(
                ocf_id=ocf_id, entity_type=item["entity_type"], operation="create", data=item.get("data"),
            ))
            if security_ids is not None and entity_type in ISSUANCE_ENTITY_TYPES:
                conflict = _security_id_conflict(item, entity_type, security_ids)
                if conflict is not None:
                    diff.conflicts.append(conflict)
            continue

        if ledger_data is None:
            continue
        ledger_document = ledger_data.get(entity_type, {}).get(ocf_id)
        if ledger_document is None:
            raise ContractError(
                f"Ledger data is missing {entity_type} '{ocf_id}' although the ledger lists it",
                code=ErrorCode.RESULT_NOT_FOUND,
            )
        data = item.get("data")
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"{item['entity_type']}.data", "Source data must be an object",
                code=ErrorCode.INVALID_TYPE, expected_type="object", received_value=data,
            )
        if not ocf_deep_equal(_normalize_document(data), _normalize_document(ledger_document)):
            diff.edits.append(ReplicationItem(
                ocf_id=ocf_id, entity_type=item["entity_type"], operation="edit", data=dict(data),
            ))

    for entity_type, ids in ledger_ids.items():
        kept = source_ids.get(entity_type, set())
        for ocf_id in sorted(ids - kept):
            diff.deletes.append(ReplicationItem(ocf_id=ocf_id, entity_type=entity_type, operation="delete"))

    logger.info(
        "Replication diff: %d creates, %d edits, %d deletes, %d conflicts",
        len(diff.creates), len(diff.edits), len(diff.deletes), len(diff.conflicts),
    )
    return diff
