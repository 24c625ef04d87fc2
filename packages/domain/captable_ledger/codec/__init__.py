"""Converters between portable documents and ledger contract arguments.

This package contains the conversion core of the ledger bridge:
- Scalar encodings (dates, numeric strings, optionals)
- Enum dictionaries (portable string <-> ledger tag)
- Shared records (monetary, ratio, contact info, share ranges)
- Per-entity encoders and decoders
- Entity registry dispatching on entity type
- Semantic document comparison

Every converter is a pure function from a mapping to a new dict. Encoders
raise ValidationError, decoders raise ParseError.

Usage:
    from captable_ledger.codec import encode, decode

    inner = encode("stockIssuance", document)
    document = decode("stockIssuance", inner)
"""

from .registry import (
    ENTITY_SPECS,
    PLAN_SECURITY_ALIASES,
    EntitySpec,
    decode,
    decode_create_argument,
    encode,
    encode_create_argument,
    entity_types,
    extract_create_argument,
    extract_created_at,
    extract_entity_data,
    get_spec,
    normalize_plan_security,
    object_type_of,
    resolve_entity_type,
    spec_for_object_type,
)
from .comparison import ComparisonResult, ocf_compare, ocf_deep_equal, strip_internal_fields
from .enums import ALL_DICTIONARIES, EnumDictionary

__all__ = [
    "ENTITY_SPECS",
    "PLAN_SECURITY_ALIASES",
    "EntitySpec",
    "decode",
    "decode_create_argument",
    "encode",
    "encode_create_argument",
    "entity_types",
    "extract_create_argument",
    "extract_created_at",
    "extract_entity_data",
    "get_spec",
    "normalize_plan_security",
    "object_type_of",
    "resolve_entity_type",
    "spec_for_object_type",
    "ComparisonResult",
    "ocf_compare",
    "ocf_deep_equal",
    "strip_internal_fields",
    "ALL_DICTIONARIES",
    "EnumDictionary",
]
