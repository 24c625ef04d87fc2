"""Typed errors raised by the ledger bridge.

Every failure carries a stable machine-readable ``ErrorCode`` so callers can
branch on the category without parsing messages:

- ValidationError: user-fixable input problems at a specific field path
- ParseError: unexpected shape coming back from the ledger
- ContractError: expected data missing from a well-formed ledger response
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    REQUIRED_FIELD_MISSING = "REQUIRED_FIELD_MISSING"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_FORMAT = "INVALID_FORMAT"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    UNKNOWN_ENUM_VALUE = "UNKNOWN_ENUM_VALUE"
    UNKNOWN_ENTITY_TYPE = "UNKNOWN_ENTITY_TYPE"
    SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
    RESULT_NOT_FOUND = "RESULT_NOT_FOUND"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    CHOICE_FAILED = "CHOICE_FAILED"


class OcpError(Exception):
    """Base class for all ledger bridge errors.

    Attributes:
        code: Machine-readable error code
        cause: Underlying exception, if any
    """

    default_code = ErrorCode.INVALID_RESPONSE

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = ErrorCode(code) if code is not None else self.default_code
        self.cause = cause

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value!r}, message={self.message!r})"


class ValidationError(OcpError):
    """A field failed a presence, type, format, range or enum check."""

    default_code = ErrorCode.REQUIRED_FIELD_MISSING

    def __init__(
        self,
        field_path: str,
        message: str,
        code: Optional[ErrorCode] = None,
        expected_type: Optional[str] = None,
        received_value: Any = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            f"Validation error at '{field_path}': {message}",
            code=code,
            cause=cause,
        )
        self.field_path = field_path
        self.expected_type = expected_type
        self.received_value = received_value


class ParseError(OcpError):
    """The ledger returned data this layer cannot interpret.

    Usually indicates a version mismatch between this layer and the
    ledger contract schema.
    """

    default_code = ErrorCode.INVALID_RESPONSE

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        received_value: Any = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, code=code, cause=cause)
        self.source = source
        self.received_value = received_value


class ContractError(OcpError):
    """Expected contract data is missing from a ledger response."""

    default_code = ErrorCode.CHOICE_FAILED

    def __init__(
        self,
        message: str,
        contract_id: Optional[str] = None,
        template_id: Optional[str] = None,
        choice: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, code=code, cause=cause)
        self.contract_id = contract_id
        self.template_id = template_id
        self.choice = choice
