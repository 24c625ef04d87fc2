"""Cap Table Ledger Bridge - portable cap table documents on a contract ledger.

This package translates Open Cap Table documents to and from the argument
records of ledger contracts:
- Validating encoders and decoders for every entity type
- Transaction sequencing for replay
- Manifest assembly from ledger read-outs
- Replication diffs between a source and the ledger

The conversion core is synchronous and free of I/O; only
``captable_ledger.extraction`` talks to a ledger client.
"""

from .errors import ContractError, ErrorCode, OcpError, ParseError, ValidationError
from .config import LedgerBridgeSettings, configure_logging, get_settings
from .codec import decode, encode, decode_create_argument, encode_create_argument
from .manifest import LedgerRecord, assemble_manifest, compute_replication_diff
from .sequencer import sort_transactions, transaction_sort_key
from .schemas import *  # noqa: F403, F401

__version__ = "0.1.0"
