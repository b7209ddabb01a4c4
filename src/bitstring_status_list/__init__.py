"""
Bitstring Status List - W3C credential status list library.

Supports:
- Compressed multibase encodedList encoding and decoding (GZIP, base64url)
- Multi-bit status entries packed MSB-first
- BitstringStatusListCredential construction with statusSize inference
- Status evaluation with status message catalogs
- Batch updates, status registries and credentialStatus checking
"""

from bitstring_status_list.bitstring import MINIMUM_ENTRY_COUNT, BitstringStatusList
from bitstring_status_list.checker import (
    CredentialStatus,
    StatusCheckResult,
    StatusListChecker,
    StatusListEntry,
)
from bitstring_status_list.codec import (
    MIN_UNCOMPRESSED_BYTE_LENGTH,
    MULTIBASE_BASE64URL_PREFIX,
    decode_bitstring,
    encode_bitstring,
)
from bitstring_status_list.credential import (
    DEFAULT_CONTEXTS,
    DEFAULT_TYPES,
    StatusListCredentialResult,
    StatusMessage,
    StatusPurpose,
    create_status_list_credential,
    infer_status_size,
    parse_status_identifier,
    status_list_from_credential,
    sync_encoded_list,
)
from bitstring_status_list.errors import ERROR_URI_PREFIX, ErrorCode, StatusListError
from bitstring_status_list.evaluator import (
    StatusEvaluation,
    evaluate_status,
    parse_status_list_index,
)
from bitstring_status_list.registry import StatusEvent, StatusRegistry
from bitstring_status_list.updates import StatusUpdate, apply_status_updates

__version__ = "0.1.0"

__all__ = [
    "BitstringStatusList",
    "MINIMUM_ENTRY_COUNT",
    "MIN_UNCOMPRESSED_BYTE_LENGTH",
    "MULTIBASE_BASE64URL_PREFIX",
    "encode_bitstring",
    "decode_bitstring",
    "DEFAULT_CONTEXTS",
    "DEFAULT_TYPES",
    "StatusListCredentialResult",
    "StatusMessage",
    "StatusPurpose",
    "create_status_list_credential",
    "infer_status_size",
    "parse_status_identifier",
    "status_list_from_credential",
    "sync_encoded_list",
    "StatusEvaluation",
    "evaluate_status",
    "parse_status_list_index",
    "StatusUpdate",
    "apply_status_updates",
    "StatusRegistry",
    "StatusEvent",
    "StatusListChecker",
    "StatusListEntry",
    "StatusCheckResult",
    "CredentialStatus",
    "ErrorCode",
    "ERROR_URI_PREFIX",
    "StatusListError",
]
