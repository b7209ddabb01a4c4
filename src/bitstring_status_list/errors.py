"""
Status list error taxonomy.

Error codes follow the W3C Bitstring Status List processing errors.
https://www.w3.org/TR/vc-bitstring-status-list/#processing-errors
"""

from __future__ import annotations

from enum import Enum
from typing import Any


ERROR_URI_PREFIX = "https://www.w3.org/ns/credentials/status-list#"


class ErrorCode(Enum):
    """Stable error codes carried by every StatusListError."""

    STATUS_RETRIEVAL = "STATUS_RETRIEVAL_ERROR"
    STATUS_VERIFICATION = "STATUS_VERIFICATION_ERROR"
    STATUS_LIST_LENGTH = "STATUS_LIST_LENGTH_ERROR"
    MALFORMED_VALUE = "MALFORMED_VALUE_ERROR"
    RANGE = "RANGE_ERROR"


class StatusListError(Exception):
    """Raised when a status list operation fails.

    Attributes:
        code: The ErrorCode identifying the failure class.
        message: Human-readable description.
        uri: Absolute URI of the error type.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.code = code
        self.message = message or code.value
        self.uri = f"{ERROR_URI_PREFIX}{code.value}"
        self.cause = cause
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"StatusListError({self.code.name}, {self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Client-visible representation of the error."""
        return {"code": self.code.value, "message": self.message}


def ensure(condition: Any, code: ErrorCode, message: str) -> None:
    """Raise StatusListError with ``code`` unless ``condition`` holds."""
    if not condition:
        raise StatusListError(code, message)
