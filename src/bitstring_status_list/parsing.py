"""
Validation of loosely typed input (JSON bodies, CLI options).

Each function turns raw input into typed values or raises StatusListError
before any status list operation runs.
"""

from __future__ import annotations

from typing import Any

from bitstring_status_list.credential import StatusMessage
from bitstring_status_list.errors import ErrorCode, StatusListError
from bitstring_status_list.updates import StatusUpdate


def _int_field(item: dict[str, Any], name: str) -> int:
    value = item.get(name)
    if not isinstance(value, int) or isinstance(value, bool):
        raise StatusListError(
            ErrorCode.MALFORMED_VALUE, f'Update "{name}" must be an integer.'
        )
    return value


def parse_status_messages(raw: Any) -> list[StatusMessage] | None:
    """Parse a statusMessages payload. ``None`` passes through."""
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise StatusListError(ErrorCode.MALFORMED_VALUE, "statusMessages must be an array.")

    messages: list[StatusMessage] = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE, "Each statusMessages entry must be an object."
            )
        messages.append(StatusMessage.from_dict(entry))
    return messages


def parse_status_updates(raw: Any) -> list[StatusUpdate]:
    """Parse a non-empty updates payload into StatusUpdate values."""
    if not isinstance(raw, list) or not raw:
        raise StatusListError(ErrorCode.MALFORMED_VALUE, "A non-empty updates array is required.")

    updates: list[StatusUpdate] = []
    for item in raw:
        if isinstance(item, StatusUpdate):
            updates.append(item)
            continue
        if not isinstance(item, dict):
            raise StatusListError(ErrorCode.MALFORMED_VALUE, "Each update must be an object.")
        updates.append(StatusUpdate(index=_int_field(item, "index"), value=_int_field(item, "value")))
    return updates


def parse_assignment(text: str) -> StatusUpdate:
    """Parse ``INDEX=VALUE``; a bare ``INDEX`` means value 1."""
    index_text, sep, value_text = text.partition("=")
    try:
        index = int(index_text.strip(), 10)
        value = int(value_text.strip(), 0) if sep else 1
    except ValueError as e:
        raise StatusListError(
            ErrorCode.MALFORMED_VALUE,
            f"Invalid update {text!r}, expected INDEX=VALUE.",
            cause=e,
        ) from e
    return StatusUpdate(index=index, value=value)


def parse_message_option(text: str) -> StatusMessage:
    """Parse ``STATUS=LABEL`` (e.g. ``0x2=rejected``)."""
    status, sep, message = text.partition("=")
    if not sep or not status.strip() or not message.strip():
        raise StatusListError(
            ErrorCode.MALFORMED_VALUE,
            f"Invalid status message {text!r}, expected STATUS=LABEL.",
        )
    return StatusMessage(status=status.strip(), message=message.strip())
