"""
Read-only status evaluation against an encodedList.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from bitstring_status_list.bitstring import BitstringStatusList
from bitstring_status_list.credential import (
    StatusMessage,
    StatusPurpose,
    parse_status_identifier,
)
from bitstring_status_list.errors import ErrorCode, StatusListError


log = logging.getLogger(__name__)

_DECIMAL = re.compile(r"[0-9]+")


@dataclass
class StatusEvaluation:
    """Result of evaluating one status list entry."""

    status: int
    valid: bool
    purpose: str
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status,
            "valid": self.valid,
            "purpose": self.purpose,
        }
        if self.message is not None:
            data["message"] = self.message
        return data


def parse_status_list_index(value: int | str) -> int:
    """Normalize a statusListIndex to a non-negative integer.

    Raises:
        StatusListError: MALFORMED_VALUE for negative numbers, non-decimal
            strings and other types.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE,
                "statusListIndex must be a non-negative integer.",
            )
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise StatusListError(ErrorCode.MALFORMED_VALUE, "statusListIndex is required.")
        if _DECIMAL.fullmatch(text):
            return int(text, 10)

    raise StatusListError(
        ErrorCode.MALFORMED_VALUE,
        f"statusListIndex must be a non-negative integer string, got {value!r}.",
    )


def _lookup_message(
    status: int, messages: Sequence[StatusMessage | Mapping[str, Any]]
) -> str | None:
    for item in messages:
        if isinstance(item, StatusMessage):
            identifier, label = item.status, item.message
        elif isinstance(item, Mapping):
            identifier, label = item.get("status"), item.get("message")
        else:
            log.debug("Skipping non-object status message entry %r", item)
            continue
        try:
            value = parse_status_identifier(identifier)
        except StatusListError as e:
            # Unrelated malformed entries must not hide a later match
            log.debug("Skipping status message entry %r: %s", identifier, e.message)
            continue
        if value == status:
            return label
    return None


def evaluate_status(
    encoded_list: str,
    status_list_index: int | str,
    status_purpose: StatusPurpose | str,
    status_size: int | None = 1,
    status_messages: Sequence[StatusMessage | Mapping[str, Any]] | None = None,
    minimum_entries: int | None = None,
) -> StatusEvaluation:
    """Evaluate the status at one index of an encodedList.

    The encodedList is decoded into a transient list for every call, so no
    state is shared with the list that produced it.

    Args:
        encoded_list: The multibase encoded bitstring.
        status_list_index: Entry index as an integer or decimal string.
        status_purpose: Purpose of the list.
        status_size: Bits per entry (None means 1).
        status_messages: Catalog used to label values for the "message" purpose.
        minimum_entries: Floor on the number of entries.

    Returns:
        StatusEvaluation with the raw value and validity.

    Raises:
        StatusListError: MALFORMED_VALUE, STATUS_LIST_LENGTH or RANGE.
    """
    index = parse_status_list_index(status_list_index)
    status_list = BitstringStatusList.from_encoded(
        encoded_list,
        status_size=status_size if status_size is not None else 1,
        minimum_entries=minimum_entries,
    )

    status = status_list.get_entry(index)
    purpose = status_purpose.value if isinstance(status_purpose, StatusPurpose) else status_purpose
    evaluation = StatusEvaluation(status=status, valid=status == 0, purpose=purpose)

    if purpose == StatusPurpose.MESSAGE.value and status_messages:
        evaluation.message = _lookup_message(status, status_messages)

    return evaluation
