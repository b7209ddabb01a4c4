"""
Batch status updates.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from bitstring_status_list.bitstring import BitstringStatusList
from bitstring_status_list.errors import ErrorCode, StatusListError


@dataclass(frozen=True)
class StatusUpdate:
    """Set the entry at ``index`` to ``value``."""

    index: int
    value: int


def _as_update(item: StatusUpdate | Mapping[str, Any]) -> StatusUpdate:
    if isinstance(item, StatusUpdate):
        return item
    if isinstance(item, Mapping) and "index" in item and "value" in item:
        return StatusUpdate(index=item["index"], value=item["value"])
    raise StatusListError(
        ErrorCode.MALFORMED_VALUE,
        'Each update must be an object with "index" and "value".',
    )


def apply_status_updates(
    status_list: BitstringStatusList,
    updates: Sequence[StatusUpdate | Mapping[str, Any]],
    *,
    atomic: bool = False,
) -> int:
    """Apply a batch of updates in order.

    By default the first failing update aborts the call and the updates
    before it stay applied. With ``atomic=True`` the whole batch is validated
    first and nothing is written unless every update is valid.

    The credential's encodedList is not touched; call sync_encoded_list
    afterwards.

    Returns:
        The number of updates applied.

    Raises:
        StatusListError: MALFORMED_VALUE for a malformed batch or update,
            RANGE for an out-of-bounds index or value.
    """
    if not isinstance(updates, (list, tuple)):
        raise StatusListError(ErrorCode.MALFORMED_VALUE, "updates must be an array.")

    if atomic:
        batch = [_as_update(item) for item in updates]
        for update in batch:
            status_list.validate_entry(update.index, update.value)
        for update in batch:
            status_list.set_entry(update.index, update.value)
        return len(batch)

    for item in updates:
        update = _as_update(item)
        status_list.set_entry(update.index, update.value)
    return len(updates)
