"""
Status list registry.

A StatusRegistry owns one status list credential together with its in-memory
list, the set of flagged indices and a bounded event log. Callers create and
pass registries explicitly; there is no module-level instance.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from bitstring_status_list.bitstring import BitstringStatusList
from bitstring_status_list.config import DEFAULT_ISSUER, load_settings
from bitstring_status_list.credential import (
    StatusMessage,
    StatusPurpose,
    create_status_list_credential,
    status_list_from_credential,
    sync_encoded_list,
)
from bitstring_status_list.errors import ErrorCode, StatusListError, ensure
from bitstring_status_list.evaluator import (
    StatusEvaluation,
    evaluate_status,
    parse_status_list_index,
)
from bitstring_status_list.parsing import parse_status_messages, parse_status_updates
from bitstring_status_list.updates import StatusUpdate, apply_status_updates


log = logging.getLogger(__name__)

DEFAULT_STATUS_MESSAGES = (
    StatusMessage(status="0x0", message="pending_review"),
    StatusMessage(status="0x1", message="accepted"),
    StatusMessage(status="0x2", message="rejected"),
)

FLAGGED_SAMPLE_SIZE = 20


class EventType(Enum):
    """Registry event types."""

    RESET = "reset"
    UPDATE = "update"
    EVALUATE = "evaluate"
    INFO = "info"


@dataclass
class StatusEvent:
    """One entry of the registry event log."""

    id: int
    timestamp: str
    type: EventType
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "type": self.type.value,
            "message": self.message,
        }
        if self.details is not None:
            data["details"] = self.details
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StatusEvent:
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            type=EventType(data["type"]),
            message=data["message"],
            details=data.get("details"),
        )


@dataclass
class RegistrySummary:
    """Snapshot of a registry for display."""

    credential_id: str | None
    status_purpose: str
    entry_count: int
    status_size: int
    encoded_list_length: int
    flagged_count: int
    flagged_samples: list[int]
    status_messages: list[StatusMessage] = field(default_factory=list)
    events: list[StatusEvent] = field(default_factory=list)


class StatusRegistry:
    """Single status list with an explicit init/reset/teardown lifecycle.

    Every mutation re-materializes the credential's encodedList before
    returning, and all evaluations read the materialized token. Mutating
    methods are serialized by a per-registry lock.
    """

    def __init__(
        self,
        issuer: str | Mapping[str, Any] = DEFAULT_ISSUER,
        *,
        status_purpose: StatusPurpose | str = StatusPurpose.REVOCATION,
        status_messages: Sequence[StatusMessage] | None = None,
        credential_id: str | None = None,
        list_id: str | None = None,
        default_entry_value: int = 0,
        entry_count: int | None = None,
        minimum_entries: int | None = None,
        max_events: int | None = None,
    ) -> None:
        """Configure the registry. Call initialize() before use.

        Args:
            issuer: Issuer of the status list credential.
            status_purpose: Purpose of the list.
            status_messages: Catalog for the "message" purpose. The default
                catalog is used when omitted.
            credential_id: Id of the status list credential.
            list_id: Id of the credentialSubject (defaults to
                ``<credential_id>#list``).
            default_entry_value: Initial value of every entry.
            entry_count: Number of entries.
            minimum_entries: Floor on the number of entries.
            max_events: Capacity of the event log (defaults to BSL_MAX_EVENTS).
        """
        if max_events is None:
            max_events = load_settings().max_events
        if max_events < 1:
            raise ValueError("max_events must be positive")
        self._issuer = issuer
        self._status_purpose = (
            status_purpose.value if isinstance(status_purpose, StatusPurpose) else status_purpose
        )
        self._status_messages = list(status_messages) if status_messages else None
        self._credential_id = credential_id
        self._list_id = list_id or (f"{credential_id}#list" if credential_id else None)
        self._default_entry_value = default_entry_value
        self._entry_count = entry_count
        self._minimum_entries = minimum_entries

        self._lock = threading.RLock()
        self._events: deque[StatusEvent] = deque(maxlen=max_events)
        self._event_counter = 0
        self._credential: dict[str, Any] | None = None
        self._list: BitstringStatusList | None = None
        self._flagged: set[int] = set()
        self._next_index = 0

    # -- lifecycle ---------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._list is not None

    def initialize(self) -> None:
        """Create the status list. Calling it again is a no-op."""
        with self._lock:
            if self.initialized:
                return
            self._build()
            log.info(
                "Initialized %s status list (%d entries)",
                self._status_purpose,
                self._list.entry_count,
            )
            self._log_event(
                EventType.INFO,
                "Status list initialized.",
                {"statusPurpose": self._status_purpose},
            )

    def reset(
        self,
        status_purpose: StatusPurpose | str | None = None,
        status_messages: Any = None,
    ) -> None:
        """Replace the list with a fresh one.

        Args:
            status_purpose: New purpose; the current one is kept when omitted.
            status_messages: New catalog as StatusMessage values or raw JSON.

        Raises:
            StatusListError: MALFORMED_VALUE for an invalid catalog.
        """
        if isinstance(status_messages, (list, tuple)) and all(
            isinstance(m, StatusMessage) for m in status_messages
        ):
            messages = status_messages
        else:
            messages = parse_status_messages(status_messages)
        with self._lock:
            self._require_initialized()
            if status_purpose is not None:
                self._status_purpose = (
                    status_purpose.value
                    if isinstance(status_purpose, StatusPurpose)
                    else status_purpose
                )
            self._status_messages = list(messages) if messages else None
            self._build()
            log.info("Reset status list to purpose %s", self._status_purpose)
            self._log_event(
                EventType.RESET,
                "Status list reset.",
                {
                    "statusPurpose": self._status_purpose,
                    "statusMessages": self._subject.get("statusMessages", []),
                },
            )

    def teardown(self) -> None:
        """Drop all state. The registry must be initialized again before use."""
        with self._lock:
            self._credential = None
            self._list = None
            self._flagged.clear()
            self._next_index = 0
            self._events.clear()
            self._event_counter = 0
            log.info("Tore down status registry")

    def _build(self) -> None:
        messages = self._status_messages
        if self._status_purpose == StatusPurpose.MESSAGE.value and not messages:
            messages = list(DEFAULT_STATUS_MESSAGES)
        result = create_status_list_credential(
            self._issuer,
            self._status_purpose,
            id=self._credential_id,
            list_id=self._list_id,
            status_messages=messages,
            entry_count=self._entry_count,
            minimum_entries=self._minimum_entries,
            default_entry_value=self._default_entry_value,
        )
        self._credential = result.credential
        self._list = result.status_list
        self._next_index = 0
        self._flagged = (
            set(range(self._list.entry_count)) if self._default_entry_value > 0 else set()
        )

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise RuntimeError("StatusRegistry is not initialized")

    @property
    def _subject(self) -> dict[str, Any]:
        return self._credential["credentialSubject"]

    # -- state access ------------------------------------------------------

    @property
    def credential(self) -> dict[str, Any]:
        """Copy of the materialized status list credential."""
        with self._lock:
            self._require_initialized()
            return copy.deepcopy(self._credential)

    @property
    def encoded_list(self) -> str:
        with self._lock:
            self._require_initialized()
            return self._subject["encodedList"]

    @property
    def flagged_indices(self) -> set[int]:
        with self._lock:
            self._require_initialized()
            return set(self._flagged)

    @property
    def events(self) -> list[StatusEvent]:
        """Logged events, oldest first."""
        with self._lock:
            return list(self._events)

    def summary(self) -> RegistrySummary:
        with self._lock:
            self._require_initialized()
            subject = self._subject
            return RegistrySummary(
                credential_id=self._credential.get("id"),
                status_purpose=subject["statusPurpose"],
                entry_count=self._list.entry_count,
                status_size=self._list.status_size,
                encoded_list_length=len(subject["encodedList"]),
                flagged_count=len(self._flagged),
                flagged_samples=sorted(self._flagged)[:FLAGGED_SAMPLE_SIZE],
                status_messages=[
                    StatusMessage.from_dict(m) for m in subject.get("statusMessages", [])
                ],
                events=list(reversed(self._events)),
            )

    # -- operations --------------------------------------------------------

    def update(self, updates: Sequence[StatusUpdate] | Any) -> int:
        """Apply a batch of updates and re-materialize the credential.

        Updates before a failing one stay applied and are materialized.

        Returns:
            The number of flagged (non-zero) indices.

        Raises:
            StatusListError: MALFORMED_VALUE or RANGE.
        """
        batch = parse_status_updates(list(updates) if isinstance(updates, tuple) else updates)
        with self._lock:
            self._require_initialized()
            applied = 0
            try:
                for update in batch:
                    apply_status_updates(self._list, [update])
                    applied += 1
                    if update.value > 0:
                        self._flagged.add(update.index)
                    else:
                        self._flagged.discard(update.index)
            finally:
                if applied:
                    sync_encoded_list(self._credential, self._list)

            log.info("Applied %d status updates", applied)
            self._log_event(
                EventType.UPDATE,
                f"Applied {applied} status updates.",
                {"updates": [{"index": u.index, "value": u.value} for u in batch]},
            )
            return len(self._flagged)

    def check(self, index: int | str) -> StatusEvaluation:
        """Evaluate one index against the materialized encodedList."""
        normalized = parse_status_list_index(index)
        with self._lock:
            self._require_initialized()
            ensure(
                normalized < self._list.entry_count,
                ErrorCode.RANGE,
                f"Index {normalized} is outside of range 0-{self._list.entry_count - 1}.",
            )
            subject = self._subject
            evaluation = evaluate_status(
                subject["encodedList"],
                normalized,
                subject["statusPurpose"],
                status_size=subject.get("statusSize"),
                status_messages=subject.get("statusMessages"),
                minimum_entries=self._list.minimum_entries,
            )
            self._log_event(
                EventType.EVALUATE,
                f"Checked index {normalized}.",
                {"index": normalized, **evaluation.to_dict()},
            )
            return evaluation

    def statuses_range(self, start: int, count: int) -> list[tuple[int, int]]:
        """Raw values of ``count`` entries from ``start``, clipped to the list.

        No event is logged.
        """
        if not isinstance(start, int) or isinstance(start, bool) or start < 0:
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE, "start must be a non-negative integer."
            )
        if not isinstance(count, int) or isinstance(count, bool) or count < 1:
            raise StatusListError(ErrorCode.MALFORMED_VALUE, "count must be a positive integer.")
        with self._lock:
            self._require_initialized()
            end = min(start + count, self._list.entry_count)
            return [(i, self._list.get_entry(i)) for i in range(start, end)]

    def allocate_index(self) -> int:
        """Reserve the next unused index for a newly issued credential.

        Raises:
            StatusListError: STATUS_LIST_LENGTH when no index is free.
        """
        with self._lock:
            self._require_initialized()
            capacity = self._list.entry_count
            index = self._next_index
            while index < capacity:
                if self._list.get_entry(index) == 0 and index not in self._flagged:
                    break
                index += 1
            ensure(
                index < capacity,
                ErrorCode.STATUS_LIST_LENGTH,
                "No free status list index is available.",
            )
            self._next_index = index + 1
            self._log_event(EventType.INFO, f"Allocated index {index}.", {"index": index})
            return index

    def status_entry(self, index: int) -> dict[str, Any]:
        """Build the credentialStatus entry pointing at ``index``."""
        with self._lock:
            self._require_initialized()
            ensure(
                isinstance(index, int) and 0 <= index < self._list.entry_count,
                ErrorCode.RANGE,
                f"Index {index} is outside of range 0-{self._list.entry_count - 1}.",
            )
            list_credential = self._credential.get("id") or ""
            subject = self._subject
            entry: dict[str, Any] = {
                "id": f"{list_credential}#{index}",
                "type": "BitstringStatusListEntry",
                "statusPurpose": subject["statusPurpose"],
                "statusListIndex": str(index),
                "statusListCredential": list_credential,
            }
            if "statusSize" in subject:
                entry["statusSize"] = subject["statusSize"]
            if "statusMessages" in subject:
                entry["statusMessage"] = copy.deepcopy(subject["statusMessages"])
            if "statusReference" in subject:
                entry["statusReference"] = subject["statusReference"]
            return entry

    # -- snapshots ---------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible snapshot of the registry."""
        with self._lock:
            self._require_initialized()
            return {
                "credential": copy.deepcopy(self._credential),
                "entryCount": self._list.entry_count,
                "minimumEntries": self._list.minimum_entries,
                "defaultEntryValue": self._default_entry_value,
                "flaggedIndices": sorted(self._flagged),
                "nextIndex": self._next_index,
                "eventCounter": self._event_counter,
                "maxEvents": self._events.maxlen,
                "events": [e.to_dict() for e in self._events],
            }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StatusRegistry:
        """Restore a registry from a to_dict() snapshot.

        Raises:
            StatusListError: MALFORMED_VALUE if the snapshot has no usable
                credential, plus any decoding error.
        """
        credential = data.get("credential")
        if not isinstance(credential, Mapping):
            raise StatusListError(ErrorCode.MALFORMED_VALUE, "Snapshot has no credential.")
        credential = copy.deepcopy(dict(credential))
        status_list = status_list_from_credential(
            credential,
            minimum_entries=data.get("minimumEntries"),
            entry_count=data.get("entryCount"),
        )
        subject = credential["credentialSubject"]
        if "issuer" not in credential or not isinstance(subject.get("statusPurpose"), str):
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE,
                "Snapshot credential requires issuer and credentialSubject.statusPurpose.",
            )

        registry = cls(
            credential["issuer"],
            status_purpose=subject["statusPurpose"],
            status_messages=parse_status_messages(subject.get("statusMessages")),
            credential_id=credential.get("id"),
            list_id=subject.get("id"),
            entry_count=status_list.entry_count,
            default_entry_value=data.get("defaultEntryValue", 0),
            minimum_entries=status_list.minimum_entries,
            max_events=data.get("maxEvents"),
        )
        registry._credential = credential
        registry._list = status_list
        registry._flagged = set(data.get("flaggedIndices", []))
        registry._next_index = data.get("nextIndex", 0)
        registry._event_counter = data.get("eventCounter", 0)
        registry._events.extend(StatusEvent.from_dict(e) for e in data.get("events", []))
        return registry

    def _log_event(
        self, event_type: EventType, message: str, details: dict[str, Any] | None = None
    ) -> None:
        self._event_counter += 1
        self._events.append(
            StatusEvent(
                id=self._event_counter,
                timestamp=datetime.now(timezone.utc).isoformat(),
                type=event_type,
                message=message,
                details=details,
            )
        )
