"""
BitstringStatusListCredential construction.

Builds the status list credential document around a BitstringStatusList.
https://www.w3.org/TR/vc-bitstring-status-list/#bitstringstatuslistcredential
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from bitstring_status_list.bitstring import MINIMUM_ENTRY_COUNT, BitstringStatusList
from bitstring_status_list.errors import ErrorCode, StatusListError


DEFAULT_CONTEXTS = [
    "https://www.w3.org/ns/credentials/v2",
    "https://www.w3.org/ns/credentials/status/v1",
]
DEFAULT_TYPES = ["VerifiableCredential", "BitstringStatusListCredential"]

_DECIMAL = re.compile(r"[0-9]+")
_HEX = re.compile(r"0[xX][0-9a-fA-F]+")


class StatusPurpose(str, Enum):
    """Well-known status purposes. Other strings are extension purposes."""

    REVOCATION = "revocation"
    SUSPENSION = "suspension"
    MESSAGE = "message"


@dataclass(frozen=True)
class StatusMessage:
    """One entry of a status message catalog."""

    status: str
    message: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StatusMessage:
        """Create a StatusMessage from its JSON form.

        Raises:
            StatusListError: MALFORMED_VALUE if either field is not a string.
        """
        status = data.get("status")
        message = data.get("message")
        if not isinstance(status, str) or not isinstance(message, str):
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE,
                'Each status message requires string "status" and "message" properties.',
            )
        return cls(status=status, message=message)

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status, "message": self.message}


@dataclass
class StatusListCredentialResult:
    """A status list credential and the list it was materialized from."""

    credential: dict[str, Any]
    status_list: BitstringStatusList


def parse_status_identifier(value: str) -> int:
    """Parse a status message identifier ("2", "0x2", "0X1f").

    Raises:
        StatusListError: MALFORMED_VALUE if the identifier is not a decimal or
            0x-prefixed hexadecimal non-negative integer.
    """
    if not isinstance(value, str) or not value:
        raise StatusListError(
            ErrorCode.MALFORMED_VALUE, "Status message identifier is required."
        )
    if _HEX.fullmatch(value):
        return int(value[2:], 16)
    if _DECIMAL.fullmatch(value):
        return int(value, 10)
    raise StatusListError(
        ErrorCode.MALFORMED_VALUE,
        f"Unrecognized status message identifier: {value}",
    )


def _purpose_value(purpose: StatusPurpose | str) -> str:
    return purpose.value if isinstance(purpose, StatusPurpose) else purpose


def _as_status_message(item: StatusMessage | Mapping[str, Any]) -> StatusMessage:
    if isinstance(item, StatusMessage):
        return item
    if isinstance(item, Mapping):
        return StatusMessage.from_dict(item)
    raise StatusListError(
        ErrorCode.MALFORMED_VALUE, "Each status message must be an object."
    )


def infer_status_size(
    purpose: StatusPurpose | str,
    explicit_size: int | None,
    messages: Sequence[StatusMessage | Mapping[str, Any]] | None,
) -> int:
    """Resolve the number of bits per entry.

    An explicit size wins. Otherwise every purpose except "message" uses one
    bit, and "message" uses enough bits for the largest catalog identifier.

    Raises:
        StatusListError: MALFORMED_VALUE for a non-positive explicit size, a
            missing catalog, or an unparsable identifier.
    """
    if explicit_size is not None:
        if not isinstance(explicit_size, int) or isinstance(explicit_size, bool) or explicit_size < 1:
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE, "statusSize must be a positive integer."
            )
        return explicit_size

    if _purpose_value(purpose) != StatusPurpose.MESSAGE.value:
        return 1

    if not messages:
        raise StatusListError(
            ErrorCode.MALFORMED_VALUE,
            'statusMessages are required when statusPurpose is "message".',
        )

    max_value = max(
        parse_status_identifier(_as_status_message(item).status) for item in messages
    )
    # bit_length(n) == ceil(log2(n + 1))
    return max(1, max_value.bit_length())


def _timestamp(value: str | datetime) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return value


def create_status_list_credential(
    issuer: str | Mapping[str, Any],
    status_purpose: StatusPurpose | str,
    *,
    contexts: Sequence[str | Mapping[str, Any]] | None = None,
    types: Sequence[str] | None = None,
    id: str | None = None,
    list_id: str | None = None,
    valid_from: str | datetime | None = None,
    valid_until: str | datetime | None = None,
    status_size: int | None = None,
    status_messages: Sequence[StatusMessage | Mapping[str, Any]] | None = None,
    status_reference: str | Sequence[str] | None = None,
    ttl: int | None = None,
    entry_count: int | None = None,
    minimum_entries: int | None = None,
    default_entry_value: int = 0,
) -> StatusListCredentialResult:
    """Create a BitstringStatusListCredential and its backing list.

    Args:
        issuer: Issuer identifier or issuer object.
        status_purpose: revocation, suspension, message, or an extension.
        contexts: Override of the default @context list.
        types: Override of the default type list.
        id: Credential id.
        list_id: credentialSubject id.
        valid_from: Start of the validity window.
        valid_until: End of the validity window.
        status_size: Bits per entry. Inferred when omitted.
        status_messages: Message catalog, required for the "message" purpose
            unless status_size is given.
        status_reference: URL(s) describing the status values.
        ttl: Time to live of the list in milliseconds.
        entry_count: Number of entries, raised to minimum_entries.
        minimum_entries: Floor on the number of entries.
        default_entry_value: Value written to every entry before the first
            encoding.

    Returns:
        StatusListCredentialResult with the credential document and the list.

    Raises:
        StatusListError: On invalid sizes, catalogs or default values.
    """
    purpose = _purpose_value(status_purpose)
    messages = (
        [_as_status_message(item) for item in status_messages]
        if status_messages
        else None
    )
    resolved_size = infer_status_size(purpose, status_size, messages)

    status_list = BitstringStatusList(
        entry_count=entry_count,
        status_size=resolved_size,
        minimum_entries=(
            minimum_entries if minimum_entries is not None else MINIMUM_ENTRY_COUNT
        ),
    )
    if default_entry_value != 0:
        status_list.fill(default_entry_value)

    subject: dict[str, Any] = {}
    if list_id:
        subject["id"] = list_id
    subject["type"] = "BitstringStatusList"
    subject["statusPurpose"] = purpose
    subject["encodedList"] = status_list.encode()

    # statusSize defaults to 1 and is omitted unless it carries information
    if resolved_size != 1 or purpose == StatusPurpose.MESSAGE.value:
        subject["statusSize"] = resolved_size
    if messages:
        subject["statusMessages"] = [m.to_dict() for m in messages]
    if status_reference:
        subject["statusReference"] = (
            status_reference if isinstance(status_reference, str) else list(status_reference)
        )
    if ttl is not None:
        subject["ttl"] = ttl

    credential: dict[str, Any] = {
        "@context": list(contexts) if contexts is not None else list(DEFAULT_CONTEXTS),
    }
    if id:
        credential["id"] = id
    credential["type"] = list(types) if types is not None else list(DEFAULT_TYPES)
    credential["issuer"] = issuer if isinstance(issuer, str) else dict(issuer)
    if valid_from:
        credential["validFrom"] = _timestamp(valid_from)
    if valid_until:
        credential["validUntil"] = _timestamp(valid_until)
    credential["credentialSubject"] = subject

    return StatusListCredentialResult(credential=credential, status_list=status_list)


def sync_encoded_list(
    credential: dict[str, Any], status_list: BitstringStatusList
) -> str:
    """Re-encode ``status_list`` into the credential's encodedList.

    This is the only point where the in-memory list and the credential
    document are brought back in line; call it after every mutation that
    should become visible.

    Returns:
        The new encodedList.
    """
    encoded = status_list.encode()
    credential["credentialSubject"]["encodedList"] = encoded
    return encoded


def status_list_from_credential(
    credential: Mapping[str, Any],
    minimum_entries: int | None = None,
    entry_count: int | None = None,
) -> BitstringStatusList:
    """Rebuild the list backing a status list credential.

    Unless ``entry_count`` is given, the entry count is the full capacity of
    the decoded bitstring.

    Raises:
        StatusListError: MALFORMED_VALUE if the credential has no
            credentialSubject.encodedList, plus any decoding error.
    """
    subject = credential.get("credentialSubject")
    if not isinstance(subject, Mapping) or not subject.get("encodedList"):
        raise StatusListError(
            ErrorCode.MALFORMED_VALUE,
            "Missing encodedList in status list credential.",
        )
    return BitstringStatusList.from_encoded(
        subject["encodedList"],
        status_size=subject.get("statusSize"),
        entry_count=entry_count,
        minimum_entries=minimum_entries,
    )
