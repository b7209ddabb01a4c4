"""
Credential status checking.

Checks the BitstringStatusListEntry items of an issued credential against
the status list credentials they reference.
https://www.w3.org/TR/vc-bitstring-status-list/#validate-algorithm
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from bitstring_status_list.credential import StatusPurpose
from bitstring_status_list.errors import ErrorCode, StatusListError
from bitstring_status_list.evaluator import (
    StatusEvaluation,
    evaluate_status,
    parse_status_list_index,
)


StatusListResolver = Callable[[str], Mapping[str, Any]]


class CredentialStatus(Enum):
    """Credential status values."""

    VALID = "valid"
    REVOKED = "revoked"
    SUSPENDED = "suspended"
    MESSAGE = "message"
    UNKNOWN = "unknown"


@dataclass
class StatusListEntry:
    """Parsed credentialStatus from a VC."""

    status_list_credential: str
    status_list_index: int
    status_purpose: str
    id: str | None = None
    type: str = "BitstringStatusListEntry"
    status_size: int | None = None


@dataclass
class StatusCheckResult:
    """Result of a status check."""

    status: CredentialStatus
    purpose: str
    index: int
    value: int
    message: str
    valid: bool
    status_message: str | None = None


class StatusListChecker:
    """Verifies credential status using W3C Bitstring Status Lists."""

    def __init__(self, resolver: StatusListResolver) -> None:
        """Initialize the checker.

        Args:
            resolver: Returns the status list credential for a URL. It may
                raise StatusListError (STATUS_RETRIEVAL) when retrieval fails.
        """
        self.resolver = resolver
        self._cache: dict[str, Mapping[str, Any]] = {}  # status list credentials by URL

    def parse_credential_status(
        self, credential: Mapping[str, Any]
    ) -> list[StatusListEntry]:
        """Parse credentialStatus from a VC.

        Handles both a single credentialStatus object and an array of
        statuses (e.g. one for revocation, one for suspension). Entries of
        other types are ignored.

        Raises:
            StatusListError: MALFORMED_VALUE if an entry is malformed.
        """
        status_data = credential.get("credentialStatus")
        if not status_data:
            return []

        if not isinstance(status_data, list):
            status_data = [status_data]

        entries: list[StatusListEntry] = []
        for item in status_data:
            if not isinstance(item, Mapping) or item.get("type") != "BitstringStatusListEntry":
                continue
            try:
                status_size = item.get("statusSize")
                entries.append(StatusListEntry(
                    id=item.get("id"),
                    status_list_credential=str(item["statusListCredential"]),
                    status_list_index=parse_status_list_index(item["statusListIndex"]),
                    status_purpose=str(item["statusPurpose"]),
                    status_size=int(status_size) if status_size is not None else None,
                ))
            except (KeyError, ValueError, TypeError) as e:
                raise StatusListError(
                    ErrorCode.MALFORMED_VALUE, f"Invalid credentialStatus: {e}", cause=e
                ) from e

        return entries

    def check_status(
        self,
        credential: Mapping[str, Any],
        use_cache: bool = True,
    ) -> list[StatusCheckResult]:
        """Check every BitstringStatusListEntry of a credential.

        Args:
            credential: The Verifiable Credential to check.
            use_cache: Whether to reuse resolved status list credentials.

        Returns:
            List of StatusCheckResult (empty if no credentialStatus).

        Raises:
            StatusListError: STATUS_RETRIEVAL if a list cannot be resolved,
                STATUS_VERIFICATION on a purpose mismatch, or any decoding
                and range error of the referenced list.
        """
        results: list[StatusCheckResult] = []
        for entry in self.parse_credential_status(credential):
            subject = self._resolve_subject(entry.status_list_credential, use_cache)

            if subject.get("statusPurpose") != entry.status_purpose:
                raise StatusListError(
                    ErrorCode.STATUS_VERIFICATION,
                    f"statusPurpose {entry.status_purpose!r} does not match the status list "
                    f"purpose {subject.get('statusPurpose')!r}.",
                )

            evaluation = evaluate_status(
                subject.get("encodedList"),
                entry.status_list_index,
                entry.status_purpose,
                status_size=subject.get("statusSize", entry.status_size),
                status_messages=subject.get("statusMessages"),
            )
            results.append(self._to_result(entry, evaluation))

        return results

    def _resolve_subject(self, url: str, use_cache: bool) -> Mapping[str, Any]:
        if use_cache and url in self._cache:
            sl_credential = self._cache[url]
        else:
            sl_credential = self.resolver(url)
            if use_cache:
                self._cache[url] = sl_credential

        subject = sl_credential.get("credentialSubject") if isinstance(sl_credential, Mapping) else None
        if not isinstance(subject, Mapping):
            raise StatusListError(
                ErrorCode.STATUS_RETRIEVAL,
                f"Status list credential from {url} has no credentialSubject.",
            )
        return subject

    def _to_result(
        self, entry: StatusListEntry, evaluation: StatusEvaluation
    ) -> StatusCheckResult:
        purpose = entry.status_purpose
        index = entry.status_list_index
        value = evaluation.status
        status_message = evaluation.message

        # Message entries keep the MESSAGE label at every value; validity
        # comes from the evaluation.
        if value == 0 and purpose != StatusPurpose.MESSAGE.value:
            status = CredentialStatus.VALID
            message = f"Credential status is valid ({purpose}, index {index})"
        elif purpose == StatusPurpose.REVOCATION.value:
            status = CredentialStatus.REVOKED
            message = f"Credential is revoked (index {index})"
        elif purpose == StatusPurpose.SUSPENSION.value:
            status = CredentialStatus.SUSPENDED
            message = f"Credential is suspended (index {index})"
        elif purpose == StatusPurpose.MESSAGE.value:
            status = CredentialStatus.MESSAGE
            message = f"Credential status message: {status_message or hex(value)} (index {index})"
        else:
            status = CredentialStatus.UNKNOWN
            message = f"Unknown status purpose: {purpose}"

        return StatusCheckResult(
            status=status,
            purpose=purpose,
            index=index,
            value=value,
            message=message,
            valid=evaluation.valid,
            status_message=status_message,
        )

    def clear_cache(self) -> None:
        """Clear the status list cache."""
        self._cache.clear()
