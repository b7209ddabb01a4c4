"""Tests for StatusListChecker."""

import pytest

from bitstring_status_list import (
    CredentialStatus,
    ErrorCode,
    StatusListChecker,
    StatusListError,
    StatusRegistry,
)


REVOCATION_URL = "https://example.com/.well-known/vc/status/revocation"
SUSPENSION_URL = "https://example.com/.well-known/vc/status/suspension"
MESSAGE_URL = "https://example.com/.well-known/vc/status/message"


@pytest.fixture
def status_lists():
    """Status list credentials by URL, with index 42 set in each."""
    lists = {}
    for url, purpose, value in [
        (REVOCATION_URL, "revocation", 1),
        (SUSPENSION_URL, "suspension", 1),
        (MESSAGE_URL, "message", 2),
    ]:
        registry = StatusRegistry(status_purpose=purpose, credential_id=url)
        registry.initialize()
        registry.update([{"index": 42, "value": value}])
        lists[url] = registry.credential
    return lists


@pytest.fixture
def resolver(status_lists):
    """Resolver over the status_lists fixture that counts calls."""
    calls = []

    def resolve(url):
        calls.append(url)
        return status_lists[url]

    resolve.calls = calls
    return resolve


def make_credential(*entries) -> dict:
    """Create a credential with the given credentialStatus entries."""
    credential = {
        "@context": ["https://www.w3.org/ns/credentials/v2"],
        "id": "urn:uuid:test-123",
        "type": ["VerifiableCredential"],
        "issuer": "did:web:example.com",
        "credentialSubject": {"id": "did:example:holder"},
    }
    if len(entries) == 1:
        credential["credentialStatus"] = entries[0]
    elif entries:
        credential["credentialStatus"] = list(entries)
    return credential


def entry(url: str, purpose: str, index) -> dict:
    return {
        "id": f"{url}#{index}",
        "type": "BitstringStatusListEntry",
        "statusPurpose": purpose,
        "statusListIndex": str(index),
        "statusListCredential": url,
    }


class TestParseCredentialStatus:
    """Tests for credentialStatus parsing."""

    def test_no_status(self, resolver):
        checker = StatusListChecker(resolver)
        assert checker.parse_credential_status(make_credential()) == []
        assert checker.check_status(make_credential()) == []

    def test_single_and_array(self, resolver):
        """Test that both a single entry and an array are parsed."""
        checker = StatusListChecker(resolver)
        single = checker.parse_credential_status(
            make_credential(entry(REVOCATION_URL, "revocation", 42))
        )
        assert len(single) == 1
        assert single[0].status_list_index == 42
        assert single[0].status_purpose == "revocation"

        both = checker.parse_credential_status(make_credential(
            entry(REVOCATION_URL, "revocation", 1),
            entry(SUSPENSION_URL, "suspension", 2),
        ))
        assert [e.status_purpose for e in both] == ["revocation", "suspension"]

    def test_other_types_ignored(self, resolver):
        """Test that non-bitstring entries are skipped."""
        checker = StatusListChecker(resolver)
        other = {"type": "StatusList2021Entry", "statusListIndex": "1"}
        assert checker.parse_credential_status(make_credential(other)) == []

    @pytest.mark.parametrize(
        "bad",
        [
            {"statusListIndex": None},
            {"statusListIndex": "-3"},
            {"statusListCredential": None},
        ],
    )
    def test_malformed_entry(self, resolver, bad):
        """Test that malformed entries are rejected."""
        item = entry(REVOCATION_URL, "revocation", 1)
        for key, value in bad.items():
            if value is None:
                del item[key]
            else:
                item[key] = value
        checker = StatusListChecker(resolver)
        with pytest.raises(StatusListError) as exc_info:
            checker.parse_credential_status(make_credential(item))
        assert exc_info.value.code == ErrorCode.MALFORMED_VALUE


class TestCheckStatus:
    """Tests for status checks."""

    def test_valid(self, resolver):
        checker = StatusListChecker(resolver)
        results = checker.check_status(make_credential(entry(REVOCATION_URL, "revocation", 41)))
        assert len(results) == 1
        assert results[0].status == CredentialStatus.VALID
        assert results[0].value == 0

    def test_revoked(self, resolver):
        checker = StatusListChecker(resolver)
        results = checker.check_status(make_credential(entry(REVOCATION_URL, "revocation", 42)))
        assert results[0].status == CredentialStatus.REVOKED
        assert "revoked" in results[0].message

    def test_revocation_and_suspension(self, resolver):
        """Test a credential with two status entries."""
        checker = StatusListChecker(resolver)
        results = checker.check_status(make_credential(
            entry(REVOCATION_URL, "revocation", 7),
            entry(SUSPENSION_URL, "suspension", 42),
        ))
        assert [r.status for r in results] == [
            CredentialStatus.VALID,
            CredentialStatus.SUSPENDED,
        ]

    def test_message(self, resolver):
        """Test that message lists report the mapped message."""
        checker = StatusListChecker(resolver)
        results = checker.check_status(make_credential(entry(MESSAGE_URL, "message", 42)))
        assert results[0].status == CredentialStatus.MESSAGE
        assert results[0].value == 2
        assert results[0].status_message == "rejected"
        assert results[0].valid is False

    def test_message_zero_is_valid(self, resolver):
        """Test that a message entry at value 0 is valid."""
        checker = StatusListChecker(resolver)
        results = checker.check_status(make_credential(entry(MESSAGE_URL, "message", 5)))
        assert results[0].status == CredentialStatus.MESSAGE
        assert results[0].value == 0
        assert results[0].valid is True
        assert results[0].status_message == "pending_review"

    def test_purpose_mismatch(self, resolver):
        """Test that an entry must match the list purpose."""
        checker = StatusListChecker(resolver)
        with pytest.raises(StatusListError) as exc_info:
            checker.check_status(make_credential(entry(REVOCATION_URL, "suspension", 42)))
        assert exc_info.value.code == ErrorCode.STATUS_VERIFICATION

    def test_unusable_list(self):
        """Test that a resolved document without a subject is a retrieval error."""
        checker = StatusListChecker(lambda url: {})
        with pytest.raises(StatusListError) as exc_info:
            checker.check_status(make_credential(entry(REVOCATION_URL, "revocation", 1)))
        assert exc_info.value.code == ErrorCode.STATUS_RETRIEVAL

    def test_index_out_of_range(self, resolver):
        checker = StatusListChecker(resolver)
        with pytest.raises(StatusListError) as exc_info:
            checker.check_status(make_credential(entry(REVOCATION_URL, "revocation", 10**7)))
        assert exc_info.value.code == ErrorCode.RANGE

    def test_cache(self, resolver):
        """Test that resolved lists are cached per URL."""
        checker = StatusListChecker(resolver)
        credential = make_credential(entry(REVOCATION_URL, "revocation", 1))
        checker.check_status(credential)
        checker.check_status(credential)
        assert resolver.calls == [REVOCATION_URL]

        checker.check_status(credential, use_cache=False)
        checker.clear_cache()
        checker.check_status(credential)
        assert len(resolver.calls) == 3
