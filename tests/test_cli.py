"""Tests for the bsl command-line interface."""

import json

import httpx
import pytest
import respx
from click.testing import CliRunner

from bitstring_status_list import StatusRegistry
from bitstring_status_list.cli import main


LIST_URL = "https://example.com/credentials/status/3"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def status_list_file(runner, tmp_path):
    """A revocation list credential written by `bsl create`."""
    path = tmp_path / "status.json"
    result = runner.invoke(main, ["create", "--id", LIST_URL, "-o", str(path)])
    assert result.exit_code == 0, result.output
    return path


@pytest.fixture
def revoked_list():
    """A revocation list credential with index 42 set."""
    registry = StatusRegistry(credential_id=LIST_URL)
    registry.initialize()
    registry.update([{"index": 42, "value": 1}])
    return registry.credential


class TestCreate:
    """Tests for `bsl create`."""

    def test_create_to_file(self, status_list_file):
        credential = json.loads(status_list_file.read_text())
        assert credential["id"] == LIST_URL
        assert credential["issuer"] == "did:example:issuer"
        assert credential["credentialSubject"]["statusPurpose"] == "revocation"
        assert credential["credentialSubject"]["encodedList"].startswith("u")

    def test_create_to_stdout(self, runner):
        """Test that the issuer defaults to BSL_DEFAULT_ISSUER."""
        result = runner.invoke(
            main, ["create", "--purpose", "suspension"],
            env={"BSL_DEFAULT_ISSUER": "did:web:issuer.example"},
        )
        assert result.exit_code == 0
        credential = json.loads(result.stdout)
        assert credential["issuer"] == "did:web:issuer.example"
        assert credential["credentialSubject"]["statusPurpose"] == "suspension"

    def test_create_message_list(self, runner):
        """Test that statusSize is inferred from the messages."""
        result = runner.invoke(main, [
            "create", "--purpose", "message",
            "--message", "0x0=valid",
            "--message", "0x1=revoked",
            "--message", "0x2=pending_review",
        ])
        assert result.exit_code == 0
        subject = json.loads(result.stdout)["credentialSubject"]
        assert subject["statusSize"] == 2
        assert [m["message"] for m in subject["statusMessages"]] == [
            "valid",
            "revoked",
            "pending_review",
        ]

    def test_create_invalid_message(self, runner):
        result = runner.invoke(main, ["create", "--purpose", "message", "--message", "0x1"])
        assert result.exit_code == 2
        assert "MALFORMED_VALUE_ERROR" in result.output

    def test_invalid_environment(self, runner):
        result = runner.invoke(main, ["create"], env={"BSL_HTTP_TIMEOUT": "soon"})
        assert result.exit_code == 1
        assert "BSL_HTTP_TIMEOUT" in result.output


class TestUpdateAndCheck:
    """Tests for `bsl update` and `bsl check`."""

    def test_update_then_check(self, runner, status_list_file):
        result = runner.invoke(main, ["update", str(status_list_file), "--set", "42=1", "--set", "7"])
        assert result.exit_code == 0
        assert "Applied 2 update(s)" in result.output

        assert runner.invoke(main, ["check", str(status_list_file), "42"]).exit_code == 1
        assert runner.invoke(main, ["check", str(status_list_file), "7"]).exit_code == 1
        assert runner.invoke(main, ["check", str(status_list_file), "41"]).exit_code == 0

    def test_update_to_output(self, runner, status_list_file, tmp_path):
        """Test that --output leaves the source file untouched."""
        before = status_list_file.read_text()
        output = tmp_path / "updated.json"
        result = runner.invoke(
            main, ["update", str(status_list_file), "--set", "1=1", "-o", str(output)]
        )
        assert result.exit_code == 0
        assert status_list_file.read_text() == before
        assert json.loads(output.read_text())["credentialSubject"]["encodedList"] != (
            json.loads(before)["credentialSubject"]["encodedList"]
        )

    def test_atomic_update_rejects_batch(self, runner, status_list_file):
        before = status_list_file.read_text()
        result = runner.invoke(main, [
            "update", str(status_list_file), "--set", "1=1", "--set", "1=2", "--atomic",
        ])
        assert result.exit_code == 2
        assert "RANGE_ERROR" in result.output
        assert status_list_file.read_text() == before

    def test_update_invalid_assignment(self, runner, status_list_file):
        result = runner.invoke(main, ["update", str(status_list_file), "--set", "one=1"])
        assert result.exit_code == 2
        assert "MALFORMED_VALUE_ERROR" in result.output

    def test_update_non_object_document(self, runner, tmp_path):
        path = tmp_path / "status.json"
        path.write_text("[]")
        result = runner.invoke(main, ["update", str(path), "--set", "1=1"])
        assert result.exit_code == 2
        assert "MALFORMED_VALUE_ERROR" in result.output
        assert path.read_text() == "[]"

    def test_undecodable_file_is_an_error(self, runner, tmp_path):
        """Test that broken input exits 2, not with the invalid-status code."""
        path = tmp_path / "status.json"
        path.write_bytes(b"\xff\xfe{}")

        assert runner.invoke(main, ["check", str(path), "1"]).exit_code == 2
        assert runner.invoke(main, ["check", str(tmp_path), "1"]).exit_code == 2
        assert runner.invoke(main, ["update", str(path), "--set", "1=1"]).exit_code == 2

    def test_check_json_output(self, runner, tmp_path, revoked_list):
        path = tmp_path / "status.json"
        path.write_text(json.dumps(revoked_list))

        result = runner.invoke(main, ["check", str(path), "42", "--json-output"])
        assert result.exit_code == 1
        assert json.loads(result.stdout) == {
            "index": 42,
            "status": 1,
            "valid": False,
            "purpose": "revocation",
        }

    def test_check_stdin(self, runner, revoked_list):
        result = runner.invoke(main, ["check", "-", "41"], input=json.dumps(revoked_list))
        assert result.exit_code == 0

    def test_check_invalid_index(self, runner, status_list_file):
        result = runner.invoke(main, ["check", str(status_list_file), "abc", "--json-output"])
        assert result.exit_code == 2
        assert json.loads(result.stdout)["code"] == "MALFORMED_VALUE_ERROR"

    def test_check_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["check", str(tmp_path / "missing.json"), "0"])
        assert result.exit_code != 0
        assert "File not found" in result.output

    @respx.mock
    def test_check_url(self, runner, revoked_list):
        """Test checking a status list fetched over HTTP."""
        route = respx.get(LIST_URL).mock(return_value=httpx.Response(200, json=revoked_list))

        result = runner.invoke(main, ["check", LIST_URL, "42"])
        assert result.exit_code == 1
        assert route.called

    @respx.mock
    def test_check_url_not_found(self, runner):
        respx.get(LIST_URL).mock(return_value=httpx.Response(404))

        result = runner.invoke(main, ["check", LIST_URL, "42", "--json-output"])
        assert result.exit_code == 2
        assert json.loads(result.stdout)["code"] == "STATUS_RETRIEVAL_ERROR"


class TestInspect:
    """Tests for `bsl inspect`."""

    def test_inspect_range(self, runner, tmp_path, revoked_list):
        path = tmp_path / "status.json"
        path.write_text(json.dumps(revoked_list))

        result = runner.invoke(main, ["inspect", str(path), "--start", "40", "--count", "4"])
        assert result.exit_code == 0
        for index in ("40", "41", "42", "43"):
            assert index in result.output

    def test_inspect_only_set(self, runner, tmp_path, revoked_list):
        path = tmp_path / "status.json"
        path.write_text(json.dumps(revoked_list))

        result = runner.invoke(
            main, ["inspect", str(path), "--start", "40", "--count", "4", "--only-set"]
        )
        assert result.exit_code == 0
        assert "42" in result.output
        assert "43" not in result.output

    def test_inspect_invalid_range(self, runner, status_list_file):
        result = runner.invoke(main, ["inspect", str(status_list_file), "--count", "0"])
        assert result.exit_code == 2


class TestVerify:
    """Tests for `bsl verify`."""

    def make_credential(self, index: int, purpose: str = "revocation") -> dict:
        return {
            "@context": ["https://www.w3.org/ns/credentials/v2"],
            "type": ["VerifiableCredential"],
            "issuer": "did:web:example.com",
            "credentialSubject": {"id": "did:example:holder"},
            "credentialStatus": {
                "id": f"{LIST_URL}#{index}",
                "type": "BitstringStatusListEntry",
                "statusPurpose": purpose,
                "statusListIndex": str(index),
                "statusListCredential": LIST_URL,
            },
        }

    @respx.mock
    def test_verify_revoked(self, runner, tmp_path, revoked_list):
        respx.get(LIST_URL).mock(return_value=httpx.Response(200, json=revoked_list))
        path = tmp_path / "credential.json"
        path.write_text(json.dumps(self.make_credential(42)))

        result = runner.invoke(main, ["verify", str(path), "--json-output"])
        assert result.exit_code == 1
        output = json.loads(result.stdout)
        assert output["valid"] is False
        assert output["credential_status"][0]["status"] == "revoked"

    @respx.mock
    def test_verify_valid(self, runner, tmp_path, revoked_list):
        respx.get(LIST_URL).mock(return_value=httpx.Response(200, json=revoked_list))
        path = tmp_path / "credential.json"
        path.write_text(json.dumps(self.make_credential(3)))

        result = runner.invoke(main, ["verify", str(path)])
        assert result.exit_code == 0

    def test_verify_without_status(self, runner, tmp_path):
        credential = self.make_credential(1)
        del credential["credentialStatus"]
        path = tmp_path / "credential.json"
        path.write_text(json.dumps(credential))

        result = runner.invoke(main, ["verify", str(path)])
        assert result.exit_code == 0
        assert "no BitstringStatusListEntry" in result.output

    @respx.mock
    def test_verify_message_entry(self, runner, tmp_path):
        """Test that message entries are valid at 0 and invalid otherwise."""
        registry = StatusRegistry(status_purpose="message", credential_id=LIST_URL)
        registry.initialize()
        registry.update([{"index": 7, "value": 1}])
        respx.get(LIST_URL).mock(return_value=httpx.Response(200, json=registry.credential))
        path = tmp_path / "credential.json"

        path.write_text(json.dumps(self.make_credential(5, purpose="message")))
        result = runner.invoke(main, ["verify", str(path), "--json-output"])
        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert output["valid"] is True
        assert output["credential_status"][0] == {
            "status": "message",
            "purpose": "message",
            "index": 5,
            "value": 0,
            "valid": True,
            "message": "pending_review",
        }

        path.write_text(json.dumps(self.make_credential(7, purpose="message")))
        result = runner.invoke(main, ["verify", str(path), "--json-output"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["credential_status"][0]["message"] == "accepted"
