"""
Command-line interface for Bitstring Status Lists.

Usage:
    bsl create --purpose revocation -o status.json
    bsl update status.json --set 42=1 --set 1337=1
    bsl check status.json 42
    bsl check https://example.com/status/3 42
    bsl inspect status.json --start 0 --count 64
    bsl verify credential.json
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from bitstring_status_list import __version__
from bitstring_status_list.checker import CredentialStatus, StatusCheckResult, StatusListChecker
from bitstring_status_list.config import Settings, load_settings
from bitstring_status_list.credential import (
    create_status_list_credential,
    status_list_from_credential,
    sync_encoded_list,
)
from bitstring_status_list.errors import ErrorCode, StatusListError
from bitstring_status_list.evaluator import (
    StatusEvaluation,
    evaluate_status,
    parse_status_list_index,
)
from bitstring_status_list.parsing import parse_assignment, parse_message_option
from bitstring_status_list.updates import apply_status_updates


console = Console()
log = logging.getLogger(__name__)

ACCEPT = "application/vc+ld+json, application/json"


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def fetch_json(url: str, timeout: float, verify_ssl: bool) -> dict[str, Any]:
    """Fetch a JSON document over HTTP.

    Raises:
        StatusListError: STATUS_RETRIEVAL on transport, HTTP or JSON errors.
    """
    log.debug("Fetching %s", url)
    try:
        with httpx.Client(timeout=timeout, verify=verify_ssl) as client:
            response = client.get(url, headers={"Accept": ACCEPT})
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        raise StatusListError(
            ErrorCode.STATUS_RETRIEVAL,
            f"HTTP error fetching {url}: {e.response.status_code}",
            cause=e,
        ) from e
    except httpx.RequestError as e:
        raise StatusListError(
            ErrorCode.STATUS_RETRIEVAL, f"Network error fetching {url}: {e}", cause=e
        ) from e
    except ValueError as e:
        raise StatusListError(
            ErrorCode.STATUS_RETRIEVAL, f"Invalid JSON from {url}", cause=e
        ) from e


def load_document(source: str, settings: Settings) -> dict[str, Any]:
    """Load a JSON document from a file, a URL, or stdin ("-")."""
    if source == "-":
        document = json.loads(sys.stdin.read())
    elif source.startswith("http://") or source.startswith("https://"):
        document = fetch_json(source, settings.http_timeout, settings.verify_ssl)

    else:
        path = Path(source)
        if not path.exists():
            raise click.ClickException(f"File not found: {source}")
        with path.open() as f:
            document = json.load(f)

    if not isinstance(document, dict):
        raise StatusListError(ErrorCode.MALFORMED_VALUE, f"{source} is not a JSON object.")
    return document


def write_document(document: dict[str, Any], output: Path | None) -> None:
    text = json.dumps(document, indent=2)
    if output is None:
        click.echo(text)
    else:
        output.write_text(text + "\n")
        log.info("Wrote %s", output)


def format_evaluation(evaluation: StatusEvaluation, index: int) -> None:
    """Print one evaluation as a panel."""
    if evaluation.valid:
        state, style = "[bold green]VALID[/]", "green"
    else:
        state, style = "[bold red]SET[/]", "red"

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Status", state)
    table.add_row("Purpose", evaluation.purpose)
    table.add_row("Index", str(index))
    table.add_row("Value", str(evaluation.status))
    if evaluation.message is not None:
        table.add_row("Message", evaluation.message)

    console.print(Panel(table, title="Status Evaluation", border_style=style))


def format_check_results(results: list[StatusCheckResult]) -> None:
    table = Table(title="Credential Status")
    table.add_column("Purpose")
    table.add_column("Index", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Status")
    table.add_column("Message")

    styles = {
        CredentialStatus.VALID: "green",
        CredentialStatus.REVOKED: "red",
        CredentialStatus.SUSPENDED: "yellow",
        CredentialStatus.MESSAGE: "cyan",
    }
    for result in results:
        style = styles.get(result.status, "dim")
        table.add_row(
            result.purpose,
            str(result.index),
            str(result.value),
            f"[{style}]{result.status.value}[/]",
            result.message,
        )
    console.print(table)


def fail(error: Exception, json_output: bool = False) -> None:
    """Report an error and exit with status 2."""
    if isinstance(error, StatusListError):
        payload = error.to_dict()
        text = f"{error.code.value}: {error.message}"
    else:
        payload = {"error": str(error)}
        text = str(error)

    if json_output:
        console.print_json(data=payload)
    else:
        console.print(f"[red]Error:[/] {text}")
    sys.exit(2)


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Logging level (defaults to BSL_LOG_LEVEL or WARNING)",
)
@click.version_option(__version__)
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """Create, update and evaluate W3C Bitstring Status Lists."""
    try:
        settings = load_settings()
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    configure_logging((log_level or settings.log_level).upper())
    ctx.obj = settings


@main.command()
@click.option("--purpose", default="revocation", show_default=True, help="statusPurpose of the list")
@click.option("--issuer", default=None, help="Issuer (defaults to BSL_DEFAULT_ISSUER)")
@click.option("--id", "credential_id", default=None, help="Status list credential id")
@click.option("--list-id", default=None, help="credentialSubject id")
@click.option("--status-size", type=int, default=None, help="Bits per entry (inferred by default)")
@click.option(
    "--message",
    "messages",
    multiple=True,
    metavar="STATUS=LABEL",
    help="Status message, e.g. 0x2=rejected (repeatable)",
)
@click.option("--status-reference", default=None, help="URL describing the status values")
@click.option("--ttl", type=int, default=None, help="Time to live in milliseconds")
@click.option("--entry-count", type=int, default=None, help="Number of entries")
@click.option("--minimum-entries", type=int, default=None, help="Minimum number of entries")
@click.option("--default-value", type=int, default=0, show_default=True, help="Initial entry value")
@click.option("--valid-from", default=None, help="validFrom timestamp")
@click.option("--valid-until", default=None, help="validUntil timestamp")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_obj
def create(
    settings: Settings,
    purpose: str,
    issuer: str | None,
    credential_id: str | None,
    list_id: str | None,
    status_size: int | None,
    messages: tuple[str, ...],
    status_reference: str | None,
    ttl: int | None,
    entry_count: int | None,
    minimum_entries: int | None,
    default_value: int,
    valid_from: str | None,
    valid_until: str | None,
    output: Path | None,
) -> None:
    """Create a new status list credential."""
    try:
        result = create_status_list_credential(
            issuer or settings.default_issuer,
            purpose,
            id=credential_id,
            list_id=list_id,
            valid_from=valid_from,
            valid_until=valid_until,
            status_size=status_size,
            status_messages=[parse_message_option(m) for m in messages] or None,
            status_reference=status_reference,
            ttl=ttl,
            entry_count=entry_count,
            minimum_entries=minimum_entries,
            default_entry_value=default_value,
        )
    except StatusListError as e:
        fail(e)
    except Exception as e:
        fail(e)
    log.info(
        "Created %s list with %d entries of %d bits",
        purpose,
        result.status_list.entry_count,
        result.status_list.status_size,
    )
    write_document(result.credential, output)


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--set",
    "assignments",
    multiple=True,
    required=True,
    metavar="INDEX=VALUE",
    help="Entry to update; a bare INDEX sets the value to 1 (repeatable)",
)
@click.option("--atomic", is_flag=True, help="Apply nothing unless every update is valid")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
def update(
    path: Path,
    assignments: tuple[str, ...],
    atomic: bool,
    output: Path | None,
) -> None:
    """Apply updates to a status list credential file.

    The encodedList is re-materialized and written back to PATH (or to
    --output).
    """
    try:
        credential = json.loads(path.read_text())
        if not isinstance(credential, dict):
            raise StatusListError(ErrorCode.MALFORMED_VALUE, f"{path} is not a JSON object.")
        updates = [parse_assignment(a) for a in assignments]
        status_list = status_list_from_credential(credential)
        applied = apply_status_updates(status_list, updates, atomic=atomic)
        sync_encoded_list(credential, status_list)
    except json.JSONDecodeError as e:
        fail(click.ClickException(f"Invalid JSON: {e}"))
    except StatusListError as e:
        fail(e)
    except Exception as e:
        fail(e)

    write_document(credential, output or path)
    console.print(f"[green]Applied {applied} update(s)[/] to {output or path}")


@main.command()
@click.argument("source")
@click.argument("index")
@click.option("--json-output", is_flag=True, help="Output result as JSON")
@click.option("--timeout", type=float, default=None, help="HTTP request timeout in seconds")
@click.option("--no-ssl-verify", is_flag=True, help="Disable SSL certificate verification")
@click.pass_obj
def check(
    settings: Settings,
    source: str,
    index: str,
    json_output: bool,
    timeout: float | None,
    no_ssl_verify: bool,
) -> None:
    """Evaluate INDEX of the status list credential at SOURCE.

    SOURCE can be a file path, a URL, or "-" for stdin. Exits with 0 when the
    entry is 0, 1 when it is set, 2 on errors.
    """
    settings = _override(settings, timeout, no_ssl_verify)
    try:
        credential = load_document(source, settings)
        subject = credential.get("credentialSubject")
        if not isinstance(subject, dict):
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE, "Missing credentialSubject in status list credential."
            )
        position = parse_status_list_index(index)
        evaluation = evaluate_status(
            subject.get("encodedList"),
            position,
            subject.get("statusPurpose", "revocation"),
            status_size=subject.get("statusSize"),
            status_messages=subject.get("statusMessages"),
        )
    except json.JSONDecodeError as e:
        fail(click.ClickException(f"Invalid JSON: {e}"), json_output)
    except StatusListError as e:
        fail(e, json_output)
    except Exception as e:
        fail(e, json_output)

    if json_output:
        console.print_json(data={"index": position, **evaluation.to_dict()})
    else:
        format_evaluation(evaluation, position)
    sys.exit(0 if evaluation.valid else 1)


@main.command("inspect")
@click.argument("source")
@click.option("--start", type=int, default=0, show_default=True)
@click.option("--count", type=int, default=64, show_default=True)
@click.option("--only-set", is_flag=True, help="Show only non-zero entries")
@click.pass_obj
def inspect_list(settings: Settings, source: str, start: int, count: int, only_set: bool) -> None:
    """Show a range of entries of the status list credential at SOURCE."""
    try:
        credential = load_document(source, settings)
        status_list = status_list_from_credential(credential)
        if start < 0 or count < 1:
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE, "start must be >= 0 and count must be >= 1."
            )
        end = min(start + count, status_list.entry_count)
        rows = [(i, status_list.get_entry(i)) for i in range(start, end)]
    except json.JSONDecodeError as e:
        fail(click.ClickException(f"Invalid JSON: {e}"))
    except StatusListError as e:
        fail(e)
    except Exception as e:
        fail(e)

    subject = credential["credentialSubject"]
    table = Table(
        title=f"{subject.get('statusPurpose')} list: {status_list.entry_count} entries "
        f"x {status_list.status_size} bit(s)"
    )
    table.add_column("Index", justify="right")
    table.add_column("Value", justify="right")
    for i, value in rows:
        if only_set and value == 0:
            continue
        table.add_row(str(i), f"[red]{value}[/]" if value else "0")
    console.print(table)


@main.command()
@click.argument("source")
@click.option("--json-output", is_flag=True, help="Output result as JSON")
@click.option("--timeout", type=float, default=None, help="HTTP request timeout in seconds")
@click.option("--no-ssl-verify", is_flag=True, help="Disable SSL certificate verification")
@click.pass_obj
def verify(
    settings: Settings,
    source: str,
    json_output: bool,
    timeout: float | None,
    no_ssl_verify: bool,
) -> None:
    """Check the credentialStatus entries of the credential at SOURCE.

    Referenced status list credentials are fetched over HTTP. Exits with 0
    when every entry is valid, 1 otherwise, 2 on errors.
    """
    settings = _override(settings, timeout, no_ssl_verify)
    checker = StatusListChecker(
        lambda url: fetch_json(url, settings.http_timeout, settings.verify_ssl)
    )
    try:
        credential = load_document(source, settings)
        results = checker.check_status(credential)
    except json.JSONDecodeError as e:
        fail(click.ClickException(f"Invalid JSON: {e}"), json_output)
    except StatusListError as e:
        fail(e, json_output)
    except Exception as e:
        fail(e, json_output)

    valid = all(r.valid for r in results)
    if json_output:
        console.print_json(data={
            "valid": valid,
            "credential_status": [
                {
                    "status": r.status.value,
                    "purpose": r.purpose,
                    "index": r.index,
                    "value": r.value,
                    "valid": r.valid,
                    "message": r.status_message,
                }
                for r in results
            ],
        })
    elif not results:
        console.print("[dim]Credential has no BitstringStatusListEntry[/]")
    else:
        format_check_results(results)
    sys.exit(0 if valid else 1)


def _override(settings: Settings, timeout: float | None, no_ssl_verify: bool) -> Settings:
    return dataclasses.replace(
        settings,
        http_timeout=timeout if timeout is not None else settings.http_timeout,
        verify_ssl=settings.verify_ssl and not no_ssl_verify,
    )


if __name__ == "__main__":
    main()
