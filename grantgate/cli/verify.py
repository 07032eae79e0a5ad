"""
grantgate/cli/verify.py

grantgate verify: Journal Store Verification
==============================================

Usage:
    grantgate verify <journal>                      Human output (default)
    grantgate verify <journal> --format json        Machine-readable JSON
    grantgate verify <journal> --signer <identity>  Require one signer
    grantgate verify <journal> --quiet              Exit code only

Exit codes:
    0  Journal fully valid  (chain + data hashes + signatures)
    1  Journal has violations
    2  Error  (file missing, malformed JSON)
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from grantgate.core.exceptions import StoreError
from grantgate.store.journal import JournalReport, verify_journal


@click.command(name="verify")
@click.argument("journal", type=click.Path(exists=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format: human (default) or json (CI/automation).",
)
@click.option(
    "--signer",
    type=str,
    default=None,
    metavar="IDENTITY",
    help="Require every entry to be signed by this Ed25519 identity (64 hex chars).",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
def verify_command(
    journal: str,
    fmt:     str,
    signer:  Optional[str],
    quiet:   bool,
) -> None:
    """
    Verify a journal store: chain linkage, data hashes and signatures.

    JOURNAL is the path to a .jsonl journal written by JournalStore.
    """
    journal_path = Path(journal)

    if not journal_path.exists():
        _emit_error(f"Journal not found: {journal}", fmt, quiet)
        sys.exit(2)

    try:
        report = verify_journal(journal_path, expected_signer=signer)
    except StoreError as e:
        _emit_error(str(e), fmt, quiet)
        sys.exit(2)

    if quiet:
        sys.exit(0 if report.valid else 1)

    if fmt == "json":
        click.echo(json.dumps({"grantgate_verify": report.to_dict()}, indent=2))
    else:
        _output_human(report)

    sys.exit(0 if report.valid else 1)


def _output_human(report: JournalReport) -> None:
    click.echo()
    click.echo(f"  Journal     {report.path}")
    click.echo(f"  Entries     {report.total_entries}")
    click.echo(f"  Signed      {report.signed}")
    if report.valid:
        click.echo(click.style("  VALID", fg="green", bold=True))
    else:
        click.echo(click.style(f"  INVALID  {len(report.violations)} violation(s)", fg="red", bold=True))
        for violation in report.violations:
            click.echo(f"    - {violation}")
    click.echo()


def _emit_error(msg: str, fmt: str, quiet: bool) -> None:
    """Emit error in the correct format. Never raises."""
    if quiet:
        return
    if fmt == "json":
        click.echo(json.dumps({"grantgate_verify": {"error": msg, "valid": False}}))
    else:
        click.echo(click.style(f"\n  ERROR: {msg}\n", fg="red"), err=True)
