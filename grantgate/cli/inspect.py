"""
Read-only commands: claimable, show, keygen.
"""

import json
import sys
from pathlib import Path

import click

from grantgate.core.crypto import Ed25519KeyManager
from grantgate.core.exceptions import GrantNotFound, StoreError
from grantgate.core.vesting import compute_claimable_balance
from grantgate.engine.records import GrantRepository
from grantgate.store.journal import JournalStore


@click.command(name="claimable")
@click.option("--total", type=int, required=True, help="Total amount granted.")
@click.option("--start", type=int, required=True, help="Vesting start (unix seconds).")
@click.option("--now", type=int, required=True, help="Evaluation time (unix seconds).")
@click.option("--duration", type=int, required=True, help="Vesting duration in seconds.")
def claimable_command(total: int, start: int, now: int, duration: int) -> None:
    """Print the linearly vested amount at NOW."""
    try:
        amount = compute_claimable_balance(total, start, now, duration)
    except ValueError as e:
        raise click.BadParameter(str(e))
    click.echo(amount)


@click.command(name="show")
@click.argument("grant_id")
@click.option(
    "--store", "store_path",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="Journal store to read.",
)
def show_command(grant_id: str, store_path: str) -> None:
    """Print GRANT_ID, its milestones and remaining amount as JSON."""
    try:
        records = GrantRepository(JournalStore(Path(store_path)))
        grant = records.get_grant(grant_id)
    except (GrantNotFound, StoreError) as e:
        click.echo(click.style(f"ERROR: {e}", fg="red"), err=True)
        sys.exit(2)

    out = {
        "grant_id":         grant_id,
        "grant":            grant.to_dict(),
        "remaining_amount": grant.remaining_amount,
        "milestones": {
            milestone_id: records.get_milestone(grant_id, milestone_id).to_dict()
            for milestone_id in records.milestone_ids(grant_id)
        },
    }
    click.echo(json.dumps(out, indent=2))


@click.command(name="keygen")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing key file.")
def keygen_command(path: str, force: bool) -> None:
    """Write a new Ed25519 private key to PATH and print its identity."""
    key_path = Path(path)
    if key_path.exists() and not force:
        click.echo(click.style(f"ERROR: {key_path} exists (use --force)", fg="red"), err=True)
        sys.exit(2)
    key = Ed25519KeyManager.generate()
    key.save(key_path)
    click.echo(key.identity)
