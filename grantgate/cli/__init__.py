"""
grantgate/cli/__init__.py

GrantGate CLI: root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    grantgate = "grantgate.cli:cli"

Adding a new command:
    1. Create grantgate/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import logging

import click

from grantgate.cli.inspect import claimable_command, keygen_command, show_command
from grantgate.cli.verify import verify_command

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


@click.group()
@click.version_option(package_name="grantgate")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity (logs go to stderr).",
)
def cli(log_level: str) -> None:
    """
    GrantGate: milestone-gated fund release.

    \b
    Commands:
      claimable  Linear vesting amount at a point in time.
      show       Print a grant from a journal store.
      verify     Verify a journal store (chain, hashes, signatures).
      keygen     Create an Ed25519 identity key.
    """
    configure_logging(log_level)


cli.add_command(claimable_command)
cli.add_command(show_command)
cli.add_command(verify_command)
cli.add_command(keygen_command)
