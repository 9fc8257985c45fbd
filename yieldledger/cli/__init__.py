"""
yieldledger/cli/__init__.py

yieldledger CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    yieldledger = "yieldledger.cli:cli"
"""

import logging

import click

from yieldledger.cli.keygen import keygen_command
from yieldledger.cli.project import project_command
from yieldledger.cli.replay import replay_command


@click.group()
@click.version_option(package_name="yieldledger")
@click.option("-v", "--verbose", count=True, help="Log to stderr (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """
    yieldledger — locked-rate accrual ledger tools.

    \b
    Commands:
      project   Project a balance forward at a fixed rate.
      replay    Verify a journal and print the reconstructed ledger.
      keygen    Create a bridge endpoint signing key.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


cli.add_command(project_command)
cli.add_command(replay_command)
cli.add_command(keygen_command)
