"""
yieldledger replay — verify a journal and print the ledger it rebuilds.

Usage:
    yieldledger replay <journal>                  Human output (default)
    yieldledger replay <journal> --format json    Machine-readable JSON
    yieldledger replay <journal> --at 1700000000  Balances as of that time

Exit codes:
    0  Journal valid, state rebuilt
    1  Journal has chain / sequence / schema violations
    2  Error (file missing, malformed JSON)
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from yieldledger.auth.capabilities import CapabilitySet
from yieldledger.core import accrual
from yieldledger.core.exceptions import YieldLedgerError
from yieldledger.core.fixedpoint import format_rate
from yieldledger.core.time import ManualClock
from yieldledger.ledger.journal import Journal, JournalOp, find_violations, read_entries
from yieldledger.ledger.ledger import Ledger


@click.command(name="replay")
@click.argument("journal", type=click.Path(dir_okay=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
)
@click.option("--at", "at", type=int, default=None,
              help="Project balances to this time (default: last journal entry).")
def replay_command(journal: str, fmt: str, at: Optional[int]) -> None:
    """Verify JOURNAL's hash chain and rebuild the ledger it describes."""
    path = Path(journal)
    if not path.exists():
        click.echo(f"error: journal not found: {path}", err=True)
        sys.exit(2)

    try:
        entries = list(read_entries(path))
    except YieldLedgerError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(2)

    violations = find_violations(entries)
    if violations:
        if fmt == "json":
            click.echo(json.dumps({
                "journal": str(path),
                "valid": False,
                "violations": [
                    {"sequence": v.at_sequence, "type": v.violation_type, "detail": v.detail}
                    for v in violations
                ],
            }, indent=2))
        else:
            click.echo(f"Journal {path}: {len(violations)} violation(s)")
            for v in violations:
                click.echo(f"  #{v.at_sequence:<6} {v.violation_type:<13} {v.detail}")
        sys.exit(1)

    if not entries:
        click.echo(f"Journal {path}: empty")
        sys.exit(0)

    genesis = entries[0]
    instance_id = genesis.payload.get("instance_id", "default") \
        if genesis.op == JournalOp.GENESIS else "default"
    last_at = max(e.at for e in entries)
    ledger = Ledger(
        ceiling_rate= 0,
        capabilities= CapabilitySet(),
        clock=        ManualClock(last_at),
        journal=      Journal(path),
        instance_id=  instance_id,
    )
    when = last_at if at is None else at
    accounts = ledger.accounts()

    if fmt == "json":
        click.echo(json.dumps({
            "journal":      str(path),
            "valid":        True,
            "instance_id":  instance_id,
            "entries":      len(entries),
            "ceiling_rate": str(ledger.ceiling_rate),
            "revision":     ledger.config.revision,
            "at":           when,
            "accounts": {
                name: {
                    "principal":    str(acct.principal),
                    "rate":         str(acct.rate),
                    "last_settled": acct.last_settled,
                    "balance":      str(accrual.settled_balance(acct, when)),
                }
                for name, acct in sorted(accounts.items())
            },
        }, indent=2))
        sys.exit(0)

    click.echo(f"Journal   {path}")
    click.echo(f"Instance  {instance_id}")
    click.echo(f"Entries   {len(entries)} (chain intact)")
    click.echo(f"Ceiling   {format_rate(ledger.ceiling_rate)} (revision {ledger.config.revision})")
    click.echo(f"As of     {when}")
    click.echo()
    click.echo(f"  {'account':<32} {'rate':>22} {'principal':>20} {'balance':>20}")
    for name, acct in sorted(accounts.items()):
        click.echo(
            f"  {name:<32} {format_rate(acct.rate):>22} "
            f"{acct.principal:>20} {accrual.settled_balance(acct, when):>20}"
        )
    sys.exit(0)
