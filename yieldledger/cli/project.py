"""
yieldledger project — balance projection at a fixed rate.

    yieldledger project --principal 100 --rate 0.05 --elapsed 10
    yieldledger project --principal 100 --rate 50000000000000000 --raw-rate --elapsed 10
"""

import sys

import click

from yieldledger.core import accrual
from yieldledger.core.exceptions import YieldLedgerError
from yieldledger.core.fixedpoint import format_rate, parse_rate, require_uint
from yieldledger.core.models import Account


@click.command(name="project")
@click.option("--principal", type=int, required=True, help="Settled principal.")
@click.option("--rate", type=str, required=True, help='Rate per time unit, e.g. "0.05" or "5%".')
@click.option("--elapsed", type=int, required=True, help="Time units since settlement.")
@click.option("--raw-rate", is_flag=True, default=False,
              help="Treat --rate as a fixed-point integer (1e18 = 100%).")
@click.option("--steps", type=int, default=1, show_default=True,
              help="Settle this many times at equal intervals (compounding).")
def project_command(principal: int, rate: str, elapsed: int, raw_rate: bool, steps: int) -> None:
    """Print the balance after ELAPSED time units, rounded down."""
    try:
        fixed = require_uint(int(rate), "rate") if raw_rate else parse_rate(rate)
        account = Account(principal=require_uint(principal, "principal"), rate=fixed)
        if steps < 1 or elapsed < 0:
            raise click.BadParameter("steps must be >= 1 and elapsed >= 0")

        now = 0
        for i in range(1, steps + 1):
            now = elapsed * i // steps
            account = accrual.settle(account, now)
    except (ValueError, YieldLedgerError) as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(2)

    click.echo(f"principal  {principal}")
    click.echo(f"rate       {format_rate(fixed)} per unit")
    click.echo(f"elapsed    {elapsed}")
    click.echo(f"balance    {account.principal}")
