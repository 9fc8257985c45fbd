"""
yieldledger keygen — create a bridge endpoint signing key.
"""

from pathlib import Path

import click

from yieldledger.core.crypto import Ed25519KeyManager


@click.command(name="keygen")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing key.")
def keygen_command(path: str, force: bool) -> None:
    """Write a new Ed25519 PEM key to PATH and print its public key hex."""
    target = Path(path)
    if target.exists() and not force:
        raise click.ClickException(f"{target} exists; pass --force to overwrite")
    key = Ed25519KeyManager.generate()
    key.save(target)
    click.echo(key.public_key_hex)
