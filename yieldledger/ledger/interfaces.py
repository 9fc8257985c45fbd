"""
The token capability set every ledger exposes.

Implemented structurally (typing.Protocol): Ledger satisfies it without
inheriting from it.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class TokenLedger(Protocol):

    def principal_balance(self, account: str) -> int:
        ...

    def current_balance(self, account: str, now: Optional[int] = None) -> int:
        ...

    def mint(self, caller: str, account: str, amount: int, rate: int) -> int:
        ...

    def burn(self, caller: str, account: str, amount: int) -> int:
        ...

    def transfer(self, caller: str, sender: str, recipient: str, amount: int) -> None:
        ...
