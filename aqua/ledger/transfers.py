"""Token transfer primitive.

The ledger never custodies tokens: a withdrawal moves tokens from the
provider's wallet to the recipient, a deposit moves them from the payer to
the provider. How tokens physically move is external; the ledger only needs
`transfer`.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Protocol, runtime_checkable

from aqua.models.types import normalize_address
from aqua.safe_int import S, Underflow

from .errors import InsufficientFunds


@runtime_checkable
class TokenTransfer(Protocol):
    """Protocol for the external transfer primitive."""

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        """Move `amount` of `token` from sender to recipient or raise."""
        ...


class InMemoryTokenBank:
    """Wallet balances held in memory.

    Usage:
        bank = InMemoryTokenBank()
        bank.mint(USDC, maker, 1_000_000)
        bank.transfer(USDC, maker, taker, 400)
    """

    def __init__(self) -> None:
        self._balances: defaultdict[tuple[str, str], int] = defaultdict(int)
        self._lock = threading.Lock()

    def balance_of(self, token: str, holder: str) -> int:
        return self._balances[(normalize_address(token), normalize_address(holder))]

    def mint(self, token: str, holder: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot mint negative amount: {amount}")
        key = (normalize_address(token), normalize_address(holder))
        with self._lock:
            self._balances[key] += amount

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        """Move tokens between holders.

        Raises:
            InsufficientFunds: If sender holds less than amount
        """
        if amount < 0:
            raise ValueError(f"Cannot transfer negative amount: {amount}")
        token = normalize_address(token)
        src = (token, normalize_address(sender))
        dst = (token, normalize_address(recipient))
        with self._lock:
            try:
                remaining = (S(self._balances[src]) - amount).value
            except Underflow as err:
                raise InsufficientFunds(
                    f"{sender} holds {self._balances[src]} of {token}, needs {amount}"
                ) from err
            self._balances[src] = remaining
            self._balances[dst] += amount
