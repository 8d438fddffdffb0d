"""Settlement callback contract.

During a swap the engine releases the output tokens first, then hands
control to the taker, who must push the input tokens into the ledger before
returning. Anything the callback raises unwinds the whole settlement.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class SettlementContext:
    """Everything the taker needs to push the input side.

    Attributes:
        token_in: Token the taker owes
        token_out: Token already released to the taker's recipient
        amount_in: Exact amount the taker must deposit
        amount_out: Amount released
        provider: Maker whose allocation is traded against
        app: Engine address (the app half of the ledger key)
        strategy_hash: Strategy identity
        taker_data: Opaque bytes passed to the swap, returned unchanged
    """

    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    provider: str
    app: str
    strategy_hash: str
    taker_data: bytes


@runtime_checkable
class SettlementCallback(Protocol):
    """Taker-side hook invoked mid-swap."""

    def stableswap_callback(self, context: SettlementContext) -> None:
        """Deposit `context.amount_in` of `context.token_in` into the ledger."""
        ...
