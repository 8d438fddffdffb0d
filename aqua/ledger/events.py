"""Ledger event records.

One record per committed state change, appended to `Ledger.events`.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Shipped:
    """A strategy was registered for its tokens."""

    provider: str
    app: str
    strategy_hash: str
    strategy: bytes
    tokens: tuple[str, ...]
    amounts: tuple[int, ...]


@dataclass(frozen=True)
class Docked:
    """A strategy was closed."""

    provider: str
    app: str
    strategy_hash: str


@dataclass(frozen=True)
class Pulled:
    """Tokens were withdrawn from a provider's allocation."""

    provider: str
    app: str
    strategy_hash: str
    token: str
    amount: int
    recipient: str


@dataclass(frozen=True)
class Pushed:
    """Tokens were deposited into a provider's allocation."""

    provider: str
    app: str
    strategy_hash: str
    token: str
    amount: int
    payer: str


LedgerEvent = Shipped | Docked | Pulled | Pushed
