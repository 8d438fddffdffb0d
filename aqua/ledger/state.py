"""Ledger entry state.

Each (provider, app, strategy, token) entry is in exactly one of:

    UNREGISTERED -> ACTIVE(n) -> DOCKED

The persisted form packs this into a single small tag (0, 1..254, 255);
`BalanceEntry.raw` and `BalanceEntry.from_raw` convert between the two.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from aqua.constants import DOCKED_TAG, MAX_AMOUNT, MAX_TOKEN_COUNT, UNREGISTERED_TAG


class EntryStatus(str, Enum):
    """Lifecycle stage of a ledger entry."""

    UNREGISTERED = "unregistered"
    ACTIVE = "active"
    DOCKED = "docked"


@dataclass(frozen=True)
class BalanceEntry:
    """Virtual balance of one token allocated to one strategy.

    Attributes:
        amount: Allocated amount (uint248)
        status: Lifecycle stage
        token_count: Number of tokens in the strategy; only meaningful
            while ACTIVE, zero otherwise
    """

    amount: int = 0
    status: EntryStatus = EntryStatus.UNREGISTERED
    token_count: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.amount <= MAX_AMOUNT:
            raise ValueError(f"amount out of range: {self.amount}")
        if self.status is EntryStatus.ACTIVE:
            if not 1 <= self.token_count <= MAX_TOKEN_COUNT:
                raise ValueError(f"active token_count out of range: {self.token_count}")
        elif self.token_count != 0:
            raise ValueError(f"{self.status.value} entry cannot carry token_count")
        if self.status is EntryStatus.DOCKED and self.amount != 0:
            raise ValueError("docked entry must have zero amount")

    @classmethod
    def active(cls, amount: int, token_count: int) -> BalanceEntry:
        return cls(amount=amount, status=EntryStatus.ACTIVE, token_count=token_count)

    @classmethod
    def docked(cls) -> BalanceEntry:
        return cls(status=EntryStatus.DOCKED)

    @property
    def is_active(self) -> bool:
        return self.status is EntryStatus.ACTIVE

    def with_amount(self, amount: int) -> BalanceEntry:
        return replace(self, amount=amount)

    @property
    def raw(self) -> tuple[int, int]:
        """Persisted (amount, state_tag) pair."""
        if self.status is EntryStatus.UNREGISTERED:
            return self.amount, UNREGISTERED_TAG
        if self.status is EntryStatus.DOCKED:
            return self.amount, DOCKED_TAG
        return self.amount, self.token_count

    @classmethod
    def from_raw(cls, amount: int, tag: int) -> BalanceEntry:
        if tag == UNREGISTERED_TAG:
            return cls(amount=amount)
        if tag == DOCKED_TAG:
            return cls(amount=amount, status=EntryStatus.DOCKED)
        return cls.active(amount, tag)


EMPTY_ENTRY = BalanceEntry()
