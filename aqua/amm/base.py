"""Base class for trading apps that settle against the shared ledger."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from aqua.ledger import Ledger, Pushed
from aqua.models.types import normalize_address, normalize_bytes32

from .callback import SettlementCallback, SettlementContext
from .errors import MissingTakerPush, ReentrantSettlement

logger = structlog.get_logger()

StrategyT = TypeVar("StrategyT")


@dataclass(frozen=True)
class SwapReceipt:
    """Result of a settled swap."""

    strategy_hash: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    recipient: str


class StrategyApp(ABC, Generic[StrategyT]):
    """A trading app whose liquidity lives in the shared ledger.

    Subclasses price trades; this class owns the settlement protocol:
    pull the output, call the taker back, verify the input push, all inside
    one ledger atomic block and under the ledger's lock for the strategy.

    Args:
        ledger: The shared-liquidity ledger
        address: This app's identity (the app half of every ledger key)
    """

    def __init__(self, ledger: Ledger, address: str) -> None:
        self._ledger = ledger
        self._address = normalize_address(address, validate=True)
        self._local = threading.local()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def address(self) -> str:
        return self._address

    @abstractmethod
    def quote_exact_in(self, strategy: StrategyT, zero_for_one: bool, amount_in: int) -> int:
        """Output amount for an exact input."""
        ...

    @abstractmethod
    def quote_exact_out(self, strategy: StrategyT, zero_for_one: bool, amount_out: int) -> int:
        """Input amount required for an exact output."""
        ...

    @contextmanager
    def _exclusive(self, strategy_hash: str) -> Iterator[None]:
        """Hold the strategy for a whole swap.

        The ledger lock is re-entrant, so re-entry from the settling thread
        is refused here instead.

        Raises:
            ReentrantSettlement: If this thread is already settling the strategy
        """
        settling: set[str] | None = getattr(self._local, "settling", None)
        if settling is None:
            settling = set()
            self._local.settling = settling
        if strategy_hash in settling:
            logger.warning("reentrant_settlement_refused", strategy_hash=strategy_hash)
            raise ReentrantSettlement(f"Strategy {strategy_hash} is already settling")
        with self._ledger.strategy_lock(strategy_hash):
            settling.add(strategy_hash)
            try:
                yield
            finally:
                settling.discard(strategy_hash)

    def _verify_push(
        self, provider: str, strategy_hash: str, token_in: str, amount_in: int
    ) -> None:
        provider = normalize_address(provider)
        strategy_hash = normalize_bytes32(strategy_hash)
        token_in = normalize_address(token_in)
        pushes = [
            event
            for event in self._ledger.pending_events()
            if isinstance(event, Pushed)
            and event.provider == provider
            and event.app == self._address
            and event.strategy_hash == strategy_hash
            and event.token == token_in
        ]
        paid = [event.amount for event in pushes]
        # A zero input needs no push
        if paid != [amount_in] and (amount_in or paid):
            raise MissingTakerPush(f"Expected one push of {amount_in} {token_in}, got {paid}")

    def _settle(
        self,
        taker: SettlementCallback,
        provider: str,
        strategy_hash: str,
        token_in: str,
        token_out: str,
        amount_in: int,
        amount_out: int,
        balance_in_before: int,
        recipient: str,
        taker_data: bytes,
    ) -> SwapReceipt:
        """Pull, call back, verify. Caller must be inside `_exclusive`."""
        context = SettlementContext(
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            provider=provider,
            app=self._address,
            strategy_hash=strategy_hash,
            taker_data=taker_data,
        )
        expected = balance_in_before + amount_in

        try:
            with self._ledger.atomic():
                self._ledger.withdraw(
                    self._address, provider, strategy_hash, token_out, amount_out, recipient
                )
                taker.stableswap_callback(context)
                self._verify_push(provider, strategy_hash, token_in, amount_in)
                balance_in_after, _ = self._ledger.raw_balance(
                    provider, self._address, strategy_hash, token_in
                )
                if balance_in_after != expected:
                    raise MissingTakerPush(
                        f"Expected {token_in} balance {expected}, found {balance_in_after}"
                    )
        except Exception as err:
            logger.warning(
                "swap_rolled_back",
                strategy_hash=strategy_hash,
                token_in=token_in,
                token_out=token_out,
                amount_in=amount_in,
                amount_out=amount_out,
                error=str(err),
            )
            raise

        logger.info(
            "swap_settled",
            strategy_hash=strategy_hash,
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            recipient=recipient,
        )
        return SwapReceipt(
            strategy_hash=strategy_hash,
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            recipient=normalize_address(recipient),
        )
