"""Shared-liquidity ledger.

Tracks, per (provider, app, strategy, token), how many of the provider's
tokens are virtually allocated to a strategy. Tokens stay in the provider's
wallet; withdrawals and deposits move them through the external transfer
primitive and adjust the virtual amount in the same step.

Every state-changing method runs inside `atomic()`: if anything raises,
entry writes are undone, transfers are reversed and events are dropped, so
callers never observe a partial effect. `atomic()` nests, which is how the
AMM engine makes a whole settlement (pull, taker callback, verified push)
all-or-nothing.

Writes and safe reads for one strategy identity are serialized by that
identity's lock (see `strategy_lock`). The lock is re-entrant, so a thread
holding it across a settlement may still deposit into the same strategy.

Open question kept as-is: `withdraw` does not check that the entry is
ACTIVE, while `deposit` does. Withdrawing from a DOCKED or UNREGISTERED
entry is only bounded by the recorded amount.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field

import structlog

from aqua.constants import MAX_AMOUNT, MAX_TOKEN_COUNT
from aqua.models.ledger import BalanceRow, LedgerSnapshot
from aqua.models.strategy import strategy_hash as hash_strategy
from aqua.models.types import normalize_address, normalize_bytes32

from .delegates import TrustedDelegates
from .errors import (
    AmountOverflow,
    DockingShouldCloseAllTokens,
    InsufficientBalance,
    InvalidTokenList,
    PushToNonActiveStrategyPrevented,
    RollbackIncomplete,
    SafeBalancesForTokenNotInActiveStrategy,
    StrategyAlreadyShipped,
)
from .events import Docked, LedgerEvent, Pulled, Pushed, Shipped
from .locks import StrategyLocks
from .state import EMPTY_ENTRY, BalanceEntry, EntryStatus
from .transfers import InMemoryTokenBank, TokenTransfer

logger = structlog.get_logger()

# (provider, app, strategy_hash, token)
LedgerKey = tuple[str, str, str, str]

_NO_OWNER = "0x" + "0" * 40


@dataclass
class _Journal:
    """Undo log for one atomic block."""

    undo: list[Callable[[], None]] = field(default_factory=list)
    events: list[LedgerEvent] = field(default_factory=list)


def _key(provider: str, app: str, strategy_hash: str, token: str) -> LedgerKey:
    return (
        normalize_address(provider),
        normalize_address(app),
        normalize_bytes32(strategy_hash),
        normalize_address(token),
    )


class Ledger:
    """Virtual balance ledger shared by trading strategies.

    Args:
        bank: External transfer primitive (defaults to an in-memory bank)
        delegates: Trusted-delegate allow-list for on-behalf-of calls
    """

    def __init__(
        self,
        bank: TokenTransfer | None = None,
        delegates: TrustedDelegates | None = None,
    ) -> None:
        self._entries: dict[LedgerKey, BalanceEntry] = {}
        self._bank: TokenTransfer = bank if bank is not None else InMemoryTokenBank()
        self._delegates = delegates if delegates is not None else TrustedDelegates(_NO_OWNER)
        self._mutex = threading.RLock()
        self._local = threading.local()
        self._locks = StrategyLocks()
        self.events: list[LedgerEvent] = []

    @property
    def bank(self) -> TokenTransfer:
        return self._bank

    @property
    def delegates(self) -> TrustedDelegates:
        return self._delegates

    @property
    def locks(self) -> StrategyLocks:
        return self._locks

    def strategy_lock(self, strategy_hash: str) -> AbstractContextManager[None]:
        """Exclusive, re-entrant hold on one strategy identity.

        Register, close, withdraw, deposit and the entry reads take this lock
        themselves. Callers hold it to keep a multi-step sequence (quote,
        pull, callback, verify) free of interleaved writes.
        """
        return self._locks.hold(normalize_bytes32(strategy_hash))

    # =========================================================================
    # Atomic blocks
    # =========================================================================

    def _journals(self) -> list[_Journal]:
        stack = getattr(self._local, "journals", None)
        if stack is None:
            stack = []
            self._local.journals = stack
        return stack

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run a block so that it either fully applies or leaves no trace.

        Writes are visible to reads inside the block as they happen. On
        exception, entry writes are undone and transfers reversed in reverse
        order, then the exception propagates. Nested blocks fold into the
        enclosing one on success.

        Raises:
            RollbackIncomplete: If a transfer could not be reversed; chained
                to the exception that aborted the block
        """
        stack = self._journals()
        journal = _Journal()
        stack.append(journal)
        try:
            yield
        except BaseException as err:
            stack.pop()
            self._rollback(journal, err)
            raise
        stack.pop()
        if stack:
            stack[-1].undo.extend(journal.undo)
            stack[-1].events.extend(journal.events)
        else:
            with self._mutex:
                self.events.extend(journal.events)

    def _rollback(self, journal: _Journal, cause: BaseException) -> None:
        logger.debug("ledger_rollback", steps=len(journal.undo), events=len(journal.events))
        failures: list[Exception] = []
        with self._mutex:
            for undo in reversed(journal.undo):
                try:
                    undo()
                except Exception as err:
                    logger.error("ledger_rollback_step_failed", error=str(err))
                    failures.append(err)
        if failures:
            raise RollbackIncomplete(
                f"{len(failures)} transfer(s) could not be reversed: {failures[0]}"
            ) from cause

    def _current(self) -> _Journal:
        stack = self._journals()
        if not stack:
            raise RuntimeError("Ledger mutation outside an atomic block")
        return stack[-1]

    def pending_events(self) -> list[LedgerEvent]:
        """Events recorded so far by the innermost open atomic block."""
        return list(self._current().events)

    # =========================================================================
    # Journaled primitives (callers hold the mutex)
    # =========================================================================

    def _set_entry(self, key: LedgerKey, entry: BalanceEntry) -> None:
        prior = self._entries.get(key)

        def undo() -> None:
            if prior is None:
                self._entries.pop(key, None)
            else:
                self._entries[key] = prior

        self._entries[key] = entry
        self._current().undo.append(undo)

    def _move(self, key: LedgerKey, delta: int, sender: str, recipient: str) -> None:
        """Transfer |delta| of the key's token and adjust the entry by delta.

        Both halves are undone together. If the transfer back fails, the
        entry keeps the adjusted amount.
        """
        amount = abs(delta)
        self._bank.transfer(key[3], sender, recipient, amount)
        entry = self._entries[key]
        self._entries[key] = entry.with_amount(entry.amount + delta)

        def undo() -> None:
            self._bank.transfer(key[3], recipient, sender, amount)
            current = self._entries[key]
            self._entries[key] = current.with_amount(current.amount - delta)

        self._current().undo.append(undo)

    def _emit(self, event: LedgerEvent) -> None:
        self._current().events.append(event)

    # =========================================================================
    # Register (ship)
    # =========================================================================

    def register(
        self,
        caller: str,
        app: str,
        strategy: bytes,
        tokens: Sequence[str],
        amounts: Sequence[int],
    ) -> str:
        """Register a strategy's tokens for the calling provider.

        Args:
            caller: Provider registering its own liquidity
            app: Trading app that will pull/push against the strategy
            strategy: ABI-encoded strategy descriptor
            tokens: Constituent tokens
            amounts: Initial virtual amount for each token

        Returns:
            The strategy identity (keccak-256 of `strategy`)

        Raises:
            InvalidTokenList: If lists are empty, mismatched, too long or repeat a token
            AmountOverflow: If an amount exceeds uint248
            StrategyAlreadyShipped: If any token is already registered
        """
        return self._register(caller, app, strategy, tokens, amounts)

    def register_on_behalf(
        self,
        caller: str,
        provider: str,
        app: str,
        strategy: bytes,
        tokens: Sequence[str],
        amounts: Sequence[int],
    ) -> str:
        """Register a strategy for `provider`; caller must be a trusted delegate."""
        self._delegates.require(caller)
        return self._register(provider, app, strategy, tokens, amounts)

    def _register(
        self,
        provider: str,
        app: str,
        strategy: bytes,
        tokens: Sequence[str],
        amounts: Sequence[int],
    ) -> str:
        token_list = [normalize_address(t) for t in tokens]
        amount_list = list(amounts)
        if not token_list:
            raise InvalidTokenList("Strategy must have at least one token")
        if len(token_list) != len(amount_list):
            raise InvalidTokenList(
                f"{len(token_list)} tokens but {len(amount_list)} amounts"
            )
        if len(token_list) > MAX_TOKEN_COUNT:
            raise InvalidTokenList(f"At most {MAX_TOKEN_COUNT} tokens per strategy")
        if len(set(token_list)) != len(token_list):
            raise InvalidTokenList("Duplicate token in strategy")
        for token, amount in zip(token_list, amount_list, strict=True):
            if amount < 0:
                raise InvalidTokenList(f"Negative amount {amount} for {token}")
            if amount > MAX_AMOUNT:
                raise AmountOverflow(f"Amount {amount} for {token} exceeds uint248")

        identity = hash_strategy(strategy)
        keys = [_key(provider, app, identity, token) for token in token_list]
        count = len(keys)

        with self._locks.hold(identity), self.atomic(), self._mutex:
            for key in keys:
                if self._entries.get(key, EMPTY_ENTRY).status is not EntryStatus.UNREGISTERED:
                    raise StrategyAlreadyShipped(
                        f"Strategy {identity} already shipped for token {key[3]}"
                    )
            for key, amount in zip(keys, amount_list, strict=True):
                self._set_entry(key, BalanceEntry.active(amount, count))
            self._emit(
                Shipped(
                    provider=keys[0][0],
                    app=keys[0][1],
                    strategy_hash=identity,
                    strategy=bytes(strategy),
                    tokens=tuple(token_list),
                    amounts=tuple(amount_list),
                )
            )

        logger.info(
            "strategy_registered",
            provider=keys[0][0],
            app=keys[0][1],
            strategy_hash=identity,
            tokens=token_list,
        )
        return identity

    # =========================================================================
    # Close (dock)
    # =========================================================================

    def close(self, caller: str, app: str, strategy_hash: str, tokens: Sequence[str]) -> None:
        """Close the calling provider's strategy, zeroing every token.

        Raises:
            DockingShouldCloseAllTokens: Unless every token is presented
                exactly once and each is ACTIVE with that token count
        """
        self._close(caller, app, strategy_hash, tokens)

    def close_on_behalf(
        self,
        caller: str,
        provider: str,
        app: str,
        strategy_hash: str,
        tokens: Sequence[str],
    ) -> None:
        """Close `provider`'s strategy; caller must be a trusted delegate."""
        self._delegates.require(caller)
        self._close(provider, app, strategy_hash, tokens)

    def _close(self, provider: str, app: str, strategy_hash: str, tokens: Sequence[str]) -> None:
        keys = [_key(provider, app, strategy_hash, token) for token in tokens]
        count = len(keys)
        if count == 0 or len(set(keys)) != count:
            raise DockingShouldCloseAllTokens("Close must list each strategy token exactly once")

        with self._locks.hold(keys[0][2]), self.atomic(), self._mutex:
            for key in keys:
                entry = self._entries.get(key, EMPTY_ENTRY)
                if not entry.is_active or entry.token_count != count:
                    raise DockingShouldCloseAllTokens(
                        f"Token {key[3]} shows state {entry.raw[1]}, expected active({count})"
                    )
            for key in keys:
                self._set_entry(key, BalanceEntry.docked())
            self._emit(Docked(provider=keys[0][0], app=keys[0][1], strategy_hash=keys[0][2]))

        logger.info(
            "strategy_closed",
            provider=keys[0][0],
            app=keys[0][1],
            strategy_hash=keys[0][2],
        )

    # =========================================================================
    # Withdraw (pull)
    # =========================================================================

    def withdraw(
        self,
        caller: str,
        provider: str,
        strategy_hash: str,
        token: str,
        amount: int,
        recipient: str,
    ) -> None:
        """Release `amount` of the provider's allocation to `recipient`.

        The calling app is the app half of the key. A zero amount is a no-op:
        no transfer happens and no event is recorded.

        Raises:
            InsufficientBalance: If amount exceeds the recorded allocation
            InsufficientFunds: If the provider's wallet cannot cover the transfer
        """
        self._withdraw(provider, caller, strategy_hash, token, amount, recipient)

    def withdraw_on_behalf(
        self,
        caller: str,
        provider: str,
        app: str,
        strategy_hash: str,
        token: str,
        amount: int,
        recipient: str,
    ) -> None:
        """Withdraw for (provider, app); caller must be a trusted delegate."""
        self._delegates.require(caller)
        self._withdraw(provider, app, strategy_hash, token, amount, recipient)

    def _withdraw(
        self,
        provider: str,
        app: str,
        strategy_hash: str,
        token: str,
        amount: int,
        recipient: str,
    ) -> None:
        if amount < 0:
            raise ValueError(f"Withdraw amount must be non-negative, got {amount}")
        key = _key(provider, app, strategy_hash, token)
        recipient = normalize_address(recipient)
        if amount == 0:
            return

        with self._locks.hold(key[2]), self.atomic(), self._mutex:
            entry = self._entries.get(key, EMPTY_ENTRY)
            if amount > entry.amount:
                raise InsufficientBalance(
                    f"Withdraw {amount} of {key[3]} exceeds allocation {entry.amount}"
                )
            self._move(key, -amount, key[0], recipient)
            self._emit(
                Pulled(
                    provider=key[0],
                    app=key[1],
                    strategy_hash=key[2],
                    token=key[3],
                    amount=amount,
                    recipient=recipient,
                )
            )

        logger.info(
            "ledger_withdraw",
            provider=key[0],
            app=key[1],
            strategy_hash=key[2],
            token=key[3],
            amount=amount,
            recipient=recipient,
        )

    # =========================================================================
    # Deposit (push)
    # =========================================================================

    def deposit(
        self,
        caller: str,
        provider: str,
        app: str,
        strategy_hash: str,
        token: str,
        amount: int,
    ) -> None:
        """Add `amount` to the provider's allocation, paid by the caller.

        Raises:
            PushToNonActiveStrategyPrevented: If the entry is not ACTIVE
            AmountOverflow: If the new amount exceeds uint248
            InsufficientFunds: If the payer's wallet cannot cover the transfer
        """
        self._deposit(caller, provider, app, strategy_hash, token, amount)

    def deposit_on_behalf(
        self,
        caller: str,
        provider: str,
        app: str,
        strategy_hash: str,
        token: str,
        amount: int,
    ) -> None:
        """Deposit paid by a trusted delegate."""
        self._delegates.require(caller)
        self._deposit(caller, provider, app, strategy_hash, token, amount)

    def deposit_on_behalf_from(
        self,
        caller: str,
        payer: str,
        provider: str,
        app: str,
        strategy_hash: str,
        token: str,
        amount: int,
    ) -> None:
        """Deposit paid by an explicit payer, initiated by a trusted delegate."""
        self._delegates.require(caller)
        self._deposit(payer, provider, app, strategy_hash, token, amount)

    def _deposit(
        self,
        payer: str,
        provider: str,
        app: str,
        strategy_hash: str,
        token: str,
        amount: int,
    ) -> None:
        if amount < 0:
            raise ValueError(f"Deposit amount must be non-negative, got {amount}")
        key = _key(provider, app, strategy_hash, token)
        payer = normalize_address(payer)

        with self._locks.hold(key[2]), self.atomic(), self._mutex:
            entry = self._entries.get(key, EMPTY_ENTRY)
            if not entry.is_active:
                raise PushToNonActiveStrategyPrevented(
                    f"Cannot deposit {key[3]} into {entry.status.value} strategy {key[2]}"
                )
            if entry.amount + amount > MAX_AMOUNT:
                raise AmountOverflow(f"Deposit of {amount} overflows uint248 allocation")
            self._move(key, amount, payer, key[0])
            self._emit(
                Pushed(
                    provider=key[0],
                    app=key[1],
                    strategy_hash=key[2],
                    token=key[3],
                    amount=amount,
                    payer=payer,
                )
            )

        logger.info(
            "ledger_deposit",
            provider=key[0],
            app=key[1],
            strategy_hash=key[2],
            token=key[3],
            amount=amount,
            payer=payer,
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def entry(self, provider: str, app: str, strategy_hash: str, token: str) -> BalanceEntry:
        """Current entry; never-registered keys read as UNREGISTERED with 0."""
        key = _key(provider, app, strategy_hash, token)
        with self._locks.hold(key[2]):
            return self._entries.get(key, EMPTY_ENTRY)

    def raw_balance(
        self, provider: str, app: str, strategy_hash: str, token: str
    ) -> tuple[int, int]:
        """Persisted (amount, state_tag) for one entry."""
        return self.entry(provider, app, strategy_hash, token).raw

    def read_both_balances(
        self,
        provider: str,
        app: str,
        strategy_hash: str,
        token_a: str,
        token_b: str,
    ) -> tuple[int, int]:
        """Quote-safe read of two balances.

        Raises:
            SafeBalancesForTokenNotInActiveStrategy: If either entry is
                UNREGISTERED or DOCKED
        """
        with self.strategy_lock(strategy_hash):
            entry_a = self.entry(provider, app, strategy_hash, token_a)
            entry_b = self.entry(provider, app, strategy_hash, token_b)
        for token, entry in ((token_a, entry_a), (token_b, entry_b)):
            if not entry.is_active:
                logger.debug(
                    "safe_read_rejected",
                    strategy_hash=strategy_hash,
                    token=token,
                    status=entry.status.value,
                )
                raise SafeBalancesForTokenNotInActiveStrategy(
                    f"Token {token} is {entry.status.value} in strategy {strategy_hash}"
                )
        return entry_a.amount, entry_b.amount

    # =========================================================================
    # Snapshots
    # =========================================================================

    def export_snapshot(self) -> LedgerSnapshot:
        """Dump every entry in the persisted (amount, state_tag) layout.

        Takes no strategy locks: a settlement in flight shows up with its
        pull applied and its push pending.
        """
        with self._mutex:
            items = sorted(self._entries.items())
        rows = []
        for (provider, app, identity, token), entry in items:
            amount, tag = entry.raw
            rows.append(
                BalanceRow(
                    provider=provider,
                    app=app,
                    strategy_hash=identity,
                    token=token,
                    amount=str(amount),
                    state_tag=tag,
                )
            )
        return LedgerSnapshot(rows=rows)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        bank: TokenTransfer | None = None,
        delegates: TrustedDelegates | None = None,
    ) -> Ledger:
        """Rebuild a ledger from exported rows. Events are not restored."""
        ledger = cls(bank=bank, delegates=delegates)
        for row in snapshot.rows:
            key = _key(row.provider, row.app, row.strategy_hash, row.token)
            ledger._entries[key] = BalanceEntry.from_raw(int(row.amount), row.state_tag)
        logger.info("ledger_restored", rows=len(snapshot.rows))
        return ledger
