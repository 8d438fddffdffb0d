"""Tests for the shared-liquidity ledger."""

import threading

import pytest

from aqua.constants import DOCKED_TAG, MAX_AMOUNT, MAX_TOKEN_COUNT
from aqua.errors import AuthorizationError, LedgerError, SettlementError
from aqua.ledger import (
    AmountOverflow,
    BalanceEntry,
    Docked,
    DockingShouldCloseAllTokens,
    EntryStatus,
    InsufficientBalance,
    InsufficientFunds,
    InvalidTokenList,
    Ledger,
    NotOwner,
    NotTrustedDelegate,
    Pulled,
    PushToNonActiveStrategyPrevented,
    Pushed,
    RollbackIncomplete,
    SafeBalancesForTokenNotInActiveStrategy,
    Shipped,
    StrategyAlreadyShipped,
)
from aqua.models.strategy import strategy_hash
from tests.helpers import (
    APP,
    DAI,
    DELEGATE,
    MAKER,
    OWNER,
    POOL_BALANCE,
    RECIPIENT,
    TAKER,
    USDC,
    USDT,
    make_strategy,
)


def _fund(bank, holder, amount=POOL_BALANCE, tokens=(USDC, USDT)):
    for token in tokens:
        bank.mint(token, holder, amount)


class TestRegister:
    """Tests for registering (shipping) a strategy."""

    def test_register_activates_every_token(self, ledger, strategy):
        """Each token becomes ACTIVE(n) with its amount."""
        identity = ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])

        assert identity == strategy.strategy_hash
        assert ledger.entry(MAKER, APP, identity, USDC) == BalanceEntry.active(100, 2)
        assert ledger.raw_balance(MAKER, APP, identity, USDT) == (200, 2)

    def test_identity_is_keccak_of_bytes(self, ledger):
        """The returned hash is keccak-256 of the opaque strategy bytes."""
        identity = ledger.register(MAKER, APP, b"any bytes", [USDC], [1])
        assert identity == strategy_hash(b"any bytes")
        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (1, 1)

    def test_emits_shipped(self, ledger, strategy):
        """A Shipped event carries the bytes, tokens and amounts."""
        encoded = strategy.encode()
        identity = ledger.register(MAKER, APP, encoded, [USDC, USDT], [100, 200])

        assert ledger.events == [
            Shipped(MAKER, APP, identity, encoded, (USDC, USDT), (100, 200))
        ]

    def test_register_twice_raises(self, ledger, strategy):
        """Re-registering the same strategy is rejected."""
        ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])
        with pytest.raises(StrategyAlreadyShipped):
            ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [1, 1])

    def test_docked_is_terminal(self, ledger, strategy):
        """A docked strategy cannot be shipped again."""
        identity = ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])
        ledger.close(MAKER, APP, identity, [USDC, USDT])

        with pytest.raises(StrategyAlreadyShipped):
            ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])

    def test_partial_overlap_leaves_no_trace(self, ledger, strategy):
        """A rejected register writes none of its tokens."""
        encoded = strategy.encode()
        identity = ledger.register(MAKER, APP, encoded, [USDC, USDT], [100, 200])

        with pytest.raises(StrategyAlreadyShipped):
            ledger.register(MAKER, APP, encoded, [DAI, USDC], [5, 5])

        assert ledger.entry(MAKER, APP, identity, DAI).status is EntryStatus.UNREGISTERED
        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (100, 2)
        assert len(ledger.events) == 1

    def test_other_app_is_independent(self, ledger, strategy):
        """The same strategy may be shipped to a different app."""
        other_app = "0x" + "9" * 40
        ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])
        identity = ledger.register(MAKER, other_app, strategy.encode(), [USDC, USDT], [1, 2])

        assert ledger.raw_balance(MAKER, other_app, identity, USDC) == (1, 2)
        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (100, 2)

    @pytest.mark.parametrize(
        "tokens,amounts",
        [
            ([], []),
            ([USDC, USDT], [1]),
            ([USDC, USDC], [1, 1]),
            ([USDC], [-1]),
        ],
    )
    def test_invalid_token_list(self, ledger, tokens, amounts):
        """Empty, mismatched, duplicated or negative inputs are rejected."""
        with pytest.raises(InvalidTokenList):
            ledger.register(MAKER, APP, b"strategy", tokens, amounts)

    def test_too_many_tokens(self, ledger):
        """More than 254 tokens cannot be tagged."""
        tokens = [f"0x{i + 1:040x}" for i in range(MAX_TOKEN_COUNT + 1)]
        with pytest.raises(InvalidTokenList):
            ledger.register(MAKER, APP, b"strategy", tokens, [1] * len(tokens))

    def test_max_token_count(self, ledger):
        """Exactly 254 tokens is allowed and tagged 254."""
        tokens = [f"0x{i + 1:040x}" for i in range(MAX_TOKEN_COUNT)]
        identity = ledger.register(MAKER, APP, b"strategy", tokens, [1] * len(tokens))
        assert ledger.raw_balance(MAKER, APP, identity, tokens[-1]) == (1, MAX_TOKEN_COUNT)

    def test_amount_overflow(self, ledger):
        """Amounts wider than uint248 are rejected."""
        with pytest.raises(AmountOverflow):
            ledger.register(MAKER, APP, b"strategy", [USDC], [MAX_AMOUNT + 1])


class TestClose:
    """Tests for closing (docking) a strategy."""

    @pytest.fixture
    def identity(self, ledger, strategy):
        return ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])

    def test_close_docks_every_token(self, ledger, identity):
        """Every token becomes DOCKED with zero amount."""
        ledger.close(MAKER, APP, identity, [USDT, USDC])

        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (0, DOCKED_TAG)
        assert ledger.raw_balance(MAKER, APP, identity, USDT) == (0, DOCKED_TAG)
        assert ledger.events[-1] == Docked(MAKER, APP, identity)

    @pytest.mark.parametrize(
        "tokens",
        [
            [USDC],
            [USDC, USDT, DAI],
            [USDC, USDC],
            [],
        ],
    )
    def test_must_close_all_tokens(self, ledger, identity, tokens):
        """Subsets, supersets, duplicates and empty lists are rejected."""
        with pytest.raises(DockingShouldCloseAllTokens):
            ledger.close(MAKER, APP, identity, tokens)
        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (100, 2)

    def test_close_twice_raises(self, ledger, identity):
        """A docked strategy cannot be docked again."""
        ledger.close(MAKER, APP, identity, [USDC, USDT])
        with pytest.raises(DockingShouldCloseAllTokens):
            ledger.close(MAKER, APP, identity, [USDC, USDT])

    def test_close_unregistered_raises(self, ledger):
        """Closing something never shipped is rejected."""
        with pytest.raises(DockingShouldCloseAllTokens):
            ledger.close(MAKER, APP, "0x" + "11" * 32, [USDC, USDT])


class TestWithdraw:
    """Tests for withdrawing (pulling) from an allocation."""

    @pytest.fixture
    def identity(self, ledger, bank, strategy):
        _fund(bank, MAKER)
        return ledger.register(
            MAKER, APP, strategy.encode(), [USDC, USDT], [POOL_BALANCE, POOL_BALANCE]
        )

    def test_withdraw_moves_tokens(self, ledger, bank, identity):
        """The allocation shrinks and the recipient is paid from the maker's wallet."""
        ledger.withdraw(APP, MAKER, identity, USDT, 500, RECIPIENT)

        assert ledger.raw_balance(MAKER, APP, identity, USDT) == (POOL_BALANCE - 500, 2)
        assert bank.balance_of(USDT, RECIPIENT) == 500
        assert bank.balance_of(USDT, MAKER) == POOL_BALANCE - 500
        assert ledger.events[-1] == Pulled(MAKER, APP, identity, USDT, 500, RECIPIENT)

    def test_withdraw_everything(self, ledger, identity):
        """The full allocation can be withdrawn."""
        ledger.withdraw(APP, MAKER, identity, USDT, POOL_BALANCE, RECIPIENT)
        assert ledger.raw_balance(MAKER, APP, identity, USDT) == (0, 2)

    def test_withdraw_more_than_allocated(self, ledger, bank, identity):
        """Withdrawals are bounded by the recorded amount."""
        with pytest.raises(InsufficientBalance):
            ledger.withdraw(APP, MAKER, identity, USDT, POOL_BALANCE + 1, RECIPIENT)
        assert bank.balance_of(USDT, RECIPIENT) == 0

    def test_other_app_cannot_withdraw(self, ledger, identity):
        """The calling app is part of the key."""
        with pytest.raises(InsufficientBalance):
            ledger.withdraw("0x" + "9" * 40, MAKER, identity, USDT, 1, RECIPIENT)

    def test_wallet_shortfall_rolls_back(self, ledger, bank, identity):
        """A failed transfer leaves the allocation untouched."""
        bank.transfer(USDT, MAKER, TAKER, POOL_BALANCE)

        with pytest.raises(InsufficientFunds):
            ledger.withdraw(APP, MAKER, identity, USDT, 10, RECIPIENT)

        assert ledger.raw_balance(MAKER, APP, identity, USDT) == (POOL_BALANCE, 2)
        assert not any(isinstance(event, Pulled) for event in ledger.events)

    def test_withdraw_from_docked_bounded_by_amount(self, ledger, identity):
        """No status check: a docked entry only refuses because it holds zero."""
        ledger.close(MAKER, APP, identity, [USDC, USDT])

        ledger.withdraw(APP, MAKER, identity, USDT, 0, RECIPIENT)
        with pytest.raises(InsufficientBalance):
            ledger.withdraw(APP, MAKER, identity, USDT, 1, RECIPIENT)

    def test_negative_amount_raises(self, ledger, identity):
        """Negative withdrawals are a programming error."""
        with pytest.raises(ValueError):
            ledger.withdraw(APP, MAKER, identity, USDT, -1, RECIPIENT)

    def test_zero_withdraw_is_a_no_op(self, ledger, bank):
        """A zero withdraw records nothing, even on a never-registered key."""
        unknown = "0x" + "33" * 32
        events_before = list(ledger.events)

        ledger.withdraw(APP, MAKER, unknown, USDT, 0, RECIPIENT)

        assert ledger.events == events_before
        assert ledger.raw_balance(MAKER, APP, unknown, USDT) == (0, 0)
        assert bank.balance_of(USDT, RECIPIENT) == 0


class TestDeposit:
    """Tests for depositing (pushing) into an allocation."""

    @pytest.fixture
    def identity(self, ledger, bank, strategy):
        _fund(bank, TAKER)
        return ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])

    def test_deposit_moves_tokens(self, ledger, bank, identity):
        """The allocation grows and the maker's wallet is paid by the caller."""
        ledger.deposit(TAKER, MAKER, APP, identity, USDC, 50)

        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (150, 2)
        assert bank.balance_of(USDC, MAKER) == 50
        assert bank.balance_of(USDC, TAKER) == POOL_BALANCE - 50
        assert ledger.events[-1] == Pushed(MAKER, APP, identity, USDC, 50, TAKER)

    def test_deposit_to_unregistered_raises(self, ledger, identity):
        """Tokens outside the strategy cannot be pushed."""
        with pytest.raises(PushToNonActiveStrategyPrevented):
            ledger.deposit(TAKER, MAKER, APP, identity, DAI, 1)

    def test_deposit_to_docked_raises(self, ledger, identity):
        """A docked strategy refuses pushes."""
        ledger.close(MAKER, APP, identity, [USDC, USDT])
        with pytest.raises(PushToNonActiveStrategyPrevented):
            ledger.deposit(TAKER, MAKER, APP, identity, USDC, 1)

    def test_deposit_overflow(self, ledger, bank):
        """Amounts may not grow past uint248."""
        bank.mint(USDC, TAKER, 1)
        identity = ledger.register(MAKER, APP, b"full", [USDC], [MAX_AMOUNT])
        with pytest.raises(AmountOverflow):
            ledger.deposit(TAKER, MAKER, APP, identity, USDC, 1)

    def test_payer_shortfall_rolls_back(self, ledger, identity):
        """A payer without funds leaves the allocation untouched."""
        with pytest.raises(InsufficientFunds):
            ledger.deposit(RECIPIENT, MAKER, APP, identity, USDC, 10)
        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (100, 2)


class TestDelegates:
    """Tests for trusted-delegate calls and administration."""

    def test_register_on_behalf(self, ledger, strategy):
        """A delegate registers under the provider's key."""
        identity = ledger.register_on_behalf(
            DELEGATE, MAKER, APP, strategy.encode(), [USDC, USDT], [1, 2]
        )
        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (1, 2)
        assert ledger.raw_balance(DELEGATE, APP, identity, USDC) == (0, 0)

    def test_untrusted_caller_refused(self, ledger, strategy):
        """Anyone not on the allow-list is refused."""
        with pytest.raises(NotTrustedDelegate):
            ledger.register_on_behalf(TAKER, MAKER, APP, strategy.encode(), [USDC], [1])
        with pytest.raises(NotTrustedDelegate):
            ledger.close_on_behalf(TAKER, MAKER, APP, strategy.strategy_hash, [USDC])

    def test_withdraw_and_close_on_behalf(self, ledger, bank, strategy):
        """A delegate may pull for any app and dock for the provider."""
        _fund(bank, MAKER)
        identity = ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [10, 10])

        ledger.withdraw_on_behalf(DELEGATE, MAKER, APP, identity, USDC, 4, RECIPIENT)
        ledger.close_on_behalf(DELEGATE, MAKER, APP, identity, [USDC, USDT])

        assert bank.balance_of(USDC, RECIPIENT) == 4
        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (0, DOCKED_TAG)

    def test_deposit_on_behalf_paid_by_delegate(self, ledger, bank, strategy):
        """deposit_on_behalf charges the delegate's wallet."""
        bank.mint(USDC, DELEGATE, 10)
        identity = ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [0, 0])

        ledger.deposit_on_behalf(DELEGATE, MAKER, APP, identity, USDC, 10)

        assert bank.balance_of(USDC, DELEGATE) == 0
        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (10, 2)

    def test_deposit_on_behalf_from_payer(self, ledger, bank, strategy):
        """deposit_on_behalf_from charges the named payer."""
        bank.mint(USDC, TAKER, 10)
        identity = ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [0, 0])

        ledger.deposit_on_behalf_from(DELEGATE, TAKER, MAKER, APP, identity, USDC, 10)

        assert bank.balance_of(USDC, TAKER) == 0
        assert ledger.events[-1] == Pushed(MAKER, APP, identity, USDC, 10, TAKER)

    def test_owner_administers(self, delegates):
        """Only the owner may add or remove delegates."""
        delegates.add(OWNER, TAKER)
        assert TAKER in delegates
        delegates.remove(OWNER, TAKER)
        assert TAKER not in delegates

        with pytest.raises(NotOwner):
            delegates.add(TAKER, TAKER)
        with pytest.raises(NotOwner):
            delegates.remove(DELEGATE, DELEGATE)
        assert list(delegates) == [DELEGATE]

    def test_authorization_errors_share_base(self):
        """Both delegate failures are AuthorizationErrors."""
        assert issubclass(NotTrustedDelegate, AuthorizationError)
        assert issubclass(NotOwner, AuthorizationError)


class TestAtomic:
    """Tests for atomic blocks."""

    @pytest.fixture
    def identity(self, ledger, bank, strategy):
        _fund(bank, TAKER)
        return ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])

    def test_failure_undoes_everything(self, ledger, bank, identity):
        """Writes, transfers and events inside a failed block disappear."""
        events_before = list(ledger.events)

        with pytest.raises(RuntimeError):
            with ledger.atomic():
                ledger.deposit(TAKER, MAKER, APP, identity, USDC, 30)
                ledger.deposit(TAKER, MAKER, APP, identity, USDT, 40)
                raise RuntimeError("abort")

        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (100, 2)
        assert ledger.raw_balance(MAKER, APP, identity, USDT) == (200, 2)
        assert bank.balance_of(USDC, TAKER) == POOL_BALANCE
        assert bank.balance_of(USDC, MAKER) == 0
        assert ledger.events == events_before

    def test_writes_visible_inside_block(self, ledger, identity):
        """Reads inside a block see its writes; events wait for the commit."""
        count = len(ledger.events)
        with ledger.atomic():
            ledger.deposit(TAKER, MAKER, APP, identity, USDC, 30)
            assert ledger.raw_balance(MAKER, APP, identity, USDC) == (130, 2)
            assert len(ledger.events) == count
        assert len(ledger.events) == count + 1

    def test_nested_failure_is_contained(self, ledger, identity):
        """A caught inner failure undoes only the inner block."""
        with ledger.atomic():
            ledger.deposit(TAKER, MAKER, APP, identity, USDC, 30)
            with pytest.raises(RuntimeError):
                with ledger.atomic():
                    ledger.deposit(TAKER, MAKER, APP, identity, USDT, 40)
                    raise RuntimeError("inner")

        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (130, 2)
        assert ledger.raw_balance(MAKER, APP, identity, USDT) == (200, 2)
        pushes = [event for event in ledger.events if isinstance(event, Pushed)]
        assert [event.token for event in pushes] == [USDC]

    def test_outer_failure_undoes_committed_inner(self, ledger, identity):
        """An inner block that succeeded is still undone by its outer block."""
        with pytest.raises(RuntimeError):
            with ledger.atomic():
                with ledger.atomic():
                    ledger.deposit(TAKER, MAKER, APP, identity, USDC, 30)
                raise RuntimeError("outer")

        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (100, 2)

    def test_unreversible_transfer_reports_incomplete_rollback(self, ledger, bank, identity):
        """Tokens spent before the failure stay recorded; the original error is chained."""
        with pytest.raises(RollbackIncomplete) as excinfo:
            with ledger.atomic():
                ledger.deposit(TAKER, MAKER, APP, identity, USDT, 40)
                ledger.deposit(TAKER, MAKER, APP, identity, USDC, 30)
                bank.transfer(USDC, MAKER, OWNER, 30)
                raise RuntimeError("abort")

        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert isinstance(excinfo.value, SettlementError)
        # The USDC deposit could not be reversed and stays consistent with the wallets
        assert ledger.raw_balance(MAKER, APP, identity, USDC) == (130, 2)
        assert bank.balance_of(USDC, TAKER) == POOL_BALANCE - 30
        # The USDT deposit was reversed
        assert ledger.raw_balance(MAKER, APP, identity, USDT) == (200, 2)
        assert bank.balance_of(USDT, TAKER) == POOL_BALANCE

    def test_pending_events_of_innermost_block(self, ledger, identity):
        """Only the open block's own events are pending."""
        with ledger.atomic():
            ledger.deposit(TAKER, MAKER, APP, identity, USDC, 30)
            with ledger.atomic():
                assert ledger.pending_events() == []
                ledger.deposit(TAKER, MAKER, APP, identity, USDT, 40)
                assert [event.token for event in ledger.pending_events()] == [USDT]
            assert [event.token for event in ledger.pending_events()] == [USDC, USDT]

    def test_pending_events_outside_block(self, ledger):
        """There is nothing pending outside an atomic block."""
        with pytest.raises(RuntimeError):
            ledger.pending_events()


class TestStrategyLocks:
    """Tests for per-strategy exclusion."""

    @pytest.fixture
    def identity(self, ledger, bank, strategy):
        _fund(bank, TAKER)
        return ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])

    def test_holder_may_write_again(self, ledger, identity):
        """The lock is re-entrant for the thread holding it."""
        with ledger.strategy_lock(identity):
            ledger.deposit(TAKER, MAKER, APP, identity, USDC, 30)
            assert ledger.read_both_balances(MAKER, APP, identity, USDC, USDT) == (130, 200)

    def test_other_thread_waits_for_holder(self, ledger, identity):
        """Writes and safe reads from another thread wait until the lock is released."""
        seen = []

        def top_up():
            ledger.deposit(TAKER, MAKER, APP, identity, USDC, 30)
            seen.append(ledger.read_both_balances(MAKER, APP, identity, USDC, USDT))

        with ledger.strategy_lock(identity):
            worker = threading.Thread(target=top_up)
            worker.start()
            worker.join(timeout=0.2)
            assert worker.is_alive()
            assert ledger.raw_balance(MAKER, APP, identity, USDC) == (100, 2)

        worker.join(timeout=5)
        assert seen == [(130, 200)]

    def test_other_strategies_do_not_contend(self, ledger, identity):
        """Holding one identity does not block another."""
        other = "0x" + "44" * 32
        done = threading.Event()

        def read_other():
            with ledger.strategy_lock(other):
                done.set()

        with ledger.strategy_lock(identity):
            worker = threading.Thread(target=read_other)
            worker.start()
            assert done.wait(timeout=5)
        worker.join(timeout=5)

    def test_lock_table_is_pruned(self, ledger, identity):
        """Released identities leave no entry behind."""
        with ledger.strategy_lock(identity):
            with ledger.strategy_lock(identity):
                assert ledger.locks.is_held(identity)
            assert len(ledger.locks) == 1
        ledger.deposit(TAKER, MAKER, APP, identity, USDC, 30)
        ledger.read_both_balances(MAKER, APP, identity, USDC, USDT)

        assert len(ledger.locks) == 0
        assert not ledger.locks.is_held(identity)


class TestReads:
    """Tests for entry reads and the safe dual read."""

    def test_unknown_entry(self, ledger):
        """Never-registered keys read as UNREGISTERED zero."""
        assert ledger.raw_balance(MAKER, APP, "0x" + "22" * 32, USDC) == (0, 0)

    def test_read_both_balances(self, ledger, strategy):
        """Both amounts come back in argument order."""
        identity = ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])
        assert ledger.read_both_balances(MAKER, APP, identity, USDT, USDC) == (200, 100)

    def test_read_both_requires_active(self, ledger, strategy):
        """Unregistered or docked tokens fail the safe read."""
        identity = ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])
        with pytest.raises(SafeBalancesForTokenNotInActiveStrategy):
            ledger.read_both_balances(MAKER, APP, identity, USDC, DAI)

        ledger.close(MAKER, APP, identity, [USDC, USDT])
        with pytest.raises(SafeBalancesForTokenNotInActiveStrategy):
            ledger.read_both_balances(MAKER, APP, identity, USDC, USDT)

    def test_ledger_errors_share_base(self):
        """State-transition failures are LedgerErrors."""
        for error in (
            StrategyAlreadyShipped,
            DockingShouldCloseAllTokens,
            PushToNonActiveStrategyPrevented,
            SafeBalancesForTokenNotInActiveStrategy,
            InsufficientBalance,
            AmountOverflow,
        ):
            assert issubclass(error, LedgerError)


class TestSnapshot:
    """Tests for snapshot export and reload."""

    def test_export_and_reload(self, ledger, strategy):
        """Rows survive a JSON round trip and rebuild identical entries."""
        identity = ledger.register(MAKER, APP, strategy.encode(), [USDC, USDT], [100, 200])
        other = make_strategy(salt="0x" + "01" * 32)
        docked = ledger.register(MAKER, APP, other.encode(), [USDC, USDT], [1, 1])
        ledger.close(MAKER, APP, docked, [USDC, USDT])

        snapshot = ledger.export_snapshot()
        assert len(snapshot.rows) == 4
        payload = snapshot.model_dump_json(by_alias=True)
        assert '"stateTag":255' in payload.replace(" ", "")

        restored = Ledger.from_snapshot(type(snapshot).model_validate_json(payload))
        assert restored.raw_balance(MAKER, APP, identity, USDT) == (200, 2)
        assert restored.raw_balance(MAKER, APP, docked, USDC) == (0, DOCKED_TAG)
        assert restored.events == []
