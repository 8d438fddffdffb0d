"""Pytest configuration and fixtures."""

import pytest

from aqua.amm import StableSwapAMM
from aqua.ledger import InMemoryTokenBank, Ledger, TrustedDelegates
from aqua.models.strategy import StableSwapStrategy
from tests.helpers import APP, DELEGATE, OWNER, TAKER, PayingTaker, make_strategy, ship_strategy


@pytest.fixture
def bank() -> InMemoryTokenBank:
    """Empty in-memory token bank."""
    return InMemoryTokenBank()


@pytest.fixture
def delegates() -> TrustedDelegates:
    """Allow-list owned by OWNER with DELEGATE trusted."""
    return TrustedDelegates(OWNER, [DELEGATE])


@pytest.fixture
def ledger(bank: InMemoryTokenBank, delegates: TrustedDelegates) -> Ledger:
    """Empty ledger over the test bank."""
    return Ledger(bank=bank, delegates=delegates)


@pytest.fixture
def engine(ledger: Ledger) -> StableSwapAMM:
    """StableSwap engine registered as APP."""
    return StableSwapAMM(ledger, APP)


@pytest.fixture
def strategy() -> StableSwapStrategy:
    """USDC/USDT strategy, 4 bps fee, A=100."""
    return make_strategy()


@pytest.fixture
def shipped(ledger: Ledger, bank: InMemoryTokenBank, strategy: StableSwapStrategy) -> str:
    """Register the default strategy with balanced POOL_BALANCE reserves."""
    return ship_strategy(ledger, bank, strategy)


@pytest.fixture
def taker(ledger: Ledger, bank: InMemoryTokenBank, strategy: StableSwapStrategy) -> PayingTaker:
    """Taker holding plenty of both tokens."""
    for token in strategy.tokens:
        bank.mint(token, TAKER, 10**15)
    return PayingTaker(ledger)
