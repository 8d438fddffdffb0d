"""Test helpers module for shared test utilities.

- constants: Token and actor addresses, common amounts
- factories: Strategy factory and ledger shipping helper
- takers: Settlement callbacks used by swap tests
"""

from tests.helpers.constants import (
    APP,
    DAI,
    DELEGATE,
    MAKER,
    ONE_USDC,
    OWNER,
    POOL_BALANCE,
    RECIPIENT,
    TAKER,
    USDC,
    USDT,
)
from tests.helpers.factories import make_strategy, ship_strategy
from tests.helpers.takers import PayingTaker

__all__ = [
    # Tokens
    "USDC",
    "USDT",
    "DAI",
    # Actors
    "MAKER",
    "TAKER",
    "RECIPIENT",
    "DELEGATE",
    "APP",
    "OWNER",
    # Amounts
    "POOL_BALANCE",
    "ONE_USDC",
    # Factories
    "make_strategy",
    "ship_strategy",
    # Takers
    "PayingTaker",
]
