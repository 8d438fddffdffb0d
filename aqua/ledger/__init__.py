"""Shared-liquidity ledger.

Virtual per-provider, per-strategy token balances with register/close/
withdraw/deposit transitions and a trusted-delegate extension.
"""

from .delegates import TrustedDelegates
from .errors import (
    AmountOverflow,
    DockingShouldCloseAllTokens,
    InsufficientBalance,
    InsufficientFunds,
    InvalidTokenList,
    NotOwner,
    NotTrustedDelegate,
    PushToNonActiveStrategyPrevented,
    RollbackIncomplete,
    SafeBalancesForTokenNotInActiveStrategy,
    StrategyAlreadyShipped,
)
from .events import Docked, LedgerEvent, Pulled, Pushed, Shipped
from .ledger import Ledger, LedgerKey
from .locks import StrategyLocks
from .state import BalanceEntry, EntryStatus
from .transfers import InMemoryTokenBank, TokenTransfer

__all__ = [
    # Ledger
    "Ledger",
    "LedgerKey",
    "BalanceEntry",
    "EntryStatus",
    "StrategyLocks",
    # Delegates and transfers
    "TrustedDelegates",
    "TokenTransfer",
    "InMemoryTokenBank",
    # Events
    "LedgerEvent",
    "Shipped",
    "Docked",
    "Pulled",
    "Pushed",
    # Errors
    "StrategyAlreadyShipped",
    "DockingShouldCloseAllTokens",
    "PushToNonActiveStrategyPrevented",
    "SafeBalancesForTokenNotInActiveStrategy",
    "InsufficientBalance",
    "InsufficientFunds",
    "AmountOverflow",
    "InvalidTokenList",
    "RollbackIncomplete",
    "NotTrustedDelegate",
    "NotOwner",
]
