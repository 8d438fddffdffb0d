"""Trading apps that settle against the shared-liquidity ledger."""

from .base import StrategyApp, SwapReceipt
from .callback import SettlementCallback, SettlementContext
from .errors import (
    ExcessiveInputAmount,
    InsufficientLiquidity,
    InsufficientOutputAmount,
    MissingTakerPush,
    QuoteUnavailable,
    ReentrantSettlement,
)
from .stableswap import StableSwapAMM, amount_in_given_out, amount_out_given_in

__all__ = [
    # Engine
    "StrategyApp",
    "StableSwapAMM",
    "SwapReceipt",
    "amount_out_given_in",
    "amount_in_given_out",
    # Callback
    "SettlementCallback",
    "SettlementContext",
    # Errors
    "InsufficientOutputAmount",
    "ExcessiveInputAmount",
    "InsufficientLiquidity",
    "QuoteUnavailable",
    "ReentrantSettlement",
    "MissingTakerPush",
]
