"""Shared-liquidity ledger with a StableSwap trading app."""

from aqua.amm import StableSwapAMM
from aqua.ledger import Ledger
from aqua.models import StableSwapStrategy

__version__ = "0.1.0"
__all__ = ["Ledger", "StableSwapAMM", "StableSwapStrategy", "__version__"]
