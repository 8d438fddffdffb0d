"""StableSwap invariant solver."""

from .errors import ConvergenceFailed, ZeroReserve
from .stable_math import compute_invariant, compute_missing_reserve

__all__ = [
    "compute_invariant",
    "compute_missing_reserve",
    "ConvergenceFailed",
    "ZeroReserve",
]
