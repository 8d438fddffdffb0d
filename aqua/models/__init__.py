"""Data models: strategy descriptors, wire types and persisted rows."""

from aqua.models.ledger import BalanceRow, LedgerSnapshot
from aqua.models.strategy import InvalidStrategy, StableSwapStrategy, strategy_hash
from aqua.models.types import (
    Address,
    Bytes32,
    Uint256,
    is_valid_address,
    normalize_address,
    normalize_bytes32,
)

__all__ = [
    "StableSwapStrategy",
    "InvalidStrategy",
    "strategy_hash",
    "BalanceRow",
    "LedgerSnapshot",
    "Address",
    "Bytes32",
    "Uint256",
    "is_valid_address",
    "normalize_address",
    "normalize_bytes32",
]
