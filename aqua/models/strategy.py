"""Stable-asset strategy descriptor.

A strategy is an immutable record whose ABI encoding is what gets shipped to
the ledger; the keccak-256 of that encoding is the strategy identity used as
the lookup key everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

from eth_abi import decode, encode  # type: ignore[attr-defined]
from eth_abi.exceptions import DecodingError
from eth_utils import keccak

from aqua.constants import BPS_BASE, MAX_AMPLIFICATION, MIN_AMPLIFICATION, ZERO_SALT

from .types import is_valid_address, normalize_address, normalize_bytes32

# abi.encode(StableswapStrategy) - a static tuple, so no head offset
STRATEGY_ABI_TYPE = "(address,address,address,uint256,uint256,bytes32)"


class InvalidStrategy(ValueError):
    """Strategy descriptor fields are out of range."""

    pass


def strategy_hash(encoded: bytes) -> str:
    """Strategy identity for an encoded descriptor (0x-prefixed keccak-256)."""
    return "0x" + keccak(encoded).hex()


@dataclass(frozen=True)
class StableSwapStrategy:
    """Immutable StableSwap strategy configuration.

    Attributes:
        maker: Liquidity provider whose balances back the strategy
        token0: First token of the pair
        token1: Second token of the pair
        fee_bps: Swap fee in basis points (4 = 0.04%)
        amplification_factor: Unscaled A parameter (e.g. 100). The engine
            multiplies by PRECISION before calling the solver.
        salt: 32-byte salt distinguishing otherwise identical strategies
    """

    maker: str
    token0: str
    token1: str
    fee_bps: int
    amplification_factor: int
    salt: str = ZERO_SALT

    def __post_init__(self) -> None:
        for name in ("maker", "token0", "token1"):
            value = getattr(self, name)
            if not is_valid_address(normalize_address(value)):
                raise InvalidStrategy(f"Invalid {name} address: {value}")
            object.__setattr__(self, name, normalize_address(value))

        try:
            object.__setattr__(self, "salt", normalize_bytes32(self.salt))
        except ValueError as err:
            raise InvalidStrategy(f"Invalid salt: {self.salt}") from err

        if self.token0 == self.token1:
            raise InvalidStrategy("token0 and token1 must differ")
        if not 0 <= self.fee_bps < BPS_BASE:
            raise InvalidStrategy(f"fee_bps must be in [0, {BPS_BASE}), got {self.fee_bps}")
        if not MIN_AMPLIFICATION <= self.amplification_factor <= MAX_AMPLIFICATION:
            raise InvalidStrategy(
                f"amplification_factor must be in [{MIN_AMPLIFICATION}, {MAX_AMPLIFICATION}], "
                f"got {self.amplification_factor}"
            )

    @property
    def tokens(self) -> tuple[str, str]:
        return self.token0, self.token1

    def resolve(self, zero_for_one: bool) -> tuple[str, str]:
        """Return (token_in, token_out) for a trade direction."""
        if zero_for_one:
            return self.token0, self.token1
        return self.token1, self.token0

    def encode(self) -> bytes:
        """ABI-encode the descriptor as shipped to the ledger."""
        return encode(
            [STRATEGY_ABI_TYPE],
            [
                (
                    self.maker,
                    self.token0,
                    self.token1,
                    self.fee_bps,
                    self.amplification_factor,
                    bytes.fromhex(self.salt[2:]),
                )
            ],
        )

    @cached_property
    def strategy_hash(self) -> str:
        """Content-hash identity of this descriptor."""
        return strategy_hash(self.encode())

    @classmethod
    def decode(cls, data: bytes) -> StableSwapStrategy:
        """Rebuild a descriptor from its ABI encoding.

        Raises:
            InvalidStrategy: If the bytes do not decode to a valid descriptor
        """
        try:
            ((maker, token0, token1, fee_bps, amp, salt),) = decode([STRATEGY_ABI_TYPE], data)
        except DecodingError as err:
            raise InvalidStrategy(f"Cannot decode strategy: {err}") from err
        return cls(
            maker=maker,
            token0=token0,
            token1=token1,
            fee_bps=fee_bps,
            amplification_factor=amp,
            salt="0x" + salt.hex(),
        )
