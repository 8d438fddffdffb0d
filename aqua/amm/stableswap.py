"""Stable-asset AMM engine.

Prices trades between two similarly-priced tokens with the StableSwap
invariant, reading reserves from the shared ledger instead of holding them.

Quote flow (exact in):
    1. Safe-read both balances (fails unless both entries are ACTIVE)
    2. Take the fee off the input
    3. D = compute_invariant(A * PRECISION, balance_in, balance_out)
    4. new_out = compute_missing_reserve(A * PRECISION, balance_in + in_after_fee, D)
    5. amount_out = balance_out - new_out, never draining the pool
"""

from __future__ import annotations

import structlog

from aqua.constants import BPS_BASE, PRECISION
from aqua.math import compute_invariant, compute_missing_reserve
from aqua.models.strategy import StableSwapStrategy
from aqua.safe_int import S

from .base import StrategyApp, SwapReceipt
from .callback import SettlementCallback
from .errors import (
    ExcessiveInputAmount,
    InsufficientLiquidity,
    InsufficientOutputAmount,
    QuoteUnavailable,
)

logger = structlog.get_logger()


def amount_out_given_in(
    strategy: StableSwapStrategy, balance_in: int, balance_out: int, amount_in: int
) -> int:
    """Exact-in pricing against explicit balances.

    Returns 0 for an input that is zero after fees, and for the
    pathological case where the solved output reserve is not below the
    current one.
    """
    if amount_in < 0:
        raise ValueError(f"amount_in must be non-negative, got {amount_in}")

    amount_in_after_fee = (S(amount_in) * (BPS_BASE - strategy.fee_bps)) // BPS_BASE
    if amount_in_after_fee == 0:
        return 0

    amp = strategy.amplification_factor * PRECISION
    invariant = compute_invariant(amp, balance_in, balance_out)
    new_balance_out = compute_missing_reserve(
        amp, (S(balance_in) + amount_in_after_fee).value, invariant
    )

    if new_balance_out >= balance_out:
        logger.debug(
            "quote_no_output",
            balance_in=balance_in,
            balance_out=balance_out,
            new_balance_out=new_balance_out,
        )
        return 0

    amount_out = balance_out - new_balance_out
    if amount_out >= balance_out:
        return balance_out - 1
    return amount_out


def amount_in_given_out(
    strategy: StableSwapStrategy, balance_in: int, balance_out: int, amount_out: int
) -> int:
    """Exact-out pricing against explicit balances.

    The pre-fee delta carries one unit of rounding protection and the fee
    gross-up rounds up, so the pool is never under-compensated.

    Raises:
        InsufficientLiquidity: If amount_out >= balance_out
        QuoteUnavailable: If the solved input reserve is not above the current one
    """
    if amount_out < 0:
        raise ValueError(f"amount_out must be non-negative, got {amount_out}")
    if amount_out >= balance_out:
        raise InsufficientLiquidity(
            f"Cannot buy {amount_out} from a balance of {balance_out}"
        )
    if amount_out == 0:
        return 0

    amp = strategy.amplification_factor * PRECISION
    invariant = compute_invariant(amp, balance_in, balance_out)
    new_balance_in = compute_missing_reserve(amp, balance_out - amount_out, invariant)

    delta = S(new_balance_in).checked_sub(balance_in)
    if not delta:
        raise QuoteUnavailable(
            f"Solved input reserve {new_balance_in} is not above current {balance_in}"
        )

    pre_fee = delta + 1
    return (pre_fee * BPS_BASE).ceiling_div(BPS_BASE - strategy.fee_bps).value


class StableSwapAMM(StrategyApp[StableSwapStrategy]):
    """StableSwap trading app over the shared ledger.

    Usage:
        amm = StableSwapAMM(ledger, app_address)
        out = amm.quote_exact_in(strategy, zero_for_one=True, amount_in=1_000_000)
        receipt = amm.swap_exact_in(taker, strategy, True, 1_000_000, out, recipient)
    """

    def _balances(
        self, strategy: StableSwapStrategy, zero_for_one: bool
    ) -> tuple[str, str, int, int]:
        token_in, token_out = strategy.resolve(zero_for_one)
        balance_in, balance_out = self._ledger.read_both_balances(
            strategy.maker, self._address, strategy.strategy_hash, token_in, token_out
        )
        return token_in, token_out, balance_in, balance_out

    def quote_exact_in(
        self, strategy: StableSwapStrategy, zero_for_one: bool, amount_in: int
    ) -> int:
        """Output for selling exactly `amount_in` (read-only).

        Raises:
            SafeBalancesForTokenNotInActiveStrategy: If the strategy is not tradeable
            ConvergenceFailed: If the solver does not converge
        """
        _, _, balance_in, balance_out = self._balances(strategy, zero_for_one)
        return amount_out_given_in(strategy, balance_in, balance_out, amount_in)

    def quote_exact_out(
        self, strategy: StableSwapStrategy, zero_for_one: bool, amount_out: int
    ) -> int:
        """Input required to buy exactly `amount_out` (read-only).

        Raises:
            SafeBalancesForTokenNotInActiveStrategy: If the strategy is not tradeable
            InsufficientLiquidity: If amount_out would drain the pool
            QuoteUnavailable: If no positive input satisfies the invariant
            ConvergenceFailed: If the solver does not converge
        """
        _, _, balance_in, balance_out = self._balances(strategy, zero_for_one)
        return amount_in_given_out(strategy, balance_in, balance_out, amount_out)

    def swap_exact_in(
        self,
        taker: SettlementCallback,
        strategy: StableSwapStrategy,
        zero_for_one: bool,
        amount_in: int,
        amount_out_min: int,
        recipient: str,
        taker_data: bytes = b"",
    ) -> SwapReceipt:
        """Sell exactly `amount_in`; the taker pays it from its callback.

        Raises:
            InsufficientOutputAmount: If the output is below amount_out_min
            ReentrantSettlement: If called from inside a settlement of the same strategy
            MissingTakerPush: If the callback did not deposit exactly amount_in
        """
        identity = strategy.strategy_hash
        with self._exclusive(identity):
            token_in, token_out, balance_in, balance_out = self._balances(strategy, zero_for_one)
            amount_out = amount_out_given_in(strategy, balance_in, balance_out, amount_in)
            if amount_out < amount_out_min:
                raise InsufficientOutputAmount(
                    f"Output {amount_out} below minimum {amount_out_min}"
                )
            return self._settle(
                taker,
                strategy.maker,
                identity,
                token_in,
                token_out,
                amount_in,
                amount_out,
                balance_in,
                recipient,
                taker_data,
            )

    def swap_exact_out(
        self,
        taker: SettlementCallback,
        strategy: StableSwapStrategy,
        zero_for_one: bool,
        amount_out: int,
        amount_in_max: int,
        recipient: str,
        taker_data: bytes = b"",
    ) -> SwapReceipt:
        """Buy exactly `amount_out`; the taker pays the quoted input from its callback.

        Raises:
            ExcessiveInputAmount: If the input exceeds amount_in_max
            InsufficientLiquidity: If amount_out would drain the pool
            ReentrantSettlement: If called from inside a settlement of the same strategy
            MissingTakerPush: If the callback did not deposit exactly the quoted input
        """
        identity = strategy.strategy_hash
        with self._exclusive(identity):
            token_in, token_out, balance_in, balance_out = self._balances(strategy, zero_for_one)
            amount_in = amount_in_given_out(strategy, balance_in, balance_out, amount_out)
            if amount_in > amount_in_max:
                raise ExcessiveInputAmount(f"Input {amount_in} above maximum {amount_in_max}")
            return self._settle(
                taker,
                strategy.maker,
                identity,
                token_in,
                token_out,
                amount_in,
                amount_out,
                balance_in,
                recipient,
                taker_data,
            )
