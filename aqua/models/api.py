"""Pydantic models for the quote/balance HTTP API.

Amounts travel as decimal strings; field names are camelCase on the wire.
"""

from pydantic import BaseModel, Field

from aqua.constants import BPS_BASE, MAX_AMPLIFICATION, MIN_AMPLIFICATION, ZERO_SALT
from aqua.models.strategy import StableSwapStrategy
from aqua.models.types import Address, Bytes32, Uint256


class StrategyModel(BaseModel):
    """Wire form of a StableSwap strategy descriptor."""

    maker: Address
    token0: Address
    token1: Address
    fee_bps: int = Field(alias="feeBps", ge=0, lt=BPS_BASE)
    amplification_factor: int = Field(
        alias="amplificationFactor", ge=MIN_AMPLIFICATION, le=MAX_AMPLIFICATION
    )
    salt: Bytes32 = ZERO_SALT

    model_config = {"populate_by_name": True}

    def to_strategy(self) -> StableSwapStrategy:
        return StableSwapStrategy(
            maker=self.maker,
            token0=self.token0,
            token1=self.token1,
            fee_bps=self.fee_bps,
            amplification_factor=self.amplification_factor,
            salt=self.salt,
        )


class QuoteRequest(BaseModel):
    """Exact-in or exact-out quote request; `amount` is the fixed side."""

    strategy: StrategyModel
    zero_for_one: bool = Field(alias="zeroForOne")
    amount: Uint256

    model_config = {"populate_by_name": True}


class QuoteResponse(BaseModel):
    """Both legs of a quoted trade."""

    strategy_hash: Bytes32 = Field(alias="strategyHash")
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class BalancesRequest(BaseModel):
    """Safe dual balance read. `app` defaults to the serving engine."""

    provider: Address
    app: Address | None = None
    strategy_hash: Bytes32 = Field(alias="strategyHash")
    token_a: Address = Field(alias="tokenA")
    token_b: Address = Field(alias="tokenB")

    model_config = {"populate_by_name": True}


class BalancesResponse(BaseModel):
    """Allocated amounts for both tokens."""

    amount_a: Uint256 = Field(alias="amountA")
    amount_b: Uint256 = Field(alias="amountB")

    model_config = {"populate_by_name": True}
