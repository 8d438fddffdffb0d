"""Pydantic models for the persisted ledger layout.

One row per (provider, app, strategyHash, token) -> (amount, stateTag).
"""

from pydantic import BaseModel, Field

from aqua.models.types import Address, Bytes32, Uint256


class BalanceRow(BaseModel):
    """A single persisted ledger entry."""

    provider: Address
    app: Address
    strategy_hash: Bytes32 = Field(alias="strategyHash")
    token: Address
    amount: Uint256
    state_tag: int = Field(
        alias="stateTag",
        ge=0,
        le=255,
        description="0 = unregistered, 1..254 = active token count, 255 = docked",
    )

    model_config = {"populate_by_name": True}


class LedgerSnapshot(BaseModel):
    """Full ledger contents, suitable for JSON export and reload."""

    rows: list[BalanceRow] = Field(default_factory=list)
