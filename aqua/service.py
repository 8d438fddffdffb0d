"""Process-wide ledger and engine instances."""

from __future__ import annotations

from functools import lru_cache

from aqua.amm import StableSwapAMM
from aqua.config import DEFAULT_CONFIG, AquaConfig
from aqua.ledger import InMemoryTokenBank, Ledger, TrustedDelegates


def build_engine(config: AquaConfig) -> StableSwapAMM:
    """Create a fresh ledger and StableSwap engine from configuration."""
    delegates = TrustedDelegates(config.owner, config.trusted_delegates)
    ledger = Ledger(bank=InMemoryTokenBank(), delegates=delegates)
    return StableSwapAMM(ledger, config.app_address)


@lru_cache(maxsize=1)
def get_default_engine() -> StableSwapAMM:
    """Get the shared engine built from DEFAULT_CONFIG."""
    return build_engine(DEFAULT_CONFIG)
