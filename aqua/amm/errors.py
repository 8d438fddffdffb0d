"""AMM engine error classes."""

from aqua.errors import EconomicBoundError, SettlementError


class InsufficientOutputAmount(EconomicBoundError):
    """Exact-in swap would pay out less than the taker's minimum."""

    pass


class ExcessiveInputAmount(EconomicBoundError):
    """Exact-out swap would charge more than the taker's maximum."""

    pass


class InsufficientLiquidity(EconomicBoundError):
    """Requested output would drain the pool (amount_out >= balance_out)."""

    pass


class QuoteUnavailable(EconomicBoundError):
    """Exact-out input delta would be non-positive."""

    pass


class ReentrantSettlement(SettlementError):
    """A swap re-entered the engine for a strategy it is already settling."""

    pass


class MissingTakerPush(SettlementError):
    """After the callback the provider's input balance is not pre-trade + amount_in."""

    pass
