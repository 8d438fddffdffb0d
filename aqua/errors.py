"""Exception hierarchy.

Every failure aborts the whole operation; nothing here is retried
automatically. The intermediate classes mirror how a caller reacts:

- SolverError: reserves or amplification outside the solver's range
- LedgerError: illegal state transition, fix the call instead of retrying
- EconomicBoundError: slippage or draining bound hit, retry with new params
- AuthorizationError: caller not allowed, needs a configuration change
- SettlementError: the settlement protocol itself was violated
"""


class AquaError(Exception):
    """Base error for all shared-liquidity operations."""

    pass


class SolverError(AquaError):
    """Numerical failure in the StableSwap solver."""

    pass


class LedgerError(AquaError):
    """Accounting precondition violated."""

    pass


class EconomicBoundError(AquaError):
    """Trade exceeds a caller-supplied or pool-imposed economic bound."""

    pass


class AuthorizationError(AquaError):
    """Caller is not permitted to perform the operation."""

    pass


class SettlementError(AquaError):
    """Settlement protocol violated by the taker or by re-entry."""

    pass
