"""Ledger error classes.

Names follow the revert reasons integrators already match on.
"""

from aqua.errors import AuthorizationError, LedgerError, SettlementError


class StrategyAlreadyShipped(LedgerError):
    """Registration hit a token that is not UNREGISTERED."""

    pass


class DockingShouldCloseAllTokens(LedgerError):
    """Close did not present every token of the strategy, each ACTIVE(n)."""

    pass


class PushToNonActiveStrategyPrevented(LedgerError):
    """Deposit into an UNREGISTERED or DOCKED entry."""

    pass


class SafeBalancesForTokenNotInActiveStrategy(LedgerError):
    """Safe dual read touched an entry that is not ACTIVE."""

    pass


class InsufficientBalance(LedgerError):
    """Withdrawal exceeds the provider's recorded amount."""

    pass


class AmountOverflow(LedgerError):
    """Stored amount would exceed the uint248 width."""

    pass


class InvalidTokenList(LedgerError):
    """Token/amount lists are empty, mismatched, too long, or repeat a token."""

    pass


class InsufficientFunds(LedgerError):
    """Transfer primitive: sender does not hold the tokens."""

    pass


class NotTrustedDelegate(AuthorizationError):
    """On-behalf-of call from a caller that is not on the allow-list."""

    pass


class NotOwner(AuthorizationError):
    """Delegate administration attempted by someone other than the owner."""

    pass


class RollbackIncomplete(SettlementError):
    """An atomic block failed and some of its transfers could not be reversed.

    Entries keep the amounts that match the tokens actually left in each
    wallet. The error that aborted the block is chained as `__cause__`.
    """

    pass
