"""StableSwap solver errors."""

from aqua.errors import SolverError


class ConvergenceFailed(SolverError):
    """Newton iteration did not settle within the iteration ceiling."""

    pass


class ZeroReserve(SolverError):
    """A reserve the solver divides by is zero."""

    pass
