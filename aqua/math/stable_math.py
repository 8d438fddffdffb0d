"""Two-coin StableSwap math.

Core solver routines for the stable-asset AMM: the invariant D for a pair of
reserves, and the missing reserve given the other one and D. Both use
fixed-point Newton iteration on integers with the amplification coefficient
scaled by PRECISION (10^18).

IMPORTANT: The operation order below is part of the quote format. Other
parties re-derive quotes from the same inputs, so intermediate divisions
must happen exactly where they happen here, even though Python integers
cannot overflow.
"""

from aqua.constants import MAX_ITERATIONS, N_COINS, PRECISION
from aqua.safe_int import DivisionByZero, S

from .errors import ConvergenceFailed, ZeroReserve

# Ann = A * n^n for n = 2
_ANN_FACTOR = N_COINS**N_COINS


def _ann(amp: int) -> S:
    if amp <= 0:
        raise ValueError(f"Scaled amplification must be positive, got {amp}")
    return S(amp) * _ANN_FACTOR


def compute_invariant(amp: int, x: int, y: int) -> int:
    """Calculate the StableSwap invariant D for reserves (x, y).

    Algorithm:
        1. Initial guess: D = x + y
        2. D_P = D^3 / (4xy), staged as D*D/(2x) then *D/(2y)
        3. D <- (Ann*S/PRECISION + 2*D_P) * D / ((Ann - PRECISION)*D/PRECISION + 3*D_P)
        4. Stop when |D_new - D_old| <= 1, at most 255 iterations

    Args:
        amp: Amplification coefficient already scaled by PRECISION
        x: First reserve
        y: Second reserve

    Returns:
        The invariant D (0 when both reserves are empty)

    Raises:
        ZeroReserve: If exactly one reserve is zero
        ConvergenceFailed: If iteration doesn't converge
    """
    sx, sy = S(x), S(y)
    sum_reserves = sx + sy
    if sum_reserves == 0:
        return 0
    if sx == 0 or sy == 0:
        raise ZeroReserve(f"Cannot compute invariant with reserves ({x}, {y})")

    ann = _ann(amp)
    d = sum_reserves

    for _ in range(MAX_ITERATIONS):
        d_p = d
        d_p = (d_p * d) // (sx * 2)
        d_p = (d_p * d) // (sy * 2)

        d_prev = d
        numerator = ((ann * sum_reserves) // PRECISION + d_p * 2) * d
        denominator = ((ann - PRECISION) * d) // PRECISION + d_p * 3
        try:
            d = numerator // denominator
        except DivisionByZero as err:
            raise ConvergenceFailed("Invariant denominator collapsed to zero") from err

        if d.abs_diff(d_prev) <= 1:
            return d.value

    raise ConvergenceFailed(
        f"Invariant did not converge after {MAX_ITERATIONS} iterations for reserves ({x}, {y})"
    )


def compute_missing_reserve(amp: int, known_reserve: int, invariant: int) -> int:
    """Solve for the reserve not given, such that (known, result) keeps D.

    Reduces the invariant to y^2 + (b - D)y = c with
        c = D^3 * PRECISION / (known * 4 * Ann)
        b = known + D * PRECISION / Ann
    and iterates y <- (y^2 + c) / (2y + b - D) from y = D.

    Args:
        amp: Amplification coefficient already scaled by PRECISION
        known_reserve: The reserve on the other side of the pair
        invariant: The invariant D to preserve

    Returns:
        The missing reserve

    Raises:
        ZeroReserve: If known_reserve is zero
        ConvergenceFailed: If iteration doesn't converge or the step
            denominator stops being positive
    """
    ann = _ann(amp)
    known = S(known_reserve)
    d = S(invariant)
    if known == 0:
        raise ZeroReserve("Cannot solve for a reserve against an empty counterpart")

    c = (d * d * d * PRECISION) // (known * 4 * ann)
    b = known + (d * PRECISION) // ann

    y = d
    for _ in range(MAX_ITERATIONS):
        y_prev = y

        denominator = (y * 2 + b).checked_sub(d)
        if not denominator:
            raise ConvergenceFailed("Reserve step denominator became non-positive")

        y = (y * y + c) // denominator

        if y.abs_diff(y_prev) <= 1:
            return y.value

    raise ConvergenceFailed(
        f"Reserve solve did not converge after {MAX_ITERATIONS} iterations "
        f"(known={known_reserve}, D={invariant})"
    )
