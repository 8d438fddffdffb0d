"""Protocol constants shared by the solver, ledger and AMM engine."""

# Fixed-point scale for the amplification coefficient
PRECISION = 10**18

# Fee denominator (1 bps = 0.01%)
BPS_BASE = 10_000

# Newton iteration ceiling for both invariant and reserve solves
MAX_ITERATIONS = 255

# Number of coins in a stable pair; the solver is specialised to two reserves
N_COINS = 2

# Ledger amounts are uint248 so that one addition of two stored amounts
# still fits in a 256-bit word
AMOUNT_BITS = 248
MAX_AMOUNT = 2**AMOUNT_BITS - 1

# Raw state tags of a ledger entry
UNREGISTERED_TAG = 0
MAX_TOKEN_COUNT = 254
DOCKED_TAG = 255

# Amplification factor bounds accepted by strategy descriptors
MIN_AMPLIFICATION = 1
MAX_AMPLIFICATION = 1_000_000

# Default salt (32 zero bytes)
ZERO_SALT = "0x" + "00" * 32
