ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

BPS_DENOMINATOR = 10_000
PERCENT = 100
DAYS_PER_YEAR = 365

MAX_UINT128 = 2**128 - 1
MAX_UINT256 = 2**256 - 1
Q96 = 2**96
Q128 = 2**128

# Aave-v2 style interest rate modes
STABLE_RATE_MODE = 1
VARIABLE_RATE_MODE = 2
DEFAULT_REFERRAL_CODE = 0

# Unwind withdrawals are sized at 99.5% of the safe maximum to absorb price
# movement between the read and the withdraw transaction.
UNWIND_HAIRCUT_NUMERATOR = 995
UNWIND_HAIRCUT_DENOMINATOR = 1000

# Liquity-style troves keep 10 iUSD of gas compensation inside the debt; it is
# released by the protocol on close and never repaid by the borrower.
TROVE_GAS_COMPENSATION = 10 * 10**18
DEFAULT_MAX_FEE_PERCENTAGE = 5 * 10**15

# Hint search: numTrials = ceil(15 * sqrt(n))
HINT_TRIALS_FACTOR = 15
HINT_SEED_UPPER_BOUND = 1_000_000

DEFAULT_DEADLINE_SECONDS = 20 * 60

GAS_BUFFER_MULTIPLIER = 1.2
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

# Timeout constants (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0  # HTTP client timeout
DEFAULT_TRANSACTION_TIMEOUT = 180  # Transaction receipt timeout (seconds)

ADAPTER_IRONCLAD = "IRONCLAD"
ADAPTER_KIM = "KIM"
ADAPTER_MODE_VOTING = "MODE_VOTING"
ADAPTER_TOKEN = "TOKEN"
