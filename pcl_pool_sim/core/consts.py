#!/usr/bin/env python3
"""
Concentrated Pool Constants

Internal solver constants and the validation ranges enforced on every
governance-supplied parameter.
"""

from .fixed_point import Decimal256

# Adjustable constants
DEFAULT_SLIPPAGE = Decimal256.from_str("0.05")
MAX_ALLOWED_SLIPPAGE = Decimal256.from_str("0.5")

# Internal constants
N = Decimal256.from_int(2)
N_POW2 = Decimal256.from_int(4)
# If the fee coefficient is this small it is treated as zero
FEE_TOL = Decimal256.from_str("0.001")
TOL = Decimal256.from_str("0.001")
HALFPOW_TOL = Decimal256.from_str("0.0000000001")
MAX_ITER = 64

# LP token
LP_TOKEN_PRECISION = 6
# Locked forever on the first deposit
MINIMUM_LIQUIDITY_AMOUNT = 1_000

# Cumulative prices are stored as integers with this many decimals
TWAP_PRECISION = 6
CUMULATIVE_PRICE_MODULUS = 2 ** 128

# Validation ranges
MIN_FEE = Decimal256.from_str("0.001")
MAX_FEE = Decimal256.from_str("0.5")

FEE_GAMMA_MIN = Decimal256.from_str("0.00000001")
FEE_GAMMA_MAX = Decimal256.from_str("0.02")

REPEG_PROFIT_THRESHOLD_MIN = Decimal256.zero()
REPEG_PROFIT_THRESHOLD_MAX = Decimal256.from_str("0.01")

PRICE_SCALE_DELTA_MIN = Decimal256.from_str("0.00000000001")
PRICE_SCALE_DELTA_MAX = Decimal256.one()

MA_HALF_TIME_MIN = 0
MA_HALF_TIME_MAX = 7 * 86400

AMP_MIN = Decimal256.from_str("0.4")
AMP_MAX = Decimal256.from_int(400_000)

GAMMA_MIN = Decimal256.from_str("0.0000001")
GAMMA_MAX = Decimal256.from_str("0.02")

# Minimum interval for an amp/gamma promotion
MIN_AMP_CHANGING_TIME = 86400
# Maximum relative amp/gamma change per promotion (10%)
MAX_CHANGE = Decimal256.from_str("0.1")
