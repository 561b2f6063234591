# valuetrack/services/constants.py
"""
Centralized constants for the ValueTrack services.

Usage:
    from valuetrack.services.constants import (
        MAX_MONETARY_VALUE,
        MAX_ACCOUNT_NAME_LENGTH,
    )
"""

import sys
from decimal import Decimal


# =============================================================================
# MONETARY INPUT
# =============================================================================

# Largest value a single update may hold
MAX_MONETARY_VALUE: Decimal = Decimal("999999999.99")

# Longest accepted raw input after trimming ("999999999.99" is 12)
MAX_MONETARY_INPUT_LENGTH: int = 15

# Fractional digits allowed in a monetary value
MONETARY_DECIMAL_PLACES: int = 2

# Digits with an optional single decimal point; no sign, no separators
MONETARY_INPUT_PATTERN: str = r"[0-9]+(\.[0-9]*)?"


# =============================================================================
# ACCOUNT NAMES
# =============================================================================

MIN_ACCOUNT_NAME_LENGTH: int = 1
MAX_ACCOUNT_NAME_LENGTH: int = 50

# Combining-character expansion guards, as multiples of the max length
NAME_UTF16_LENGTH_FACTOR: int = 3
NAME_DECOMPOSED_LENGTH_FACTOR: int = 3


# =============================================================================
# CHARTING
# =============================================================================

# Finite stand-in for decimals beyond float range
SAFE_FLOAT_LIMIT: float = sys.float_info.max / 1000


# =============================================================================
# PERFORMANCE WINDOWS
# =============================================================================

# Lookback in days for the fixed windows
ONE_MONTH_DAYS: int = 30
THREE_MONTHS_DAYS: int = 90
ONE_YEAR_DAYS: int = 365

# Label used when a window had no data at its cutoff
FALLBACK_LABEL_TEMPLATE: str = "Since {date}"

NO_PREVIOUS_UPDATE_LABEL: str = "No previous update"


# =============================================================================
# BACKGROUND RECALCULATION
# =============================================================================

# Seconds the worker blocks on an empty queue before re-checking shutdown
WORKER_POLL_INTERVAL_SECONDS: float = 0.5

# Finished jobs kept for status queries
MAX_FINISHED_JOBS: int = 100


# =============================================================================
# RATE LIMITING
# =============================================================================

RATE_LIMIT_DEFAULT: str = "100/minute"

# Recording/deleting updates and account changes
RATE_LIMIT_WRITE: str = "30/minute"

# Full-history snapshot rebuilds
RATE_LIMIT_RECALCULATE: str = "5/minute"

RATE_LIMIT_HEALTH: str = "300/minute"
