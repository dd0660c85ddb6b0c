"""
Core constants and enumerations for hplan.

This module defines the constant values, enumerations, and default
assumptions used throughout the simulation core.
"""

from enum import Enum


class AssetType(str, Enum):
    """Asset account kinds"""
    PROPERTY = "property"
    INHERITED = "inherited"
    RETIREMENT = "retirement"
    JOINT = "joint"
    CASH = "cash"
    OTHER = "other"


class LoanType(str, Enum):
    """Loan kinds"""
    FIXED = "fixed"
    REVOLVING = "revolving"


class GrowthType:
    """Growth rate source for investment accounts"""
    FIXED = "fixed"
    MARKET = "market"


class PropertyBucket:
    """Age bands used by the home value projection"""
    NEW = "new"
    MID = "mid"
    MATURE = "mature"
    SOLD = "sold"


# Account types pooled into the engine's buckets
LIQUID_ACCOUNT_TYPES = (AssetType.CASH.value, AssetType.JOINT.value)
INHERITED_ACCOUNT_TYPES = (AssetType.INHERITED.value,)
RETIREMENT_ACCOUNT_TYPES = (AssetType.RETIREMENT.value,)

# Recurring expense categories (monthly amounts)
EXPENSE_CATEGORIES = ("bills", "home", "living", "impounds")

# Amortization
MAX_AMORTIZATION_MONTHS = 600  # 50 years
PAYOFF_TOLERANCE = 0.01
BASE_STRATEGY_ID = "base"

# Projection / simulation horizon
DEFAULT_HORIZON_YEARS = 35

# Market defaults
DEFAULT_MARKET_INITIAL = 0.07
DEFAULT_MARKET_TERMINAL = 0.035
DEFAULT_TAPER_START_AGE = 60
DEFAULT_TAPER_END_AGE = 80

# Property appreciation defaults
DEFAULT_PROPERTY_BASELINE_GROWTH = 0.02
DEFAULT_NEW_HOME_YEARS = 5
DEFAULT_MID_HOME_YEARS = 15
DEFAULT_NEW_HOME_ADDON = 0.015
DEFAULT_MID_HOME_ADDON = 0.007
DEFAULT_MATURE_HOME_ADDON = 0.0
DEFAULT_MIN_PROPERTY_GROWTH = 0.0
DEFAULT_MAX_PROPERTY_GROWTH = 0.04
DEFAULT_HOME_AGE_YEARS = 10
DEFAULT_SELLING_COST = 0.06

# Inherited IRA
IRA_DEPLETION_YEARS = 10
IRA_DEFAULT_WITHDRAWAL_PCT = 0.20
IRA_BASE_TAX_RATE = 0.25
# (threshold, flat rate) applied to the gross size of a single withdrawal, highest first
IRA_TAX_BRACKETS = (
    (600000, 0.48),
    (400000, 0.40),
    (200000, 0.32),
)

# Reverse mortgage
DEFAULT_REVERSE_MORTGAGE_RATE = 0.06
# (max age inclusive, loan-to-value limit); ages above the last band use REVERSE_MORTGAGE_LTV_MAX
REVERSE_MORTGAGE_LTV_BANDS = (
    (69, 0.40),
    (80, 0.50),
)
REVERSE_MORTGAGE_LTV_MAX = 0.60

# Event texts
EVENT_REVERSE_MORTGAGE_ACTIVATED = "Reverse Mortgage Activated"
BUCKET_LABELS = {
    "liquid_cash": "Liquid Cash",
    "inherited_balance": "Inherited IRA",
    "retirement_balance": "Retirement",
}
