"""
Core modules for hplan.

This package contains the constants, the scenario input contract, the
domain models and the calculation engines.
"""

from hplan.core.constants import (
    AssetType,
    LoanType,
    GrowthType,
    PropertyBucket,
    MAX_AMORTIZATION_MONTHS,
    DEFAULT_HORIZON_YEARS,
)

__all__ = [
    "AssetType",
    "LoanType",
    "GrowthType",
    "PropertyBucket",
    "MAX_AMORTIZATION_MONTHS",
    "DEFAULT_HORIZON_YEARS",
]
