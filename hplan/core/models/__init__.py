"""
hplan Core Models Package.

This package contains the domain models consumed by the calculators:
loans and asset accounts (one class per kind), global assumptions, and the
profile-sequence resolution rule.

Modules:
    asset: Asset classes (Asset, PropertyAsset, InheritedIraAsset, InvestmentAsset)
    loan: Loan classes (Loan, LoanFixed, LoanRevolving)
    assumptions: Assumptions, MarketAssumptions, PropertyAssumptions
    profile: resolve_active_profile_id, resolve_profile_data
"""

from hplan.core.models.asset import (
    Asset,
    PropertyAsset,
    InheritedIraAsset,
    InvestmentAsset,
    asset_from_dict,
)

from hplan.core.models.loan import (
    Loan,
    LoanFixed,
    LoanRevolving,
    loan_from_dict,
)

from hplan.core.models.assumptions import (
    Assumptions,
    MarketAssumptions,
    PropertyAssumptions,
)

from hplan.core.models.profile import (
    resolve_active_profile_id,
    resolve_profile_data,
)

__all__ = [
    # Asset classes
    "Asset",
    "PropertyAsset",
    "InheritedIraAsset",
    "InvestmentAsset",
    "asset_from_dict",
    # Loan classes
    "Loan",
    "LoanFixed",
    "LoanRevolving",
    "loan_from_dict",
    # Assumptions
    "Assumptions",
    "MarketAssumptions",
    "PropertyAssumptions",
    # Profiles
    "resolve_active_profile_id",
    "resolve_profile_data",
]
