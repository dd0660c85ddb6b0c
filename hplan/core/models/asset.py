"""
Asset models for hplan.

Asset accounts are a tagged union keyed by ``type``:

Classes:
    Asset: Base class with the fields every account carries
    PropertyAsset: Real estate; appreciates by building age, nets linked loans
    InheritedIraAsset: Inherited IRA with a mandatory 10-year depletion window
    InvestmentAsset: Retirement, joint, cash and other balances
"""

from typing import List, Dict, Any, Optional, Union

import pandas as pd

from hplan.core.constants import AssetType, GrowthType
from hplan.utils.date_utils import parse_optional_date
from hplan.utils.rate_utils import safe_num, safe_int
from hplan.utils.error_utils import error_handler


class Asset:
    """
    Base class for all asset accounts.

    Attributes:
        id: Unique identifier for the account
        name: Display name used in event texts
        type: Account kind (see AssetType)
        balance: Current value at the simulation start
        owner: Optional owner label
        active: Inactive accounts are ignored by the simulation engine
    """

    def __init__(
        self,
        id: str,
        type: str,
        balance: float,
        name: Optional[str] = None,
        owner: Optional[str] = None,
        active: bool = True,
    ):
        self.id = id
        self.type = type
        self.balance = safe_num(balance)
        self.name = name or id
        self.owner = owner
        self.active = bool(active)

    @staticmethod
    def _base_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": data.get("id", ""),
            "balance": data.get("balance"),
            "name": data.get("name"),
            "owner": data.get("owner"),
            "active": data.get("active", True),
        }


class PropertyAsset(Asset):
    """
    Real estate property.

    Attributes:
        build_year: Year the building was completed (drives the age band)
        location_factor: Additive appreciation adjustment for the location
        linked_loan_ids: Loans secured by this property
        sell_date: Scheduled sale month, or None
        purchase_date: Month the property is bought, or None when already owned
        funding: Purchase funding items ``{"source_id", "amount"}``
    """

    def __init__(
        self,
        id: str,
        balance: float,
        build_year: Optional[int] = None,
        location_factor: float = 0.0,
        linked_loan_ids: Optional[List[str]] = None,
        sell_date: Union[str, pd.Timestamp, None] = None,
        purchase_date: Union[str, pd.Timestamp, None] = None,
        funding: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ):
        super().__init__(id, AssetType.PROPERTY.value, balance, **kwargs)
        self.build_year = safe_int(build_year)
        self.location_factor = safe_num(location_factor)
        self.linked_loan_ids = list(linked_loan_ids or [])
        self.sell_date = parse_optional_date(sell_date, f"property '{id}' sell_date")
        self.purchase_date = parse_optional_date(purchase_date, f"property '{id}' start_date")
        self.funding = [
            {"source_id": item.get("source_id"), "amount": safe_num(item.get("amount"))}
            for item in (funding or [])
            if item and item.get("source_id") and safe_num(item.get("amount")) > 0
        ]

    @property
    def sell_year(self) -> Optional[int]:
        return self.sell_date.year if self.sell_date is not None else None

    @classmethod
    @error_handler
    def from_dict(cls, data: Dict[str, Any]) -> 'PropertyAsset':
        """Deserialize a property from a scenario account entry."""
        inputs = data.get("inputs") or {}
        linked = inputs.get("linked_loan_ids")
        if linked is None and inputs.get("linked_loan_id"):
            linked = [inputs["linked_loan_id"]]
        return cls(
            build_year=inputs.get("build_year"),
            location_factor=inputs.get("location_factor", 0.0),
            linked_loan_ids=linked,
            sell_date=inputs.get("sell_date"),
            purchase_date=inputs.get("start_date"),
            funding=(inputs.get("purchase_plan") or {}).get("funding"),
            **cls._base_kwargs(data),
        )


class InheritedIraAsset(Asset):
    """
    Inherited IRA subject to a mandatory 10-year depletion window.

    Attributes:
        start_date: Inheritance date anchoring the window, or None
        withdrawal_schedule: Overrides keyed by calendar year, or a list
            indexed by year offset from the anchor
    """

    def __init__(
        self,
        id: str,
        balance: float,
        start_date: Union[str, pd.Timestamp, None] = None,
        withdrawal_schedule: Union[Dict, List, None] = None,
        **kwargs,
    ):
        super().__init__(id, AssetType.INHERITED.value, balance, **kwargs)
        self.start_date = parse_optional_date(start_date, f"inherited IRA '{id}' start_date")
        self.withdrawal_schedule = withdrawal_schedule or {}

    def anchor_year(self, default_year: int) -> int:
        """First withdrawal year; the simulation start year when no start date is set."""
        return self.start_date.year if self.start_date is not None else default_year

    def withdrawal_override(self, year: int, anchor_year: int) -> Optional[float]:
        """Configured withdrawal fraction for ``year``, or None when not overridden."""
        schedule = self.withdrawal_schedule
        if isinstance(schedule, (list, tuple)):
            offset = year - anchor_year
            if 0 <= offset < len(schedule) and schedule[offset] is not None:
                return safe_num(schedule[offset])
            return None
        for key in (year, str(year)):
            if key in schedule and schedule[key] is not None:
                return safe_num(schedule[key])
        return None

    @classmethod
    @error_handler
    def from_dict(cls, data: Dict[str, Any]) -> 'InheritedIraAsset':
        """Deserialize an inherited IRA from a scenario account entry."""
        inputs = data.get("inputs") or {}
        return cls(
            start_date=inputs.get("start_date"),
            withdrawal_schedule=inputs.get("withdrawal_schedule"),
            **cls._base_kwargs(data),
        )


class InvestmentAsset(Asset):
    """
    Balance-only account (retirement, joint, cash, other).

    Attributes:
        growth_type: "fixed" to use ``fixed_rate``; anything else follows the market
        fixed_rate: Annual decimal growth rate for fixed-growth accounts
    """

    def __init__(
        self,
        id: str,
        type: str,
        balance: float,
        growth_type: str = GrowthType.MARKET,
        fixed_rate: float = 0.0,
        **kwargs,
    ):
        super().__init__(id, type, balance, **kwargs)
        self.growth_type = growth_type or GrowthType.MARKET
        self.fixed_rate = safe_num(fixed_rate)

    @classmethod
    @error_handler
    def from_dict(cls, data: Dict[str, Any]) -> 'InvestmentAsset':
        """Deserialize a balance-only account from a scenario account entry."""
        inputs = data.get("inputs") or {}
        return cls(
            type=data.get("type") or AssetType.OTHER.value,
            growth_type=data.get("growth_type", inputs.get("growth_type")),
            fixed_rate=data.get("fixed_rate", inputs.get("fixed_rate", 0.0)),
            **cls._base_kwargs(data),
        )


ASSET_CLASSES = {
    AssetType.PROPERTY.value: PropertyAsset,
    AssetType.INHERITED.value: InheritedIraAsset,
}


def asset_from_dict(data: Union[Dict[str, Any], Asset]) -> Asset:
    """
    Build the asset variant matching ``data["type"]``.

    Property and inherited accounts get their own classes; every other type
    is a balance-only ``InvestmentAsset``. Asset objects are returned unchanged.
    """
    if isinstance(data, Asset):
        return data
    asset_cls = ASSET_CLASSES.get(data.get("type"), InvestmentAsset)
    return asset_cls.from_dict(data)
