"""
Pydantic schemas for the scenario input contract.

These schemas check structure only: required sections, integer timing
fields and parseable dates. Numeric amounts are deliberately left untyped;
the calculators coerce them with ``safe_num`` instead of rejecting them.
"""

from datetime import date, datetime
from typing import Optional, Dict, Any, List, Union

from pydantic import BaseModel, Field, ConfigDict, ValidationError, field_validator

from hplan.utils.date_utils import parse_date
from hplan.utils.error_utils import FinancialPlannerError, ScenarioShapeError, logger

DateInput = Union[str, date, datetime]


def _check_date(value: Any) -> Any:
    """Reject values that cannot be parsed as a date; None passes through."""
    if value is None or value == "":
        return None
    try:
        parse_date(value, normalize_to_month_start=False)
    except FinancialPlannerError as e:
        raise ValueError(f"malformed date '{value}'") from e
    return value


# ======================
# Base Schemas
# ======================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(extra="allow", validate_assignment=True)


class TimingSchema(BaseSchema):
    """Simulation anchor."""

    start_year: int = Field(..., ge=1900, le=2200)
    start_month: int = Field(..., ge=1, le=12)
    birth_year: Optional[int] = Field(None, ge=1850, le=2200)


class AssumptionsSchema(BaseSchema):
    """Global assumptions; only ``timing`` is structurally required."""

    timing: TimingSchema
    horizon_years: Optional[Any] = None
    inflation: Dict[str, Any] = Field(default_factory=dict)
    market: Dict[str, Any] = Field(default_factory=dict)
    property: Dict[str, Any] = Field(default_factory=dict)
    rates: Dict[str, Any] = Field(default_factory=dict)
    taxes: Dict[str, Any] = Field(default_factory=dict)


class ProfileSequenceEntrySchema(BaseSchema):
    """One entry of a profile sequence."""

    profile_id: str
    start_date: DateInput
    is_active: bool = True

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v):
        return _check_date(v)


class OneOffExpenseSchema(BaseSchema):
    """A single expense keyed to a month."""

    date: DateInput
    amount: Any = 0

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return _check_date(v)


class IncomeSchema(BaseSchema):
    earners: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    work_status: Dict[Any, Dict[str, Any]] = Field(default_factory=dict)
    profile_sequence: List[ProfileSequenceEntrySchema] = Field(default_factory=list)


class ExpensesSchema(BaseSchema):
    one_offs: List[OneOffExpenseSchema] = Field(default_factory=list)
    profile_sequence: List[ProfileSequenceEntrySchema] = Field(default_factory=list)


class AccountInputsSchema(BaseSchema):
    start_date: Optional[DateInput] = None
    sell_date: Optional[DateInput] = None

    @field_validator("start_date", "sell_date")
    @classmethod
    def validate_dates(cls, v):
        return _check_date(v)


class AccountSchema(BaseSchema):
    type: str
    inputs: AccountInputsSchema = Field(default_factory=AccountInputsSchema)


class LoanInputsSchema(BaseSchema):
    start_date: Optional[DateInput] = None

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v):
        return _check_date(v)


class LoanSchema(BaseSchema):
    type: str = "fixed"
    inputs: LoanInputsSchema = Field(default_factory=LoanInputsSchema)


class ScenarioSchema(BaseSchema):
    """Resolved scenario handed to the simulation engine."""

    assumptions: AssumptionsSchema
    income: IncomeSchema = Field(default_factory=IncomeSchema)
    expenses: ExpensesSchema = Field(default_factory=ExpensesSchema)
    assets: Dict[str, AccountSchema] = Field(default_factory=dict)
    loans: Dict[str, LoanSchema] = Field(default_factory=dict)


def _raise_shape_error(what: str, error: ValidationError):
    errors = error.errors(include_url=False)
    fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in errors)
    logger.error(f"Invalid {what}: {fields}")
    raise ScenarioShapeError(f"Invalid {what}: {fields}", {"errors": errors}) from error


def validate_scenario_shape(scenario: Any) -> ScenarioSchema:
    """
    Validate the structure of a resolved scenario.

    Args:
        scenario: Scenario mapping (assumptions, income, expenses, assets, loans)

    Returns:
        The validated schema object (inputs are not modified)

    Raises:
        ScenarioShapeError: If required sections are missing or dates are malformed
    """
    if not isinstance(scenario, dict):
        raise ScenarioShapeError(f"Scenario must be a mapping, got {type(scenario).__name__}")
    try:
        return ScenarioSchema.model_validate(scenario)
    except ValidationError as e:
        _raise_shape_error("scenario", e)


def validate_timing(timing: Any) -> TimingSchema:
    """Validate ``assumptions.timing`` on its own."""
    if timing is None:
        raise ScenarioShapeError("assumptions.timing is required")
    try:
        return TimingSchema.model_validate(timing)
    except ValidationError as e:
        _raise_shape_error("assumptions.timing", e)
