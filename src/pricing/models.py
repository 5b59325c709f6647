"""
Quote pricing inputs and fee results.

QuoteInput mirrors the quote form: every field is optional because the
calculators run on every field change, long before the form is complete.
Fee results are plain frozen dataclasses; each intermediate arithmetic step
is kept as a named breakdown field so the UI and audit log can show how a
fee was derived.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .decimal_math import ZERO, parse_amount, to_number

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class QuoteInput(BaseModel):
    """Raw quote form values relevant to pricing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    # Contact (used by the quote record and CRM boundaries only)
    contact_email: Optional[str] = Field(default=None, alias="contactEmail")
    company_name: Optional[str] = Field(default=None, alias="companyName")

    # Service selection
    includes_bookkeeping: Optional[bool] = Field(default=None, alias="includesBookkeeping")
    includes_taas: Optional[bool] = Field(default=None, alias="includesTaas")
    service_bookkeeping: Optional[bool] = Field(default=None, alias="serviceBookkeeping")
    service_taas: Optional[bool] = Field(default=None, alias="serviceTaas")

    # Bookkeeping
    revenue_band: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("revenueBand", "monthlyRevenueRange", "revenue_band"),
        serialization_alias="revenueBand",
    )
    monthly_transactions: Optional[str] = Field(default=None, alias="monthlyTransactions")
    industry: Optional[str] = Field(default=None, alias="industry")
    cleanup_months: Optional[int] = Field(default=None, alias="cleanupMonths")
    cleanup_complexity: Optional[Decimal] = Field(default=None, alias="cleanupComplexity")
    cleanup_override: Optional[bool] = Field(default=None, alias="cleanupOverride")
    override_reason: Optional[str] = Field(default=None, alias="overrideReason")
    custom_override_reason: Optional[str] = Field(default=None, alias="customOverrideReason")
    custom_setup_fee: Optional[str] = Field(default=None, alias="customSetupFee")
    qbo_subscription: Optional[bool] = Field(default=None, alias="qboSubscription")

    # Tax-as-a-Service
    entity_type: Optional[str] = Field(default=None, alias="entityType")
    num_entities: Optional[int] = Field(default=None, alias="numEntities")
    custom_num_entities: Optional[int] = Field(default=None, alias="customNumEntities")
    states_filed: Optional[int] = Field(default=None, alias="statesFiled")
    custom_states_filed: Optional[int] = Field(default=None, alias="customStatesFiled")
    international_filing: Optional[bool] = Field(default=None, alias="internationalFiling")
    num_business_owners: Optional[int] = Field(default=None, alias="numBusinessOwners")
    custom_num_business_owners: Optional[int] = Field(default=None, alias="customNumBusinessOwners")
    bookkeeping_quality: Optional[str] = Field(default=None, alias="bookkeepingQuality")
    include_1040s: Optional[bool] = Field(default=None, alias="include1040s")
    prior_years_unfiled: Optional[int] = Field(default=None, alias="priorYearsUnfiled")
    already_on_seed_bookkeeping: Optional[bool] = Field(default=None, alias="alreadyOnSeedBookkeeping")

    # Half-filled forms send "", null or junk; all of those mean "not set".

    @field_validator(
        "contact_email", "company_name", "revenue_band", "monthly_transactions",
        "industry", "override_reason", "custom_override_reason", "entity_type",
        "bookkeeping_quality",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("custom_setup_fee", mode="before")
    @classmethod
    def _amount_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, bool):
            return None
        text = str(value).strip()
        return text or None

    @field_validator(
        "cleanup_months", "num_entities", "custom_num_entities", "states_filed",
        "custom_states_filed", "num_business_owners", "custom_num_business_owners",
        "prior_years_unfiled",
        mode="before",
    )
    @classmethod
    def _lenient_int(cls, value: Any) -> Optional[int]:
        parsed = parse_amount(value)
        if parsed is None or parsed != parsed.to_integral_value():
            return None
        return int(parsed)

    @field_validator("cleanup_complexity", mode="before")
    @classmethod
    def _lenient_decimal(cls, value: Any) -> Optional[Decimal]:
        return parse_amount(value)

    @field_validator(
        "includes_bookkeeping", "includes_taas", "service_bookkeeping", "service_taas",
        "cleanup_override", "qbo_subscription", "international_filing", "include_1040s",
        "already_on_seed_bookkeeping",
        mode="before",
    )
    @classmethod
    def _lenient_bool(cls, value: Any) -> Optional[bool]:
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        text = str(value).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        return None

    @classmethod
    def from_form(cls, data: Union["QuoteInput", Dict[str, Any], None]) -> "QuoteInput":
        """Build from a form payload (camelCase or snake_case keys)."""
        if isinstance(data, cls):
            return data
        return cls.model_validate(data or {})


def _breakdown_dict(obj: Any) -> Dict[str, Any]:
    result = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        result[_camel(f.name)] = to_number(value) if isinstance(value, Decimal) else value
    return result


@dataclass(frozen=True)
class BookkeepingBreakdown:
    """Step-by-step derivation of the bookkeeping fees."""
    base_fee: Decimal = ZERO
    revenue_multiplier: Decimal = ZERO
    after_revenue: Decimal = ZERO
    transaction_surcharge: Decimal = ZERO
    after_transactions: Decimal = ZERO
    industry_multiplier: Decimal = ZERO
    rounded_monthly: Decimal = ZERO
    qbo_fee: Decimal = ZERO
    final_monthly: Decimal = ZERO
    cleanup_complexity: Decimal = ZERO
    industry_cleanup_multiplier: Decimal = ZERO
    cleanup_multiplier: Decimal = ZERO
    cleanup_months: int = 0
    cleanup_before_industry: Decimal = ZERO
    setup_calc: Decimal = ZERO
    custom_setup_fee: Decimal = ZERO
    setup_fee: Decimal = ZERO

    @classmethod
    def zero(cls) -> "BookkeepingBreakdown":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return _breakdown_dict(self)


@dataclass(frozen=True)
class TaasBreakdown:
    """Step-by-step derivation of the TaaS fees."""
    base: Decimal = ZERO
    effective_num_entities: int = 0
    effective_states_filed: int = 0
    effective_num_business_owners: int = 0
    entity_upcharge: Decimal = ZERO
    state_upcharge: Decimal = ZERO
    international_upcharge: Decimal = ZERO
    owner_upcharge: Decimal = ZERO
    bookkeeping_quality_upcharge: Decimal = ZERO
    personal_1040_upcharge: Decimal = ZERO
    before_multipliers: Decimal = ZERO
    industry_multiplier: Decimal = ZERO
    after_industry_multiplier: Decimal = ZERO
    revenue_multiplier: Decimal = ZERO
    after_multipliers: Decimal = ZERO
    seed_discount: Decimal = ZERO
    discounted: Decimal = ZERO
    final_monthly: Decimal = ZERO
    prior_years_unfiled: int = 0
    per_year_fee: Decimal = ZERO
    setup_fee: Decimal = ZERO

    @classmethod
    def zero(cls) -> "TaasBreakdown":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return _breakdown_dict(self)


Breakdown = Union[BookkeepingBreakdown, TaasBreakdown]


@dataclass(frozen=True)
class FeeResult:
    """Fees for one service line."""
    monthly_fee: Decimal
    setup_fee: Decimal
    breakdown: Breakdown
    complete: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monthlyFee": to_number(self.monthly_fee),
            "setupFee": to_number(self.setup_fee),
            "breakdown": self.breakdown.to_dict(),
            "complete": self.complete,
        }


def zero_bookkeeping_result() -> FeeResult:
    """Sentinel for a bookkeeping quote that cannot be priced yet."""
    return FeeResult(ZERO, ZERO, BookkeepingBreakdown.zero(), complete=False)


def zero_taas_result() -> FeeResult:
    """Sentinel for a TaaS quote that cannot be priced yet."""
    return FeeResult(ZERO, ZERO, TaasBreakdown.zero(), complete=False)


@dataclass(frozen=True)
class FeeTotals:
    """Summed fees across service lines."""
    monthly_fee: Decimal
    setup_fee: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"monthlyFee": to_number(self.monthly_fee), "setupFee": to_number(self.setup_fee)}


@dataclass(frozen=True)
class CombinedFeeResult:
    """
    Per-service fees and their sum.

    The per-service results stay available so CRM line items can be
    itemized even when a quote combines both services.
    """
    bookkeeping: FeeResult
    taas: FeeResult
    combined: FeeTotals
    includes_bookkeeping: bool
    includes_taas: bool

    @property
    def is_priceable(self) -> bool:
        """False while the quote is still in the 'not ready to price' state."""
        return self.combined.monthly_fee > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bookkeeping": self.bookkeeping.to_dict(),
            "taas": self.taas.to_dict(),
            "combined": self.combined.to_dict(),
            "includesBookkeeping": self.includes_bookkeeping,
            "includesTaas": self.includes_taas,
        }


__all__ = [
    "QuoteInput",
    "BookkeepingBreakdown",
    "TaasBreakdown",
    "FeeResult",
    "FeeTotals",
    "CombinedFeeResult",
    "zero_bookkeeping_result",
    "zero_taas_result",
]
