"""
Pricing tables: closed enums per pricing dimension and the immutable
lookup tables built from the versioned YAML configuration.

Form values arrive as free strings. Each enum's ``parse`` maps a string to a
member or None, and every lookup below is total: an unknown key resolves to
a documented neutral value instead of failing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from config.pricing_config_loader import PricingConfigError, get_config_loader
from config.settings import get_settings

from .decimal_math import to_decimal

logger = logging.getLogger(__name__)

ONE = Decimal("1")
ZERO = Decimal("0")


class _ParsableEnum(str, Enum):
    """String enum with a non-raising parser."""

    @classmethod
    def parse(cls, value: Any):
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            return None


class RevenueBand(_ParsableEnum):
    """Average monthly revenue bucket."""
    UNDER_10K = "<$10K"
    FROM_10K_TO_25K = "10K-25K"
    FROM_25K_TO_75K = "25K-75K"
    FROM_75K_TO_250K = "75K-250K"
    FROM_250K_TO_1M = "250K-1M"
    OVER_1M = "1M+"


class TransactionVolume(_ParsableEnum):
    """Monthly bank/card transaction count bucket."""
    UNDER_100 = "<100"
    FROM_100_TO_300 = "100-300"
    FROM_300_TO_600 = "300-600"
    FROM_600_TO_1000 = "600-1000"
    FROM_1000_TO_2000 = "1000-2000"
    OVER_2000 = "2000+"


class Industry(_ParsableEnum):
    """Industries on the quote form."""
    SOFTWARE_SAAS = "Software/SaaS"
    PROFESSIONAL_SERVICES = "Professional Services"
    CONSULTING = "Consulting"
    HEALTHCARE_MEDICAL = "Healthcare/Medical"
    REAL_ESTATE = "Real Estate"
    PROPERTY_MANAGEMENT = "Property Management"
    ECOMMERCE_RETAIL = "E-commerce/Retail"
    RESTAURANT_FOOD_SERVICE = "Restaurant/Food Service"
    HOSPITALITY = "Hospitality"
    CONSTRUCTION_TRADES = "Construction/Trades"
    MANUFACTURING = "Manufacturing"
    TRANSPORTATION_LOGISTICS = "Transportation/Logistics"
    NONPROFIT = "Nonprofit"
    LAW_FIRM = "Law Firm"
    ACCOUNTING_FINANCE = "Accounting/Finance"
    MARKETING_ADVERTISING = "Marketing/Advertising"
    INSURANCE = "Insurance"
    AUTOMOTIVE = "Automotive"
    EDUCATION = "Education"
    FITNESS_WELLNESS = "Fitness/Wellness"
    ENTERTAINMENT_EVENTS = "Entertainment/Events"
    AGRICULTURE = "Agriculture"
    TECHNOLOGY_IT_SERVICES = "Technology/IT Services"
    MULTI_ENTITY_HOLDING = "Multi-entity/Holding Companies"
    OTHER = "Other"


class BookkeepingQuality(_ParsableEnum):
    """State of the client's books, as seen by the tax team."""
    CLEAN_SEED = "Clean (Seed)"
    OUTSIDE_CPA = "Outside CPA"
    SELF_MANAGED = "Self-managed"


@dataclass(frozen=True)
class IndustryMultiplier:
    """Independent multipliers for the recurring and the cleanup fee."""
    monthly: Decimal = ONE
    cleanup: Decimal = ONE


NEUTRAL_INDUSTRY = IndustryMultiplier()


@dataclass(frozen=True)
class TaasRules:
    """Upcharge thresholds, rates and tiers for Tax-as-a-Service pricing."""
    base_fee: Decimal
    minimum_monthly_fee: Decimal
    monthly_rounding: Decimal
    entity_threshold: int
    entity_upcharge: Decimal
    state_threshold: int
    state_upcharge: Decimal
    max_additional_states: int
    international_upcharge: Decimal
    owner_threshold: int
    owner_upcharge: Decimal
    personal_1040_fee: Decimal
    bookkeeping_quality_upcharges: Mapping[BookkeepingQuality, Decimal]
    default_bookkeeping_quality_upcharge: Decimal
    average_monthly_revenue: Mapping[RevenueBand, Decimal]
    default_average_monthly_revenue: Decimal
    revenue_tiers: Tuple[Tuple[Optional[Decimal], Decimal], ...]
    seed_bookkeeping_discount: Decimal
    prior_year_monthly_factor: Decimal
    prior_year_minimum_fee: Decimal


@dataclass(frozen=True)
class PricingTables:
    """Read-only pricing constants for one table version."""
    version: str
    base_monthly_fee: Decimal
    qbo_subscription_fee: Decimal
    setup_fee_increment: Decimal
    revenue_multipliers: Mapping[RevenueBand, Decimal]
    transaction_surcharges: Mapping[TransactionVolume, Decimal]
    industry_multipliers: Mapping[Industry, IndustryMultiplier]
    taas: TaasRules

    # ------------------------------------------------------------------
    # Total lookups
    # ------------------------------------------------------------------

    def revenue_multiplier(self, band: Any) -> Decimal:
        """Bookkeeping revenue multiplier; unknown bands are neutral (1.0)."""
        return self.revenue_multipliers.get(RevenueBand.parse(band), ONE)

    def transaction_surcharge(self, volume: Any) -> Decimal:
        """Flat monthly surcharge for transaction volume; unknown is 0."""
        return self.transaction_surcharges.get(TransactionVolume.parse(volume), ZERO)

    def industry_multiplier(self, industry: Any) -> IndustryMultiplier:
        """Industry multipliers; unknown industries are neutral (1.0 / 1.0)."""
        return self.industry_multipliers.get(Industry.parse(industry), NEUTRAL_INDUSTRY)

    def bookkeeping_quality_upcharge(self, quality: Any) -> Decimal:
        """TaaS upcharge for book quality; anything unrecognized pays the default."""
        return self.taas.bookkeeping_quality_upcharges.get(
            BookkeepingQuality.parse(quality),
            self.taas.default_bookkeeping_quality_upcharge,
        )

    def average_monthly_revenue(self, band: Any) -> Decimal:
        """Assumed average monthly revenue for a band (TaaS only)."""
        return self.taas.average_monthly_revenue.get(
            RevenueBand.parse(band),
            self.taas.default_average_monthly_revenue,
        )

    def taas_revenue_multiplier(self, band: Any) -> Decimal:
        """
        TaaS revenue multiplier.

        Distinct from ``revenue_multiplier``: the band is first mapped to an
        assumed average revenue, which is then bucketed into tiers.
        """
        revenue = self.average_monthly_revenue(band)
        for ceiling, multiplier in self.taas.revenue_tiers:
            if ceiling is None or revenue <= ceiling:
                return multiplier
        return self.taas.revenue_tiers[-1][1]

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation for API responses."""
        return {
            "version": self.version,
            "baseMonthlyFee": str(self.base_monthly_fee),
            "qboSubscriptionFee": str(self.qbo_subscription_fee),
            "setupFeeIncrement": str(self.setup_fee_increment),
            "revenueMultipliers": {k.value: str(v) for k, v in self.revenue_multipliers.items()},
            "transactionSurcharges": {k.value: str(v) for k, v in self.transaction_surcharges.items()},
            "industryMultipliers": {
                k.value: {"monthly": str(v.monthly), "cleanup": str(v.cleanup)}
                for k, v in self.industry_multipliers.items()
            },
            "taas": {
                "baseFee": str(self.taas.base_fee),
                "minimumMonthlyFee": str(self.taas.minimum_monthly_fee),
                "bookkeepingQualityUpcharges": {
                    k.value: str(v) for k, v in self.taas.bookkeeping_quality_upcharges.items()
                },
                "revenueTiers": [
                    [None if ceiling is None else str(ceiling), str(multiplier)]
                    for ceiling, multiplier in self.taas.revenue_tiers
                ],
                "seedBookkeepingDiscount": str(self.taas.seed_bookkeeping_discount),
            },
        }


# ----------------------------------------------------------------------
# Construction from configuration
# ----------------------------------------------------------------------

def _enum_table(enum_cls, raw: Mapping[str, Any], name: str) -> Mapping:
    table = {}
    for key, value in (raw or {}).items():
        member = enum_cls.parse(key)
        if member is None:
            logger.warning(f"Ignoring unknown {name} key in pricing tables: {key!r}")
            continue
        table[member] = value
    return MappingProxyType(table)


def build_pricing_tables(config: Mapping[str, Any], version: str) -> PricingTables:
    """
    Build immutable tables from a loaded pricing configuration.

    Raises:
        PricingConfigError: If a value cannot be read as a number
    """
    try:
        taas = config["taas"]
        tiers = tuple(
            (None if ceiling is None else to_decimal(ceiling), to_decimal(multiplier))
            for ceiling, multiplier in taas["revenue_tiers"]
        )
        taas_rules = TaasRules(
            base_fee=to_decimal(taas["base_fee"]),
            minimum_monthly_fee=to_decimal(taas["minimum_monthly_fee"]),
            monthly_rounding=to_decimal(taas["monthly_rounding"]),
            entity_threshold=int(taas["entity_threshold"]),
            entity_upcharge=to_decimal(taas["entity_upcharge"]),
            state_threshold=int(taas["state_threshold"]),
            state_upcharge=to_decimal(taas["state_upcharge"]),
            max_additional_states=int(taas["max_additional_states"]),
            international_upcharge=to_decimal(taas["international_upcharge"]),
            owner_threshold=int(taas["owner_threshold"]),
            owner_upcharge=to_decimal(taas["owner_upcharge"]),
            personal_1040_fee=to_decimal(taas["personal_1040_fee"]),
            bookkeeping_quality_upcharges=MappingProxyType({
                member: to_decimal(value)
                for member, value in _enum_table(
                    BookkeepingQuality, taas["bookkeeping_quality_upcharges"], "bookkeeping quality"
                ).items()
            }),
            default_bookkeeping_quality_upcharge=to_decimal(taas["default_bookkeeping_quality_upcharge"]),
            average_monthly_revenue=MappingProxyType({
                member: to_decimal(value)
                for member, value in _enum_table(
                    RevenueBand, taas["average_monthly_revenue"], "revenue band"
                ).items()
            }),
            default_average_monthly_revenue=to_decimal(taas["default_average_monthly_revenue"]),
            revenue_tiers=tiers,
            seed_bookkeeping_discount=to_decimal(taas["seed_bookkeeping_discount"]),
            prior_year_monthly_factor=to_decimal(taas["prior_year_monthly_factor"]),
            prior_year_minimum_fee=to_decimal(taas["prior_year_minimum_fee"]),
        )

        industries = {
            member: IndustryMultiplier(
                monthly=to_decimal(value.get("monthly", 1)),
                cleanup=to_decimal(value.get("cleanup", 1)),
            )
            for member, value in _enum_table(
                Industry, config["industry_multipliers"], "industry"
            ).items()
        }

        return PricingTables(
            version=version,
            base_monthly_fee=to_decimal(config["base_monthly_fee"]),
            qbo_subscription_fee=to_decimal(config.get("qbo_subscription_fee", 80)),
            setup_fee_increment=to_decimal(config.get("setup_fee_increment", 25)),
            revenue_multipliers=MappingProxyType({
                member: to_decimal(value)
                for member, value in _enum_table(
                    RevenueBand, config["revenue_multipliers"], "revenue band"
                ).items()
            }),
            transaction_surcharges=MappingProxyType({
                member: to_decimal(value)
                for member, value in _enum_table(
                    TransactionVolume, config["transaction_surcharges"], "transaction volume"
                ).items()
            }),
            industry_multipliers=MappingProxyType(industries),
            taas=taas_rules,
        )
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise PricingConfigError(f"Invalid pricing tables '{version}': {e}") from e


@lru_cache(maxsize=8)
def get_pricing_tables(version: Optional[str] = None) -> PricingTables:
    """
    Get the immutable pricing tables for a version.

    Defaults to the version named by ``QUOTE_PRICING_TABLE_VERSION``. Tables
    are built once per version and shared; they are never mutated.
    """
    version = version or get_settings().pricing_table_version
    config = get_config_loader().load_config(version)
    tables = build_pricing_tables(config, version)
    logger.info(f"Pricing tables {version} ready ({len(tables.industry_multipliers)} industries)")
    return tables
