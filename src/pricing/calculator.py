"""
Quote Fee Calculator.

Pure functions from quote form values to fees:

- calculate_bookkeeping_fees: monthly bookkeeping fee and cleanup setup fee
- calculate_taas_fees: monthly Tax-as-a-Service fee and back-filing fee
- calculate_combined_fees: runs the enabled services and sums them

The calculators never raise. A quote that is missing a required field
prices at zero ("not ready to price"), and unknown table keys fall back to
neutral multipliers. Input range validation belongs to quotes.validation.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from .decimal_math import ZERO, ceil_to_nearest, parse_amount, round_half_up, round_to_nearest
from .models import (
    BookkeepingBreakdown,
    CombinedFeeResult,
    FeeResult,
    FeeTotals,
    QuoteInput,
    TaasBreakdown,
    zero_bookkeeping_result,
    zero_taas_result,
)
from .tables import PricingTables, get_pricing_tables

logger = logging.getLogger(__name__)

QuoteData = Union[QuoteInput, Dict[str, Any], None]

CUSTOM_SETUP_FEE_REASON = "Other"


def _quote(data: QuoteData) -> QuoteInput:
    return QuoteInput.from_form(data)


def _tables(tables: Optional[PricingTables]) -> PricingTables:
    return tables if tables is not None else get_pricing_tables()


def custom_setup_fee(quote: QuoteInput) -> Optional[Decimal]:
    """The manually entered setup fee, when it replaces the computed one."""
    if quote.override_reason != CUSTOM_SETUP_FEE_REASON:
        return None
    amount = parse_amount(quote.custom_setup_fee)
    if amount is None or amount <= 0:
        return None
    return amount


def calculate_bookkeeping_fees(
    data: QuoteData,
    tables: Optional[PricingTables] = None,
) -> FeeResult:
    """
    Calculate the bookkeeping monthly fee and setup/cleanup fee.

    monthly = round((base * revenue multiplier + transaction surcharge)
                     * industry monthly multiplier) [+ QBO subscription]
    setup   = custom fee when overridden ("Other" reason), otherwise
              ceil25(max(monthly, monthly * complexity * industry cleanup
                         multiplier * cleanup months)) when months > 0

    Args:
        data: Quote form values (QuoteInput or raw form dict)
        tables: Pricing tables; defaults to the configured version

    Returns:
        FeeResult; the all-zero sentinel when required input is missing
    """
    quote = _quote(data)
    if (
        not quote.revenue_band
        or not quote.monthly_transactions
        or not quote.industry
        or quote.cleanup_months is None
    ):
        logger.debug("Bookkeeping quote incomplete; pricing at zero")
        return zero_bookkeeping_result()

    # If cleanup months is 0, cleanup complexity is not required
    if quote.cleanup_months > 0 and not quote.cleanup_complexity:
        logger.debug("Cleanup complexity missing for %s cleanup months", quote.cleanup_months)
        return zero_bookkeeping_result()

    t = _tables(tables)
    revenue_multiplier = t.revenue_multiplier(quote.revenue_band)
    surcharge = t.transaction_surcharge(quote.monthly_transactions)
    industry = t.industry_multiplier(quote.industry)

    after_revenue = t.base_monthly_fee * revenue_multiplier
    after_transactions = after_revenue + surcharge
    rounded_monthly = round_half_up(after_transactions * industry.monthly)

    qbo_fee = t.qbo_subscription_fee if quote.qbo_subscription else ZERO
    monthly_fee = rounded_monthly + qbo_fee

    # Custom fee takes precedence regardless of cleanup months
    complexity = quote.cleanup_complexity or ZERO
    cleanup_multiplier = ZERO
    cleanup_before_industry = ZERO
    setup_calc = ZERO
    override = custom_setup_fee(quote)

    if override is not None:
        setup_fee = override
    elif quote.cleanup_months > 0:
        cleanup_multiplier = complexity * industry.cleanup
        cleanup_before_industry = monthly_fee * complexity * quote.cleanup_months
        setup_calc = monthly_fee * cleanup_multiplier * quote.cleanup_months
        setup_fee = ceil_to_nearest(max(monthly_fee, setup_calc), t.setup_fee_increment)
    else:
        setup_fee = ZERO

    breakdown = BookkeepingBreakdown(
        base_fee=t.base_monthly_fee,
        revenue_multiplier=revenue_multiplier,
        after_revenue=after_revenue,
        transaction_surcharge=surcharge,
        after_transactions=after_transactions,
        industry_multiplier=industry.monthly,
        rounded_monthly=rounded_monthly,
        qbo_fee=qbo_fee,
        final_monthly=monthly_fee,
        cleanup_complexity=complexity,
        industry_cleanup_multiplier=industry.cleanup,
        cleanup_multiplier=cleanup_multiplier,
        cleanup_months=quote.cleanup_months,
        cleanup_before_industry=cleanup_before_industry,
        setup_calc=setup_calc,
        custom_setup_fee=override if override is not None else ZERO,
        setup_fee=setup_fee,
    )
    return FeeResult(monthly_fee=monthly_fee, setup_fee=setup_fee, breakdown=breakdown)


def _taas_inputs_complete(quote: QuoteInput) -> bool:
    # Counts of 0 are as good as unset; flags must be explicitly chosen.
    return bool(
        quote.revenue_band
        and quote.industry
        and quote.entity_type
        and quote.num_entities
        and quote.states_filed
        and quote.international_filing is not None
        and quote.num_business_owners
        and quote.bookkeeping_quality
        and quote.include_1040s is not None
        and quote.prior_years_unfiled is not None
        and quote.already_on_seed_bookkeeping is not None
    )


def calculate_taas_fees(
    data: QuoteData,
    tables: Optional[PricingTables] = None,
) -> FeeResult:
    """
    Calculate the TaaS monthly fee and prior-years (back-filing) fee.

    The monthly fee is the base plus additive upcharges, scaled by the
    industry and TaaS revenue multipliers, discounted 15% for existing
    bookkeeping clients, rounded to the nearest $5 and floored at the base
    rate. Each unfiled prior year costs half a year of the monthly fee,
    at least $1,000.

    Args:
        data: Quote form values (QuoteInput or raw form dict)
        tables: Pricing tables; defaults to the configured version

    Returns:
        FeeResult; the all-zero sentinel when required input is missing
    """
    quote = _quote(data)
    if not _taas_inputs_complete(quote):
        logger.debug("TaaS quote incomplete; pricing at zero")
        return zero_taas_result()

    t = _tables(tables)
    rules = t.taas

    # Custom counts come from the free-text field behind a capped dropdown
    entities = quote.custom_num_entities or quote.num_entities
    states = quote.custom_states_filed or quote.states_filed
    owners = quote.custom_num_business_owners or quote.num_business_owners

    entity_upcharge = ZERO
    if entities > rules.entity_threshold:
        entity_upcharge = (entities - rules.entity_threshold) * rules.entity_upcharge

    state_upcharge = ZERO
    if states > rules.state_threshold:
        additional_states = min(states - rules.state_threshold, rules.max_additional_states)
        state_upcharge = additional_states * rules.state_upcharge

    international_upcharge = rules.international_upcharge if quote.international_filing else ZERO

    owner_upcharge = ZERO
    if owners > rules.owner_threshold:
        owner_upcharge = (owners - rules.owner_threshold) * rules.owner_upcharge

    quality_upcharge = t.bookkeeping_quality_upcharge(quote.bookkeeping_quality)
    personal_1040 = owners * rules.personal_1040_fee if quote.include_1040s else ZERO

    before_multipliers = (
        rules.base_fee
        + entity_upcharge
        + state_upcharge
        + international_upcharge
        + owner_upcharge
        + quality_upcharge
        + personal_1040
    )

    industry_multiplier = t.industry_multiplier(quote.industry).monthly
    revenue_multiplier = t.taas_revenue_multiplier(quote.revenue_band)
    after_industry = before_multipliers * industry_multiplier
    after_multipliers = after_industry * revenue_multiplier

    seed_discount = ZERO
    if quote.already_on_seed_bookkeeping:
        seed_discount = after_multipliers * rules.seed_bookkeeping_discount
    discounted = after_multipliers - seed_discount

    monthly_fee = max(
        rules.minimum_monthly_fee,
        round_to_nearest(discounted, rules.monthly_rounding),
    )

    prior_years = quote.prior_years_unfiled
    per_year_fee = max(
        rules.prior_year_minimum_fee,
        monthly_fee * rules.prior_year_monthly_factor * 12,
    )
    setup_fee = max(monthly_fee, per_year_fee * prior_years) if prior_years > 0 else ZERO

    breakdown = TaasBreakdown(
        base=rules.base_fee,
        effective_num_entities=entities,
        effective_states_filed=states,
        effective_num_business_owners=owners,
        entity_upcharge=entity_upcharge,
        state_upcharge=state_upcharge,
        international_upcharge=international_upcharge,
        owner_upcharge=owner_upcharge,
        bookkeeping_quality_upcharge=quality_upcharge,
        personal_1040_upcharge=personal_1040,
        before_multipliers=before_multipliers,
        industry_multiplier=industry_multiplier,
        after_industry_multiplier=after_industry,
        revenue_multiplier=revenue_multiplier,
        after_multipliers=after_multipliers,
        seed_discount=seed_discount,
        discounted=discounted,
        final_monthly=monthly_fee,
        prior_years_unfiled=prior_years,
        per_year_fee=per_year_fee,
        setup_fee=setup_fee,
    )
    return FeeResult(monthly_fee=monthly_fee, setup_fee=setup_fee, breakdown=breakdown)


def resolve_services(quote: QuoteInput) -> tuple:
    """
    Which service lines a quote includes, as (bookkeeping, taas).

    Bookkeeping is on unless explicitly turned off; TaaS is off unless
    explicitly turned on. The newer service checkboxes force a line on.
    """
    includes_bookkeeping = bool(quote.service_bookkeeping) or quote.includes_bookkeeping is not False
    includes_taas = bool(quote.service_taas) or quote.includes_taas is True
    return includes_bookkeeping, includes_taas


def calculate_combined_fees(
    data: QuoteData,
    tables: Optional[PricingTables] = None,
) -> CombinedFeeResult:
    """
    Calculate fees for every service on the quote and their totals.

    This is the entry point for the HTTP layer, quote records and CRM sync.
    """
    quote = _quote(data)
    t = _tables(tables)
    includes_bookkeeping, includes_taas = resolve_services(quote)

    bookkeeping = calculate_bookkeeping_fees(quote, t) if includes_bookkeeping else zero_bookkeeping_result()
    taas = calculate_taas_fees(quote, t) if includes_taas else zero_taas_result()

    combined = FeeTotals(
        monthly_fee=bookkeeping.monthly_fee + taas.monthly_fee,
        setup_fee=bookkeeping.setup_fee + taas.setup_fee,
    )
    return CombinedFeeResult(
        bookkeeping=bookkeeping,
        taas=taas,
        combined=combined,
        includes_bookkeeping=includes_bookkeeping,
        includes_taas=includes_taas,
    )
