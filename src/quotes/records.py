"""
Quote record serialization.

Builds the dict that the quotes table stores from form values and the
combined fee result. Fees are stored as 2-decimal strings; counts the
form left empty get the same defaults the table expects.
"""

import logging
from typing import Any, Dict, Optional, Union

from approval.policy import needs_override_approval
from pricing.decimal_math import money
from pricing.models import CombinedFeeResult, QuoteInput

logger = logging.getLogger(__name__)


class QuoteNotPriceableError(Exception):
    """Raised when a quote with a zero monthly fee is about to be saved."""

    def __init__(self, contact_email: Optional[str] = None):
        self.contact_email = contact_email
        super().__init__("Quote cannot be saved until all pricing fields are complete")


def _money_str(value) -> str:
    return str(money(value))


def build_quote_record(
    data: Union[QuoteInput, Dict[str, Any], None],
    fees: CombinedFeeResult,
    approval_required: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Build a storable quote record.

    Args:
        data: Quote form values
        fees: Result of calculate_combined_fees for the same values
        approval_required: Override of the approval flag; defaults to
            needs_override_approval(quote)

    Returns:
        Record dict keyed by the quotes table's column names

    Raises:
        QuoteNotPriceableError: If the combined monthly fee is 0
    """
    quote = QuoteInput.from_form(data)
    if not fees.is_priceable:
        logger.info(f"Refusing to build record for unpriced quote ({quote.contact_email})")
        raise QuoteNotPriceableError(quote.contact_email)

    if approval_required is None:
        approval_required = needs_override_approval(quote)

    return {
        "contactEmail": quote.contact_email,
        "companyName": quote.company_name,
        "revenueBand": quote.revenue_band,
        "entityType": quote.entity_type,
        "transactionVolume": quote.monthly_transactions,
        "industryType": quote.industry,
        "bookkeepingComplexity": (
            str(quote.cleanup_complexity) if quote.cleanup_complexity is not None else None
        ),
        "bookkeepingQuality": quote.bookkeeping_quality,
        "cleanupMonths": quote.cleanup_months or 0,
        "cleanupOverride": bool(quote.cleanup_override),
        "overrideReason": quote.override_reason,
        "customOverrideReason": quote.custom_override_reason,
        "customSetupFee": quote.custom_setup_fee,
        "qboSubscription": bool(quote.qbo_subscription),
        "includesBookkeeping": fees.includes_bookkeeping,
        "includesTaas": fees.includes_taas,
        "numEntities": quote.num_entities or 1,
        "customNumEntities": quote.custom_num_entities,
        "statesFiled": quote.states_filed or 1,
        "customStatesFiled": quote.custom_states_filed,
        "internationalFiling": quote.international_filing,
        "numBusinessOwners": quote.num_business_owners or 1,
        "customNumBusinessOwners": quote.custom_num_business_owners,
        "include1040s": quote.include_1040s,
        "priorYearsUnfiled": quote.prior_years_unfiled or 0,
        "alreadyOnSeedBookkeeping": quote.already_on_seed_bookkeeping,
        "monthlyFee": _money_str(fees.combined.monthly_fee),
        "setupFee": _money_str(fees.combined.setup_fee),
        "taasMonthlyFee": _money_str(fees.taas.monthly_fee),
        "taasPriorYearsFee": _money_str(fees.taas.setup_fee),
        "approvalRequired": bool(approval_required),
    }
