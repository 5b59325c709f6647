"""
Quote submission rules.

Checks applied when a quote is saved, as opposed to while it is being
priced. The calculators tolerate any partial input; a saved quote must be
complete and within range.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Union

from approval.policy import REASON_OTHER, minimum_cleanup_months
from pricing.calculator import resolve_services
from pricing.models import QuoteInput

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

MIN_CUSTOM_ENTITIES = 6
MIN_CUSTOM_STATES = 7
MAX_STATES = 50
MIN_CUSTOM_OWNERS = 6
MAX_PRIOR_YEARS_UNFILED = 5


@dataclass(frozen=True)
class FieldIssue:
    """One problem with one form field."""
    field: str
    message: str
    code: str = "invalid"

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code}


def _required(field: str, message: str) -> FieldIssue:
    return FieldIssue(field, message, "required")


def validate_quote_submission(
    data: Union[QuoteInput, Dict[str, Any], None],
    today: Optional[date] = None,
) -> List[FieldIssue]:
    """
    Validate a quote before it is saved.

    Args:
        data: Quote form values
        today: Reference date for the minimum cleanup months

    Returns:
        Every issue found; an empty list means the quote may be saved
    """
    quote = QuoteInput.from_form(data)
    issues: List[FieldIssue] = []
    includes_bookkeeping, includes_taas = resolve_services(quote)

    if not quote.contact_email:
        issues.append(_required("contactEmail", "Email is required"))
    elif not EMAIL_PATTERN.match(quote.contact_email):
        issues.append(FieldIssue("contactEmail", "Please enter a valid email address"))

    if not includes_bookkeeping and not includes_taas:
        issues.append(_required("services", "Select at least one service"))

    # Cleanup override
    if quote.cleanup_override:
        if not quote.override_reason:
            issues.append(_required(
                "overrideReason", "Override reason is required when cleanup override is enabled"
            ))
        elif quote.override_reason == REASON_OTHER:
            if not (quote.custom_override_reason or "").strip():
                issues.append(_required(
                    "customOverrideReason", "Please provide a detailed reason for the override"
                ))
            if not quote.custom_setup_fee:
                issues.append(_required(
                    "customSetupFee", "Please enter a custom setup fee for manual approval"
                ))

    if quote.cleanup_months is not None and quote.cleanup_months < 0:
        issues.append(FieldIssue("cleanupMonths", "Cannot be negative"))
    elif includes_bookkeeping and not quote.cleanup_override:
        minimum = minimum_cleanup_months(today)
        if (quote.cleanup_months or 0) < minimum:
            issues.append(FieldIssue(
                "cleanupMonths",
                f"Minimum {minimum} months required (current calendar year) unless override is approved",
                "minimum",
            ))

    if includes_taas:
        issues.extend(_taas_issues(quote))

    issues.extend(_range_issues(quote))
    return issues


def _taas_issues(quote: QuoteInput) -> List[FieldIssue]:
    issues = []
    if not quote.entity_type:
        issues.append(_required("entityType", "Entity type is required for TaaS quotes"))
    if not quote.num_entities:
        issues.append(_required("numEntities", "Number of entities is required for TaaS quotes"))
    if not quote.states_filed:
        issues.append(_required("statesFiled", "States filed is required for TaaS quotes"))
    if not quote.num_business_owners:
        issues.append(_required(
            "numBusinessOwners", "Number of business owners is required for TaaS quotes"
        ))
    if not quote.bookkeeping_quality:
        issues.append(_required("bookkeepingQuality", "Bookkeeping quality is required for TaaS quotes"))
    if quote.include_1040s is None:
        issues.append(_required("include1040s", "Please specify if 1040s should be included"))
    if quote.prior_years_unfiled is None:
        issues.append(_required("priorYearsUnfiled", "Prior years unfiled is required for TaaS quotes"))
    if quote.already_on_seed_bookkeeping is None:
        issues.append(_required(
            "alreadyOnSeedBookkeeping", "Please specify if already on Seed Bookkeeping"
        ))
    return issues


def _range_issues(quote: QuoteInput) -> List[FieldIssue]:
    issues = []
    if quote.num_entities is not None and quote.num_entities < 1:
        issues.append(FieldIssue("numEntities", "Must have at least 1 entity", "minimum"))
    if quote.custom_num_entities is not None and quote.custom_num_entities < MIN_CUSTOM_ENTITIES:
        issues.append(FieldIssue(
            "customNumEntities", f"Custom entities must be at least {MIN_CUSTOM_ENTITIES}", "minimum"
        ))
    if quote.states_filed is not None and quote.states_filed < 1:
        issues.append(FieldIssue("statesFiled", "Must file in at least 1 state", "minimum"))
    if quote.custom_states_filed is not None:
        if quote.custom_states_filed < MIN_CUSTOM_STATES:
            issues.append(FieldIssue(
                "customStatesFiled", f"Custom states must be at least {MIN_CUSTOM_STATES}", "minimum"
            ))
        elif quote.custom_states_filed > MAX_STATES:
            issues.append(FieldIssue("customStatesFiled", f"Maximum {MAX_STATES} states", "maximum"))
    if quote.num_business_owners is not None and quote.num_business_owners < 1:
        issues.append(FieldIssue("numBusinessOwners", "Must have at least 1 business owner", "minimum"))
    if (
        quote.custom_num_business_owners is not None
        and quote.custom_num_business_owners < MIN_CUSTOM_OWNERS
    ):
        issues.append(FieldIssue(
            "customNumBusinessOwners", f"Custom owners must be at least {MIN_CUSTOM_OWNERS}", "minimum"
        ))
    if quote.prior_years_unfiled is not None:
        if quote.prior_years_unfiled < 0:
            issues.append(FieldIssue("priorYearsUnfiled", "Cannot be negative", "minimum"))
        elif quote.prior_years_unfiled > MAX_PRIOR_YEARS_UNFILED:
            issues.append(FieldIssue(
                "priorYearsUnfiled", f"Maximum {MAX_PRIOR_YEARS_UNFILED} years", "maximum"
            ))
    return issues
