"""
Cleanup override policy.

The cleanup project normally covers every month of the current calendar
year. A rep may override that (fewer months, or a custom setup fee), but
the quote can only be saved with an approval code issued for it.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional, Union

from pricing.calculator import custom_setup_fee
from pricing.models import QuoteInput

from .codes import ApprovalCodeStore

logger = logging.getLogger(__name__)

REASON_OTHER = "Other"
REASON_BRAND_NEW_BUSINESS = "Brand New Business"
REASON_BOOKS_CONFIRMED_CURRENT = "Books Confirmed Current"

OVERRIDE_REASONS = (
    REASON_BRAND_NEW_BUSINESS,
    REASON_BOOKS_CONFIRMED_CURRENT,
    REASON_OTHER,
)


class ApprovalRequiredError(Exception):
    """Raised when an overridden quote is saved without an approval code."""

    def __init__(self, contact_email: Optional[str] = None):
        self.contact_email = contact_email
        super().__init__("Cleanup override requires an approval code")


class InvalidApprovalCodeError(Exception):
    """Raised when a supplied approval code is unknown, used or expired."""

    def __init__(self, contact_email: Optional[str] = None):
        self.contact_email = contact_email
        super().__init__("Approval code is invalid, expired or already used")


def minimum_cleanup_months(today: Optional[date] = None) -> int:
    """Months of cleanup required without override: the current month number."""
    return (today or date.today()).month


def approval_request_blocker(
    data: Union[QuoteInput, Dict[str, Any], None],
    today: Optional[date] = None,
) -> Optional[str]:
    """
    Why an approval code cannot be requested for this quote yet.

    Returns:
        A message for the rep, or None when the request may be sent
    """
    quote = QuoteInput.from_form(data)
    if not quote.contact_email:
        return "Contact email is required"
    if not quote.override_reason:
        return "Please select a reason for override"

    reduced_months = (quote.cleanup_months or 0) < minimum_cleanup_months(today)

    if quote.override_reason == REASON_OTHER:
        if not (quote.custom_override_reason or "").strip():
            return "Please explain the reason for override"
        if not quote.custom_setup_fee and not reduced_months:
            return "Enter a custom setup fee OR reduce cleanup months below the minimum"
    elif quote.override_reason in (REASON_BRAND_NEW_BUSINESS, REASON_BOOKS_CONFIRMED_CURRENT):
        if not reduced_months:
            return "Reduce cleanup months below the minimum to request approval"

    return None


def needs_override_approval(data: Union[QuoteInput, Dict[str, Any], None]) -> bool:
    """
    Whether saving the quote requires an approval code.

    True for a cleanup override, and for any quote whose setup fee was
    replaced by a manually entered one, with or without the override flag.
    """
    quote = QuoteInput.from_form(data)
    return bool(quote.cleanup_override) or custom_setup_fee(quote) is not None


def require_override_approval(
    data: Union[QuoteInput, Dict[str, Any], None],
    store: ApprovalCodeStore,
    approval_code: Optional[str] = None,
) -> bool:
    """
    Gate for saving a quote.

    Quotes that need no approval pass untouched. An overridden quote, or
    one priced with a manual setup fee, needs a valid code for its contact
    email, which is consumed here.

    Returns:
        True if an approval code was consumed, False if none was needed

    Raises:
        ApprovalRequiredError: Override without any code
        InvalidApprovalCodeError: Code supplied but not valid for this quote
    """
    quote = QuoteInput.from_form(data)
    if not needs_override_approval(quote):
        return False

    code = (approval_code or "").strip()
    if not code:
        logger.warning(f"Override quote for {quote.contact_email} submitted without approval code")
        raise ApprovalRequiredError(quote.contact_email)

    if not store.validate(code, quote.contact_email or ""):
        logger.warning(f"Invalid approval code for {quote.contact_email}")
        raise InvalidApprovalCodeError(quote.contact_email)

    store.mark_used(code, quote.contact_email or "")
    return True
