"""
Quote Routes

Prepares a quote for saving: validates the submission, prices it, builds
the stored record and the CRM payload, and enforces the override approval
gate. Storage and the CRM calls happen downstream.
"""

import logging

from fastapi import APIRouter, Request

from approval.codes import get_approval_store
from approval.policy import require_override_approval
from pricing.calculator import calculate_combined_fees, resolve_services
from pricing.models import QuoteInput
from pricing.tables import get_pricing_tables
from quotes.crm import build_crm_deal, describe_quote
from quotes.records import build_quote_record
from quotes.validation import validate_quote_submission
from services.logging_config import QuoteCalculationLogger
from web.api_errors import APIError, ErrorCode

from .pricing import read_form

logger = logging.getLogger(__name__)

quotes_router = APIRouter(prefix="/api/quotes", tags=["Quotes"])


@quotes_router.post("/prepare")
async def prepare_quote(request: Request):
    """
    Prepare a quote record and CRM payload.

    Errors:
        400 when the submission is incomplete or out of range
        409 when the quote cannot be priced yet
        403 when a cleanup override has no valid approval code
    """
    body = await read_form(request)
    quote = QuoteInput.from_form(body)
    tables = get_pricing_tables()
    audit = QuoteCalculationLogger(quote.contact_email, tables.version)

    issues = validate_quote_submission(quote)
    if issues:
        for issue in issues:
            audit.log_validation_error(issue.field, issue.message)
        raise APIError(
            code=ErrorCode.VALIDATION_ERROR,
            message="Quote is incomplete or invalid",
            field_errors=[issue.to_dict() for issue in issues],
        )

    audit.start_calculation(*resolve_services(quote))
    audit.log_inputs(quote)
    fees = calculate_combined_fees(quote, tables)
    audit.log_result(fees)

    record = build_quote_record(quote, fees)

    # Consumes the code, so only once everything else has passed
    approved = require_override_approval(quote, get_approval_store(), body.get("approvalCode"))
    if approved:
        audit.log_override(quote.override_reason, fees.bookkeeping.setup_fee)

    return {
        "quote": record,
        "fees": fees.to_dict(),
        "crm": build_crm_deal(quote.company_name, fees).to_dict(),
        "description": describe_quote(fees),
        "approved": approved,
    }
