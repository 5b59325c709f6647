"""
Approval Routes

A rep who overrides the cleanup policy requests a code here; the approver
receives it out of band and the rep enters it before saving the quote.
"""

import logging

from fastapi import APIRouter, Request

from approval.codes import get_approval_store
from approval.policy import approval_request_blocker
from pricing.calculator import calculate_combined_fees
from pricing.models import QuoteInput
from web.api_errors import APIError, ErrorCode

from .pricing import read_form

logger = logging.getLogger(__name__)

# Approvers subscribe to this logger; it is the code's delivery channel.
approval_requests_logger = logging.getLogger("approval.requests")

approval_router = APIRouter(prefix="/api/approval", tags=["Approval"])


@approval_router.post("/request")
async def request_approval(request: Request):
    """
    Issue an approval code for a cleanup override.

    The code is sent to approvers, not returned to the requester.
    """
    quote = QuoteInput.from_form(await read_form(request))

    blocker = approval_request_blocker(quote)
    if blocker:
        raise APIError(code=ErrorCode.APPROVAL_REQUEST_BLOCKED, message=blocker)

    fees = calculate_combined_fees(quote)
    snapshot = {
        "companyName": quote.company_name,
        "overrideReason": quote.override_reason,
        "customOverrideReason": quote.custom_override_reason,
        "cleanupMonths": quote.cleanup_months,
        "customSetupFee": quote.custom_setup_fee,
        "fees": fees.combined.to_dict(),
    }
    approval = get_approval_store().issue(quote.contact_email, snapshot)

    approval_requests_logger.info(
        f"Approval code {approval.code} requested for {approval.contact_email}",
        extra={'extra_data': snapshot},
    )
    return {
        "success": True,
        "message": "Approval request sent",
        "expiresAt": approval.expires_at.isoformat(),
    }


@approval_router.post("/validate")
async def validate_approval(request: Request):
    """Check an approval code against the quote's contact email."""
    body = await read_form(request)
    code = str(body.get("code") or body.get("approvalCode") or "")
    email = str(body.get("contactEmail") or "")

    if not code or not email:
        return {"valid": False, "message": "Approval code and contact email are required"}

    if get_approval_store().validate(code, email):
        return {"valid": True, "message": "Approval code is valid"}
    return {"valid": False, "message": "Invalid or expired approval code"}
