"""
Pricing Routes

Live fee calculation for the quote form and the active pricing tables.
The calculator never rejects input: an incomplete form prices at zero.
"""

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Request

from config.settings import get_settings
from pricing.calculator import calculate_combined_fees
from pricing.models import QuoteInput
from pricing.tables import get_pricing_tables
from services.logging_config import QuoteCalculationLogger

logger = logging.getLogger(__name__)

pricing_router = APIRouter(prefix="/api/pricing", tags=["Pricing"])


async def read_form(request: Request) -> Dict[str, Any]:
    """Request body as a dict; an empty or non-JSON body is an empty form."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.debug(f"Failed to parse request body: {e}")
        return {}
    return body if isinstance(body, dict) else {}


@pricing_router.post("/calculate")
async def calculate_pricing(request: Request):
    """
    Calculate bookkeeping, TaaS and combined fees for the form values.

    Returns per-service fees with their breakdowns, the combined totals
    and which services are included.
    """
    quote = QuoteInput.from_form(await read_form(request))
    tables = get_pricing_tables()

    audit = QuoteCalculationLogger(quote.contact_email, tables.version)
    fees = calculate_combined_fees(quote, tables)
    audit.log_result(fees)

    result = fees.to_dict()
    result["tableVersion"] = tables.version
    return result


@pricing_router.get("/tables")
async def pricing_tables():
    """Active pricing table version and its constants."""
    return {
        "version": get_settings().pricing_table_version,
        "tables": get_pricing_tables().to_dict(),
    }
