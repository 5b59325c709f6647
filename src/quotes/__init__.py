"""Quote submission, storage records and CRM payloads."""

from .crm import CrmDealPayload, CrmLineItem, build_crm_deal, describe_quote
from .records import QuoteNotPriceableError, build_quote_record
from .validation import FieldIssue, validate_quote_submission

__all__ = [
    "CrmDealPayload",
    "CrmLineItem",
    "build_crm_deal",
    "describe_quote",
    "QuoteNotPriceableError",
    "build_quote_record",
    "FieldIssue",
    "validate_quote_submission",
]
