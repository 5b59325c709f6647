"""
CRM deal payloads.

Translates a combined fee result into the deal, quote and line items the
CRM sync creates. Only the payload is built here; sending it is the sync
job's concern.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pricing.decimal_math import money
from pricing.models import CombinedFeeResult

QUOTE_VALID_DAYS = 30

LINE_MONTHLY_BOOKKEEPING = "Monthly Bookkeeping (Custom)"
LINE_CLEANUP_PROJECT = "Clean-Up / Catch-Up Project"
LINE_MONTHLY_TAAS = "Monthly TaaS (Custom)"
LINE_TAAS_PRIOR_YEARS = "TaaS Prior Years (Custom)"

# Product catalog entry each line item is billed against
PRODUCT_RECURRING = "recurring"
PRODUCT_PROJECT = "project"


@dataclass(frozen=True)
class CrmLineItem:
    """One priced line on the CRM quote."""
    name: str
    price: Decimal
    product: str
    quantity: int = 1

    @property
    def description(self) -> str:
        return f"Seed Financial {self.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "price": str(money(self.price)),
            "quantity": self.quantity,
            "product": self.product,
            "description": self.description,
        }


@dataclass(frozen=True)
class CrmDealPayload:
    """Deal, quote and line items for one quote."""
    deal_name: str
    quote_name: str
    amount: Decimal
    monthly_fee: Decimal
    setup_fee: Decimal
    expires_on: date
    line_items: List[CrmLineItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dealName": self.deal_name,
            "quoteName": self.quote_name,
            "amount": str(money(self.amount)),
            "monthlyFee": str(money(self.monthly_fee)),
            "setupFee": str(money(self.setup_fee)),
            "expiresOn": self.expires_on.isoformat(),
            "lineItems": [item.to_dict() for item in self.line_items],
        }


def service_label(includes_bookkeeping: bool, includes_taas: bool) -> str:
    """Service name used in deal and quote titles."""
    if includes_bookkeeping and includes_taas:
        return "Bookkeeping + TaaS"
    if includes_taas:
        return "TaaS"
    return "Bookkeeping"


def _line_items(fees: CombinedFeeResult) -> List[CrmLineItem]:
    items = []
    if fees.includes_bookkeeping:
        if fees.bookkeeping.monthly_fee > 0:
            items.append(CrmLineItem(LINE_MONTHLY_BOOKKEEPING, fees.bookkeeping.monthly_fee, PRODUCT_RECURRING))
        if fees.bookkeeping.setup_fee > 0:
            items.append(CrmLineItem(LINE_CLEANUP_PROJECT, fees.bookkeeping.setup_fee, PRODUCT_PROJECT))
    if fees.includes_taas:
        if fees.taas.monthly_fee > 0:
            items.append(CrmLineItem(LINE_MONTHLY_TAAS, fees.taas.monthly_fee, PRODUCT_RECURRING))
        if fees.taas.setup_fee > 0:
            items.append(CrmLineItem(LINE_TAAS_PRIOR_YEARS, fees.taas.setup_fee, PRODUCT_PROJECT))
    return items


def build_crm_deal(
    company_name: Optional[str],
    fees: CombinedFeeResult,
    today: Optional[date] = None,
) -> CrmDealPayload:
    """
    Build the CRM deal payload for a priced quote.

    The deal amount is one year of the combined monthly fee plus the
    combined setup fee. Line items come from the per-service results so a
    combined quote is still itemized per service.
    """
    company = (company_name or "").strip() or "Unnamed Company"
    label = service_label(fees.includes_bookkeeping, fees.includes_taas)
    monthly = fees.combined.monthly_fee
    setup = fees.combined.setup_fee

    return CrmDealPayload(
        deal_name=f"{company} - {label}",
        quote_name=f"{company} - {label} Services Quote",
        amount=monthly * 12 + setup,
        monthly_fee=monthly,
        setup_fee=setup,
        expires_on=(today or date.today()) + timedelta(days=QUOTE_VALID_DAYS),
        line_items=_line_items(fees),
    )


def describe_quote(fees: CombinedFeeResult) -> str:
    """Plain-text summary used as the CRM quote's description."""
    monthly = money(fees.combined.monthly_fee)
    setup = money(fees.combined.setup_fee)
    label = service_label(fees.includes_bookkeeping, fees.includes_taas)

    lines = [
        f"{label} Services Quote",
        "",
        "MONTHLY SERVICES:",
    ]
    if fees.includes_bookkeeping and fees.bookkeeping.monthly_fee > 0:
        lines.append(f"- Monthly Bookkeeping: ${money(fees.bookkeeping.monthly_fee)}/month")
    if fees.includes_taas and fees.taas.monthly_fee > 0:
        lines.append(f"- Monthly Tax-as-a-Service: ${money(fees.taas.monthly_fee)}/month")
    lines.append(f"- Annual Total (12 months): ${money(monthly * 12)}")

    if setup > 0:
        lines.extend(["", "ONE-TIME FEES:"])
        if fees.includes_bookkeeping and fees.bookkeeping.setup_fee > 0:
            lines.append(f"- Clean-Up / Catch-Up Project: ${money(fees.bookkeeping.setup_fee)}")
        if fees.includes_taas and fees.taas.setup_fee > 0:
            lines.append(f"- Prior Years Tax Filing: ${money(fees.taas.setup_fee)}")

    lines.extend(["", f"TOTAL QUOTE VALUE: ${money(monthly * 12 + setup)}"])
    return "\n".join(lines)
