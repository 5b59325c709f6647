"""
Tests for CRM deal payloads.

Tests verify:
1. Deal and quote names follow the included services
2. The deal amount is a year of monthly fees plus setup
3. Line items are itemized per service, positive prices only
"""

import sys
import os
from datetime import date
from decimal import Decimal

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


def names(payload):
    return [item.name for item in payload.line_items]


class TestDealNames:

    def test_bookkeeping(self, bookkeeping_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        payload = build_crm_deal("Acme Widgets", calculate_combined_fees(bookkeeping_quote, tables))
        assert payload.deal_name == "Acme Widgets - Bookkeeping"
        assert payload.quote_name == "Acme Widgets - Bookkeeping Services Quote"

    def test_taas(self, taas_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        payload = build_crm_deal("Acme Widgets", calculate_combined_fees(taas_quote, tables))
        assert payload.deal_name == "Acme Widgets - TaaS"
        assert payload.quote_name == "Acme Widgets - TaaS Services Quote"

    def test_combined(self, combined_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        payload = build_crm_deal("Acme Widgets", calculate_combined_fees(combined_quote, tables))
        assert payload.deal_name == "Acme Widgets - Bookkeeping + TaaS"

    def test_missing_company_name(self, bookkeeping_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        payload = build_crm_deal(None, calculate_combined_fees(bookkeeping_quote, tables))
        assert payload.deal_name == "Unnamed Company - Bookkeeping"


class TestAmountAndLineItems:

    def test_amount(self, combined_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        payload = build_crm_deal("Acme Widgets", calculate_combined_fees(combined_quote, tables))
        # 635 * 12 + 1950
        assert payload.amount == Decimal("9570")
        assert payload.to_dict()["amount"] == "9570.00"

    def test_combined_line_items(self, combined_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        payload = build_crm_deal("Acme Widgets", calculate_combined_fees({**combined_quote, "priorYearsUnfiled": 2}, tables))
        assert names(payload) == [
            "Monthly Bookkeeping (Custom)",
            "Clean-Up / Catch-Up Project",
            "Monthly TaaS (Custom)",
            "TaaS Prior Years (Custom)",
        ]
        prices = [item.price for item in payload.line_items]
        assert prices == [Decimal("430"), Decimal("1950"), Decimal("205"), Decimal("2460")]

    def test_zero_priced_items_skipped(self, combined_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        payload = build_crm_deal("Acme Widgets", calculate_combined_fees(combined_quote, tables))
        assert "TaaS Prior Years (Custom)" not in names(payload)

    def test_no_cleanup_item_without_setup_fee(self, bookkeeping_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        fees = calculate_combined_fees({**bookkeeping_quote, "cleanupMonths": 0}, tables)
        assert names(build_crm_deal("Acme Widgets", fees)) == ["Monthly Bookkeeping (Custom)"]

    def test_line_item_dict(self, bookkeeping_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        payload = build_crm_deal("Acme Widgets", calculate_combined_fees(bookkeeping_quote, tables))
        item = payload.to_dict()["lineItems"][1]
        assert item == {
            "name": "Clean-Up / Catch-Up Project",
            "price": "1950.00",
            "quantity": 1,
            "product": "project",
            "description": "Seed Financial Clean-Up / Catch-Up Project",
        }

    def test_quote_expires_in_30_days(self, bookkeeping_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import build_crm_deal
        payload = build_crm_deal(
            "Acme Widgets", calculate_combined_fees(bookkeeping_quote, tables), today=date(2025, 6, 1)
        )
        assert payload.expires_on == date(2025, 7, 1)


class TestDescribeQuote:

    def test_summary(self, combined_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import describe_quote
        text = describe_quote(calculate_combined_fees(combined_quote, tables))
        assert text.startswith("Bookkeeping + TaaS Services Quote")
        assert "Monthly Bookkeeping: $430.00/month" in text
        assert "Monthly Tax-as-a-Service: $205.00/month" in text
        assert "Clean-Up / Catch-Up Project: $1950.00" in text
        assert "TOTAL QUOTE VALUE: $9570.00" in text

    def test_no_one_time_section_without_setup(self, taas_quote, tables):
        from pricing.calculator import calculate_combined_fees
        from quotes.crm import describe_quote
        text = describe_quote(calculate_combined_fees(taas_quote, tables))
        assert "ONE-TIME FEES" not in text
