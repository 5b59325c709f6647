"""Pytest configuration and fixtures for test suite."""

import os
import sys
from datetime import date
from pathlib import Path

import pytest

# Set test environment BEFORE any other imports
os.environ.setdefault("QUOTE_ENVIRONMENT", "test")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


# Mid-year reference date: the minimum cleanup months is 6
MID_YEAR = date(2025, 6, 15)


@pytest.fixture
def tables():
    """Pricing tables from the shipped v1 configuration."""
    from pricing.tables import get_pricing_tables
    return get_pricing_tables("v1")


@pytest.fixture
def bookkeeping_quote():
    """Baseline bookkeeping form: $430/mo with a $1,950 cleanup."""
    return {
        "contactEmail": "owner@acme.example",
        "companyName": "Acme Widgets",
        "revenueBand": "25K-75K",
        "monthlyTransactions": "100-300",
        "industry": "Software/SaaS",
        "cleanupMonths": 6,
        "cleanupComplexity": "0.75",
        "qboSubscription": False,
    }


@pytest.fixture
def taas_quote():
    """TaaS-only form for an existing bookkeeping client: $205/mo."""
    return {
        "contactEmail": "owner@acme.example",
        "companyName": "Acme Widgets",
        "includesBookkeeping": False,
        "includesTaas": True,
        "revenueBand": "75K-250K",
        "industry": "Software/SaaS",
        "entityType": "LLC",
        "numEntities": 1,
        "statesFiled": 1,
        "internationalFiling": False,
        "numBusinessOwners": 1,
        "bookkeepingQuality": "Clean (Seed)",
        "include1040s": False,
        "priorYearsUnfiled": 0,
        "alreadyOnSeedBookkeeping": True,
    }


@pytest.fixture
def combined_quote(bookkeeping_quote, taas_quote):
    """Both services on one quote."""
    quote = {**taas_quote, **bookkeeping_quote}
    quote["includesBookkeeping"] = True
    quote["includesTaas"] = True
    return quote


@pytest.fixture
def approval_store():
    """A fresh approval code store with the default TTL."""
    from approval.codes import ApprovalCodeStore
    return ApprovalCodeStore(ttl_minutes=60, code_length=4)


@pytest.fixture
def client():
    """Test client for a freshly built app."""
    from fastapi.testclient import TestClient
    from web.app import create_app
    return TestClient(create_app())
