"""
Quote pricing engine.

Bookkeeping and Tax-as-a-Service fee calculators over versioned,
immutable pricing tables.
"""

from .calculator import (
    calculate_bookkeeping_fees,
    calculate_combined_fees,
    calculate_taas_fees,
    resolve_services,
)
from .models import (
    BookkeepingBreakdown,
    CombinedFeeResult,
    FeeResult,
    FeeTotals,
    QuoteInput,
    TaasBreakdown,
)
from .tables import (
    BookkeepingQuality,
    Industry,
    PricingTables,
    RevenueBand,
    TransactionVolume,
    get_pricing_tables,
)

__all__ = [
    "calculate_bookkeeping_fees",
    "calculate_taas_fees",
    "calculate_combined_fees",
    "resolve_services",
    "QuoteInput",
    "FeeResult",
    "FeeTotals",
    "CombinedFeeResult",
    "BookkeepingBreakdown",
    "TaasBreakdown",
    "PricingTables",
    "RevenueBand",
    "TransactionVolume",
    "Industry",
    "BookkeepingQuality",
    "get_pricing_tables",
]
