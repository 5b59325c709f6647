"""
FastAPI Routers.

- pricing: live fee calculation and pricing tables
- approval: cleanup override approval codes
- quotes: quote preparation for storage and CRM sync
- health: health check
"""

from .approval import approval_router
from .health import router as health_router
from .pricing import pricing_router
from .quotes import quotes_router

__all__ = [
    "approval_router",
    "health_router",
    "pricing_router",
    "quotes_router",
]
