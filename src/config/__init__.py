"""Configuration module for the quote pricing portal."""

from .pricing_config_loader import (
    PricingConfigError,
    PricingConfigLoader,
    get_config_loader,
)
from .settings import Settings, get_settings

__all__ = [
    "PricingConfigError",
    "PricingConfigLoader",
    "get_config_loader",
    "Settings",
    "get_settings",
]
