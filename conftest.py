"""
Root pytest configuration.

This conftest is loaded before test collection to ensure
src is in the Python path for all imports.
"""

import sys
from pathlib import Path

# Add src to path IMMEDIATELY when this file is loaded
src_path = Path(__file__).parent / "src"
src_str = str(src_path.absolute())

# Ensure it's at the very front
if src_str in sys.path:
    sys.path.remove(src_str)
sys.path.insert(0, src_str)


import pytest


@pytest.fixture(autouse=True)
def _reset_process_state():
    """Drop cached settings, pricing tables and approval codes between tests."""
    yield
    from approval.codes import reset_approval_store
    from config.pricing_config_loader import clear_config_cache
    from config.settings import get_settings
    from pricing.tables import get_pricing_tables

    get_settings.cache_clear()
    get_pricing_tables.cache_clear()
    clear_config_cache()
    reset_approval_store()


def pytest_configure(config):
    """Additional path setup during pytest configuration."""
    if src_str not in sys.path:
        sys.path.insert(0, src_str)
