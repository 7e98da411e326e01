"""Pytest configuration for the EcoFlow client test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    from ecoflow.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
