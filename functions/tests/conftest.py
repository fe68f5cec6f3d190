"""Pytest configuration and shared fixtures for Quantity Engine tests."""

import os
import sys
from datetime import datetime, timezone

import pytest


# ============================================================================
# Ensure local imports work (models/, services/, config/, utils/)
# ============================================================================
#
# The codebase uses absolute imports like `from models...` / `from services...`.
# This guarantees that `functions/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Version Cutover
# ============================================================================

@pytest.fixture
def cutover():
    """V1/V2 cutover used across version tests."""
    return datetime(2026, 2, 8, tzinfo=timezone.utc)


@pytest.fixture
def legacy_created_at():
    """Creation time of a project that predates the cutover."""
    return datetime(2025, 11, 3, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def current_created_at():
    """Creation time of a project created after the cutover."""
    return datetime(2026, 5, 20, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# Materials
# ============================================================================

@pytest.fixture
def bathroom_materials():
    """Three bathroom materials, one unrecognizable."""
    from tests.fixtures.mock_materials import get_bathroom_materials
    return get_bathroom_materials()


@pytest.fixture
def basement_materials():
    """Basement materials mixing own quantities and area-driven items."""
    from tests.fixtures.mock_materials import get_basement_materials
    return get_basement_materials()


@pytest.fixture
def override_payload():
    """Material dict carrying a manual override."""
    from tests.fixtures.mock_materials import get_override_payload
    return get_override_payload()


@pytest.fixture
def fixed_now():
    """Deterministic timestamp for manual overrides."""
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
