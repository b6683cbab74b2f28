"""
Unit tests for production rate resolution.

Run: pytest tests/unit/test_production_rate_service.py -v
"""

import pytest

from config.scheduling import SchedulingConfig
from models.fabric import FabricDefinition
from services.production_rate_service import (
    find_fabric_definition,
    resolve_rate,
    safe_fallback_rate,
)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def catalog():
    """Small fabric catalog."""
    return [
        FabricDefinition(
            name="Single Jersey 30/1",
            default_daily_rate=80,
            machine_rate_overrides={"M": 120},
        ),
        FabricDefinition(name="[RB-2] ليكرا ريب", default_daily_rate=60),
        FabricDefinition(name="Interlock", default_daily_rate=None),
    ]


# ===================
# FABRIC LOOKUP TESTS
# ===================

class TestFindFabricDefinition:
    """Tests for find_fabric_definition()"""

    def test_exact_match_ignores_case_and_spaces(self, catalog):
        """Exact match is case and whitespace insensitive."""
        found = find_fabric_definition("  single   JERSEY 30/1 ", catalog)
        assert found.name == "Single Jersey 30/1"

    def test_matches_short_name(self, catalog):
        """Catalog short name (code and keywords stripped) matches."""
        found = find_fabric_definition("ريب", catalog)
        assert found.name == "[RB-2] ليكرا ريب"

    def test_query_containing_catalog_name(self, catalog):
        """A longer operator-typed name still finds the catalog entry."""
        found = find_fabric_definition("Interlock white 40s", catalog)
        assert found.name == "Interlock"

    def test_catalog_name_containing_query(self, catalog):
        """A partial name finds the catalog entry."""
        found = find_fabric_definition("Jersey 30", catalog)
        assert found.name == "Single Jersey 30/1"

    def test_exact_match_wins_over_substring(self):
        """Exact match is preferred even when a substring match comes first."""
        catalog = [
            FabricDefinition(name="Rib Lycra"),
            FabricDefinition(name="Rib"),
        ]
        assert find_fabric_definition("Rib", catalog).name == "Rib"

    def test_empty_name_never_matches(self, catalog):
        """Empty or missing names match nothing."""
        assert find_fabric_definition("", catalog) is None
        assert find_fabric_definition(None, catalog) is None
        assert find_fabric_definition("   ", catalog) is None

    def test_no_match_returns_none(self, catalog):
        """Unknown fabric returns None."""
        assert find_fabric_definition("Fleece", catalog) is None

    def test_empty_catalog(self):
        """No catalog returns None."""
        assert find_fabric_definition("Rib", []) is None
        assert find_fabric_definition("Rib", None) is None


# ===================
# RATE RESOLUTION TESTS
# ===================

class TestResolveRate:
    """Tests for resolve_rate()"""

    def test_machine_override_wins(self, catalog):
        """Override (120) beats fabric default (80) for machine M."""
        assert resolve_rate("Single Jersey 30/1", "M", catalog, 50) == 120

    def test_default_rate_for_other_machines(self, catalog):
        """Machine N has no override and gets the fabric default."""
        assert resolve_rate("Single Jersey 30/1", "N", catalog, 50) == 80

    def test_fallback_when_fabric_has_no_rate(self, catalog):
        """Catalog entry without rates falls back to the machine rate."""
        assert resolve_rate("Interlock", "M", catalog, 150) == 150

    def test_fallback_when_fabric_unknown(self, catalog):
        """Unknown fabric returns the fallback directly."""
        assert resolve_rate("Fleece", "M", catalog, 90) == 90

    def test_non_positive_fallback_uses_default(self, catalog):
        """Zero, negative or missing fallback becomes the configured default."""
        assert resolve_rate("Fleece", "M", catalog, 0) == 100
        assert resolve_rate("Fleece", "M", catalog, -5) == 100
        assert resolve_rate("Fleece", "M", catalog, None) == 100
        assert resolve_rate("Fleece", "M", catalog, float("nan")) == 100

    def test_default_rate_is_configurable(self, catalog):
        """Injected config changes the last-resort rate."""
        config = SchedulingConfig(default_daily_rate=250)
        assert resolve_rate("Fleece", "M", catalog, 0, config) == 250

    def test_numeric_machine_id(self):
        """Override keys are text; numeric machine ids still match."""
        catalog = [FabricDefinition(name="Rib", machine_rate_overrides={7: 210})]
        assert resolve_rate("Rib", 7, catalog, 100) == 210

    def test_zero_override_ignored(self):
        """Non-positive overrides are dropped and the default applies."""
        catalog = [FabricDefinition(
            name="Rib",
            default_daily_rate=70,
            machine_rate_overrides={"M": 0},
        )]
        assert resolve_rate("Rib", "M", catalog, 100) == 70

    def test_always_positive(self, catalog):
        """Result is positive for any input."""
        for fabric in ("Single Jersey 30/1", "Interlock", "", None):
            for fallback in (0, -1, None, 40):
                assert resolve_rate(fabric, "X", catalog, fallback) > 0


class TestSafeFallbackRate:
    """Tests for safe_fallback_rate()"""

    def test_keeps_positive_rate(self):
        assert safe_fallback_rate(75) == 75

    def test_rejects_infinite(self):
        assert safe_fallback_rate(float("inf")) == 100

    def test_rejects_text(self):
        assert safe_fallback_rate("fast") == 100
