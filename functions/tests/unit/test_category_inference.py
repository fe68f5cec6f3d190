"""
Unit Tests for Category Inference and the Coverage Rate Table.

Tests:
- Keyword containment classification and the "unknown" terminal category
- Longest-keyword-first tie-break, then earliest position
- Match grading (exact / word / partial)
- Coverage table integrity
"""

import pytest

from models.quantity import MaterialCategory
from services.category_inference import (
    MatchGrade,
    can_resolve,
    find_matches,
    get_coverage_info,
    infer_category,
    match_material,
    normalize_name,
)
from services.coverage_rates import (
    COVERAGE_RATES,
    CoverageDimension,
    RunEstimate,
    get_coverage_rate,
    get_coverage_rates,
    is_area_unit,
    is_linear_unit,
    keywords_for_category,
)


# =============================================================================
# Test: Coverage Rate Table
# =============================================================================


class TestCoverageRateTable:
    """Static coverage data."""

    def test_keywords_are_unique(self):
        """Every keyword appears once."""
        keywords = [rate.keyword for rate in COVERAGE_RATES]
        assert len(keywords) == len(set(keywords))

    def test_keywords_are_normalized(self):
        """Keywords are stored lower-case and trimmed."""
        for rate in get_coverage_rates():
            assert rate.keyword == normalize_name(rate.keyword)

    def test_rates_are_positive(self):
        """Coverage per unit must be positive to divide by."""
        for rate in COVERAGE_RATES:
            assert rate.coverage_per_area > 0, rate.keyword

    def test_no_unknown_category_entries(self):
        """Unknown is a classification result, never table data."""
        assert all(rate.category != MaterialCategory.UNKNOWN for rate in COVERAGE_RATES)

    def test_every_category_has_primary_keyword(self):
        """Each category can be looked up by its own name."""
        for category in MaterialCategory:
            if category == MaterialCategory.UNKNOWN:
                continue
            rate = get_coverage_rate(category.value)
            assert rate is not None, category
            assert rate.category == category

    def test_tile_rate(self):
        """One box of tile covers 10 sq ft."""
        rate = get_coverage_rate("tile")
        assert rate.unit == "box"
        assert rate.coverage_per_area == 10

    def test_linear_entries(self):
        """Trim is bought by the piece against a linear run."""
        rate = get_coverage_rate("Baseboard")
        assert rate.dimension == CoverageDimension.LINEAR
        assert rate.is_linear
        assert rate.input_unit == "linear ft"

    def test_unknown_keyword(self):
        """Unknown keywords return None."""
        assert get_coverage_rate("unobtainium") is None

    def test_keywords_for_category_sorted(self):
        """Keywords for a category come back sorted."""
        keywords = keywords_for_category(MaterialCategory.TILE)
        assert keywords == sorted(keywords)
        assert "ceramic tile" in keywords
        assert "tile" in keywords

    @pytest.mark.parametrize("unit", ["sq ft", "SQFT", " sf ", "ft²", "m2"])
    def test_area_units(self, unit):
        """Area unit spellings are recognized."""
        assert is_area_unit(unit)
        assert not is_linear_unit(unit)

    @pytest.mark.parametrize("unit", ["linear ft", "LF", "lin ft"])
    def test_linear_units(self, unit):
        """Linear unit spellings are recognized."""
        assert is_linear_unit(unit)
        assert not is_area_unit(unit)

    def test_container_units_are_neither(self):
        """Purchase units are not measurement units."""
        assert not is_area_unit("gallon")
        assert not is_linear_unit("gallon")
        assert not is_area_unit(None)


# =============================================================================
# Test: infer_category
# =============================================================================


class TestInferCategory:
    """Name to category classification."""

    @pytest.mark.parametrize("name,expected", [
        ("Interior paint", MaterialCategory.PAINT),
        ("Ceramic tile", MaterialCategory.TILE),
        ("Laminate flooring", MaterialCategory.FLOORING),
        ("1/2 in. Sheetrock", MaterialCategory.DRYWALL),
        ("Kilz primer", MaterialCategory.PRIMER),
        ("Silicone sealant", MaterialCategory.SEALANT),
        ("Sanded grout", MaterialCategory.GROUT),
        ("Architectural shingles", MaterialCategory.ROOFING),
        ("Quikrete concrete mix", MaterialCategory.CONCRETE),
        ("2x4 studs", MaterialCategory.LUMBER),
        ("Crown molding", MaterialCategory.TRIM),
    ])
    def test_known_materials(self, name, expected):
        """Common material names classify to their category."""
        assert infer_category(name) == expected

    def test_unknown_material(self):
        """Names with no keyword are unknown, not an error."""
        assert infer_category("xyz-unknown-stuff") == MaterialCategory.UNKNOWN
        assert not can_resolve("xyz-unknown-stuff")

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_names(self, name):
        """Empty or missing names are unknown."""
        assert infer_category(name) == MaterialCategory.UNKNOWN

    def test_case_and_whitespace_insensitive(self):
        """Case and extra whitespace do not change the result."""
        assert infer_category("  CERAMIC    Tile ") == infer_category("ceramic tile")

    def test_deterministic(self):
        """Repeated calls give the same category."""
        name = "ceramic tile floor with grout"
        assert infer_category(name) == infer_category(name)
        assert match_material(name) == match_material(name)

    @pytest.mark.parametrize("name", ["Vinyl floor", "Luxury vinyl floor planks", "vinyl plank"])
    def test_vinyl_floor_is_flooring(self, name):
        """Vinyl named as a floor or plank is flooring."""
        assert infer_category(name) == MaterialCategory.FLOORING

    @pytest.mark.parametrize("name", ["Acoustic ceiling tile", "Ceiling tiles 2x2"])
    def test_ceiling_tile_is_not_tile(self, name):
        """Ceiling tile is never classified as floor or wall tile."""
        assert infer_category(name) == MaterialCategory.UNKNOWN
        assert all(m.category != MaterialCategory.TILE for m in find_matches(name))

    def test_ceiling_exclusion_keeps_other_categories(self):
        """The ceiling rule only removes tile; other keywords still match."""
        assert infer_category("Ceiling paint") == MaterialCategory.PAINT

    @pytest.mark.parametrize("name", [
        "Laminate transition strip",
        "Oak threshold",
        "Carpet to tile transition",
    ])
    def test_transitions_are_trim(self, name):
        """Transition and threshold strips are linear trim, not flooring."""
        match = match_material(name)
        assert match.category == MaterialCategory.TRIM
        assert match.rate.is_linear
        assert match.rate.run_estimate == RunEstimate.TRANSITIONS

    def test_can_resolve(self):
        """can_resolve mirrors infer_category."""
        assert can_resolve("Hardwood")
        assert not can_resolve("Dehumidifier")


# =============================================================================
# Test: Tie-break policy
# =============================================================================


class TestTieBreak:
    """Longest keyword wins, then earliest position."""

    def test_longest_keyword_wins(self):
        """'ceramic tile' shadows the shorter 'tile'."""
        match = match_material("ceramic tile")
        assert match.keyword == "ceramic tile"

    def test_longest_keyword_wins_across_categories(self):
        """'ceramic tile flooring' is tile: 'ceramic tile' outranks 'flooring'."""
        match = match_material("ceramic tile flooring")
        assert match.keyword == "ceramic tile"
        assert match.category == MaterialCategory.TILE

    def test_longer_keyword_wins_over_earlier(self):
        """Length beats position: 'grout sealer' resolves to sealer."""
        match = match_material("grout sealer")
        assert match.keyword == "sealer"
        assert match.category == MaterialCategory.SEALANT

    def test_equal_length_earliest_wins(self):
        """Equal-length keywords resolve to the one earlier in the name."""
        assert match_material("grout stain").category == MaterialCategory.GROUT
        assert match_material("stain grout").category == MaterialCategory.PAINT

    def test_equal_length_same_category(self):
        """'laminate' and 'flooring' are both 8 characters; laminate is first."""
        match = match_material("Laminate flooring")
        assert match.keyword == "laminate"

    def test_specific_rate_keywords(self):
        """Specific variants outrank the generic category keyword."""
        assert match_material("R-19 insulation batts").keyword == "r-19 insulation"
        assert match_material("Drywall 4x12 sheets").keyword == "drywall 4x12"
        assert match_material("roofing felt #15").keyword == "roofing felt"

    def test_find_matches_ordering(self):
        """find_matches returns every candidate in precedence order."""
        keywords = [m.keyword for m in find_matches("ceramic tile flooring")]
        assert keywords == ["ceramic tile", "flooring", "tile"]


# =============================================================================
# Test: Match grades
# =============================================================================


class TestMatchGrade:
    """Grades drive confidence."""

    def test_exact(self):
        """The whole name is the keyword."""
        assert match_material("Ceramic Tile").grade == MatchGrade.EXACT

    def test_word(self):
        """Keyword on word boundaries inside a longer name."""
        assert match_material("Interior wall paint").grade == MatchGrade.WORD

    def test_plural_counts_as_word(self):
        """A plural of the keyword is still a word match."""
        assert match_material("Ceramic tiles").grade == MatchGrade.WORD
        assert match_material("Architectural shingles").grade == MatchGrade.WORD

    def test_partial(self):
        """Keyword buried inside a larger word."""
        match = match_material("Paintable caulk")
        assert match.keyword == "paint"
        assert match.grade == MatchGrade.PARTIAL


# =============================================================================
# Test: get_coverage_info
# =============================================================================


class TestCoverageInfo:
    """Coverage entry that resolution would use."""

    def test_known(self):
        """Returns the winning entry."""
        info = get_coverage_info("Premium interior paint")
        assert info.keyword == "paint"
        assert info.unit == "gallon"
        assert info.coverage_per_area == 350

    def test_unknown(self):
        """Returns None for unknown materials."""
        assert get_coverage_info("Dehumidifier") is None
