"""Coverage Rate Table for the Quantity Engine.

Maps material-name keywords to the unit a material is bought in and the
area (or run length) one unit covers. Values are manufacturer-specification
averages for residential work; the table is compiled-in static data and is
versioned only by code deployment.

Keyword order in this table carries no meaning. Lookup precedence is
decided by category inference (longest keyword first).
"""

from typing import Dict, List, Optional, Tuple
from enum import Enum
from dataclasses import dataclass

from models.quantity import MaterialCategory


class CoverageDimension(Enum):
    """What one unit of material covers."""
    AREA = "area"      # sq ft of surface
    LINEAR = "linear"  # linear ft of run


class RunEstimate(Enum):
    """How a linear run is estimated when only a floor area is known."""
    PERIMETER = "perimeter"      # walls of a roughly square room
    TRANSITIONS = "transitions"  # doorway and floor-change strips per zone


@dataclass(frozen=True)
class CoverageRate:
    """Coverage data for a single material keyword."""
    keyword: str
    unit: str                 # purchase unit (gallon, box, sheet, ...)
    coverage_per_area: float  # input units covered by one purchase unit
    category: MaterialCategory
    input_unit: str = "sq ft"
    dimension: CoverageDimension = CoverageDimension.AREA
    run_estimate: RunEstimate = RunEstimate.PERIMETER

    @property
    def is_linear(self) -> bool:
        return self.dimension == CoverageDimension.LINEAR


def _linear(
    keyword: str,
    unit: str,
    rate: float,
    category: MaterialCategory,
    run_estimate: RunEstimate = RunEstimate.PERIMETER,
) -> CoverageRate:
    return CoverageRate(
        keyword=keyword,
        unit=unit,
        coverage_per_area=rate,
        category=category,
        input_unit="linear ft",
        dimension=CoverageDimension.LINEAR,
        run_estimate=run_estimate,
    )


# =============================================================================
# COVERAGE RATES
# =============================================================================

COVERAGE_RATES: Tuple[CoverageRate, ...] = (
    # Paints & liquids (sq ft per gallon)
    CoverageRate("paint", "gallon", 350, MaterialCategory.PAINT),
    CoverageRate("wall color", "gallon", 350, MaterialCategory.PAINT),
    CoverageRate("stain", "gallon", 300, MaterialCategory.PAINT),
    CoverageRate("primer", "gallon", 400, MaterialCategory.PRIMER),
    CoverageRate("sealant", "gallon", 200, MaterialCategory.SEALANT),
    CoverageRate("sealer", "gallon", 200, MaterialCategory.SEALANT),

    # Flooring (sq ft per box)
    CoverageRate("flooring", "box", 22, MaterialCategory.FLOORING),
    CoverageRate("laminate", "box", 22, MaterialCategory.FLOORING),
    CoverageRate("hardwood", "box", 20, MaterialCategory.FLOORING),
    CoverageRate("vinyl plank", "box", 24, MaterialCategory.FLOORING),
    CoverageRate("vinyl flooring", "box", 24, MaterialCategory.FLOORING),
    CoverageRate("vinyl floor", "box", 24, MaterialCategory.FLOORING),
    CoverageRate("carpet", "sq yd", 9, MaterialCategory.FLOORING),

    # Tile (sq ft per box)
    CoverageRate("tile", "box", 10, MaterialCategory.TILE),
    CoverageRate("ceramic tile", "box", 10, MaterialCategory.TILE),
    CoverageRate("porcelain tile", "box", 10, MaterialCategory.TILE),

    # Sheet goods (sq ft per sheet)
    CoverageRate("drywall", "sheet", 32, MaterialCategory.DRYWALL),
    CoverageRate("drywall 4x8", "sheet", 32, MaterialCategory.DRYWALL),
    CoverageRate("drywall 4x12", "sheet", 48, MaterialCategory.DRYWALL),
    CoverageRate("sheetrock", "sheet", 32, MaterialCategory.DRYWALL),
    CoverageRate("gypsum", "sheet", 32, MaterialCategory.DRYWALL),
    CoverageRate("plywood", "sheet", 32, MaterialCategory.DRYWALL),

    # Underlayment (sq ft per roll)
    CoverageRate("underlayment", "roll", 100, MaterialCategory.UNDERLAYMENT),
    CoverageRate("underlay", "roll", 100, MaterialCategory.UNDERLAYMENT),

    # Insulation (sq ft per roll)
    CoverageRate("insulation", "roll", 40, MaterialCategory.INSULATION),
    CoverageRate("batt", "roll", 40, MaterialCategory.INSULATION),
    CoverageRate("r-13 insulation", "roll", 40, MaterialCategory.INSULATION),
    CoverageRate("r-19 insulation", "roll", 48, MaterialCategory.INSULATION),
    CoverageRate("r19 insulation", "roll", 48, MaterialCategory.INSULATION),
    CoverageRate("r-30 insulation", "roll", 31, MaterialCategory.INSULATION),
    CoverageRate("r30 insulation", "roll", 31, MaterialCategory.INSULATION),

    # Trim (linear ft per piece)
    _linear("trim", "piece", 8, MaterialCategory.TRIM),
    _linear("baseboard", "piece", 8, MaterialCategory.TRIM),
    _linear("base board", "piece", 8, MaterialCategory.TRIM),
    _linear("crown molding", "piece", 8, MaterialCategory.TRIM),
    _linear("molding", "piece", 8, MaterialCategory.TRIM),
    _linear("moulding", "piece", 8, MaterialCategory.TRIM),
    _linear("casing", "piece", 8, MaterialCategory.TRIM),
    _linear("quarter round", "piece", 8, MaterialCategory.TRIM),

    # Transitions (linear ft per 3 ft strip)
    _linear("transition", "piece", 3, MaterialCategory.TRIM, RunEstimate.TRANSITIONS),
    _linear("transition strip", "piece", 3, MaterialCategory.TRIM, RunEstimate.TRANSITIONS),
    _linear("threshold", "piece", 3, MaterialCategory.TRIM, RunEstimate.TRANSITIONS),
    _linear("reducer strip", "piece", 3, MaterialCategory.TRIM, RunEstimate.TRANSITIONS),

    # Adhesives & grout (sq ft per bag/tube)
    CoverageRate("thinset", "bag", 50, MaterialCategory.ADHESIVE),
    CoverageRate("thin-set", "bag", 50, MaterialCategory.ADHESIVE),
    CoverageRate("adhesive", "tube", 40, MaterialCategory.ADHESIVE),
    CoverageRate("glue", "tube", 40, MaterialCategory.ADHESIVE),
    CoverageRate("grout", "bag", 25, MaterialCategory.GROUT),

    # Roofing (sq ft per bundle/roll)
    CoverageRate("shingle", "bundle", 33.3, MaterialCategory.ROOFING),
    CoverageRate("roofing", "roll", 400, MaterialCategory.ROOFING),
    CoverageRate("roofing felt", "roll", 400, MaterialCategory.ROOFING),
    CoverageRate("felt", "roll", 400, MaterialCategory.ROOFING),

    # Concrete (sq ft per bag at 4" depth)
    CoverageRate("concrete", "bag", 4, MaterialCategory.CONCRETE),
    CoverageRate("cement", "bag", 4, MaterialCategory.CONCRETE),

    # Lumber (linear ft per piece)
    _linear("lumber", "piece", 8, MaterialCategory.LUMBER),
    _linear("2x4", "piece", 8, MaterialCategory.LUMBER),
    _linear("2x6", "piece", 8, MaterialCategory.LUMBER),
)

_RATES_BY_KEYWORD: Dict[str, CoverageRate] = {rate.keyword: rate for rate in COVERAGE_RATES}


# Measurement units (as opposed to purchase units)
AREA_UNITS = frozenset({"sq ft", "sqft", "sf", "ft2", "ft²", "square feet", "sq. ft.", "m2", "m²", "sq m"})
LINEAR_UNITS = frozenset({"linear ft", "lin ft", "lf", "ft", "feet", "linear feet"})


def get_coverage_rates() -> Tuple[CoverageRate, ...]:
    """Get the full coverage rate table."""
    return COVERAGE_RATES


def get_coverage_rate(keyword: str) -> Optional[CoverageRate]:
    """Get the coverage entry for an exact keyword, or None."""
    return _RATES_BY_KEYWORD.get(keyword.strip().lower())


def keywords_for_category(category: MaterialCategory) -> List[str]:
    """Get all keywords mapping to a category, sorted alphabetically."""
    return sorted(rate.keyword for rate in COVERAGE_RATES if rate.category == category)


def normalize_unit(unit: Optional[str]) -> str:
    """Lower-case and trim a unit string."""
    return " ".join((unit or "").lower().split())


def is_area_unit(unit: Optional[str]) -> bool:
    return normalize_unit(unit) in AREA_UNITS


def is_linear_unit(unit: Optional[str]) -> bool:
    return normalize_unit(unit) in LINEAR_UNITS
