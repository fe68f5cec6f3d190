"""Quantity resolution Pydantic models.

This module defines the request and result models exchanged with the
quantity resolver, plus the enums shared across the engine.
"""

from enum import Enum, IntEnum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class MaterialCategory(str, Enum):
    """Material category inferred from a material name."""

    PAINT = "paint"
    PRIMER = "primer"
    SEALANT = "sealant"
    FLOORING = "flooring"
    TILE = "tile"
    DRYWALL = "drywall"
    UNDERLAYMENT = "underlayment"
    INSULATION = "insulation"
    TRIM = "trim"
    ADHESIVE = "adhesive"
    GROUT = "grout"
    ROOFING = "roofing"
    CONCRETE = "concrete"
    LUMBER = "lumber"
    UNKNOWN = "unknown"


class ResolutionMethod(str, Enum):
    """How a quantity was derived."""

    PASSTHROUGH = "passthrough"      # supplied quantity, waste applied only
    COVERAGE_RATE = "coverage-rate"  # area / coverage rate
    OVERRIDE = "override"            # human-entered, never recomputed


class ConfidenceLevel(str, Enum):
    """Confidence in a resolved quantity."""

    HIGH = "high"       # Exact keyword match or explicit category
    MEDIUM = "medium"   # Keyword contained in the name, or V1 legacy
    LOW = "low"         # Partial-word match, degraded fallback or failure


class QuantityLogicVersion(IntEnum):
    """Quantity logic version for a project.

    V1 = Legacy passthrough (frozen, preserves historical budgets)
    V2 = Deterministic coverage-rate resolution
    """

    V1 = 1
    V2 = 2


# =============================================================================
# RESOLVER INPUT
# =============================================================================


class QuantityResolverInput(BaseModel):
    """A single resolution request.

    ``input_value`` is deliberately unconstrained here: NaN, infinity and
    negative numbers are reported by the resolver as an ``INVALID_INPUT``
    failure instead of raising at construction.
    """

    input_value: Optional[float] = Field(
        None, description="Measured value (area or material quantity); defaults to base_area"
    )
    input_unit: str = Field(default="", description="Unit of input_value (e.g., 'sq ft', 'gallon')")
    material_name: str = Field(default="", description="Free-text material name used for inference")
    waste_percent: Optional[float] = Field(
        None, description="Waste allowance 0-100; defaults to settings.default_waste_percent"
    )
    base_area: Optional[float] = Field(
        None, description="Area to cover; presence makes this an area-driven request"
    )
    material_type: Optional[MaterialCategory] = Field(
        None, description="Explicit category, skips name inference"
    )
    coverage_rate: Optional[float] = Field(
        None, description="Explicit coverage per unit, replaces the table value"
    )
    container_unit: Optional[str] = Field(
        None, description="Explicit output unit (e.g., 'gallon', 'box')"
    )

    @model_validator(mode="after")
    def default_input_value(self) -> "QuantityResolverInput":
        """Area-driven requests may omit input_value."""
        if self.input_value is None:
            if self.base_area is None:
                raise ValueError("input_value or base_area is required")
            self.input_value = self.base_area
        return self

    @property
    def is_area_driven(self) -> bool:
        """True when the request asks how much material covers ``base_area``."""
        return self.base_area is not None


# =============================================================================
# RESOLVER OUTPUT
# =============================================================================


class QuantityResolverOutput(BaseModel):
    """Result of resolving one material quantity.

    On success ``resolved_quantity`` is the net requirement and
    ``gross_quantity`` the purchasable whole-unit amount with waste applied.
    On failure ``error``/``error_code`` describe why and confidence is low.
    """

    success: bool = Field(..., description="Whether resolution succeeded")
    resolved_quantity: Optional[float] = Field(None, description="Net quantity, no waste")
    resolved_unit: Optional[str] = Field(None, description="Unit of resolved/gross quantity")
    gross_quantity: Optional[int] = Field(None, description="ceil(net x waste multiplier)")
    resolution_method: Optional[ResolutionMethod] = Field(
        None, description="Resolution method (omitted on failure)"
    )
    confidence: ConfidenceLevel = Field(..., description="Confidence in the result")
    calculation_trace: Optional[str] = Field(None, description="Audit formula string")
    category: Optional[MaterialCategory] = Field(None, description="Inferred category")
    matched_keyword: Optional[str] = Field(None, description="Coverage keyword that matched")
    logic_version: QuantityLogicVersion = Field(
        default=QuantityLogicVersion.V2, description="Logic version used"
    )
    error: Optional[str] = Field(None, description="Failure description")
    error_code: Optional[str] = Field(None, description="ErrorCode constant on failure")

    @model_validator(mode="after")
    def validate_result(self) -> "QuantityResolverOutput":
        """Enforce the success/failure invariants."""
        if self.success:
            if self.resolved_quantity is None or self.gross_quantity is None:
                raise ValueError("Successful resolution requires resolved and gross quantities")
            if not (self.gross_quantity >= self.resolved_quantity >= 0):
                raise ValueError(
                    f"Quantities must satisfy gross >= resolved >= 0, got: "
                    f"gross={self.gross_quantity}, resolved={self.resolved_quantity}"
                )
            if not self.calculation_trace:
                raise ValueError("Successful resolution requires a calculation trace")
        elif self.confidence != ConfidenceLevel.LOW:
            raise ValueError("Failed resolution must carry low confidence")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(mode="json", exclude_none=True)
