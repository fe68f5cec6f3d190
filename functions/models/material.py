"""Material line item Pydantic models.

A material moves through three states, modeled as a tagged union on
``state`` so that resolution code can only ever be handed items it is
allowed to touch:

- UnresolvedMaterial: proposed by an estimate or blueprint analysis, or
  failed resolution (carries an error annotation)
- ResolvedMaterial: quantity set by the batch resolver, with a trace
- OverriddenMaterial: quantity set by a human; terminal until cleared
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from models.quantity import ConfidenceLevel, MaterialCategory, ResolutionMethod


# =============================================================================
# ENUMS
# =============================================================================


class MaterialState(str, Enum):
    """Resolution state of a material line item."""

    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    OVERRIDDEN = "overridden"


class ResolvedBy(str, Enum):
    """Role of the person who entered a manual override."""

    USER = "user"
    FOREMAN = "foreman"
    OWNER = "owner"


# =============================================================================
# MANUAL OVERRIDE
# =============================================================================


class ManualOverride(BaseModel):
    """Human-specified quantity that replaces automated resolution."""

    model_config = ConfigDict(frozen=True)

    override: Literal[True] = True
    quantity: float = Field(..., ge=0, allow_inf_nan=False, description="Override quantity")
    unit: str = Field(..., min_length=1, description="Override unit")
    reason: str = Field(default="", description="Why the override was entered")
    resolved_by: ResolvedBy = Field(default=ResolvedBy.USER, description="Who entered it")
    timestamp: str = Field(..., description="ISO-8601 UTC creation time")

    def describe(self) -> str:
        """Trace line for an overridden item."""
        text = f"Manual override: {self.quantity:g} {self.unit} by {self.resolved_by.value}"
        if self.reason:
            text += f" - {self.reason}"
        return text


# =============================================================================
# MATERIAL ITEMS
# =============================================================================


class MaterialBase(BaseModel):
    """Fields shared by every material state."""

    id: Optional[str] = Field(None, description="Line item ID")
    name: str = Field(..., description="Free-text material name")
    quantity: Optional[float] = Field(None, description="Current quantity, if any")
    unit: Optional[str] = Field(None, description="Unit of quantity")
    category: Optional[MaterialCategory] = Field(None, description="Resolved category")
    resolution_trace: Optional[str] = Field(None, description="How the quantity was derived")


class UnresolvedMaterial(MaterialBase):
    """A material awaiting resolution, or one whose resolution failed."""

    state: Literal["unresolved"] = "unresolved"
    resolved: Literal[False] = False
    error: Optional[str] = Field(None, description="Failure annotation from the resolver")
    error_code: Optional[str] = Field(None, description="ErrorCode constant for the failure")


class ResolvedMaterial(MaterialBase):
    """A material whose quantity was set by the resolver.

    ``quantity`` is the gross (purchasable) amount; ``source_quantity`` and
    ``source_unit`` keep the measurement it was derived from so re-running
    resolution reproduces the same numbers instead of compounding waste.
    """

    state: Literal["resolved"] = "resolved"
    resolved: Literal[True] = True
    net_quantity: float = Field(..., ge=0, description="Net quantity before waste")
    source_quantity: Optional[float] = Field(None, description="Measurement resolved from")
    source_unit: Optional[str] = Field(None, description="Unit of source_quantity")
    resolution_method: ResolutionMethod = Field(..., description="Resolution method")
    confidence: ConfidenceLevel = Field(..., description="Resolution confidence")


class OverriddenMaterial(MaterialBase):
    """A material carrying a manual override; never recomputed."""

    state: Literal["overridden"] = "overridden"
    resolved: Literal[True] = True
    manual_override: ManualOverride = Field(..., description="Authoritative override")

    @model_validator(mode="after")
    def fill_from_override(self) -> "OverriddenMaterial":
        """The override is the source of quantity, unit and trace when they are absent."""
        if self.quantity is None:
            self.quantity = self.manual_override.quantity
        if not self.unit:
            self.unit = self.manual_override.unit
        if not self.resolution_trace:
            self.resolution_trace = self.manual_override.describe()
        return self

    @property
    def resolution_method(self) -> ResolutionMethod:
        return ResolutionMethod.OVERRIDE


MaterialItem = Annotated[
    Union[UnresolvedMaterial, ResolvedMaterial, OverriddenMaterial],
    Field(discriminator="state"),
]

_material_adapter: TypeAdapter = TypeAdapter(MaterialItem)


def parse_material(data) -> Union[UnresolvedMaterial, ResolvedMaterial, OverriddenMaterial]:
    """Parse a material dict into its state-specific model.

    Dicts without a ``state`` key are treated as unresolved, or as
    overridden when they carry a ``manual_override``.
    """
    if isinstance(data, MaterialBase):
        return data
    payload = dict(data)
    if "state" not in payload:
        payload.pop("resolved", None)
        payload["state"] = (
            MaterialState.OVERRIDDEN.value
            if payload.get("manual_override")
            else MaterialState.UNRESOLVED.value
        )
    return _material_adapter.validate_python(payload)
