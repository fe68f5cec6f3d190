"""Manual Override Capsule.

A manual override records a human-specified quantity. Once attached to a
material it is authoritative: the resolver never recomputes that item until
a human clears the override. Nothing in the engine creates overrides
implicitly; they are only built here, on explicit caller action.
"""

from datetime import datetime, timezone
from typing import Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import ErrorCode, ValidationError
from models.material import (
    ManualOverride,
    MaterialBase,
    OverriddenMaterial,
    ResolvedBy,
    UnresolvedMaterial,
)

logger = structlog.get_logger(__name__)


def create_manual_override(
    quantity: float,
    unit: str,
    reason: str,
    resolved_by: Union[ResolvedBy, str] = ResolvedBy.USER,
    now: Optional[datetime] = None,
) -> ManualOverride:
    """Build a manual override stamped with the current UTC time.

    Args:
        quantity: Human-specified quantity (finite, >= 0).
        unit: Unit of the quantity.
        reason: Free-text justification.
        resolved_by: "user", "foreman" or "owner".
        now: Timestamp to stamp instead of the current time.

    Returns:
        Frozen ManualOverride.

    Raises:
        ValidationError: If any value is invalid.
    """
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    try:
        return ManualOverride(
            quantity=quantity,
            unit=unit,
            reason=reason or "",
            resolved_by=resolved_by,
            timestamp=stamp,
        )
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(
            message=f"Invalid manual override: {first.get('msg')}",
            field=field,
            code=ErrorCode.INVALID_OVERRIDE,
        ) from e


def apply_manual_override(material: MaterialBase, override: ManualOverride) -> OverriddenMaterial:
    """Attach an override to a material, replacing any resolved quantity."""
    overridden = OverriddenMaterial(
        id=material.id,
        name=material.name,
        quantity=override.quantity,
        unit=override.unit,
        category=material.category,
        resolution_trace=override.describe(),
        manual_override=override,
    )
    logger.info(
        "manual_override_applied",
        material_id=material.id,
        material_name=material.name,
        quantity=override.quantity,
        unit=override.unit,
        resolved_by=override.resolved_by.value,
    )
    return overridden


def clear_manual_override(material: OverriddenMaterial) -> UnresolvedMaterial:
    """Remove an override, returning the material to the unresolved state.

    The quantity is dropped so the next batch resolves from the batch area.
    """
    logger.info(
        "manual_override_cleared",
        material_id=material.id,
        material_name=material.name,
    )
    return UnresolvedMaterial(
        id=material.id,
        name=material.name,
        unit=None,
        category=material.category,
    )
