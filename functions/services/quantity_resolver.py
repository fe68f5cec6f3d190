"""Quantity Resolver for the Quantity Engine.

Deterministic layer between raw measurements (AI analysis or user entry)
and the budget. Turns a measurement into a net quantity, a waste-adjusted
gross quantity rounded up to whole purchase units, a confidence grade and
an audit trace.

Flow: [ AI Analysis ] -> [ Quantity Resolver ] -> [ Materials ] -> [ Budget ]

Rules:
- Failures are returned as data, never raised
- Unknown materials fail; there is no guessing
- V1 (legacy) projects get passthrough waste scaling, frozen forever
- Overridden materials are never recomputed
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Context, Decimal, ROUND_CEILING, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import ERROR_MESSAGES, ErrorCode
from config.settings import settings
from models.material import (
    ManualOverride,
    MaterialBase,
    OverriddenMaterial,
    ResolvedMaterial,
    UnresolvedMaterial,
    parse_material,
)
from models.quantity import (
    ConfidenceLevel,
    MaterialCategory,
    QuantityLogicVersion,
    QuantityResolverInput,
    QuantityResolverOutput,
    ResolutionMethod,
)
from services.category_inference import MatchGrade, can_resolve, get_coverage_info, match_material
from services.coverage_rates import (
    CoverageRate,
    RunEstimate,
    get_coverage_rate,
    is_area_unit,
    is_linear_unit,
)
from services.manual_override import create_manual_override
from services.version_selector import Timestamp, select_version

logger = structlog.get_logger(__name__)

# Perimeter estimate for linear materials requested from an area:
# perimeter ~= 4 x sqrt(area) for a roughly square room, less ~15% for openings
PERIMETER_FACTOR = Decimal("4")
OPENINGS_FACTOR = Decimal("0.85")

# Transition strips: two 3 ft strips per ~200 sq ft zone
TRANSITION_ZONE_AREA = Decimal(200)
TRANSITIONS_PER_ZONE = 2
TRANSITION_LENGTH = 3

_HUNDRED = Decimal(100)
_FOUR_PLACES = Decimal("0.0001")

GRADE_CONFIDENCE: Dict[MatchGrade, ConfidenceLevel] = {
    MatchGrade.EXACT: ConfidenceLevel.HIGH,
    MatchGrade.WORD: ConfidenceLevel.MEDIUM,
    MatchGrade.PARTIAL: ConfidenceLevel.LOW,
}


# =============================================================================
# ARITHMETIC HELPERS
# =============================================================================


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Exact decimal for a finite, non-negative real number, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite() or number < 0:
        return None
    return number


def _ceil(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_CEILING))


def _round4(value: Decimal) -> Decimal:
    # Precision grows with the magnitude so huge finite values still quantize
    precision = max(28, value.adjusted() + 6)
    return value.quantize(_FOUR_PLACES, context=Context(prec=precision))


def _fmt(value: Decimal) -> str:
    """Render a decimal with at most 4 places and no trailing zeros."""
    text = format(_round4(value), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _fmt_multiplier(multiplier: Decimal) -> str:
    if multiplier == round(multiplier, 2):
        return format(round(multiplier, 2), "f")
    return _fmt(multiplier)


def _with_unit(value: str, unit: Optional[str]) -> str:
    return f"{value} {unit}" if unit else value


def waste_multiplier(waste_percent: Decimal) -> Decimal:
    """1 + waste_percent / 100."""
    return 1 + waste_percent / _HUNDRED


def estimate_run(area: Decimal, estimate: RunEstimate):
    """Estimate linear feet of a linear material from a floor area.

    Returns (run_ft, description) where run_ft is a whole number of feet.
    """
    if estimate == RunEstimate.TRANSITIONS:
        zones = max(1, _ceil(area / TRANSITION_ZONE_AREA))
        run = zones * TRANSITIONS_PER_ZONE * TRANSITION_LENGTH
        return run, (
            f"est. transitions {zones} zone(s) × {TRANSITIONS_PER_ZONE} × {TRANSITION_LENGTH} ft"
        )

    run = _ceil(PERIMETER_FACTOR * area.sqrt() * OPENINGS_FACTOR)
    return run, f"est. perimeter 4 × √{_fmt(area)} × 0.85"


# =============================================================================
# RESULT BUILDERS
# =============================================================================


def _failure(
    code: str,
    material_name: str,
    version: QuantityLogicVersion,
    error: Optional[str] = None,
    category: Optional[MaterialCategory] = None,
) -> QuantityResolverOutput:
    message = error or ERROR_MESSAGES[code]
    logger.warning(
        "quantity_resolution_failed",
        material_name=material_name,
        error_code=code,
        error=message,
        logic_version=int(version),
    )
    return QuantityResolverOutput(
        success=False,
        confidence=ConfidenceLevel.LOW,
        category=category,
        logic_version=version,
        error=message,
        error_code=code,
    )


def _parse_input(
    request: Union[QuantityResolverInput, Mapping[str, Any]]
) -> Optional[QuantityResolverInput]:
    if isinstance(request, QuantityResolverInput):
        return request
    try:
        return QuantityResolverInput.model_validate(request)
    except PydanticValidationError:
        return None


def _waste(request: QuantityResolverInput) -> Optional[Decimal]:
    raw = request.waste_percent if request.waste_percent is not None else settings.default_waste_percent
    waste = _to_decimal(raw)
    if waste is None or waste > _HUNDRED:
        return None
    return waste


# =============================================================================
# V1: LEGACY PASSTHROUGH
# =============================================================================


def _resolve_v1(request: QuantityResolverInput) -> QuantityResolverOutput:
    """Legacy waste scaling; must reproduce historical totals exactly."""
    version = QuantityLogicVersion.V1
    value = _to_decimal(request.input_value)
    if value is None:
        return _failure(ErrorCode.INVALID_INPUT, request.material_name, version)
    waste = _waste(request)
    if waste is None:
        return _failure(ErrorCode.INVALID_INPUT, request.material_name, version, "invalid waste percent")

    multiplier = waste_multiplier(waste)
    gross = _ceil(value * multiplier)
    unit = request.input_unit or None
    trace = (
        f"V1 legacy: {_with_unit(_fmt(value), unit)} × {_fmt_multiplier(multiplier)} waste "
        f"= {_with_unit(str(gross), unit)}"
    )
    return QuantityResolverOutput(
        success=True,
        resolved_quantity=float(value),
        resolved_unit=unit,
        gross_quantity=gross,
        resolution_method=ResolutionMethod.PASSTHROUGH,
        confidence=ConfidenceLevel.MEDIUM,
        calculation_trace=trace,
        logic_version=version,
    )


# =============================================================================
# V2: DETERMINISTIC RESOLUTION
# =============================================================================


def _select_entry(request: QuantityResolverInput):
    """Pick the coverage entry and base confidence for a request.

    Returns (entry, confidence) or None when the category is unknown.
    """
    match = match_material(request.material_name)

    explicit = request.material_type
    if explicit is not None and explicit != MaterialCategory.UNKNOWN:
        if match is not None and match.category == explicit:
            return match.rate, ConfidenceLevel.HIGH
        return get_coverage_rate(explicit.value), ConfidenceLevel.HIGH

    if match is None:
        return None
    return match.rate, GRADE_CONFIDENCE[match.grade]


def _resolve_v2(request: QuantityResolverInput) -> QuantityResolverOutput:
    version = QuantityLogicVersion.V2
    name = request.material_name

    # Step 1: validate untrusted numbers
    value = _to_decimal(request.input_value)
    if value is None:
        return _failure(ErrorCode.INVALID_INPUT, name, version)
    area = None
    if request.is_area_driven:
        area = _to_decimal(request.base_area)
        if area is None:
            return _failure(ErrorCode.INVALID_INPUT, name, version, "invalid base area")
    waste = _waste(request)
    if waste is None:
        return _failure(ErrorCode.INVALID_INPUT, name, version, "invalid waste percent")

    # Step 2: category
    selected = _select_entry(request)
    if selected is None:
        return _failure(ErrorCode.UNRESOLVABLE_CATEGORY, name, version, category=MaterialCategory.UNKNOWN)
    entry, confidence = selected

    # Step 3: coverage lookup and net quantity
    category = request.material_type if entry is None else entry.category
    coverage = entry.coverage_per_area if entry is not None else None
    if request.coverage_rate is not None:
        coverage = request.coverage_rate
    coverage = _to_decimal(coverage)
    unit = request.container_unit or (entry.unit if entry is not None else None)
    if coverage is None or coverage == 0 or not unit:
        return _failure(ErrorCode.MISSING_COVERAGE_RATE, name, version, category=category)

    # Step 4: waste multiplier
    multiplier = waste_multiplier(waste)
    mult_text = _fmt_multiplier(multiplier)

    if area is None:
        # Request already expresses a material quantity
        net = value
        out_unit = request.input_unit or unit
        method = ResolutionMethod.PASSTHROUGH
        gross = _ceil(net * multiplier)
        trace = (
            f"{_fmt(value)} {out_unit} (supplied quantity) × {mult_text} waste = {gross} {out_unit}"
        )
    elif entry is not None and entry.is_linear and not is_linear_unit(request.input_unit):
        # Linear material measured as an area: estimate the run
        run, estimate_text = estimate_run(area, entry.run_estimate)
        net = Decimal(run) / coverage
        out_unit = unit
        method = ResolutionMethod.COVERAGE_RATE
        confidence = ConfidenceLevel.LOW
        gross = _ceil(Decimal(run) * multiplier / coverage)
        trace = (
            f"{_fmt(area)} sq ft area → {estimate_text} = {run} linear ft "
            f"÷ {_fmt(coverage)} linear ft/{unit} = {_fmt(net)} {unit} "
            f"× {mult_text} waste = {gross} {unit}"
        )
    else:
        in_unit = entry.input_unit if entry is not None else (request.input_unit or "sq ft")
        net = area / coverage
        out_unit = unit
        method = ResolutionMethod.COVERAGE_RATE
        gross = _ceil(area * multiplier / coverage)
        trace = (
            f"{_fmt(area)} {in_unit} ÷ {_fmt(coverage)} {in_unit}/{unit} = {_fmt(net)} {unit} "
            f"× {mult_text} waste = {gross} {unit}"
        )

    output = QuantityResolverOutput(
        success=True,
        resolved_quantity=float(_round4(net)),
        resolved_unit=out_unit,
        gross_quantity=gross,
        resolution_method=method,
        confidence=confidence,
        calculation_trace=trace,
        category=category,
        matched_keyword=entry.keyword if entry is not None else None,
        logic_version=version,
    )
    logger.debug(
        "quantity_resolved",
        material_name=name,
        category=category.value if category else None,
        method=method.value,
        confidence=confidence.value,
        gross_quantity=gross,
        unit=out_unit,
    )
    return output


def resolve_quantity(
    request: Union[QuantityResolverInput, Mapping[str, Any]],
    version: QuantityLogicVersion = QuantityLogicVersion.V2,
) -> QuantityResolverOutput:
    """Resolve one material quantity.

    Args:
        request: QuantityResolverInput or an equivalent mapping.
        version: Logic version (see services.version_selector).

    Returns:
        QuantityResolverOutput. Never raises; every failure is reported
        through ``success=False`` with ``error`` and ``error_code``.
    """
    logic_version = _coerce_logic_version(version)
    parsed = _parse_input(request)
    if parsed is None or logic_version is None:
        name = str(request.get("material_name", "")) if isinstance(request, Mapping) else ""
        if parsed is not None:
            name = parsed.material_name
        error = None if logic_version is not None else "invalid logic version"
        return _failure(
            ErrorCode.INVALID_INPUT, name, logic_version or QuantityLogicVersion.V2, error
        )

    try:
        if logic_version == QuantityLogicVersion.V1:
            return _resolve_v1(parsed)
        return _resolve_v2(parsed)
    except Exception as e:
        logger.exception("quantity_resolver_error", material_name=parsed.material_name)
        return _failure(
            ErrorCode.INTERNAL_ERROR,
            parsed.material_name,
            logic_version,
            f"{ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR]}: {e}",
        )


def _coerce_logic_version(version: Any) -> Optional[QuantityLogicVersion]:
    try:
        return QuantityLogicVersion(version)
    except ValueError:
        return None


def measurement_request(
    measurement: Mapping[str, Any],
    material_name: str,
    waste_percent: Optional[float] = None,
) -> Dict[str, Any]:
    """Build a resolver request from a raw AI measurement.

    The producer supplies ``{total_area, unit, confidence}``. An area unit
    (or no unit) makes the request area-driven; any other unit is treated
    as an already-expressed material quantity. Values are left unchecked
    here; resolve_quantity() validates them.
    """
    value = measurement.get("total_area")
    unit = measurement.get("unit") or "sq ft"
    request: Dict[str, Any] = {
        "input_value": value,
        "input_unit": unit,
        "material_name": material_name,
        "waste_percent": waste_percent,
    }
    if is_area_unit(unit) or is_linear_unit(unit):
        request["base_area"] = value
    return request


def resolve_measurement(
    measurement: Mapping[str, Any],
    material_name: str,
    waste_percent: Optional[float] = None,
    version: QuantityLogicVersion = QuantityLogicVersion.V2,
) -> QuantityResolverOutput:
    """Resolve one material straight from an AI measurement. Never raises."""
    if not isinstance(measurement, Mapping):
        return _failure(ErrorCode.INVALID_INPUT, material_name, QuantityLogicVersion.V2)

    logger.debug(
        "measurement_received",
        material_name=material_name,
        total_area=measurement.get("total_area"),
        unit=measurement.get("unit"),
        measurement_confidence=measurement.get("confidence"),
    )
    return resolve_quantity(measurement_request(measurement, material_name, waste_percent), version)


# =============================================================================
# BATCH RESOLVER
# =============================================================================


@dataclass
class BatchResolution:
    """Partitioned result of resolving a list of materials.

    Attributes:
        resolved: Resolved and overridden items, in input order
        failed: Items that could not be resolved, with error annotations
        summary: "{n} of {m} materials resolved."
        version: Logic version used
    """

    resolved: List[MaterialBase] = field(default_factory=list)
    failed: List[UnresolvedMaterial] = field(default_factory=list)
    summary: str = ""
    version: QuantityLogicVersion = QuantityLogicVersion.V2

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "resolved": [item.model_dump(mode="json") for item in self.resolved],
            "failed": [item.model_dump(mode="json") for item in self.failed],
            "summary": self.summary,
            "version": int(self.version),
        }


def _source_measurement(material: MaterialBase):
    if isinstance(material, ResolvedMaterial):
        return material.source_quantity, material.source_unit
    return material.quantity, material.unit


def build_request(
    material: MaterialBase,
    base_area: float,
    waste_percent: Optional[float],
    version: QuantityLogicVersion = QuantityLogicVersion.V2,
) -> QuantityResolverInput:
    """Build the resolver request for one material.

    Own quantity wins over the batch area. An own quantity measured in an
    area or linear unit is treated as the surface (or run) to cover.
    """
    quantity, unit = _source_measurement(material)

    if version == QuantityLogicVersion.V1:
        return QuantityResolverInput(
            input_value=quantity if quantity is not None else base_area,
            input_unit=unit or "",
            material_name=material.name,
            waste_percent=waste_percent,
        )

    if quantity is not None:
        if is_area_unit(unit) or is_linear_unit(unit):
            return QuantityResolverInput(
                input_value=quantity,
                input_unit=unit,
                material_name=material.name,
                waste_percent=waste_percent,
                base_area=quantity,
            )
        return QuantityResolverInput(
            input_value=quantity,
            input_unit=unit or "",
            material_name=material.name,
            waste_percent=waste_percent,
        )

    return QuantityResolverInput(
        input_value=base_area,
        input_unit=unit if is_linear_unit(unit) else "sq ft",
        material_name=material.name,
        waste_percent=waste_percent,
        base_area=base_area,
    )


def _mark_resolved(material: MaterialBase, result: QuantityResolverOutput) -> ResolvedMaterial:
    # Only the item's own measurement is kept; batch-area items re-read the
    # current batch area on the next pass
    source_quantity, source_unit = _source_measurement(material)
    return ResolvedMaterial(
        id=material.id,
        name=material.name,
        quantity=result.gross_quantity,
        unit=result.resolved_unit,
        category=result.category or material.category,
        resolution_trace=result.calculation_trace,
        net_quantity=result.resolved_quantity,
        source_quantity=source_quantity,
        source_unit=source_unit,
        resolution_method=result.resolution_method,
        confidence=result.confidence,
    )


def _mark_failed(material: MaterialBase, error: Optional[str], error_code: Optional[str]) -> UnresolvedMaterial:
    if isinstance(material, UnresolvedMaterial):
        return material.model_copy(update={"error": error, "error_code": error_code})
    quantity, unit = _source_measurement(material)
    return UnresolvedMaterial(
        id=material.id,
        name=material.name,
        quantity=quantity,
        unit=unit,
        category=material.category,
        error=error,
        error_code=error_code,
    )


def _fallback_name(data: Any) -> str:
    if isinstance(data, Mapping):
        return str(data.get("name") or data.get("item") or "Unknown")
    return "Unknown"


def resolve_materials_batch(
    materials: Iterable[Union[MaterialBase, Mapping[str, Any]]],
    base_area: float,
    waste_percent: Optional[float] = None,
    version: QuantityLogicVersion = QuantityLogicVersion.V2,
) -> BatchResolution:
    """Resolve a list of materials, isolating per-item failures.

    Args:
        materials: Material models or dicts.
        base_area: Area used for items without their own quantity.
        waste_percent: Waste allowance 0-100 (default from settings).
        version: Logic version (see services.version_selector).

    Returns:
        BatchResolution with input order preserved in both partitions.
        Overridden items are passed through unchanged in ``resolved``.
    """
    batch = BatchResolution(version=_coerce_logic_version(version) or QuantityLogicVersion.V2)
    total = 0

    for raw in materials or ():
        total += 1
        try:
            material = parse_material(raw)
        except (PydanticValidationError, TypeError, ValueError):
            batch.failed.append(UnresolvedMaterial(
                name=_fallback_name(raw),
                error="invalid material item",
                error_code=ErrorCode.INVALID_INPUT,
            ))
            continue

        if isinstance(material, OverriddenMaterial):
            batch.resolved.append(material)
            continue

        try:
            request = build_request(material, base_area, waste_percent, version)
            result = resolve_quantity(request, version)
        except PydanticValidationError:
            batch.failed.append(_mark_failed(
                material, ERROR_MESSAGES[ErrorCode.INVALID_INPUT], ErrorCode.INVALID_INPUT
            ))
            continue
        except Exception as e:
            logger.exception("batch_item_error", material_name=material.name)
            batch.failed.append(_mark_failed(
                material,
                f"{ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR]}: {e}",
                ErrorCode.INTERNAL_ERROR,
            ))
            continue

        if result.success:
            batch.resolved.append(_mark_resolved(material, result))
        else:
            batch.failed.append(_mark_failed(material, result.error, result.error_code))

    batch.summary = f"{len(batch.resolved)} of {total} materials resolved."
    logger.info(
        "batch_resolution_complete",
        total=total,
        resolved=len(batch.resolved),
        failed=len(batch.failed),
        logic_version=int(batch.version),
    )
    return batch


# =============================================================================
# PROJECT-BOUND FACADE
# =============================================================================


class QuantityResolver:
    """Quantity resolution bound to one project's settings.

    Selects the logic version once from the project's creation time (or an
    explicit override) and applies the project's base area and waste percent
    to every call.
    """

    def __init__(
        self,
        project_created_at: Optional[Timestamp] = None,
        explicit_version: Optional[Union[QuantityLogicVersion, int]] = None,
        base_area: float = 0.0,
        waste_percent: Optional[float] = None,
        cutover: Optional[Timestamp] = None,
    ):
        if project_created_at is None:
            project_created_at = datetime.now(timezone.utc)
        self.version = select_version(project_created_at, explicit_version, cutover)
        self.base_area = base_area
        self.waste_percent = waste_percent

    @property
    def is_v2(self) -> bool:
        return self.version == QuantityLogicVersion.V2

    def resolve_single(
        self, request: Union[QuantityResolverInput, Mapping[str, Any]]
    ) -> QuantityResolverOutput:
        """Resolve one request, filling in the project's waste percent."""
        if self.waste_percent is not None:
            if isinstance(request, QuantityResolverInput):
                if request.waste_percent is None:
                    request = request.model_copy(update={"waste_percent": self.waste_percent})
            elif isinstance(request, Mapping) and request.get("waste_percent") is None:
                request = {**request, "waste_percent": self.waste_percent}
        return resolve_quantity(request, self.version)

    def resolve_materials(
        self, materials: Iterable[Union[MaterialBase, Mapping[str, Any]]]
    ) -> BatchResolution:
        """Resolve a material list with the project's area and waste."""
        return resolve_materials_batch(materials, self.base_area, self.waste_percent, self.version)

    def create_manual_override(
        self, quantity: float, unit: str, reason: str, resolved_by: str = "user"
    ) -> ManualOverride:
        """Build a manual override; the resolver never computes it."""
        return create_manual_override(quantity, unit, reason, resolved_by)

    @staticmethod
    def get_coverage_info(material_name: str) -> Optional[CoverageRate]:
        return get_coverage_info(material_name)

    @staticmethod
    def can_resolve(material_name: str) -> bool:
        return can_resolve(material_name)
