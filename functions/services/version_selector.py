"""Quantity logic version selection.

Projects created before the cutover keep V1 (legacy passthrough) so their
historical budgets never re-total; projects created at or after it use V2
(coverage-rate resolution). The cutover is an explicit argument, defaulting
to ``settings.quantity_v2_cutover``.
"""

from datetime import date, datetime, time, timezone
from typing import Optional, Union

import structlog

from config.settings import settings
from models.quantity import QuantityLogicVersion

logger = structlog.get_logger(__name__)

Timestamp = Union[datetime, date, str]


def _to_utc(value: Timestamp) -> Optional[datetime]:
    """Normalize a timestamp to an aware UTC datetime, or None if unparseable."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _coerce_version(explicit_version) -> Optional[QuantityLogicVersion]:
    try:
        return QuantityLogicVersion(int(explicit_version))
    except (TypeError, ValueError):
        logger.warning("explicit_version_ignored", explicit_version=explicit_version)
        return None


def select_version(
    project_created_at: Optional[Timestamp],
    explicit_version: Optional[Union[QuantityLogicVersion, int]] = None,
    cutover: Optional[Timestamp] = None,
) -> QuantityLogicVersion:
    """Choose the quantity logic version for a project.

    Args:
        project_created_at: Project creation time (datetime, date or ISO string).
            Naive values are treated as UTC.
        explicit_version: Test/admin override; wins unconditionally when valid.
        cutover: First instant that uses V2. Defaults to settings.

    Returns:
        QuantityLogicVersion.V1 or QuantityLogicVersion.V2. Missing or
        unparseable creation times select V1.
    """
    if explicit_version is not None:
        version = _coerce_version(explicit_version)
        if version is not None:
            return version

    boundary = _to_utc(cutover if cutover is not None else settings.quantity_v2_cutover)
    if boundary is None:
        logger.warning("invalid_cutover", cutover=str(cutover))
        return QuantityLogicVersion.V1

    created = _to_utc(project_created_at) if project_created_at is not None else None
    if created is None:
        logger.warning("invalid_project_created_at", project_created_at=str(project_created_at))
        return QuantityLogicVersion.V1

    return QuantityLogicVersion.V2 if created >= boundary else QuantityLogicVersion.V1


def should_use_quantity_resolver(
    project_created_at: Optional[Timestamp],
    explicit_version: Optional[Union[QuantityLogicVersion, int]] = None,
    cutover: Optional[Timestamp] = None,
) -> bool:
    """Check if coverage-rate resolution (V2) applies to this project."""
    return select_version(project_created_at, explicit_version, cutover) == QuantityLogicVersion.V2
