"""Resolution Audit Logger for the Quantity Engine.

Provides structlog configuration and a formatted, human-readable report of
a batch resolution so a foreman can audit every quantity against its trace.
"""

import logging
from typing import Optional

import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)

# Visual markers for the audit report
BANNER_WIDTH = 80
REPORT_BANNER_CHAR = "═"
FAILED_BANNER_CHAR = "!"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structlog with ISO timestamps and console rendering.

    Args:
        level: Log level name; defaults to settings.log_level.
    """
    level_name = (level or settings.log_level).upper()
    level_value = logging.getLevelName(level_name)
    if not isinstance(level_value, int):
        level_value = logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
    )


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _quantity_text(quantity, unit) -> str:
    if quantity is None:
        return "-"
    text = f"{quantity:g}"
    return f"{text} {unit}" if unit else text


def format_batch_report(batch, project_id: Optional[str] = None) -> str:
    """Render a batch resolution as an audit report.

    Args:
        batch: BatchResolution from the quantity resolver.
        project_id: Optional project identifier for the header.

    Returns:
        Multi-line report string.
    """
    lines = [
        REPORT_BANNER_CHAR * BANNER_WIDTH,
        _create_banner(REPORT_BANNER_CHAR, f"QUANTITY RESOLUTION (V{int(batch.version)})"),
        REPORT_BANNER_CHAR * BANNER_WIDTH,
    ]
    if project_id:
        lines.append(f"║ Project  : {project_id}")
    lines.append(f"║ Summary  : {batch.summary}")
    lines.append(REPORT_BANNER_CHAR * BANNER_WIDTH)

    for item in batch.resolved:
        confidence = getattr(item, "confidence", None)
        grade = f" [{confidence.value}]" if confidence is not None else ""
        lines.append(f"  ✓ {item.name}: {_quantity_text(item.quantity, item.unit)}{grade}")
        if item.resolution_trace:
            lines.append(f"      {item.resolution_trace}")

    if batch.failed:
        lines.append(_create_banner(FAILED_BANNER_CHAR, "MANUAL INPUT REQUIRED"))
        for item in batch.failed:
            lines.append(f"  ✗ {item.name}: {item.error or 'unresolved'}")

    lines.append(REPORT_BANNER_CHAR * BANNER_WIDTH)
    return "\n".join(lines)


def log_batch_report(batch, project_id: Optional[str] = None) -> None:
    """Print the audit report and emit a structured summary event."""
    print(format_batch_report(batch, project_id))

    logger.info(
        "batch_report_logged",
        project_id=project_id,
        logic_version=int(batch.version),
        resolved=len(batch.resolved),
        failed=len(batch.failed),
        failed_materials=[item.name for item in batch.failed],
    )
