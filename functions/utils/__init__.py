"""Utility modules for the Quantity Engine."""

from utils.resolution_logger import (
    configure_logging,
    format_batch_report,
    log_batch_report,
)

__all__ = [
    "configure_logging",
    "format_batch_report",
    "log_batch_report",
]
