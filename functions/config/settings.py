"""Quantity Engine configuration settings.

Loads configuration from environment variables with sensible defaults.
"""

import os
from datetime import datetime, timezone
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for local overrides (cutover date, waste default, log level)
load_dotenv()


DEFAULT_V2_CUTOVER = "2026-02-08T00:00:00+00:00"


def _parse_cutover(raw: str) -> datetime:
    """Parse the V1/V2 cutover timestamp; naive values are treated as UTC."""
    parsed = datetime.fromisoformat(raw.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    The cutover is read once here and handed to the version selector as an
    explicit argument, so tests can pass any cutover they like.
    """

    # Quantity logic versioning
    quantity_v2_cutover: datetime = field(
        default_factory=lambda: _parse_cutover(os.getenv("QUANTITY_V2_CUTOVER", DEFAULT_V2_CUTOVER))
    )

    # Resolution defaults
    default_waste_percent: float = field(
        default_factory=lambda: float(os.getenv("DEFAULT_WASTE_PERCENT", "10"))
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ValueError: If the default waste percent is outside 0-100.
        """
        if not 0 <= self.default_waste_percent <= 100:
            raise ValueError(
                f"DEFAULT_WASTE_PERCENT must be between 0 and 100, got {self.default_waste_percent}"
            )


# Singleton settings instance
settings = Settings()
