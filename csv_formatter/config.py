"""Host configuration using pydantic-settings."""
import logging
from functools import lru_cache

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .rules import DateOrder


class Settings(BaseSettings):
    """Settings for the HTTP host, loaded from CSV_FORMATTER_* environment variables.

    The cleaning core never reads these; the host passes what it needs
    (date order, preview size) into the pipeline explicitly.
    """

    # Branding
    app_name: str = "CSV Formatter Pro"
    tagline: str = "Instantly clean, normalize, and standardize messy CSV exports in seconds."

    # Payments are handled by an external checkout page
    payment_link: str = "https://buy.stripe.com/REPLACE_ME"
    environment: str = "development"

    max_upload_mb: float = Field(
        default=5.0,
        gt=0,
        description="Uploads larger than this are rejected before processing"
    )
    preview_rows: int = Field(
        default=6,
        ge=1,
        description="Rows shown in the preview (header + 5 rows)"
    )
    preview_columns: int = Field(
        default=6,
        ge=1,
        description="Columns shown per preview row"
    )
    date_order: DateOrder = Field(
        default=DateOrder.MDY,
        description="Field order for dates written as A/B/YYYY"
    )

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CSV_FORMATTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def simulate_unlock(self) -> bool:
        """Dev-only affordance that stands in for a completed payment."""
        return self.environment != "production"

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog for JSON output."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
