from pathlib import Path
import logging

from croniter import croniter
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Reconciliation behaviour (templates, languages, regrab interval, hole
    filling) is not configured here: it lives in the ``settings`` table and is
    read once per update pass into a ConfigSnapshot.
    """

    database_path: str = "./data/epg.db"
    epg_grabber_name: str = "EPG"
    epg_check_for_last_update: bool = True
    epg_purge_cron: str = "*/30 * * * *"  # Every 30 minutes
    epg_purge_misfire_grace_sec: int = 600
    epg_import_webhook_url: str | None = None
    epg_import_webhook_timeout_sec: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Validate database path is accessible."""
        path = Path(value)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return value
        except (OSError, PermissionError) as exc:
            raise ValueError(f"Cannot access database path '{value}': {exc}") from exc

    @field_validator("epg_import_webhook_url", mode="before")
    @classmethod
    def validate_webhook_url(cls, value):
        """Treat blank as unset and require HTTP/HTTPS otherwise."""
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            if not value.lower().startswith(("http://", "https://")):
                raise ValueError(f"Webhook URL must be HTTP/HTTPS: {value}")
        return value

    @field_validator("epg_purge_misfire_grace_sec")
    @classmethod
    def validate_misfire_grace(cls, value: int) -> int:
        """Validate scheduler misfire grace period (seconds)."""
        if value < 0:
            raise ValueError("epg_purge_misfire_grace_sec must be >= 0")
        return value

    @field_validator("epg_import_webhook_timeout_sec")
    @classmethod
    def validate_webhook_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("epg_import_webhook_timeout_sec must be > 0")
        return value

    @field_validator("epg_grabber_name")
    @classmethod
    def validate_grabber_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("epg_grabber_name must not be empty")
        return value.strip()

    @field_validator("epg_purge_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid."""
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Database: %s", self.database_path)
        logger.info("  Grabber Name: %s", self.epg_grabber_name)
        logger.info("  Check Last Update: %s", self.epg_check_for_last_update)
        logger.info("  Purge Schedule: %s", self.epg_purge_cron)
        logger.info("  Purge Misfire Grace: %ss", self.epg_purge_misfire_grace_sec)
        logger.info(
            "  Import Webhook: %s",
            "configured" if self.epg_import_webhook_url else "disabled",
        )


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
