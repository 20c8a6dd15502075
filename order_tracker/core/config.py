"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Every value can be overridden through the environment or a local .env file,
which is how the listen port and the order workbook location are chosen per
deployment.

Usage:
    from order_tracker.core.config import get_settings

    settings = get_settings()
    print(settings.orders_path)

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing, verbose error bodies allowed
        PRODUCTION: Live shop
        STAGING: Pre-production copy of the shop
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


DEFAULT_MENU_CATALOG = {
    "cp100": "Chicken Pickle (100 g)",
    "cp250": "Chicken Pickle (250 g)",
    "gulab": "Gulabjamun (Box of 6)",
    "nuvvula": "Black Nuvvula Laddu (Box of 6)",
    "murukulu": "Murukulu 150 g",
}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # API Configuration
        api_host: Host to bind the API server
        api_port: Port for the API server

        # Storage
        data_directory: Directory holding the order workbook
        orders_filename: Workbook file name
        orders_sheet: Sheet holding the order rows
        excel_lock_timeout: Seconds to wait for the workbook lock

        # Business Configuration
        menu_catalog: Catalog item IDs mapped to display names
        enforce_status_progression: Reject backwards status moves
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Sweet Karam Order Tracker",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=5200,
        description="API server port"
    )

    # ==========================================================================
    # FILE STORAGE
    # ==========================================================================

    data_directory: str = Field(
        default="data",
        description="Directory for data files"
    )
    orders_filename: str = Field(
        default="orders.xlsx",
        description="Order workbook filename"
    )
    orders_sheet: str = Field(
        default="Orders",
        description="Worksheet holding the order rows"
    )
    excel_lock_timeout: int = Field(
        default=30,
        description="Seconds to wait for file lock"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    menu_catalog: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_MENU_CATALOG),
        description="Catalog item IDs mapped to display names"
    )
    enforce_status_progression: bool = Field(
        default=True,
        description="Only allow Pending -> Out for Delivery -> Delivered"
    )
    live_queue_size: int = Field(
        default=100,
        ge=1,
        description="Undelivered live events a client may hold before it is dropped"
    )

    # ==========================================================================
    # ADMIN
    # ==========================================================================

    admin_email: str = Field(
        default="admin@sweetkaram.com",
        description="Admin login for the bulk reset endpoint"
    )
    admin_password: str = Field(
        default="Admin@123",
        description="Admin password for the bulk reset endpoint"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def data_path(self) -> Path:
        return Path(self.data_directory)

    @property
    def orders_path(self) -> Path:
        """Full path of the order workbook."""
        return self.data_path / self.orders_filename

    @property
    def lock_path(self) -> Path:
        return self.data_path / f"{self.orders_filename}.lock"

    @property
    def quarantine_path(self) -> Path:
        """Where unreadable legacy rows are set aside."""
        stem = Path(self.orders_filename).stem
        return self.data_path / f"{stem}.quarantine.jsonl"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are read once per process; tests call
    ``get_settings.cache_clear()`` after changing the environment.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("filelock").setLevel(logging.WARNING)

    return logging.getLogger("order_tracker")
