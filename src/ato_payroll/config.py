"""Configuration management for the ATO payroll engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    financial_year: str
    require_tfn_checksum: bool
    log_level: str
    engine_version: str

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            financial_year=os.getenv("ATO_FINANCIAL_YEAR", "2024-25"),
            require_tfn_checksum=os.getenv("ATO_REQUIRE_TFN_CHECKSUM", "false").lower()
            == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for command line use."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
