"""
fin_engine/settings.py
======================
Process-level engine configuration, read from the environment
(``FIN_ENGINE_*``) or a local ``.env`` file, plus logging setup.

Per-run analysis parameters (discount rate, horizons, seeds...) live in
``types.AnalysisOptions`` instead.
"""
from __future__ import annotations
import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    log_level: str = "INFO"
    # Thread pool size for calculator fan-out.
    max_workers: int = Field(default=8, ge=1)
    # Wall-clock limit (seconds) for simulation / optimisation analyses.
    heavy_timeout_seconds: float = Field(default=30.0, gt=0)
    # Relative tolerance for assets == liabilities + equity.
    balance_tolerance: float = Field(default=0.005, ge=0)
    default_language: str = "en"

    model_config = SettingsConfigDict(
        env_prefix="FIN_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        v = v.lower()
        if v not in ("ar", "en"):
            raise ValueError(f"default_language must be 'ar' or 'en', got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {v!r}")
        return v


_settings: Optional[EngineSettings] = None


def get_settings() -> EngineSettings:
    global _settings
    if _settings is None:
        _settings = EngineSettings()
    return _settings


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("fin_engine").setLevel(settings.log_level)
