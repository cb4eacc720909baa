"""
tests/test_settings.py
======================
Environment-driven engine settings.

Run:  pytest tests/test_settings.py -v
"""

import logging
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from pydantic import ValidationError

from fin_engine.settings import EngineSettings, configure_logging


class TestEngineSettings:
    def test_defaults(self, monkeypatch):
        for var in ("FIN_ENGINE_MAX_WORKERS", "FIN_ENGINE_LOG_LEVEL", "FIN_ENGINE_DEFAULT_LANGUAGE"):
            monkeypatch.delenv(var, raising=False)
        s = EngineSettings()
        assert s.max_workers == 8
        assert s.heavy_timeout_seconds == 30.0
        assert s.balance_tolerance == 0.005
        assert s.default_language == "en"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FIN_ENGINE_MAX_WORKERS", "3")
        monkeypatch.setenv("FIN_ENGINE_DEFAULT_LANGUAGE", "AR")
        monkeypatch.setenv("FIN_ENGINE_LOG_LEVEL", "debug")
        s = EngineSettings()
        assert s.max_workers == 3
        assert s.default_language == "ar"
        assert s.log_level == "DEBUG"

    @pytest.mark.parametrize("kwargs", [
        {"default_language": "fr"},
        {"log_level": "LOUD"},
        {"max_workers": 0},
        {"heavy_timeout_seconds": 0},
    ])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            EngineSettings(**kwargs)

    def test_configure_logging_sets_package_level(self):
        configure_logging(EngineSettings(log_level="WARNING"))
        assert logging.getLogger("fin_engine").level == logging.WARNING
