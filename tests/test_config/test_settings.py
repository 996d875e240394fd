"""Tests for Settings configuration."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from atomic_rules.config import Settings, get_settings


class TestSettings:
    """Tests for Settings class."""

    def test_default_values_when_env_not_set(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

            assert settings.rules_dir == Path("rules")
            assert settings.targets_dir == Path("targets")
            assert settings.output_dir == Path("build/instructions")
            assert settings.max_workers == 1
            assert settings.log_level == "INFO"

    def test_from_environment(self):
        with patch.dict(os.environ, {
            "ATOMIC_RULES_RULES_DIR": "/srv/rules",
            "ATOMIC_RULES_TARGETS_DIR": "/srv/targets",
            "ATOMIC_RULES_MAX_WORKERS": "4",
            "ATOMIC_RULES_LOG_LEVEL": "DEBUG",
        }, clear=True):
            settings = Settings(_env_file=None)

            assert settings.rules_dir == Path("/srv/rules")
            assert settings.targets_dir == Path("/srv/targets")
            assert settings.max_workers == 4
            assert settings.log_level == "DEBUG"

    def test_invalid_worker_count(self):
        with patch.dict(os.environ, {"ATOMIC_RULES_MAX_WORKERS": "0"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_invalid_log_level(self):
        with patch.dict(os.environ, {"ATOMIC_RULES_LOG_LEVEL": "LOUD"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("ATOMIC_RULES_RULES_DIR=from-dotenv\n", encoding="utf-8")

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=env_file)

            assert settings.rules_dir == Path("from-dotenv")

    def test_get_settings_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
