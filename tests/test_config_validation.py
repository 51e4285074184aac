"""Tests for configuration validation with Pydantic."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from retrykit.domain.config import (
    AGGRESSIVE,
    DEFAULT,
    PRESETS,
    QUICK,
    STANDARD,
    AppConfig,
    HttpConfig,
    RetryConfig,
)
from retrykit.infrastructure.config.config_manager import (
    ConfigManager,
    ConfigurationError,
    normalize_retry_section,
)

ENV_VARS = [
    "RETRYKIT_PRESET",
    "RETRYKIT_MAX_ATTEMPTS",
    "RETRYKIT_INITIAL_DELAY",
    "RETRYKIT_MAX_DELAY",
    "RETRYKIT_JITTER",
    "RETRYKIT_HTTP_TIMEOUT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_config(tmp_path: Path, data: dict) -> Path:
    config_file = tmp_path / ".retrykit.yml"
    config_file.write_text(yaml.safe_dump(data), encoding="utf-8")
    return config_file


class TestRetryConfigValidation:
    """Tests for RetryConfig validation."""

    def test_defaults(self):
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.initial_delay == 1.0
        assert config.backoff_multiplier == 2.0
        assert config.max_delay == 30.0
        assert config.use_jitter is True
        assert DEFAULT == config

    def test_max_attempts_zero(self):
        """Test max_attempts must be positive"""
        with pytest.raises(ValidationError, match="max_attempts"):
            RetryConfig(max_attempts=0)

    def test_negative_initial_delay(self):
        with pytest.raises(ValidationError, match="initial_delay"):
            RetryConfig(initial_delay=-1.0)

    def test_backoff_multiplier_too_low(self):
        """Test backoff_multiplier below 1.0"""
        with pytest.raises(ValidationError, match="backoff_multiplier"):
            RetryConfig(backoff_multiplier=0.5)

    def test_negative_max_delay(self):
        with pytest.raises(ValidationError, match="max_delay"):
            RetryConfig(max_delay=-0.1)

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            RetryConfig(retries=3)

    def test_frozen(self):
        config = RetryConfig()
        with pytest.raises(ValidationError):
            config.max_attempts = 10


class TestPresets:
    """Tests for the named presets"""

    @pytest.mark.parametrize(
        "preset, attempts, initial, multiplier, cap",
        [
            (QUICK, 2, 0.5, 1.5, 2.0),
            (STANDARD, 3, 1.0, 2.0, 10.0),
            (AGGRESSIVE, 5, 2.0, 2.0, 30.0),
        ],
    )
    def test_values(self, preset, attempts, initial, multiplier, cap):
        assert preset.max_attempts == attempts
        assert preset.initial_delay == initial
        assert preset.backoff_multiplier == multiplier
        assert preset.max_delay == cap
        assert preset.use_jitter is True

    def test_lookup_by_name(self):
        assert RetryConfig.preset("quick") is QUICK
        assert RetryConfig.preset(" Aggressive ") is AGGRESSIVE
        assert set(PRESETS) == {"quick", "standard", "aggressive"}

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown retry preset: bogus"):
            RetryConfig.preset("bogus")


class TestHttpConfigValidation:
    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError, match="timeout"):
            HttpConfig(timeout=0)

    def test_app_config_rejects_unknown_sections(self):
        with pytest.raises(ValidationError):
            AppConfig(gitlab={})


class TestNormalizeRetrySection:
    def test_aliases(self):
        section = normalize_retry_section({"max_retries": 4, "retry_delay": 0.2, "backoff": 3, "jitter": False})
        assert section == {
            "max_attempts": 4,
            "initial_delay": 0.2,
            "backoff_multiplier": 3,
            "use_jitter": False,
        }

    def test_jitter_factor_translated(self):
        assert normalize_retry_section({"jitter": 0.1}) == {"use_jitter": True}
        assert normalize_retry_section({"jitter": 0.0}) == {"use_jitter": False}
        assert normalize_retry_section({"jitter": 0.2, "use_jitter": False}) == {"use_jitter": False}

    def test_preferred_key_beats_alias(self):
        assert normalize_retry_section({"max_attempts": 2, "max_retries": 9}) == {"max_attempts": 2}

    def test_preset_with_overrides(self):
        section = normalize_retry_section({"preset": "aggressive", "max_attempts": 7})
        assert section["max_attempts"] == 7
        assert section["initial_delay"] == 2.0
        assert section["max_delay"] == 30.0

    def test_unknown_preset(self):
        with pytest.raises(ConfigurationError, match="Unknown retry preset"):
            normalize_retry_section({"preset": "nope"})


class TestConfigManager:
    """Tests for ConfigManager loading"""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        manager = ConfigManager()
        assert manager.config_path is None
        assert manager.get_retry_config() == DEFAULT
        assert manager.get_http_config().timeout == 30.0

    def test_finds_file_in_parent_directory(self, tmp_path, monkeypatch):
        _write_config(tmp_path, {"retry": {"max_attempts": 4}})
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        manager = ConfigManager()

        assert manager.config_path.resolve() == (tmp_path / ".retrykit.yml").resolve()
        assert manager.get_retry_config().max_attempts == 4

    def test_load_from_file(self, tmp_path):
        config_file = _write_config(
            tmp_path,
            {
                "retry": {"max_attempts": 5, "initial_delay": 0.1, "use_jitter": False},
                "http": {"timeout": 5, "headers": {"Accept": "application/json"}},
            },
        )
        manager = ConfigManager(config_path=config_file)

        retry = manager.get_retry_config()
        assert retry.max_attempts == 5
        assert retry.initial_delay == 0.1
        assert retry.backoff_multiplier == 2.0
        assert retry.use_jitter is False
        assert manager.get_http_config().headers == {"Accept": "application/json"}
        assert manager.get("http.timeout") == 5.0
        assert manager.get("retry.missing", "default") == "default"

    def test_string_path(self, tmp_path):
        config_file = _write_config(tmp_path, {"retry": {"preset": "quick"}})
        manager = ConfigManager(config_path=str(config_file))
        assert manager.get_retry_config() == QUICK

    def test_preset_in_file(self, tmp_path):
        config_file = _write_config(tmp_path, {"retry": {"preset": "standard", "max_delay": 20}})
        retry = ConfigManager(config_path=config_file).get_retry_config()
        assert retry.max_attempts == 3
        assert retry.max_delay == 20.0

    def test_env_overrides(self, tmp_path, monkeypatch):
        config_file = _write_config(tmp_path, {"retry": {"max_attempts": 5}})
        monkeypatch.setenv("RETRYKIT_MAX_ATTEMPTS", "7")
        monkeypatch.setenv("RETRYKIT_INITIAL_DELAY", "0.25")
        monkeypatch.setenv("RETRYKIT_MAX_DELAY", "4")
        monkeypatch.setenv("RETRYKIT_JITTER", "off")
        monkeypatch.setenv("RETRYKIT_HTTP_TIMEOUT", "2.5")

        manager = ConfigManager(config_path=config_file)

        retry = manager.get_retry_config()
        assert retry.max_attempts == 7
        assert retry.initial_delay == 0.25
        assert retry.max_delay == 4.0
        assert retry.use_jitter is False
        assert manager.get_http_config().timeout == 2.5

    def test_env_preset_then_fields(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("RETRYKIT_PRESET", "aggressive")
        monkeypatch.setenv("RETRYKIT_MAX_ATTEMPTS", "2")

        retry = ConfigManager().get_retry_config()

        assert retry.max_attempts == 2
        assert retry.initial_delay == 2.0

    def test_legacy_jitter_factor(self, tmp_path):
        """Older configs give jitter as a float factor"""
        config_file = _write_config(tmp_path, {"retry": {"max_retries": 4, "jitter": 0.1}})
        retry = ConfigManager(config_path=config_file).get_retry_config()
        assert retry.max_attempts == 4
        assert retry.use_jitter is True

    def test_legacy_jitter_factor_zero(self, tmp_path):
        config_file = _write_config(tmp_path, {"retry": {"jitter": 0}})
        assert ConfigManager(config_path=config_file).get_retry_config().use_jitter is False

    def test_invalid_env_boolean(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("RETRYKIT_JITTER", "maybe")
        with pytest.raises(ConfigurationError, match="RETRYKIT_JITTER"):
            ConfigManager()

    def test_invalid_values_reported(self, tmp_path):
        config_file = _write_config(tmp_path, {"retry": {"max_attempts": 0, "backoff_multiplier": 0.1}})
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_path=config_file)
        message = str(exc_info.value)
        assert "Configuration validation failed" in message
        assert "retry.max_attempts" in message
        assert "retry.backoff_multiplier" in message

    def test_unknown_section_rejected(self, tmp_path):
        config_file = _write_config(tmp_path, {"llm": {"provider": "mock"}})
        with pytest.raises(ConfigurationError, match="llm"):
            ConfigManager(config_path=config_file)

    def test_unreadable_yaml_falls_back_to_defaults(self, tmp_path):
        config_file = tmp_path / ".retrykit.yml"
        config_file.write_text("retry: [unclosed", encoding="utf-8")
        manager = ConfigManager(config_path=config_file)
        assert manager.get_retry_config() == DEFAULT

    def test_non_mapping_file_rejected(self, tmp_path):
        config_file = tmp_path / ".retrykit.yml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            ConfigManager(config_path=config_file)
