import pytest
from unittest.mock import patch
from pydantic import ValidationError

from storewizard.config.settings import Settings, get_settings
from storewizard.utils.errors import ConfigurationError


def make_settings(**kwargs):
    return Settings(_env_file=None, **kwargs)


def test_defaults():
    with patch.dict("os.environ", {}, clear=True):
        settings = make_settings()
    assert settings.validate_debounce_ms == 500
    assert settings.autocorrect_delay_ms == 2500
    assert settings.progress_sample_interval_ms == 100
    assert settings.completion_settle_ms == 1500
    assert settings.default_language == "en"
    assert settings.api_base_url == "http://localhost:3000"
    assert settings.get_auth_headers() == {}

def test_real_settings_with_env():
    """Test real Settings class behavior with env vars."""
    with patch.dict("os.environ", {
        "API_BASE_URL": "https://api.example.com/",
        "API_TOKEN": "tok-123",
        "VALIDATE_DEBOUNCE_MS": "300",
        "DEFAULT_LANGUAGE": "FR",
    }, clear=True):
        settings = make_settings()

    assert settings.api_base_url == "https://api.example.com"
    assert settings.validate_debounce_ms == 300
    assert settings.default_language == "fr"
    assert settings.get_auth_headers() == {"Authorization": "Bearer tok-123"}
    assert "tok-123" not in repr(settings)

def test_invalid_base_url():
    with pytest.raises(ValidationError):
        make_settings(api_base_url="localhost:3000")

def test_invalid_language():
    with pytest.raises(ValidationError):
        make_settings(default_language="english")

def test_durations_must_be_positive():
    with pytest.raises(ValidationError):
        make_settings(progress_sample_interval_ms=0)

def test_autocorrect_must_outlast_debounce():
    with pytest.raises(ValidationError):
        make_settings(validate_debounce_ms=500, autocorrect_delay_ms=400)

def test_get_settings_wraps_invalid_environment():
    get_settings.cache_clear()
    try:
        with patch.dict("os.environ", {"API_BASE_URL": "localhost:3000"}, clear=True):
            with pytest.raises(ConfigurationError, match="Invalid configuration"):
                get_settings()
    finally:
        get_settings.cache_clear()
