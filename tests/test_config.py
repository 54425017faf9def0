"""
Tests for configuration module.
"""
import pytest

from tech_incidents.config import AppConfig, _get_int_env

ENV_VARS = [
    "TECH_INCIDENTS_BACKEND_URL",
    "TECH_INCIDENTS_BACKEND_KEY",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "TECH_INCIDENTS_ENV",
    "TECH_INCIDENTS_REQUEST_TIMEOUT",
    "TECH_INCIDENTS_MAX_IMAGE_MB",
    "TECH_INCIDENTS_DEFAULT_SORT",
    "TECH_INCIDENTS_LOG_LEVEL",
    "TECH_INCIDENTS_LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_config_defaults(clean_env: pytest.MonkeyPatch) -> None:
    """Test default configuration values."""
    config = AppConfig()

    assert config.backend_url == ""
    assert config.environment == "development"
    assert config.request_timeout == 10
    assert config.max_image_size_mb == 5
    assert config.default_sort == "year-desc"
    assert config.log_file is None


def test_config_from_env(clean_env: pytest.MonkeyPatch) -> None:
    """Test configuration from environment variables."""
    clean_env.setenv("TECH_INCIDENTS_BACKEND_URL", "https://demo.supabase.co")
    clean_env.setenv("TECH_INCIDENTS_BACKEND_KEY", "anon")
    clean_env.setenv("TECH_INCIDENTS_ENV", "production")
    clean_env.setenv("TECH_INCIDENTS_REQUEST_TIMEOUT", "30")
    clean_env.setenv("TECH_INCIDENTS_DEFAULT_SORT", "name-asc")

    config = AppConfig.from_env()

    assert config.backend_url == "https://demo.supabase.co"
    assert config.backend_anon_key == "anon"
    assert config.environment == "production"
    assert config.request_timeout == 30
    assert config.default_sort == "name-asc"


def test_config_supabase_fallback_env(clean_env: pytest.MonkeyPatch) -> None:
    """SUPABASE_* variables are honored when the prefixed ones are unset."""
    clean_env.setenv("SUPABASE_URL", "https://fallback.supabase.co")
    clean_env.setenv("SUPABASE_ANON_KEY", "fallback-key")

    config = AppConfig.from_env()

    assert config.backend_url == "https://fallback.supabase.co"
    assert config.backend_anon_key == "fallback-key"
    assert config.is_backend_configured


def test_prefixed_env_wins(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SUPABASE_URL", "https://fallback.supabase.co")
    clean_env.setenv("TECH_INCIDENTS_BACKEND_URL", "https://primary.supabase.co")

    assert AppConfig.from_env().backend_url == "https://primary.supabase.co"


def test_get_int_env_invalid(clean_env: pytest.MonkeyPatch) -> None:
    """Invalid or non-positive integers fall back to the default."""
    clean_env.setenv("TECH_INCIDENTS_REQUEST_TIMEOUT", "soon")
    assert _get_int_env("TECH_INCIDENTS_REQUEST_TIMEOUT", 10) == 10

    clean_env.setenv("TECH_INCIDENTS_REQUEST_TIMEOUT", "-5")
    assert _get_int_env("TECH_INCIDENTS_REQUEST_TIMEOUT", 10) == 10


def test_cookies_secure_only_in_production() -> None:
    assert AppConfig(environment="production").cookies_secure is True
    assert AppConfig(environment="development").cookies_secure is False
    assert AppConfig(environment="test").cookies_secure is False


def test_validate_accepts_defaults() -> None:
    AppConfig().validate()


def test_validate_collects_all_errors() -> None:
    """Every invalid setting is reported in one error."""
    config = AppConfig(
        request_timeout=0,
        environment="staging",
        default_sort="random",
        log_level="LOUD",
        backend_url="ftp://example.com",
    )

    with pytest.raises(ValueError) as exc_info:
        config.validate()

    message = str(exc_info.value)
    assert "request_timeout" in message
    assert "environment" in message
    assert "default_sort" in message
    assert "log_level" in message
    assert "backend_url" in message


def test_to_dict_redacts_key() -> None:
    data = AppConfig(backend_anon_key="very-secret").to_dict()

    assert data["backend_anon_key"] == "***REDACTED***"
    assert "cookies_secure" in data
    assert AppConfig(backend_anon_key="k").to_dict(redact=False)["backend_anon_key"] == "k"


def test_from_file_with_env_override(clean_env: pytest.MonkeyPatch, tmp_path) -> None:
    """File settings load and environment variables override them."""
    config_file = tmp_path / "tech-incidents.yaml"
    config_file.write_text(
        "backend:\n"
        "  url: https://file.supabase.co\n"
        "  anon_key: file-key\n"
        "service:\n"
        "  environment: production\n"
        "  max_image_size_mb: 2\n"
    )
    clean_env.setenv("TECH_INCIDENTS_BACKEND_KEY", "env-key")

    config = AppConfig.from_file(str(config_file))

    assert config.backend_url == "https://file.supabase.co"
    assert config.backend_anon_key == "env-key"
    assert config.environment == "production"
    assert config.max_image_size_mb == 2


def test_from_file_falls_back_to_env(clean_env: pytest.MonkeyPatch, tmp_path) -> None:
    """A missing explicit file falls back to environment configuration."""
    clean_env.setenv("TECH_INCIDENTS_ENV", "test")

    config = AppConfig.from_file(str(tmp_path / "missing.yaml"))

    assert config.environment == "test"


def test_load_env_only(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("TECH_INCIDENTS_LOG_LEVEL", "DEBUG")

    assert AppConfig.load(use_file=False).log_level == "DEBUG"
