import pytest

from transdoc.config import DEFAULT_MODEL, load_settings

ENV_VARS = [
    "GEMINI_API_KEY",
    "TRANSDOC_MODEL",
    "TRANSDOC_ENGINE",
    "TRANSDOC_STRICT_FORMULAS",
    "TRANSDOC_PLACEHOLDER_TRANSLATION",
    "TRANSDOC_MAX_UPLOAD_MB",
    "TRANSDOC_JOB_TTL",
    "ALLOWED_ORIGINS",
    "TRANSDOC_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # setenv first so teardown also undoes values loaded from .env files
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    env_file = tmp_path / ".env"
    env_file.write_text("")
    return env_file


def test_defaults(clean_env):
    settings = load_settings(str(clean_env))

    assert settings.gemini_api_key is None
    assert settings.model == DEFAULT_MODEL
    assert settings.engine == "gemini"
    assert not settings.strict_formulas
    assert settings.max_upload_bytes == 20 * 1024 * 1024
    assert settings.job_ttl_seconds == 3600
    assert "http://localhost:3000" in settings.allowed_origins


def test_environment_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("TRANSDOC_ENGINE", "OnDevice")
    monkeypatch.setenv("TRANSDOC_STRICT_FORMULAS", "true")
    monkeypatch.setenv("TRANSDOC_MAX_UPLOAD_MB", "5")
    monkeypatch.setenv("TRANSDOC_JOB_TTL", "600")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example,")
    monkeypatch.setenv("TRANSDOC_LOG_LEVEL", "debug")

    settings = load_settings(str(clean_env))

    assert settings.engine == "ondevice"
    assert settings.strict_formulas
    assert settings.max_upload_mb == 5
    assert settings.job_ttl_seconds == 600
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert settings.log_level == "DEBUG"


def test_env_file(clean_env, monkeypatch):
    clean_env.write_text("GEMINI_API_KEY=from-dotenv\nTRANSDOC_MODEL=gemini-pro\n")

    settings = load_settings(str(clean_env))

    assert settings.gemini_api_key == "from-dotenv"
    assert settings.model == "gemini-pro"


def test_invalid_engine(clean_env, monkeypatch):
    monkeypatch.setenv("TRANSDOC_ENGINE", "babelfish")

    with pytest.raises(ValueError, match="babelfish"):
        load_settings(str(clean_env))
