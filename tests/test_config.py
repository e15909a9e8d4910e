"""Tests for configuration loading."""

import pytest

from webgen.config import Config
from webgen.constants import DEFAULT_MAX_ITERATIONS, MODEL_PRESETS

ENV_VARS = [
    "WEBGEN_API_URL",
    "WEBGEN_API_KEY",
    "OPENAI_API_KEY",
    "WEBGEN_MODEL",
    "WEBGEN_PRESET",
    "WEBGEN_STREAM",
    "WEBGEN_THINKING",
    "WEBGEN_THINKING_BUDGET",
    "WEBGEN_MAX_ITERATIONS",
    "WEBGEN_TIMEOUT",
    "TAVILY_API_KEY",
    "TAVILY_API_URL",
    "WEBGEN_LOG_DIR",
]


@pytest.fixture
def clean_env(monkeypatch, temp_dir):
    """Clear WebGen variables and point dotenv at an empty directory."""
    for name in ENV_VARS:
        # registers the name for restore on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(temp_dir)
    return monkeypatch


def test_load_defaults(clean_env, temp_dir):
    """Test defaults when nothing is set."""
    config = Config.load(temp_dir / ".env")

    assert config.api_key is None
    assert config.max_iterations == DEFAULT_MAX_ITERATIONS
    assert config.stream is True
    assert config.log_dir is None


def test_load_from_env(clean_env, temp_dir):
    """Test reading environment variables."""
    clean_env.setenv("WEBGEN_API_KEY", "key")
    clean_env.setenv("WEBGEN_STREAM", "false")
    clean_env.setenv("WEBGEN_MAX_ITERATIONS", "12")
    clean_env.setenv("WEBGEN_LOG_DIR", str(temp_dir / "logs"))

    config = Config.load(temp_dir / ".env")

    assert config.api_key == "key"
    assert config.stream is False
    assert config.max_iterations == 12
    assert config.log_dir == temp_dir / "logs"


def test_openai_key_fallback(clean_env, temp_dir):
    """Test OPENAI_API_KEY is used when WEBGEN_API_KEY is missing."""
    clean_env.setenv("OPENAI_API_KEY", "sk-test")

    assert Config.load(temp_dir / ".env").api_key == "sk-test"


def test_load_from_dotenv_file(clean_env, temp_dir):
    """Test values from a .env file."""
    env_file = temp_dir / ".env"
    env_file.write_text("WEBGEN_API_KEY=from-file\nWEBGEN_MODEL=custom-model\n")

    config = Config.load(env_file)

    assert config.api_key == "from-file"
    assert config.model == "custom-model"


def test_preset_with_explicit_override(clean_env, temp_dir):
    """Test that explicit variables win over the preset."""
    clean_env.setenv("WEBGEN_PRESET", "deepseek")
    clean_env.setenv("WEBGEN_MODEL", "deepseek-coder")

    config = Config.load(temp_dir / ".env")

    assert config.api_url == MODEL_PRESETS["deepseek"]["api_url"]
    assert config.model == "deepseek-coder"


def test_apply_unknown_preset():
    """Test unknown presets are rejected."""
    with pytest.raises(ValueError):
        Config().apply_preset("nope")


def test_validate():
    """Test validation errors."""
    assert Config(api_key="k").validate() == []

    errors = Config(api_key=None, max_iterations=0).validate()

    assert any("API key" in e for e in errors)
    assert any("max_iterations" in e for e in errors)


def test_to_dict_hides_secrets():
    """Test that keys are not exposed."""
    data = Config(api_key="secret", tavily_api_key="tvly").to_dict()

    assert "secret" not in data.values()
    assert data["has_api_key"] is True
    assert data["has_tavily_key"] is True
