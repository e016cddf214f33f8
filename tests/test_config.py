"""Tests for environment-driven settings."""

import pytest

from testmend.config import ConfigError, Settings
from testmend.llm import LLM_MODEL

ENV_NAMES = (
    "ANTHROPIC_API_KEY",
    "TESTMEND_MODEL",
    "TESTMEND_MAX_TOKENS",
    "TESTMEND_MAX_ITERATIONS",
    "TESTMEND_JEST_COMMAND",
    "TESTMEND_TEST_TIMEOUT",
    "DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    # keep load_dotenv away from any real .env file
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("testmend.config.load_dotenv", lambda: False)


def test_defaults():
    settings = Settings.from_env()

    assert settings.api_key is None
    assert settings.model == LLM_MODEL
    assert settings.max_tokens == 8192
    assert settings.max_iterations == 3
    assert settings.jest_command == "npx jest"
    assert settings.test_timeout == 300
    assert settings.debug is False


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("TESTMEND_MODEL", "claude-test")
    monkeypatch.setenv("TESTMEND_MAX_ITERATIONS", "5")
    monkeypatch.setenv("TESTMEND_JEST_COMMAND", "pnpm jest")
    monkeypatch.setenv("TESTMEND_TEST_TIMEOUT", "60")
    monkeypatch.setenv("DEBUG", "true")

    settings = Settings.from_env()

    assert settings.api_key == "sk-test"
    assert settings.model == "claude-test"
    assert settings.max_iterations == 5
    assert settings.jest_command == "pnpm jest"
    assert settings.test_timeout == 60
    assert settings.debug is True


def test_empty_values_use_defaults(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("TESTMEND_MAX_ITERATIONS", " ")

    settings = Settings.from_env()

    assert settings.api_key is None
    assert settings.max_iterations == 3


@pytest.mark.parametrize("value", ["three", "0", "-2"])
def test_invalid_integers_raise(monkeypatch, value):
    monkeypatch.setenv("TESTMEND_MAX_ITERATIONS", value)

    with pytest.raises(ConfigError, match="TESTMEND_MAX_ITERATIONS"):
        Settings.from_env()
