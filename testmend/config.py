import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .llm import LLM_MODEL


class ConfigError(Exception):
    """Raised when an environment setting has an unusable value."""

    pass


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default

    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e

    if value < 1:
        raise ConfigError(f"{name} must be at least 1, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    # --- External fixer ---
    api_key: Optional[str] = None
    model: str = LLM_MODEL
    max_tokens: int = 8192

    # --- Repair loop ---
    max_iterations: int = 3

    # --- Test execution ---
    jest_command: str = "npx jest"
    test_timeout: int = 300

    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        return cls(
            api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            model=os.getenv("TESTMEND_MODEL") or LLM_MODEL,
            max_tokens=_positive_int("TESTMEND_MAX_TOKENS", 8192),
            max_iterations=_positive_int("TESTMEND_MAX_ITERATIONS", 3),
            jest_command=os.getenv("TESTMEND_JEST_COMMAND") or "npx jest",
            test_timeout=_positive_int("TESTMEND_TEST_TIMEOUT", 300),
            debug=os.getenv("DEBUG", "False").lower() == "true",
        )
