"""Configuration loading and management."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from webgen.constants import (
    DEFAULT_API_URL,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MODEL,
    DEFAULT_TAVILY_API_URL,
    DEFAULT_THINKING_BUDGET,
    DEFAULT_TIMEOUT,
    MODEL_PRESETS,
)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """WebGen configuration.

    Loads from the environment and an optional .env file.
    """

    # Model endpoint
    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    preset: Optional[str] = None

    # Request settings
    stream: bool = True
    thinking: bool = True
    thinking_budget: int = DEFAULT_THINKING_BUDGET
    timeout: int = DEFAULT_TIMEOUT

    # Agent loop
    max_iterations: int = DEFAULT_MAX_ITERATIONS

    # Web search collaborator
    tavily_api_key: Optional[str] = None
    tavily_api_url: str = DEFAULT_TAVILY_API_URL

    # Session logs
    log_dir: Optional[Path] = None

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            env_file: Optional .env file (default: search from cwd)

        Returns:
            Config instance
        """
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv()

        log_dir = os.getenv("WEBGEN_LOG_DIR")

        config = cls(
            api_key=os.getenv("WEBGEN_API_KEY") or os.getenv("OPENAI_API_KEY"),
            preset=os.getenv("WEBGEN_PRESET") or None,
            stream=_env_flag("WEBGEN_STREAM", True),
            thinking=_env_flag("WEBGEN_THINKING", True),
            thinking_budget=int(os.getenv("WEBGEN_THINKING_BUDGET", DEFAULT_THINKING_BUDGET)),
            timeout=int(os.getenv("WEBGEN_TIMEOUT", DEFAULT_TIMEOUT)),
            max_iterations=int(os.getenv("WEBGEN_MAX_ITERATIONS", DEFAULT_MAX_ITERATIONS)),
            tavily_api_key=os.getenv("TAVILY_API_KEY") or None,
            tavily_api_url=os.getenv("TAVILY_API_URL", DEFAULT_TAVILY_API_URL),
            log_dir=Path(log_dir) if log_dir else None,
        )

        # Preset fills endpoint and model; explicit variables win
        if config.preset in MODEL_PRESETS:
            config.apply_preset(config.preset)

        if os.getenv("WEBGEN_API_URL"):
            config.api_url = os.environ["WEBGEN_API_URL"]
        if os.getenv("WEBGEN_MODEL"):
            config.model = os.environ["WEBGEN_MODEL"]

        return config

    def apply_preset(self, name: str) -> None:
        """Apply a named endpoint preset.

        Args:
            name: Preset name from MODEL_PRESETS

        Raises:
            ValueError: If the preset is unknown
        """
        if name not in MODEL_PRESETS:
            raise ValueError(
                f"Unknown preset: {name}. Available: {', '.join(MODEL_PRESETS)}"
            )
        preset = MODEL_PRESETS[name]
        self.preset = name
        self.api_url = preset["api_url"]
        self.model = preset["model"]

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not self.api_key:
            errors.append("No API key found. Set WEBGEN_API_KEY or OPENAI_API_KEY")

        if not self.api_url:
            errors.append("api_url must not be empty")

        if not self.model:
            errors.append("model must not be empty")

        if self.preset and self.preset not in MODEL_PRESETS:
            errors.append(f"Unknown preset: {self.preset}")

        if self.max_iterations <= 0:
            errors.append("max_iterations must be positive")

        if self.thinking_budget <= 0:
            errors.append("thinking_budget must be positive")

        if self.timeout <= 0:
            errors.append("timeout must be positive")

        return errors

    def to_dict(self) -> dict:
        """Convert config to dictionary (for logging/display)."""
        return {
            "api_url": self.api_url,
            "model": self.model,
            "preset": self.preset,
            "stream": self.stream,
            "thinking": self.thinking,
            "thinking_budget": self.thinking_budget,
            "timeout": self.timeout,
            "max_iterations": self.max_iterations,
            "log_dir": str(self.log_dir) if self.log_dir else None,
            "has_api_key": bool(self.api_key),
            "has_tavily_key": bool(self.tavily_api_key),
        }
