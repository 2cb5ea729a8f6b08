"""Settings loader with layered configuration support."""

import json
import os
from pathlib import Path
from typing import Any

from video_rag.commons.settings.models import Settings

ENV_PREFIX = "VIDEO_RAG__"
CONFIG_DIR_ENV = "VIDEO_RAG_CONFIG_DIR"


class SettingsLoader:
    """Loads and merges configuration from multiple sources.

    Configuration precedence (highest to lowest):
    1. Environment variables (VIDEO_RAG__SECTION__KEY)
    2. Environment-specific config (appsettings.{env}.json)
    3. Base config (appsettings.json)
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory containing configuration files. Defaults to
                $VIDEO_RAG_CONFIG_DIR, then 'config' in the working directory.
            environment: Environment name (dev, staging, prod). Defaults to
                VIDEO_RAG__APP__ENVIRONMENT or 'dev'.
        """
        self.config_dir = config_dir or Path(os.getenv(CONFIG_DIR_ENV, "config"))
        self.environment = environment or os.getenv(
            f"{ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Load settings with proper precedence.

        Returns:
            Fully resolved Settings instance.
        """
        config = self._load_json("appsettings.json")
        config = self._deep_merge(
            config, self._load_json(f"appsettings.{self.environment}.json")
        )
        config = self._deep_merge(config, self._load_env_vars())
        return Settings(**config)

    def _load_env_vars(self) -> dict[str, Any]:
        """Collect VIDEO_RAG__ variables into a nested dict.

        VIDEO_RAG__EMBEDDINGS__TEXT__MODEL=x becomes
        {"embeddings": {"text": {"model": "x"}}}.
        """
        result: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            *parents, leaf = key[len(ENV_PREFIX) :].lower().split("__")
            current = result
            for part in parents:
                current = current.setdefault(part, {})
            current[leaf] = self._coerce_value(value)

        return result

    def _coerce_value(self, value: str) -> Any:
        """Coerce an environment string to bool, int, float or JSON."""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        for cast in (int, float):
            try:
                return cast(value)
            except ValueError:
                continue

        # Lists/dicts such as CORS_ORIGINS
        if value.startswith(("[", "{")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value

        return value

    def _load_json(self, filename: str) -> dict[str, Any]:
        """Load a JSON config file, or an empty dict when it is absent."""
        path = self.config_dir / filename
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            return dict(json.load(f))

    def _deep_merge(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Recursively merge override into a copy of base."""
        result = base.copy()
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result


_settings: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the cached settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force reload settings from files.

    Returns:
        Settings instance.
    """
    global _settings  # noqa: PLW0603
    if _settings is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _settings = loader.load()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings instance. Useful for testing."""
    global _settings  # noqa: PLW0603
    _settings = None
