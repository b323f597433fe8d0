"""Configuration settings for treefs sessions.

Values resolve from an explicit overrides mapping first, then from
environment variables, then from the hard-coded defaults in constants.
"""

from __future__ import annotations

import os
from typing import Any

from treefs.config.constants import (
    DEFAULT_AUTHOR_EMAIL,
    DEFAULT_AUTHOR_NAME,
    DEFAULT_REF,
)
from treefs.config.schema import IdentityConfig, validate_identity


class Settings:
    """Session settings with environment variable fallbacks."""

    def __init__(self, overrides: dict[str, Any] | None = None):
        self._overrides = dict(overrides or {})

    def _get(
        self,
        key: str,
        default: Any,
        env_key: str | None = None,
    ) -> Any:
        """Get config value from overrides, fallback to env, then default."""
        if key in self._overrides and self._overrides[key] is not None:
            return self._overrides[key]
        if env_key and (env_val := os.getenv(env_key)):
            # Type conversion based on default type
            if isinstance(default, bool):
                return env_val.lower() in ("true", "1", "yes")
            elif isinstance(default, int):
                return int(env_val)
            return env_val
        return default

    @property
    def author_name(self) -> str:
        return self._get("author_name", DEFAULT_AUTHOR_NAME, "TREEFS_AUTHOR_NAME")

    @property
    def author_email(self) -> str:
        return self._get("author_email", DEFAULT_AUTHOR_EMAIL, "TREEFS_AUTHOR_EMAIL")

    @property
    def default_ref(self) -> str:
        return self._get("default_ref", DEFAULT_REF, "TREEFS_DEFAULT_REF")

    @property
    def identity(self) -> IdentityConfig:
        """Validated commit identity.

        Raises:
            ConfigValidationError: If name or email is unusable in a git signature.
        """
        return validate_identity({"name": self.author_name, "email": self.author_email})

    # Logging Configuration
    @property
    def log_format(self) -> str:
        return self._get("log_format", "pretty", "LOG_FORMAT")

    @property
    def log_colors(self) -> bool:
        return self._get("log_colors", True, "LOG_COLORS")


# Global settings instance
settings = Settings()
