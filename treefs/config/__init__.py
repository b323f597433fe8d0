"""Configuration module for treefs."""

from .schema import ConfigValidationError, IdentityConfig, validate_identity
from .settings import Settings, settings

__all__ = [
    "settings",
    "Settings",
    "ConfigValidationError",
    "IdentityConfig",
    "validate_identity",
]
