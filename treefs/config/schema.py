from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

_FORBIDDEN_IDENTITY_CHARS = ("<", ">", "\n", "\r", "\x00")


class IdentityConfig(BaseModel):
    """Author and committer identity written into every commit."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    email: str

    @field_validator("name", "email")
    @classmethod
    def _check_identity_part(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        if any(ch in value for ch in _FORBIDDEN_IDENTITY_CHARS):
            raise ValueError("must not contain '<', '>' or line breaks")
        return value

    @property
    def signature(self) -> bytes:
        """Git signature line, e.g. ``b"treefs <treefs@localhost>"``."""
        return f"{self.name} <{self.email}>".encode()


class ConfigValidationError(Exception):
    """Structured configuration validation error."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def validate_identity(config: dict[str, Any]) -> IdentityConfig:
    """Validate an identity mapping using the Pydantic schema.

    Raises:
        ConfigValidationError: With structured list of human-readable error messages.
    """
    try:
        return IdentityConfig.model_validate(config)
    except ValidationError as e:
        raise ConfigValidationError(_extract_validation_errors(e)) from e


def _extract_validation_errors(exc: ValidationError) -> list[str]:
    """Convert Pydantic ValidationError to list of human-readable messages."""
    errors = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "identity"
        msg = err["msg"]

        # Strip Pydantic's "Value error, " prefix from our custom messages
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]

        if err["type"] == "missing":
            errors.append(f"Missing required field: {loc}")
        elif err["type"] == "string_type":
            errors.append(f"Expected string at '{loc}'")
        else:
            errors.append(f"{loc}: {msg}")
    return errors
