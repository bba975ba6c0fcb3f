"""Configuration error type shared by the YAML loader and environment checks."""

from typing import List, Optional

from pydantic import ValidationError

# pydantic error types reported as "expected <type>"
_TYPE_ERRORS = {
    "string_type": "string",
    "int_type": "integer",
    "int_parsing": "integer",
    "bool_type": "boolean",
    "bool_parsing": "boolean",
    "list_type": "list",
}


class ConfigurationError(Exception):
    """
    Raised when the configuration file or environment is unusable.

    Collects every problem found in one pass, numbered, followed by
    suggestions, so a broken config.yaml or .env can be fixed in one edit.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        super().__init__(str(self))

    def __str__(self) -> str:
        lines = [self.message]
        if self.errors:
            lines.append("\nValidation Errors:")
            lines.extend(f"  {n}. {error}" for n, error in enumerate(self.errors, 1))
        if self.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"  - {suggestion}" for suggestion in self.suggestions)
        return "\n".join(lines)

    @classmethod
    def from_validation_error(
        cls, error: ValidationError, suggestions: Optional[List[str]] = None
    ) -> "ConfigurationError":
        """Flatten a pydantic ValidationError into one line per offending field."""
        messages = []
        for detail in error.errors():
            field_path = " -> ".join(str(part) for part in detail["loc"]) or "<root>"
            kind = detail["type"]

            if kind == "missing":
                messages.append(f"Missing required field: {field_path}")
            elif kind in _TYPE_ERRORS:
                messages.append(
                    f"Invalid type for '{field_path}': expected {_TYPE_ERRORS[kind]}, "
                    f"got {detail.get('input')!r}"
                )
            else:
                messages.append(f"{field_path}: {detail['msg']}")

        return cls("Configuration validation failed", errors=messages, suggestions=suggestions)
