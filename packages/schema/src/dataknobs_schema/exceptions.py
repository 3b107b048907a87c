"""Exception hierarchy for the dataknobs_schema package.

All exceptions extend ``SchemaError``, which carries an optional context
dictionary with structured details about the failure.

Example:
    ```python
    from dataknobs_schema import StringSchema, ValidationError

    try:
        StringSchema().email().parse("dani")
    except ValidationError as e:
        for issue in e.issues:
            print(issue.path, issue.message)
    ```
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .result import ValidationIssue


class SchemaError(Exception):
    """Base exception for the schema package.

    Attributes:
        context: Dictionary containing contextual information about the error
    """

    def __init__(self, message: str, context: Dict[str, Any] | None = None):
        """Initialize the exception with optional context.

        Args:
            message: Error message
            context: Optional context dictionary
        """
        super().__init__(message)
        self.context = context or {}


class ValidationError(SchemaError):
    """Raised by ``parse`` when a value does not satisfy its schema.

    Holds every issue collected during the call, in the order they were
    encountered.

    Example:
        ```python
        error.errors()
        # [{'path': ['username'], 'message': 'Invalid email', 'code': 'invalid_format', ...}]
        error.flatten()
        # {'form_errors': [], 'field_errors': {'username': ['Invalid email']}}
        ```
    """

    def __init__(self, issues: Iterable[ValidationIssue]):
        self.issues = tuple(issues)
        super().__init__(
            self._summarize(self.issues),
            context={"issues": [issue.to_dict() for issue in self.issues]},
        )

    def __reduce__(self):
        return (type(self), (self.issues,))

    @staticmethod
    def _summarize(issues: tuple[ValidationIssue, ...]) -> str:
        count = len(issues)
        lines = [f"{count} validation error{'' if count == 1 else 's'}"]
        for issue in issues:
            location = issue.location or "(root)"
            lines.append(f"{location}\n  {issue.message} [code={issue.code.value}]")
        return "\n".join(lines)

    def errors(self) -> list[dict[str, Any]]:
        """Return the issues as JSON-serializable dictionaries."""
        return [issue.to_dict() for issue in self.issues]

    def flatten(self) -> dict[str, Any]:
        """Group issue messages by top-level field.

        Issues without a path are reported under ``form_errors``.

        Returns:
            Dictionary with ``form_errors`` list and ``field_errors`` mapping
        """
        form_errors: list[str] = []
        field_errors: dict[str, list[str]] = {}
        for issue in self.issues:
            if issue.path:
                field_errors.setdefault(str(issue.path[0]), []).append(issue.message)
            else:
                form_errors.append(issue.message)
        return {"form_errors": form_errors, "field_errors": field_errors}


class ConfigurationError(SchemaError):
    """Raised when a schema definition or configuration is invalid.

    Example:
        ```python
        raise ConfigurationError(
            "Unknown schema type: 'decimal'",
            context={"type": "decimal"}
        )
        ```
    """

    pass


class NotFoundError(SchemaError):
    """Raised when a named schema is not registered."""

    pass


__all__ = [
    "SchemaError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
]
