"""Validation result types: issues, results and the issue-collecting context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from .exceptions import ValidationError

PathSegment = str | int
Path = tuple[PathSegment, ...]


class IssueCode(str, Enum):
    """Kinds of validation issue."""

    INVALID_TYPE = "invalid_type"
    REQUIRED = "required"
    TOO_SMALL = "too_small"
    TOO_BIG = "too_big"
    INVALID_FORMAT = "invalid_format"
    INVALID_DATE = "invalid_date"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    INVALID_LITERAL = "invalid_literal"
    INVALID_UNION = "invalid_union"
    NOT_MULTIPLE_OF = "not_multiple_of"
    UNRECOGNIZED_KEYS = "unrecognized_keys"
    CUSTOM = "custom"


class _Never:
    """Marker returned in place of a value that failed validation."""

    _instance: _Never | None = None

    def __new__(cls) -> _Never:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NEVER"

    def __bool__(self) -> bool:
        return False


NEVER: Any = _Never()


def _jsonable(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation violation tied to a location in the input."""

    path: Path
    message: str
    code: IssueCode = IssueCode.CUSTOM
    params: dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def location(self) -> str:
        """Human-readable path such as ``address.zip`` or ``emails[1]``."""
        text = ""
        for segment in self.path:
            if isinstance(segment, int):
                text += f"[{segment}]"
            elif text:
                text += f".{segment}"
            else:
                text = str(segment)
        return text

    def to_dict(self) -> dict[str, Any]:
        """Convert the issue to a JSON-serializable dictionary."""
        data: dict[str, Any] = {
            "path": [_jsonable(segment) for segment in self.path],
            "message": self.message,
            "code": self.code.value,
        }
        for key, value in self.params.items():
            data[key] = _jsonable(value)
        return data


@dataclass
class ValidationResult:
    """Outcome of ``safe_parse``.

    ``data`` holds the validated value when ``success`` is True; otherwise
    ``issues`` lists every violation found.
    """

    success: bool
    data: Any = None
    issues: list[ValidationIssue] = field(default_factory=list)

    def __bool__(self) -> bool:
        """Allow 'if result:' usage to check success."""
        return self.success

    @property
    def error(self) -> ValidationError | None:
        """The issues wrapped in a ``ValidationError``, or None on success."""
        if self.success:
            return None
        return ValidationError(self.issues)

    def unwrap(self) -> Any:
        """Return the data or raise the collected issues.

        Raises:
            ValidationError: If the result is a failure
        """
        if not self.success:
            raise ValidationError(self.issues)
        return self.data

    @classmethod
    def ok(cls, data: Any) -> ValidationResult:
        """Create a successful result."""
        return cls(success=True, data=data, issues=[])

    @classmethod
    def fail(cls, issues: list[ValidationIssue]) -> ValidationResult:
        """Create a failed result.

        Args:
            issues: The violations found, at least one
        """
        if not issues:
            raise ValueError("A failed result requires at least one issue")
        return cls(success=False, data=None, issues=list(issues))


@dataclass
class ValidationContext:
    """Issue sink shared by a single parse call.

    Child contexts created with ``child`` extend the path but append to the
    same issue list. Transforms and refinements receive the context for the
    value they are attached to and report problems with ``add_issue``.
    """

    path: Path = ()
    issues: list[ValidationIssue] = field(default_factory=list)

    def child(self, segment: PathSegment) -> ValidationContext:
        """Context for a nested key or index."""
        return ValidationContext(self.path + (segment,), self.issues)

    def add_issue(
        self,
        message: str,
        code: IssueCode | str = IssueCode.CUSTOM,
        path: Path = (),
        **params: Any,
    ) -> ValidationIssue:
        """Record an issue at this context's path.

        Args:
            message: Human-readable message
            code: Issue code (defaults to custom)
            path: Extra segments appended to the context path
            **params: Additional details stored on the issue

        Returns:
            The recorded issue
        """
        issue = ValidationIssue(
            path=self.path + tuple(path),
            message=message,
            code=IssueCode(code),
            params=params,
        )
        self.issues.append(issue)
        return issue

    @property
    def issue_count(self) -> int:
        return len(self.issues)

    def has_issues_since(self, mark: int) -> bool:
        """Whether any issue was recorded after ``issue_count`` was ``mark``."""
        return len(self.issues) > mark
