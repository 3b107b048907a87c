"""Constraint implementations attached to schemas.

A constraint checks an already type-checked value and records its issues on
the validation context. Constraints are immutable once constructed.
"""

from __future__ import annotations

import re
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import date
from numbers import Number
from re import Pattern as RegexPattern
from typing import Any
from urllib.parse import urlparse

from .exceptions import ConfigurationError
from .result import IssueCode, ValidationContext

EMAIL_REGEX = re.compile(
    r"^(?!\.)(?!.*\.\.)([A-Z0-9_'+\-\.]*)[A-Z0-9_+\-]@([A-Z0-9][A-Z0-9\-]*\.)+[A-Z]{2,}$",
    re.IGNORECASE,
)


def _describe_bound(bound: Any) -> str:
    if isinstance(bound, date):
        return bound.isoformat()
    return str(bound)


class Constraint(ABC):
    """Base class for all constraints."""

    def __init__(self, message: str | None = None):
        """Initialize the constraint.

        Args:
            message: Optional message replacing the default issue message
        """
        self.message = message

    @abstractmethod
    def check(self, value: Any, context: ValidationContext) -> bool:
        """Validate a value against this constraint.

        Args:
            value: Value to validate
            context: Context receiving any issues

        Returns:
            True if the value satisfies the constraint
        """

    def _fail(self, context: ValidationContext, default: str, code: IssueCode, **params: Any) -> bool:
        context.add_issue(self.message or default, code, **params)
        return False


class Length(Constraint):
    """String/collection length must be in specified range."""

    UNITS = {"String": "character(s)"}

    def __init__(
        self,
        min: int | None = None,
        max: int | None = None,
        label: str = "String",
        message: str | None = None,
    ):
        """Initialize length constraint.

        Args:
            min: Minimum length (inclusive)
            max: Maximum length (inclusive)
            label: Subject used in default messages ("String", "Array", "Set")
            message: Optional custom message
        """
        super().__init__(message)
        if min is not None and min < 0:
            raise ConfigurationError(f"min length cannot be negative: {min}")
        if max is not None and max < 0:
            raise ConfigurationError(f"max length cannot be negative: {max}")
        if min is not None and max is not None and min > max:
            raise ConfigurationError(f"min length ({min}) cannot be greater than max ({max})")
        self.min = min
        self.max = max
        self.label = label

    @property
    def exact(self) -> bool:
        return self.min is not None and self.min == self.max

    def check(self, value: Any, context: ValidationContext) -> bool:
        """Check if value length is in range."""
        length = len(value)
        unit = self.UNITS.get(self.label, "element(s)")
        kind = self.label.lower()

        if self.min is not None and length < self.min:
            qualifier = "exactly" if self.exact else "at least"
            return self._fail(
                context,
                f"{self.label} must contain {qualifier} {self.min} {unit}",
                IssueCode.TOO_SMALL,
                minimum=self.min, inclusive=True, exact=self.exact, type=kind,
            )
        if self.max is not None and length > self.max:
            qualifier = "exactly" if self.exact else "at most"
            return self._fail(
                context,
                f"{self.label} must contain {qualifier} {self.max} {unit}",
                IssueCode.TOO_BIG,
                maximum=self.max, inclusive=True, exact=self.exact, type=kind,
            )
        return True


class Range(Constraint):
    """Numeric or date value must be in specified range."""

    def __init__(
        self,
        min: Any = None,
        max: Any = None,
        min_exclusive: bool = False,
        max_exclusive: bool = False,
        label: str = "Number",
        message: str | None = None,
    ):
        """Initialize range constraint.

        Args:
            min: Minimum value (inclusive by default)
            max: Maximum value (inclusive by default)
            min_exclusive: If True, minimum is exclusive (value must be > min)
            max_exclusive: If True, maximum is exclusive (value must be < max)
            label: Subject used in default messages ("Number", "Date")
            message: Optional custom message
        """
        super().__init__(message)
        if min is not None and max is not None:
            try:
                inverted = min > max
            except TypeError as e:
                raise ConfigurationError(f"Incomparable bounds {min!r} and {max!r}") from e
            if inverted:
                raise ConfigurationError(f"min ({min}) cannot be greater than max ({max})")
        self.min = min
        self.max = max
        self.min_exclusive = min_exclusive
        self.max_exclusive = max_exclusive
        self.label = label

    def check(self, value: Any, context: ValidationContext) -> bool:
        """Check if value is in range."""
        kind = self.label.lower()
        try:
            if self.min is not None:
                too_small = value <= self.min if self.min_exclusive else value < self.min
                if too_small:
                    relation = "greater than" if self.min_exclusive else "greater than or equal to"
                    return self._fail(
                        context,
                        f"{self.label} must be {relation} {_describe_bound(self.min)}",
                        IssueCode.TOO_SMALL,
                        minimum=self.min, inclusive=not self.min_exclusive, type=kind,
                    )
            if self.max is not None:
                too_big = value >= self.max if self.max_exclusive else value > self.max
                if too_big:
                    relation = "less than" if self.max_exclusive else "less than or equal to"
                    return self._fail(
                        context,
                        f"{self.label} must be {relation} {_describe_bound(self.max)}",
                        IssueCode.TOO_BIG,
                        maximum=self.max, inclusive=not self.max_exclusive, type=kind,
                    )
        except TypeError as e:
            # naive vs. aware datetimes
            code = IssueCode.INVALID_DATE if isinstance(value, date) else IssueCode.INVALID_TYPE
            context.add_issue(f"Cannot compare {value!r} with range bounds: {e!s}", code)
            return False
        return True


class MultipleOf(Constraint):
    """Number must be an integer multiple of a step."""

    def __init__(self, step: Number, message: str | None = None):
        super().__init__(message)
        if not step or step < 0:  # type: ignore[operator]
            raise ConfigurationError(f"multiple_of step must be positive: {step}")
        self.step = step

    def check(self, value: Any, context: ValidationContext) -> bool:
        quotient = value / self.step
        if abs(quotient - round(quotient)) > 1e-9:
            return self._fail(
                context,
                f"Number must be a multiple of {self.step}",
                IssueCode.NOT_MULTIPLE_OF,
                multiple_of=self.step,
            )
        return True


class Integer(Constraint):
    """Number must be integral."""

    def check(self, value: Any, context: ValidationContext) -> bool:
        if isinstance(value, int) or (isinstance(value, float) and value.is_integer()):
            return True
        return self._fail(
            context,
            "Expected integer, received float",
            IssueCode.INVALID_TYPE,
            expected="integer", received="float",
        )


class Pattern(Constraint):
    """String value must match regex pattern."""

    def __init__(
        self,
        pattern: str | RegexPattern,
        validation: str = "regex",
        message: str | None = None,
    ):
        """Initialize pattern constraint.

        Args:
            pattern: Regex pattern (string or compiled pattern)
            validation: Name of the format, used in the default message
            message: Optional custom message
        """
        super().__init__(message)
        if isinstance(pattern, str):
            try:
                self.regex = re.compile(pattern)
            except re.error as e:
                raise ConfigurationError(f"Invalid regex pattern '{pattern}': {e!s}") from e
        else:
            self.regex = pattern
        self.pattern_str = self.regex.pattern
        self.validation = validation

    def check(self, value: Any, context: ValidationContext) -> bool:
        """Check if value matches pattern."""
        if not self.regex.search(value):
            return self._fail(
                context,
                f"Invalid {self.validation}",
                IssueCode.INVALID_FORMAT,
                validation=self.validation,
            )
        return True


class Email(Pattern):
    """String must be an email address."""

    def __init__(self, message: str | None = None):
        super().__init__(EMAIL_REGEX, validation="email", message=message)


class Url(Constraint):
    """String must be an absolute URL with scheme and host."""

    def check(self, value: Any, context: ValidationContext) -> bool:
        try:
            parsed = urlparse(value)
            valid = bool(parsed.scheme) and bool(parsed.netloc)
        except ValueError:
            valid = False
        if not valid:
            return self._fail(context, "Invalid url", IssueCode.INVALID_FORMAT, validation="url")
        return True


class Uuid(Constraint):
    """String must be a UUID."""

    def check(self, value: Any, context: ValidationContext) -> bool:
        try:
            uuid.UUID(value)
        except ValueError:
            return self._fail(context, "Invalid uuid", IssueCode.INVALID_FORMAT, validation="uuid")
        return True


class Custom(Constraint):
    """Custom constraint using a predicate callable.

    Exceptions raised by the predicate propagate to the caller.
    """

    def __init__(
        self,
        validator: Callable[[Any], bool],
        message: str | None = None,
        path: tuple[str | int, ...] = (),
    ):
        """Initialize custom constraint.

        Args:
            validator: Callable returning True when the value is acceptable
            message: Error message if validation fails
            path: Extra path segments for the recorded issue
        """
        super().__init__(message)
        self.validator = validator
        self.path = tuple(path)

    def check(self, value: Any, context: ValidationContext) -> bool:
        """Check using custom validator."""
        if self.validator(value):
            return True
        context.add_issue(self.message or "Invalid input", IssueCode.CUSTOM, path=self.path)
        return False
