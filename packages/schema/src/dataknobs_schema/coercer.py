"""Type coercion with predictable, consistent behavior.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from datetime import date, datetime, time
from numbers import Integral, Number
from typing import Any

from .result import NEVER, IssueCode, ValidationContext

logger = logging.getLogger(__name__)

TRUE_STRINGS = frozenset(("true", "1", "yes", "y", "on"))
FALSE_STRINGS = frozenset(("false", "0", "no", "n", "off"))

DATETIME_FORMATS = (
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M:%SZ',
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%dT%H:%M:%S.%fZ',
    '%Y/%m/%d %H:%M:%S',
    '%Y/%m/%d',
    '%Y-%m-%d',
    '%d/%m/%Y',
    '%m/%d/%Y',
)


def type_name(value: Any) -> str:
    """Name of the value's kind as used in issue messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float) and math.isnan(value):
        return "nan"
    if isinstance(value, Number):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, date):
        return "date"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, (set, frozenset)):
        return "set"
    return type(value).__name__


class CoercionFailed(Exception):
    """Raised internally when a value cannot be converted."""

    def __init__(self, message: str, code: IssueCode = IssueCode.INVALID_TYPE):
        super().__init__(message)
        self.code = code


class Coercer:
    """Converts raw input toward a primitive schema kind.

    Supported targets are ``string``, ``number``, ``boolean`` and ``date``.
    Never raises for bad input: a failed conversion records one issue on the
    supplied context and returns ``NEVER``.
    """

    def __init__(self) -> None:
        self._coercion_map: dict[str, Callable[[Any], Any]] = {
            "string": self._to_string,
            "number": self._to_number,
            "boolean": self._to_boolean,
            "date": self._to_date,
        }

    @property
    def kinds(self) -> frozenset[str]:
        return frozenset(self._coercion_map)

    def coerce(
        self,
        value: Any,
        kind: str,
        context: ValidationContext | None = None
    ) -> Any:
        """Coerce a value to the target kind.

        Args:
            value: Value to coerce
            kind: Target kind name
            context: Context receiving an issue on failure

        Returns:
            The coerced value, or NEVER if coercion failed

        Raises:
            ValueError: If the kind has no coercion rule
        """
        if kind not in self._coercion_map:
            raise ValueError(f"No coercion rule for kind: {kind}")
        if context is None:
            context = ValidationContext()

        try:
            if value is None:
                raise CoercionFailed(f"Expected {kind}, received null")
            return self._coercion_map[kind](value)
        except CoercionFailed as e:
            logger.debug(f"Coercion to {kind} failed at {context.path!r}: {e}")
            params: dict[str, Any] = {}
            if e.code is IssueCode.INVALID_TYPE:
                params = {"expected": kind, "received": type_name(value)}
            context.add_issue(str(e), e.code, **params)
            return NEVER

    def _to_string(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, bytes):
            try:
                return value.decode('utf-8')
            except UnicodeDecodeError as e:
                raise CoercionFailed(f"Cannot decode bytes as UTF-8: {e!s}") from e
        if isinstance(value, (Mapping, list, tuple, set, frozenset)):
            raise CoercionFailed(f"Expected string, received {type_name(value)}")
        return str(value)

    def _to_number(self, value: Any) -> int | float:
        if isinstance(value, bool):
            return 1 if value else 0
        if isinstance(value, Integral):
            result: int | float = int(value)
        elif isinstance(value, Number):
            try:
                result = float(value)  # type: ignore[arg-type]
            except TypeError:
                raise CoercionFailed(f"Expected number, received {type(value).__name__}") from None
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                raise CoercionFailed("Expected number, received empty string")
            if "_" in text:
                raise CoercionFailed(f"Expected number, received string '{value}'")
            try:
                result = int(text)
            except ValueError:
                try:
                    result = float(text)
                except ValueError:
                    raise CoercionFailed(f"Expected number, received string '{value}'") from None
        else:
            raise CoercionFailed(f"Expected number, received {type_name(value)}")

        if isinstance(result, float) and math.isnan(result):
            raise CoercionFailed("Expected number, received nan")
        return result

    def _to_boolean(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text in TRUE_STRINGS:
                return True
            if text in FALSE_STRINGS:
                return False
            raise CoercionFailed(f"String '{value}' is not a valid boolean")
        if isinstance(value, Number):
            return bool(value)
        raise CoercionFailed(f"Expected boolean, received {type_name(value)}")

    def _to_date(self, value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, str):
            text = value.strip()
            for fmt in DATETIME_FORMATS:
                try:
                    return datetime.strptime(text, fmt)
                except ValueError:
                    continue
            try:
                return datetime.fromisoformat(text.replace('Z', '+00:00'))
            except ValueError:
                raise CoercionFailed(
                    f"Could not parse date from '{value}'", IssueCode.INVALID_DATE
                ) from None
        if isinstance(value, Number) and not isinstance(value, bool):
            try:
                return datetime.fromtimestamp(float(value))  # type: ignore[arg-type]
            except (OverflowError, OSError, ValueError) as e:
                raise CoercionFailed(f"Invalid timestamp {value}: {e!s}", IssueCode.INVALID_DATE) from e
        raise CoercionFailed(f"Expected date, received {type_name(value)}")
