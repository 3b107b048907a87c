"""Function-style entry points for validating values against schemas.

    ```python
    from dataknobs_schema import NumberSchema, parse, safe_parse

    price = NumberSchema(coerce=True).min(1000).max(1000000)
    parse(price, "10000")          # 10000
    safe_parse(price, "12").success  # False
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from .result import ValidationResult
from .schema import Schema

logger = logging.getLogger(__name__)


def parse(schema: Schema, value: Any) -> Any:
    """Validate ``value`` against ``schema`` and return the parsed value.

    Args:
        schema: Schema to validate against
        value: Untrusted input

    Returns:
        The validated, coerced and transformed value

    Raises:
        ValidationError: With all issues found when the value is invalid
    """
    return schema.parse(value)


def safe_parse(schema: Schema, value: Any) -> ValidationResult:
    """Validate ``value`` against ``schema`` without raising.

    Args:
        schema: Schema to validate against
        value: Untrusted input

    Returns:
        ValidationResult; check ``success`` before reading ``data``
    """
    return schema.safe_parse(value)


def safe_parse_many(
    schema: Schema,
    values: Iterable[Any],
    stop_on_error: bool = False
) -> list[ValidationResult]:
    """Validate several values against one schema.

    Args:
        schema: Schema to validate against
        values: Inputs to validate
        stop_on_error: If True, stop after the first failed value

    Returns:
        One ValidationResult per validated value
    """
    results = []

    for index, value in enumerate(values):
        result = schema.safe_parse(value)
        results.append(result)

        if not result.success and stop_on_error:
            logger.debug(f"Stopping batch validation at index {index}")
            break

    return results
