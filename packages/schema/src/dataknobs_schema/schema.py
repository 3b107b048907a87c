"""Schema definitions with a fluent, immutable builder API.

Every builder method returns a new schema, so a schema can be shared and
extended without affecting other users of it:

    ```python
    password = StringSchema().min(6).max(20)
    login = ObjectSchema({
        "username": StringSchema().email("username harus email"),
        "password": password,
    })
    login.parse({"username": "dani@test.com", "password": "rahasia"})
    ```
"""

from __future__ import annotations

import copy
import inspect
import logging
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime, time
from enum import Enum
from numbers import Number
from types import MappingProxyType
from typing import Any, ClassVar, TypeVar

from .coercer import Coercer, type_name
from .constraints import (
    Constraint,
    Custom,
    Email,
    Integer,
    Length,
    MultipleOf,
    Pattern,
    Range,
    Url,
    Uuid,
)
from .exceptions import ConfigurationError, ValidationError
from .result import NEVER, IssueCode, ValidationContext, ValidationResult

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="Schema")

_MISSING = object()
_coercer = Coercer()


def _accepts_context(fn: Callable[..., Any]) -> bool:
    """Whether a transform takes the validation context as second argument."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return False
    positional = 0
    for param in signature.parameters.values():
        if param.kind is param.VAR_POSITIONAL:
            return True
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 2


class _Transform:
    def __init__(self, fn: Callable[..., Any]):
        self.fn = fn
        self.accepts_context = _accepts_context(fn)

    def apply(self, value: Any, context: ValidationContext) -> Any:
        mark = context.issue_count
        result = self.fn(value, context) if self.accepts_context else self.fn(value)
        if result is NEVER:
            if not context.has_issues_since(mark):
                context.add_issue("Invalid input", IssueCode.CUSTOM)
            return NEVER
        if context.has_issues_since(mark):
            return NEVER
        return result


class _Refinement:
    def __init__(self, constraint: Constraint):
        self.constraint = constraint

    def apply(self, value: Any, context: ValidationContext) -> Any:
        return value if self.constraint.check(value, context) else NEVER


class Schema(ABC):
    """Base class of all schema kinds.

    Subclasses implement ``_parse_value`` for a non-null input. Null handling
    (optional, nullable, default) and effects (transforms and refinements)
    are shared.
    """

    kind: ClassVar[str] = "any"

    def __init__(self, *, coerce: bool = False, description: str | None = None):
        self._coerce = coerce
        self._constraints: tuple[Constraint, ...] = ()
        self._effects: tuple[_Transform | _Refinement, ...] = ()
        self._optional = False
        self._nullable = False
        self._default: Any = _MISSING
        self.description = description

    def __repr__(self) -> str:
        flags = [name for name, on in (
            ("coerce", self._coerce),
            ("optional", self._optional),
            ("nullable", self._nullable),
            ("default", self.has_default),
        ) if on]
        extra = f", {', '.join(flags)}" if flags else ""
        return f"{type(self).__name__}(constraints={len(self._constraints)}{extra})"

    def __or__(self, other: Schema) -> UnionSchema:
        """Combine with OR: the value must satisfy either schema."""
        if isinstance(self, UnionSchema) and self._is_plain():
            return UnionSchema(self.options + (other,))
        return UnionSchema([self, other])

    @property
    def coerce(self) -> bool:
        return self._coerce

    @property
    def constraints(self) -> tuple[Constraint, ...]:
        return self._constraints

    @property
    def is_optional(self) -> bool:
        return self._optional

    @property
    def is_nullable(self) -> bool:
        return self._nullable

    @property
    def has_default(self) -> bool:
        return self._default is not _MISSING

    def _copy(self: S, **attrs: Any) -> S:
        clone = copy.copy(self)
        for name, value in attrs.items():
            setattr(clone, name, value)
        return clone

    def _with_constraint(self: S, constraint: Constraint) -> S:
        return self._copy(_constraints=self._constraints + (constraint,))

    def optional(self: S) -> S:
        """Allow the value to be missing (in an object) or None."""
        return self._copy(_optional=True)

    def nullable(self: S) -> S:
        """Allow None as a value."""
        return self._copy(_nullable=True)

    def default(self: S, value: Any) -> S:
        """Use ``value`` when the input is missing or None.

        A callable is invoked on every use; any other value is deep-copied.
        The default is validated like any other input.
        """
        return self._copy(_default=value)

    def describe(self: S, description: str) -> S:
        return self._copy(description=description)

    def transform(self: S, fn: Callable[..., Any]) -> S:
        """Append a transform applied after validation succeeds.

        ``fn`` receives the value, and the ``ValidationContext`` if it takes a
        second positional argument. It returns the new value, or ``NEVER``
        after recording an issue with ``ctx.add_issue``.
        """
        return self._copy(_effects=self._effects + (_Transform(fn),))

    def refine(
        self: S,
        predicate: Callable[[Any], bool],
        message: str | None = None,
        path: tuple[str | int, ...] = (),
    ) -> S:
        """Append a check that records a custom issue when ``predicate`` is False."""
        refinement = _Refinement(Custom(predicate, message, path))
        return self._copy(_effects=self._effects + (refinement,))

    def parse(self, value: Any) -> Any:
        """Validate ``value`` and return the parsed result.

        Raises:
            ValidationError: With every issue found
        """
        result = self.safe_parse(value)
        if not result.success:
            raise ValidationError(result.issues)
        return result.data

    def safe_parse(self, value: Any) -> ValidationResult:
        """Validate ``value`` without raising for invalid input."""
        context = ValidationContext()
        data = self._parse(value, context)
        if context.issues:
            logger.debug(f"{type(self).__name__} rejected input with {len(context.issues)} issue(s)")
            return ValidationResult.fail(context.issues)
        return ValidationResult.ok(data)

    def _default_value(self) -> Any:
        if callable(self._default):
            return self._default()
        return copy.deepcopy(self._default)

    def _parse(self, value: Any, context: ValidationContext) -> Any:
        if value is None and self.has_default:
            value = self._default_value()
        if value is None and not self._accepts_null():
            if self._optional or self._nullable:
                return None
            context.add_issue(
                f"Expected {self.kind}, received null",
                IssueCode.INVALID_TYPE,
                expected=self.kind, received="null",
            )
            return NEVER

        value = self._parse_value(value, context)
        if value is NEVER:
            return NEVER

        for effect in self._effects:
            value = effect.apply(value, context)
            if value is NEVER:
                return NEVER
        return value

    def _accepts_null(self) -> bool:
        """Whether None is a regular value of this kind."""
        return False

    @abstractmethod
    def _parse_value(self, value: Any, context: ValidationContext) -> Any:
        """Validate a value, returning it or NEVER.

        Receives None only when ``_accepts_null`` is True.
        """

    def _check_constraints(self, value: Any, context: ValidationContext) -> bool:
        passed = True
        for constraint in self._constraints:
            if not constraint.check(value, context):
                passed = False
        return passed

    def _invalid_type(self, value: Any, context: ValidationContext) -> Any:
        received = type_name(value)
        context.add_issue(
            f"Expected {self.kind}, received {received}",
            IssueCode.INVALID_TYPE,
            expected=self.kind, received=received,
        )
        return NEVER


class _PrimitiveSchema(Schema):
    """Coercible scalar kinds."""

    def _parse_value(self, value: Any, context: ValidationContext) -> Any:
        if self._coerce:
            value = _coercer.coerce(value, self.kind, context)
            if value is NEVER:
                return NEVER
        if not self._accepts(value):
            return self._invalid_type(value, context)
        value = self._normalize(value)
        if not self._check_constraints(value, context):
            return NEVER
        return value

    @abstractmethod
    def _accepts(self, value: Any) -> bool:
        """Whether the value already has this kind's type."""

    def _normalize(self, value: Any) -> Any:
        return value


class StringSchema(_PrimitiveSchema):
    """String values with length and format constraints."""

    kind = "string"

    def __init__(self, *, coerce: bool = False, description: str | None = None):
        super().__init__(coerce=coerce, description=description)
        self._normalizers: tuple[Callable[[str], str], ...] = ()

    def _accepts(self, value: Any) -> bool:
        return isinstance(value, str)

    def _normalize(self, value: Any) -> Any:
        for normalizer in self._normalizers:
            value = normalizer(value)
        return value

    def min(self, length: int, message: str | None = None) -> StringSchema:
        return self._with_constraint(Length(min=length, message=message))

    def max(self, length: int, message: str | None = None) -> StringSchema:
        return self._with_constraint(Length(max=length, message=message))

    def length(self, length: int, message: str | None = None) -> StringSchema:
        return self._with_constraint(Length(min=length, max=length, message=message))

    def nonempty(self, message: str | None = None) -> StringSchema:
        return self.min(1, message)

    def email(self, message: str | None = None) -> StringSchema:
        return self._with_constraint(Email(message))

    def url(self, message: str | None = None) -> StringSchema:
        return self._with_constraint(Url(message))

    def uuid(self, message: str | None = None) -> StringSchema:
        return self._with_constraint(Uuid(message))

    def regex(self, pattern: str, message: str | None = None) -> StringSchema:
        return self._with_constraint(Pattern(pattern, message=message))

    def starts_with(self, prefix: str, message: str | None = None) -> StringSchema:
        return self._with_constraint(
            Pattern(f"^{re.escape(prefix)}", validation=f"input: must start with '{prefix}'",
                    message=message)
        )

    def ends_with(self, suffix: str, message: str | None = None) -> StringSchema:
        return self._with_constraint(
            Pattern(f"{re.escape(suffix)}$", validation=f"input: must end with '{suffix}'",
                    message=message)
        )

    def strip(self) -> StringSchema:
        """Strip surrounding whitespace before the constraints run."""
        return self._copy(_normalizers=self._normalizers + (str.strip,))

    def lower(self) -> StringSchema:
        return self._copy(_normalizers=self._normalizers + (str.lower,))

    def upper(self) -> StringSchema:
        return self._copy(_normalizers=self._normalizers + (str.upper,))


class NumberSchema(_PrimitiveSchema):
    """Int or float values; booleans and NaN are rejected."""

    kind = "number"

    def _accepts(self, value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return not (isinstance(value, float) and math.isnan(value))

    def min(self, value: Number, message: str | None = None) -> NumberSchema:
        return self._with_constraint(Range(min=value, message=message))

    def max(self, value: Number, message: str | None = None) -> NumberSchema:
        return self._with_constraint(Range(max=value, message=message))

    gte = min
    lte = max

    def gt(self, value: Number, message: str | None = None) -> NumberSchema:
        return self._with_constraint(Range(min=value, min_exclusive=True, message=message))

    def lt(self, value: Number, message: str | None = None) -> NumberSchema:
        return self._with_constraint(Range(max=value, max_exclusive=True, message=message))

    def positive(self, message: str | None = None) -> NumberSchema:
        return self.gt(0, message)

    def negative(self, message: str | None = None) -> NumberSchema:
        return self.lt(0, message)

    def nonnegative(self, message: str | None = None) -> NumberSchema:
        return self.min(0, message)

    def nonpositive(self, message: str | None = None) -> NumberSchema:
        return self.max(0, message)

    def integer(self, message: str | None = None) -> NumberSchema:
        return self._with_constraint(Integer(message))

    def multiple_of(self, step: Number, message: str | None = None) -> NumberSchema:
        return self._with_constraint(MultipleOf(step, message))


class BooleanSchema(_PrimitiveSchema):
    kind = "boolean"

    def _accepts(self, value: Any) -> bool:
        return isinstance(value, bool)


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


class DateSchema(_PrimitiveSchema):
    """Date values, normalized to ``datetime``."""

    kind = "date"

    def _accepts(self, value: Any) -> bool:
        return isinstance(value, date)

    def _normalize(self, value: Any) -> Any:
        return _as_datetime(value)

    def min(self, value: date, message: str | None = None) -> DateSchema:
        return self._with_constraint(Range(min=_as_datetime(value), label="Date", message=message))

    def max(self, value: date, message: str | None = None) -> DateSchema:
        return self._with_constraint(Range(max=_as_datetime(value), label="Date", message=message))


class ObjectSchema(Schema):
    """Mapping with a fixed set of named fields.

    Unknown keys are dropped by default; ``strict()`` reports them and
    ``passthrough()`` keeps them.
    """

    kind = "object"
    UNKNOWN_KEY_POLICIES = ("strip", "strict", "passthrough")

    def __init__(
        self,
        shape: Mapping[str, Schema],
        unknown_keys: str = "strip",
        *,
        description: str | None = None,
    ):
        super().__init__(description=description)
        if unknown_keys not in self.UNKNOWN_KEY_POLICIES:
            raise ConfigurationError(
                f"Invalid unknown key policy: {unknown_keys}",
                context={"allowed": list(self.UNKNOWN_KEY_POLICIES)},
            )
        for name, field_schema in shape.items():
            if not isinstance(field_schema, Schema):
                raise ConfigurationError(f"Field '{name}' is not a schema: {field_schema!r}")
        self._shape = dict(shape)
        self.unknown_keys = unknown_keys

    @property
    def shape(self) -> Mapping[str, Schema]:
        return MappingProxyType(self._shape)

    def strict(self) -> ObjectSchema:
        return self._copy(unknown_keys="strict")

    def passthrough(self) -> ObjectSchema:
        return self._copy(unknown_keys="passthrough")

    def strip(self) -> ObjectSchema:
        return self._copy(unknown_keys="strip")

    def extend(self, shape: Mapping[str, Schema]) -> ObjectSchema:
        """New object schema with added or replaced fields."""
        return self._copy(_shape={**self._shape, **shape})

    def pick(self, *keys: str) -> ObjectSchema:
        self._require_keys(keys)
        return self._copy(_shape={k: v for k, v in self._shape.items() if k in keys})

    def omit(self, *keys: str) -> ObjectSchema:
        self._require_keys(keys)
        return self._copy(_shape={k: v for k, v in self._shape.items() if k not in keys})

    def partial(self) -> ObjectSchema:
        """New object schema where every field is optional."""
        return self._copy(_shape={k: v.optional() for k, v in self._shape.items()})

    def _require_keys(self, keys: Iterable[str]) -> None:
        unknown = [k for k in keys if k not in self._shape]
        if unknown:
            raise ConfigurationError(
                f"Unknown field(s): {', '.join(unknown)}",
                context={"fields": list(self._shape)},
            )

    def _parse_value(self, value: Any, context: ValidationContext) -> Any:
        if not isinstance(value, Mapping):
            return self._invalid_type(value, context)

        mark = context.issue_count
        output: dict[str, Any] = {}

        for name, field_schema in self._shape.items():
            field_context = context.child(name)
            if name in value:
                result = field_schema._parse(value[name], field_context)
            elif field_schema.has_default:
                result = field_schema._parse(None, field_context)
            elif field_schema.is_optional:
                continue
            else:
                field_context.add_issue(
                    "Required", IssueCode.REQUIRED,
                    expected=field_schema.kind, received="undefined",
                )
                continue
            if result is not NEVER:
                output[name] = result

        unknown = [key for key in value if key not in self._shape]
        if unknown and self.unknown_keys == "strict":
            context.add_issue(
                f"Unrecognized key(s) in object: {', '.join(repr(k) for k in unknown)}",
                IssueCode.UNRECOGNIZED_KEYS,
                keys=unknown,
            )
        elif unknown and self.unknown_keys == "passthrough":
            for key in unknown:
                output[key] = value[key]

        if context.has_issues_since(mark) or not self._check_constraints(output, context):
            return NEVER
        return output


class ArraySchema(Schema):
    """List (or tuple) of elements sharing one schema; output is a list."""

    kind = "array"
    label = "Array"

    def __init__(self, element: Schema, *, description: str | None = None):
        super().__init__(description=description)
        if not isinstance(element, Schema):
            raise ConfigurationError(f"Element is not a schema: {element!r}")
        self.element = element

    def min(self, count: int, message: str | None = None):
        return self._with_constraint(Length(min=count, label=self.label, message=message))

    def max(self, count: int, message: str | None = None):
        return self._with_constraint(Length(max=count, label=self.label, message=message))

    def nonempty(self, message: str | None = None):
        return self.min(1, message)

    def length(self, count: int, message: str | None = None) -> ArraySchema:
        return self._with_constraint(Length(min=count, max=count, label=self.label, message=message))

    def _accepts(self, value: Any) -> bool:
        return isinstance(value, (list, tuple))

    def _parse_value(self, value: Any, context: ValidationContext) -> Any:
        if not self._accepts(value):
            return self._invalid_type(value, context)

        elements = list(value)
        mark = context.issue_count
        self._check_constraints(elements, context)

        output = [
            self.element._parse(item, context.child(index))
            for index, item in enumerate(elements)
        ]
        if context.has_issues_since(mark):
            return NEVER
        return output


class SetSchema(ArraySchema):
    """Collection of unique elements.

    Elements are parsed first and equal parsed values collapse, so size
    constraints apply to the set that is returned.
    """

    kind = "set"
    label = "Set"

    def _accepts(self, value: Any) -> bool:
        return isinstance(value, (set, frozenset, list, tuple))

    def _parse_value(self, value: Any, context: ValidationContext) -> Any:
        if not self._accepts(value):
            return self._invalid_type(value, context)

        mark = context.issue_count
        output = set()
        for index, item in enumerate(value):
            item_context = context.child(index)
            parsed = self.element._parse(item, item_context)
            if parsed is NEVER:
                continue
            try:
                output.add(parsed)
            except TypeError:
                item_context.add_issue(
                    f"Set elements must be hashable, received {type_name(parsed)}",
                    IssueCode.INVALID_TYPE,
                    expected="hashable", received=type_name(parsed),
                )
        if context.has_issues_since(mark) or not self._check_constraints(output, context):
            return NEVER
        return output


class MapSchema(Schema):
    """Mapping whose keys and values are each checked by their own schema."""

    kind = "map"

    def __init__(self, key: Schema, value: Schema, *, description: str | None = None):
        super().__init__(description=description)
        if not isinstance(key, Schema) or not isinstance(value, Schema):
            raise ConfigurationError("Map key and value must both be schemas")
        self.key = key
        self.value = value

    def _parse_value(self, value: Any, context: ValidationContext) -> Any:
        if not isinstance(value, Mapping):
            return self._invalid_type(value, context)

        mark = context.issue_count
        output: dict[Any, Any] = {}
        for raw_key, raw_value in value.items():
            entry = context.child(raw_key)
            parsed_key = self.key._parse(raw_key, entry.child("key"))
            parsed_value = self.value._parse(raw_value, entry.child("value"))
            if parsed_key is not NEVER and parsed_value is not NEVER:
                output[parsed_key] = parsed_value

        if context.has_issues_since(mark) or not self._check_constraints(output, context):
            return NEVER
        return output


class EnumSchema(Schema):
    """One of a fixed set of values, or a member of an ``Enum`` class."""

    kind = "enum"

    def __init__(self, values: Iterable[Any] | type[Enum], *, description: str | None = None):
        super().__init__(description=description)
        self.enum_class: type[Enum] | None = None
        if isinstance(values, type) and issubclass(values, Enum):
            self.enum_class = values
            self.values: tuple[Any, ...] = tuple(member.value for member in values)
        else:
            self.values = tuple(values)
        if not self.values:
            raise ConfigurationError("Enum schema requires at least one allowed value")

    def _parse_value(self, value: Any, context: ValidationContext) -> Any:
        if self.enum_class is not None and isinstance(value, self.enum_class):
            return value
        for allowed in self.values:
            if value == allowed and type(value) is type(allowed):
                return self.enum_class(allowed) if self.enum_class else value
        expected = " | ".join(repr(v) for v in self.values)
        context.add_issue(
            f"Invalid enum value. Expected {expected}, received {value!r}",
            IssueCode.INVALID_ENUM_VALUE,
            options=list(self.values), received=value,
        )
        return NEVER


class LiteralSchema(Schema):
    """Exactly one value."""

    kind = "literal"

    def __init__(self, value: Any, *, description: str | None = None):
        super().__init__(description=description)
        self.value = value

    def _accepts_null(self) -> bool:
        return self.value is None

    def _parse_value(self, value: Any, context: ValidationContext) -> Any:
        if value == self.value and type(value) is type(self.value):
            return value
        context.add_issue(
            f"Invalid literal value, expected {self.value!r}",
            IssueCode.INVALID_LITERAL,
            expected=self.value, received=value,
        )
        return NEVER


class UnionSchema(Schema):
    """The first option that accepts the value wins."""

    kind = "union"

    def __init__(self, options: Iterable[Schema], *, description: str | None = None):
        super().__init__(description=description)
        self.options = tuple(options)
        if len(self.options) < 2:
            raise ConfigurationError("Union schema requires at least two options")

    def _is_plain(self) -> bool:
        """Whether the union carries nothing beyond its options."""
        return not (
            self._optional or self._nullable or self.has_default
            or self._effects or self._constraints or self.description
        )

    def _accepts_null(self) -> bool:
        return any(
            option.is_optional or option.is_nullable or option.has_default or option._accepts_null()
            for option in self.options
        )

    def _parse_value(self, value: Any, context: ValidationContext) -> Any:
        attempts: list[ValidationContext] = []
        for option in self.options:
            attempt = ValidationContext(context.path)
            result = option._parse(value, attempt)
            if not attempt.issues:
                return result
            attempts.append(attempt)

        # an option that got past the type check explains the failure best
        matched = [a for a in attempts if not _is_type_mismatch(a, context)]
        if len(matched) == 1:
            context.issues.extend(matched[0].issues)
            return NEVER

        context.add_issue(
            "Invalid input",
            IssueCode.INVALID_UNION,
            union_errors=[[issue.to_dict() for issue in a.issues] for a in attempts],
        )
        return NEVER


def _is_type_mismatch(attempt: ValidationContext, parent: ValidationContext) -> bool:
    return all(
        issue.code is IssueCode.INVALID_TYPE and issue.path == parent.path
        for issue in attempt.issues
    )


__all__ = [
    "Schema",
    "StringSchema",
    "NumberSchema",
    "BooleanSchema",
    "DateSchema",
    "ObjectSchema",
    "ArraySchema",
    "SetSchema",
    "MapSchema",
    "EnumSchema",
    "LiteralSchema",
    "UnionSchema",
]
