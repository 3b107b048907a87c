"""Factory for building schemas from configuration."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from .coercer import Coercer
from .exceptions import ConfigurationError
from .result import NEVER
from .schema import (
    ArraySchema,
    BooleanSchema,
    DateSchema,
    EnumSchema,
    LiteralSchema,
    MapSchema,
    NumberSchema,
    ObjectSchema,
    Schema,
    SetSchema,
    StringSchema,
    UnionSchema,
)

logger = logging.getLogger(__name__)

# constraints taking a single ``value`` argument
VALUE_CONSTRAINTS = frozenset((
    "min", "max", "gte", "lte", "gt", "lt", "multiple_of", "starts_with", "ends_with",
))

# constraints taking no argument besides the optional message
FLAG_CONSTRAINTS = frozenset((
    "email", "url", "uuid", "nonempty", "integer",
    "positive", "negative", "nonnegative", "nonpositive",
))

STRING_NORMALIZERS = frozenset(("strip", "lower", "upper"))


class SchemaFactory:
    """Factory for creating validation schemas from configuration.

    Configuration Options:
        type (str): Schema kind: string, number, boolean, date, object,
            array, set, map, enum, literal, union (default: string)
        coerce (bool): Coerce input toward a primitive kind (default: False)
        optional (bool): Allow missing / None values (default: False)
        nullable (bool): Allow None values (default: False)
        default (any): Value used when the input is missing
        description (str): Optional description
        constraints (list): Constraint definitions, applied in order

    Kind-specific Options:
        fields (list): object fields, each a schema definition with a ``name``
        strict / passthrough (bool): object unknown-key policy
        items (dict): element schema of an array or set
        key / value (dict): key and value schemas of a map
        values (list): allowed values of an enum
        value (any): the single value of a literal
        options (list): alternative schemas of a union

    Example Configuration:
        schemas:
          - name: login
            type: object
            strict: true
            fields:
              - name: username
                type: string
                constraints:
                  - type: email
                    message: username harus email
              - name: password
                type: string
                constraints:
                  - type: length
                    min: 6
                    max: 20
    """

    def __init__(self) -> None:
        self._coercer = Coercer()
        self._builders: dict[str, Callable[[dict[str, Any]], Schema]] = {
            "string": lambda c: StringSchema(coerce=c.get("coerce", False)),
            "number": lambda c: NumberSchema(coerce=c.get("coerce", False)),
            "boolean": lambda c: BooleanSchema(coerce=c.get("coerce", False)),
            "date": lambda c: DateSchema(coerce=c.get("coerce", False)),
            "object": self._build_object,
            "array": lambda c: ArraySchema(self._child(c, "items")),
            "set": lambda c: SetSchema(self._child(c, "items")),
            "map": lambda c: MapSchema(self._child(c, "key"), self._child(c, "value")),
            "enum": lambda c: EnumSchema(c.get("values") or []),
            "literal": self._build_literal,
            "union": self._build_union,
        }

    @property
    def kinds(self) -> list[str]:
        return list(self._builders)

    def create(self, **config: Any) -> Schema:
        """Create a Schema instance from configuration.

        Args:
            **config: Schema configuration

        Returns:
            Schema instance

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        kind = str(config.get("type", "string")).lower()
        builder = self._builders.get(kind)
        if builder is None:
            raise ConfigurationError(
                f"Unknown schema type: '{kind}'",
                context={"type": kind, "available": self.kinds},
            )

        schema = builder(config)
        for constraint_config in config.get("constraints") or []:
            schema = self._apply_constraint(schema, constraint_config)

        if config.get("optional"):
            schema = schema.optional()
        if config.get("nullable"):
            schema = schema.nullable()
        if "default" in config:
            schema = schema.default(config["default"])
        if config.get("description"):
            schema = schema.describe(config["description"])
        return schema

    def _child(self, config: dict[str, Any], key: str) -> Schema:
        child_config = config.get(key)
        if not isinstance(child_config, dict):
            raise ConfigurationError(
                f"{config.get('type')} schema requires a '{key}' schema definition",
                context={"key": key},
            )
        return self.create(**child_config)

    def _build_object(self, config: dict[str, Any]) -> ObjectSchema:
        fields = config.get("fields") or []
        if isinstance(fields, dict):
            fields = [{"name": name, **field_config} for name, field_config in fields.items()]

        shape: dict[str, Schema] = {}
        for field_config in fields:
            field_name = field_config.get("name")
            if not field_name:
                logger.warning("Field configuration missing 'name', skipping")
                continue
            field_config = {k: v for k, v in field_config.items() if k != "name"}
            shape[field_name] = self.create(**field_config)

        if config.get("strict"):
            unknown_keys = "strict"
        elif config.get("passthrough"):
            unknown_keys = "passthrough"
        else:
            unknown_keys = "strip"
        return ObjectSchema(shape, unknown_keys)

    def _build_literal(self, config: dict[str, Any]) -> LiteralSchema:
        if "value" not in config:
            raise ConfigurationError("literal schema requires a 'value'")
        return LiteralSchema(config["value"])

    def _build_union(self, config: dict[str, Any]) -> UnionSchema:
        return UnionSchema(self.create(**option) for option in config.get("options") or [])

    def _apply_constraint(self, schema: Schema, config: dict[str, Any]) -> Schema:
        """Apply one constraint definition to a schema.

        Args:
            schema: Schema to constrain
            config: Constraint configuration

        Returns:
            The new, constrained schema
        """
        constraint_type = str(config.get("type", "")).lower()
        message = config.get("message")

        if constraint_type in ("length", "range", "size") and "value" not in config:
            if config.get("min") is not None:
                schema = self._call(schema, "min", self._bound(schema, config["min"]), message)
            if config.get("max") is not None:
                schema = self._call(schema, "max", self._bound(schema, config["max"]), message)

        elif constraint_type == "length":
            schema = self._call(schema, "length", config["value"], message)

        elif constraint_type in VALUE_CONSTRAINTS:
            if "value" not in config:
                raise ConfigurationError(f"Constraint '{constraint_type}' requires a 'value'")
            schema = self._call(schema, constraint_type, self._bound(schema, config["value"]), message)

        elif constraint_type in ("pattern", "regex"):
            pattern = config.get("pattern")
            if pattern:
                schema = self._call(schema, "regex", pattern, message)

        elif constraint_type in FLAG_CONSTRAINTS:
            schema = self._call(schema, constraint_type, message)

        elif constraint_type in STRING_NORMALIZERS:
            if not isinstance(schema, StringSchema):
                raise ConfigurationError(f"'{constraint_type}' only applies to string schemas")
            schema = getattr(schema, constraint_type)()

        else:
            logger.warning(f"Unknown constraint type: {constraint_type}")

        return schema

    def _call(self, schema: Schema, method_name: str, *args: Any) -> Schema:
        method = getattr(schema, method_name, None)
        if method is None:
            raise ConfigurationError(
                f"Constraint '{method_name}' does not apply to {schema.kind} schemas",
                context={"constraint": method_name, "kind": schema.kind},
            )
        return method(*args)

    def _bound(self, schema: Schema, value: Any) -> Any:
        """Convert configured date bounds (usually strings) to datetimes."""
        if isinstance(schema, DateSchema) and not isinstance(value, datetime):
            converted = self._coercer.coerce(value, "date")
            if converted is NEVER:
                raise ConfigurationError(f"Invalid date bound: {value!r}")
            return converted
        return value


# Create singleton instance for registration
schema_factory = SchemaFactory()
