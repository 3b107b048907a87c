"""Declarative schema validation.

This package validates untrusted values against immutable schemas:

- **Schemas**: string, number, boolean, date, object, array, set, map,
  enum, literal and union kinds with a fluent builder API
- **Coercion**: optional conversion of input toward primitive kinds
- **Results**: ``safe_parse`` returns a ValidationResult carrying every issue;
  ``parse`` raises a ValidationError with the same issues
- **Refinements**: transforms and checks attached to any schema
- **Configuration**: schemas built from YAML/JSON definitions

Example:
    ```python
    from dataknobs_schema import ObjectSchema, StringSchema

    login = ObjectSchema({
        "username": StringSchema().email(),
        "password": StringSchema().min(6).max(20),
    })
    result = login.safe_parse({"username": "dani", "password": "12"})
    result.success
    # False
    [issue.location for issue in result.issues]
    # ['username', 'password']
    ```
"""

from .coercer import Coercer
from .config import SchemaRegistry, load_schemas
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
from .exceptions import ConfigurationError, NotFoundError, SchemaError, ValidationError
from .factory import SchemaFactory, schema_factory
from .result import NEVER, IssueCode, ValidationContext, ValidationIssue, ValidationResult
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
from .validator import parse, safe_parse, safe_parse_many

__version__ = "1.0.0"

__all__ = [
    # Version
    "__version__",
    # Entry points
    "parse",
    "safe_parse",
    "safe_parse_many",
    # Schemas
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
    # Result types
    "NEVER",
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "ValidationContext",
    # Constraints
    "Constraint",
    "Length",
    "Range",
    "Integer",
    "MultipleOf",
    "Pattern",
    "Email",
    "Url",
    "Uuid",
    "Custom",
    # Coercion
    "Coercer",
    # Configuration
    "SchemaFactory",
    "schema_factory",
    "SchemaRegistry",
    "load_schemas",
    # Exceptions
    "SchemaError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
]
