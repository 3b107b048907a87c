"""Named schemas loaded from configuration files.

Example:
    ```yaml
    # schemas.yaml
    schemas:
      - name: register
        type: object
        fields:
          - name: username
            type: string
            constraints:
              - type: email
          - name: lastName
            type: string
            optional: true
      - "@address.yaml"
    ```

    ```python
    registry = load_schemas("schemas.yaml")
    registry.parse("register", {"username": "dani@example.com"})
    ```
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigurationError, NotFoundError
from .factory import SchemaFactory, schema_factory
from .result import ValidationResult
from .schema import Schema

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Thread-safe registry of schemas by name.

    Args:
        name: Registry name for identification
    """

    def __init__(self, name: str = "schemas"):
        self._name = name
        self._items: Dict[str, Schema] = {}
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        """Get registry name."""
        return self._name

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return self.count()

    def register(self, key: str, schema: Schema, allow_overwrite: bool = False) -> None:
        """Register a schema by name.

        Args:
            key: Unique schema name
            schema: Schema to register
            allow_overwrite: Whether to allow replacing an existing schema

        Raises:
            ConfigurationError: If the name is taken and allow_overwrite is False
        """
        with self._lock:
            if not allow_overwrite and key in self._items:
                raise ConfigurationError(
                    f"Schema '{key}' already registered in {self._name}",
                    context={"key": key, "registry": self._name},
                )
            self._items[key] = schema
            logger.info(f"Registered schema '{key}' in {self._name}")

    def unregister(self, key: str) -> Schema:
        """Unregister and return a schema.

        Raises:
            NotFoundError: If the schema is not registered
        """
        with self._lock:
            if key not in self._items:
                raise NotFoundError(
                    f"Schema not found: {key}",
                    context={"key": key, "registry": self._name},
                )
            return self._items.pop(key)

    def get(self, key: str) -> Schema:
        """Get a schema by name.

        Raises:
            NotFoundError: If the schema is not registered
        """
        with self._lock:
            if key not in self._items:
                raise NotFoundError(
                    f"Schema not found: {key}",
                    context={"key": key, "registry": self._name, "available_keys": list(self._items)},
                )
            return self._items[key]

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._items

    def list_names(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def parse(self, key: str, value: Any) -> Any:
        """Validate ``value`` with the named schema, raising on failure."""
        return self.get(key).parse(value)

    def safe_parse(self, key: str, value: Any) -> ValidationResult:
        """Validate ``value`` with the named schema without raising."""
        return self.get(key).safe_parse(value)


def _read_file(path: Path) -> Any:
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}", context={"path": str(path)})

    suffix = path.suffix.lower()
    with open(path) as f:
        try:
            if suffix in [".yaml", ".yml"]:
                return yaml.safe_load(f) or {}
            elif suffix == ".json":
                return json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot parse {path}: {e!s}", context={"path": str(path)}) from e
    raise ConfigurationError(f"Unsupported file format: {suffix}", context={"path": str(path)})


def load_schemas(
    source: Union[dict, str, Path],
    registry: SchemaRegistry | None = None,
    factory: SchemaFactory | None = None,
) -> SchemaRegistry:
    """Load named schemas from a dictionary or a YAML/JSON file.

    The source's ``schemas`` entry is a list of schema definitions, each with
    a ``name``. An entry may instead be a string ``"@path"`` referencing a
    file holding one definition; relative paths resolve against the
    directory of the loaded file (or the working directory for dicts).

    Args:
        source: Configuration dictionary or file path
        registry: Registry to populate (a new one by default)
        factory: Factory building the schemas

    Returns:
        The populated registry

    Raises:
        ConfigurationError: If the source or any definition is invalid
    """
    registry = registry if registry is not None else SchemaRegistry()
    factory = factory or schema_factory

    if isinstance(source, dict):
        data = source
        config_root = Path.cwd()
    elif isinstance(source, (str, Path)):
        path = Path(source).resolve()
        data = _read_file(path)
        config_root = path.parent
    else:
        raise ConfigurationError(f"Invalid source type: {type(source)}")

    if not isinstance(data, dict):
        raise ConfigurationError("Schema configuration must be a mapping with a 'schemas' list")

    definitions = data.get("schemas") or []
    if not isinstance(definitions, list):
        definitions = [definitions]

    for idx, definition in enumerate(definitions):
        if isinstance(definition, str) and definition.startswith("@"):
            reference = definition[1:]
            if not os.path.isabs(reference):
                reference = str(config_root / reference)
            definition = _read_file(Path(reference).resolve())

        if not isinstance(definition, dict):
            raise ConfigurationError(f"Schema definition {idx} is not a mapping", context={"index": idx})
        name = definition.get("name")
        if not name:
            raise ConfigurationError(f"Schema definition {idx} has no 'name'", context={"index": idx})

        logger.info(f"Creating schema: {name}")
        config = {k: v for k, v in definition.items() if k != "name"}
        registry.register(name, factory.create(**config))

    return registry
