# File: napi_mvc/inspector.py
"""
napi-mvc - Schema Inspector
============================

Looks up the columns and foreign keys of one table.

``SchemaInspector``
    Reflects a live catalog through SQLAlchemy.  Every call builds its own
    engine, borrows one pooled connection, and disposes the pool before
    returning, so each CLI invocation starts from a fresh pool.

``SchemaFileInspector``
    Same contract, reading a JSON/YAML schema document instead of a
    database.  Handy for generating without network access.

Both raise ``TableNotFoundError`` when the table is absent.  Connectivity
and query errors from the catalog (``SQLAlchemyError``) are not caught.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import yaml
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Dialect
from sqlalchemy.exc import CompileError
from sqlalchemy.types import TypeEngine

from napi_mvc.config import ConnectionSettings
from napi_mvc.errors import TableNotFoundError
from napi_mvc.models import ColumnMetadata, ForeignKeyMetadata, TableSchema

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("napi_mvc.inspector")


class TableSource(Protocol):
    """Anything that can describe a table by name."""

    def inspect(self, table_name: str) -> TableSchema: ...


# ---------------------------------------------------------------------------
# Reflection helpers
# ---------------------------------------------------------------------------


def _type_name(column_type: TypeEngine[Any], dialect: Dialect) -> str:
    """Render a reflected type the way the catalog names it."""
    try:
        return str(column_type.compile(dialect=dialect))
    except CompileError:
        # NullType and friends have no DDL form
        return type(column_type).__name__


def _columns_from_reflection(
    raw_columns: List[Dict[str, Any]], dialect: Dialect
) -> List[ColumnMetadata]:
    return [
        ColumnMetadata(
            name=raw["name"],
            data_type=_type_name(raw["type"], dialect),
            nullable=raw.get("nullable", True),
        )
        for raw in raw_columns
    ]


def _foreign_keys_from_reflection(
    raw_foreign_keys: List[Dict[str, Any]],
) -> List[ForeignKeyMetadata]:
    """Flatten (possibly composite) constraints into per-column references."""
    result: List[ForeignKeyMetadata] = []
    for fk in raw_foreign_keys:
        referred_columns: List[Optional[str]] = list(fk.get("referred_columns") or [])
        for index, local_column in enumerate(fk["constrained_columns"]):
            remote: Optional[str] = (
                referred_columns[index] if index < len(referred_columns) else None
            )
            result.append(ForeignKeyMetadata(
                column_name=local_column,
                referenced_table=fk["referred_table"],
                referenced_column=remote or "id",
            ))
    return result


# ---------------------------------------------------------------------------
# Live catalog
# ---------------------------------------------------------------------------


class SchemaInspector:
    """
    Reflects table metadata from the configured database.

    Usage::

        inspector = SchemaInspector(ConnectionSettings.resolve())
        schema = inspector.inspect("products")
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        *,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._settings: ConnectionSettings = settings
        self._log: logging.Logger = log or logger

    def inspect(self, table_name: str) -> TableSchema:
        """
        Return the columns and foreign keys of *table_name*.

        Raises:
            TableNotFoundError: the table does not exist or has no columns.
            sqlalchemy.exc.SQLAlchemyError: connectivity or query failure.
        """
        schema_scope: Optional[str] = self._settings.catalog_schema
        self._log.debug(
            "Inspecting '%s' (schema=%s) on %s.",
            table_name,
            schema_scope,
            self._settings.display_url(),
        )

        engine = create_engine(self._settings.sqlalchemy_url(), pool_pre_ping=True)
        try:
            with engine.connect() as connection:
                catalog = inspect(connection)
                if not catalog.has_table(table_name, schema=schema_scope):
                    raise TableNotFoundError(table_name)

                columns: List[ColumnMetadata] = _columns_from_reflection(
                    catalog.get_columns(table_name, schema=schema_scope),
                    engine.dialect,
                )
                foreign_keys: List[ForeignKeyMetadata] = (
                    _foreign_keys_from_reflection(
                        catalog.get_foreign_keys(table_name, schema=schema_scope)
                    )
                )
        finally:
            engine.dispose()

        if not columns:
            raise TableNotFoundError(table_name)

        self._log.debug(
            "Reflected '%s': %d columns, %d foreign keys.",
            table_name,
            len(columns),
            len(foreign_keys),
        )
        return TableSchema(
            table_name=table_name,
            columns=tuple(columns),
            foreign_keys=tuple(foreign_keys),
        )


# ---------------------------------------------------------------------------
# Schema document loader
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_schema_file(path: Path) -> Dict[str, Any]:
    """
    Load a schema document (JSON or YAML), dispatching on the extension.

    Expected shape::

        tables:
          products:
            columns:
              - {name: id, data_type: int, nullable: false}
            foreign_keys:
              - {column_name: category_id, referenced_table: categories}

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed or has no ``tables`` mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Schema path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix == ".json":
        data = _load_json_file(path)
    else:
        data = _load_yaml_file(path)

    tables: Any = data.get("tables")
    if not isinstance(tables, dict):
        raise ValueError(f"Schema file {path} has no 'tables' mapping.")
    return data


class SchemaFileInspector:
    """Reads table metadata from a schema document instead of a database."""

    def __init__(
        self,
        path: Path,
        *,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._path: Path = Path(path)
        self._log: logging.Logger = log or logger

    def inspect(self, table_name: str) -> TableSchema:
        tables: Dict[str, Any] = load_schema_file(self._path)["tables"]
        entry: Any = tables.get(table_name)
        if not entry:
            raise TableNotFoundError(table_name)
        if not isinstance(entry, dict):
            raise ValueError(
                f"Table '{table_name}' in {self._path} must be a mapping."
            )

        schema: TableSchema = TableSchema.model_validate({
            "table_name": table_name,
            "columns": entry.get("columns") or [],
            "foreign_keys": entry.get("foreign_keys") or [],
        })
        if not schema.exists:
            raise TableNotFoundError(table_name)

        self._log.debug(
            "Loaded '%s' from %s: %d columns, %d foreign keys.",
            table_name,
            self._path,
            len(schema.columns),
            len(schema.foreign_keys),
        )
        return schema


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TableSource",
    "SchemaInspector",
    "SchemaFileInspector",
    "load_schema_file",
]
