# File: napi_mvc/models.py
"""
napi-mvc - Core Data Models
============================
Pydantic V2 models for the metadata that flows through the pipeline:

    Catalog / schema file → TableSchema → ResourceDescriptor
        → TemplateRenderer → GeneratedArtifact → ArtifactWriter

All models are frozen: metadata is sourced once per generation run and
never mutated afterwards.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from napi_mvc.utils import (
    capitalize_first,
    to_mount_path,
    to_routes_variable,
    to_table_name,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

USER_ID_COLUMN: str = "user_id"

_RESOURCE_NAME_RE: re.Pattern[str] = re.compile(r"^[a-z_][a-z0-9_]*$")
_TYPE_PARAMS_RE: re.Pattern[str] = re.compile(r"\(.*\)")

# Catalogs report IS_NULLABLE as 'YES' / 'NO'
_NULLABLE_STRINGS: Dict[str, bool] = {
    "yes": True,
    "y": True,
    "true": True,
    "no": False,
    "n": False,
    "false": False,
}


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DocType(str, Enum):
    """OpenAPI property types emitted in the generated documentation."""

    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"


class ArtifactKind(str, Enum):
    """The three files generated per resource."""

    ROUTE = "Route"
    MODEL = "Model"
    CONTROLLER = "Controller"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Catalog metadata
# ---------------------------------------------------------------------------


class ColumnMetadata(BaseModel):
    """One column of the inspected table."""

    model_config = _FROZEN_CONFIG

    # Aliases accept rows dumped straight from INFORMATION_SCHEMA.COLUMNS
    name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("name", "COLUMN_NAME"),
        description="Column name.",
    )
    data_type: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("data_type", "type", "DATA_TYPE"),
        description="Catalog type name, lower-cased, without parameters.",
    )
    nullable: bool = Field(
        default=True,
        validation_alias=AliasChoices("nullable", "IS_NULLABLE"),
        description="Whether the column allows NULL.",
    )

    @field_validator("data_type", mode="before")
    @classmethod
    def _normalise_type(cls, v: Any) -> Any:
        # "VARCHAR(255)" -> "varchar", "DECIMAL(10, 2) UNSIGNED" -> "decimal unsigned"
        if isinstance(v, str):
            return " ".join(_TYPE_PARAMS_RE.sub("", v).split()).lower()
        return v

    @field_validator("nullable", mode="before")
    @classmethod
    def _parse_nullable(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in _NULLABLE_STRINGS:
            return _NULLABLE_STRINGS[v.strip().lower()]
        return v

    def __repr__(self) -> str:
        flag: str = "NULL" if self.nullable else "NOT NULL"
        return f"<ColumnMetadata {self.name} {self.data_type} {flag}>"


class ForeignKeyMetadata(BaseModel):
    """A single-column foreign-key reference."""

    model_config = _FROZEN_CONFIG

    column_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("column_name", "COLUMN_NAME"),
        description="Referencing column.",
    )
    referenced_table: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("referenced_table", "REFERENCED_TABLE_NAME"),
        description="Referenced table.",
    )
    referenced_column: str = Field(
        default="id",
        min_length=1,
        validation_alias=AliasChoices("referenced_column", "REFERENCED_COLUMN_NAME"),
        description="Referenced column.",
    )

    def __repr__(self) -> str:
        return (
            f"<ForeignKeyMetadata {self.column_name} → "
            f"{self.referenced_table}.{self.referenced_column}>"
        )


class TableSchema(BaseModel):
    """Columns and foreign keys of one table, as returned by an inspector."""

    model_config = _FROZEN_CONFIG

    table_name: str = Field(..., min_length=1, description="Catalog table name.")
    columns: Tuple[ColumnMetadata, ...] = Field(
        default=(), description="Columns in catalog order."
    )
    foreign_keys: Tuple[ForeignKeyMetadata, ...] = Field(
        default=(), description="Foreign keys in catalog order."
    )

    @property
    def exists(self) -> bool:
        return len(self.columns) > 0


# ---------------------------------------------------------------------------
# Resource descriptor
# ---------------------------------------------------------------------------


class ResourceDescriptor(BaseModel):
    """
    Everything the renderer needs to know about one resource.

    ``name`` is the lower-case singular resource name (``product``); the
    table name, symbol name and mount path are derived from it.  Names are
    restricted to word characters because the registrar matches ``\\w+``.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Singular resource name.")
    columns: Tuple[ColumnMetadata, ...] = Field(default=())
    foreign_keys: Tuple[ForeignKeyMetadata, ...] = Field(default=())

    @field_validator("name", mode="before")
    @classmethod
    def _normalise_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if not _RESOURCE_NAME_RE.match(v):
                raise ValueError(
                    f"Invalid resource name '{v}': use letters, digits and "
                    "underscores, starting with a letter or underscore."
                )
        return v

    @classmethod
    def from_schema(cls, name: str, schema: TableSchema) -> "ResourceDescriptor":
        return cls(
            name=name,
            columns=schema.columns,
            foreign_keys=schema.foreign_keys,
        )

    # -- Derived names ------------------------------------------------------

    @computed_field  # type: ignore[misc]
    @property
    def table_name(self) -> str:
        return to_table_name(self.name)

    @computed_field  # type: ignore[misc]
    @property
    def class_name(self) -> str:
        return capitalize_first(self.name)

    @computed_field  # type: ignore[misc]
    @property
    def mount_path(self) -> str:
        return to_mount_path(self.table_name)

    @property
    def routes_variable(self) -> str:
        return to_routes_variable(self.name)

    @property
    def route_file_name(self) -> str:
        return f"{self.name}.routes.js"

    @property
    def model_file_name(self) -> str:
        return f"{self.name}.model.js"

    @property
    def controller_file_name(self) -> str:
        return f"{self.name}.controller.js"

    # -- Column helpers -----------------------------------------------------

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(col.name for col in self.columns)

    @property
    def has_user_id(self) -> bool:
        return USER_ID_COLUMN in self.column_names

    @property
    def foreign_key_columns(self) -> Tuple[str, ...]:
        """Distinct foreign-key column names, in catalog order."""
        seen: Dict[str, None] = {}
        for fk in self.foreign_keys:
            seen.setdefault(fk.column_name, None)
        return tuple(seen)

    @property
    def validated_foreign_keys(self) -> Tuple[ForeignKeyMetadata, ...]:
        """
        Foreign keys whose target must exist before a write.

        ``user_id`` is excluded (it comes from the caller identity) and a
        column referenced by several constraints is kept once.
        """
        result: Dict[str, ForeignKeyMetadata] = {}
        for fk in self.foreign_keys:
            if fk.column_name == USER_ID_COLUMN:
                continue
            result.setdefault(fk.column_name, fk)
        return tuple(result.values())


# ---------------------------------------------------------------------------
# Rendering products
# ---------------------------------------------------------------------------


class DocField(BaseModel):
    """A request-body property in the generated OpenAPI documentation."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    doc_type: DocType = Field(...)
    example: Union[int, float, str] = Field(...)


class GeneratedArtifact(BaseModel):
    """A rendered file body and the path it is destined for."""

    model_config = _FROZEN_CONFIG

    kind: ArtifactKind = Field(..., description="Which of the three files this is.")
    target_path: Path = Field(..., description="Destination path.")
    body: str = Field(..., description="File content, written verbatim.")


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "USER_ID_COLUMN",
    "DocType",
    "ArtifactKind",
    "ColumnMetadata",
    "ForeignKeyMetadata",
    "TableSchema",
    "ResourceDescriptor",
    "DocField",
    "GeneratedArtifact",
]
