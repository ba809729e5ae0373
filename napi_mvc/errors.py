# File: napi_mvc/errors.py
"""
napi-mvc - Error Taxonomy
==========================

Every failure the scaffolder can raise on its own.  Catalog connectivity
errors are SQLAlchemy's ``SQLAlchemyError`` and are not wrapped.

    NapiMvcError
    ├── TableNotFoundError        table absent from the catalog
    ├── ArtifactConflictError     generated file already exists
    └── WiringFileNotFoundError   app.js missing at the expected location
"""

from __future__ import annotations

from pathlib import Path
from typing import List


class NapiMvcError(Exception):
    """Base class for all napi-mvc errors."""


class TableNotFoundError(NapiMvcError):
    """Raised when the backing table of a resource is not in the catalog."""

    def __init__(self, table_name: str) -> None:
        self.table_name: str = table_name
        super().__init__(f"Table '{table_name}' not found in database")


class ArtifactConflictError(NapiMvcError):
    """Raised when a generated file would overwrite an existing one."""

    def __init__(self, kind: str, path: Path) -> None:
        self.kind: str = kind
        self.path: Path = path
        super().__init__(f"{kind} {path.name} already exists")


class WiringFileNotFoundError(NapiMvcError):
    """Raised when the application wiring file cannot be found."""

    def __init__(self, path: Path) -> None:
        self.path: Path = path
        super().__init__(f"{path.name} not found at {path}")


__all__: List[str] = [
    "NapiMvcError",
    "TableNotFoundError",
    "ArtifactConflictError",
    "WiringFileNotFoundError",
]
