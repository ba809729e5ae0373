"""
tests/conftest.py
Shared fixtures for the napi-mvc test suite.

No external mocking libraries are used: catalogs are real SQLite files
and schema documents, and every file is written inside pytest's tmp_path.
"""

from __future__ import annotations

import copy
import logging
import pathlib
import textwrap
from typing import Any, Dict, Iterator, List

import pytest
import yaml
from sqlalchemy import create_engine, text

from napi_mvc.config import ConnectionSettings, OutputPaths
from napi_mvc.models import (
    ColumnMetadata,
    ForeignKeyMetadata,
    ResourceDescriptor,
    TableSchema,
)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_environment(
    tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """
    Run every test from its own empty directory with no DB_* variables,
    and undo the handler the CLI installs on the package logger.
    """
    monkeypatch.chdir(tmp_path)
    for var in (
        "DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME",
        "DB_DRIVER", "DB_URL", "DB_SCHEMA_NAME", "DEBUG",
    ):
        monkeypatch.delenv(var, raising=False)

    yield

    package_logger = logging.getLogger("napi_mvc")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary YAML file and return its path."""
    path = tmp_path / "schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(schema_dict, fh, default_flow_style=False)
    return path


# ---------------------------------------------------------------------------
# Descriptor fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def product_columns() -> List[ColumnMetadata]:
    return [
        ColumnMetadata(name="id", data_type="int", nullable=False),
        ColumnMetadata(name="name", data_type="varchar", nullable=False),
        ColumnMetadata(name="price", data_type="decimal", nullable=False),
        ColumnMetadata(name="user_id", data_type="int", nullable=True),
    ]


@pytest.fixture()
def product_descriptor(product_columns: List[ColumnMetadata]) -> ResourceDescriptor:
    """products(id, name, price, user_id) without foreign keys."""
    return ResourceDescriptor(name="product", columns=tuple(product_columns))


@pytest.fixture()
def order_descriptor() -> ResourceDescriptor:
    """orders with category_id → categories.id and user_id → users.id."""
    schema = TableSchema(
        table_name="orders",
        columns=(
            ColumnMetadata(name="id", data_type="int", nullable=False),
            ColumnMetadata(name="quantity", data_type="int", nullable=False),
            ColumnMetadata(name="note", data_type="text", nullable=True),
            ColumnMetadata(name="category_id", data_type="int", nullable=False),
            ColumnMetadata(name="user_id", data_type="int", nullable=False),
        ),
        foreign_keys=(
            ForeignKeyMetadata(column_name="category_id", referenced_table="categories"),
            ForeignKeyMetadata(column_name="user_id", referenced_table="users"),
        ),
    )
    return ResourceDescriptor.from_schema("order", schema)


@pytest.fixture()
def tag_descriptor() -> ResourceDescriptor:
    """tags(id, label) with no user_id and no foreign keys."""
    return ResourceDescriptor(
        name="tag",
        columns=(
            ColumnMetadata(name="id", data_type="int", nullable=False),
            ColumnMetadata(name="label", data_type="varchar", nullable=False),
        ),
    )


# ---------------------------------------------------------------------------
# Live catalog fixtures (SQLite)
# ---------------------------------------------------------------------------

_SQLITE_DDL: List[str] = [
    """
    CREATE TABLE categories (
        id INTEGER PRIMARY KEY,
        label VARCHAR(100) NOT NULL
    )
    """,
    """
    CREATE TABLE products (
        id INTEGER PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        price DECIMAL(10, 2) NOT NULL,
        user_id INTEGER
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY,
        quantity INTEGER NOT NULL,
        delivery_date DATE,
        category_id INTEGER NOT NULL REFERENCES categories(id),
        user_id INTEGER
    )
    """,
]


@pytest.fixture()
def sqlite_path(tmp_path: pathlib.Path) -> pathlib.Path:
    """A SQLite database with categories, products and orders."""
    path = tmp_path / "catalog.db"
    engine = create_engine(f"sqlite:///{path}")
    try:
        with engine.begin() as connection:
            for statement in _SQLITE_DDL:
                connection.execute(text(statement))
    finally:
        engine.dispose()
    return path


@pytest.fixture()
def sqlite_settings(sqlite_path: pathlib.Path) -> ConnectionSettings:
    return ConnectionSettings.resolve(url=f"sqlite:///{sqlite_path}")


# ---------------------------------------------------------------------------
# Output layout fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def output_paths(tmp_path: pathlib.Path) -> OutputPaths:
    return OutputPaths.resolve(tmp_path / "project")


APP_JS: str = textwrap.dedent(
    """\
    const express = require('express');
    const swaggerUi = require('swagger-ui-express');
    const authRoutes = require('./routes/auth.routes');
    const categoryRoutes = require('./routes/category.routes');

    const app = express();
    app.use(express.json());

    app.use('/api/v1/auths', authRoutes);
    app.use('/api/v1/categorys', categoryRoutes);

    module.exports = app;
    """
)


@pytest.fixture()
def app_js_path(output_paths: OutputPaths) -> pathlib.Path:
    """An app.js with two registered routes."""
    path = output_paths.app_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(APP_JS, encoding="utf-8")
    return path


@pytest.fixture()
def app_js_text() -> str:
    return APP_JS
