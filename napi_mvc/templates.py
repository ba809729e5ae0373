# File: napi_mvc/templates.py
"""
napi-mvc - Code Template Engine
================================
Pure-Python generation of the three Express artifacts for one resource:

    1. ``<name>.routes.js``      express.Router() + OpenAPI (swagger) JSDoc
    2. ``<name>.model.js``       data access over a mysql2 connection pool
    3. ``<name>.controller.js``  request handlers mapping results to HTTP

The renderer is driven entirely by a ``ResourceDescriptor``; it never
touches the database or the filesystem.

**Field policy** (shared by documentation and validation):
    - ``id``, ``created_at``, ``updated_at``, ``user_id``, ``sell_date`` and
      ``sells_date`` are never documented.
    - Foreign-key columns are documented separately as integer references
      and are always required; ``user_id`` is never one of them.
    - Any other NOT NULL column is required.

**Output contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
    - Swagger blocks are valid YAML once the `` * `` prefix is stripped.
"""

from __future__ import annotations

import json
import logging
from typing import FrozenSet, List, Optional, Sequence, Tuple, Union

from napi_mvc.config import OutputPaths
from napi_mvc.models import (
    USER_ID_COLUMN,
    ArtifactKind,
    DocField,
    DocType,
    ForeignKeyMetadata,
    GeneratedArtifact,
    ResourceDescriptor,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("napi_mvc.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "  "  # generated JS and YAML both use 2 spaces

Example = Union[int, float, str]

# Columns that are maintained by the database or the server, never the client
EXCLUDED_COLUMNS: FrozenSet[str] = frozenset({
    "id",
    "created_at",
    "updated_at",
    USER_ID_COLUMN,
    "sell_date",
    "sells_date",
})

# (substrings, doc type, example); first match wins
_TYPE_RULES: Tuple[Tuple[Tuple[str, ...], DocType, Example], ...] = (
    (("int",), DocType.INTEGER, 1),
    (("float", "decimal"), DocType.NUMBER, 99.99),
    (("text",), DocType.STRING, "Long text"),
    (("date",), DocType.STRING, "2024-01-16"),
    (("time",), DocType.STRING, "10:30:00"),
)
_DEFAULT_TYPE: Tuple[DocType, Example] = (DocType.STRING, "example value")

_FOREIGN_KEY_TYPE: Tuple[DocType, Example] = (DocType.INTEGER, 1)


# ---------------------------------------------------------------------------
# Field policy
# ---------------------------------------------------------------------------


def infer_doc_type(data_type: str) -> Tuple[DocType, Example]:
    """
    Map a catalog type name to an OpenAPI type and a sample value.

        >>> infer_doc_type("DECIMAL")
        (<DocType.NUMBER: 'number'>, 99.99)
        >>> infer_doc_type("datetime")
        (<DocType.STRING: 'string'>, '2024-01-16')
    """
    lowered: str = data_type.lower()
    for needles, doc_type, example in _TYPE_RULES:
        if any(needle in lowered for needle in needles):
            return doc_type, example
    return _DEFAULT_TYPE


def _is_plain_field(name: str, descriptor: ResourceDescriptor) -> bool:
    return name not in EXCLUDED_COLUMNS and name not in descriptor.foreign_key_columns


def documented_fields(descriptor: ResourceDescriptor) -> List[DocField]:
    """Request-body properties: plain columns first, then foreign keys."""
    fields: List[DocField] = []
    for col in descriptor.columns:
        if not _is_plain_field(col.name, descriptor):
            continue
        doc_type, example = infer_doc_type(col.data_type)
        fields.append(DocField(name=col.name, doc_type=doc_type, example=example))

    fk_type, fk_example = _FOREIGN_KEY_TYPE
    for fk in descriptor.validated_foreign_keys:
        fields.append(DocField(name=fk.column_name, doc_type=fk_type, example=fk_example))
    return fields


def required_fields(descriptor: ResourceDescriptor) -> List[str]:
    """Names of the request-body properties the client must send."""
    required: List[str] = [
        col.name
        for col in descriptor.columns
        if not col.nullable and _is_plain_field(col.name, descriptor)
    ]
    required.extend(fk.column_name for fk in descriptor.validated_foreign_keys)
    return required


# ---------------------------------------------------------------------------
# Literal helpers
# ---------------------------------------------------------------------------


def _yaml_scalar(value: Example) -> str:
    if isinstance(value, str):
        return json.dumps(value)
    return repr(value)


def _js_string(value: str) -> str:
    """Single-quoted JS string literal."""
    escaped: str = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _js_array(items: Sequence[str]) -> str:
    return "[" + ", ".join(_js_string(item) for item in items) + "]"


def _pad(level: int) -> str:
    return _INDENT * level


def _swagger_comment(yaml_lines: Sequence[str]) -> List[str]:
    """Wrap YAML lines into a ``@swagger`` JSDoc block."""
    lines: List[str] = ["/**", " * @swagger"]
    lines.extend(f" * {line}" if line else " *" for line in yaml_lines)
    lines.append(" */")
    return lines


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """
    Renders the route, model and controller bodies for one resource.

    Usage::

        renderer = TemplateRenderer()
        artifacts = renderer.render(descriptor, OutputPaths.resolve())

    Stateless; one instance can render any number of resources.
    """

    def __init__(self, *, log: Optional[logging.Logger] = None) -> None:
        self._log: logging.Logger = log or logger

    # ===================================================================
    # Aggregate
    # ===================================================================

    def render(
        self,
        descriptor: ResourceDescriptor,
        paths: OutputPaths,
    ) -> List[GeneratedArtifact]:
        """Render all three artifacts, in route, model, controller order."""
        artifacts: List[GeneratedArtifact] = [
            GeneratedArtifact(
                kind=ArtifactKind.ROUTE,
                target_path=paths.routes_dir / descriptor.route_file_name,
                body=self.render_route(descriptor),
            ),
            GeneratedArtifact(
                kind=ArtifactKind.MODEL,
                target_path=paths.models_dir / descriptor.model_file_name,
                body=self.render_model(descriptor),
            ),
            GeneratedArtifact(
                kind=ArtifactKind.CONTROLLER,
                target_path=paths.controllers_dir / descriptor.controller_file_name,
                body=self.render_controller(descriptor),
            ),
        ]
        self._log.debug(
            "Rendered %d artifacts for '%s'.", len(artifacts), descriptor.name
        )
        return artifacts

    # ===================================================================
    # Documentation fragments
    # ===================================================================

    def schema_lines(self, descriptor: ResourceDescriptor, level: int) -> List[str]:
        """
        The ``type: object`` schema of a request body, as YAML lines
        indented to *level*.
        """
        lines: List[str] = [f"{_pad(level)}type: object"]

        fields: List[DocField] = documented_fields(descriptor)
        if fields:
            lines.append(f"{_pad(level)}properties:")
            for field in fields:
                lines.append(f"{_pad(level + 1)}{_yaml_scalar(field.name)}:")
                lines.append(f"{_pad(level + 2)}type: {field.doc_type.value}")
                lines.append(f"{_pad(level + 2)}example: {_yaml_scalar(field.example)}")

        required: List[str] = required_fields(descriptor)
        if required:
            lines.append(f"{_pad(level)}required:")
            lines.extend(f"{_pad(level + 1)}- {_yaml_scalar(name)}" for name in required)
        return lines

    def _request_body_lines(self, descriptor: ResourceDescriptor, level: int) -> List[str]:
        lines: List[str] = [
            f"{_pad(level)}requestBody:",
            f"{_pad(level + 1)}required: true",
            f"{_pad(level + 1)}content:",
            f"{_pad(level + 2)}application/json:",
            f"{_pad(level + 3)}schema:",
        ]
        lines.extend(self.schema_lines(descriptor, level + 4))
        return lines

    @staticmethod
    def _operation_header(summary: str, tag: str, level: int) -> List[str]:
        return [
            f"{_pad(level)}summary: {summary}",
            f"{_pad(level)}tags:",
            f"{_pad(level + 1)}- {tag}",
            f"{_pad(level)}security:",
            f"{_pad(level + 1)}- bearerAuth: []",
        ]

    @staticmethod
    def _id_parameter(level: int) -> List[str]:
        return [
            f"{_pad(level)}parameters:",
            f"{_pad(level + 1)}- in: path",
            f"{_pad(level + 2)}name: id",
            f"{_pad(level + 2)}required: true",
            f"{_pad(level + 2)}schema:",
            f"{_pad(level + 3)}type: integer",
        ]

    @staticmethod
    def _responses(level: int, *entries: Tuple[int, str]) -> List[str]:
        lines: List[str] = [f"{_pad(level)}responses:"]
        for status, description in entries:
            lines.append(f"{_pad(level + 1)}{status}:")
            lines.append(f"{_pad(level + 2)}description: {description}")
        return lines

    def collection_doc(self, descriptor: ResourceDescriptor) -> List[str]:
        """YAML for ``GET`` / ``POST`` on the collection path."""
        name: str = descriptor.name
        table: str = descriptor.table_name
        tag: str = f"{descriptor.class_name}s"

        lines: List[str] = [f"{descriptor.mount_path}:", f"{_pad(1)}get:"]
        lines.extend(self._operation_header(f"Get all {table}", tag, 2))
        lines.extend(self._responses(
            2, (200, f"List of {table}"), (401, "Not authenticated")
        ))
        lines.append(f"{_pad(1)}post:")
        lines.extend(self._operation_header(f"Create new {name}", tag, 2))
        lines.extend(self._request_body_lines(descriptor, 2))
        lines.extend(self._responses(
            2,
            (201, f"{descriptor.class_name} created"),
            (401, "Not authenticated"),
            (500, "Invalid payload or server error"),
        ))
        return lines

    def item_doc(self, descriptor: ResourceDescriptor) -> List[str]:
        """YAML for ``GET`` / ``PUT`` / ``DELETE`` on ``{id}``."""
        name: str = descriptor.name
        cls: str = descriptor.class_name
        tag: str = f"{cls}s"

        lines: List[str] = [f"{descriptor.mount_path}/{{id}}:", f"{_pad(1)}get:"]
        lines.extend(self._operation_header(f"Get {name} by ID", tag, 2))
        lines.extend(self._id_parameter(2))
        lines.extend(self._responses(2, (200, f"{cls} found"), (404, "Not found")))

        lines.append(f"{_pad(1)}put:")
        lines.extend(self._operation_header(f"Update {name}", tag, 2))
        lines.extend(self._id_parameter(2))
        lines.extend(self._request_body_lines(descriptor, 2))
        lines.extend(self._responses(2, (200, f"{cls} updated"), (404, "Not found")))

        lines.append(f"{_pad(1)}delete:")
        lines.extend(self._operation_header(f"Delete {name}", tag, 2))
        lines.extend(self._id_parameter(2))
        lines.extend(self._responses(2, (200, f"{cls} deleted"), (404, "Not found")))
        return lines

    # ===================================================================
    # Route file
    # ===================================================================

    def render_route(self, descriptor: ResourceDescriptor) -> str:
        """Express router with auth + logger middleware and swagger docs."""
        controller: str = f"{descriptor.class_name}Controller"
        lines: List[str] = [
            "const express = require('express');",
            "const router = express.Router();",
            f"const {controller} = require('../controllers/{descriptor.name}.controller');",
            "const authMiddleware = require('../middlewares/auth.middleware');",
            "const logger = require('../middlewares/logger.middleware');",
            "",
        ]

        lines.extend(_swagger_comment(self.collection_doc(descriptor)))
        lines.append(f"router.get('/', authMiddleware, logger, {controller}.getAll);")
        lines.append(f"router.post('/', authMiddleware, logger, {controller}.create);")
        lines.append("")

        lines.extend(_swagger_comment(self.item_doc(descriptor)))
        lines.append(f"router.get('/:id', authMiddleware, logger, {controller}.getById);")
        lines.append(f"router.put('/:id', authMiddleware, logger, {controller}.update);")
        lines.append(f"router.delete('/:id', authMiddleware, logger, {controller}.delete);")
        lines.append("")
        lines.append("module.exports = router;")
        lines.append("")

        content: str = "\n".join(lines)
        self._log.debug(
            "Generated route for '%s': %d lines.",
            descriptor.name,
            content.count("\n"),
        )
        return content

    # ===================================================================
    # Model (data access) file
    # ===================================================================

    @staticmethod
    def _fk_check(fk: ForeignKeyMetadata, level: int) -> List[str]:
        pad: str = _pad(level)
        check: str = f"{fk.column_name}Check"
        ref_col: str = fk.referenced_column
        query: str = _js_string(
            f"SELECT {ref_col} FROM {fk.referenced_table} WHERE {ref_col} = ?"
        )
        return [
            f"{pad}const [{check}] = await connection.query({query}, [payload.{fk.column_name}]);",
            f"{pad}if ({check}.length === 0) {{",
            f"{pad}{_INDENT}throw new Error({_js_string(f'{fk.column_name} invalid or not found')});",
            f"{pad}}}",
        ]

    def _gen_find_all(self, descriptor: ResourceDescriptor) -> List[str]:
        table: str = descriptor.table_name
        if descriptor.has_user_id:
            query = (
                f"    const [rows] = await connection.query("
                f"'SELECT * FROM {table} WHERE user_id = ?', [userId]);"
            )
        else:
            query = f"    const [rows] = await connection.query('SELECT * FROM {table}');"
        return [
            "exports.findAll = async (userId = null) => {",
            "  const connection = await pool.getConnection();",
            "  try {",
            query,
            "    return rows;",
            "  } finally {",
            "    connection.release();",
            "  }",
            "};",
        ]

    def _gen_find_by_id(self, descriptor: ResourceDescriptor) -> List[str]:
        table: str = descriptor.table_name
        if descriptor.has_user_id:
            query = (
                f"    const [rows] = await connection.query("
                f"'SELECT * FROM {table} WHERE id = ? AND user_id = ?', [id, userId]);"
            )
        else:
            query = (
                f"    const [rows] = await connection.query("
                f"'SELECT * FROM {table} WHERE id = ?', [id]);"
            )
        return [
            "exports.findById = async (id, userId = null) => {",
            "  const connection = await pool.getConnection();",
            "  try {",
            query,
            "    return rows.length > 0 ? rows[0] : null;",
            "  } finally {",
            "    connection.release();",
            "  }",
            "};",
        ]

    def _gen_create(self, descriptor: ResourceDescriptor) -> List[str]:
        lines: List[str] = [
            "exports.create = async (data, userId = null) => {",
            "  const connection = await pool.getConnection();",
            "  try {",
            "    const payload = pickColumns(data);",
        ]
        if descriptor.has_user_id:
            lines.append("    // Auto-fill user_id from authenticated user")
            lines.append("    payload.user_id = userId;")

        for fk in descriptor.validated_foreign_keys:
            lines.append("")
            lines.append(f"    // Validate {fk.column_name} exists")
            lines.extend(self._fk_check(fk, 2))

        lines.extend([
            "",
            "    const fields = Object.keys(payload).join(', ');",
            "    const placeholders = Object.keys(payload).map(() => '?').join(', ');",
            "    const values = Object.values(payload);",
            "",
            "    const [result] = await connection.query(",
            f"      `INSERT INTO {descriptor.table_name} (${{fields}}) VALUES (${{placeholders}})`,",
            "      values",
            "    );",
            "",
            "    return { id: result.insertId, ...payload };",
            "  } finally {",
            "    connection.release();",
            "  }",
            "};",
        ])
        return lines

    def _gen_update(self, descriptor: ResourceDescriptor) -> List[str]:
        lines: List[str] = [
            "exports.update = async (id, data, userId = null) => {",
            "  const existing = await exports.findById(id, userId);",
            "  if (!existing) return null;",
            "",
            "  const connection = await pool.getConnection();",
            "  try {",
            "    const payload = pickColumns(data);",
        ]
        if descriptor.has_user_id:
            lines.append("    // Ownership never changes through the API")
            lines.append("    delete payload.user_id;")

        for fk in descriptor.validated_foreign_keys:
            lines.append("")
            lines.append(f"    // Validate {fk.column_name} if provided")
            lines.append(f"    if (payload.{fk.column_name} !== undefined) {{")
            lines.extend(self._fk_check(fk, 3))
            lines.append("    }")

        lines.extend([
            "",
            "    const keys = Object.keys(payload);",
            "    if (keys.length === 0) return existing;",
            "",
            "    const fields = keys.map((key) => `${key} = ?`).join(', ');",
            "    const values = [...Object.values(payload), id];",
            "",
            "    await connection.query(",
            f"      `UPDATE {descriptor.table_name} SET ${{fields}} WHERE id = ?`,",
            "      values",
            "    );",
            "",
            "    return { ...existing, ...payload };",
            "  } finally {",
            "    connection.release();",
            "  }",
            "};",
        ])
        return lines

    def _gen_delete(self, descriptor: ResourceDescriptor) -> List[str]:
        return [
            "exports.delete = async (id, userId = null) => {",
            "  const existing = await exports.findById(id, userId);",
            "  if (!existing) return null;",
            "",
            "  const connection = await pool.getConnection();",
            "  try {",
            f"    await connection.query('DELETE FROM {descriptor.table_name} WHERE id = ?', [id]);",
            "    return existing;",
            "  } finally {",
            "    connection.release();",
            "  }",
            "};",
        ]

    def render_model(self, descriptor: ResourceDescriptor) -> str:
        """Data-access module: findAll, findById, create, update, delete."""
        lines: List[str] = [
            "const pool = require('../config/db');",
            "",
            f"const COLUMNS = {_js_array(descriptor.column_names)};",
            "",
            f"// Keep only writable columns of {descriptor.table_name}",
            "const pickColumns = (data) => Object.keys(data || {})",
            "  .filter((key) => key !== 'id' && COLUMNS.includes(key))",
            "  .reduce((acc, key) => ({ ...acc, [key]: data[key] }), {});",
            "",
        ]

        sections: List[List[str]] = [
            self._gen_find_all(descriptor),
            self._gen_find_by_id(descriptor),
            self._gen_create(descriptor),
            self._gen_update(descriptor),
            self._gen_delete(descriptor),
        ]
        for section in sections:
            lines.extend(section)
            lines.append("")

        content: str = "\n".join(lines)
        self._log.debug(
            "Generated model for '%s': %d lines, %d foreign key check(s).",
            descriptor.name,
            content.count("\n"),
            len(descriptor.validated_foreign_keys),
        )
        return content

    # ===================================================================
    # Controller file
    # ===================================================================

    @staticmethod
    def _handler(
        action: str,
        call: str,
        result_var: str,
        success: str,
        not_found: Optional[str],
    ) -> List[str]:
        lines: List[str] = [
            f"exports.{action} = async (req, res) => {{",
            "  try {",
            f"    const {result_var} = await {call};",
        ]
        if not_found is not None:
            lines.extend([
                f"    if (!{result_var}) {{",
                f"      return res.status(404).json({{ message: {_js_string(not_found)} }});",
                "    }",
            ])
        lines.extend([
            f"    {success};",
            "  } catch (err) {",
            "    res.status(500).json({ message: 'Server error', error: err.message });",
            "  }",
            "};",
        ])
        return lines

    def render_controller(self, descriptor: ResourceDescriptor) -> str:
        """Thin HTTP adapters over the model."""
        model: str = descriptor.class_name
        not_found: str = f"{descriptor.name} not found"
        user_arg: str = ", req.user?.id" if descriptor.has_user_id else ""
        user_only: str = "req.user?.id" if descriptor.has_user_id else ""

        lines: List[str] = [
            f"const {model} = require('../models/{descriptor.name}.model');",
            "",
        ]

        handlers: List[List[str]] = [
            self._handler(
                "getAll",
                f"{model}.findAll({user_only})",
                "items",
                "res.json(items)",
                None,
            ),
            self._handler(
                "getById",
                f"{model}.findById(req.params.id{user_arg})",
                "item",
                "res.json(item)",
                not_found,
            ),
            self._handler(
                "create",
                f"{model}.create(req.body{user_arg})",
                "newItem",
                "res.status(201).json(newItem)",
                None,
            ),
            self._handler(
                "update",
                f"{model}.update(req.params.id, req.body{user_arg})",
                "updated",
                "res.json(updated)",
                not_found,
            ),
            self._handler(
                "delete",
                f"{model}.delete(req.params.id{user_arg})",
                "deleted",
                f"res.json({{ message: {_js_string(f'{descriptor.name} deleted')}, item: deleted }})",
                not_found,
            ),
        ]
        for handler in handlers:
            lines.extend(handler)
            lines.append("")

        content: str = "\n".join(lines)
        self._log.debug(
            "Generated controller for '%s': %d lines.",
            descriptor.name,
            content.count("\n"),
        )
        return content


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "EXCLUDED_COLUMNS",
    "infer_doc_type",
    "documented_fields",
    "required_fields",
    "TemplateRenderer",
]
