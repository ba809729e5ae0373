"""
tests/test_templates.py
Unit tests for napi_mvc.templates (TemplateRenderer and field policy).

Tests cover:
- Type inference and example values
- Documented / required request-body fields
- Swagger blocks (parsed back as YAML)
- Route, model and controller bodies
"""

from __future__ import annotations

import json
import pathlib
import shutil
import subprocess
import textwrap
from typing import Any, Dict, List

import pytest
import yaml

from napi_mvc.config import OutputPaths
from napi_mvc.models import (
    ArtifactKind,
    ColumnMetadata,
    DocType,
    ForeignKeyMetadata,
    ResourceDescriptor,
)
from napi_mvc.templates import (
    TemplateRenderer,
    documented_fields,
    infer_doc_type,
    required_fields,
)


# ===========================================================================
# Helpers
# ===========================================================================


def _swagger_blocks(route_body: str) -> List[Dict[str, Any]]:
    """Extract every @swagger JSDoc block and parse it as YAML."""
    blocks: List[Dict[str, Any]] = []
    current: List[str] = []
    inside = False
    for line in route_body.splitlines():
        if line == " * @swagger":
            inside, current = True, []
        elif inside and line == " */":
            blocks.append(yaml.safe_load("\n".join(current)))
            inside = False
        elif inside:
            current.append(line[3:] if line.startswith(" * ") else "")
    return blocks


@pytest.fixture()
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


# ===========================================================================
# Type inference
# ===========================================================================


class TestInferDocType:

    @pytest.mark.parametrize(
        "data_type, expected",
        [
            ("int", (DocType.INTEGER, 1)),
            ("bigint", (DocType.INTEGER, 1)),
            ("tinyint", (DocType.INTEGER, 1)),
            ("decimal", (DocType.NUMBER, 99.99)),
            ("float", (DocType.NUMBER, 99.99)),
            ("text", (DocType.STRING, "Long text")),
            ("mediumtext", (DocType.STRING, "Long text")),
            ("date", (DocType.STRING, "2024-01-16")),
            ("datetime", (DocType.STRING, "2024-01-16")),
            ("time", (DocType.STRING, "10:30:00")),
            ("varchar", (DocType.STRING, "example value")),
            ("numeric", (DocType.STRING, "example value")),
        ],
    )
    def test_mapping(self, data_type: str, expected) -> None:
        assert infer_doc_type(data_type) == expected

    def test_integer_wins_over_later_rules(self) -> None:
        # "interval" contains "int" and is checked first
        assert infer_doc_type("interval")[0] is DocType.INTEGER

    def test_case_insensitive(self) -> None:
        assert infer_doc_type("DECIMAL") == (DocType.NUMBER, 99.99)


# ===========================================================================
# Field policy
# ===========================================================================


class TestFieldPolicy:

    def test_product_fields(self, product_descriptor) -> None:
        fields = documented_fields(product_descriptor)
        assert [(f.name, f.doc_type, f.example) for f in fields] == [
            ("name", DocType.STRING, "example value"),
            ("price", DocType.NUMBER, 99.99),
        ]
        assert required_fields(product_descriptor) == ["name", "price"]

    def test_excluded_columns_never_documented(self) -> None:
        d = ResourceDescriptor(
            name="sale",
            columns=tuple(
                ColumnMetadata(name=n, data_type="datetime", nullable=False)
                for n in ("id", "created_at", "updated_at", "user_id",
                          "sell_date", "sells_date", "amount")
            ),
        )
        assert [f.name for f in documented_fields(d)] == ["amount"]
        assert required_fields(d) == ["amount"]

    def test_foreign_keys_last_and_required(self, order_descriptor) -> None:
        fields = documented_fields(order_descriptor)
        assert [f.name for f in fields] == ["quantity", "note", "category_id"]
        fk_field = fields[-1]
        assert fk_field.doc_type is DocType.INTEGER
        assert fk_field.example == 1
        assert required_fields(order_descriptor) == ["quantity", "category_id"]

    def test_nullable_foreign_key_still_required(self) -> None:
        d = ResourceDescriptor(
            name="order",
            columns=(ColumnMetadata(name="category_id", data_type="varchar", nullable=True),),
            foreign_keys=(
                ForeignKeyMetadata(column_name="category_id", referenced_table="categories"),
            ),
        )
        fields = documented_fields(d)
        assert len(fields) == 1
        assert fields[0].doc_type is DocType.INTEGER
        assert required_fields(d) == ["category_id"]

    def test_user_id_foreign_key_not_documented(self, order_descriptor) -> None:
        assert "user_id" not in [f.name for f in documented_fields(order_descriptor)]
        assert "user_id" not in required_fields(order_descriptor)


# ===========================================================================
# Route
# ===========================================================================


class TestRenderRoute:

    def test_requires_and_routes(self, renderer, product_descriptor) -> None:
        body = renderer.render_route(product_descriptor)
        assert "const ProductController = require('../controllers/product.controller');" in body
        assert "const authMiddleware = require('../middlewares/auth.middleware');" in body
        assert "const logger = require('../middlewares/logger.middleware');" in body
        for line in (
            "router.get('/', authMiddleware, logger, ProductController.getAll);",
            "router.post('/', authMiddleware, logger, ProductController.create);",
            "router.get('/:id', authMiddleware, logger, ProductController.getById);",
            "router.put('/:id', authMiddleware, logger, ProductController.update);",
            "router.delete('/:id', authMiddleware, logger, ProductController.delete);",
        ):
            assert line in body
        assert body.rstrip().endswith("module.exports = router;")

    def test_swagger_blocks_are_valid_yaml(self, renderer, product_descriptor) -> None:
        blocks = _swagger_blocks(renderer.render_route(product_descriptor))
        assert len(blocks) == 2

        collection = blocks[0]["/api/v1/products"]
        assert set(collection) == {"get", "post"}
        assert collection["get"]["tags"] == ["Products"]
        assert collection["get"]["security"] == [{"bearerAuth": []}]

        schema = collection["post"]["requestBody"]["content"]["application/json"]["schema"]
        assert schema["type"] == "object"
        assert schema["properties"] == {
            "name": {"type": "string", "example": "example value"},
            "price": {"type": "number", "example": 99.99},
        }
        assert schema["required"] == ["name", "price"]

        item = blocks[1]["/api/v1/products/{id}"]
        assert set(item) == {"get", "put", "delete"}
        param = item["get"]["parameters"][0]
        assert param["in"] == "path" and param["name"] == "id"
        assert item["delete"]["responses"][404]["description"] == "Not found"

    def test_foreign_key_documented_as_integer(self, renderer, order_descriptor) -> None:
        blocks = _swagger_blocks(renderer.render_route(order_descriptor))
        schema = (
            blocks[0]["/api/v1/orders"]["post"]["requestBody"]
            ["content"]["application/json"]["schema"]
        )
        assert schema["properties"]["category_id"] == {"type": "integer", "example": 1}
        assert schema["required"].count("category_id") == 1
        assert "user_id" not in schema["properties"]

    def test_yaml_keyword_column_names_stay_strings(self, renderer) -> None:
        d = ResourceDescriptor(
            name="flag",
            columns=(
                ColumnMetadata(name="on", data_type="tinyint", nullable=False),
                ColumnMetadata(name="null", data_type="varchar", nullable=False),
            ),
        )
        blocks = _swagger_blocks(renderer.render_route(d))
        schema = (
            blocks[0]["/api/v1/flags"]["post"]["requestBody"]
            ["content"]["application/json"]["schema"]
        )
        assert list(schema["properties"]) == ["on", "null"]
        assert schema["required"] == ["on", "null"]

    def test_no_documented_fields(self, renderer) -> None:
        d = ResourceDescriptor(
            name="log",
            columns=(ColumnMetadata(name="id", data_type="int", nullable=False),),
        )
        blocks = _swagger_blocks(renderer.render_route(d))
        schema = (
            blocks[0]["/api/v1/logs"]["post"]["requestBody"]
            ["content"]["application/json"]["schema"]
        )
        assert schema == {"type": "object"}


# ===========================================================================
# Model
# ===========================================================================


class TestRenderModel:

    def test_crud_exports(self, renderer, tag_descriptor) -> None:
        body = renderer.render_model(tag_descriptor)
        assert body.startswith("const pool = require('../config/db');")
        for name in ("findAll", "findById", "create", "update", "delete"):
            assert f"exports.{name} = async" in body
        assert "const COLUMNS = ['id', 'label'];" in body

    def test_without_user_id_no_scoping(self, renderer, tag_descriptor) -> None:
        body = renderer.render_model(tag_descriptor)
        assert "user_id" not in body
        assert "'SELECT * FROM tags'" in body
        assert "'SELECT * FROM tags WHERE id = ?', [id]" in body

    def test_user_id_scoping(self, renderer, product_descriptor) -> None:
        body = renderer.render_model(product_descriptor)
        assert "'SELECT * FROM products WHERE user_id = ?', [userId]" in body
        assert "'SELECT * FROM products WHERE id = ? AND user_id = ?', [id, userId]" in body
        assert "payload.user_id = userId;" in body
        assert "delete payload.user_id;" in body

    def test_foreign_key_checks(self, renderer, order_descriptor) -> None:
        body = renderer.render_model(order_descriptor)
        assert "'SELECT id FROM categories WHERE id = ?', [payload.category_id]" in body
        assert "throw new Error('category_id invalid or not found');" in body
        # once in create, once in update
        assert body.count("category_id invalid or not found") == 2
        assert "if (payload.category_id !== undefined) {" in body
        assert "users" not in body

    def test_foreign_key_on_non_id_column(self, renderer) -> None:
        d = ResourceDescriptor(
            name="item",
            columns=(ColumnMetadata(name="sku_code", data_type="varchar", nullable=False),),
            foreign_keys=(
                ForeignKeyMetadata(
                    column_name="sku_code", referenced_table="skus", referenced_column="code"
                ),
            ),
        )
        body = renderer.render_model(d)
        assert "'SELECT code FROM skus WHERE code = ?', [payload.sku_code]" in body

    def test_insert_and_update_statements(self, renderer, product_descriptor) -> None:
        body = renderer.render_model(product_descriptor)
        assert "`INSERT INTO products (${fields}) VALUES (${placeholders})`" in body
        assert "return { id: result.insertId, ...payload };" in body
        assert "`UPDATE products SET ${fields} WHERE id = ?`" in body
        assert "if (keys.length === 0) return existing;" in body
        assert "'DELETE FROM products WHERE id = ?', [id]" in body


# ===========================================================================
# Controller
# ===========================================================================


class TestRenderController:

    def test_handlers(self, renderer, tag_descriptor) -> None:
        body = renderer.render_controller(tag_descriptor)
        assert body.startswith("const Tag = require('../models/tag.model');")
        for name in ("getAll", "getById", "create", "update", "delete"):
            assert f"exports.{name} = async (req, res) => {{" in body
        assert "res.status(201).json(newItem);" in body
        assert body.count("res.status(404).json({ message: 'tag not found' });") == 3
        assert body.count(
            "res.status(500).json({ message: 'Server error', error: err.message });"
        ) == 5
        assert "req.user" not in body

    def test_identity_passed_with_user_id(self, renderer, product_descriptor) -> None:
        body = renderer.render_controller(product_descriptor)
        assert "Product.findAll(req.user?.id)" in body
        assert "Product.findById(req.params.id, req.user?.id)" in body
        assert "Product.create(req.body, req.user?.id)" in body
        assert "Product.update(req.params.id, req.body, req.user?.id)" in body
        assert "Product.delete(req.params.id, req.user?.id)" in body


# ===========================================================================
# Aggregate
# ===========================================================================


class TestRender:

    def test_three_artifacts_in_order(
        self, renderer, product_descriptor, tmp_path: pathlib.Path
    ) -> None:
        paths = OutputPaths.resolve(tmp_path)
        artifacts = renderer.render(product_descriptor, paths)
        assert [a.kind for a in artifacts] == [
            ArtifactKind.ROUTE, ArtifactKind.MODEL, ArtifactKind.CONTROLLER,
        ]
        assert [a.target_path for a in artifacts] == [
            tmp_path / "routes" / "product.routes.js",
            tmp_path / "models" / "product.model.js",
            tmp_path / "controllers" / "product.controller.js",
        ]

    def test_deterministic(self, renderer, order_descriptor, tmp_path: pathlib.Path) -> None:
        paths = OutputPaths.resolve(tmp_path)
        first = [a.body for a in renderer.render(order_descriptor, paths)]
        second = [a.body for a in TemplateRenderer().render(order_descriptor, paths)]
        assert first == second


# ===========================================================================
# Generated model behaviour (needs node)
# ===========================================================================

_FAKE_POOL_JS: str = textwrap.dedent(
    """\
    const categories = [{ id: 1 }];

    module.exports = {
      async getConnection() {
        return {
          async query(sql, params = []) {
            if (sql.startsWith('SELECT id FROM categories')) {
              return [categories.filter((row) => row.id === params[0])];
            }
            if (sql.startsWith('INSERT')) return [{ insertId: 5 }];
            return [[]];
          },
          release() {},
        };
      },
    };
    """
)

_RUN_JS: str = textwrap.dedent(
    """\
    const Order = require('./models/order.model');

    (async () => {
      const outcome = {};
      try {
        await Order.create({ quantity: 2, category_id: 42 }, 7);
        outcome.missing = 'created';
      } catch (err) {
        outcome.missing = err.message;
      }
      outcome.created = await Order.create(
        { quantity: 2, category_id: 1, user_id: 99, bogus: true }, 7
      );
      console.log(JSON.stringify(outcome));
    })();
    """
)


@pytest.mark.skipif(shutil.which("node") is None, reason="node is not installed")
class TestGeneratedModelBehaviour:

    def test_order_create(
        self, renderer, order_descriptor, tmp_path: pathlib.Path
    ) -> None:
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "db.js").write_text(_FAKE_POOL_JS, encoding="utf-8")
        (tmp_path / "models").mkdir()
        (tmp_path / "models" / "order.model.js").write_text(
            renderer.render_model(order_descriptor), encoding="utf-8"
        )
        (tmp_path / "run.js").write_text(_RUN_JS, encoding="utf-8")

        completed = subprocess.run(
            ["node", "run.js"],
            cwd=tmp_path,
            capture_output=True,
            text=True,
            timeout=30,
            check=True,
        )
        outcome = json.loads(completed.stdout)

        assert outcome["missing"] == "category_id invalid or not found"
        # user_id comes from the caller; unknown keys are dropped
        assert outcome["created"] == {
            "id": 5, "quantity": 2, "category_id": 1, "user_id": 7,
        }
