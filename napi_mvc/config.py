# File: napi_mvc/config.py
"""
napi-mvc - Configuration
=========================

Two settings objects:

``ConnectionSettings``
    Catalog connection parameters.  Resolved from caller-supplied options
    first, then ``DB_*`` environment variables (and a ``.env`` file in the
    working directory), then fixed defaults.

``OutputPaths``
    Where the generated files go and where the wiring file lives.  Every
    path defaults to a location under the current working directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

# ---------------------------------------------------------------------------
# Connection settings
# ---------------------------------------------------------------------------


class ConnectionSettings(BaseSettings):
    """
    Database connection parameters.

    Environment variables: ``DB_HOST``, ``DB_PORT``, ``DB_USER``,
    ``DB_PASSWORD``, ``DB_NAME``, ``DB_DRIVER``, ``DB_URL``,
    ``DB_SCHEMA_NAME``.

    ``url`` wins over the individual parts when set, which is how a
    non-MySQL catalog (PostgreSQL, SQLite) is targeted.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host.")
    port: int = Field(default=3306, ge=1, le=65535, description="Database port.")
    user: str = Field(default="root", description="Database user.")
    password: str = Field(default="", description="Database password.")
    name: str = Field(default="api_mvc", description="Database name.")
    driver: str = Field(
        default="mysql+pymysql", description="SQLAlchemy dialect+driver."
    )
    url: Optional[str] = Field(
        default=None, description="Full SQLAlchemy URL, overrides the parts above."
    )
    schema_name: Optional[str] = Field(
        default=None,
        description="Schema scope for reflection. Defaults to the database name.",
    )

    @classmethod
    def resolve(cls, **overrides: Any) -> "ConnectionSettings":
        """Build settings, letting every non-None override beat env and defaults."""
        explicit = {key: value for key, value in overrides.items() if value is not None}
        return cls(**explicit)

    def sqlalchemy_url(self) -> URL:
        if self.url:
            return make_url(self.url)
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.name,
        )

    @property
    def catalog_schema(self) -> Optional[str]:
        """
        Schema the table is looked up in.

        MySQL's ``TABLE_SCHEMA`` is the database name; with an explicit URL
        the dialect's default schema is used unless one is configured.
        """
        if self.schema_name:
            return self.schema_name
        if self.url:
            return None
        return self.name

    def display_url(self) -> str:
        return self.sqlalchemy_url().render_as_string(hide_password=True)


# ---------------------------------------------------------------------------
# Output paths
# ---------------------------------------------------------------------------


class OutputPaths(BaseModel):
    """Target directories for the generated artifacts and the wiring file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    routes_dir: Path = Field(..., description="Directory for <name>.routes.js.")
    models_dir: Path = Field(..., description="Directory for <name>.model.js.")
    controllers_dir: Path = Field(
        ..., description="Directory for <name>.controller.js."
    )
    app_path: Path = Field(..., description="The application wiring file.")

    @classmethod
    def resolve(
        cls,
        base_dir: Optional[Path] = None,
        *,
        routes_dir: Optional[Path] = None,
        models_dir: Optional[Path] = None,
        controllers_dir: Optional[Path] = None,
        app_path: Optional[Path] = None,
    ) -> "OutputPaths":
        base: Path = Path(base_dir) if base_dir is not None else Path.cwd()
        return cls(
            routes_dir=Path(routes_dir) if routes_dir else base / "routes",
            models_dir=Path(models_dir) if models_dir else base / "models",
            controllers_dir=(
                Path(controllers_dir) if controllers_dir else base / "controllers"
            ),
            app_path=Path(app_path) if app_path else base / "app.js",
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ConnectionSettings",
    "OutputPaths",
]
