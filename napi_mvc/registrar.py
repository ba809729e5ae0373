# File: napi_mvc/registrar.py
"""
napi-mvc - Route Registrar
===========================

Splices a generated router into the application wiring file (``app.js``)::

    const productRoutes = require('./routes/product.routes');
    ...
    app.use('/api/v1/products', productRoutes);

The wiring file is hand-maintained application code, so it is edited in
place by pattern matching rather than regenerated:

1. If the file already mentions the quoted mount path, nothing happens.
2. The import goes right after the last existing route import.
3. The mount goes on its own line after the last existing route mount.
4. The file is written back only when something changed.

A step whose anchor pattern is absent is skipped.  The result says which
steps ran, and each skipped step is logged as a warning, so a partially
wired file never goes unnoticed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from napi_mvc.errors import WiringFileNotFoundError
from napi_mvc.models import ResourceDescriptor
from napi_mvc.utils import read_file, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("napi_mvc.registrar")

# ---------------------------------------------------------------------------
# Wiring file patterns
# ---------------------------------------------------------------------------

IMPORT_PATTERN: re.Pattern[str] = re.compile(
    r"const \w+Routes = require\('\./routes/\w+\.routes'\);"
)
MOUNT_PATTERN: re.Pattern[str] = re.compile(
    r"app\.use\('/api/v1/\w+',\s*\w+Routes\);"
)


def import_statement(descriptor: ResourceDescriptor) -> str:
    return (
        f"const {descriptor.routes_variable} = "
        f"require('./routes/{descriptor.name}.routes');"
    )


def mount_statement(descriptor: ResourceDescriptor) -> str:
    return f"app.use('{descriptor.mount_path}', {descriptor.routes_variable});"


def is_registered(text: str, descriptor: ResourceDescriptor) -> bool:
    """True when the quoted mount path already appears in *text*."""
    path: str = descriptor.mount_path
    return f"'{path}'" in text or f'"{path}"' in text


# ---------------------------------------------------------------------------
# Text splicing
# ---------------------------------------------------------------------------


def insert_import(text: str, descriptor: ResourceDescriptor) -> Tuple[str, bool]:
    """
    Insert the import right after the text of the last matching import.

    Returns the new text and whether an insertion happened.
    """
    statement: str = import_statement(descriptor)
    if statement in text:
        return text, False

    matches: List[re.Match[str]] = list(IMPORT_PATTERN.finditer(text))
    if not matches:
        return text, False

    end: int = matches[-1].end()
    return f"{text[:end]}\n{statement}{text[end:]}", True


def insert_mount(text: str, descriptor: ResourceDescriptor) -> Tuple[str, bool]:
    """
    Insert the mount on a new line after the last matching mount.

    The statement is placed at the end of the line holding the last match's
    ``;`` terminator, or at the end of the text if that line is the last.
    """
    matches: List[re.Match[str]] = list(MOUNT_PATTERN.finditer(text))
    if not matches:
        return text, False

    last: re.Match[str] = matches[-1]
    line_end: int = text.index(";", last.start()) + 1
    boundary: int = text.find("\n", line_end)
    if boundary == -1:
        boundary = len(text)

    statement: str = mount_statement(descriptor)
    return f"{text[:boundary]}\n{statement}{text[boundary:]}", True


# ---------------------------------------------------------------------------
# Registration result
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RegistrationResult:
    """Outcome of one ``register_route`` call."""

    resource: str
    mount_path: str
    app_path: str
    already_registered: bool = False
    import_added: bool = False
    import_present: bool = False
    mount_added: bool = False

    @property
    def modified(self) -> bool:
        return self.import_added or self.mount_added

    @property
    def complete(self) -> bool:
        """True when both the import and the mount are now in the file."""
        if self.already_registered:
            return True
        return self.mount_added and (self.import_added or self.import_present)


# ---------------------------------------------------------------------------
# Registrar
# ---------------------------------------------------------------------------


class Registrar:
    """
    Registers generated routers in the wiring file.

    Usage::

        registrar = Registrar(Path("app.js"))
        result = registrar.register_route("product")
    """

    def __init__(
        self,
        app_path: Path,
        *,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._app_path: Path = Path(app_path)
        self._log: logging.Logger = log or logger

    @property
    def app_path(self) -> Path:
        return self._app_path

    def register_route(self, name: str) -> RegistrationResult:
        """
        Add the import and mount statements for resource *name*.

        Raises:
            WiringFileNotFoundError: the wiring file does not exist.
            ValueError: *name* is not a valid resource name.
        """
        descriptor: ResourceDescriptor = ResourceDescriptor(name=name)
        app_path: Path = self._app_path

        if not app_path.is_file():
            raise WiringFileNotFoundError(app_path)

        original: str = read_file(app_path)

        if is_registered(original, descriptor):
            self._log.info(
                "Route %s already registered in %s",
                descriptor.mount_path,
                app_path.name,
            )
            return RegistrationResult(
                resource=descriptor.name,
                mount_path=descriptor.mount_path,
                app_path=str(app_path),
                already_registered=True,
            )

        import_present: bool = import_statement(descriptor) in original
        text, import_added = insert_import(original, descriptor)
        text, mount_added = insert_mount(text, descriptor)

        if not import_added and not import_present:
            self._log.warning(
                "No route import found in %s; add manually: %s",
                app_path.name,
                import_statement(descriptor),
            )
        if not mount_added:
            self._log.warning(
                "No route mount found in %s; add manually: %s",
                app_path.name,
                mount_statement(descriptor),
            )

        if text != original:
            write_file(app_path, text, atomic=False)
            self._log.info(
                "Route registered in %s: %s", app_path.name, descriptor.mount_path
            )

        return RegistrationResult(
            resource=descriptor.name,
            mount_path=descriptor.mount_path,
            app_path=str(app_path),
            import_added=import_added,
            import_present=import_present,
            mount_added=mount_added,
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "IMPORT_PATTERN",
    "MOUNT_PATTERN",
    "import_statement",
    "mount_statement",
    "is_registered",
    "insert_import",
    "insert_mount",
    "RegistrationResult",
    "Registrar",
]
