# File: napi_mvc/utils.py
"""
napi-mvc - Utility Functions & Helpers
=======================================
Naming conventions shared by the renderer and the registrar, plus the
file I/O and timing helpers used by the writer and the orchestrator.

- Naming helpers are ``@lru_cache``'d: the same resource name is converted
  many times while one set of artifacts is rendered.
- File writes go through a temp file renamed into place so a crash never
  leaves a half-written artifact behind.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import tempfile
import time
from pathlib import Path
from typing import List

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("napi_mvc.utils")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

API_PREFIX: str = "/api/v1"

_FILE_MODE: int = 0o644


# ---------------------------------------------------------------------------
# Cached naming functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_table_name(resource_name: str) -> str:
    """
    Pluralise a resource name into its table name.

    Plain suffix append, no English inflection:

        >>> to_table_name("product")
        'products'
        >>> to_table_name("category")
        'categorys'
    """
    return f"{resource_name}s"


@functools.lru_cache(maxsize=None)
def capitalize_first(name: str) -> str:
    """
    Upper-case the first character and keep the rest untouched.

        >>> capitalize_first("order_item")
        'Order_item'
    """
    if not name:
        return ""
    return name[0].upper() + name[1:]


@functools.lru_cache(maxsize=None)
def to_mount_path(table_name: str) -> str:
    """URL prefix a resource's router is mounted under."""
    return f"{API_PREFIX}/{table_name}"


@functools.lru_cache(maxsize=None)
def to_routes_variable(resource_name: str) -> str:
    """Name of the variable holding the router in the wiring file."""
    return f"{resource_name}Routes"


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* as UTF-8 and return the byte count.

    An atomic write goes to a sibling ``.<name>.*.tmp`` file that is renamed
    over *path* once complete; if anything fails the temp file is removed
    and *path* is left as it was.  Non-atomic writes are used for files
    edited in place, such as the wiring file.
    """
    data: bytes = content.encode("utf-8")
    ensure_directory(path.parent)

    if not atomic:
        path.write_bytes(data)
    else:
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        staged: Path = Path(tmp_name)
        try:
            with open(fd, "wb") as fh:
                fh.write(data)
            # mkstemp creates 0600; generated sources must stay readable
            staged.chmod(_FILE_MODE)
            staged.replace(path)
        except OSError:
            staged.unlink(missing_ok=True)
            raise

    logger.debug("Wrote %s (%d bytes, atomic=%s)", path, len(data), atomic)
    return len(data)


def read_file(path: Path) -> str:
    """Read a UTF-8 file without newline translation."""
    return path.read_bytes().decode("utf-8")


def sha256_hex(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Number of lines, counting a final line without a newline."""
    return len(content.splitlines())


# ---------------------------------------------------------------------------
# Step timing
# ---------------------------------------------------------------------------


class Timer:
    """
    Measures one pipeline step::

        with Timer("render") as t:
            ...
        report_elapsed(t.elapsed)
    """

    __slots__ = ("label", "elapsed", "_started")

    def __init__(self, label: str) -> None:
        self.label: str = label
        self.elapsed: float = 0.0
        self._started: float = 0.0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.elapsed = time.perf_counter() - self._started
        logger.debug("Step '%s' took %.4fs", self.label, self.elapsed)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "API_PREFIX",
    "to_table_name",
    "capitalize_first",
    "to_mount_path",
    "to_routes_variable",
    "ensure_directory",
    "write_file",
    "read_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]
