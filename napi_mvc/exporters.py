# File: napi_mvc/exporters.py
"""
napi-mvc - Artifact Writer (File-System Manager)
=================================================

Responsible for:
    1. Creating target directories on demand.
    2. Refusing to overwrite: an existing destination is a conflict.
    3. Writing each artifact atomically (write-to-temp then rename).
    4. Returning a record per file with size and checksum.

A batch is staged before it is committed: every destination is checked
for conflicts before the first byte is written, and if a write fails
mid-batch the files and directories this batch created are removed again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from napi_mvc.errors import ArtifactConflictError
from napi_mvc.models import GeneratedArtifact
from napi_mvc.utils import count_lines, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("napi_mvc.exporters")


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single written file."""

    path: str
    size_bytes: int
    line_count: int
    sha256: str


# ---------------------------------------------------------------------------
# ArtifactWriter
# ---------------------------------------------------------------------------


class ArtifactWriter:
    """
    Persists generated artifacts, never overwriting existing files.

    Usage::

        writer = ArtifactWriter()
        records = writer.write_all(artifacts)

    Thread-safety: NOT thread-safe, and nothing guards against another
    process creating the same file between the check and the write.
    """

    def __init__(
        self,
        *,
        atomic_writes: bool = True,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._atomic_writes: bool = atomic_writes
        self._log: logging.Logger = log or logger

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def check_conflicts(self, artifacts: Sequence[GeneratedArtifact]) -> None:
        """Raise ``ArtifactConflictError`` for the first destination that exists."""
        for artifact in artifacts:
            if artifact.target_path.exists():
                raise ArtifactConflictError(artifact.kind.value, artifact.target_path)

    def write(self, artifact: GeneratedArtifact) -> FileRecord:
        """Write one artifact; raise ``ArtifactConflictError`` if it exists."""
        self.check_conflicts([artifact])
        return self._write_single_file(artifact)

    def write_all(self, artifacts: Sequence[GeneratedArtifact]) -> List[FileRecord]:
        """
        Write every artifact or none of them.

        Raises:
            ArtifactConflictError: a destination already exists; nothing
                is written.
            OSError: a write failed; files and directories created by this
                call are removed before the error propagates.
        """
        self.check_conflicts(artifacts)
        created_dirs: List[Path] = self._missing_directories(artifacts)

        records: List[FileRecord] = []
        written: List[Path] = []
        try:
            for artifact in artifacts:
                records.append(self._write_single_file(artifact))
                written.append(artifact.target_path)
        except OSError:
            self._rollback(written, created_dirs)
            raise

        self._log.debug("Wrote %d artifact(s).", len(records))
        return records

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _write_single_file(self, artifact: GeneratedArtifact) -> FileRecord:
        target: Path = artifact.target_path
        size_bytes: int = write_file(target, artifact.body, atomic=self._atomic_writes)

        self._log.info("%s created: %s", artifact.kind.value, target)
        return FileRecord(
            path=str(target),
            size_bytes=size_bytes,
            line_count=count_lines(artifact.body),
            sha256=sha256_hex(artifact.body),
        )

    def _rollback(self, written: Sequence[Path], created_dirs: Sequence[Path]) -> None:
        for path in written:
            try:
                path.unlink()
                self._log.warning("Rolled back partially generated file: %s", path)
            except FileNotFoundError:
                continue

        # deepest first, so a parent is empty once its children are gone
        for directory in created_dirs:
            if directory.is_dir() and not any(directory.iterdir()):
                directory.rmdir()
                self._log.debug("Removed directory created by this batch: %s", directory)

    @staticmethod
    def _missing_directories(artifacts: Sequence[GeneratedArtifact]) -> List[Path]:
        """Directories a batch would create, deepest first."""
        missing: Dict[Path, None] = {}
        for artifact in artifacts:
            directory: Path = artifact.target_path.parent
            while not directory.exists() and directory != directory.parent:
                missing.setdefault(directory, None)
                directory = directory.parent
        return sorted(missing, key=lambda p: len(p.parts), reverse=True)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FileRecord",
    "ArtifactWriter",
]
