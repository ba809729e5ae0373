# File: napi_mvc/generator.py
"""
napi-mvc - Generation Pipeline (Orchestrator)
==============================================

Connects the phases of ``generate route <name>``:

    Inspect table → Build descriptor → Render artifacts → Write files

Workflow::

    1. Normalise the resource name and derive the table name.
    2. Ask the table source (live catalog or schema file) for columns
       and foreign keys; an absent table is a ``TableNotFoundError``.
    3. Freeze the metadata into a ``ResourceDescriptor``.
    4. Render the route, model and controller bodies.
    5. Hand them to the ``ArtifactWriter`` (skipped on a dry run).
    6. Return a ``GenerationReport`` with per-step timings.

Errors are not collected here: each one propagates to the caller, which
for the CLI means a message and exit code 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from napi_mvc.config import OutputPaths
from napi_mvc.exporters import ArtifactWriter, FileRecord
from napi_mvc.inspector import TableSource
from napi_mvc.models import GeneratedArtifact, ResourceDescriptor, TableSchema
from napi_mvc.templates import TemplateRenderer
from napi_mvc.utils import Timer, count_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("napi_mvc.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """What ``RouteGenerator.generate_route()`` did."""

    resource: str = ""
    table_name: str = ""
    column_count: int = 0
    foreign_key_count: int = 0
    dry_run: bool = False

    artifacts: List[GeneratedArtifact] = field(default_factory=list)
    files: List[FileRecord] = field(default_factory=list)
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)

    @property
    def total_lines(self) -> int:
        return sum(count_lines(artifact.body) for artifact in self.artifacts)

    @property
    def total_elapsed_seconds(self) -> float:
        return sum(step.elapsed_seconds for step in self.step_metrics)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        lines.append(f"{'='*60}")
        lines.append(f"  napi-mvc — Route Generation")
        lines.append(f"{'='*60}")
        lines.append(f"  Resource:     {self.resource}")
        lines.append(f"  Table:        {self.table_name}")
        lines.append(f"  Columns:      {self.column_count}")
        lines.append(f"  Foreign keys: {self.foreign_key_count}")
        lines.append(f"  Total lines:  {self.total_lines:,}")
        lines.append(f"  Total time:   {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                lines.append(
                    f"    ✓ {step.step_name:<20s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )
            lines.append(f"{'─'*60}")

        heading: str = "Would write" if self.dry_run else "Files"
        lines.append(f"  {heading}:")
        for artifact in self.artifacts:
            lines.append(f"    • {artifact.target_path}")

        if not self.dry_run:
            lines.append(f"{'─'*60}")
            lines.append("  Next steps:")
            lines.append(f"    1. Register route: napi-mvc register route {self.resource}")
            lines.append("    2. Restart server")
            lines.append("    3. Test on http://localhost:3000/api-docs")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# RouteGenerator
# ---------------------------------------------------------------------------


class RouteGenerator:
    """
    Pipeline orchestrator for ``generate route``.

    Usage::

        generator = RouteGenerator(
            source=SchemaInspector(ConnectionSettings.resolve()),
            paths=OutputPaths.resolve(),
        )
        report = generator.generate_route("product")
        print(report.summary())

    Every collaborator can be injected, including the logger.
    """

    def __init__(
        self,
        source: TableSource,
        paths: OutputPaths,
        *,
        renderer: Optional[TemplateRenderer] = None,
        writer: Optional[ArtifactWriter] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._log: logging.Logger = log or logger
        self._source: TableSource = source
        self._paths: OutputPaths = paths
        self._renderer: TemplateRenderer = renderer or TemplateRenderer(log=self._log)
        self._writer: ArtifactWriter = writer or ArtifactWriter(log=self._log)

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def generate_route(self, name: str, *, dry_run: bool = False) -> GenerationReport:
        """
        Generate route, model and controller files for resource *name*.

        Raises:
            ValueError: *name* is not a valid resource name.
            TableNotFoundError: the backing table does not exist.
            ArtifactConflictError: one of the files already exists.
            sqlalchemy.exc.SQLAlchemyError: the catalog is unreachable.
        """
        # Validates the name before anything touches the catalog
        bare: ResourceDescriptor = ResourceDescriptor(name=name)
        report: GenerationReport = GenerationReport(
            resource=bare.name,
            table_name=bare.table_name,
            dry_run=dry_run,
        )

        descriptor: ResourceDescriptor = self._step_inspect(bare, report)
        artifacts: List[GeneratedArtifact] = self._step_render(descriptor, report)
        report.artifacts.extend(artifacts)

        if dry_run:
            self._log.info("Dry run: %d file(s) not written.", len(artifacts))
        else:
            self._step_write(artifacts, report)
            self._log.info("All files generated for '%s'.", descriptor.name)

        return report

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_inspect(
        self,
        bare: ResourceDescriptor,
        report: GenerationReport,
    ) -> ResourceDescriptor:
        with Timer("inspect") as t:
            schema: TableSchema = self._source.inspect(bare.table_name)

        descriptor: ResourceDescriptor = ResourceDescriptor.from_schema(bare.name, schema)
        report.column_count = len(descriptor.columns)
        report.foreign_key_count = len(descriptor.foreign_keys)

        self._log.info(
            "Table '%s' found with %d columns",
            descriptor.table_name,
            report.column_count,
        )
        if descriptor.foreign_keys:
            self._log.info(
                "%d foreign key(s) detected", report.foreign_key_count
            )

        report.step_metrics.append(GenerationStepMetric(
            step_name="Inspect Table",
            elapsed_seconds=t.elapsed,
            detail=f"{report.column_count} columns, {report.foreign_key_count} FKs",
        ))
        return descriptor

    def _step_render(
        self,
        descriptor: ResourceDescriptor,
        report: GenerationReport,
    ) -> List[GeneratedArtifact]:
        with Timer("render") as t:
            artifacts: List[GeneratedArtifact] = self._renderer.render(
                descriptor, self._paths
            )

        report.step_metrics.append(GenerationStepMetric(
            step_name="Render Templates",
            elapsed_seconds=t.elapsed,
            detail=f"{len(artifacts)} artifacts",
        ))
        return artifacts

    def _step_write(
        self,
        artifacts: List[GeneratedArtifact],
        report: GenerationReport,
    ) -> None:
        with Timer("write") as t:
            records: List[FileRecord] = self._writer.write_all(artifacts)

        report.files.extend(records)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Write Files",
            elapsed_seconds=t.elapsed,
            detail=f"{sum(r.size_bytes for r in records):,} bytes",
        ))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RouteGenerator",
    "GenerationReport",
    "GenerationStepMetric",
]
