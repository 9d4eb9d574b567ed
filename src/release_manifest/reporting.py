"""
Console output for finished pipeline runs.

Provides a Rich summary of the artifacts written by a run.
"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .pipeline import MANIFEST_FILE, SORTED_FILE, UNION_FILE, UNSORTED_FILE, PipelineResult

_STAGE_LABELS = [
    (UNION_FILE, "Union"),
    (UNSORTED_FILE, "Deduplicate"),
    (SORTED_FILE, "Sort"),
    (MANIFEST_FILE, "Format"),
]


class ManifestReporter:
    """Formats and displays pipeline results."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_run_summary(self, result: PipelineResult) -> None:
        """Print the stage table and the location of the final manifest."""
        self.console.print(
            Panel(
                f"📦 Release manifest for version [bold]{escape(result.version)}[/bold]",
                border_style="blue",
            )
        )
        self.console.print(self._stage_table(result))
        self.console.print(
            f"✅ {result.entry_count} dependencies written to {result.manifest_path}",
            style="green",
            markup=False,
        )

    def _stage_table(self, result: PipelineResult) -> Table:
        table = Table(title="📊 Pipeline Stages", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("Stage", style="bold")
        table.add_column("Artifact")
        table.add_column("Lines", justify="right")

        for artifact, label in _STAGE_LABELS:
            if artifact in result.line_counts:
                table.add_row(label, artifact, str(result.line_counts[artifact]))

        return table
