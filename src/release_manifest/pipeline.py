"""
Orchestrator for the manifest pipeline.

Runs union, deduplicate, sort and format in strict sequence, handing each
stage's output to the next through a file in the results directory. The first
error stops the run; files already written are left in place.
"""

import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .cli_config import ToolConfig, get_config
from .error_handling import log_stage_error
from .errors import ManifestError
from .lines_io import ensure_directory, write_csv, write_lines
from .stages import create_union, parse_file, remove_duplicates, sort_lines
from .structured_logging import (
    log_run_complete,
    log_run_failed,
    log_run_start,
    log_stage_complete,
)

UNION_FILE = "union.txt"
UNSORTED_FILE = "unsorted.txt"
SORTED_FILE = "sorted.txt"
MANIFEST_FILE = "manifest.csv"


@dataclass(frozen=True)
class RunConfig:
    """Per-invocation parameters for one pipeline run."""

    source_dir: Path
    version: str

    def __post_init__(self):
        object.__setattr__(self, "source_dir", Path(self.source_dir))


@dataclass
class PipelineResult:
    """Outcome of a successful pipeline run."""

    version: str
    results_dir: Path
    artifacts: Dict[str, Path] = field(default_factory=dict)
    line_counts: Dict[str, int] = field(default_factory=dict)
    duration_ms: int = 0

    @property
    def manifest_path(self) -> Path:
        return self.artifacts[MANIFEST_FILE]

    @property
    def entry_count(self) -> int:
        return self.line_counts.get(MANIFEST_FILE, 0)


def _default_entry_point() -> str:
    return f"{run_pipeline.__module__}.{run_pipeline.__qualname__}"


def run_pipeline(
    run_config: RunConfig,
    settings: Optional[ToolConfig] = None,
    entry_point: Optional[str] = None,
) -> PipelineResult:
    """
    Build `manifest.csv` from the manifest files in `run_config.source_dir`.

    Args:
        run_config: Source directory and release version for this run
        settings: Tool settings; the loaded global configuration if omitted
        entry_point: Name reported with deduplication failures

    Returns:
        PipelineResult: Artifact paths and per-stage line counts

    Raises:
        ManifestError: On the first listing, read, write or format failure
    """
    settings = settings or get_config()
    encoding = settings.pipeline.encoding
    entry_point = entry_point or _default_entry_point()

    start_time = time.time()
    run_id = f"run_{uuid.uuid4().hex[:12]}"
    log_run_start(run_id, str(run_config.source_dir), run_config.version)

    results_dir = run_config.source_dir / settings.pipeline.results_dir_name
    result = PipelineResult(version=run_config.version, results_dir=results_dir)

    def record(name: str, stage: str, count: int) -> Path:
        path = results_dir / name
        result.artifacts[name] = path
        result.line_counts[name] = count
        log_stage_complete(stage, count, str(path))
        return path

    stage, current_file = "create_union", run_config.source_dir
    try:
        lines = create_union(run_config.source_dir, encoding)
        ensure_directory(results_dir)
        union_path = results_dir / UNION_FILE
        write_lines(union_path, lines, encoding)
        record(UNION_FILE, stage, len(lines))

        stage, current_file = "remove_duplicates", union_path
        try:
            lines = remove_duplicates(union_path, encoding)
        except ManifestError as e:
            e.entry_point = entry_point
            raise
        unsorted_path = results_dir / UNSORTED_FILE
        write_lines(unsorted_path, lines, encoding)
        record(UNSORTED_FILE, stage, len(lines))

        stage, current_file = "sort_lines", unsorted_path
        lines = sort_lines(unsorted_path, encoding)
        sorted_path = results_dir / SORTED_FILE
        write_lines(sorted_path, lines, encoding)
        record(SORTED_FILE, stage, len(lines))

        stage, current_file = "parse_file", sorted_path
        rows = parse_file(sorted_path, encoding)
        manifest_path = results_dir / MANIFEST_FILE
        write_csv(manifest_path, rows, encoding)
        # Header row excluded
        record(MANIFEST_FILE, stage, len(rows) - 1)

    except ManifestError as e:
        log_stage_error(e, stage, str(current_file))
        log_run_failed(stage, e)
        raise

    result.duration_ms = int((time.time() - start_time) * 1000)
    log_run_complete(result.duration_ms, result.entry_count, str(result.manifest_path))
    return result
