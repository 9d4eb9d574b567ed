"""
Integration tests for release-manifest.
Tests complete pipeline runs and their on-disk artifacts.
"""

import io
import json
import logging

import pytest
from unittest.mock import patch
from rich.console import Console

from src.release_manifest import error_handling
from src.release_manifest.cli_config import LoggingConfig, PipelineConfig, ToolConfig
from src.release_manifest.error_handling import get_error_handler
from src.release_manifest.errors import (
    DirectoryListingError,
    FileReadError,
    FileWriteError,
    MalformedEntryError,
)
from src.release_manifest.pipeline import (
    MANIFEST_FILE,
    SORTED_FILE,
    UNION_FILE,
    UNSORTED_FILE,
    RunConfig,
    run_pipeline,
)
from src.release_manifest.reporting import ManifestReporter
from src.release_manifest.structured_logging import (
    StructuredFormatter,
    configure_logging,
    get_pipeline_logger,
)


class TestEndToEndPipeline:
    """Test complete pipeline workflows."""

    def test_two_overlapping_manifests(self, manifest_dir):
        """Test the canonical scenario: union, dedup, sort, then CSV."""
        result = run_pipeline(RunConfig(source_dir=manifest_dir, version="1.0.0"))

        results_dir = manifest_dir / "results"
        assert result.results_dir == results_dir
        assert (results_dir / MANIFEST_FILE).read_text(encoding="utf-8") == (
            "Dependency,Version\nx,1\ny,2\nz,3\n"
        )

    def test_intermediate_artifacts(self, manifest_dir):
        """Test every stage leaves its output on disk."""
        run_pipeline(RunConfig(source_dir=manifest_dir, version="1.0.0"))

        results_dir = manifest_dir / "results"
        # union.txt is overwritten in place by deduplication
        assert (results_dir / UNION_FILE).read_text() == "x=1\ny=2\nz=3\n"
        assert (results_dir / UNSORTED_FILE).read_text() == "x=1\ny=2\nz=3\n"
        assert (results_dir / SORTED_FILE).read_text() == "x=1\ny=2\nz=3\n"

    def test_result_counts(self, manifest_dir):
        """Test the result reports per-stage line counts and the version."""
        result = run_pipeline(RunConfig(source_dir=manifest_dir, version="2.5.0"))

        assert result.version == "2.5.0"
        assert result.line_counts == {
            UNION_FILE: 4,
            UNSORTED_FILE: 3,
            SORTED_FILE: 3,
            MANIFEST_FILE: 3,
        }
        assert result.entry_count == 3
        assert result.manifest_path == manifest_dir / "results" / MANIFEST_FILE

    def test_unsorted_keeps_first_occurrence_order(self, temp_dir):
        """Test unsorted.txt is deduplicated but not reordered."""
        source = temp_dir / "src"
        source.mkdir()
        (source / "1.txt").write_text("zlib=1\nabc=2\n")
        (source / "2.txt").write_text("abc=2\nmid=3\n")

        run_pipeline(RunConfig(source_dir=source, version="1"))

        assert (source / "results" / UNSORTED_FILE).read_text() == "zlib=1\nabc=2\nmid=3\n"
        assert (source / "results" / SORTED_FILE).read_text() == "abc=2\nmid=3\nzlib=1\n"

    def test_rerun_reuses_results_directory(self, manifest_dir):
        """Test a second run skips the results directory and gives the same CSV."""
        run_pipeline(RunConfig(source_dir=manifest_dir, version="1.0.0"))
        first = (manifest_dir / "results" / MANIFEST_FILE).read_text()

        run_pipeline(RunConfig(source_dir=manifest_dir, version="1.0.0"))

        assert (manifest_dir / "results" / MANIFEST_FILE).read_text() == first

    def test_values_with_commas_are_escaped(self, temp_dir):
        """Test CSV output quotes values the csv module needs to quote."""
        source = temp_dir / "src"
        source.mkdir()
        (source / "m.txt").write_text('lib=1,2\nother="q"\n')

        run_pipeline(RunConfig(source_dir=source, version="1"))

        assert (source / "results" / MANIFEST_FILE).read_text() == (
            'Dependency,Version\nlib,"1,2"\nother,"""q"""\n'
        )

    def test_empty_source_directory(self, temp_dir):
        """Test an empty directory still produces a header-only CSV."""
        source = temp_dir / "empty"
        source.mkdir()

        result = run_pipeline(RunConfig(source_dir=source, version="1"))

        assert result.entry_count == 0
        assert (source / "results" / MANIFEST_FILE).read_text() == "Dependency,Version\n"

    def test_custom_results_directory(self, manifest_dir):
        """Test the results directory name comes from settings."""
        settings = ToolConfig(
            pipeline=PipelineConfig(results_dir_name="out"), logging=LoggingConfig()
        )

        result = run_pipeline(RunConfig(source_dir=manifest_dir, version="1"), settings)

        assert result.results_dir == manifest_dir / "out"
        assert (manifest_dir / "out" / MANIFEST_FILE).exists()
        assert not (manifest_dir / "results").exists()

    def test_run_config_is_immutable(self, manifest_dir):
        """Test per-run parameters cannot be changed after construction."""
        run_config = RunConfig(source_dir=str(manifest_dir), version="1")

        assert run_config.source_dir == manifest_dir
        with pytest.raises(Exception):
            run_config.version = "2"


class TestPipelineFailures:
    """Test fail-fast behavior."""

    def test_malformed_line_aborts_before_csv(self, malformed_manifest_dir):
        """Test a malformed entry stops the run and no CSV is written."""
        with pytest.raises(MalformedEntryError) as exc_info:
            run_pipeline(RunConfig(source_dir=malformed_manifest_dir, version="1"))

        results_dir = malformed_manifest_dir / "results"
        assert exc_info.value.line == "a=b=c"
        assert not (results_dir / MANIFEST_FILE).exists()
        # Earlier artifacts are left in place
        assert (results_dir / SORTED_FILE).read_text() == "a=b=c\ngood=1\n"

    def test_missing_source_directory(self, temp_dir):
        """Test a missing source directory fails and is not created."""
        missing = temp_dir / "missing"

        with pytest.raises(DirectoryListingError):
            run_pipeline(RunConfig(source_dir=missing, version="1"))

        assert not missing.exists()

    def test_source_is_a_file(self, temp_dir):
        """Test a file given as source directory is rejected."""
        not_a_dir = temp_dir / "file.txt"
        not_a_dir.write_text("a=1\n")

        with pytest.raises(DirectoryListingError):
            run_pipeline(RunConfig(source_dir=not_a_dir, version="1"))

    def test_deduplication_error_names_entry_point(self, manifest_dir):
        """Test failures in deduplication are tagged with the caller."""
        with patch(
            "src.release_manifest.pipeline.remove_duplicates",
            side_effect=FileReadError("Error reading file union.txt"),
        ):
            with pytest.raises(FileReadError) as exc_info:
                run_pipeline(
                    RunConfig(source_dir=manifest_dir, version="1"),
                    entry_point="release-manifest manifest",
                )

        assert exc_info.value.entry_point == "release-manifest manifest"
        assert str(exc_info.value) == (
            "release-manifest manifest: Error reading file union.txt"
        )

    def test_deduplication_error_default_entry_point(self, manifest_dir):
        """Test the orchestrator names itself when no caller is given."""
        with patch(
            "src.release_manifest.pipeline.remove_duplicates",
            side_effect=FileReadError("boom"),
        ):
            with pytest.raises(FileReadError) as exc_info:
                run_pipeline(RunConfig(source_dir=manifest_dir, version="1"))

        assert exc_info.value.entry_point.endswith("pipeline.run_pipeline")

    def test_other_stage_errors_have_no_entry_point(self, malformed_manifest_dir):
        """Test only the deduplication stage carries the entry point."""
        with pytest.raises(MalformedEntryError) as exc_info:
            run_pipeline(
                RunConfig(source_dir=malformed_manifest_dir, version="1"),
                entry_point="release-manifest manifest",
            )

        assert exc_info.value.entry_point is None

    def test_write_failure_propagates(self, manifest_dir):
        """Test a write failure in the final stage aborts the run."""
        with patch(
            "src.release_manifest.pipeline.write_csv",
            side_effect=FileWriteError("disk full"),
        ):
            with pytest.raises(FileWriteError):
                run_pipeline(RunConfig(source_dir=manifest_dir, version="1"))

        assert (manifest_dir / "results" / SORTED_FILE).exists()

    def test_failures_are_reported_to_error_handler(self, malformed_manifest_dir):
        """Test stage failures are recorded with their category."""
        captured = []
        get_error_handler().register_callback(captured.append)

        with pytest.raises(MalformedEntryError):
            run_pipeline(RunConfig(source_dir=malformed_manifest_dir, version="1"))

        assert get_error_handler().get_error_stats() == {"PARSING_ERROR": 1}
        assert captured[0].function == "parse_file"
        assert captured[0].details["line"] == "a=b=c"
        assert captured[0].suggestions


class TestReportingAndLogging:
    """Test run summaries and structured log events."""

    def test_run_summary_lists_stages(self, manifest_dir):
        """Test the console summary shows every stage and the version."""
        result = run_pipeline(RunConfig(source_dir=manifest_dir, version="3.1.4"))
        output = io.StringIO()

        ManifestReporter(Console(file=output, width=200)).print_run_summary(result)

        text = output.getvalue()
        for label in ["Union", "Deduplicate", "Sort", "Format"]:
            assert label in text
        assert "3.1.4" in text
        assert "3 dependencies written" in text

    def test_structured_formatter_emits_json(self):
        """Test log records become JSON objects with extra fields."""
        record = logging.LogRecord(
            "release_manifest.events", logging.INFO, __file__, 1, "stage_completed", None, None
        )
        record.stage = "sort_lines"
        record.line_count = 3

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["message"] == "stage_completed"
        assert entry["stage"] == "sort_lines"
        assert entry["line_count"] == 3

    def test_run_emits_stage_events(self, manifest_dir):
        """Test a run logs start, each stage and completion with its context."""
        logger = get_pipeline_logger().logger
        events = []

        class Collector(logging.Handler):
            def emit(self, record):
                events.append(record)

        handler = Collector()
        previous_level = logger.level
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        try:
            run_pipeline(RunConfig(source_dir=manifest_dir, version="9.9"))
        finally:
            logger.removeHandler(handler)
            logger.setLevel(previous_level)

        types = [record.event_type for record in events]
        assert types[0] == "run_started"
        assert types.count("stage_completed") == 4
        assert types[-1] == "run_completed"
        assert all(record.version == "9.9" for record in events)

    @pytest.mark.parametrize("level_name", ["DEBUG", "CRITICAL"])
    def test_configured_level_survives_error_handler_creation(self, monkeypatch, level_name):
        """Test the lazily created error handler keeps the configured log level."""
        monkeypatch.setattr(error_handling, "_global_error_handler", None)
        try:
            configure_logging(level_name)
            get_error_handler()

            assert logging.getLogger("release_manifest").level == getattr(logging, level_name)
        finally:
            configure_logging("WARNING")
