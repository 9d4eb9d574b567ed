"""Pytest configuration and fixtures."""

import pytest

from src.release_manifest.cli_config import reset_config
from src.release_manifest.error_handling import setup_error_handling


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user config files and RELEASE_MANIFEST_* variables out of tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home)
    for key in [
        "RELEASE_MANIFEST_RESULTS_DIR",
        "RELEASE_MANIFEST_ENCODING",
        "RELEASE_MANIFEST_LOG_LEVEL",
        "RELEASE_MANIFEST_JSON_LOGS",
    ]:
        monkeypatch.delenv(key, raising=False)

    reset_config()
    setup_error_handling()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    """Return a scratch directory separate from the fake home."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def manifest_dir(temp_dir):
    """Two overlapping manifests plus a subdirectory that must be ignored."""
    path = temp_dir / "manifests"
    path.mkdir()

    (path / "a.txt").write_text("x=1\ny=2\n", encoding="utf-8")
    (path / "b.txt").write_text("y=2\nz=3\n", encoding="utf-8")

    nested = path / "nested"
    nested.mkdir()
    (nested / "ignored.txt").write_text("hidden=9\n", encoding="utf-8")

    return path


@pytest.fixture
def malformed_manifest_dir(temp_dir):
    """A manifest directory containing a line with two separators."""
    path = temp_dir / "malformed"
    path.mkdir()

    (path / "a.txt").write_text("good=1\na=b=c\n", encoding="utf-8")

    return path
