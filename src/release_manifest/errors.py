"""
Exception types raised by the manifest pipeline.

Every failure is terminal: the orchestrator lets the first one propagate and
the CLI turns it into a non-zero exit.
"""

from typing import Optional


class ManifestError(Exception):
    """Base class for all pipeline failures."""

    def __init__(self, message: str, entry_point: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.entry_point = entry_point

    def __str__(self) -> str:
        if self.entry_point:
            return f"{self.entry_point}: {self.message}"
        return self.message


class DirectoryListingError(ManifestError):
    """The source directory could not be listed."""


class FileReadError(ManifestError):
    """A file could not be opened, read or decoded."""


class FileWriteError(ManifestError):
    """A file or the results directory could not be created or written."""


class MalformedEntryError(ManifestError):
    """A manifest line does not contain exactly one '=' separator."""

    def __init__(self, line: str, entry_point: Optional[str] = None):
        super().__init__(f"invalid line: {line}", entry_point)
        self.line = line
