# In src/release_manifest/entry.py
from dataclasses import dataclass

from .errors import MalformedEntryError

SEPARATOR = "="


@dataclass(frozen=True)
class ManifestEntry:
    """One dependency/version pair destined for a CSV row."""

    name: str
    version: str

    def as_row(self) -> tuple:
        return (self.name, self.version)


def parse_entry(line: str) -> ManifestEntry:
    """Split a `name=version` line at its only separator."""
    parts = line.split(SEPARATOR)
    if len(parts) != 2:
        raise MalformedEntryError(line)
    return ManifestEntry(name=parts[0], version=parts[1])
