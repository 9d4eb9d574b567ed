"""
The four manifest pipeline stages: union, deduplicate, sort and format.

Each file-based stage reads its input from disk so intermediate results can be
inspected between runs. The pure helpers (`deduplicate`, `sort_entries`,
`format_entries`) hold the actual logic.
"""

import os
from pathlib import Path
from typing import Iterable, List, Tuple

from .entry import parse_entry
from .errors import DirectoryListingError
from .lines_io import PathLike, read_lines, write_lines

CSV_HEADER: Tuple[str, str] = ("Dependency", "Version")


def list_manifest_files(directory: PathLike) -> List[Path]:
    """
    List the regular files directly inside a directory, sorted by name.

    Subdirectories are skipped and never descended into.

    Raises:
        DirectoryListingError: If the directory cannot be listed
    """
    path = Path(directory)
    try:
        with os.scandir(path) as entries:
            files = [Path(entry.path) for entry in entries if not entry.is_dir()]
    except OSError as e:
        raise DirectoryListingError(
            f"Cannot list directory {path}: {e.strerror or e}"
        )
    return sorted(files, key=lambda p: p.name)


def create_union(directory: PathLike, encoding: str = "utf-8") -> List[str]:
    """Concatenate the lines of every file in the directory, in listing order."""
    lines: List[str] = []
    for file_path in list_manifest_files(directory):
        lines.extend(read_lines(file_path, encoding))
    return lines


def deduplicate(lines: Iterable[str]) -> List[str]:
    """Keep the first occurrence of each line, preserving order."""
    encountered = set()
    result = []
    for line in lines:
        if line not in encountered:
            encountered.add(line)
            result.append(line)
    return result


def remove_duplicates(file_path: PathLike, encoding: str = "utf-8") -> List[str]:
    """Deduplicate a file's lines and overwrite the file with the result."""
    result = deduplicate(read_lines(file_path, encoding))
    write_lines(file_path, result, encoding)
    return result


def sort_entries(lines: Iterable[str]) -> List[str]:
    # Code point order on str matches byte order of the UTF-8 encoding.
    return sorted(lines)


def sort_lines(file_path: PathLike, encoding: str = "utf-8") -> List[str]:
    """Read a file's lines and return them in ascending lexicographic order."""
    return sort_entries(read_lines(file_path, encoding))


def format_entries(lines: Iterable[str]) -> List[Tuple[str, str]]:
    """
    Turn `name=version` lines into CSV rows, header first.

    Args:
        lines: Sorted, deduplicated manifest lines

    Returns:
        List[Tuple[str, str]]: Header row followed by one row per line

    Raises:
        MalformedEntryError: On the first line without exactly one '='
    """
    rows = [CSV_HEADER]
    for line in lines:
        rows.append(parse_entry(line).as_row())
    return rows


def parse_file(file_path: PathLike, encoding: str = "utf-8") -> List[Tuple[str, str]]:
    """Read sorted lines from a file and format them as CSV rows."""
    return format_entries(read_lines(file_path, encoding))
