"""
Line-oriented file helpers shared by the pipeline stages.

Files are read and written as newline-delimited text. Each helper owns its
file handle for the duration of the call.
"""

import csv
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from .errors import FileReadError, FileWriteError

PathLike = Union[str, Path]


def _split_line(raw: str) -> str:
    """Drop the line terminator, tolerating CRLF input."""
    if raw.endswith("\n"):
        raw = raw[:-1]
    if raw.endswith("\r"):
        raw = raw[:-1]
    return raw


def read_lines(file_path: PathLike, encoding: str = "utf-8") -> List[str]:
    """
    Read a file and return its lines without terminators.

    A last line with no trailing newline is still returned; an empty file
    yields an empty list. Only '\\n' delimits lines.

    Args:
        file_path: File to read
        encoding: Text encoding of the file

    Returns:
        List[str]: Lines in file order

    Raises:
        FileReadError: If the file cannot be opened, read or decoded
    """
    path = Path(file_path)
    try:
        # newline="\n" splits on LF only; a lone CR stays inside its line
        with open(path, encoding=encoding, newline="\n") as f:
            return [_split_line(raw) for raw in f]
    except UnicodeDecodeError as e:
        raise FileReadError(f"File contains invalid {encoding} characters: {path} ({e.reason})")
    except PermissionError:
        raise FileReadError(f"Permission denied reading file: {path}")
    except OSError as e:
        raise FileReadError(f"Error reading file {path}: {e.strerror or e}")


def write_lines(
    file_path: PathLike, lines: Iterable[str], encoding: str = "utf-8"
) -> Path:
    """Create or truncate a file and write one line per item."""
    path = Path(file_path)
    try:
        with open(path, "w", encoding=encoding, newline="") as f:
            for line in lines:
                f.write(f"{line}\n")
    except PermissionError:
        raise FileWriteError(f"Permission denied writing file: {path}")
    except OSError as e:
        raise FileWriteError(f"Error writing file {path}: {e.strerror or e}")
    return path


def write_csv(
    file_path: PathLike, rows: Iterable[Sequence[str]], encoding: str = "utf-8"
) -> Path:
    """Write rows with the csv module so embedded commas and quotes are escaped."""
    path = Path(file_path)
    try:
        with open(path, "w", encoding=encoding, newline="") as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerows(rows)
    except PermissionError:
        raise FileWriteError(f"Permission denied writing file: {path}")
    except OSError as e:
        raise FileWriteError(f"Error writing file {path}: {e.strerror or e}")
    return path


def ensure_directory(dir_path: PathLike) -> Path:
    """Create a directory (and parents) unless it already exists."""
    path = Path(dir_path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileWriteError(f"Cannot create directory {path}: {e.strerror or e}")
    return path
