"""Local filesystem access for backup output."""

import os
from pathlib import Path
from typing import Union

from grafana_backup.errors import SetupError, WriteError

DIR_MODE = 0o755

PathLike = Union[str, Path]


def ensure_directory(directory: PathLike) -> Path:
    """Verify a directory exists, creating it and any parents if missing.

    Raises SetupError if the path exists but is not a directory, or if it
    cannot be created.
    """
    path = Path(directory)
    if path.exists():
        if not path.is_dir():
            raise SetupError(str(path), message="path exists and is not a directory")
        return path

    try:
        os.makedirs(path, mode=DIR_MODE, exist_ok=True)
    except OSError as e:
        raise SetupError(str(path), cause=e) from e
    return path


def write_file(path: PathLike, data: bytes) -> None:
    """Write bytes to a file, replacing any earlier backup of it."""
    try:
        with open(path, 'wb') as f:
            f.write(data)
    except OSError as e:
        raise WriteError(str(path), cause=e) from e


class LocalFilesystem:
    """Filesystem used by the backup passes; swapped for fakes in tests."""

    def ensure_directory(self, directory: PathLike) -> Path:
        return ensure_directory(directory)

    def write_file(self, path: PathLike, data: bytes) -> None:
        write_file(path, data)
