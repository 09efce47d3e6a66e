"""Utility helpers for resolving where local post storage lives.

The local store keeps a single JSON file inside a data directory (by default
``~/.blog_engine``).  The directory is created on first use.  Unlike scratch
space, post storage must persist, so an unwritable directory is an error
rather than a reason to fall back to a temporary location.
"""
from __future__ import annotations

import errno
from pathlib import Path

__all__ = ["DEFAULT_DATA_DIR", "resolve_store_file"]

DEFAULT_DATA_DIR = Path("~/.blog_engine")


def resolve_store_file(data_dir: str | Path | None, filename: str) -> Path:
    """Resolve the storage file path and make sure its directory exists.

    Parameters
    ----------
    data_dir
        Directory holding the storage file.  ``~`` is expanded.  ``None``
        means :data:`DEFAULT_DATA_DIR`.
    filename
        Bare file name inside *data_dir*; path separators are rejected.

    Returns
    -------
    Absolute :class:`pathlib.Path` of the storage file (which may not exist yet).
    """
    if not filename or Path(filename).name != filename:
        raise ValueError(f"Invalid storage file name: {filename!r}")

    dir_path = Path(data_dir if data_dir is not None else DEFAULT_DATA_DIR).expanduser().resolve()

    try:
        dir_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:  # permission denied, read-only FS, …
        if exc.errno in (errno.EACCES, errno.EROFS):
            raise PermissionError(f"Post storage directory is not writable: {dir_path}") from exc
        raise

    return dir_path / filename
