"""Small file system helpers for inspecting the running system."""

from __future__ import annotations

import os
import stat
from collections.abc import Iterator


def _read_error(path: str, exc: OSError) -> OSError:
    return OSError(f"Error reading directory. Could not read path {path}. Error: {exc}")


def _descend(directory: str) -> Iterator[str]:
    try:
        with os.scandir(directory) as entries_iter:
            entries = sorted(entries_iter, key=lambda entry: entry.name)
    except OSError as exc:
        raise _read_error(directory, exc) from exc
    for entry in entries:
        yield entry.path
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            is_dir = False
        if is_dir:
            yield from _descend(entry.path)


def _walk(root: str, recurse: bool) -> Iterator[str]:
    try:
        is_dir = stat.S_ISDIR(os.stat(root).st_mode)
    except OSError as exc:
        raise _read_error(root, exc) from exc
    yield root
    if recurse and is_dir:
        yield from _descend(root)


def show_dir(directory: str | os.PathLike[str], recurse: bool = False) -> None:
    """Print ``directory`` and, when ``recurse`` is set, every path beneath it.

    Raises OSError naming the path that could not be read.
    """
    for path in _walk(os.fspath(directory), recurse):
        print(path)