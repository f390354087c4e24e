"""Directory helpers for the on-disk lidar log store."""

from __future__ import annotations

import logging
import os
from os import PathLike
from typing import Union

log = logging.getLogger(__name__)

StrPath = Union[str, "PathLike[str]"]

# Log file names start with a "%Y-%m-%d_%H-%M-%S" timestamp of this length.
TIMESTAMP_LENGTH = 19


def dir_total_size(path: StrPath) -> int:
    """Total size in bytes of a file, or of every file below a directory.

    Paths that cannot be examined count as zero.
    """
    try:
        info = os.stat(path)
    except OSError:
        log.error("cannot stat %s", path)
        return 0
    import stat as _stat

    if _stat.S_ISREG(info.st_mode):
        return info.st_size
    if not _stat.S_ISDIR(info.st_mode):
        log.warning("unknown directory type: %s", path)
        return 0
    try:
        names = os.listdir(path)
    except OSError:
        log.error("cannot open directory %s", path)
        return 0
    return sum(dir_total_size(os.path.join(path, name)) for name in names)


def _gather_names(path: StrPath, found: list[tuple[str, str]]) -> None:
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.is_symlink():
                continue
            if entry.is_file(follow_symlinks=False):
                if not entry.name.startswith("."):
                    found.append((entry.name[:TIMESTAMP_LENGTH], entry.name))
            elif entry.is_dir(follow_symlinks=False):
                try:
                    _gather_names(entry.path, found)
                except OSError:
                    log.error("cannot open directory %s", entry.path)


def collect_file_names(path: StrPath) -> list[tuple[str, str]]:
    """List visible regular files below a directory, oldest timestamp first.

    Each item is (timestamp prefix, file name). Items with the same prefix
    keep the order in which they were found.
    """
    found: list[tuple[str, str]] = []
    _gather_names(path, found)
    found.sort(key=lambda item: item[0])
    return found


def unhide_file(directory: StrPath, name: str) -> bool:
    """Rename ``.name`` in a directory to ``name``, replacing any existing file.

    Returns True when the file was renamed.
    """
    if not name or not name.startswith("."):
        return False
    source = os.path.join(directory, name)
    if not os.path.exists(source):
        log.warning("the file to be renamed: %s does not exist", name)
        return False
    target = os.path.join(directory, name[1:])
    if os.path.exists(target):
        try:
            os.remove(target)
        except OSError as exc:
            log.warning("failed to remove existing file %s: %s", name[1:], exc)
    try:
        os.rename(source, target)
    except OSError as exc:
        log.warning("rename of hidden file %s failed: %s", name, exc)
        return False
    return True


def unhide_files(path: StrPath) -> list[str]:
    """Make every hidden regular file below a directory visible.

    Returns the paths of the files after renaming.
    """
    if not os.fspath(path):
        raise ValueError("directory path is empty")
    renamed: list[str] = []
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.is_symlink():
                continue
            if entry.is_file(follow_symlinks=False):
                if entry.name.startswith(".") and unhide_file(path, entry.name):
                    renamed.append(os.path.join(path, entry.name[1:]))
            elif entry.is_dir(follow_symlinks=False):
                try:
                    renamed.extend(unhide_files(entry.path))
                except OSError:
                    log.error("cannot open directory %s", entry.path)
    return renamed


def delete_hidden_files(path: StrPath) -> list[str]:
    """Remove every hidden regular file below a directory.

    Returns the paths of the removed files.
    """
    removed: list[str] = []
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.is_symlink():
                continue
            if entry.is_file(follow_symlinks=False):
                if entry.name.startswith("."):
                    try:
                        os.remove(entry.path)
                    except OSError as exc:
                        log.warning("cannot remove %s: %s", entry.path, exc)
                    else:
                        removed.append(entry.path)
            elif entry.is_dir(follow_symlinks=False):
                try:
                    removed.extend(delete_hidden_files(entry.path))
                except OSError:
                    log.error("cannot open directory %s", entry.path)
    return removed


def make_directory(path: StrPath) -> bool:
    """Create one directory with permissive mode.

    Returns True when it was created, False when it already existed; other
    failures raise OSError.
    """
    try:
        os.mkdir(path, 0o777)
    except FileExistsError:
        return False
    return True