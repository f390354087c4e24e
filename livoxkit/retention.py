"""Size limits for the lidar log store and the background job that enforces them."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from os import PathLike
from typing import Optional, Union

from livoxkit.files import collect_file_names, dir_total_size, make_directory, unhide_files

log = logging.getLogger(__name__)

StrPath = Union[str, "PathLike[str]"]

MIB = 1024 * 1024
MAX_EXCEPTION_LOG_CACHE_MB = 200
EXCEPTION_LOG_CACHE_RATIO = 1
REALTIME_LOG_CACHE_RATIO = 3
MAX_CACHE_SIZE_MB = 1_000_000_000
DEFAULT_INTERVAL = 600.0

REALTIME_LOG_DIR = "type_0"
EXCEPTION_LOG_DIR = "type_1"


@dataclass(frozen=True)
class CacheLimits:
    """Byte budgets for real-time and exception logs."""

    realtime_bytes: int = 150 * MIB
    exception_bytes: int = 50 * MIB


def compute_cache_limits(cache_size_mb: int) -> Optional[CacheLimits]:
    """Split a total cache size in MB between the two kinds of log.

    Returns None when the size disables logging (zero, or above 1000 TB).
    Exception logs never get more than 200 MB.
    """
    if cache_size_mb <= 0 or cache_size_mb > MAX_CACHE_SIZE_MB:
        return None
    total_ratio = EXCEPTION_LOG_CACHE_RATIO + REALTIME_LOG_CACHE_RATIO
    threshold = MAX_EXCEPTION_LOG_CACHE_MB * total_ratio // EXCEPTION_LOG_CACHE_RATIO
    if cache_size_mb > threshold:
        return CacheLimits(
            realtime_bytes=(cache_size_mb - MAX_EXCEPTION_LOG_CACHE_MB) * MIB,
            exception_bytes=MAX_EXCEPTION_LOG_CACHE_MB * MIB,
        )
    return CacheLimits(
        realtime_bytes=(cache_size_mb * REALTIME_LOG_CACHE_RATIO // total_ratio) * MIB,
        exception_bytes=(cache_size_mb * EXCEPTION_LOG_CACHE_RATIO // total_ratio) * MIB,
    )


def _join(root: str, name: str) -> str:
    return f"{root}{'' if root.endswith('/') else '/'}{name}"


def prepare_log_root(path: StrPath) -> str:
    """Create ``<path>/lidar_log/`` if needed and reveal files left hidden.

    Returns the log root directory. Raises OSError when it cannot be created.
    """
    base = os.fspath(path)
    root = _join(base, "lidar_log/")
    if not os.path.exists(root):
        try:
            make_directory(root)
        except OSError:
            log.error("cannot create dir %s", root)
            raise
    try:
        unhide_files(base)
    except (OSError, ValueError) as exc:
        log.error("changing hidden files to normal files failed: %s", exc)
    return root


def prune_directory(path: StrPath, max_size: int) -> list[str]:
    """Delete the oldest log files in a directory until it fits ``max_size`` bytes.

    Returns the names of the files removed, oldest first.
    """
    directory = os.fspath(path)
    if not os.path.exists(directory) or dir_total_size(directory) <= max_size:
        return []
    try:
        files = collect_file_names(directory)
    except OSError:
        log.error("cannot get file names in directory %s", directory)
        files = []
    removed: list[str] = []
    pending = iter(files)
    while dir_total_size(directory) > max_size:
        item = next(pending, None)
        if item is None:
            break
        name = item[1]
        try:
            os.remove(_join(directory, name))
        except OSError as exc:
            log.warning("cannot remove %s: %s", name, exc)
        else:
            removed.append(name)
    return removed


class RetentionWorker:
    """Background thread that keeps the log store within its limits.

    It prunes when triggered, and at the latest every ``interval`` seconds.
    """

    def __init__(
        self,
        log_root: StrPath,
        limits: CacheLimits,
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        self.log_root = os.fspath(log_root)
        self.limits = limits
        self.interval = interval
        self._cond = threading.Condition()
        self._triggered = False
        self._running = False
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "RetentionWorker":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _prune_all(self) -> None:
        prune_directory(_join(self.log_root, REALTIME_LOG_DIR), self.limits.realtime_bytes)
        prune_directory(_join(self.log_root, EXCEPTION_LOG_DIR), self.limits.exception_bytes)

    def _run(self) -> None:
        while True:
            with self._cond:
                if not self._running:
                    break
                self._cond.wait_for(lambda: self._triggered, timeout=self.interval)
            self._prune_all()
            with self._cond:
                self._triggered = False

    def start(self) -> None:
        """Start the background thread."""
        with self._cond:
            if self._thread is not None:
                return
            self._running = True
            self._triggered = False
            self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def trigger(self) -> None:
        """Ask the thread to prune now."""
        with self._cond:
            self._triggered = True
            self._cond.notify_all()

    def stop(self) -> None:
        """Stop the thread after a last pruning pass."""
        with self._cond:
            self._running = False
            self._triggered = True
            self._cond.notify_all()
            thread, self._thread = self._thread, None
        if thread is not None:
            thread.join()