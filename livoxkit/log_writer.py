"""Writing of log files pushed by a lidar, one file stream per log type."""

from __future__ import annotations

import logging
import os
import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from os import PathLike
from typing import BinaryIO, Callable, Optional, Union

from livoxkit.files import make_directory, unhide_file

log = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
WRITE_INTERVAL = 0.1


class Flag(IntEnum):
    """What a pushed log chunk asks the writer to do."""

    CREATE_FILE = 1
    TRANSFER_DATA = 2
    END_FILE = 3


@dataclass
class LogChunk:
    """One piece of a log file pushed by the lidar."""

    log_type: int
    flag: Flag
    file_index: int = 0
    trans_index: int = 0
    data: bytes = b""


@dataclass
class _CurrentFile:
    flag: int = 0
    file_index: int = 0
    trans_index: int = 0
    handle: Optional[BinaryIO] = None
    file_name: str = ""


def format_timestamp(when: Optional[datetime] = None) -> str:
    """Format a time (local now by default) the way log file names start."""
    if when is None:
        when = datetime.now()
    return when.strftime(TIMESTAMP_FORMAT)


class LogFileWriter:
    """Queues log chunks and writes them into hidden files under a root.

    Files are created as ``type_<n>/.<time>_<serial>_<n>_<index>.dat`` and
    become visible when they are finished.
    """

    def __init__(
        self,
        log_root: Union[str, "PathLike[str]"],
        serial_num: str,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.log_root = os.fspath(log_root)
        self.serial_num = serial_num
        self._clock = clock
        self._branch_paths: dict[int, str] = {}
        self._current: defaultdict[int, _CurrentFile] = defaultdict(_CurrentFile)
        self._queue: list[LogChunk] = []
        self._queue_lock = threading.Lock()
        self._work_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "LogFileWriter":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def store(self, chunk: LogChunk) -> None:
        """Queue a chunk for the next flush."""
        log.info("transfer data length: %d", len(chunk.data))
        with self._queue_lock:
            self._queue.append(chunk)

    def _branch_path(self, log_type: int) -> str:
        separator = "" if self.log_root.endswith("/") else "/"
        return f"{self.log_root}{separator}type_{log_type}"

    def create_file(self, chunk: LogChunk) -> None:
        """Begin a new hidden file for the chunk's log type, closing any open one."""
        stamp = format_timestamp(self._clock())
        log_type = chunk.log_type
        branch = self._branch_path(log_type)
        self._branch_paths[log_type] = branch
        if not os.path.isdir(branch):
            try:
                make_directory(branch)
            except OSError:
                log.error("cannot create dir %s", branch)
                return

        current = self._current[log_type]
        if current.handle is not None:
            if current.trans_index + 1 != chunk.trans_index:
                log.warning(
                    "the end command of log file %d has been lost", current.file_index
                )
            current.handle.close()
            current.handle = None
            unhide_file(branch, current.file_name)

        file_name = (
            f".{stamp}_{self.serial_num}_{log_type}_{chunk.file_index}.dat"
        )
        file_path = f"{branch}/{file_name}"
        log.info("file path: %s", file_path)
        try:
            current.handle = open(file_path, "ab")
        except OSError as exc:
            log.error("cannot open %s: %s", file_path, exc)
            current.handle = None
        if current.handle is not None:
            current.handle.write(chunk.data)
            current.handle.flush()
        current.flag = int(chunk.flag)
        current.file_index = chunk.file_index
        current.trans_index = chunk.trans_index
        current.file_name = file_name
        log.info("create file index: %d", chunk.file_index)

    def write_file(self, chunk: LogChunk) -> None:
        """Append a chunk to the open file of its log type."""
        current = self._current[chunk.log_type]
        if current.file_index != chunk.file_index:
            log.warning(
                "log type %d: file index error, last %d, current %d",
                chunk.log_type,
                current.file_index,
                chunk.file_index,
            )
            return
        if current.trans_index + 1 != chunk.trans_index and chunk.trans_index != 1:
            log.warning(
                "log type %d: trans index error, last %d, current %d",
                chunk.log_type,
                current.trans_index,
                chunk.trans_index,
            )
        if current.handle is not None:
            current.handle.write(chunk.data)
            current.handle.flush()
        else:
            log.error(
                "the lidar did not send the file start command; trans_index %d",
                chunk.trans_index,
            )
        current.flag = int(chunk.flag)
        current.trans_index = chunk.trans_index

    def stop_file(self, chunk: LogChunk) -> None:
        """Close the open file of the chunk's log type and make it visible."""
        log_type = chunk.log_type
        current = self._current[log_type]
        if (
            current.flag == Flag.END_FILE
            and current.trans_index + 1 != chunk.trans_index
        ):
            log.error(
                "multiple end commands with discontinuous trans_index from the lidar"
            )
        if current.handle is not None:
            current.handle.close()
            current.handle = None
            unhide_file(self._branch_paths[log_type], current.file_name)
        current.flag = int(chunk.flag)
        current.trans_index = chunk.trans_index

    def flush(self) -> None:
        """Process every queued chunk in order."""
        with self._queue_lock:
            pending, self._queue = self._queue, []
        with self._work_lock:
            for chunk in pending:
                current = self._current[chunk.log_type]
                if (
                    chunk.trans_index < current.trans_index
                    and chunk.flag != Flag.CREATE_FILE
                ):
                    continue
                if chunk.flag == Flag.CREATE_FILE:
                    self.create_file(chunk)
                elif chunk.flag == Flag.END_FILE:
                    self.stop_file(chunk)
                elif chunk.flag == Flag.TRANSFER_DATA:
                    self.write_file(chunk)

    def _run(self) -> None:
        while not self._stop.is_set():
            self.flush()
            self._stop.wait(WRITE_INTERVAL)

    def start(self) -> None:
        """Start a background thread that flushes the queue periodically."""
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def close(self) -> None:
        """Stop the background thread and close every open file."""
        if self._thread is not None:
            self._stop.set()
            self._thread.join()
            self._thread = None
        with self._work_lock:
            for current in self._current.values():
                if current.handle is not None:
                    current.handle.close()
                    current.handle = None