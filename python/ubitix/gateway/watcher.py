import asyncio
import concurrent.futures
import threading
from abc import ABC, abstractmethod
from enum import Enum, auto
from pathlib import Path
from typing import BinaryIO, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ubitix.constants import WATCH_QUEUE_SIZE
from ubitix.errors import WatcherError
from ubitix.logging import get_logger
from ubitix.utils.compat.asyncio import to_thread

logger = get_logger(__name__)

# how often a producer blocked on a full queue checks whether the watcher is stopping
_PRODUCER_POLL_SEC = 0.5


class LineHandler(ABC):
    """
    Receives the lines appended to the watched file, one at a time, in file order.
    """

    @abstractmethod
    async def handle(self, line: str) -> None:
        raise NotImplementedError()


class _Change(Enum):
    MODIFIED = auto()
    REPLACED = auto()


class _LogFileEventHandler(FileSystemEventHandler):
    """
    Runs in the observer thread and hands changes of one file over to the event loop.

    A full queue blocks the observer thread until the consumer catches up.
    """

    def __init__(
        self,
        path: Path,
        queue: "asyncio.Queue[_Change]",
        loop: asyncio.AbstractEventLoop,
        stopping: threading.Event,
    ) -> None:
        self._path = path
        self._queue = queue
        self._loop = loop
        self._stopping = stopping

    def _put(self, change: _Change) -> None:
        try:
            future = asyncio.run_coroutine_threadsafe(self._queue.put(change), self._loop)
        except RuntimeError:
            # event loop is already closed
            return
        while True:
            try:
                future.result(timeout=_PRODUCER_POLL_SEC)
                return
            except concurrent.futures.TimeoutError:
                if self._stopping.is_set():
                    future.cancel()
                    return
            except concurrent.futures.CancelledError:
                return

    def on_modified(self, event: FileSystemEvent) -> None:
        if Path(str(event.src_path)) == self._path:
            self._put(_Change.MODIFIED)

    def on_closed(self, event: FileSystemEvent) -> None:
        if Path(str(event.src_path)) == self._path:
            self._put(_Change.MODIFIED)

    def on_created(self, event: FileSystemEvent) -> None:
        if Path(str(event.src_path)) == self._path:
            logger.info(f"Watched file '{self._path}' has been created")
            self._put(_Change.REPLACED)

    def on_moved(self, event: FileSystemEvent) -> None:
        if Path(str(event.dest_path)) == self._path:
            logger.info(f"Watched file '{self._path}' has been replaced")
            self._put(_Change.REPLACED)
        elif Path(str(event.src_path)) == self._path:
            logger.warning(f"Watched file '{self._path}' has been moved away, waiting for a new one")

    def on_deleted(self, event: FileSystemEvent) -> None:
        if Path(str(event.src_path)) == self._path:
            logger.warning(f"Watched file '{self._path}' has been deleted, waiting for a new one")


class LogWatcher:
    """
    Follows an append-only log file and delivers every newly written line to a handler.

    Content present in the file before the watch starts is never delivered. Only complete
    lines are delivered, a trailing fragment waits for its newline. When the file shrinks
    (copy-truncate rotation) or is replaced by a new file (rename rotation), reading
    starts again from the beginning of the file.
    """

    def __init__(self, path: Path, queue_size: int = WATCH_QUEUE_SIZE) -> None:
        self._path = path.absolute()
        self._queue_size = queue_size
        self._file: Optional[BinaryIO] = None
        self._position = 0
        self._fragment = b""

    @property
    def path(self) -> Path:
        return self._path

    @property
    def position(self) -> int:
        return self._position

    def _open(self) -> None:
        self._close()
        self._file = self._path.open("rb")
        self._fragment = b""

    def _close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _size(self) -> int:
        assert self._file is not None
        return self._file.seek(0, 2)

    def _read_new(self) -> bytes:
        assert self._file is not None
        self._file.seek(self._position)
        data = self._file.read()
        self._position += len(data)
        return data

    def _split_lines(self, data: bytes) -> List[str]:
        chunks = (self._fragment + data).split(b"\n")
        self._fragment = chunks.pop()
        return [chunk.decode("utf8", errors="replace").rstrip("\r") for chunk in chunks]

    def _collect(self, change: _Change) -> List[str]:
        if change is _Change.REPLACED or self._file is None:
            try:
                self._open()
            except FileNotFoundError:
                # moved away again before we got to it, the next event will tell
                return []
            self._position = 0

        size = self._size()
        if size == self._position:
            return []
        if size < self._position:
            logger.warning(f"Watched file '{self._path}' has been truncated, reading it from the beginning")
            self._position = 0
            self._fragment = b""

        return self._split_lines(self._read_new())

    async def _deliver(self, lines: List[str], handler: LineHandler) -> None:
        for line in lines:
            try:
                await handler.handle(line)
            except Exception as e:
                logger.error(f"Failed to handle read line '{line}': {e}", exc_info=True)

    async def watch(self, handler: LineHandler, shutdown: asyncio.Event) -> None:
        """
        Watch the file until the shutdown event is set.

        Raises:
            WatcherError: The file cannot be opened or read, or the filesystem observer cannot be started.
        """

        try:
            await to_thread(self._open)
            self._position = await to_thread(self._size)
        except OSError as e:
            raise WatcherError(f"failed to open watched file '{self._path}': {e}") from e
        logger.info(f"Watching '{self._path}' from byte offset {self._position}")

        loop = asyncio.get_running_loop()
        queue: "asyncio.Queue[_Change]" = asyncio.Queue(maxsize=self._queue_size)
        stopping = threading.Event()

        observer = Observer()
        try:
            observer.schedule(
                _LogFileEventHandler(self._path, queue, loop, stopping),
                str(self._path.parent),
                recursive=False,
            )
            observer.start()
        except OSError as e:
            self._close()
            raise WatcherError(f"failed to watch directory '{self._path.parent}': {e}") from e
        logger.debug(f"Directory '{self._path.parent}' scheduled for watching")

        shutdown_task = asyncio.create_task(shutdown.wait())
        try:
            while not shutdown.is_set():
                get_task = asyncio.create_task(queue.get())
                done, _ = await asyncio.wait({get_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)
                if get_task not in done:
                    get_task.cancel()
                    break

                try:
                    lines = await to_thread(self._collect, get_task.result())
                except OSError as e:
                    raise WatcherError(f"failed to read watched file '{self._path}': {e}") from e
                await self._deliver(lines, handler)
        finally:
            shutdown_task.cancel()
            stopping.set()
            observer.stop()
            await to_thread(observer.join)
            self._close()
            logger.info(f"Stopped watching '{self._path}'")
