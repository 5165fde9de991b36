"""Directory event subscription for MediaCat.

Uses the watchdog library to report entries created in, or moved into,
the watched folder.  Events are queued by the observer thread and handed
out one at a time by iterating a :class:`DirectoryEvents`, so the
consumer processes them sequentially in delivery order.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from watchdog.events import (
    DirCreatedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

CREATED = "created"
MOVED = "moved"


class WatchUnavailableError(RuntimeError):
    """Raised when change notifications cannot be set up on this host."""


@dataclass(frozen=True)
class DirectoryEvent:
    """One ``(kind, path)`` notification."""

    kind: str
    path: Path


class _QueueingHandler(FileSystemEventHandler):
    """Watchdog handler that forwards create and move-in events to a queue."""

    def __init__(self, events: queue.Queue):
        super().__init__()
        self._events = events

    def on_created(self, event: DirCreatedEvent | FileCreatedEvent) -> None:  # type: ignore[override]
        """Queue a new entry."""
        self._events.put(DirectoryEvent(CREATED, Path(os.fsdecode(event.src_path))))

    def on_moved(self, event: DirMovedEvent | FileMovedEvent) -> None:  # type: ignore[override]
        """Queue the destination of a rename or move."""
        self._events.put(DirectoryEvent(MOVED, Path(os.fsdecode(event.dest_path))))


class DirectoryEvents:
    """Cancellable stream of events for the direct children of a folder.

    Usage:
        with DirectoryEvents(folder) as events:
            for event in events:
                ...

    Call :meth:`stop` (from a signal handler or another thread) to end
    the iteration.
    """

    def __init__(self, folder: str | os.PathLike, poll_interval: float = 1.0):
        self.folder = Path(folder)
        self._poll_interval = poll_interval
        self._events: queue.Queue = queue.Queue()
        self._stop = threading.Event()
        self._observer: Any | None = None

    # ---- lifecycle ----

    def start(self) -> None:
        """Start the observer thread."""
        if not self.folder.is_dir():
            raise FileNotFoundError(f"Watch folder does not exist: {self.folder}")
        observer = Observer()
        try:
            observer.schedule(
                _QueueingHandler(self._events), str(self.folder), recursive=False
            )
            observer.start()
        except OSError as exc:
            raise WatchUnavailableError(
                f"Cannot watch {self.folder}: {exc}"
            ) from exc
        self._observer = observer
        self._stop.clear()
        logger.info("Watching '%s'", self.folder)

    def stop(self) -> None:
        """Signal the iterator to finish and release the observer."""
        self._stop.set()
        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
            logger.info("Watcher stopped.")

    def __enter__(self) -> "DirectoryEvents":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    # ---- iteration ----

    def __iter__(self) -> Iterator[DirectoryEvent]:
        while not self._stop.is_set():
            try:
                event = self._events.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            yield event


def _snapshot(path: Path) -> tuple[int, int]:
    """Return (entry count, total bytes) for *path* and everything below."""
    if not path.is_dir():
        return 1, path.stat().st_size
    count = size = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                size += os.stat(os.path.join(root, name)).st_size
            except OSError:
                continue
            count += 1
    return count, size


def wait_until_stable(
    path: Path,
    seconds: int,
    interval: float = 1.0,
    stop: threading.Event | None = None,
) -> bool:
    """Block until *path* has not changed for *seconds*.

    Returns False if the path vanished (or *stop* was set) meanwhile.
    """
    if seconds <= 0:
        return path.exists()
    stop = stop or threading.Event()
    try:
        last = _snapshot(path)
    except OSError:
        return False
    last_change = time.monotonic()
    while not stop.is_set():
        if time.monotonic() - last_change >= seconds:
            return True
        stop.wait(timeout=interval)
        try:
            current = _snapshot(path)
        except OSError:
            logger.debug("%s vanished while settling", path)
            return False
        if current != last:
            last = current
            last_change = time.monotonic()
    return False


def subscribe(folder: str | os.PathLike) -> DirectoryEvents:
    """Return a started :class:`DirectoryEvents` for *folder*."""
    events = DirectoryEvents(folder)
    events.start()
    return events
