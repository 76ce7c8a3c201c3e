# rerun - Go development rebuild/restart supervisor
# Copyright (C) 2026 rerun Authors
# SPDX-License-Identifier: Apache-2.0

"""Single-use filesystem watcher session.

A session watches every directory of one WatchSet (non-recursively) and
hands the first change to a source file to the rebuild loop.  The import
graph may change with any edit, so after one event the session is closed
and a new one is opened from a freshly resolved WatchSet.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from rerun.exceptions import WatcherError
from rerun.watch.resolver import WatchSet

logger = logging.getLogger(__name__)

_RELEVANT_TYPES = frozenset({
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
})

# Posted once the session is retired so a pending next_event() wakes up
_CLOSED = object()


# ── Event handler ───────────────────────────────────────────────────


class SourceChangeHandler(FileSystemEventHandler):
    """Forward source-file changes from the observer thread to the session."""

    def __init__(self, session: WatcherSession) -> None:
        super().__init__()
        self.session = session

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _RELEVANT_TYPES:
            return
        for raw in (event.src_path, getattr(event, "dest_path", "")):
            path = os.fsdecode(raw) if raw else ""
            if path and self.session.is_relevant(path):
                self.session.deliver(path)
                return


# ── WatcherSession ──────────────────────────────────────────────────


class WatcherSession:
    """Watch one WatchSet until the first relevant change."""

    def __init__(
        self,
        watch_set: WatchSet,
        extension: str = ".go",
        observer_factory: Callable[[], Observer] = Observer,
    ) -> None:
        self.watch_set = watch_set
        self.extension = extension
        self._observer_factory = observer_factory
        self._observer: Observer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._fired = False
        self._drain_task: asyncio.Task | None = None
        self.watched: list[Path] = []

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Open/Close ──────────────────────────────────────────────────

    def open(self) -> None:
        """Register every directory and start the observer.

        Must be called from within the running event loop.

        Raises:
            WatcherError: The observer could not be started.
        """
        if self._observer is not None or self._closed:
            raise WatcherError("watcher session can only be opened once")

        self._loop = asyncio.get_running_loop()
        observer = self._observer_factory()
        handler = SourceChangeHandler(self)

        for directory in sorted(self.watch_set.directories):
            if not directory.is_dir():
                logger.warning("Watch directory missing, skipping: %s", directory)
                continue
            try:
                observer.schedule(handler, str(directory), recursive=False)
            except OSError as e:
                logger.warning("Cannot watch %s: %s", directory, e)
                continue
            self.watched.append(directory)

        try:
            observer.start()
        except OSError as e:
            raise WatcherError(f"cannot start filesystem watcher: {e}") from e

        self._observer = observer
        logger.debug("Watching %d directories", len(self.watched))

    def close(self) -> asyncio.Task | None:
        """Stop the observer and retire the session.

        Returns the drain task which discards whatever the old observer
        still delivers; it finishes once the observer thread has exited.
        """
        if self._closed:
            return self._drain_task
        self._closed = True

        observer, self._observer = self._observer, None
        if observer is None:
            self._queue.put_nowait(_CLOSED)
            return None

        observer.stop()
        self._drain_task = asyncio.get_running_loop().create_task(
            self._drain(observer), name="rerun-watch-drain",
        )
        return self._drain_task

    async def _drain(self, observer: Observer) -> None:
        # Callbacks scheduled by the observer thread run before join() resolves,
        # so once it does the queue holds everything that will ever arrive.
        await asyncio.get_running_loop().run_in_executor(None, observer.join)
        discarded = 0
        while not self._queue.empty():
            if self._queue.get_nowait() is not _CLOSED:
                discarded += 1
        self._queue.put_nowait(_CLOSED)
        if discarded:
            logger.debug("Discarded %d events from retired watcher", discarded)

    # ── Events ──────────────────────────────────────────────────────

    def is_relevant(self, path: str) -> bool:
        """Only files with the source extension wake the rebuild loop."""
        return os.path.splitext(path)[1] == self.extension

    def deliver(self, path: str) -> None:
        """Queue a relevant change (called from the observer thread)."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._queue.put_nowait, path)
        except RuntimeError:
            # Loop shut down between the check and the call
            logger.debug("Dropped change for %s: event loop closed", path)

    async def next_event(self) -> Path:
        """Wait for the first relevant change and return its path.

        Raises:
            WatcherError: The session is closed or already delivered its event.
        """
        if self._closed:
            raise WatcherError("watcher session is closed")
        if self._fired:
            raise WatcherError("watcher session already delivered its event")

        item = await self._queue.get()
        if item is _CLOSED:
            raise WatcherError("watcher session was closed")
        self._fired = True
        return Path(item)
