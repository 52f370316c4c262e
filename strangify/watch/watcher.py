# strangify/watch/watcher.py

"""Filesystem observer feeding change notifications to the watch loop."""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from strangify.adapters.sources import FileSystemSource
from strangify.core.exceptions import WatchDegraded

logger = logging.getLogger(__name__)

_CONTENT_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_CLOSED}
)

# notify(kind, path) with kind in {"changed", "deleted", "lost"}
Notify = Callable[[str, Path], None]


class ChangeHandler(FileSystemEventHandler):
    """Translates watchdog events into loop notifications.

    Runs on the observer thread, so it only filters and forwards; the loop
    thread does the reading and bookkeeping.
    """

    def __init__(self, source: FileSystemSource, notify: Notify) -> None:
        super().__init__()
        self.source = source
        self.notify = notify

    def on_any_event(self, event: FileSystemEvent) -> None:
        src = Path(os.fsdecode(event.src_path)).absolute()

        if event.event_type in (EVENT_TYPE_DELETED, EVENT_TYPE_MOVED):
            if src == self.source.target:
                self.notify("lost", src)
                return
            if not event.is_directory and self.source.accepts(src):
                self.notify("deleted", src)

        if event.is_directory:
            return

        if event.event_type == EVENT_TYPE_MOVED:
            dest_path = getattr(event, "dest_path", "")
            if dest_path:
                dest = Path(os.fsdecode(dest_path)).absolute()
                if self.source.accepts(dest):
                    self.notify("changed", dest)
        elif event.event_type in _CONTENT_EVENTS and self.source.accepts(src):
            self.notify("changed", src)


class FileWatcher:
    """Owns one watchdog observer for a filesystem source."""

    def __init__(
        self,
        source: FileSystemSource,
        notify: Notify,
        use_polling: bool = False,
        poll_interval: float = 0.5,
    ) -> None:
        self.source = source
        self.notify = notify
        self.use_polling = use_polling
        self.poll_interval = poll_interval
        self._observer: Optional[BaseObserver] = None

    def start(self) -> None:
        """Schedules the handler and starts the observer thread.

        Raises:
            WatchDegraded: If the watch cannot be established
        """
        if self._observer is not None:
            raise RuntimeError("FileWatcher already started")

        if self.use_polling:
            observer: BaseObserver = PollingObserver(timeout=self.poll_interval)
        else:
            observer = Observer()

        recursive = self.source.is_directory and self.source.recursive
        try:
            observer.schedule(
                ChangeHandler(self.source, self.notify),
                str(self.source.watch_root),
                recursive=recursive,
            )
            observer.start()
        except OSError as e:
            raise WatchDegraded(self.source.name, f"cannot start observer: {e}") from e

        self._observer = observer
        logger.info(
            "Watching for changes",
            extra={
                "target": self.source.name,
                "watch_root": str(self.source.watch_root),
                "recursive": recursive,
                "observer": type(observer).__name__,
            },
        )

    def healthy(self) -> bool:
        """True while the observer thread runs and the target still exists."""
        return (
            self._observer is not None
            and self._observer.is_alive()
            and self.source.exists()
        )

    def stop(self) -> None:
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.stop()
        if observer.is_alive():
            observer.join(timeout=5.0)
