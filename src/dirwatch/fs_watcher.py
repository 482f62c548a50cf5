"""OS-level directory watch using watchdog library."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileSystemEvent

from .config import TrackerConfig
from .exceptions import WatchRegistrationError, WatchRuntimeError

logger = logging.getLogger(__name__)


class DirectoryEventHandler(FileSystemEventHandler):
    """
    Handler that turns watchdog events into bare change signals.
    
    Runs on the observer thread. Losing the watched directory itself
    (deleted or moved away) is reported as a watch failure instead.
    """

    def __init__(
        self,
        root: Path,
        on_change: Callable[[], None],
        on_lost: Callable[[WatchRuntimeError], None],
    ):
        super().__init__()
        self.root = root
        self.on_change = on_change
        self.on_lost = on_lost

    def _is_root(self, path) -> bool:
        return Path(os.fsdecode(path)) == self.root

    def _emit(self, event: FileSystemEvent):
        logger.debug(f"{event.event_type}: {os.fsdecode(event.src_path)}")
        self.on_change()

    def on_created(self, event):
        self._emit(event)

    def on_deleted(self, event):
        if self._is_root(event.src_path):
            self.on_lost(WatchRuntimeError(f"Watched directory deleted: {self.root}"))
            return
        self._emit(event)

    def on_modified(self, event):
        self._emit(event)

    def on_moved(self, event):
        if self._is_root(event.src_path):
            self.on_lost(WatchRuntimeError(f"Watched directory moved: {self.root}"))
            return
        self._emit(event)

    def on_closed(self, event):
        # Written file closed: its final mtime is now visible
        self._emit(event)


class DirectoryWatch:
    """
    Watch handle for a single directory.
    
    Owns one watchdog observer. Signals from the observer thread are
    marshalled onto the event loop before ``on_change`` and ``on_error``
    are called.
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        config: Optional[TrackerConfig] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize the watch.
        
        Args:
            path: Directory to watch
            on_change: Called on the loop for every change notification
            on_error: Called on the loop when the watch fails
            config: Tracker configuration
            loop: Event loop to deliver signals on (the running loop by default)
        """
        self.path = Path(path).resolve()
        self.on_change = on_change
        self.on_error = on_error
        self.config = config or TrackerConfig()
        self._loop = loop
        self._observer: Optional[Observer] = None
        self._closed = False
        self._stopped: Optional[asyncio.Future] = None

    @property
    def is_active(self) -> bool:
        """Check if the watch is registered and not closed."""
        return self._observer is not None and not self._closed

    def start(self) -> None:
        """
        Register the watch.
        
        Raises:
            WatchRegistrationError: If the directory cannot be watched
        """
        if self._closed:
            raise WatchRegistrationError(f"Watch already closed: {self.path}")
        if self._observer is not None:
            return

        self._loop = self._loop or asyncio.get_running_loop()

        if not self.path.is_dir():
            raise WatchRegistrationError(f"Not a directory: {self.path}")

        observer = Observer(timeout=self.config.observer_timeout)
        handler = DirectoryEventHandler(self.path, self._signal, self._fail)

        try:
            observer.schedule(handler, str(self.path), recursive=False)
            observer.start()
        except OSError as e:
            raise WatchRegistrationError(f"Cannot watch {self.path}: {e}") from e

        self._observer = observer
        logger.debug(f"Started watching {self.path}")

    def close(self) -> None:
        """Stop the watch. The observer thread is joined in the background."""
        if self._closed:
            return
        self._closed = True

        observer = self._observer
        if observer is None:
            return

        observer.stop()
        self._stopped = self._loop.run_in_executor(
            None, observer.join, self.config.join_timeout
        )
        logger.debug(f"Stopped watching {self.path}")

    async def wait_stopped(self) -> None:
        """Wait for the observer thread to finish after close."""
        if self._stopped is not None:
            await self._stopped

    def _call_on_loop(self, callback, *args) -> None:
        if self._closed:
            return
        try:
            self._loop.call_soon_threadsafe(self._deliver, callback, *args)
        except RuntimeError:
            # Loop already closed
            logger.debug(f"Dropped signal for {self.path}: event loop closed")

    def _deliver(self, callback, *args) -> None:
        if not self._closed:
            callback(*args)

    def _signal(self) -> None:
        self._call_on_loop(self.on_change)

    def _fail(self, error: WatchRuntimeError) -> None:
        if self.on_error is not None:
            self._call_on_loop(self.on_error, error)
