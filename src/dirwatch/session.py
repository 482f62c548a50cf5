"""Watch session: one OS-level watch feeding the scan pipeline."""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .config import TrackerConfig
from .debouncer import ScanDebouncer
from .differ import diff_entries
from .exceptions import SessionClosedError, WatchRegistrationError
from .fs_watcher import DirectoryWatch
from .loader import load_entries
from .models import Delta, DirEntry
from .snapshot import SnapshotStore

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """States of a watch session."""
    STARTING = "starting"
    WATCHING = "watching"
    CLOSED = "closed"


class WatchSession:
    """
    Tracks one directory until closed.
    
    Owns the watch handle, the snapshot store and the scan debouncer.
    Every notification from the watch requests a scan; every applied scan
    produces a delta passed to ``emit``. Any scan or watch failure closes
    the session. A closed session never reopens.
    """

    def __init__(
        self,
        path: Path,
        config: Optional[TrackerConfig] = None,
        emit: Optional[Callable[[Delta], None]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize the session.
        
        Args:
            path: Directory to track
            config: Tracker configuration
            emit: Callback receiving each delta
            loop: Event loop to run on (the running loop by default)
        """
        self.path = Path(path).resolve()
        self.config = config or TrackerConfig()
        self.emit = emit
        self.store = SnapshotStore(self.path)
        self.state = SessionState.STARTING
        self.closed_reason: Optional[Exception] = None

        self._loop = loop
        self._watch: Optional[DirectoryWatch] = None
        self._debouncer: Optional[ScanDebouncer] = None
        self._started = False
        self._closed_event = asyncio.Event()
        self._close_callbacks: List[Callable[[Optional[Exception]], None]] = []

    @property
    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    @property
    def has_snapshot(self) -> bool:
        """Check if at least one scan has been applied."""
        return self.store.has_snapshot

    @property
    def debouncer(self) -> Optional[ScanDebouncer]:
        return self._debouncer

    def entries(self) -> List[DirEntry]:
        """Copy of the current snapshot entries."""
        return self.store.entries()

    def start(self) -> None:
        """
        Register the watch and request the initial scan.
        
        Raises:
            WatchRegistrationError: If the directory cannot be watched
            SessionClosedError: If the session is already closed
        """
        if self.is_closed:
            raise SessionClosedError(f"Session already closed: {self.path}")
        if self._started:
            return
        self._started = True

        self._loop = self._loop or asyncio.get_running_loop()
        self._debouncer = ScanDebouncer(self._scan, self._apply, self._fail, loop=self._loop)
        self._watch = DirectoryWatch(
            self.path,
            on_change=self._on_change,
            on_error=self._fail,
            config=self.config,
            loop=self._loop,
        )

        try:
            self._watch.start()
        except WatchRegistrationError as e:
            logger.error(f"Failed to watch {self.path}: {e}")
            self.close(e)
            raise

        logger.info(f"Tracking directory: {self.path}")
        self._debouncer.request()

    def when_closed(self, callback: Callable[[Optional[Exception]], None]) -> None:
        """
        Register a callback to run when the session closes.
        
        The callback receives the error that closed the session, if any.
        Runs immediately if the session is already closed.
        """
        if self.is_closed:
            callback(self.closed_reason)
        else:
            self._close_callbacks.append(callback)

    def close(self, reason: Optional[Exception] = None) -> None:
        """
        Close the session.
        
        Releases the watch, stops scheduling scans and clears the snapshot.
        Idempotent.
        
        Args:
            reason: Error that caused the closure, if any
        """
        if self.is_closed:
            return

        self.state = SessionState.CLOSED
        self.closed_reason = reason

        if self._debouncer is not None:
            self._debouncer.close()
        if self._watch is not None:
            self._watch.close()
        self.store.clear()

        if reason is None:
            logger.info(f"Stopped tracking directory: {self.path}")
        else:
            logger.info(f"Stopped tracking directory {self.path}: {reason}")

        self._closed_event.set()
        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            callback(reason)

    async def wait_closed(self) -> Optional[Exception]:
        """
        Wait for the session to close.
        
        Returns:
            The error that closed the session, if any
        """
        await self._closed_event.wait()
        if self._watch is not None:
            await self._watch.wait_stopped()
        return self.closed_reason

    async def wait_idle(self) -> None:
        """Wait until no scan is running or scheduled."""
        if self._debouncer is not None:
            await self._debouncer.wait_idle()

    def rescan(self) -> None:
        """Request a scan as if a change was reported."""
        if self.is_closed:
            raise SessionClosedError(f"Session already closed: {self.path}")
        self._on_change()

    def _on_change(self) -> None:
        if self.is_closed or self._debouncer is None:
            return
        self._debouncer.request()

    async def _scan(self) -> List[DirEntry]:
        return await load_entries(
            self.path,
            self.config.should_track,
            follow_symlinks=self.config.follow_symlinks,
            loop=self._loop,
        )

    def _apply(self, entries: List[DirEntry]) -> None:
        if self.is_closed:
            return

        first = not self.store.has_snapshot
        delta = diff_entries(self.store, entries, self.config.is_modified)

        if self.state is SessionState.STARTING:
            self.state = SessionState.WATCHING

        if not delta and not first:
            logger.debug(f"No changes in {self.path}")
            return

        logger.debug(
            f"Changes in {self.path}: {len(delta.added)} added, {len(delta.removed)} removed"
        )
        if self.emit is not None:
            self.emit(delta)

    def _fail(self, error: Exception) -> None:
        if self.is_closed:
            return
        logger.error(f"Tracking failed for {self.path}: {error}")
        self.close(error)
