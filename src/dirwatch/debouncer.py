"""Coalescing of change notifications into directory scans."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class ScanDebouncer:
    """
    Debounces change notifications into scan runs.
    
    At most one scan runs at a time. Any number of requests arriving while
    a scan is running collapse into a single follow-up scan. Each run is
    stamped with the generation current at its start; its result is applied
    only if no newer request arrived while it was running, otherwise it is
    discarded and the follow-up takes over.
    """

    def __init__(
        self,
        load: Callable[[], Awaitable[Any]],
        apply: Callable[[Any], None],
        on_error: Callable[[Exception], None],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize the debouncer.
        
        Args:
            load: Coroutine function performing one scan
            apply: Callback receiving the result of a scan that is still current
            on_error: Callback receiving the error of a scan that is still current
            loop: Event loop to schedule scans on (the running loop by default)
        """
        self._load = load
        self._apply = apply
        self._on_error = on_error
        self._loop = loop
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._pending = False
        self._closed = False
        self._idle = asyncio.Event()
        self._idle.set()

        self.scans_started = 0
        self.scans_applied = 0
        self.scans_discarded = 0

    @property
    def generation(self) -> int:
        """The latest generation token."""
        return self._generation

    @property
    def is_running(self) -> bool:
        return self._task is not None

    @property
    def has_pending(self) -> bool:
        return self._pending

    @property
    def is_closed(self) -> bool:
        return self._closed

    def request(self) -> None:
        """
        Request a scan.
        
        Starts a scan right away when idle. Otherwise schedules a single
        follow-up scan to start once the running one settles.
        """
        if self._closed:
            return

        self._generation += 1

        if self._task is not None:
            self._pending = True
            return

        self._start()

    def close(self) -> None:
        """Stop scheduling scans. A running scan's result will be discarded."""
        self._closed = True
        self._pending = False
        self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until no scan is running or scheduled."""
        await self._idle.wait()

    def _start(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        token = self._generation
        self.scans_started += 1
        self._idle.clear()
        self._task = loop.create_task(self._run(token))

    def _is_current(self, token: int) -> bool:
        return not self._closed and token == self._generation

    async def _run(self, token: int) -> None:
        try:
            result = await self._load()
            if self._is_current(token):
                self._apply(result)
                self.scans_applied += 1
            else:
                self.scans_discarded += 1
                logger.debug(f"Discarded stale scan (generation {token}, latest {self._generation})")
        except Exception as e:
            if self._is_current(token):
                self._on_error(e)
            else:
                self.scans_discarded += 1
                logger.debug(f"Ignored error of stale scan (generation {token}): {e}")
        finally:
            self._settle()

    def _settle(self) -> None:
        self._task = None

        if self._pending and not self._closed:
            self._pending = False
            self._start()
        else:
            self._idle.set()
