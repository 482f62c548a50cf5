"""Shared helpers for dirwatch tests."""

import asyncio
import os
import time
from pathlib import Path
from typing import Callable, List, Optional, Set

import pytest

from src.dirwatch.models import Delta, DirEntry, EntryStats

EVENT_TIMEOUT = 5.0


def make_entry(name: str, mtime_ns: int = 1, size: int = 0) -> DirEntry:
    return DirEntry(name=name, stats=EntryStats(mtime_ns=mtime_ns, size=size))


def make_file(directory: Path, name: str, content: str = "\n") -> Path:
    """
    Create a file in one step.
    
    The content is written next to the directory first and then renamed
    into it, so watchers see a complete file with its final mtime.
    """
    staging = directory.parent / f".staging-{directory.name}"
    staging.mkdir(exist_ok=True)
    tmp = staging / name
    tmp.write_text(content)
    target = directory / name
    os.replace(tmp, target)
    return target


def touch_later(path: Path, seconds: int = 10) -> None:
    """Move a file's mtime forward in a single attribute change."""
    st = path.stat()
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + seconds * 1_000_000_000))


async def wait_for(predicate: Callable[[], bool], timeout: float = EVENT_TIMEOUT) -> None:
    """Poll until ``predicate`` is true or fail after ``timeout`` seconds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.02)


class DeltaRecorder:
    """Receiver keeping every delta it got and the entries they add up to."""

    def __init__(self):
        self.deltas: List[Delta] = []
        self.entries: Set[DirEntry] = set()
        self._waiter: Optional[asyncio.Future] = None

    def receive(self, delta: Delta) -> None:
        self.deltas.append(delta)
        delta.apply_to(self.entries)
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(delta)

    def when_read(self) -> asyncio.Future:
        """Future resolved by the next delta received."""
        self._waiter = asyncio.get_running_loop().create_future()
        return self._waiter

    async def next(self, timeout: float = EVENT_TIMEOUT) -> Delta:
        return await asyncio.wait_for(self.when_read(), timeout)

    @property
    def last(self) -> Delta:
        return self.deltas[-1]

    @property
    def names(self) -> List[str]:
        return sorted(entry.name for entry in self.entries)

    @property
    def added(self) -> List[str]:
        return self.last.added_names

    @property
    def removed(self) -> List[str]:
        return self.last.removed_names


@pytest.fixture
def watched_dir(tmp_path):
    directory = tmp_path / "watched"
    directory.mkdir()
    return directory


@pytest.fixture
def recorder():
    return DeltaRecorder()
