"""Directory scanning: list, filter and stat tracked entries."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, List, Optional

from .exceptions import ListingError, StatError
from .models import DirEntry, EntryStats

logger = logging.getLogger(__name__)


def _list_dir(path: Path) -> List[os.DirEntry]:
    with os.scandir(path) as it:
        return list(it)


async def load_entries(
    path: Path,
    entry_filter: Optional[Callable[[os.DirEntry], bool]] = None,
    follow_symlinks: bool = True,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> List[DirEntry]:
    """
    Scan a directory once.
    
    Lists the directory, keeps the entries accepted by ``entry_filter`` and
    stats each of them. Blocking calls run in the loop's default executor.
    
    Args:
        path: Directory to scan
        entry_filter: Checks whether a listed entry should be tracked
        follow_symlinks: Whether to stat symlink targets
        loop: Event loop to run on (the running loop by default)
        
    Returns:
        Entries of the tracked files
        
    Raises:
        ListingError: If the directory cannot be listed
        StatError: If any accepted entry cannot be stat'ed
    """
    loop = loop or asyncio.get_running_loop()

    try:
        listed = await loop.run_in_executor(None, _list_dir, path)
    except OSError as e:
        raise ListingError(f"Cannot list directory {path}: {e}", path) from e

    total = len(listed)
    if entry_filter is not None:
        listed = [entry for entry in listed if entry_filter(entry)]

    async def stat_entry(name: str) -> DirEntry:
        try:
            result = await loop.run_in_executor(
                None,
                lambda: os.stat(os.path.join(path, name), follow_symlinks=follow_symlinks),
            )
        except OSError as e:
            raise StatError(f"Cannot stat {name} in {path}: {e}", path, name) from e
        return DirEntry(name=name, stats=EntryStats.from_stat(result))

    entries = await asyncio.gather(*(stat_entry(entry.name) for entry in listed))

    logger.debug(f"Loaded {len(entries)} of {total} listed entries from {path}")
    return list(entries)
