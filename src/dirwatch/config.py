"""Configuration for the dirwatch package."""

import fnmatch
import os
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .differ import mtime_changed
from .models import DirEntry


EntryFilter = Callable[[os.DirEntry], bool]
ModifiedCheck = Callable[[DirEntry, DirEntry], bool]


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TrackerConfig:
    """
    Configuration options for a directory tracker.
    
    Attributes:
        entry_filter: Checks whether a listed entry should be tracked.
            All entries are tracked when not set.
        is_modified: Checks whether a new entry differs from the already
            reported one with the same name. Compares modification times
            by default.
        ignore_patterns: Glob patterns matched against entry names to skip
        include_hidden: Whether to track names starting with a dot
        follow_symlinks: Whether to stat symlink targets instead of links
        observer_timeout: Seconds between watchdog observer polls
        join_timeout: Seconds to wait for the observer thread on close
    """
    entry_filter: Optional[EntryFilter] = None
    is_modified: ModifiedCheck = mtime_changed
    ignore_patterns: List[str] = field(default_factory=list)
    include_hidden: bool = True
    follow_symlinks: bool = True
    observer_timeout: float = 1.0
    join_timeout: float = 5.0

    def should_ignore(self, name: str) -> bool:
        """
        Check if an entry name should be ignored based on ignore patterns.
        
        Args:
            name: Entry name to check
            
        Returns:
            True if the name should be ignored
        """
        if not self.include_hidden and name.startswith("."):
            return True

        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(name, pattern):
                return True

        return False

    def should_track(self, entry: os.DirEntry) -> bool:
        """
        Check if a listed directory entry should be tracked.
        
        Args:
            entry: Entry returned by ``os.scandir``
            
        Returns:
            True if the entry passes both the ignore patterns and the filter
        """
        if self.should_ignore(entry.name):
            return False
        if self.entry_filter is None:
            return True
        return bool(self.entry_filter(entry))

    @classmethod
    def from_env(cls, **overrides) -> "TrackerConfig":
        """
        Create a config from ``DIRWATCH_*`` environment variables.
        
        Recognized variables:
            DIRWATCH_IGNORE: Comma-separated ignore patterns
            DIRWATCH_INCLUDE_HIDDEN: Track dot files (default true)
            DIRWATCH_FOLLOW_SYMLINKS: Stat symlink targets (default true)
        
        Keyword arguments override values read from the environment.
        """
        ignore = os.environ.get("DIRWATCH_IGNORE", "")
        values = {
            "ignore_patterns": [p.strip() for p in ignore.split(",") if p.strip()],
            "include_hidden": _env_flag("DIRWATCH_INCLUDE_HIDDEN", True),
            "follow_symlinks": _env_flag("DIRWATCH_FOLLOW_SYMLINKS", True),
        }
        values.update(overrides)
        return cls(**values)
