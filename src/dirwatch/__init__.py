"""
Directory Change Tracker

Watches a single directory and reports what changed in it as deltas of
added and removed entries.

Features:
- One directory scan per burst of change notifications
- Stale scans discarded in favor of newer ones
- Modified files reported as removed + added, with a pluggable check
- Any number of subscribers sharing one watch, each brought up to date
  with a catch-up delta when joining late
"""

from .models import (
    EntryStats,
    DirEntry,
    Delta,
)

from .config import TrackerConfig

from .exceptions import (
    DirWatchError,
    ScanError,
    ListingError,
    StatError,
    WatchError,
    WatchRegistrationError,
    WatchRuntimeError,
    SessionClosedError,
)

from .snapshot import SnapshotStore
from .loader import load_entries
from .differ import diff_entries, mtime_changed
from .debouncer import ScanDebouncer
from .fs_watcher import DirectoryWatch, DirectoryEventHandler
from .session import WatchSession, SessionState
from .subscription import Subscription, DeltaReceiver
from .tracker import DirectoryTracker, track_directory


__all__ = [
    # Models
    "EntryStats",
    "DirEntry",
    "Delta",
    # Config
    "TrackerConfig",
    # Exceptions
    "DirWatchError",
    "ScanError",
    "ListingError",
    "StatError",
    "WatchError",
    "WatchRegistrationError",
    "WatchRuntimeError",
    "SessionClosedError",
    # Components
    "SnapshotStore",
    "load_entries",
    "diff_entries",
    "mtime_changed",
    "ScanDebouncer",
    "DirectoryWatch",
    "DirectoryEventHandler",
    "WatchSession",
    "SessionState",
    "Subscription",
    "DeltaReceiver",
    # Tracker
    "DirectoryTracker",
    "track_directory",
]

__version__ = "0.1.0"
