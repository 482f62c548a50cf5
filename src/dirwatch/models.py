"""Data models for the dirwatch package."""

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, List, MutableSet


@dataclass(frozen=True)
class EntryStats:
    """
    Metadata captured for a tracked file.
    
    Attributes:
        mtime_ns: Modification time in nanoseconds
        size: File size in bytes
        mode: File mode bits
        ino: Inode number (0 where the platform does not report one)
        ctime_ns: Metadata change time in nanoseconds
    """
    mtime_ns: int
    size: int = 0
    mode: int = 0
    ino: int = 0
    ctime_ns: int = 0

    @classmethod
    def from_stat(cls, result: os.stat_result) -> "EntryStats":
        """Create from an ``os.stat`` result."""
        return cls(
            mtime_ns=result.st_mtime_ns,
            size=result.st_size,
            mode=result.st_mode,
            ino=result.st_ino,
            ctime_ns=result.st_ctime_ns,
        )

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)

    @property
    def mtime(self) -> float:
        """Modification time in seconds."""
        return self.mtime_ns / 1_000_000_000


@dataclass(frozen=True, eq=False)
class DirEntry:
    """
    A file in the tracked directory.
    
    Entries compare by identity: every scan produces new entry objects, and
    an entry reported as added stays the same object until it is reported
    as removed.
    
    Attributes:
        name: File name relative to the tracked directory
        stats: File metadata at scan time
    """
    name: str
    stats: EntryStats

    def __post_init__(self):
        if not self.name or os.sep in self.name or (os.altsep and os.altsep in self.name):
            raise ValueError(f"name must be a plain file name: {self.name!r}")

    def path_in(self, root: Path) -> Path:
        """Full path of this entry inside ``root``."""
        return Path(root) / self.name

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "mtime_ns": self.stats.mtime_ns,
            "size": self.stats.size,
            "is_directory": self.stats.is_dir,
        }

    def __repr__(self) -> str:
        return f"DirEntry(name={self.name!r}, mtime_ns={self.stats.mtime_ns})"


@dataclass(frozen=True)
class Delta:
    """
    Transition between two snapshots of a tracked directory.
    
    Attributes:
        added: Entries present after the transition but not before
        removed: Entries present before the transition but not after
    """
    added: FrozenSet[DirEntry] = field(default_factory=frozenset)
    removed: FrozenSet[DirEntry] = field(default_factory=frozenset)

    def __post_init__(self):
        # Normalize any iterable into frozensets
        object.__setattr__(self, "added", frozenset(self.added))
        object.__setattr__(self, "removed", frozenset(self.removed))
        overlap = self.added & self.removed
        if overlap:
            raise ValueError(f"entries both added and removed: {sorted(e.name for e in overlap)}")

    @classmethod
    def snapshot(cls, entries: Iterable[DirEntry]) -> "Delta":
        """Catch-up delta reporting every given entry as added."""
        return cls(added=frozenset(entries))

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed

    def __bool__(self) -> bool:
        return not self.is_empty

    @property
    def added_names(self) -> List[str]:
        """Sorted names of added entries."""
        return sorted(entry.name for entry in self.added)

    @property
    def removed_names(self) -> List[str]:
        """Sorted names of removed entries."""
        return sorted(entry.name for entry in self.removed)

    def apply_to(self, replica: MutableSet[DirEntry]) -> "Delta":
        """
        Apply this delta to a replica set of entries.
        
        Removals of entries the replica does not hold and additions of
        entries it already holds are no-ops.
        
        Args:
            replica: Set of entries to update in place
            
        Returns:
            The delta actually applied to the replica
        """
        removed = self.removed & replica
        replica.difference_update(removed)
        added = self.added - replica
        replica.update(added)
        return Delta(added=added, removed=removed)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "added": [e.to_dict() for e in sorted(self.added, key=lambda e: e.name)],
            "removed": [e.to_dict() for e in sorted(self.removed, key=lambda e: e.name)],
        }

    def __len__(self) -> int:
        return len(self.added) + len(self.removed)
