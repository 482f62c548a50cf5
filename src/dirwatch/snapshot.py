"""Snapshot of the entries a tracker believes are in its directory."""

from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .models import DirEntry


class SnapshotStore:
    """
    Current map of tracked entries by name.
    
    Owned by a single watch session and mutated only by the differ.
    Readers get copies, never the underlying map.
    """

    def __init__(self, path: Path):
        self.path = path
        self.by_name: Dict[str, DirEntry] = {}
        self.has_snapshot = False

    def get(self, name: str) -> Optional[DirEntry]:
        return self.by_name.get(name)

    def entries(self) -> List[DirEntry]:
        """Copy of the current entries."""
        return list(self.by_name.values())

    def names(self) -> List[str]:
        return sorted(self.by_name)

    def clear(self) -> None:
        """Forget all entries, including whether a snapshot was ever produced."""
        self.by_name.clear()
        self.has_snapshot = False

    def __len__(self) -> int:
        return len(self.by_name)

    def __iter__(self) -> Iterator[DirEntry]:
        return iter(list(self.by_name.values()))

    def __contains__(self, name: str) -> bool:
        return name in self.by_name
