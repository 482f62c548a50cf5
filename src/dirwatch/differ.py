"""Diffing of freshly loaded entries against the current snapshot."""

from typing import TYPE_CHECKING, Callable, Iterable, Set

from .models import Delta, DirEntry

if TYPE_CHECKING:
    from .snapshot import SnapshotStore


def mtime_changed(new_entry: DirEntry, old_entry: DirEntry) -> bool:
    """Default modification check: modification times differ."""
    return new_entry.stats.mtime_ns != old_entry.stats.mtime_ns


def diff_entries(
    store: "SnapshotStore",
    entries: Iterable[DirEntry],
    is_modified: Callable[[DirEntry, DirEntry], bool] = mtime_changed,
) -> Delta:
    """
    Apply a freshly loaded listing to the snapshot store.
    
    New names are added. Known names are replaced (old entry removed, new
    entry added) when ``is_modified(new, old)`` is true and left untouched
    otherwise. Known names missing from the listing are removed.
    
    Args:
        store: Snapshot store to update in place
        entries: Entries loaded by a directory scan
        is_modified: Check whether a new entry differs from the old one
        
    Returns:
        The delta between the previous and the updated snapshot
    """
    by_name = store.by_name
    removed_names: Set[str] = set(by_name)
    added = {}
    removed = {}

    for entry in entries:
        name = entry.name
        old_entry = by_name.get(name)

        if old_entry is None:
            by_name[name] = entry
            added[name] = entry
            continue

        removed_names.discard(name)

        if name in added:
            # Same name listed twice: the later entry wins
            by_name[name] = entry
            added[name] = entry
        elif is_modified(entry, old_entry):
            by_name[name] = entry
            removed[name] = old_entry
            added[name] = entry

    for name in removed_names:
        removed[name] = by_name.pop(name)

    store.has_snapshot = True
    return Delta(added=added.values(), removed=removed.values())
