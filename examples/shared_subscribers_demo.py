#!/usr/bin/env python3
"""
Shared directory tracking demo.

This example demonstrates:
1. An early subscriber receiving the initial scan
2. A late subscriber receiving a catch-up delta
3. Both subscribers receiving the same deltas afterwards
4. A modified file reported as removed + added

Usage:
    python examples/shared_subscribers_demo.py

The demo will:
- Create a temporary directory
- Create/modify/delete files
- Show deltas as each subscriber receives them
- Clean up on exit
"""

import asyncio
import os
import sys
import tempfile
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dirwatch import Delta, track_directory


def printer(label: str):
    def receive(delta: Delta) -> None:
        print(f"[{label}] added={delta.added_names} removed={delta.removed_names}")
    return receive


async def demo(root: Path) -> None:
    (root / "existing.txt").write_text("hello\n")

    async with track_directory(root, observer_timeout=0.2) as tracker:
        tracker.subscribe(printer("EARLY"))
        await asyncio.sleep(0.5)

        print("[DEMO] Creating notes.txt")
        (root / "notes.txt").write_text("first\n")
        await asyncio.sleep(0.5)

        print("[DEMO] Late subscriber joins")
        late = tracker.subscribe(printer("LATE"))
        await asyncio.sleep(0.2)

        print("[DEMO] Touching existing.txt")
        st = os.stat(root / "existing.txt")
        os.utime(root / "existing.txt", ns=(st.st_atime_ns, st.st_mtime_ns + 10**9))
        await asyncio.sleep(0.5)

        print("[DEMO] Late subscriber leaves")
        late.cancel()

        print("[DEMO] Deleting notes.txt")
        (root / "notes.txt").unlink()
        await asyncio.sleep(0.5)

    print("[DEMO] Done")


def main():
    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(demo(Path(tmp)))


if __name__ == "__main__":
    main()
