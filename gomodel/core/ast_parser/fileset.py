"""Position table shared by all files parsed in one scan.

Each file added to a FileSet gets a disjoint range of integer positions,
so positions from different files of the same package can be compared and
ordered, and turned back into (file, line, column) triples.
"""

import bisect
import threading
from typing import List, Optional

from .models import Position


class _FileEntry:
    __slots__ = ("filename", "base", "size", "line_offsets")

    def __init__(self, filename: str, base: int, size: int, line_offsets: List[int]):
        self.filename = filename
        self.base = base
        self.size = size
        self.line_offsets = line_offsets


def _line_offsets(source: bytes) -> List[int]:
    offsets = [0]
    idx = source.find(b"\n")
    while idx != -1:
        offsets.append(idx + 1)
        idx = source.find(b"\n", idx + 1)
    return offsets


class FileSet:
    """Assigns each added file a base position.

    Position 0 is reserved as "no position". A file of N bytes occupies the
    positions base..base+N inclusive (the extra one is its EOF position).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._next_base = 1
        self._files: List[_FileEntry] = []
        self._bases: List[int] = []

    def add_file(self, filename: str, source: bytes) -> int:
        """Register a file and return its base position."""
        with self._lock:
            base = self._next_base
            entry = _FileEntry(filename, base, len(source), _line_offsets(source))
            self._files.append(entry)
            self._bases.append(base)
            self._next_base = base + len(source) + 1
            return base

    def position(self, pos: int) -> Optional[Position]:
        """Translate an absolute position into a file/line/column Position.

        Returns:
            Position, or None if pos is 0 or outside every registered file
        """
        if pos <= 0:
            return None
        with self._lock:
            idx = bisect.bisect_right(self._bases, pos) - 1
            if idx < 0:
                return None
            entry = self._files[idx]
        offset = pos - entry.base
        if offset > entry.size:
            return None
        line_idx = bisect.bisect_right(entry.line_offsets, offset) - 1
        return Position(
            filename=entry.filename,
            offset=offset,
            line=line_idx + 1,
            column=offset - entry.line_offsets[line_idx] + 1,
        )

    def filenames(self) -> List[str]:
        with self._lock:
            return [entry.filename for entry in self._files]

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)
