"""# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial"""
from __future__ import annotations

"""In-memory byte source with metadata and a rewindable read cursor."""

from typing import Any, Dict, Optional


class Buffer:
    """Bytes already held in memory, readable like a stream.

    Buffers rewind natively, so wrapping one in `RewindableInput` never
    spills it to disk until it is read through the wrapper.
    """

    def __init__(self, data: bytes, meta: Optional[Dict[str, Any]] = None):
        self._data = bytes(data)
        self._pos = 0
        self.meta = meta or {}

    def read(self, size: int | None = None) -> bytes:
        """Return up to `size` bytes (or the remainder if None) and advance the cursor."""
        if size is None or size < 0:
            size = len(self._data) - self._pos
        end = min(self._pos + size, len(self._data))
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def readline(self, size: int = -1) -> bytes:
        end = self._data.find(b"\n", self._pos)
        end = len(self._data) if end == -1 else end + 1
        if size >= 0:
            end = min(end, self._pos + size)
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    @property
    def remaining(self) -> int:
        """Bytes left unread."""
        return len(self._data) - self._pos

    def __len__(self) -> int:
        return len(self._data)

    def rewind(self) -> None:
        """Reset cursor to the start."""
        self._pos = 0
