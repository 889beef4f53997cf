# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial
"""Spill files backing rewindable input.

A spill file is a randomly named temporary file that receives every byte read
from a forward-only source, so the bytes can be served again after a rewind.

Two platform details shape it:
  - On filesystems with POSIX semantics an open file may be unlinked while it
    is still in use; the spill file is unlinked right after creation and the
    disk space goes away with the last descriptor. Elsewhere the path stays on
    disk until `close()` removes it.
  - A write may accept fewer bytes than requested; `append` keeps writing the
    tail until the whole chunk is stored.
"""

from __future__ import annotations

import contextlib
import errno
import io
import logging
import os
import sys
import tempfile
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Consecutive zero-byte writes tolerated before giving up on the spill file.
MAX_STALLED_WRITES = 3


class SpillWriteError(OSError):
    """Raised when the spill file stops accepting bytes."""


def has_posix_semantics() -> bool:
    """Return True when an open file can be unlinked while still in use."""
    return os.name == "posix" and not sys.platform.startswith("cygwin")


@dataclass
class SpillOptions:
    """Where and how spill files are created."""

    prefix: str = "RewindableInput"
    directory: str | None = None
    chunk_size: int = 4096


class SpillFile:
    """Append-only temporary file with random-access reads.

    `length` counts the bytes appended so far; reads never go past it.
    """

    def __init__(self, options: SpillOptions | None = None) -> None:
        self.options = options or SpillOptions()
        self.posix_semantics = has_posix_semantics()
        fd, self.path = tempfile.mkstemp(
            prefix=self.options.prefix, dir=self.options.directory
        )
        self._file = os.fdopen(fd, "w+b")
        # Buffered writers only return short counts on non-blocking files.
        self.full_writes = isinstance(self._file, io.BufferedIOBase)
        self.length = 0
        self.unlinked = False

        if self.posix_semantics:
            try:
                os.chmod(self.path, 0)
                os.unlink(self.path)
                self.unlinked = True
            except BaseException:
                self._file.close()
                if not self.unlinked:
                    with contextlib.suppress(OSError):
                        os.unlink(self.path)
                raise
        logger.debug(
            "spill file %s created (unlinked=%s)", self.path, self.unlinked
        )

    @property
    def closed(self) -> bool:
        return self._file.closed

    def write(self, data) -> int:
        """Write at the end of the file; return how many bytes were accepted."""
        self._file.seek(self.length)
        written = self._file.write(data) or 0
        self.length += written
        return written

    def append(self, data) -> None:
        """Store all of `data`, retrying short writes."""
        view = memoryview(data)
        if self.full_writes:
            written = self.write(view)
            if written == len(view):
                return
            logger.debug("short write to %s: %d of %d bytes", self.path, written, len(view))
            view = view[written:]

        stalls = 0
        while view:
            written = self.write(view)
            if written:
                view = view[written:]
                stalls = 0
                continue
            stalls += 1
            if stalls >= MAX_STALLED_WRITES:
                raise SpillWriteError(
                    errno.EIO, f"spill file stopped accepting bytes ({len(view)} pending)", self.path
                )

    def read_at(self, offset: int, size: int = -1) -> bytes:
        """Read up to `size` bytes starting at `offset` (to the end if negative)."""
        if size < 0:
            size = self.length - offset
        if size <= 0:
            return b""
        self._file.seek(offset)
        return self._file.read(min(size, self.length - offset))

    def readline_at(self, offset: int, limit: int) -> bytes:
        """Read one line starting at `offset`, at most `limit` bytes long."""
        if limit <= 0:
            return b""
        self._file.seek(offset)
        return self._file.readline(min(limit, self.length - offset))

    def close(self) -> None:
        """Close the file and release its path. Repeated calls do nothing.

        A failing flush still propagates, but only after the path is released.
        """
        if self._file.closed:
            return
        try:
            self._file.close()
        finally:
            self._release()

    def _release(self) -> None:
        if self.unlinked:
            logger.debug("spill file %s closed", self.path)
            return
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("could not remove spill file %s", self.path, exc_info=True)
        self.unlinked = True
        logger.debug("spill file %s closed and removed", self.path)
