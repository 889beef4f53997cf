# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial
"""Make a forward-only byte stream rewindable.

`RewindableInput` wraps any object with `read(size)`. Bytes are tee'd into a
spill file the first time something consumes them through the wrapper, and
every later read is served from that file (pulling more from the source only
once the spilled bytes run out). A source that can already rewind itself is
rewound in place as long as nothing has been spilled yet.

States:
  - unbuffered: no spill file; `rewind()` may use the source's own rewind.
  - buffering: spill file active; all reads go through it.
  - closed: spill file released; only `close()` may be called again.
"""

from __future__ import annotations

import errno
import functools
import io
import logging
import weakref
from collections.abc import Callable, Iterator

from .spill import SpillFile, SpillOptions

logger = logging.getLogger(__name__)


def native_rewind(source: object) -> Callable[[], object] | None:
    """Return a callable rewinding `source` in place, or None if it has none."""
    rewind = getattr(source, "rewind", None)
    if callable(rewind):
        return rewind
    seekable = getattr(source, "seekable", None)
    seek = getattr(source, "seek", None)
    if not (callable(seekable) and callable(seek)):
        return None
    try:
        can_seek = seekable()
    except ValueError:
        # closed file objects refuse even to answer
        return None
    return functools.partial(seek, 0) if can_seek else None


def is_seek_unsupported(error: BaseException) -> bool:
    """True for errors meaning "this stream cannot seek" (pipes, sockets)."""
    if isinstance(error, io.UnsupportedOperation):
        return True
    return isinstance(error, OSError) and error.errno == errno.ESPIPE


class RewindableInput:
    """Rewindable view over a sequential byte source.

    The source is never closed here; it belongs to whoever created it. The
    spill file belongs to this instance and is released by `close()` (or, as
    a fallback, when the instance is garbage collected).
    """

    def __init__(
        self,
        source,
        options: SpillOptions | None = None,
        spill_factory: Callable[[SpillOptions], SpillFile] = SpillFile,
    ) -> None:
        self.source = source
        self.options = options or SpillOptions()
        self._spill_factory = spill_factory
        self._spill: SpillFile | None = None
        self._finalizer: weakref.finalize | None = None
        self._native_rewind = native_rewind(source)
        self._pos = 0
        self._eof = False
        self._closed = False

    @property
    def spill(self) -> SpillFile | None:
        """The active spill file, or None before buffering starts and after close."""
        return self._spill

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def tell(self) -> int:
        """Position of the read cursor from the start of the stream."""
        return self._pos

    def read(self, size: int | None = None, buffer: bytearray | None = None):
        """Read up to `size` bytes (everything left if None or negative).

        When `buffer` is given its contents are replaced by the data and the
        same object is returned. End of stream yields empty content.
        """
        spill = self._ensure_spill()
        if size is None or size < 0:
            self._fill(None)
            data = spill.read_at(self._pos)
        else:
            self._fill(self._pos + size)
            data = spill.read_at(self._pos, size)
        self._pos += len(data)

        if buffer is None:
            return data
        buffer[:] = data
        return buffer

    def readline(self, size: int = -1) -> bytes:
        """Return the next line including its trailing newline, or b"" at the end."""
        spill = self._ensure_spill()
        line = bytearray()
        while size < 0 or len(line) < size:
            if self._pos >= spill.length:
                self._fill(self._pos + self.options.chunk_size)
                if self._pos >= spill.length:
                    break
            limit = spill.length - self._pos
            if size >= 0:
                limit = min(limit, size - len(line))
            chunk = spill.readline_at(self._pos, limit)
            line += chunk
            self._pos += len(chunk)
            if chunk.endswith(b"\n"):
                break
        return bytes(line)

    gets = readline

    def __iter__(self) -> Iterator[bytes]:
        while True:
            line = self.readline()
            if not line:
                return
            yield line

    def each(self, visitor: Callable[[bytes], object] | None = None):
        """Call `visitor` with every remaining line, or return a lazy line iterator."""
        if visitor is None:
            return iter(self)
        for line in self:
            visitor(line)
        return None

    def size(self) -> int:
        """Total length of the stream. Buffers the whole source; keeps the cursor."""
        spill = self._ensure_spill()
        self._fill(None)
        return spill.length

    def rewind(self) -> None:
        """Move the read cursor back to the start of the stream."""
        self._check_closed()
        if self._spill is None and self._native_rewind is not None:
            try:
                self._native_rewind()
                return
            except OSError as error:
                if not is_seek_unsupported(error):
                    raise
                logger.debug("source cannot rewind (%s); buffering it instead", error)
                self._native_rewind = None

        self._ensure_spill()
        self._fill(None)
        self._pos = 0

    def close(self) -> None:
        """Release the spill file. Safe to call any number of times."""
        if self._spill is None:
            self._closed = True
            return
        try:
            self._finalizer()
        except OSError:
            logger.warning("closing spill file %s failed", self._spill.path, exc_info=True)
        finally:
            self._spill = None
            self._finalizer = None
            self._closed = True

    def __enter__(self) -> RewindableInput:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _check_closed(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed input")

    def _ensure_spill(self) -> SpillFile:
        self._check_closed()
        if self._spill is None:
            self._spill = self._spill_factory(self.options)
            self._finalizer = weakref.finalize(self, self._spill.close)
            logger.debug("buffering input into %s", self._spill.path)
        return self._spill

    def _fill(self, target: int | None) -> None:
        """Copy source bytes into the spill file until it holds `target` bytes.

        With `target` None the source is drained.
        """
        spill = self._spill
        while not self._eof and (target is None or spill.length < target):
            want = self.options.chunk_size if target is None else target - spill.length
            data = self.source.read(want)
            if not data:
                self._eof = True
                break
            spill.append(data)
