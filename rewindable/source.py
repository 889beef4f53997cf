"""# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial"""
from __future__ import annotations

"""Source element that feeds a request mapping carrying an input stream."""

from dataclasses import dataclass, field
from typing import Any, BinaryIO

from .buffer import Buffer
from .element import EOS, SourceElement
from .installer import INPUT_KEY


@dataclass
class StreamSource(SourceElement):
    """Emit one request mapping whose input is a byte stream.

    Exactly one of `stream` or `data` provides the input:
        - stream: an already open binary stream (never closed here)
        - data: bytes, served from an in-memory `Buffer`

    The mapping starts as a copy of `environ` with the input stored under
    `input_key`. An "eos" event follows the request.
    """

    stream: BinaryIO | None = None
    data: bytes | None = None
    input_key: str = INPUT_KEY
    environ: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__()
        if (self.stream is None) == (self.data is None):
            raise ValueError("StreamSource needs exactly one of stream or data")

    def process(self) -> None:
        """Build the request mapping and push it downstream, then signal eos."""
        request = dict(self.environ)
        if self.stream is not None:
            request[self.input_key] = self.stream
        else:
            request[self.input_key] = Buffer(self.data, meta={"length": len(self.data)})
        self.push(request)
        self.send_event(EOS)
