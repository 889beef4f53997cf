"""# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial"""
from __future__ import annotations

"""Sink elements for the pipeline."""

from collections.abc import MutableMapping

from .element import EOS, SinkElement
from .installer import INPUT_KEY


class CollectingSink(SinkElement):
    """Terminal sink that reads each request body and keeps it.

    The input is rewound after reading so anything else holding the request
    sees the body from the start again.
    """

    def __init__(self, key: str = INPUT_KEY) -> None:
        super().__init__()
        self.key = key
        self.requests: list[MutableMapping] = []
        self.bodies: list[bytes] = []
        self.finished = False

    def process(self) -> None:
        return

    @property
    def output(self) -> list[bytes] | None:
        if not self.bodies:
            return None
        return list(self.bodies)

    def on_buffer(self, pad, request: object) -> None:
        if not isinstance(request, MutableMapping):
            raise TypeError(f"expected a request mapping, got {type(request).__name__}")
        self.requests.append(request)
        stream = request.get(self.key)
        if stream is None:
            return
        self.bodies.append(stream.read())
        stream.rewind()

    def handle_event(self, pad, event: str, payload: object | None = None) -> None:
        if event == EOS:
            self.finished = True
            return
        super().handle_event(pad, event, payload)
