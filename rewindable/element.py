# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial
"""Base Element class for request-processing stages.

Elements are linked through pads into a linear pipeline:
  - Request mappings travel downstream via `on_buffer`.
  - Control events (currently only "eos") travel via `handle_event`.
  - Sources emit on src pads, sinks consume on sink pads.
  - `close` releases whatever an element allocated while requests flowed.
"""

from __future__ import annotations

from .pad import Pad, PadDirection

EOS = "eos"


class Element:
    """Base processing element with dynamic pads."""

    def __init__(self) -> None:
        self._pads: list[Pad] = []

    def request_pad(self, direction: PadDirection, name: str | None = None) -> Pad:
        """Create a new dynamic pad.

        Pads are named sequentially by direction when no explicit name is given.
        """
        pad_name = name or f"{direction.value}{len(self._pads)}"
        pad = Pad(pad_name, direction, self)
        self._pads.append(pad)
        return pad

    @property
    def pads(self) -> list[Pad]:
        """Return a shallow copy of pads to avoid external mutation."""
        return list(self._pads)

    def src_pads(self) -> list[Pad]:
        return [pad for pad in self._pads if pad.direction == PadDirection.SRC and pad.peer]

    def process(self) -> None:  # pragma: no cover - base hook
        raise NotImplementedError

    def on_buffer(self, pad: Pad, request: object) -> None:  # pragma: no cover - base hook
        """Handle a request arriving on a sink pad."""
        raise NotImplementedError

    def push(self, request: object) -> None:
        """Emit a request downstream on all linked src pads."""
        for pad in self.src_pads():
            pad.push(request)

    def handle_event(self, pad: Pad, event: str, payload: object | None = None) -> None:
        """Handle a pad event; end-of-stream is forwarded downstream."""
        if event == EOS:
            self.send_event(event, payload)
            return
        raise NotImplementedError(f"unhandled event: {event}")

    def send_event(self, event: str, payload: object | None = None) -> None:
        """Emit an event downstream on all linked src pads."""
        for pad in self.src_pads():
            pad.send_event(event, payload)

    def close(self) -> None:
        """Release resources held by the element. Default: nothing to release."""


class SourceElement(Element):
    """Element with one or more output pads and no inputs."""

    def request_pad(self, direction: PadDirection, name: str | None = None) -> Pad:
        if direction != PadDirection.SRC:
            raise ValueError("SourceElement only provides src pads")
        return super().request_pad(direction, name)


class SinkElement(Element):
    """Element with one or more input pads and no outputs."""

    def request_pad(self, direction: PadDirection, name: str | None = None) -> Pad:
        if direction != PadDirection.SINK:
            raise ValueError("SinkElement only provides sink pads")
        return super().request_pad(direction, name)
