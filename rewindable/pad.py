# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial
"""Pad primitives shared across elements."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .element import Element


class PadDirection(str, Enum):
    """Direction of a pad.

    SRC pads emit requests to a downstream peer; SINK pads receive requests
    from an upstream peer. Mixed linking is rejected when pads connect.
    """

    SRC = "src"
    SINK = "sink"


class Pad:
    """Linkable endpoint owned by an Element.

    Pads are created dynamically, linked exactly once, and only connect a src
    pad to a sink pad. The pad keeps a back-reference to its element so a push
    can be delivered to the element that owns the peer.
    """

    def __init__(self, name: str, direction: PadDirection, element: Element):
        self.name = name
        self.direction = direction
        self.element = element
        self.peer: Pad | None = None

    def link(self, peer: Pad) -> None:
        """Connect this pad to its peer, enforcing directionality and single-link rules."""
        if self.peer or peer.peer:
            raise ValueError("pad already linked")
        if self.direction == peer.direction:
            raise ValueError("pad directions must be opposite")
        self.peer = peer
        peer.peer = self

    def _downstream(self, action: str) -> Pad:
        if self.direction != PadDirection.SRC:
            raise ValueError(f"{action} is only valid on src pads")
        if not self.peer:
            raise ValueError("pad is not linked")
        return self.peer

    def push(self, request: object) -> None:
        """Deliver a request to the element owning the linked sink pad."""
        peer = self._downstream("push")
        peer.element.on_buffer(peer, request)

    def send_event(self, event: str, payload: object | None = None) -> None:
        """Deliver a control event (e.g. "eos") to the linked sink pad."""
        peer = self._downstream("send_event")
        peer.element.handle_event(peer, event, payload)
