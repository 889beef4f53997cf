"""# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable

from .element import Element
from .pad import PadDirection

logger = logging.getLogger(__name__)


class Pipeline:
    """Linear chain of elements carrying request mappings.

    `run()` calls `process()` on each element in order (sources push requests
    downstream inside `process`) and returns the final element's `output`.
    `close()` releases element resources in reverse order; use the pipeline
    as a context manager to make that automatic.
    """

    def __init__(self, elements: Iterable[Element]):
        self.elements: list[Element] = list(elements)
        link_many(*self.elements)

    def run(self):
        """Execute each element in sequence; return the last element's output."""
        for element in self.elements:
            element.process()
        return getattr(self.elements[-1], "output", None) if self.elements else None

    def close(self) -> None:
        """Close every element, downstream first, even if one of them fails."""
        errors: list[Exception] = []
        for element in reversed(self.elements):
            try:
                element.close()
            except Exception as error:
                logger.warning("closing %s failed: %s", type(element).__name__, error)
                errors.append(error)
        if errors:
            raise errors[0]

    def __enter__(self) -> Pipeline:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def link_many(*elements: Element) -> None:
    """Link a chain of elements using newly requested pads.

    Each upstream element receives a new src pad that links to a new sink pad
    on the downstream element.
    """
    if len(elements) < 2:
        return

    for upstream, downstream in itertools.pairwise(elements):
        src_pad = upstream.request_pad(PadDirection.SRC)
        sink_pad = downstream.request_pad(PadDirection.SINK)
        src_pad.link(sink_pad)
