# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial
"""Install `RewindableInput` around the input stream of a request mapping.

Three entry points share one rule (`install`):
  - `install()` for code that already holds the mapping.
  - `RewindableInputInstaller`, a pipeline element.
  - `RewindableInputMiddleware`, a WSGI middleware.

A missing or None input is left alone, and an input that is already a
`RewindableInput` is not wrapped twice.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, MutableMapping
from typing import Any

from .element import Element
from .pad import Pad
from .rewindable_input import RewindableInput
from .spill import SpillOptions

logger = logging.getLogger(__name__)

INPUT_KEY = "wsgi.input"


def install(
    environ: MutableMapping[str, Any],
    key: str = INPUT_KEY,
    options: SpillOptions | None = None,
) -> MutableMapping[str, Any]:
    """Wrap `environ[key]` in a RewindableInput and return the mapping."""
    stream = environ.get(key)
    if stream is None or isinstance(stream, RewindableInput):
        return environ
    environ[key] = RewindableInput(stream, options)
    return environ


class RewindableInputInstaller(Element):
    """Pipeline stage wrapping the input of every request that passes through.

    Wrappers created here are closed when the element is closed.
    """

    def __init__(self, key: str = INPUT_KEY, options: SpillOptions | None = None) -> None:
        super().__init__()
        self.key = key
        self.options = options
        self._installed: list[RewindableInput] = []

    def process(self) -> None:
        return

    def on_buffer(self, pad: Pad, request: object) -> None:
        if not isinstance(request, MutableMapping):
            raise TypeError(f"expected a request mapping, got {type(request).__name__}")
        original = request.get(self.key)
        install(request, self.key, self.options)
        if request.get(self.key) is not original:
            self._installed.append(request[self.key])
        self.push(request)

    def close(self) -> None:
        while self._installed:
            self._installed.pop().close()


class _ClosingResponse:
    """Response iterable that runs a callback after the server closes it."""

    def __init__(self, result: Iterable[bytes], callback: Callable[[], None]) -> None:
        self._result = result
        self._callback = callback

    def __iter__(self):
        return iter(self._result)

    def close(self) -> None:
        try:
            close = getattr(self._result, "close", None)
            if close is not None:
                close()
        finally:
            self._callback()


class RewindableInputMiddleware:
    """WSGI middleware making `environ["wsgi.input"]` rewindable for the app.

    The wrapper it installs is closed once the server closes the response.
    """

    def __init__(self, app, key: str = INPUT_KEY, options: SpillOptions | None = None) -> None:
        self.app = app
        self.key = key
        self.options = options

    def __call__(self, environ, start_response):
        original = environ.get(self.key)
        install(environ, self.key, self.options)
        wrapper = environ.get(self.key)
        if wrapper is original:
            return self.app(environ, start_response)

        logger.debug("installed rewindable input for %s", environ.get("PATH_INFO", "/"))
        try:
            result = self.app(environ, start_response)
        except BaseException:
            wrapper.close()
            raise
        return _ClosingResponse(result, wrapper.close)
