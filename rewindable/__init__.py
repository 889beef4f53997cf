# SPDX-License-Identifier: GPL-3.0-or-later OR LicenseRef-Commercial

"""Rewindable wrappers for forward-only byte streams."""

from .buffer import Buffer
from .element import Element, SinkElement, SourceElement
from .installer import (
    INPUT_KEY,
    RewindableInputInstaller,
    RewindableInputMiddleware,
    install,
)
from .pad import Pad, PadDirection
from .pipeline import Pipeline, link_many
from .rewindable_input import RewindableInput
from .sink import CollectingSink
from .source import StreamSource
from .spill import SpillFile, SpillOptions, SpillWriteError, has_posix_semantics

__all__ = [
    "Buffer",
    "CollectingSink",
    "Element",
    "INPUT_KEY",
    "Pad",
    "PadDirection",
    "Pipeline",
    "RewindableInput",
    "RewindableInputInstaller",
    "RewindableInputMiddleware",
    "SinkElement",
    "SourceElement",
    "SpillFile",
    "SpillOptions",
    "SpillWriteError",
    "StreamSource",
    "has_posix_semantics",
    "install",
    "link_many",
]
