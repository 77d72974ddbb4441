"""Input handlers for the review session loop."""

from __future__ import annotations

from ghcr.handlers.actions import PublishHandler, RefreshHandler, ReplyHandler, SkipHandler
from ghcr.handlers.base import Handler, Outcome
from ghcr.handlers.navigation import (
    InterruptHandler,
    QuitHandler,
    ResizeHandler,
    ScrollHandler,
    ThreadNavigationHandler,
)
from ghcr.handlers.registry import build_handlers

__all__ = [
    "Handler",
    "InterruptHandler",
    "Outcome",
    "PublishHandler",
    "QuitHandler",
    "RefreshHandler",
    "ReplyHandler",
    "ResizeHandler",
    "ScrollHandler",
    "SkipHandler",
    "ThreadNavigationHandler",
    "build_handlers",
]
