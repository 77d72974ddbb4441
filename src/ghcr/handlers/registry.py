"""Handler ordering for the session loop."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ghcr.handlers.base import Handler


def build_handlers() -> list[Handler]:
    """Instantiate all handlers, highest priority first."""
    from ghcr.handlers.actions import PublishHandler, RefreshHandler, ReplyHandler, SkipHandler  # noqa: PLC0415
    from ghcr.handlers.navigation import (  # noqa: PLC0415
        InterruptHandler,
        QuitHandler,
        ResizeHandler,
        ScrollHandler,
        ThreadNavigationHandler,
    )

    return [
        InterruptHandler(),
        QuitHandler(),
        ThreadNavigationHandler(),
        ScrollHandler(),
        SkipHandler(),
        ReplyHandler(),
        PublishHandler(),
        RefreshHandler(),
        ResizeHandler(),
    ]
