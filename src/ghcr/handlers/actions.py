"""Handlers for skip, reply, publish and refresh.

Each of these calls a collaborator that can fail (the skip file, the
editor, gh). Failures are turned into a status line here so the session
keeps running.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import TYPE_CHECKING

from ghcr.editor import EditorError
from ghcr.gh import GhError
from ghcr.handlers.base import Handler, Outcome
from ghcr.terminal import KeyEvent

if TYPE_CHECKING:
    from ghcr.session import Session
    from ghcr.terminal import InputEvent

logger = logging.getLogger(__name__)


class _KeyAction(Handler):
    """Runs :meth:`run` when its key is pressed; always re-renders."""

    key: str

    def handle(self, event: InputEvent, session: Session) -> Outcome:
        if not isinstance(event, KeyEvent) or event.key != self.key:
            return Outcome.NO_CHANGE
        self.run(session)
        return Outcome.CHANGED

    @abstractmethod
    def run(self, session: Session) -> None:
        """Perform the action."""


class SkipHandler(_KeyAction):
    """``s`` skips the selected thread, or unskips it in the skipped view."""

    key = "s"

    def run(self, session: Session) -> None:  # noqa: PLR6301
        # Persistence errors are reported by the controller itself.
        session.controller.skip_current()


class ReplyHandler(_KeyAction):
    """``r`` composes a reply to the last comment of the selected thread."""

    key = "r"

    def run(self, session: Session) -> None:  # noqa: PLR6301
        try:
            session.compose_reply()
        except EditorError as exc:
            logger.warning("Reply composition failed: %s", exc)
            session.controller.set_status(f"Failed to compose reply: {exc}")


class PublishHandler(_KeyAction):
    """``p`` publishes queued replies in order."""

    key = "p"

    def run(self, session: Session) -> None:  # noqa: PLR6301
        try:
            session.publish_queue()
        except GhError as exc:
            logger.warning("Publishing stopped: %s", exc)
            session.controller.set_status(
                f"Failed to publish replies: {exc} ({len(session.queue)} still queued)",
            )


class RefreshHandler(_KeyAction):
    """``g`` re-fetches threads from GitHub."""

    key = "g"

    def run(self, session: Session) -> None:  # noqa: PLR6301
        try:
            session.refresh_threads()
        except GhError as exc:
            logger.warning("Refresh failed: %s", exc)
            session.controller.set_status(f"Failed to refresh threads: {exc}")
            return
        session.controller.set_status("Threads refreshed.")
