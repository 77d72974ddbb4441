"""The interactive review session.

``Session`` is the explicit context every handler receives: the view
controller, the reply queue, the PR being reviewed, the terminal, and the two
network operations (fetch threads, publish one reply). ``run`` is the single
control loop: block for input, dispatch it to the handlers in priority order,
and re-render when something changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from rich.console import Console

from ghcr.config import Config
from ghcr.editor import build_reply_template, launch_editor
from ghcr.gh import GhError
from ghcr.handlers import Outcome, build_handlers
from ghcr.render import render_view, to_rich_text
from ghcr.reply_queue import ReplyQueue

if TYPE_CHECKING:
    from collections.abc import Callable

    from ghcr.controller import ViewController
    from ghcr.handlers import Handler
    from ghcr.models import QueuedReply, Thread
    from ghcr.render import Line
    from ghcr.terminal import InputEvent, Terminal

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class Session:
    """State shared by the loop, the handlers and the renderer."""

    controller: ViewController
    pr_number: int
    terminal: Terminal
    fetch: Callable[[], list[Thread]]
    publish: Callable[[QueuedReply], None]
    config: Config = field(default_factory=Config)
    queue: ReplyQueue = field(default_factory=ReplyQueue)
    handlers: list[Handler] = field(default_factory=build_handlers)
    clock: Callable[[], datetime] = _utcnow

    def frame(self) -> list[Line]:
        return render_view(
            self.controller,
            self.pr_number,
            queued=len(self.queue),
            now=self.clock(),
            wrap_width=self.config.display.wrap_width,
        )

    def render(self) -> None:
        """Draw the part of the current frame that fits the viewport."""
        height = self.terminal.viewport_height()
        self.terminal.draw(self.controller.window.visible(self.frame(), height))

    def dispatch(self, event: InputEvent) -> Outcome:
        """Offer *event* to each handler until one acts on it."""
        for handler in self.handlers:
            outcome = handler.handle(event, self)
            if outcome is not Outcome.NO_CHANGE:
                return outcome
        return Outcome.NO_CHANGE

    def run(self) -> None:
        """Process input events in arrival order until a handler asks to exit."""
        self.render()
        while True:
            event = self.terminal.read_event()
            if event is None:
                continue
            outcome = self.dispatch(event)
            if outcome is Outcome.EXIT:
                logger.info("Session ended with %d reply(ies) still queued", len(self.queue))
                return
            if outcome is Outcome.CHANGED:
                self.render()

    # -- Actions --------------------------------------------------------------

    def refresh_threads(self) -> None:
        """Re-fetch threads and hand them to the controller.

        Raises:
            GhError: If the fetch fails; the current views are left as they were.
        """
        self.controller.refresh(self.fetch())

    def compose_reply(self) -> None:
        """Open the editor for the selected thread and queue the result.

        Raises:
            EditorError: If the editor cannot be run or fails.
        """
        thread = self.controller.current_thread()
        if thread is None:
            self.controller.set_status("No thread selected.")
            return

        template = build_reply_template(thread, now=self.clock(), wrap_width=self.config.display.wrap_width)
        with self.terminal.suspended():
            body = launch_editor(template, self.config.editor.command)
        if body is None:
            self.controller.set_status("Reply cancelled.")
            return

        self.queue.enqueue(thread.last_comment.database_id, body)
        self.controller.set_status(f"Reply queued ({len(self.queue)} pending).")

    def publish_queue(self) -> None:
        """Publish every queued reply, then refresh.

        Raises:
            GhError: If a publish fails. That reply and the ones after it
                stay queued in order.
        """
        if not self.queue:
            self.controller.clear_status()
            return

        def progress(position: int, total: int) -> None:
            self.controller.set_status(f"Publishing reply {position}/{total}")
            self.render()

        published = self.queue.publish_all(self.publish, on_progress=progress)
        try:
            self.refresh_threads()
        except GhError as exc:
            logger.warning("Refresh after publishing failed: %s", exc)
            self.controller.set_status(f"Published {published} replies ✓ (refresh failed: {exc})")
            return
        self.controller.set_status(f"Published {published} replies ✓")


def dump_view(
    controller: ViewController,
    pr_number: int,
    config: Config | None = None,
    console: Console | None = None,
) -> None:
    """Print the current view once, for scripting and tests."""
    config = config or Config()
    console = console or Console(highlight=False, soft_wrap=True)
    for rendered in render_view(controller, pr_number, wrap_width=config.display.wrap_width):
        console.print(to_rich_text(rendered))
