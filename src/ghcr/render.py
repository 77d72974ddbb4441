"""Render a review session into styled text lines.

Rendering is a pure function of the controller state plus the clock, so the
same state always produces the same frame. A frame is a list of lines; each
line is a tuple of ``(text, Style)`` segments that the curses backend and the
rich-based ``--dump`` output both understand.
"""

from __future__ import annotations

import textwrap
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

from rich.text import Text

from ghcr.models import ThreadView

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ghcr.controller import ViewController
    from ghcr.models import Thread

COMMENT_WRAP = 80


class Style(StrEnum):
    """Semantic styles; backends map them to colors."""

    PLAIN = "plain"
    HEADER = "header"
    MUTED = "muted"
    ACCENT = "accent"
    AUTHOR = "author"
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    DIFF_ADD = "diff_add"
    DIFF_DEL = "diff_del"
    DIFF_META = "diff_meta"
    DIFF_CONTEXT = "diff_context"
    GUTTER = "gutter"
    HINT = "hint"
    QUEUE = "queue"


Segment = tuple[str, Style]
Line = tuple[Segment, ...]

RICH_STYLES: dict[Style, str] = {
    Style.PLAIN: "",
    Style.HEADER: "bold grey46",
    Style.MUTED: "grey46",
    Style.ACCENT: "grey70",
    Style.AUTHOR: "bold rgb(120,200,220)",
    Style.RESOLVED: "green",
    Style.UNRESOLVED: "yellow",
    Style.DIFF_ADD: "green",
    Style.DIFF_DEL: "red",
    Style.DIFF_META: "bright_black",
    Style.DIFF_CONTEXT: "grey62",
    Style.GUTTER: "bright_black",
    Style.HINT: "bright_black",
    Style.QUEUE: "magenta",
}

_EMPTY_HINTS = {
    ThreadView.UNRESOLVED: "Press tab to view all unskipped threads or skipped threads. Press q to exit.",
    ThreadView.ACTIVE: "Press tab to view skipped threads or q to exit.",
    ThreadView.SKIPPED: "Press tab to return to unresolved threads or q to exit.",
}

_UNITS: tuple[tuple[str, timedelta], ...] = (
    ("year", timedelta(days=365)),
    ("month", timedelta(days=30)),
    ("week", timedelta(days=7)),
    ("day", timedelta(days=1)),
    ("hour", timedelta(hours=1)),
    ("minute", timedelta(minutes=1)),
)


def line(*segments: Segment) -> Line:
    return tuple(segments)


def plain(text: str, style: Style = Style.PLAIN) -> Line:
    return ((text, style),)


def line_text(rendered: Line) -> str:
    """Concatenate a line's segments without styling."""
    return "".join(text for text, _ in rendered)


def to_rich_text(rendered: Line) -> Text:
    return Text.assemble(*((text, RICH_STYLES[style]) for text, style in rendered))


def humanize_relative(now: datetime, then: datetime) -> str:
    """Describe *then* relative to *now*, e.g. ``"3 hours ago"``.

    Timestamps in the future (clock skew) read as past ones.
    """
    delta = abs(now - then)
    for unit, size in _UNITS:
        count = delta // size
        if count >= 1:
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def wrap_text(text: str, width: int) -> list[str]:
    """Wrap *text* line by line, keeping blank lines and long words intact."""
    wrapped: list[str] = []
    for raw in text.splitlines():
        if not raw.strip():
            wrapped.append("")
            continue
        wrapped.extend(textwrap.wrap(raw, width=width, break_long_words=False, break_on_hyphens=False) or [""])
    return wrapped


def render_block(body: Sequence[Line]) -> list[Line]:
    """Draw a left gutter (╭ │ ╰) alongside a block of lines."""
    if not body:
        return [plain("│", Style.GUTTER)]
    rendered: list[Line] = []
    last = len(body) - 1
    for index, content in enumerate(body):
        if last == 0:
            glyph = ""
        elif index == 0:
            glyph = "╭"
        elif index == last:
            glyph = "╰"
        else:
            glyph = "│"
        if not line_text(content):
            rendered.append(plain(glyph, Style.GUTTER))
        else:
            rendered.append(line((glyph, Style.GUTTER), (" ", Style.PLAIN), *content))
    return rendered


def _diff_style(diff_line: str) -> Style:
    match diff_line[:1]:
        case "+":
            return Style.DIFF_ADD
        case "-":
            return Style.DIFF_DEL
        case "@":
            return Style.DIFF_META
        case _:
            return Style.DIFF_CONTEXT


def render_thread(thread: Thread, now: datetime, wrap_width: int = COMMENT_WRAP) -> list[Line]:
    """Path/status line, the diff excerpt and each comment as a gutter block."""
    lines: list[Line] = [
        line(
            (thread.path, Style.ACCENT),
            ("  ", Style.PLAIN),
            ("resolved", Style.RESOLVED) if thread.is_resolved else ("unresolved", Style.UNRESOLVED),
            ("  ", Style.PLAIN),
            (humanize_relative(now, thread.created_at), Style.MUTED),
        ),
        (),
    ]
    if thread.diff_hunk:
        lines.extend(render_block([plain(d, _diff_style(d)) for d in thread.diff_hunk.splitlines()]))
        lines.append(())

    for comment in thread.comments:
        body: list[Line] = [
            line(
                (comment.author, Style.AUTHOR),
                (" ", Style.PLAIN),
                (humanize_relative(now, comment.created_at), Style.MUTED),
            ),
        ]
        body.extend(plain(chunk) for chunk in wrap_text(comment.body, wrap_width))
        lines.extend(render_block(body))
        lines.append(())
    return lines


def render_view(
    controller: ViewController,
    pr_number: int,
    queued: int = 0,
    now: datetime | None = None,
    wrap_width: int = COMMENT_WRAP,
) -> list[Line]:
    """Render the current view, footer and status line."""
    now = now or datetime.now(UTC)
    view = controller.view
    threads = controller.current_threads
    lines: list[Line] = []

    thread = controller.current_thread()
    if thread is None:
        lines.append(plain(f"PR #{pr_number} – No {view.label} threads to display.", Style.HEADER))
        lines.append(plain(_EMPTY_HINTS[view], Style.HINT))
    else:
        lines.append(
            line(
                (f"Thread {controller.current_index + 1}/{len(threads)} ({view.label})", Style.HEADER),
                ("   ", Style.PLAIN),
                (f"PR #{pr_number}", Style.MUTED),
            )
        )
        lines.extend(render_thread(thread, now, wrap_width))

    if queued:
        lines.append(plain(f"{queued} replies queued – press p to publish", Style.QUEUE))
    lines.append(
        plain(
            f"←/→ thread  ↑/↓ scroll  tab switch view  r reply  p publish  s {view.skip_action}  g refresh  q quit",
            Style.HINT,
        )
    )
    if controller.status_line:
        lines.append(plain(controller.status_line, Style.HINT))
    return lines
