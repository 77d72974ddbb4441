"""Composing replies in the user's ``$EDITOR``."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess  # noqa: S404
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from ghcr.render import COMMENT_WRAP, humanize_relative, wrap_text

if TYPE_CHECKING:
    from ghcr.models import Thread

logger = logging.getLogger(__name__)

DEFAULT_EDITOR = "vim"
COMMENT_PREFIX = "#"


class EditorError(Exception):
    """Raised when the editor cannot be launched or exits unsuccessfully."""


def build_reply_template(thread: Thread, now: datetime | None = None, wrap_width: int = COMMENT_WRAP) -> str:
    """Seed text for a reply: room to type, then the thread quoted as comments."""
    now = now or datetime.now(UTC)
    status = "resolved" if thread.is_resolved else "open"
    lines = [
        "",
        "",
        f"# Reply to the thread on {thread.path} ({status} status).",
        "# Lines starting with '# ' are ignored when submitting the reply.",
        "#",
        "# --- Thread comments ---",
    ]
    context_width = max(wrap_width - 2, 10)
    for comment in thread.comments:
        lines.append(f"# {comment.author} ({humanize_relative(now, comment.created_at)})")
        lines.extend(f"# {chunk}" if chunk else "#" for chunk in wrap_text(comment.body, context_width))
        lines.append("#")
    return "\n".join(lines) + "\n"


def sanitize_editor_contents(raw: str) -> str | None:
    """Drop comment lines and trim. ``None`` means the reply was cancelled."""
    kept = [text for text in raw.splitlines() if not text.lstrip().startswith(COMMENT_PREFIX)]
    body = "\n".join(kept).strip()
    return body or None


def resolve_editor(override: str = "") -> list[str]:
    """Editor command as argv: config override, then ``$EDITOR``, then vim."""
    command = override or os.environ.get("EDITOR", "") or DEFAULT_EDITOR
    argv = shlex.split(command)
    if not argv:
        msg = f"Empty editor command: {command!r}"
        raise EditorError(msg)
    return argv


def launch_editor(initial_contents: str, editor: str = "") -> str | None:
    """Open *initial_contents* in the editor and return the sanitized result.

    The caller is responsible for handing the terminal over first.

    Raises:
        EditorError: If the editor is missing or exits with a non-zero status.
    """
    argv = resolve_editor(editor)
    with tempfile.TemporaryDirectory(prefix="gh-cr-") as tmp:
        path = Path(tmp) / "REPLY.md"
        path.write_text(initial_contents, encoding="utf-8")
        logger.debug("Launching editor: %s %s", " ".join(argv), path)
        try:
            result = subprocess.run([*argv, str(path)], check=False)  # noqa: S603
        except OSError as exc:
            msg = f"failed to launch editor {argv[0]}: {exc}"
            raise EditorError(msg) from exc
        if result.returncode != 0:
            msg = f"editor {argv[0]} exited with status {result.returncode}"
            raise EditorError(msg)
        try:
            edited = path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"failed to read editor contents: {exc}"
            raise EditorError(msg) from exc
    return sanitize_editor_contents(edited)
