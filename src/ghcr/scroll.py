"""Viewport windowing over a rendered line buffer."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Sequence

LINE_STEP = 1
WHEEL_STEP = 3
TO_START = -sys.maxsize
TO_END = sys.maxsize

_T = TypeVar("_T")


def page_step(viewport_height: int) -> int:
    """Rows moved by PageUp/PageDown: one less than the viewport."""
    return max(viewport_height - 1, 0)


class ScrollWindow:
    """Scroll offset into a line buffer.

    ``scroll`` only moves the offset (saturating at 0); ``visible`` clamps it
    down to the last full page before slicing, so jumping to the end with
    ``TO_END`` lands on the final page.
    """

    def __init__(self, offset: int = 0) -> None:
        self.offset = offset

    def scroll(self, step: int) -> bool:
        """Move by *step* rows. Returns ``False`` for a zero step."""
        if step == 0:
            return False
        self.offset = max(0, self.offset + step)
        return True

    def reset(self) -> None:
        self.offset = 0

    def clamp(self, line_count: int, viewport_height: int) -> int:
        """Clamp the offset down to ``max(0, line_count - viewport_height)``."""
        max_offset = max(0, line_count - viewport_height)
        self.offset = min(self.offset, max_offset)
        return self.offset

    def visible(self, lines: Sequence[_T], viewport_height: int) -> list[_T]:
        """Return the rows that fit in the viewport, clamping the offset first."""
        if viewport_height <= 0:
            return []
        start = self.clamp(len(lines), viewport_height)
        return list(lines[start : start + viewport_height])
