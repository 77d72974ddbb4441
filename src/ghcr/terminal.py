"""curses terminal backend.

``TerminalSession`` is a context manager: entering it switches the terminal to
the curses screen (raw input, hidden cursor, keypad and mouse reporting) and
leaving it undoes each of those steps in reverse order, also when the session
ends with an exception. ``suspended()`` hands the terminal back to the shell
for the duration of a subprocess such as the reply editor.
"""

from __future__ import annotations

import contextlib
import curses
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from ghcr.render import Style

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from contextlib import AbstractContextManager

    from ghcr.render import Line

logger = logging.getLogger(__name__)


class Key(StrEnum):
    """Named non-printable keys."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HOME = "home"
    END = "end"
    TAB = "tab"
    CTRL_C = "ctrl_c"


class Wheel(StrEnum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class KeyEvent:
    """A key press: a single printable character or a ``Key``."""

    key: str


@dataclass(frozen=True)
class MouseEvent:
    wheel: Wheel


@dataclass(frozen=True)
class ResizeEvent:
    pass


InputEvent = KeyEvent | MouseEvent | ResizeEvent


class Terminal(Protocol):
    """What the session loop needs from a terminal."""

    def read_event(self) -> InputEvent | None: ...

    def viewport_height(self) -> int: ...

    def draw(self, lines: Sequence[Line]) -> None: ...

    def suspended(self) -> AbstractContextManager[None]: ...


_CTRL_C = 3
_TAB = 9

_SPECIAL_KEYS: dict[int, Key] = {
    curses.KEY_UP: Key.UP,
    curses.KEY_DOWN: Key.DOWN,
    curses.KEY_LEFT: Key.LEFT,
    curses.KEY_RIGHT: Key.RIGHT,
    curses.KEY_PPAGE: Key.PAGE_UP,
    curses.KEY_NPAGE: Key.PAGE_DOWN,
    curses.KEY_HOME: Key.HOME,
    curses.KEY_END: Key.END,
}

# ncurses builds without the extended mouse API lack BUTTON5_PRESSED.
_WHEEL_UP_MASK = curses.BUTTON4_PRESSED
_WHEEL_DOWN_MASK = getattr(curses, "BUTTON5_PRESSED", 0x200000)


def decode_key(ch: int | str) -> KeyEvent | None:
    """Translate a ``get_wch`` result into a ``KeyEvent`` (``None`` if unmapped)."""
    if isinstance(ch, str):
        code = ord(ch) if len(ch) == 1 else -1
        if code == _CTRL_C:
            return KeyEvent(Key.CTRL_C)
        if code == _TAB:
            return KeyEvent(Key.TAB)
        if ch.isprintable():
            return KeyEvent(ch)
        return None
    special = _SPECIAL_KEYS.get(ch)
    return KeyEvent(special) if special else None


def decode_mouse(bstate: int) -> MouseEvent | None:
    """Translate a curses mouse button state into a wheel event."""
    if bstate & _WHEEL_UP_MASK:
        return MouseEvent(Wheel.UP)
    if bstate & _WHEEL_DOWN_MASK:
        return MouseEvent(Wheel.DOWN)
    return None


_STYLE_ATTRS: dict[Style, tuple[int, int]] = {
    # style: (foreground color, extra attributes); -1 is the terminal default
    Style.PLAIN: (-1, curses.A_NORMAL),
    Style.HEADER: (-1, curses.A_BOLD | curses.A_DIM),
    Style.MUTED: (-1, curses.A_DIM),
    Style.ACCENT: (-1, curses.A_NORMAL),
    Style.AUTHOR: (curses.COLOR_CYAN, curses.A_BOLD),
    Style.RESOLVED: (curses.COLOR_GREEN, curses.A_NORMAL),
    Style.UNRESOLVED: (curses.COLOR_YELLOW, curses.A_NORMAL),
    Style.DIFF_ADD: (curses.COLOR_GREEN, curses.A_NORMAL),
    Style.DIFF_DEL: (curses.COLOR_RED, curses.A_NORMAL),
    Style.DIFF_META: (-1, curses.A_DIM),
    Style.DIFF_CONTEXT: (-1, curses.A_NORMAL),
    Style.GUTTER: (-1, curses.A_DIM),
    Style.HINT: (-1, curses.A_DIM),
    Style.QUEUE: (curses.COLOR_MAGENTA, curses.A_NORMAL),
}


class TerminalSession:
    """The curses screen for the lifetime of a review session."""

    def __init__(self, *, mouse: bool = True) -> None:
        self._mouse = mouse
        self._stdscr: curses.window | None = None
        self._attrs: dict[Style, int] = {}
        self._active = False

    def __enter__(self) -> TerminalSession:
        self._stdscr = curses.initscr()
        try:
            self._activate()
            self._init_colors()
        except curses.error:
            self._deactivate()
            curses.endwin()
            raise
        logger.debug("Terminal session started")
        return self

    def __exit__(self, *exc_info: object) -> None:
        try:
            self._deactivate()
        finally:
            curses.endwin()
            logger.debug("Terminal session ended")

    @property
    def stdscr(self) -> curses.window:
        if self._stdscr is None:
            msg = "TerminalSession used outside its context"
            raise RuntimeError(msg)
        return self._stdscr

    def _activate(self) -> None:
        if self._active:
            return
        curses.noecho()
        curses.raw()
        self.stdscr.keypad(True)
        try:
            curses.curs_set(0)
        except curses.error:
            logger.debug("Terminal cannot hide the cursor")
        if self._mouse:
            curses.mousemask(_WHEEL_UP_MASK | _WHEEL_DOWN_MASK)
        self._active = True

    def _deactivate(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._mouse:
            curses.mousemask(0)
        try:
            curses.curs_set(1)
        except curses.error:
            logger.debug("Terminal cannot restore the cursor")
        self.stdscr.keypad(False)
        curses.noraw()
        curses.echo()

    def _init_colors(self) -> None:
        use_color = curses.has_colors()
        background = -1
        if use_color:
            curses.start_color()
            try:
                curses.use_default_colors()
            except curses.error:
                background = curses.COLOR_BLACK
        pairs: dict[int, int] = {}
        for style, (fg, attr) in _STYLE_ATTRS.items():
            if not use_color or fg < 0:
                self._attrs[style] = attr
                continue
            if fg not in pairs:
                pairs[fg] = len(pairs) + 1
                curses.init_pair(pairs[fg], fg, background)
            self._attrs[style] = curses.color_pair(pairs[fg]) | attr

    @contextmanager
    def suspended(self) -> Iterator[None]:
        """Give the terminal back to the shell, restoring curses on every exit path."""
        curses.def_prog_mode()
        self._deactivate()
        curses.endwin()
        try:
            yield
        finally:
            curses.reset_prog_mode()
            self._activate()
            self.stdscr.clear()
            self.stdscr.refresh()

    def read_event(self) -> InputEvent | None:
        """Block for the next input; ``None`` for input the session ignores."""
        try:
            ch = self.stdscr.get_wch()
        except KeyboardInterrupt:
            return KeyEvent(Key.CTRL_C)
        except curses.error:
            return None
        if ch == curses.KEY_RESIZE:
            curses.update_lines_cols()
            return ResizeEvent()
        if ch == curses.KEY_MOUSE:
            try:
                _, _, _, _, bstate = curses.getmouse()
            except curses.error:
                return None
            return decode_mouse(bstate)
        return decode_key(ch)

    def viewport_height(self) -> int:
        height, _ = self.stdscr.getmaxyx()
        return height

    def draw(self, lines: Sequence[Line]) -> None:
        """Paint one frame; rows and segments past the screen edge are cut."""
        screen = self.stdscr
        height, width = screen.getmaxyx()
        screen.erase()
        for row, rendered in enumerate(lines[:height]):
            col = 0
            for text, style in rendered:
                if col >= width:
                    break
                # Writing the bottom-right cell moves the cursor off-screen and raises.
                with contextlib.suppress(curses.error):
                    screen.addnstr(row, col, text, width - col, self._attrs.get(style, curses.A_NORMAL))
                col += len(text)
        screen.refresh()
