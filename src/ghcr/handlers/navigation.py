"""Handlers that quit, move between threads and views, and scroll."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ghcr import scroll
from ghcr.handlers.base import Handler, Outcome, changed
from ghcr.terminal import Key, KeyEvent, MouseEvent, ResizeEvent, Wheel

if TYPE_CHECKING:
    from ghcr.session import Session
    from ghcr.terminal import InputEvent


class InterruptHandler(Handler):
    """Ctrl-C ends the session before any other binding is consulted."""

    def handle(self, event: InputEvent, session: Session) -> Outcome:  # noqa: ARG002, PLR6301
        if isinstance(event, KeyEvent) and event.key == Key.CTRL_C:
            return Outcome.EXIT
        return Outcome.NO_CHANGE


class QuitHandler(Handler):
    def handle(self, event: InputEvent, session: Session) -> Outcome:  # noqa: ARG002, PLR6301
        if isinstance(event, KeyEvent) and event.key == "q":
            return Outcome.EXIT
        return Outcome.NO_CHANGE


class ThreadNavigationHandler(Handler):
    """``j``/``→`` next thread, ``k``/``←`` previous thread, Tab next view."""

    def handle(self, event: InputEvent, session: Session) -> Outcome:  # noqa: PLR6301
        if not isinstance(event, KeyEvent):
            return Outcome.NO_CHANGE
        controller = session.controller
        match event.key:
            case "j" | Key.RIGHT:
                return changed(controller.next_thread())
            case "k" | Key.LEFT:
                return changed(controller.prev_thread())
            case Key.TAB:
                controller.advance_view()
                return Outcome.CHANGED
            case _:
                return Outcome.NO_CHANGE


class ScrollHandler(Handler):
    """Arrow keys, paging, Home/End and the mouse wheel."""

    def handle(self, event: InputEvent, session: Session) -> Outcome:  # noqa: PLR6301
        step = self._step(event, session)
        if step is None:
            return Outcome.NO_CHANGE
        return changed(session.controller.scroll(step))

    @staticmethod
    def _step(event: InputEvent, session: Session) -> int | None:
        if isinstance(event, MouseEvent):
            return -scroll.WHEEL_STEP if event.wheel is Wheel.UP else scroll.WHEEL_STEP
        if not isinstance(event, KeyEvent):
            return None
        match event.key:
            case Key.DOWN:
                return scroll.LINE_STEP
            case Key.UP:
                return -scroll.LINE_STEP
            case Key.PAGE_DOWN:
                return scroll.page_step(session.terminal.viewport_height())
            case Key.PAGE_UP:
                return -scroll.page_step(session.terminal.viewport_height())
            case Key.HOME:
                return scroll.TO_START
            case Key.END:
                return scroll.TO_END
            case _:
                return None


class ResizeHandler(Handler):
    def handle(self, event: InputEvent, session: Session) -> Outcome:  # noqa: ARG002, PLR6301
        return Outcome.CHANGED if isinstance(event, ResizeEvent) else Outcome.NO_CHANGE
