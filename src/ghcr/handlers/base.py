"""Abstract base for input handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ghcr.session import Session
    from ghcr.terminal import InputEvent


class Outcome(Enum):
    """What handling an event did to the session."""

    EXIT = "exit"
    CHANGED = "changed"
    NO_CHANGE = "no_change"


class Handler(ABC):
    """One group of key or mouse bindings.

    The session offers each input event to its handlers in priority order;
    the first handler that returns something other than ``NO_CHANGE`` ends
    the dispatch for that event.
    """

    @abstractmethod
    def handle(self, event: InputEvent, session: Session) -> Outcome:
        """React to *event*, mutating *session* as needed."""


def changed(flag: bool = True) -> Outcome:  # noqa: FBT001, FBT002
    return Outcome.CHANGED if flag else Outcome.NO_CHANGE
