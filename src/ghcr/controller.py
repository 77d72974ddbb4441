"""View state for a review session.

``ViewController`` owns the three thread lists (unresolved, active, skipped),
one cursor per view, the current view, the status line and the scroll
position. Every structural change goes through it so the lists stay
consistent:

- a thread ID is in exactly one of active/skipped,
- unresolved is always rebuilt from active, never edited on its own,
- each cursor is 0 for an empty view, otherwise a valid index.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghcr.models import ThreadView
from ghcr.partition import build_unresolved, partition_threads, sort_threads
from ghcr.scroll import ScrollWindow
from ghcr.skip_store import SkipStoreError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ghcr.models import Thread
    from ghcr.skip_store import SkipStore

logger = logging.getLogger(__name__)


class ViewController:
    """Partitioned thread views with per-view selection."""

    def __init__(self, threads: Iterable[Thread], skip_store: SkipStore) -> None:
        self.skip_store = skip_store
        self.view = ThreadView.UNRESOLVED
        self.status_line: str | None = None
        self.window = ScrollWindow()
        self._threads: dict[ThreadView, list[Thread]] = {view: [] for view in ThreadView}
        self._cursors: dict[ThreadView, int] = dict.fromkeys(ThreadView, 0)

        active, skipped = partition_threads(threads, skip_store)
        self._threads[ThreadView.ACTIVE] = active
        self._threads[ThreadView.SKIPPED] = skipped
        self._threads[ThreadView.UNRESOLVED] = build_unresolved(active)

    # -- Accessors ------------------------------------------------------------

    def threads_for(self, view: ThreadView) -> list[Thread]:
        """The list backing *view*. Callers must not mutate it."""
        return self._threads[view]

    def index_for(self, view: ThreadView) -> int:
        return self._cursors[view]

    @property
    def current_threads(self) -> list[Thread]:
        return self._threads[self.view]

    @property
    def current_index(self) -> int:
        return self._cursors[self.view]

    def current_thread(self) -> Thread | None:
        threads = self.current_threads
        if not threads:
            return None
        return threads[self.current_index]

    def set_status(self, message: str) -> None:
        self.status_line = message

    def clear_status(self) -> None:
        self.status_line = None

    # -- Scrolling ------------------------------------------------------------

    def scroll(self, step: int) -> bool:
        return self.window.scroll(step)

    def reset_scroll(self) -> None:
        self.window.reset()

    # -- Cursor bookkeeping ---------------------------------------------------

    def _clamp(self, view: ThreadView) -> None:
        length = len(self._threads[view])
        if length == 0:
            self._cursors[view] = 0
        elif self._cursors[view] >= length:
            self._cursors[view] = length - 1

    def _selected_id(self, view: ThreadView) -> str | None:
        threads = self._threads[view]
        index = self._cursors[view]
        return threads[index].thread_id if index < len(threads) else None

    def _restore_selection(self, view: ThreadView, thread_id: str | None) -> None:
        """Point *view*'s cursor at *thread_id* if present, otherwise clamp."""
        if thread_id is not None:
            for position, thread in enumerate(self._threads[view]):
                if thread.thread_id == thread_id:
                    self._cursors[view] = position
                    return
        self._clamp(view)

    def _rebuild_unresolved(self, preferred: str | None = None) -> None:
        target = preferred or self._selected_id(ThreadView.UNRESOLVED)
        self._threads[ThreadView.UNRESOLVED] = build_unresolved(self._threads[ThreadView.ACTIVE])
        self._restore_selection(ThreadView.UNRESOLVED, target)

    # -- Navigation -----------------------------------------------------------

    def advance_view(self) -> None:
        """Cycle unresolved → active → skipped → unresolved."""
        self.view = self.view.next()
        self._clamp(self.view)
        self.reset_scroll()
        self.set_status(f"Showing {self.view.label} threads.")

    def next_thread(self) -> bool:
        length = len(self.current_threads)
        if length == 0:
            return False
        self._cursors[self.view] = (self.current_index + 1) % length
        self.reset_scroll()
        return True

    def prev_thread(self) -> bool:
        length = len(self.current_threads)
        if length == 0:
            return False
        self._cursors[self.view] = (self.current_index - 1) % length
        self.reset_scroll()
        return True

    # -- Skip / unskip --------------------------------------------------------

    def skip_current(self) -> None:
        """Skip in the unresolved/active views, unskip in the skipped view."""
        if self.view is ThreadView.SKIPPED:
            self.unskip_selected()
        else:
            self.skip_selected()

    def skip_selected(self) -> None:
        """Move the selected thread into the skipped view and persist it."""
        if self.view is ThreadView.SKIPPED:
            self.set_status("Cannot skip thread in skipped view.")
            return

        self._clamp(self.view)
        if not self.current_threads:
            empty = "No unresolved thread to skip." if self.view is ThreadView.UNRESOLVED else "No thread to skip."
            self.set_status(empty)
            return

        thread = self.current_threads.pop(self.current_index)
        if self.view is ThreadView.UNRESOLVED:
            # Active can disagree with unresolved in order and length, so match by ID.
            active = self._threads[ThreadView.ACTIVE]
            self._threads[ThreadView.ACTIVE] = [t for t in active if t.thread_id != thread.thread_id]
        self._clamp(ThreadView.ACTIVE)

        kept_skipped = self._selected_id(ThreadView.SKIPPED)
        self._threads[ThreadView.SKIPPED] = sort_threads([*self._threads[ThreadView.SKIPPED], thread])
        self._restore_selection(ThreadView.SKIPPED, kept_skipped)
        self._rebuild_unresolved()
        self._clamp(self.view)
        self.reset_scroll()

        try:
            self.skip_store.add(thread.thread_id)
        except SkipStoreError as exc:
            logger.warning("Skip of %s not persisted: %s", thread.thread_id, exc)
            self.set_status(f"Failed to skip thread: {exc}")
            return
        self.set_status("Thread skipped.")

    def unskip_selected(self) -> None:
        """Return the selected skipped thread to the active (and unresolved) views."""
        self._clamp(ThreadView.SKIPPED)
        skipped = self._threads[ThreadView.SKIPPED]
        if not skipped:
            self.set_status("No skipped thread to unskip.")
            return

        thread = skipped.pop(self._cursors[ThreadView.SKIPPED])
        self._clamp(ThreadView.SKIPPED)

        kept_active = self._selected_id(ThreadView.ACTIVE)
        self._threads[ThreadView.ACTIVE] = sort_threads([*self._threads[ThreadView.ACTIVE], thread])
        self._restore_selection(ThreadView.ACTIVE, kept_active)
        self._rebuild_unresolved()
        self.reset_scroll()

        try:
            self.skip_store.remove(thread.thread_id)
        except SkipStoreError as exc:
            logger.warning("Unskip of %s not persisted: %s", thread.thread_id, exc)
            self.set_status(f"Failed to unskip thread: {exc}")
            return
        self.set_status("Thread unskipped.")

    # -- Refresh --------------------------------------------------------------

    def refresh(self, threads: Iterable[Thread]) -> None:
        """Replace all views from a fresh fetch, keeping selections by thread ID."""
        selected = {view: self._selected_id(view) for view in ThreadView}
        active, skipped = partition_threads(threads, self.skip_store)
        self._threads[ThreadView.ACTIVE] = active
        self._threads[ThreadView.SKIPPED] = skipped
        self._restore_selection(ThreadView.ACTIVE, selected[ThreadView.ACTIVE])
        self._restore_selection(ThreadView.SKIPPED, selected[ThreadView.SKIPPED])
        self._rebuild_unresolved(selected[ThreadView.UNRESOLVED])
        self.reset_scroll()
        logger.debug(
            "Refreshed: %d active, %d unresolved, %d skipped",
            len(active),
            len(self._threads[ThreadView.UNRESOLVED]),
            len(skipped),
        )
