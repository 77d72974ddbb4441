"""Durable set of skipped thread IDs.

The set is stored as a JSON array under the state directory and written back
in full after every change. Membership is the only thing that matters; the
order on disk is not significant.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ghcr.paths import state_dir

logger = logging.getLogger(__name__)

SKIP_FILENAME = "skipped.json"


class SkipStoreError(Exception):
    """Raised when the skip list cannot be read or written."""


def default_path() -> Path:
    """Return ``<state dir>/skipped.json``."""
    return state_dir() / SKIP_FILENAME


class SkipStore:
    """The set of skipped thread IDs and the single writer of its file."""

    def __init__(self, path: Path, skipped: set[str] | None = None) -> None:
        self.path = path
        self._skipped: set[str] = set(skipped or ())

    @classmethod
    def load(cls, path: Path | None = None) -> SkipStore:
        """Read the skip list.

        A missing file is an empty set. Any other I/O error is raised as
        ``SkipStoreError``. A file that is not a JSON array of strings is
        logged and treated as empty.
        """
        path = path or default_path()
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No skip list at %s, starting empty", path)
            return cls(path)
        except OSError as exc:
            msg = f"Cannot read skip list {path}: {exc}"
            raise SkipStoreError(msg) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring unreadable skip list %s: %s", path, exc)
            return cls(path)
        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            logger.warning("Ignoring skip list %s: expected a JSON array of strings", path)
            return cls(path)

        logger.info("Loaded %d skipped thread(s) from %s", len(data), path)
        return cls(path, set(data))

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._skipped

    def __len__(self) -> int:
        return len(self._skipped)

    def ids(self) -> frozenset[str]:
        return frozenset(self._skipped)

    def add(self, thread_id: str) -> None:
        """Mark a thread as skipped, persisting if the set changed."""
        if thread_id in self._skipped:
            return
        self._skipped.add(thread_id)
        self.persist()

    def remove(self, thread_id: str) -> None:
        """Unmark a thread, persisting if the set changed."""
        if thread_id not in self._skipped:
            return
        self._skipped.discard(thread_id)
        self.persist()

    def persist(self) -> None:
        """Write the whole set back to disk.

        Raises:
            SkipStoreError: If the directory or file cannot be written. The
                in-memory set keeps its new contents.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(sorted(self._skipped), indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            msg = f"failed to persist skip state to {self.path}: {exc}"
            raise SkipStoreError(msg) from exc
        logger.debug("Persisted %d skipped thread(s) to %s", len(self._skipped), self.path)
