"""Derive the ordered thread views from a fetch and the skip set."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Container, Iterable

    from ghcr.models import Thread


def sort_threads(threads: Iterable[Thread]) -> list[Thread]:
    """Stable sort by ``(is_resolved, created_at)``; ties keep fetch order."""
    return sorted(threads, key=lambda t: t.sort_key())


def partition_threads(threads: Iterable[Thread], skipped_ids: Container[str]) -> tuple[list[Thread], list[Thread]]:
    """Split threads into ``(active, skipped)``, each sorted."""
    active: list[Thread] = []
    skipped: list[Thread] = []
    for thread in threads:
        if thread.thread_id in skipped_ids:
            skipped.append(thread)
        else:
            active.append(thread)
    return sort_threads(active), sort_threads(skipped)


def build_unresolved(active: Iterable[Thread]) -> list[Thread]:
    """Unresolved threads of *active*, in the same order."""
    return [thread for thread in active if not thread.is_resolved]
