"""Replies waiting to be published, and the publish protocol.

Replies are published strictly front to back, one at a time. The front item
is removed only after its publish call returns; a failure stops the drain and
leaves that item and everything behind it queued in the original order.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from ghcr.models import QueuedReply

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)


class ReplyQueue:
    """FIFO of composed replies keyed to their target comment."""

    def __init__(self) -> None:
        self._items: deque[QueuedReply] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[QueuedReply]:
        return iter(self._items)

    def enqueue(self, comment_database_id: int, body: str) -> QueuedReply:
        """Append a reply to the back of the queue."""
        reply = QueuedReply(comment_database_id=comment_database_id, body=body)
        self._items.append(reply)
        logger.debug("Queued reply to comment %d (%d pending)", comment_database_id, len(self._items))
        return reply

    def publish_all(
        self,
        publish: Callable[[QueuedReply], None],
        on_progress: Callable[[int, int], None] | None = None,
    ) -> int:
        """Publish every queued reply in order.

        Args:
            publish: Sends one reply; raises on failure.
            on_progress: Called with ``(position, total)`` before each send,
                ``position`` counting from 1.

        Returns:
            The number of replies published.

        Raises:
            Whatever *publish* raised. The failed reply stays at the front.
        """
        total = len(self._items)
        published = 0
        while self._items:
            reply = self._items[0]
            if on_progress is not None:
                on_progress(published + 1, total)
            try:
                publish(reply)
            except Exception:
                logger.warning(
                    "Publishing reply %d/%d failed; %d reply(ies) left queued",
                    published + 1,
                    total,
                    len(self._items),
                )
                raise
            self._items.popleft()
            published += 1
        logger.info("Published %d queued reply(ies)", published)
        return published
