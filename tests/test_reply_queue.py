"""Tests for the reply queue and its publish protocol."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ghcr.gh import GhError
from ghcr.models import QueuedReply
from ghcr.reply_queue import ReplyQueue


def _queue(*bodies: str) -> ReplyQueue:
    queue = ReplyQueue()
    for position, body in enumerate(bodies, start=1):
        queue.enqueue(position, body)
    return queue


class TestEnqueue:
    def test_fifo(self):
        queue = _queue("one", "two")
        assert [r.body for r in queue] == ["one", "two"]
        assert len(queue) == 2
        assert queue

    def test_returns_reply(self):
        reply = ReplyQueue().enqueue(77, "hi")
        assert reply == QueuedReply(comment_database_id=77, body="hi")

    def test_empty_body_rejected(self):
        with pytest.raises(ValidationError):
            ReplyQueue().enqueue(1, "")


class TestPublishAll:
    def test_publishes_in_order_and_drains(self):
        queue = _queue("one", "two", "three")
        sent: list[str] = []
        assert queue.publish_all(lambda reply: sent.append(reply.body)) == 3
        assert sent == ["one", "two", "three"]
        assert not queue

    def test_empty_queue(self):
        calls: list[QueuedReply] = []
        assert ReplyQueue().publish_all(calls.append) == 0
        assert calls == []

    def test_progress_positions(self):
        queue = _queue("one", "two")
        progress: list[tuple[int, int]] = []
        queue.publish_all(lambda _reply: None, on_progress=lambda i, n: progress.append((i, n)))
        assert progress == [(1, 2), (2, 2)]

    @pytest.mark.parametrize("failing", [1, 2, 3])
    def test_failure_leaves_failed_and_later_replies(self, failing: int):
        queue = _queue("one", "two", "three")
        attempts: list[int] = []

        def publish(reply: QueuedReply) -> None:
            attempts.append(reply.comment_database_id)
            if reply.comment_database_id == failing:
                raise GhError("HTTP 500")

        with pytest.raises(GhError, match="HTTP 500"):
            queue.publish_all(publish)

        assert attempts == list(range(1, failing + 1))
        assert len(queue) == 3 - failing + 1
        assert [r.comment_database_id for r in queue] == list(range(failing, 4))

    def test_retry_after_failure_resumes(self):
        queue = _queue("one", "two")
        fail = {"once": True}
        sent: list[str] = []

        def publish(reply: QueuedReply) -> None:
            if reply.body == "two" and fail.pop("once", False):
                raise GhError("timeout")
            sent.append(reply.body)

        with pytest.raises(GhError):
            queue.publish_all(publish)
        assert queue.publish_all(publish) == 1
        assert sent == ["one", "two"]
        assert not queue
