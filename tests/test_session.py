"""Tests for the session loop and its actions."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import pytest
from helpers.terminal import FakeTerminal
from helpers.threads import BASE_TIME, make_comment, make_thread
from rich.console import Console

if TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture

from ghcr.config import Config, DisplayConfig, EditorConfig
from ghcr.controller import ViewController
from ghcr.gh import GhError
from ghcr.handlers import Outcome
from ghcr.models import QueuedReply, ThreadView
from ghcr.session import Session, dump_view
from ghcr.skip_store import SkipStore
from ghcr.terminal import Key, KeyEvent


def _threads():
    return [
        make_thread("t1", minutes=1, comments=[make_comment(11, minutes=1), make_comment(12, minutes=5)]),
        make_thread("t2", minutes=2, comments=[make_comment(21, minutes=2)]),
    ]


@pytest.fixture
def store(tmp_path: Path) -> SkipStore:
    return SkipStore(tmp_path / "skipped.json")


def _session(store: SkipStore, events=(), **kwargs) -> Session:
    kwargs.setdefault("fetch", _threads)
    kwargs.setdefault("publish", lambda _reply: None)
    return Session(
        controller=ViewController(_threads(), store),
        pr_number=42,
        terminal=FakeTerminal(events),
        clock=lambda: BASE_TIME,
        **kwargs,
    )


class TestRun:
    def test_renders_once_then_per_change(self, store: SkipStore):
        session = _session(store, ["j", "x", None, "q"])
        session.run()
        assert len(session.terminal.frames) == 2
        assert session.terminal.last_frame_text()[0] == "Thread 2/2 (unresolved)   PR #42"

    def test_events_processed_in_order(self, store: SkipStore):
        session = _session(store, ["j", "s", KeyEvent(Key.TAB), KeyEvent(Key.TAB)])
        session.run()
        assert session.controller.view is ThreadView.SKIPPED
        assert [t.thread_id for t in session.controller.current_threads] == ["t2"]

    def test_ctrl_c_stops_immediately(self, store: SkipStore):
        session = _session(store, [KeyEvent(Key.CTRL_C), "j"])
        session.run()
        assert session.terminal.events == ["j"]
        assert session.controller.current_index == 0

    def test_dispatch_stops_at_first_handler(self, store: SkipStore, mocker: MockerFixture):
        session = _session(store)
        first = mocker.Mock()
        first.handle.return_value = Outcome.CHANGED
        second = mocker.Mock()
        session.handlers = [first, second]
        assert session.dispatch(KeyEvent("z")) is Outcome.CHANGED
        second.handle.assert_not_called()

    def test_render_uses_viewport(self, store: SkipStore):
        session = _session(store)
        session.terminal.height = 3
        session.render()
        assert len(session.terminal.frames[-1]) == 3


class TestComposeReply:
    def test_queues_reply_to_last_comment(self, store: SkipStore, mocker: MockerFixture):
        launch = mocker.patch("ghcr.session.launch_editor", return_value="Fixed, thanks.")
        session = _session(store)
        session.compose_reply()
        assert list(session.queue) == [QueuedReply(comment_database_id=12, body="Fixed, thanks.")]
        assert session.controller.status_line == "Reply queued (1 pending)."
        assert session.terminal.suspensions == 1
        template, editor = launch.call_args[0]
        assert "# Reply to the thread on src/app.py (open status)." in template
        assert editor == ""

    def test_cancelled(self, store: SkipStore, mocker: MockerFixture):
        mocker.patch("ghcr.session.launch_editor", return_value=None)
        session = _session(store)
        session.compose_reply()
        assert not session.queue
        assert session.controller.status_line == "Reply cancelled."

    def test_editor_from_config(self, store: SkipStore, mocker: MockerFixture):
        launch = mocker.patch("ghcr.session.launch_editor", return_value=None)
        session = _session(store, config=Config(editor=EditorConfig(command="hx")))
        session.compose_reply()
        assert launch.call_args[0][1] == "hx"

    def test_no_thread(self, tmp_path: Path, mocker: MockerFixture):
        launch = mocker.patch("ghcr.session.launch_editor")
        session = Session(
            controller=ViewController([], SkipStore(tmp_path / "s.json")),
            pr_number=1,
            terminal=FakeTerminal(),
            fetch=list,
            publish=lambda _reply: None,
        )
        session.compose_reply()
        launch.assert_not_called()
        assert session.controller.status_line == "No thread selected."

    def test_reply_key_shows_queue_banner(self, store: SkipStore, mocker: MockerFixture):
        mocker.patch("ghcr.session.launch_editor", return_value="LGTM")
        session = _session(store, ["r"])
        session.run()
        assert "1 replies queued – press p to publish" in session.terminal.last_frame_text()


class TestPublishQueue:
    def test_publishes_in_order_then_refreshes(self, store: SkipStore):
        sent: list[int] = []
        fetched: list[int] = []

        def fetch():
            fetched.append(1)
            return [make_thread("t2", minutes=2)]

        session = _session(store, publish=lambda reply: sent.append(reply.comment_database_id), fetch=fetch)
        session.queue.enqueue(12, "one")
        session.queue.enqueue(21, "two")
        session.publish_queue()
        assert sent == [12, 21]
        assert fetched == [1]
        assert session.controller.status_line == "Published 2 replies ✓"
        assert [t.thread_id for t in session.controller.current_threads] == ["t2"]

    def test_progress_rendered(self, store: SkipStore):
        session = _session(store)
        session.queue.enqueue(12, "one")
        session.queue.enqueue(21, "two")
        session.publish_queue()
        statuses = [frame[-1][0][0] for frame in session.terminal.frames]
        assert statuses == ["Publishing reply 1/2", "Publishing reply 2/2"]

    def test_empty_queue_clears_status(self, store: SkipStore):
        session = _session(store)
        session.controller.set_status("old")
        session.publish_queue()
        assert session.controller.status_line is None

    def test_refresh_failure_after_publish(self, store: SkipStore):
        def fetch():
            raise GhError("HTTP 500")

        session = _session(store, fetch=fetch)
        session.queue.enqueue(12, "one")
        session.publish_queue()
        assert session.controller.status_line == "Published 1 replies ✓ (refresh failed: HTTP 500)"
        assert not session.queue

    def test_publish_failure_propagates(self, store: SkipStore):
        def publish(reply):
            raise GhError("HTTP 422")

        session = _session(store, publish=publish)
        session.queue.enqueue(12, "one")
        with pytest.raises(GhError):
            session.publish_queue()
        assert len(session.queue) == 1


class TestDumpView:
    def test_prints_current_view(self, store: SkipStore):
        out = io.StringIO()
        console = Console(file=out, width=120, color_system=None, highlight=False, soft_wrap=True)
        controller = ViewController(_threads(), store)
        dump_view(controller, 42, Config(display=DisplayConfig(wrap_width=40)), console=console)
        lines = out.getvalue().splitlines()
        assert lines[0] == "Thread 1/2 (unresolved)   PR #42"
        assert lines[1].startswith("src/app.py  unresolved  ")
        assert lines[-1].endswith("q quit")

    def test_empty(self, store: SkipStore):
        out = io.StringIO()
        console = Console(file=out, width=120, color_system=None)
        dump_view(ViewController([], store), 3, console=console)
        assert out.getvalue().splitlines()[0] == "PR #3 – No unresolved threads to display."
