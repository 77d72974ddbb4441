"""Tests for the input handlers and their dispatch order."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from helpers.terminal import FakeTerminal
from helpers.threads import BASE_TIME, make_thread, thread_node

if TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture

from ghcr.controller import ViewController
from ghcr.editor import EditorError
from ghcr.gh import GhError
from ghcr.handlers import (
    InterruptHandler,
    Outcome,
    PublishHandler,
    QuitHandler,
    RefreshHandler,
    ReplyHandler,
    ResizeHandler,
    ScrollHandler,
    SkipHandler,
    ThreadNavigationHandler,
    build_handlers,
)
from ghcr.models import Repo, ThreadView
from ghcr.review_threads import ThreadFetchError, fetch_threads
from ghcr.session import Session
from ghcr.skip_store import SkipStore
from ghcr.terminal import Key, KeyEvent, MouseEvent, ResizeEvent, Wheel


@pytest.fixture
def session(tmp_path: Path) -> Session:
    threads = [make_thread("t1", minutes=1), make_thread("t2", minutes=2), make_thread("t3", resolved=True)]
    controller = ViewController(threads, SkipStore(tmp_path / "skipped.json"))
    return Session(
        controller=controller,
        pr_number=7,
        terminal=FakeTerminal(height=10),
        fetch=lambda: threads,
        publish=lambda _reply: None,
        clock=lambda: BASE_TIME,
    )


class TestBuildHandlers:
    def test_priority_order(self):
        assert [type(h) for h in build_handlers()] == [
            InterruptHandler,
            QuitHandler,
            ThreadNavigationHandler,
            ScrollHandler,
            SkipHandler,
            ReplyHandler,
            PublishHandler,
            RefreshHandler,
            ResizeHandler,
        ]


class TestQuit:
    def test_ctrl_c_exits(self, session: Session):
        assert InterruptHandler().handle(KeyEvent(Key.CTRL_C), session) is Outcome.EXIT

    def test_q_exits(self, session: Session):
        assert QuitHandler().handle(KeyEvent("q"), session) is Outcome.EXIT

    def test_other_keys_ignored(self, session: Session):
        assert QuitHandler().handle(KeyEvent("x"), session) is Outcome.NO_CHANGE
        assert InterruptHandler().handle(MouseEvent(Wheel.UP), session) is Outcome.NO_CHANGE


class TestThreadNavigation:
    @pytest.mark.parametrize("key", ["j", Key.RIGHT])
    def test_next(self, session: Session, key: str):
        assert ThreadNavigationHandler().handle(KeyEvent(key), session) is Outcome.CHANGED
        assert session.controller.current_index == 1

    @pytest.mark.parametrize("key", ["k", Key.LEFT])
    def test_prev_wraps(self, session: Session, key: str):
        ThreadNavigationHandler().handle(KeyEvent(key), session)
        assert session.controller.current_index == 1

    def test_tab_switches_view(self, session: Session):
        assert ThreadNavigationHandler().handle(KeyEvent(Key.TAB), session) is Outcome.CHANGED
        assert session.controller.view is ThreadView.ACTIVE

    def test_empty_view_no_change(self, session: Session):
        session.controller.view = ThreadView.SKIPPED
        assert ThreadNavigationHandler().handle(KeyEvent("j"), session) is Outcome.NO_CHANGE


class TestScrollHandler:
    @pytest.mark.parametrize(
        ("event", "offset"),
        [
            (KeyEvent(Key.DOWN), 1),
            (MouseEvent(Wheel.DOWN), 3),
            (KeyEvent(Key.PAGE_DOWN), 9),
        ],
    )
    def test_steps(self, session: Session, event, offset: int):
        assert ScrollHandler().handle(event, session) is Outcome.CHANGED
        assert session.controller.window.offset == offset

    def test_up_and_home(self, session: Session):
        session.controller.window.offset = 20
        ScrollHandler().handle(KeyEvent(Key.UP), session)
        assert session.controller.window.offset == 19
        ScrollHandler().handle(MouseEvent(Wheel.UP), session)
        assert session.controller.window.offset == 16
        ScrollHandler().handle(KeyEvent(Key.PAGE_UP), session)
        assert session.controller.window.offset == 7
        ScrollHandler().handle(KeyEvent(Key.HOME), session)
        assert session.controller.window.offset == 0

    def test_end_then_render_shows_last_page(self, session: Session):
        ScrollHandler().handle(KeyEvent(Key.END), session)
        session.render()
        frame = session.frame()
        assert session.terminal.frames[-1] == frame[-10:]

    def test_unrelated_event(self, session: Session):
        assert ScrollHandler().handle(KeyEvent("x"), session) is Outcome.NO_CHANGE
        assert ScrollHandler().handle(ResizeEvent(), session) is Outcome.NO_CHANGE


class TestSkipHandler:
    def test_skips_then_unskips(self, session: Session):
        handler = SkipHandler()
        assert handler.handle(KeyEvent("s"), session) is Outcome.CHANGED
        assert session.controller.status_line == "Thread skipped."
        session.controller.view = ThreadView.SKIPPED
        handler.handle(KeyEvent("s"), session)
        assert session.controller.status_line == "Thread unskipped."

    def test_other_key(self, session: Session):
        assert SkipHandler().handle(KeyEvent("x"), session) is Outcome.NO_CHANGE


class TestReplyHandler:
    def test_editor_failure_becomes_status(self, session: Session, mocker: MockerFixture):
        mocker.patch("ghcr.session.launch_editor", side_effect=EditorError("editor vim exited with status 1"))
        assert ReplyHandler().handle(KeyEvent("r"), session) is Outcome.CHANGED
        assert session.controller.status_line == "Failed to compose reply: editor vim exited with status 1"
        assert not session.queue
        assert session.terminal.suspensions == 1


class TestPublishHandler:
    def test_failure_becomes_status(self, session: Session):
        session.queue.enqueue(1, "first")
        session.queue.enqueue(2, "second")

        def publish(reply):
            if reply.comment_database_id == 2:
                raise GhError("HTTP 502")

        session.publish = publish
        assert PublishHandler().handle(KeyEvent("p"), session) is Outcome.CHANGED
        assert session.controller.status_line == "Failed to publish replies: HTTP 502 (1 still queued)"
        assert [r.body for r in session.queue] == ["second"]


class TestRefreshHandler:
    def test_success(self, session: Session):
        session.fetch = lambda: [make_thread("t9")]
        RefreshHandler().handle(KeyEvent("g"), session)
        assert session.controller.status_line == "Threads refreshed."
        assert session.controller.current_thread().thread_id == "t9"

    def test_failure_keeps_views(self, session: Session):
        def fetch():
            raise GhError("HTTP 401")

        session.fetch = fetch
        RefreshHandler().handle(KeyEvent("g"), session)
        assert session.controller.status_line == "Failed to refresh threads: HTTP 401"
        assert len(session.controller.current_threads) == 2


class TestRefreshMalformedPayload:
    def test_contract_error_becomes_status(self, session: Session, mocker: MockerFixture):
        node = thread_node("PRRT_9")
        node["path"] = 7
        mocker.patch(
            "ghcr.review_threads.gh.graphql",
            return_value={
                "data": {
                    "repository": {
                        "pullRequest": {"reviewThreads": {"pageInfo": {"hasNextPage": False}, "nodes": [node]}},
                    },
                },
            },
        )
        session.fetch = lambda: fetch_threads(Repo(owner="octo", name="widgets"), 7)
        before = {view: list(session.controller.threads_for(view)) for view in ThreadView}

        assert RefreshHandler().handle(KeyEvent("g"), session) is Outcome.CHANGED

        assert session.controller.status_line.startswith("Failed to refresh threads: malformed thread PRRT_9")
        assert {view: session.controller.threads_for(view) for view in ThreadView} == before

    def test_contract_error_after_publish_keeps_session(self, session: Session):
        def fetch():
            raise ThreadFetchError("thread PRRT_1 missing comments")

        session.fetch = fetch
        session.queue.enqueue(1, "thanks")
        assert PublishHandler().handle(KeyEvent("p"), session) is Outcome.CHANGED
        assert session.controller.status_line == (
            "Published 1 replies ✓ (refresh failed: thread PRRT_1 missing comments)"
        )


class TestResizeHandler:
    def test_resize_rerenders(self, session: Session):
        assert ResizeHandler().handle(ResizeEvent(), session) is Outcome.CHANGED
        assert ResizeHandler().handle(KeyEvent("x"), session) is Outcome.NO_CHANGE
