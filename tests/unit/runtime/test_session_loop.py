"""Tests for the control loop driving a session."""

from __future__ import annotations

import threading
import unittest
from concurrent.futures import Executor, Future

from lazysync.cache.batch import BatchWriter
from lazysync.cache.mirror import MirrorCache
from lazysync.cache.store import SQLiteStore
from lazysync.runtime.config import AppConfig
from lazysync.runtime.fetch import FetchExecutor
from lazysync.runtime.loop import SessionLoopTiming, run_session_loop
from lazysync.runtime.session import Session


class _InlineExecutor(Executor):
    def submit(self, fn, /, *args, **kwargs):  # type: ignore[override]
        future: Future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


class _NoDaemon:
    pass


class SessionLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = SQLiteStore(":memory:")
        self.mirror = MirrorCache(self.store, BatchWriter(self.store, clock=lambda: 0.0))
        self.session = Session(
            _NoDaemon(),  # type: ignore[arg-type]
            self.mirror,
            AppConfig(),
            fetcher=FetchExecutor(executor=_InlineExecutor()),
            clock=lambda: 0.0,
        )

    def tearDown(self) -> None:
        self.store.close()

    def test_renders_when_dirty_and_flushes_on_exit(self) -> None:
        stop = threading.Event()
        views = []
        inputs = []

        def render(view) -> None:
            views.append(view)
            stop.set()

        def handle_input(session: Session, now: float) -> None:
            inputs.append(now)
            session.watermarks.put(9)

        run_session_loop(
            self.session,
            stop,
            render=render,
            timing=SessionLoopTiming(tick_seconds=0.0),
            handle_input=handle_input,
            clock=lambda: 1.0,
        )

        self.assertEqual(len(views), 1)
        self.assertEqual(inputs, [1.0])
        self.assertFalse(self.session.dirty)
        self.assertEqual(self.store.get("events:last_id:http://127.0.0.1:8384"), 9)

    def test_clean_session_is_not_rendered(self) -> None:
        stop = threading.Event()
        self.session.dirty = False
        calls = []

        def handle_input(session: Session, now: float) -> None:
            calls.append(now)
            if len(calls) == 3:
                stop.set()

        run_session_loop(
            self.session,
            stop,
            render=lambda view: self.fail("unexpected render"),
            timing=SessionLoopTiming(tick_seconds=0.0),
            handle_input=handle_input,
        )
        self.assertEqual(len(calls), 3)


if __name__ == "__main__":
    unittest.main()
