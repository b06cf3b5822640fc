"""Control loop driving a ``Session``.

Drains the session's channels, runs timer upkeep and hands a fresh view to
the render collaborator whenever something changed.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..log import get_logger
from .session import Session, SessionView

logger = get_logger("loop")


@dataclass(frozen=True)
class SessionLoopTiming:
    """Timing constants controlling the control loop."""

    tick_seconds: float = 0.05


def run_session_loop(
    session: Session,
    stop: threading.Event,
    render: Callable[[SessionView], None] | None = None,
    timing: SessionLoopTiming = SessionLoopTiming(),
    *,
    handle_input: Callable[[Session, float], None] | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Run until ``stop`` is set, then flush pending cache writes.

    ``handle_input`` is called once per iteration before the channels are
    drained; it may call any ``Session`` operation.
    """
    try:
        while not stop.is_set():
            now = clock()
            if handle_input is not None:
                handle_input(session, now)
            session.drain(now)
            session.tick(now)
            if session.dirty:
                session.dirty = False
                if render is not None:
                    render(session.view())
            stop.wait(timing.tick_seconds)
    finally:
        session.mirror.flush()
        logger.debug("Session loop stopped")


__all__ = ["SessionLoopTiming", "run_session_loop"]
