"""Runtime wiring: config, background fetches, session and control loop."""

from __future__ import annotations

from .config import AppConfig, load_app_config
from .fetch import FetchExecutor, FetchRequest, FetchResult
from .loop import SessionLoopTiming, run_session_loop
from .session import ConnectionState, Session, SessionView

__all__ = [
    "AppConfig",
    "ConnectionState",
    "FetchExecutor",
    "FetchRequest",
    "FetchResult",
    "Session",
    "SessionLoopTiming",
    "SessionView",
    "load_app_config",
    "run_session_loop",
]
