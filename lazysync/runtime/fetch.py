"""Background fetch dispatch.

Work runs on a ``ThreadPoolExecutor``; outcomes come back through a queue
the control loop drains with ``get_nowait()``. Workers never touch control
loop state.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from queue import Empty, Queue

from ..errors import LazySyncError
from ..log import get_logger

logger = get_logger("fetch")


@dataclass(frozen=True)
class FetchRequest:
    """Identifies one unit of background work.

    ``kind`` is ``"folders"``, ``"browse"``, ``"status"``, ``"out_of_sync"``,
    ``"sync_state"`` or ``"action"``.
    """

    kind: str
    folder_id: str = ""
    path: str = ""
    key: str = ""


@dataclass(frozen=True)
class FetchResult:
    request: FetchRequest
    value: object = None
    error: LazySyncError | None = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class FetchExecutor:
    """Runs fetch callables off the control loop and queues their results."""

    def __init__(
        self,
        workers: int = 4,
        *,
        executor: Executor | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, workers),
            thread_name_prefix="lazysync-fetch",
        )
        self._clock = clock
        self.results: Queue[FetchResult] = Queue()

    def submit(self, request: FetchRequest, work: Callable[[], object]) -> None:
        def run() -> None:
            started = self._clock()
            try:
                value = work()
            except LazySyncError as exc:
                elapsed = (self._clock() - started) * 1000.0
                self.results.put(FetchResult(request=request, error=exc, elapsed_ms=elapsed))
                return
            except Exception as exc:
                logger.exception("Unexpected failure in %s fetch", request.kind)
                elapsed = (self._clock() - started) * 1000.0
                wrapped = LazySyncError(f"{request.kind} failed: {exc}")
                wrapped.__cause__ = exc
                self.results.put(FetchResult(request=request, error=wrapped, elapsed_ms=elapsed))
                return
            elapsed = (self._clock() - started) * 1000.0
            self.results.put(FetchResult(request=request, value=value, elapsed_ms=elapsed))

        self._executor.submit(run)

    def drain_results(self) -> list[FetchResult]:
        """Drain all completed fetch results."""
        out: list[FetchResult] = []
        while True:
            try:
                out.append(self.results.get_nowait())
            except Empty:
                break
        return out

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)


__all__ = ["FetchExecutor", "FetchRequest", "FetchResult"]
