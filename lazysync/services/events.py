"""Long-poll consumer of the daemon event feed.

Events are decoded into one variant per recognized kind, mapped to cache
invalidations and published on a queue together with a per-batch watermark.
The listener never touches navigation or performance state.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from queue import Queue

from ..errors import ApiStatusError, LazySyncError, ProtocolError, TransportError
from ..log import get_logger
from ..logic.timestamps import parse_rfc3339
from ..model.types import CacheInvalidation, DirectoryInvalidation, FileInvalidation
from .api import EVENT_POLL_TIMEOUT, SyncthingClient

TRANSPORT_BACKOFF_SECONDS = 5.0
PROTOCOL_BACKOFF_SECONDS = 1.0

INDEX_UPDATED_KINDS = frozenset({"LocalIndexUpdated"})
ITEM_CHANGED_KINDS = frozenset({"ItemFinished", "LocalChangeDetected", "RemoteChangeDetected"})

logger = get_logger("events")


def parse_event_time(text: object, fallback: Callable[[], float] = time.time) -> float:
    """Parse an RFC 3339 event timestamp into epoch seconds.

    Unparsable input falls back to the current time.
    """
    parsed = parse_rfc3339(text) if isinstance(text, str) else None
    if parsed is None:
        logger.debug("Unparsable event time %r, using now", text)
        return fallback()
    return parsed


@dataclass(frozen=True)
class IndexUpdatedEvent:
    """A batch of changed filenames under one folder."""

    id: int
    folder_id: str
    filenames: tuple[str, ...]
    time: float


@dataclass(frozen=True)
class ItemChangedEvent:
    """One item written locally, remotely or finished syncing."""

    id: int
    kind: str
    folder_id: str
    item: str
    item_type: str
    time: float

    @property
    def is_directory(self) -> bool:
        return self.item_type == "dir" or self.item.endswith("/")


@dataclass(frozen=True)
class IgnoredEvent:
    """Any event kind that does not affect the mirror."""

    id: int
    kind: str


DecodedEvent = IndexUpdatedEvent | ItemChangedEvent | IgnoredEvent


def decode_event(raw: object) -> DecodedEvent:
    """Decode one raw event object; raises ``ProtocolError`` on an unusable shape."""
    if not isinstance(raw, dict):
        raise ProtocolError(f"Event is not an object: {raw!r}")
    event_id = raw.get("id")
    if isinstance(event_id, bool) or not isinstance(event_id, int) or event_id < 0:
        raise ProtocolError(f"Event has no usable id: {raw!r}")
    kind = str(raw.get("type") or "")
    data = raw.get("data")
    if not isinstance(data, dict):
        return IgnoredEvent(id=event_id, kind=kind)
    folder_id = data.get("folder")
    if not isinstance(folder_id, str) or not folder_id:
        return IgnoredEvent(id=event_id, kind=kind)

    if kind in INDEX_UPDATED_KINDS:
        filenames = data.get("filenames")
        if not isinstance(filenames, list):
            return IgnoredEvent(id=event_id, kind=kind)
        return IndexUpdatedEvent(
            id=event_id,
            folder_id=folder_id,
            filenames=tuple(name for name in filenames if isinstance(name, str) and name),
            time=parse_event_time(raw.get("time")),
        )
    if kind in ITEM_CHANGED_KINDS:
        item = data.get("item") or data.get("path")
        if not isinstance(item, str) or not item:
            return IgnoredEvent(id=event_id, kind=kind)
        return ItemChangedEvent(
            id=event_id,
            kind=kind,
            folder_id=folder_id,
            item=item,
            item_type=str(data.get("type") or ""),
            time=parse_event_time(raw.get("time")),
        )
    return IgnoredEvent(id=event_id, kind=kind)


def invalidations_for(event: DecodedEvent) -> list[CacheInvalidation]:
    """Cache invalidations implied by one decoded event, in emission order."""
    if isinstance(event, IndexUpdatedEvent):
        return [FileInvalidation(event.folder_id, name, event.time) for name in event.filenames]
    if isinstance(event, ItemChangedEvent):
        if event.is_directory:
            return [DirectoryInvalidation(event.folder_id, event.item.rstrip("/"), event.time)]
        return [FileInvalidation(event.folder_id, event.item, event.time)]
    return []


def is_gap(last_id: int, event_id: int) -> bool:
    """Missed events: the id is not contiguous with a known previous id."""
    return last_id > 0 and event_id != last_id + 1


class EventListener:
    """Long-poll loop publishing invalidations and watermarks on queues.

    ``run`` returns only once ``stop`` is set; one long-poll is never
    cancelled mid-flight.
    """

    def __init__(
        self,
        client: SyncthingClient,
        last_event_id: int,
        invalidations: Queue[CacheInvalidation],
        watermarks: Queue[int],
        *,
        stop: threading.Event | None = None,
        sleep: Callable[[float], object] | None = None,
        poll_timeout: int = EVENT_POLL_TIMEOUT,
    ) -> None:
        self.client = client
        self.last_id = max(0, int(last_event_id))
        self.invalidations = invalidations
        self.watermarks = watermarks
        self.stop = stop or threading.Event()
        self._sleep = sleep or self.stop.wait
        self.poll_timeout = poll_timeout
        self.gap_count = 0
        self.on_error: Callable[[LazySyncError], None] | None = None
        self.on_success: Callable[[], None] | None = None
        self._thread: threading.Thread | None = None

    def process_batch(self, raw_events: list[object]) -> int:
        """Apply one reply in arrival order; returns the number of events consumed.

        The whole batch is decoded before anything is published so a
        malformed reply never leaves a partially applied batch behind.
        """
        decoded = [decode_event(raw) for raw in raw_events]
        for event in decoded:
            if is_gap(self.last_id, event.id):
                self.gap_count += 1
                logger.warning(
                    "Missed events: last id %d, received %d; mirror may be stale until the next reconciliation",
                    self.last_id,
                    event.id,
                )
            for invalidation in invalidations_for(event):
                logger.debug("Invalidation %s", invalidation)
                self.invalidations.put(invalidation)
            self.last_id = event.id
        if decoded:
            self.watermarks.put(self.last_id)
        return len(decoded)

    def poll_once(self) -> int:
        """One long-poll iteration with the listener's failure semantics."""
        logger.debug("Polling events since %d", self.last_id)
        try:
            raw_events = self.client.get_events(self.last_id, timeout=self.poll_timeout)
            count = self.process_batch(raw_events)
        except ProtocolError as exc:
            logger.warning("Dropping malformed event reply: %s", exc)
            self._report(exc)
            self._sleep(PROTOCOL_BACKOFF_SECONDS)
            return 0
        except (TransportError, ApiStatusError) as exc:
            logger.warning("Event poll failed, retrying in %.0fs: %s", TRANSPORT_BACKOFF_SECONDS, exc)
            self._report(exc)
            self._sleep(TRANSPORT_BACKOFF_SECONDS)
            return 0
        if self.on_success is not None:
            self.on_success()
        return count

    def _report(self, exc: LazySyncError) -> None:
        if self.on_error is not None:
            self.on_error(exc)

    def run(self) -> None:
        logger.debug("Event listener started at id %d", self.last_id)
        while not self.stop.is_set():
            self.poll_once()
        logger.debug("Event listener stopped at id %d", self.last_id)

    def start(self) -> threading.Thread:
        thread = threading.Thread(target=self.run, name="lazysync-events", daemon=True)
        self._thread = thread
        thread.start()
        return thread


__all__ = [
    "TRANSPORT_BACKOFF_SECONDS",
    "DecodedEvent",
    "EventListener",
    "IgnoredEvent",
    "IndexUpdatedEvent",
    "ItemChangedEvent",
    "decode_event",
    "invalidations_for",
    "is_gap",
    "parse_event_time",
]
