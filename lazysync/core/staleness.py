"""Per-folder staleness fingerprints and the transient-state poll set."""

from __future__ import annotations

from dataclasses import dataclass

from ..log import get_logger
from ..model.performance import PerformanceState
from ..model.types import FolderStatus

TRANSIENT_STATES = frozenset({"scanning", "syncing", "cleaning", "scan-waiting", "sync-waiting"})

logger = get_logger("staleness")


def is_transient(state: str) -> bool:
    """States expected to change soon and therefore worth polling."""
    return state in TRANSIENT_STATES


@dataclass(frozen=True)
class StatusObservation:
    """Outcome of feeding one status snapshot to the tracker."""

    folder_id: str
    transient: bool
    sequence_changed: bool
    receive_only_changed: bool

    @property
    def needs_refresh(self) -> bool:
        return self.sequence_changed


class StalenessTracker:
    """Compares fresh status snapshots against last-known fingerprints.

    Poll-set membership follows the reported state: transient folders are
    added or kept, stable folders removed. Fingerprints are updated on every
    observation; the first one for a folder never reports a change.
    """

    def __init__(self, performance: PerformanceState) -> None:
        self.performance = performance
        self.poll_set: set[str] = set()

    def observe(self, folder_id: str, status: FolderStatus) -> StatusObservation:
        sequences = self.performance.last_known_sequences
        counts = self.performance.last_known_receive_only_counts

        last_sequence = sequences.get(folder_id)
        sequence_changed = last_sequence is not None and last_sequence != status.sequence
        last_count = counts.get(folder_id)
        receive_only_changed = last_count is not None and last_count != status.receive_only_total_items

        sequences[folder_id] = status.sequence
        counts[folder_id] = status.receive_only_total_items

        transient = is_transient(status.state)
        if transient:
            self.poll_set.add(folder_id)
        else:
            self.poll_set.discard(folder_id)

        if sequence_changed:
            logger.debug("Folder %s sequence %s -> %s", folder_id, last_sequence, status.sequence)
        return StatusObservation(
            folder_id=folder_id,
            transient=transient,
            sequence_changed=sequence_changed,
            receive_only_changed=receive_only_changed,
        )

    def mark_for_polling(self, folder_id: str) -> None:
        """Poll a folder until its next stable snapshot (e.g. after a rescan request)."""
        self.poll_set.add(folder_id)

    def folders_to_poll(self) -> list[str]:
        return sorted(self.poll_set)

    def forget(self, folder_id: str) -> None:
        self.poll_set.discard(folder_id)
        self.performance.last_known_sequences.pop(folder_id, None)
        self.performance.last_known_receive_only_counts.pop(folder_id, None)


__all__ = ["TRANSIENT_STATES", "StalenessTracker", "StatusObservation", "is_transient"]
