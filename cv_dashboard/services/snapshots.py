"""Per-batch record snapshots with sequence tokens.

Holds the records currently displayed for each batch.  Every fetch takes a
token from ``begin()``; only the holder of the latest token may replace the
records or record an error, so when refreshes overlap the most recently
triggered one wins.  Until a batch has been committed or has failed once, any
fetch may fill it, so an overlapping first load never leaves it empty.  A
failed fetch never touches the previous records.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from pydantic import BaseModel

from cv_dashboard.models.candidate import Candidate
from cv_dashboard.services.fetcher import CandidateFetcher, CandidateFetchError

logger = logging.getLogger(__name__)


class BatchSnapshot(BaseModel):
    """Records of one batch as last successfully loaded."""
    batch: str
    records: list[Candidate] = []
    loaded_at: datetime | None = None
    error: str | None = None
    latest_token: int = 0
    committed_token: int = 0

    @property
    def loaded(self) -> bool:
        return self.loaded_at is not None


class SnapshotStore:
    """Thread-safe owner of the displayed record list of every batch."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshots: dict[str, BatchSnapshot] = {}

    def _get_or_create(self, batch: str) -> BatchSnapshot:
        snapshot = self._snapshots.get(batch)
        if snapshot is None:
            snapshot = BatchSnapshot(batch=batch)
            self._snapshots[batch] = snapshot
        return snapshot

    def get(self, batch: str) -> BatchSnapshot:
        """Return a copy of the current snapshot of ``batch``."""
        with self._lock:
            return self._get_or_create(batch).model_copy()

    def begin(self, batch: str) -> int:
        """Issue a new fetch token for ``batch``."""
        with self._lock:
            snapshot = self._get_or_create(batch)
            snapshot.latest_token += 1
            return snapshot.latest_token

    def _accepts(self, snapshot: BatchSnapshot, token: int) -> bool:
        if token == snapshot.latest_token:
            return True
        # Nothing shown yet and no newer outcome: a stale result beats an empty batch
        return snapshot.committed_token == 0 and snapshot.error is None

    def commit(self, batch: str, token: int, records: list[Candidate]) -> bool:
        """Replace the records if ``token`` is still the latest one.

        Returns False when a newer fetch was started in the meantime, unless
        the batch has neither been committed nor failed yet.
        """
        with self._lock:
            snapshot = self._get_or_create(batch)
            if not self._accepts(snapshot, token):
                logger.info(
                    "snapshot_commit_superseded",
                    extra={
                        "batch": batch,
                        "token": token,
                        "latest_token": snapshot.latest_token,
                    },
                )
                return False
            snapshot.records = list(records)
            snapshot.loaded_at = datetime.now(timezone.utc)
            snapshot.error = None
            snapshot.committed_token = token
            return True

    def fail(self, batch: str, token: int, message: str) -> bool:
        """Record a fetch error under the same rule as ``commit``; records stay."""
        with self._lock:
            snapshot = self._get_or_create(batch)
            if not self._accepts(snapshot, token):
                return False
            snapshot.error = message
            return True


def load_batch(store: SnapshotStore, fetcher: CandidateFetcher, batch: str) -> bool:
    """Fetch ``batch`` and publish it to ``store``.

    Returns whether the result was applied.  Re-raises ``CandidateFetchError``
    after recording it on the snapshot.
    """
    token = store.begin(batch)
    try:
        records = fetcher.fetch_batch(batch)
    except CandidateFetchError as exc:
        store.fail(batch, token, exc.message)
        raise
    return store.commit(batch, token, records)


def ensure_loaded(store: SnapshotStore, fetcher: CandidateFetcher, batch: str) -> BatchSnapshot:
    """Return the snapshot of ``batch``, loading it on first use.

    A failed initial load is not raised: the error is left on the snapshot
    for the caller to display.
    """
    snapshot = store.get(batch)
    if snapshot.loaded or snapshot.error is not None:
        return snapshot
    try:
        load_batch(store, fetcher, batch)
    except CandidateFetchError:
        pass  # recorded on the snapshot by load_batch
    return store.get(batch)


# Module-level store (singleton)
snapshot_store = SnapshotStore()


def merge_snapshots(label: str, snapshots: list[BatchSnapshot]) -> BatchSnapshot:
    """Concatenate several batch snapshots into one read-only snapshot.

    Records keep batch order and the first occurrence of an id wins.  The
    result is as old as its oldest loaded part, and carries every error
    prefixed with its batch.
    """
    records: list[Candidate] = []
    seen: set[str] = set()
    for snapshot in snapshots:
        for record in snapshot.records:
            if record.id in seen:
                logger.warning(
                    "candidate_duplicate_across_batches",
                    extra={"batch": snapshot.batch, "candidate_id": record.id},
                )
                continue
            seen.add(record.id)
            records.append(record)

    loaded = [s.loaded_at for s in snapshots if s.loaded_at is not None]
    errors = [f"{s.batch}: {s.error}" for s in snapshots if s.error]
    return BatchSnapshot(
        batch=label,
        records=records,
        loaded_at=min(loaded) if loaded else None,
        error="; ".join(errors) or None,
    )
