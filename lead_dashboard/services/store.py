"""
Dataset store: one immutable lead snapshot per dashboard session.

Ingestion is the only writer: it builds a complete new LeadSnapshot and
swaps it in under the lock. Readers grab the current snapshot reference and
never mutate it, so a view computed mid-upload still sees one consistent
dataset. Nothing is persisted. At most max_datasets sessions keep a snapshot;
the one uploaded to least recently is dropped first.
"""
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from lead_dashboard.config import MAX_DATASETS
from lead_dashboard.models.lead import LeadRecord, UploadInfo

logger = logging.getLogger('services.store')

STATE_EMPTY = 'empty'
STATE_LOADED = 'loaded'
STATE_FAILED = 'failed'


@dataclass(frozen=True)
class LeadSnapshot:
    records: Tuple[LeadRecord, ...] = ()
    upload: Optional[UploadInfo] = None
    error: Optional[str] = None

    @property
    def state(self) -> str:
        if self.error:
            return STATE_FAILED
        if self.upload is not None:
            return STATE_LOADED
        return STATE_EMPTY

    @property
    def has_data(self) -> bool:
        return bool(self.records)

    def to_dict(self) -> Dict:
        return {
            'state': self.state,
            'has_data': self.has_data,
            'record_count': len(self.records),
            'upload': self.upload.to_dict() if self.upload else None,
            'error': self.error,
        }


EMPTY_SNAPSHOT = LeadSnapshot()


class LeadStore:
    """Session id → current LeadSnapshot, oldest upload first."""

    def __init__(self, max_datasets: int = MAX_DATASETS):
        self._lock = threading.Lock()
        self._snapshots: 'OrderedDict[str, LeadSnapshot]' = OrderedDict()
        self.max_datasets = max(max_datasets, 1)

    def _put(self, session_id: str, snapshot: LeadSnapshot) -> None:
        """Store and mark most recent; evict the oldest sessions past the limit. Caller holds the lock."""
        self._snapshots[session_id] = snapshot
        self._snapshots.move_to_end(session_id)
        while len(self._snapshots) > self.max_datasets:
            evicted, _ = self._snapshots.popitem(last=False)
            logger.info("Evicted dataset for session %s", evicted, extra={'dataset_id': evicted})

    def get(self, session_id: Optional[str]) -> LeadSnapshot:
        if not session_id:
            return EMPTY_SNAPSHOT
        with self._lock:
            return self._snapshots.get(session_id, EMPTY_SNAPSHOT)

    def publish(self, session_id: str, records: Tuple[LeadRecord, ...], upload: UploadInfo) -> LeadSnapshot:
        """Replace the session's dataset wholesale. Uploads never merge."""
        snapshot = LeadSnapshot(records=tuple(records), upload=upload)
        with self._lock:
            self._put(session_id, snapshot)
        logger.info("Published %d leads for session %s (upload %s)", len(snapshot.records), session_id, upload.id,
                    extra={'dataset_id': session_id, 'upload_id': upload.id})
        return snapshot

    def record_failure(self, session_id: str, error: str) -> LeadSnapshot:
        """Mark the last upload as failed. Previously loaded records stay visible."""
        with self._lock:
            current = self._snapshots.get(session_id, EMPTY_SNAPSHOT)
            snapshot = replace(current, error=error)
            self._put(session_id, snapshot)
        logger.warning("Upload failed for session %s: %s", session_id, error, extra={'dataset_id': session_id})
        return snapshot

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._snapshots.pop(session_id, None)

    def __len__(self):
        with self._lock:
            return len(self._snapshots)
