"""Best-effort background persistence of recommendation records."""

from __future__ import annotations

import logging
from concurrent import futures
from concurrent.futures import Future, ThreadPoolExecutor
from threading import BoundedSemaphore, Lock
from typing import Optional, Set

from datastore.readings import RecommendationSink
from models.records import RecommendationRecord

logger = logging.getLogger(__name__)


class AuditWriter:
    """Write audit records off the request path through a bounded executor.

    At most ``queue_size`` records are pending at once; further submissions
    are discarded. Write failures are logged here and never reach callers.
    """

    def __init__(self, sink: RecommendationSink, workers: int = 1, queue_size: int = 100) -> None:
        self.sink = sink
        self.queue_size = queue_size
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="audit")
        self._slots = BoundedSemaphore(queue_size)
        self._futures: Set[Future[Optional[RecommendationRecord]]] = set()
        self._futures_lock = Lock()

    def submit(self, record: RecommendationRecord) -> bool:
        """Queue ``record`` for writing; return False if it was discarded."""
        if not self._slots.acquire(blocking=False):
            logger.warning(
                "Discarding recommendation record",
                extra={"device_id": record.device_id, "reason": "queue full"},
            )
            return False

        try:
            future = self.executor.submit(self._write, record)
        except RuntimeError:
            self._slots.release()
            logger.warning(
                "Discarding recommendation record",
                extra={"device_id": record.device_id, "reason": "writer shut down"},
            )
            return False

        with self._futures_lock:
            self._futures.add(future)
        future.add_done_callback(self._on_done)
        return True

    @property
    def pending(self) -> int:
        with self._futures_lock:
            return len(self._futures)

    def drain(self, timeout: Optional[float] = None) -> None:
        """Block until every record submitted so far has been handled."""
        with self._futures_lock:
            pending = list(self._futures)
        futures.wait(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait, cancel_futures=not wait)

    def _write(self, record: RecommendationRecord) -> Optional[RecommendationRecord]:
        try:
            stored = self.sink.insert_recommendation(record)
        except Exception:  # noqa: BLE001 - audit writes never propagate
            logger.exception(
                "Failed to persist recommendation record",
                extra={"device_id": record.device_id, "status": "failed"},
            )
            return None
        logger.debug(
            "Persisted recommendation record",
            extra={"device_id": record.device_id, "record_id": stored.id},
        )
        return stored

    def _on_done(self, future: Future[Optional[RecommendationRecord]]) -> None:
        with self._futures_lock:
            self._futures.discard(future)
        self._slots.release()
