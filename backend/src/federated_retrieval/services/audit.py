"""Best-effort audit emission for orchestration calls."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Optional, Protocol

from federated_retrieval.contracts.audit import AuditBatch
from federated_retrieval.logging_config import get_logger

logger = get_logger(__name__)


# Type alias for batch callback
AuditCallback = Callable[[AuditBatch], None]


class AuditSink(Protocol):
    """Destination for audit batches (database, log shipper, ...)."""

    def write(self, batch: AuditBatch) -> None: ...


class InMemoryAuditSink:
    """
    In-memory audit sink with optional callback hook.

    Stores the most recent batches for inspection, evicting the oldest
    when max_batches is exceeded.
    """

    def __init__(
        self,
        callback: Optional[AuditCallback] = None,
        max_batches: int = 1000,
    ):
        if max_batches <= 0:
            raise ValueError("max_batches must be > 0")
        self._batches: list[AuditBatch] = []
        self._callback = callback
        self._max_batches = max_batches
        self._lock = threading.Lock()

    def write(self, batch: AuditBatch) -> None:
        with self._lock:
            if len(self._batches) >= self._max_batches:
                self._batches.pop(0)
            self._batches.append(batch)
        if self._callback is not None:
            self._callback(batch)

    def get_batches(self) -> list[AuditBatch]:
        """Return all stored batches (newest last)."""
        with self._lock:
            return list(self._batches)

    def get_by_request_id(self, request_id: str) -> Optional[AuditBatch]:
        with self._lock:
            for batch in self._batches:
                if batch.request.request_id == request_id:
                    return batch
        return None

    def get_latest(self, n: int = 1) -> list[AuditBatch]:
        with self._lock:
            return list(self._batches[-n:])

    def clear(self) -> None:
        with self._lock:
            self._batches.clear()

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._batches)


class AuditEmitter:
    """
    Hands batches to a sink on a single background thread.

    emit() never raises and never waits for the sink. Sink failures are
    logged and the batch is dropped.
    """

    def __init__(self, sink: AuditSink, enabled: bool = True):
        self.sink = sink
        self.enabled = enabled
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="federation-audit")
        self._pending: set[Future[None]] = set()
        self._lock = threading.Lock()
        self._closed = False
        self._dropped = 0

    def emit(self, batch: AuditBatch) -> None:
        if not self.enabled:
            return
        with self._lock:
            if self._closed:
                self._dropped += 1
                logger.warning("audit_emit_after_close", request_id=batch.request.request_id)
                return
            try:
                future = self._executor.submit(self._write, batch)
            except RuntimeError:
                self._dropped += 1
                logger.warning("audit_emit_rejected", request_id=batch.request.request_id)
                return
            self._pending.add(future)
        future.add_done_callback(self._discard)

    def flush(self, timeout: Optional[float] = 5.0) -> bool:
        """Wait for pending writes. Returns True when nothing is left pending."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self, timeout: Optional[float] = 5.0) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.flush(timeout)
        self._executor.shutdown(wait=False)

    @property
    def dropped(self) -> int:
        with self._lock:
            return self._dropped

    def _write(self, batch: AuditBatch) -> None:
        try:
            self.sink.write(batch)
        except Exception as e:
            with self._lock:
                self._dropped += 1
            logger.warning(
                "audit_emit_failed",
                request_id=batch.request.request_id,
                error_type=type(e).__name__,
                error_message=str(e)[:200],
            )

    def _discard(self, future: "Future[None]") -> None:
        with self._lock:
            self._pending.discard(future)
