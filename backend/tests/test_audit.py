"""Tests for audit sinks and the background emitter."""

import threading
from unittest.mock import MagicMock

import pytest

from federated_retrieval.contracts.audit import AuditBatch, RequestAuditRecord
from federated_retrieval.errors import AuditSinkError
from federated_retrieval.services.audit import AuditEmitter, InMemoryAuditSink


def _batch(request_id: str = "req-1") -> AuditBatch:
    return AuditBatch(request=RequestAuditRecord(request_id=request_id, query="q", mode="hybrid", limit=10))


class TestInMemoryAuditSink:
    def test_write_and_lookup(self):
        """Test batches can be looked up by request id."""
        sink = InMemoryAuditSink()
        sink.write(_batch("a"))
        sink.write(_batch("b"))

        assert sink.count == 2
        assert sink.get_by_request_id("b").request.request_id == "b"
        assert sink.get_by_request_id("missing") is None
        assert [b.request.request_id for b in sink.get_latest(1)] == ["b"]

    def test_bounded_oldest_evicted(self):
        """Test sink evicts the oldest batch once full."""
        sink = InMemoryAuditSink(max_batches=2)
        for request_id in ["a", "b", "c"]:
            sink.write(_batch(request_id))
        assert [b.request.request_id for b in sink.get_batches()] == ["b", "c"]

    def test_callback_invoked(self):
        """Test the on_write callback receives each batch."""
        callback = MagicMock()
        sink = InMemoryAuditSink(callback=callback)
        batch = _batch()
        sink.write(batch)
        callback.assert_called_once_with(batch)

    def test_clear(self):
        """Test clear empties the sink."""
        sink = InMemoryAuditSink()
        sink.write(_batch())
        sink.clear()
        assert sink.count == 0

    def test_invalid_max(self):
        """Test non-positive max_batches is rejected."""
        with pytest.raises(ValueError):
            InMemoryAuditSink(max_batches=0)


class TestAuditEmitter:
    def test_emit_reaches_sink(self):
        """Test emitted batches are written to the sink."""
        sink = InMemoryAuditSink()
        emitter = AuditEmitter(sink)
        emitter.emit(_batch("a"))
        assert emitter.flush(timeout=5) is True
        assert sink.get_by_request_id("a") is not None
        emitter.close()

    def test_emit_does_not_wait_for_sink(self):
        """Test emit returns while the sink is still blocked."""
        release = threading.Event()
        sink = MagicMock()
        sink.write.side_effect = lambda batch: release.wait(5)
        emitter = AuditEmitter(sink)

        emitter.emit(_batch())
        assert emitter.flush(timeout=0.05) is False

        release.set()
        assert emitter.flush(timeout=5) is True
        emitter.close()

    def test_sink_failure_is_swallowed_and_counted(self):
        """Test sink errors are logged and counted as dropped."""
        sink = MagicMock()
        sink.write.side_effect = AuditSinkError("db unavailable")
        emitter = AuditEmitter(sink)

        emitter.emit(_batch())
        emitter.flush(timeout=5)

        assert emitter.dropped == 1
        emitter.close()

    def test_disabled_emitter_skips_sink(self):
        """Test a disabled emitter never calls the sink."""
        sink = MagicMock()
        emitter = AuditEmitter(sink, enabled=False)
        emitter.emit(_batch())
        emitter.flush(timeout=5)
        sink.write.assert_not_called()
        emitter.close()

    def test_emit_after_close_is_dropped(self):
        """Test emitting after close is a counted drop."""
        sink = MagicMock()
        emitter = AuditEmitter(sink)
        emitter.close()
        emitter.emit(_batch())
        assert emitter.dropped == 1
        sink.write.assert_not_called()
