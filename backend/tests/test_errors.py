"""
Unit tests for the FederationError hierarchy.
"""
from federated_retrieval.errors import (
    AuditSinkError,
    CandidateValidationError,
    ConfigurationError,
    FederationError,
    InvalidRequestError,
    ProviderError,
    ProviderTimeoutError,
    VocabularyError,
)


class TestFederationErrorBase:
    """Test the base FederationError class functionality."""

    def test_initialization_minimal(self):
        """Test error with only a message."""
        error = FederationError("Test message")
        assert error.code == "UNKNOWN_ERROR"
        assert error.message == "Test message"
        assert error.context == {}
        assert not error.retry_hint

    def test_initialization_with_all_params(self):
        """Test error with code, context and retry hint."""
        context = {"key": "value"}
        error = FederationError("Test message", code="CUSTOM_CODE", context=context, retry_hint=True)
        assert error.code == "CUSTOM_CODE"
        assert error.context == context
        assert error.retry_hint is True

    def test_context_is_copied(self):
        """Test context is copied, not shared."""
        context = {"key": "value"}
        error = FederationError("m", context=context)
        context["key"] = "changed"
        assert error.context == {"key": "value"}

    def test_to_dict_serialization(self):
        """Test to_dict output shape."""
        error = FederationError("Test message", code="SERIALIZE_TEST", context={"a": 1})
        assert error.to_dict() == {
            "code": "SERIALIZE_TEST",
            "message": "Test message",
            "context": {"a": 1},
            "retry_hint": False,
        }

    def test_str_is_message(self):
        """Test str() returns the message."""
        assert str(FederationError("boom")) == "boom"


class TestSubclasses:
    """Default codes and retry hints for each subclass."""

    def test_invalid_request(self):
        """Test InvalidRequestError defaults."""
        error = InvalidRequestError("empty query")
        assert isinstance(error, FederationError)
        assert error.code == "INVALID_REQUEST"
        assert error.retry_hint is False

    def test_provider_error_records_provider(self):
        """Test ProviderError keeps the provider name."""
        error = ProviderError("down", provider="searxng", context={"status_code": 502})
        assert error.provider == "searxng"
        assert error.code == "PROVIDER_ERROR"
        assert error.context == {"status_code": 502, "provider": "searxng"}
        assert error.retry_hint is True

    def test_provider_timeout_is_provider_error(self):
        """Test timeout errors are provider errors."""
        error = ProviderTimeoutError("slow", provider="media", timeout_ms=2000)
        assert isinstance(error, ProviderError)
        assert error.code == "PROVIDER_TIMEOUT"
        assert error.context["timeout_ms"] == 2000
        assert error.context["provider"] == "media"

    def test_configuration_error(self):
        """Test ConfigurationError defaults."""
        assert ConfigurationError("bad").code == "CONFIGURATION_ERROR"

    def test_candidate_validation_error(self):
        """Test CandidateValidationError defaults."""
        error = CandidateValidationError("no url", context={"missing": ["url"]})
        assert error.code == "CANDIDATE_INVALID"
        assert error.context["missing"] == ["url"]

    def test_vocabulary_error_retryable_by_default(self):
        """Test VocabularyError is retryable by default."""
        assert VocabularyError("lookup failed").retry_hint is True

    def test_audit_sink_error(self):
        """Test AuditSinkError defaults."""
        assert AuditSinkError("write failed").code == "AUDIT_SINK_ERROR"
