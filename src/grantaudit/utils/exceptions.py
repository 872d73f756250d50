"""Custom exception classes for grantaudit."""


class GrantAuditError(Exception):
    """Base exception for grantaudit."""
    pass


class ConfigError(GrantAuditError):
    """Configuration-related errors."""
    pass


class ValidationError(GrantAuditError):
    """Invalid request values."""
    pass


class NetworkError(GrantAuditError):
    """Network and API-related errors."""
    pass


class ExtractionFailure(GrantAuditError):
    """Document text could not be acquired (unreadable upload)."""
    pass


class UnsupportedDocumentError(ExtractionFailure):
    """Document MIME type is not a PDF, image or plain text."""
    pass


class LLMError(GrantAuditError):
    """Generative model errors."""
    pass


class StructuredOutputFailure(LLMError):
    """A chunk could not be turned into valid transactions."""
    pass


class NoTransactionsExtracted(GrantAuditError):
    """The whole pipeline produced zero transactions."""

    def __init__(self, message: str, failed_chunks: int = 0):
        super().__init__(message)
        self.failed_chunks = failed_chunks


# Retryable errors
class RetryableError(GrantAuditError):
    """Base class for errors that should trigger retry."""
    pass


class UpstreamTransient(RetryableError, NetworkError):
    """Rate limiting, timeouts or temporary unavailability upstream."""
    pass


class RetryableLLMError(UpstreamTransient, LLMError):
    """Transient generative model errors."""
    pass
