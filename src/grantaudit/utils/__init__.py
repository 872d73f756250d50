"""Utility modules."""
from .logger import get_logger, set_request_context, reset_request_context
from .exceptions import (
    GrantAuditError,
    ConfigError,
    ValidationError,
    NetworkError,
    ExtractionFailure,
    UnsupportedDocumentError,
    LLMError,
    StructuredOutputFailure,
    NoTransactionsExtracted,
    RetryableError,
    UpstreamTransient,
    RetryableLLMError
)
from .retry import retry_with_backoff

__all__ = [
    "get_logger",
    "set_request_context",
    "reset_request_context",
    "GrantAuditError",
    "ConfigError",
    "ValidationError",
    "NetworkError",
    "ExtractionFailure",
    "UnsupportedDocumentError",
    "LLMError",
    "StructuredOutputFailure",
    "NoTransactionsExtracted",
    "RetryableError",
    "UpstreamTransient",
    "RetryableLLMError",
    "retry_with_backoff"
]
