"""
Error handling module for the admission webhook.

This module provides the error hierarchy that maps each failure to the HTTP
status reported to the API server, separating client input errors, decision
denials and internal failures.
"""

from .webhook_errors import (
    ConfigurationError,
    DecisionError,
    DecodeError,
    EncodeError,
    MethodNotAllowedError,
    RequestBodyError,
    UnsupportedContentTypeError,
    WebhookError,
)

__all__ = [
    "WebhookError",
    "MethodNotAllowedError",
    "UnsupportedContentTypeError",
    "RequestBodyError",
    "DecodeError",
    "EncodeError",
    "ConfigurationError",
    "DecisionError",
]
