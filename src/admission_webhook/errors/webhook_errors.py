"""
Webhook error hierarchy with categorization and HTTP status mapping.

This module defines the error types used throughout the admission webhook.
Each error carries the HTTP status the adapter answers with, so that client
input errors, business denials and internal failures stay clearly separated.
"""


class WebhookError(Exception):
    """
    Base error class for all webhook-related exceptions.

    Provides categorization, the HTTP status to report, and user guidance
    for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        status_code: int = 500,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize webhook error.

        Args:
            message: Human-readable error description
            category: Error category (request, decode, encode, decision, configuration)
            status_code: HTTP status code the adapter responds with
            user_action: What the caller should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.status_code = status_code
        self.user_action = user_action
        self.cause = cause

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class MethodNotAllowedError(WebhookError):
    """Request used an HTTP method other than POST."""

    def __init__(self, method: str):
        super().__init__(
            message=f"invalid method {method}, only POST requests are allowed",
            category="request",
            status_code=405,
        )
        self.method = method


class UnsupportedContentTypeError(WebhookError):
    """Request carried a Content-Type other than the accepted media type."""

    def __init__(self, content_type: str | None, expected: str):
        super().__init__(
            message=f"unsupported content type {content_type}, only {expected} is supported",
            category="request",
            status_code=400,
        )
        self.content_type = content_type


class RequestBodyError(WebhookError):
    """The request body could not be read."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(
            message=f"could not read request body: {message}",
            category="request",
            status_code=400,
            cause=cause,
        )


class DecodeError(WebhookError):
    """The body is not a well-formed AdmissionReview request."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(
            message=message,
            category="decode",
            status_code=400,
            cause=cause,
        )


class EncodeError(WebhookError):
    """The AdmissionReview response could not be serialized."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(
            message=message,
            category="encode",
            status_code=500,
            cause=cause,
        )


class ConfigurationError(WebhookError):
    """Error in webhook configuration detected at startup."""

    def __init__(self, message: str, user_action: str | None = None):
        super().__init__(
            message=message,
            category="configuration",
            status_code=500,
            user_action=user_action or "Review and correct configuration",
        )


class DecisionError(WebhookError):
    """
    Raised by a decision function to deny the admission request.

    This is a business-level denial: the webhook still answers 200 with a
    well-formed AdmissionReview carrying ``allowed: false`` and this message.
    """

    def __init__(self, message: str):
        super().__init__(message=message, category="decision", status_code=200)
