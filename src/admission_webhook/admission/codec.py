"""
AdmissionReview envelope codec.

Decoding failures are client errors (HTTP 400) and stop the request before
any decision function runs. Encoding failures are server errors (HTTP 500).
Encoding is deterministic: decoding an encoded envelope and encoding it again
yields the same bytes.
"""

import logging

from pydantic import ValidationError

from admission_webhook.errors import DecodeError, EncodeError
from admission_webhook.models import AdmissionResponse, AdmissionReview

logger = logging.getLogger(__name__)

# Number of validation errors quoted in a DecodeError message
_MAX_REPORTED_ERRORS = 3


def _summarize_validation_error(error: ValidationError) -> str:
    """Render validation errors without echoing the request payload."""
    details = []
    for err in error.errors(include_input=False, include_url=False)[
        :_MAX_REPORTED_ERRORS
    ]:
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        details.append(f"{location}: {err['msg']}")
    if error.error_count() > _MAX_REPORTED_ERRORS:
        details.append(f"and {error.error_count() - _MAX_REPORTED_ERRORS} more")
    return "; ".join(details)


def decode_review(body: bytes) -> AdmissionReview:
    """
    Decode any AdmissionReview envelope (request or response).

    Args:
        body: Raw JSON bytes

    Returns:
        The decoded envelope

    Raises:
        DecodeError: If the body is empty or not a valid AdmissionReview
    """
    if not body or not body.strip():
        raise DecodeError("could not deserialize request: empty body")

    try:
        return AdmissionReview.model_validate_json(body)
    except ValidationError as e:
        raise DecodeError(
            f"could not deserialize request: {_summarize_validation_error(e)}",
            cause=e,
        ) from e


def decode_request(body: bytes) -> AdmissionReview:
    """
    Decode an AdmissionReview that must carry a request.

    Raises:
        DecodeError: If decoding fails or the request field is absent or null
    """
    review = decode_review(body)
    if review.request is None:
        raise DecodeError("malformed admission review: request is nil")
    return review


def encode_review(review: AdmissionReview) -> bytes:
    """
    Encode an AdmissionReview envelope to compact JSON.

    Raises:
        EncodeError: If any part of the envelope cannot be serialized
    """
    try:
        return review.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
    except (TypeError, ValueError) as e:
        # PydanticSerializationError is a ValueError
        raise EncodeError(f"marshaling response: {e}", cause=e) from e


def encode_response(request_review: AdmissionReview, response: AdmissionResponse) -> bytes:
    """
    Encode the response envelope answering ``request_review``.

    The apiVersion and kind of the request envelope are echoed so the API
    server can match the response to the version it sent.

    Raises:
        EncodeError: If the response does not answer this request or cannot
            be serialized
    """
    request = request_review.request
    if request is not None and response.uid != request.uid:
        raise EncodeError(
            f"response uid {response.uid!r} does not match request uid {request.uid!r}"
        )

    review = AdmissionReview(
        api_version=request_review.api_version,
        kind=request_review.kind,
        response=response,
    )
    return encode_review(review)
