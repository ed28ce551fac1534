"""
HTTP adapter mapping the admission controller onto aiohttp.

Only ``POST`` with ``Content-Type: application/json`` reaches the controller.
Rejected or failed calls are answered with a plain-text error body and a 4xx
or 5xx status instead of an AdmissionReview; decision denials are normal 200
responses carrying ``allowed: false``.
"""

import asyncio

from aiohttp import ClientPayloadError, hdrs, web

from admission_webhook.constants import (
    DEFAULT_BASE_PATH,
    DEFAULT_MAX_REQUEST_BYTES,
    HEALTHZ_PATH,
    JSON_CONTENT_TYPE,
)
from admission_webhook.errors import (
    MethodNotAllowedError,
    RequestBodyError,
    UnsupportedContentTypeError,
    WebhookError,
)
from admission_webhook.observability.logging import (
    AdmissionLogger,
    generate_correlation_id,
    set_correlation_id,
)
from admission_webhook.observability.metrics import record_http_error

from .controller import AdmissionController

logger = AdmissionLogger(__name__)


class AdmissionWebhookHandler:
    """aiohttp handler serving one AdmissionController."""

    def __init__(self, controller: AdmissionController):
        self.controller = controller

    async def handle(self, request: web.Request) -> web.StreamResponse:
        """Handle a single webhook call from the API server."""
        set_correlation_id(generate_correlation_id())

        try:
            body = await self._read_admission_body(request)
            # Decision functions are synchronous; keep them off the event loop
            payload = await asyncio.to_thread(self.controller.review, body)
        except WebhookError as e:
            return await self._write_error(request, e, e.status_code)
        except Exception as e:
            return await self._write_error(request, e, 500)

        return await self._write(request, 200, payload, JSON_CONTENT_TYPE)

    async def _read_admission_body(self, request: web.Request) -> bytes:
        """
        Validate the request line and headers, then read the whole body.

        Raises:
            MethodNotAllowedError: For any method other than POST
            UnsupportedContentTypeError: Unless Content-Type is exactly application/json
            RequestBodyError: If the body cannot be read
        """
        if request.method != hdrs.METH_POST:
            raise MethodNotAllowedError(request.method)

        content_type = request.headers.get(hdrs.CONTENT_TYPE)
        if content_type != JSON_CONTENT_TYPE:
            raise UnsupportedContentTypeError(content_type, JSON_CONTENT_TYPE)

        try:
            return await request.read()
        except (ClientPayloadError, ConnectionError, web.HTTPRequestEntityTooLarge) as e:
            raise RequestBodyError(str(e), cause=e) from e

    async def _write_error(
        self, request: web.Request, error: Exception, status: int
    ) -> web.StreamResponse:
        logger.log_request_rejected(error, status, request.method, request.path)
        record_http_error(status)

        headers = None
        if isinstance(error, MethodNotAllowedError):
            headers = {hdrs.ALLOW: hdrs.METH_POST}

        text = str(error) if isinstance(error, WebhookError) else f"internal error: {error}"
        return await self._write(
            request, status, text.encode("utf-8"), "text/plain", headers=headers
        )

    async def _write(
        self,
        request: web.Request,
        status: int,
        body: bytes,
        content_type: str,
        headers: dict[str, str] | None = None,
    ) -> web.StreamResponse:
        """Send the response; a failed write is logged since the status is already out."""
        response = web.StreamResponse(status=status, headers=headers)
        response.content_type = content_type
        if content_type == "text/plain":
            response.charset = "utf-8"
        response.content_length = len(body)

        try:
            await response.prepare(request)
            await response.write(body)
            await response.write_eof()
        except ConnectionError as e:
            logger.error(f"Could not write response: {e}", http_status=status)

        return response


async def _healthz_handler(request: web.Request) -> web.Response:
    """Handle /healthz endpoint for Kubernetes liveness probes."""
    return web.Response(text="ok")


def create_webhook_app(
    controller: AdmissionController,
    base_path: str = DEFAULT_BASE_PATH,
    max_request_bytes: int = DEFAULT_MAX_REQUEST_BYTES,
) -> web.Application:
    """
    Build the aiohttp application serving the admission endpoint.

    Args:
        controller: Controller answering admission reviews
        base_path: Path the endpoint is mounted on
        max_request_bytes: Largest request body read before answering 400

    Returns:
        Application with the admission route (any method) and /healthz
    """
    app = web.Application(client_max_size=max_request_bytes)
    handler = AdmissionWebhookHandler(controller)

    # Every method is routed so non-POST calls get 405 from the handler
    app.router.add_route(hdrs.METH_ANY, base_path, handler.handle)
    if base_path != HEALTHZ_PATH:
        app.router.add_get(HEALTHZ_PATH, _healthz_handler)

    return app
