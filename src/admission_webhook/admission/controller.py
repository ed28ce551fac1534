"""
Admission controller: the per-request decision pipeline.

For every AdmissionReview the controller:
1. decodes the envelope (client error on failure)
2. short-circuits protected namespaces with an unconditional allow
3. runs the registered decision functions in order, collecting patches
4. builds the response: allow with the concatenated patch, or deny
5. encodes the response envelope (server error on failure)

A request is all-or-nothing: the first failing decision function stops the
iteration and every patch collected so far is discarded.
"""

import time
from collections.abc import Iterable

from admission_webhook.errors import DecisionError, EncodeError
from admission_webhook.models import AdmissionRequest, AdmissionResponse, PatchOperation
from admission_webhook.observability.logging import AdmissionLogger, set_correlation_id
from admission_webhook.observability.metrics import (
    record_admission,
    record_decision_failure,
    record_request_duration,
)

from .codec import decode_request, encode_response
from .decision import Decision
from .namespaces import is_protected_namespace

logger = AdmissionLogger(__name__)


class AdmissionController:
    """
    Runs a fixed, ordered set of decision functions against admission requests.

    The decision set is fixed at construction and only ever read afterwards,
    so one controller can serve any number of concurrent requests.
    """

    def __init__(self, decisions: Iterable[Decision] = ()):
        """
        Initialize the controller.

        Args:
            decisions: Decision functions in the order they should run
        """
        self._decisions: tuple[Decision, ...] = tuple(decisions)

    @property
    def decisions(self) -> tuple[Decision, ...]:
        return self._decisions

    def review(self, body: bytes) -> bytes:
        """
        Answer a raw AdmissionReview request with a raw AdmissionReview response.

        Args:
            body: JSON body of the webhook call

        Returns:
            The encoded response envelope

        Raises:
            DecodeError: If the body is not a well-formed AdmissionReview request
            EncodeError: If the response cannot be serialized
        """
        start_time = time.perf_counter()
        review_request = decode_request(body)
        request = review_request.request
        set_correlation_id(request.uid)

        response = self.admit(request)
        try:
            encoded = encode_response(review_request, response)
        except EncodeError as e:
            logger.error(
                f"Could not encode admission response: {e.message}",
                request_uid=request.uid,
                namespace=request.namespace,
                error_type=type(e).__name__,
            )
            raise

        record_request_duration(time.perf_counter() - start_time)
        return encoded

    def admit(self, request: AdmissionRequest) -> AdmissionResponse:
        """
        Decide on a single admission request.

        Args:
            request: The decoded AdmissionRequest

        Returns:
            An allowing response (possibly with a patch) or a denial
        """
        if is_protected_namespace(request.namespace):
            logger.debug(
                f"Skipping decision functions for protected namespace {request.namespace}",
                request_uid=request.uid,
                namespace=request.namespace,
            )
            record_admission("exempt")
            return AdmissionResponse.allow(request.uid)

        patch_ops: list[PatchOperation] = []
        for decision in self._decisions:
            try:
                ops = [PatchOperation.model_validate(op) for op in decision(request)]
            except DecisionError as e:
                return self._deny(request, decision, e, message=e.message)
            except Exception as e:
                return self._deny(
                    request, decision, e, message=f"{decision.name}: {e}", unexpected=True
                )
            patch_ops.extend(ops)

        record_admission("allowed", patch_operations=len(patch_ops))
        self._log_result(request, allowed=True, patch_operations=len(patch_ops))
        return AdmissionResponse.allow(request.uid, patch_ops)

    def _deny(
        self,
        request: AdmissionRequest,
        decision: Decision,
        error: Exception,
        message: str,
        unexpected: bool = False,
    ) -> AdmissionResponse:
        logger.log_decision_failure(
            decision.name, request.uid, request.namespace, error, unexpected=unexpected
        )
        record_decision_failure(decision.name, error)
        record_admission("denied")
        self._log_result(request, allowed=False, patch_operations=0)
        return AdmissionResponse.deny(request.uid, message)

    @staticmethod
    def _log_result(
        request: AdmissionRequest, allowed: bool, patch_operations: int
    ) -> None:
        metadata = (request.obj or {}).get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        logger.log_admission_result(
            request_uid=request.uid,
            namespace=request.namespace,
            operation=request.operation,
            allowed=allowed,
            patch_operations=patch_operations,
            resource_kind=request.kind.kind if request.kind else None,
            resource_name=request.name or metadata.get("name"),
        )
