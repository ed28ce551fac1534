"""
Admission pipeline for the webhook.

This package decodes AdmissionReview requests, runs the registered decision
functions (skipping Kubernetes-owned namespaces), aggregates their JSON patch
operations and encodes the AdmissionReview response served over HTTP.
"""

from .codec import decode_request, decode_review, encode_response, encode_review
from .controller import AdmissionController
from .decision import AdmitFunc, Decision, DecisionRegistry
from .http import AdmissionWebhookHandler, create_webhook_app
from .namespaces import is_protected_namespace

__all__ = [
    "AdmissionController",
    "AdmissionWebhookHandler",
    "AdmitFunc",
    "Decision",
    "DecisionRegistry",
    "create_webhook_app",
    "decode_request",
    "decode_review",
    "encode_response",
    "encode_review",
    "is_protected_namespace",
]
