"""
Constants used throughout the admission webhook.

This module defines all constant values used by the webhook including:
- Kubernetes-reserved namespace names
- AdmissionReview wire format identifiers
- HTTP content types and default paths
"""

# Namespaces owned by Kubernetes itself; objects in these are never mutated
NAMESPACE_PUBLIC = "kube-public"
NAMESPACE_SYSTEM = "kube-system"
PROTECTED_NAMESPACES = frozenset({NAMESPACE_PUBLIC, NAMESPACE_SYSTEM})

# AdmissionReview envelope
ADMISSION_REVIEW_KIND = "AdmissionReview"
ADMISSION_API_VERSION_V1 = "admission.k8s.io/v1"
ADMISSION_API_VERSION_V1BETA1 = "admission.k8s.io/v1beta1"
SUPPORTED_ADMISSION_API_VERSIONS = frozenset(
    {ADMISSION_API_VERSION_V1, ADMISSION_API_VERSION_V1BETA1}
)
PATCH_TYPE_JSON_PATCH = "JSONPatch"

# HTTP
JSON_CONTENT_TYPE = "application/json"
DEFAULT_BASE_PATH = "/mutate"
HEALTHZ_PATH = "/healthz"

# Largest accepted request body; an UPDATE carries both object and oldObject
DEFAULT_MAX_REQUEST_BYTES = 8 * 1024 * 1024

# Default TLS material location (mounted from the serving certificate secret)
DEFAULT_CERT_DIR = "/etc/webhook/certs"

# Resource kinds handled by the bundled mutations
POD_KIND = "Pod"
