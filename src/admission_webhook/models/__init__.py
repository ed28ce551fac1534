"""
Models package - Pydantic models for the admission wire format.

Defines data models for:
- RFC 6902 JSON patch operations
- AdmissionReview request and response envelopes
"""

from .patch import PatchOperation, dump_patch, escape_pointer_token, join_pointer, load_patch
from .review import (
    AdmissionRequest,
    AdmissionResponse,
    AdmissionReview,
    GroupVersionKind,
    GroupVersionResource,
    Status,
)

__all__ = [
    "PatchOperation",
    "dump_patch",
    "load_patch",
    "escape_pointer_token",
    "join_pointer",
    "AdmissionRequest",
    "AdmissionResponse",
    "AdmissionReview",
    "GroupVersionKind",
    "GroupVersionResource",
    "Status",
]
