"""
AdmissionReview envelope models.

These mirror the ``admission.k8s.io`` AdmissionReview schema closely enough to
decode what the API server sends and encode what it expects back. Unknown
fields are kept so that nothing in an envelope is silently lost.
"""

import base64
import binascii
import json
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from admission_webhook.constants import (
    ADMISSION_REVIEW_KIND,
    PATCH_TYPE_JSON_PATCH,
    SUPPORTED_ADMISSION_API_VERSIONS,
)

from .patch import PatchOperation, dump_patch


class GroupVersionKind(BaseModel):
    """Fully qualified kind of an object."""

    model_config = ConfigDict(extra="allow", frozen=True)

    group: str = ""
    version: str = ""
    kind: str = ""


class GroupVersionResource(BaseModel):
    """Fully qualified resource of an object."""

    model_config = ConfigDict(extra="allow", frozen=True)

    group: str = ""
    version: str = ""
    resource: str = ""


class AdmissionRequest(BaseModel):
    """
    The request half of an AdmissionReview.

    Read-only for the webhook: decision functions receive it as-is and must
    express every change as patch operations.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    uid: str = Field(..., min_length=1, description="Identifier echoed in the response")
    kind: GroupVersionKind | None = Field(None, description="Kind of the object")
    resource: GroupVersionResource | None = Field(
        None, description="Resource being requested"
    )
    sub_resource: str | None = Field(None, alias="subResource")
    request_kind: GroupVersionKind | None = Field(None, alias="requestKind")
    request_resource: GroupVersionResource | None = Field(
        None, alias="requestResource"
    )
    request_sub_resource: str | None = Field(None, alias="requestSubResource")
    name: str | None = Field(None, description="Name of the object, if known")
    namespace: str | None = Field(
        None, description="Namespace of the object (absent for cluster-scoped objects)"
    )
    operation: str | None = Field(
        None, description="CREATE, UPDATE, DELETE or CONNECT"
    )
    user_info: dict[str, Any] | None = Field(None, alias="userInfo")
    obj: dict[str, Any] | None = Field(
        None, alias="object", description="Object being admitted"
    )
    old_obj: dict[str, Any] | None = Field(
        None, alias="oldObject", description="Existing object for UPDATE and DELETE"
    )
    dry_run: bool | None = Field(None, alias="dryRun")
    options: dict[str, Any] | None = None


class Status(BaseModel):
    """Result details of a denied admission."""

    model_config = ConfigDict(extra="allow")

    message: str | None = None
    reason: str | None = None
    code: int | None = None


class AdmissionResponse(BaseModel):
    """
    The response half of an AdmissionReview.

    Either ``allowed`` (optionally with a patch) or denied with a status
    message, never both a patch and a denial. On the wire the patch is the
    base64 encoding of the JSON patch array.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    uid: str = Field(..., description="UID of the request this answers")
    allowed: bool = Field(..., description="Whether the operation is admitted")
    status: Status | None = Field(None, description="Denial details")
    patch: list[PatchOperation] | None = Field(
        None, description="Mutations to apply to the admitted object"
    )
    patch_type: Literal["JSONPatch"] | None = Field(None, alias="patchType")
    audit_annotations: dict[str, str] | None = Field(None, alias="auditAnnotations")
    warnings: list[str] | None = None

    @field_validator("patch", mode="before")
    @classmethod
    def _decode_wire_patch(cls, value: Any) -> Any:
        if not isinstance(value, str | bytes):
            return value
        try:
            raw = base64.b64decode(value, validate=True)
            return json.loads(raw)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"patch is not base64-encoded JSON: {e}") from e

    @model_validator(mode="after")
    def _check_decision(self) -> "AdmissionResponse":
        if self.patch is not None and not self.allowed:
            raise ValueError("a denied admission response cannot carry a patch")
        # patchType accompanies a patch and nothing else
        self.patch_type = PATCH_TYPE_JSON_PATCH if self.patch is not None else None
        return self

    @field_serializer("patch")
    def _encode_wire_patch(self, patch: list[PatchOperation] | None) -> str | None:
        if patch is None:
            return None
        return base64.b64encode(dump_patch(patch)).decode("ascii")

    @classmethod
    def allow(
        cls, uid: str, patch: list[PatchOperation] | None = None
    ) -> "AdmissionResponse":
        """Build an allowing response; an empty patch is omitted."""
        return cls(uid=uid, allowed=True, patch=patch or None)

    @classmethod
    def deny(cls, uid: str, message: str) -> "AdmissionResponse":
        """Build a denying response carrying ``message``."""
        return cls(uid=uid, allowed=False, status=Status(message=message))


class AdmissionReview(BaseModel):
    """Versioned AdmissionReview envelope carrying a request and/or a response."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    api_version: str = Field(..., alias="apiVersion")
    kind: str = Field(...)
    request: AdmissionRequest | None = None
    response: AdmissionResponse | None = None

    @field_validator("kind")
    @classmethod
    def _validate_kind(cls, value: str) -> str:
        if value != ADMISSION_REVIEW_KIND:
            raise ValueError(f"expected kind {ADMISSION_REVIEW_KIND}, got {value!r}")
        return value

    @field_validator("api_version")
    @classmethod
    def _validate_api_version(cls, value: str) -> str:
        if value not in SUPPORTED_ADMISSION_API_VERSIONS:
            supported = ", ".join(sorted(SUPPORTED_ADMISSION_API_VERSIONS))
            raise ValueError(
                f"unsupported apiVersion {value!r} (supported: {supported})"
            )
        return value
