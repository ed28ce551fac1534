"""
JSON patch model (RFC 6902).

A patch is an ordered list of operations applied left-to-right against the
original object, so later operations may depend on earlier ones. This layer
only checks the shape of each operation; whether a path resolves against the
real object is decided by the API server when it applies the patch.
"""

import math
import re
from collections.abc import Iterable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

PatchOp = Literal["add", "remove", "replace", "move", "copy", "test"]

# Operations that carry a "value" member
VALUE_OPERATIONS = frozenset({"add", "replace", "test"})
# Operations that carry a "from" member
FROM_OPERATIONS = frozenset({"move", "copy"})

# RFC 6901: empty, or "/"-separated tokens where "~" only appears as ~0 or ~1
JSON_POINTER_PATTERN = re.compile(r"^(?:/(?:[^~/]|~[01])*)*$")


class PatchOperation(BaseModel):
    """A single JSON patch operation."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    op: PatchOp = Field(..., description="Operation to perform")
    path: str = Field(..., description="JSON pointer to the target location")
    value: Any = Field(None, description="Operand for add, replace and test")
    from_: str | None = Field(
        None, alias="from", description="Source pointer for move and copy"
    )

    @field_validator("path", "from_")
    @classmethod
    def _validate_pointer(cls, value: str | None) -> str | None:
        if value is not None and not JSON_POINTER_PATTERN.match(value):
            raise ValueError(f"invalid JSON pointer {value!r}")
        return value

    @model_validator(mode="after")
    def _validate_operands(self) -> "PatchOperation":
        # An explicit null is a valid value, so presence is judged by fields_set
        has_value = "value" in self.model_fields_set
        if self.op in VALUE_OPERATIONS and not has_value:
            raise ValueError(f"'{self.op}' operation requires a value")
        if self.op not in VALUE_OPERATIONS and has_value:
            raise ValueError(f"'{self.op}' operation does not take a value")

        has_from = self.from_ is not None
        if self.op in FROM_OPERATIONS and not has_from:
            raise ValueError(f"'{self.op}' operation requires a 'from' pointer")
        if self.op not in FROM_OPERATIONS and has_from:
            raise ValueError(f"'{self.op}' operation does not take a 'from' pointer")
        return self

    @classmethod
    def add(cls, path: str, value: Any) -> "PatchOperation":
        return cls(op="add", path=path, value=value)

    @classmethod
    def replace(cls, path: str, value: Any) -> "PatchOperation":
        return cls(op="replace", path=path, value=value)

    @classmethod
    def remove(cls, path: str) -> "PatchOperation":
        return cls(op="remove", path=path)


_PATCH_ADAPTER = TypeAdapter(list[PatchOperation])


def _require_finite(value: Any, path: str) -> None:
    """Raise ValueError for NaN or infinity anywhere inside ``value``."""
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"value for {path} is not valid JSON: {value!r}")
    if isinstance(value, dict):
        for item in value.values():
            _require_finite(item, path)
    elif isinstance(value, list | tuple):
        for item in value:
            _require_finite(item, path)


def dump_patch(operations: Iterable[PatchOperation]) -> bytes:
    """
    Serialize operations to the JSON patch wire array.

    Only members that were supplied are written, so ``remove`` never gains a
    ``"value": null`` and an explicit null value on ``add`` survives.

    Raises:
        ValueError: If a value holds NaN or infinity, which JSON cannot carry
    """
    operations = list(operations)
    for operation in operations:
        _require_finite(operation.value, operation.path)
    return _PATCH_ADAPTER.dump_json(operations, by_alias=True, exclude_unset=True)


def load_patch(data: bytes | str) -> list[PatchOperation]:
    """Parse a JSON patch wire array into operations."""
    return _PATCH_ADAPTER.validate_json(data)


def escape_pointer_token(token: str) -> str:
    """Escape a single reference token ("a/b" -> "a~1b", "a~b" -> "a~0b")."""
    return token.replace("~", "~0").replace("/", "~1")


def join_pointer(*tokens: str) -> str:
    """
    Build a JSON pointer from unescaped reference tokens.

    Example:
        join_pointer("metadata", "labels", "app.kubernetes.io/name")
        -> "/metadata/labels/app.kubernetes.io~1name"
    """
    return "".join(f"/{escape_pointer_token(token)}" for token in tokens)
