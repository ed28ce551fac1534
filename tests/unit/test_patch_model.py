"""
Unit tests for the JSON patch model.

These tests verify that patch operations enforce the RFC 6902 operand rules
and serialize to the standard wire array.
"""

import math

import pytest
from pydantic import ValidationError

from admission_webhook.models import (
    PatchOperation,
    dump_patch,
    escape_pointer_token,
    join_pointer,
    load_patch,
)


class TestPatchOperationValidation:
    """Test cases for operand and pointer validation."""

    def test_value_operations_accept_value(self):
        """add, replace and test carry a value."""
        for op in ("add", "replace", "test"):
            operation = PatchOperation(op=op, path="/metadata/labels/app", value="web")
            assert operation.value == "web"

    def test_value_operations_require_value(self):
        """add without a value is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            PatchOperation(op="add", path="/metadata/labels/app")

        assert "requires a value" in str(exc_info.value)

    def test_explicit_null_value_counts_as_present(self):
        """An explicit null is a valid add value."""
        operation = PatchOperation(op="add", path="/spec/priority", value=None)
        assert dump_patch([operation]) == b'[{"op":"add","path":"/spec/priority","value":null}]'

    def test_remove_rejects_value(self):
        """remove must not carry a value."""
        with pytest.raises(ValidationError):
            PatchOperation(op="remove", path="/metadata/labels/app", value="web")

    def test_move_and_copy_require_from(self):
        """move and copy need a source pointer."""
        for op in ("move", "copy"):
            with pytest.raises(ValidationError):
                PatchOperation(op=op, path="/metadata/labels/b")

            operation = PatchOperation(op=op, path="/metadata/labels/b", from_="/metadata/labels/a")
            assert operation.from_ == "/metadata/labels/a"

    def test_from_rejected_on_other_operations(self):
        """Only move and copy take a source pointer."""
        with pytest.raises(ValidationError):
            PatchOperation(op="remove", path="/a", from_="/b")

    def test_unknown_operation_rejected(self):
        """Operations outside RFC 6902 are rejected."""
        with pytest.raises(ValidationError):
            PatchOperation(op="merge", path="/a", value=1)

    def test_invalid_pointers_rejected(self):
        """Paths must be syntactically valid JSON pointers."""
        for path in ["metadata/labels", "/metadata/~2", "/metadata/a~"]:
            with pytest.raises(ValidationError):
                PatchOperation(op="remove", path=path)

    def test_valid_pointers_accepted(self):
        """Root, escaped and empty-token pointers are valid."""
        for path in ["", "/", "/metadata/labels/app.kubernetes.io~1name", "/a~0b", "/spec/containers/0"]:
            PatchOperation(op="remove", path=path)  # Should not raise

    def test_operations_are_immutable(self):
        """Operations cannot be changed after a decision function returns them."""
        operation = PatchOperation.add("/a", 1)
        with pytest.raises(ValidationError):
            operation.path = "/b"


class TestPatchSerialization:
    """Test cases for the wire array."""

    def test_dump_patch_compact_wire_array(self):
        """Operations serialize in order with only supplied members."""
        ops = [
            PatchOperation.add("/metadata/labels/injected", "true"),
            PatchOperation.remove("/metadata/annotations/old"),
            PatchOperation(op="copy", path="/metadata/labels/b", from_="/metadata/labels/a"),
        ]

        assert dump_patch(ops) == (
            b'[{"op":"add","path":"/metadata/labels/injected","value":"true"},'
            b'{"op":"remove","path":"/metadata/annotations/old"},'
            b'{"op":"copy","path":"/metadata/labels/b","from":"/metadata/labels/a"}]'
        )

    def test_dump_empty_patch(self):
        assert dump_patch([]) == b"[]"

    def test_load_patch(self):
        """Wire arrays parse back into operations, using the 'from' alias."""
        ops = load_patch(
            '[{"op":"replace","path":"/spec/replicas","value":3},'
            '{"op":"move","path":"/b","from":"/a"}]'
        )

        assert ops == [
            PatchOperation.replace("/spec/replicas", 3),
            PatchOperation(op="move", path="/b", from_="/a"),
        ]

    @pytest.mark.parametrize(
        "value", [math.nan, math.inf, {"ratio": -math.inf}, [1.0, math.nan]]
    )
    def test_dump_rejects_non_finite_values(self, value):
        """JSON has no NaN or infinity, so they must not become null."""
        with pytest.raises(ValueError, match="/spec/x"):
            dump_patch([PatchOperation.add("/spec/x", value)])

    def test_load_patch_rejects_invalid_operation(self):
        with pytest.raises(ValidationError):
            load_patch('[{"op":"add","path":"/a"}]')

    def test_concatenation_preserves_order(self):
        """Concatenating outputs is plain list append."""
        first = [PatchOperation.add("/a", 1)]
        second = [PatchOperation.replace("/a", 2)]

        assert dump_patch(first + second) == (
            b'[{"op":"add","path":"/a","value":1},{"op":"replace","path":"/a","value":2}]'
        )


class TestJsonPointerHelpers:
    """Test cases for RFC 6901 escaping."""

    def test_escape_pointer_token(self):
        assert escape_pointer_token("app.kubernetes.io/name") == "app.kubernetes.io~1name"
        assert escape_pointer_token("a~b") == "a~0b"
        assert escape_pointer_token("~/") == "~0~1"

    def test_join_pointer(self):
        assert join_pointer("metadata", "labels", "example.com/team") == (
            "/metadata/labels/example.com~1team"
        )
        assert join_pointer() == ""
