"""
Unit tests for the admission controller and decision registry.

Decision functions are mocks, so call counts double as a side channel for
checking which functions ran.
"""

import json
import logging
import math
from unittest.mock import MagicMock

import pytest

from admission_webhook.admission import AdmissionController, Decision, DecisionRegistry
from admission_webhook.admission.codec import decode_request
from admission_webhook.errors import (
    ConfigurationError,
    DecisionError,
    DecodeError,
    EncodeError,
)
from admission_webhook.models import PatchOperation
from tests.fixtures.admission_reviews import admission_review_body

OP_A = PatchOperation.add("/metadata/labels/a", "1")
OP_B = PatchOperation.add("/metadata/labels/b", "2")


def make_request(**kwargs):
    return decode_request(admission_review_body(**kwargs)).request


def returning(*ops):
    return MagicMock(return_value=list(ops))


def failing(message):
    return MagicMock(side_effect=DecisionError(message))


class TestProtectedNamespaces:
    """Objects in Kubernetes-owned namespaces are never mutated."""

    @pytest.mark.parametrize("namespace", ["kube-system", "kube-public"])
    def test_protected_namespace_bypasses_decisions(self, namespace):
        always_fails = failing("should never run")
        controller = AdmissionController([Decision("deny-all", always_fails)])

        response = controller.admit(make_request(namespace=namespace))

        assert response.allowed is True
        assert response.patch is None
        assert response.status is None
        always_fails.assert_not_called()

    @pytest.mark.parametrize("namespace", ["default", "kube-node-lease", "kube-systemx", None])
    def test_other_namespaces_run_decisions(self, namespace):
        func = returning(OP_A)
        controller = AdmissionController([Decision("label", func)])

        response = controller.admit(make_request(namespace=namespace))

        assert response.patch == [OP_A]
        func.assert_called_once()


class TestDecisionPipeline:
    """Aggregation and failure handling across decision functions."""

    def test_no_decisions_allows(self):
        response = AdmissionController().admit(make_request())

        assert response.allowed is True
        assert response.patch is None

    def test_empty_patches_allow_without_patch(self):
        first, second = returning(), returning()
        controller = AdmissionController([Decision("first", first), Decision("second", second)])

        response = controller.admit(make_request())

        assert response.allowed is True
        assert response.patch is None
        assert response.patch_type is None
        first.assert_called_once()
        second.assert_called_once()

    def test_patches_are_concatenated_in_registration_order(self):
        controller = AdmissionController(
            [Decision("first", returning(OP_A)), Decision("second", returning(OP_B))]
        )

        response = controller.admit(make_request())

        assert response.allowed is True
        assert response.patch == [OP_A, OP_B]
        assert response.patch_type == "JSONPatch"

    @pytest.mark.parametrize("failing_index", [0, 1, 2])
    def test_first_failure_denies_and_stops_iteration(self, failing_index):
        funcs = [returning(OP_A), returning(OP_B), returning(OP_A)]
        funcs[failing_index] = failing(f"decision {failing_index + 1} failed")
        controller = AdmissionController(
            [Decision(f"decision-{i}", func) for i, func in enumerate(funcs)]
        )

        response = controller.admit(make_request())

        assert response.allowed is False
        assert response.status.message == f"decision {failing_index + 1} failed"
        # Patches from functions that ran earlier are discarded
        assert response.patch is None
        for i, func in enumerate(funcs):
            if i <= failing_index:
                func.assert_called_once()
            else:
                func.assert_not_called()

    def test_request_is_passed_to_decisions(self):
        func = returning()
        request = make_request(namespace="team-a")

        AdmissionController([Decision("inspect", func)]).admit(request)

        func.assert_called_once_with(request)

    def test_unexpected_exception_denies(self):
        crashing = MagicMock(side_effect=KeyError("spec"))
        after = returning(OP_A)
        controller = AdmissionController(
            [Decision("crashing", crashing), Decision("after", after)]
        )

        response = controller.admit(make_request())

        assert response.allowed is False
        assert response.status.message == "crashing: 'spec'"
        after.assert_not_called()

    def test_plain_dict_operations_are_accepted(self):
        func = MagicMock(return_value=[{"op": "add", "path": "/metadata/labels/a", "value": "1"}])

        response = AdmissionController([Decision("dicts", func)]).admit(make_request())

        assert response.patch == [OP_A]

    def test_malformed_operation_denies(self):
        func = MagicMock(return_value=[{"op": "add", "path": "no-slash", "value": "1"}])

        response = AdmissionController([Decision("broken", func)]).admit(make_request())

        assert response.allowed is False
        assert response.status.message.startswith("broken: ")


class TestReview:
    """End-to-end bytes in, bytes out."""

    def test_review_scenario_label_injection(self):
        controller = AdmissionController(
            [Decision("inject", returning(PatchOperation.add("/metadata/labels/injected", "true")))]
        )

        encoded = json.loads(controller.review(admission_review_body()))

        assert encoded["response"]["allowed"] is True
        assert encoded["response"]["uid"] == "705ab4f5-6393-11e8-b7cc-42010a800002"

    def test_review_is_deterministic(self):
        controller = AdmissionController(
            [Decision("first", returning(OP_A)), Decision("second", returning(OP_B))]
        )
        body = admission_review_body()

        assert controller.review(body) == controller.review(body)

    def test_review_decode_failure_runs_no_decisions(self):
        func = returning(OP_A)
        controller = AdmissionController([Decision("label", func)])

        with pytest.raises(DecodeError):
            controller.review(b"{}")

        func.assert_not_called()

    def test_encode_failure_is_logged_with_request_uid(self, caplog):
        controller = AdmissionController(
            [Decision("nan", returning(PatchOperation.add("/metadata/labels/x", math.nan)))]
        )

        with caplog.at_level(logging.ERROR, logger="admission_webhook"):
            with pytest.raises(EncodeError):
                controller.review(admission_review_body(uid="encode-fails"))

        records = [r for r in caplog.records if getattr(r, "request_uid", None) == "encode-fails"]
        assert len(records) == 1
        assert "Could not encode admission response" in records[0].getMessage()


class TestDecisionRegistry:
    """Registration happens once at startup."""

    def test_registration_order_is_preserved(self):
        registry = DecisionRegistry()
        registry.add("first", returning())
        registry.add("second", returning())

        decisions = registry.freeze()

        assert [decision.name for decision in decisions] == ["first", "second"]
        assert registry.names == ["first", "second"]
        assert len(registry) == 2

    def test_decorator_registration(self):
        registry = DecisionRegistry()

        @registry.register("noop")
        def noop(request):
            return []

        (decision,) = registry.freeze()
        assert decision.name == "noop"
        assert decision.func is noop

    def test_duplicate_name_rejected(self):
        registry = DecisionRegistry()
        registry.add("label", returning())

        with pytest.raises(ConfigurationError):
            registry.add("label", returning())

    def test_registration_after_freeze_rejected(self):
        registry = DecisionRegistry()
        registry.freeze()

        assert registry.frozen
        with pytest.raises(ConfigurationError) as exc_info:
            registry.add("late", returning())

        assert "registry is frozen" in str(exc_info.value)

    def test_controller_decisions_are_immutable(self):
        registry = DecisionRegistry()
        registry.add("first", returning())
        controller = AdmissionController(registry.freeze())

        assert isinstance(controller.decisions, tuple)
