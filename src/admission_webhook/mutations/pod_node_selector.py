"""
Pod node selector mutation.

Pins pods of configured namespaces to a set of nodes by merging a per-namespace
``nodeSelector`` into the pod spec. Configuration is read from the
``POD_NODES_SELECTOR_CONFIG`` environment variable:

    <namespace>:<label>=<value>[,<label>=<value>...][;<namespace>:...]

Example:
    POD_NODES_SELECTOR_CONFIG="team-a:pool=a,disk=ssd;team-b:pool=b"
"""

import logging

from admission_webhook.constants import POD_KIND
from admission_webhook.errors import ConfigurationError, DecisionError
from admission_webhook.models import AdmissionRequest, PatchOperation, join_pointer

logger = logging.getLogger(__name__)

NodeSelectorConfig = dict[str, dict[str, str]]

CONFIG_FORMAT = "<namespace>:<label>=<value>[,<label>=<value>...][;<namespace>:...]"


def parse_node_selector_config(raw: str) -> NodeSelectorConfig:
    """
    Parse the per-namespace node selector configuration string.

    Args:
        raw: Configuration string, empty to disable the mutation

    Returns:
        Mapping of namespace to node selector labels

    Raises:
        ConfigurationError: If any entry is malformed
    """
    config: NodeSelectorConfig = {}

    for entry in raw.split(";"):
        entry = entry.strip()
        if not entry:
            continue

        namespace, sep, selector = entry.partition(":")
        namespace = namespace.strip()
        if not sep or not namespace:
            raise ConfigurationError(
                f"invalid node selector entry {entry!r}: missing namespace",
                user_action=f"Use the format {CONFIG_FORMAT}",
            )
        if namespace in config:
            raise ConfigurationError(
                f"namespace {namespace!r} is configured more than once"
            )

        labels: dict[str, str] = {}
        for pair in selector.split(","):
            key, sep, value = pair.partition("=")
            key = key.strip()
            if not sep or not key:
                raise ConfigurationError(
                    f"invalid node selector label {pair!r} for namespace {namespace!r}",
                    user_action=f"Use the format {CONFIG_FORMAT}",
                )
            labels[key] = value.strip()

        config[namespace] = labels

    return config


class PodNodeSelector:
    """Decision function adding per-namespace node selectors to pods."""

    name = "pod-node-selector"

    def __init__(self, config: NodeSelectorConfig):
        self.config = config

    @classmethod
    def from_string(cls, raw: str) -> "PodNodeSelector":
        return cls(parse_node_selector_config(raw))

    def __call__(self, request: AdmissionRequest) -> list[PatchOperation]:
        if request.kind is None or request.kind.kind != POD_KIND:
            return []

        selector = self.config.get(request.namespace or "")
        if not selector:
            return []

        spec = (request.obj or {}).get("spec")
        if not isinstance(spec, dict):
            raise DecisionError(
                f"pod {request.namespace}/{request.name or '<unnamed>'} has no spec"
            )

        existing = spec.get("nodeSelector")
        if not existing:
            logger.debug(f"Setting node selector {selector} in namespace {request.namespace}")
            return [PatchOperation.add("/spec/nodeSelector", dict(selector))]
        if not isinstance(existing, dict):
            raise DecisionError("pod spec.nodeSelector is not a mapping")

        ops = []
        for key, value in selector.items():
            path = join_pointer("spec", "nodeSelector", key)
            if key not in existing:
                ops.append(PatchOperation.add(path, value))
            elif existing[key] != value:
                ops.append(PatchOperation.replace(path, value))
        return ops
