"""Namespace exclusion policy protecting Kubernetes-owned namespaces."""

from admission_webhook.constants import PROTECTED_NAMESPACES


def is_protected_namespace(namespace: str | None) -> bool:
    """
    Check whether objects in ``namespace`` must never be mutated.

    Args:
        namespace: Namespace of the admitted object (None for cluster-scoped)

    Returns:
        True for kube-public and kube-system
    """
    return namespace in PROTECTED_NAMESPACES
