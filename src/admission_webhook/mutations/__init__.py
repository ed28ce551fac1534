"""
Bundled decision functions.

Each mutation is a callable satisfying the AdmitFunc contract and is
registered at startup when its configuration is present.
"""

from .pod_node_selector import PodNodeSelector, parse_node_selector_config

__all__ = ["PodNodeSelector", "parse_node_selector_config"]
