"""
Chat service topology: planning and provisioning of the chat stack on Kubernetes.
"""

from chat_topology.config import Settings, load_settings
from chat_topology.planner import Plan, build_plan
from chat_topology.provision import materialize

__all__ = ["Plan", "Settings", "build_plan", "load_settings", "materialize"]
