"""
Pulumi modules for the network stack
Simple function-based approach following Pulumi best practices
"""

from .network import create_network_resources, plan_topology

__all__ = [
    "create_network_resources",
    "plan_topology",
]
