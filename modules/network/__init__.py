"""
Network Module
VPC, subnets, gateways and route tables across availability zones
"""

from .types import Boundary, Ref, ResourceSpec, TopologyBundle
from .topology import plan_topology
from .functions import create_network_resources, create_resource

__all__ = [
    "Boundary",
    "Ref",
    "ResourceSpec",
    "TopologyBundle",
    "plan_topology",
    "create_network_resources",
    "create_resource",
]
