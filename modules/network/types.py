"""
Network Module Types
Resource descriptions produced by the topology planner
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple


class Boundary(str, Enum):
    """Routing exposure of a subnet"""

    PRIVATE = "private"
    PUBLIC = "public"


@dataclass(frozen=True)
class Ref:
    """Reference to an attribute of another planned resource"""

    resource: str
    attribute: str = "id"


@dataclass(frozen=True)
class ResourceSpec:
    """
    Description of a single resource

    Args:
        kind: pulumi_aws.ec2 class name, e.g. "Subnet"
        name: Pulumi logical name
        properties: Constructor keyword arguments, may contain Ref values
        depends_on: Names of resources that must exist first
    """

    kind: str
    name: str
    properties: Dict[str, Any] = field(default_factory=dict)
    depends_on: Tuple[str, ...] = ()

    def references(self) -> Tuple[str, ...]:
        """Names of the resources this spec points at"""
        return tuple(value.resource for value in self.properties.values() if isinstance(value, Ref))


@dataclass(frozen=True)
class TopologyBundle:
    """All resources of one network, grouped by role"""

    vpc: ResourceSpec
    internet_gateway: Optional[ResourceSpec] = None
    nat_eips: Tuple[ResourceSpec, ...] = ()
    nat_gateways: Tuple[ResourceSpec, ...] = ()
    private_subnets: Tuple[ResourceSpec, ...] = ()
    public_subnets: Tuple[ResourceSpec, ...] = ()
    private_route_tables: Tuple[ResourceSpec, ...] = ()
    public_route_table: Optional[ResourceSpec] = None
    private_routes: Tuple[ResourceSpec, ...] = ()
    public_route: Optional[ResourceSpec] = None
    private_associations: Tuple[ResourceSpec, ...] = ()
    public_associations: Tuple[ResourceSpec, ...] = ()

    @property
    def nat_gateway(self) -> Optional[ResourceSpec]:
        return self.nat_gateways[0] if self.nat_gateways else None

    @property
    def private_route_table(self) -> Optional[ResourceSpec]:
        return self.private_route_tables[0] if self.private_route_tables else None

    def subnets(self, boundary: Boundary) -> Tuple[ResourceSpec, ...]:
        return self.public_subnets if boundary is Boundary.PUBLIC else self.private_subnets

    def associations(self, boundary: Boundary) -> Tuple[ResourceSpec, ...]:
        return self.public_associations if boundary is Boundary.PUBLIC else self.private_associations

    def resources(self) -> Iterator[ResourceSpec]:
        """Yield every spec, each one after the resources it references"""
        yield self.vpc
        yield from self.private_subnets
        yield from self.public_subnets
        if self.internet_gateway is not None:
            yield self.internet_gateway
        for eip, nat_gateway in zip(self.nat_eips, self.nat_gateways):
            yield eip
            yield nat_gateway
        if self.public_route_table is not None:
            yield self.public_route_table
        if self.public_route is not None:
            yield self.public_route
        yield from self.private_route_tables
        yield from self.private_routes
        yield from self.public_associations
        yield from self.private_associations
