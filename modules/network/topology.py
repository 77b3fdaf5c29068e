"""
Network Topology Planner
Derives the resource graph of a multi-AZ network from its configuration.
Nothing is created here, see functions.create_network_resources.
"""

from typing import Dict, List, Tuple

import pulumi

from config import NAT_ONE_PER_AZ, NetworkConfig, SubnetConfig
from .types import Boundary, Ref, ResourceSpec, TopologyBundle

DEFAULT_ROUTE_CIDR = "0.0.0.0/0"


def _tags(name: str, tags: Dict[str, str] = None) -> Dict[str, str]:
    return {**(tags or {}), "Name": name}


def plan_vpc(config: NetworkConfig) -> ResourceSpec:
    name = f"{config.name}-vpc"
    return ResourceSpec(
        kind="Vpc",
        name=name,
        properties={
            "cidr_block": config.cidr_block,
            "enable_dns_hostnames": config.enable_dns_hostnames,
            "enable_dns_support": config.enable_dns_support,
            "tags": _tags(name),
        },
    )


def plan_subnets(config: NetworkConfig, boundary: Boundary, vpc: ResourceSpec) -> Tuple[ResourceSpec, ...]:
    """
    Plan one subnet per availability zone for a boundary

    Args:
        config: Network configuration
        boundary: Which subnet section to use
        vpc: Planned VPC the subnets belong to

    Returns:
        Subnet specs in availability zone order
    """
    subnet_config: SubnetConfig = (
        config.public_subnet if boundary is Boundary.PUBLIC else config.private_subnet
    )
    caller_tags = {tag.key: tag.value for tag in subnet_config.tags}

    subnets = []
    for az, cidr in zip(config.availability_zones, subnet_config.cidr_blocks):
        name = f"{config.name}-{boundary.value}-subnet-{az}"
        subnets.append(ResourceSpec(
            kind="Subnet",
            name=name,
            properties={
                "vpc_id": Ref(vpc.name),
                "cidr_block": cidr,
                "availability_zone": az,
                "map_public_ip_on_launch": boundary is Boundary.PUBLIC,
                "tags": _tags(name, caller_tags),
            },
        ))
    return tuple(subnets)


def plan_internet_gateway(config: NetworkConfig, vpc: ResourceSpec) -> ResourceSpec:
    name = f"{config.name}-igw"
    return ResourceSpec(
        kind="InternetGateway",
        name=name,
        properties={"vpc_id": Ref(vpc.name), "tags": _tags(name)},
    )


def plan_nat_gateways(config: NetworkConfig, public_subnets: Tuple[ResourceSpec, ...],
                      internet_gateway: ResourceSpec) -> Tuple[Tuple[ResourceSpec, ...], Tuple[ResourceSpec, ...]]:
    """
    Plan Elastic IPs and NAT gateways

    A single NAT gateway lives in the first public subnet unless the
    one-per-az strategy is configured.

    Returns:
        (eips, nat_gateways), positionally paired
    """
    if config.nat_strategy == NAT_ONE_PER_AZ:
        placements = [(f"-{az}", subnet) for az, subnet in zip(config.availability_zones, public_subnets)]
    else:
        placements = [("", public_subnets[0])]
        if len(public_subnets) > 1:
            pulumi.log.info(
                f"{config.name}: single NAT gateway in {public_subnets[0].name}, "
                f"private egress depends on that zone"
            )

    eips: List[ResourceSpec] = []
    nat_gateways: List[ResourceSpec] = []
    for suffix, subnet in placements:
        eip_name = f"{config.name}-nat-eip{suffix}"
        nat_name = f"{config.name}-nat-gw{suffix}"
        eips.append(ResourceSpec(
            kind="Eip",
            name=eip_name,
            properties={"domain": "vpc", "tags": _tags(eip_name)},
            depends_on=(internet_gateway.name,),
        ))
        nat_gateways.append(ResourceSpec(
            kind="NatGateway",
            name=nat_name,
            properties={
                "subnet_id": Ref(subnet.name),
                "allocation_id": Ref(eip_name),
                "tags": _tags(nat_name),
            },
            depends_on=(internet_gateway.name,),
        ))
    return tuple(eips), tuple(nat_gateways)


def plan_route_table(name: str, vpc: ResourceSpec) -> ResourceSpec:
    return ResourceSpec(
        kind="RouteTable",
        name=name,
        properties={"vpc_id": Ref(vpc.name), "tags": _tags(name)},
    )


def plan_default_route(name: str, route_table: ResourceSpec, target: ResourceSpec) -> ResourceSpec:
    """Plan a 0.0.0.0/0 route through an internet or NAT gateway"""
    target_key = "nat_gateway_id" if target.kind == "NatGateway" else "gateway_id"
    return ResourceSpec(
        kind="Route",
        name=name,
        properties={
            "route_table_id": Ref(route_table.name),
            "destination_cidr_block": DEFAULT_ROUTE_CIDR,
            target_key: Ref(target.name),
        },
    )


def plan_associations(config: NetworkConfig, boundary: Boundary, subnets: Tuple[ResourceSpec, ...],
                      route_tables: Tuple[ResourceSpec, ...]) -> Tuple[ResourceSpec, ...]:
    """
    Associate each subnet with a route table of its own boundary

    With one route table, every subnet uses it. With one per subnet, they
    pair up positionally.
    """
    associations = []
    for index, subnet in enumerate(subnets):
        route_table = route_tables[index] if len(route_tables) > 1 else route_tables[0]
        associations.append(ResourceSpec(
            kind="RouteTableAssociation",
            name=f"{config.name}-{boundary.value}-rtb-assc-{index}",
            properties={
                "subnet_id": Ref(subnet.name),
                "route_table_id": Ref(route_table.name),
            },
        ))
    return tuple(associations)


def plan_topology(config: NetworkConfig) -> TopologyBundle:
    """
    Derive the full network topology from a configuration

    Args:
        config: Validated network configuration

    Returns:
        TopologyBundle describing every resource and its references
    """
    vpc = plan_vpc(config)
    if config.vpc_only:
        pulumi.log.debug(f"{config.name}: planned VPC only")
        return TopologyBundle(vpc=vpc)

    private_subnets = plan_subnets(config, Boundary.PRIVATE, vpc)
    public_subnets = plan_subnets(config, Boundary.PUBLIC, vpc)

    internet_gateway = plan_internet_gateway(config, vpc)
    nat_eips, nat_gateways = plan_nat_gateways(config, public_subnets, internet_gateway)

    public_route_table = plan_route_table(f"{config.name}-public-rtb", vpc)
    public_route = plan_default_route(f"{config.name}-public-route", public_route_table, internet_gateway)

    if len(nat_gateways) > 1:
        suffixes = [f"-{az}" for az in config.availability_zones]
    else:
        suffixes = [""]
    private_route_tables = tuple(
        plan_route_table(f"{config.name}-private-rtb{suffix}", vpc) for suffix in suffixes
    )
    private_routes = tuple(
        plan_default_route(f"{config.name}-private-route{suffix}", route_table, nat_gateway)
        for suffix, route_table, nat_gateway in zip(suffixes, private_route_tables, nat_gateways)
    )

    bundle = TopologyBundle(
        vpc=vpc,
        internet_gateway=internet_gateway,
        nat_eips=nat_eips,
        nat_gateways=nat_gateways,
        private_subnets=private_subnets,
        public_subnets=public_subnets,
        private_route_tables=private_route_tables,
        public_route_table=public_route_table,
        private_routes=private_routes,
        public_route=public_route,
        private_associations=plan_associations(config, Boundary.PRIVATE, private_subnets, private_route_tables),
        public_associations=plan_associations(config, Boundary.PUBLIC, public_subnets, (public_route_table,)),
    )
    pulumi.log.debug(f"{config.name}: planned {sum(1 for _ in bundle.resources())} resources")
    return bundle
