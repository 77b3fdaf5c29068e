"""
Network Module Functions
Creates the AWS resources described by a planned topology
"""

from typing import Any, Dict, List, Optional

import pulumi
import pulumi_aws as aws

from .types import Ref, ResourceSpec, TopologyBundle


def _lookup(name: str, resources: Dict[str, Any]) -> Any:
    if name not in resources:
        raise KeyError(f"Reference to '{name}' before it was created")
    return resources[name]


def _resolve(value: Any, resources: Dict[str, Any]) -> Any:
    if isinstance(value, Ref):
        return getattr(_lookup(value.resource, resources), value.attribute)
    return value


def create_resource(spec: ResourceSpec, resources: Dict[str, Any],
                    opts: Optional[pulumi.ResourceOptions] = None) -> Any:
    """
    Create one resource from its description

    Args:
        spec: Resource description
        resources: Already created resources by name, used to resolve references
        opts: Resource options merged into every resource (parent, provider)

    Returns:
        The pulumi_aws resource
    """
    constructor = getattr(aws.ec2, spec.kind)
    properties = {key: _resolve(value, resources) for key, value in spec.properties.items()}

    resource_opts = opts
    if spec.depends_on:
        depends_on = [_lookup(name, resources) for name in spec.depends_on]
        resource_opts = pulumi.ResourceOptions(depends_on=depends_on)
        if opts is not None:
            resource_opts = pulumi.ResourceOptions.merge(opts, resource_opts)

    return constructor(spec.name, **properties, opts=resource_opts)


def create_network_resources(bundle: TopologyBundle,
                             opts: Optional[pulumi.ResourceOptions] = None) -> Dict[str, Any]:
    """
    Create every resource of a topology bundle

    Args:
        bundle: Planned topology
        opts: Resource options for all resources

    Returns:
        Dict with outputs and references to all resources
    """
    pulumi.log.info(f"Creating network resources for {bundle.vpc.name}")

    resources: Dict[str, Any] = {}
    for spec in bundle.resources():
        resources[spec.name] = create_resource(spec, resources, opts)

    def created(specs) -> List[Any]:
        return [resources[spec.name] for spec in specs]

    vpc = resources[bundle.vpc.name]
    public_subnets = created(bundle.public_subnets)
    private_subnets = created(bundle.private_subnets)
    nat_eips = created(bundle.nat_eips)
    nat_gateways = created(bundle.nat_gateways)
    private_route_tables = created(bundle.private_route_tables)
    igw = resources[bundle.internet_gateway.name] if bundle.internet_gateway else None
    public_route_table = resources[bundle.public_route_table.name] if bundle.public_route_table else None

    return {
        "vpc_id": vpc.id,
        "vpc_cidr_block": vpc.cidr_block,
        "public_subnet_ids": [subnet.id for subnet in public_subnets],
        "private_subnet_ids": [subnet.id for subnet in private_subnets],
        "internet_gateway_id": igw.id if igw else None,
        "nat_gateway_ids": [nat_gateway.id for nat_gateway in nat_gateways],
        "nat_public_ips": [eip.public_ip for eip in nat_eips],
        "public_route_table_id": public_route_table.id if public_route_table else None,
        "private_route_table_ids": [route_table.id for route_table in private_route_tables],
        # Keep references to all resources for dependencies
        "_vpc": vpc,
        "_igw": igw,
        "_public_subnets": public_subnets,
        "_private_subnets": private_subnets,
        "_nat_eips": nat_eips,
        "_nat_gateways": nat_gateways,
        "_public_route_table": public_route_table,
        "_private_route_tables": private_route_tables,
        "_resources": resources,
    }
