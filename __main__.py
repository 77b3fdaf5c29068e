"""
Network Stack
VPC with public and private subnets across availability zones
"""
import pulumi
from config import load_network_config
from modules.network import plan_topology, create_network_resources

# 1. Configuration
network_config = load_network_config(pulumi.Config())

# 2. Desired topology
topology = plan_topology(network_config)

# 3. Resources
network = create_network_resources(topology)

# Exports
pulumi.export("vpc_id", network["vpc_id"])
pulumi.export("vpc_cidr_block", network["vpc_cidr_block"])

if not network_config.vpc_only:
    pulumi.export("public_subnet_ids", network["public_subnet_ids"])
    pulumi.export("private_subnet_ids", network["private_subnet_ids"])
    pulumi.export("internet_gateway_id", network["internet_gateway_id"])
    pulumi.export("nat_gateway_ids", network["nat_gateway_ids"])
    pulumi.export("nat_public_ips", network["nat_public_ips"])
    pulumi.export("public_route_table_id", network["public_route_table_id"])
    pulumi.export("private_route_table_ids", network["private_route_table_ids"])
