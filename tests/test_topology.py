"""
Unit tests for the network topology planner
The planner only describes resources, so no AWS mocks are needed
"""

import unittest
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import CardinalityMismatch, NetworkConfig, SubnetConfig, Tag, parse_network_config
from modules.network import Boundary, Ref, plan_topology


def network_config(**overrides):
    raw = {
        "name": "dev",
        "cidrBlock": "10.0.0.0/16",
        "availabilityZones": ["a", "b"],
        "publicSubnet": {
            "cidrBlocks": ["10.0.1.0/24", "10.0.2.0/24"],
            "tags": [{"key": "Tier", "value": "public"}, {"key": "Team", "value": "platform"}],
        },
        "privateSubnet": {
            "cidrBlocks": ["10.0.101.0/24", "10.0.102.0/24"],
            "tags": [{"key": "Tier", "value": "private"}],
        },
    }
    raw.update(overrides)
    return parse_network_config(raw)


class TestPlanTopology(unittest.TestCase):
    """Derivation of the multi-AZ network"""

    def setUp(self):
        self.bundle = plan_topology(network_config())

    def test_vpc(self):
        vpc = self.bundle.vpc
        self.assertEqual(vpc.kind, "Vpc")
        self.assertEqual(vpc.name, "dev-vpc")
        self.assertEqual(vpc.properties["cidr_block"], "10.0.0.0/16")
        self.assertEqual(vpc.properties["tags"], {"Name": "dev-vpc"})

    def test_public_subnets_follow_zones(self):
        subnets = self.bundle.public_subnets
        self.assertEqual([s.name for s in subnets], ["dev-public-subnet-a", "dev-public-subnet-b"])
        self.assertEqual([s.properties["cidr_block"] for s in subnets], ["10.0.1.0/24", "10.0.2.0/24"])
        self.assertEqual([s.properties["availability_zone"] for s in subnets], ["a", "b"])
        self.assertTrue(all(s.properties["map_public_ip_on_launch"] for s in subnets))

    def test_private_subnets_follow_zones(self):
        subnets = self.bundle.private_subnets
        self.assertEqual([s.name for s in subnets], ["dev-private-subnet-a", "dev-private-subnet-b"])
        self.assertEqual([s.properties["cidr_block"] for s in subnets], ["10.0.101.0/24", "10.0.102.0/24"])
        self.assertFalse(any(s.properties["map_public_ip_on_launch"] for s in subnets))

    def test_subnets_belong_to_vpc(self):
        for subnet in self.bundle.public_subnets + self.bundle.private_subnets:
            self.assertEqual(subnet.properties["vpc_id"], Ref("dev-vpc"))

    def test_subnet_tags(self):
        for subnet in self.bundle.public_subnets:
            self.assertEqual(subnet.properties["tags"], {
                "Tier": "public",
                "Team": "platform",
                "Name": subnet.name,
            })
        for subnet in self.bundle.private_subnets:
            self.assertEqual(subnet.properties["tags"], {"Tier": "private", "Name": subnet.name})

    def test_subnet_count_matches_zones(self):
        bundle = plan_topology(network_config(
            availabilityZones=["a", "b", "c"],
            publicSubnet={"cidrBlocks": ["10.0.1.0/24", "10.0.2.0/24", "10.0.3.0/24"]},
            privateSubnet={"cidrBlocks": ["10.0.101.0/24", "10.0.102.0/24", "10.0.103.0/24"]},
        ))
        for boundary in Boundary:
            self.assertEqual(len(bundle.subnets(boundary)), 3)
            self.assertEqual(len(bundle.associations(boundary)), 3)

    def test_deterministic(self):
        self.assertEqual(plan_topology(network_config()), self.bundle)
        self.assertEqual(
            [spec.name for spec in plan_topology(network_config()).resources()],
            [spec.name for spec in self.bundle.resources()],
        )

    def test_single_nat_gateway_in_first_public_subnet(self):
        self.assertEqual(len(self.bundle.nat_gateways), 1)
        nat_gateway = self.bundle.nat_gateway
        self.assertEqual(nat_gateway.name, "dev-nat-gw")
        self.assertEqual(nat_gateway.properties["subnet_id"], Ref("dev-public-subnet-a"))
        self.assertEqual(nat_gateway.properties["allocation_id"], Ref("dev-nat-eip"))
        self.assertEqual(self.bundle.nat_eips[0].properties["domain"], "vpc")

    def test_nat_waits_for_internet_gateway(self):
        self.assertIn("dev-igw", self.bundle.nat_gateway.depends_on)
        self.assertIn("dev-igw", self.bundle.nat_eips[0].depends_on)

    def test_internet_gateway(self):
        igw = self.bundle.internet_gateway
        self.assertEqual(igw.name, "dev-igw")
        self.assertEqual(igw.properties["vpc_id"], Ref("dev-vpc"))

    def test_default_routes(self):
        public_route = self.bundle.public_route
        self.assertEqual(public_route.properties["destination_cidr_block"], "0.0.0.0/0")
        self.assertEqual(public_route.properties["gateway_id"], Ref("dev-igw"))
        self.assertEqual(public_route.properties["route_table_id"], Ref("dev-public-rtb"))

        self.assertEqual(len(self.bundle.private_routes), 1)
        private_route = self.bundle.private_routes[0]
        self.assertEqual(private_route.properties["destination_cidr_block"], "0.0.0.0/0")
        self.assertEqual(private_route.properties["nat_gateway_id"], Ref("dev-nat-gw"))
        self.assertEqual(private_route.properties["route_table_id"], Ref("dev-private-rtb"))
        self.assertNotIn("gateway_id", private_route.properties)

    def test_associations_stay_within_boundary(self):
        expected_tables = {
            Boundary.PUBLIC: Ref("dev-public-rtb"),
            Boundary.PRIVATE: Ref("dev-private-rtb"),
        }
        for boundary in Boundary:
            subnets = self.bundle.subnets(boundary)
            associations = self.bundle.associations(boundary)
            self.assertEqual(
                [a.name for a in associations],
                [f"dev-{boundary.value}-rtb-assc-{i}" for i in range(len(subnets))],
            )
            for subnet, association in zip(subnets, associations):
                self.assertEqual(association.properties["subnet_id"], Ref(subnet.name))
                self.assertEqual(association.properties["route_table_id"], expected_tables[boundary])

    def test_resources_ordered_by_dependency(self):
        seen = set()
        for spec in self.bundle.resources():
            for name in spec.references() + spec.depends_on:
                self.assertIn(name, seen, f"{spec.name} needs {name} first")
            seen.add(spec.name)

    def test_resource_names_unique(self):
        names = [spec.name for spec in self.bundle.resources()]
        self.assertEqual(len(names), len(set(names)))


class TestPlanTopologyVariants(unittest.TestCase):
    """Configuration-driven variants of the same topology"""

    def test_vpc_only(self):
        bundle = plan_topology(parse_network_config({
            "name": "iso",
            "cidrBlock": "10.1.0.0/16",
            "topology": "vpc-only",
        }))

        self.assertEqual([spec.name for spec in bundle.resources()], ["iso-vpc"])
        self.assertIsNone(bundle.internet_gateway)
        self.assertIsNone(bundle.nat_gateway)
        self.assertEqual(bundle.public_subnets, ())

    def test_nat_gateway_per_zone(self):
        bundle = plan_topology(network_config(natGateways="one-per-az"))

        self.assertEqual([n.name for n in bundle.nat_gateways], ["dev-nat-gw-a", "dev-nat-gw-b"])
        self.assertEqual(
            [n.properties["subnet_id"] for n in bundle.nat_gateways],
            [Ref("dev-public-subnet-a"), Ref("dev-public-subnet-b")],
        )
        self.assertEqual(
            [n.properties["allocation_id"] for n in bundle.nat_gateways],
            [Ref("dev-nat-eip-a"), Ref("dev-nat-eip-b")],
        )
        self.assertEqual(
            [r.name for r in bundle.private_route_tables],
            ["dev-private-rtb-a", "dev-private-rtb-b"],
        )
        self.assertEqual(
            [r.properties["nat_gateway_id"] for r in bundle.private_routes],
            [Ref("dev-nat-gw-a"), Ref("dev-nat-gw-b")],
        )
        self.assertEqual(
            [a.properties["route_table_id"] for a in bundle.private_associations],
            [Ref("dev-private-rtb-a"), Ref("dev-private-rtb-b")],
        )
        # Public side is unchanged
        self.assertEqual(
            {a.properties["route_table_id"] for a in bundle.public_associations},
            {Ref("dev-public-rtb")},
        )

    def test_single_zone(self):
        bundle = plan_topology(network_config(
            availabilityZones=["a"],
            publicSubnet={"cidrBlocks": ["10.0.1.0/24"]},
            privateSubnet={"cidrBlocks": ["10.0.101.0/24"]},
        ))

        self.assertEqual(bundle.nat_gateway.properties["subnet_id"], Ref("dev-public-subnet-a"))
        self.assertEqual(bundle.public_subnets[0].properties["tags"], {"Name": "dev-public-subnet-a"})

    def test_name_tag_overrides_caller_name(self):
        bundle = plan_topology(network_config(
            publicSubnet={
                "cidrBlocks": ["10.0.1.0/24", "10.0.2.0/24"],
                "tags": [{"key": "Name", "value": "x"}, {"key": "Tier", "value": "public"}],
            },
        ))

        for subnet in bundle.public_subnets:
            self.assertEqual(subnet.properties["tags"], {"Name": subnet.name, "Tier": "public"})

    def test_direct_config(self):
        bundle = plan_topology(NetworkConfig(
            name="dev",
            cidr_block="10.0.0.0/16",
            availability_zones=("a", "b"),
            public_subnet=SubnetConfig(cidr_blocks=("10.0.1.0/24", "10.0.2.0/24"), tags=(Tag("Tier", "public"),)),
            private_subnet=SubnetConfig(cidr_blocks=("10.0.101.0/24", "10.0.102.0/24")),
        ))

        self.assertEqual([s.name for s in bundle.public_subnets], ["dev-public-subnet-a", "dev-public-subnet-b"])
        self.assertEqual(bundle, plan_topology(network_config(
            publicSubnet={"cidrBlocks": ["10.0.1.0/24", "10.0.2.0/24"], "tags": [{"key": "Tier", "value": "public"}]},
            privateSubnet={"cidrBlocks": ["10.0.101.0/24", "10.0.102.0/24"]},
        )))

    def test_mismatched_config_never_reaches_planner(self):
        with self.assertRaises(CardinalityMismatch):
            plan_topology(NetworkConfig(
                name="dev",
                cidr_block="10.0.0.0/16",
                availability_zones=("a", "b", "c"),
                public_subnet=SubnetConfig(cidr_blocks=("10.0.1.0/24",)),
                private_subnet=SubnetConfig(cidr_blocks=("10.0.101.0/24", "10.0.102.0/24", "10.0.103.0/24")),
            ))

    def test_dns_flags(self):
        bundle = plan_topology(network_config(enableDnsHostnames=False))

        self.assertFalse(bundle.vpc.properties["enable_dns_hostnames"])
        self.assertTrue(bundle.vpc.properties["enable_dns_support"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
