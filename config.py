"""
Configuration management for the network stack
Reads the `network` object from the Pulumi stack configuration
"""

import ipaddress
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

import pulumi

TOPOLOGY_FULL = "full"
TOPOLOGY_VPC_ONLY = "vpc-only"
TOPOLOGIES = (TOPOLOGY_FULL, TOPOLOGY_VPC_ONLY)

NAT_SINGLE = "single"
NAT_ONE_PER_AZ = "one-per-az"
NAT_STRATEGIES = (NAT_SINGLE, NAT_ONE_PER_AZ)


class ConfigError(Exception):
    """Raised when the network configuration is missing or malformed"""


class CardinalityMismatch(ConfigError):
    """Raised when availability zones and subnet CIDR blocks don't line up"""


@dataclass(frozen=True)
class Tag:
    key: str
    value: str


@dataclass(frozen=True)
class SubnetConfig:
    cidr_blocks: Tuple[str, ...] = ()
    tags: Tuple[Tag, ...] = ()


@dataclass(frozen=True)
class NetworkConfig:
    """Validated network configuration"""

    name: str
    cidr_block: str
    availability_zones: Tuple[str, ...] = ()
    public_subnet: SubnetConfig = field(default_factory=SubnetConfig)
    private_subnet: SubnetConfig = field(default_factory=SubnetConfig)
    topology: str = TOPOLOGY_FULL
    nat_strategy: str = NAT_SINGLE
    enable_dns_hostnames: bool = True
    enable_dns_support: bool = True

    def __post_init__(self):
        if self.vpc_only:
            return

        if not self.availability_zones:
            raise ConfigError("'availabilityZones' must contain at least one zone")
        if len(set(self.availability_zones)) != len(self.availability_zones):
            raise ConfigError(f"'availabilityZones' contains duplicates: {list(self.availability_zones)}")

        for path, subnet in (("publicSubnet", self.public_subnet), ("privateSubnet", self.private_subnet)):
            if len(subnet.cidr_blocks) != len(self.availability_zones):
                raise CardinalityMismatch(
                    f"'{path}.cidrBlocks' has {len(subnet.cidr_blocks)} entries "
                    f"but {len(self.availability_zones)} availability zones are configured"
                )

    @property
    def vpc_only(self) -> bool:
        return self.topology == TOPOLOGY_VPC_ONLY


def _require(raw: Mapping[str, Any], key: str, path: str) -> Any:
    if key not in raw or raw[key] is None:
        raise ConfigError(f"Missing required field '{path}{key}'")
    return raw[key]


def _parse_string(value: Any, path: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{path}' must be a non-empty string, got {value!r}")
    return value


def _parse_bool(raw: Mapping[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be a boolean, got {value!r}")
    return value


def _parse_choice(raw: Mapping[str, Any], key: str, default: str, choices: Tuple[str, ...]) -> str:
    value = raw.get(key, default)
    if value not in choices:
        raise ConfigError(f"'{key}' must be one of {', '.join(choices)}, got {value!r}")
    return value


def _parse_network(value: Any, path: str) -> ipaddress.IPv4Network:
    cidr = _parse_string(value, path)
    try:
        return ipaddress.IPv4Network(cidr)
    except ValueError as e:
        raise ConfigError(f"'{path}' is not a valid IPv4 CIDR block: {e}") from e


def _parse_list(value: Any, path: str) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"'{path}' must be a list, got {type(value).__name__}")
    return list(value)


def _parse_tags(value: Any, path: str) -> Tuple[Tag, ...]:
    tags = []
    for i, item in enumerate(_parse_list(value, path)):
        if not isinstance(item, Mapping):
            raise ConfigError(f"'{path}[{i}]' must be an object with 'key' and 'value'")
        key = _parse_string(_require(item, "key", f"{path}[{i}]."), f"{path}[{i}].key")
        tag_value = _require(item, "value", f"{path}[{i}].")
        if not isinstance(tag_value, str):
            raise ConfigError(f"'{path}[{i}].value' must be a string, got {tag_value!r}")
        tags.append(Tag(key=key, value=tag_value))
    return tuple(tags)


def _parse_subnet(raw: Any, path: str, vpc_network: ipaddress.IPv4Network) -> SubnetConfig:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"'{path}' must be an object")

    cidr_blocks = []
    for i, cidr in enumerate(_parse_list(_require(raw, "cidrBlocks", f"{path}."), f"{path}.cidrBlocks")):
        subnet_network = _parse_network(cidr, f"{path}.cidrBlocks[{i}]")
        if not subnet_network.subnet_of(vpc_network):
            raise ConfigError(f"'{path}.cidrBlocks[{i}]' ({cidr}) is outside the VPC CIDR block {vpc_network}")
        cidr_blocks.append(cidr)

    tags = _parse_tags(raw["tags"], f"{path}.tags") if raw.get("tags") is not None else ()
    return SubnetConfig(cidr_blocks=tuple(cidr_blocks), tags=tags)


def _check_overlaps(subnets: Tuple[Tuple[str, SubnetConfig], ...]) -> None:
    """Reject subnet CIDR blocks that overlap, within or across boundaries"""
    seen: List[Tuple[str, ipaddress.IPv4Network]] = []
    for path, subnet in subnets:
        for i, cidr in enumerate(subnet.cidr_blocks):
            network = ipaddress.IPv4Network(cidr)
            for other_path, other in seen:
                if network.overlaps(other):
                    raise ConfigError(f"'{path}.cidrBlocks[{i}]' ({cidr}) overlaps {other_path} ({other})")
            seen.append((f"{path}.cidrBlocks[{i}]", network))


def parse_network_config(raw: Any) -> NetworkConfig:
    """
    Validate a raw network configuration object

    Args:
        raw: Mapping with camelCase keys as stored in the stack configuration

    Returns:
        NetworkConfig

    Raises:
        ConfigError: A field is missing or malformed
        CardinalityMismatch: Availability zone and CIDR block counts differ
    """
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Network configuration must be an object, got {type(raw).__name__}")

    name = _parse_string(_require(raw, "name", ""), "name")
    cidr_block = _require(raw, "cidrBlock", "")
    vpc_network = _parse_network(cidr_block, "cidrBlock")
    topology = _parse_choice(raw, "topology", TOPOLOGY_FULL, TOPOLOGIES)
    nat_strategy = _parse_choice(raw, "natGateways", NAT_SINGLE, NAT_STRATEGIES)
    enable_dns_hostnames = _parse_bool(raw, "enableDnsHostnames", True)
    enable_dns_support = _parse_bool(raw, "enableDnsSupport", True)

    # Subnet sections are ignored when only the VPC is wanted
    if topology == TOPOLOGY_VPC_ONLY:
        return NetworkConfig(
            name=name,
            cidr_block=cidr_block,
            topology=topology,
            nat_strategy=nat_strategy,
            enable_dns_hostnames=enable_dns_hostnames,
            enable_dns_support=enable_dns_support,
        )

    availability_zones = tuple(
        _parse_string(az, f"availabilityZones[{i}]")
        for i, az in enumerate(_parse_list(_require(raw, "availabilityZones", ""), "availabilityZones"))
    )
    public_subnet = _parse_subnet(_require(raw, "publicSubnet", ""), "publicSubnet", vpc_network)
    private_subnet = _parse_subnet(_require(raw, "privateSubnet", ""), "privateSubnet", vpc_network)
    _check_overlaps((("publicSubnet", public_subnet), ("privateSubnet", private_subnet)))

    # Zone and cardinality checks run in NetworkConfig itself
    return NetworkConfig(
        name=name,
        cidr_block=cidr_block,
        availability_zones=availability_zones,
        public_subnet=public_subnet,
        private_subnet=private_subnet,
        topology=topology,
        nat_strategy=nat_strategy,
        enable_dns_hostnames=enable_dns_hostnames,
        enable_dns_support=enable_dns_support,
    )


def load_network_config(config: Optional[pulumi.Config] = None, key: str = "network") -> NetworkConfig:
    """
    Read and validate the network configuration from the stack

    Args:
        config: Pulumi config to read from, defaults to the project config
        key: Config key holding the network object

    Returns:
        NetworkConfig
    """
    config = config or pulumi.Config()

    try:
        raw = config.get_object(key)
    except pulumi.ConfigTypeError as e:
        raise ConfigError(f"Config key '{key}' is not a valid object: {e}") from e

    if raw is None:
        raise ConfigError(f"Missing required configuration key '{key}'")

    network_config = parse_network_config(raw)
    pulumi.log.info(
        f"Loaded network config '{network_config.name}' ({network_config.cidr_block}, "
        f"topology={network_config.topology}, zones={list(network_config.availability_zones)})"
    )
    return network_config
