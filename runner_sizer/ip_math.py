"""
Subnet IP arithmetic.

AWS reserves five addresses in every subnet: the network address, the VPC
router, DNS, one address for future use, and the broadcast address.
"""

from dataclasses import dataclass
from typing import Iterator

AWS_RESERVED_IPS = 5
MAX_SUBNET_OPTION = 27


@dataclass(frozen=True)
class SubnetSizeOption:
    size: int
    label: str


def format_ips(count: int) -> str:
    return f"{count:,}"


def available_ips(cidr_size: int) -> int:
    """
    Usable addresses in a subnet with the given prefix length.

    Not clamped: prefixes of /30 and longer give a negative count, which is
    shown to the user as-is.
    """
    return 2 ** (32 - cidr_size) - AWS_RESERVED_IPS


def total_capacity(az_count: int, subnet_cidr_size: int) -> int:
    """Usable addresses when one subnet of the given size is placed in each AZ."""
    return available_ips(subnet_cidr_size) * az_count


def valid_subnet_sizes(vpc_cidr_size: int) -> Iterator[SubnetSizeOption]:
    """
    Yield the subnet prefixes that fit inside a VPC block of ``vpc_cidr_size``,
    from one bit narrower than the VPC down to /27.
    """
    for size in range(vpc_cidr_size + 1, MAX_SUBNET_OPTION + 1):
        yield SubnetSizeOption(
            size=size,
            label=f"/{size} ({format_ips(available_ips(size))} IPs)",
        )


# VPC primary CIDR block sizes offered by the planner. Labels show the raw
# block size, not usable addresses.
VPC_SIZE_OPTIONS = [
    SubnetSizeOption(size=size, label=f"/{size} ({format_ips(2 ** (32 - size))} IPs)")
    for size in range(16, 23)
]
