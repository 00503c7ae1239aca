"""
Configuration state data model.

``PlannerState`` is the single mutable root. It owns its subnets and runners;
runners refer to subnets by id only.
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional

from runner_sizer.ip_math import available_ips

# ------------------------------
# Field ranges and defaults
# ------------------------------

MIN_TOTAL_USERS, MAX_TOTAL_USERS = 1, 99999
MIN_ENVIRONMENTS, MAX_ENVIRONMENTS = 1, 10
MIN_AZ_COUNT, MAX_AZ_COUNT = 1, 3
MIN_VPC_SIZE, MAX_VPC_SIZE = 16, 22
MIN_SUBNET_SIZE, MAX_SUBNET_SIZE = 16, 28

DEFAULT_TOTAL_USERS = 10
DEFAULT_ENVIRONMENTS = 1
DEFAULT_AZ_COUNT = 2
DEFAULT_VPC_SIZE = 16
DEFAULT_AZ = "a"


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Subnet:
    id: str
    name: str
    region: str
    az: str = DEFAULT_AZ
    cidr_size: int = 24

    @property
    def available_ips(self) -> int:
        return available_ips(self.cidr_size)

    @property
    def az_label(self) -> str:
        return f"{self.region}-{self.az}"


@dataclass
class Runner:
    id: str
    name: str
    region: str
    users: int = 0
    subnet_ids: list[str] = field(default_factory=list)
    capacity: int = 0  # sum of available IPs over the distinct subnet_ids


@dataclass
class PlannerState:
    total_users: int = DEFAULT_TOTAL_USERS
    environments_per_user: int = DEFAULT_ENVIRONMENTS
    az_count: int = DEFAULT_AZ_COUNT
    subnet_size: int = DEFAULT_VPC_SIZE  # VPC primary CIDR block prefix
    selected_regions: list[str] = field(default_factory=list)
    subnets: list[Subnet] = field(default_factory=list)
    runners: list[Runner] = field(default_factory=list)
    next_runner_id: int = 1

    # Bookkeeping, never encoded or compared.
    revision: int = field(default=0, compare=False, repr=False)
    loaded_from_token: bool = field(default=False, compare=False, repr=False)

    @property
    def primary_region(self) -> Optional[str]:
        return self.selected_regions[0] if self.selected_regions else None


def find_subnet(state: PlannerState, subnet_id: str) -> Optional[Subnet]:
    for subnet in state.subnets:
        if subnet.id == subnet_id:
            return subnet
    return None


def find_runner(state: PlannerState, runner_id: str) -> Optional[Runner]:
    for runner in state.runners:
        if runner.id == runner_id:
            return runner
    return None


def subnet_names(state: PlannerState, subnet_ids: list[str]) -> list[str]:
    """Names of the given subnets, skipping ids that no longer exist."""
    names = []
    for subnet_id in subnet_ids:
        subnet = find_subnet(state, subnet_id)
        if subnet is not None:
            names.append(subnet.name)
    return names


def total_assigned_users(state: PlannerState) -> int:
    return sum(runner.users for runner in state.runners)
