"""
Capacity aggregation.

Everything here is derived from the current ``PlannerState`` on every call;
nothing is cached between mutations.
"""

import math
from collections import Counter
from dataclasses import dataclass
from fractions import Fraction

from runner_sizer.models import PlannerState, Runner, Subnet, subnet_names, total_assigned_users


@dataclass(frozen=True)
class RunnerUsage:
    runner: Runner
    planned_utilization: int
    subnet_names: list[str]


@dataclass(frozen=True)
class CapacitySummary:
    total_planned_utilization: int
    total_capacity: int
    utilization_percentage: int
    assigned_users: int
    is_over_allocated: bool
    is_under_allocated: bool
    runner_usage: list[RunnerUsage]
    over_capacity_runners: list[Runner]
    shared_subnets: list[str]

    @property
    def is_over_capacity(self) -> bool:
        return self.utilization_percentage > 100


def runner_planned_utilization(state: PlannerState, runner: Runner) -> int:
    return runner.users * state.environments_per_user


def total_planned_utilization(state: PlannerState) -> int:
    """
    Demand implied by the global user figure.

    Deliberately ignores the per-runner user counts; the allocation warnings
    compare those against ``total_users`` separately.
    """
    return state.total_users * state.environments_per_user


def runner_capacity(subnet_ids: list[str], subnets: list[Subnet]) -> int:
    """Sum of available IPs over the distinct ``subnet_ids``; unknown ids count 0."""
    ips_by_id = {subnet.id: subnet.available_ips for subnet in subnets}
    return sum(ips_by_id.get(subnet_id, 0) for subnet_id in dict.fromkeys(subnet_ids))


def total_capacity(state: PlannerState) -> int:
    """Available IPs across every subnet assigned to at least one runner, each counted once."""
    referenced = {subnet_id for runner in state.runners for subnet_id in runner.subnet_ids}
    return sum(subnet.available_ips for subnet in state.subnets if subnet.id in referenced)


def over_capacity_runners(state: PlannerState) -> list[Runner]:
    # A runner with no subnets has capacity 0 and is not flagged.
    return [
        runner
        for runner in state.runners
        if runner.capacity > 0 and runner_planned_utilization(state, runner) > runner.capacity
    ]


def subnet_usage(state: PlannerState) -> Counter:
    """Number of distinct runners drawing from each subnet id."""
    return Counter(
        subnet_id for runner in state.runners for subnet_id in set(runner.subnet_ids)
    )


def shared_subnet_ids(state: PlannerState) -> set[str]:
    return {subnet_id for subnet_id, count in subnet_usage(state).items() if count > 1}


def shared_subnets(state: PlannerState) -> list[str]:
    """Names of subnets that more than one runner draws from."""
    shared = shared_subnet_ids(state)
    return [subnet.name for subnet in state.subnets if subnet.id in shared]


def percentage(planned: int, capacity: int) -> int:
    """``planned / capacity`` as a whole percentage, rounding halves up; 0 without capacity."""
    if capacity <= 0:
        return 0
    return math.floor(Fraction(planned * 100, capacity) + Fraction(1, 2))


def utilization_percentage(state: PlannerState) -> int:
    return percentage(total_planned_utilization(state), total_capacity(state))


def is_over_allocated(state: PlannerState) -> bool:
    return total_assigned_users(state) > state.total_users


def is_under_allocated(state: PlannerState) -> bool:
    return total_assigned_users(state) < state.total_users


def summarize(state: PlannerState) -> CapacitySummary:
    """Compute every derived figure the UI and the reports show."""
    planned = total_planned_utilization(state)
    capacity = total_capacity(state)
    assigned = total_assigned_users(state)

    return CapacitySummary(
        total_planned_utilization=planned,
        total_capacity=capacity,
        utilization_percentage=percentage(planned, capacity),
        assigned_users=assigned,
        is_over_allocated=assigned > state.total_users,
        is_under_allocated=assigned < state.total_users,
        runner_usage=[
            RunnerUsage(
                runner=runner,
                planned_utilization=runner_planned_utilization(state, runner),
                subnet_names=subnet_names(state, runner.subnet_ids),
            )
            for runner in state.runners
        ],
        over_capacity_runners=over_capacity_runners(state),
        shared_subnets=shared_subnets(state),
    )
