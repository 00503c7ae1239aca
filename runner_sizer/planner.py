"""
Configuration state mutations.

Every user action is one function taking the ``PlannerState`` explicitly and
changing it in place. Each function finishes by restoring the state-wide
invariants (runner teardown, region reconciliation, default runner), so the
state is consistent as soon as the call returns.

Unknown ids are ignored: every operation is total over its inputs.
"""

from runner_sizer.allocation import distribute
from runner_sizer.capacity import runner_capacity
from runner_sizer.logger import get_logger
from runner_sizer.models import (
    DEFAULT_AZ,
    MAX_AZ_COUNT,
    MAX_ENVIRONMENTS,
    MAX_TOTAL_USERS,
    MAX_VPC_SIZE,
    MIN_AZ_COUNT,
    MIN_ENVIRONMENTS,
    MIN_TOTAL_USERS,
    MIN_VPC_SIZE,
    PlannerState,
    Runner,
    Subnet,
    clamp,
    find_runner,
    find_subnet,
    new_id,
)

logger = get_logger(__name__)

SUBNET_FIELDS = ("name", "region", "az", "cidr_size")


def _commit(state: PlannerState) -> None:
    state.revision += 1
    state.loaded_from_token = False
    restore_invariants(state)


# ------------------------------
# Invariants
# ------------------------------


def revalidate_runners(state: PlannerState) -> None:
    """
    Drop runner subnet ids that no longer exist or sit in another region,
    then recompute each runner's capacity from what is left.
    """
    regions = {subnet.id: subnet.region for subnet in state.subnets}
    for runner in state.runners:
        runner.subnet_ids = [
            subnet_id
            for subnet_id in runner.subnet_ids
            if regions.get(subnet_id) == runner.region
        ]
        runner.capacity = runner_capacity(runner.subnet_ids, state.subnets)


def restore_invariants(state: PlannerState) -> None:
    """Bring runners back in line with the selected regions and subnets."""
    if not state.selected_regions:
        if state.runners:
            logger.debug("No regions selected, clearing runners")
        state.runners = []
        return

    primary = state.primary_region
    for runner in state.runners:
        if runner.region not in state.selected_regions:
            runner.region = primary
            runner.subnet_ids = []
            runner.capacity = 0

    # A state loaded from a shared link keeps its empty runner list.
    if state.subnets and not state.runners and not state.loaded_from_token:
        state.runners.append(
            Runner(
                id=new_id(),
                name="Runner 1",
                region=primary,
                users=state.total_users,
            )
        )
        state.next_runner_id = 2
        logger.debug(f"Created default runner in {primary}")


# ------------------------------
# Global inputs
# ------------------------------


def set_total_users(state: PlannerState, value: int) -> None:
    state.total_users = clamp(value, MIN_TOTAL_USERS, MAX_TOTAL_USERS)
    _commit(state)


def set_environments_per_user(state: PlannerState, value: int) -> None:
    state.environments_per_user = clamp(value, MIN_ENVIRONMENTS, MAX_ENVIRONMENTS)
    _commit(state)


def set_az_count(state: PlannerState, value: int) -> None:
    state.az_count = clamp(value, MIN_AZ_COUNT, MAX_AZ_COUNT)
    _commit(state)


def set_subnet_size(state: PlannerState, value: int) -> None:
    state.subnet_size = clamp(value, MIN_VPC_SIZE, MAX_VPC_SIZE)
    _commit(state)


def toggle_region(state: PlannerState, code: str) -> None:
    if code in state.selected_regions:
        state.selected_regions = [r for r in state.selected_regions if r != code]
    else:
        state.selected_regions = [*state.selected_regions, code]
    _commit(state)


# ------------------------------
# Subnets
# ------------------------------


def add_subnet(state: PlannerState) -> None:
    if not state.selected_regions:
        return

    state.subnets.append(
        Subnet(
            id=new_id(),
            name=f"subnet-{len(state.subnets) + 1}",
            region=state.primary_region,
            az=DEFAULT_AZ,
            cidr_size=state.subnet_size + 1,
        )
    )
    _commit(state)


def remove_subnet(state: PlannerState, subnet_id: str) -> None:
    state.subnets = [subnet for subnet in state.subnets if subnet.id != subnet_id]
    revalidate_runners(state)
    _commit(state)


def update_subnet(state: PlannerState, subnet_id: str, **fields) -> None:
    """
    Merge ``fields`` (any of name, region, az, cidr_size) into a subnet.

    Available IPs follow ``cidr_size``; runners are re-validated because a
    region or size change alters what they may draw from.
    """
    unknown = set(fields) - set(SUBNET_FIELDS)
    if unknown:
        raise TypeError(f"Unknown subnet fields: {', '.join(sorted(unknown))}")

    subnet = find_subnet(state, subnet_id)
    if subnet is None:
        return

    for name, value in fields.items():
        setattr(subnet, name, value)
    revalidate_runners(state)
    _commit(state)


# ------------------------------
# Runners
# ------------------------------


def add_runner(state: PlannerState) -> None:
    """
    Append a runner and share ``total_users`` evenly across all runners.

    Existing runners take the leading slots of the distribution, the new
    runner the last one.
    """
    if not state.selected_regions:
        return

    shares = distribute(len(state.runners) + 1, state.total_users)
    for runner, users in zip(state.runners, shares):
        runner.users = users

    state.runners.append(
        Runner(
            id=new_id(),
            name=f"Runner {state.next_runner_id}",
            region=state.primary_region,
            users=shares[-1],
        )
    )
    state.next_runner_id += 1
    _commit(state)


def remove_runner(state: PlannerState, runner_id: str) -> None:
    # The last runner always stays.
    if len(state.runners) <= 1 or find_runner(state, runner_id) is None:
        return

    state.runners = [runner for runner in state.runners if runner.id != runner_id]
    for runner, users in zip(state.runners, distribute(len(state.runners), state.total_users)):
        runner.users = users
    _commit(state)


def update_runner_name(state: PlannerState, runner_id: str, name: str) -> None:
    runner = find_runner(state, runner_id)
    if runner is None:
        return
    runner.name = name
    _commit(state)


def update_runner_users(state: PlannerState, runner_id: str, users: int) -> None:
    """Set a runner's users by hand. The value sticks until a runner is added or removed."""
    runner = find_runner(state, runner_id)
    if runner is None:
        return
    runner.users = max(0, users)
    _commit(state)


def update_runner_region(state: PlannerState, runner_id: str, region: str) -> None:
    runner = find_runner(state, runner_id)
    if runner is None or runner.region == region:
        return
    runner.region = region
    runner.subnet_ids = []
    runner.capacity = 0
    _commit(state)


def update_runner_subnets(state: PlannerState, runner_id: str, subnet_ids: list[str]) -> None:
    """Replace a runner's subnets. Ids that do not exist are kept but add no capacity."""
    runner = find_runner(state, runner_id)
    if runner is None:
        return
    runner.subnet_ids = list(subnet_ids)
    runner.capacity = runner_capacity(runner.subnet_ids, state.subnets)
    _commit(state)
