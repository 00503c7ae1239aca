import pytest

from runner_sizer import planner
from runner_sizer.models import PlannerState, Runner, Subnet


@pytest.fixture
def empty():
    return PlannerState()


def test_toggle_region_adds_and_removes_in_order(empty):
    planner.toggle_region(empty, "us-east-1")
    planner.toggle_region(empty, "eu-west-1")
    planner.toggle_region(empty, "us-west-2")
    assert empty.selected_regions == ["us-east-1", "eu-west-1", "us-west-2"]

    planner.toggle_region(empty, "eu-west-1")
    assert empty.selected_regions == ["us-east-1", "us-west-2"]


def test_add_subnet_requires_region(empty):
    planner.add_subnet(empty)
    assert empty.subnets == []


def test_add_subnet_defaults(empty):
    planner.set_subnet_size(empty, 20)
    planner.toggle_region(empty, "eu-west-1")
    planner.toggle_region(empty, "us-east-1")
    planner.add_subnet(empty)

    subnet = empty.subnets[0]
    assert subnet.name == "subnet-1"
    assert subnet.region == "eu-west-1"
    assert subnet.az == "a"
    assert subnet.cidr_size == 21
    assert subnet.available_ips == 2043


def test_first_subnet_bootstraps_default_runner(empty):
    planner.set_total_users(empty, 42)
    planner.toggle_region(empty, "us-east-1")
    assert empty.runners == []

    planner.add_subnet(empty)
    assert len(empty.runners) == 1
    runner = empty.runners[0]
    assert runner.name == "Runner 1"
    assert runner.region == "us-east-1"
    assert runner.users == 42
    assert runner.subnet_ids == []
    assert runner.capacity == 0
    assert empty.next_runner_id == 2


def test_loaded_state_is_not_bootstrapped(state):
    state.runners = []
    state.loaded_from_token = True
    planner.restore_invariants(state)
    assert state.runners == []


def test_mutation_after_load_bootstraps(state):
    state.runners = []
    state.loaded_from_token = True
    planner.set_az_count(state, 3)
    assert len(state.runners) == 1
    assert not state.loaded_from_token


def test_removing_all_regions_clears_runners(state):
    planner.toggle_region(state, "us-east-1")
    assert state.selected_regions == []
    assert state.runners == []


def test_deselected_runner_region_moves_to_first_region(state):
    planner.toggle_region(state, "eu-west-1")
    planner.update_runner_region(state, "runner-1", "eu-west-1")
    planner.update_runner_subnets(state, "runner-1", ["subnet-a"])

    planner.toggle_region(state, "eu-west-1")
    runner = state.runners[0]
    assert runner.region == "us-east-1"
    assert runner.subnet_ids == []
    assert runner.capacity == 0


def test_remove_subnet_drops_it_from_runners(state):
    planner.remove_subnet(state, "subnet-a")
    runner = state.runners[0]
    assert [s.id for s in state.subnets] == ["subnet-b"]
    assert runner.subnet_ids == ["subnet-b"]
    assert runner.capacity == 502 - 251


def test_update_subnet_recomputes_ips_and_capacity(state):
    planner.update_subnet(state, "subnet-a", cidr_size=22)
    assert state.subnets[0].available_ips == 1019
    assert state.runners[0].capacity == 1019 + 251


def test_update_subnet_leaves_other_fields(state):
    planner.update_subnet(state, "subnet-a", name="build")
    subnet = state.subnets[0]
    assert subnet.name == "build"
    assert subnet.region == "us-east-1"
    assert subnet.cidr_size == 24


def test_moving_subnet_to_other_region_drops_it_from_runner(state):
    planner.toggle_region(state, "us-west-2")
    planner.update_subnet(state, "subnet-b", region="us-west-2")
    assert state.runners[0].subnet_ids == ["subnet-a"]
    assert state.runners[0].capacity == 251


def test_update_subnet_rejects_unknown_fields(state):
    with pytest.raises(TypeError):
        planner.update_subnet(state, "subnet-a", available_ips=1)


def test_update_unknown_subnet_is_noop(state):
    before = state.revision
    planner.update_subnet(state, "missing", name="x")
    assert state.revision == before


def test_add_runner_redistributes_users(state):
    planner.add_runner(state)
    planner.add_runner(state)

    assert [r.users for r in state.runners] == [34, 33, 33]
    new = state.runners[-1]
    assert new.name == "Runner 3"
    assert new.region == "us-east-1"
    assert new.subnet_ids == []
    assert new.capacity == 0
    assert state.next_runner_id == 4


def test_add_runner_requires_region(empty):
    planner.add_runner(empty)
    assert empty.runners == []


def test_remove_runner_redistributes_users(state):
    planner.add_runner(state)
    planner.add_runner(state)
    planner.update_runner_users(state, state.runners[0].id, 5)

    planner.remove_runner(state, state.runners[1].id)
    assert [r.users for r in state.runners] == [50, 50]
    assert [r.name for r in state.runners] == ["Runner 1", "Runner 3"]


def test_last_runner_cannot_be_removed(state):
    planner.remove_runner(state, "runner-1")
    assert len(state.runners) == 1


def test_runner_names_are_never_reused(state):
    planner.add_runner(state)
    planner.remove_runner(state, state.runners[-1].id)
    planner.add_runner(state)
    assert state.runners[-1].name == "Runner 3"


def test_manual_user_edit_is_sticky(state):
    planner.update_runner_users(state, "runner-1", 70)
    planner.set_total_users(state, 200)
    assert state.runners[0].users == 70


def test_runner_users_clamped_at_zero(state):
    planner.update_runner_users(state, "runner-1", -3)
    assert state.runners[0].users == 0


def test_update_runner_name(state):
    planner.update_runner_name(state, "runner-1", "primary")
    assert state.runners[0].name == "primary"


def test_update_runner_subnets_tolerates_stale_ids(state):
    planner.update_runner_subnets(state, "runner-1", ["subnet-a", "gone"])
    runner = state.runners[0]
    assert runner.subnet_ids == ["subnet-a", "gone"]
    assert runner.capacity == 251


def test_revalidate_runners_drops_stale_and_foreign_ids():
    state = PlannerState(
        selected_regions=["us-east-1", "us-west-2"],
        subnets=[
            Subnet(id="east", name="east", region="us-east-1", cidr_size=24),
            Subnet(id="west", name="west", region="us-west-2", cidr_size=24),
        ],
        runners=[
            Runner(id="r", name="r", region="us-east-1", subnet_ids=["east", "west", "gone"]),
        ],
    )
    planner.revalidate_runners(state)
    assert state.runners[0].subnet_ids == ["east"]
    assert state.runners[0].capacity == 251


def test_setters_clamp(empty):
    planner.set_total_users(empty, 0)
    planner.set_environments_per_user(empty, 11)
    planner.set_az_count(empty, 5)
    planner.set_subnet_size(empty, 8)
    assert empty.total_users == 1
    assert empty.environments_per_user == 10
    assert empty.az_count == 3
    assert empty.subnet_size == 16

    planner.set_total_users(empty, 100000)
    assert empty.total_users == 99999


def test_mutations_bump_revision(empty):
    planner.toggle_region(empty, "us-east-1")
    planner.add_subnet(empty)
    assert empty.revision == 2
