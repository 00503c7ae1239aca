import pytest

from runner_sizer.models import PlannerState, Runner, Subnet


@pytest.fixture
def state():
    """One region, two /24 subnets, one runner using both."""
    return PlannerState(
        total_users=100,
        environments_per_user=2,
        az_count=2,
        subnet_size=16,
        selected_regions=["us-east-1"],
        subnets=[
            Subnet(id="subnet-a", name="subnet-1", region="us-east-1", az="a", cidr_size=24),
            Subnet(id="subnet-b", name="subnet-2", region="us-east-1", az="b", cidr_size=24),
        ],
        runners=[
            Runner(
                id="runner-1",
                name="Runner 1",
                region="us-east-1",
                users=100,
                subnet_ids=["subnet-a", "subnet-b"],
                capacity=502,
            )
        ],
        next_runner_id=2,
    )
