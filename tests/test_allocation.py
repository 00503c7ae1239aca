import pytest

from runner_sizer.allocation import distribute


def test_even_split():
    assert distribute(2, 100) == [50, 50]
    assert distribute(4, 80) == [20, 20, 20, 20]
    assert distribute(5, 25) == [5, 5, 5, 5, 5]


def test_remainder_goes_to_earliest_runners():
    assert distribute(3, 100) == [34, 33, 33]
    assert distribute(3, 10) == [4, 3, 3]
    assert distribute(4, 15) == [4, 4, 4, 3]
    assert distribute(7, 23) == [4, 4, 3, 3, 3, 3, 3]


def test_edge_cases():
    assert distribute(1, 100) == [100]
    assert distribute(100, 1) == [1] + [0] * 99
    assert distribute(5, 0) == [0, 0, 0, 0, 0]


@pytest.mark.parametrize("runners", [1, 2, 3, 7, 10, 33])
@pytest.mark.parametrize("users", [0, 1, 17, 100, 99999])
def test_sum_preserved_and_spread_at_most_one(runners, users):
    shares = distribute(runners, users)
    assert len(shares) == runners
    assert sum(shares) == users
    assert max(shares) - min(shares) <= 1


def test_rejects_zero_runners():
    with pytest.raises(ValueError):
        distribute(0, 10)
