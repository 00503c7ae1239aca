"""Even distribution of users across runners."""


def distribute(runner_count: int, total_users: int) -> list[int]:
    """
    Split ``total_users`` across ``runner_count`` runners.

    Every runner gets the same base share; the remainder goes one user at a
    time to the earliest runners, so the result sums to ``total_users`` and
    no two shares differ by more than one.

    >>> distribute(3, 100)
    [34, 33, 33]
    """
    if runner_count < 1:
        raise ValueError(f"runner_count must be at least 1, got {runner_count}")

    base, remainder = divmod(total_users, runner_count)
    return [base + 1 if index < remainder else base for index in range(runner_count)]
