"""
Shared configuration token codec.

Token format: base64url(json) without padding. The JSON keeps the camelCase
keys of the original share links, and tokens written with the standard
base64 alphabet (``+``, ``/``, ``=``) still decode.

Decoding clamps every top-level field into its range independently and falls
back to the default for anything missing or of the wrong type. Only a token
that is not base64, not UTF-8 JSON, or not shaped like a configuration at all
raises ``DecodeError``.
"""

import base64
import binascii
import json
from typing import Any, Optional

from runner_sizer.capacity import runner_capacity
from runner_sizer.errors import DecodeError
from runner_sizer.logger import get_logger
from runner_sizer.models import (
    DEFAULT_AZ,
    DEFAULT_AZ_COUNT,
    DEFAULT_ENVIRONMENTS,
    DEFAULT_TOTAL_USERS,
    DEFAULT_VPC_SIZE,
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
)

logger = get_logger(__name__)

# Any IPv4 prefix length is accepted; anything outside 0..32 is not an address block.
MIN_PREFIX_LENGTH, MAX_PREFIX_LENGTH = 0, 32

_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


def _subnet_payload(subnet: Subnet) -> dict:
    return {
        "id": subnet.id,
        "name": subnet.name,
        "region": subnet.region,
        "az": subnet.az,
        "cidrSize": subnet.cidr_size,
        "availableIps": subnet.available_ips,
    }


def _runner_payload(runner: Runner) -> dict:
    return {
        "id": runner.id,
        "name": runner.name,
        "region": runner.region,
        "users": runner.users,
        "subnetIds": list(runner.subnet_ids),
        "capacity": runner.capacity,
    }


def state_payload(state: PlannerState) -> dict:
    """The JSON structure a token carries."""
    return {
        "totalUsers": state.total_users,
        "environmentsPerUser": state.environments_per_user,
        "azCount": state.az_count,
        "subnetSize": state.subnet_size,
        "selectedRegions": list(state.selected_regions),
        "runners": [_runner_payload(runner) for runner in state.runners],
        "subnets": [_subnet_payload(subnet) for subnet in state.subnets],
        "nextRunnerId": state.next_runner_id,
    }


def encode(state: PlannerState) -> str:
    payload_json = json.dumps(state_payload(state), separators=(",", ":"))
    token = base64.urlsafe_b64encode(payload_json.encode("utf-8")).decode("ascii")
    return token.rstrip("=")


# ------------------------------
# Decoding
# ------------------------------


def _as_int(value: Any) -> Optional[int]:
    # bool is an int subclass but never a valid count.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _int_field(data: dict, key: str, default: int) -> int:
    value = _as_int(data.get(key))
    return default if value is None else value


def _str_field(data: dict, key: str, default: str = "") -> str:
    value = data.get(key)
    return value if isinstance(value, str) else default


def _list_field(data: dict, key: str) -> list:
    value = data.get(key)
    return value if isinstance(value, list) else []


def _entry(raw: Any, kind: str, index: int) -> dict:
    if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
        raise DecodeError(f"{kind} #{index} is not an object with an id")
    return raw


def _parse_subnet(raw: Any, index: int, vpc_size: int) -> Subnet:
    data = _entry(raw, "subnet", index)
    return Subnet(
        id=data["id"],
        name=_str_field(data, "name"),
        region=_str_field(data, "region"),
        az=_str_field(data, "az", DEFAULT_AZ),
        cidr_size=clamp(
            _int_field(data, "cidrSize", vpc_size + 1), MIN_PREFIX_LENGTH, MAX_PREFIX_LENGTH
        ),
    )


def _parse_runner(raw: Any, index: int, subnets: list[Subnet]) -> Runner:
    data = _entry(raw, "runner", index)
    subnet_ids = [s for s in _list_field(data, "subnetIds") if isinstance(s, str)]
    capacity = _as_int(data.get("capacity"))
    if capacity is None:
        capacity = runner_capacity(subnet_ids, subnets)
    return Runner(
        id=data["id"],
        name=_str_field(data, "name"),
        region=_str_field(data, "region"),
        users=max(0, _int_field(data, "users", 0)),
        subnet_ids=subnet_ids,
        capacity=capacity,
    )


def _decode_payload(token: str) -> Any:
    padded = token.translate(_URLSAFE_TO_STANDARD) + "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError, RecursionError) as e:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors; deeply
        # nested JSON exhausts the parser stack.
        raise DecodeError(str(e)) from e


def decode(token: str) -> PlannerState:
    """
    Rebuild a ``PlannerState`` from a token produced by ``encode``.

    Raises:
        DecodeError: the token or its payload is malformed.
    """
    # Query string parsing turns "+" from standard-alphabet tokens into spaces.
    data = _decode_payload(token.strip("\r\n\t").replace(" ", "+"))
    if not isinstance(data, dict):
        raise DecodeError("payload is not an object")

    subnet_size = clamp(_int_field(data, "subnetSize", DEFAULT_VPC_SIZE), MIN_VPC_SIZE, MAX_VPC_SIZE)
    subnets = [
        _parse_subnet(raw, index, subnet_size)
        for index, raw in enumerate(_list_field(data, "subnets"))
    ]
    runners = [
        _parse_runner(raw, index, subnets)
        for index, raw in enumerate(_list_field(data, "runners"))
    ]

    return PlannerState(
        total_users=clamp(
            _int_field(data, "totalUsers", DEFAULT_TOTAL_USERS), MIN_TOTAL_USERS, MAX_TOTAL_USERS
        ),
        environments_per_user=clamp(
            _int_field(data, "environmentsPerUser", DEFAULT_ENVIRONMENTS),
            MIN_ENVIRONMENTS,
            MAX_ENVIRONMENTS,
        ),
        az_count=clamp(_int_field(data, "azCount", DEFAULT_AZ_COUNT), MIN_AZ_COUNT, MAX_AZ_COUNT),
        subnet_size=subnet_size,
        selected_regions=[r for r in _list_field(data, "selectedRegions") if isinstance(r, str)],
        subnets=subnets,
        runners=runners,
        next_runner_id=max(1, _int_field(data, "nextRunnerId", 1)),
        loaded_from_token=True,
    )


def decode_or_default(token: str) -> tuple[PlannerState, Optional[DecodeError]]:
    """Decode ``token``, falling back to a default state when it is malformed."""
    try:
        return decode(token), None
    except DecodeError as e:
        logger.warning(f"Discarding shared configuration: {e}")
        return PlannerState(), e
