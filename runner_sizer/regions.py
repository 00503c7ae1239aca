"""AWS regions offered by the planner."""

AWS_REGIONS = {
    "North America": [
        ("us-east-1", "US East (us-east-1)"),
        ("us-east-2", "US East (us-east-2)"),
        ("us-west-1", "US West (us-west-1)"),
        ("us-west-2", "US West (us-west-2)"),
        ("ca-central-1", "Canada Central (ca-central-1)"),
    ],
    "Europe": [
        ("eu-west-1", "EU West (eu-west-1)"),
        ("eu-central-1", "EU Central (eu-central-1)"),
    ],
    "Asia Pacific": [
        ("ap-southeast-1", "Asia Pacific (ap-southeast-1)"),
        ("ap-southeast-2", "Asia Pacific (ap-southeast-2)"),
        ("ap-northeast-1", "Asia Pacific (ap-northeast-1)"),
    ],
    "South America": [
        ("sa-east-1", "South America (sa-east-1)"),
    ],
}

AVAILABILITY_ZONES = ("a", "b", "c")

_LABELS = {code: label for regions in AWS_REGIONS.values() for code, label in regions}


def region_label(code: str) -> str:
    return _LABELS.get(code, code)
