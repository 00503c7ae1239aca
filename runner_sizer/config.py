"""
Runner sizer configuration.

A global config instance, optionally overridden from environment variables.
"""

import os
from dataclasses import dataclass, fields

ENV_PREFIX = "RUNNER_SIZER_"


@dataclass
class PlannerConfig:
    """Runner sizer configuration."""

    # Page
    PAGE_TITLE: str = "Gitpod Flex Capacity Planning"
    PUBLIC_URL: str = "http://localhost:8501/"

    # Share links
    SHORTENER_URL: str = "https://tinyurl.com/api-create.php"
    SHORTENER_TIMEOUT_SECONDS: float = 5.0
    MAX_URL_LENGTH: int = 2048  # longer URLs break in some browsers

    # Logging
    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls, environ=None) -> "PlannerConfig":
        """Build a config, taking ``RUNNER_SIZER_<FIELD>`` overrides from the environment."""
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name)
            if raw is None:
                continue
            if f.type in (int, "int"):
                overrides[f.name] = int(raw)
            elif f.type in (float, "float"):
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = raw
        return cls(**overrides)


config = PlannerConfig.from_env()
