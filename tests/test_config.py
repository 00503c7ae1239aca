from runner_sizer.config import PlannerConfig


def test_defaults():
    cfg = PlannerConfig.from_env({})
    assert cfg.MAX_URL_LENGTH == 2048
    assert cfg.SHORTENER_TIMEOUT_SECONDS == 5.0
    assert cfg.SHORTENER_URL.startswith("https://tinyurl.com/")


def test_environment_overrides():
    cfg = PlannerConfig.from_env(
        {
            "RUNNER_SIZER_MAX_URL_LENGTH": "4096",
            "RUNNER_SIZER_SHORTENER_TIMEOUT_SECONDS": "1.5",
            "RUNNER_SIZER_LOG_LEVEL": "DEBUG",
            "UNRELATED": "x",
        }
    )
    assert cfg.MAX_URL_LENGTH == 4096
    assert cfg.SHORTENER_TIMEOUT_SECONDS == 1.5
    assert cfg.LOG_LEVEL == "DEBUG"
