from __future__ import annotations

import pytest
from pydantic import ValidationError

from governor.core.config import Settings


def test_defaults_match_documented_limits(monkeypatch) -> None:
    for name in (
        "MAX_CONCURRENT_GENERATIONS",
        "CDK_USER_DAILY_LIMIT",
        "POINTS_EXPIRY_DAYS",
        "REGULAR_USER_DAILY_POINTS",
        "PREMIUM_USER_DAILY_POINTS",
        "RESET_CONCURRENCY_ON_STARTUP",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.max_concurrent_generations == 2
    assert settings.cdk_user_daily_limit == 5
    assert settings.points_expiry_days == 7
    assert settings.regular_user_daily_points == 20
    assert settings.premium_user_daily_points == 40
    assert settings.reset_concurrency_on_startup is False


def test_environment_overrides_are_applied(monkeypatch) -> None:
    monkeypatch.setenv("MAX_CONCURRENT_GENERATIONS", "4")
    monkeypatch.setenv("RESET_CONCURRENCY_ON_STARTUP", "true")

    settings = Settings(_env_file=None)

    assert settings.max_concurrent_generations == 4
    assert settings.reset_concurrency_on_startup is True


@pytest.mark.parametrize("name", ["MAX_CONCURRENT_GENERATIONS", "CDK_USER_DAILY_LIMIT"])
def test_limits_must_be_positive(monkeypatch, name: str) -> None:
    monkeypatch.setenv(name, "0")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_daily_points_must_not_be_negative(monkeypatch) -> None:
    monkeypatch.setenv("REGULAR_USER_DAILY_POINTS", "-1")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
