from __future__ import annotations

from types import SimpleNamespace

import pytest

from governor.generation.admission.rules import compute_limit
from governor.generation.admission.types import AdmissionConfig, Caller

CONFIG = AdmissionConfig(max_concurrent_generations=3)


def test_admin_is_unbounded() -> None:
    assert compute_limit(CONFIG, Caller(user_id="u-1", is_admin=True)) is None


@pytest.mark.parametrize("is_premium", [False, True])
def test_authenticated_callers_share_configured_limit(is_premium: bool) -> None:
    assert compute_limit(CONFIG, Caller(user_id="u-1", is_premium=is_premium)) == 3


def test_anonymous_caller_gets_single_slot() -> None:
    assert compute_limit(CONFIG, Caller()) == 1
    assert compute_limit(CONFIG, Caller(user_id="")) == 1


def test_config_is_loaded_from_settings() -> None:
    config = AdmissionConfig.from_settings(SimpleNamespace(max_concurrent_generations=7))

    assert config.max_concurrent_generations == 7
    assert config.anonymous_limit == 1
