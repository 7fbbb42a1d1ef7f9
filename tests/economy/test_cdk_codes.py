from __future__ import annotations

from datetime import datetime, timezone

import pytest

from governor.economy.cdk.codes import generate_cdk_code, normalize_cdk, validate_cdk_format


def test_generated_codes_have_four_hex_groups() -> None:
    code = generate_cdk_code(now_utc=datetime(2026, 1, 1, tzinfo=timezone.utc))

    assert len(code) == 19
    assert code.count("-") == 3
    assert validate_cdk_format(code) is True


def test_generated_codes_differ_within_same_minute() -> None:
    now_utc = datetime(2026, 1, 1, 12, 30, tzinfo=timezone.utc)

    codes = {generate_cdk_code(now_utc=now_utc) for _ in range(200)}

    assert len(codes) == 200


def test_normalize_trims_and_uppercases() -> None:
    assert normalize_cdk("  ab12-cd34-ef56-7890 \n") == "AB12-CD34-EF56-7890"


@pytest.mark.parametrize(
    "code",
    [
        "",
        "AB12CD34EF567890",
        "AB12-CD34-EF56",
        "AB12-CD34-EF56-789G",
        "ab12-cd34-ef56-7890",
        "AB12-CD34-EF56-7890-",
        "AB12-CD34-EF56-7890\n",
    ],
)
def test_malformed_codes_are_rejected(code: str) -> None:
    assert validate_cdk_format(code) is False
