from __future__ import annotations

from datetime import date, datetime, timezone

from governor.core.time import day_boundary, local_date, next_day_boundary, utc_today

UTC = timezone.utc


def test_utc_day_boundary_is_midnight_utc() -> None:
    reference = datetime(2026, 3, 10, 23, 59, 59, tzinfo=UTC)

    assert day_boundary("UTC", reference) == datetime(2026, 3, 10, 0, 0, tzinfo=UTC)
    assert next_day_boundary("UTC", reference) == datetime(2026, 3, 11, 0, 0, tzinfo=UTC)


def test_shanghai_day_starts_at_16_utc_previous_day() -> None:
    # 17:30 UTC is already 01:30 the next morning in Shanghai.
    reference = datetime(2026, 3, 10, 17, 30, tzinfo=UTC)

    assert local_date("Asia/Shanghai", reference) == date(2026, 3, 11)
    assert day_boundary("Asia/Shanghai", reference) == datetime(2026, 3, 10, 16, 0, tzinfo=UTC)
    assert next_day_boundary("Asia/Shanghai", reference) == datetime(2026, 3, 11, 16, 0, tzinfo=UTC)


def test_day_boundary_follows_dst_shift() -> None:
    # Berlin switches to CEST on 2026-03-29, so that local day is 23 hours long.
    reference = datetime(2026, 3, 29, 12, 0, tzinfo=UTC)

    start = day_boundary("Europe/Berlin", reference)
    end = next_day_boundary("Europe/Berlin", reference)

    assert start == datetime(2026, 3, 28, 23, 0, tzinfo=UTC)
    assert end == datetime(2026, 3, 29, 22, 0, tzinfo=UTC)


def test_naive_reference_is_treated_as_utc() -> None:
    assert utc_today(datetime(2026, 1, 1, 0, 0, 1)) == date(2026, 1, 1)
    assert day_boundary("UTC", datetime(2026, 1, 1, 12, 0)).tzinfo is not None


def test_utc_today_ignores_offset_of_reference() -> None:
    reference = datetime.fromisoformat("2026-05-01T02:00:00+08:00")

    assert utc_today(reference) == date(2026, 4, 30)
