from datetime import datetime, timedelta, timezone

from plantbuddy.utils.time import isoformat_or_none, utc_now


def test_utc_now_is_timezone_aware():
    now = utc_now()
    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)


def test_isoformat_or_none_formats_aware_datetime():
    dt = datetime(2026, 1, 1, 12, 30, tzinfo=timezone.utc)
    assert isoformat_or_none(dt) == "2026-01-01T12:30:00+00:00"


def test_isoformat_or_none_passes_none_through():
    assert isoformat_or_none(None) is None
