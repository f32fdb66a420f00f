from datetime import datetime, timedelta

from app.utils.time_utils import time_ago, to_utc_isoformat


NOW = datetime(2026, 5, 1, 12, 0, 0)


def test_time_ago_units():
    assert time_ago(NOW, now=NOW) == "just now"
    assert time_ago(NOW - timedelta(seconds=1), now=NOW) == "1 second ago"
    assert time_ago(NOW - timedelta(minutes=5), now=NOW) == "5 minutes ago"
    assert time_ago(NOW - timedelta(hours=1), now=NOW) == "1 hour ago"
    assert time_ago(NOW - timedelta(days=3), now=NOW) == "3 days ago"
    assert time_ago(NOW - timedelta(days=14), now=NOW) == "2 weeks ago"
    assert time_ago(NOW - timedelta(days=400), now=NOW) == "1 year ago"


def test_time_ago_future():
    assert time_ago(NOW + timedelta(days=1), now=NOW) == "1 day from now"


def test_time_ago_none():
    assert time_ago(None) is None


def test_to_utc_isoformat():
    assert to_utc_isoformat(NOW) == "2026-05-01T12:00:00Z"
    assert to_utc_isoformat(None) is None
