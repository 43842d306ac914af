import asyncio
from unittest.mock import Mock

import pytest

from patient_monitor.alerts import (
    INFO_ICON,
    NO_ALERTS_TEXT,
    AlertFeed,
    alert_icon,
    build_views,
    classify_alert,
    format_time,
)
from patient_monitor.client import MonitorClientError
from patient_monitor.models import Alert
from patient_monitor.scheduler import TaskScheduler


def _alert(issue, confidence=0.5, timestamp=None, action="Check patient"):
    return {"issue": issue, "confidence": confidence, "timestamp": timestamp, "action": action}


@pytest.fixture
def mock_client():
    """Mock service client with an empty alert history"""
    client = Mock()
    client.alerts.return_value = []
    client.clear_alerts.return_value = None
    return client


@pytest.mark.parametrize(
    "issue,level",
    [
        ("Fall detected in room 3", "critical"),
        ("Aggression observed", "warning"),
        ("Risky behavior: climbing", "caution"),
        ("Emotion: sad", "info"),
        ("Something else", "info"),
        ("fall lowercase", "info"),
    ],
)
def test_classify_alert(issue, level):
    """Issue text maps to exactly one class"""
    assert classify_alert(issue) == level


def test_fall_takes_precedence():
    """With several keywords, the first in precedence order wins"""
    assert classify_alert("Aggression followed by Fall") == "critical"
    assert classify_alert("Risky Aggression") == "warning"


def test_alert_icons():
    """Icons follow the same keyword order with an Emotion glyph"""
    assert alert_icon("Fall") == "⚠"
    assert alert_icon("Aggression") == "⚡"
    assert alert_icon("Emotion change") == "\U0001F610"
    assert alert_icon("Unknown") == INFO_ICON


def test_views_are_newest_first():
    """An oldest-first [A, B, C] renders as [C, B, A]"""
    alerts = [Alert.from_dict(_alert(name)) for name in ("A", "B", "C")]
    assert [v.title for v in build_views(alerts)] == ["C", "B", "A"]


def test_view_fields():
    """Confidence renders as a whole percent"""
    (view,) = build_views([Alert.from_dict(_alert("Fall", confidence=0.876))])
    assert view.confidence_pct == 88
    assert view.level == "critical"
    assert view.action == "Check patient"


def test_format_time():
    """ISO timestamps render as wall-clock time; bad input renders empty"""
    assert format_time("2026-01-02T03:04:05") == "03:04:05"
    assert len(format_time("2026-01-02T03:04:05Z")) == 8
    assert format_time(None) == ""
    assert format_time("yesterday") == ""


def test_refresh_populates_feed(mock_client):
    """A successful fetch replaces the snapshot in reverse order"""
    mock_client.alerts.return_value = [_alert("Fall 1"), _alert("Risky 2")]
    feed = AlertFeed(mock_client, TaskScheduler(), limit=20)

    assert asyncio.run(feed.refresh()) is True

    mock_client.alerts.assert_called_once_with(20)
    assert [v.title for v in feed.views] == ["Risky 2", "Fall 1"]
    assert feed.placeholder is None


def test_empty_feed_shows_placeholder(mock_client):
    """No alerts renders the placeholder"""
    feed = AlertFeed(mock_client, TaskScheduler())
    asyncio.run(feed.refresh())
    assert feed.empty
    assert feed.placeholder == NO_ALERTS_TEXT


def test_refresh_failure_keeps_previous_snapshot(mock_client):
    """Fetch errors are swallowed and the old snapshot stays"""
    mock_client.alerts.return_value = [_alert("Fall")]
    feed = AlertFeed(mock_client, TaskScheduler())
    asyncio.run(feed.refresh())

    mock_client.alerts.side_effect = MonitorClientError("boom")
    assert asyncio.run(feed.refresh()) is False
    assert [v.title for v in feed.views] == ["Fall"]


def test_malformed_payload_is_ignored(mock_client):
    """A non-list body is treated as a failed fetch"""
    mock_client.alerts.return_value = {"error": "nope"}
    feed = AlertFeed(mock_client, TaskScheduler())
    assert asyncio.run(feed.refresh()) is False


def test_clear_refetches(mock_client):
    """Clearing posts the clear request and then re-fetches"""
    mock_client.alerts.side_effect = [[_alert("Fall")], []]
    feed = AlertFeed(mock_client, TaskScheduler())
    asyncio.run(feed.refresh())
    assert not feed.empty

    asyncio.run(feed.clear())

    mock_client.clear_alerts.assert_called_once()
    assert mock_client.alerts.call_count == 2
    assert feed.empty


def test_clear_failure_does_not_refetch(mock_client):
    """A failed clear leaves the feed untouched"""
    mock_client.clear_alerts.side_effect = MonitorClientError("down")
    feed = AlertFeed(mock_client, TaskScheduler())

    asyncio.run(feed.clear())

    mock_client.alerts.assert_not_called()
