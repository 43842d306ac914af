import asyncio
from unittest.mock import Mock

import pytest

from patient_monitor.client import MonitorClientError
from patient_monitor.scheduler import TaskScheduler
from patient_monitor.status import ACTIVE_LABEL, READY_LABEL, StatusBadge


@pytest.fixture
def mock_client():
    """Mock service client reporting an active system"""
    client = Mock()
    client.status.return_value = {"monitoring_active": True}
    return client


def test_refresh_mirrors_service_flag(mock_client):
    """The badge follows the service's monitoring flag"""
    badge = StatusBadge(mock_client, TaskScheduler())

    assert asyncio.run(badge.refresh()) is True
    assert badge.label == ACTIVE_LABEL
    assert badge.color == "success"


def test_refresh_failure_keeps_local_state(mock_client):
    """A failed status fetch leaves the badge as it was"""
    mock_client.status.side_effect = MonitorClientError("down")
    badge = StatusBadge(mock_client, TaskScheduler())
    badge.set_local(True)

    assert asyncio.run(badge.refresh()) is False
    assert badge.active is True


def test_malformed_status_is_ignored(mock_client):
    """A non-object status body is treated as a failed fetch"""
    mock_client.status.return_value = ["active"]
    badge = StatusBadge(mock_client, TaskScheduler())

    assert asyncio.run(badge.refresh()) is False
    assert badge.label == READY_LABEL


def test_notify_toggle_swallows_errors(mock_client):
    """Toggle notifications are fire-and-forget"""
    mock_client.toggle_status.side_effect = MonitorClientError("down")
    badge = StatusBadge(mock_client, TaskScheduler())
    badge.set_local(True)

    asyncio.run(badge.notify_toggle())

    mock_client.toggle_status.assert_called_once()
    assert badge.active is True


def test_string_flag_is_not_truthy(mock_client):
    """A string flag is rejected instead of reading "false" as active"""
    mock_client.status.return_value = {"monitoring_active": "false"}
    badge = StatusBadge(mock_client, TaskScheduler())

    assert asyncio.run(badge.refresh()) is False
    assert badge.label == READY_LABEL
