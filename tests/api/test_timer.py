import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy.exc import OperationalError

from tracker_server.api_service.core.sources import ActiveTimerExistsError

UTC = timezone.utc
STARTED = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)


def stored_session():
    return SimpleNamespace(id=uuid.uuid4(), start_time=STARTED, is_active=True, created_at=STARTED)


@patch("tracker_server.api_service.core.sources.get_active_timer", new_callable=AsyncMock)
def test_no_running_timer(mock_get, client):
    mock_get.return_value = None
    response = client.get("/api/v1/timer")
    assert response.status_code == 200
    assert response.json() == {"data": None}


@patch("tracker_server.api_service.core.sources.get_active_timer", new_callable=AsyncMock)
def test_running_timer(mock_get, client):
    mock_get.return_value = stored_session()
    response = client.get("/api/v1/timer")
    assert response.status_code == 200
    assert response.json()["data"]["is_active"] is True


@patch("tracker_server.api_service.core.sources.start_timer", new_callable=AsyncMock)
def test_start_timer(mock_start, client):
    mock_start.return_value = stored_session()
    response = client.post("/api/v1/timer", json={"start_time": STARTED.isoformat()})
    assert response.status_code == 201
    assert mock_start.call_args.args[2] == STARTED


@patch("tracker_server.api_service.core.sources.start_timer", new_callable=AsyncMock)
def test_start_timer_twice_conflicts(mock_start, client):
    mock_start.side_effect = ActiveTimerExistsError("A timer is already running")
    response = client.post("/api/v1/timer", json={"start_time": STARTED.isoformat()})
    assert response.status_code == 409


@patch("tracker_server.api_service.core.sources.stop_timer", new_callable=AsyncMock)
def test_stop_timer_is_idempotent(mock_stop, client):
    mock_stop.return_value = False
    response = client.delete("/api/v1/timer")
    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_system_status(client, mock_db_session):
    mock_db_session.execute = AsyncMock(return_value=MagicMock())
    response = client.get("/api/v1/system/status")
    assert response.status_code == 200
    assert response.json()["database_connected"] is True


def test_system_status_degraded(client, mock_db_session):
    mock_db_session.execute = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("down")))
    response = client.get("/api/v1/system/status")
    assert response.status_code == 200
    assert response.json() == {"status": "degraded", "version": "1.0.0", "database_connected": False}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@patch("tracker_server.api_service.core.sources.start_timer", new_callable=AsyncMock)
def test_start_timer_without_offset_is_stored_as_utc(mock_start, client):
    mock_start.return_value = stored_session()
    response = client.post("/api/v1/timer", json={"start_time": "2025-03-10T09:00:00"})
    assert response.status_code == 201
    sent = mock_start.call_args.args[2]
    assert sent == STARTED
    assert sent.utcoffset() == timedelta(0)
