from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from sqlalchemy.exc import OperationalError

from tracker_server.processing_service.models import CategoryRef, Interval

UTC = timezone.utc
WORK = CategoryRef(id="11111111-1111-1111-1111-111111111111", name="Work", color="#3182CE")


def make_interval(interval_id, start, end, category=WORK):
    return Interval(id=interval_id, category_id=category.id, category=category, start_time=start, end_time=end)


@patch("tracker_server.api_service.core.sources.fetch_intervals", new_callable=AsyncMock)
def test_stacked_series(mock_fetch, client):
    mock_fetch.return_value = [
        make_interval("a", datetime(2025, 3, 10, 9, 0, tzinfo=UTC), datetime(2025, 3, 10, 10, 30, tzinfo=UTC)),
        make_interval("b", datetime(2025, 3, 10, 10, 30, tzinfo=UTC), datetime(2025, 3, 10, 11, 0, tzinfo=UTC)),
    ]

    response = client.get("/api/v1/charts/stacked", params={"start_date": "2025-03-10", "end_date": "2025-03-10"})

    assert response.status_code == 200
    body = response.json()
    assert body["dates"] == ["2025-03-10"]
    assert body["categories"] == [{"id": WORK.id, "name": "Work", "color": "#3182CE"}]
    assert body["data"] == [{"date": "2025-03-10", WORK.id: 2.0}]

    kwargs = mock_fetch.call_args.kwargs
    assert kwargs["start_after"] == datetime(2025, 3, 10, 0, 0, tzinfo=UTC)
    assert kwargs["start_before"].date().isoformat() == "2025-03-10"


@patch("tracker_server.api_service.core.sources.fetch_intervals", new_callable=AsyncMock)
def test_stacked_series_cumulative(mock_fetch, client):
    mock_fetch.return_value = [
        make_interval("a", datetime(2025, 3, 10, 9, 0, tzinfo=UTC), datetime(2025, 3, 10, 10, 0, tzinfo=UTC)),
        make_interval("b", datetime(2025, 3, 12, 9, 0, tzinfo=UTC), datetime(2025, 3, 12, 11, 30, tzinfo=UTC)),
    ]

    response = client.get("/api/v1/charts/stacked", params={"cumulative": "true"})

    assert response.status_code == 200
    assert [row[WORK.id] for row in response.json()["data"]] == [1.0, 3.5]
    assert mock_fetch.call_args.kwargs["start_after"] is None


@patch("tracker_server.api_service.core.sources.fetch_intervals", new_callable=AsyncMock)
def test_stacked_series_rejects_inverted_range(mock_fetch, client):
    response = client.get("/api/v1/charts/stacked", params={"start_date": "2025-03-12", "end_date": "2025-03-10"})
    assert response.status_code == 400
    mock_fetch.assert_not_called()


def test_stacked_series_rejects_bad_date(client):
    response = client.get("/api/v1/charts/stacked", params={"start_date": "2025-13-01"})
    assert response.status_code == 400
    assert "start_date" in response.json()["detail"]


@patch("tracker_server.api_service.core.sources.fetch_intervals", new_callable=AsyncMock)
def test_timeline_cross_midnight(mock_fetch, client):
    mock_fetch.return_value = [
        make_interval("a", datetime(2025, 3, 10, 23, 30, tzinfo=UTC), datetime(2025, 3, 11, 0, 45, tzinfo=UTC)),
    ]

    response = client.get("/api/v1/charts/timeline", params={"date": "2025-03-11"})

    assert response.status_code == 200
    body = response.json()
    assert body["date"] == "2025-03-11"
    first, second = body["segments"]
    assert (first["start_minute"], first["end_minute"], first["hours"]) == (0, 45, 0.75)
    assert first["category_id"] == WORK.id
    assert (second["start_minute"], second["end_minute"], second["category_id"]) == (45, 1440, "empty")

    kwargs = mock_fetch.call_args.kwargs
    assert kwargs["start_after"] == datetime(2025, 3, 10, 23, 0, tzinfo=UTC)
    assert kwargs["start_before"] == datetime(2025, 3, 12, 0, 0, tzinfo=UTC)


@patch("tracker_server.api_service.core.sources.fetch_intervals", new_callable=AsyncMock)
def test_timeline_with_browser_offset(mock_fetch, client):
    mock_fetch.return_value = [
        make_interval("a", datetime(2025, 3, 11, 0, 0, tzinfo=UTC), datetime(2025, 3, 11, 1, 0, tzinfo=UTC)),
    ]

    response = client.get("/api/v1/charts/timeline", params={"date": "2025-03-11", "tz": -540})

    assert response.status_code == 200
    segments = response.json()["segments"]
    assert (segments[1]["start_minute"], segments[1]["end_minute"]) == (540, 600)
    assert mock_fetch.call_args.kwargs["start_after"] == datetime(2025, 3, 10, 14, 0, tzinfo=UTC)


@patch("tracker_server.api_service.core.sources.fetch_intervals", new_callable=AsyncMock)
def test_timeline_empty_day(mock_fetch, client):
    mock_fetch.return_value = []
    response = client.get("/api/v1/charts/timeline", params={"date": "2025-03-11"})
    assert response.status_code == 200
    assert response.json()["segments"] == [{
        "start_minute": 0,
        "end_minute": 1440,
        "category_id": "empty",
        "category_name": "No record",
        "color": "#E2E8F0",
        "hours": 24.0,
    }]


def test_timeline_requires_date(client):
    assert client.get("/api/v1/charts/timeline").status_code == 422


def test_timeline_rejects_impossible_date(client):
    response = client.get("/api/v1/charts/timeline", params={"date": "2025-02-30"})
    assert response.status_code == 400


def test_timeline_rejects_out_of_range_offset(client):
    response = client.get("/api/v1/charts/timeline", params={"date": "2025-03-11", "tz": 900})
    assert response.status_code == 422


@patch("tracker_server.api_service.core.sources.fetch_intervals", new_callable=AsyncMock)
def test_storage_failure_is_data_unavailable(mock_fetch, client):
    mock_fetch.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
    response = client.get("/api/v1/charts/timeline", params={"date": "2025-03-11"})
    assert response.status_code == 503
    assert response.json() == {"detail": "Data unavailable"}
