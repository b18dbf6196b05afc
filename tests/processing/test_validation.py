import pytest
from datetime import datetime, timedelta, timezone

from tracker_server.api_service import schemas
from tracker_server.processing_service.logic.validation import (
    IntervalValidationError,
    intervals_overlap,
    patch_values,
    validate_interval_bounds,
)

UTC = timezone.utc
NOW = datetime(2025, 3, 10, 18, 0, tzinfo=UTC)


def test_valid_interval_passes():
    validate_interval_bounds(NOW - timedelta(hours=2), NOW - timedelta(hours=1), NOW)


def test_end_before_start():
    with pytest.raises(IntervalValidationError, match="End time must be after start time"):
        validate_interval_bounds(NOW - timedelta(hours=1), NOW - timedelta(hours=2), NOW)


def test_zero_length():
    with pytest.raises(IntervalValidationError):
        validate_interval_bounds(NOW - timedelta(hours=1), NOW - timedelta(hours=1), NOW)


def test_future_times_rejected():
    with pytest.raises(IntervalValidationError, match="future"):
        validate_interval_bounds(NOW - timedelta(hours=1), NOW + timedelta(minutes=1), NOW)


def test_maximum_span():
    validate_interval_bounds(NOW - timedelta(hours=10), NOW, NOW)
    with pytest.raises(IntervalValidationError, match="at most 10 hours"):
        validate_interval_bounds(NOW - timedelta(hours=10, seconds=1), NOW, NOW)


def test_custom_maximum_span():
    with pytest.raises(IntervalValidationError, match="at most 1.5 hours"):
        validate_interval_bounds(NOW - timedelta(hours=2), NOW, NOW, max_hours=1.5)


def test_overlap_is_half_open():
    a_start, a_end = NOW - timedelta(hours=3), NOW - timedelta(hours=2)
    assert intervals_overlap(a_start, a_end, a_end - timedelta(minutes=1), NOW) is True
    assert intervals_overlap(a_start, a_end, a_end, NOW) is False
    assert intervals_overlap(a_start, a_end, a_start - timedelta(hours=1), a_start) is False


def test_overlap_containment():
    assert intervals_overlap(NOW - timedelta(hours=5), NOW, NOW - timedelta(hours=3), NOW - timedelta(hours=2)) is True


def test_patch_values_only_sent_fields():
    patch = schemas.RecordUpdate(start_time=NOW - timedelta(hours=1))
    assert set(patch_values(patch)) == {"start_time"}


def test_patch_values_keeps_explicit_null():
    patch = schemas.CategoryUpdate.model_validate({"color": "#FFFFFF"})
    assert patch_values(patch) == {"color": "#FFFFFF"}
    record_patch = schemas.RecordUpdate.model_validate({"category_id": None})
    assert patch_values(record_patch) == {"category_id": None}
