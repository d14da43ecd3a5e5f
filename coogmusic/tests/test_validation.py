"""Tests for report request validation."""

from datetime import date, datetime, timezone

import pytest

from coogmusic.services.analytics.errors import (
    InvalidRange,
    InvalidReportMode,
    MissingTarget,
    NoSectionSelected,
)
from coogmusic.services.analytics.models import ReportMode
from coogmusic.services.analytics.validation import ReportQuery, parse_report_date, validate_report_request

TODAY = date(2024, 12, 31)


def aggregate(**overrides) -> ReportQuery:
    params = dict(start_date="2024-01-01", end_date="2024-01-31", include_listeners=True)
    params.update(overrides)
    return ReportQuery(**params)


def test_window_is_day_aligned_utc():
    """Start is midnight, end is the last microsecond of the end day."""
    request = validate_report_request(aggregate(), today=TODAY)
    assert request.window.start == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert request.window.end == datetime(2024, 1, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
    assert request.mode is ReportMode.AGGREGATE
    assert request.sections.include_listeners is True


def test_single_day_window_is_valid():
    request = validate_report_request(aggregate(end_date="2024-01-01"), today=TODAY)
    assert request.window.start.date() == request.window.end.date()


def test_full_timestamp_is_truncated_to_date():
    assert parse_report_date("2024-03-05T17:45:00Z", "startDate") == date(2024, 3, 5)


def test_end_before_start_is_invalid():
    with pytest.raises(InvalidRange):
        validate_report_request(aggregate(start_date="2024-02-01", end_date="2024-01-01"), today=TODAY)


@pytest.mark.parametrize("value", ["", None, "2024-13-01", "yesterday", "2024/01/01"])
def test_malformed_dates_are_invalid(value):
    with pytest.raises(InvalidRange):
        validate_report_request(aggregate(start_date=value), today=TODAY)


def test_future_dates_are_invalid():
    with pytest.raises(InvalidRange):
        validate_report_request(aggregate(end_date="2025-01-01"), today=TODAY)


def test_dates_before_1900_are_invalid():
    with pytest.raises(InvalidRange):
        validate_report_request(aggregate(start_date="1899-12-31"), today=TODAY)


def test_no_user_type_selected():
    with pytest.raises(NoSectionSelected):
        validate_report_request(aggregate(include_listeners=False), today=TODAY)


def test_unknown_mode():
    with pytest.raises(InvalidReportMode):
        validate_report_request(aggregate(mode="weekly"), today=TODAY)


def test_individual_requires_username():
    with pytest.raises(MissingTarget):
        validate_report_request(aggregate(mode="individual", username="   "), today=TODAY)


def test_individual_username_is_stripped_and_needs_no_user_type():
    """Section toggles do not apply to individual mode."""
    request = validate_report_request(
        aggregate(mode="Individual", username="  alice ", include_listeners=False),
        today=TODAY,
    )
    assert request.mode is ReportMode.INDIVIDUAL
    assert request.username == "alice"
    assert request.sections is None


def test_range_checked_before_mode():
    with pytest.raises(InvalidRange):
        validate_report_request(aggregate(mode="bogus", end_date="2023-01-01"), today=TODAY)
