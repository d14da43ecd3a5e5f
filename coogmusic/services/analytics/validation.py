"""
Range & Mode Validation

Turns a raw ``ReportQuery`` into a ``ReportRequest``. Runs before any storage
access, so every failure here is a client error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone

from .config import ReportConfig
from .errors import InvalidRange, InvalidReportMode, MissingTarget, NoSectionSelected
from .models import DateRange, ReportMode, ReportRequest, SectionSelection

logger = logging.getLogger(__name__)

_END_OF_DAY = time(23, 59, 59, 999999)


@dataclass(frozen=True)
class ReportQuery:
    """Unvalidated report parameters as received from a client."""

    start_date: str | None
    end_date: str | None
    mode: str = ReportMode.AGGREGATE.value
    username: str | None = None
    include_listeners: bool = False
    include_artists: bool = False
    include_suspended: bool = False
    include_playlist_stats: bool = False
    include_album_stats: bool = False
    include_geographics: bool = False
    show_song_stats: bool = True
    show_artist_stats: bool = True
    show_age_demographics: bool = True

    def selection(self) -> SectionSelection:
        return SectionSelection(
            include_listeners=self.include_listeners,
            include_artists=self.include_artists,
            include_suspended=self.include_suspended,
            include_playlist_stats=self.include_playlist_stats,
            include_album_stats=self.include_album_stats,
            include_geographics=self.include_geographics,
            show_song_stats=self.show_song_stats,
            show_artist_stats=self.show_artist_stats,
            show_age_demographics=self.show_age_demographics,
        )


def parse_report_date(value: str | None, field_name: str) -> date:
    """
    Parse ``YYYY-MM-DD`` or a full ISO timestamp into a calendar date.

    Raises:
        InvalidRange: If the value is missing or malformed
    """
    if value is None or not str(value).strip():
        raise InvalidRange(f"{field_name} is required")
    text = str(value).strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidRange(f"{field_name} is not a valid date: {text!r}") from None


def parse_mode(value: str | None) -> ReportMode:
    try:
        return ReportMode((value or "").strip().lower())
    except ValueError:
        raise InvalidReportMode(
            f"Unknown report mode {value!r}; expected 'aggregate' or 'individual'"
        ) from None


def validate_report_request(
    query: ReportQuery,
    today: date | None = None,
    config: ReportConfig | None = None,
) -> ReportRequest:
    """
    Validate a raw query into a normalized request.

    Args:
        query: Raw client parameters
        today: Current UTC date (injected for tests)
        config: Engine configuration, used for the historical floor

    Returns:
        ReportRequest with a UTC day-aligned window

    Raises:
        InvalidRange, InvalidReportMode, MissingTarget, NoSectionSelected
    """
    config = config or ReportConfig()
    today = today or datetime.now(timezone.utc).date()

    start = parse_report_date(query.start_date, "startDate")
    end = parse_report_date(query.end_date, "endDate")

    if end < start:
        raise InvalidRange(f"End date {end} is before start date {start}")
    if start > today or end > today:
        raise InvalidRange(f"Report dates cannot be in the future (today is {today})")
    if start < config.historical_floor:
        raise InvalidRange(f"Start date {start} is before {config.historical_floor}")

    window = DateRange(
        start=datetime.combine(start, time.min, tzinfo=timezone.utc),
        end=datetime.combine(end, _END_OF_DAY, tzinfo=timezone.utc),
    )
    mode = parse_mode(query.mode)

    if mode is ReportMode.INDIVIDUAL:
        username = (query.username or "").strip()
        if not username:
            raise MissingTarget("A username is required for an individual report")
        return ReportRequest(window=window, mode=mode, username=username)

    selection = query.selection()
    if not selection.has_user_type():
        raise NoSectionSelected("Select at least one user type (listeners or artists)")

    logger.debug("Validated aggregate request %s..%s", window.start, window.end)
    return ReportRequest(window=window, mode=mode, sections=selection)
