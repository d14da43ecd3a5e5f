"""Tests for the shared numeric policy."""

from datetime import datetime, timezone

from coogmusic.services.analytics.metrics import (
    average,
    effective_duration,
    format_duration,
    format_percentage,
    percentage,
    ratio_label,
)
from coogmusic.services.analytics.models import ListenEvent, Song


def test_percentage_rounds_and_handles_zero_total():
    assert percentage(1, 8) == 12.5
    assert percentage(1, 3) == 33.33
    assert percentage(5, 0) == 0.0
    assert format_percentage(percentage(1, 8)) == "12.50%"


def test_complementary_percentages_sum_to_100():
    for left, right in [(1, 2), (2, 7), (13, 17), (1, 0)]:
        total = left + right
        assert abs(percentage(left, total) + percentage(right, total) - 100) <= 0.01


def test_average_of_empty_is_zero():
    assert average(0, 0) == 0.0
    assert average(500, 3) == 166.67


def test_ratio_label():
    assert ratio_label(3, 2, "Listeners", "Artists") == "1.50:1 (Listeners:Artists)"
    assert ratio_label(3, 0, "Listeners", "Artists") == "N/A (No artists)"
    assert ratio_label(0, 2, "Listeners", "Artists") == "N/A (No listeners)"
    assert ratio_label(0, 0, "Listeners", "Artists") == "N/A"


def test_format_duration():
    assert format_duration(0) == "0m"
    assert format_duration(45) == "45s"
    assert format_duration(125) == "2m"
    assert format_duration(3 * 3600 + 120) == "3h 2m"
    assert format_duration(26 * 3600) == "1d 2h"


def test_effective_duration_is_capped_by_song_length():
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    song = Song(1, "Short", 1, duration_seconds=120)
    assert effective_duration(ListenEvent(1, 1, moment, 300), song) == 120
    assert effective_duration(ListenEvent(1, 1, moment, 90), song) == 90
    assert effective_duration(ListenEvent(1, 1, moment, None), song) == 0


def test_songs_without_duration_use_fallback_cap():
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    song = Song(1, "Unknown", 1, duration_seconds=0)
    assert effective_duration(ListenEvent(1, 1, moment, 600), song) == 180
    assert effective_duration(ListenEvent(1, 1, moment, 600), song, fallback=240) == 240
