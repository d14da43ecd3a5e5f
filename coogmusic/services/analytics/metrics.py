"""Derived-value helpers shared by every report section."""

from __future__ import annotations

from .config import FALLBACK_SONG_DURATION
from .models import ListenEvent, Song


def percentage(count: int | float, total: int | float) -> float:
    """``count / total * 100`` rounded to two decimals, 0 when ``total`` is 0."""
    if not total:
        return 0.0
    return round(count / total * 100, 2)


def format_percentage(value: float) -> str:
    return f"{value:.2f}%"


def average(total: int | float, count: int) -> float:
    """Mean rounded to two decimals, 0 for an empty denominator."""
    if not count:
        return 0.0
    return round(total / count, 2)


def ratio_label(left: int, right: int, left_name: str, right_name: str) -> str:
    """
    Human-readable ratio such as ``"1.50:1 (Listeners:Artists)"``.

    Args:
        left: Numerator count
        right: Denominator count
        left_name: Plural label for the numerator
        right_name: Plural label for the denominator

    Returns:
        Ratio text, or an ``N/A`` note when a side is empty
    """
    if left > 0 and right > 0:
        return f"{left / right:.2f}:1 ({left_name}:{right_name})"
    if left > 0:
        return f"N/A (No {right_name.lower()})"
    if right > 0:
        return f"N/A (No {left_name.lower()})"
    return "N/A"


def format_duration(seconds: int | float | None) -> str:
    """Format seconds to human-readable duration."""
    if not seconds:
        return "0m"
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    remaining_minutes = minutes % 60
    if hours < 24:
        return f"{hours}h {remaining_minutes}m"
    days = hours // 24
    remaining_hours = hours % 24
    return f"{days}d {remaining_hours}h"


def duration_cap(song: Song | None, fallback: int = FALLBACK_SONG_DURATION) -> int:
    if song is not None and song.duration_seconds and song.duration_seconds > 0:
        return song.duration_seconds
    return fallback


def effective_duration(
    event: ListenEvent,
    song: Song | None,
    fallback: int = FALLBACK_SONG_DURATION,
) -> int:
    """Listen duration capped at the song length; a missing duration is 0."""
    played = event.duration_seconds or 0
    if played <= 0:
        return 0
    return min(played, duration_cap(song, fallback))
