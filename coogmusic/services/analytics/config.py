"""Configuration for the analytics report engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date

# Earliest date a report window may start on.
HISTORICAL_FLOOR = date(1900, 1, 1)

# Cap for listens of songs with no usable duration, in seconds.
FALLBACK_SONG_DURATION = 180

# (label, min age, max age) inclusive; None means unbounded.
AGE_BUCKETS: tuple[tuple[str, int | None, int | None], ...] = (
    ("<18", None, 17),
    ("18-24", 18, 24),
    ("25-34", 25, 34),
    ("35-44", 35, 44),
    ("45-54", 45, 54),
    ("55+", 55, None),
)

COUNTRY_CODES = {
    "United States": "US",
    "United Kingdom": "UK",
    "Canada": "CA",
    "Australia": "AU",
    "Germany": "DE",
    "France": "FR",
    "Spain": "ES",
    "Italy": "IT",
    "Brazil": "BR",
    "Mexico": "MX",
    "Japan": "JP",
    "China": "CN",
    "India": "IN",
}


def _parse_names(value: str | None) -> frozenset[str]:
    if not value:
        return frozenset()
    return frozenset(name.strip().lower() for name in value.split(",") if name.strip())


@dataclass(frozen=True)
class ReportConfig:
    """Settings for report generation."""

    # Thread pool size for blocking repository calls
    max_workers: int = 6

    # Overall deadline applied by the HTTP layer, in seconds
    timeout_seconds: float = 60.0

    # Seed/test accounts never counted in any report
    excluded_usernames: frozenset[str] = field(default_factory=frozenset)

    fallback_song_duration: int = FALLBACK_SONG_DURATION
    historical_floor: date = HISTORICAL_FLOOR

    @classmethod
    def from_env(cls) -> "ReportConfig":
        return cls(
            max_workers=int(os.environ.get("COOGMUSIC_REPORT_WORKERS", "6")),
            timeout_seconds=float(os.environ.get("COOGMUSIC_REPORT_TIMEOUT", "60")),
            excluded_usernames=_parse_names(os.environ.get("COOGMUSIC_EXCLUDED_USERNAMES")),
            fallback_song_duration=int(
                os.environ.get("COOGMUSIC_FALLBACK_SONG_DURATION", str(FALLBACK_SONG_DURATION))
            ),
        )

    def is_excluded(self, username: str) -> bool:
        return username.lower() in self.excluded_usernames
