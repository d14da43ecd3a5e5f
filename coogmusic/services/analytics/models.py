"""Read-only catalog entities and the validated report request."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class UserType(str, Enum):
    LISTENER = "Listener"
    ARTIST = "Artist"
    ADMINISTRATOR = "Administrator"
    ANALYST = "Analyst"


class AccountStatus(str, Enum):
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    BANNED = "Banned"


class Visibility(str, Enum):
    PUBLIC = "Public"
    PRIVATE = "Private"


class LikeKind(str, Enum):
    SONG = "song"
    ALBUM = "album"
    PLAYLIST = "playlist"


class ReportMode(str, Enum):
    AGGREGATE = "aggregate"
    INDIVIDUAL = "individual"


# Staff accounts never count as listeners, likers or followers.
STAFF_TYPES = frozenset({UserType.ADMINISTRATOR, UserType.ANALYST})

_PLACEHOLDER_CITIES = {"nowhere", "anywhere"}


def normalize_city(value: str | None) -> str | None:
    """Blank and placeholder city names are reported as unknown."""
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.lower() in _PLACEHOLDER_CITIES:
        return None
    return cleaned


@dataclass(frozen=True)
class ArtistProfile:
    verified: bool = False
    verified_at: datetime | None = None
    bio: str | None = None


@dataclass(frozen=True)
class User:
    id: int
    username: str
    user_type: UserType
    status: AccountStatus = AccountStatus.ACTIVE
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    country: str | None = None
    city: str | None = None
    date_of_birth: date | None = None
    date_joined: datetime | None = None
    status_changed_at: datetime | None = None
    artist_profile: ArtistProfile | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()

    @property
    def is_staff(self) -> bool:
        return self.user_type in STAFF_TYPES

    def age_on(self, day: date) -> int | None:
        """Whole years between the birth date and ``day``."""
        if self.date_of_birth is None:
            return None
        dob = self.date_of_birth
        years = day.year - dob.year
        if (day.month, day.day) < (dob.month, dob.day):
            years -= 1
        return years


@dataclass(frozen=True)
class Song:
    id: int
    name: str
    artist_id: int
    album_id: int | None = None
    genre: str | None = None
    duration_seconds: int | None = None
    release_date: date | None = None
    listen_count: int = 0


@dataclass(frozen=True)
class Album:
    id: int
    name: str
    artist_id: int
    release_date: date | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Playlist:
    id: int
    name: str
    owner_id: int
    visibility: Visibility = Visibility.PRIVATE
    created_at: datetime | None = None

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC


@dataclass(frozen=True)
class PlaylistEntry:
    playlist_id: int
    song_id: int
    added_at: datetime | None = None


@dataclass(frozen=True)
class ListenEvent:
    user_id: int
    song_id: int
    listened_at: datetime
    duration_seconds: int | None = None


@dataclass(frozen=True)
class LikeEvent:
    kind: LikeKind
    user_id: int
    target_id: int
    liked_at: datetime


@dataclass(frozen=True)
class FollowEvent:
    follower_id: int
    artist_id: int
    followed_at: datetime


@dataclass(frozen=True)
class DateRange:
    """Inclusive window of timezone-aware datetimes."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime | None) -> bool:
        return moment is not None and self.start <= moment <= self.end

    def contains_day(self, day: date | None) -> bool:
        return day is not None and self.start.date() <= day <= self.end.date()


@dataclass(frozen=True)
class SectionSelection:
    """Aggregate-mode section toggles."""

    include_listeners: bool = False
    include_artists: bool = False
    include_suspended: bool = False
    include_playlist_stats: bool = False
    include_album_stats: bool = False
    include_geographics: bool = False
    show_song_stats: bool = True
    show_artist_stats: bool = True
    show_age_demographics: bool = True

    def user_types(self) -> frozenset[UserType]:
        types = set()
        if self.include_listeners:
            types.add(UserType.LISTENER)
        if self.include_artists:
            types.add(UserType.ARTIST)
        return frozenset(types)

    def statuses(self) -> frozenset[AccountStatus]:
        if self.include_suspended:
            return frozenset(AccountStatus)
        return frozenset({AccountStatus.ACTIVE})

    def has_user_type(self) -> bool:
        return self.include_listeners or self.include_artists

    def both_user_types(self) -> bool:
        return self.include_listeners and self.include_artists

    def song_stats_enabled(self) -> bool:
        return self.show_song_stats

    def artist_stats_enabled(self) -> bool:
        return self.show_artist_stats and self.include_artists

    def album_stats_enabled(self) -> bool:
        return self.include_album_stats

    def album_breakdown_enabled(self) -> bool:
        return self.include_album_stats and self.artist_stats_enabled()

    def playlist_stats_enabled(self) -> bool:
        return self.include_playlist_stats

    def geographics_enabled(self) -> bool:
        return self.include_geographics

    def age_demographics_enabled(self) -> bool:
        return self.show_age_demographics

    def demographics_enabled(self) -> bool:
        return self.geographics_enabled() or self.age_demographics_enabled()


@dataclass(frozen=True)
class ReportRequest:
    window: DateRange
    mode: ReportMode
    sections: SectionSelection | None = None
    username: str | None = None
