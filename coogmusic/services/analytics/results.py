"""
Report Result Types

Typed report documents produced by the engine. A ``ReportResult`` is one of
``AggregateResult``, ``IndividualListenerResult``, ``IndividualArtistResult``
or ``IndividualOtherResult``; each carries a ``kind`` tag and a fixed set of
named sections.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar, Union

from .models import AccountStatus, DateRange, SectionSelection, UserType, Visibility

T = TypeVar("T")


class SectionStatus(str, Enum):
    POPULATED = "populated"
    EMPTY = "empty"
    DISABLED = "disabled"
    NOT_APPLICABLE = "not_applicable"


def _is_empty(data: Any) -> bool:
    if data is None:
        return True
    check = getattr(data, "is_empty", None)
    if callable(check):
        return check()
    if isinstance(data, (list, tuple, dict, set, frozenset)):
        return len(data) == 0
    return False


@dataclass(frozen=True)
class Section(Generic[T]):
    """A named report section; its status tells consumers why data is missing."""

    name: str
    status: SectionStatus
    data: T | None = None

    @classmethod
    def of(cls, name: str, data: T) -> "Section[T]":
        """Populated section, or an empty marker that still carries ``data``."""
        status = SectionStatus.EMPTY if _is_empty(data) else SectionStatus.POPULATED
        return cls(name=name, status=status, data=data)

    @classmethod
    def disabled(cls, name: str) -> "Section[T]":
        return cls(name=name, status=SectionStatus.DISABLED)

    @classmethod
    def not_applicable(cls, name: str) -> "Section[T]":
        return cls(name=name, status=SectionStatus.NOT_APPLICABLE)

    @property
    def is_populated(self) -> bool:
        return self.status is SectionStatus.POPULATED


# Summary tables


@dataclass(frozen=True)
class MetricRow:
    key: str
    label: str
    value: int | float | str
    display: str


@dataclass
class SummaryTable:
    rows: list[MetricRow] = field(default_factory=list)

    def add(self, key: str, label: str, value: int | float | str, display: str | None = None) -> None:
        self.rows.append(MetricRow(key=key, label=label, value=value, display=display or str(value)))

    def get(self, key: str) -> MetricRow | None:
        for row in self.rows:
            if row.key == key:
                return row
        return None

    def value_of(self, label: str) -> int | float | str | None:
        for row in self.rows:
            if row.label == label:
                return row.value
        return None

    def is_empty(self) -> bool:
        return not self.rows


# Aggregate: users


@dataclass(frozen=True)
class UserSummary:
    user_id: int
    username: str
    full_name: str
    user_type: UserType
    age: int | None
    country: str | None
    city: str | None
    date_joined: datetime | None
    songs_played: int
    distinct_songs_played: int
    songs_liked: int
    artists_followed: int
    playlists_created: int
    albums_liked: int
    songs_released: int
    albums_released: int
    activity_score: int


@dataclass
class UserCounts:
    listeners: int | None
    artists: int | None
    listener_percentage: float | None = None
    artist_percentage: float | None = None
    ratio: str | None = None
    users: list[UserSummary] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.listeners or self.artists or self.users)


# Aggregate: songs


@dataclass(frozen=True)
class SongListenerDetail:
    user_id: int
    username: str
    country: str | None
    listen_count: int
    total_duration: int
    average_duration: float
    liked: bool
    liked_at: datetime | None


@dataclass
class SongActivity:
    song_id: int
    song_name: str
    artist_name: str
    release_date: date | None
    genre: str | None
    duration: int | None
    total_listens: int
    total_likes: int
    total_listening_duration: int
    average_listening_duration: float
    listeners: list[SongListenerDetail] = field(default_factory=list)


@dataclass
class SongStats:
    total_listens: int = 0
    total_song_likes: int = 0
    distinct_songs_liked: int = 0
    total_listening_duration: int = 0
    average_listening_duration: float = 0.0
    songs_released: int = 0
    songs: list[SongActivity] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.total_listens or self.total_song_likes or self.songs_released or self.songs)


# Aggregate: artists


@dataclass(frozen=True)
class FollowerDetail:
    user_id: int
    username: str
    followed_at: datetime | None
    listen_count: int | None = None
    like_count: int | None = None


@dataclass
class ArtistActivity:
    artist_id: int
    username: str
    full_name: str
    verified: bool
    verified_at: datetime | None
    date_joined: datetime | None
    country: str | None
    city: str | None
    genres: list[str]
    songs_released: int
    albums_released: int
    total_listens: int
    total_listening_duration: int
    total_song_likes: int
    total_album_likes: int
    followers: list[FollowerDetail] = field(default_factory=list)


@dataclass
class ArtistStats:
    total_follows: int = 0
    distinct_artists_followed: int = 0
    artists: list[ArtistActivity] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.total_follows or self.artists)


# Aggregate: albums


@dataclass(frozen=True)
class AlbumSongDetail:
    song_id: int
    song_name: str
    duration: int | None
    genre: str | None


@dataclass(frozen=True)
class AlbumLikeDetail:
    user_id: int
    username: str
    liked_at: datetime | None


@dataclass
class AlbumActivity:
    album_id: int
    album_name: str
    artist_id: int
    artist_username: str
    release_date: date | None
    total_duration: int
    song_count: int
    genre: str | None
    likes: int
    listens: int
    songs: list[AlbumSongDetail] = field(default_factory=list)
    liked_by: list[AlbumLikeDetail] = field(default_factory=list)


@dataclass
class AlbumStats:
    albums_created: int = 0
    total_album_likes: int = 0
    distinct_albums_liked: int = 0
    # None when the per-album breakdown is not requested
    albums: list[AlbumActivity] | None = None

    def is_empty(self) -> bool:
        return not (self.albums_created or self.total_album_likes or self.albums)


# Aggregate: playlists


@dataclass(frozen=True)
class PlaylistSongDetail:
    song_id: int
    song_name: str
    artist_name: str
    album_name: str | None
    duration: int | None
    added_at: datetime | None


@dataclass(frozen=True)
class PlaylistLikeDetail:
    user_id: int
    username: str
    liked_at: datetime | None


@dataclass
class PlaylistActivity:
    playlist_id: int
    playlist_name: str
    visibility: Visibility
    owner_username: str
    created_at: datetime | None
    song_count: int
    total_duration: int
    likes: int
    songs: list[PlaylistSongDetail] = field(default_factory=list)
    liked_by: list[PlaylistLikeDetail] = field(default_factory=list)


@dataclass
class PlaylistStats:
    total_created: int = 0
    public_created: int = 0
    private_created: int = 0
    public_percentage: float = 0.0
    private_percentage: float = 0.0
    ratio: str = "N/A"
    public_likes: int = 0
    distinct_playlists_liked: int = 0
    public_playlists: list[PlaylistActivity] = field(default_factory=list)
    private_playlists: list[PlaylistActivity] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.total_created
            or self.public_likes
            or self.public_playlists
            or self.private_playlists
        )


# Aggregate: demographics


@dataclass(frozen=True)
class CountryBucket:
    country: str
    code: str
    count: int
    ratio: float


@dataclass
class CountryHistogram:
    total: int = 0
    max_count: int = 0
    buckets: list[CountryBucket] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.buckets


@dataclass(frozen=True)
class AgeBucket:
    range: str
    count: int
    ratio: float


@dataclass
class AgeHistogram:
    total: int = 0
    max_count: int = 0
    unknown: int = 0
    buckets: list[AgeBucket] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.buckets and not self.unknown


@dataclass
class Demographics:
    countries: CountryHistogram | None = None
    ages: AgeHistogram | None = None


@dataclass
class AggregateSummary:
    metrics: SummaryTable
    geographics: Section[CountryHistogram]
    age_demographics: Section[AgeHistogram]

    def is_empty(self) -> bool:
        return self.metrics.is_empty()


# Individual drill-down


@dataclass(frozen=True)
class UserProfile:
    user_id: int
    username: str
    full_name: str
    email: str
    user_type: UserType
    account_status: AccountStatus
    status_changed_at: datetime | None
    date_of_birth: date | None
    age: int | None
    date_joined: datetime | None
    country: str | None
    city: str | None
    verified: bool | None = None
    verified_at: datetime | None = None


@dataclass
class IndividualSummary:
    profile: UserProfile
    metrics: SummaryTable

    def is_empty(self) -> bool:
        return False


@dataclass(frozen=True)
class ListenDetail:
    listened_at: datetime
    duration: int


@dataclass
class ListenedSong:
    song_id: int
    song_name: str
    artist_username: str | None
    release_date: date | None
    genre: str | None
    duration: int | None
    total_listens: int
    total_listening_duration: int
    average_listening_duration: float
    liked: bool
    liked_at: datetime | None
    listens: list[ListenDetail] = field(default_factory=list)


@dataclass(frozen=True)
class FollowedArtist:
    artist_id: int
    username: str
    full_name: str
    country: str | None
    city: str | None
    verified: bool
    followed_at: datetime
    songs_listened: int
    total_listens: int
    songs_liked: int
    albums_liked: int
    total_listening_duration: int


@dataclass(frozen=True)
class LikedAlbum:
    album_id: int
    album_name: str
    artist_username: str | None
    release_date: date | None
    liked_at: datetime
    songs_listened: int
    songs_liked: int
    total_listening_duration: int


@dataclass(frozen=True)
class ReleasedSongListener:
    user_id: int
    username: str
    full_name: str
    listen_count: int
    total_duration: int
    average_duration: float


@dataclass(frozen=True)
class ReleasedSongLiker:
    user_id: int
    username: str
    full_name: str
    liked_at: datetime


@dataclass
class ReleasedSong:
    song_id: int
    song_name: str
    album_name: str | None
    release_date: date | None
    genre: str | None
    duration: int | None
    total_listens: int
    total_likes: int
    total_listening_duration: int
    average_listening_duration: float
    listeners: list[ReleasedSongListener] = field(default_factory=list)
    likers: list[ReleasedSongLiker] = field(default_factory=list)


@dataclass
class ReleasedAlbum:
    album_id: int
    album_name: str
    release_date: date | None
    likes: int
    unique_likers: int
    total_listening_duration: int
    songs: list[AlbumSongDetail] = field(default_factory=list)


# Report documents


@dataclass
class AggregateResult:
    kind: ClassVar[str] = "aggregate"

    window: DateRange
    selection: SectionSelection
    summary: Section[AggregateSummary]
    user_activity: Section[UserCounts]
    artist_activity: Section[ArtistStats]
    playlist_activity: Section[PlaylistStats]
    album_activity: Section[AlbumStats]
    song_activity: Section[SongStats]

    def sections(self) -> list[Section]:
        return [
            self.summary,
            self.user_activity,
            self.artist_activity,
            self.playlist_activity,
            self.album_activity,
            self.song_activity,
        ]

    def to_dict(self) -> dict[str, Any]:
        return serialize(self)


@dataclass
class IndividualResult:
    kind: ClassVar[str] = "individual"

    window: DateRange
    summary: Section[IndividualSummary]
    artists_followed: Section[list[FollowedArtist]]
    playlists_owned: Section[list[PlaylistActivity]]
    albums_liked: Section[list[LikedAlbum]]
    albums_released: Section[list[ReleasedAlbum]]
    songs_listened: Section[list[ListenedSong]]
    songs_released: Section[list[ReleasedSong]]

    def sections(self) -> list[Section]:
        return [
            self.summary,
            self.artists_followed,
            self.playlists_owned,
            self.albums_liked,
            self.albums_released,
            self.songs_listened,
            self.songs_released,
        ]

    def to_dict(self) -> dict[str, Any]:
        return serialize(self)


@dataclass
class IndividualListenerResult(IndividualResult):
    kind: ClassVar[str] = "individual_listener"


@dataclass
class IndividualArtistResult(IndividualResult):
    kind: ClassVar[str] = "individual_artist"


@dataclass
class IndividualOtherResult(IndividualResult):
    """Administrator and analyst accounts have no drill-down sections."""

    kind: ClassVar[str] = "individual_other"


ReportResult = Union[
    AggregateResult,
    IndividualListenerResult,
    IndividualArtistResult,
    IndividualOtherResult,
]


def serialize(value: Any) -> Any:
    """Convert a result tree into JSON-compatible primitives."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        data: dict[str, Any] = {}
        kind = getattr(type(value), "kind", None)
        if isinstance(kind, str):
            data["kind"] = kind
        for item in fields(value):
            data[item.name] = serialize(getattr(value, item.name))
        return data
    if isinstance(value, dict):
        return {str(key): serialize(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(serialize(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [serialize(item) for item in value]
    return value
