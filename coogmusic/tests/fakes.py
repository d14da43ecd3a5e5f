"""In-memory ``ReportRepository`` used by the test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from coogmusic.services.analytics.models import (
    AccountStatus,
    Album,
    DateRange,
    FollowEvent,
    LikeEvent,
    LikeKind,
    ListenEvent,
    Playlist,
    PlaylistEntry,
    Song,
    User,
    UserType,
)


def at(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def _match(value: int, ids: Iterable[int] | None) -> bool:
    return ids is None or value in set(ids)


def _within(moment, window: DateRange | None) -> bool:
    return window is None or window.contains(moment)


@dataclass
class InMemoryRepository:
    users: list[User] = field(default_factory=list)
    songs: list[Song] = field(default_factory=list)
    albums: list[Album] = field(default_factory=list)
    playlists: list[Playlist] = field(default_factory=list)
    entries: list[PlaylistEntry] = field(default_factory=list)
    listens: list[ListenEvent] = field(default_factory=list)
    likes: list[LikeEvent] = field(default_factory=list)
    follows: list[FollowEvent] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    def find_users(
        self,
        user_types: Iterable[UserType],
        statuses: Iterable[AccountStatus],
    ) -> list[User]:
        self.calls.append("find_users")
        types, allowed = set(user_types), set(statuses)
        return [u for u in self.users if u.user_type in types and u.status in allowed]

    def find_user_by_username(self, username: str) -> User | None:
        self.calls.append("find_user_by_username")
        return next((u for u in self.users if u.username == username), None)

    def get_users(self, ids: Iterable[int] | None = None) -> dict[int, User]:
        self.calls.append("get_users")
        ids = None if ids is None else set(ids)
        return {u.id: u for u in self.users if _match(u.id, ids)}

    def get_songs(self, ids: Iterable[int] | None = None) -> dict[int, Song]:
        self.calls.append("get_songs")
        ids = None if ids is None else set(ids)
        return {s.id: s for s in self.songs if _match(s.id, ids)}

    def songs_of(self, artist_ids: Iterable[int]) -> list[Song]:
        self.calls.append("songs_of")
        ids = set(artist_ids)
        return [s for s in self.songs if s.artist_id in ids]

    def songs_in_albums(self, album_ids: Iterable[int]) -> list[Song]:
        self.calls.append("songs_in_albums")
        ids = set(album_ids)
        return [s for s in self.songs if s.album_id in ids]

    def get_albums(self, ids: Iterable[int] | None = None) -> dict[int, Album]:
        self.calls.append("get_albums")
        ids = None if ids is None else set(ids)
        return {a.id: a for a in self.albums if _match(a.id, ids)}

    def albums_of(self, artist_ids: Iterable[int]) -> list[Album]:
        self.calls.append("albums_of")
        ids = set(artist_ids)
        return [a for a in self.albums if a.artist_id in ids]

    def get_playlists(self, ids: Iterable[int] | None = None) -> dict[int, Playlist]:
        self.calls.append("get_playlists")
        ids = None if ids is None else set(ids)
        return {p.id: p for p in self.playlists if _match(p.id, ids)}

    def playlists_of(self, owner_ids: Iterable[int]) -> list[Playlist]:
        self.calls.append("playlists_of")
        ids = set(owner_ids)
        return [p for p in self.playlists if p.owner_id in ids]

    def playlist_entries(
        self,
        *,
        playlist_ids: Iterable[int] | None = None,
        song_ids: Iterable[int] | None = None,
        window: DateRange | None = None,
    ) -> list[PlaylistEntry]:
        self.calls.append("playlist_entries")
        playlist_ids = None if playlist_ids is None else set(playlist_ids)
        song_ids = None if song_ids is None else set(song_ids)
        return [
            e
            for e in self.entries
            if _match(e.playlist_id, playlist_ids)
            and _match(e.song_id, song_ids)
            and _within(e.added_at, window)
        ]

    def listen_events_for(
        self,
        window: DateRange,
        *,
        user_ids: Iterable[int] | None = None,
        song_ids: Iterable[int] | None = None,
    ) -> list[ListenEvent]:
        self.calls.append("listen_events_for")
        user_ids = None if user_ids is None else set(user_ids)
        song_ids = None if song_ids is None else set(song_ids)
        return [
            e
            for e in self.listens
            if window.contains(e.listened_at)
            and _match(e.user_id, user_ids)
            and _match(e.song_id, song_ids)
        ]

    def likes_for(
        self,
        kind: LikeKind,
        window: DateRange,
        *,
        entity_ids: Iterable[int] | None = None,
        user_ids: Iterable[int] | None = None,
    ) -> list[LikeEvent]:
        self.calls.append("likes_for")
        entity_ids = None if entity_ids is None else set(entity_ids)
        user_ids = None if user_ids is None else set(user_ids)
        return [
            like
            for like in self.likes
            if like.kind is kind
            and window.contains(like.liked_at)
            and _match(like.target_id, entity_ids)
            and _match(like.user_id, user_ids)
        ]

    def follows_for(
        self,
        window: DateRange,
        *,
        artist_ids: Iterable[int] | None = None,
        user_ids: Iterable[int] | None = None,
    ) -> list[FollowEvent]:
        self.calls.append("follows_for")
        artist_ids = None if artist_ids is None else set(artist_ids)
        user_ids = None if user_ids is None else set(user_ids)
        return [
            f
            for f in self.follows
            if window.contains(f.followed_at)
            and _match(f.artist_id, artist_ids)
            and _match(f.follower_id, user_ids)
        ]


class FailingRepository(InMemoryRepository):
    """Raises from one repository method to simulate a storage outage."""

    def __init__(self, failing_method: str, **kwargs):
        super().__init__(**kwargs)

        def fail(*args, **kwargs):
            raise ConnectionError(f"storage unavailable during {failing_method}")

        setattr(self, failing_method, fail)
