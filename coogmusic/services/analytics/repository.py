"""
Report Repository

Read-only access to the catalog tables consumed by the report engine. The
engine only talks to the ``ReportRepository`` protocol; ``PostgresReportRepository``
is the production implementation on the shared psycopg pool.

For every ``*_ids`` filter, ``None`` means "no filter" and an empty collection
means "matches nothing".
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

from coogmusic.db.connection import get_connection

from .models import (
    AccountStatus,
    Album,
    ArtistProfile,
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
    Visibility,
)

logger = logging.getLogger(__name__)


class ReportRepository(Protocol):
    def find_users(
        self,
        user_types: Iterable[UserType],
        statuses: Iterable[AccountStatus],
    ) -> list[User]: ...

    def find_user_by_username(self, username: str) -> User | None: ...

    def get_users(self, ids: Iterable[int] | None = None) -> dict[int, User]: ...

    def get_songs(self, ids: Iterable[int] | None = None) -> dict[int, Song]: ...

    def songs_of(self, artist_ids: Iterable[int]) -> list[Song]: ...

    def songs_in_albums(self, album_ids: Iterable[int]) -> list[Song]: ...

    def get_albums(self, ids: Iterable[int] | None = None) -> dict[int, Album]: ...

    def albums_of(self, artist_ids: Iterable[int]) -> list[Album]: ...

    def get_playlists(self, ids: Iterable[int] | None = None) -> dict[int, Playlist]: ...

    def playlists_of(self, owner_ids: Iterable[int]) -> list[Playlist]: ...

    def playlist_entries(
        self,
        *,
        playlist_ids: Iterable[int] | None = None,
        song_ids: Iterable[int] | None = None,
        window: DateRange | None = None,
    ) -> list[PlaylistEntry]: ...

    def listen_events_for(
        self,
        window: DateRange,
        *,
        user_ids: Iterable[int] | None = None,
        song_ids: Iterable[int] | None = None,
    ) -> list[ListenEvent]: ...

    def likes_for(
        self,
        kind: LikeKind,
        window: DateRange,
        *,
        entity_ids: Iterable[int] | None = None,
        user_ids: Iterable[int] | None = None,
    ) -> list[LikeEvent]: ...

    def follows_for(
        self,
        window: DateRange,
        *,
        artist_ids: Iterable[int] | None = None,
        user_ids: Iterable[int] | None = None,
    ) -> list[FollowEvent]: ...


_USER_COLUMNS = """
    up.userid, up.username, up.usertype, up.accountstatus, up.firstname,
    up.lastname, up.email, up.country, up.city, up.dateofbirth, up.datejoined,
    up.updatedat, a.artistid, a.verifiedstatus, a.dateverified, a.artistbio
"""

_USER_FROM = """
    FROM userprofile up
    LEFT JOIN artist a ON a.artistid = up.userid
"""

_SONG_COLUMNS = """
    s.songid, s.songname, s.artistid, s.albumid, g.genrename, s.duration,
    s.releasedate, s.listencount
"""

_SONG_FROM = """
    FROM song s
    LEFT JOIN genre g ON s.genreid = g.genreid
"""

_LIKE_TABLES = {
    LikeKind.SONG: ("user_likes_song", "songid"),
    LikeKind.ALBUM: ("user_likes_album", "albumid"),
    LikeKind.PLAYLIST: ("user_likes_playlist", "playlistid"),
}


def _row_to_user(row: tuple) -> User:
    profile = None
    if row[12] is not None:
        profile = ArtistProfile(verified=bool(row[13]), verified_at=row[14], bio=row[15])
    return User(
        id=row[0],
        username=row[1],
        user_type=UserType(row[2]),
        status=AccountStatus(row[3]),
        first_name=row[4] or "",
        last_name=row[5] or "",
        email=row[6] or "",
        country=row[7],
        city=row[8],
        date_of_birth=row[9],
        date_joined=row[10],
        status_changed_at=row[11],
        artist_profile=profile,
    )


def _row_to_song(row: tuple) -> Song:
    return Song(
        id=row[0],
        name=row[1],
        artist_id=row[2],
        album_id=row[3],
        genre=row[4],
        duration_seconds=row[5],
        release_date=row[6],
        listen_count=row[7] or 0,
    )


def _row_to_album(row: tuple) -> Album:
    return Album(id=row[0], name=row[1], artist_id=row[2], release_date=row[3], created_at=row[4])


def _row_to_playlist(row: tuple) -> Playlist:
    return Playlist(
        id=row[0],
        name=row[1],
        owner_id=row[2],
        visibility=Visibility.PUBLIC if row[3] else Visibility.PRIVATE,
        created_at=row[4],
    )


class _Where:
    """Accumulates ``AND`` clauses and their parameters."""

    def __init__(self) -> None:
        self.clauses: list[str] = []
        self.params: list[Any] = []
        self.impossible = False

    def any_of(self, column: str, values: Iterable[Any] | None) -> "_Where":
        if values is None:
            return self
        values = list(values)
        if not values:
            self.impossible = True
            return self
        self.clauses.append(f"{column} = ANY(%s)")
        self.params.append(values)
        return self

    def between(self, column: str, window: DateRange | None) -> "_Where":
        if window is None:
            return self
        self.clauses.append(f"{column} >= %s AND {column} <= %s")
        self.params.extend([window.start, window.end])
        return self

    def sql(self) -> str:
        if not self.clauses:
            return ""
        return "WHERE " + " AND ".join(self.clauses)


class PostgresReportRepository:
    """``ReportRepository`` backed by the PostgreSQL catalog schema."""

    def _fetch(self, query: str, params: list[Any]) -> list[tuple]:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        logger.debug("Report query returned %d rows", len(rows))
        return rows

    def _select(self, columns: str, source: str, where: _Where, order_by: str) -> list[tuple]:
        if where.impossible:
            return []
        return self._fetch(
            f"SELECT {columns} {source} {where.sql()} ORDER BY {order_by}",
            where.params,
        )

    def find_users(
        self,
        user_types: Iterable[UserType],
        statuses: Iterable[AccountStatus],
    ) -> list[User]:
        where = _Where()
        where.any_of("up.usertype", [t.value for t in user_types])
        where.any_of("up.accountstatus", [s.value for s in statuses])
        rows = self._select(_USER_COLUMNS, _USER_FROM, where, "up.userid")
        return [_row_to_user(row) for row in rows]

    def find_user_by_username(self, username: str) -> User | None:
        rows = self._fetch(
            f"SELECT {_USER_COLUMNS} {_USER_FROM} WHERE up.username = %s",
            [username],
        )
        return _row_to_user(rows[0]) if rows else None

    def get_users(self, ids: Iterable[int] | None = None) -> dict[int, User]:
        where = _Where().any_of("up.userid", ids)
        rows = self._select(_USER_COLUMNS, _USER_FROM, where, "up.userid")
        return {row[0]: _row_to_user(row) for row in rows}

    def get_songs(self, ids: Iterable[int] | None = None) -> dict[int, Song]:
        where = _Where().any_of("s.songid", ids)
        rows = self._select(_SONG_COLUMNS, _SONG_FROM, where, "s.songid")
        return {row[0]: _row_to_song(row) for row in rows}

    def songs_of(self, artist_ids: Iterable[int]) -> list[Song]:
        where = _Where().any_of("s.artistid", artist_ids)
        rows = self._select(_SONG_COLUMNS, _SONG_FROM, where, "s.songid")
        return [_row_to_song(row) for row in rows]

    def songs_in_albums(self, album_ids: Iterable[int]) -> list[Song]:
        where = _Where().any_of("s.albumid", album_ids)
        rows = self._select(_SONG_COLUMNS, _SONG_FROM, where, "s.songid")
        return [_row_to_song(row) for row in rows]

    def get_albums(self, ids: Iterable[int] | None = None) -> dict[int, Album]:
        where = _Where().any_of("alb.albumid", ids)
        rows = self._select(
            "alb.albumid, alb.albumname, alb.artistid, alb.releasedate, alb.createdat",
            "FROM album alb",
            where,
            "alb.albumid",
        )
        return {row[0]: _row_to_album(row) for row in rows}

    def albums_of(self, artist_ids: Iterable[int]) -> list[Album]:
        where = _Where().any_of("alb.artistid", artist_ids)
        rows = self._select(
            "alb.albumid, alb.albumname, alb.artistid, alb.releasedate, alb.createdat",
            "FROM album alb",
            where,
            "alb.albumid",
        )
        return [_row_to_album(row) for row in rows]

    def get_playlists(self, ids: Iterable[int] | None = None) -> dict[int, Playlist]:
        where = _Where().any_of("p.playlistid", ids)
        rows = self._select(
            "p.playlistid, p.playlistname, p.userid, p.ispublic, p.createdat",
            "FROM playlist p",
            where,
            "p.playlistid",
        )
        return {row[0]: _row_to_playlist(row) for row in rows}

    def playlists_of(self, owner_ids: Iterable[int]) -> list[Playlist]:
        where = _Where().any_of("p.userid", owner_ids)
        rows = self._select(
            "p.playlistid, p.playlistname, p.userid, p.ispublic, p.createdat",
            "FROM playlist p",
            where,
            "p.playlistid",
        )
        return [_row_to_playlist(row) for row in rows]

    def playlist_entries(
        self,
        *,
        playlist_ids: Iterable[int] | None = None,
        song_ids: Iterable[int] | None = None,
        window: DateRange | None = None,
    ) -> list[PlaylistEntry]:
        where = (
            _Where()
            .any_of("ps.playlistid", playlist_ids)
            .any_of("ps.songid", song_ids)
            .between("ps.addedat", window)
        )
        rows = self._select(
            "ps.playlistid, ps.songid, ps.addedat",
            "FROM playlist_song ps",
            where,
            "ps.playlistid, ps.addedat, ps.songid",
        )
        return [PlaylistEntry(playlist_id=row[0], song_id=row[1], added_at=row[2]) for row in rows]

    def listen_events_for(
        self,
        window: DateRange,
        *,
        user_ids: Iterable[int] | None = None,
        song_ids: Iterable[int] | None = None,
    ) -> list[ListenEvent]:
        where = (
            _Where()
            .between("lh.listenedat", window)
            .any_of("lh.userid", user_ids)
            .any_of("lh.songid", song_ids)
        )
        rows = self._select(
            "lh.userid, lh.songid, lh.listenedat, lh.duration",
            "FROM listening_history lh",
            where,
            "lh.listenedat, lh.userid, lh.songid",
        )
        return [
            ListenEvent(user_id=row[0], song_id=row[1], listened_at=row[2], duration_seconds=row[3])
            for row in rows
        ]

    def likes_for(
        self,
        kind: LikeKind,
        window: DateRange,
        *,
        entity_ids: Iterable[int] | None = None,
        user_ids: Iterable[int] | None = None,
    ) -> list[LikeEvent]:
        table, column = _LIKE_TABLES[kind]
        where = (
            _Where()
            .between("l.likedat", window)
            .any_of(f"l.{column}", entity_ids)
            .any_of("l.userid", user_ids)
        )
        rows = self._select(
            f"l.userid, l.{column}, l.likedat",
            f"FROM {table} l",
            where,
            f"l.likedat, l.userid, l.{column}",
        )
        return [
            LikeEvent(kind=kind, user_id=row[0], target_id=row[1], liked_at=row[2])
            for row in rows
        ]

    def follows_for(
        self,
        window: DateRange,
        *,
        artist_ids: Iterable[int] | None = None,
        user_ids: Iterable[int] | None = None,
    ) -> list[FollowEvent]:
        where = (
            _Where()
            .between("ufa.followedat", window)
            .any_of("ufa.artistid", artist_ids)
            .any_of("ufa.userid", user_ids)
        )
        rows = self._select(
            "ufa.userid, ufa.artistid, ufa.followedat",
            "FROM user_follows_artist ufa",
            where,
            "ufa.followedat, ufa.userid, ufa.artistid",
        )
        return [FollowEvent(follower_id=row[0], artist_id=row[1], followed_at=row[2]) for row in rows]
