"""
Individual Drill-Down Builder

Per-user report branches. Listener accounts get their listening, follow,
album-like and playlist branches; artist accounts get their released songs
and albums. Each branch is an independent blocking callable so the engine can
dispatch them concurrently.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date, datetime
from typing import Any, Callable, Iterable

from .config import ReportConfig
from .metrics import average, effective_duration, format_duration
from .models import DateRange, LikeKind, Song, User, UserType, normalize_city
from .population import is_countable
from .repository import ReportRepository
from .results import (
    AlbumSongDetail,
    FollowedArtist,
    IndividualSummary,
    LikedAlbum,
    ListenDetail,
    ListenedSong,
    PlaylistActivity,
    ReleasedAlbum,
    ReleasedSong,
    ReleasedSongListener,
    ReleasedSongLiker,
    SummaryTable,
    UserProfile,
)
from .aggregators.playlists import playlist_activities
from .aggregators.songs import first_likes

logger = logging.getLogger(__name__)

LISTENER_BRANCHES = ("artists_followed", "playlists_owned", "albums_liked", "songs_listened")
ARTIST_BRANCHES = ("albums_released", "songs_released")


def build_profile(user: User, as_of: date) -> UserProfile:
    profile = user.artist_profile
    is_artist = user.user_type is UserType.ARTIST
    return UserProfile(
        user_id=user.id,
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        user_type=user.user_type,
        account_status=user.status,
        status_changed_at=user.status_changed_at,
        date_of_birth=user.date_of_birth,
        age=user.age_on(as_of),
        date_joined=user.date_joined,
        country=user.country,
        city=normalize_city(user.city),
        verified=bool(profile and profile.verified) if is_artist else None,
        verified_at=profile.verified_at if is_artist and profile else None,
    )


def _newest_first(moment: datetime | date | None) -> float:
    if moment is None:
        return float("inf")
    if isinstance(moment, datetime):
        return -moment.timestamp()
    return -float(moment.toordinal())


class DrillDownBuilder:
    """Builds the drill-down sections for one resolved user."""

    def __init__(
        self,
        repository: ReportRepository,
        user: User,
        window: DateRange,
        config: ReportConfig,
    ):
        self.repository = repository
        self.user = user
        self.window = window
        self.config = config

    @property
    def as_of(self) -> date:
        return self.window.end.date()

    def branches(self) -> dict[str, Callable[[], Any]]:
        """Section name to blocking builder, for every applicable section."""
        branches: dict[str, Callable[[], Any]] = {"summary": self.summary}
        if self.user.user_type is UserType.LISTENER:
            names = LISTENER_BRANCHES
        elif self.user.user_type is UserType.ARTIST:
            names = ARTIST_BRANCHES
        else:
            names = ()
        for name in names:
            branches[name] = getattr(self, name)
        return branches

    def _countable_users(self, ids: Iterable[int]) -> dict[int, User]:
        """Countable accounts among ``ids``, excluding the subject."""
        ids = {uid for uid in ids if uid != self.user.id}
        users = self.repository.get_users(ids)
        return {uid: user for uid, user in users.items() if is_countable(user, self.config)}

    def _duration(self, event, song: Song | None) -> int:
        return effective_duration(event, song, self.config.fallback_song_duration)

    # Summary

    def summary(self) -> IndividualSummary:
        profile = build_profile(self.user, self.as_of)
        if self.user.user_type is UserType.LISTENER:
            metrics = self._listener_summary()
        elif self.user.user_type is UserType.ARTIST:
            metrics = self._artist_summary()
        else:
            metrics = SummaryTable()
        return IndividualSummary(profile=profile, metrics=metrics)

    def _listener_summary(self) -> SummaryTable:
        repository = self.repository
        window = self.window
        user_ids = {self.user.id}

        listens = repository.listen_events_for(window, user_ids=user_ids)
        songs = repository.get_songs({event.song_id for event in listens})
        total_duration = sum(self._duration(event, songs.get(event.song_id)) for event in listens)
        song_likes = repository.likes_for(LikeKind.SONG, window, user_ids=user_ids)
        album_likes = repository.likes_for(LikeKind.ALBUM, window, user_ids=user_ids)
        playlist_likes = repository.likes_for(LikeKind.PLAYLIST, window, user_ids=user_ids)
        follows = repository.follows_for(window, user_ids=user_ids)
        followed = self._countable_users(follow.artist_id for follow in follows)
        created = [
            playlist
            for playlist in repository.playlists_of(user_ids)
            if window.contains(playlist.created_at)
        ]
        public = sum(1 for playlist in created if playlist.is_public)

        table = SummaryTable()
        table.add("songs_listened", "Songs Listened", len(listens))
        table.add("distinct_songs_listened", "Distinct Songs Listened", len({e.song_id for e in listens}))
        table.add("songs_liked", "Songs Liked", len(first_likes(song_likes)))
        table.add("total_listening_duration", "Total Listening Duration", total_duration, format_duration(total_duration))
        avg = average(total_duration, len(listens))
        table.add("average_listening_duration", "Average Listening Duration", avg, format_duration(avg))
        table.add("artists_followed", "Artists Followed", sum(1 for f in follows if f.artist_id in followed))
        table.add("albums_liked", "Albums Liked", len(album_likes))
        table.add("playlists_created", "Playlists Created", len(created))
        table.add("public_playlists_created", "Public Playlists Created", public)
        table.add("private_playlists_created", "Private Playlists Created", len(created) - public)
        table.add("playlists_liked", "Playlists Liked", len(playlist_likes))
        return table

    def _artist_summary(self) -> SummaryTable:
        repository = self.repository
        window = self.window

        songs = {song.id: song for song in repository.songs_of({self.user.id})}
        albums = repository.albums_of({self.user.id})
        listens = repository.listen_events_for(window, song_ids=set(songs))
        song_likes = repository.likes_for(LikeKind.SONG, window, entity_ids=set(songs))
        album_likes = repository.likes_for(LikeKind.ALBUM, window, entity_ids={a.id for a in albums})
        follows = repository.follows_for(window, artist_ids={self.user.id})
        countable = self._countable_users(
            {e.user_id for e in listens}
            | {like.user_id for like in song_likes}
            | {like.user_id for like in album_likes}
            | {f.follower_id for f in follows}
        )
        listens = [event for event in listens if event.user_id in countable]
        song_likes = [like for like in song_likes if like.user_id in countable]
        total_duration = sum(self._duration(event, songs.get(event.song_id)) for event in listens)
        added = repository.playlist_entries(song_ids=set(songs), window=window)

        table = SummaryTable()
        table.add("songs_released", "Songs Released", sum(1 for s in songs.values() if window.contains_day(s.release_date)))
        table.add("total_plays", "Total Plays", len(listens))
        table.add("distinct_songs_played", "Distinct Songs Played", len({e.song_id for e in listens}))
        table.add("song_likes", "Song Likes", len(song_likes))
        table.add("distinct_song_likers", "Distinct Song Likers", len({like.user_id for like in song_likes}))
        table.add("total_listening_duration", "Total Listening Duration", total_duration, format_duration(total_duration))
        avg = average(total_duration, len(listens))
        table.add("average_listening_duration", "Average Listening Duration", avg, format_duration(avg))
        table.add("albums_released", "Albums Released", sum(1 for a in albums if window.contains_day(a.release_date)))
        table.add("album_likes", "Album Likes", sum(1 for like in album_likes if like.user_id in countable))
        table.add("new_followers", "New Followers", sum(1 for f in follows if f.follower_id in countable))
        table.add("songs_added_to_playlists", "Songs Added to Playlists", len(added))
        return table

    # Listener branches

    def songs_listened(self) -> list[ListenedSong]:
        repository = self.repository
        user_ids = {self.user.id}
        listens = repository.listen_events_for(self.window, user_ids=user_ids)
        songs = repository.get_songs({event.song_id for event in listens})
        artists = repository.get_users({song.artist_id for song in songs.values()})
        liked = first_likes(repository.likes_for(LikeKind.SONG, self.window, user_ids=user_ids))

        per_song: dict[int, list[ListenDetail]] = defaultdict(list)
        for event in listens:
            per_song[event.song_id].append(
                ListenDetail(listened_at=event.listened_at, duration=self._duration(event, songs.get(event.song_id)))
            )

        rows = []
        for song_id, details in per_song.items():
            song = songs.get(song_id)
            if song is None:
                continue
            details.sort(key=lambda detail: detail.listened_at)
            total = sum(detail.duration for detail in details)
            like = liked.get((self.user.id, song_id))
            artist = artists.get(song.artist_id)
            rows.append(
                ListenedSong(
                    song_id=song.id,
                    song_name=song.name,
                    artist_username=artist.username if artist else None,
                    release_date=song.release_date,
                    genre=song.genre,
                    duration=song.duration_seconds,
                    total_listens=len(details),
                    total_listening_duration=total,
                    average_listening_duration=average(total, len(details)),
                    liked=like is not None,
                    liked_at=like.liked_at if like else None,
                    listens=details,
                )
            )
        rows.sort(key=lambda row: (-row.total_listens, row.song_name, row.song_id))
        return rows

    def artists_followed(self) -> list[FollowedArtist]:
        repository = self.repository
        user_ids = {self.user.id}
        follows = repository.follows_for(self.window, user_ids=user_ids)
        artists = self._countable_users(follow.artist_id for follow in follows)
        if not artists:
            return []

        songs = {song.id: song for song in repository.songs_of(set(artists))}
        albums = {album.id: album for album in repository.albums_of(set(artists))}
        listens = repository.listen_events_for(self.window, user_ids=user_ids, song_ids=set(songs))
        song_likes = repository.likes_for(LikeKind.SONG, self.window, user_ids=user_ids, entity_ids=set(songs))
        album_likes = repository.likes_for(LikeKind.ALBUM, self.window, user_ids=user_ids, entity_ids=set(albums))

        listen_count: Counter[int] = Counter()
        duration: Counter[int] = Counter()
        distinct: dict[int, set[int]] = defaultdict(set)
        for event in listens:
            artist_id = songs[event.song_id].artist_id
            listen_count[artist_id] += 1
            duration[artist_id] += self._duration(event, songs[event.song_id])
            distinct[artist_id].add(event.song_id)
        songs_liked = Counter(songs[like.target_id].artist_id for like in song_likes)
        albums_liked = Counter(albums[like.target_id].artist_id for like in album_likes)

        rows = []
        seen = set()
        for follow in sorted(follows, key=lambda f: f.followed_at):
            artist = artists.get(follow.artist_id)
            if artist is None or artist.id in seen:
                continue
            seen.add(artist.id)
            profile = artist.artist_profile
            rows.append(
                FollowedArtist(
                    artist_id=artist.id,
                    username=artist.username,
                    full_name=artist.full_name,
                    country=artist.country,
                    city=normalize_city(artist.city),
                    verified=bool(profile and profile.verified),
                    followed_at=follow.followed_at,
                    songs_listened=len(distinct[artist.id]),
                    total_listens=listen_count[artist.id],
                    songs_liked=songs_liked[artist.id],
                    albums_liked=albums_liked[artist.id],
                    total_listening_duration=duration[artist.id],
                )
            )
        rows.sort(key=lambda row: (_newest_first(row.followed_at), row.username, row.artist_id))
        return rows

    def albums_liked(self) -> list[LikedAlbum]:
        repository = self.repository
        user_ids = {self.user.id}
        likes = first_likes(repository.likes_for(LikeKind.ALBUM, self.window, user_ids=user_ids))
        if not likes:
            return []
        albums = repository.get_albums({album_id for _, album_id in likes})
        artists = repository.get_users({album.artist_id for album in albums.values()})
        songs = {song.id: song for song in repository.songs_in_albums(set(albums))}
        listens = repository.listen_events_for(self.window, user_ids=user_ids, song_ids=set(songs))
        song_likes = repository.likes_for(LikeKind.SONG, self.window, user_ids=user_ids, entity_ids=set(songs))

        distinct: dict[int, set[int]] = defaultdict(set)
        duration: Counter[int] = Counter()
        for event in listens:
            album_id = songs[event.song_id].album_id
            distinct[album_id].add(event.song_id)
            duration[album_id] += self._duration(event, songs[event.song_id])
        liked_songs: dict[int, set[int]] = defaultdict(set)
        for like in song_likes:
            liked_songs[songs[like.target_id].album_id].add(like.target_id)

        rows = []
        for (_, album_id), like in likes.items():
            album = albums.get(album_id)
            if album is None:
                continue
            artist = artists.get(album.artist_id)
            rows.append(
                LikedAlbum(
                    album_id=album.id,
                    album_name=album.name,
                    artist_username=artist.username if artist else None,
                    release_date=album.release_date,
                    liked_at=like.liked_at,
                    songs_listened=len(distinct[album.id]),
                    songs_liked=len(liked_songs[album.id]),
                    total_listening_duration=duration[album.id],
                )
            )
        rows.sort(key=lambda row: (_newest_first(row.liked_at), row.album_name, row.album_id))
        return rows

    def playlists_owned(self) -> list[PlaylistActivity]:
        repository = self.repository
        playlists = repository.playlists_of({self.user.id})
        public_ids = {playlist.id for playlist in playlists if playlist.is_public}
        likes = repository.likes_for(LikeKind.PLAYLIST, self.window, entity_ids=public_ids)
        likers = self._countable_users(like.user_id for like in likes)
        likes = [like for like in likes if like.user_id in likers]
        return playlist_activities(
            repository,
            playlists,
            likes,
            lambda owner_id: self.user.username,
            likers.get,
        )

    # Artist branches

    def songs_released(self) -> list[ReleasedSong]:
        repository = self.repository
        songs = {song.id: song for song in repository.songs_of({self.user.id})}
        if not songs:
            return []
        albums = repository.get_albums({song.album_id for song in songs.values() if song.album_id is not None})
        listens = repository.listen_events_for(self.window, song_ids=set(songs))
        likes = first_likes(repository.likes_for(LikeKind.SONG, self.window, entity_ids=set(songs)))
        people = self._countable_users({e.user_id for e in listens} | {user_id for user_id, _ in likes})

        played: dict[int, dict[int, list[int]]] = defaultdict(lambda: defaultdict(list))
        for event in listens:
            if event.user_id in people:
                played[event.song_id][event.user_id].append(self._duration(event, songs[event.song_id]))
        likers: dict[int, list[ReleasedSongLiker]] = defaultdict(list)
        for (user_id, song_id), like in likes.items():
            person = people.get(user_id)
            if person is None:
                continue
            likers[song_id].append(
                ReleasedSongLiker(
                    user_id=person.id,
                    username=person.username,
                    full_name=person.full_name,
                    liked_at=like.liked_at,
                )
            )

        rows = []
        for song in songs.values():
            listeners = []
            for user_id, durations in played[song.id].items():
                person = people[user_id]
                listeners.append(
                    ReleasedSongListener(
                        user_id=person.id,
                        username=person.username,
                        full_name=person.full_name,
                        listen_count=len(durations),
                        total_duration=sum(durations),
                        average_duration=average(sum(durations), len(durations)),
                    )
                )
            listeners.sort(key=lambda row: (-row.listen_count, row.username, row.user_id))
            song_likers = sorted(likers[song.id], key=lambda row: (row.liked_at, row.username, row.user_id))
            total_listens = sum(row.listen_count for row in listeners)
            total_duration = sum(row.total_duration for row in listeners)
            album = albums.get(song.album_id) if song.album_id is not None else None
            rows.append(
                ReleasedSong(
                    song_id=song.id,
                    song_name=song.name,
                    album_name=album.name if album else None,
                    release_date=song.release_date,
                    genre=song.genre,
                    duration=song.duration_seconds,
                    total_listens=total_listens,
                    total_likes=len(song_likers),
                    total_listening_duration=total_duration,
                    average_listening_duration=average(total_duration, total_listens),
                    listeners=listeners,
                    likers=song_likers,
                )
            )
        rows.sort(key=lambda row: (_newest_first(row.release_date), row.song_name, row.song_id))
        return rows

    def albums_released(self) -> list[ReleasedAlbum]:
        repository = self.repository
        albums = repository.albums_of({self.user.id})
        if not albums:
            return []
        songs = {song.id: song for song in repository.songs_in_albums({album.id for album in albums})}
        likes = repository.likes_for(LikeKind.ALBUM, self.window, entity_ids={album.id for album in albums})
        listens = repository.listen_events_for(self.window, song_ids=set(songs))
        people = self._countable_users({like.user_id for like in likes} | {e.user_id for e in listens})

        duration: Counter[int] = Counter()
        for event in listens:
            if event.user_id in people:
                duration[songs[event.song_id].album_id] += self._duration(event, songs[event.song_id])
        album_likes = [like for like in likes if like.user_id in people]

        rows = []
        for album in albums:
            tracks = sorted(
                (song for song in songs.values() if song.album_id == album.id),
                key=lambda song: (song.name, song.id),
            )
            liked = [like for like in album_likes if like.target_id == album.id]
            rows.append(
                ReleasedAlbum(
                    album_id=album.id,
                    album_name=album.name,
                    release_date=album.release_date,
                    likes=len(liked),
                    unique_likers=len({like.user_id for like in liked}),
                    total_listening_duration=duration[album.id],
                    songs=[
                        AlbumSongDetail(
                            song_id=song.id,
                            song_name=song.name,
                            duration=song.duration_seconds,
                            genre=song.genre,
                        )
                        for song in tracks
                    ],
                )
            )
        rows.sort(key=lambda row: (_newest_first(row.release_date), row.album_name, row.album_id))
        logger.debug("Drill-down for %s: %d released albums", self.user.username, len(rows))
        return rows
