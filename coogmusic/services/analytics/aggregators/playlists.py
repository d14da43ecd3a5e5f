"""Playlist creation, visibility split and per-playlist activity."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable

from ..metrics import percentage, ratio_label
from ..models import LikeEvent, LikeKind, Playlist, SectionSelection, User, Visibility
from ..repository import ReportRepository
from ..results import PlaylistActivity, PlaylistLikeDetail, PlaylistSongDetail, PlaylistStats
from .base import AggregationContext, BaseAggregator

logger = logging.getLogger(__name__)


def playlist_activities(
    repository: ReportRepository,
    playlists: list[Playlist],
    likes: list[LikeEvent],
    owner_name: Callable[[int], str],
    liker_lookup: Callable[[int], User | None],
) -> list[PlaylistActivity]:
    """
    Build activity rows for playlists, including their songs and likers.

    Args:
        repository: Catalog access for entries, songs, artists and albums
        playlists: Playlists to describe
        likes: Playlist-like events already filtered to countable likers
        owner_name: Resolves an owner id to a username
        liker_lookup: Resolves a liker id to a user

    Returns:
        One row per playlist, ordered by name
    """
    if not playlists:
        return []
    entries = repository.playlist_entries(playlist_ids={playlist.id for playlist in playlists})
    songs = repository.get_songs({entry.song_id for entry in entries})
    artists = repository.get_users({song.artist_id for song in songs.values()})
    albums = repository.get_albums({song.album_id for song in songs.values() if song.album_id is not None})

    entries_by_playlist = defaultdict(list)
    for entry in entries:
        entries_by_playlist[entry.playlist_id].append(entry)
    likes_by_playlist = defaultdict(list)
    for like in likes:
        likes_by_playlist[like.target_id].append(like)

    rows = []
    for playlist in playlists:
        song_rows = []
        for entry in entries_by_playlist[playlist.id]:
            song = songs.get(entry.song_id)
            if song is None:
                continue
            artist = artists.get(song.artist_id)
            album = albums.get(song.album_id) if song.album_id is not None else None
            song_rows.append(
                PlaylistSongDetail(
                    song_id=song.id,
                    song_name=song.name,
                    artist_name=artist.username if artist else "",
                    album_name=album.name if album else None,
                    duration=song.duration_seconds,
                    added_at=entry.added_at,
                )
            )
        song_rows.sort(key=lambda row: (row.added_at is None, row.added_at, row.song_name, row.song_id))

        liker_rows = []
        if playlist.is_public:
            for like in likes_by_playlist[playlist.id]:
                liker = liker_lookup(like.user_id)
                if liker is None:
                    continue
                liker_rows.append(
                    PlaylistLikeDetail(user_id=liker.id, username=liker.username, liked_at=like.liked_at)
                )
            liker_rows.sort(key=lambda row: (row.liked_at, row.username, row.user_id))

        rows.append(
            PlaylistActivity(
                playlist_id=playlist.id,
                playlist_name=playlist.name,
                visibility=playlist.visibility,
                owner_username=owner_name(playlist.owner_id),
                created_at=playlist.created_at,
                song_count=len(song_rows),
                total_duration=sum(row.duration or 0 for row in song_rows),
                likes=len(liker_rows),
                songs=song_rows,
                liked_by=liker_rows,
            )
        )
    rows.sort(key=lambda row: (row.playlist_name, row.playlist_id))
    return rows


class PlaylistAggregator(BaseAggregator):
    name = "playlists"

    def enabled(self, selection: SectionSelection) -> bool:
        return selection.playlist_stats_enabled()

    def aggregate(self, context: AggregationContext) -> PlaylistStats:
        repository = context.repository
        window = context.window
        population = context.population

        owned = repository.playlists_of(population.user_ids)
        created = [playlist for playlist in owned if window.contains(playlist.created_at)]
        public_created = sum(1 for playlist in created if playlist.is_public)
        private_created = len(created) - public_created

        likes = repository.likes_for(LikeKind.PLAYLIST, window, user_ids=population.user_ids)
        liked = repository.get_playlists({like.target_id for like in likes})
        public_likes = [like for like in likes if like.target_id in liked and liked[like.target_id].is_public]

        stats = PlaylistStats(
            total_created=len(created),
            public_created=public_created,
            private_created=private_created,
            public_percentage=percentage(public_created, len(created)),
            private_percentage=percentage(private_created, len(created)),
            ratio=ratio_label(public_created, private_created, "Public", "Private"),
            public_likes=len(public_likes),
            distinct_playlists_liked=len({like.target_id for like in likes}),
        )

        owned_ids = {playlist.id for playlist in owned}
        extended = {
            entry.playlist_id
            for entry in repository.playlist_entries(playlist_ids=owned_ids, window=window)
        }
        liked_owned = [like for like in public_likes if like.target_id in owned_ids]
        liked_ids = {like.target_id for like in liked_owned}
        active = [
            playlist
            for playlist in owned
            if window.contains(playlist.created_at)
            or playlist.id in extended
            or (playlist.is_public and playlist.id in liked_ids)
        ]

        def owner_name(owner_id: int) -> str:
            owner = context.user(owner_id)
            return owner.username if owner else ""

        rows = playlist_activities(repository, active, liked_owned, owner_name, context.user)
        stats.public_playlists = [row for row in rows if row.visibility is Visibility.PUBLIC]
        stats.private_playlists = [row for row in rows if row.visibility is Visibility.PRIVATE]

        logger.debug("Playlist aggregator: %d created, %d active", stats.total_created, len(rows))
        return stats
