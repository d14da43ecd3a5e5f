"""Album creation, album-like statistics and the per-album table."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict

from ..models import Album, DateRange, LikeKind, SectionSelection
from ..results import AlbumActivity, AlbumLikeDetail, AlbumSongDetail, AlbumStats
from .base import AggregationContext, BaseAggregator

logger = logging.getLogger(__name__)


def created_in(album: Album, window: DateRange) -> bool:
    if album.created_at is not None:
        return window.contains(album.created_at)
    return window.contains_day(album.release_date)


def dominant_genre(genres: list[str | None]) -> str | None:
    counts = Counter(genre for genre in genres if genre)
    if not counts:
        return None
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))[0][0]


class AlbumAggregator(BaseAggregator):
    name = "albums"

    def enabled(self, selection: SectionSelection) -> bool:
        return selection.album_stats_enabled()

    def aggregate(self, context: AggregationContext) -> AlbumStats:
        repository = context.repository
        window = context.window
        population = context.population

        albums = repository.albums_of(population.artist_ids)
        likes = repository.likes_for(LikeKind.ALBUM, window, user_ids=population.user_ids)

        stats = AlbumStats(
            albums_created=sum(1 for album in albums if created_in(album, window)),
            total_album_likes=len(likes),
            distinct_albums_liked=len({like.target_id for like in likes}),
        )
        if context.selection.album_breakdown_enabled():
            released = [album for album in albums if window.contains_day(album.release_date)]
            stats.albums = self._album_table(context, released)

        logger.debug("Album aggregator: %d created, %d likes", stats.albums_created, stats.total_album_likes)
        return stats

    def _album_table(self, context: AggregationContext, albums: list[Album]) -> list[AlbumActivity]:
        if not albums:
            return []
        repository = context.repository
        owner = {album.id: album.artist_id for album in albums}
        songs = repository.songs_in_albums(set(owner))
        album_of_song = {song.id: song.album_id for song in songs}
        events = repository.listen_events_for(context.window, song_ids=set(album_of_song))
        likes = repository.likes_for(LikeKind.ALBUM, context.window, entity_ids=set(owner))
        counterparts = context.counterparts(
            {event.user_id for event in events} | {like.user_id for like in likes}
        )

        listens = Counter(
            album_of_song[event.song_id]
            for event in events
            if event.user_id in counterparts and event.user_id != owner[album_of_song[event.song_id]]
        )
        likers_of: dict[int, list[AlbumLikeDetail]] = defaultdict(list)
        for like in likes:
            liker = counterparts.get(like.user_id)
            if liker is None or like.user_id == owner[like.target_id]:
                continue
            likers_of[like.target_id].append(
                AlbumLikeDetail(user_id=liker.id, username=liker.username, liked_at=like.liked_at)
            )

        table = []
        for album in albums:
            tracks = sorted(
                (song for song in songs if song.album_id == album.id),
                key=lambda song: (song.name, song.id),
            )
            likers = sorted(likers_of[album.id], key=lambda row: (row.liked_at, row.username, row.user_id))
            artist = context.user(album.artist_id)
            table.append(
                AlbumActivity(
                    album_id=album.id,
                    album_name=album.name,
                    artist_id=album.artist_id,
                    artist_username=artist.username if artist else "",
                    release_date=album.release_date,
                    total_duration=sum(song.duration_seconds or 0 for song in tracks),
                    song_count=len(tracks),
                    genre=dominant_genre([song.genre for song in tracks]),
                    likes=len(likers),
                    listens=listens[album.id],
                    songs=[
                        AlbumSongDetail(
                            song_id=song.id,
                            song_name=song.name,
                            duration=song.duration_seconds,
                            genre=song.genre,
                        )
                        for song in tracks
                    ],
                    liked_by=likers,
                )
            )
        table.sort(key=lambda row: (-row.release_date.toordinal(), row.album_name, row.album_id))
        return table
