"""Listening, song-like and song-release statistics."""

from __future__ import annotations

import logging
from collections import defaultdict

from ..metrics import average, effective_duration
from ..models import LikeEvent, LikeKind, ListenEvent, SectionSelection, Song
from ..results import SongActivity, SongListenerDetail, SongStats
from .base import AggregationContext, BaseAggregator

logger = logging.getLogger(__name__)


def first_likes(likes: list[LikeEvent]) -> dict[tuple[int, int], LikeEvent]:
    """Earliest like per (user, target) pair."""
    earliest: dict[tuple[int, int], LikeEvent] = {}
    for like in likes:
        key = (like.user_id, like.target_id)
        if key not in earliest or like.liked_at < earliest[key].liked_at:
            earliest[key] = like
    return earliest


class SongAggregator(BaseAggregator):
    """Song listening totals and the per-song activity table."""

    name = "songs"

    def enabled(self, selection: SectionSelection) -> bool:
        return selection.song_stats_enabled()

    def aggregate(self, context: AggregationContext) -> SongStats:
        repository = context.repository
        window = context.window
        population = context.population
        fallback = context.config.fallback_song_duration

        events = repository.listen_events_for(window, user_ids=population.user_ids)
        likes = repository.likes_for(LikeKind.SONG, window, user_ids=population.user_ids)
        songs = repository.get_songs({event.song_id for event in events} | {like.target_id for like in likes})

        listener_ids = population.listener_ids
        durations = [effective_duration(event, songs.get(event.song_id), fallback) for event in events]
        total_duration = sum(durations)

        released = [
            song
            for song in repository.songs_of(population.artist_ids)
            if window.contains_day(song.release_date)
        ]

        stats = SongStats(
            total_listens=sum(1 for event in events if event.user_id in listener_ids),
            total_song_likes=len(likes),
            distinct_songs_liked=len({like.target_id for like in likes}),
            total_listening_duration=total_duration,
            average_listening_duration=average(total_duration, len(events)),
            songs_released=len(released),
        )
        stats.songs = self._song_table(context, events, likes, songs)
        logger.debug(
            "Song aggregator: %d listens, %d likes, %d songs", stats.total_listens, len(likes), len(stats.songs)
        )
        return stats

    def _song_table(
        self,
        context: AggregationContext,
        events: list[ListenEvent],
        likes: list[LikeEvent],
        songs: dict[int, Song],
    ) -> list[SongActivity]:
        fallback = context.config.fallback_song_duration
        by_song: dict[int, dict[int, list[int]]] = defaultdict(lambda: defaultdict(list))
        for event in events:
            by_song[event.song_id][event.user_id].append(
                effective_duration(event, songs.get(event.song_id), fallback)
            )

        likes_per_song: dict[int, int] = defaultdict(int)
        for like in likes:
            likes_per_song[like.target_id] += 1
        liked = first_likes(likes)

        artist_ids = {songs[song_id].artist_id for song_id in by_song if song_id in songs}
        artists = context.repository.get_users(artist_ids)

        table = []
        for song_id, listeners in by_song.items():
            song = songs.get(song_id)
            if song is None:
                continue
            details = []
            for user_id, played in listeners.items():
                user = context.user(user_id)
                like = liked.get((user_id, song_id))
                details.append(
                    SongListenerDetail(
                        user_id=user_id,
                        username=user.username if user else "",
                        country=user.country if user else None,
                        listen_count=len(played),
                        total_duration=sum(played),
                        average_duration=average(sum(played), len(played)),
                        liked=like is not None,
                        liked_at=like.liked_at if like else None,
                    )
                )
            details.sort(key=lambda detail: (-detail.listen_count, detail.username, detail.user_id))

            total_listens = sum(detail.listen_count for detail in details)
            total_duration = sum(detail.total_duration for detail in details)
            artist = artists.get(song.artist_id)
            table.append(
                SongActivity(
                    song_id=song.id,
                    song_name=song.name,
                    artist_name=artist.username if artist else "",
                    release_date=song.release_date,
                    genre=song.genre,
                    duration=song.duration_seconds,
                    total_listens=total_listens,
                    total_likes=likes_per_song[song_id],
                    total_listening_duration=total_duration,
                    average_listening_duration=average(total_duration, total_listens),
                    listeners=details,
                )
            )
        table.sort(key=lambda row: (-row.total_listens, row.song_name, row.song_id))
        return table
