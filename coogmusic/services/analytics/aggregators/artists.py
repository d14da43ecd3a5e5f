"""Follow statistics and the per-artist breakdown."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict

from ..metrics import effective_duration
from ..models import LikeKind, SectionSelection, normalize_city
from ..results import ArtistActivity, ArtistStats, FollowerDetail
from .base import AggregationContext, BaseAggregator

logger = logging.getLogger(__name__)

UNKNOWN_GENRE = "Unknown"


class ArtistAggregator(BaseAggregator):
    """Follows by the population and activity on population artists' catalogs."""

    name = "artists"

    def enabled(self, selection: SectionSelection) -> bool:
        return selection.artist_stats_enabled()

    def aggregate(self, context: AggregationContext) -> ArtistStats:
        repository = context.repository
        window = context.window
        population = context.population
        fallback = context.config.fallback_song_duration

        follows = repository.follows_for(window, user_ids=population.user_ids)
        stats = ArtistStats(
            total_follows=len(follows),
            distinct_artists_followed=len({follow.artist_id for follow in follows}),
        )

        artist_ids = population.artist_ids
        if not artist_ids:
            return stats

        songs = repository.songs_of(artist_ids)
        albums = repository.albums_of(artist_ids)
        song_by_id = {song.id: song for song in songs}
        album_owner = {album.id: album.artist_id for album in albums}

        listens = repository.listen_events_for(window, song_ids=set(song_by_id))
        song_likes = repository.likes_for(LikeKind.SONG, window, entity_ids=set(song_by_id))
        album_likes = repository.likes_for(LikeKind.ALBUM, window, entity_ids=set(album_owner))
        followers = repository.follows_for(window, artist_ids=artist_ids)
        counterparts = context.counterparts(
            {event.user_id for event in listens}
            | {like.user_id for like in song_likes}
            | {like.user_id for like in album_likes}
            | {follow.follower_id for follow in followers}
        )

        listen_count: Counter[int] = Counter()
        listen_duration: Counter[int] = Counter()
        follower_listens: Counter[tuple[int, int]] = Counter()
        for event in listens:
            artist_id = song_by_id[event.song_id].artist_id
            if event.user_id == artist_id or event.user_id not in counterparts:
                continue
            listen_count[artist_id] += 1
            listen_duration[artist_id] += effective_duration(event, song_by_id[event.song_id], fallback)
            follower_listens[(artist_id, event.user_id)] += 1

        song_like_count: Counter[int] = Counter()
        follower_likes: Counter[tuple[int, int]] = Counter()
        for like in song_likes:
            artist_id = song_by_id[like.target_id].artist_id
            if like.user_id == artist_id or like.user_id not in counterparts:
                continue
            song_like_count[artist_id] += 1
            follower_likes[(artist_id, like.user_id)] += 1

        album_like_count = Counter(
            album_owner[like.target_id]
            for like in album_likes
            if like.user_id in counterparts and like.user_id != album_owner[like.target_id]
        )

        follower_rows: dict[int, list[FollowerDetail]] = defaultdict(list)
        with_song_stats = context.selection.song_stats_enabled()
        for follow in followers:
            follower = counterparts.get(follow.follower_id)
            if follower is None or follow.follower_id == follow.artist_id:
                continue
            key = (follow.artist_id, follow.follower_id)
            follower_rows[follow.artist_id].append(
                FollowerDetail(
                    user_id=follower.id,
                    username=follower.username,
                    followed_at=follow.followed_at,
                    listen_count=follower_listens[key] if with_song_stats else None,
                    like_count=follower_likes[key] if with_song_stats else None,
                )
            )

        released_songs: dict[int, list] = defaultdict(list)
        for song in songs:
            if window.contains_day(song.release_date):
                released_songs[song.artist_id].append(song)
        released_albums = Counter(
            album.artist_id for album in albums if window.contains_day(album.release_date)
        )

        for artist in context.population.sorted_users():
            if artist.id not in artist_ids:
                continue
            genres = Counter(song.genre or UNKNOWN_GENRE for song in released_songs[artist.id])
            profile = artist.artist_profile
            rows = sorted(
                follower_rows[artist.id],
                key=lambda row: (row.followed_at, row.username, row.user_id),
            )
            stats.artists.append(
                ArtistActivity(
                    artist_id=artist.id,
                    username=artist.username,
                    full_name=artist.full_name,
                    verified=bool(profile and profile.verified),
                    verified_at=profile.verified_at if profile else None,
                    date_joined=artist.date_joined,
                    country=artist.country,
                    city=normalize_city(artist.city),
                    genres=[name for name, _ in sorted(genres.items(), key=lambda item: (-item[1], item[0]))],
                    songs_released=len(released_songs[artist.id]),
                    albums_released=released_albums[artist.id],
                    total_listens=listen_count[artist.id],
                    total_listening_duration=listen_duration[artist.id],
                    total_song_likes=song_like_count[artist.id],
                    total_album_likes=album_like_count[artist.id],
                    followers=rows,
                )
            )

        logger.debug("Artist aggregator: %d artists, %d follows", len(stats.artists), stats.total_follows)
        return stats
