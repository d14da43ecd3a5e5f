"""Account creation counts and the per-user activity table."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict

from ..metrics import percentage, ratio_label
from ..models import LikeKind, SectionSelection, User, UserType, normalize_city
from ..results import UserCounts, UserSummary
from .base import AggregationContext, BaseAggregator

logger = logging.getLogger(__name__)

_TYPE_ORDER = {UserType.LISTENER: 0, UserType.ARTIST: 1}


class UserAggregator(BaseAggregator):
    """Counts accounts created in the window and summarizes their activity."""

    name = "users"

    def enabled(self, selection: SectionSelection) -> bool:
        return True

    def aggregate(self, context: AggregationContext) -> UserCounts:
        window = context.window
        selection = context.selection
        created = [
            user
            for user in context.population.users.values()
            if window.contains(user.date_joined)
        ]

        listeners = sum(1 for user in created if user.user_type is UserType.LISTENER)
        artists = sum(1 for user in created if user.user_type is UserType.ARTIST)
        counts = UserCounts(
            listeners=listeners if selection.include_listeners else None,
            artists=artists if selection.include_artists else None,
        )
        if selection.both_user_types():
            total = listeners + artists
            counts.listener_percentage = percentage(listeners, total)
            counts.artist_percentage = percentage(artists, total)
            counts.ratio = ratio_label(listeners, artists, "Listeners", "Artists")

        counts.users = self._activity_table(context, created)
        logger.debug("User aggregator: %d listeners, %d artists created", listeners, artists)
        return counts

    def _activity_table(self, context: AggregationContext, created: list[User]) -> list[UserSummary]:
        if not created:
            return []
        repository = context.repository
        window = context.window
        ids = {user.id for user in created}
        artist_ids = {user.id for user in created if user.user_type is UserType.ARTIST}

        plays: Counter[int] = Counter()
        distinct_songs: dict[int, set[int]] = defaultdict(set)
        for event in repository.listen_events_for(window, user_ids=ids):
            plays[event.user_id] += 1
            distinct_songs[event.user_id].add(event.song_id)

        song_likes = Counter(
            like.user_id for like in repository.likes_for(LikeKind.SONG, window, user_ids=ids)
        )
        album_likes = Counter(
            like.user_id for like in repository.likes_for(LikeKind.ALBUM, window, user_ids=ids)
        )
        follows = Counter(follow.follower_id for follow in repository.follows_for(window, user_ids=ids))
        playlists = Counter(
            playlist.owner_id
            for playlist in repository.playlists_of(ids)
            if window.contains(playlist.created_at)
        )
        songs_released = Counter(
            song.artist_id
            for song in repository.songs_of(artist_ids)
            if window.contains_day(song.release_date)
        )
        albums_released = Counter(
            album.artist_id
            for album in repository.albums_of(artist_ids)
            if window.contains_day(album.release_date)
        )

        rows = []
        for user in created:
            activity = [
                plays[user.id],
                len(distinct_songs[user.id]),
                song_likes[user.id],
                follows[user.id],
                playlists[user.id],
                album_likes[user.id],
                songs_released[user.id],
                albums_released[user.id],
            ]
            rows.append(
                UserSummary(
                    user_id=user.id,
                    username=user.username,
                    full_name=user.full_name,
                    user_type=user.user_type,
                    age=user.age_on(context.as_of),
                    country=user.country,
                    city=normalize_city(user.city),
                    date_joined=user.date_joined,
                    songs_played=activity[0],
                    distinct_songs_played=activity[1],
                    songs_liked=activity[2],
                    artists_followed=activity[3],
                    playlists_created=activity[4],
                    albums_liked=activity[5],
                    songs_released=activity[6],
                    albums_released=activity[7],
                    activity_score=sum(activity),
                )
            )
        rows.sort(key=lambda row: (_TYPE_ORDER.get(row.user_type, 2), -row.activity_score, row.username))
        return rows
