"""Tests for the aggregate-mode aggregators."""

from datetime import datetime, timezone

import pytest

from coogmusic.services.analytics.aggregators import (
    AggregationContext,
    AlbumAggregator,
    ArtistAggregator,
    DemographicAggregator,
    PlaylistAggregator,
    SongAggregator,
    UserAggregator,
)
from coogmusic.services.analytics.aggregators.demographics import age_bucket
from coogmusic.services.analytics.models import DateRange, SectionSelection, UserType
from coogmusic.services.analytics.population import resolve_population
from coogmusic.tests.fakes import at

WINDOW = DateRange(
    start=datetime(2024, 1, 1, tzinfo=timezone.utc),
    end=datetime(2024, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc),
)

EVERYTHING = SectionSelection(
    include_listeners=True,
    include_artists=True,
    include_playlist_stats=True,
    include_album_stats=True,
    include_geographics=True,
)


@pytest.fixture
def context_for(catalog, config):
    def build(selection: SectionSelection = EVERYTHING, window: DateRange = WINDOW) -> AggregationContext:
        return AggregationContext(
            repository=catalog,
            population=resolve_population(catalog, selection, config),
            window=window,
            selection=selection,
            config=config,
        )

    return build


def test_user_counts_and_split(context_for):
    counts = UserAggregator().aggregate(context_for())
    assert counts.listeners == 1
    assert counts.artists == 1
    assert counts.listener_percentage == 50.0
    assert counts.artist_percentage == 50.0
    assert counts.ratio == "1.00:1 (Listeners:Artists)"


def test_user_counts_for_single_type_have_no_split(context_for):
    counts = UserAggregator().aggregate(context_for(SectionSelection(include_listeners=True)))
    assert counts.listeners == 1
    assert counts.artists is None
    assert counts.listener_percentage is None
    assert counts.ratio is None


def test_user_activity_table(context_for):
    """Listeners come before artists; the score sums the activity counts."""
    users = UserAggregator().aggregate(context_for()).users
    assert [row.username for row in users] == ["alice", "dj_echo"]
    alice, echo = users
    assert (alice.songs_played, alice.distinct_songs_played, alice.songs_liked) == (3, 2, 2)
    assert (alice.artists_followed, alice.playlists_created, alice.albums_liked) == (1, 2, 1)
    assert alice.activity_score == 11
    assert alice.age == 24
    assert echo.user_type is UserType.ARTIST
    assert (echo.songs_released, echo.albums_released, echo.songs_played) == (3, 1, 1)
    assert echo.activity_score == 6
    assert echo.city is None


def test_song_stats(context_for):
    stats = SongAggregator().aggregate(context_for())
    assert stats.total_listens == 5
    assert stats.total_song_likes == 3
    assert stats.distinct_songs_liked == 2
    assert stats.total_listening_duration == 980
    assert stats.average_listening_duration == 163.33
    assert stats.songs_released == 3


def test_song_table(context_for):
    songs = SongAggregator().aggregate(context_for()).songs
    assert [row.song_name for row in songs] == ["Echoes", "Flux", "Late Bloom"]
    echoes = songs[0]
    assert echoes.total_listens == 3
    assert echoes.total_likes == 2
    assert echoes.total_listening_duration == 500
    assert echoes.average_listening_duration == 166.67
    assert echoes.artist_name == "dj_echo"
    assert [(row.username, row.listen_count) for row in echoes.listeners] == [("alice", 2), ("bob", 1)]
    assert echoes.listeners[0].liked is True
    assert echoes.listeners[0].liked_at == at(2024, 3, 11)
    assert songs[2].total_likes == 0


def test_song_stats_with_no_activity(context_for):
    quiet = DateRange(start=at(2020, 1, 1, 0), end=at(2020, 1, 31, 23))
    stats = SongAggregator().aggregate(context_for(window=quiet))
    assert stats.total_listens == 0
    assert stats.average_listening_duration == 0.0
    assert stats.is_empty()


def test_artist_stats(context_for):
    stats = ArtistAggregator().aggregate(context_for())
    assert stats.total_follows == 3
    assert stats.distinct_artists_followed == 2
    assert [row.username for row in stats.artists] == ["dj_echo", "mc_flux"]

    echo, flux = stats.artists
    assert echo.verified is True
    assert echo.genres == ["Pop", "Jazz"]
    assert (echo.songs_released, echo.albums_released) == (3, 1)
    assert (echo.total_listens, echo.total_listening_duration) == (4, 740)
    assert (echo.total_song_likes, echo.total_album_likes) == (2, 2)
    assert [(f.username, f.listen_count, f.like_count) for f in echo.followers] == [
        ("alice", 2, 1),
        ("bob", 2, 1),
    ]

    assert flux.verified is False
    assert flux.genres == []
    assert (flux.total_listens, flux.total_listening_duration, flux.total_song_likes) == (2, 240, 1)


def test_follower_song_columns_are_null_without_song_stats(context_for):
    selection = SectionSelection(include_listeners=True, include_artists=True, show_song_stats=False)
    stats = ArtistAggregator().aggregate(context_for(selection))
    follower = stats.artists[0].followers[0]
    assert follower.listen_count is None
    assert follower.like_count is None


def test_artist_aggregator_requires_artist_type():
    aggregator = ArtistAggregator()
    assert not aggregator.enabled(SectionSelection(include_listeners=True))
    assert not aggregator.enabled(SectionSelection(include_artists=True, show_artist_stats=False))
    assert aggregator.enabled(SectionSelection(include_artists=True))


def test_album_stats_with_breakdown(context_for):
    stats = AlbumAggregator().aggregate(context_for())
    assert stats.albums_created == 1
    assert stats.total_album_likes == 2
    assert stats.distinct_albums_liked == 1
    [waves] = stats.albums
    assert waves.album_name == "Waves"
    assert [song.song_name for song in waves.songs] == ["Echoes", "Reverb"]
    assert waves.total_duration == 380
    assert waves.genre == "Pop"
    assert waves.likes == 2
    assert waves.listens == 3
    assert [like.username for like in waves.liked_by] == ["alice", "bob"]


def test_album_breakdown_needs_artist_stats(context_for):
    selection = SectionSelection(include_listeners=True, include_artists=True, include_album_stats=True,
                                 show_artist_stats=False)
    stats = AlbumAggregator().aggregate(context_for(selection))
    assert stats.albums_created == 1
    assert stats.albums is None


def test_playlist_stats(context_for):
    stats = PlaylistAggregator().aggregate(context_for())
    assert (stats.total_created, stats.public_created, stats.private_created) == (2, 1, 1)
    assert (stats.public_percentage, stats.private_percentage) == (50.0, 50.0)
    assert stats.ratio == "1.00:1 (Public:Private)"
    assert stats.public_likes == 3
    assert stats.distinct_playlists_liked == 2
    assert [row.playlist_name for row in stats.public_playlists] == ["Bob Picks", "Morning Mix"]
    assert [row.playlist_name for row in stats.private_playlists] == ["Secret"]


def test_playlist_rows_carry_songs_and_likers(context_for):
    stats = PlaylistAggregator().aggregate(context_for())
    morning = stats.public_playlists[1]
    assert morning.owner_username == "alice"
    assert [song.song_name for song in morning.songs] == ["Echoes", "Flux"]
    assert morning.total_duration == 200
    assert [like.username for like in morning.liked_by] == ["bob", "dj_echo"]
    assert stats.private_playlists[0].liked_by == []


def test_country_histogram(context_for):
    demographics = DemographicAggregator().aggregate(context_for())
    countries = demographics.countries
    assert [(b.country, b.code, b.count, b.ratio) for b in countries.buckets] == [
        ("United States", "US", 2, 50.0),
        ("Canada", "CA", 1, 25.0),
        ("United Kingdom", "UK", 1, 25.0),
    ]
    assert countries.max_count == 2


def test_age_histogram_omits_empty_buckets(context_for):
    ages = DemographicAggregator().aggregate(context_for()).ages
    assert [bucket.range for bucket in ages.buckets] == ["18-24", "25-34", "35-44", "45-54"]
    assert ages.max_count == 1
    assert ages.unknown == 0


def test_age_histogram_counts_unknown_birth_dates(context_for):
    selection = SectionSelection(include_listeners=True, include_suspended=True)
    ages = DemographicAggregator().aggregate(context_for(selection)).ages
    assert ages.unknown == 1


def test_geographics_disabled_independently(context_for):
    demographics = DemographicAggregator().aggregate(context_for(SectionSelection(include_listeners=True)))
    assert demographics.countries is None
    assert demographics.ages is not None


@pytest.mark.parametrize(
    "age, label",
    [(0, "<18"), (17, "<18"), (18, "18-24"), (24, "18-24"), (25, "25-34"), (54, "45-54"), (55, "55+"), (99, "55+")],
)
def test_age_bucket_edges(age, label):
    assert age_bucket(age) == label


ARTISTS_ONLY = SectionSelection(include_artists=True, include_album_stats=True)


def test_artist_breakdown_counts_listeners_outside_the_population(context_for):
    """An artists-only report still sees listener engagement with artist catalogs."""
    stats = ArtistAggregator().aggregate(context_for(ARTISTS_ONLY))
    assert stats.total_follows == 0
    echo, flux = stats.artists
    assert (echo.total_listens, echo.total_listening_duration) == (4, 740)
    assert (echo.total_song_likes, echo.total_album_likes) == (2, 2)
    assert [(f.username, f.listen_count, f.like_count) for f in echo.followers] == [
        ("alice", 2, 1),
        ("bob", 2, 1),
    ]
    assert (flux.total_listens, flux.total_song_likes) == (2, 1)


def test_artist_breakdown_skips_staff_and_excluded_accounts(context_for):
    """admin and testuser listened to Echoes; neither is counted."""
    echo = ArtistAggregator().aggregate(context_for(ARTISTS_ONLY)).artists[0]
    assert "admin" not in [f.username for f in echo.followers]
    assert echo.total_listens == 4


def test_suspended_counterparts_follow_the_status_rule(context_for):
    echo = ArtistAggregator().aggregate(context_for(ARTISTS_ONLY)).artists[0]
    assert echo.total_listens == 4

    with_suspended = SectionSelection(include_artists=True, include_suspended=True)
    echo = ArtistAggregator().aggregate(context_for(with_suspended)).artists[0]
    assert echo.total_listens == 5
    assert echo.total_listening_duration == 920


def test_album_breakdown_counts_listeners_outside_the_population(context_for):
    stats = AlbumAggregator().aggregate(context_for(ARTISTS_ONLY))
    assert stats.total_album_likes == 0
    [waves] = stats.albums
    assert waves.likes == 2
    assert waves.listens == 3
    assert [like.username for like in waves.liked_by] == ["alice", "bob"]
