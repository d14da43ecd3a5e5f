"""
Report Assembler

Merges aggregator and drill-down outputs into one ordered ``ReportResult``.
Disabled sections stay in the document with their marker.
"""

from __future__ import annotations

from typing import Any

from .metrics import format_duration, format_percentage
from .models import DateRange, SectionSelection, User, UserType
from .results import (
    AggregateResult,
    AggregateSummary,
    AlbumStats,
    ArtistStats,
    Demographics,
    IndividualArtistResult,
    IndividualListenerResult,
    IndividualOtherResult,
    IndividualResult,
    PlaylistStats,
    Section,
    SongStats,
    SummaryTable,
    UserCounts,
)

SUMMARY = "Summary"
USER_ACTIVITY = "User Activity"
ARTIST_ACTIVITY = "Artist Activity"
PLAYLIST_ACTIVITY = "Playlist Activity"
ALBUM_ACTIVITY = "Album Activity"
SONG_ACTIVITY = "Song Activity"
GEOGRAPHICS = "Geographics"
AGE_DEMOGRAPHICS = "Age Demographics"

INDIVIDUAL_SECTIONS = {
    "summary": SUMMARY,
    "artists_followed": "Artists Followed",
    "playlists_owned": "Playlists Owned",
    "albums_liked": "Albums Liked",
    "albums_released": "Albums Released",
    "songs_listened": "Songs Listened",
    "songs_released": "Songs Released",
}

_INDIVIDUAL_RESULTS: dict[UserType, type[IndividualResult]] = {
    UserType.LISTENER: IndividualListenerResult,
    UserType.ARTIST: IndividualArtistResult,
}


def _summary_rows(
    users: UserCounts,
    songs: SongStats | None,
    artists: ArtistStats | None,
    albums: AlbumStats | None,
    playlists: PlaylistStats | None,
) -> SummaryTable:
    table = SummaryTable()
    listeners = users.listeners or 0
    artist_accounts = users.artists or 0
    if users.listeners is not None:
        table.add("listeners_created", "Listener Accounts Created", listeners)
    if users.artists is not None:
        table.add("artists_created", "Artist Accounts Created", artist_accounts)
    table.add("total_users", "Total Users", listeners + artist_accounts)
    if users.listener_percentage is not None and users.artist_percentage is not None:
        table.add(
            "listener_percentage",
            "Listener Percentage",
            users.listener_percentage,
            format_percentage(users.listener_percentage),
        )
        table.add(
            "artist_percentage",
            "Artist Percentage",
            users.artist_percentage,
            format_percentage(users.artist_percentage),
        )
        table.add("listener_artist_ratio", "Listener to Artist Ratio", users.ratio or "N/A")

    if songs is not None:
        table.add("total_listens", "Total Listens", songs.total_listens)
        table.add("total_song_likes", "Total Song Likes", songs.total_song_likes)
        table.add("distinct_songs_liked", "Distinct Songs Liked", songs.distinct_songs_liked)
        table.add(
            "total_listening_duration",
            "Total Listening Duration",
            songs.total_listening_duration,
            format_duration(songs.total_listening_duration),
        )
        table.add(
            "average_listening_duration",
            "Average Listening Duration",
            songs.average_listening_duration,
            format_duration(songs.average_listening_duration),
        )
        table.add("songs_released", "Songs Released", songs.songs_released)

    if artists is not None:
        table.add("total_follows", "Total Follows", artists.total_follows)
        table.add("distinct_artists_followed", "Distinct Artists Followed", artists.distinct_artists_followed)

    if albums is not None:
        table.add("albums_created", "Albums Created", albums.albums_created)
        table.add("total_album_likes", "Total Album Likes", albums.total_album_likes)
        table.add("distinct_albums_liked", "Distinct Albums Liked", albums.distinct_albums_liked)

    if playlists is not None:
        table.add("playlists_created", "Playlists Created", playlists.total_created)
        table.add("public_playlists_created", "Public Playlists", playlists.public_created)
        table.add("private_playlists_created", "Private Playlists", playlists.private_created)
        table.add(
            "public_playlist_percentage",
            "Public Playlist Percentage",
            playlists.public_percentage,
            format_percentage(playlists.public_percentage),
        )
        table.add(
            "private_playlist_percentage",
            "Private Playlist Percentage",
            playlists.private_percentage,
            format_percentage(playlists.private_percentage),
        )
        table.add("public_private_ratio", "Public to Private Ratio", playlists.ratio)
        table.add("public_playlist_likes", "Public Playlist Likes", playlists.public_likes)
        table.add("distinct_playlists_liked", "Distinct Playlists Liked", playlists.distinct_playlists_liked)
    return table


def _section(name: str, enabled: bool, data: Any) -> Section:
    if not enabled:
        return Section.disabled(name)
    return Section.of(name, data)


def assemble_aggregate(
    window: DateRange,
    selection: SectionSelection,
    outputs: dict[str, Any],
) -> AggregateResult:
    """
    Build the aggregate report from aggregator outputs keyed by aggregator name.

    Args:
        window: Validated report window
        selection: Section toggles
        outputs: ``{aggregator.name: payload}`` for every aggregator that ran

    Returns:
        AggregateResult with every section present
    """
    users: UserCounts = outputs["users"]
    songs: SongStats | None = outputs.get("songs")
    artists: ArtistStats | None = outputs.get("artists")
    albums: AlbumStats | None = outputs.get("albums")
    playlists: PlaylistStats | None = outputs.get("playlists")
    demographics: Demographics = outputs.get("demographics") or Demographics()

    summary = AggregateSummary(
        metrics=_summary_rows(users, songs, artists, albums, playlists),
        geographics=_section(GEOGRAPHICS, selection.geographics_enabled(), demographics.countries),
        age_demographics=_section(AGE_DEMOGRAPHICS, selection.age_demographics_enabled(), demographics.ages),
    )
    return AggregateResult(
        window=window,
        selection=selection,
        summary=Section.of(SUMMARY, summary),
        user_activity=Section.of(USER_ACTIVITY, users),
        artist_activity=_section(ARTIST_ACTIVITY, selection.artist_stats_enabled(), artists),
        playlist_activity=_section(PLAYLIST_ACTIVITY, selection.playlist_stats_enabled(), playlists),
        album_activity=_section(ALBUM_ACTIVITY, selection.album_stats_enabled(), albums),
        song_activity=_section(SONG_ACTIVITY, selection.song_stats_enabled(), songs),
    )


def assemble_individual(user: User, window: DateRange, outputs: dict[str, Any]) -> IndividualResult:
    """Build the drill-down report; sections without a branch are not applicable."""
    result_type = _INDIVIDUAL_RESULTS.get(user.user_type, IndividualOtherResult)
    sections = {}
    for field_name, title in INDIVIDUAL_SECTIONS.items():
        if field_name in outputs:
            sections[field_name] = Section.of(title, outputs[field_name])
        else:
            sections[field_name] = Section.not_applicable(title)
    return result_type(window=window, **sections)
