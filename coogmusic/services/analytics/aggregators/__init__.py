# Aggregate-mode report aggregators

from .albums import AlbumAggregator
from .artists import ArtistAggregator
from .base import AggregationContext, BaseAggregator
from .demographics import DemographicAggregator
from .playlists import PlaylistAggregator
from .songs import SongAggregator
from .users import UserAggregator

__all__ = [
    "AggregationContext",
    "BaseAggregator",
    "UserAggregator",
    "SongAggregator",
    "ArtistAggregator",
    "AlbumAggregator",
    "PlaylistAggregator",
    "DemographicAggregator",
    "default_aggregators",
]


def default_aggregators() -> list[BaseAggregator]:
    """One instance of every aggregator, in section order."""
    return [
        UserAggregator(),
        ArtistAggregator(),
        PlaylistAggregator(),
        AlbumAggregator(),
        SongAggregator(),
        DemographicAggregator(),
    ]
