"""
Analytics Report API Routes

Endpoint for generating aggregate and individual analytics reports.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from coogmusic.services.analytics import (
    AggregationFailure,
    ReportError,
    ReportQuery,
    UserNotFound,
    get_report_engine,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class ReportRequestBody(BaseModel):
    """Report parameters; camelCase and snake_case field names are both accepted."""

    model_config = ConfigDict(populate_by_name=True)

    start_date: str | None = Field(None, alias="startDate")
    end_date: str | None = Field(None, alias="endDate")
    mode: str = "aggregate"
    username: str | None = None
    include_listeners: bool = Field(False, alias="includeListeners")
    include_artists: bool = Field(False, alias="includeArtists")
    include_suspended: bool = Field(False, alias="includeSuspended")
    include_playlist_stats: bool = Field(False, alias="includePlaylistStats")
    include_album_stats: bool = Field(False, alias="includeAlbumStats")
    include_geographics: bool = Field(False, alias="includeGeographics")
    show_song_stats: bool = Field(True, alias="showSongStats")
    show_artist_stats: bool = Field(True, alias="showArtistStats")
    show_age_demographics: bool = Field(True, alias="showAgeDemographics")

    def to_query(self) -> ReportQuery:
        return ReportQuery(**self.model_dump(by_alias=False))


@router.post("/report")
async def generate_report(request: ReportRequestBody) -> dict[str, Any]:
    """
    Generate an analytics report.

    Aggregate mode covers every account matching the selected user types;
    individual mode drills into a single username.
    """
    engine = get_report_engine()

    try:
        async with asyncio.timeout(engine.config.timeout_seconds):
            result = await engine.generate_report(request.to_query())
    except TimeoutError:
        logger.warning("Report generation exceeded %.0fs", engine.config.timeout_seconds)
        raise HTTPException(status_code=504, detail="Report generation timed out")
    except UserNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AggregationFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ReportError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return result.to_dict()
