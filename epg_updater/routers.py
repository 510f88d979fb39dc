from typing import Annotated
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from epg_updater.config import settings
from epg_updater.database import get_db
from epg_updater.schemas import (
    ChannelCreateRequest,
    ChannelResponse,
    HoleResponse,
    IncomingListing,
    ProgramResponse,
    UpdateResponse,
)
from epg_updater.services import (
    EpgUpdater,
    epg_scheduler,
    get_epg_store,
    get_import_notifier,
)
from epg_updater.services import db_service
from epg_updater.utils.tuning import tuning_key_for


logger = logging.getLogger(__name__)

main_router = APIRouter()


def get_updater(
    grabber: Annotated[str | None, Query(description="Grabber name used in log messages")] = None,
    check_for_last_update: Annotated[
        bool | None, Query(description="Enforce the regrab interval (default from settings)")
    ] = None,
) -> EpgUpdater:
    return EpgUpdater(
        get_epg_store(),
        get_import_notifier(),
        grabber_name=grabber or settings.epg_grabber_name,
        check_for_last_update=(
            settings.epg_check_for_last_update if check_for_last_update is None else check_for_last_update
        ),
    )


@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    next_run = epg_scheduler.get_next_run_time()

    return {
        "service": "EPG Updater",
        "version": "0.1.0",
        "next_scheduled_purge": next_run.isoformat() if next_run else None,
        "endpoints": {
            "import": "/epg/import - Merge a grabbed channel listing (POST)",
            "channels": "/channels - Register a channel (POST)",
            "programs": "/channels/{id}/programs - Stored programs of a channel",
            "holes": "/channels/{id}/holes - Gaps in a channel's schedule",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check() -> dict:
    """Health check endpoint"""
    next_run = epg_scheduler.get_next_run_time()
    return {
        "status": "ok",
        "scheduler_running": epg_scheduler.scheduler.running if epg_scheduler.scheduler else False,
        "next_purge": next_run.isoformat() if next_run else None
    }


@main_router.post("/epg/import", response_model=UpdateResponse)
async def import_listing(
    listing: IncomingListing,
    updater: Annotated[EpgUpdater, Depends(get_updater)],
) -> UpdateResponse:
    """
    Merge one channel's grabbed listing into the schedule

    Rejected listings (unknown channel, regrab interval not elapsed, ...) are
    reported with status "rejected" and the reason; they are not errors.
    """
    try:
        result = await updater.update_epg_for_channel(listing)
    except (SQLAlchemyError, LookupError) as exc:
        logger.error("EPG import failed: %s", exc, exc_info=True)
        raise HTTPException(status_code=500, detail=str(exc))

    return UpdateResponse(**result.to_dict())


@main_router.post("/channels", response_model=ChannelResponse, status_code=201)
async def create_channel(
    request: ChannelCreateRequest,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> ChannelResponse:
    """Register a channel together with the tuning identity its listings carry"""
    channel = await db_service.create_channel(
        db,
        request.display_name,
        tuning_key_for(request.identity),
        broadcast_standard=request.identity.standard,
        media_type=request.media_type,
        grab_epg=request.grab_epg,
    )
    await db.commit()
    return ChannelResponse(
        id=channel.id,
        display_name=channel.display_name,
        media_type=channel.media_type,
        grab_epg=channel.grab_epg,
        last_grab_time=channel.last_grab_time,
        epg_has_gaps=channel.epg_has_gaps,
    )


@main_router.get("/channels/{channel_id}/programs", response_model=list[ProgramResponse])
async def list_programs(
    channel_id: int,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> list[ProgramResponse]:
    """Stored programs of a channel ordered by start time"""
    if await db_service.get_channel(db, channel_id) is None:
        raise HTTPException(status_code=404, detail=f"Channel {channel_id} not found")

    programs = await db_service.get_programs(db, channel_id)
    return [
        ProgramResponse(
            id=program.id,
            start_time=program.start_time,
            end_time=program.end_time,
            title=program.title,
            description=program.description,
            category_id=program.category_id,
            star_rating=program.star_rating,
            classification=program.classification,
            parental_rating=program.parental_rating,
            state=program.state,
        )
        for program in programs
    ]


@main_router.get("/channels/{channel_id}/holes", response_model=list[HoleResponse])
async def list_holes(
    channel_id: int,
    updater: Annotated[EpgUpdater, Depends(get_updater)],
) -> list[HoleResponse]:
    """Gaps of more than five minutes in the channel's current and future schedule"""
    if await updater.store.get_channel(channel_id) is None:
        raise HTTPException(status_code=404, detail=f"Channel {channel_id} not found")

    holes = await updater.holes_for_channel(channel_id)
    return [HoleResponse(start=hole.start, end=hole.end) for hole in holes]
