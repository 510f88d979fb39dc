"""
Database operations for EPG data

This module contains the database CRUD operations for settings, channels,
programs and program categories.
"""
import logging
from datetime import datetime
from typing import cast

from sqlalchemy import delete, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from epg_updater.models import (
    PENDING_STATE_FLAGS,
    Channel,
    MediaType,
    Program,
    ProgramCategory,
    ProgramState,
    Setting,
    TuningDetail,
)
from epg_updater.services.update_types import ChannelSnapshot, ProgramPayload, StoredProgramSnapshot
from epg_updater.utils.tuning import TuningKey


logger = logging.getLogger(__name__)


def _channel_snapshot(channel: Channel) -> ChannelSnapshot:
    return ChannelSnapshot(
        id=channel.id,
        display_name=channel.display_name,
        media_type=channel.media_type,
        grab_epg=channel.grab_epg,
        last_grab_time=channel.last_grab_time,
        epg_has_gaps=channel.epg_has_gaps,
    )


def _program_snapshot(program: Program) -> StoredProgramSnapshot:
    return StoredProgramSnapshot(
        id=program.id,
        channel_id=program.channel_id,
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


async def get_setting(db: AsyncSession, name: str, default: str | None = None) -> str | None:
    """
    Read a string setting.

    Args:
        db: Database session
        name: Setting tag
        default: Returned when the setting is not stored

    Returns:
        The stored value or the default
    """
    result = await db.execute(select(Setting.value).where(Setting.tag == name))
    value = result.scalar_one_or_none()
    return default if value is None else value


async def create_channel(
    db: AsyncSession,
    display_name: str,
    key: TuningKey,
    *,
    broadcast_standard: str,
    media_type: MediaType = MediaType.TV,
    grab_epg: bool = True,
) -> ChannelSnapshot:
    """Create a channel together with its tuning detail."""
    channel = Channel(
        display_name=display_name,
        media_type=media_type,
        grab_epg=grab_epg,
        epg_has_gaps=False,
    )
    channel.tuning_details.append(
        TuningDetail(
            broadcast_standard=broadcast_standard,
            network_id=key.network_id,
            transport_id=key.transport_id,
            service_id=key.service_id,
        )
    )
    db.add(channel)
    await db.flush()
    logger.info("Created channel %s (%s) for %s", channel.id, display_name, key)
    return _channel_snapshot(channel)


async def find_channel_by_tuning_key(db: AsyncSession, key: TuningKey) -> ChannelSnapshot | None:
    """
    Resolve the channel owning a tuning detail with exactly this key.

    Returns:
        The first matching channel, or None
    """
    result = await db.execute(
        select(Channel)
        .join(TuningDetail, TuningDetail.channel_id == Channel.id)
        .where(
            TuningDetail.network_id == key.network_id,
            TuningDetail.transport_id == key.transport_id,
            TuningDetail.service_id == key.service_id,
        )
        .order_by(TuningDetail.id)
        .limit(1)
    )
    channel = result.scalars().first()
    return _channel_snapshot(channel) if channel else None


async def get_channel(db: AsyncSession, channel_id: int) -> ChannelSnapshot | None:
    channel = await db.get(Channel, channel_id)
    return _channel_snapshot(channel) if channel else None


async def save_channel_grab_state(
    db: AsyncSession,
    channel_id: int,
    last_grab_time: datetime,
    has_gaps: bool,
) -> None:
    """
    Persist the end-of-pass channel state.

    Raises:
        LookupError: If the channel no longer exists
    """
    channel = await db.get(Channel, channel_id)
    if channel is None:
        raise LookupError(f"Channel {channel_id} not found")
    channel.last_grab_time = last_grab_time
    channel.epg_has_gaps = has_gaps
    await db.flush()


async def delete_old_programs(db: AsyncSession, channel_id: int, cutoff_time: datetime) -> int:
    """
    Delete a channel's programs that ended before the cutoff.

    Args:
        db: Database session
        channel_id: Channel to clean up
        cutoff_time: Delete programs with end_time before this

    Returns:
        Number of deleted programs
    """
    raw_result = await db.execute(
        delete(Program).where(
            Program.channel_id == channel_id,
            Program.end_time < cutoff_time,
        )
    )
    deleted_count = cast(CursorResult, raw_result).rowcount or 0
    if deleted_count:
        logger.debug("Deleted %s historical programs for channel %s", deleted_count, channel_id)
    return deleted_count


async def purge_historical_programs(db: AsyncSession, cutoff_time: datetime) -> int:
    """Delete programs on every channel that ended before the cutoff."""
    raw_result = await db.execute(delete(Program).where(Program.end_time < cutoff_time))
    deleted_count = cast(CursorResult, raw_result).rowcount or 0

    logger.info("Deleted %s historical programs (end_time < %s)", deleted_count, cutoff_time.isoformat())
    return deleted_count


async def get_programs(
    db: AsyncSession,
    channel_id: int,
    since: datetime | None = None,
) -> list[StoredProgramSnapshot]:
    """
    Read a channel's programs ordered by start time.

    Args:
        db: Database session
        channel_id: Channel to read
        since: When given, only programs ending after this time
    """
    stmt = select(Program).where(Program.channel_id == channel_id)
    if since is not None:
        stmt = stmt.where(Program.end_time > since)
    stmt = stmt.order_by(Program.start_time, Program.id)
    result = await db.execute(stmt)
    return [_program_snapshot(program) for program in result.scalars().all()]


async def get_newest_program_start(db: AsyncSession, channel_id: int) -> datetime | None:
    """Start time of the channel's newest stored program, or None if it has none."""
    result = await db.execute(
        select(Program.start_time)
        .where(Program.channel_id == channel_id)
        .order_by(Program.start_time.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_program_exists(
    db: AsyncSession,
    channel_id: int,
    start_time: datetime,
    end_time: datetime,
) -> list[StoredProgramSnapshot]:
    """
    Find programs with exactly this channel, start and end.

    Rows come back in insertion order (ascending id).
    """
    result = await db.execute(
        select(Program)
        .where(
            Program.channel_id == channel_id,
            Program.start_time == start_time,
            Program.end_time == end_time,
        )
        .order_by(Program.id)
    )
    return [_program_snapshot(program) for program in result.scalars().all()]


async def get_or_create_category(db: AsyncSession, name: str) -> int | None:
    """
    Map a genre name to a category id, creating the category on first use.

    Returns:
        Category id, or None for an empty genre
    """
    name = name.strip()
    if not name:
        return None

    result = await db.execute(select(ProgramCategory.id).where(ProgramCategory.name == name))
    category_id = result.scalar_one_or_none()
    if category_id is not None:
        return category_id

    category = ProgramCategory(name=name)
    db.add(category)
    await db.flush()
    logger.debug("Created program category %s (%s)", category.id, name)
    return category.id


async def create_program(db: AsyncSession, payload: ProgramPayload) -> int:
    """Insert a new program in the default (non-pending) state."""
    program = Program(
        channel_id=payload.channel_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        title=payload.title,
        description=payload.description,
        category_id=payload.category_id,
        star_rating=payload.star_rating,
        classification=payload.classification,
        parental_rating=payload.parental_rating,
        state=int(ProgramState.NONE),
        original_air_date=None,
    )
    db.add(program)
    await db.flush()
    return program.id


async def update_program(db: AsyncSession, program_id: int, payload: ProgramPayload) -> None:
    """
    Refresh a stored program from a newly grabbed entry.

    The title is always replaced. The description is only replaced when the
    title changed or the new description is longer, so a detailed description
    is not lost to a shorter one from another transponder.

    Raises:
        LookupError: If the program no longer exists
    """
    program = await db.get(Program, program_id)
    if program is None:
        raise LookupError(f"Program {program_id} not found")

    if program.title != payload.title or len(program.description or "") < len(payload.description):
        program.description = payload.description
    program.title = payload.title
    program.start_time = payload.start_time
    program.end_time = payload.end_time
    program.category_id = payload.category_id
    program.star_rating = payload.star_rating
    program.classification = payload.classification
    program.parental_rating = payload.parental_rating
    program.original_air_date = None
    program.state = program.state & ~int(PENDING_STATE_FLAGS)
    await db.flush()


async def delete_program(db: AsyncSession, program_id: int) -> None:
    await db.execute(delete(Program).where(Program.id == program_id))

