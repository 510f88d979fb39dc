"""
Schedule store used by the update pipeline

Wraps the db_service operations so that every call is its own unit of work,
and serialises update passes per channel.
"""
import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from datetime import datetime

from epg_updater.database import session_scope
from epg_updater.services import db_service
from epg_updater.services.update_types import ChannelSnapshot, ProgramPayload, StoredProgramSnapshot
from epg_updater.utils.tuning import TuningKey


logger = logging.getLogger(__name__)


class EpgStore:
    """
    Program, channel, category and settings store.

    Each method commits on its own, so a failure rolls back only that call.
    Read-check-then-write passes on the same channel must hold
    ``channel_lock(channel_id)``; the store itself does not know which
    reads a writer depended on.
    """

    def __init__(self):
        self._channel_locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def channel_lock(self, channel_id: int) -> AsyncIterator[None]:
        lock = self._channel_locks[channel_id]
        if lock.locked():
            logger.debug("Waiting for running update pass on channel %s", channel_id)
        async with lock:
            yield

    async def get_setting(self, name: str, default: str | None = None) -> str | None:
        async with session_scope() as session:
            return await db_service.get_setting(session, name, default)

    async def find_channel_by_tuning_key(self, key: TuningKey) -> ChannelSnapshot | None:
        async with session_scope() as session:
            return await db_service.find_channel_by_tuning_key(session, key)

    async def get_channel(self, channel_id: int) -> ChannelSnapshot | None:
        async with session_scope() as session:
            return await db_service.get_channel(session, channel_id)

    async def save_channel_grab_state(
        self,
        channel_id: int,
        last_grab_time: datetime,
        has_gaps: bool,
    ) -> None:
        async with session_scope() as session:
            await db_service.save_channel_grab_state(session, channel_id, last_grab_time, has_gaps)

    async def delete_old_programs(self, channel_id: int, now: datetime) -> int:
        async with session_scope() as session:
            return await db_service.delete_old_programs(session, channel_id, now)

    async def get_programs(self, channel_id: int, since: datetime | None = None) -> list[StoredProgramSnapshot]:
        async with session_scope() as session:
            return await db_service.get_programs(session, channel_id, since)

    async def get_newest_program_start(self, channel_id: int) -> datetime | None:
        async with session_scope() as session:
            return await db_service.get_newest_program_start(session, channel_id)

    async def get_program_exists(
        self,
        channel_id: int,
        start_time: datetime,
        end_time: datetime,
    ) -> list[StoredProgramSnapshot]:
        async with session_scope() as session:
            return await db_service.get_program_exists(session, channel_id, start_time, end_time)

    async def get_category_id(self, genre: str) -> int | None:
        async with session_scope() as session:
            return await db_service.get_or_create_category(session, genre)

    async def create_program(self, payload: ProgramPayload) -> int:
        async with session_scope() as session:
            return await db_service.create_program(session, payload)

    async def update_program(self, program_id: int, payload: ProgramPayload) -> None:
        async with session_scope() as session:
            await db_service.update_program(session, program_id, payload)

    async def delete_program(self, program_id: int) -> None:
        async with session_scope() as session:
            await db_service.delete_program(session, program_id)

    async def purge_historical_programs(self, now: datetime) -> int:
        async with session_scope() as session:
            return await db_service.purge_historical_programs(session, now)


_store: EpgStore | None = None


def get_epg_store() -> EpgStore:
    """
    Get or create the process-wide store.

    One instance is shared so that its channel locks cover every caller.
    """
    global _store
    if _store is None:
        _store = EpgStore()
    return _store


def reset_epg_store() -> None:
    """
    Reset the store singleton (mainly for testing).

    WARNING: Only use this in test environments!
    """
    global _store
    _store = None
