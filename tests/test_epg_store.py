"""Tests for the store's units of work and housekeeping."""
import pytest

from epg_updater.database import session_scope
from epg_updater.models import Setting
from epg_updater.services import db_service
from epg_updater.services.update_types import ProgramPayload

from helpers import add_channel, at


def payload(channel_id, start, end, title) -> ProgramPayload:
    return ProgramPayload(
        channel_id=channel_id,
        start_time=start,
        end_time=end,
        title=title,
        description="",
        category_id=None,
        star_rating=0,
        classification="",
        parental_rating=-1,
    )


@pytest.mark.asyncio
async def test_session_scope_commits(store):
    async with session_scope() as session:
        session.add(Setting(tag="epgLanguages", value="ger"))

    assert await store.get_setting("epgLanguages") == "ger"


@pytest.mark.asyncio
async def test_session_scope_rolls_back_on_error(store):
    with pytest.raises(RuntimeError):
        async with session_scope() as session:
            session.add(Setting(tag="epgLanguages", value="ger"))
            await session.flush()
            raise RuntimeError("abort")

    assert await store.get_setting("epgLanguages") is None


@pytest.mark.asyncio
async def test_purge_reports_deleted_rows(store):
    first = await add_channel("One", service_id=1)
    second = await add_channel("Two", service_id=2)
    for row in (
        payload(first, at(6), at(7), "Old"),
        payload(first, at(7), at(8), "Older"),
        payload(second, at(6), at(8), "Old too"),
        payload(second, at(8), at(10), "Running"),
    ):
        await store.create_program(row)

    assert await store.purge_historical_programs(at(9)) == 3
    assert await store.purge_historical_programs(at(9)) == 0

    async with session_scope() as session:
        assert await db_service.get_programs(session, first) == []
        assert [p.title for p in await db_service.get_programs(session, second)] == ["Running"]
