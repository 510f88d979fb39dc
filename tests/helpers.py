"""Builders shared by the test modules."""
from datetime import datetime, timedelta, timezone

from epg_updater.database import session_scope
from epg_updater.models import MediaType, Setting
from epg_updater.schemas import DvbChannelIdentity, IncomingListing, IncomingProgram, LanguageText
from epg_updater.services import db_service
from epg_updater.utils.tuning import tuning_key_for


DAY = datetime(2030, 3, 1, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0) -> datetime:
    """Aware UTC time on the fixed test day."""
    return DAY + timedelta(hours=hour, minutes=minute)


def identity(service_id: int = 0x1234) -> DvbChannelIdentity:
    return DvbChannelIdentity(standard="dvb-t", network_id=0x2174, transport_id=0x0404, service_id=service_id)


def program(start: datetime, end: datetime, title: str = "", description: str = "", **text_fields) -> IncomingProgram:
    text = LanguageText(language=text_fields.pop("language", "eng"), title=title, description=description, **text_fields)
    return IncomingProgram(start=start, end=end, texts=[text])


def listing(*programs: IncomingProgram, service_id: int = 0x1234) -> IncomingListing:
    return IncomingListing(channel=identity(service_id), programs=list(programs))


async def set_setting(tag: str, value: str) -> None:
    async with session_scope() as session:
        await session.merge(Setting(tag=tag, value=value))


async def add_channel(
    name: str = "Das Erste",
    *,
    service_id: int = 0x1234,
    media_type: MediaType = MediaType.TV,
    grab_epg: bool = True,
    last_grab_time: datetime | None = None,
    has_gaps: bool = False,
) -> int:
    key_identity = identity(service_id)
    async with session_scope() as session:
        channel = await db_service.create_channel(
            session,
            name,
            tuning_key_for(key_identity),
            broadcast_standard=key_identity.standard,
            media_type=media_type,
            grab_epg=grab_epg,
        )
    if last_grab_time is not None or has_gaps:
        async with session_scope() as session:
            await db_service.save_channel_grab_state(session, channel.id, last_grab_time, has_gaps)
    return channel.id
