"""Tests for listing admission."""
from datetime import timedelta

import pytest

from epg_updater.models import MediaType
from epg_updater.schemas import AtscChannelIdentity, IncomingListing
from epg_updater.services.channel_gate import ChannelGate
from epg_updater.services.config_snapshot import ConfigSnapshot
from epg_updater.services.update_types import GateRejection
from epg_updater.utils.tuning import TuningKey, tuning_key_for

from helpers import add_channel, at, listing, program


NOW = at(9)


def a_listing(service_id: int = 0x1234) -> IncomingListing:
    return listing(program(at(10), at(10, 30), "News"), service_id=service_id)


@pytest.mark.asyncio
async def test_empty_listing_is_rejected(store):
    await add_channel()
    decision = await ChannelGate(store, ConfigSnapshot()).check(listing(), NOW)
    assert decision.rejection is GateRejection.NO_PROGRAMS


@pytest.mark.asyncio
async def test_unknown_tuning_key_is_rejected(store):
    await add_channel(service_id=0x1234)
    decision = await ChannelGate(store, ConfigSnapshot()).check(a_listing(service_id=0x9999), NOW)
    assert decision.rejection is GateRejection.NO_MATCHING_CHANNEL
    assert decision.channel is None


@pytest.mark.asyncio
async def test_never_grabbed_channel_is_admitted(store):
    channel_id = await add_channel()
    decision = await ChannelGate(store, ConfigSnapshot()).check(a_listing(), NOW)
    assert decision.admitted
    assert decision.channel.id == channel_id


@pytest.mark.asyncio
async def test_tv_channel_not_selected_for_grab(store):
    await add_channel(grab_epg=False)
    config = ConfigSnapshot(store_only_selected=True)
    decision = await ChannelGate(store, config).check(a_listing(), NOW)
    assert decision.rejection is GateRejection.NOT_ENABLED_FOR_GRAB


@pytest.mark.asyncio
async def test_radio_toggle_is_independent(store):
    await add_channel(media_type=MediaType.RADIO, grab_epg=False)

    tv_only = ConfigSnapshot(store_only_selected=True)
    assert (await ChannelGate(store, tv_only).check(a_listing(), NOW)).admitted

    radio_only = ConfigSnapshot(store_only_selected_radio=True)
    decision = await ChannelGate(store, radio_only).check(a_listing(), NOW)
    assert decision.rejection is GateRejection.NOT_ENABLED_FOR_GRAB


@pytest.mark.asyncio
async def test_regrab_interval_not_elapsed(store):
    await add_channel(last_grab_time=NOW - timedelta(minutes=60))
    decision = await ChannelGate(store, ConfigSnapshot(regrab_after_minutes=240)).check(a_listing(), NOW)
    assert decision.rejection is GateRejection.REGRAB_INTERVAL_NOT_ELAPSED


@pytest.mark.asyncio
async def test_regrab_interval_elapsed(store):
    await add_channel(last_grab_time=NOW - timedelta(minutes=240))
    decision = await ChannelGate(store, ConfigSnapshot(regrab_after_minutes=240)).check(a_listing(), NOW)
    assert decision.admitted


@pytest.mark.asyncio
async def test_regrab_check_disabled(store):
    await add_channel(last_grab_time=NOW - timedelta(minutes=1))

    unchecked = ConfigSnapshot(check_for_last_update=False)
    assert (await ChannelGate(store, unchecked).check(a_listing(), NOW)).admitted

    always_replace = ConfigSnapshot(always_replace=True)
    assert (await ChannelGate(store, always_replace).check(a_listing(), NOW)).admitted


def test_atsc_identity_normalises_to_program_number():
    atsc = AtscChannelIdentity(standard="atsc", transport_id=0x0801, program_number=3)
    assert tuning_key_for(atsc) == TuningKey(network_id=0, transport_id=0x0801, service_id=3)
    assert str(tuning_key_for(atsc)) == "networkid:0x0 transportid:0x801 serviceid:0x3"
