"""
Channel admission

Decides whether a grabbed listing should be merged into the store at all.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

from epg_updater.schemas import IncomingListing
from epg_updater.services.config_snapshot import ConfigSnapshot
from epg_updater.services.update_types import ChannelSnapshot, GateRejection
from epg_updater.utils.tuning import TuningKey, tuning_key_for


logger = logging.getLogger(__name__)

# Stand-in for a channel that was never grabbed
NEVER_GRABBED = datetime.min.replace(tzinfo=timezone.utc)


class ChannelResolver(Protocol):
    async def find_channel_by_tuning_key(self, key: TuningKey) -> ChannelSnapshot | None: ...


@dataclass(slots=True)
class GateDecision:
    channel: ChannelSnapshot | None = None
    rejection: GateRejection | None = None

    @property
    def admitted(self) -> bool:
        return self.rejection is None


class ChannelGate:
    """Admission checks run before any program is touched."""

    def __init__(self, resolver: ChannelResolver, config: ConfigSnapshot, *, grabber_name: str = "EPG") -> None:
        self._resolver = resolver
        self._config = config
        self._grabber_name = grabber_name

    async def check(self, listing: IncomingListing, now: datetime) -> GateDecision:
        key = tuning_key_for(listing.channel)

        if not listing.programs:
            logger.info("%s: no epg infos found for channel %s", self._grabber_name, key)
            return GateDecision(rejection=GateRejection.NO_PROGRAMS)

        channel = await self._resolver.find_channel_by_tuning_key(key)
        if channel is None:
            logger.info("%s: no channel found for %s", self._grabber_name, key)
            return GateDecision(rejection=GateRejection.NO_MATCHING_CHANNEL)

        only_selected = (
            self._config.store_only_selected_radio if channel.is_radio
            else self._config.store_only_selected
        )
        if only_selected and not channel.grab_epg:
            logger.info(
                "%s: channel %s is not configured to grab epg.",
                self._grabber_name,
                channel.display_name,
            )
            return GateDecision(channel=channel, rejection=GateRejection.NOT_ENABLED_FOR_GRAB)

        if self._config.check_for_last_update:
            elapsed = now - (channel.last_grab_time or NEVER_GRABBED)
            if elapsed < timedelta(minutes=self._config.regrab_after_minutes):
                logger.info(
                    "%s: %s not needed lastUpdate:%s",
                    self._grabber_name,
                    channel.display_name,
                    channel.last_grab_time,
                )
                return GateDecision(channel=channel, rejection=GateRejection.REGRAB_INTERVAL_NOT_ELAPSED)

        return GateDecision(channel=channel)
