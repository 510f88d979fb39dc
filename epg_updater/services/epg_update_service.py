"""
EPG Update Service

Runs one update pass for one grabbed listing: admission, hole detection,
reconciliation, channel state update and subscriber notification.
"""
from __future__ import annotations

import logging
from datetime import datetime

from epg_updater.schemas import IncomingListing
from epg_updater.services.channel_gate import ChannelGate
from epg_updater.services.config_snapshot import ConfigSnapshot
from epg_updater.services.epg_store import EpgStore
from epg_updater.services.hole_detector import detect_holes, find_holes, should_scan_for_holes
from epg_updater.services.notification_service import ImportNotifier
from epg_updater.services.program_reconciler import ProgramReconciler
from epg_updater.services.update_types import HoleCollection, UpdateResult
from epg_updater.utils.timezone import ensure_utc, utc_now


logger = logging.getLogger(__name__)


class EpgUpdater:
    """Merges grabbed listings into the schedule store, one channel per call."""

    def __init__(
        self,
        store: EpgStore,
        notifier: ImportNotifier | None = None,
        *,
        grabber_name: str = "EPG",
        check_for_last_update: bool = True,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.grabber_name = grabber_name
        self.check_for_last_update = check_for_last_update

    async def load_config(self) -> ConfigSnapshot:
        return await ConfigSnapshot.load(self.store, check_for_last_update=self.check_for_last_update)

    async def update_epg_for_channel(
        self,
        listing: IncomingListing,
        *,
        now: datetime | None = None,
    ) -> UpdateResult:
        """
        Merge one channel's listing.

        Args:
            listing: Grabbed programs for a single channel
            now: Reference time, defaults to the current UTC time

        Returns:
            UpdateResult with either the rejection reason or the merge counts

        Raises:
            SQLAlchemyError, LookupError: If the final channel update fails;
                program changes already written stay in place
        """
        now = ensure_utc(now) if now else utc_now()
        config = await self.load_config()
        gate = ChannelGate(self.store, config, grabber_name=self.grabber_name)

        decision = await gate.check(listing, now)
        if not decision.admitted:
            return UpdateResult.rejected(decision.rejection, decision.channel.id if decision.channel else None)

        async with self.store.channel_lock(decision.channel.id):
            # Re-check under the lock: a concurrent pass may have just grabbed this channel
            decision = await gate.check(listing, now)
            if not decision.admitted:
                return UpdateResult.rejected(decision.rejection, decision.channel.id if decision.channel else None)

            channel = decision.channel
            logger.debug("%s: %s lastUpdate:%s", self.grabber_name, channel.display_name, channel.last_grab_time)

            await self.store.delete_old_programs(channel.id, now)

            holes = HoleCollection()
            if should_scan_for_holes(channel, config):
                stored = await self.store.get_programs(channel.id, since=now)
                holes = detect_holes(channel, stored, config, grabber_name=self.grabber_name)
            watermark = await self.store.get_newest_program_start(channel.id)

            reconciler = ProgramReconciler(self.store, config, grabber_name=self.grabber_name)
            result = await reconciler.reconcile(channel, listing.programs, holes, watermark, now)

            await self.store.save_channel_grab_state(channel.id, now, result.has_gaps)

        logger.info(
            "%s: %s imported (%s inserted, %s updated, gaps=%s)",
            self.grabber_name,
            channel.display_name,
            result.inserted,
            result.updated,
            result.has_gaps,
        )

        if self.notifier is not None:
            self.notifier.notify(listing)

        return UpdateResult(
            status="imported",
            channel_id=channel.id,
            inserted=result.inserted,
            updated=result.updated,
            has_gaps=result.has_gaps,
        )

    async def holes_for_channel(self, channel_id: int, *, now: datetime | None = None) -> HoleCollection:
        """Holes in the channel's current and future schedule, regardless of its gap flag."""
        now = ensure_utc(now) if now else utc_now()
        stored = await self.store.get_programs(channel_id, since=now)
        return find_holes(stored)
