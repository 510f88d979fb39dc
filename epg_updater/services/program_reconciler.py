"""
Program reconciliation

Merges one channel's grabbed programs into the stored schedule: skips
duplicates, refuses entries that would overlap trusted data unless they fill
a known hole, and refreshes matching rows in always-replace mode.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from epg_updater.schemas import IncomingProgram
from epg_updater.services.config_snapshot import ConfigSnapshot
from epg_updater.services.template_renderer import TemplateRenderer
from epg_updater.services.update_types import (
    ChannelSnapshot,
    HoleCollection,
    ProgramPayload,
    ReconcileResult,
    StoredProgramSnapshot,
)


logger = logging.getLogger(__name__)

GAP_THRESHOLD = timedelta(minutes=5)


class ProgramStore(Protocol):
    async def get_program_exists(
        self, channel_id: int, start_time: datetime, end_time: datetime
    ) -> list[StoredProgramSnapshot]: ...

    async def get_category_id(self, genre: str) -> int | None: ...

    async def create_program(self, payload: ProgramPayload) -> int: ...

    async def update_program(self, program_id: int, payload: ProgramPayload) -> None: ...

    async def delete_program(self, program_id: int) -> None: ...


def _fmt(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


class ProgramReconciler:
    def __init__(
        self,
        store: ProgramStore,
        config: ConfigSnapshot,
        renderer: TemplateRenderer | None = None,
        *,
        grabber_name: str = "EPG",
    ) -> None:
        self._store = store
        self._config = config
        self._renderer = renderer or TemplateRenderer.from_config(config)
        self._grabber_name = grabber_name

    async def reconcile(
        self,
        channel: ChannelSnapshot,
        programs: Sequence[IncomingProgram],
        holes: HoleCollection,
        watermark: datetime | None,
        now: datetime,
    ) -> ReconcileResult:
        """
        Merge incoming programs, in the order given, into the channel's schedule.

        Args:
            channel: The admitted channel
            programs: Grabbed programs sorted by start time
            holes: Holes that may be filled below the watermark
            watermark: Start of the newest stored program, None for an empty schedule
            now: Reference time for discarding stale entries

        Returns:
            Inserted and updated counts plus whether the grab itself had gaps
        """
        result = ReconcileResult()
        last: IncomingProgram | None = None

        for program in programs:
            if last is not None:
                if program.start == last.start and program.end == last.end:
                    continue
                if program.start - last.end > GAP_THRESHOLD:
                    result.has_gaps = True
            last = program

            if not self._is_admitted(program, holes, watermark, now):
                continue

            rendered = self._renderer.render(program.texts)
            target = await self._resolve_target(channel, program)
            payload = ProgramPayload(
                channel_id=channel.id,
                start_time=program.start,
                end_time=program.end,
                title=rendered.title,
                description=rendered.description,
                category_id=await self._store.get_category_id(rendered.genre),
                star_rating=rendered.star_rating,
                classification=rendered.classification,
                parental_rating=rendered.parental_rating,
            )

            if target is None:
                await self._store.create_program(payload)
                result.inserted += 1
            else:
                await self._store.update_program(target.id, payload)
                result.updated += 1

        logger.debug(
            "- Inserted %s and updated %s epg entries for channel %s",
            result.inserted,
            result.updated,
            channel.display_name,
        )
        return result

    def _is_admitted(
        self,
        program: IncomingProgram,
        holes: HoleCollection,
        watermark: datetime | None,
        now: datetime,
    ) -> bool:
        if self._config.always_replace or watermark is None or program.start > watermark:
            return True

        if program.start < now:
            return False
        if not holes.fits_in_any_hole(program.start, program.end):
            return False

        logger.debug(
            "%s: Great we stuffed an epg hole %s-%s :-)",
            self._grabber_name,
            _fmt(program.start),
            _fmt(program.end),
        )
        return True

    async def _resolve_target(
        self,
        channel: ChannelSnapshot,
        program: IncomingProgram,
    ) -> StoredProgramSnapshot | None:
        """Pick the stored row to refresh; only always-replace mode refreshes rows."""
        if not self._config.always_replace:
            return None

        try:
            existing = await self._store.get_program_exists(channel.id, program.start, program.end)
        except SQLAlchemyError as exc:
            logger.error("Error during the existing epg entry check: %s", exc, exc_info=True)
            return None

        if not existing:
            return None

        target, obsolete = existing[0], existing[1:]
        if obsolete:
            logger.debug(
                "- %s entries are obsolete for %s from %s to %s",
                len(obsolete),
                channel.display_name,
                program.start,
                program.end,
            )
        for stale in obsolete:
            try:
                await self._store.delete_program(stale.id)
                logger.debug(
                    "- Deleted the epg entry %s (%s - %s)",
                    stale.title,
                    stale.start_time,
                    stale.end_time,
                )
            except SQLAlchemyError as exc:
                logger.error("Error during epg entry deletion: %s", exc, exc_info=True)
        return target


__all__ = ["ProgramReconciler"]
