"""
Schedule hole detection

Finds gaps between consecutive stored programs that a new grab may fill.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import timedelta

from epg_updater.services.config_snapshot import ConfigSnapshot
from epg_updater.services.update_types import ChannelSnapshot, Hole, HoleCollection, StoredProgramSnapshot


logger = logging.getLogger(__name__)

HOLE_THRESHOLD = timedelta(minutes=5)


def should_scan_for_holes(channel: ChannelSnapshot, config: ConfigSnapshot) -> bool:
    """Holes are only filled for gappy channels (or when forced) and never in always-replace mode."""
    return (channel.epg_has_gaps or config.always_fill_holes) and not config.always_replace


def find_holes(programs: Sequence[StoredProgramSnapshot]) -> HoleCollection:
    """
    Collect gaps longer than five minutes between consecutive programs.

    Args:
        programs: Stored programs of one channel, ordered by start time

    Returns:
        Holes in schedule order
    """
    holes = HoleCollection()
    for previous, current in zip(programs, programs[1:]):
        if current.start_time - previous.end_time > HOLE_THRESHOLD:
            holes.add(Hole(previous.end_time, current.start_time))
    return holes


def detect_holes(
    channel: ChannelSnapshot,
    programs: Sequence[StoredProgramSnapshot],
    config: ConfigSnapshot,
    *,
    grabber_name: str = "EPG",
) -> HoleCollection:
    if not should_scan_for_holes(channel, config):
        return HoleCollection()

    logger.debug("%s: %s is marked to have epg gaps. Calculating them...", grabber_name, channel.display_name)
    holes = find_holes(programs)
    logger.debug("%s: %s Found %s epg holes.", grabber_name, channel.display_name, len(holes))
    return holes
