"""
Shared dataclasses used across the EPG update pipeline.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime

from epg_updater.models import MediaType


class GateRejection(str, enum.Enum):
    """Why a grabbed listing was not processed."""
    NO_PROGRAMS = "no_programs"
    NO_MATCHING_CHANNEL = "no_matching_channel"
    NOT_ENABLED_FOR_GRAB = "not_enabled_for_grab"
    REGRAB_INTERVAL_NOT_ELAPSED = "regrab_interval_not_elapsed"


@dataclass(slots=True)
class ChannelSnapshot:
    """In-memory copy of a stored channel row."""
    id: int
    display_name: str
    media_type: MediaType
    grab_epg: bool
    last_grab_time: datetime | None = None
    epg_has_gaps: bool = False

    @property
    def is_radio(self) -> bool:
        return self.media_type == MediaType.RADIO


@dataclass(slots=True)
class StoredProgramSnapshot:
    """In-memory copy of a stored program row."""
    id: int
    channel_id: int
    start_time: datetime
    end_time: datetime
    title: str = ""
    description: str = ""
    category_id: int | None = None
    star_rating: int = 0
    classification: str = ""
    parental_rating: int = -1
    state: int = 0


@dataclass(slots=True)
class ProgramPayload:
    """Rendered program fields ready to be written to the store."""
    channel_id: int
    start_time: datetime
    end_time: datetime
    title: str
    description: str
    category_id: int | None
    star_rating: int
    classification: str
    parental_rating: int


@dataclass(frozen=True, slots=True)
class Hole:
    start: datetime
    end: datetime

    def fits(self, start: datetime, end: datetime) -> bool:
        return self.start <= start and end <= self.end


@dataclass(slots=True)
class HoleCollection:
    """Ordered holes detected in a channel's stored schedule."""
    holes: list[Hole] = field(default_factory=list)

    def add(self, hole: Hole) -> None:
        self.holes.append(hole)

    def fits_in_any_hole(self, start: datetime, end: datetime) -> bool:
        return any(hole.fits(start, end) for hole in self.holes)

    def __len__(self) -> int:
        return len(self.holes)

    def __iter__(self):
        return iter(self.holes)


@dataclass(slots=True)
class ReconcileResult:
    inserted: int = 0
    updated: int = 0
    has_gaps: bool = False


@dataclass(slots=True)
class UpdateResult:
    """Outcome of one update pass for a single listing."""
    status: str
    reason: GateRejection | None = None
    channel_id: int | None = None
    inserted: int = 0
    updated: int = 0
    has_gaps: bool | None = None

    @classmethod
    def rejected(cls, reason: GateRejection, channel_id: int | None = None) -> UpdateResult:
        return cls(status="rejected", reason=reason, channel_id=channel_id)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "reason": self.reason.value if self.reason else None,
            "channel_id": self.channel_id,
            "inserted": self.inserted,
            "updated": self.updated,
            "has_gaps": self.has_gaps,
        }


__all__ = [
    "ChannelSnapshot",
    "GateRejection",
    "Hole",
    "HoleCollection",
    "ProgramPayload",
    "ReconcileResult",
    "StoredProgramSnapshot",
    "UpdateResult",
]
