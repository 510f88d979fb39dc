from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from epg_updater.models import MediaType
from epg_updater.utils.timezone import ensure_utc


class DvbChannelIdentity(BaseModel):
    """DVB-family service identity (original network / transport stream / service id)"""
    standard: Literal["dvb-c", "dvb-c2", "dvb-s", "dvb-s2", "dvb-t", "dvb-t2", "dvb-ip", "isdb-t"]
    network_id: int = Field(..., ge=0, description="Original network id")
    transport_id: int = Field(..., ge=0, description="Transport stream id")
    service_id: int = Field(..., ge=0, description="Service id")

    @property
    def family(self) -> str:
        return "dvb"


class AtscChannelIdentity(BaseModel):
    """ATSC/SCTE virtual channel identity"""
    standard: Literal["atsc", "scte"]
    transport_id: int = Field(..., ge=0, description="Transport stream id")
    program_number: int = Field(..., ge=0, description="MPEG program number")
    source_id: int | None = Field(None, ge=0, description="Source id, informational only")

    @property
    def family(self) -> str:
        return "atsc"


ChannelIdentity = Annotated[
    Union[DvbChannelIdentity, AtscChannelIdentity],
    Field(discriminator="standard"),
]


class LanguageText(BaseModel):
    """One language variant of a program's descriptive text"""
    language: str = Field("", description="Language tag, e.g. 'eng' or 'all'")
    title: str = ""
    description: str = ""
    genre: str = ""
    star_rating: int = Field(0, description="0 (unrated) to 7")
    classification: str = ""
    parental_rating: int = Field(-1, description="-1 when unknown")

    @field_validator("language", "title", "description", "genre", "classification", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v


class IncomingProgram(BaseModel):
    """Single grabbed program"""
    start: datetime
    end: datetime
    texts: list[LanguageText] = Field(default_factory=list)

    @field_validator("start", "end")
    @classmethod
    def normalize_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_interval(self):
        if self.start >= self.end:
            raise ValueError(f"start ({self.start.isoformat()}) must be before end ({self.end.isoformat()})")
        return self


class IncomingListing(BaseModel):
    """One channel's freshly grabbed listing, ordered by start time"""
    channel: ChannelIdentity
    programs: list[IncomingProgram] = Field(default_factory=list)


class UpdateResponse(BaseModel):
    """Outcome of one update pass"""
    status: Literal["imported", "rejected"]
    reason: str | None = Field(None, description="Rejection reason when status is 'rejected'")
    channel_id: int | None = None
    inserted: int = 0
    updated: int = 0
    has_gaps: bool | None = None


class ChannelCreateRequest(BaseModel):
    """Register a channel and the tuning identity its listings arrive with"""
    display_name: str = Field(..., min_length=1)
    media_type: MediaType = MediaType.TV
    grab_epg: bool = True
    identity: ChannelIdentity


class ChannelResponse(BaseModel):
    id: int
    display_name: str
    media_type: MediaType
    grab_epg: bool
    last_grab_time: datetime | None
    epg_has_gaps: bool


class ProgramResponse(BaseModel):
    """Single stored program"""
    id: int
    start_time: datetime
    end_time: datetime
    title: str
    description: str
    category_id: int | None
    star_rating: int
    classification: str
    parental_rating: int
    state: int


class HoleResponse(BaseModel):
    start: datetime
    end: datetime
