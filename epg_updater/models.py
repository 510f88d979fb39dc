"""
SQLAlchemy ORM Models for the EPG updater

This module defines the database models for channels, tuning details,
programs, program categories and settings.
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class UTCDateTime(TypeDecorator):
    """Store datetimes as naive UTC, return them as aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class MediaType(str, enum.Enum):
    TV = "tv"
    RADIO = "radio"


class ProgramState(enum.IntFlag):
    """Recording and notification flags carried by a stored program"""
    NONE = 0
    NOTIFY = 1
    RECORD_ONCE = 2
    RECORD_SERIES = 4
    RECORD_MANUAL = 8
    CONFLICT = 16
    RECORD_PENDING = 32


PENDING_STATE_FLAGS = ProgramState.RECORD_PENDING | ProgramState.CONFLICT


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class Channel(Base):
    """Channel known to the schedule store"""
    __tablename__ = "channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    media_type: Mapped[MediaType] = mapped_column(
        Enum(MediaType, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MediaType.TV,
    )
    grab_epg: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_grab_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    epg_has_gaps: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    tuning_details: Mapped[list["TuningDetail"]] = relationship(
        back_populates="channel",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Channel(id={self.id}, display_name={self.display_name})>"


class TuningDetail(Base):
    """Normalised tuning key a grabbed listing is matched against"""
    __tablename__ = "tuning_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("channels.id", ondelete="CASCADE"),
        nullable=False,
    )
    broadcast_standard: Mapped[str] = mapped_column(String, nullable=False)
    network_id: Mapped[int] = mapped_column(Integer, nullable=False)
    transport_id: Mapped[int] = mapped_column(Integer, nullable=False)
    service_id: Mapped[int] = mapped_column(Integer, nullable=False)

    channel: Mapped[Channel] = relationship(back_populates="tuning_details")

    __table_args__ = (
        Index("idx_tuning_key", "network_id", "transport_id", "service_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TuningDetail(channel={self.channel_id}, onid={self.network_id}, "
            f"tsid={self.transport_id}, sid={self.service_id})>"
        )


class ProgramCategory(Base):
    """Category a genre string resolves to"""
    __tablename__ = "program_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<ProgramCategory(id={self.id}, name={self.name})>"


class Program(Base):
    """Program model for storing EPG program information"""
    __tablename__ = "programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("channels.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("program_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    star_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    classification: Mapped[str] = mapped_column(String, nullable=False, default="")
    parental_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)
    state: Mapped[int] = mapped_column(Integer, nullable=False, default=int(ProgramState.NONE))
    original_air_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("idx_programs_channel_time", "channel_id", "start_time", "end_time"),
    )

    def __repr__(self) -> str:
        return f"<Program(id={self.id}, title={self.title}, channel={self.channel_id})>"


class Setting(Base):
    """String-valued configuration entry keyed by name"""
    __tablename__ = "settings"

    tag: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(String, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Setting(tag={self.tag}, value={self.value})>"
