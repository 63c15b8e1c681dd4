from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
)
from sqlalchemy.sql import func

from secuencia.database.base import Base


class Timeline(Base):
    """
    Stored timeline header.

    Clips live in timeline_clips, one row each. current_version is bumped on
    every save and checked for optimistic locking.
    """

    __tablename__ = "timelines"

    timeline_id = Column(
        Uuid, unique=True, index=True, nullable=False, primary_key=True, default=uuid4
    )
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    current_version = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return (
            f"<Timeline timeline_id={self.timeline_id} name={self.name} "
            f"current_version={self.current_version}>"
        )


class TimelineClip(Base):
    """
    One placed clip.

    Rational times are stored as numerator/denominator integer pairs so they
    survive a round trip exactly.
    """

    __tablename__ = "timeline_clips"

    clip_id = Column(Uuid, unique=True, nullable=False, primary_key=True)
    timeline_id = Column(
        Uuid,
        ForeignKey("timelines.timeline_id", ondelete="CASCADE"),
        nullable=False,
    )
    asset_ref = Column(Uuid, nullable=False)
    name = Column(String, nullable=True)

    offset_numerator = Column(BigInteger, nullable=False)
    offset_denominator = Column(Integer, nullable=False)
    duration_numerator = Column(BigInteger, nullable=False)
    duration_denominator = Column(Integer, nullable=False)
    source_start_numerator = Column(BigInteger, nullable=False, default=0)
    source_start_denominator = Column(Integer, nullable=False, default=1)

    lane = Column(Integer, nullable=False, default=0)
    enabled = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_timeline_clips_timeline_lane", timeline_id, lane),
    )

    def __repr__(self):
        return (
            f"<TimelineClip clip_id={self.clip_id} timeline_id={self.timeline_id} "
            f"lane={self.lane}>"
        )
