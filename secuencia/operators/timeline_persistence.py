"""
Timeline persistence - save and load timelines through SQLAlchemy.

The timeline core knows nothing about storage; this module maps a Timeline
to rows and back. Clip UUIDs are kept as primary keys, so identity survives
any number of save/load cycles.

Saves use optimistic locking via the expected_version parameter: a save only
succeeds if nobody else saved the timeline since the caller loaded it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session as DBSession

from secuencia.database.models import (
    Timeline as TimelineModel,
    TimelineClip as TimelineClipModel,
)
from secuencia.models.errors import TimelineNotFoundError, VersionConflictError
from secuencia.models.timeline_models import Clip, RationalTime
from secuencia.operators.timeline_store import Timeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimelineWithVersion:
    timeline: Timeline
    version: int


# =============================================================================
# ROW MAPPING
# =============================================================================


def _clip_to_row(timeline_id: UUID, clip: Clip) -> TimelineClipModel:
    return TimelineClipModel(
        clip_id=clip.id,
        timeline_id=timeline_id,
        asset_ref=clip.asset_ref,
        name=clip.name,
        offset_numerator=clip.offset.numerator,
        offset_denominator=clip.offset.denominator,
        duration_numerator=clip.duration.numerator,
        duration_denominator=clip.duration.denominator,
        source_start_numerator=clip.source_start.numerator,
        source_start_denominator=clip.source_start.denominator,
        lane=clip.lane,
        enabled=clip.enabled,
    )


def _row_to_clip(row: TimelineClipModel) -> Clip:
    return Clip(
        id=row.clip_id,
        asset_ref=row.asset_ref,
        name=row.name,
        offset=RationalTime(
            numerator=row.offset_numerator, denominator=row.offset_denominator
        ),
        duration=RationalTime(
            numerator=row.duration_numerator, denominator=row.duration_denominator
        ),
        source_start=RationalTime(
            numerator=row.source_start_numerator,
            denominator=row.source_start_denominator,
        ),
        lane=row.lane,
        enabled=row.enabled,
    )


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands datetimes back without tzinfo.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# OPERATIONS
# =============================================================================


def get_timeline_record(db: DBSession, timeline_id: UUID) -> TimelineModel | None:
    return db.query(TimelineModel).filter(
        TimelineModel.timeline_id == timeline_id
    ).first()


def save_timeline(db: DBSession, timeline: Timeline, expected_version: int = 0) -> int:
    """
    Write the timeline's full clip set, replacing what was stored.

    Args:
        db: Database session
        timeline: The timeline to store
        expected_version: The version the caller loaded (0 for a timeline
            that has never been saved)

    Returns:
        The new stored version

    Raises:
        VersionConflictError: If expected_version doesn't match the stored
            version
    """
    record = db.query(TimelineModel).filter(
        TimelineModel.timeline_id == timeline.id
    ).with_for_update().first()

    current_version = record.current_version if record else 0
    if current_version != expected_version:
        raise VersionConflictError(
            expected_version=expected_version,
            current_version=current_version,
        )

    if record is None:
        record = TimelineModel(
            timeline_id=timeline.id,
            name=timeline.name,
            created_at=timeline.created_at,
            updated_at=timeline.modified_at,
            current_version=0,
        )
        db.add(record)
        db.flush()
    else:
        for row in db.query(TimelineClipModel).filter(
            TimelineClipModel.timeline_id == timeline.id
        ).all():
            db.delete(row)
        db.flush()

    for clip in timeline.sorted_clips():
        db.add(_clip_to_row(timeline.id, clip))

    record.name = timeline.name
    record.updated_at = timeline.modified_at
    record.current_version = current_version + 1

    db.commit()
    logger.info(
        f"Saved timeline {timeline.id} with {len(timeline)} clips "
        f"as version {record.current_version}"
    )
    return record.current_version


def load_timeline(db: DBSession, timeline_id: UUID) -> TimelineWithVersion:
    """
    Rebuild a stored timeline.

    Raises:
        TimelineNotFoundError: If no timeline is stored under this id
    """
    record = get_timeline_record(db, timeline_id)
    if record is None:
        raise TimelineNotFoundError(timeline_id)

    rows = db.query(TimelineClipModel).filter(
        TimelineClipModel.timeline_id == timeline_id
    ).all()
    timeline = Timeline.from_clips(
        name=record.name,
        clips=[_row_to_clip(row) for row in rows],
        timeline_id=record.timeline_id,
        created_at=_as_utc(record.created_at),
        modified_at=_as_utc(record.updated_at),
    )
    logger.debug(
        f"Loaded timeline {timeline_id} version {record.current_version} "
        f"with {len(rows)} clips"
    )
    return TimelineWithVersion(timeline=timeline, version=record.current_version)


def delete_timeline(db: DBSession, timeline_id: UUID) -> bool:
    """Delete a stored timeline and its clips."""
    record = get_timeline_record(db, timeline_id)
    if record is None:
        return False

    for row in db.query(TimelineClipModel).filter(
        TimelineClipModel.timeline_id == timeline_id
    ).all():
        db.delete(row)
    db.flush()
    db.delete(record)
    db.commit()
    logger.info(f"Deleted timeline {timeline_id}")
    return True
