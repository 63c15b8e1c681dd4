"""
Timeline Store - the aggregate that owns every clip on a timeline.

All placement goes through the Timeline: append, checked and unchecked
insert, auto-lane insert, ripple insert, move and remove. After each
mutation the store patches its lane index and refreshes `modified_at`.

Clips are frozen models. Placement operations store a copy of the caller's
clip with the assigned offset and lane, and return a ClipPlacement. Queries
hand back the stored clips, which can be read but not changed.

The store is not thread-safe. An embedding application that shares a
Timeline must serialize mutating calls itself.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone
from uuid import UUID, uuid4

from secuencia.config import LANE_SEARCH_LIMIT
from secuencia.models.errors import (
    ClipNotFoundError,
    InvalidPlacementError,
    NoAvailableLaneError,
)
from secuencia.models.timeline_models import (
    ZERO,
    Clip,
    ClipPlacement,
    RationalTime,
    RippleInsertResult,
    RippleScope,
    TimeRange,
)
from secuencia.operators.lane_allocator import find_available_lane
from secuencia.operators.lane_index import LaneIndex
from secuencia.operators.ripple_engine import plan_ripple_insert

logger = logging.getLogger(__name__)


def _clip_order(clip: Clip) -> tuple[RationalTime, int, UUID]:
    return (clip.offset, clip.lane, clip.id)


class Timeline:
    """
    A named set of clips placed on lanes.

    `duration` counts only the primary storyline (lane 0); connected lanes
    do not extend the nominal length.
    """

    def __init__(
        self,
        name: str,
        timeline_id: UUID | None = None,
        created_at: datetime | None = None,
        lane_search_limit: int = LANE_SEARCH_LIMIT,
    ) -> None:
        self.id = timeline_id or uuid4()
        self.name = name
        self.created_at = created_at or datetime.now(timezone.utc)
        self.modified_at = self.created_at
        self.lane_search_limit = lane_search_limit
        self._clips: dict[UUID, Clip] = {}
        self._index = LaneIndex()

    @classmethod
    def from_clips(
        cls,
        name: str,
        clips: Iterable[Clip],
        timeline_id: UUID | None = None,
        created_at: datetime | None = None,
        modified_at: datetime | None = None,
    ) -> Timeline:
        """
        Rebuild a timeline from clips that already carry their placement.

        Used when loading from storage; placements are restored as stored,
        without collision checks.
        """
        timeline = cls(name=name, timeline_id=timeline_id, created_at=created_at)
        for clip in clips:
            timeline._require_new(clip)
            timeline._attach(clip)
        timeline.modified_at = modified_at or timeline.created_at
        return timeline

    # =========================================================================
    # DERIVED PROPERTIES
    # =========================================================================

    @property
    def duration(self) -> RationalTime:
        """Latest end over lane-0 clips, or zero when the storyline is empty."""
        return max((clip.end for clip in self._index.clips_on(0)), default=ZERO)

    @property
    def lane_range(self) -> tuple[int, int] | None:
        """(lowest lane, highest lane) in use, or None for an empty timeline."""
        lanes = self._index.lanes()
        if not lanes:
            return None
        return (lanes[0], lanes[-1])

    def __len__(self) -> int:
        return len(self._clips)

    def __contains__(self, clip_id: object) -> bool:
        return clip_id in self._clips

    def __iter__(self) -> Iterator[Clip]:
        return iter(self.sorted_clips())

    def __repr__(self) -> str:
        return f"<Timeline id={self.id} name={self.name!r} clips={len(self._clips)}>"

    # =========================================================================
    # PLACEMENT
    # =========================================================================

    def append(self, clip: Clip) -> ClipPlacement:
        """Place `clip` on lane 0 right after the current storyline end."""
        self._require_new(clip)
        placed = clip.placed_at(self.duration, 0)
        self._attach(placed)
        self._touch()
        logger.debug(f"Appended clip {placed.id} at {placed.offset}")
        return placed.placement

    def insert(self, clip: Clip, at: RationalTime, lane: int = 0) -> ClipPlacement:
        """
        Place `clip` at an explicit offset and lane.

        Raises:
            InvalidPlacementError: If the clip id is already on the timeline
                or another clip occupies the lane over [at, at + duration)
        """
        self._require_new(clip)
        placed = clip.placed_at(at, lane)
        self._require_free(placed)
        self._attach(placed)
        self._touch()
        logger.debug(f"Inserted clip {placed.id} at {placed.offset} on lane {lane}")
        return placed.placement

    def insert_unchecked(
        self, clip: Clip, at: RationalTime, lane: int = 0
    ) -> ClipPlacement:
        """
        Place `clip` without checking for collisions.

        Advanced use only: the result may overlap other clips on the lane.
        The caller must reconcile straight away (remove, move or ripple);
        `find_overlaps()` lists what needs fixing.
        """
        self._require_new(clip)
        placed = clip.placed_at(at, lane)
        self._attach(placed)
        self._touch()
        logger.debug(
            f"Inserted clip {placed.id} unchecked at {placed.offset} on lane {lane}"
        )
        return placed.placement

    def insert_auto_lane(
        self,
        clip: Clip,
        at: RationalTime,
        preferred_lane: int = 0,
        auto_assign: bool = True,
    ) -> ClipPlacement:
        """
        Place `clip` on `preferred_lane`, or on the nearest free lane.

        Raises:
            NoAvailableLaneError: If the preferred lane is taken and
                `auto_assign` is False, or the lane search runs out
        """
        self._require_new(clip)
        time_range = TimeRange(start=at, duration=clip.duration)
        conflict = self._index.first_conflict(preferred_lane, time_range)
        if conflict is None:
            lane = preferred_lane
        elif not auto_assign:
            raise NoAvailableLaneError(
                at=at,
                duration=clip.duration,
                starting_from=preferred_lane,
                conflicting_clip_id=conflict.id,
            )
        else:
            lane = find_available_lane(
                self._index, time_range, preferred_lane, self.lane_search_limit
            )
            logger.debug(
                f"Lane {preferred_lane} busy over {time_range}, assigned lane {lane}"
            )
        placed = clip.placed_at(at, lane)
        self._attach(placed)
        self._touch()
        return placed.placement

    def ripple_insert(
        self,
        clip: Clip,
        at: RationalTime,
        lane: int = 0,
        ripple_scope: RippleScope | None = None,
    ) -> RippleInsertResult:
        """
        Insert `clip` at (`at`, `lane`) and push later clips out of the way.

        Every clip in `ripple_scope` (default: lane 0 only) whose offset is at
        or after `at` moves later by the clip's duration. A clip starting
        exactly at `at` moves; a clip starting before it stays put even if it
        overlaps the new clip, and is listed in `overlapping_clip_ids`.

        The shift is all-or-nothing: the plan is built first and committed
        only once every shifted clip has been computed.
        """
        self._require_new(clip)
        plan = plan_ripple_insert(
            self._clips.values(), clip, at, lane, ripple_scope
        )

        for replacement in plan.replacements:
            self._detach(self._clips[replacement.id])
            self._attach(replacement)
        self._attach(plan.inserted)
        self._touch()

        if plan.overlapping:
            logger.warning(
                f"Ripple insert of clip {plan.inserted.id} at {at} on lane {lane} "
                f"overlaps un-shifted clips {[str(i) for i in plan.overlapping]}"
            )
        logger.info(
            f"Ripple inserted clip {plan.inserted.id} at {at} on lane {lane}, "
            f"shifted {len(plan.shifts)} clips by {clip.duration}"
        )
        return plan.to_result()

    def move(
        self, clip_id: UUID, to: RationalTime, lane: int | None = None
    ) -> ClipPlacement:
        """
        Move a clip to a new offset (and optionally a new lane).

        Raises:
            ClipNotFoundError: If no clip has this id
            InvalidPlacementError: If the destination is occupied; the clip
                stays where it was
        """
        current = self._clips.get(clip_id)
        if current is None:
            raise ClipNotFoundError(clip_id)
        moved = current.placed_at(to, current.lane if lane is None else lane)

        self._detach(current)
        try:
            self._require_free(moved)
        except InvalidPlacementError:
            self._attach(current)
            raise
        self._attach(moved)
        self._touch()
        logger.debug(
            f"Moved clip {clip_id} from {current.offset}@{current.lane} "
            f"to {moved.offset}@{moved.lane}"
        )
        return moved.placement

    def remove(self, clip_id: UUID) -> bool:
        """Detach a clip. Returns False if no clip has this id."""
        clip = self._clips.get(clip_id)
        if clip is None:
            return False
        self._detach(clip)
        self._touch()
        logger.debug(f"Removed clip {clip_id}")
        return True

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_clip(self, clip_id: UUID) -> Clip | None:
        return self._clips.get(clip_id)

    def get_placement(self, clip_id: UUID) -> ClipPlacement | None:
        clip = self._clips.get(clip_id)
        return clip.placement if clip is not None else None

    def clips_on(self, lane: int) -> list[Clip]:
        """Clips on one lane ordered by offset (ties by id)."""
        return self._index.clips_on(lane)

    def clips_in_range(self, start: RationalTime, end: RationalTime) -> list[Clip]:
        """
        Clips on any lane overlapping [start, end).

        A clip matches when clip.offset < end and clip.end > start. Results
        are in `sorted_clips()` order.
        """
        if end <= start:
            return []
        time_range = TimeRange.from_start_end(start, end)
        found = [
            clip
            for lane in self._index.lanes()
            for clip in self._index.clips_overlapping(lane, time_range)
        ]
        found.sort(key=_clip_order)
        return found

    def sorted_clips(self) -> list[Clip]:
        """All clips ordered by offset, then lane, then id."""
        return sorted(self._clips.values(), key=_clip_order)

    def all_placements(self) -> list[ClipPlacement]:
        return [clip.placement for clip in self.sorted_clips()]

    def placements_on(self, lane: int) -> list[ClipPlacement]:
        return [clip.placement for clip in self.clips_on(lane)]

    def placements_in_range(
        self, start: RationalTime, end: RationalTime
    ) -> list[ClipPlacement]:
        return [clip.placement for clip in self.clips_in_range(start, end)]

    def find_available_lane(self, time_range: TimeRange, starting_from: int = 0) -> int:
        return find_available_lane(
            self._index, time_range, starting_from, self.lane_search_limit
        )

    def find_overlaps(self) -> list[tuple[UUID, UUID]]:
        """
        Pairs of clips on the same lane whose ranges overlap.

        Empty whenever only checked placements were used. Each pair is
        ordered as the clips appear on the lane.
        """
        pairs: list[tuple[UUID, UUID]] = []
        for lane in self._index.lanes():
            clips = self._index.clips_on(lane)
            for position, clip in enumerate(clips):
                for later in clips[position + 1:]:
                    if later.offset >= clip.end:
                        break
                    pairs.append((clip.id, later.id))
        return pairs

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _require_new(self, clip: Clip) -> None:
        if clip.id in self._clips:
            raise InvalidPlacementError(
                f"clip {clip.id} is already on the timeline", clip_id=clip.id
            )
        if clip.duration <= ZERO:
            raise InvalidPlacementError(
                f"clip {clip.id} has non-positive duration {clip.duration}",
                clip_id=clip.id,
            )

    def _require_free(self, clip: Clip) -> None:
        time_range = clip.time_range
        conflict = self._index.first_conflict(clip.lane, time_range)
        if conflict is not None:
            raise InvalidPlacementError(
                f"lane {clip.lane} is occupied by clip {conflict.id} over {time_range}",
                clip_id=clip.id,
                lane=clip.lane,
                requested_range=time_range,
                conflicting_clip_id=conflict.id,
            )

    def _attach(self, clip: Clip) -> None:
        self._clips[clip.id] = clip
        self._index.add(clip)

    def _detach(self, clip: Clip) -> None:
        del self._clips[clip.id]
        self._index.discard(clip)

    def _touch(self) -> None:
        self.modified_at = datetime.now(timezone.utc)
