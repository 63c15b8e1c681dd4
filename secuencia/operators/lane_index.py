"""
Per-lane ordered view over timeline clips.

The index keeps, for every lane in use, the lane's clips sorted by
(offset, id). Only the timeline store patches it; callers get copies of the
lists and must not hold on to them across a mutation.

Overlap lookups bisect on offset. A clip can only reach into a range if it
starts less than one "longest clip on the lane" before the range, so the scan
is bounded by the lane's longest duration instead of the whole lane.
"""

from __future__ import annotations

from bisect import bisect_left, insort
from uuid import UUID

from secuencia.models.errors import ArithmeticOverflowError
from secuencia.models.timeline_models import Clip, RationalTime, TimeRange


def _sort_key(clip: Clip) -> tuple[RationalTime, UUID]:
    return (clip.offset, clip.id)


class LaneIndex:
    def __init__(self, clips: list[Clip] | None = None) -> None:
        self._lanes: dict[int, list[Clip]] = {}
        self._longest: dict[int, RationalTime] = {}
        for clip in clips or []:
            self.add(clip)

    # -------------------------------------------------------------------------
    # Patching (timeline store only)
    # -------------------------------------------------------------------------

    def add(self, clip: Clip) -> None:
        lane = self._lanes.setdefault(clip.lane, [])
        insort(lane, clip, key=_sort_key)
        longest = self._longest.get(clip.lane)
        if longest is None or clip.duration > longest:
            self._longest[clip.lane] = clip.duration

    def discard(self, clip: Clip) -> None:
        lane = self._lanes.get(clip.lane)
        if not lane:
            return
        position = bisect_left(lane, _sort_key(clip), key=_sort_key)
        if position < len(lane) and lane[position].id == clip.id:
            del lane[position]
        if not lane:
            del self._lanes[clip.lane]
            del self._longest[clip.lane]
        elif clip.duration == self._longest[clip.lane]:
            self._longest[clip.lane] = max(c.duration for c in lane)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def lanes(self) -> list[int]:
        """Lanes holding at least one clip, ascending."""
        return sorted(self._lanes)

    def clips_on(self, lane: int) -> list[Clip]:
        return list(self._lanes.get(lane, ()))

    def clips_overlapping(self, lane: int, time_range: TimeRange) -> list[Clip]:
        """Clips on `lane` with offset < range end and end > range start."""
        clips = self._lanes.get(lane)
        if not clips:
            return []
        stop = bisect_left(clips, time_range.end, key=lambda c: c.offset)
        try:
            earliest = time_range.start - self._longest[lane]
        except ArithmeticOverflowError:
            # The lookback bound has no representable value; scan from the
            # lane start instead.
            begin = 0
        else:
            begin = bisect_left(clips, earliest, key=lambda c: c.offset)
        return [
            clip
            for clip in clips[begin:stop]
            if clip.end > time_range.start
        ]

    def first_conflict(self, lane: int, time_range: TimeRange) -> Clip | None:
        overlapping = self.clips_overlapping(lane, time_range)
        return overlapping[0] if overlapping else None

    def is_range_free(self, lane: int, time_range: TimeRange) -> bool:
        return self.first_conflict(lane, time_range) is None

    def __len__(self) -> int:
        return sum(len(clips) for clips in self._lanes.values())
