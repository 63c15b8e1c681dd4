"""
Ripple Engine - plan ripple inserts without touching the timeline.

A ripple insert pushes every in-scope clip that starts at or after the
insertion point later by the inserted clip's duration. Planning is a pure,
read-only pass that builds every replacement clip up front; the timeline
store commits the plan afterwards in one step. If building any replacement
fails (for example on overflow) the plan is never produced and the timeline
is left untouched.

Known edge case: a clip that starts before the insertion point is never
shifted, even when it runs past it. Such clips end up overlapping the
inserted clip and are reported in the plan's `overlapping` list.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID

from secuencia.models.timeline_models import (
    Clip,
    ClipShift,
    RationalTime,
    RippleInsertResult,
    RippleScope,
)


@dataclass(frozen=True)
class RipplePlan:
    inserted: Clip
    replacements: list[Clip] = field(default_factory=list)
    shifts: list[ClipShift] = field(default_factory=list)
    overlapping: list[UUID] = field(default_factory=list)

    def to_result(self) -> RippleInsertResult:
        return RippleInsertResult(
            inserted_clip=self.inserted.placement,
            shifted_clips=list(self.shifts),
            overlapping_clip_ids=list(self.overlapping),
        )


def select_ripple_candidates(
    clips: Iterable[Clip], at: RationalTime, scope: RippleScope
) -> list[Clip]:
    """In-scope clips starting at or after `at`, ordered by (offset, lane, id)."""
    candidates = [
        clip for clip in clips if clip.offset >= at and scope.includes(clip.lane)
    ]
    candidates.sort(key=lambda clip: (clip.offset, clip.lane, clip.id))
    return candidates


def plan_ripple_insert(
    clips: Iterable[Clip],
    clip: Clip,
    at: RationalTime,
    lane: int = 0,
    scope: RippleScope | None = None,
) -> RipplePlan:
    """
    Work out a ripple insert of `clip` at (`at`, `lane`).

    Args:
        clips: The clips currently on the timeline (read only)
        clip: The clip being inserted
        at: Insertion point
        lane: Lane for the inserted clip
        scope: Which lanes get pushed (defaults to the primary storyline)

    Returns:
        A RipplePlan holding the placed clip, the shifted replacements and
        the shift records in timeline order
    """
    scope = scope or RippleScope.primary_only()
    existing = list(clips)
    insert_duration = clip.duration

    candidates = select_ripple_candidates(existing, at, scope)
    replacements: list[Clip] = []
    shifts: list[ClipShift] = []
    for candidate in candidates:
        new_offset = candidate.offset + insert_duration
        replacements.append(candidate.placed_at(new_offset, candidate.lane))
        shifts.append(
            ClipShift(
                clip_id=candidate.id,
                lane=candidate.lane,
                original_offset=candidate.offset,
                new_offset=new_offset,
            )
        )

    inserted = clip.placed_at(at, lane)
    shifted_ids = {shift.clip_id for shift in shifts}
    overlapping = [
        other.id
        for other in sorted(existing, key=lambda c: (c.offset, c.id))
        if other.lane == lane
        and other.id not in shifted_ids
        and other.offset < inserted.end
        and other.end > inserted.offset
    ]

    return RipplePlan(
        inserted=inserted,
        replacements=replacements,
        shifts=shifts,
        overlapping=overlapping,
    )
