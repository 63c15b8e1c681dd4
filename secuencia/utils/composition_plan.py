"""
Composition plans for audio/video mixdown engines.

The mixdown engine does the decoding, mixing and encoding. It only needs to
know, for each clip, which asset to read, which part of it, and where to put
it on the output. Disabled clips are left out.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from secuencia.models.timeline_models import ZERO, RationalTime, TimeRange
from secuencia.operators.timeline_store import Timeline


@dataclass(frozen=True)
class CompositionSegment:
    clip_id: UUID
    asset_ref: UUID
    lane: int
    insert_at: RationalTime
    source_range: TimeRange

    @property
    def end(self) -> RationalTime:
        return self.insert_at + self.source_range.duration


def build_composition_plan(
    timeline: Timeline,
    lanes: Iterable[int] | None = None,
    audio_lanes_only: bool = False,
) -> list[CompositionSegment]:
    """
    List the segments to lay into a composition, in timeline order.

    Args:
        timeline: Timeline to plan
        lanes: Restrict to these lanes (all lanes when None)
        audio_lanes_only: Restrict to negative (audio-only) lanes
    """
    wanted = set(lanes) if lanes is not None else None
    segments = []
    for clip in timeline.sorted_clips():
        if not clip.enabled:
            continue
        if wanted is not None and clip.lane not in wanted:
            continue
        if audio_lanes_only and clip.lane >= 0:
            continue
        segments.append(
            CompositionSegment(
                clip_id=clip.id,
                asset_ref=clip.asset_ref,
                lane=clip.lane,
                insert_at=clip.offset,
                source_range=TimeRange(start=clip.source_start, duration=clip.duration),
            )
        )
    return segments


def composition_duration(segments: Iterable[CompositionSegment]) -> RationalTime:
    """Length of the mixed output: the latest segment end on any lane."""
    return max((segment.end for segment in segments), default=ZERO)
