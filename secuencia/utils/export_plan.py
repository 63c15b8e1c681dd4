"""
Attribute plans for document serializers.

A serializer (FCPXML or similar) turns each clip into one leaf node. This
module works out the node attributes in timeline order so the serializer
only has to write them out: every time is frame-aligned and formatted as a
canonical time string, `start` is present only for a non-zero source
in-point, `lane` only off the primary storyline, and `enabled` only when the
clip is disabled.

No markup, escaping or resource-id generation happens here. External
reference strings come from the caller's `asset_refs` map.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from uuid import UUID

from secuencia.models.errors import InvalidAssetReferenceError
from secuencia.models.timeline_models import ZERO, Clip, FrameRate, RationalTime
from secuencia.operators.timeline_store import Timeline

logger = logging.getLogger(__name__)


@dataclass
class ClipNode:
    clip_id: UUID
    lane: int
    attributes: dict[str, str] = field(default_factory=dict)


def _aligned(time: RationalTime, frame_rate: FrameRate | RationalTime) -> str:
    return time.align_to_frame(frame_rate).to_canonical_string()


def build_clip_node(
    clip: Clip,
    ref: str,
    frame_rate: FrameRate | RationalTime,
) -> ClipNode:
    attributes = {"ref": ref}
    if clip.name:
        attributes["name"] = clip.name
    attributes["offset"] = _aligned(clip.offset, frame_rate)
    attributes["duration"] = _aligned(clip.duration, frame_rate)
    if clip.source_start != ZERO:
        attributes["start"] = _aligned(clip.source_start, frame_rate)
    if clip.lane != 0:
        attributes["lane"] = str(clip.lane)
    if not clip.enabled:
        attributes["enabled"] = "0"
    return ClipNode(clip_id=clip.id, lane=clip.lane, attributes=attributes)


def build_clip_nodes(
    timeline: Timeline,
    asset_refs: Mapping[UUID, str],
    frame_rate: FrameRate | RationalTime,
) -> list[ClipNode]:
    """
    Build one node per clip, ordered by offset then lane.

    Args:
        timeline: Timeline to describe
        asset_refs: External reference string for every asset on the timeline
        frame_rate: Frame rate (or frame duration) to align times to

    Raises:
        InvalidAssetReferenceError: If a clip's asset has no entry in
            asset_refs
    """
    nodes = []
    for clip in timeline.sorted_clips():
        ref = asset_refs.get(clip.asset_ref)
        if ref is None:
            raise InvalidAssetReferenceError(
                clip.asset_ref, f"no external reference for clip {clip.id}"
            )
        nodes.append(build_clip_node(clip, ref, frame_rate))

    logger.debug(f"Built {len(nodes)} clip nodes for timeline {timeline.id}")
    return nodes


def build_sequence_attributes(
    timeline: Timeline, frame_rate: FrameRate | RationalTime
) -> dict[str, str]:
    """Attributes for the enclosing sequence node."""
    return {
        "duration": _aligned(timeline.duration, frame_rate),
        "tcStart": "0s",
    }
