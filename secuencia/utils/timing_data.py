"""
Timing-data export.

Builds a TimingData document from a timeline: one segment per clip in
timeline order, plus the total duration over every lane. Transcript text and
character names are optional and come from the caller, keyed by asset.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from uuid import UUID

from secuencia.models.timeline_models import ZERO
from secuencia.models.timing_models import TimingData, TimingMetadata, TimingSegment
from secuencia.operators.timeline_store import Timeline

logger = logging.getLogger(__name__)

TIMING_FILE_SUFFIX = ".timing.json"


def build_timing_data(
    timeline: Timeline,
    audio_file: str,
    texts: Mapping[UUID, str] | None = None,
    characters: Mapping[UUID, str] | None = None,
) -> TimingData:
    """
    Describe when each clip plays in the mixed-down audio file.

    Args:
        timeline: Timeline to describe
        audio_file: Name of the audio file the timings refer to
        texts: Transcript text per asset_ref
        characters: Speaking character per asset_ref

    Returns:
        TimingData with segments in `sorted_clips()` order
    """
    texts = texts or {}
    characters = characters or {}

    segments = []
    total = ZERO
    for clip in timeline.sorted_clips():
        end = clip.end
        if end > total:
            total = end
        segments.append(
            TimingSegment(
                id=str(clip.id),
                start_time=clip.offset.to_seconds(),
                end_time=end.to_seconds(),
                text=texts.get(clip.asset_ref),
                metadata=TimingMetadata(
                    character=characters.get(clip.asset_ref),
                    lane=clip.lane,
                    clip_id=str(clip.id),
                ),
            )
        )

    return TimingData(
        audio_file=audio_file,
        duration=total.to_seconds(),
        segments=segments,
    )


def timing_data_to_json(timing: TimingData) -> str:
    """Pretty-printed JSON with sorted keys; unset optional fields are left out."""
    payload = timing.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(payload, indent=2, sort_keys=True)


def timing_file_path(audio_path: Path) -> Path:
    """`screenplay.m4a` -> `screenplay.m4a.timing.json`, next to the audio."""
    return audio_path.with_name(audio_path.name + TIMING_FILE_SUFFIX)


def write_timing_data(timing: TimingData, path: Path) -> Path:
    """Write the JSON document, replacing any existing file in one step."""
    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.with_name(path.name + ".tmp")
    staging.write_text(timing_data_to_json(timing), encoding="utf-8")
    staging.replace(path)
    logger.info(f"Wrote timing data for {len(timing.segments)} segments to {path}")
    return path
