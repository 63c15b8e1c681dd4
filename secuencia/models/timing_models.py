"""
Pydantic models for timing-data export.

Timing data lists when each clip plays in a mixed-down audio file, so a
player can show a synchronized transcript. Times are float seconds; the JSON
keys are camelCase (`audioFile`, `startTime`, `clipId`, ...).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TIMING_SCHEMA_VERSION = "1.0"


class _TimingModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class TimingMetadata(_TimingModel):
    """Optional context for a segment."""
    character: str | None = None
    lane: int | None = None
    clip_id: str | None = None


class TimingSegment(_TimingModel):
    """One clip's span in the output audio."""
    id: str
    start_time: float
    end_time: float
    text: str | None = None
    metadata: TimingMetadata | None = None

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


class TimingData(_TimingModel):
    version: str = TIMING_SCHEMA_VERSION
    audio_file: str
    duration: float = Field(ge=0, description="Total audio duration in seconds")
    segments: list[TimingSegment] = Field(default_factory=list)
