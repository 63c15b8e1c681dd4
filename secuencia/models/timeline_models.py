"""
Pydantic models for the timeline core.

This module holds the value types the timeline is built from:
- RationalTime: exact fractional time, never stored as a float
- FrameRate and TimeRange: frame quantization and half-open ranges
- Clip: a single placed unit of media on a lane
- ClipPlacement, ClipShift, RippleScope, RippleInsertResult: the values the
  timeline store hands back to callers

All models are frozen. The timeline store replaces clips instead of mutating
them, so a caller holding a Clip never sees it change underneath them.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from secuencia.models.errors import (
    ArithmeticOverflowError,
    InvalidDenominatorError,
    TimeParseError,
)


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
INT32_MAX = 2**31 - 1

DEFAULT_TIMESCALE = 600

_TIME_PATTERN = re.compile(r"^(-?[0-9]+)(?:/([0-9]+))?s$")


# =============================================================================
# CORE TIME TYPES
# =============================================================================


class RationalTime(BaseModel):
    """
    An exact instant or duration, stored as numerator/denominator seconds.

    Values are compared by what they denote, not how they are written:
    RationalTime(numerator=1, denominator=2) equals
    RationalTime(numerator=2, denominator=4) and hashes the same.

    Arithmetic promotes to the least common denominator. Results that cannot
    be held in a 64-bit numerator and a 32-bit denominator, even after
    reduction, raise ArithmeticOverflowError.

    Examples:
        - One NTSC frame: RationalTime.from_fraction(1001, 30000)
        - Ten seconds: RationalTime.from_fraction(10, 1) -> "10s"
    """
    model_config = ConfigDict(frozen=True)

    numerator: int = Field(ge=INT64_MIN, le=INT64_MAX, description="Seconds numerator")
    denominator: int = Field(default=1, gt=0, le=INT32_MAX, description="Seconds denominator")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_fraction(cls, numerator: int, denominator: int) -> RationalTime:
        """Create a time of numerator/denominator seconds."""
        if denominator <= 0:
            raise InvalidDenominatorError(denominator)
        return cls._checked(numerator, denominator, "from_fraction")

    @classmethod
    def from_seconds(
        cls, seconds: float, preferred_denominator: int = DEFAULT_TIMESCALE
    ) -> RationalTime:
        """
        Create a time from float seconds at the given timescale.

        The scaled value is truncated toward zero, so 1.0009s at a timescale
        of 600 becomes 600/600s.
        """
        if preferred_denominator <= 0:
            raise InvalidDenominatorError(preferred_denominator)
        if not math.isfinite(seconds):
            raise ValueError(f"seconds must be finite, got {seconds}")
        return cls._checked(
            int(seconds * preferred_denominator), preferred_denominator, "from_seconds"
        )

    @classmethod
    def from_frame_count(
        cls, frames: int, frame_duration: RationalTime | FrameRate
    ) -> RationalTime:
        """Create the time spanned by `frames` frames of the given duration."""
        return _frame_duration_of(frame_duration).mul_scalar(frames)

    @classmethod
    def parse(cls, text: str) -> RationalTime:
        """
        Parse a canonical time string such as "0s", "10s" or "1001/30000s".

        The string must end in "s". An optional "/" separates the numerator
        from the denominator, which must be a positive integer.
        """
        if not isinstance(text, str):
            raise TimeParseError(repr(text), "expected a string")
        if not text.endswith("s"):
            raise TimeParseError(text, "must end with 's'")
        match = _TIME_PATTERN.match(text)
        if match is None:
            raise TimeParseError(text, "expected '<int>s' or '<int>/<int>s'")
        numerator = int(match.group(1))
        denominator = int(match.group(2)) if match.group(2) is not None else 1
        if denominator <= 0:
            raise TimeParseError(text, "denominator must be a positive integer")
        return cls._checked(numerator, denominator, "parse")

    @classmethod
    def _checked(cls, numerator: int, denominator: int, operation: str) -> RationalTime:
        if not _fits(numerator, denominator):
            divisor = math.gcd(numerator, denominator)
            numerator //= divisor
            denominator //= divisor
            if not _fits(numerator, denominator):
                raise ArithmeticOverflowError(operation, numerator, denominator)
        return cls(numerator=numerator, denominator=denominator)

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def add(self, other: RationalTime) -> RationalTime:
        """Add two times at their least common denominator."""
        common = math.lcm(self.denominator, other.denominator)
        return self._checked(
            self.numerator * (common // self.denominator)
            + other.numerator * (common // other.denominator),
            common,
            "add",
        )

    def sub(self, other: RationalTime) -> RationalTime:
        """Subtract `other` from this time."""
        common = math.lcm(self.denominator, other.denominator)
        return self._checked(
            self.numerator * (common // self.denominator)
            - other.numerator * (common // other.denominator),
            common,
            "sub",
        )

    def mul_scalar(self, scalar: int) -> RationalTime:
        """Multiply by an integer."""
        if isinstance(scalar, bool) or not isinstance(scalar, int):
            raise TypeError(f"scalar must be an int, got {type(scalar).__name__}")
        return self._checked(self.numerator * scalar, self.denominator, "mul_scalar")

    def __add__(self, other: RationalTime) -> RationalTime:
        if not isinstance(other, RationalTime):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: RationalTime) -> RationalTime:
        if not isinstance(other, RationalTime):
            return NotImplemented
        return self.sub(other)

    def __mul__(self, scalar: int) -> RationalTime:
        if isinstance(scalar, bool) or not isinstance(scalar, int):
            return NotImplemented
        return self.mul_scalar(scalar)

    __rmul__ = __mul__

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def compare(self, other: RationalTime) -> int:
        """Return -1, 0 or 1 as this time is before, equal to or after `other`."""
        lhs = self.numerator * other.denominator
        rhs = other.numerator * self.denominator
        return (lhs > rhs) - (lhs < rhs)

    def __eq__(self, other: object) -> bool:
        """Compare the denoted values, whatever the denominators."""
        if not isinstance(other, RationalTime):
            return False
        return self.compare(other) == 0

    def __hash__(self) -> int:
        reduced = self.reduced()
        return hash((reduced.numerator, reduced.denominator))

    def __lt__(self, other: RationalTime) -> bool:
        return self.compare(other) < 0

    def __le__(self, other: RationalTime) -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: RationalTime) -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: RationalTime) -> bool:
        return self.compare(other) >= 0

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def reduced(self) -> RationalTime:
        """Return the same value in lowest terms."""
        divisor = math.gcd(self.numerator, self.denominator)
        if divisor == 1:
            return self
        return RationalTime(
            numerator=self.numerator // divisor,
            denominator=self.denominator // divisor,
        )

    def to_seconds(self) -> float:
        """Lossy float view of this time."""
        return self.numerator / self.denominator

    def to_canonical_string(self) -> str:
        """Format as "0s", "Ns" for whole seconds, or "N/Ds" in lowest terms."""
        reduced = self.reduced()
        if reduced.numerator == 0:
            return "0s"
        if reduced.denominator == 1:
            return f"{reduced.numerator}s"
        return f"{reduced.numerator}/{reduced.denominator}s"

    def align_to_frame(self, rate: RationalTime | FrameRate) -> RationalTime:
        """
        Round to the nearest exact multiple of a frame duration.

        Halfway values round away from zero. Needed before a time crosses
        into a frame-quantized external format.
        """
        frame = _frame_duration_of(rate)
        # self / frame as an exact fraction; frame is positive.
        num = self.numerator * frame.denominator
        den = self.denominator * frame.numerator
        frames = (2 * abs(num) + den) // (2 * den)
        if num < 0:
            frames = -frames
        return frame.mul_scalar(frames)

    def __str__(self) -> str:
        return self.to_canonical_string()


def _fits(numerator: int, denominator: int) -> bool:
    return INT64_MIN <= numerator <= INT64_MAX and 0 < denominator <= INT32_MAX


ZERO = RationalTime(numerator=0, denominator=1)


class FrameRate(str, Enum):
    """Standard video frame rates with exact frame durations."""
    FPS_23_98 = "23.98"
    FPS_24 = "24"
    FPS_25 = "25"
    FPS_29_97 = "29.97"
    FPS_30 = "30"
    FPS_50 = "50"
    FPS_59_94 = "59.94"
    FPS_60 = "60"

    @property
    def frame_duration(self) -> RationalTime:
        return _FRAME_DURATIONS[self]

    @property
    def frames_per_second(self) -> float:
        return 1.0 / self.frame_duration.to_seconds()

    @property
    def is_drop_frame(self) -> bool:
        return self in (FrameRate.FPS_29_97, FrameRate.FPS_59_94)

    @classmethod
    def from_fps(cls, fps: float) -> FrameRate:
        """Snap a measured rate to the closest standard rate within 0.5%."""
        best: FrameRate | None = None
        best_difference = math.inf
        for rate in cls:
            difference = abs(fps - rate.frames_per_second)
            if difference < rate.frames_per_second * 0.005 and difference < best_difference:
                best = rate
                best_difference = difference
        if best is None:
            raise ValueError(f"No standard frame rate matches {fps} fps")
        return best


_FRAME_DURATIONS = {
    FrameRate.FPS_23_98: RationalTime(numerator=1001, denominator=24000),
    FrameRate.FPS_24: RationalTime(numerator=100, denominator=2400),
    FrameRate.FPS_25: RationalTime(numerator=100, denominator=2500),
    FrameRate.FPS_29_97: RationalTime(numerator=1001, denominator=30000),
    FrameRate.FPS_30: RationalTime(numerator=100, denominator=3000),
    FrameRate.FPS_50: RationalTime(numerator=100, denominator=5000),
    FrameRate.FPS_59_94: RationalTime(numerator=1001, denominator=60000),
    FrameRate.FPS_60: RationalTime(numerator=100, denominator=6000),
}


def _frame_duration_of(rate: RationalTime | FrameRate) -> RationalTime:
    frame = rate.frame_duration if isinstance(rate, FrameRate) else rate
    if frame <= ZERO:
        raise ValueError(f"Frame duration must be positive, got {frame}")
    return frame


class TimeRange(BaseModel):
    """
    A half-open span of time: [start, start + duration).

    Two ranges that merely touch do not overlap.
    """
    model_config = ConfigDict(frozen=True)

    start: RationalTime = Field(description="Start of the range")
    duration: RationalTime = Field(description="Length of the range")

    @field_validator("duration")
    @classmethod
    def _duration_not_negative(cls, value: RationalTime) -> RationalTime:
        if value < ZERO:
            raise ValueError("duration must not be negative")
        return value

    @property
    def end(self) -> RationalTime:
        """Exclusive end (start + duration)."""
        return self.start + self.duration

    def contains(self, time: RationalTime) -> bool:
        return self.start <= time < self.end

    def overlaps(self, other: TimeRange) -> bool:
        return self.start < other.end and other.start < self.end

    @classmethod
    def from_start_end(cls, start: RationalTime, end: RationalTime) -> TimeRange:
        return cls(start=start, duration=end - start)

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


# =============================================================================
# CLIPS
# =============================================================================


class Clip(BaseModel):
    """
    A single placed unit of media.

    `offset` is the clip's position on the shared timeline axis and `lane`
    the parallel track it sits on. Lane 0 is the primary storyline, positive
    lanes hold connected content and negative lanes are reserved for
    audio-only content. Placement operations on the timeline assign `offset`
    and `lane`; whatever the caller set is overwritten.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    asset_ref: UUID = Field(description="Opaque reference to the source asset")
    name: str | None = Field(default=None, description="Display name")
    offset: RationalTime = Field(default=ZERO, description="Position on the timeline")
    duration: RationalTime = Field(description="Length on the timeline")
    source_start: RationalTime = Field(
        default=ZERO, description="In-point within the source media"
    )
    lane: int = Field(default=0, description="Lane number, 0 = primary storyline")
    enabled: bool = True

    @field_validator("duration")
    @classmethod
    def _duration_positive(cls, value: RationalTime) -> RationalTime:
        if value <= ZERO:
            raise ValueError("duration must be positive")
        return value

    @field_validator("source_start")
    @classmethod
    def _source_start_not_negative(cls, value: RationalTime) -> RationalTime:
        if value < ZERO:
            raise ValueError("source_start must not be negative")
        return value

    @property
    def end(self) -> RationalTime:
        return self.offset + self.duration

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.offset, duration=self.duration)

    @property
    def placement(self) -> ClipPlacement:
        return ClipPlacement(
            clip_id=self.id,
            offset=self.offset,
            duration=self.duration,
            lane=self.lane,
        )

    @property
    def expected_content_type(self) -> str:
        """Content class implied by the lane: audio below zero, video otherwise."""
        return "audio" if self.lane < 0 else "video"

    def placed_at(self, offset: RationalTime, lane: int) -> Clip:
        """Return a copy of this clip at a new offset and lane."""
        return self.model_copy(update={"offset": offset, "lane": lane})


# =============================================================================
# PLACEMENT RESULTS
# =============================================================================


class ClipPlacement(BaseModel):
    """Where a clip sits: offset, duration and lane."""
    model_config = ConfigDict(frozen=True)

    clip_id: UUID
    offset: RationalTime
    duration: RationalTime
    lane: int

    @property
    def end(self) -> RationalTime:
        return self.offset + self.duration

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.offset, duration=self.duration)


class ClipShift(BaseModel):
    """A clip moved later by a ripple insert."""
    model_config = ConfigDict(frozen=True)

    clip_id: UUID
    lane: int
    original_offset: RationalTime
    new_offset: RationalTime

    @property
    def shift_amount(self) -> RationalTime:
        return self.new_offset - self.original_offset


class RippleScopeKind(str, Enum):
    """Which lanes a ripple insert pushes."""
    ALL = "all"
    SINGLE = "single"
    RANGE = "range"
    PRIMARY_ONLY = "primary_only"


class RippleScope(BaseModel):
    """
    Lane filter for ripple inserts.

    Use the constructors rather than building one by hand:
    RippleScope.all_lanes(), RippleScope.single(2),
    RippleScope.lane_range(-1, 3), RippleScope.primary_only().
    """
    model_config = ConfigDict(frozen=True)

    kind: RippleScopeKind = RippleScopeKind.PRIMARY_ONLY
    lane_min: int | None = None
    lane_max: int | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> RippleScope:
        if self.kind in (RippleScopeKind.SINGLE, RippleScopeKind.RANGE):
            if self.lane_min is None or self.lane_max is None:
                raise ValueError(f"{self.kind.value} scope needs lane bounds")
            if self.lane_min > self.lane_max:
                raise ValueError(
                    f"lane_min {self.lane_min} is greater than lane_max {self.lane_max}"
                )
        return self

    @classmethod
    def all_lanes(cls) -> RippleScope:
        return cls(kind=RippleScopeKind.ALL)

    @classmethod
    def single(cls, lane: int) -> RippleScope:
        return cls(kind=RippleScopeKind.SINGLE, lane_min=lane, lane_max=lane)

    @classmethod
    def lane_range(cls, lane_min: int, lane_max: int) -> RippleScope:
        """Both bounds inclusive."""
        return cls(kind=RippleScopeKind.RANGE, lane_min=lane_min, lane_max=lane_max)

    @classmethod
    def primary_only(cls) -> RippleScope:
        return cls(kind=RippleScopeKind.PRIMARY_ONLY)

    def includes(self, lane: int) -> bool:
        if self.kind == RippleScopeKind.ALL:
            return True
        if self.kind == RippleScopeKind.PRIMARY_ONLY:
            return lane == 0
        return self.lane_min <= lane <= self.lane_max


class RippleInsertResult(BaseModel):
    """
    Outcome of a ripple insert.

    `overlapping_clip_ids` lists clips on the insert lane that were not
    shifted but overlap the inserted clip, typically a clip that starts before
    the insertion point and runs past it. They are left where they are.
    """
    inserted_clip: ClipPlacement
    shifted_clips: list[ClipShift] = Field(default_factory=list)
    overlapping_clip_ids: list[UUID] = Field(default_factory=list)
