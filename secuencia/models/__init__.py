from .errors import (
    ArithmeticOverflowError,
    ClipNotFoundError,
    InvalidAssetReferenceError,
    InvalidDenominatorError,
    InvalidPlacementError,
    NoAvailableLaneError,
    TimelineError,
    TimelineNotFoundError,
    TimeParseError,
    VersionConflictError,
)
from .timeline_models import (
    ZERO,
    Clip,
    ClipPlacement,
    ClipShift,
    FrameRate,
    RationalTime,
    RippleInsertResult,
    RippleScope,
    RippleScopeKind,
    TimeRange,
)
from .timing_models import TimingData, TimingMetadata, TimingSegment

__all__ = [
    "ArithmeticOverflowError",
    "Clip",
    "ClipNotFoundError",
    "ClipPlacement",
    "ClipShift",
    "FrameRate",
    "InvalidAssetReferenceError",
    "InvalidDenominatorError",
    "InvalidPlacementError",
    "NoAvailableLaneError",
    "RationalTime",
    "RippleInsertResult",
    "RippleScope",
    "RippleScopeKind",
    "TimeParseError",
    "TimeRange",
    "TimelineError",
    "TimelineNotFoundError",
    "TimingData",
    "TimingMetadata",
    "TimingSegment",
    "VersionConflictError",
    "ZERO",
]
