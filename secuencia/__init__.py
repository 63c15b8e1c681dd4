from .models import (
    ZERO,
    ArithmeticOverflowError,
    Clip,
    ClipNotFoundError,
    ClipPlacement,
    ClipShift,
    FrameRate,
    InvalidAssetReferenceError,
    InvalidDenominatorError,
    InvalidPlacementError,
    NoAvailableLaneError,
    RationalTime,
    RippleInsertResult,
    RippleScope,
    TimeParseError,
    TimeRange,
    TimelineError,
)
from .operators.timeline_store import Timeline

__version__ = "0.1.0"

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
    "TimeParseError",
    "TimeRange",
    "Timeline",
    "TimelineError",
    "ZERO",
]
