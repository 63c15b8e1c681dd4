"""
Timeline errors.

Every failure raised by the timeline core derives from TimelineError, so
callers can catch the whole family in one place. Errors carry the values that
produced them (clip ids, lanes, requested ranges) so a caller can decide how
to remediate: retry on another lane, ripple, or abort.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from secuencia.models.timeline_models import RationalTime, TimeRange


class TimelineError(Exception):
    """Base exception for timeline operations."""
    pass


# =============================================================================
# TIME ERRORS
# =============================================================================


class InvalidDenominatorError(TimelineError, ValueError):
    """Raised when a rational time is built with a non-positive denominator."""
    def __init__(self, denominator: int):
        self.denominator = denominator
        super().__init__(f"Denominator must be positive, got {denominator}")


class TimeParseError(TimelineError, ValueError):
    """Raised when a canonical time string cannot be parsed."""
    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"Cannot parse time {text!r}: {reason}")


class ArithmeticOverflowError(TimelineError, OverflowError):
    """Raised when a rational time result does not fit its integer fields."""
    def __init__(self, operation: str, numerator: int, denominator: int):
        self.operation = operation
        self.numerator = numerator
        self.denominator = denominator
        super().__init__(
            f"Overflow in {operation}: {numerator}/{denominator} "
            f"does not fit a 64-bit numerator and 32-bit denominator"
        )


# =============================================================================
# PLACEMENT ERRORS
# =============================================================================


class ClipNotFoundError(TimelineError):
    """Raised when a clip id is not present on the timeline."""
    def __init__(self, clip_id: UUID):
        self.clip_id = clip_id
        super().__init__(f"Clip not found: {clip_id}")


class InvalidPlacementError(TimelineError):
    """
    Raised when a clip cannot be placed where requested.

    For collisions, `conflicting_clip_id`, `lane` and `requested_range`
    describe the clash.
    """
    def __init__(
        self,
        reason: str,
        clip_id: UUID | None = None,
        lane: int | None = None,
        requested_range: TimeRange | None = None,
        conflicting_clip_id: UUID | None = None,
    ):
        self.reason = reason
        self.clip_id = clip_id
        self.lane = lane
        self.requested_range = requested_range
        self.conflicting_clip_id = conflicting_clip_id
        super().__init__(f"Invalid placement: {reason}")


class NoAvailableLaneError(TimelineError):
    """
    Raised when no lane is free for a range.

    This happens when auto-assignment is disabled and the preferred lane is
    occupied (`conflicting_clip_id` names the occupant), or when the outward
    lane search runs past its bound.
    """
    def __init__(
        self,
        at: RationalTime,
        duration: RationalTime,
        starting_from: int,
        searched: int | None = None,
        conflicting_clip_id: UUID | None = None,
    ):
        self.at = at
        self.duration = duration
        self.starting_from = starting_from
        self.searched = searched
        self.conflicting_clip_id = conflicting_clip_id
        message = (
            f"No available lane at {at} for clip of duration {duration} "
            f"(starting from lane {starting_from}"
        )
        if searched is not None:
            message += f", searched {searched} lanes"
        if conflicting_clip_id is not None:
            message += f", occupied by clip {conflicting_clip_id}"
        super().__init__(message + ")")


# =============================================================================
# PERSISTENCE ERRORS
# =============================================================================


class TimelineNotFoundError(TimelineError):
    """Raised when a stored timeline is not found."""
    def __init__(self, timeline_id: UUID):
        self.timeline_id = timeline_id
        super().__init__(f"Timeline not found: {timeline_id}")


class VersionConflictError(TimelineError):
    """
    Raised when optimistic locking fails.

    This occurs when the expected_version doesn't match the stored version,
    indicating that another writer saved the timeline in between.
    """
    def __init__(self, expected_version: int, current_version: int):
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Version conflict: expected {expected_version}, "
            f"but current version is {current_version}. "
            f"Please reload and retry."
        )


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================


class InvalidAssetReferenceError(TimelineError):
    """Raised when a clip's asset has no external reference to export with."""
    def __init__(self, asset_ref: UUID, reason: str):
        self.asset_ref = asset_ref
        self.reason = reason
        super().__init__(f"Invalid asset reference {asset_ref}: {reason}")
