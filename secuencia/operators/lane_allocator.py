import logging

from secuencia.config import LANE_SEARCH_LIMIT
from secuencia.models.errors import NoAvailableLaneError
from secuencia.models.timeline_models import TimeRange
from secuencia.operators.lane_index import LaneIndex

logger = logging.getLogger(__name__)


def candidate_lanes(starting_from: int, limit: int = LANE_SEARCH_LIMIT):
    """
    Yield lanes in search order: the starting lane, then +1, -1, +2, -2, ...

    Distances run from 1 up to limit - 1.
    """
    yield starting_from
    for distance in range(1, limit):
        yield starting_from + distance
        yield starting_from - distance


def find_available_lane(
    index: LaneIndex,
    time_range: TimeRange,
    starting_from: int = 0,
    limit: int = LANE_SEARCH_LIMIT,
) -> int:
    """
    Find the lane closest to `starting_from` that is free over `time_range`.

    The search alternates above and below the starting lane with increasing
    distance, preferring the lane above on ties. It reads the index only, so
    repeated calls against an unchanged timeline return the same lane.

    Raises:
        NoAvailableLaneError: If every lane within `limit` is occupied
    """
    searched = 0
    for lane in candidate_lanes(starting_from, limit):
        searched += 1
        if index.is_range_free(lane, time_range):
            return lane

    logger.warning(
        f"Lane search exhausted after {searched} lanes from {starting_from} "
        f"for range {time_range}"
    )
    raise NoAvailableLaneError(
        at=time_range.start,
        duration=time_range.duration,
        starting_from=starting_from,
        searched=searched,
    )
