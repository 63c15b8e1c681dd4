import pytest
from uuid import UUID

from secuencia.models.errors import NoAvailableLaneError
from secuencia.models.timeline_models import TimeRange
from secuencia.operators.lane_allocator import candidate_lanes, find_available_lane
from secuencia.operators.lane_index import LaneIndex
from timeline_test_utils import make_clip, seconds


def placed(duration: int, offset: int, lane: int = 0, **kwargs):
    return make_clip(duration, **kwargs).placed_at(seconds(offset), lane)


def window(start: int, end: int) -> TimeRange:
    return TimeRange.from_start_end(seconds(start), seconds(end))


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def busy_index() -> LaneIndex:
    """Lane 0 holds [0, 10) and [10, 20); lane 2 holds [5, 15)."""
    return LaneIndex(
        [
            placed(10, 10, lane=0),
            placed(10, 0, lane=0),
            placed(10, 5, lane=2),
        ]
    )


# =============================================================================
# LANE INDEX
# =============================================================================


class TestLaneIndex:
    def test_clips_on_are_ordered_by_offset(self, busy_index):
        offsets = [clip.offset for clip in busy_index.clips_on(0)]

        assert offsets == [seconds(0), seconds(10)]

    def test_ties_are_broken_by_id(self):
        low = placed(5, 0, id=UUID(int=1))
        high = placed(5, 0, id=UUID(int=2))
        index = LaneIndex([high, low])

        assert [clip.id for clip in index.clips_on(0)] == [low.id, high.id]

    def test_unknown_lane_is_empty(self, busy_index):
        assert busy_index.clips_on(7) == []
        assert busy_index.is_range_free(7, window(0, 100))

    def test_lanes(self, busy_index):
        assert busy_index.lanes() == [0, 2]
        assert len(busy_index) == 3

    def test_overlap_is_half_open(self, busy_index):
        assert busy_index.clips_overlapping(0, window(20, 30)) == []
        assert busy_index.is_range_free(2, window(15, 16))
        assert busy_index.is_range_free(2, window(0, 5))
        assert not busy_index.is_range_free(2, window(14, 15))

    def test_overlap_spanning_two_clips(self, busy_index):
        overlapping = busy_index.clips_overlapping(0, window(9, 11))

        assert [clip.offset for clip in overlapping] == [seconds(0), seconds(10)]

    def test_long_clip_reaching_far_into_range(self):
        long_clip = placed(100, 0)
        short_clip = placed(1, 10)
        index = LaneIndex([long_clip, short_clip])

        assert index.clips_overlapping(0, window(50, 60)) == [long_clip]
        assert index.first_conflict(0, window(50, 60)) == long_clip

    def test_discard(self, busy_index):
        first = busy_index.clips_on(0)[0]
        busy_index.discard(first)

        assert busy_index.is_range_free(0, window(0, 10))
        assert len(busy_index.clips_on(0)) == 1

    def test_discard_last_clip_drops_lane(self, busy_index):
        busy_index.discard(busy_index.clips_on(2)[0])

        assert busy_index.lanes() == [0]

    def test_discard_longest_clip_keeps_lookups_correct(self):
        long_clip = placed(100, 0)
        late_clip = placed(5, 200)
        index = LaneIndex([long_clip, late_clip])

        index.discard(long_clip)

        assert index.clips_overlapping(0, window(150, 210)) == [late_clip]
        assert index.is_range_free(0, window(0, 150))

    def test_discard_unknown_clip_is_ignored(self, busy_index):
        busy_index.discard(placed(1, 50))

        assert len(busy_index) == 3

    def test_returned_lists_are_copies(self, busy_index):
        busy_index.clips_on(0).clear()

        assert len(busy_index.clips_on(0)) == 2


# =============================================================================
# LANE ALLOCATOR
# =============================================================================


class TestLaneAllocator:
    def test_candidate_order_alternates(self):
        assert list(candidate_lanes(0, limit=3)) == [0, 1, -1, 2, -2]
        assert list(candidate_lanes(4, limit=2)) == [4, 5, 3]

    def test_empty_timeline_uses_starting_lane(self):
        assert find_available_lane(LaneIndex(), window(0, 5), starting_from=0) == 0

    def test_prefers_lane_above(self):
        index = LaneIndex([placed(10, 0, lane=0)])

        assert find_available_lane(index, window(5, 15), starting_from=0) == 1

    def test_falls_back_to_lane_below(self):
        index = LaneIndex([placed(10, 0, lane=0), placed(10, 0, lane=1)])

        assert find_available_lane(index, window(5, 15), starting_from=0) == -1

    def test_searches_around_starting_lane(self):
        index = LaneIndex([placed(10, 0, lane=2), placed(10, 0, lane=3)])

        assert find_available_lane(index, window(0, 10), starting_from=2) == 1

    def test_touching_clip_leaves_lane_free(self):
        index = LaneIndex([placed(10, 0, lane=0)])

        assert find_available_lane(index, window(10, 20), starting_from=0) == 0

    def test_search_is_deterministic(self):
        index = LaneIndex([placed(10, 0, lane=0), placed(10, 0, lane=1)])

        lanes = {find_available_lane(index, window(0, 10)) for _ in range(5)}

        assert lanes == {-1}

    def test_search_bound_raises(self):
        index = LaneIndex([placed(10, 0, lane=lane) for lane in (-1, 0, 1)])

        with pytest.raises(NoAvailableLaneError) as exc_info:
            find_available_lane(index, window(0, 10), starting_from=0, limit=2)

        assert exc_info.value.searched == 3
        assert exc_info.value.starting_from == 0
        assert exc_info.value.at == seconds(0)
        assert exc_info.value.duration == seconds(10)

    def test_lane_at_bound_edge_is_found(self):
        index = LaneIndex([placed(10, 0, lane=lane) for lane in (-1, 0, 1)])

        assert find_available_lane(index, window(0, 10), starting_from=0, limit=3) == 2
