"""
Tests for the Timeline store: placement, removal, moves and queries.
"""

import random
from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from secuencia.models.errors import (
    ClipNotFoundError,
    InvalidPlacementError,
    NoAvailableLaneError,
)
from secuencia.models.timeline_models import ZERO, Clip, TimeRange
from secuencia.operators.timeline_store import Timeline
from timeline_test_utils import make_clip, seconds, span

LONG_AGO = datetime(2000, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# APPEND AND DERIVED PROPERTIES
# =============================================================================


class TestAppend:
    def test_empty_timeline(self, timeline):
        assert len(timeline) == 0
        assert timeline.duration == ZERO
        assert timeline.lane_range is None
        assert timeline.sorted_clips() == []

    def test_append_places_clips_back_to_back(self, timeline):
        first = timeline.append(make_clip(10))
        second = timeline.append(make_clip(5))

        assert (first.offset, first.lane) == (seconds(0), 0)
        assert (second.offset, second.lane) == (seconds(10), 0)
        assert timeline.duration == seconds(15)

    def test_append_forces_primary_lane(self, timeline):
        placement = timeline.append(make_clip(10, lane=3, offset=seconds(99)))

        assert placement.lane == 0
        assert placement.offset == ZERO

    def test_duration_ignores_connected_lanes(self, timeline):
        timeline.append(make_clip(10))
        timeline.insert(make_clip(30), at=seconds(5), lane=1)
        timeline.insert(make_clip(30), at=seconds(5), lane=-1)

        assert timeline.duration == seconds(10)
        assert timeline.lane_range == (-1, 1)

    def test_append_mixed_denominators(self, timeline):
        timeline.append(Clip(asset_ref=uuid4(), duration=seconds(1001, 30000)))
        placement = timeline.append(Clip(asset_ref=uuid4(), duration=seconds(1, 2)))

        assert placement.offset.to_canonical_string() == "1001/30000s"
        assert timeline.duration.to_canonical_string() == "16001/30000s"

    def test_callers_clip_is_left_alone(self, timeline):
        timeline.append(make_clip(10))
        clip = make_clip(5)

        timeline.append(clip)

        assert clip.offset == ZERO
        assert timeline.get_clip(clip.id).offset == seconds(10)

    def test_duplicate_id_is_rejected(self, timeline):
        clip = make_clip(10)
        timeline.append(clip)

        with pytest.raises(InvalidPlacementError) as exc_info:
            timeline.append(clip)

        assert exc_info.value.clip_id == clip.id
        assert len(timeline) == 1

    def test_clip_requires_positive_duration(self):
        with pytest.raises(ValidationError):
            make_clip(0)
        with pytest.raises(ValidationError):
            make_clip(-5)

    def test_clip_rejects_negative_source_start(self):
        with pytest.raises(ValidationError):
            make_clip(5, source_start=seconds(-1))

    @pytest.mark.parametrize(
        "place",
        [
            lambda t, c: t.append(c),
            lambda t, c: t.insert(c, at=seconds(0)),
            lambda t, c: t.insert_unchecked(c, at=seconds(0)),
            lambda t, c: t.insert_auto_lane(c, at=seconds(0)),
            lambda t, c: t.ripple_insert(c, at=seconds(0)),
        ],
        ids=["append", "insert", "insert_unchecked", "insert_auto_lane", "ripple_insert"],
    )
    @pytest.mark.parametrize("duration", [ZERO, seconds(-3)])
    def test_store_rejects_non_positive_duration(self, timeline, place, duration):
        # model_copy skips field validators, so the store has to check too.
        clip = make_clip(1).model_copy(update={"duration": duration})

        with pytest.raises(InvalidPlacementError) as exc_info:
            place(timeline, clip)

        assert exc_info.value.clip_id == clip.id
        assert len(timeline) == 0

    def test_container_protocol(self, two_clip_timeline):
        first = two_clip_timeline.sorted_clips()[0]

        assert first.id in two_clip_timeline
        assert uuid4() not in two_clip_timeline
        assert [clip.id for clip in two_clip_timeline] == [
            clip.id for clip in two_clip_timeline.sorted_clips()
        ]


# =============================================================================
# INSERT
# =============================================================================


class TestInsert:
    def test_checked_insert(self, timeline):
        placement = timeline.insert(make_clip(5), at=seconds(3), lane=2)

        assert span(placement) == (seconds(3), seconds(8))
        assert placement.lane == 2

    def test_checked_insert_reports_collision(self, two_clip_timeline):
        blocker = two_clip_timeline.clips_on(0)[0]
        clip = make_clip(4)

        with pytest.raises(InvalidPlacementError) as exc_info:
            two_clip_timeline.insert(clip, at=seconds(2), lane=0)

        error = exc_info.value
        assert error.conflicting_clip_id == blocker.id
        assert error.clip_id == clip.id
        assert error.lane == 0
        assert error.requested_range == TimeRange(start=seconds(2), duration=seconds(4))
        assert clip.id not in two_clip_timeline

    def test_touching_clips_do_not_collide(self, two_clip_timeline):
        placement = two_clip_timeline.insert(make_clip(5), at=seconds(20))

        assert placement.offset == seconds(20)

    def test_unchecked_insert_allows_overlap(self, two_clip_timeline):
        clip = make_clip(4)
        first = two_clip_timeline.clips_on(0)[0]

        two_clip_timeline.insert_unchecked(clip, at=seconds(2))

        assert two_clip_timeline.find_overlaps() == [(first.id, clip.id)]

    def test_neighbours_with_large_coprime_denominators(self, timeline):
        # Both clips are representable, but the lane lookback bound is not.
        first = timeline.insert(
            Clip(asset_ref=uuid4(), duration=seconds(1, 2147483647)), at=ZERO
        )
        second = timeline.insert(
            Clip(asset_ref=uuid4(), duration=seconds(1, 2147483646)),
            at=seconds(1, 2147483646),
        )

        assert [c.id for c in timeline.clips_on(0)] == [first.clip_id, second.clip_id]
        assert timeline.find_available_lane(second.time_range) == 1
        assert timeline.clips_in_range(seconds(1, 2147483646), second.end) == [
            timeline.get_clip(second.clip_id)
        ]
        with pytest.raises(InvalidPlacementError) as exc_info:
            timeline.insert(
                Clip(asset_ref=uuid4(), duration=seconds(1, 2147483646)), at=ZERO
            )
        assert exc_info.value.conflicting_clip_id == first.clip_id

    def test_no_overlap_after_checked_placements(self, timeline):
        rng = random.Random(7)
        for _ in range(200):
            try:
                timeline.insert(
                    make_clip(rng.randint(1, 8)),
                    at=seconds(rng.randint(0, 120)),
                    lane=rng.randint(-1, 1),
                )
            except InvalidPlacementError:
                pass

        assert timeline.find_overlaps() == []
        for lane in (-1, 0, 1):
            clips = timeline.clips_on(lane)
            for a in clips:
                for b in clips:
                    if a.id != b.id:
                        assert a.offset >= b.end or b.offset >= a.end


# =============================================================================
# AUTO LANE
# =============================================================================


class TestInsertAutoLane:
    def test_preferred_lane_when_free(self, timeline):
        placement = timeline.insert_auto_lane(make_clip(10), at=seconds(5), preferred_lane=2)

        assert placement.lane == 2

    def test_conflict_moves_to_next_lane(self, timeline):
        timeline.insert(make_clip(10), at=seconds(0), lane=0)

        placement = timeline.insert_auto_lane(
            make_clip(10), at=seconds(5), preferred_lane=0, auto_assign=True
        )

        assert placement.lane == 1
        assert placement.offset == seconds(5)

    def test_conflict_without_auto_assign_fails(self, timeline):
        blocker = timeline.insert(make_clip(10), at=seconds(0), lane=0)
        clip = make_clip(10)

        with pytest.raises(NoAvailableLaneError) as exc_info:
            timeline.insert_auto_lane(clip, at=seconds(5), auto_assign=False)

        assert exc_info.value.starting_from == 0
        assert exc_info.value.conflicting_clip_id == blocker.clip_id
        assert str(blocker.clip_id) in str(exc_info.value)
        assert clip.id not in timeline

    def test_stacking_alternates_lanes(self, timeline):
        lanes = [
            timeline.insert_auto_lane(make_clip(10), at=seconds(0)).lane
            for _ in range(5)
        ]

        assert lanes == [0, 1, -1, 2, -2]

    def test_search_limit_is_enforced(self):
        timeline = Timeline(name="Tight", lane_search_limit=1)
        timeline.insert(make_clip(10), at=seconds(0))

        with pytest.raises(NoAvailableLaneError):
            timeline.insert_auto_lane(make_clip(10), at=seconds(0))

    def test_find_available_lane(self, two_clip_timeline):
        time_range = TimeRange(start=seconds(5), duration=seconds(1))

        assert two_clip_timeline.find_available_lane(time_range) == 1
        assert two_clip_timeline.find_available_lane(time_range) == 1
        assert two_clip_timeline.find_available_lane(time_range, starting_from=-3) == -3


# =============================================================================
# MOVE AND REMOVE
# =============================================================================


class TestMoveAndRemove:
    def test_remove(self, two_clip_timeline):
        first = two_clip_timeline.clips_on(0)[0]

        assert two_clip_timeline.remove(first.id) is True
        assert first.id not in two_clip_timeline
        assert two_clip_timeline.get_placement(first.id) is None
        assert two_clip_timeline.remove(first.id) is False

    def test_remove_frees_the_range(self, two_clip_timeline):
        first = two_clip_timeline.clips_on(0)[0]
        two_clip_timeline.remove(first.id)

        placement = two_clip_timeline.insert(make_clip(10), at=seconds(0))

        assert placement.offset == ZERO

    def test_move(self, two_clip_timeline):
        second = two_clip_timeline.clips_on(0)[1]

        placement = two_clip_timeline.move(second.id, to=seconds(30), lane=1)

        assert (placement.offset, placement.lane) == (seconds(30), 1)
        assert two_clip_timeline.clips_on(0)[-1].id != second.id
        assert two_clip_timeline.clips_on(1)[0].id == second.id

    def test_move_within_own_range(self, two_clip_timeline):
        second = two_clip_timeline.clips_on(0)[1]

        placement = two_clip_timeline.move(second.id, to=seconds(12))

        assert span(placement) == (seconds(12), seconds(22))

    def test_move_collision_leaves_clip_in_place(self, two_clip_timeline):
        first, second = two_clip_timeline.clips_on(0)

        with pytest.raises(InvalidPlacementError) as exc_info:
            two_clip_timeline.move(second.id, to=seconds(5))

        assert exc_info.value.conflicting_clip_id == first.id
        assert two_clip_timeline.get_placement(second.id).offset == seconds(10)
        assert len(two_clip_timeline.clips_on(0)) == 2

    def test_move_unknown_clip(self, timeline):
        missing = uuid4()

        with pytest.raises(ClipNotFoundError) as exc_info:
            timeline.move(missing, to=seconds(1))

        assert exc_info.value.clip_id == missing

    def test_mutations_touch_modified_at(self, two_clip_timeline):
        first = two_clip_timeline.clips_on(0)[0]
        for mutate in (
            lambda: two_clip_timeline.append(make_clip(1)),
            lambda: two_clip_timeline.insert(make_clip(1), at=seconds(100), lane=4),
            lambda: two_clip_timeline.move(first.id, to=seconds(200)),
            lambda: two_clip_timeline.remove(first.id),
        ):
            two_clip_timeline.modified_at = LONG_AGO
            mutate()
            assert two_clip_timeline.modified_at > LONG_AGO

    def test_failed_remove_does_not_touch(self, timeline):
        timeline.modified_at = LONG_AGO

        timeline.remove(uuid4())

        assert timeline.modified_at == LONG_AGO


# =============================================================================
# QUERIES
# =============================================================================


class TestQueries:
    def test_get_placement(self, two_clip_timeline):
        second = two_clip_timeline.clips_on(0)[1]

        placement = two_clip_timeline.get_placement(second.id)

        assert placement.clip_id == second.id
        assert span(placement) == (seconds(10), seconds(20))
        assert two_clip_timeline.get_placement(uuid4()) is None

    def test_clips_in_range_is_half_open(self, two_clip_timeline):
        first, second = two_clip_timeline.clips_on(0)

        assert two_clip_timeline.clips_in_range(seconds(0), seconds(10)) == [first]
        assert two_clip_timeline.clips_in_range(seconds(9), seconds(11)) == [first, second]
        assert two_clip_timeline.clips_in_range(seconds(20), seconds(30)) == []

    def test_clips_in_range_spans_lanes(self, two_clip_timeline):
        overlay = two_clip_timeline.insert(make_clip(4), at=seconds(8), lane=1)

        found = two_clip_timeline.placements_in_range(seconds(9), seconds(10))

        assert [p.clip_id for p in found][-1] == overlay.clip_id
        assert len(found) == 2

    def test_empty_range(self, two_clip_timeline):
        assert two_clip_timeline.clips_in_range(seconds(5), seconds(5)) == []
        assert two_clip_timeline.clips_in_range(seconds(6), seconds(5)) == []

    def test_sorted_clips_breaks_ties_by_lane(self, timeline):
        timeline.insert(make_clip(5), at=seconds(0), lane=2)
        timeline.insert(make_clip(5), at=seconds(0), lane=-1)
        timeline.insert(make_clip(5), at=seconds(0), lane=0)
        timeline.insert(make_clip(1), at=seconds(7), lane=-1)

        ordered = [(clip.offset, clip.lane) for clip in timeline.sorted_clips()]

        assert ordered == [
            (seconds(0), -1),
            (seconds(0), 0),
            (seconds(0), 2),
            (seconds(7), -1),
        ]

    def test_placement_views(self, two_clip_timeline):
        assert [p.offset for p in two_clip_timeline.all_placements()] == [seconds(0), seconds(10)]
        assert [p.end for p in two_clip_timeline.placements_on(0)] == [seconds(10), seconds(20)]
        assert two_clip_timeline.placements_on(5) == []

    def test_expected_content_type(self, timeline):
        audio = timeline.insert(make_clip(5), at=seconds(0), lane=-1)
        video = timeline.insert(make_clip(5), at=seconds(0), lane=1)

        assert timeline.get_clip(audio.clip_id).expected_content_type == "audio"
        assert timeline.get_clip(video.clip_id).expected_content_type == "video"


class TestFromClips:
    def test_restores_placements(self):
        clips = [
            make_clip(10).placed_at(seconds(0), 0),
            make_clip(10).placed_at(seconds(5), 0),
            make_clip(3).placed_at(seconds(1), 2),
        ]

        timeline = Timeline.from_clips(name="Restored", clips=clips, modified_at=LONG_AGO)

        assert len(timeline) == 3
        assert timeline.modified_at == LONG_AGO
        assert timeline.lane_range == (0, 2)
        assert len(timeline.find_overlaps()) == 1

    def test_rejects_duplicate_ids(self):
        clip = make_clip(10)

        with pytest.raises(InvalidPlacementError):
            Timeline.from_clips(name="Broken", clips=[clip, clip])
