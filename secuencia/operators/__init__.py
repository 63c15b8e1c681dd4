from .lane_allocator import candidate_lanes, find_available_lane
from .lane_index import LaneIndex
from .ripple_engine import RipplePlan, plan_ripple_insert, select_ripple_candidates
from .timeline_store import Timeline

__all__ = [
    "LaneIndex",
    "RipplePlan",
    "Timeline",
    "candidate_lanes",
    "find_available_lane",
    "plan_ripple_insert",
    "select_ripple_candidates",
]
