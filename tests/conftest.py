import pytest

from secuencia.operators.timeline_store import Timeline
from timeline_test_utils import make_clip


@pytest.fixture
def timeline() -> Timeline:
    """Empty timeline."""
    return Timeline(name="Scene 1 Assembly")


@pytest.fixture
def two_clip_timeline() -> Timeline:
    """Lane 0 holding [0s, 10s) and [10s, 20s)."""
    timeline = Timeline(name="Two Clips")
    timeline.append(make_clip(10, name="First"))
    timeline.append(make_clip(10, name="Second"))
    return timeline
