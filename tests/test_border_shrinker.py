import pytest

from uhc.socketio_handlers.border_shrinker import BorderShrinker, ShrinkSchedule
from uhc.socketio_handlers.timeline import Timeline

from .conftest import RecordingWorld


def test_size_at_endpoints():
    schedule = ShrinkSchedule(start_size=500, end_size=100, duration_seconds=120)
    assert schedule.size_at(0) == 500
    assert schedule.size_at(120) == 100
    assert schedule.size_at(500) == 100


def test_size_is_monotonic():
    schedule = ShrinkSchedule(start_size=500, end_size=100, duration_seconds=120)
    sizes = [schedule.size_at(t) for t in range(0, 121)]
    assert all(a >= b for a, b in zip(sizes, sizes[1:]))


def test_zero_duration_jumps_to_end():
    schedule = ShrinkSchedule(start_size=500, end_size=100, duration_seconds=0)
    assert schedule.size_at(0) == 100


def test_half_way_size():
    schedule = ShrinkSchedule(start_size=500, end_size=100, duration_seconds=120)
    assert schedule.size_at(60) == pytest.approx(300)


def test_shrinker_driven_by_timeline():
    world = RecordingWorld()
    timeline = Timeline()
    shrinker = BorderShrinker(world, 'world', ShrinkSchedule(500, 100, 120), lambda: True)
    timeline.schedule_repeating(20, shrinker.tick)

    timeline.advance(60 * 20)
    assert world.borders['world'].size == pytest.approx(300)

    timeline.advance(60 * 20)
    assert world.borders['world'].size == pytest.approx(100)
    assert 'Border shrink complete.' in world.messages
    assert timeline.pending() == []


def test_shrinker_stops_when_match_not_running():
    world = RecordingWorld()
    shrinker = BorderShrinker(world, 'world', ShrinkSchedule(500, 100, 120), lambda: False)

    assert shrinker.tick() is False
    assert world.calls == []


def test_shrinker_survives_write_failure():
    world = RecordingWorld()
    world.failing.add('set_border_size')
    shrinker = BorderShrinker(world, 'world', ShrinkSchedule(500, 100, 2), lambda: True)

    assert shrinker.tick() is True
    assert shrinker.tick() is False
