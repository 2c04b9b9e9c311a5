from uhc.socketio_handlers.timeline import Timeline, ticks_from_minutes, ticks_from_seconds


def test_tick_helpers():
    assert ticks_from_seconds(1) == 20
    assert ticks_from_minutes(5) == 6000


def test_schedule_once_fires_on_due_tick():
    timeline = Timeline()
    fired = []
    timeline.schedule_once(3, lambda: fired.append(timeline.current_tick))

    timeline.advance(2)
    assert fired == []
    timeline.tick()
    assert fired == [3]
    timeline.advance(10)
    assert fired == [3]


def test_zero_delay_fires_next_tick():
    timeline = Timeline()
    fired = []
    timeline.schedule_once(0, lambda: fired.append(True))
    timeline.tick()
    assert fired == [True]


def test_repeating_stops_on_falsy_result():
    timeline = Timeline()
    count = []

    def step():
        count.append(timeline.current_tick)
        return len(count) < 3

    timeline.schedule_repeating(20, step)
    timeline.advance(200)

    assert count == [20, 40, 60]
    assert timeline.pending() == []


def test_cancel_suppresses_firing():
    timeline = Timeline()
    fired = []
    task = timeline.schedule_once(5, lambda: fired.append(True))
    timeline.cancel(task)
    timeline.advance(10)
    assert fired == []


def test_callback_can_cancel_later_task_in_same_tick():
    timeline = Timeline()
    fired = []
    second = None

    def first():
        fired.append('first')
        timeline.cancel(second)

    timeline.schedule_once(1, first)
    second = timeline.schedule_once(1, lambda: fired.append('second'))
    timeline.tick()

    assert fired == ['first']


def test_failing_callback_is_dropped_and_loop_continues():
    timeline = Timeline()
    fired = []

    def boom():
        raise RuntimeError('boom')

    timeline.schedule_repeating(1, boom)
    timeline.schedule_once(2, lambda: fired.append(True))
    timeline.advance(5)

    assert fired == [True]
    assert timeline.pending() == []


def test_tasks_fire_in_due_order():
    timeline = Timeline()
    fired = []
    timeline.schedule_once(2, lambda: fired.append('b'))
    timeline.schedule_once(1, lambda: fired.append('a'))
    timeline.advance(2)
    assert fired == ['a', 'b']
