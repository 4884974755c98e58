import threading

from npat.services.games.timer import CountdownTimer


def _session(registry, code='ABCD'):
    return registry.create(code, 'Alice', 1, ['x'], None, f'sid-{code}')


def _timer_values(broadcast):
    return [payload['timer'] for payload in broadcast.named('timerValue')]


def test_ticks_count_up_and_expire(registry, timer, broadcast):
    session = _session(registry)
    handle = timer.start('ABCD')
    assert session.timer_handle == handle
    assert session.current_timer_value == 0

    for expected in range(1, 61):
        assert timer.tick('ABCD', handle) is True
        assert session.current_timer_value == expected
    assert timer.tick('ABCD', handle) is False
    assert session.current_timer_value == 0
    assert session.timer_handle is None
    values = _timer_values(broadcast)
    assert values == list(range(1, 61)) + [0]

    # Nothing more once expired
    assert timer.tick('ABCD', handle) is False
    assert len(_timer_values(broadcast)) == 61


def test_stop_without_timer_is_noop(registry, timer, broadcast):
    _session(registry)
    assert timer.stop('ABCD') is False
    assert timer.stop('NOPE') is False
    assert broadcast.events == []


def test_stop_emits_sixty_then_zero(registry, timer, broadcast):
    session = _session(registry)
    handle = timer.start('ABCD')
    timer.tick('ABCD', handle)
    broadcast.clear()

    assert timer.stop('ABCD') is True
    assert _timer_values(broadcast) == [60, 0]
    assert session.current_timer_value == 0
    assert session.timer_handle is None

    # A tick already in flight for the stopped handle does nothing
    assert timer.tick('ABCD', handle) is False
    assert _timer_values(broadcast) == [60, 0]
    assert session.current_timer_value == 0
    assert timer.stop('ABCD') is False


def test_restart_supersedes_previous_countdown(registry, timer, broadcast):
    session = _session(registry)
    old = timer.start('ABCD')
    timer.tick('ABCD', old)
    timer.tick('ABCD', old)
    new = timer.start('ABCD')
    assert new != old
    assert session.current_timer_value == 0
    assert timer.tick('ABCD', old) is False
    assert timer.tick('ABCD', new) is True
    assert session.current_timer_value == 1


def test_timers_are_per_room(registry, timer, broadcast):
    first = _session(registry, 'ABCD')
    second = _session(registry, 'WXYZ')
    a = timer.start('ABCD')
    timer.start('WXYZ')
    timer.stop('WXYZ')
    assert timer.tick('ABCD', a) is True
    assert first.current_timer_value == 1
    assert second.current_timer_value == 0
    codes = [code for code, name, _ in broadcast.events if name == 'timerValue']
    assert codes == ['WXYZ', 'WXYZ', 'ABCD']


def test_discarded_session_stops_ticking(registry, timer, broadcast):
    _session(registry)
    handle = timer.start('ABCD')
    registry.remove('sid-ABCD')
    assert timer.tick('ABCD', handle) is False
    assert broadcast.events == []


def test_cancel_is_silent(registry, timer, broadcast):
    session = _session(registry)
    handle = timer.start('ABCD')
    with session.lock:
        timer.cancel(session)
    assert session.timer_handle is None
    assert timer.tick('ABCD', handle) is False
    assert broadcast.events == []


def test_spawned_loop_runs_until_expiry(registry, broadcast):
    sleeps = []
    timer = CountdownTimer(
        registry,
        broadcast,
        tick_seconds=1,
        limit=4,
        spawn=lambda target, *args: target(*args),
        sleep=sleeps.append,
    )
    session = _session(registry)
    timer.start('ABCD')
    assert _timer_values(broadcast) == [1, 2, 3, 0]
    assert sleeps == [1, 1, 1, 1]
    assert session.timer_handle is None


def test_stop_races_with_ticking(registry, broadcast):
    limit = 1_000_000
    timer = CountdownTimer(registry, broadcast, limit=limit)
    session = _session(registry)
    handle = timer.start('ABCD')
    gate = threading.Barrier(5)
    stopped = []

    def ticker():
        gate.wait()
        while timer.tick('ABCD', handle):
            pass

    def stopper():
        gate.wait()
        stopped.append(timer.stop('ABCD'))

    threads = [threading.Thread(target=ticker)] + [threading.Thread(target=stopper) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert stopped.count(True) == 1
    values = _timer_values(broadcast)
    # Ticks count up without gaps, then the single stop shows the last second and resets
    assert values[:-2] == list(range(1, len(values) - 1))
    assert values[-2:] == [limit - 1, 0]
    assert session.timer_handle is None
    assert session.current_timer_value == 0
