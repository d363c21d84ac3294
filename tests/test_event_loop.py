import socket
import threading
import time

import pytest

from evloopkit.channel import Channel
from evloopkit.event_loop import EventLoop, get_event_loop_of_current_thread


@pytest.fixture
def loop():
    lp = EventLoop()
    yield lp
    lp.close()


def _start_loop_thread(holder, ready):
    def worker():
        lp = EventLoop()
        holder["loop"] = lp
        holder["tid"] = threading.get_ident()
        holder["registered"] = get_event_loop_of_current_thread() is lp
        ready.set()
        lp.loop()
        holder["iteration"] = lp.iteration
        holder["queue_size"] = lp.queue_size()
        lp.close()
        holder["closed"] = True

    t = threading.Thread(target=worker, daemon=True)
    t.start()
    return t


def _started_loop(holder, ready):
    t = _start_loop_thread(holder, ready)
    assert ready.wait(5)
    lp: EventLoop = holder["loop"]
    return t, lp


def test_current_thread_loop_registered_and_cleared():
    lp = EventLoop()
    assert get_event_loop_of_current_thread() is lp
    lp.close()
    assert get_event_loop_of_current_thread() is None


def test_second_loop_in_thread_raises(loop):
    with pytest.raises(RuntimeError):
        EventLoop()
    assert get_event_loop_of_current_thread() is loop


def test_run_after_quit_stops_loop(loop):
    loop.run_after(0.01, loop.quit)
    loop.loop()
    assert loop.iteration >= 1


def test_run_in_loop_in_own_thread_runs_immediately(loop):
    calls = []
    loop.run_in_loop(lambda: calls.append("ran"))
    assert calls == ["ran"]
    assert loop.queue_size() == 0


def test_queue_in_loop_runs_after_poll(loop):
    calls = []
    loop.queue_in_loop(lambda: calls.append("ran"))
    assert calls == []
    assert loop.queue_size() == 1
    loop.queue_in_loop(loop.quit)
    loop.wakeup()
    loop.loop()
    assert calls == ["ran"]
    assert loop.queue_size() == 0


def test_run_every_repeats(loop):
    count = []

    def tick():
        count.append(1)
        if len(count) == 3:
            loop.quit()

    loop.run_every(0.01, tick)
    loop.loop()
    assert len(count) == 3
    assert loop.iteration >= 3
    assert loop.queue_size() == 0


def test_cancelled_timer_does_not_fire(loop):
    fired = []
    timer_id = loop.run_after(0.01, lambda: fired.append(True))
    loop.cancel(timer_id)
    loop.run_after(0.05, loop.quit)
    loop.loop()
    assert fired == []


def test_timers_fire_in_order(loop):
    order = []
    now = time.time()
    loop.run_at(now + 0.03, lambda: order.append("late"))
    loop.run_at(now + 0.01, lambda: order.append("early"))
    loop.run_at(now + 0.05, loop.quit)
    loop.loop()
    assert order == ["early", "late"]


def test_nested_loop_raises(loop):
    errors = []

    def nested():
        try:
            loop.loop()
        except RuntimeError as exc:
            errors.append(exc)
        loop.quit()

    loop.run_after(0.0, nested)
    loop.loop()
    assert len(errors) == 1
    assert loop.iteration >= 1


def test_is_in_loop_thread_and_assert_from_other_thread(loop):
    assert loop.is_in_loop_thread()
    results = {}

    def worker():
        results["in_thread"] = loop.is_in_loop_thread()
        try:
            loop.assert_in_loop_thread()
        except RuntimeError:
            results["raised"] = True

    t = threading.Thread(target=worker)
    t.start()
    t.join(5)
    assert results == {"in_thread": False, "raised": True}


def test_update_channel_of_other_loop_raises(loop):
    class _Other:
        def update_channel(self, channel):
            loop.update_channel(channel)

    a, b = socket.socketpair()
    try:
        ch = Channel(_Other(), a.fileno())
        with pytest.raises(ValueError):
            ch.enable_reading()
        assert not ch.is_reading() or not loop.has_channel(Channel(loop, a.fileno()))
    finally:
        a.close()
        b.close()


def test_channel_read_callback_dispatched(loop):
    a, b = socket.socketpair()
    a.setblocking(False)
    received = []
    times = []
    ch = Channel(loop, a.fileno())

    def on_read(receive_time):
        received.append(a.recv(100))
        times.append(receive_time)
        loop.quit()

    ch.read_callback = on_read
    ch.enable_reading()
    try:
        assert loop.has_channel(ch)
        b.send(b"hello")
        loop.loop()
        assert received == [b"hello"]
        assert times == [loop.poll_return_time]
    finally:
        ch.disable_all()
        ch.remove()
        a.close()
        b.close()
    assert not loop.has_channel(ch)


def test_run_in_loop_from_other_thread_runs_in_loop_thread():
    ready = threading.Event()
    holder = {}
    t, lp = _started_loop(holder, ready)
    assert get_event_loop_of_current_thread() is None
    assert holder["registered"] is True
    assert lp.is_in_loop_thread() == False  # noqa: E712
    seen = []
    done = threading.Event()

    def job():
        seen.append(threading.get_ident())
        done.set()

    lp.run_in_loop(job)
    assert done.wait(5)
    lp.quit()
    t.join(5)
    assert seen == [holder["tid"]]
    assert holder.get("closed") is True
    assert holder["queue_size"] == 0
    assert holder["iteration"] >= 1
    assert lp.iteration >= 1


def test_quit_from_other_thread_wakes_loop_promptly():
    ready = threading.Event()
    holder = {}
    t, lp = _started_loop(holder, ready)
    assert get_event_loop_of_current_thread() is None
    assert holder["registered"] is True
    assert lp.is_in_loop_thread() == False  # noqa: E712
    started = threading.Event()
    lp.run_in_loop(started.set)
    assert started.wait(5)
    begin = time.monotonic()
    lp.quit()
    t.join(5)
    assert not t.is_alive()
    assert time.monotonic() - begin < 5
    assert holder["queue_size"] == 0
    assert holder["iteration"] >= 1
    assert lp.iteration >= 1


def test_timer_added_from_other_thread_fires():
    ready = threading.Event()
    holder = {}
    t, lp = _started_loop(holder, ready)
    assert get_event_loop_of_current_thread() is None
    assert holder["registered"] is True
    assert lp.is_in_loop_thread() == False  # noqa: E712
    fired = threading.Event()
    thread_ids = []

    def cb():
        thread_ids.append(threading.get_ident())
        fired.set()

    lp.run_after(0.01, cb)
    assert fired.wait(5)
    lp.quit()
    t.join(5)
    assert thread_ids == [holder["tid"]]
    assert holder["queue_size"] == 0
    assert holder["iteration"] >= 1
    assert lp.iteration >= 1


def test_close_from_other_thread_raises(loop):
    errors = []

    def worker():
        try:
            loop.close()
        except RuntimeError as exc:
            errors.append(exc)

    t = threading.Thread(target=worker)
    t.start()
    t.join(5)
    assert len(errors) == 1
    assert get_event_loop_of_current_thread() is loop