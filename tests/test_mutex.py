import threading

import pytest

from evloopkit.mutex import MutexLock


def test_locked_by_this_thread_inside_guard():
    mutex = MutexLock()
    count = 0
    with mutex:
        assert mutex.is_locked_by_this_thread()
        count += 1
    assert count == 1
    assert not mutex.is_locked_by_this_thread()


def test_explicit_lock_and_unlock():
    mutex = MutexLock()
    mutex.lock()
    assert mutex.is_locked_by_this_thread()
    mutex.unlock()
    assert not mutex.is_locked_by_this_thread()


def test_assert_locked_raises_when_free():
    mutex = MutexLock()
    with pytest.raises(RuntimeError):
        mutex.assert_locked()


def test_assert_locked_passes_when_held():
    mutex = MutexLock()
    with mutex:
        mutex.assert_locked()
        assert mutex.is_locked_by_this_thread()


def test_unlock_without_lock_raises():
    mutex = MutexLock()
    with pytest.raises(RuntimeError):
        mutex.unlock()


def test_other_thread_is_not_holder():
    mutex = MutexLock()
    seen = []
    with mutex:
        t = threading.Thread(target=lambda: seen.append(mutex.is_locked_by_this_thread()))
        t.start()
        t.join()
        assert mutex.is_locked_by_this_thread() is True
    assert seen == [False]
    assert mutex.is_locked_by_this_thread() is False


def test_guard_releases_on_exception():
    mutex = MutexLock()
    with pytest.raises(ValueError):
        with mutex:
            raise ValueError("boom")
    assert not mutex.is_locked_by_this_thread()
    with mutex:
        assert mutex.is_locked_by_this_thread()


def test_threads_appending_under_lock():
    mutex = MutexLock()
    items = []
    count = 2000

    def work():
        for i in range(count):
            with mutex:
                items.append(i)

    for nthreads in range(1, 5):
        items.clear()
        threads = [threading.Thread(target=work) for _ in range(nthreads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(items) == nthreads * count
        assert mutex.is_locked_by_this_thread() is False
    with mutex:
        assert mutex.is_locked_by_this_thread() is True