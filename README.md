# evloopkit

A small reactor toolkit. An `EventLoop` belongs to the thread that created
it. The loop watches file descriptors through `Channel` objects, runs timers
from a `TimerQueue`, and runs calls that other threads queue for it. The
package also includes the thread primitives the loop uses.

It uses only the standard library.

## Modules

- `evloopkit.event_loop` holds `EventLoop` and `get_event_loop_of_current_thread()`.
  - `EventLoop` has `loop()`, `quit()`, `close()`, `run_in_loop()`, `queue_in_loop()`, `queue_size()`, `run_at()`, `run_after()`, `run_every()`, `cancel()` and `wakeup()`.
  - `update_channel()`, `remove_channel()` and `has_channel()` manage the channels.
  - Read-only properties: `poll_return_time`, `iteration`, `event_handling`.
  - Each thread may create at most one loop. A second one raises `RuntimeError`.
  - The loop can be used as a context manager, which calls `close()` on exit.
- `evloopkit.channel` holds `Channel` and the module function `events_to_string(fd, ev)`.
  - A `Channel` binds a descriptor to the attributes `read_callback`, `write_callback`, `close_callback` and `error_callback`.
  - Methods: `enable_reading()`, `enable_writing()`, `disable_reading()`, `disable_writing()`, `disable_all()`, `tie()`, `remove()`, `handle_event()`.
  - `Channel.events_to_string()` and `revents_to_string()` describe its watched and received events.
  - `Event` is an `IntFlag` of the poll event bits.
- `evloopkit.poller` holds `Poller`, `SelectorPoller` and `new_default_poller()`.
  - `Poller` is the abstract base class.
  - `SelectorPoller` is built on `selectors.DefaultSelector`.
- `evloopkit.timer` holds `Timer` and `TimerId`.
  - `TimerId` is a frozen dataclass handle.
  - `Timer.num_created()` counts the timers created in the process.
- `evloopkit.timer_queue` holds `TimerQueue`.
  - Methods: `add_timer()`, `cancel()`, `earliest_expiration()`, `process_expired()`.
  - `len()` gives the number of pending timers.
- `evloopkit.sockets_ops` has helpers over `socket.socket`:
  - `create_nonblocking_or_die`, `bind_or_die`, `listen_or_die`, `accept` and `connect`.
  - `read`, `write`, `close` and `shutdown_write`.
  - `to_ip`, `to_ip_port` and `from_ip_port`.
  - `get_socket_error`, `get_local_addr`, `get_peer_addr` and `is_self_connect`.
- `evloopkit.endian` converts unsigned 16-, 32- and 64-bit integers between host and network byte order: `host_to_network16/32/64` and `network_to_host16/32/64`.
- `evloopkit.atomic` holds `AtomicInteger`, with the fixed-width `AtomicInt32` and `AtomicInt64`. These wrap on overflow like two's-complement integers.
- `evloopkit.mutex` holds `MutexLock`, a lock that knows which thread holds it. It works as a context manager.
- `evloopkit.blocking_queue` holds `BlockingQueue` and `BoundedBlockingQueue`.
- `evloopkit.singleton` has `instance(cls)`, which returns one process-wide instance of a class.
- `evloopkit.thread_local` has:
  - `ThreadLocal(factory)`, which keeps one value per thread;
  - `thread_local_instance(cls)` and `thread_local_pointer(cls)`, which keep one instance of a class per thread.
- `evloopkit.string_piece` holds `StringPiece`, a byte-slice view that compares byte by byte.

## Example

```python
import threading

from evloopkit.event_loop import EventLoop

loop = EventLoop()
loop.run_after(0.5, lambda: print("half a second later"))
loop.run_after(1.0, loop.quit)

def from_other_thread():
    loop.run_in_loop(lambda: print("ran in the loop thread"))

threading.Thread(target=from_other_thread).start()
loop.loop()
loop.close()
```

Thread rules:

- `update_channel()`, `remove_channel()`, `has_channel()`, `loop()` and `close()` must be called from the loop's own thread. Otherwise they raise `RuntimeError`.
- `run_in_loop()`, `queue_in_loop()`, the timer methods and `quit()` may be called from any thread.

Times and timers:

- Times are floats, in seconds since the epoch.
- Each pass of `loop()` does the following, in order:
  1. It polls for at most ten seconds, or until the next timer is due if that is sooner.
  2. It handles the active channels.
  3. It runs the expired timers.
  4. It runs the queued calls.

## Blocking queues

```python
from evloopkit.blocking_queue import BoundedBlockingQueue

q = BoundedBlockingQueue(2)
q.put("a")
q.put("b")
assert q.full()
assert q.take() == "a"
```

## What it does not do

- There is no TCP server, client or connection class, and no read/write buffer. `sockets_ops` offers only helper functions on plain sockets.
- `SelectorPoller` reports only readable (`Event.IN`) and writable (`Event.OUT`) readiness. It never reports hang-up or error bits.
- There is no command-line program.