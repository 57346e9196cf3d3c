# hygromon/runtime/liveness.py
from __future__ import annotations

import threading
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


# (delay_s, callback) -> cancellable handle
Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def thread_scheduler(delay_s: float, callback: Callable[[], None]) -> TimerHandle:
    t = threading.Timer(delay_s, callback)
    t.daemon = True
    t.start()
    return t


class LivenessTimer:
    """
    Single cancellable silence timer.

    - arm() replaces any pending handle, so at most one is ever outstanding.
    - cancel() is a no-op when nothing is pending.
    - a handle that fires after being superseded or cancelled is ignored
      (generation check), which covers callbacks already queued on the lock.

    on_expire runs while holding `lock`, so it is serialized with whatever
    else the owner does under the same lock.
    """

    def __init__(
        self,
        window_s: float,
        on_expire: Callable[[], None],
        *,
        scheduler: Optional[Scheduler] = None,
        lock: Optional[threading.RLock] = None,
    ):
        if window_s <= 0:
            raise ValueError(f"window_s must be > 0, got {window_s}")
        self.window_s = float(window_s)
        self._on_expire = on_expire
        self._scheduler = scheduler or thread_scheduler
        self._lock = lock or threading.RLock()

        self._handle: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._handle is not None

    def arm(self) -> None:
        with self._lock:
            self._cancel_locked()
            gen = self._generation
            self._handle = self._scheduler(self.window_s, lambda: self._fire(gen))

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _fire(self, gen: int) -> None:
        with self._lock:
            if gen != self._generation:
                return
            self._handle = None
            self._generation += 1
            self._on_expire()
