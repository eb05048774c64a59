import math
import threading
import time
from typing import Callable, Dict, Optional


class CountdownTimer:
    def __init__(self, code: str, kind: str, ends_at: float,
                 on_tick: Callable[[int], None], on_expire: Callable[[], None]):
        self.code = code
        self.kind = kind
        self.ends_at = ends_at
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.alive = True


class TimerManager:
    """Per-room countdowns, at most one live timer per room code.

    - start() always stops the previous timer for the code first
    - every tick reports whole seconds remaining (ceil, floored at 0)
    - at expiry the timer removes itself and calls on_expire exactly once
    - ticks run under ``lock`` so they are serialized with room actions

    ``spawn`` is a background-task starter (``socketio.start_background_task``).
    Without one no loop runs and timers only advance through ``step()``; the
    test-suite drives countdowns that way together with a fake ``clock``.
    """

    def __init__(self, interval: float = 0.25, lock=None, spawn=None, sleep=None,
                 clock: Callable[[], float] = time.monotonic, logger=None):
        self.interval = interval
        self._lock = lock or threading.RLock()
        self._spawn = spawn
        self._sleep = sleep or time.sleep
        self._clock = clock
        self._logger = logger
        self._timers: Dict[str, CountdownTimer] = {}

    def get(self, code: str) -> Optional[CountdownTimer]:
        return self._timers.get(code)

    def start(self, code: str, duration: float, kind: str,
              on_tick: Callable[[int], None], on_expire: Callable[[], None]) -> CountdownTimer:
        with self._lock:
            self.stop(code)
            timer = CountdownTimer(code, kind, self._clock() + duration, on_tick, on_expire)
            self._timers[code] = timer
            self._log(f"[timer-set] room={code} kind={kind} duration={duration}s")
        if self._spawn is not None:
            self._spawn(self._run, timer)
        return timer

    def stop(self, code: str) -> None:
        with self._lock:
            timer = self._timers.pop(code, None)
            if timer is not None:
                timer.alive = False

    def step(self, code: str) -> bool:
        """Run one tick for the room's timer. Returns False once the timer is gone."""
        timer = self._timers.get(code)
        if timer is None:
            return False
        return self._tick(timer)

    def _tick(self, timer: CountdownTimer) -> bool:
        with self._lock:
            if not timer.alive or self._timers.get(timer.code) is not timer:
                return False
            remaining = max(0.0, timer.ends_at - self._clock())
            timer.on_tick(int(math.ceil(remaining)))
            if remaining > 0:
                return True
            self.stop(timer.code)
            self._log(f"[timer-fire] room={timer.code} kind={timer.kind}")
            timer.on_expire()
            return False

    def _run(self, timer: CountdownTimer) -> None:
        while timer.alive:
            self._sleep(self.interval)
            if not self._tick(timer):
                return

    def _log(self, message: str) -> None:
        if self._logger is not None:
            self._logger.info(message)
