import threading
from typing import Callable, Optional


class SessionTimer:
    """
    One-second countdown running on a daemon thread.

    start(ttl) calls on_tick(remaining) for remaining = ttl-1 .. 1, then
    on_expire() once. cancel() may be called any number of times, from any
    thread, including after the countdown finished. A tick already in
    flight when cancel() runs can still arrive, so owners must ignore
    callbacks from a countdown they no longer own.
    """

    def __init__(
        self,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
        interval: float = 1.0,
    ):
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.interval = interval
        self._stop: Optional[threading.Event] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._stop is not None and not self._stop.is_set()

    def start(self, ttl_seconds: int):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        stop = threading.Event()
        with self._lock:
            if self._stop is not None:
                self._stop.set()
            self._stop = stop

        thread = threading.Thread(target=self._run, args=(ttl_seconds, stop), daemon=True)
        thread.start()

    def cancel(self):
        with self._lock:
            if self._stop is not None:
                self._stop.set()

    def _run(self, ttl_seconds: int, stop: threading.Event):
        remaining = ttl_seconds
        while not stop.wait(self.interval):
            remaining -= 1
            if remaining > 0:
                self.on_tick(remaining)
                continue
            stop.set()
            self.on_expire()
            return
