import logging
import queue
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def _spawn_thread(target: Callable[[], None], name: Optional[str] = None) -> None:
    threading.Thread(target=target, name=name, daemon=True).start()


class ScheduledTask:
    """One logical timer: a one-shot or fixed-period callback in the background.

    Each timer (session tick, coin expiry, global clock) gets its own task
    so cancelling one never disturbs another. The wait between firings is
    interruptible, so ``cancel()`` takes effect before the next firing.
    """

    def __init__(self, callback: Callable[[], None], interval: float, repeat: bool = False,
                 name: Optional[str] = None, spawn: Callable = _spawn_thread):
        self.callback = callback
        self.interval = interval
        self.repeat = repeat
        self.name = name or getattr(callback, '__name__', 'task')
        self._spawn = spawn
        self._cancelled = threading.Event()
        self._started = False

    @property
    def active(self) -> bool:
        return self._started and not self._cancelled.is_set()

    def start(self) -> 'ScheduledTask':
        if self._started:
            return self
        self._started = True
        self._spawn(self._run, self.name)
        return self

    def cancel(self) -> None:
        self._cancelled.set()

    def _run(self) -> None:
        while not self._cancelled.wait(self.interval):
            try:
                self.callback()
            except Exception:
                # A failing repeating timer keeps its schedule
                logger.exception("[timer-error] task=%s", self.name)
            if not self.repeat:
                break
        self._cancelled.set()


_STOP = object()


class BackgroundSender:
    """Delivers payloads one at a time, in submission order, on a worker thread.

    Before ``start()`` and after ``stop()`` payloads are delivered inline on
    the caller's thread. ``stop()`` waits for everything already queued.
    """

    def __init__(self, send: Callable[[Any], None], name: str = 'sender', spawn: Callable = _spawn_thread):
        self.send = send
        self.name = name
        self._spawn = spawn
        self._queue: 'queue.Queue[Any]' = queue.Queue()
        self._lock = threading.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> 'BackgroundSender':
        with self._lock:
            if not self._running:
                self._running = True
                self._spawn(self._run, self.name)
        return self

    def submit(self, payload: Any) -> None:
        with self._lock:
            if self._running:
                self._queue.put(payload)
                return
        self._deliver(payload)

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._queue.put(_STOP)
        self._queue.join()

    def _deliver(self, payload: Any) -> None:
        try:
            self.send(payload)
        except Exception:
            logger.exception("[send-error] task=%s", self.name)

    def _run(self) -> None:
        while True:
            payload = self._queue.get()
            try:
                if payload is _STOP:
                    return
                self._deliver(payload)
            finally:
                self._queue.task_done()
