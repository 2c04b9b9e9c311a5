import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

TICK_RATE = 20


def ticks_from_seconds(seconds: float) -> int:
    return int(round(seconds * TICK_RATE))


def ticks_from_minutes(minutes: float) -> int:
    return ticks_from_seconds(minutes * 60)


@dataclass(eq=False)
class ScheduledTask:
    """Handle for a delayed or repeating callback on the Timeline."""

    name: str
    callback: Callable
    due_tick: int
    interval: Optional[int] = None
    seq: int = 0
    cancelled: bool = field(default=False)

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    def cancel(self) -> None:
        self.cancelled = True


class Timeline:
    """
    Cooperative tick scheduler.

    tick() is called by a single loop at TICK_RATE. Tasks may be scheduled and
    cancelled from any thread; cancellation only suppresses the next firing and
    never interrupts a callback that is already running.

    A repeating callback returns a truthy value to keep going and a falsy value
    to stop.
    """

    CONTINUE = True
    STOP = False

    def __init__(self):
        self._lock = threading.Lock()
        self._tasks: List[ScheduledTask] = []
        self._seq = itertools.count(1)
        self.current_tick = 0

    def schedule_once(self, delay_ticks: int, callback: Callable[[], None], name: str = 'task') -> ScheduledTask:
        with self._lock:
            task = ScheduledTask(
                name=name,
                callback=callback,
                due_tick=self.current_tick + max(1, int(delay_ticks)),
                seq=next(self._seq),
            )
            self._tasks.append(task)
        return task

    def schedule_repeating(
        self,
        interval_ticks: int,
        callback: Callable[[], bool],
        name: str = 'repeating',
        delay_ticks: Optional[int] = None,
    ) -> ScheduledTask:
        interval = max(1, int(interval_ticks))
        delay = interval if delay_ticks is None else delay_ticks
        with self._lock:
            task = ScheduledTask(
                name=name,
                callback=callback,
                due_tick=self.current_tick + max(1, int(delay)),
                interval=interval,
                seq=next(self._seq),
            )
            self._tasks.append(task)
        return task

    def cancel(self, task: Optional[ScheduledTask]) -> None:
        if task is None:
            return
        task.cancel()

    def pending(self) -> List[ScheduledTask]:
        with self._lock:
            return [task for task in self._tasks if not task.cancelled]

    def tick(self) -> int:
        """Advance one tick and run every task due on it; returns the number fired."""
        with self._lock:
            self.current_tick += 1
            now = self.current_tick
            self._tasks = [task for task in self._tasks if not task.cancelled]
            due = sorted(
                (task for task in self._tasks if task.due_tick <= now),
                key=lambda task: (task.due_tick, task.seq),
            )

        fired = 0
        for task in due:
            # an earlier callback in this tick may have cancelled it
            if task.cancelled:
                continue
            fired += 1
            try:
                result = task.callback()
            except Exception:
                logger.exception(f"Scheduled task '{task.name}' failed; dropping it")
                task.cancel()
                continue

            if not task.repeating or not result:
                task.cancel()
            else:
                task.due_tick = now + task.interval

        with self._lock:
            self._tasks = [task for task in self._tasks if not task.cancelled]
        return fired

    def advance(self, ticks: int) -> None:
        for _ in range(ticks):
            self.tick()
