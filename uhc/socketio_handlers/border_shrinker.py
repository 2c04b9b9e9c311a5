import logging
from dataclasses import dataclass
from typing import Callable

from .exceptions import WorldMutationFailure

logger = logging.getLogger(__name__)


@dataclass
class ShrinkSchedule:
    start_size: float
    end_size: float
    duration_seconds: int
    elapsed_seconds: int = 0

    def size_at(self, elapsed_seconds: float) -> float:
        if self.duration_seconds <= 0:
            return self.end_size
        progress = min(1.0, max(0.0, elapsed_seconds / self.duration_seconds))
        return self.start_size + (self.end_size - self.start_size) * progress

    @property
    def finished(self) -> bool:
        return self.elapsed_seconds >= self.duration_seconds

    def advance(self) -> float:
        self.elapsed_seconds += 1
        return self.size_at(self.elapsed_seconds)


class BorderShrinker:
    """Once-per-second driver that walks one world's boundary along a ShrinkSchedule."""

    def __init__(self, world, world_name: str, schedule: ShrinkSchedule, is_running: Callable[[], bool]):
        self.world = world
        self.world_name = world_name
        self.schedule = schedule
        self.is_running = is_running
        self.current_size = schedule.start_size

    def tick(self) -> bool:
        if not self.is_running():
            return False

        self.current_size = self.schedule.advance()
        try:
            self.world.set_border_size(self.world_name, self.current_size)
        except WorldMutationFailure as e:
            logger.warning(f"Border update for {self.world_name} failed: {str(e)}")

        if self.schedule.finished:
            self.world.broadcast('Border shrink complete.')
            logger.info(f"Border of {self.world_name} reached {self.current_size}")
            return False
        return True
