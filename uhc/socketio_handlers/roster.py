import threading
from typing import Iterable, List, Optional, Set


class RosterTracker:
    """Alive / spectator partition of the players captured at match start."""

    def __init__(self):
        self._lock = threading.Lock()
        self._alive: Set[str] = set()
        self._spectators: Set[str] = set()

    def begin(self, participants: Iterable[str]) -> None:
        with self._lock:
            self._alive = set(participants)
            self._spectators = set()

    def eliminate(self, player_id: str) -> bool:
        """Move a player from alive to spectator; False when they were not alive."""
        with self._lock:
            if player_id not in self._alive:
                return False
            self._alive.discard(player_id)
            self._spectators.add(player_id)
            return True

    def alive_count(self) -> int:
        with self._lock:
            return len(self._alive)

    def spectator_count(self) -> int:
        with self._lock:
            return len(self._spectators)

    def is_alive(self, player_id: str) -> bool:
        with self._lock:
            return player_id in self._alive

    def is_spectator(self, player_id: str) -> bool:
        with self._lock:
            return player_id in self._spectators

    def alive_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._alive)

    def spectator_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._spectators)

    def sole_survivor(self) -> Optional[str]:
        with self._lock:
            if len(self._alive) != 1:
                return None
            return next(iter(self._alive))

    def clear(self) -> None:
        with self._lock:
            self._alive.clear()
            self._spectators.clear()
