import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CellPosition:
    world: str
    x: int
    y: int
    z: int

    @classmethod
    def from_payload(cls, payload: Dict) -> 'CellPosition':
        return cls(
            world=str(payload['world']),
            x=int(payload['x']),
            y=int(payload['y']),
            z=int(payload['z']),
        )

    def to_payload(self) -> Dict:
        return {'world': self.world, 'x': self.x, 'y': self.y, 'z': self.z}


@dataclass(frozen=True)
class ItemStack:
    type: str
    amount: int = 1
    meta: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Optional[Dict]) -> Optional['ItemStack']:
        if payload is None:
            return None
        return cls(
            type=str(payload['type']),
            amount=int(payload.get('amount', 1)),
            meta=payload.get('meta'),
        )

    def to_payload(self) -> Dict:
        return {'type': self.type, 'amount': self.amount, 'meta': self.meta}


@dataclass(frozen=True)
class CellSnapshot:
    """Original contents of one world cell, captured before the first change."""

    material: str
    block_data: str
    contents: Optional[Tuple[Optional[ItemStack], ...]] = None

    @classmethod
    def from_payload(cls, payload: Dict) -> 'CellSnapshot':
        raw_contents = payload.get('contents')
        contents = None
        if raw_contents is not None:
            contents = tuple(ItemStack.from_payload(item) for item in raw_contents)
        return cls(
            material=str(payload['type']),
            block_data=str(payload.get('data') or ''),
            contents=contents,
        )

    def contents_payload(self) -> Optional[List[Optional[Dict]]]:
        if self.contents is None:
            return None
        return [item.to_payload() if item is not None else None for item in self.contents]


class MutationJournal:
    """
    Insert-once ledger of original cell states for the running match.

    The first snapshot recorded for a position is the true original and is
    never replaced until the journal is drained or cleared.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[CellPosition, CellSnapshot] = {}

    def record_if_absent(self, position: CellPosition, snapshot_supplier: Callable[[], CellSnapshot]) -> bool:
        with self._lock:
            if position in self._entries:
                return False
            self._entries[position] = snapshot_supplier()
            return True

    def get(self, position: CellPosition) -> Optional[CellSnapshot]:
        with self._lock:
            return self._entries.get(position)

    def drain_all(self) -> List[Tuple[CellPosition, CellSnapshot]]:
        with self._lock:
            drained = list(self._entries.items())
            self._entries = {}
        return drained

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, position: CellPosition) -> bool:
        with self._lock:
            return position in self._entries
