"""
World surface: the capabilities the match core invokes on the game host.

SocketWorldSurface is the production implementation. The game host runs a
bridge client that joins BRIDGE_ROOM, reports worlds, borders and online
players through ``bridge:*`` events, and applies the ``world:*``,
``player:*`` and ``chat:*`` commands emitted here.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .exceptions import WorldMutationFailure
from .mutation_journal import CellPosition, ItemStack

logger = logging.getLogger(__name__)

BRIDGE_ROOM = 'uhc_bridge'

SURVIVAL = 'survival'
SPECTATOR = 'spectator'


@dataclass(frozen=True)
class Location:
    world: str
    x: float
    y: float
    z: float
    yaw: float = 0.0
    pitch: float = 0.0

    @classmethod
    def from_payload(cls, payload: Dict) -> 'Location':
        return cls(
            world=str(payload['world']),
            x=float(payload['x']),
            y=float(payload['y']),
            z=float(payload['z']),
            yaw=float(payload.get('yaw', 0.0)),
            pitch=float(payload.get('pitch', 0.0)),
        )

    def to_payload(self) -> Dict:
        return {
            'world': self.world,
            'x': self.x,
            'y': self.y,
            'z': self.z,
            'yaw': self.yaw,
            'pitch': self.pitch,
        }


@dataclass
class BorderState:
    center_x: float = 0.0
    center_z: float = 0.0
    size: float = 0.0


class WorldSurface(ABC):

    @abstractmethod
    def worlds(self) -> List[str]:
        ...

    @abstractmethod
    def online_players(self) -> List[str]:
        ...

    @abstractmethod
    def player_name(self, player_id: str) -> Optional[str]:
        ...

    @abstractmethod
    def get_border(self, world: str) -> Optional[BorderState]:
        ...

    @abstractmethod
    def set_border_center(self, world: str, x: float, z: float) -> None:
        ...

    @abstractmethod
    def set_border_size(self, world: str, size: float) -> None:
        ...

    @abstractmethod
    def set_block_type(self, position: CellPosition, material: str) -> None:
        ...

    @abstractmethod
    def set_block_data(self, position: CellPosition, block_data: str) -> None:
        ...

    @abstractmethod
    def set_container_contents(self, position: CellPosition, contents: Sequence[Optional[ItemStack]]) -> None:
        ...

    @abstractmethod
    def set_world_pvp(self, world: str, enabled: bool) -> None:
        ...

    @abstractmethod
    def teleport(self, player_id: str, location: Location) -> None:
        ...

    @abstractmethod
    def set_mode(self, player_id: str, mode: str) -> None:
        ...

    @abstractmethod
    def prepare_participant(self, player_id: str) -> None:
        """Survival mode, cleared inventory, elytra in the chest slot and one firework rocket."""

    @abstractmethod
    def strip_flight_gear(self, player_id: str) -> None:
        """Remove elytra and firework rockets from every slot, offhand included."""

    @abstractmethod
    def broadcast(self, message: str) -> None:
        ...

    @abstractmethod
    def send_title(self, player_id: str, title: str, subtitle: str) -> None:
        ...


class SocketWorldSurface(WorldSurface):

    def __init__(self, socketio, room: str = BRIDGE_ROOM):
        self.socketio = socketio
        self.room = room
        self.lock = threading.Lock()
        self._borders: Dict[str, BorderState] = {}
        self._players: Dict[str, str] = {}

    # ----------------------------- Bridge cache -----------------------------

    def sync(self, payload: Dict) -> None:
        """Replace the cached worlds and players with a full bridge report."""
        borders = {}
        for world in payload.get('worlds') or []:
            border = world.get('border') or {}
            borders[str(world['name'])] = BorderState(
                center_x=float(border.get('center_x', 0.0)),
                center_z=float(border.get('center_z', 0.0)),
                size=float(border.get('size', 0.0)),
            )
        players = {
            str(player['id']): str(player.get('name') or player['id'])
            for player in payload.get('players') or []
        }
        with self.lock:
            self._borders = borders
            self._players = players
        logger.info(f"Bridge synced {len(borders)} worlds and {len(players)} players")

    def player_joined(self, player_id: str, name: str) -> None:
        with self.lock:
            self._players[player_id] = name

    def player_left(self, player_id: str) -> None:
        with self.lock:
            self._players.pop(player_id, None)

    def border_changed(self, world: str, center_x: float, center_z: float, size: float) -> None:
        with self.lock:
            self._borders[world] = BorderState(center_x=center_x, center_z=center_z, size=size)

    def _emit(self, event: str, payload: Dict) -> None:
        self.socketio.emit(event, payload, room=self.room)

    def _require_world(self, world: str) -> BorderState:
        with self.lock:
            border = self._borders.get(world)
        if border is None:
            raise WorldMutationFailure(f"World {world} is not loaded")
        return border

    def _emit_write(self, event: str, payload: Dict) -> None:
        try:
            self._emit(event, payload)
        except Exception as e:
            raise WorldMutationFailure(f"{event} failed: {str(e)}") from e

    # ----------------------------- Queries -----------------------------

    def worlds(self) -> List[str]:
        with self.lock:
            return list(self._borders.keys())

    def online_players(self) -> List[str]:
        with self.lock:
            return list(self._players.keys())

    def player_name(self, player_id: str) -> Optional[str]:
        with self.lock:
            return self._players.get(player_id)

    def get_border(self, world: str) -> Optional[BorderState]:
        with self.lock:
            border = self._borders.get(world)
            if border is None:
                return None
            return BorderState(center_x=border.center_x, center_z=border.center_z, size=border.size)

    # ----------------------------- Writes -----------------------------

    def set_border_center(self, world: str, x: float, z: float) -> None:
        border = self._require_world(world)
        self._emit_write('world:border_center', {'world': world, 'x': x, 'z': z})
        with self.lock:
            border.center_x = x
            border.center_z = z

    def set_border_size(self, world: str, size: float) -> None:
        border = self._require_world(world)
        self._emit_write('world:border_size', {'world': world, 'size': size})
        with self.lock:
            border.size = size

    def set_block_type(self, position: CellPosition, material: str) -> None:
        self._require_world(position.world)
        self._emit_write('world:block_type', {'position': position.to_payload(), 'type': material})

    def set_block_data(self, position: CellPosition, block_data: str) -> None:
        self._require_world(position.world)
        self._emit_write('world:block_data', {'position': position.to_payload(), 'data': block_data})

    def set_container_contents(self, position: CellPosition, contents: Sequence[Optional[ItemStack]]) -> None:
        self._require_world(position.world)
        self._emit_write('world:container_contents', {
            'position': position.to_payload(),
            'contents': [item.to_payload() if item is not None else None for item in contents],
        })

    def set_world_pvp(self, world: str, enabled: bool) -> None:
        self._require_world(world)
        self._emit_write('world:pvp', {'world': world, 'enabled': enabled})

    def teleport(self, player_id: str, location: Location) -> None:
        self._emit('player:teleport', {'id': player_id, 'location': location.to_payload()})

    def set_mode(self, player_id: str, mode: str) -> None:
        self._emit('player:mode', {'id': player_id, 'mode': mode})

    def prepare_participant(self, player_id: str) -> None:
        self._emit('player:prepare', {
            'id': player_id,
            'mode': SURVIVAL,
            'clear_inventory': True,
            'chestplate': {'type': 'ELYTRA', 'amount': 1},
            'items': [{'type': 'FIREWORK_ROCKET', 'amount': 1}],
        })

    def strip_flight_gear(self, player_id: str) -> None:
        self._emit('player:remove_items', {'id': player_id, 'types': ['ELYTRA', 'FIREWORK_ROCKET']})

    def broadcast(self, message: str) -> None:
        self._emit('chat:broadcast', {'message': message})

    def send_title(self, player_id: str, title: str, subtitle: str) -> None:
        self._emit('player:title', {
            'id': player_id,
            'title': title,
            'subtitle': subtitle,
            'fade_in': 10,
            'stay': 70,
            'fade_out': 20,
        })
