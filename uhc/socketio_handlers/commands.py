import logging
import math
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence

from .exceptions import InvalidCommandInput
from .world_surface import Location

logger = logging.getLogger(__name__)

USAGE = 'UHC: /uhc start | stop | setarena | setlobby | setborder'
UNKNOWN = 'Unknown command. /uhc start|stop|setarena|setlobby|setborder'
SETBORDER_USAGE = 'Usage: /uhc setborder <startSize> <endSize> <centerX> <centerZ> [world]'
NO_PERMISSION = 'You do not have permission.'
PLAYERS_ONLY = 'Only players can use this command.'


@dataclass
class CommandSender:
    name: str
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    location: Optional[Location] = None
    is_player: bool = False
    is_op: bool = False

    @classmethod
    def from_payload(cls, payload: Dict) -> 'CommandSender':
        location = payload.get('location')
        return cls(
            name=str(payload.get('name') or 'CONSOLE'),
            permissions=frozenset(payload.get('permissions') or ()),
            location=Location.from_payload(location) if location else None,
            is_player=bool(payload.get('is_player', False)),
            is_op=bool(payload.get('op', False)),
        )

    def has_permission(self, permission: str) -> bool:
        return self.is_op or permission in self.permissions or 'uhc.*' in self.permissions


def parse_finite(raw: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidCommandInput(f"Not a number: {raw}")
    if not math.isfinite(value):
        raise InvalidCommandInput(f"Not a finite number: {raw}")
    return value


class MatchCommands:
    """Handles /uhc subcommands and returns the reply lines for the sender."""

    def __init__(self, controller, config_store):
        self.controller = controller
        self.config_store = config_store

    def dispatch(self, sender: CommandSender, args: Sequence[str]) -> List[str]:
        if not args:
            return [USAGE]

        sub = str(args[0]).lower()
        handler = getattr(self, f"_cmd_{sub}", None)
        if handler is None:
            return [UNKNOWN]
        return handler(sender, [str(arg) for arg in args[1:]])

    def _cmd_start(self, sender, _args):
        if not sender.has_permission('uhc.start'):
            return [NO_PERMISSION]
        with self.controller.lock:
            self.controller.start_match()
        logger.info(f"{sender.name} started the match")
        return ['UHC round started.']

    def _cmd_stop(self, sender, _args):
        if not sender.has_permission('uhc.stop'):
            return [NO_PERMISSION]
        with self.controller.lock:
            self.controller.end_match(True)
        logger.info(f"{sender.name} stopped the match")
        return ['UHC round stopped and reset.']

    def _cmd_setarena(self, sender, _args):
        if not sender.is_player or sender.location is None:
            return [PLAYERS_ONLY]
        self.config_store.set_location('arena', sender.location)
        return ['Arena set.']

    def _cmd_setlobby(self, sender, _args):
        if not sender.is_player or sender.location is None:
            return [PLAYERS_ONLY]
        self.config_store.set_location('lobby', sender.location)
        return ['Lobby spawn set.']

    def _cmd_setborder(self, sender, args):
        if not sender.is_player or sender.location is None:
            return [PLAYERS_ONLY]
        if not sender.has_permission('uhc.setborder'):
            return [NO_PERMISSION]
        if len(args) < 4:
            return [SETBORDER_USAGE]

        try:
            start_size, end_size, center_x, center_z = (parse_finite(raw) for raw in args[:4])
        except InvalidCommandInput as e:
            logger.info(f"Rejected setborder from {sender.name}: {str(e)}")
            return ['Invalid numbers.']

        world = args[4] if len(args) > 4 else sender.location.world
        self.config_store.set_border(start_size, end_size, center_x, center_z, world)
        return ['Border settings saved.']
