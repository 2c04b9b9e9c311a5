import functools
import logging
import time
from typing import Optional

from flask import request
from flask_socketio import emit, join_room, leave_room

from .commands import CommandSender, MatchCommands
from .match_controller import MatchController
from .mutation_journal import CellPosition, CellSnapshot
from .timeline import TICK_RATE
from .world_surface import BRIDGE_ROOM, Location, SocketWorldSurface

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1.0 / TICK_RATE
MAX_CATCH_UP_TICKS = TICK_RATE * 5

_socketio = None
_controller: Optional[MatchController] = None
_world: Optional[SocketWorldSurface] = None
_commands: Optional[MatchCommands] = None
_loop_started = False


def _block_from_payload(block):
    """A block payload carries its position plus the pre-change type, data and contents."""
    return CellPosition.from_payload(block['position']), CellSnapshot.from_payload(block)


def _tolerant(event):
    """Log and drop events whose payload does not parse."""
    def decorator(handler):
        @functools.wraps(handler)
        def wrapper(data=None):
            if _controller is None:
                return None
            try:
                return handler(data or {})
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring malformed {event} payload: {str(e)}")
                return None
        return wrapper
    return decorator


def start_tick_loop() -> None:
    global _loop_started
    if _socketio is None or _loop_started:
        return
    _loop_started = True
    _socketio.start_background_task(_tick_loop)


def _tick_loop() -> None:
    next_tick = time.time()
    ticks = 0

    while _controller is not None:
        now = time.time()
        behind = 0
        while now >= next_tick and behind < MAX_CATCH_UP_TICKS:
            with _controller.lock:
                _controller.timeline.tick()
                ticks += 1
                if ticks % TICK_RATE == 0:
                    _socketio.emit('uhc:match_state', _controller.status(), room=BRIDGE_ROOM)
            next_tick += TICK_INTERVAL
            behind += 1

        if behind >= MAX_CATCH_UP_TICKS:
            logger.warning(f"Tick loop fell behind by more than {MAX_CATCH_UP_TICKS} ticks; skipping ahead")
            next_tick = time.time() + TICK_INTERVAL

        _socketio.sleep(max(0.0, next_tick - time.time()))


def init_match_socket(socketio, controller: MatchController, world: SocketWorldSurface, commands: MatchCommands) -> None:
    global _socketio, _controller, _world, _commands

    _socketio = socketio
    _controller = controller
    _world = world
    _commands = commands

    # ----------------------------- Bridge -----------------------------

    @socketio.on('bridge:hello')
    @_tolerant('bridge:hello')
    def handle_bridge_hello(data):
        join_room(BRIDGE_ROOM)
        _world.sync(data)
        logger.info(f"Game host bridge connected: {request.sid}")
        with _controller.lock:
            emit('uhc:match_state', _controller.status())

    @socketio.on('bridge:goodbye')
    def handle_bridge_goodbye(_data=None):
        leave_room(BRIDGE_ROOM)
        logger.info(f"Game host bridge left: {request.sid}")

    @socketio.on('bridge:player_joined')
    @_tolerant('bridge:player_joined')
    def handle_player_joined(data):
        player_id = str(data['id'])
        _world.player_joined(player_id, str(data.get('name') or player_id))

    @socketio.on('bridge:player_left')
    @_tolerant('bridge:player_left')
    def handle_player_left(data):
        _world.player_left(str(data['id']))

    @socketio.on('bridge:border')
    @_tolerant('bridge:border')
    def handle_border(data):
        _world.border_changed(
            str(data['world']),
            float(data['center_x']),
            float(data['center_z']),
            float(data['size']),
        )

    # ----------------------------- Block changes -----------------------------

    @socketio.on('block:placed')
    @_tolerant('block:placed')
    def handle_block_placed(data):
        position, snapshot = _block_from_payload(data['replaced'])
        with _controller.lock:
            _controller.record_mutation(position, snapshot)

    @socketio.on('block:broken')
    @_tolerant('block:broken')
    def handle_block_broken(data):
        position, snapshot = _block_from_payload(data['block'])
        with _controller.lock:
            _controller.record_mutation(position, snapshot)

    @socketio.on('block:exploded')
    @_tolerant('block:exploded')
    def handle_block_exploded(data):
        blocks = [_block_from_payload(block) for block in data['blocks']]
        with _controller.lock:
            for position, snapshot in blocks:
                _controller.record_mutation(position, snapshot)

    @socketio.on('block:liquid_placed')
    @_tolerant('block:liquid_placed')
    def handle_liquid_placed(data):
        position, snapshot = _block_from_payload(data['block'])
        with _controller.lock:
            _controller.record_mutation(position, snapshot)

    # ----------------------------- Players -----------------------------

    @socketio.on('entity:damaged')
    @_tolerant('entity:damaged')
    def handle_entity_damaged(data):
        attacker_is_player = bool(data.get('damager_is_player')) or bool(data.get('projectile_shooter_is_player'))
        with _controller.lock:
            cancel = _controller.should_cancel_damage(bool(data.get('victim_is_player')), attacker_is_player)
        return {'cancel': cancel}

    @socketio.on('player:died')
    @_tolerant('player:died')
    def handle_player_died(data):
        with _controller.lock:
            _controller.report_elimination(str(data['id']))

    @socketio.on('player:respawned')
    @_tolerant('player:respawned')
    def handle_player_respawned(data):
        with _controller.lock:
            _controller.handle_respawn(str(data['id']))

    @socketio.on('player:moved')
    @_tolerant('player:moved')
    def handle_player_moved(data):
        location = Location.from_payload(data['location'])
        with _controller.lock:
            _controller.handle_player_moved(str(data['id']), location, bool(data.get('on_ground')))

    # ----------------------------- Commands & state -----------------------------

    @socketio.on('uhc:command')
    @_tolerant('uhc:command')
    def handle_command(data):
        sender = CommandSender.from_payload(data.get('sender') or {})
        args = data.get('args') or []
        if isinstance(args, str):
            args = args.split()
        messages = _commands.dispatch(sender, list(args))
        return {'messages': messages}

    @socketio.on('uhc:request_state')
    def handle_request_state(_data=None):
        if _controller is None:
            return
        with _controller.lock:
            emit('uhc:match_state', _controller.status())
