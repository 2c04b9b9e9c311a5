"""
Pytest fixtures for the UHC orchestrator tests.
"""

import os

os.environ['UHC_DATABASE_URI'] = 'sqlite:///:memory:'

import pytest

from uhc import app, db
from uhc.model.match_settings import ConfigStore
from uhc.socketio_handlers.exceptions import WorldMutationFailure
from uhc.socketio_handlers.match_controller import MatchController
from uhc.socketio_handlers.timeline import Timeline
from uhc.socketio_handlers.world_surface import BorderState, WorldSurface


class RecordingWorld(WorldSurface):
    """In-memory world surface that records every call made against it."""

    def __init__(self, players=None, worlds=None):
        self.players = dict(players or {})
        self.borders = {
            name: BorderState(center_x=0.0, center_z=0.0, size=1000.0)
            for name in (worlds or ['world'])
        }
        self.calls = []
        self.failing = set()
        self.blocks = {}

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.failing:
            raise WorldMutationFailure(f"{name} rejected")

    def calls_named(self, name):
        return [call for call in self.calls if call[0] == name]

    @property
    def messages(self):
        return [call[1] for call in self.calls_named('broadcast')]

    def worlds(self):
        return list(self.borders.keys())

    def online_players(self):
        return list(self.players.keys())

    def player_name(self, player_id):
        return self.players.get(player_id)

    def get_border(self, world):
        return self.borders.get(world)

    def set_border_center(self, world, x, z):
        self._record('set_border_center', world, x, z)
        self.borders[world].center_x = x
        self.borders[world].center_z = z

    def set_border_size(self, world, size):
        self._record('set_border_size', world, size)
        self.borders[world].size = size

    def set_block_type(self, position, material):
        self._record('set_block_type', position, material)
        self.blocks[position] = material

    def set_block_data(self, position, block_data):
        self._record('set_block_data', position, block_data)

    def set_container_contents(self, position, contents):
        self._record('set_container_contents', position, tuple(contents))

    def set_world_pvp(self, world, enabled):
        self.calls.append(('set_world_pvp', world, enabled))
        if ('set_world_pvp', world) in self.failing:
            raise WorldMutationFailure(f"pvp rejected for {world}")

    def teleport(self, player_id, location):
        self._record('teleport', player_id, location)

    def set_mode(self, player_id, mode):
        self._record('set_mode', player_id, mode)

    def prepare_participant(self, player_id):
        self._record('prepare_participant', player_id)

    def strip_flight_gear(self, player_id):
        self._record('strip_flight_gear', player_id)

    def broadcast(self, message):
        self._record('broadcast', message)

    def send_title(self, player_id, title, subtitle):
        self._record('send_title', player_id, title, subtitle)


@pytest.fixture
def config_store():
    with app.app_context():
        db.create_all()
    yield ConfigStore(app)
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def world():
    return RecordingWorld(players={'p1': 'Alex', 'p2': 'Steve', 'p3': 'Sam'})


@pytest.fixture
def timeline():
    return Timeline()


@pytest.fixture
def controller(world, config_store, timeline):
    return MatchController(world, config_store, timeline)
