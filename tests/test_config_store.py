import pytest

from uhc.model.match_settings import MatchSetting
from uhc.socketio_handlers.exceptions import MissingConfiguration
from uhc.socketio_handlers.world_surface import Location


def test_missing_location_raises(config_store):
    with pytest.raises(MissingConfiguration):
        config_store.get_location('arena')


def test_location_round_trip(config_store):
    arena = Location('world', 1.5, 70, -3.5, yaw=90, pitch=10)
    config_store.set_location('arena', arena)
    config_store.set_location('arena', Location('world', 2, 71, 2))

    assert config_store.get_location('arena') == Location('world', 2, 71, 2)
    with pytest.raises(MissingConfiguration):
        config_store.get_location('lobby')


def test_unknown_location_kind(config_store):
    with pytest.raises(ValueError):
        config_store.get_location('spawn')


def test_border_defaults(config_store):
    border = config_store.get_border()

    assert border.world is None
    assert border.start_size is None
    assert border.end_size is None
    assert border.shrink_start_minutes == 10
    assert border.shrink_duration_minutes == 5


def test_set_border_and_timing(config_store):
    config_store.set_border(800, 50, 10, 20, 'world')
    config_store.set_shrink_timing(3, 7)

    border = config_store.get_border()
    assert (border.start_size, border.end_size, border.center_x, border.center_z) == (800, 50, 10, 20)
    assert border.world == 'world'
    assert (border.shrink_start_minutes, border.shrink_duration_minutes) == (3, 7)

    snapshot = config_store.snapshot()
    assert snapshot['border.world'] == 'world'
    assert snapshot['border.shrink-duration-minutes'] == 7


def test_setting_model_update(config_store):
    with config_store.app.app_context():
        setting = MatchSetting.put('border.world', 'world')
        MatchSetting.put('border.world', 'world_nether')

        assert MatchSetting.query.count() == 1
        assert setting.read()['value'] == 'world_nether'
