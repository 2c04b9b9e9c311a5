import atexit
import logging

from flask import jsonify

from uhc import app, db, socketio
from uhc.api.match import create_match_api
from uhc.model.match_settings import ConfigStore, initMatchSettings
from uhc.socketio_handlers.commands import MatchCommands
from uhc.socketio_handlers.match_controller import MatchController
from uhc.socketio_handlers.match_events import init_match_socket, start_tick_loop
from uhc.socketio_handlers.timeline import Timeline
from uhc.socketio_handlers.world_surface import SocketWorldSurface

logger = logging.getLogger(__name__)

config_store = ConfigStore(app)
world_surface = SocketWorldSurface(socketio)
controller = MatchController(
    world_surface,
    config_store,
    Timeline(),
    grace_minutes=app.config['UHC_GRACE_MINUTES'],
    lobby_border_size=app.config['UHC_LOBBY_BORDER_SIZE'],
    flight_strip_below_y=app.config['UHC_FLIGHT_STRIP_BELOW_Y'],
)
commands = MatchCommands(controller, config_store)

init_match_socket(socketio, controller, world_surface, commands)
app.register_blueprint(create_match_api(controller))


@app.route('/health')
def health():
    return jsonify({'status': 'ok'}), 200


def shutdown():
    # server shutdown restores the world like /uhc stop
    with controller.lock:
        controller.end_match(True)
    logger.info("UHC orchestrator stopped")


def run():
    initMatchSettings()
    atexit.register(shutdown)
    start_tick_loop()
    host = app.config['UHC_HOST']
    port = app.config['UHC_PORT']
    logger.info(f"UHC orchestrator listening on http://{host}:{port}")
    socketio.run(app, host=host, port=port, allow_unsafe_werkzeug=True)


if __name__ == "__main__":
    run()
