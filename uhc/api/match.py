from flask import Blueprint, jsonify
import logging

logger = logging.getLogger(__name__)


def create_match_api(controller):
    """Read-only status endpoints for the running match."""
    match_api = Blueprint('match_api', __name__, url_prefix='/api/match')

    @match_api.route('/status', methods=['GET'])
    def get_status():
        try:
            with controller.lock:
                status = controller.status()
            return jsonify(status), 200
        except Exception as e:
            logger.error(f"Error reading match status: {str(e)}")
            return jsonify({'error': 'Failed to read match status'}), 500

    return match_api
