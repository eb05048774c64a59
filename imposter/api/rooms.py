from flask import Blueprint, current_app, jsonify

from imposter.services.game import words

rooms = Blueprint('rooms', __name__)


@rooms.route('/topics', methods=['GET'])
def list_topics():
    return jsonify({'topics': words.topics(), 'default': words.DEFAULT_TOPIC})


@rooms.route('/<string:code>/state', methods=['GET'])
def get_room_state(code):
    """
    Returns the public state of a room, the same view sent as room:update.
    """
    state = current_app.extensions['imposter_game'].public_state(code)
    if state is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(state), 200
