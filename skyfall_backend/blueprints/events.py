from flask import Blueprint

events_bp = Blueprint('events_api', __name__)


@events_bp.route('/api/events', methods=['POST'])
def ingest_game_event():
    from skyfall_backend import runtime

    return runtime.ingest_game_event_impl()
