from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from npat import socketio
from npat.services.games.errors import GameError


def _games():
    return current_app.extensions['npat']


def _error(exc: GameError) -> dict:
    current_app.logger.info(f"[rejected] sid={request.sid} error={exc.message!r}")
    return {'error': exc.message}


def handle_create(data):
    data = data or {}
    code = data.get('code')
    try:
        _games().create(
            request.sid,
            code,
            data.get('name'),
            data.get('rounds'),
            data.get('categories'),
            data.get('scoringType'),
        )
    except GameError as exc:
        return _error(exc)
    join_room(code)
    users = _games().users(code)
    emit('gameData', {'users': users}, to=code)
    return {'users': users}


def handle_join(data):
    data = data or {}
    code = data.get('code')
    try:
        _games().join(request.sid, code, data.get('name'))
        state = _games().snapshot(code)
    except GameError as exc:
        return _error(exc)
    join_room(code)
    payload = {
        'users': state['users'],
        'maxRounds': state['maxRounds'],
        'categories': state['categories'],
    }
    emit('gameData', payload, to=code)
    return payload


def handle_start_game(data):
    try:
        return _games().start_game((data or {}).get('code'))
    except GameError as exc:
        return _error(exc)


def handle_restart_game(data):
    try:
        _games().restart_game((data or {}).get('code'))
    except GameError as exc:
        return _error(exc)
    return {}


def handle_send_response(data):
    data = data or {}
    try:
        _games().submit_response(request.sid, data.get('code'), data.get('round'), data.get('response'))
    except GameError as exc:
        return _error(exc)
    return {}


def handle_send_score(data):
    data = data or {}
    # The scorer reports the score of their partner, identified by ``id``
    scored_id = data.get('id') or request.sid
    try:
        state = _games().submit_score(scored_id, data.get('code'), data.get('round'), data.get('score'))
    except GameError as exc:
        return _error(exc)
    return {'gameState': state}


def handle_player_ready(data):
    data = data or {}
    try:
        state = _games().set_ready(request.sid, data.get('code'), data.get('round'))
    except GameError as exc:
        return _error(exc)
    return {'gameState': state}


def handle_remove_user(data):
    code = _games().player_code(request.sid)
    if code:
        leave_room(code)
    _games().leave(request.sid)
    return {}


def handle_stop_timer(data):
    _games().stop_timer((data or {}).get('code'))


def handle_disconnect(reason=None):
    # Socket.IO drops the rooms itself
    _games().leave(request.sid)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register the game's Socket.IO event handlers on ``namespace``."""
    socketio.on_event('create', handle_create, namespace=namespace)
    socketio.on_event('join', handle_join, namespace=namespace)
    socketio.on_event('startGame', handle_start_game, namespace=namespace)
    socketio.on_event('restartGame', handle_restart_game, namespace=namespace)
    socketio.on_event('sendResponse', handle_send_response, namespace=namespace)
    socketio.on_event('sendScore', handle_send_score, namespace=namespace)
    socketio.on_event('playerReady', handle_player_ready, namespace=namespace)
    socketio.on_event('removeUserFromGame', handle_remove_user, namespace=namespace)
    socketio.on_event('stopTimer', handle_stop_timer, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
