import logging

from flask import request
from flask_socketio import emit, join_room, leave_room

logger = logging.getLogger(__name__)


def _order_room(data):
    """Room name from a bare order id or ``{"orderId": ...}``"""
    if isinstance(data, dict):
        data = data.get('orderId') or data.get('order_id')
    if data is None or data == '':
        return None
    return str(data)


def register_socket_events(socketio):
    @socketio.on('connect')
    def handle_connect():
        logger.debug(f"Client connected: {request.sid}")

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        logger.debug(f"Client disconnected: {request.sid}")

    @socketio.on('join_order_room')
    def handle_join_order_room(data):
        room = _order_room(data)
        if room is None:
            emit('room_error', {'error': 'orderId is required'})
            return

        join_room(room)
        logger.info(f"Client {request.sid} joined order room {room}")
        emit('order_room_joined', {'orderId': room})

    @socketio.on('leave_order_room')
    def handle_leave_order_room(data):
        room = _order_room(data)
        if room is None:
            return

        leave_room(room)
        emit('order_room_left', {'orderId': room})
