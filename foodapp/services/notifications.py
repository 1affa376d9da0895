# Real-time fanout of order events
import logging

logger = logging.getLogger(__name__)


class EventPublisher:
    """Transport-agnostic sink for order events"""

    def publish(self, event, payload, room=None):
        raise NotImplementedError


class NullPublisher(EventPublisher):
    def publish(self, event, payload, room=None):
        return False


class SocketIOPublisher(EventPublisher):
    """Broadcasts events to Socket.IO clients, globally or to one room.

    Emission is fire-and-forget: a failing transport is logged and never
    propagates into the operation that produced the event.
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def publish(self, event, payload, room=None):
        try:
            if room is None:
                self.socketio.emit(event, payload)
            else:
                self.socketio.emit(event, payload, room=room)
            logger.debug(f"Sent {event} to {room or 'all clients'}")
            return True
        except Exception as e:
            logger.warning(f"Failed to send {event} to {room or 'all clients'}: {e}")
            return False
