from flask import current_app


class SocketIOBroadcaster:
    """Publishes game events to the Socket.IO room named after the game code."""

    def __init__(self, socketio, namespace='/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def publish(self, game_code: str, event: str, payload: dict) -> None:
        self.socketio.emit(event, payload, to=game_code.upper(), namespace=self.namespace)


def notify(game_code: str, event: str, payload: dict) -> None:
    """Best-effort publish after a committed mutation.

    Never raises: a missing broadcaster is a no-op and a failed publish is
    logged and dropped.
    """
    broadcaster = current_app.extensions.get('squares_broadcaster')
    if broadcaster is None:
        return
    try:
        broadcaster.publish(game_code, event, payload)
    except Exception as exc:
        current_app.logger.warning(f"[notify-failed] game={game_code} event={event} error={exc!r}")
