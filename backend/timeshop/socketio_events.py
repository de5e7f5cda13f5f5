from flask_socketio import emit
from flask import current_app, request

from timeshop.store import get_store
from timeshop.services.sync.presence import PresenceRegistry, normalize_snapshot

NAMESPACE = '/'


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _registry() -> PresenceRegistry:
    return current_app.extensions['presence']


def handle_connect():
    emit('totalTime', get_store().total_time())


def handle_disconnect(*args):
    sid = _get_sid()
    removed = _registry().remove(sid)
    current_app.logger.info(f"[presence-leave] sid={sid} had_snapshot={removed} online={len(_registry())}")


def handle_presence_update(data):
    snapshot = normalize_snapshot(data or {})
    if snapshot is None:
        return
    _registry().upsert(_get_sid(), snapshot)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the default namespace."""
    from timeshop import socketio
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('presence:update', handle_presence_update, namespace=NAMESPACE)
