from flask_socketio import join_room, leave_room, emit
from flask_login import current_user
from flask import current_app
from app import socketio
from app.services.listings.store import LISTINGS_ROOM


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # Rooms are dropped with the socket; nothing else to release
    pass


def handle_subscribe_listings(data=None):
    if not current_user.is_authenticated:
        emit('error', {'message': 'Access password required'})
        return
    join_room(LISTINGS_ROOM)
    emit('subscribed', {
        'room': LISTINGS_ROOM,
        'refilter_interval_sec': current_app.config.get('LIVE_REFILTER_INTERVAL_SEC', 60),
    })


def handle_unsubscribe_listings(data=None):
    leave_room(LISTINGS_ROOM)
    emit('unsubscribed', {'room': LISTINGS_ROOM})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('subscribe_listings', handle_subscribe_listings, namespace=namespace)
        socketio.on_event('unsubscribe_listings', handle_unsubscribe_listings, namespace=namespace)
