from conftest import listing_fields


def _events(sio_client, name):
    return [pkt for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def _subscribe(sio_client):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    sio_client.get_received('/ws')  # flush 'connected'
    sio_client.emit('subscribe_listings', {}, namespace='/ws')
    acks = _events(sio_client, 'subscribed')
    assert acks and acks[0]['args'][0]['room'] == 'listings'


def test_socket_connect_and_subscribe(sio_client):
    assert sio_client.is_connected('/ws')
    _subscribe(sio_client)


def test_subscribe_requires_gate(flask_app):
    from app import socketio
    anon = socketio.test_client(flask_app, flask_test_client=flask_app.test_client(), namespace='/ws')
    try:
        anon.get_received('/ws')
        anon.emit('subscribe_listings', {}, namespace='/ws')
        received = anon.get_received('/ws')
        assert any(pkt['name'] == 'error' for pkt in received)
        assert not any(pkt['name'] == 'subscribed' for pkt in received)
    finally:
        anon.disconnect(namespace='/ws')


def test_insert_and_delete_notify_subscribers(sio_client, gate_client):
    _subscribe(sio_client)

    created = gate_client.post('/api/listings', json=listing_fields()).get_json()
    inserted = _events(sio_client, 'listings_changed')
    assert inserted and inserted[-1]['args'][0] == {'event': 'INSERT', 'ids': [created['id']]}

    gate_client.delete(f"/api/listings/{created['id']}")
    deleted = _events(sio_client, 'listings_changed')
    assert deleted and deleted[-1]['args'][0] == {'event': 'DELETE', 'ids': [created['id']]}


def test_failed_submission_does_not_notify(sio_client, gate_client):
    _subscribe(sio_client)
    res = gate_client.post('/api/listings', json=listing_fields(name=''))
    assert res.status_code == 400
    assert _events(sio_client, 'listings_changed') == []


def test_cleanup_notifies_subscribers(sio_client, client):
    from datetime import datetime, timedelta
    from app import db
    from app.models import Listing

    old = Listing(name='Old', email='o@example.com', location='Online (BBO)',
                  date=(datetime.now() - timedelta(days=5)).strftime('%Y-%m-%d'), time='10:00', level='Novice')
    db.session.add(old)
    db.session.commit()
    old_id = old.id

    _subscribe(sio_client)
    assert client.post('/api/cleanup-expired-listings').get_json()['deletedCount'] == 1
    changed = _events(sio_client, 'listings_changed')
    assert changed and changed[-1]['args'][0] == {'event': 'DELETE', 'ids': [old_id]}


def test_unsubscribe_stops_notifications(sio_client, gate_client):
    _subscribe(sio_client)
    sio_client.emit('unsubscribe_listings', {}, namespace='/ws')
    assert _events(sio_client, 'unsubscribed')

    gate_client.post('/api/listings', json=listing_fields())
    assert _events(sio_client, 'listings_changed') == []


def test_only_listing_events_are_handled(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert sio_client.get_received('/ws') == []
