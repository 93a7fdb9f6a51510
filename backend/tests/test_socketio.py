def _flush(sio_client):
    return sio_client.get_received('/ws')


def test_socket_connect_and_join(sio_client):
    assert sio_client.is_connected('/ws')

    sio_client.emit('join_game', {'game_code': 'abcd12'}, namespace='/ws')
    received = _flush(sio_client)
    joined = [pkt for pkt in received if pkt['name'] == 'joined']
    assert joined and joined[0]['args'][0] == {'room': 'ABCD12'}


def test_join_requires_game_code(sio_client):
    _flush(sio_client)
    sio_client.emit('join_game', {}, namespace='/ws')
    received = _flush(sio_client)
    assert any(pkt['name'] == 'error' for pkt in received)


def test_square_updates_reach_room(client, sio_client, game, join):
    code = game['gameCode']
    alice = join(code, 'Alice', '5551234567')
    sio_client.emit('join_game', {'game_code': code.lower()}, namespace='/ws')
    _flush(sio_client)

    res = client.post(f'/api/games/{code}/squares', json={
        'userId': alice['userId'], 'action': 'select', 'row': 1, 'col': 2,
    })
    assert res.status_code == 200
    events = [pkt for pkt in _flush(sio_client) if pkt['name'] == 'square-updated']
    assert events[0]['args'][0] == {'row': 1, 'col': 2, 'userId': alice['userId']}

    client.post(f'/api/games/{code}/squares', json={
        'userId': alice['userId'], 'action': 'deselect', 'row': 1, 'col': 2,
    })
    events = [pkt for pkt in _flush(sio_client) if pkt['name'] == 'square-updated']
    assert events[0]['args'][0] == {'row': 1, 'col': 2, 'userId': None}


def test_winner_updates_reach_room(client, sio_client, game):
    code = game['gameCode']
    sio_client.emit('join_game', {'game_code': code}, namespace='/ws')
    client.post(f'/api/games/{code}/admin/start', json={'adminId': game['adminId']})
    _flush(sio_client)

    client.post(f'/api/games/{code}/admin/set-winner', json={
        'adminId': game['adminId'], 'row': 0, 'col': 9, 'quarters': ['Final'],
    })
    events = [pkt for pkt in _flush(sio_client) if pkt['name'] == 'winner-updated']
    assert events[0]['args'][0] == {'row': 0, 'col': 9, 'winners': ['Final']}


def test_rejected_mutation_is_not_broadcast(client, broadcaster, game, join):
    code = game['gameCode']
    alice = join(code, 'Alice', '5551234567')
    broadcaster.events.clear()
    res = client.post(f'/api/games/{code}/squares', json={
        'userId': alice['userId'], 'action': 'deselect', 'row': 0, 'col': 0,
    })
    assert res.status_code == 400
    assert broadcaster.events == []


def test_broadcast_failure_does_not_fail_request(flask_app, client, game, join):
    class BrokenBroadcaster:
        def publish(self, game_code, event, payload):
            raise RuntimeError('socket server gone')

    code = game['gameCode']
    alice = join(code, 'Alice', '5551234567')
    flask_app.extensions['squares_broadcaster'] = BrokenBroadcaster()

    res = client.post(f'/api/games/{code}/squares', json={
        'userId': alice['userId'], 'action': 'select', 'row': 6, 'col': 6,
    })
    assert res.status_code == 200
    grid = client.get(f'/api/games/{code}/squares').get_json()['grid']
    assert grid['6-6']['userId'] == alice['userId']


def test_missing_broadcaster_is_a_no_op(flask_app, client, game, join):
    code = game['gameCode']
    alice = join(code, 'Alice', '5551234567')
    flask_app.extensions.pop('squares_broadcaster')
    res = client.post(f'/api/games/{code}/squares', json={
        'userId': alice['userId'], 'action': 'select', 'row': 6, 'col': 7,
    })
    assert res.status_code == 200
