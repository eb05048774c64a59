NS = '/ws'


def _connect(sio_factory):
    client = sio_factory()
    received = client.get_received(NS)
    [hello] = [pkt for pkt in received if pkt['name'] == 'connected']
    return client, hello['args'][0]['sid']


def _events(client, name):
    return [pkt['args'][0] for pkt in client.get_received(NS) if pkt['name'] == name]


def _table(sio_factory):
    host, hid = _connect(sio_factory)
    alice, aid = _connect(sio_factory)
    bob, bid = _connect(sio_factory)
    host.emit('room:create', {'code': 'ABCD', 'name': 'Hana'}, namespace=NS)
    alice.emit('room:join', {'code': 'ABCD', 'name': 'Alice'}, namespace=NS)
    bob.emit('room:join', {'code': 'ABCD', 'name': 'Bob'}, namespace=NS)
    return {hid: host, aid: alice, bid: bob}, hid


def test_socket_connect_greets_with_sid(sio_factory):
    client, sid = _connect(sio_factory)
    assert client.is_connected(NS)
    assert sid


def test_join_broadcasts_room_update(sio_factory):
    clients, hid = _table(sio_factory)
    host = clients[hid]
    updates = _events(host, 'room:update')
    assert updates[-1]['host'] == hid
    assert [p['name'] for p in updates[-1]['players']] == ['Hana', 'Alice', 'Bob']
    assert updates[-1]['phase'] == 'lobby'


def test_deal_needs_three_players(sio_factory):
    host, hid = _connect(sio_factory)
    guest, _ = _connect(sio_factory)
    host.emit('room:create', {'code': 'DUO', 'name': 'Hana'}, namespace=NS)
    guest.emit('room:join', {'code': 'DUO', 'name': 'Gus'}, namespace=NS)
    host.get_received(NS)
    guest.get_received(NS)

    host.emit('round:deal', {'code': 'DUO'}, namespace=NS)
    assert _events(host, 'round:error') == [{'reason': 'not_enough_players', 'need': 3, 'have': 2}]
    assert _events(guest, 'round:error') == []


def test_full_round_over_sockets(flask_app, sio_factory):
    clients, hid = _table(sio_factory)
    for c in clients.values():
        c.get_received(NS)
    game = flask_app.extensions['imposter_game']
    room = game.registry.get('ABCD')

    clients[hid].emit('topic:set', {'code': 'ABCD', 'topic': 'food'}, namespace=NS)
    clients[hid].emit('round:deal', {'code': 'ABCD'}, namespace=NS)
    roles = {sid: _events(c, 'role:assign') for sid, c in clients.items()}
    assert all(len(r) == 1 for r in roles.values())
    assert sum(r[0]['isImposter'] for r in roles.values()) == 1
    assert {r[0]['topic'] for r in roles.values()} == {'food'}

    clients[hid].emit('round:discuss', {'code': 'ABCD'}, namespace=NS)
    assert room.phase == 'discuss'
    for _ in range(3):
        clients[room.current_turn].emit('turn:submit', {'code': 'ABCD', 'word': 'tasty'}, namespace=NS)
    assert room.phase == 'vote'
    words_seen = _events(clients[hid], 'turn:word')
    assert [w['text'] for w in words_seen] == ['tasty'] * 3

    sids = list(clients)
    target = sids[1]
    for sid in sids:
        vote_for = target if sid != target else sids[0]
        clients[sid].emit('vote:cast', {'code': 'ABCD', 'targetId': vote_for}, namespace=NS)
    assert room.phase == 'reveal'
    for c in clients.values():
        [results] = _events(c, 'round:results')
        assert results['executed'] == target
        assert results['secret'] == room.secret_word


def test_jailbreak_over_sockets(flask_app, sio_factory):
    clients, hid = _table(sio_factory)
    room = flask_app.extensions['imposter_game'].registry.get('ABCD')
    clients[hid].emit('round:discuss', {'code': 'ABCD'}, namespace=NS)
    clients[hid].emit('round:start-vote', {'code': 'ABCD'}, namespace=NS)
    [imp] = [sid for sid, p in room.players.items() if p.is_imposter]
    for c in clients.values():
        c.get_received(NS)

    clients[imp].emit('imposter:guess', {'code': 'ABCD', 'guess': room.secret_word.upper()}, namespace=NS)
    received = clients[imp].get_received(NS)
    names = [pkt['name'] for pkt in received]
    assert names.index('guess:result') < names.index('round:results')
    [results] = [pkt['args'][0] for pkt in received if pkt['name'] == 'round:results']
    assert results['jailbreak'] == imp
    assert results['executed'] is None
    assert room.phase == 'reveal'


def test_non_string_names_fall_back_instead_of_dropping(flask_app, sio_factory):
    first, fid = _connect(sio_factory)
    second, sid = _connect(sio_factory)
    first.emit('room:join', {'code': 'NAMES', 'name': 42}, namespace=NS)
    second.emit('room:join', {'code': 'NAMES', 'name': None}, namespace=NS)
    room = flask_app.extensions['imposter_game'].registry.get('NAMES')
    assert room.players[fid].name == '42'
    assert room.players[sid].name == 'Player'


def test_malformed_payloads_are_dropped(flask_app, sio_factory):
    clients, hid = _table(sio_factory)
    room = flask_app.extensions['imposter_game'].registry.get('ABCD')
    host = clients[hid]
    host.get_received(NS)

    host.emit('timer:set', {'code': 'ABCD', 'seconds': 'soon'}, namespace=NS)
    host.emit('round:deal', {}, namespace=NS)
    host.emit('vote:cast', 'nonsense', namespace=NS)
    assert room.timer_sec == 90
    assert room.phase == 'lobby'
    assert host.get_received(NS) == []

    host.emit('timer:set', {'code': 'ABCD', 'seconds': '120'}, namespace=NS)
    assert room.timer_sec == 120


def test_dm_reaches_only_sender_and_recipient(sio_factory):
    clients, hid = _table(sio_factory)
    for c in clients.values():
        c.get_received(NS)
    others = [sid for sid in clients if sid != hid]
    to, bystander = others

    clients[hid].emit('dm:send', {'code': 'ABCD', 'to': to, 'text': 'hi'}, namespace=NS)
    [msg] = _events(clients[to], 'dm:msg')
    assert msg['from'] == hid and msg['name'] == 'Hana' and msg['text'] == 'hi'
    assert len(_events(clients[hid], 'dm:msg')) == 1
    assert _events(clients[bystander], 'dm:msg') == []


def test_leave_and_disconnect_remove_players(flask_app, sio_factory):
    clients, hid = _table(sio_factory)
    game = flask_app.extensions['imposter_game']
    others = [sid for sid in clients if sid != hid]

    clients[others[0]].emit('room:leave', {}, namespace=NS)
    assert others[0] not in game.registry.get('ABCD').players
    clients[others[1]].disconnect(namespace=NS)
    assert list(game.registry.get('ABCD').players) == [hid]

    clients[hid].disconnect(namespace=NS)
    assert 'ABCD' not in game.registry
