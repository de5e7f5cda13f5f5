import threading
from urllib.parse import urlsplit

import pytest
import requests

from timeshop.client.api import ApiError, PresenceChannel, TimeShopClient
from timeshop.client.player import HeadlessPlayer


class FlaskResponse:
    def __init__(self, response):
        self.status_code = response.status_code
        self.ok = response.status_code < 400
        self._data = response.get_json(silent=True)

    def json(self):
        if self._data is None:
            raise ValueError('no JSON body')
        return self._data


class FlaskSession:
    """Routes requests.Session calls into the Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client
        self.fail_with = None

    def post(self, url, json=None, timeout=None):
        if self.fail_with:
            raise self.fail_with
        return FlaskResponse(self.test_client.post(urlsplit(url).path, json=json))

    def get(self, url, timeout=None):
        return FlaskResponse(self.test_client.get(urlsplit(url).path))


class FakeChannel:
    def __init__(self):
        self.sent = []
        self.listeners = []

    def on_total_time(self, listener):
        self.listeners.append(listener)

    def send_presence(self, payload):
        self.sent.append(payload)

    def push_total(self, value):
        for listener in self.listeners:
            listener(value)


class StubSocket:
    """Records what PresenceChannel does with its socketio.Client."""

    def __init__(self):
        self.handlers = {}
        self.connected = False
        self.connects = []
        self.emitted = []

    def on(self, event, handler=None):
        self.handlers[event] = handler

    def connect(self, url):
        self.connected = True
        self.connects.append(url)

    def disconnect(self):
        self.connected = False

    def emit(self, event, data=None):
        self.emitted.append((event, data))


class SlowSyncClient:
    def __init__(self):
        self.release = threading.Event()
        self.synced = []

    def sync_state(self, username, password, state):
        self.release.wait(2.0)
        self.synced.append(state['totalSeconds'])


@pytest.fixture()
def api(client):
    return TimeShopClient('http://testserver/', session=FlaskSession(client))


def test_client_surfaces_server_errors(api):
    api.signup('alice', 'secret')
    with pytest.raises(ApiError) as exc:
        api.signup('alice', 'secret')
    assert exc.value.status_code == 400
    assert exc.value.message == 'Username already exists.'
    with pytest.raises(ApiError) as exc:
        api.login('alice', 'wrong')
    assert exc.value.status_code == 401


def test_client_reviews_round_trip(api):
    api.signup('alice', 'secret')
    assert api.submit_review('alice', 'secret', 'b', 'nice') == {'ok': True}
    assert [r['text'] for r in api.reviews('B')] == ['nice']


def test_headless_player_session(client, api, store):
    channel = FakeChannel()
    player = HeadlessPlayer('http://testserver', 'alice', 'secret', client=api, channel=channel, rng=lambda: 0.999)
    state = player.sign_in(create=True)
    assert state.total_seconds == 0
    assert player.activity.authenticated

    for _ in range(20):
        player.timer.tick()
    assert player.timer.coin_offer_pending
    assert player.timer.claim_coin()
    assert player.timer.draw() == 'S'

    stored = store.get_account('alice').state
    assert stored['totalSeconds'] == 20
    assert stored['coinsClaimed'] == 1
    assert stored['coinsSpent'] == 3
    assert stored['cards'] == ['S']
    assert store.total_time() == 20
    assert channel.sent[-1]['lastCards'] == ['S']

    player.timer.stop()


def test_headless_player_drops_failed_syncs(api, store):
    player = HeadlessPlayer('http://testserver', 'alice', 'secret', client=api, channel=FakeChannel())
    player.sign_in(create=True)
    api.session.fail_with = requests.ConnectionError('network blip')
    for _ in range(10):
        player.timer.tick()
    assert store.get_account('alice').state['totalSeconds'] == 0

    api.session.fail_with = None
    for _ in range(10):
        player.timer.tick()
    # The next successful sync carries the cumulative value
    assert store.total_time() == 20
    player.timer.stop()


def test_headless_player_adopts_server_config(api):
    player = HeadlessPlayer('http://testserver', 'alice', 'secret', client=api, channel=FakeChannel())
    player.apply_config({'coinIntervalSec': 5, 'drawTable': [['S', 1.0]]})
    assert player.timer.coin_interval == 5
    assert player.timer.draw_table.entries == [('S', 1.0)]


def test_global_clock_follows_server_pushes(api):
    channel = FakeChannel()
    player = HeadlessPlayer('http://testserver', 'alice', 'secret', client=api, channel=channel)
    channel.push_total(120)
    assert player.global_seconds == 120
    player._advance_global_clock()
    assert player.global_seconds == 121


def test_headless_player_syncs_off_the_tick_thread():
    api = SlowSyncClient()
    player = HeadlessPlayer('http://testserver', 'alice', 'secret', client=api, channel=FakeChannel())
    player.activity.authenticated = True
    player.syncs.start()
    for _ in range(20):
        player.timer.tick()
    # Ticks never wait on the network
    assert player.timer.state.total_seconds == 20
    assert api.synced == []

    api.release.set()
    player.syncs.stop()
    assert api.synced == [10, 20, 20]
    player.timer.stop()


def test_presence_channel_coerces_pushed_totals():
    sio = StubSocket()
    channel = PresenceChannel('http://testserver', sio=sio)
    seen = []
    channel.on_total_time(seen.append)

    sio.handlers['totalTime']('42')
    assert channel.total_time == 42
    sio.handlers['totalTime'](None)
    sio.handlers['totalTime']('not-a-number')
    assert seen == [42, 0, 0]


def test_presence_channel_fans_out_online_users():
    sio = StubSocket()
    channel = PresenceChannel('http://testserver', sio=sio)
    first, second = [], []
    channel.on_online_users(first.append)
    channel.on_online_users(second.append)

    users = [{'username': 'alice', 'totalSeconds': 3}]
    sio.handlers['onlineUsers'](users)
    assert channel.online_users == users
    assert first == second == [users]
    sio.handlers['onlineUsers'](None)
    assert channel.online_users == []


def test_presence_channel_only_emits_while_connected():
    sio = StubSocket()
    channel = PresenceChannel('http://testserver', sio=sio)
    channel.send_presence({'username': 'alice'})
    assert sio.emitted == []

    channel.connect()
    channel.connect()
    assert sio.connects == ['http://testserver']
    channel.send_presence({'username': 'alice'})
    assert sio.emitted == [('presence:update', {'username': 'alice'})]

    channel.disconnect()
    channel.send_presence({'username': 'alice'})
    assert len(sio.emitted) == 1
