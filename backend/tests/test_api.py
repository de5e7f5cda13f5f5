import pytest

from timeshop.services.sync import reviews as reviews_service
from timeshop.store import AccountExists, AccountRecord


def test_signup_returns_fresh_state(client):
    res = client.post('/auth/signup', json={'username': 'alice', 'password': 'secret'})
    assert res.status_code == 200
    data = res.get_json()
    assert data['username'] == 'alice'
    assert data['state'] == {
        'totalSeconds': 0,
        'coinsSpent': 0,
        'cards': [],
        'coinsClaimed': 0,
        'coinEventsTriggered': 0,
    }


@pytest.mark.parametrize('body', [{}, {'username': 'alice'}, {'password': 'x'}, {'username': '', 'password': 'x'}])
def test_signup_and_login_require_both_fields(client, body):
    for path in ('/auth/signup', '/auth/login'):
        res = client.post(path, json=body)
        assert res.status_code == 400
        assert res.get_json()['error'] == 'Username and password are required.'


def test_duplicate_signup_is_bad_request(client, signup):
    signup('alice')
    res = client.post('/auth/signup', json={'username': 'alice', 'password': 'other'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Username already exists.'


def test_store_rejects_a_taken_username(store):
    store.create_account(AccountRecord(username='dup', password='first'))
    with pytest.raises(AccountExists):
        store.create_account(AccountRecord(username='dup', password='second'))
    assert store.get_account('dup').password == 'first'


def test_long_passwords_sign_up_and_log_in(client):
    password = 'x' * 100
    assert client.post('/auth/signup', json={'username': 'longpw', 'password': password}).status_code == 200
    res = client.post('/auth/login', json={'username': 'longpw', 'password': password})
    assert res.status_code == 200
    assert res.get_json()['username'] == 'longpw'
    # Only the full password matches, not its first 72 bytes
    res = client.post('/auth/login', json={'username': 'longpw', 'password': 'x' * 72})
    assert res.status_code == 401


def test_login_with_wrong_password_is_unauthorized(client, signup):
    signup('alice', 'secret')
    res = client.post('/auth/login', json={'username': 'alice', 'password': 'nope'})
    assert res.status_code == 401
    res = client.post('/auth/login', json={'username': 'nobody', 'password': 'secret'})
    assert res.status_code == 401


def test_credentials_are_stored_hashed(signup, store):
    signup('alice', 'secret')
    stored = store.get_account('alice').password
    assert stored != 'secret'
    assert stored.startswith('$2')


def test_login_returns_last_synced_state(client, signup):
    signup('alice', 'secret')
    state = {
        'totalSeconds': 42,
        'coinsSpent': 3,
        'cards': ['F'],
        'coinsClaimed': 2,
        'coinEventsTriggered': 2,
    }
    res = client.post('/api/state', json={'username': 'alice', 'password': 'secret', 'state': state})
    assert res.status_code == 200
    assert res.get_json() == {'ok': True}

    res = client.post('/auth/login', json={'username': 'alice', 'password': 'secret'})
    assert res.status_code == 200
    assert res.get_json() == {'username': 'alice', 'state': state}


def test_sync_requires_fields_and_credentials(client, signup):
    signup('alice', 'secret')
    assert client.post('/api/state', json={'username': 'alice', 'password': 'secret'}).status_code == 400
    assert client.post('/api/state', json={'username': 'alice', 'state': {}}).status_code == 400
    assert client.post('/api/state', json={'username': 'alice', 'password': 'secret',
                                           'state': 'not-an-object'}).status_code == 400
    for literal in ('Infinity', '-Infinity', 'NaN'):
        body = '{"username": "alice", "password": "secret", "state": {"totalSeconds": %s}}' % literal
        res = client.post('/api/state', data=body, content_type='application/json')
        assert res.status_code == 400
        assert res.get_json()['error'] == 'Bad request.'
    res = client.post('/api/state', json={'username': 'alice', 'password': 'bad', 'state': {'totalSeconds': 5}})
    assert res.status_code == 401
    assert res.get_json()['error'] == 'Unauthorized.'


def test_sync_adds_positive_delta_to_global_counter(client, signup, store):
    signup('alice', 'secret')
    signup('bob', 'secret')
    client.post('/api/state', json={'username': 'alice', 'password': 'secret', 'state': {'totalSeconds': 30}})
    client.post('/api/state', json={'username': 'bob', 'password': 'secret', 'state': {'totalSeconds': 12}})
    client.post('/api/state', json={'username': 'alice', 'password': 'secret', 'state': {'totalSeconds': 35}})
    assert store.total_time() == 47
    assert client.get('/api/total-time').get_json() == {'totalTime': 47}


def test_out_of_order_syncs_last_write_wins(client, signup, store):
    signup('alice', 'secret')
    client.post('/api/state', json={'username': 'alice', 'password': 'secret', 'state': {'totalSeconds': 50}})
    assert store.total_time() == 50
    client.post('/api/state', json={'username': 'alice', 'password': 'secret', 'state': {'totalSeconds': 40}})
    # Rollback is clamped for the counter but the older snapshot still replaces the state
    assert store.total_time() == 50
    assert store.get_account('alice').state['totalSeconds'] == 40


def test_session_login_check_and_logout(client, signup):
    assert client.get('/auth/check').status_code == 401
    signup('alice', 'secret')
    res = client.get('/auth/check')
    assert res.status_code == 200
    assert res.get_json()['username'] == 'alice'

    client.post('/api/state', json={'username': 'alice', 'password': 'secret', 'state': {'totalSeconds': 9}})
    assert client.get('/auth/check').get_json()['state'] == {'totalSeconds': 9}

    assert client.post('/auth/logout').get_json() == {'ok': True}
    assert client.get('/auth/check').status_code == 401


def test_review_validation(client, signup):
    signup('alice', 'secret')
    base = {'username': 'alice', 'password': 'secret', 'cardLevel': 's', 'text': 'shiny'}

    assert client.post('/api/reviews', json={**base, 'text': '   '}).status_code == 400
    assert client.post('/api/reviews', json={**base, 'cardLevel': ''}).status_code == 400
    assert client.post('/api/reviews', json={**base, 'password': 'bad'}).status_code == 401
    res = client.post('/api/reviews', json={**base, 'cardLevel': 'Z'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Invalid card level.'

    assert client.post('/api/reviews', json=base).get_json() == {'ok': True}
    listed = client.get('/api/reviews/S').get_json()
    assert listed['level'] == 'S'
    assert [(r['username'], r['text'], r['level']) for r in listed['reviews']] == [('alice', 'shiny', 'S')]


def test_reviews_are_listed_newest_first(client, signup, monkeypatch):
    signup('alice', 'secret')
    signup('bob', 'secret')
    stamps = iter(['2025-03-02T10:00:00.000Z', '2025-03-01T10:00:00.000Z', '2025-03-03T10:00:00.000Z'])
    monkeypatch.setattr(reviews_service, 'utc_timestamp', lambda: next(stamps))

    client.post('/api/reviews', json={'username': 'alice', 'password': 'secret', 'cardLevel': 'S', 'text': 'middle'})
    client.post('/api/reviews', json={'username': 'bob', 'password': 'secret', 'cardLevel': 'S', 'text': 'oldest'})
    client.post('/api/reviews', json={'username': 'bob', 'password': 'secret', 'cardLevel': 'A', 'text': 'other'})

    reviews = client.get('/api/reviews/s').get_json()['reviews']
    assert [r['text'] for r in reviews] == ['middle', 'oldest']
    assert reviews[0]['createdAt'] == '2025-03-02T10:00:00.000Z'


def test_reviews_for_unknown_level(client):
    res = client.get('/api/reviews/X')
    assert res.status_code == 400
    assert client.get('/api/reviews/none').get_json() == {'level': 'NONE', 'reviews': []}


def test_game_config_exposes_economy(client):
    config = client.get('/api/config').get_json()
    assert config['baseCoins'] == 2
    assert config['coinIntervalSec'] == 20
    assert config['drawCost'] == 3
    assert [level for level, _ in config['drawTable']] == ['NONE', 'F', 'E', 'D', 'C', 'B', 'A', 'S']


def test_store_reset_command(flask_app, signup, store):
    signup('alice', 'secret')
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['store-reset'])
    assert 'has been reset' in result.output
    assert store.get_account('alice') is None
    assert store.total_time() == 0
