import os
import sys
import pytest

# Ensure the backend root (containing the `timeshop` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from timeshop import create_app, db, socketio


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    STORE_BACKEND = 'sql'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = '*'
    BASE_COINS = 2
    COIN_INTERVAL_SEC = 20
    DRAW_TABLE = ''


def make_config(backend, tmp_path, **overrides):
    attrs = {'STORE_BACKEND': backend, 'STORE_PATH': str(tmp_path / 'db.json')}
    attrs.update(overrides)
    return type(f'{backend.title()}TestConfig', (TestConfig,), attrs)


@pytest.fixture(params=['sql', 'json'])
def flask_app(request, tmp_path):
    application = create_app(make_config(request.param, tmp_path))
    with application.app_context():
        yield application
        db.session.remove()
        if request.param == 'sql':
            db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def store(flask_app):
    from timeshop.store import get_store
    return get_store()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/'
    )
    yield test_client
    if test_client.is_connected('/'):
        test_client.disconnect(namespace='/')


@pytest.fixture()
def signup(client):
    def _signup(username='alice', password='secret'):
        res = client.post('/auth/signup', json={'username': username, 'password': password})
        assert res.status_code == 200, res.get_json()
        return res.get_json()
    return _signup
