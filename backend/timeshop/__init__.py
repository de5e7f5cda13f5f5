from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    raw = config.get('CORS_ORIGINS') or ''
    if raw.strip() == '*':
        return '*'
    return [o.strip() for o in raw.split(',') if o.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = _allowed_origins(flask_app.config)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from timeshop.errors import register_error_handlers
    register_error_handlers(flask_app)

    # Account store and the presence registry owned by the real-time layer
    from timeshop.store import STORE_EXTENSION_KEY, get_store, make_store
    from timeshop.services.sync.presence import PresenceRegistry
    with flask_app.app_context():
        if flask_app.config.get('STORE_BACKEND', 'json').lower() == 'sql':
            import timeshop.models  # noqa: F401
            db.create_all()
        flask_app.extensions[STORE_EXTENSION_KEY] = make_store(flask_app)
    # Fail fast on a malformed DRAW_TABLE
    from timeshop.services.game.draw import DrawTable
    flask_app.extensions['draw_table'] = DrawTable.parse(flask_app.config.get('DRAW_TABLE', ''))
    flask_app.extensions['presence'] = PresenceRegistry(
        broadcast=lambda snapshots: socketio.emit('onlineUsers', snapshots, namespace='/')
    )

    # Import and register blueprints here
    from timeshop.auth import auth
    flask_app.register_blueprint(auth, url_prefix='/auth')

    from timeshop.api.state import state_api
    flask_app.register_blueprint(state_api, url_prefix='/api')

    from timeshop.api.reviews import reviews_api
    flask_app.register_blueprint(reviews_api, url_prefix='/api')

    from timeshop.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @login_manager.user_loader
    def load_account(username):
        return get_store().get_account(username)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Not logged in.'}), 401

    @flask_app.cli.command('store-reset')
    def store_reset_command():
        """Empties the account store: accounts, reviews and the global counter."""
        get_store().reset()
        print(f"Store ({flask_app.config.get('STORE_BACKEND')}) has been reset!")

    return flask_app
