import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '6020'))
    # Account store engine: 'json' (single document on disk) or 'sql'
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'json')
    STORE_PATH = os.environ.get('STORE_PATH', 'db.json')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///timeshop.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = int(os.environ.get('BCRYPT_LOG_ROUNDS', '12'))
    # SHA-256 the password first so credentials past bcrypt's 72-byte limit still work
    BCRYPT_HANDLE_LONG_PASSWORDS = True
    # Comma separated; '*' allows any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:6020,http://127.0.0.1:6020')
    # Coin economy
    BASE_COINS = int(os.environ.get('BASE_COINS', '2'))
    COIN_INTERVAL_SEC = int(os.environ.get('COIN_INTERVAL_SEC', '20'))
    COIN_LIFETIME_MS = int(os.environ.get('COIN_LIFETIME_MS', '3000'))
    DRAW_COST = int(os.environ.get('DRAW_COST', '3'))
    # Cumulative draw table, e.g. "NONE:0.2,F:0.45,...,S:1.0". Empty uses the default table.
    DRAW_TABLE = os.environ.get('DRAW_TABLE', '')
    # Session timer duty cycles (active seconds)
    SYNC_EVERY_SEC = int(os.environ.get('SYNC_EVERY_SEC', '10'))
    PRESENCE_EVERY_SEC = int(os.environ.get('PRESENCE_EVERY_SEC', '5'))
    RECENT_CARDS = int(os.environ.get('RECENT_CARDS', '3'))
