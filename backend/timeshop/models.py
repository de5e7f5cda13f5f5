from timeshop import db
import json


def new_session_state():
    return {
        'totalSeconds': 0,
        'coinsSpent': 0,
        'cards': [],
        'coinsClaimed': 0,
        'coinEventsTriggered': 0,
    }


class Account(db.Model):
    __tablename__ = 'account'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    state = db.Column(db.Text, nullable=False)  # JSON-encoded session state

    def load_state(self):
        try:
            return json.loads(self.state) if self.state else new_session_state()
        except ValueError:
            return new_session_state()


class Review(db.Model):
    __tablename__ = 'review'
    id = db.Column(db.Integer, primary_key=True)
    level = db.Column(db.String(8), nullable=False, index=True)
    username = db.Column(db.String(64), nullable=False)
    text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.String(40), nullable=False)  # ISO-8601 UTC


class GlobalCounter(db.Model):
    """Single-row table holding the lifetime playtime of all accounts."""
    __tablename__ = 'global_counter'
    id = db.Column(db.Integer, primary_key=True)
    total_time = db.Column(db.BigInteger, nullable=False, default=0)
