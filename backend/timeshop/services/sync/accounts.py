import hmac
from typing import Any, Mapping

from flask import current_app

from timeshop import bcrypt
from timeshop.errors import BadRequest, Unauthorized
from timeshop.models import new_session_state
from timeshop.store import AccountExists, AccountRecord, AccountStore

BCRYPT_PREFIXES = ('$2a$', '$2b$', '$2y$')


def require_fields(data: Mapping[str, Any], *names: str, message: str = 'Bad request.'):
    """Return the values of ``names`` from ``data``; BadRequest if any is absent or empty."""
    values = tuple((data or {}).get(name) for name in names)
    if any(value is None or value == '' for value in values):
        raise BadRequest(message)
    return values


def require_credentials(data: Mapping[str, Any], message: str = 'Bad request.'):
    username, password = require_fields(data, 'username', 'password', message=message)
    if not isinstance(username, str) or not isinstance(password, str):
        raise BadRequest(message)
    return username, password


def hash_credential(password: str) -> str:
    return bcrypt.generate_password_hash(password).decode('utf-8')


def is_hashed(stored: str) -> bool:
    return bool(stored) and stored.startswith(BCRYPT_PREFIXES)


def credential_matches(stored: str, password: str) -> bool:
    if not stored or not password:
        return False
    if is_hashed(stored):
        return bcrypt.check_password_hash(stored, password)
    # Accounts imported from an old plaintext document
    return hmac.compare_digest(str(stored).encode('utf-8'), str(password).encode('utf-8'))


def signup(store: AccountStore, username: str, password: str) -> AccountRecord:
    account = AccountRecord(username=username, password=hash_credential(password), state=new_session_state())
    try:
        store.create_account(account)
    except AccountExists:
        raise BadRequest('Username already exists.')
    current_app.logger.info(f"[signup] username={username}")
    return account


def authenticate(store: AccountStore, username: str, password: str,
                 message: str = 'Unauthorized.') -> AccountRecord:
    """Load the account and check its credential; Unauthorized on mismatch.

    A plaintext credential that matches is re-hashed in place.
    """
    account = store.get_account(username)
    if not account or not credential_matches(account.password, password):
        current_app.logger.info(f"[auth-fail] username={username}")
        raise Unauthorized(message)
    if not is_hashed(account.password):
        account.password = hash_credential(password)
        store.put_credential(username, account.password)
        current_app.logger.info(f"[rehash] username={username} upgraded plaintext credential")
    return account
