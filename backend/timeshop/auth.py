from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user

from timeshop.store import get_store
from timeshop.services.sync.accounts import authenticate, require_credentials, signup as create_account

auth = Blueprint('auth', __name__)

MISSING_CREDENTIALS = 'Username and password are required.'


@auth.route('/signup', methods=['POST'])
def signup():
    data = request.get_json(silent=True) or {}
    username, password = require_credentials(data, message=MISSING_CREDENTIALS)
    account = create_account(get_store(), username, password)
    login_user(account)
    return jsonify(account.to_dict())


@auth.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username, password = require_credentials(data, message=MISSING_CREDENTIALS)
    account = authenticate(get_store(), username, password, message='Invalid username or password.')
    login_user(account)
    return jsonify(account.to_dict())


@auth.route('/check', methods=['GET'])
@login_required
def check_login():
    # Reload so the state reflects the latest sync, not the session's copy
    account = get_store().get_account(current_user.get_id())
    return jsonify(account.to_dict())


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'ok': True})
