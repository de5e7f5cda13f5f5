from flask import Blueprint, current_app, jsonify, request

from timeshop import socketio
from timeshop.store import get_store
from timeshop.services.sync.reconciler import reconcile_state

state_api = Blueprint('state_api', __name__)


def broadcast_total_time(total: int) -> None:
    socketio.emit('totalTime', total, namespace='/')


@state_api.route('/state', methods=['POST'])
def sync_state():
    data = request.get_json(silent=True) or {}
    reconcile_state(get_store(), data, broadcast=broadcast_total_time)
    return jsonify({'ok': True})


@state_api.route('/total-time', methods=['GET'])
def get_total_time():
    return jsonify({'totalTime': get_store().total_time()})


@state_api.route('/config', methods=['GET'])
def get_game_config():
    """Economy settings the client timer and draw engine run with."""
    cfg = current_app.config
    table = current_app.extensions['draw_table']
    return jsonify({
        'baseCoins': int(cfg.get('BASE_COINS', 2)),
        'coinIntervalSec': int(cfg.get('COIN_INTERVAL_SEC', 20)),
        'coinLifetimeMs': int(cfg.get('COIN_LIFETIME_MS', 3000)),
        'drawCost': int(cfg.get('DRAW_COST', 3)),
        'syncEverySec': int(cfg.get('SYNC_EVERY_SEC', 10)),
        'presenceEverySec': int(cfg.get('PRESENCE_EVERY_SEC', 5)),
        'recentCards': int(cfg.get('RECENT_CARDS', 3)),
        'drawTable': [[level, bound] for level, bound in table.entries],
    })
