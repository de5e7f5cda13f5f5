from flask import Blueprint, jsonify, request

from timeshop.store import get_store
from timeshop.services.sync.reviews import reviews_for_level, submit_review

reviews_api = Blueprint('reviews_api', __name__)


@reviews_api.route('/reviews', methods=['POST'])
def post_review():
    data = request.get_json(silent=True) or {}
    submit_review(get_store(), data)
    return jsonify({'ok': True})


@reviews_api.route('/reviews/<string:level>', methods=['GET'])
def list_reviews(level):
    reviews = reviews_for_level(get_store(), level)
    return jsonify({
        'level': level.strip().upper(),
        'reviews': [r.to_dict() for r in reviews],
    })
