from datetime import datetime, timezone
from typing import Any, List, Mapping

from flask import current_app

from timeshop.errors import BadRequest
from timeshop.services.game.draw import normalize_level
from timeshop.store import AccountStore, ReviewRecord

from .accounts import authenticate, require_credentials


def utc_timestamp() -> str:
    """ISO-8601 with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


def _parse_timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (AttributeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def submit_review(store: AccountStore, payload: Mapping[str, Any]) -> ReviewRecord:
    username, password = require_credentials(payload)
    card_level = payload.get('cardLevel')
    text = payload.get('text')
    if not card_level or not isinstance(text, str) or not text.strip():
        raise BadRequest('Bad request.')

    authenticate(store, username, password)

    level = normalize_level(card_level)
    if level is None:
        raise BadRequest('Invalid card level.')

    review = ReviewRecord(level=level, username=username, text=text.strip(), created_at=utc_timestamp())
    store.append_review(review)
    current_app.logger.info(f"[review] username={username} level={level}")
    return review


def reviews_for_level(store: AccountStore, level: str) -> List[ReviewRecord]:
    """Reviews for one level, newest first."""
    normalized = normalize_level(level)
    if normalized is None:
        raise BadRequest('Invalid card level.')
    reviews = store.list_reviews(normalized)
    return sorted(reviews, key=lambda r: _parse_timestamp(r.created_at), reverse=True)
