import math
from numbers import Number
from typing import Any, Callable, Mapping, Optional

from flask import current_app

from timeshop.errors import BadRequest
from timeshop.store import AccountStore

from .accounts import authenticate, require_credentials, require_fields


def session_seconds(state: Optional[Mapping[str, Any]]) -> int:
    value = (state or {}).get('totalSeconds') or 0
    if isinstance(value, bool) or not isinstance(value, Number) or not math.isfinite(value):
        raise BadRequest('Bad request.')
    return int(value)


def time_delta(previous: int, incoming: int) -> int:
    """Seconds to add to the global counter; rollbacks count as zero."""
    return max(0, incoming - previous)


def reconcile_state(store: AccountStore, payload: Mapping[str, Any],
                    broadcast: Optional[Callable[[int], None]] = None) -> int:
    """Apply one state sync and return the new global ``totalTime``.

    The incoming snapshot replaces the stored one wholesale. Two syncs for
    the same account are not ordered against each other: whichever is
    written last wins, even if it carries fewer seconds.
    """
    username, password = require_credentials(payload)
    (state,) = require_fields(payload, 'state')
    if not isinstance(state, dict):
        raise BadRequest('Bad request.')
    incoming = session_seconds(state)

    account = authenticate(store, username, password)
    try:
        previous = session_seconds(account.state) if isinstance(account.state, dict) else 0
    except BadRequest:
        previous = 0
    delta = time_delta(previous, incoming)

    total = store.put_state(username, state, time_delta=delta)
    current_app.logger.info(f"[sync] username={username} prev={previous} next={incoming} delta={delta} total={total}")

    if broadcast is not None:
        broadcast(total)
    return total
