import threading
from typing import Any, Callable, Dict, List, Mapping, Optional


def normalize_snapshot(payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Build a presence snapshot from a client report; None if it has no username."""
    if not payload or not isinstance(payload, Mapping) or not payload.get('username'):
        return None
    total_seconds = payload.get('totalSeconds')
    coins = payload.get('coins')
    last_cards = payload.get('lastCards')
    return {
        'username': payload['username'],
        'totalSeconds': total_seconds if total_seconds is not None else 0,
        'coins': coins if coins is not None else 0,
        'lastCards': list(last_cards) if isinstance(last_cards, (list, tuple)) else [],
        'hideCoins': bool(payload.get('hideCoins')),
    }


class PresenceRegistry:
    """Latest presence snapshot per connection.

    Keyed by connection id, not by username: one account open in two tabs
    shows up twice. Both mutators rebroadcast the full snapshot list.
    """

    def __init__(self, broadcast: Callable[[List[Dict[str, Any]]], None]):
        self._broadcast = broadcast
        self._snapshots: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._snapshots)

    def snapshot_all(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(s) for s in self._snapshots.values()]

    def upsert(self, connection_id: str, snapshot: Dict[str, Any]) -> None:
        with self._lock:
            self._snapshots[connection_id] = snapshot
        self._broadcast(self.snapshot_all())

    def remove(self, connection_id: str) -> bool:
        with self._lock:
            removed = self._snapshots.pop(connection_id, None) is not None
        self._broadcast(self.snapshot_all())
        return removed
