import json
import logging
import os
import tempfile
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import AccountExists, AccountRecord, ReviewRecord

logger = logging.getLogger(__name__)


def _default_document() -> Dict[str, Any]:
    return {'totalTime': 0, 'users': [], 'reviews': []}


class JsonFileStore:
    """Whole-document store: ``{totalTime, users, reviews}`` in one JSON file.

    The document is loaded once and rewritten in full after every mutation.
    A lock serializes read-modify-write cycles across worker threads; it does
    not order concurrent syncs for one account, the last write still wins.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._data = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            data = _default_document()
            self._write(data)
            return data
        with self.path.open('r', encoding='utf-8') as fh:
            data = json.load(fh)
        upgraded = False
        # Documents written before reviews existed lack the key
        for key, default in _default_document().items():
            if key not in data or data[key] is None:
                data[key] = default
                upgraded = True
        if upgraded:
            logger.info("[store-upgrade] added missing keys to %s", self.path)
            self._write(data)
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix='.db-', suffix='.json', dir=str(self.path.parent))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _find(self, username: str) -> Optional[Dict[str, Any]]:
        for user in self._data['users']:
            if user.get('username') == username:
                return user
        return None

    def get_account(self, username: str) -> Optional[AccountRecord]:
        with self._lock:
            user = self._find(username)
            if user is None:
                return None
            return AccountRecord(
                username=user['username'],
                password=user.get('password', ''),
                state=deepcopy(user.get('state') or {}),
            )

    def create_account(self, account: AccountRecord) -> None:
        with self._lock:
            if self._find(account.username) is not None:
                raise AccountExists(account.username)
            self._data['users'].append({
                'username': account.username,
                'password': account.password,
                'state': deepcopy(account.state),
            })
            self._write(self._data)

    def put_state(self, username: str, state: Dict[str, Any], time_delta: int = 0) -> int:
        with self._lock:
            user = self._find(username)
            if user is None:
                raise KeyError(username)
            self._data['totalTime'] = int(self._data.get('totalTime') or 0) + max(0, int(time_delta))
            user['state'] = deepcopy(state)
            self._write(self._data)
            return self._data['totalTime']

    def put_credential(self, username: str, password: str) -> None:
        with self._lock:
            user = self._find(username)
            if user is None:
                raise KeyError(username)
            user['password'] = password
            self._write(self._data)

    def total_time(self) -> int:
        with self._lock:
            return int(self._data.get('totalTime') or 0)

    def append_review(self, review: ReviewRecord) -> None:
        with self._lock:
            self._data['reviews'].append(review.to_dict())
            self._write(self._data)

    def list_reviews(self, level: str) -> List[ReviewRecord]:
        with self._lock:
            reviews = self._data.get('reviews') or []
            return [
                ReviewRecord(
                    level=r['level'],
                    username=r.get('username', ''),
                    text=r.get('text', ''),
                    created_at=r.get('createdAt', ''),
                )
                for r in reviews
                if r.get('level') == level
            ]

    def reset(self) -> None:
        with self._lock:
            self._data = _default_document()
            self._write(self._data)
