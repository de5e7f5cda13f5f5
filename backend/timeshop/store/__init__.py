"""Account store: persistence of accounts, reviews and the global counter.

Protocol code talks to an :class:`AccountStore` only, so the storage engine
(a single JSON document or a SQL database) can be swapped through config
without touching the sync or review logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from flask import current_app
from flask_login import UserMixin

STORE_EXTENSION_KEY = 'timeshop_store'


class AccountExists(Exception):
    """Raised by ``create_account`` when the username is already taken."""


@dataclass
class AccountRecord(UserMixin):
    username: str
    password: str  # bcrypt hash, or plaintext for accounts imported from an old document
    state: Dict[str, Any] = field(default_factory=dict)

    def get_id(self):
        return self.username

    def to_dict(self) -> Dict[str, Any]:
        return {'username': self.username, 'state': self.state}


@dataclass
class ReviewRecord:
    level: str
    username: str
    text: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'level': self.level,
            'username': self.username,
            'text': self.text,
            'createdAt': self.created_at,
        }


class AccountStore(Protocol):
    """
    Abstraction over account persistence.

    Implementations must persist each mutation before returning; callers
    respond to HTTP requests only after the write completed.
    """

    def get_account(self, username: str) -> Optional[AccountRecord]:
        """Return the account with the given username, or None."""

        ...

    def create_account(self, account: AccountRecord) -> None:
        """Persist a new account; AccountExists if the username is taken.

        The check and the insert happen as one step.
        """

        ...

    def put_state(self, username: str, state: Dict[str, Any], time_delta: int = 0) -> int:
        """
        Replace the stored session state wholesale and add ``time_delta``
        to the global counter in the same write.

        Returns the new global ``totalTime``.
        """

        ...

    def put_credential(self, username: str, password: str) -> None:
        """Replace the stored credential (used when re-hashing)."""

        ...

    def total_time(self) -> int:
        ...

    def append_review(self, review: ReviewRecord) -> None:
        ...

    def list_reviews(self, level: str) -> List[ReviewRecord]:
        """Return every review for ``level`` in storage order."""

        ...

    def reset(self) -> None:
        """Drop every account and review; the global counter goes back to 0."""

        ...


def make_store(flask_app) -> AccountStore:
    backend = (flask_app.config.get('STORE_BACKEND') or 'json').lower()
    if backend == 'json':
        from .json_file import JsonFileStore
        return JsonFileStore(flask_app.config.get('STORE_PATH', 'db.json'))
    if backend == 'sql':
        from .sql import SqlAccountStore
        return SqlAccountStore()
    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")


def get_store() -> AccountStore:
    return current_app.extensions[STORE_EXTENSION_KEY]
