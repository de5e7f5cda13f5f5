import json
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from timeshop import db
from timeshop.models import Account, GlobalCounter, Review

from . import AccountExists, AccountRecord, ReviewRecord

COUNTER_ROW_ID = 1


class SqlAccountStore:
    """Account store backed by Flask-SQLAlchemy; one commit per mutation."""

    def __init__(self):
        if db.session.get(GlobalCounter, COUNTER_ROW_ID) is None:
            db.session.add(GlobalCounter(id=COUNTER_ROW_ID, total_time=0))
            db.session.commit()

    def _add_to_counter(self, delta: int) -> None:
        # Increment inside the UPDATE so concurrent syncs never overwrite each other
        updated = GlobalCounter.query.filter_by(id=COUNTER_ROW_ID).update(
            {GlobalCounter.total_time: GlobalCounter.total_time + delta},
            synchronize_session=False,
        )
        if not updated:
            db.session.add(GlobalCounter(id=COUNTER_ROW_ID, total_time=delta))

    def _account(self, username: str) -> Optional[Account]:
        return Account.query.filter_by(username=username).first()

    def get_account(self, username: str) -> Optional[AccountRecord]:
        account = self._account(username)
        if not account:
            return None
        return AccountRecord(username=account.username, password=account.password_hash, state=account.load_state())

    def create_account(self, account: AccountRecord) -> None:
        row = Account(username=account.username, password_hash=account.password, state=json.dumps(account.state))
        db.session.add(row)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise AccountExists(account.username)

    def put_state(self, username: str, state: Dict[str, Any], time_delta: int = 0) -> int:
        account = self._account(username)
        if not account:
            raise KeyError(username)
        try:
            self._add_to_counter(max(0, int(time_delta)))
            account.state = json.dumps(state)
            db.session.add(account)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return self.total_time()

    def put_credential(self, username: str, password: str) -> None:
        account = self._account(username)
        if not account:
            raise KeyError(username)
        account.password_hash = password
        db.session.add(account)
        db.session.commit()

    def total_time(self) -> int:
        counter = db.session.get(GlobalCounter, COUNTER_ROW_ID, populate_existing=True)
        return int(counter.total_time) if counter else 0

    def append_review(self, review: ReviewRecord) -> None:
        db.session.add(Review(level=review.level, username=review.username, text=review.text, created_at=review.created_at))
        db.session.commit()

    def list_reviews(self, level: str) -> List[ReviewRecord]:
        rows = Review.query.filter_by(level=level).order_by(Review.id).all()
        return [ReviewRecord(level=r.level, username=r.username, text=r.text, created_at=r.created_at) for r in rows]

    def reset(self) -> None:
        try:
            Review.query.delete()
            Account.query.delete()
            GlobalCounter.query.update({GlobalCounter.total_time: 0}, synchronize_session=False)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
