"""Client-side session: activity tracking, the one-second session timer,
coin offers and card draws.

The timer only counts seconds while the activity predicate holds, but it
keeps firing every second regardless, so counting resumes on the very next
tick once the player is back. Everything here is computed locally and is
advisory: the server accepts whatever snapshot the client syncs.
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from timeshop.services.game import coins, draw
from timeshop.services.game.draw import DrawTable

from .scheduler import ScheduledTask

logger = logging.getLogger(__name__)

TICK_INTERVAL_SEC = 1.0


@dataclass
class SessionState:
    total_seconds: int = 0
    coins_spent: int = 0
    cards: List[str] = field(default_factory=list)
    coins_claimed: int = 0
    coin_events_triggered: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'SessionState':
        data = data or {}
        return cls(
            total_seconds=int(data.get('totalSeconds') or 0),
            coins_spent=int(data.get('coinsSpent') or 0),
            cards=list(data.get('cards') or []),
            coins_claimed=int(data.get('coinsClaimed') or 0),
            coin_events_triggered=int(data.get('coinEventsTriggered') or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalSeconds': self.total_seconds,
            'coinsSpent': self.coins_spent,
            'cards': list(self.cards),
            'coinsClaimed': self.coins_claimed,
            'coinEventsTriggered': self.coin_events_triggered,
        }

    def available_coins(self, base_coins: int = coins.BASE_COINS) -> int:
        return coins.available_coins(self.coins_claimed, self.coins_spent, base_coins)


class ActivityMonitor:
    """Tracks whether the page is being actively watched.

    Touch devices have no reliable pointer enter/leave, so only focus and
    visibility count there.
    """

    def __init__(self, touch_device: bool = False):
        self.authenticated = False
        self.visible = True
        self.focused = True
        self.pointer_inside = True
        self.touch_device = touch_device

    def focus(self):
        self.focused = True

    def blur(self):
        self.focused = False

    def visibility_changed(self, hidden: bool):
        self.visible = not hidden
        self.focused = not hidden

    def pointer_enter(self):
        self.pointer_inside = True

    def pointer_leave(self):
        self.pointer_inside = False

    def is_active(self) -> bool:
        if not self.authenticated or not self.visible or not self.focused:
            return False
        return True if self.touch_device else self.pointer_inside


class SessionTimer:
    """Counts active seconds and runs the coin economy for one signed-in player.

    One reentrant lock serializes the tick, coin expiry and user actions.
    ``flush`` runs with the lock held and must hand the snapshot off instead
    of waiting on the network.
    """

    def __init__(self, state: SessionState, activity: ActivityMonitor, username: str = '',
                 flush: Optional[Callable[[Dict[str, Any]], None]] = None,
                 report_presence: Optional[Callable[[Dict[str, Any]], None]] = None,
                 base_coins: int = coins.BASE_COINS,
                 coin_interval: int = coins.COIN_INTERVAL_SEC,
                 coin_lifetime_ms: int = coins.COIN_LIFETIME_MS,
                 draw_cost: int = draw.DRAW_COST,
                 draw_table: Optional[DrawTable] = None,
                 sync_every: int = 10,
                 presence_every: int = 5,
                 recent_cards: int = 3,
                 rng: Callable[[], float] = random.random,
                 task_factory: Callable[..., ScheduledTask] = ScheduledTask):
        self.state = state
        self.activity = activity
        self.username = username
        self._flush = flush
        self._report_presence = report_presence
        self.base_coins = base_coins
        self.coin_interval = coin_interval
        self.coin_lifetime_ms = coin_lifetime_ms
        self.draw_cost = draw_cost
        self.draw_table = draw_table or DrawTable()
        self.sync_every = sync_every
        self.presence_every = presence_every
        self.recent_cards = recent_cards
        self.rng = rng
        self.task_factory = task_factory

        self.hide_coins = False
        self.seconds_since_sync = 0
        self.presence_ticks = 0
        self.coin_offer_pending = False
        self._coin_expiry: Optional[ScheduledTask] = None
        self._tick_task: Optional[ScheduledTask] = None
        self._lock = threading.RLock()

    @property
    def available_coins(self) -> int:
        return self.state.available_coins(self.base_coins)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return self.state.to_dict()

    # ---- outbound hooks ----

    def sync(self) -> None:
        with self._lock:
            if not self.activity.authenticated or self._flush is None:
                return
            self._flush(self.state.to_dict())

    def presence_payload(self) -> Dict[str, Any]:
        return {
            'username': self.username,
            'totalSeconds': self.state.total_seconds,
            'coins': self.available_coins,
            'lastCards': draw.recent_cards(self.state.cards, self.recent_cards),
            'hideCoins': self.hide_coins,
        }

    def send_presence(self, force: bool = False) -> bool:
        with self._lock:
            if self._report_presence is None or not self.activity.authenticated or not self.username:
                return False
            if not force and self.presence_ticks < self.presence_every:
                return False
            self.presence_ticks = 0
            self._report_presence(self.presence_payload())
            return True

    def set_hide_coins(self, hidden: bool) -> None:
        with self._lock:
            self.hide_coins = bool(hidden)
            self.send_presence(force=True)

    # ---- timer ----

    def tick(self) -> None:
        with self._lock:
            if self.activity.is_active():
                self.state.total_seconds += 1
                self.seconds_since_sync += 1
                self.presence_ticks += 1

                if self.seconds_since_sync >= self.sync_every:
                    self.sync()
                    self.seconds_since_sync = 0

                self.send_presence()

            self.evaluate_coins()

    def start(self) -> None:
        if self._tick_task and self._tick_task.active:
            return
        self._tick_task = self.task_factory(self.tick, TICK_INTERVAL_SEC, repeat=True, name='session-tick')
        self._tick_task.start()

    def stop(self) -> None:
        if self._tick_task:
            self._tick_task.cancel()
            self._tick_task = None
        with self._lock:
            self._cancel_coin_expiry()

    # ---- coins ----

    def evaluate_coins(self) -> bool:
        """Surface a coin offer if a new threshold was crossed."""
        with self._lock:
            if not self.activity.authenticated:
                return False
            if not coins.should_fire(self.state.total_seconds, self.state.coin_events_triggered,
                                     self.coin_interval, self.coin_offer_pending):
                return False
            self.state.coin_events_triggered = coins.threshold_index(self.state.total_seconds, self.coin_interval)
            self._offer_coin()
            self.sync()
            self.send_presence(force=True)
            return True

    def _offer_coin(self) -> None:
        self.coin_offer_pending = True
        self._cancel_coin_expiry()
        self._coin_expiry = self.task_factory(self.expire_coin, self.coin_lifetime_ms / 1000.0, name='coin-expiry')
        self._coin_expiry.start()
        logger.info("[coin-offer] username=%s events=%s", self.username, self.state.coin_events_triggered)

    def _cancel_coin_expiry(self) -> None:
        if self._coin_expiry is not None:
            self._coin_expiry.cancel()
            self._coin_expiry = None

    def expire_coin(self) -> None:
        """Withdraw an unclaimed offer. No penalty and no retry."""
        with self._lock:
            if not self.coin_offer_pending:
                return
            self.coin_offer_pending = False
            self._coin_expiry = None
            logger.info("[coin-missed] username=%s", self.username)

    def claim_coin(self) -> bool:
        with self._lock:
            if not self.coin_offer_pending or not self.activity.authenticated:
                return False
            self._cancel_coin_expiry()
            self.coin_offer_pending = False
            self.state.coins_claimed += 1
            self.sync()
            self.send_presence(force=True)
            return True

    # ---- draws ----

    def draw(self) -> str:
        """Spend ``draw_cost`` coins on one card.

        Raises LoginRequired when signed out and InsufficientCoins when short.
        """
        with self._lock:
            if not self.activity.authenticated:
                raise draw.LoginRequired('Please log in first.')
            draw.spend_for_draw(self.available_coins, self.draw_cost)
            self.state.coins_spent += self.draw_cost
            result = draw.draw_card(self.draw_table, self.rng)
            self.state.cards.append(result)
            self.sync()
            self.send_presence(force=True)
        logger.info("[draw] username=%s result=%s", self.username, result)
        return result
