import logging
from typing import Optional

import requests

from timeshop.services.game.draw import DrawTable

from .api import ApiError, PresenceChannel, TimeShopClient
from .scheduler import BackgroundSender, ScheduledTask
from .session import TICK_INTERVAL_SEC, ActivityMonitor, SessionState, SessionTimer

logger = logging.getLogger(__name__)


class HeadlessPlayer:
    """Plays Time Shop without a browser: login, timer, coins, draws, presence."""

    def __init__(self, base_url: str, username: str, password: str,
                 client: Optional[TimeShopClient] = None,
                 channel: Optional[PresenceChannel] = None,
                 activity: Optional[ActivityMonitor] = None,
                 draw_table: Optional[DrawTable] = None,
                 **timer_options):
        self.username = username
        self.password = password
        self.client = client or TimeShopClient(base_url)
        # Syncs leave the tick thread and reach the server in order
        self.syncs = BackgroundSender(self._flush, name='state-sync')
        self.channel = channel or PresenceChannel(base_url)
        self.activity = activity or ActivityMonitor()
        self.timer = SessionTimer(
            SessionState(),
            self.activity,
            username=username,
            flush=self.syncs.submit,
            report_presence=self.channel.send_presence,
            draw_table=draw_table,
            **timer_options,
        )
        # Local estimate of the global counter between server pushes
        self.global_seconds = 0
        self.channel.on_total_time(self._on_total_time)
        self._global_tick: Optional[ScheduledTask] = None

    def _flush(self, state) -> None:
        try:
            self.client.sync_state(self.username, self.password, state)
        except (ApiError, requests.RequestException) as exc:
            # Dropped, not retried: a later sync carries the cumulative value
            logger.warning("[sync-failed] username=%s error=%s", self.username, exc)

    def _on_total_time(self, total: int) -> None:
        self.global_seconds = total

    def _advance_global_clock(self) -> None:
        if self.activity.visible:
            self.global_seconds += 1

    def apply_config(self, config) -> None:
        """Adopt the server's economy settings (see ``GET /api/config``)."""
        timer = self.timer
        timer.base_coins = int(config.get('baseCoins', timer.base_coins))
        timer.coin_interval = int(config.get('coinIntervalSec', timer.coin_interval))
        timer.coin_lifetime_ms = int(config.get('coinLifetimeMs', timer.coin_lifetime_ms))
        timer.draw_cost = int(config.get('drawCost', timer.draw_cost))
        timer.sync_every = int(config.get('syncEverySec', timer.sync_every))
        timer.presence_every = int(config.get('presenceEverySec', timer.presence_every))
        timer.recent_cards = int(config.get('recentCards', timer.recent_cards))
        if config.get('drawTable'):
            timer.draw_table = DrawTable((level, bound) for level, bound in config['drawTable'])

    def sign_in(self, create: bool = False) -> SessionState:
        self.apply_config(self.client.game_config())
        action = self.client.signup if create else self.client.login
        data = action(self.username, self.password)
        self.timer.state = SessionState.from_dict(data.get('state'))
        self.activity.authenticated = True
        logger.info("[sign-in] username=%s created=%s", self.username, create)
        return self.timer.state

    def start(self) -> None:
        self.syncs.start()
        self.channel.connect()
        self.timer.send_presence(force=True)
        self.timer.start()
        self._global_tick = ScheduledTask(self._advance_global_clock, TICK_INTERVAL_SEC,
                                          repeat=True, name='global-tick').start()

    def stop(self) -> None:
        self.timer.stop()
        if self._global_tick is not None:
            self._global_tick.cancel()
            self._global_tick = None
        self.timer.sync()
        self.syncs.stop()
        self.channel.disconnect()
