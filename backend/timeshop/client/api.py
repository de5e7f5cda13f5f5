import logging
from typing import Any, Callable, Dict, List, Optional

import requests
import socketio

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class TimeShopClient:
    """JSON-over-HTTP client for the account, state and review endpoints."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 5.0):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _handle(self, response) -> Dict[str, Any]:
        try:
            data = response.json() or {}
        except ValueError:
            data = {}
        if not response.ok:
            raise ApiError(response.status_code, data.get('error') or f"Request failed: {response.status_code}")
        return data

    def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._handle(self.session.post(self._url(path), json=body, timeout=self.timeout))

    def _get(self, path: str) -> Dict[str, Any]:
        return self._handle(self.session.get(self._url(path), timeout=self.timeout))

    def signup(self, username: str, password: str) -> Dict[str, Any]:
        return self._post('/auth/signup', {'username': username, 'password': password})

    def login(self, username: str, password: str) -> Dict[str, Any]:
        return self._post('/auth/login', {'username': username, 'password': password})

    def sync_state(self, username: str, password: str, state: Dict[str, Any]) -> Dict[str, Any]:
        return self._post('/api/state', {'username': username, 'password': password, 'state': state})

    def submit_review(self, username: str, password: str, card_level: str, text: str) -> Dict[str, Any]:
        return self._post('/api/reviews', {
            'username': username,
            'password': password,
            'cardLevel': card_level,
            'text': text,
        })

    def reviews(self, level: str) -> List[Dict[str, Any]]:
        return self._get(f"/api/reviews/{requests.utils.quote(level, safe='')}").get('reviews', [])

    def total_time(self) -> int:
        return int(self._get('/api/total-time').get('totalTime') or 0)

    def game_config(self) -> Dict[str, Any]:
        return self._get('/api/config')


class PresenceChannel:
    """Socket.IO side of the protocol: presence reports out, totals in."""

    def __init__(self, url: str, sio: Optional[socketio.Client] = None):
        self.url = url
        self.sio = sio or socketio.Client(reconnection=True)
        self.total_time = 0
        self.online_users: List[Dict[str, Any]] = []
        self._total_listeners: List[Callable[[int], None]] = []
        self._online_listeners: List[Callable[[List[Dict[str, Any]]], None]] = []
        self.sio.on('totalTime', self._on_total_time)
        self.sio.on('onlineUsers', self._on_online_users)

    def on_total_time(self, listener: Callable[[int], None]) -> None:
        self._total_listeners.append(listener)

    def on_online_users(self, listener: Callable[[List[Dict[str, Any]]], None]) -> None:
        self._online_listeners.append(listener)

    def _on_total_time(self, value) -> None:
        try:
            self.total_time = int(value or 0)
        except (TypeError, ValueError):
            self.total_time = 0
        for listener in self._total_listeners:
            listener(self.total_time)

    def _on_online_users(self, users) -> None:
        self.online_users = list(users or [])
        for listener in self._online_listeners:
            listener(self.online_users)

    @property
    def connected(self) -> bool:
        return bool(self.sio.connected)

    def connect(self) -> None:
        if not self.connected:
            self.sio.connect(self.url)

    def disconnect(self) -> None:
        if self.connected:
            self.sio.disconnect()

    def send_presence(self, payload: Dict[str, Any]) -> None:
        if not self.connected:
            return
        self.sio.emit('presence:update', payload)
