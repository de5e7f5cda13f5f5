"""Python client for the Time Shop protocol.

Usable as a library (``TimeShopClient``, ``PresenceChannel``) or as a
headless player that runs the session timer against a live server.
"""

from .api import ApiError, PresenceChannel, TimeShopClient
from .player import HeadlessPlayer
from .scheduler import BackgroundSender, ScheduledTask
from .session import ActivityMonitor, SessionState, SessionTimer

__all__ = [
    'ActivityMonitor',
    'ApiError',
    'BackgroundSender',
    'HeadlessPlayer',
    'PresenceChannel',
    'ScheduledTask',
    'SessionState',
    'SessionTimer',
    'TimeShopClient',
]
