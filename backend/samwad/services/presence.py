"""
Presence Tracker — the single official's availability.

Invariant: status is OFFLINE exactly when no official connection is active.
"""
from datetime import datetime, timezone
from typing import Optional

from samwad.schemas.schemas import PresenceState, PresenceStatus


class PresenceTracker:

    def __init__(self):
        self.status = PresenceState.OFFLINE
        self.last_online_at: Optional[datetime] = None
        self.official_connection: Optional[str] = None

    def official_online(self, connection_id: str) -> None:
        """A connection registered as official; it displaces any previous one."""
        self.official_connection = connection_id
        self.status = PresenceState.ONLINE
        self.last_online_at = datetime.now(timezone.utc)

    def official_offline(self, connection_id: str) -> bool:
        """Drop the official if `connection_id` is the active one. Returns True on change."""
        if self.official_connection != connection_id:
            return False
        self.official_connection = None
        self.status = PresenceState.OFFLINE
        self.last_online_at = datetime.now(timezone.utc)
        return True

    def call_started(self) -> bool:
        if self.official_connection is None:
            return False
        self.status = PresenceState.BUSY
        return True

    def call_ended(self) -> bool:
        if self.official_connection is None:
            return False
        self.status = PresenceState.ONLINE
        self.last_online_at = datetime.now(timezone.utc)
        return True

    def is_active_official(self, connection_id: str) -> bool:
        return connection_id is not None and connection_id == self.official_connection

    def snapshot(self) -> PresenceStatus:
        return PresenceStatus(status=self.status, last_online_at=self.last_online_at)
