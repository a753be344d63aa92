"""
Waiting Queue — FIFO line of citizen connections awaiting the official.
"""
from typing import List, Optional, Tuple

from samwad.schemas.schemas import QueueStatus


class WaitingQueue:
    """Ordered, duplicate-free list of connection ids.

    Positions are 1-based and always derived from the current index.
    """

    def __init__(self, minutes_per_position: int = 10):
        self.minutes_per_position = minutes_per_position
        self.manual_override_minutes: Optional[int] = None
        self._entries: List[str] = []

    def join(self, connection_id: str) -> bool:
        """Append if absent. Returns True when the queue changed."""
        if connection_id in self._entries:
            return False
        self._entries.append(connection_id)
        return True

    def leave(self, connection_id: str) -> bool:
        if connection_id not in self._entries:
            return False
        self._entries.remove(connection_id)
        return True

    def pull_for_call(self, connection_id: str) -> bool:
        """Remove a specific entry regardless of its position."""
        return self.leave(connection_id)

    def position(self, connection_id: str) -> Optional[int]:
        try:
            return self._entries.index(connection_id) + 1
        except ValueError:
            return None

    def estimated_wait(self, position: int) -> int:
        if self.manual_override_minutes is not None:
            return self.manual_override_minutes
        return position * self.minutes_per_position

    def status_for(self, connection_id: str) -> Optional[QueueStatus]:
        position = self.position(connection_id)
        if position is None:
            return None
        return QueueStatus(position=position, estimated_wait_minutes=self.estimated_wait(position))

    def statuses(self) -> List[Tuple[str, QueueStatus]]:
        return [
            (cid, QueueStatus(position=i, estimated_wait_minutes=self.estimated_wait(i)))
            for i, cid in enumerate(self._entries, start=1)
        ]

    def entries(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
