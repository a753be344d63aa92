"""
Identity Registry — binds a live connection to a participant profile.

Bindings live only as long as the connection; clients re-register on every
reconnect and receive a fresh connection id.
"""
import logging
from typing import Dict, Optional

from samwad.schemas.schemas import IdentityProfile, Role

logger = logging.getLogger(__name__)


class IdentityRegistry:

    def __init__(self):
        self._profiles: Dict[str, IdentityProfile] = {}

    def register(self, connection_id: str, profile: IdentityProfile) -> None:
        """Bind (or re-bind) a profile to a connection."""
        self._profiles[connection_id] = profile
        logger.info("Registered %s (%s) on %s", profile.name, profile.role.value, connection_id)

    def lookup(self, connection_id: str) -> Optional[IdentityProfile]:
        return self._profiles.get(connection_id)

    def unregister(self, connection_id: str) -> Optional[IdentityProfile]:
        return self._profiles.pop(connection_id, None)

    def has_role(self, connection_id: str, role: Role) -> bool:
        profile = self._profiles.get(connection_id)
        return profile is not None and profile.role == role

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)
