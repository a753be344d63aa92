"""
Socket.IO client for the portal, used by tools and integration tests.

register() emits `register_identity` and waits for `registration_ack`;
no acknowledgment within the timeout is a failed login.
"""
import asyncio
from typing import Any, Callable, Optional

import socketio

from samwad.errors import RegistrationTimeout
from samwad.events import ClientEvent, ServerEvent
from samwad.schemas.schemas import IdentityProfile

DEFAULT_REGISTRATION_TIMEOUT = 5.0


class PortalClient:
    def __init__(
        self,
        base_url: str,
        registration_timeout: float = DEFAULT_REGISTRATION_TIMEOUT,
        transports: Optional[list[str]] = None,
        sio: Optional[socketio.AsyncClient] = None,
    ):
        self._base_url = base_url
        self._registration_timeout = registration_timeout
        self._transports = transports or ["websocket"]
        self._sio = sio or socketio.AsyncClient()
        self._ack = asyncio.Event()
        self.connection_id: Optional[str] = None
        self._sio.on(ServerEvent.REGISTRATION_ACK, handler=self._on_registration_ack)

    @property
    def connected(self) -> bool:
        return self._sio.connected

    async def _on_registration_ack(self, data: Any = None) -> None:
        if isinstance(data, dict):
            self.connection_id = data.get("connectionId")
        self._ack.set()

    async def connect(self) -> None:
        if not self._sio.connected:
            await self._sio.connect(self._base_url, transports=self._transports)

    async def register(self, profile: IdentityProfile) -> str:
        """Register this connection; returns the connection id used as the session user id."""
        await self.connect()
        self._ack.clear()
        self.connection_id = None
        await self._sio.emit(ClientEvent.REGISTER_IDENTITY, profile.to_wire())
        try:
            await asyncio.wait_for(self._ack.wait(), timeout=self._registration_timeout)
        except asyncio.TimeoutError:
            raise RegistrationTimeout(
                f"Login timed out after {self._registration_timeout}s. Please check your connection or try again."
            ) from None
        return self.connection_id

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._sio.on(event, handler=handler)

    async def emit(self, event: str, data: Any = None) -> None:
        await self._sio.emit(event, data)

    async def disconnect(self) -> None:
        if self._sio.connected:
            await self._sio.disconnect()
