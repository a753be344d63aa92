"""
Socket.IO server — binds the real-time event catalogue to coordinator handlers.
"""
import functools
import logging
from typing import Any, Awaitable, Callable

import socketio

from samwad.config import Settings
from samwad.events import ClientEvent, SIGNALING_EVENTS
from samwad.services.call_coordinator import CallCoordinator
from samwad.services.grievance_service import GrievanceIntake

logger = logging.getLogger(__name__)

Handler = Callable[[str, Any], Awaitable[None]]


def build_socket_server(settings: Settings) -> socketio.AsyncServer:
    # async_handlers=False: one connection's events are handled strictly in order
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=settings.CORS_ORIGINS,
        async_handlers=False,
        logger=False,
        engineio_logger=False,
    )


def _guarded(event: str, handler: Handler) -> Callable[..., Awaitable[None]]:
    """Log and absorb handler failures so one bad event never drops the connection."""
    async def run(sid: str, data: Any = None) -> None:
        try:
            await handler(sid, data)
        except Exception:
            logger.exception("Handler for %s failed on %s", event, sid)
    return run


def register_socket_handlers(
    sio: socketio.AsyncServer,
    coordinator: CallCoordinator,
    intake: GrievanceIntake,
) -> None:
    handlers = {
        ClientEvent.REGISTER_IDENTITY: coordinator.register,
        ClientEvent.JOIN_QUEUE: coordinator.join_queue,
        ClientEvent.LEAVE_QUEUE: coordinator.leave_queue,
        ClientEvent.GET_QUEUE: coordinator.get_queue,
        ClientEvent.GET_STATUS: coordinator.get_status,
        ClientEvent.INVITE: coordinator.invite,
        ClientEvent.SHARE_MEETING_LINK: coordinator.share_meeting_link,
        ClientEvent.REQUEST_MEETING_LINK: coordinator.request_meeting_link,
        ClientEvent.CHAT_MESSAGE: coordinator.chat_message,
        ClientEvent.END_CALL: coordinator.end_call,
        ClientEvent.SUBMIT_RATING: coordinator.submit_rating,
        ClientEvent.GET_LOGS: coordinator.get_logs,
        ClientEvent.GET_MY_HISTORY: coordinator.get_my_history,
        ClientEvent.SET_WAIT_OVERRIDE: coordinator.set_wait_override,
        ClientEvent.GET_GRIEVANCES: intake.get_grievances,
        ClientEvent.UPDATE_GRIEVANCE: intake.update,
    }
    for event in SIGNALING_EVENTS:
        handlers[event] = functools.partial(coordinator.relay_signal, event)

    for event, handler in handlers.items():
        sio.on(event, handler=_guarded(event, handler))

    @sio.event
    async def connect(sid, environ, auth=None):
        logger.info("User connected: %s", sid)

    @sio.event
    async def disconnect(sid, reason=None):
        await _guarded("disconnect", coordinator.disconnect)(sid)
