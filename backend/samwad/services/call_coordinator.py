"""
Call Coordinator — Live queue and call lifecycle for the single official.

Owns the process-wide in-memory state (identity registry, presence, waiting
queue, live call transcripts) and turns inbound socket events into state
transitions, relays and durable session records.

Handlers mutate in-memory state synchronously before their first await;
anything read back after an await (the active official, the queue) is
re-read rather than reused.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from samwad.config import Settings
from samwad.errors import RecordStoreError
from samwad.events import ServerEvent
from samwad.schemas.schemas import (
    ChatMessage, ChatPayload, IdentityProfile, MeetingLinkPayload, QueueEntryOut,
    RatingRequest, RegistrationAck, Role, SignalPayload, TargetPayload, WaitOverrideRequest,
)
from samwad.services.presence import PresenceTracker
from samwad.services.record_store import RecordStore
from samwad.services.registry import IdentityRegistry
from samwad.services.waiting_queue import WaitingQueue
from samwad.utils.validators import validate_rating

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class Emitter(Protocol):
    """Subset of socketio.AsyncServer used here; `to=None` broadcasts."""

    async def emit(self, event: str, data: Any = None, to: Optional[str] = None, **kwargs) -> None:
        ...


class CallPhase(str, Enum):
    INVITING = "inviting"
    NEGOTIATING = "negotiating"
    ACTIVE = "active"


def pair_key(a: str, b: str) -> str:
    """Order-independent key for two connections."""
    return "-".join(sorted((a, b)))


def parse_payload(model: Type[PayloadT], data: Any, sid: str, event: str) -> Optional[PayloadT]:
    """Validate an inbound payload; malformed payloads are logged and dropped."""
    if not isinstance(data, dict):
        logger.warning("Ignoring %s from %s: payload is not an object", event, sid)
        return None
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.warning("Ignoring %s from %s: %s", event, sid, exc.errors(include_url=False))
        return None


@dataclass
class LiveCall:
    key: str
    connections: Tuple[str, str]
    phase: CallPhase = CallPhase.INVITING
    messages: List[Dict[str, Any]] = field(default_factory=list)


class CallCoordinator:

    def __init__(self, emitter: Emitter, store: RecordStore, settings: Settings):
        self.emitter = emitter
        self.store = store
        self.settings = settings
        self.registry = IdentityRegistry()
        self.presence = PresenceTracker()
        self.queue = WaitingQueue(minutes_per_position=settings.MINUTES_PER_POSITION)
        self.live_calls: Dict[str, LiveCall] = {}

    # ─── Helpers ─────────────────────────────────────────────────

    def _is_official(self, sid: str, event: str) -> bool:
        if self.presence.is_active_official(sid):
            return True
        logger.debug("Ignoring %s from %s: not the active official", event, sid)
        return False

    def _touch_call(self, a: str, b: str, phase: CallPhase) -> LiveCall:
        key = pair_key(a, b)
        call = self.live_calls.get(key)
        if call is None:
            call = LiveCall(key=key, connections=(a, b), phase=phase)
            self.live_calls[key] = call
        elif call.phase != CallPhase.ACTIVE:
            call.phase = phase
        return call

    def _drop_calls_of(self, sid: str) -> int:
        stale = [key for key, call in self.live_calls.items() if sid in call.connections]
        for key in stale:
            del self.live_calls[key]
        return len(stale)

    def _resolve_sides(self, sid: str, target: str) -> Tuple[str, str]:
        """Return (citizen_side, official_side) for an end_call between sid and target."""
        if self.registry.has_role(target, Role.OFFICIAL) and not self.registry.has_role(sid, Role.OFFICIAL):
            return sid, target
        return target, sid

    async def broadcast_status(self) -> None:
        await self.emitter.emit(ServerEvent.STATUS_UPDATE, self.presence.snapshot().to_wire())

    async def send_queue_status(self, sid: str) -> None:
        status = self.queue.status_for(sid)
        if status is not None:
            await self.emitter.emit(ServerEvent.QUEUE_UPDATE, status.to_wire(), to=sid)

    async def notify_official_of_queue(self) -> None:
        """Push the full queue, enriched with each citizen's last ratings, to the official."""
        if self.presence.official_connection is None:
            logger.debug("Queue changed with no official connected")
            return

        entries = []
        for cid in self.queue.entries():
            profile = self.registry.lookup(cid)
            if profile is None:
                continue
            last = None
            if profile.mobile:
                try:
                    last = await self.store.last_rated_session(profile.mobile)
                except RecordStoreError:
                    logger.warning("Could not load last rating for %s", profile.mobile, exc_info=True)
            entries.append(QueueEntryOut(
                connection_id=cid,
                **profile.model_dump(),
                last_citizen_rating=last.citizen_rating if last else None,
                last_dm_rating=last.dm_rating if last else None,
            ).to_wire())

        official = self.presence.official_connection
        if official is not None:
            await self.emitter.emit(ServerEvent.QUEUE_UPDATE_OFFICIAL, entries, to=official)

    async def rebroadcast_wait_times(self) -> None:
        for sid, status in self.queue.statuses():
            await self.emitter.emit(ServerEvent.QUEUE_UPDATE, status.to_wire(), to=sid)

    async def run_wait_rebroadcast(self, interval: float) -> None:
        """Background loop: periodically refresh every queued citizen's estimate."""
        while True:
            await asyncio.sleep(interval)
            try:
                await self.rebroadcast_wait_times()
            except Exception:
                logger.exception("Periodic wait-time re-broadcast failed")

    # ─── Identity & presence ─────────────────────────────────────

    async def register(self, sid: str, data: Any = None) -> None:
        profile = parse_payload(IdentityProfile, data, sid, "register_identity")
        if profile is None:
            return

        self.registry.register(sid, profile)
        if profile.role == Role.OFFICIAL:
            self.queue.leave(sid)
            self.presence.official_online(sid)
            status_changed = True
        else:
            status_changed = self.presence.official_offline(sid)

        await self.emitter.emit(ServerEvent.REGISTRATION_ACK, RegistrationAck(connection_id=sid).to_wire(), to=sid)
        if status_changed:
            await self.broadcast_status()
        if profile.role == Role.OFFICIAL:
            await self.notify_official_of_queue()

    async def disconnect(self, sid: str, data: Any = None) -> None:
        profile = self.registry.unregister(sid)
        went_offline = self.presence.official_offline(sid)
        left_queue = self.queue.leave(sid)
        dropped = self._drop_calls_of(sid)
        logger.info("Disconnected %s (%s)", sid, profile.name if profile else "unregistered")
        if dropped:
            logger.info("Discarded %d unfinished call buffer(s) of %s", dropped, sid)

        if went_offline:
            await self.broadcast_status()
        if left_queue:
            await self.notify_official_of_queue()

    async def get_status(self, sid: str, data: Any = None) -> None:
        await self.emitter.emit(ServerEvent.STATUS_UPDATE, self.presence.snapshot().to_wire(), to=sid)

    # ─── Queue ───────────────────────────────────────────────────

    async def join_queue(self, sid: str, data: Any = None) -> None:
        profile = self.registry.lookup(sid)
        if profile is None:
            logger.warning("Join failed for %s: not registered", sid)
            return
        if profile.role != Role.CITIZEN:
            logger.debug("Ignoring join_queue from non-citizen %s", sid)
            return

        if self.queue.join(sid):
            logger.info("Queued %s (%s), length %d", profile.name, sid, len(self.queue))
        await self.send_queue_status(sid)
        await self.notify_official_of_queue()

    async def leave_queue(self, sid: str, data: Any = None) -> None:
        self.queue.leave(sid)
        await self.notify_official_of_queue()

    async def get_queue(self, sid: str, data: Any = None) -> None:
        if self._is_official(sid, "get_queue"):
            await self.notify_official_of_queue()

    async def set_wait_override(self, sid: str, data: Any = None) -> None:
        if not self._is_official(sid, "set_wait_override"):
            return
        request = parse_payload(WaitOverrideRequest, data, sid, "set_wait_override")
        if request is None:
            return

        self.queue.manual_override_minutes = request.minutes
        logger.info("Wait override set to %s", request.minutes)
        await self.rebroadcast_wait_times()
        await self.emitter.emit(ServerEvent.WAIT_OVERRIDE_UPDATED, {"minutes": request.minutes}, to=sid)

    # ─── Call lifecycle ──────────────────────────────────────────

    async def invite(self, sid: str, data: Any = None) -> None:
        if not self._is_official(sid, "invite"):
            return
        request = parse_payload(TargetPayload, data, sid, "invite")
        if request is None:
            return

        target = request.target
        self.queue.pull_for_call(target)
        self._touch_call(sid, target, CallPhase.INVITING)
        self.presence.call_started()
        logger.info("Official %s inviting %s", sid, target)

        await self.emitter.emit(ServerEvent.INCOMING_CALL, {"from": sid}, to=target)
        await self.broadcast_status()
        await self.notify_official_of_queue()

    async def relay_signal(self, event: str, sid: str, data: Any = None) -> None:
        """Forward an offer/answer/candidate payload verbatim to its target."""
        request = parse_payload(SignalPayload, data, sid, event)
        if request is None:
            return
        phase = CallPhase.ACTIVE if event == ServerEvent.SIGNALING_ANSWER else CallPhase.NEGOTIATING
        self._touch_call(sid, request.target, phase)
        await self.emitter.emit(event, {"payload": request.payload, "from": sid}, to=request.target)

    async def share_meeting_link(self, sid: str, data: Any = None) -> None:
        request = parse_payload(MeetingLinkPayload, data, sid, "share_meeting_link")
        if request is None:
            return
        self._touch_call(sid, request.target, CallPhase.NEGOTIATING)
        became_busy = self.presence.call_started()
        logger.info("Meeting link shared from %s to %s", sid, request.target)

        await self.emitter.emit(
            ServerEvent.SHARE_MEETING_LINK, {"link": request.link, "from": sid}, to=request.target,
        )
        if became_busy:
            await self.broadcast_status()

    async def request_meeting_link(self, sid: str, data: Any = None) -> None:
        request = parse_payload(TargetPayload, data, sid, "request_meeting_link")
        if request is None:
            return
        await self.emitter.emit(ServerEvent.REQUEST_MEETING_LINK, {"from": sid}, to=request.target)

    async def chat_message(self, sid: str, data: Any = None) -> None:
        request = parse_payload(ChatPayload, data, sid, "chat_message")
        if request is None:
            return

        call = self._touch_call(sid, request.target, CallPhase.ACTIVE)
        message = parse_payload(ChatMessage, request.message, sid, "chat_message transcript")
        if message is not None:
            call.messages.append(message.model_dump(mode="json"))
        await self.emitter.emit(ServerEvent.CHAT_MESSAGE, request.message, to=request.target)

    async def end_call(self, sid: str, data: Any = None) -> None:
        request = parse_payload(TargetPayload, data, sid, "end_call")
        if request is None:
            return

        target = request.target
        citizen_id, official_id = self._resolve_sides(sid, target)
        key = pair_key(citizen_id, official_id)
        session_id = str(uuid.uuid4())
        try:
            citizen = self.registry.lookup(citizen_id)
            call = self.live_calls.get(key)
            messages = list(call.messages) if call else []
            self.presence.call_ended()

            ended = {"sessionId": session_id}
            await self.emitter.emit(ServerEvent.CALL_ENDED, ended, to=target)
            await self.emitter.emit(ServerEvent.CALL_ENDED, ended, to=sid)
            await self.broadcast_status()

            if citizen is None or citizen.role != Role.CITIZEN:
                logger.info("Call %s ended without a registered citizen; not recorded", key)
                return

            now = datetime.now(timezone.utc)
            try:
                await self.store.save_session({
                    "id": session_id,
                    "citizen_name": citizen.name or "Unknown",
                    "citizen_mobile": citizen.mobile or "N/A",
                    "district": citizen.district or "N/A",
                    "block": citizen.block or "N/A",
                    "village": citizen.village or "N/A",
                    "start_time": now,
                    "end_time": now,
                    "messages": messages,
                })
                logger.info("Session %s recorded for %s (%d messages)", session_id, citizen.mobile, len(messages))
            except RecordStoreError:
                logger.exception("Session %s could not be persisted", session_id)
        finally:
            self.live_calls.pop(key, None)

    async def submit_rating(self, sid: str, data: Any = None) -> None:
        request = parse_payload(RatingRequest, data, sid, "submit_rating")
        if request is None:
            return
        if not validate_rating(request.rating):
            logger.debug("Ignoring rating %r for %s", request.rating, request.session_id)
            return
        try:
            role = Role(request.role)
        except ValueError:
            logger.debug("Ignoring rating with unknown role %r", request.role)
            return

        try:
            found = await self.store.attach_rating(request.session_id, role, request.rating)
        except RecordStoreError:
            logger.exception("Rating for %s could not be stored", request.session_id)
            return
        if found:
            logger.info("Session %s rated by %s: %d stars", request.session_id, role.value, request.rating)
        else:
            logger.debug("Rating for unknown session %s ignored", request.session_id)

    # ─── History ─────────────────────────────────────────────────

    async def get_logs(self, sid: str, data: Any = None) -> None:
        if not self._is_official(sid, "get_logs"):
            return
        try:
            sessions = await self.store.list_sessions()
        except RecordStoreError:
            logger.exception("Could not load session logs")
            return
        await self.emitter.emit(ServerEvent.LOGS_UPDATE, [s.to_wire() for s in sessions], to=sid)

    async def get_my_history(self, sid: str, data: Any = None) -> None:
        profile = self.registry.lookup(sid)
        if profile is None or not profile.mobile:
            logger.debug("Ignoring get_my_history from %s: no registered mobile", sid)
            return
        try:
            sessions = await self.store.list_sessions(mobile=profile.mobile)
        except RecordStoreError:
            logger.exception("Could not load history for %s", profile.mobile)
            return
        await self.emitter.emit(ServerEvent.HISTORY_UPDATE, [s.to_wire() for s in sessions], to=sid)
