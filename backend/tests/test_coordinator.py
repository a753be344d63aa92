"""
Call coordinator tests: registration, presence, queue, call lifecycle and ratings.

Drives the coordinator directly with connection ids, the way the Socket.IO
layer would, and inspects what was emitted to whom.
"""
import pytest

from conftest import register
from samwad.errors import RecordStoreError
from samwad.schemas.schemas import PresenceState
from samwad.services.call_coordinator import pair_key

pytestmark = pytest.mark.asyncio


async def _start_call(coordinator, citizen="cit-1", official="dm-1", **profile):
    await register(coordinator, citizen, **profile)
    await register(coordinator, official, role="official", name="District Magistrate")
    await coordinator.join_queue(citizen)
    await coordinator.invite(official, {"target": citizen})


# ═══════════════════════════════════════════════════════════════════════════════
# REGISTRATION & PRESENCE
# ═══════════════════════════════════════════════════════════════════════════════

class TestRegistration:
    async def test_ack_carries_connection_id(self, coordinator, emitter):
        await register(coordinator, "cit-1")
        assert emitter.last("cit-1", "registration_ack") == {"connectionId": "cit-1"}

    async def test_malformed_registration_is_ignored(self, coordinator, emitter):
        await coordinator.register("cit-1", {"name": "No role"})
        await coordinator.register("cit-2", "not-an-object")
        assert emitter.sent == []
        assert len(coordinator.registry) == 0

    async def test_official_registration_goes_online(self, coordinator, emitter):
        await register(coordinator, "dm-1", role="official")
        status = emitter.broadcasts("status_update")[-1]
        assert status["status"] == "online"
        assert status["lastOnlineAt"] is not None

    async def test_legacy_dm_role_is_official(self, coordinator):
        await register(coordinator, "dm-1", role="dm")
        assert coordinator.presence.is_active_official("dm-1")

    async def test_second_official_supersedes_first(self, coordinator, emitter):
        await register(coordinator, "cit-1")
        await coordinator.join_queue("cit-1")
        await register(coordinator, "dm-1", role="official")
        await register(coordinator, "dm-2", role="official")

        assert coordinator.presence.official_connection == "dm-2"
        await coordinator.invite("dm-1", {"target": "cit-1"})
        assert emitter.to("cit-1", "incoming_call") == []
        assert "cit-1" in coordinator.queue

    async def test_official_reregistering_as_citizen_goes_offline(self, coordinator, emitter):
        await register(coordinator, "dm-1", role="official")
        await register(coordinator, "dm-1", role="citizen")
        assert coordinator.presence.status == PresenceState.OFFLINE
        assert emitter.broadcasts("status_update")[-1]["status"] == "offline"

    async def test_get_status_replies_to_caller(self, coordinator, emitter):
        await coordinator.get_status("anyone")
        assert emitter.last("anyone", "status_update") == {"status": "offline", "lastOnlineAt": None}


# ═══════════════════════════════════════════════════════════════════════════════
# QUEUE
# ═══════════════════════════════════════════════════════════════════════════════

class TestQueue:
    async def test_join_before_registration_is_ignored(self, coordinator, emitter):
        await coordinator.join_queue("cit-1")
        assert len(coordinator.queue) == 0
        assert emitter.sent == []

    async def test_official_cannot_join(self, coordinator):
        await register(coordinator, "dm-1", role="official")
        await coordinator.join_queue("dm-1")
        assert len(coordinator.queue) == 0

    async def test_positions_follow_join_order(self, coordinator, emitter):
        for sid in ["c1", "c2", "c3"]:
            await register(coordinator, sid)
            await coordinator.join_queue(sid)
        assert emitter.last("c3", "queue_update") == {"position": 3, "estimatedWaitMinutes": 30}

    async def test_duplicate_join_resends_status_without_reordering(self, coordinator, emitter):
        for sid in ["c1", "c2"]:
            await register(coordinator, sid)
            await coordinator.join_queue(sid)
        await coordinator.join_queue("c1")
        assert coordinator.queue.entries() == ["c1", "c2"]
        assert emitter.to("c1", "queue_update") == [
            {"position": 1, "estimatedWaitMinutes": 10},
            {"position": 1, "estimatedWaitMinutes": 10},
        ]

    async def test_official_sees_enriched_queue(self, coordinator, emitter, store):
        await store.save_session({
            "id": "old-1", "citizen_name": "Asha", "citizen_mobile": "9876543210",
            "citizen_rating": 4, "dm_rating": 5,
        })
        await register(coordinator, "dm-1", role="official")
        await register(coordinator, "c1", name="Asha", mobile="9876543210", village="Gangori")
        await coordinator.join_queue("c1")

        entries = emitter.last("dm-1", "queue_update_official")
        assert len(entries) == 1
        assert entries[0]["connectionId"] == "c1"
        assert entries[0]["village"] == "Gangori"
        assert entries[0]["lastCitizenRating"] == 4
        assert entries[0]["lastDmRating"] == 5

    async def test_get_queue_is_official_only(self, coordinator, emitter):
        await register(coordinator, "c1")
        await coordinator.get_queue("c1")
        assert emitter.to("c1", "queue_update_official") == []

    async def test_leave_queue_notifies_official(self, coordinator, emitter):
        await register(coordinator, "dm-1", role="official")
        await register(coordinator, "c1")
        await coordinator.join_queue("c1")
        await coordinator.leave_queue("c1")
        assert emitter.last("dm-1", "queue_update_official") == []

    async def test_wait_override_rebroadcasts(self, coordinator, emitter):
        await register(coordinator, "dm-1", role="official")
        for sid in ["c1", "c2"]:
            await register(coordinator, sid)
            await coordinator.join_queue(sid)

        await coordinator.set_wait_override("dm-1", {"minutes": 15})
        assert emitter.last("c2", "queue_update") == {"position": 2, "estimatedWaitMinutes": 15}
        assert emitter.last("dm-1", "wait_override_updated") == {"minutes": 15}

        await coordinator.set_wait_override("dm-1", {"minutes": None})
        assert emitter.last("c2", "queue_update") == {"position": 2, "estimatedWaitMinutes": 20}

    async def test_wait_override_rejects_bad_values(self, coordinator):
        await register(coordinator, "dm-1", role="official")
        await coordinator.set_wait_override("dm-1", {"minutes": 5})
        await coordinator.set_wait_override("dm-1", {"minutes": -3})
        await coordinator.set_wait_override("dm-1", {"minutes": "soon"})
        assert coordinator.queue.manual_override_minutes == 5

    async def test_wait_override_from_citizen_ignored(self, coordinator):
        await register(coordinator, "c1")
        await coordinator.set_wait_override("c1", {"minutes": 1})
        assert coordinator.queue.manual_override_minutes is None


# ═══════════════════════════════════════════════════════════════════════════════
# DISCONNECT
# ═══════════════════════════════════════════════════════════════════════════════

class TestDisconnect:
    async def test_queue_survives_official_disconnect(self, coordinator, emitter):
        await register(coordinator, "dm-1", role="official")
        for sid in ["c1", "c2", "c3"]:
            await register(coordinator, sid)
            await coordinator.join_queue(sid)

        await coordinator.disconnect("dm-1")
        assert coordinator.presence.status == PresenceState.OFFLINE
        status = emitter.broadcasts("status_update")[-1]
        assert status["status"] == "offline"
        assert status["lastOnlineAt"] is not None

        await register(coordinator, "dm-2", role="official")
        await coordinator.get_queue("dm-2")
        entries = emitter.last("dm-2", "queue_update_official")
        assert [e["connectionId"] for e in entries] == ["c1", "c2", "c3"]

    async def test_citizen_disconnect_leaves_queue(self, coordinator, emitter):
        await register(coordinator, "dm-1", role="official")
        for sid in ["c1", "c2"]:
            await register(coordinator, sid)
            await coordinator.join_queue(sid)

        await coordinator.disconnect("c1")
        assert coordinator.queue.entries() == ["c2"]
        assert "c1" not in coordinator.registry
        assert [e["connectionId"] for e in emitter.last("dm-1", "queue_update_official")] == ["c2"]


# ═══════════════════════════════════════════════════════════════════════════════
# CALL LIFECYCLE
# ═══════════════════════════════════════════════════════════════════════════════

class TestCallLifecycle:
    async def test_full_scenario(self, coordinator, emitter):
        await register(coordinator, "cit-1")
        await coordinator.join_queue("cit-1")
        assert emitter.last("cit-1", "queue_update") == {"position": 1, "estimatedWaitMinutes": 10}

        await register(coordinator, "dm-1", role="official")
        await coordinator.set_wait_override("dm-1", {"minutes": 5})
        assert emitter.last("cit-1", "queue_update") == {"position": 1, "estimatedWaitMinutes": 5}

        await coordinator.invite("dm-1", {"target": "cit-1"})
        assert "cit-1" not in coordinator.queue
        assert emitter.last("cit-1", "incoming_call") == {"from": "dm-1"}
        assert coordinator.presence.status == PresenceState.BUSY
        assert emitter.broadcasts("status_update")[-1]["status"] == "busy"

        await coordinator.end_call("dm-1", {"target": "cit-1"})
        assert coordinator.presence.status == PresenceState.ONLINE
        citizen_end = emitter.last("cit-1", "call_ended")
        official_end = emitter.last("dm-1", "call_ended")
        assert citizen_end == official_end
        assert citizen_end["sessionId"]

    async def test_invite_by_citizen_ignored(self, coordinator, emitter):
        await register(coordinator, "c1")
        await register(coordinator, "c2")
        await coordinator.invite("c1", {"target": "c2"})
        assert emitter.to("c2", "incoming_call") == []

    async def test_signaling_relayed_verbatim(self, coordinator, emitter):
        await _start_call(coordinator)
        offer = {"type": "offer", "sdp": "v=0..."}
        await coordinator.relay_signal("signaling_offer", "dm-1", {"target": "cit-1", "payload": offer})
        await coordinator.relay_signal("signaling_candidate", "cit-1", {"target": "dm-1", "payload": {"candidate": "x"}})

        assert emitter.last("cit-1", "signaling_offer") == {"payload": offer, "from": "dm-1"}
        assert emitter.last("dm-1", "signaling_candidate") == {"payload": {"candidate": "x"}, "from": "cit-1"}

    async def test_signaling_without_target_dropped(self, coordinator, emitter):
        await coordinator.relay_signal("signaling_answer", "cit-1", {"payload": {}})
        assert emitter.sent == []

    async def test_meeting_link_sets_busy(self, coordinator, emitter):
        await register(coordinator, "dm-1", role="official")
        await register(coordinator, "cit-1")
        await coordinator.request_meeting_link("cit-1", {"target": "dm-1"})
        assert emitter.last("dm-1", "request_meeting_link") == {"from": "cit-1"}

        await coordinator.share_meeting_link("dm-1", {"target": "cit-1", "link": "https://meet.example/abc"})
        assert emitter.last("cit-1", "share_meeting_link") == {"link": "https://meet.example/abc", "from": "dm-1"}
        assert coordinator.presence.status == PresenceState.BUSY

    async def test_transcript_is_persisted_on_end(self, coordinator, emitter, store):
        await _start_call(coordinator, name="Asha", mobile="9876543210", block="Bhatwari", village="Gangori")
        await coordinator.chat_message("cit-1", {"target": "dm-1", "message": {
            "sender": "citizen", "type": "text", "content": "Namaste", "timestamp": "2024-01-01T10:00:00Z",
        }})
        await coordinator.chat_message("dm-1", {"target": "cit-1", "message": {
            "sender": "dm", "type": "file", "content": "order.pdf", "url": "/uploads/order.pdf",
        }})
        assert emitter.last("dm-1", "chat_message")["content"] == "Namaste"
        assert emitter.last("cit-1", "chat_message")["sender"] == "dm"

        await coordinator.end_call("dm-1", {"target": "cit-1"})
        session_id = emitter.last("cit-1", "call_ended")["sessionId"]
        record = await store.get_session(session_id)

        assert record.citizen_name == "Asha"
        assert record.citizen_mobile == "9876543210"
        assert record.block == "Bhatwari"
        assert record.start_time == record.end_time
        assert [m["content"] for m in record.messages] == ["Namaste", "order.pdf"]
        assert record.messages[1]["sender"] == "official"
        assert record.messages[1]["url"] == "/uploads/order.pdf"
        assert record.citizen_rating is None and record.dm_rating is None
        assert coordinator.live_calls == {}

    async def test_chat_relayed_even_when_not_transcribable(self, coordinator, emitter):
        await _start_call(coordinator)
        await coordinator.chat_message("cit-1", {"target": "dm-1", "message": {"type": "text", "content": "hi"}})
        await coordinator.chat_message("cit-1", {"target": "dm-1", "message": {"sender": "robot", "content": "x"}})

        assert emitter.to("dm-1", "chat_message") == [
            {"type": "text", "content": "hi"},
            {"sender": "robot", "content": "x"},
        ]
        assert coordinator.live_calls[pair_key("cit-1", "dm-1")].messages == []

    async def test_chat_without_target_dropped(self, coordinator, emitter):
        await coordinator.chat_message("cit-1", {"message": {"sender": "citizen", "content": "hi"}})
        assert emitter.sent == []

    async def test_disconnect_mid_call_discards_buffer(self, coordinator):
        await register(coordinator, "dm-1", role="official")
        for n in range(3):
            citizen = f"cit-{n}"
            await register(coordinator, citizen)
            await coordinator.join_queue(citizen)
            await coordinator.invite("dm-1", {"target": citizen})
            await coordinator.chat_message(citizen, {"target": "dm-1", "message": {"sender": "citizen", "content": "hello"}})
            await coordinator.disconnect(citizen)
        assert coordinator.live_calls == {}

    async def test_official_disconnect_discards_buffers(self, coordinator):
        await _start_call(coordinator)
        await coordinator.chat_message("dm-1", {"target": "cit-1", "message": {"sender": "official", "content": "hi"}})
        await coordinator.disconnect("dm-1")
        assert coordinator.live_calls == {}
        assert "cit-1" in coordinator.registry

    async def test_citizen_can_end_call(self, coordinator, emitter, store):
        await _start_call(coordinator, mobile="9000000001")
        await coordinator.end_call("cit-1", {"target": "dm-1"})
        session_id = emitter.last("dm-1", "call_ended")["sessionId"]
        record = await store.get_session(session_id)
        assert record is not None
        assert record.citizen_mobile == "9000000001"

    async def test_unregistered_peer_is_not_recorded(self, coordinator, emitter, store):
        await register(coordinator, "dm-1", role="official")
        await coordinator.chat_message("dm-1", {"target": "ghost", "message": {"sender": "official", "content": "hi"}})
        await coordinator.end_call("dm-1", {"target": "ghost"})

        session_id = emitter.last("dm-1", "call_ended")["sessionId"]
        assert emitter.last("ghost", "call_ended") == {"sessionId": session_id}
        assert await store.get_session(session_id) is None
        assert coordinator.presence.status == PresenceState.ONLINE
        assert coordinator.live_calls == {}

    async def test_store_failure_still_ends_call(self, coordinator, emitter, monkeypatch):
        async def broken_save(fields):
            raise RecordStoreError("save_session failed")

        monkeypatch.setattr(coordinator.store, "save_session", broken_save)
        await _start_call(coordinator)
        await coordinator.chat_message("cit-1", {"target": "dm-1", "message": {"sender": "citizen", "content": "hi"}})
        await coordinator.end_call("dm-1", {"target": "cit-1"})

        assert emitter.last("cit-1", "call_ended") is not None
        assert coordinator.presence.status == PresenceState.ONLINE
        assert coordinator.live_calls == {}


# ═══════════════════════════════════════════════════════════════════════════════
# RATINGS & HISTORY
# ═══════════════════════════════════════════════════════════════════════════════

class TestRatings:
    async def _ended_session(self, coordinator, emitter, **profile):
        await _start_call(coordinator, **profile)
        await coordinator.end_call("dm-1", {"target": "cit-1"})
        return emitter.last("cit-1", "call_ended")["sessionId"]

    async def test_last_rating_wins(self, coordinator, emitter, store):
        session_id = await self._ended_session(coordinator, emitter)
        await coordinator.submit_rating("cit-1", {"sessionId": session_id, "rating": 2, "role": "citizen"})
        await coordinator.submit_rating("cit-1", {"sessionId": session_id, "rating": 5, "role": "citizen"})
        await coordinator.submit_rating("dm-1", {"sessionId": session_id, "rating": 3, "role": "dm"})

        record = await store.get_session(session_id)
        assert record.citizen_rating == 5
        assert record.dm_rating == 3

    async def test_zero_rating_ignored(self, coordinator, emitter, store):
        session_id = await self._ended_session(coordinator, emitter)
        await coordinator.submit_rating("cit-1", {"sessionId": session_id, "rating": 4, "role": "citizen"})
        await coordinator.submit_rating("cit-1", {"sessionId": session_id, "rating": 0, "role": "citizen"})
        await coordinator.submit_rating("cit-1", {"sessionId": session_id, "rating": 9, "role": "citizen"})
        assert (await store.get_session(session_id)).citizen_rating == 4

    async def test_unknown_session_is_noop(self, coordinator, store):
        await coordinator.submit_rating("cit-1", {"sessionId": "nope", "rating": 4, "role": "citizen"})
        assert await store.get_session("nope") is None
        assert await store.list_sessions() == []

    async def test_history_is_per_mobile(self, coordinator, emitter, store):
        await store.save_session({"id": "other", "citizen_name": "B", "citizen_mobile": "9111111111"})
        await self._ended_session(coordinator, emitter, mobile="9222222222")

        await coordinator.get_my_history("cit-1")
        history = emitter.last("cit-1", "history_update")
        assert len(history) == 1
        assert history[0]["citizenMobile"] == "9222222222"

    async def test_logs_are_official_only(self, coordinator, emitter):
        await self._ended_session(coordinator, emitter)
        await coordinator.get_logs("cit-1")
        assert emitter.to("cit-1", "logs_update") == []

        await coordinator.get_logs("dm-1")
        logs = emitter.last("dm-1", "logs_update")
        assert len(logs) == 1
        assert set(logs[0]) >= {"id", "citizenName", "startTime", "endTime", "messages", "citizenRating", "dmRating"}
