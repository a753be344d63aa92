"""
Grievance Intake — Offline complaints and the official's review list.
"""
import logging
import uuid
from typing import Any, List, Optional

from samwad.config import Settings
from samwad.errors import RecordStoreError
from samwad.events import ServerEvent
from samwad.schemas.schemas import GrievanceOut, GrievanceStatus, GrievanceSubmission, GrievanceUpdateRequest
from samwad.services.call_coordinator import CallCoordinator, parse_payload
from samwad.services.record_store import RecordStore
from samwad.utils.validators import sanitize_name

logger = logging.getLogger(__name__)


class GrievanceIntake:
    """Stores grievances and keeps the official's grievance list fresh.

    The list pushed to the official is always the full current list, never a delta.
    """

    def __init__(self, store: RecordStore, coordinator: CallCoordinator, settings: Settings):
        self.store = store
        self.coordinator = coordinator
        self.settings = settings

    async def submit(self, submission: GrievanceSubmission, file_urls: List[str]) -> GrievanceOut:
        """Persist a new grievance. Raises RecordStoreError if the write fails."""
        fields = {
            "id": str(uuid.uuid4()),
            "citizen_name": sanitize_name(submission.name),
            "citizen_mobile": submission.mobile.strip(),
            "email": submission.email or None,
            "district": submission.district or self.settings.DEFAULT_DISTRICT,
            "block": submission.block or "N/A",
            "village": submission.village or "N/A",
            "message": submission.message,
            "file_url": file_urls[0] if file_urls else None,
            "file_urls": list(file_urls),
            "status": GrievanceStatus.PENDING.value,
        }
        grievance = await self.store.create_grievance(fields)
        logger.info(
            "New grievance %s from %s (%s) with %d files",
            grievance.id, grievance.citizen_name, grievance.citizen_mobile, len(file_urls),
        )

        try:
            await self.push_list()
        except RecordStoreError:
            logger.warning("Grievance %s saved but the official's list was not refreshed", grievance.id, exc_info=True)
        return grievance

    async def push_list(self, to: Optional[str] = None) -> None:
        """Send the full grievance list to `to`, or to the active official if any."""
        if to is None and self.coordinator.presence.official_connection is None:
            return
        grievances = await self.store.list_grievances()
        target = to or self.coordinator.presence.official_connection
        if target is None:
            return
        await self.coordinator.emitter.emit(
            ServerEvent.GRIEVANCE_UPDATE, [g.to_wire() for g in grievances], to=target,
        )

    async def get_grievances(self, sid: str, data: Any = None) -> None:
        if not self.coordinator.presence.is_active_official(sid):
            logger.debug("Ignoring get_grievances from %s: not the active official", sid)
            return
        try:
            await self.push_list(to=sid)
        except RecordStoreError:
            logger.exception("Could not load grievances")

    async def update(self, sid: str, data: Any = None) -> None:
        """Official-only partial update of remark and/or status."""
        if not self.coordinator.presence.is_active_official(sid):
            logger.debug("Ignoring update_grievance from %s: not the active official", sid)
            return
        request = parse_payload(GrievanceUpdateRequest, data, sid, "update_grievance")
        if request is None:
            return

        changes = {}
        if "remark" in request.model_fields_set:
            changes["remark"] = request.remark
        if "status" in request.model_fields_set and request.status is not None:
            changes["status"] = request.status.value
        if not changes:
            return

        try:
            updated = await self.store.update_grievance(request.id, changes)
            if updated is None:
                logger.debug("update_grievance for unknown id %s ignored", request.id)
                return
            logger.info("Grievance %s updated: %s", request.id, changes)
            await self.push_list(to=sid)
        except RecordStoreError:
            logger.exception("Grievance %s could not be updated", request.id)
