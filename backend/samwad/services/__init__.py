from samwad.services.record_store import RecordStore
from samwad.services.registry import IdentityRegistry
from samwad.services.presence import PresenceTracker
from samwad.services.waiting_queue import WaitingQueue
from samwad.services.call_coordinator import CallCoordinator
from samwad.services.grievance_service import GrievanceIntake
from samwad.services.upload_service import UploadService

__all__ = [
    "RecordStore", "IdentityRegistry", "PresenceTracker", "WaitingQueue",
    "CallCoordinator", "GrievanceIntake", "UploadService",
]
