"""
FastAPI dependencies — hand routes the per-application services held on app.state.
"""
from typing import Optional

from fastapi import Header, HTTPException, Request

from samwad.config import Settings
from samwad.services.grievance_service import GrievanceIntake
from samwad.services.record_store import RecordStore
from samwad.services.upload_service import UploadService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_intake(request: Request) -> GrievanceIntake:
    return request.app.state.intake


def get_uploads(request: Request) -> UploadService:
    return request.app.state.uploads


def throttle_grievances(request: Request) -> bool:
    return request.app.state.grievance_limiter.check(request)


def require_official(
    request: Request,
    x_connection_id: Optional[str] = Header(None),
) -> str:
    """Admin routes answer only the connection currently registered as the official."""
    if not request.app.state.coordinator.presence.is_active_official(x_connection_id):
        raise HTTPException(status_code=403, detail="Official access only.")
    return x_connection_id
