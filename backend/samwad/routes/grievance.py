"""
Grievance Routes — Offline-mode complaint submission with attachments.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from samwad.config import Settings
from samwad.dependencies import get_app_settings, get_intake, get_uploads, throttle_grievances
from samwad.errors import RecordStoreError
from samwad.schemas.schemas import GrievanceSubmission, GrievanceSubmitResponse
from samwad.services.grievance_service import GrievanceIntake
from samwad.services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Grievances"])


@router.post("/grievance", response_model=GrievanceSubmitResponse)
async def submit_grievance(
    name: str = Form(""),
    mobile: str = Form(""),
    email: Optional[str] = Form(None),
    district: Optional[str] = Form(None),
    block: Optional[str] = Form(None),
    village: Optional[str] = Form(None),
    message: str = Form(""),
    files: Optional[List[UploadFile]] = File(None),
    settings: Settings = Depends(get_app_settings),
    intake: GrievanceIntake = Depends(get_intake),
    uploads: UploadService = Depends(get_uploads),
    _throttle: bool = Depends(throttle_grievances),
):
    """Store a grievance and refresh the official's grievance list if they are online."""
    attachments = [f for f in (files or []) if f.filename]
    if len(attachments) > settings.MAX_GRIEVANCE_FILES:
        logger.warning(
            "Grievance from %s carried %d files; keeping the first %d",
            mobile, len(attachments), settings.MAX_GRIEVANCE_FILES,
        )
        attachments = attachments[:settings.MAX_GRIEVANCE_FILES]

    stored = [await uploads.save_attachment(f) for f in attachments]
    file_urls = [s.url for s in stored if s is not None]

    submission = GrievanceSubmission(
        name=name, mobile=mobile, email=email,
        district=district, block=block, village=village,
        message=message,
    )
    try:
        await intake.submit(submission, file_urls)
    except RecordStoreError:
        logger.exception("Grievance from %s could not be stored", mobile)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to submit grievance"},
        )

    return GrievanceSubmitResponse(success=True, message="Grievance submitted successfully")
