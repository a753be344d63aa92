"""
Upload Routes — Single-file upload used for in-call file sharing.
"""
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from samwad.dependencies import get_uploads
from samwad.errors import UploadRejected
from samwad.schemas.schemas import UploadResponse
from samwad.services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Uploads"])


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile = File(None),
    uploads: UploadService = Depends(get_uploads),
):
    """Store one file and return the URL to access it."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded.")
    try:
        stored = await uploads.save(file)
    except UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Stored upload %s as %s", stored.original_name, stored.filename)
    return stored
