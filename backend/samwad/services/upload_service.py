"""
Upload Service — Stores multipart files on local disk under UPLOAD_DIR.
Files are served back from /uploads; callers only see the URL.
"""
import logging
import os
import random
import time
from typing import List, Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from samwad.errors import UploadRejected
from samwad.schemas.schemas import UploadResponse
from samwad.utils.validators import file_extension, safe_filename

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


class UploadService:

    def __init__(self, upload_dir: str, allowed_extensions: List[str]):
        self.upload_dir = upload_dir
        self.allowed_extensions = {ext.lower() for ext in allowed_extensions}
        os.makedirs(self.upload_dir, exist_ok=True)

    def _stored_name(self, original: str) -> str:
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{unique_suffix}-{safe_filename(original) or 'upload'}"

    async def _write(self, original: str, contents: bytes) -> UploadResponse:
        stored = self._stored_name(original)
        path = os.path.join(self.upload_dir, stored)

        def write():
            with open(path, "wb") as fh:
                fh.write(contents)

        await run_in_threadpool(write)
        return UploadResponse(url=f"{URL_PREFIX}/{stored}", filename=stored, original_name=original)

    async def save(self, upload: UploadFile) -> UploadResponse:
        """Validated single upload: allowed extensions only, never empty."""
        original = upload.filename or ""
        if not original:
            raise UploadRejected("No file uploaded.")
        if file_extension(original) not in self.allowed_extensions:
            raise UploadRejected(f"File type not allowed: {original}")

        contents = await upload.read()
        if not contents:
            raise UploadRejected(f"Empty file uploaded: {original}")
        return await self._write(original, contents)

    async def save_attachment(self, upload: UploadFile) -> Optional[UploadResponse]:
        """Grievance attachment: any type is kept; an empty file is skipped."""
        original = upload.filename or "upload"
        contents = await upload.read()
        if not contents:
            logger.warning("Skipping empty grievance attachment %s", original)
            return None
        return await self._write(original, contents)
