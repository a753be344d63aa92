"""
Admin Routes — Session history, grievance listing and CSV reports for the official.
"""
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from samwad.config import Settings
from samwad.dependencies import get_app_settings, get_store, require_official
from samwad.schemas.schemas import GrievanceStatus
from samwad.services.export_service import export_filename, sessions_to_csv
from samwad.services.record_store import RecordStore

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_official)])


@router.get("/sessions")
async def list_sessions(
    mobile: Optional[str] = None,
    block: Optional[str] = None,
    village: Optional[str] = None,
    store: RecordStore = Depends(get_store),
):
    """List completed sessions, most recent first."""
    sessions = await store.list_sessions(mobile=mobile, block=block, village=village)
    return {
        "total": len(sessions),
        "sessions": [s.to_wire() for s in sessions],
    }


@router.get("/sessions/export")
async def export_sessions(
    block: Optional[str] = None,
    village: Optional[str] = None,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """Download a CSV report of sessions filtered by block and/or village."""
    sessions = await store.list_sessions(block=block, village=village)
    if not sessions:
        raise HTTPException(status_code=404, detail="No records found for the selected filters.")

    filename = export_filename(block, village, int(time.time() * 1000))
    return Response(
        content=sessions_to_csv(sessions, default_district=settings.DEFAULT_DISTRICT),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/grievances")
async def list_grievances(
    status: Optional[GrievanceStatus] = None,
    store: RecordStore = Depends(get_store),
):
    """List grievances, most recent first, optionally by status."""
    grievances = await store.list_grievances(status=status.value if status else None)
    return {
        "total": len(grievances),
        "grievances": [g.to_wire() for g in grievances],
    }
