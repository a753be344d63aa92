"""
Record Store — Durable sessions and grievances behind a save/query interface.

Every public method is a coroutine: the blocking ORM work runs in the
threadpool, which makes store access the only suspension point of a
socket handler. Results are returned as detached pydantic records.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from samwad.errors import RecordStoreError
from samwad.models.grievance import Grievance
from samwad.models.session_record import SessionRecord
from samwad.schemas.schemas import GrievanceOut, Role, SessionRecordOut

logger = logging.getLogger(__name__)


class RecordStore:
    """Owns the Sessions and Grievances collections."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def _run(self, op: Callable[[Session], Any], label: str) -> Any:
        def work():
            try:
                with self._session_factory() as db:
                    return op(db)
            except SQLAlchemyError as exc:
                raise RecordStoreError(f"{label} failed", details={"error": str(exc)}) from exc

        return await run_in_threadpool(work)

    # ─── Sessions ────────────────────────────────────────────────

    async def save_session(self, fields: Dict[str, Any]) -> SessionRecordOut:
        def op(db: Session):
            record = SessionRecord(**fields)
            db.add(record)
            db.commit()
            db.refresh(record)
            return SessionRecordOut.model_validate(record)

        return await self._run(op, "save_session")

    async def get_session(self, session_id: str) -> Optional[SessionRecordOut]:
        def op(db: Session):
            record = db.query(SessionRecord).filter(SessionRecord.id == session_id).first()
            return SessionRecordOut.model_validate(record) if record else None

        return await self._run(op, "get_session")

    async def attach_rating(self, session_id: str, role: Role, rating: int) -> bool:
        """Set one side's rating. Returns False when the session does not exist."""
        def op(db: Session):
            record = db.query(SessionRecord).filter(SessionRecord.id == session_id).first()
            if not record:
                return False
            if role == Role.CITIZEN:
                record.citizen_rating = rating
            else:
                record.dm_rating = rating
            db.commit()
            return True

        return await self._run(op, "attach_rating")

    async def list_sessions(
        self,
        mobile: Optional[str] = None,
        block: Optional[str] = None,
        village: Optional[str] = None,
    ) -> List[SessionRecordOut]:
        """Sessions, most recent first, optionally narrowed by contact or location."""
        def op(db: Session):
            query = db.query(SessionRecord).order_by(SessionRecord.end_time.desc())
            if mobile:
                query = query.filter(SessionRecord.citizen_mobile == mobile)
            if block:
                query = query.filter(SessionRecord.block == block)
            if village:
                query = query.filter(SessionRecord.village == village)
            return [SessionRecordOut.model_validate(r) for r in query.all()]

        return await self._run(op, "list_sessions")

    async def last_rated_session(self, mobile: str) -> Optional[SessionRecordOut]:
        """Most recent session for this contact number that the citizen rated."""
        def op(db: Session):
            record = (
                db.query(SessionRecord)
                .filter(
                    SessionRecord.citizen_mobile == mobile,
                    SessionRecord.citizen_rating.isnot(None),
                    SessionRecord.citizen_rating > 0,
                )
                .order_by(SessionRecord.end_time.desc())
                .first()
            )
            return SessionRecordOut.model_validate(record) if record else None

        return await self._run(op, "last_rated_session")

    # ─── Grievances ──────────────────────────────────────────────

    async def create_grievance(self, fields: Dict[str, Any]) -> GrievanceOut:
        def op(db: Session):
            grievance = Grievance(**fields)
            db.add(grievance)
            db.commit()
            db.refresh(grievance)
            return GrievanceOut.model_validate(grievance)

        return await self._run(op, "create_grievance")

    async def update_grievance(self, grievance_id: str, changes: Dict[str, Any]) -> Optional[GrievanceOut]:
        """Apply a partial update. Returns None when the grievance does not exist."""
        def op(db: Session):
            grievance = db.query(Grievance).filter(Grievance.id == grievance_id).first()
            if not grievance:
                return None
            for key, value in changes.items():
                setattr(grievance, key, value)
            db.commit()
            db.refresh(grievance)
            return GrievanceOut.model_validate(grievance)

        return await self._run(op, "update_grievance")

    async def list_grievances(self, status: Optional[str] = None) -> List[GrievanceOut]:
        def op(db: Session):
            query = db.query(Grievance).order_by(Grievance.created_at.desc())
            if status:
                query = query.filter(Grievance.status == status)
            return [GrievanceOut.model_validate(g) for g in query.all()]

        return await self._run(op, "list_grievances")

    # ─── Health ──────────────────────────────────────────────────

    def ping(self) -> bool:
        try:
            with self._session_factory() as db:
                db.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("Record store ping failed", exc_info=True)
            return False
