"""
Session Record Model — Durable artifact of one completed call.
Maps to the 'session_records' table.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON, Integer

from samwad.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class SessionRecord(Base):
    __tablename__ = "session_records"

    id = Column(String(36), primary_key=True, index=True)

    # Citizen identity snapshot taken at call termination
    citizen_name = Column(String(128), default="Unknown")
    citizen_mobile = Column(String(20), default="N/A", index=True)
    district = Column(String(64), default="N/A")
    block = Column(String(64), default="N/A", index=True)
    village = Column(String(64), default="N/A", index=True)

    # No separate call-start instant is tracked: start_time == end_time
    start_time = Column(DateTime, default=_utcnow)
    end_time = Column(DateTime, default=_utcnow, index=True)

    # [{sender, type, content, url, timestamp}, ...] in relay order
    messages = Column(JSON, default=list)

    citizen_rating = Column(Integer, nullable=True)   # Rating given BY the citizen
    dm_rating = Column(Integer, nullable=True)        # Rating given BY the official
