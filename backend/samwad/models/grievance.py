"""
Grievance Model — Asynchronous complaint filed while the official is offline.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON, Text

from samwad.database import Base


class Grievance(Base):
    __tablename__ = "grievances"

    id = Column(String(36), primary_key=True, index=True)

    citizen_name = Column(String(128))
    citizen_mobile = Column(String(20), index=True)
    email = Column(String(128), nullable=True)
    district = Column(String(64))
    block = Column(String(64), default="N/A")
    village = Column(String(64), default="N/A")

    message = Column(Text)
    file_url = Column(String(512), nullable=True)   # Legacy single-file field: first of file_urls
    file_urls = Column(JSON, default=list)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    remark = Column(Text, nullable=True)
    status = Column(String(16), default="pending")  # pending | resolved
