"""
Pydantic Schemas — Inbound event payloads and outbound records.
Wire payloads use camelCase aliases; Python code uses snake_case fields.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    CITIZEN = "citizen"
    OFFICIAL = "official"


class PresenceState(str, Enum):
    OFFLINE = "offline"
    ONLINE = "online"
    BUSY = "busy"


class GrievanceStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


def _normalize_role(value: Any) -> Any:
    # Older clients register the official as "dm"
    if isinstance(value, str):
        value = value.strip().lower()
        if value == "dm":
            return Role.OFFICIAL.value
    return value


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ──────────────── Identity ────────────────

class IdentityProfile(CamelModel):
    name: str = ""
    mobile: str = ""
    role: Role
    district: Optional[str] = None
    block: Optional[str] = None
    village: Optional[str] = None
    email: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def legacy_role(cls, value):
        return _normalize_role(value)


class RegistrationAck(CamelModel):
    connection_id: str


# ──────────────── Presence / Queue ────────────────

class PresenceStatus(CamelModel):
    status: PresenceState
    last_online_at: Optional[datetime] = None


class QueueStatus(CamelModel):
    position: int
    estimated_wait_minutes: int


class QueueEntryOut(CamelModel):
    connection_id: str
    name: str
    mobile: str
    role: Role
    district: Optional[str] = None
    block: Optional[str] = None
    village: Optional[str] = None
    email: Optional[str] = None
    last_citizen_rating: Optional[int] = None   # The rating THEY gave last time
    last_dm_rating: Optional[int] = None        # The rating the official gave them


class WaitOverrideRequest(CamelModel):
    minutes: Optional[int] = None

    @field_validator("minutes", mode="before")
    @classmethod
    def blank_clears(cls, value):
        if value in ("", 0, "0"):
            return None
        return value

    @field_validator("minutes")
    @classmethod
    def non_negative(cls, value):
        if value is not None and value < 0:
            raise ValueError("Wait override cannot be negative")
        return value


# ──────────────── Call relay ────────────────

class TargetPayload(CamelModel):
    target: str = Field(..., min_length=1)


class SignalPayload(TargetPayload):
    payload: Any = None


class MeetingLinkPayload(TargetPayload):
    link: str


class ChatMessage(CamelModel):
    sender: Role
    type: str = Field("text", pattern="^(text|file)$")
    content: str = ""
    url: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("sender", mode="before")
    @classmethod
    def legacy_sender(cls, value):
        return _normalize_role(value)


class ChatPayload(TargetPayload):
    message: Dict[str, Any]


class RatingRequest(CamelModel):
    session_id: str
    rating: int = 0
    role: str

    @field_validator("role", mode="before")
    @classmethod
    def legacy_role(cls, value):
        return _normalize_role(value)


# ──────────────── Durable records ────────────────

class SessionRecordOut(CamelModel):
    id: str
    citizen_name: str
    citizen_mobile: str
    district: Optional[str] = None
    block: Optional[str] = None
    village: Optional[str] = None
    start_time: datetime
    end_time: datetime
    messages: List[Dict[str, Any]] = []
    citizen_rating: Optional[int] = None
    dm_rating: Optional[int] = None


class GrievanceOut(CamelModel):
    id: str
    citizen_name: Optional[str] = None
    citizen_mobile: Optional[str] = None
    email: Optional[str] = None
    district: Optional[str] = None
    block: Optional[str] = None
    village: Optional[str] = None
    message: Optional[str] = None
    file_url: Optional[str] = None
    file_urls: List[str] = []
    created_at: datetime
    remark: Optional[str] = None
    status: str = GrievanceStatus.PENDING.value


class GrievanceSubmission(CamelModel):
    name: str = ""
    mobile: str = ""
    email: Optional[str] = None
    district: Optional[str] = None
    block: Optional[str] = None
    village: Optional[str] = None
    message: str = ""


class GrievanceUpdateRequest(CamelModel):
    id: str
    remark: Optional[str] = None
    status: Optional[GrievanceStatus] = None

    @field_validator("status", mode="before")
    @classmethod
    def lower_status(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


# ──────────────── HTTP ────────────────

class UploadResponse(CamelModel):
    url: str
    filename: str
    original_name: str


class GrievanceSubmitResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    database: str
    presence: str
    queue_length: int
    uptime_seconds: float
    version: str
