"""
Domain events emitted by the resume aggregate
"""
import uuid
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Type

from talent.resumes.files import FileDescriptor, FileName, FileSize, FileType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, FileDescriptor):
        return {
            "file_name": value.name.value,
            "file_size": value.size.bytes,
            "file_type": value.file_type.value,
        }
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Immutable record of a state change; occurred_on is when the event was raised"""

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_on: datetime = field(default_factory=utcnow)

    aggregate_type = "Resume"

    @property
    def event_type(self) -> str:
        return type(self).__name__

    @property
    def aggregate_id(self) -> str:
        return str(getattr(self, "resume_id"))

    def to_payload(self) -> Dict[str, Any]:
        return {f.name: _serialize(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True, kw_only=True)
class ResumeUploaded(DomainEvent):
    resume_id: str
    user_id: int
    file: FileDescriptor
    uploaded_at: datetime


@dataclass(frozen=True, kw_only=True)
class ResumeParsingStarted(DomainEvent):
    resume_id: str
    storage_key: str
    file_type: FileType
    started_at: datetime


@dataclass(frozen=True, kw_only=True)
class ResumeParsingCompleted(DomainEvent):
    resume_id: str
    candidate_name: Optional[str]
    skill_count: int
    experience_count: int
    parsed_at: datetime


@dataclass(frozen=True, kw_only=True)
class ResumeParsingFailed(DomainEvent):
    resume_id: str
    error_message: str
    retry_count: int
    failed_at: datetime

    def can_retry(self, max_retries: int = 3) -> bool:
        return self.retry_count < max_retries


@dataclass(frozen=True, kw_only=True)
class ResumeDeleted(DomainEvent):
    resume_id: str
    deleted_by: int
    storage_key: str
    deleted_at: datetime


EVENT_TYPES: Dict[str, Type[DomainEvent]] = {
    cls.__name__: cls
    for cls in (
        ResumeUploaded,
        ResumeParsingStarted,
        ResumeParsingCompleted,
        ResumeParsingFailed,
        ResumeDeleted,
    )
}


def _deserialize(annotation: Any, value: Any) -> Any:
    if value is None:
        return None
    if annotation is datetime:
        return datetime.fromisoformat(value)
    if annotation is FileType:
        return FileType(value)
    if annotation is FileDescriptor:
        return FileDescriptor(
            name=FileName(value["file_name"]),
            size=FileSize(value["file_size"]),
            file_type=FileType(value["file_type"]),
        )
    return value


def event_from_payload(event_type: str, payload: Dict[str, Any]) -> Optional[DomainEvent]:
    """Rebuild a stored event; None for event types this code no longer knows"""
    cls = EVENT_TYPES.get(event_type)
    if cls is None:
        return None
    values = {
        f.name: _deserialize(f.type, payload[f.name])
        for f in fields(cls)
        if f.name in payload
    }
    return cls(**values)
