"""
Resume persistence
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
import structlog

from talent.models.event_store import EVENT_STATUS_PENDING, DomainEventRecord
from talent.models.resume import ResumeRecord
from talent.resumes.aggregate import Resume, ResumeId, UserId
from talent.resumes.events import DomainEvent
from talent.resumes.mapper import to_domain, to_record
from talent.resumes.status import ResumeStatus

logger = structlog.get_logger()


class ResumeRepository(ABC):
    """Collection-like access to resumes; deleted resumes are hidden from finds"""

    @abstractmethod
    def save(self, resume: Resume) -> Resume:
        """Insert or update, storing any pending domain events alongside.

        Raises StaleDataError when the stored row changed since the resume was loaded.
        """

    @abstractmethod
    def find_by_id(self, resume_id: ResumeId) -> Optional[Resume]:
        """Active resume by id."""

    @abstractmethod
    def find_by_user_id(self, user_id: UserId) -> List[Resume]:
        """Active resumes of a user, newest upload first."""

    @abstractmethod
    def find_by_id_and_user_id(self, resume_id: ResumeId, user_id: UserId) -> Optional[Resume]:
        """Active resume by id, only when owned by the user."""

    @abstractmethod
    def delete_by_id(self, resume_id: ResumeId) -> None:
        """Physically remove the resume."""

    @abstractmethod
    def exists_by_id(self, resume_id: ResumeId) -> bool:
        """Whether an active resume exists."""

    @abstractmethod
    def count_by_user_id(self, user_id: UserId) -> int:
        """Number of active resumes of a user."""

    @abstractmethod
    def find_all(self) -> List[Resume]:
        """All active resumes."""

    @abstractmethod
    def find_by_statuses(self, statuses: Sequence[ResumeStatus]) -> List[Resume]:
        """Resumes in any of the given statuses."""


class SqlAlchemyResumeRepository(ResumeRepository):
    """Repository backed by the resumes and domain_events tables"""

    def __init__(self, db: Session):
        self.db = db
        self._stored_event_ids = set()

    def save(self, resume: Resume) -> Resume:
        record = self.db.get(ResumeRecord, resume.id)
        if record is None:
            if resume.version is not None:
                raise StaleDataError(f"Resume {resume.id} no longer exists")
            record = to_record(resume)
            self.db.add(record)
        else:
            if resume.version is not None and record.version != resume.version:
                raise StaleDataError(
                    f"Resume {resume.id} is at version {record.version}, expected {resume.version}"
                )
            to_record(resume, record)
        new_events = [e for e in resume.domain_events if e.event_id not in self._stored_event_ids]
        for event in new_events:
            self.db.add(_event_record(event))
        self.db.flush()
        self._stored_event_ids.update(e.event_id for e in new_events)
        resume.mark_persisted(record.version)
        return resume

    def find_by_id(self, resume_id: ResumeId) -> Optional[Resume]:
        record = self._active().filter(ResumeRecord.id == resume_id).first()
        return to_domain(record) if record else None

    def find_by_user_id(self, user_id: UserId) -> List[Resume]:
        records = (
            self._active()
            .filter(ResumeRecord.user_id == user_id)
            .order_by(ResumeRecord.uploaded_at.desc())
            .all()
        )
        return [to_domain(r) for r in records]

    def find_by_id_and_user_id(self, resume_id: ResumeId, user_id: UserId) -> Optional[Resume]:
        record = (
            self._active()
            .filter(ResumeRecord.id == resume_id, ResumeRecord.user_id == user_id)
            .first()
        )
        return to_domain(record) if record else None

    def delete_by_id(self, resume_id: ResumeId) -> None:
        deleted = self.db.query(ResumeRecord).filter(ResumeRecord.id == resume_id).delete()
        logger.info("resume_record_deleted", resume_id=resume_id, rows=deleted)

    def exists_by_id(self, resume_id: ResumeId) -> bool:
        return self._active().filter(ResumeRecord.id == resume_id).count() > 0

    def count_by_user_id(self, user_id: UserId) -> int:
        return self._active().filter(ResumeRecord.user_id == user_id).count()

    def find_all(self) -> List[Resume]:
        return [to_domain(r) for r in self._active().order_by(ResumeRecord.uploaded_at.desc()).all()]

    def find_by_statuses(self, statuses: Sequence[ResumeStatus]) -> List[Resume]:
        values = [s.value for s in statuses if s is not ResumeStatus.DELETED]
        if not values:
            return []
        records = self.db.query(ResumeRecord).filter(ResumeRecord.status.in_(values)).all()
        return [to_domain(r) for r in records]

    def _active(self):
        return self.db.query(ResumeRecord).filter(ResumeRecord.status != ResumeStatus.DELETED.value)


def _event_record(event: DomainEvent) -> DomainEventRecord:
    return DomainEventRecord(
        event_id=event.event_id,
        event_type=event.event_type,
        aggregate_type=event.aggregate_type,
        aggregate_id=event.aggregate_id,
        payload=event.to_payload(),
        occurred_on=event.occurred_on,
        status=EVENT_STATUS_PENDING,
        retry_count=0,
    )
