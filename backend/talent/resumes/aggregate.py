"""
Resume aggregate root

All changes to a resume's status, file and parsed profile go through the
methods below. Every method checks its preconditions before writing any
field, so a rejected call leaves the aggregate exactly as it was.
"""
import uuid
from datetime import datetime
from typing import Iterable, List, NewType, Optional, Tuple

from talent.core.exceptions import (
    AlreadyExistsError,
    InvalidStateTransition,
    NotFoundError,
    OwnershipViolationError,
    ValidationError,
)
from talent.resumes.events import (
    DomainEvent,
    ResumeDeleted,
    ResumeParsingCompleted,
    ResumeParsingFailed,
    ResumeParsingStarted,
    ResumeUploaded,
    utcnow,
)
from talent.resumes.files import FileDescriptor, FileName
from talent.resumes.status import ResumeStatus
from talent.resumes.value_objects import (
    CandidateName,
    ContactInfo,
    Education,
    Experience,
    Skill,
    SkillLevel,
)

ResumeId = NewType("ResumeId", str)
UserId = NewType("UserId", int)


def new_resume_id() -> ResumeId:
    return ResumeId(str(uuid.uuid4()))


class Resume:
    """Uploaded resume and the candidate profile parsed from it"""

    def __init__(
        self,
        resume_id: ResumeId,
        user_id: UserId,
        file: FileDescriptor,
        storage_key: str,
        status: ResumeStatus,
        uploaded_at: datetime,
        updated_at: datetime,
        candidate_name: Optional[CandidateName] = None,
        skills: Iterable[Skill] = (),
        experiences: Iterable[Experience] = (),
        educations: Iterable[Education] = (),
        contact_info: Optional[ContactInfo] = None,
        parsed_at: Optional[datetime] = None,
        parse_error_message: Optional[str] = None,
        parse_retry_count: int = 0,
        deleted_at: Optional[datetime] = None,
        version: Optional[int] = None,
    ):
        self._id = resume_id
        self._user_id = user_id
        self._file = file
        self._storage_key = storage_key
        self._status = status
        self._candidate_name = candidate_name
        self._skills: List[Skill] = list(skills)
        self._experiences: List[Experience] = list(experiences)
        self._educations: List[Education] = list(educations)
        self._contact_info = contact_info
        self._parsed_at = parsed_at
        self._parse_error_message = parse_error_message
        self._parse_retry_count = parse_retry_count
        self._uploaded_at = uploaded_at
        self._updated_at = updated_at
        self._deleted_at = deleted_at
        self._version = version
        self._domain_events: List[DomainEvent] = []

    # Factories

    @classmethod
    def upload(cls, user_id: UserId, file: FileDescriptor, storage_key: str) -> "Resume":
        """Create a freshly uploaded resume awaiting parsing"""
        if user_id is None:
            raise ValidationError("Owner is required")
        if not storage_key or not storage_key.strip():
            raise ValidationError("Storage key is required")
        now = utcnow()
        resume = cls(
            resume_id=new_resume_id(),
            user_id=user_id,
            file=file,
            storage_key=storage_key,
            status=ResumeStatus.UPLOADED,
            uploaded_at=now,
            updated_at=now,
        )
        resume._record(
            ResumeUploaded(
                resume_id=resume.id,
                user_id=user_id,
                file=file,
                uploaded_at=now,
            )
        )
        return resume

    @classmethod
    def reconstitute(cls, **state) -> "Resume":
        """Rebuild a persisted resume without emitting events"""
        return cls(**state)

    # Parsing lifecycle

    def start_parsing(self) -> None:
        if not self._status.can_parse():
            raise InvalidStateTransition(
                f"Resume cannot be parsed while {self._status.value}",
                current_status=self._status.value,
                target_status=ResumeStatus.PARSING.value,
            )
        self._status.validate_transition_to(ResumeStatus.PARSING)
        now = utcnow()
        self._status = ResumeStatus.PARSING
        self._updated_at = now
        self._record(
            ResumeParsingStarted(
                resume_id=self._id,
                storage_key=self._storage_key,
                file_type=self._file.file_type,
                started_at=now,
            )
        )

    def complete_parsing(
        self,
        candidate_name: Optional[CandidateName],
        skills: Iterable[Skill],
        experiences: Iterable[Experience],
        educations: Iterable[Education],
        contact_info: Optional[ContactInfo],
    ) -> None:
        self._require_status(ResumeStatus.PARSING, ResumeStatus.PARSED)
        skills = list(skills)
        _reject_duplicate_skills(skills)
        experiences = list(experiences)
        educations = list(educations)

        now = utcnow()
        self._candidate_name = candidate_name
        self._skills = skills
        self._experiences = experiences
        self._educations = educations
        self._contact_info = contact_info
        self._status = ResumeStatus.PARSED
        self._parsed_at = now
        self._parse_error_message = None
        self._updated_at = now
        self._record(
            ResumeParsingCompleted(
                resume_id=self._id,
                candidate_name=candidate_name.value if candidate_name else None,
                skill_count=len(skills),
                experience_count=len(experiences),
                parsed_at=now,
            )
        )

    def fail_parsing(self, error_message: str) -> None:
        self._require_status(ResumeStatus.PARSING, ResumeStatus.PARSE_FAILED)
        message = (error_message or "").strip() or "Unknown parsing error"
        now = utcnow()
        self._status = ResumeStatus.PARSE_FAILED
        self._parse_error_message = message
        self._parse_retry_count += 1
        self._updated_at = now
        self._record(
            ResumeParsingFailed(
                resume_id=self._id,
                error_message=message,
                retry_count=self._parse_retry_count,
                failed_at=now,
            )
        )

    def request_reparse(self) -> None:
        if not self._status.can_reparse():
            raise InvalidStateTransition(
                f"Resume cannot be re-parsed while {self._status.value}",
                current_status=self._status.value,
                target_status=ResumeStatus.PARSING.value,
            )
        self.start_parsing()

    # Profile editing

    def add_skill(self, skill: Skill) -> None:
        self._require_editable()
        if self.has_skill(skill.name):
            raise AlreadyExistsError("Skill", skill.name)
        self._skills.append(skill)
        self._touch()

    def remove_skill(self, skill_name: str) -> None:
        self._require_editable()
        for index, skill in enumerate(self._skills):
            if skill.matches_name(skill_name):
                del self._skills[index]
                self._touch()
                return
        raise NotFoundError("Skill", skill_name)

    def add_experience(self, experience: Experience) -> None:
        self._require_editable()
        self._experiences.append(experience)
        self._touch()

    def remove_experience(self, experience: Experience) -> None:
        self._require_editable()
        if experience not in self._experiences:
            raise NotFoundError("Experience", f"{experience.company} / {experience.position}")
        self._experiences.remove(experience)
        self._touch()

    def add_education(self, education: Education) -> None:
        self._require_editable()
        self._educations.append(education)
        self._touch()

    def remove_education(self, education: Education) -> None:
        self._require_editable()
        if education not in self._educations:
            raise NotFoundError("Education", f"{education.school} / {education.major}")
        self._educations.remove(education)
        self._touch()

    def update_contact_info(self, contact_info: ContactInfo) -> None:
        self._require_editable()
        if contact_info is None:
            raise ValidationError("Contact info is required")
        self._contact_info = contact_info
        self._touch()

    def update_candidate_name(self, candidate_name: CandidateName) -> None:
        self._require_editable()
        if candidate_name is None:
            raise ValidationError("Candidate name is required")
        self._candidate_name = candidate_name
        self._touch()

    # File management

    def rename_file(self, new_name: FileName) -> None:
        self._require_editable()
        if new_name.extension != self._file.name.extension:
            raise ValidationError(
                "File extension cannot be changed by renaming; upload a replacement file instead",
                details={"current": self._file.name.extension, "requested": new_name.extension},
            )
        self._file = self._file.renamed(new_name)
        self._touch()

    def replace_file(self, new_file: FileDescriptor, storage_key: str) -> None:
        """Swap the underlying file and drop everything parsed from the old one"""
        self._require_editable()
        if not storage_key or not storage_key.strip():
            raise ValidationError("Storage key is required")
        self._file = new_file
        self._storage_key = storage_key
        self._clear_profile()
        # Only PARSED is sent back for parsing; PARSE_FAILED keeps its status
        if self._status.is_parsed():
            self._status = ResumeStatus.UPLOADED
        self._touch()

    # Status management

    def archive(self) -> None:
        if not self._status.can_be_archived():
            raise InvalidStateTransition(
                f"Resume cannot be archived while {self._status.value}",
                current_status=self._status.value,
                target_status=ResumeStatus.ARCHIVED.value,
            )
        self._status.validate_transition_to(ResumeStatus.ARCHIVED)
        self._status = ResumeStatus.ARCHIVED
        self._touch()

    def unarchive(self) -> None:
        self._require_status(ResumeStatus.ARCHIVED, ResumeStatus.PARSED)
        self._status.validate_transition_to(ResumeStatus.PARSED)
        self._status = ResumeStatus.PARSED
        self._touch()

    def delete(self, requested_by: UserId) -> None:
        if not self._status.can_be_deleted():
            raise InvalidStateTransition(
                f"Resume cannot be deleted while {self._status.value}",
                current_status=self._status.value,
                target_status=ResumeStatus.DELETED.value,
            )
        if not self.is_owned_by(requested_by):
            raise OwnershipViolationError(
                "Only the owner can delete this resume",
                details={"resume_id": self._id},
            )
        self._status.validate_transition_to(ResumeStatus.DELETED)
        now = utcnow()
        self._status = ResumeStatus.DELETED
        self._deleted_at = now
        self._updated_at = now
        self._record(
            ResumeDeleted(
                resume_id=self._id,
                deleted_by=requested_by,
                storage_key=self._storage_key,
                deleted_at=now,
            )
        )

    # Queries

    def has_complete_profile(self) -> bool:
        return (
            self._candidate_name is not None
            and self._contact_info is not None
            and bool(self._skills or self._experiences)
        )

    def total_experience_years(self) -> int:
        return sum(e.duration_in_years() for e in self._experiences)

    def total_experience_months(self) -> int:
        return sum(e.duration_in_months() for e in self._experiences)

    def skill_names(self) -> List[str]:
        return [s.name for s in self._skills]

    def find_skill(self, name: str) -> Optional[Skill]:
        return next((s for s in self._skills if s.matches_name(name)), None)

    def has_skill(self, name: str) -> bool:
        return self.find_skill(name) is not None

    def has_skill_with_level(self, name: str, min_level: SkillLevel) -> bool:
        return any(s.matches_name(name) and s.is_level_at_least(min_level) for s in self._skills)

    def is_owned_by(self, user_id: UserId) -> bool:
        return user_id is not None and self._user_id == user_id

    def is_parsed(self) -> bool:
        return self._status.is_parsed()

    def can_be_edited(self) -> bool:
        return self._status.can_edit()

    def can_be_parsed(self) -> bool:
        return self._status.can_parse()

    def can_be_deleted(self) -> bool:
        return self._status.can_be_deleted()

    # Domain events

    @property
    def domain_events(self) -> Tuple[DomainEvent, ...]:
        return tuple(self._domain_events)

    def has_domain_events(self) -> bool:
        return bool(self._domain_events)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Return pending events and forget them"""
        events, self._domain_events = self._domain_events, []
        return events

    def mark_persisted(self, version: int) -> None:
        """Remember the stored row version this copy was last synchronised with"""
        self._version = version

    # Read-only state

    @property
    def id(self) -> ResumeId:
        return self._id

    @property
    def version(self) -> Optional[int]:
        return self._version

    @property
    def user_id(self) -> UserId:
        return self._user_id

    @property
    def file(self) -> FileDescriptor:
        return self._file

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def status(self) -> ResumeStatus:
        return self._status

    @property
    def candidate_name(self) -> Optional[CandidateName]:
        return self._candidate_name

    @property
    def skills(self) -> Tuple[Skill, ...]:
        return tuple(self._skills)

    @property
    def experiences(self) -> Tuple[Experience, ...]:
        return tuple(self._experiences)

    @property
    def educations(self) -> Tuple[Education, ...]:
        return tuple(self._educations)

    @property
    def contact_info(self) -> Optional[ContactInfo]:
        return self._contact_info

    @property
    def parsed_at(self) -> Optional[datetime]:
        return self._parsed_at

    @property
    def parse_error_message(self) -> Optional[str]:
        return self._parse_error_message

    @property
    def parse_retry_count(self) -> int:
        return self._parse_retry_count

    @property
    def uploaded_at(self) -> datetime:
        return self._uploaded_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def deleted_at(self) -> Optional[datetime]:
        return self._deleted_at

    # Internals

    def _require_editable(self) -> None:
        if not self._status.can_edit():
            raise InvalidStateTransition(
                f"Resume cannot be edited while {self._status.value}",
                current_status=self._status.value,
            )

    def _require_status(self, expected: ResumeStatus, target: ResumeStatus) -> None:
        if self._status is not expected:
            raise InvalidStateTransition(
                f"Resume must be {expected.value} to move to {target.value}, but is {self._status.value}",
                current_status=self._status.value,
                target_status=target.value,
            )

    def _clear_profile(self) -> None:
        self._candidate_name = None
        self._skills = []
        self._experiences = []
        self._educations = []
        self._contact_info = None
        self._parsed_at = None
        self._parse_error_message = None

    def _touch(self) -> None:
        self._updated_at = utcnow()

    def _record(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    def __eq__(self, other):
        if not isinstance(other, Resume):
            return NotImplemented
        return self._id == other._id

    def __hash__(self):
        return hash(self._id)

    def __repr__(self):
        return f"Resume(id={self._id!r}, user_id={self._user_id!r}, status={self._status.value})"


def _reject_duplicate_skills(skills: List[Skill]) -> None:
    seen = set()
    for skill in skills:
        key = skill.name.lower()
        if key in seen:
            raise AlreadyExistsError("Skill", skill.name)
        seen.add(key)
