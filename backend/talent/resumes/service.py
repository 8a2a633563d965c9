"""
Resume application service: orchestrates the aggregate, storage, parsing and events
"""
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
import structlog

from talent.core.config import settings
from talent.core.exceptions import (
    FileStorageError,
    InvalidStateTransition,
    NotFoundError,
    TalentException,
    ValidationError,
)
from talent.matching.service import (
    ResumeDomainService,
    ResumeSearchResult,
    SearchCriteria,
    resume_domain_service,
)
from talent.resumes.aggregate import Resume, ResumeId, UserId
from talent.resumes.event_handlers import (
    EventDispatcher,
    ParsingScheduler,
    create_event_dispatcher,
    schedule_parsing,
)
from talent.resumes.files import FileDescriptor, FileName
from talent.resumes.ports import (
    FileStoragePort,
    ParsingFailure,
    ParsingResult,
    ResumeParsingPort,
)
from talent.resumes.repository import ResumeRepository, SqlAlchemyResumeRepository
from talent.resumes.status import ResumeStatus
from talent.resumes.value_objects import (
    CandidateName,
    ContactInfo,
    Education,
    Experience,
    Skill,
    SkillLevel,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class SearchResumesCommand:
    """Ranked search request with optional post-filters and paging"""

    required_skills: Sequence[str] = field(default_factory=tuple)
    preferred_skills: Sequence[str] = field(default_factory=tuple)
    minimum_years_of_experience: Optional[int] = None
    major_keyword: Optional[str] = None
    minimum_score: int = 0
    minimum_skill_level: Optional[SkillLevel] = None
    company_keyword: Optional[str] = None
    position_keyword: Optional[str] = None
    page_number: int = 0
    page_size: int = settings.SEARCH_DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.page_number < 0:
            raise ValidationError("Page number must not be negative")
        if not 1 <= self.page_size <= settings.SEARCH_MAX_PAGE_SIZE:
            raise ValidationError(f"Page size must be between 1 and {settings.SEARCH_MAX_PAGE_SIZE}")
        if self.minimum_score < 0:
            raise ValidationError("Minimum score must not be negative")

    def is_empty(self) -> bool:
        return not (
            self.required_skills
            or self.preferred_skills
            or self.minimum_years_of_experience is not None
            or self.major_keyword
            or self.minimum_skill_level
            or self.company_keyword
            or self.position_keyword
        )

    def to_criteria(self) -> SearchCriteria:
        return SearchCriteria(
            required_skills=tuple(self.required_skills),
            preferred_skills=tuple(self.preferred_skills),
            minimum_years_of_experience=self.minimum_years_of_experience,
            major_keyword=self.major_keyword,
            minimum_score=self.minimum_score,
        )


@dataclass(frozen=True)
class SearchPage:
    results: List[ResumeSearchResult]
    total: int
    page_number: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size


class ResumeApplicationService:
    """Use cases over resumes, bound to one database session"""

    def __init__(
        self,
        db: Session,
        storage: FileStoragePort,
        parser: ResumeParsingPort,
        scheduler: ParsingScheduler = schedule_parsing,
        dispatcher: Optional[EventDispatcher] = None,
        repository: Optional[ResumeRepository] = None,
        domain_service: ResumeDomainService = resume_domain_service,
    ):
        self.db = db
        self.storage = storage
        self.parser = parser
        self.scheduler = scheduler
        self.repository = repository or SqlAlchemyResumeRepository(db)
        self.dispatcher = dispatcher or create_event_dispatcher(db, storage, scheduler)
        self.domain_service = domain_service

    # Upload and retrieval

    def upload_resume(self, user_id: UserId, file_name: str, content: bytes, content_type: Optional[str] = None) -> Resume:
        descriptor = FileDescriptor.of(file_name, len(content), content_type)
        stored = self.storage.upload_file(
            content,
            descriptor.name.value,
            descriptor.size.bytes,
            descriptor.file_type,
            user_id,
        )
        resume = Resume.upload(user_id, descriptor, stored.storage_key)
        try:
            self.repository.save(resume)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_file(stored.storage_key)
            raise

        logger.info(
            "resume_uploaded",
            resume_id=resume.id,
            user_id=user_id,
            file_name=descriptor.name.value,
            file_size=descriptor.size.human_readable(),
        )
        self._publish(resume)
        return resume

    def get_resume(self, resume_id: ResumeId, user_id: UserId) -> Resume:
        resume = self.repository.find_by_id_and_user_id(resume_id, user_id)
        if resume is None:
            raise NotFoundError("Resume", str(resume_id))
        return resume

    def get_any_resume(self, resume_id: ResumeId) -> Resume:
        resume = self.repository.find_by_id(resume_id)
        if resume is None:
            raise NotFoundError("Resume", str(resume_id))
        return resume

    def get_user_resumes(self, user_id: UserId) -> List[Resume]:
        return self.repository.find_by_user_id(user_id)

    def count_user_resumes(self, user_id: UserId) -> int:
        return self.repository.count_by_user_id(user_id)

    def exists_resume(self, resume_id: ResumeId) -> bool:
        return self.repository.exists_by_id(resume_id)

    def get_access_url(self, resume_id: ResumeId, user_id: UserId) -> str:
        resume = self.get_resume(resume_id, user_id)
        return self.storage.generate_access_url(resume.storage_key, settings.ACCESS_URL_TTL_MINUTES)

    # Parsing

    def parse_resume(self, resume_id: ResumeId) -> Resume:
        """Run parsing for an uploaded resume, or finish a reparse already in progress"""
        resume = self.get_any_resume(resume_id)
        if resume.can_be_parsed():
            resume.start_parsing()
            self._commit(resume)
        elif resume.status is not ResumeStatus.PARSING:
            logger.info("resume_parsing_skipped", resume_id=resume_id, status=resume.status.value)
            return resume

        logger.info("resume_parsing_started", resume_id=resume_id, file_type=resume.file.file_type.value)
        try:
            result = self.parser.parse_resume(resume.storage_key, resume.file.file_type)
        except TalentException as e:
            result = ParsingFailure(e.message)
        except Exception as e:
            # A resume must not stay in PARSING because the provider blew up
            logger.exception("resume_parser_crashed", resume_id=resume_id, error=str(e))
            result = ParsingFailure(f"Unexpected parsing error: {e}")
        return self._apply_parsing_result(resume, result)

    def complete_resume_parsing(self, resume_id: ResumeId, result: ParsingResult) -> Resume:
        """Apply a parsing result produced outside this service"""
        resume = self.get_any_resume(resume_id)
        if resume.status is not ResumeStatus.PARSING:
            raise InvalidStateTransition(
                "Resume is not being parsed",
                current_status=resume.status.value,
            )
        return self._apply_parsing_result(resume, result)

    def reparse_resume(self, resume_id: ResumeId, user_id: UserId) -> Resume:
        resume = self.get_resume(resume_id, user_id)
        if resume.parse_retry_count >= settings.PARSE_MAX_RETRIES:
            raise InvalidStateTransition(
                f"Parsing retry limit of {settings.PARSE_MAX_RETRIES} reached",
                current_status=resume.status.value,
            )
        resume.request_reparse()
        self._commit(resume)
        self.scheduler(resume.id)
        return resume

    def retry_failed_parsing(self, resume_id: ResumeId) -> Optional[Resume]:
        """Retry a failed parse when under the retry ceiling; None when not retried"""
        resume = self.get_any_resume(resume_id)
        if not resume.status.can_reparse() or resume.parse_retry_count >= settings.PARSE_MAX_RETRIES:
            logger.info(
                "resume_parsing_retry_skipped",
                resume_id=resume_id,
                status=resume.status.value,
                retry_count=resume.parse_retry_count,
            )
            return None
        resume.request_reparse()
        self._commit(resume)
        return self.parse_resume(resume_id)

    def _apply_parsing_result(self, resume: Resume, result: ParsingResult) -> Resume:
        if result.success:
            try:
                resume.complete_parsing(
                    result.candidate_name,
                    result.skills,
                    result.experiences,
                    result.educations,
                    result.contact_info,
                )
            except TalentException as e:
                resume.fail_parsing(e.message)
        else:
            resume.fail_parsing(result.error_message)
        self._commit(resume)

        if resume.is_parsed():
            logger.info("resume_parsed", resume_id=resume.id, skills_count=len(resume.skills))
            self._warn_if_duplicate(resume)
        return resume

    def _warn_if_duplicate(self, resume: Resume) -> None:
        others = [r for r in self.repository.find_by_user_id(resume.user_id) if r.id != resume.id]
        if self.domain_service.is_duplicate_resume(resume, others):
            logger.warning("resume_duplicate_detected", resume_id=resume.id, user_id=resume.user_id)

    # Profile editing

    def add_skill(self, resume_id: ResumeId, user_id: UserId, skill: Skill) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.add_skill(skill))

    def remove_skill(self, resume_id: ResumeId, user_id: UserId, skill_name: str) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.remove_skill(skill_name))

    def add_experience(self, resume_id: ResumeId, user_id: UserId, experience: Experience) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.add_experience(experience))

    def remove_experience(self, resume_id: ResumeId, user_id: UserId, experience: Experience) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.remove_experience(experience))

    def add_education(self, resume_id: ResumeId, user_id: UserId, education: Education) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.add_education(education))

    def remove_education(self, resume_id: ResumeId, user_id: UserId, education: Education) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.remove_education(education))

    def update_contact_info(self, resume_id: ResumeId, user_id: UserId, contact_info: ContactInfo) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.update_contact_info(contact_info))

    def update_candidate_name(self, resume_id: ResumeId, user_id: UserId, name: CandidateName) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.update_candidate_name(name))

    # File management and status

    def rename_resume(self, resume_id: ResumeId, user_id: UserId, new_file_name: str) -> Resume:
        new_name = FileName.of(new_file_name)
        return self._modify(resume_id, user_id, lambda r: r.rename_file(new_name))

    def replace_resume_file(
        self,
        resume_id: ResumeId,
        user_id: UserId,
        file_name: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> Resume:
        resume = self.get_resume(resume_id, user_id)
        if not resume.can_be_edited():
            raise InvalidStateTransition(
                f"Resume cannot be edited while {resume.status.value}",
                current_status=resume.status.value,
            )
        descriptor = FileDescriptor.of(file_name, len(content), content_type)
        stored = self.storage.upload_file(
            content, descriptor.name.value, descriptor.size.bytes, descriptor.file_type, user_id
        )
        old_key = resume.storage_key
        resume.replace_file(descriptor, stored.storage_key)
        try:
            self._commit(resume)
        except Exception:
            self._discard_file(stored.storage_key)
            raise
        self._discard_file(old_key)

        logger.info("resume_file_replaced", resume_id=resume_id, status=resume.status.value)
        if resume.can_be_parsed():
            self.scheduler(resume.id)
        return resume

    def archive_resume(self, resume_id: ResumeId, user_id: UserId) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.archive())

    def unarchive_resume(self, resume_id: ResumeId, user_id: UserId) -> Resume:
        return self._modify(resume_id, user_id, lambda r: r.unarchive())

    def delete_resume(self, resume_id: ResumeId, user_id: UserId) -> None:
        resume = self.get_any_resume(resume_id)
        resume.delete(user_id)
        self._commit(resume)
        logger.info("resume_deleted", resume_id=resume_id, user_id=user_id)

    # Matching

    def search_resumes(self, command: SearchResumesCommand) -> SearchPage:
        pool = self.repository.find_by_statuses([ResumeStatus.PARSED])
        results = self.domain_service.complex_search(pool, command.to_criteria())

        if command.minimum_skill_level and command.required_skills:
            qualified = self.domain_service.search_by_skills(
                [r.resume for r in results],
                command.required_skills,
                command.minimum_skill_level,
            )
            results = _keep(results, qualified)

        if command.company_keyword or command.position_keyword:
            qualified = self.domain_service.search_by_experience(
                [r.resume for r in results],
                command.company_keyword,
                command.position_keyword,
            )
            results = _keep(results, qualified)

        start = command.page_number * command.page_size
        page = results[start:start + command.page_size]
        logger.info(
            "resume_search_completed",
            pool_size=len(pool),
            matched=len(results),
            page=command.page_number,
        )
        return SearchPage(
            results=page,
            total=len(results),
            page_number=command.page_number,
            page_size=command.page_size,
        )

    def score_resume(
        self,
        resume_id: ResumeId,
        required_skills: Sequence[str] = (),
        preferred_skills: Sequence[str] = (),
        min_years_experience: Optional[int] = None,
    ) -> int:
        resume = self.get_any_resume(resume_id)
        return self.domain_service.calculate_matching_score(
            resume, required_skills, preferred_skills, min_years_experience
        )

    def find_duplicates(self, resume_id: ResumeId) -> List[Resume]:
        """Active resumes describing the same candidate"""
        target = self.get_any_resume(resume_id)
        return [
            other for other in self.repository.find_all()
            if other.id != target.id and self.domain_service.is_duplicate_resume(target, [other])
        ]

    # Internals

    def _modify(self, resume_id: ResumeId, user_id: UserId, change: Callable[[Resume], None]) -> Resume:
        resume = self.get_resume(resume_id, user_id)
        change(resume)
        self._commit(resume)
        return resume

    def _commit(self, resume: Resume) -> None:
        try:
            self.repository.save(resume)
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.warning("resume_concurrent_modification", resume_id=resume.id, status=resume.status.value)
            raise InvalidStateTransition("Resume was changed by another request; reload it and try again")
        except Exception:
            self.db.rollback()
            raise
        self._publish(resume)

    def _publish(self, resume: Resume) -> None:
        events = resume.pull_domain_events()
        if events:
            self.dispatcher.dispatch(events)

    def _discard_file(self, storage_key: str) -> None:
        try:
            self.storage.delete_file(storage_key)
        except FileStorageError as e:
            logger.warning("stored_file_cleanup_failed", storage_key=storage_key, error=e.message)


def _keep(results: List[ResumeSearchResult], qualified: List[Resume]) -> List[ResumeSearchResult]:
    ids = {r.id for r in qualified}
    return [r for r in results if r.resume.id in ids]
