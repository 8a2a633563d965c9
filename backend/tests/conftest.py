"""Shared fixtures: in-memory database, fake collaborators and resume builders."""

from __future__ import annotations

import os

# Settings are read once at import time; keep tests off real services
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AI_PROVIDER", "rules")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest
from dateutil.relativedelta import relativedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import talent.models  # noqa: F401  registers tables on Base.metadata
from talent.core.database import Base
from talent.core.exceptions import FileStorageError
from talent.resumes.aggregate import Resume, ResumeId, UserId
from talent.resumes.files import FileDescriptor, FileType
from talent.resumes.ports import (
    FileMetadata,
    FileStoragePort,
    FileUploadResult,
    ParsingFailure,
    ParsingResult,
    ParsingSuccess,
    ResumeParsingPort,
)
from talent.resumes.service import ResumeApplicationService
from talent.resumes.status import ResumeStatus
from talent.resumes.value_objects import (
    CandidateName,
    ContactInfo,
    Education,
    Experience,
    Skill,
    SkillLevel,
)

PDF_BYTES = b"%PDF-1.4\n" + b"0" * 2048


@pytest.fixture(autouse=True)
def _isolate_runtime_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear provider credentials that can leak into tests on developer machines."""
    for key in ("OPENAI_API_KEY", "REDIS_URL", "CELERY_BROKER_URL"):
        monkeypatch.delenv(key, raising=False)


class InMemoryFileStorage(FileStoragePort):
    """Dict-backed storage double"""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.deleted: List[str] = []

    def upload_file(self, content, file_name, size, file_type, user_id):
        key = f"{user_id}/{uuid.uuid4()}{file_type.extension}"
        self.files[key] = content
        return FileUploadResult(storage_key=key, access_url=f"memory://{key}", size=size)

    def download_file(self, storage_key):
        if storage_key not in self.files:
            raise FileStorageError("File not found in storage", details={"storage_key": storage_key})
        return self.files[storage_key]

    def delete_file(self, storage_key):
        if storage_key not in self.files:
            raise FileStorageError("File not found in storage", details={"storage_key": storage_key})
        del self.files[storage_key]
        self.deleted.append(storage_key)

    def file_exists(self, storage_key):
        return storage_key in self.files

    def generate_access_url(self, storage_key, ttl_minutes):
        self.download_file(storage_key)
        return f"memory://{storage_key}?ttl={ttl_minutes}"

    def get_file_metadata(self, storage_key):
        content = self.download_file(storage_key)
        return FileMetadata(
            storage_key=storage_key,
            file_name=storage_key.rsplit("/", 1)[-1],
            file_size=len(content),
            content_type=FileType.PDF.mime_type,
            last_modified=datetime.now(timezone.utc),
        )


class FakeParser(ResumeParsingPort):
    """Returns queued results in order, repeating the last one"""

    def __init__(self, *results: ParsingResult):
        self.results = list(results) or [ParsingFailure("no result configured")]
        self.calls: List[str] = []

    def parse_resume(self, storage_key, file_type):
        self.calls.append(storage_key)
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]

    def parse_text(self, raw_text):
        return self.results[0]

    def can_parse(self, file_type):
        return file_type.is_supported


class RecordingScheduler:
    def __init__(self):
        self.scheduled: List[str] = []

    def __call__(self, resume_id: str) -> None:
        self.scheduled.append(resume_id)


def years_ago(years: int, months: int = 0) -> date:
    return date.today() - relativedelta(years=years, months=months)


def make_experience(company="Acme Corp", position="Backend Engineer", years=5, end_date=None) -> Experience:
    return Experience.of(company, position, years_ago(years), end_date)


def make_education(major="Computer Science", degree="Bachelor") -> Education:
    return Education.of("Seoul National University", degree, major, years_ago(8), 3.8)


def make_contact(email="jane@example.com", phone="010-1234-5678") -> ContactInfo:
    return ContactInfo.of(phone=phone, email=email)


def parsed_success(**overrides) -> ParsingSuccess:
    fields = dict(
        candidate_name=CandidateName.of("Jane Doe"),
        skills=(Skill.of("Java", SkillLevel.ADVANCED, 5), Skill.of("Spring Boot")),
        experiences=(make_experience(),),
        educations=(make_education(),),
        contact_info=make_contact(),
    )
    fields.update(overrides)
    return ParsingSuccess(**fields)


def pdf_descriptor(name: str = "resume.pdf", size: int = 2048) -> FileDescriptor:
    return FileDescriptor.of(name, size, "application/pdf")


def build_resume(
    user_id: int = 1,
    status: ResumeStatus = ResumeStatus.PARSED,
    skills=(),
    experiences=(),
    educations=(),
    contact_info: Optional[ContactInfo] = None,
    candidate_name: Optional[str] = None,
    parsed_at: Optional[datetime] = None,
    uploaded_at: Optional[datetime] = None,
    parse_retry_count: int = 0,
) -> Resume:
    """Persisted-looking resume in any status, without pending events"""
    now = datetime.now(timezone.utc)
    if parsed_at is None and status in (ResumeStatus.PARSED, ResumeStatus.ARCHIVED):
        parsed_at = now
    return Resume.reconstitute(
        resume_id=ResumeId(str(uuid.uuid4())),
        user_id=UserId(user_id),
        file=pdf_descriptor(),
        storage_key=f"{user_id}/{uuid.uuid4()}.pdf",
        status=status,
        uploaded_at=uploaded_at or now - timedelta(hours=1),
        updated_at=now,
        candidate_name=CandidateName.of(candidate_name) if candidate_name else None,
        skills=skills,
        experiences=experiences,
        educations=educations,
        contact_info=contact_info,
        parsed_at=parsed_at,
        parse_retry_count=parse_retry_count,
    )


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage() -> InMemoryFileStorage:
    return InMemoryFileStorage()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def parser() -> FakeParser:
    return FakeParser(parsed_success())


@pytest.fixture
def service(db_session, storage, parser, scheduler) -> ResumeApplicationService:
    return ResumeApplicationService(db=db_session, storage=storage, parser=parser, scheduler=scheduler)
