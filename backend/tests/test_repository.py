"""SQLAlchemy resume repository and the domain event store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from conftest import build_resume, make_contact, make_education, make_experience, pdf_descriptor
from talent.models.event_store import (
    EVENT_STATUS_FAILED,
    EVENT_STATUS_PENDING,
    EVENT_STATUS_RETRY_PENDING,
    DomainEventRecord,
)
from talent.models.resume import ResumeRecord
from talent.resumes.aggregate import Resume, UserId
from talent.resumes.repository import SqlAlchemyResumeRepository
from talent.resumes.status import ResumeStatus
from talent.resumes.value_objects import CandidateName, Skill, SkillLevel


def test_save_and_load_preserves_profile(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    resume = build_resume(
        skills=[Skill.of("Java", SkillLevel.EXPERT, 7), Skill.of("Docker")],
        experiences=[make_experience(years=4)],
        educations=[make_education()],
        contact_info=make_contact(),
        candidate_name="Jane Doe",
    )

    repository.save(resume)
    db_session.commit()
    db_session.expunge_all()
    loaded = repository.find_by_id(resume.id)

    assert loaded == resume
    assert loaded.status is ResumeStatus.PARSED
    assert loaded.candidate_name == CandidateName.of("Jane Doe")
    assert loaded.find_skill("java").level is SkillLevel.EXPERT
    assert loaded.find_skill("java").years_of_experience == 7
    assert loaded.experiences == resume.experiences
    assert loaded.educations[0].gpa == 3.8
    assert loaded.contact_info.phone.value == "01012345678"
    assert loaded.parsed_at.tzinfo is not None


def test_save_updates_existing_row(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    resume = build_resume(skills=[Skill.of("Java")])
    repository.save(resume)
    db_session.commit()

    resume.add_skill(Skill.of("Kotlin"))
    resume.archive()
    repository.save(resume)
    db_session.commit()

    assert db_session.query(ResumeRecord).count() == 1
    loaded = repository.find_by_id(resume.id)
    assert loaded.status is ResumeStatus.ARCHIVED
    assert loaded.skill_names() == ["Java", "Kotlin"]


def test_pending_events_are_stored_once(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    resume = Resume.upload(UserId(1), pdf_descriptor(), "1/a.pdf")

    repository.save(resume)
    repository.save(resume)
    db_session.commit()

    records = db_session.query(DomainEventRecord).all()
    assert len(records) == 1
    record = records[0]
    assert record.event_type == "ResumeUploaded"
    assert record.aggregate_type == "Resume"
    assert record.aggregate_id == resume.id
    assert record.status == EVENT_STATUS_PENDING
    assert record.payload["file"]["file_name"] == "resume.pdf"


def test_deleted_resumes_are_hidden(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    kept = build_resume(user_id=1)
    removed = build_resume(user_id=1)
    removed.delete(UserId(1))
    repository.save(kept)
    repository.save(removed)
    db_session.commit()

    assert repository.find_by_id(removed.id) is None
    assert not repository.exists_by_id(removed.id)
    assert repository.exists_by_id(kept.id)
    assert repository.find_by_user_id(UserId(1)) == [kept]
    assert repository.count_by_user_id(UserId(1)) == 1
    assert repository.find_all() == [kept]
    assert repository.find_by_statuses([ResumeStatus.DELETED]) == []
    # The row itself is kept
    assert db_session.query(ResumeRecord).count() == 2


def test_find_by_user_orders_newest_first_and_scopes_owner(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    now = datetime.now(timezone.utc)
    old = build_resume(user_id=1, uploaded_at=now - timedelta(days=3))
    new = build_resume(user_id=1, uploaded_at=now - timedelta(days=1))
    other = build_resume(user_id=2)
    for resume in (old, new, other):
        repository.save(resume)
    db_session.commit()

    assert repository.find_by_user_id(UserId(1)) == [new, old]
    assert repository.find_by_id_and_user_id(other.id, UserId(1)) is None
    assert repository.find_by_id_and_user_id(other.id, UserId(2)) == other


def test_find_by_statuses(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    parsed = build_resume(status=ResumeStatus.PARSED)
    failed = build_resume(status=ResumeStatus.PARSE_FAILED, parse_retry_count=1)
    uploaded = build_resume(status=ResumeStatus.UPLOADED)
    for resume in (parsed, failed, uploaded):
        repository.save(resume)
    db_session.commit()

    assert repository.find_by_statuses([ResumeStatus.PARSED]) == [parsed]
    found = repository.find_by_statuses([ResumeStatus.PARSE_FAILED, ResumeStatus.UPLOADED])
    assert set(r.id for r in found) == {failed.id, uploaded.id}


def test_delete_by_id_removes_row(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    resume = build_resume()
    repository.save(resume)
    db_session.commit()

    repository.delete_by_id(resume.id)
    db_session.commit()

    assert db_session.query(ResumeRecord).count() == 0



def test_version_advances_with_each_save(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    resume = build_resume(skills=[Skill.of("Java")])
    assert resume.version is None

    repository.save(resume)
    db_session.commit()
    assert resume.version == 1

    resume.archive()
    repository.save(resume)
    db_session.commit()
    assert resume.version == 2
    assert repository.find_by_id(resume.id).version == 2


def test_stale_copy_cannot_overwrite_newer_status(db_engine) -> None:
    Session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    setup = Session()
    resume = build_resume(status=ResumeStatus.UPLOADED)
    SqlAlchemyResumeRepository(setup).save(resume)
    setup.commit()
    setup.close()

    api_session, worker_session = Session(), Session()
    try:
        api_repository = SqlAlchemyResumeRepository(api_session)
        worker_repository = SqlAlchemyResumeRepository(worker_session)
        edited = api_repository.find_by_id(resume.id)

        parsing = worker_repository.find_by_id(resume.id)
        parsing.start_parsing()
        worker_repository.save(parsing)
        worker_session.commit()

        edited.add_skill(Skill.of("Kotlin"))
        with pytest.raises(StaleDataError):
            api_repository.save(edited)
        api_session.rollback()

        worker_session.expire_all()
        final = worker_repository.find_by_id(resume.id)
        assert final.status is ResumeStatus.PARSING
        assert final.skills == ()
    finally:
        api_session.close()
        worker_session.close()


def test_stale_copy_is_detected_after_reload(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    resume = build_resume(skills=[Skill.of("Java")])
    repository.save(resume)
    db_session.commit()

    first = repository.find_by_id(resume.id)
    second = repository.find_by_id(resume.id)
    second.archive()
    repository.save(second)
    db_session.commit()

    first.add_skill(Skill.of("Go"))
    with pytest.raises(StaleDataError):
        repository.save(first)


def test_copy_of_removed_row_is_stale(db_session) -> None:
    repository = SqlAlchemyResumeRepository(db_session)
    resume = build_resume()
    repository.save(resume)
    db_session.commit()
    repository.delete_by_id(resume.id)
    db_session.commit()

    resume.archive()
    with pytest.raises(StaleDataError):
        repository.save(resume)

def test_event_record_retry_bookkeeping() -> None:
    record = DomainEventRecord(status=EVENT_STATUS_PENDING, retry_count=0)

    record.mark_failed("handler exploded")
    assert record.status == EVENT_STATUS_RETRY_PENDING
    assert record.can_retry()

    record.mark_failed("again")
    record.mark_failed("and again")
    assert record.retry_count == 3
    assert record.status == EVENT_STATUS_FAILED
    assert not record.can_retry()
