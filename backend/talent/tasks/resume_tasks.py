"""
Resume processing tasks
"""
from celery import Task
from sqlalchemy.orm import Session
import structlog

from talent.core.celery_app import celery_app
from talent.core.config import settings
from talent.core.database import SessionLocal
from talent.core.exceptions import NotFoundError
from talent.resumes.dependencies import build_resume_service
from talent.resumes.status import ResumeStatus

logger = structlog.get_logger()


def _schedule_retry_if_allowed(resume) -> None:
    if (
        resume is not None
        and resume.status is ResumeStatus.PARSE_FAILED
        and resume.parse_retry_count < settings.PARSE_MAX_RETRIES
    ):
        retry_failed_parsing_task.apply_async(
            args=[resume.id],
            countdown=settings.PARSE_RETRY_COUNTDOWN_SECONDS,
        )
        logger.info(
            "resume_parsing_retry_scheduled",
            resume_id=resume.id,
            retry_count=resume.parse_retry_count,
        )


@celery_app.task(bind=True, max_retries=3)
def parse_resume_task(self: Task, resume_id: str):
    """Parse an uploaded resume asynchronously"""
    db: Session = SessionLocal()
    try:
        service = build_resume_service(db)
        resume = service.parse_resume(resume_id)
        logger.info("resume_processed", resume_id=resume_id, status=resume.status.value)
        _schedule_retry_if_allowed(resume)
        return resume.status.value
    except NotFoundError:
        logger.error("resume_not_found", resume_id=resume_id)
        return None
    except Exception as e:
        logger.exception("resume_processing_error", resume_id=resume_id, error=str(e))
        db.rollback()
        raise self.retry(exc=e, countdown=settings.PARSE_RETRY_COUNTDOWN_SECONDS)
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3)
def retry_failed_parsing_task(self: Task, resume_id: str):
    """Re-run parsing for a resume whose previous attempt failed"""
    db: Session = SessionLocal()
    try:
        service = build_resume_service(db)
        resume = service.retry_failed_parsing(resume_id)
        if resume is None:
            return None
        logger.info("resume_reprocessed", resume_id=resume_id, status=resume.status.value)
        _schedule_retry_if_allowed(resume)
        return resume.status.value
    except NotFoundError:
        logger.error("resume_not_found", resume_id=resume_id)
        return None
    except Exception as e:
        logger.exception("resume_reprocessing_error", resume_id=resume_id, error=str(e))
        db.rollback()
        raise self.retry(exc=e, countdown=settings.PARSE_RETRY_COUNTDOWN_SECONDS)
    finally:
        db.close()


@celery_app.task
def retry_pending_events_task(limit: int = 100):
    """Redeliver stored domain events whose handlers failed last time"""
    db: Session = SessionLocal()
    try:
        service = build_resume_service(db)
        return service.dispatcher.redispatch_pending(limit)
    except Exception as e:
        logger.exception("event_redispatch_error", error=str(e))
        db.rollback()
        raise
    finally:
        db.close()
