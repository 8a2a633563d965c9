"""
Wiring of resume collaborators for FastAPI routes and background tasks
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from talent.core.database import get_db
from talent.resumes.ai_parser import create_resume_parser
from talent.resumes.ports import FileStoragePort, ResumeParsingPort
from talent.resumes.service import ResumeApplicationService
from talent.resumes.storage import LocalFileStorage


def get_file_storage() -> FileStoragePort:
    return LocalFileStorage()


def get_resume_parser(storage: FileStoragePort = Depends(get_file_storage)) -> ResumeParsingPort:
    return create_resume_parser(storage)


def get_resume_service(
    db: Session = Depends(get_db),
    storage: FileStoragePort = Depends(get_file_storage),
    parser: ResumeParsingPort = Depends(get_resume_parser),
) -> ResumeApplicationService:
    return ResumeApplicationService(db=db, storage=storage, parser=parser)


def build_resume_service(db: Session) -> ResumeApplicationService:
    """Service for code running outside a request, such as Celery tasks"""
    storage = get_file_storage()
    return ResumeApplicationService(db=db, storage=storage, parser=create_resume_parser(storage))
