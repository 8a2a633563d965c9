"""
Matching routes
"""
from fastapi import APIRouter, Depends
import structlog

from talent.auth.dependencies import get_current_user_id
from talent.matching.schemas import (
    DuplicatesResponse,
    ScoreRequest,
    ScoreResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
)
from talent.resumes.aggregate import UserId
from talent.resumes.dependencies import get_resume_service
from talent.resumes.schemas import ResumeResponse
from talent.resumes.service import ResumeApplicationService, SearchResumesCommand

router = APIRouter(prefix="/api/v1/matching", tags=["Matching"])
logger = structlog.get_logger()


@router.post("/search", response_model=SearchResponse)
def search_resumes(
    request: SearchRequest,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """Rank parsed resumes against skill, experience and education criteria"""
    command = SearchResumesCommand(**request.model_dump())
    if command.is_empty():
        logger.info("resume_search_without_criteria", user_id=current_user)
    page = service.search_resumes(command)
    return SearchResponse(
        results=[
            SearchResultItem(
                resume=ResumeResponse.from_domain(result.resume),
                score=result.score,
                skills=result.resume.skill_names(),
                total_experience_years=result.resume.total_experience_years(),
            )
            for result in page.results
        ],
        total=page.total,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.post("/resumes/{resume_id}/score", response_model=ScoreResponse)
def score_resume(
    resume_id: str,
    request: ScoreRequest,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """Matching score of one resume"""
    score = service.score_resume(
        resume_id,
        request.required_skills,
        request.preferred_skills,
        request.min_years_experience,
    )
    return ScoreResponse(resume_id=resume_id, score=score)


@router.post("/resumes/{resume_id}/duplicates", response_model=DuplicatesResponse)
def find_duplicates(
    resume_id: str,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """Other resumes that describe the same candidate"""
    duplicates = service.find_duplicates(resume_id)
    return DuplicatesResponse(
        resume_id=resume_id,
        is_duplicate=bool(duplicates),
        duplicates=[ResumeResponse.from_domain(r) for r in duplicates],
    )
