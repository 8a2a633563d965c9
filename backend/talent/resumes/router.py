"""
Resume routes
"""
from typing import List
from fastapi import APIRouter, Depends, File, UploadFile, status
import structlog

from talent.auth.dependencies import get_current_user_id
from talent.core.config import settings
from talent.resumes.aggregate import UserId
from talent.resumes.dependencies import get_resume_service
from talent.resumes.schemas import (
    AccessUrlResponse,
    CandidateNameRequest,
    ContactInfoSchema,
    EducationSchema,
    ExperienceSchema,
    RenameFileRequest,
    ResumeCountResponse,
    ResumeDetailResponse,
    ResumeResponse,
    SkillSchema,
)
from talent.resumes.service import ResumeApplicationService

router = APIRouter(prefix="/api/v1/resumes", tags=["Resumes"])
logger = structlog.get_logger()


@router.post("/upload", response_model=ResumeResponse, status_code=status.HTTP_201_CREATED)
def upload_resume(
    file: UploadFile = File(...),
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """Upload a resume; parsing runs in the background"""
    content = file.file.read()
    resume = service.upload_resume(current_user, file.filename or "", content, file.content_type)
    return ResumeResponse.from_domain(resume)


@router.get("/", response_model=List[ResumeResponse])
def list_resumes(
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """List the current user's resumes, newest first"""
    return [ResumeResponse.from_domain(r) for r in service.get_user_resumes(current_user)]


@router.get("/count", response_model=ResumeCountResponse)
def count_resumes(
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    return ResumeCountResponse(count=service.count_user_resumes(current_user))


@router.get("/{resume_id}", response_model=ResumeDetailResponse)
def get_resume(
    resume_id: str,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """Get resume details"""
    return ResumeDetailResponse.from_domain(service.get_resume(resume_id, current_user))


@router.get("/{resume_id}/access-url", response_model=AccessUrlResponse)
def get_access_url(
    resume_id: str,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """Time-limited download link for the resume file"""
    return AccessUrlResponse(
        resume_id=resume_id,
        access_url=service.get_access_url(resume_id, current_user),
        expires_in_minutes=settings.ACCESS_URL_TTL_MINUTES,
    )


@router.patch("/{resume_id}/file-name", response_model=ResumeResponse)
def rename_resume(
    resume_id: str,
    request: RenameFileRequest,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    return ResumeResponse.from_domain(service.rename_resume(resume_id, current_user, request.file_name))


@router.put("/{resume_id}/file", response_model=ResumeResponse)
def replace_resume_file(
    resume_id: str,
    file: UploadFile = File(...),
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """Replace the file; the parsed profile is discarded"""
    content = file.file.read()
    resume = service.replace_resume_file(resume_id, current_user, file.filename or "", content, file.content_type)
    return ResumeResponse.from_domain(resume)


@router.post("/{resume_id}/reparse", response_model=ResumeResponse, status_code=status.HTTP_202_ACCEPTED)
def reparse_resume(
    resume_id: str,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """Retry parsing of a resume whose parsing failed"""
    return ResumeResponse.from_domain(service.reparse_resume(resume_id, current_user))


@router.post("/{resume_id}/archive", response_model=ResumeResponse)
def archive_resume(
    resume_id: str,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    return ResumeResponse.from_domain(service.archive_resume(resume_id, current_user))


@router.post("/{resume_id}/unarchive", response_model=ResumeResponse)
def unarchive_resume(
    resume_id: str,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    return ResumeResponse.from_domain(service.unarchive_resume(resume_id, current_user))


@router.delete("/{resume_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resume(
    resume_id: str,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    """Soft-delete a resume; only its owner may do this"""
    service.delete_resume(resume_id, current_user)


# Profile editing

@router.post("/{resume_id}/skills", response_model=ResumeDetailResponse, status_code=status.HTTP_201_CREATED)
def add_skill(
    resume_id: str,
    request: SkillSchema,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    resume = service.add_skill(resume_id, current_user, request.to_domain())
    return ResumeDetailResponse.from_domain(resume)


@router.delete("/{resume_id}/skills/{skill_name}", response_model=ResumeDetailResponse)
def remove_skill(
    resume_id: str,
    skill_name: str,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    resume = service.remove_skill(resume_id, current_user, skill_name)
    return ResumeDetailResponse.from_domain(resume)


@router.post("/{resume_id}/experiences", response_model=ResumeDetailResponse, status_code=status.HTTP_201_CREATED)
def add_experience(
    resume_id: str,
    request: ExperienceSchema,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    resume = service.add_experience(resume_id, current_user, request.to_domain())
    return ResumeDetailResponse.from_domain(resume)


@router.delete("/{resume_id}/experiences", response_model=ResumeDetailResponse)
def remove_experience(
    resume_id: str,
    request: ExperienceSchema,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    resume = service.remove_experience(resume_id, current_user, request.to_domain())
    return ResumeDetailResponse.from_domain(resume)


@router.post("/{resume_id}/educations", response_model=ResumeDetailResponse, status_code=status.HTTP_201_CREATED)
def add_education(
    resume_id: str,
    request: EducationSchema,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    resume = service.add_education(resume_id, current_user, request.to_domain())
    return ResumeDetailResponse.from_domain(resume)


@router.delete("/{resume_id}/educations", response_model=ResumeDetailResponse)
def remove_education(
    resume_id: str,
    request: EducationSchema,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    resume = service.remove_education(resume_id, current_user, request.to_domain())
    return ResumeDetailResponse.from_domain(resume)


@router.put("/{resume_id}/contact", response_model=ResumeDetailResponse)
def update_contact_info(
    resume_id: str,
    request: ContactInfoSchema,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    resume = service.update_contact_info(resume_id, current_user, request.to_domain())
    return ResumeDetailResponse.from_domain(resume)


@router.put("/{resume_id}/candidate-name", response_model=ResumeDetailResponse)
def update_candidate_name(
    resume_id: str,
    request: CandidateNameRequest,
    current_user: UserId = Depends(get_current_user_id),
    service: ResumeApplicationService = Depends(get_resume_service),
):
    resume = service.update_candidate_name(resume_id, current_user, request.to_domain())
    return ResumeDetailResponse.from_domain(resume)
