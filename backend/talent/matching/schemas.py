"""
Matching Pydantic schemas
"""
from typing import Optional, List
from pydantic import BaseModel, Field

from talent.core.config import settings
from talent.resumes.schemas import ResumeResponse
from talent.resumes.value_objects import SkillLevel


class SearchRequest(BaseModel):
    """Ranked resume search"""
    required_skills: List[str] = []
    preferred_skills: List[str] = []
    minimum_years_of_experience: Optional[int] = Field(None, ge=0)
    major_keyword: Optional[str] = None
    minimum_score: int = Field(0, ge=0)
    minimum_skill_level: Optional[SkillLevel] = None
    company_keyword: Optional[str] = None
    position_keyword: Optional[str] = None
    page_number: int = Field(0, ge=0)
    page_size: int = Field(settings.SEARCH_DEFAULT_PAGE_SIZE, ge=1, le=settings.SEARCH_MAX_PAGE_SIZE)


class SearchResultItem(BaseModel):
    resume: ResumeResponse
    score: int
    skills: List[str] = []
    total_experience_years: int = 0


class SearchResponse(BaseModel):
    results: List[SearchResultItem]
    total: int
    page_number: int
    page_size: int
    total_pages: int


class ScoreRequest(BaseModel):
    """Score one resume against a skill query"""
    required_skills: List[str] = []
    preferred_skills: List[str] = []
    min_years_experience: Optional[int] = Field(None, ge=0)


class ScoreResponse(BaseModel):
    resume_id: str
    score: int


class DuplicatesResponse(BaseModel):
    resume_id: str
    is_duplicate: bool
    duplicates: List[ResumeResponse]
