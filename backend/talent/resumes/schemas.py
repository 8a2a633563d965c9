"""
Resume Pydantic schemas
"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import date, datetime

from talent.resumes.aggregate import Resume
from talent.resumes.value_objects import (
    CandidateName,
    ContactInfo,
    Education,
    Experience,
    Skill,
    SkillLevel,
)


class SkillSchema(BaseModel):
    """Skill entry"""
    name: str
    level: SkillLevel = SkillLevel.INTERMEDIATE
    years_of_experience: Optional[int] = None

    def to_domain(self) -> Skill:
        return Skill.of(self.name, self.level, self.years_of_experience)

    @classmethod
    def from_domain(cls, skill: Skill) -> "SkillSchema":
        return cls(name=skill.name, level=skill.level, years_of_experience=skill.years_of_experience)


class ExperienceSchema(BaseModel):
    """Work experience entry"""
    company: str
    position: str
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None

    def to_domain(self) -> Experience:
        return Experience.of(self.company, self.position, self.start_date, self.end_date, self.description)

    @classmethod
    def from_domain(cls, experience: Experience) -> "ExperienceSchema":
        return cls(
            company=experience.company,
            position=experience.position,
            start_date=experience.start_date,
            end_date=experience.end_date,
            description=experience.description,
        )


class ExperienceResponse(ExperienceSchema):
    duration_in_months: int
    is_current: bool


class EducationSchema(BaseModel):
    """Education entry"""
    school: str
    degree: str
    major: str
    graduation_date: date
    gpa: Optional[float] = None

    def to_domain(self) -> Education:
        return Education.of(self.school, self.degree, self.major, self.graduation_date, self.gpa)

    @classmethod
    def from_domain(cls, education: Education) -> "EducationSchema":
        return cls(
            school=education.school,
            degree=education.degree,
            major=education.major,
            graduation_date=education.graduation_date,
            gpa=education.gpa,
        )


class ContactInfoSchema(BaseModel):
    """Contact details"""
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    def to_domain(self) -> ContactInfo:
        return ContactInfo.of(phone=self.phone, email=self.email, address=self.address)

    @classmethod
    def from_domain(cls, contact: ContactInfo) -> "ContactInfoSchema":
        return cls(
            phone=contact.phone.formatted() if contact.phone else None,
            email=contact.email.value if contact.email else None,
            address=contact.address,
        )


class CandidateNameRequest(BaseModel):
    name: str

    def to_domain(self) -> CandidateName:
        return CandidateName.of(self.name)


class RenameFileRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)


class ResumeResponse(BaseModel):
    """Resume response schema"""
    id: str
    user_id: int
    status: str
    status_label: str
    file_name: str
    file_size: int
    file_type: str
    candidate_name: Optional[str] = None
    parsed_at: Optional[datetime] = None
    parse_error_message: Optional[str] = None
    parse_retry_count: int = 0
    uploaded_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_domain(cls, resume: Resume) -> "ResumeResponse":
        return cls(**_summary_fields(resume))


class ResumeDetailResponse(ResumeResponse):
    """Detailed resume response"""
    skills: List[SkillSchema] = []
    experiences: List[ExperienceResponse] = []
    educations: List[EducationSchema] = []
    contact: Optional[ContactInfoSchema] = None
    total_experience_years: int = 0
    has_complete_profile: bool = False

    @classmethod
    def from_domain(cls, resume: Resume) -> "ResumeDetailResponse":
        return cls(
            **_summary_fields(resume),
            skills=[SkillSchema.from_domain(s) for s in resume.skills],
            experiences=[
                ExperienceResponse(
                    **ExperienceSchema.from_domain(e).model_dump(),
                    duration_in_months=e.duration_in_months(),
                    is_current=e.is_current(),
                )
                for e in resume.experiences
            ],
            educations=[EducationSchema.from_domain(e) for e in resume.educations],
            contact=ContactInfoSchema.from_domain(resume.contact_info) if resume.contact_info else None,
            total_experience_years=resume.total_experience_years(),
            has_complete_profile=resume.has_complete_profile(),
        )


class ResumeCountResponse(BaseModel):
    count: int


class AccessUrlResponse(BaseModel):
    resume_id: str
    access_url: str
    expires_in_minutes: int


def _summary_fields(resume: Resume) -> dict:
    return {
        "id": resume.id,
        "user_id": resume.user_id,
        "status": resume.status.value,
        "status_label": resume.status.label,
        "file_name": resume.file.name.value,
        "file_size": resume.file.size.bytes,
        "file_type": resume.file.file_type.value,
        "candidate_name": resume.candidate_name.value if resume.candidate_name else None,
        "parsed_at": resume.parsed_at,
        "parse_error_message": resume.parse_error_message,
        "parse_retry_count": resume.parse_retry_count,
        "uploaded_at": resume.uploaded_at,
        "updated_at": resume.updated_at,
    }
