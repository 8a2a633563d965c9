"""
Conversion between the resume aggregate and its database record
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from talent.models.resume import ResumeRecord
from talent.resumes.aggregate import Resume, ResumeId, UserId
from talent.resumes.files import FileDescriptor, FileName, FileSize, FileType
from talent.resumes.status import ResumeStatus
from talent.resumes.value_objects import (
    CandidateName,
    ContactInfo,
    Education,
    Email,
    Experience,
    PhoneNumber,
    Skill,
    SkillLevel,
)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def skill_to_dict(skill: Skill) -> Dict[str, Any]:
    return {"name": skill.name, "level": skill.level.value, "years": skill.years_of_experience}


def experience_to_dict(experience: Experience) -> Dict[str, Any]:
    return {
        "company": experience.company,
        "position": experience.position,
        "start_date": _iso(experience.start_date),
        "end_date": _iso(experience.end_date),
        "description": experience.description,
    }


def education_to_dict(education: Education) -> Dict[str, Any]:
    return {
        "school": education.school,
        "degree": education.degree,
        "major": education.major,
        "graduation_date": _iso(education.graduation_date),
        "gpa": education.gpa,
    }


def _skills_from(data: Optional[List[Dict[str, Any]]]) -> List[Skill]:
    return [
        Skill(name=item["name"], level=SkillLevel(item["level"]), years_of_experience=item.get("years"))
        for item in data or []
    ]


def _experiences_from(data: Optional[List[Dict[str, Any]]]) -> List[Experience]:
    return [
        Experience(
            company=item["company"],
            position=item["position"],
            start_date=_from_iso(item["start_date"]),
            end_date=_from_iso(item.get("end_date")),
            description=item.get("description"),
        )
        for item in data or []
    ]


def _educations_from(data: Optional[List[Dict[str, Any]]]) -> List[Education]:
    return [
        Education(
            school=item["school"],
            degree=item["degree"],
            major=item["major"],
            graduation_date=_from_iso(item["graduation_date"]),
            gpa=item.get("gpa"),
        )
        for item in data or []
    ]


def to_record(resume: Resume, record: Optional[ResumeRecord] = None) -> ResumeRecord:
    """Copy aggregate state onto a new or existing record"""
    record = record or ResumeRecord(id=resume.id)
    contact = resume.contact_info

    record.user_id = resume.user_id
    record.status = resume.status.value
    record.file_name = resume.file.name.value
    record.file_size = resume.file.size.bytes
    record.file_type = resume.file.file_type.value
    record.storage_key = resume.storage_key
    record.candidate_name = resume.candidate_name.value if resume.candidate_name else None
    record.skills = [skill_to_dict(s) for s in resume.skills]
    record.experiences = [experience_to_dict(e) for e in resume.experiences]
    record.educations = [education_to_dict(e) for e in resume.educations]
    record.contact_email = contact.email.value if contact and contact.email else None
    record.contact_phone = contact.phone.value if contact and contact.phone else None
    record.contact_address = contact.address if contact else None
    record.parsed_at = resume.parsed_at
    record.parse_error_message = resume.parse_error_message
    record.parse_retry_count = resume.parse_retry_count
    record.uploaded_at = resume.uploaded_at
    record.updated_at = resume.updated_at
    record.deleted_at = resume.deleted_at
    return record


def to_domain(record: ResumeRecord) -> Resume:
    contact = None
    if record.contact_email or record.contact_phone:
        contact = ContactInfo(
            phone=PhoneNumber(record.contact_phone) if record.contact_phone else None,
            email=Email(record.contact_email) if record.contact_email else None,
            address=record.contact_address,
        )

    return Resume.reconstitute(
        resume_id=ResumeId(record.id),
        user_id=UserId(record.user_id),
        file=FileDescriptor(
            name=FileName(record.file_name),
            size=FileSize(record.file_size),
            file_type=FileType(record.file_type),
        ),
        storage_key=record.storage_key,
        status=ResumeStatus(record.status),
        candidate_name=CandidateName(record.candidate_name) if record.candidate_name else None,
        skills=_skills_from(record.skills),
        experiences=_experiences_from(record.experiences),
        educations=_educations_from(record.educations),
        contact_info=contact,
        parsed_at=_aware(record.parsed_at),
        parse_error_message=record.parse_error_message,
        parse_retry_count=record.parse_retry_count or 0,
        uploaded_at=_aware(record.uploaded_at),
        updated_at=_aware(record.updated_at),
        deleted_at=_aware(record.deleted_at),
        version=record.version,
    )
