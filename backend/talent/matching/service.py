"""
Candidate matching: duplicate detection, scoring and search over resumes
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

import structlog

from talent.resumes.aggregate import Resume
from talent.resumes.status import ResumeStatus
from talent.resumes.value_objects import SkillLevel

logger = structlog.get_logger()


@dataclass(frozen=True)
class SearchCriteria:
    """Ranked search parameters"""

    required_skills: Sequence[str] = field(default_factory=tuple)
    preferred_skills: Sequence[str] = field(default_factory=tuple)
    minimum_years_of_experience: Optional[int] = None
    major_keyword: Optional[str] = None
    minimum_score: int = 0


@dataclass(frozen=True)
class ResumeSearchResult:
    resume: Resume
    score: int


class ResumeDomainService:
    """Stateless logic over a pool of resumes; never mutates them"""

    REQUIRED_SKILL_POINTS = 20
    PREFERRED_SKILL_POINTS = 10
    SKILL_YEARS_BONUS = 5
    EXPERIENCE_POINTS = 10
    MAX_EXTRA_YEARS_BONUS = 10

    LEVEL_BONUS = {
        SkillLevel.EXPERT: 5,
        SkillLevel.ADVANCED: 3,
        SkillLevel.INTERMEDIATE: 1,
        SkillLevel.BEGINNER: 0,
    }

    def is_duplicate_resume(self, target: Resume, pool: Iterable[Resume]) -> bool:
        """
        Check whether target describes the same candidate as any resume in pool.

        Email equality wins first, then phone equality, then an equal candidate
        name backed by a matching email or phone.
        """
        contact = target.contact_info
        if contact is None:
            return False

        for other in pool:
            if other is target or (other.id is not None and other.id == target.id):
                continue
            other_contact = other.contact_info
            if other_contact is None:
                continue

            if contact.email and other_contact.email and contact.email == other_contact.email:
                return True
            if contact.phone and other_contact.phone and contact.phone == other_contact.phone:
                return True
            if (
                target.candidate_name is not None
                and other.candidate_name is not None
                and target.candidate_name == other.candidate_name
            ):
                email_match = contact.email is not None and contact.email == other_contact.email
                phone_match = contact.phone is not None and contact.phone == other_contact.phone
                if email_match or phone_match:
                    return True
        return False

    def calculate_matching_score(
        self,
        resume: Resume,
        required_skills: Optional[Sequence[str]] = None,
        preferred_skills: Optional[Sequence[str]] = None,
        min_years_experience: Optional[int] = None,
    ) -> int:
        """Score a resume against a query; unbounded above, never negative"""
        score = 0

        for name in required_skills or ():
            skill = resume.find_skill(name)
            if skill is None:
                continue
            score += self.REQUIRED_SKILL_POINTS + self.LEVEL_BONUS[skill.level]
            if min_years_experience is not None and skill.has_experience_at_least(min_years_experience):
                score += self.SKILL_YEARS_BONUS

        for name in preferred_skills or ():
            skill = resume.find_skill(name)
            if skill is None:
                continue
            score += self.PREFERRED_SKILL_POINTS + self.LEVEL_BONUS[skill.level] // 2

        if min_years_experience is not None:
            total_years = resume.total_experience_years()
            if total_years >= min_years_experience:
                score += self.EXPERIENCE_POINTS
                score += min(total_years - min_years_experience, self.MAX_EXTRA_YEARS_BONUS)

        return max(0, score)

    def search_by_skills(
        self,
        pool: Iterable[Resume],
        keywords: Optional[Sequence[str]],
        min_level: Optional[SkillLevel] = None,
    ) -> List[Resume]:
        """Resumes holding every keyword as a skill (at min_level or above when given)"""
        resumes = list(pool)
        keywords = list(keywords or ())
        if not keywords:
            return resumes

        def matches(resume: Resume) -> bool:
            if not resume.skills:
                return False
            for keyword in keywords:
                if min_level is None:
                    if not resume.has_skill(keyword):
                        return False
                elif not resume.has_skill_with_level(keyword, min_level):
                    return False
            return True

        return [r for r in resumes if matches(r)]

    def search_by_experience(
        self,
        pool: Iterable[Resume],
        company_keyword: Optional[str] = None,
        position_keyword: Optional[str] = None,
        min_months: Optional[int] = None,
    ) -> List[Resume]:
        """Resumes with at least one experience entry satisfying every supplied criterion"""
        company = company_keyword.strip().lower() if company_keyword else None
        position = position_keyword.strip().lower() if position_keyword else None

        def entry_matches(experience) -> bool:
            if company and company not in experience.company.lower():
                return False
            if position and position not in experience.position.lower():
                return False
            if min_months is not None and experience.duration_in_months() < min_months:
                return False
            return True

        return [
            r for r in pool
            if r.experiences and any(entry_matches(e) for e in r.experiences)
        ]

    def complex_search(self, pool: Iterable[Resume], criteria: SearchCriteria) -> List[ResumeSearchResult]:
        """
        Rank parsed resumes against criteria.

        Ties on score are broken by most recently parsed first, then by resume id.
        """
        major_keyword = criteria.major_keyword.strip() if criteria.major_keyword else None
        results = []
        for resume in pool:
            if resume.status is not ResumeStatus.PARSED:
                continue
            if (
                criteria.minimum_years_of_experience is not None
                and resume.total_experience_years() < criteria.minimum_years_of_experience
            ):
                continue
            if major_keyword and not any(e.is_major_related_to(major_keyword) for e in resume.educations):
                continue
            score = self.calculate_matching_score(
                resume,
                criteria.required_skills,
                criteria.preferred_skills,
                criteria.minimum_years_of_experience,
            )
            if score >= criteria.minimum_score:
                results.append(ResumeSearchResult(resume=resume, score=score))

        results.sort(key=_ranking_key)
        logger.debug("complex_search_completed", matched=len(results))
        return results


def _ranking_key(result: ResumeSearchResult):
    parsed_at = result.resume.parsed_at
    recency = parsed_at.timestamp() if parsed_at else 0.0
    return (-result.score, -recency, str(result.resume.id))


resume_domain_service = ResumeDomainService()
