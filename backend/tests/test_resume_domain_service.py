"""Duplicate detection, scoring and search over resume pools."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conftest import build_resume, make_contact, make_education, make_experience
from talent.matching.service import ResumeDomainService, SearchCriteria
from talent.resumes.status import ResumeStatus
from talent.resumes.value_objects import ContactInfo, Skill, SkillLevel


@pytest.fixture
def domain_service() -> ResumeDomainService:
    return ResumeDomainService()


def _backend_resume(**kwargs):
    return build_resume(
        skills=[
            Skill.of("Java", SkillLevel.ADVANCED, 5),
            Skill.of("Spring Boot", SkillLevel.INTERMEDIATE, 3),
        ],
        experiences=[make_experience(years=5)],
        **kwargs,
    )


class TestMatchingScore:
    def test_required_skills_with_level_bonus(self, domain_service) -> None:
        score = domain_service.calculate_matching_score(_backend_resume(), ["Java", "Spring Boot"])
        # (20 + 3) + (20 + 1)
        assert score == 44

    def test_no_overlap_scores_zero(self, domain_service) -> None:
        assert domain_service.calculate_matching_score(_backend_resume(), ["Python"]) == 0

    def test_skill_lookup_is_case_insensitive(self, domain_service) -> None:
        assert domain_service.calculate_matching_score(_backend_resume(), ["java"]) == 23

    def test_preferred_skill_uses_half_level_bonus(self, domain_service) -> None:
        resume = build_resume(skills=[Skill.of("Kubernetes", SkillLevel.EXPERT)])
        assert domain_service.calculate_matching_score(resume, [], ["Kubernetes"]) == 12

    def test_experience_bonuses(self, domain_service) -> None:
        score = domain_service.calculate_matching_score(_backend_resume(), ["Java", "Spring Boot"], [], 3)
        # 44 + two skill-years bonuses + 10 for experience + 2 extra years
        assert score == 44 + 5 + 5 + 10 + 2

    def test_extra_years_bonus_is_capped(self, domain_service) -> None:
        resume = build_resume(experiences=[make_experience(years=20)])
        assert domain_service.calculate_matching_score(resume, [], [], 1) == 10 + 10

    def test_experience_below_minimum_adds_nothing(self, domain_service) -> None:
        assert domain_service.calculate_matching_score(_backend_resume(), [], [], 8) == 0

    def test_higher_level_never_scores_lower(self, domain_service) -> None:
        scores = [
            domain_service.calculate_matching_score(build_resume(skills=[Skill.of("Java", level)]), ["Java"])
            for level in (SkillLevel.BEGINNER, SkillLevel.INTERMEDIATE, SkillLevel.ADVANCED, SkillLevel.EXPERT)
        ]
        assert scores == sorted(scores)
        assert scores[-1] > scores[0]


class TestDuplicateDetection:
    def test_same_email_is_duplicate_and_symmetric(self, domain_service) -> None:
        first = build_resume(contact_info=ContactInfo.of(email="a@x.com", phone="010-1111-2222"), candidate_name="Jane Doe")
        second = build_resume(contact_info=ContactInfo.of(email="A@X.com", phone="010-3333-4444"), candidate_name="John Roe")

        assert domain_service.is_duplicate_resume(first, [second])
        assert domain_service.is_duplicate_resume(second, [first])

    def test_same_phone_is_duplicate(self, domain_service) -> None:
        first = build_resume(contact_info=ContactInfo.of(phone="010-1234-5678"))
        second = build_resume(contact_info=ContactInfo.of(phone="01012345678", email="other@example.com"))
        assert domain_service.is_duplicate_resume(first, [second])

    def test_same_name_alone_is_not_duplicate(self, domain_service) -> None:
        first = build_resume(contact_info=make_contact("a@example.com", "010-1111-2222"), candidate_name="Jane Doe")
        second = build_resume(contact_info=make_contact("b@example.com", "010-3333-4444"), candidate_name="Jane Doe")
        assert not domain_service.is_duplicate_resume(first, [second])

    def test_target_without_contact_is_never_duplicate(self, domain_service) -> None:
        target = build_resume()
        other = build_resume(contact_info=make_contact())
        assert not domain_service.is_duplicate_resume(target, [other])

    def test_resume_is_not_duplicate_of_itself(self, domain_service) -> None:
        resume = build_resume(contact_info=make_contact())
        assert not domain_service.is_duplicate_resume(resume, [resume])


class TestSkillAndExperienceSearch:
    def test_search_by_skills_requires_every_keyword(self, domain_service) -> None:
        both = build_resume(skills=[Skill.of("Java"), Skill.of("Docker")])
        java_only = build_resume(skills=[Skill.of("Java")])
        empty = build_resume()

        assert domain_service.search_by_skills([both, java_only, empty], ["java", "DOCKER"]) == [both]

    def test_search_by_skills_with_min_level(self, domain_service) -> None:
        senior = build_resume(skills=[Skill.of("Java", SkillLevel.EXPERT)])
        junior = build_resume(skills=[Skill.of("Java", SkillLevel.BEGINNER)])

        assert domain_service.search_by_skills([senior, junior], ["Java"], SkillLevel.ADVANCED) == [senior]

    def test_no_keywords_return_whole_pool(self, domain_service) -> None:
        pool = [build_resume(), build_resume(skills=[Skill.of("Go")])]
        assert domain_service.search_by_skills(pool, None) == pool
        assert domain_service.search_by_skills(pool, []) == pool

    def test_blank_keyword_matches_no_skill(self, domain_service) -> None:
        pool = [build_resume(skills=[Skill.of("Go")]), build_resume(skills=[Skill.of("Java")])]
        assert domain_service.search_by_skills(pool, ["", "  "]) == []
        assert domain_service.search_by_skills(pool, ["Go", " "]) == []

    def test_search_by_experience_matches_within_one_entry(self, domain_service) -> None:
        match = build_resume(experiences=[make_experience("Naver Corp", "Backend Engineer", years=3)])
        split = build_resume(
            experiences=[
                make_experience("Naver Corp", "Designer", years=3),
                make_experience("Kakao", "Backend Engineer", years=2),
            ]
        )
        pool = [match, split, build_resume()]

        assert domain_service.search_by_experience(pool, "naver", "backend") == [match]
        assert domain_service.search_by_experience(pool, "naver") == [match, split]
        assert domain_service.search_by_experience(pool, min_months=36) == [match, split]
        assert domain_service.search_by_experience(pool, "kakao", min_months=36) == []


class TestComplexSearch:
    def test_filters_by_minimum_score_and_sorts_descending(self, domain_service) -> None:
        expert = build_resume(skills=[Skill.of("Java", SkillLevel.EXPERT)])
        beginner = build_resume(skills=[Skill.of("Java", SkillLevel.BEGINNER)])
        python = build_resume(skills=[Skill.of("Python", SkillLevel.EXPERT)])
        unparsed = build_resume(status=ResumeStatus.UPLOADED, skills=[Skill.of("Java", SkillLevel.EXPERT)])

        results = domain_service.complex_search(
            [beginner, python, unparsed, expert],
            SearchCriteria(required_skills=["Java"], minimum_score=20),
        )

        assert [r.resume for r in results] == [expert, beginner]
        assert [r.score for r in results] == [25, 20]

    def test_ties_prefer_most_recently_parsed(self, domain_service) -> None:
        now = datetime.now(timezone.utc)
        older = build_resume(skills=[Skill.of("Java")], parsed_at=now - timedelta(days=2))
        newer = build_resume(skills=[Skill.of("Java")], parsed_at=now - timedelta(days=1))

        results = domain_service.complex_search([older, newer], SearchCriteria(required_skills=["Java"]))

        assert [r.resume for r in results] == [newer, older]

    def test_minimum_years_and_major_filters(self, domain_service) -> None:
        veteran = build_resume(experiences=[make_experience(years=6)], educations=[make_education("Computer Science")])
        junior = build_resume(experiences=[make_experience(years=1)], educations=[make_education("Computer Science")])
        biologist = build_resume(experiences=[make_experience(years=6)], educations=[make_education("Biology")])

        results = domain_service.complex_search(
            [veteran, junior, biologist],
            SearchCriteria(minimum_years_of_experience=3, major_keyword="computer"),
        )

        assert [r.resume for r in results] == [veteran]
        assert results[0].score == 10 + 3

    def test_does_not_mutate_pool(self, domain_service) -> None:
        resume = build_resume(skills=[Skill.of("Java")])
        before = (resume.status, resume.skills, resume.updated_at)

        domain_service.complex_search([resume], SearchCriteria(required_skills=["Java"]))

        assert (resume.status, resume.skills, resume.updated_at) == before
        assert not resume.has_domain_events()
