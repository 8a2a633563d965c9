"""
Parsed resume profile value objects
"""
import math
import re
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta
from email_validator import EmailNotValidError, validate_email

from talent.core.exceptions import ValidationError


def _require_text(value: Optional[str], field: str, min_length: int, max_length: int) -> str:
    """Trim and length-check a required text field"""
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be blank", details={"field": field})
    trimmed = value.strip()
    if not min_length <= len(trimmed) <= max_length:
        raise ValidationError(
            f"{field} must be between {min_length} and {max_length} characters",
            details={"field": field, "length": len(trimmed)},
        )
    return trimmed


class SkillLevel(str, Enum):
    """Proficiency level, ordered by rank"""

    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"

    @property
    def rank(self) -> int:
        return SKILL_LEVEL_RANKS[self]

    @property
    def label(self) -> str:
        return SKILL_LEVEL_LABELS[self]

    def is_higher_than(self, other: "SkillLevel") -> bool:
        return self.rank > other.rank

    def is_lower_than(self, other: "SkillLevel") -> bool:
        return self.rank < other.rank

    def is_at_least(self, other: "SkillLevel") -> bool:
        return self.rank >= other.rank

    def next_level(self) -> "SkillLevel":
        return SkillLevel.from_rank(min(self.rank + 1, 4))

    def previous_level(self) -> "SkillLevel":
        return SkillLevel.from_rank(max(self.rank - 1, 1))

    @classmethod
    def from_rank(cls, rank: int) -> "SkillLevel":
        for level, level_rank in SKILL_LEVEL_RANKS.items():
            if level_rank == rank:
                return level
        raise ValidationError(f"Invalid skill level rank: {rank}", details={"rank": rank})

    @classmethod
    def from_name(cls, name: str) -> "SkillLevel":
        try:
            return cls(name.strip().upper())
        except (AttributeError, ValueError):
            raise ValidationError(f"Invalid skill level: {name}", details={"level": name})

    @classmethod
    def default(cls) -> "SkillLevel":
        return cls.INTERMEDIATE


SKILL_LEVEL_RANKS = {
    SkillLevel.BEGINNER: 1,
    SkillLevel.INTERMEDIATE: 2,
    SkillLevel.ADVANCED: 3,
    SkillLevel.EXPERT: 4,
}

SKILL_LEVEL_LABELS = {
    SkillLevel.BEGINNER: "초급",
    SkillLevel.INTERMEDIATE: "중급",
    SkillLevel.ADVANCED: "고급",
    SkillLevel.EXPERT: "전문가",
}


@dataclass(frozen=True, eq=False)
class Skill:
    """A named skill; two skills are the same skill when their names match"""

    name: str
    level: SkillLevel = SkillLevel.INTERMEDIATE
    years_of_experience: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "name", _require_text(self.name, "Skill name", 2, 50))
        if not isinstance(self.level, SkillLevel):
            raise ValidationError("Skill level is required", details={"skill": self.name})
        if self.years_of_experience is not None and not 0 <= self.years_of_experience <= 50:
            raise ValidationError(
                "Years of experience must be between 0 and 50",
                details={"skill": self.name, "years": self.years_of_experience},
            )

    @classmethod
    def of(cls, name: str, level: Optional[SkillLevel] = None, years_of_experience: Optional[int] = None) -> "Skill":
        return cls(name=name, level=level or SkillLevel.default(), years_of_experience=years_of_experience)

    def matches_name(self, name: Optional[str]) -> bool:
        return name is not None and self.name.lower() == name.strip().lower()

    def is_level_at_least(self, level: SkillLevel) -> bool:
        return self.level.is_at_least(level)

    def has_experience_at_least(self, years: int) -> bool:
        return self.years_of_experience is not None and self.years_of_experience >= years

    def with_years_of_experience(self, years: int) -> "Skill":
        return replace(self, years_of_experience=years)

    def __eq__(self, other):
        if not isinstance(other, Skill):
            return NotImplemented
        return self.name.lower() == other.name.lower()

    def __hash__(self):
        return hash(self.name.lower())


@dataclass(frozen=True, eq=False)
class Experience:
    """A single employment entry"""

    company: str
    position: str
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "company", _require_text(self.company, "Company", 2, 100))
        object.__setattr__(self, "position", _require_text(self.position, "Position", 2, 100))
        today = date.today()
        if self.start_date is None:
            raise ValidationError("Start date is required")
        if self.start_date > today:
            raise ValidationError("Start date must not be in the future", details={"start_date": str(self.start_date)})
        if self.end_date is not None:
            if self.end_date < self.start_date:
                raise ValidationError("End date must not be before start date")
            if self.end_date > today:
                raise ValidationError("End date must not be in the future", details={"end_date": str(self.end_date)})
        if self.description is not None:
            description = self.description.strip()
            if len(description) > 1000:
                raise ValidationError("Description must be at most 1000 characters")
            object.__setattr__(self, "description", description or None)

    @classmethod
    def of(
        cls,
        company: str,
        position: str,
        start_date: date,
        end_date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> "Experience":
        return cls(company, position, start_date, end_date, description)

    @property
    def effective_end_date(self) -> date:
        return self.end_date or date.today()

    def is_current(self) -> bool:
        return self.end_date is None

    def duration_in_months(self) -> int:
        delta = relativedelta(self.effective_end_date, self.start_date)
        return delta.years * 12 + delta.months

    def duration_in_years(self) -> int:
        # Round half up
        return math.floor(self.duration_in_months() / 12 + 0.5)

    def has_worked_at_least(self, months: int) -> bool:
        return self.duration_in_months() >= months

    def was_working_on(self, on: date) -> bool:
        return self.start_date <= on <= self.effective_end_date

    def overlaps(self, other: "Experience") -> bool:
        return self.start_date <= other.effective_end_date and other.start_date <= self.effective_end_date

    def is_company(self, name: Optional[str]) -> bool:
        return name is not None and self.company.lower() == name.strip().lower()

    def _key(self):
        return (self.company.lower(), self.position.lower(), self.start_date, self.end_date)

    def __eq__(self, other):
        if not isinstance(other, Experience):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())


@dataclass(frozen=True, eq=False)
class Education:
    """A single education entry"""

    school: str
    degree: str
    major: str
    graduation_date: date
    gpa: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "school", _require_text(self.school, "School", 2, 100))
        object.__setattr__(self, "degree", _require_text(self.degree, "Degree", 2, 50))
        object.__setattr__(self, "major", _require_text(self.major, "Major", 2, 100))
        if self.graduation_date is None:
            raise ValidationError("Graduation date is required")
        if self.graduation_date > date.today():
            raise ValidationError(
                "Graduation date must not be in the future",
                details={"graduation_date": str(self.graduation_date)},
            )
        if self.gpa is not None and not 0.0 <= self.gpa <= 4.5:
            raise ValidationError("GPA must be between 0.0 and 4.5", details={"gpa": self.gpa})

    @classmethod
    def of(cls, school: str, degree: str, major: str, graduation_date: date, gpa: Optional[float] = None) -> "Education":
        return cls(school, degree, major, graduation_date, gpa)

    def is_major_related_to(self, keyword: Optional[str]) -> bool:
        return bool(keyword) and keyword.strip().lower() in self.major.lower()

    def is_bachelor(self) -> bool:
        return "학사" in self.degree or self.degree.lower() == "bachelor"

    def is_master(self) -> bool:
        return "석사" in self.degree or self.degree.lower() == "master"

    def is_doctor(self) -> bool:
        return "박사" in self.degree or self.degree.lower() in ("doctor", "phd")

    def _key(self):
        return (self.school.lower(), self.degree.lower(), self.major.lower(), self.graduation_date)

    def __eq__(self, other):
        if not isinstance(other, Education):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())


MOBILE_PATTERN = re.compile(r"^010\d{8}$")
SEOUL_PATTERN = re.compile(r"^02\d{7,8}$")
REGIONAL_PATTERN = re.compile(r"^0(3[1-3]|4[1-4]|5[1-5]|6[1-4])\d{7,8}$")


@dataclass(frozen=True)
class PhoneNumber:
    """Domestic phone number stored as bare digits"""

    value: str

    def __post_init__(self):
        if self.value is None:
            raise ValidationError("Phone number is required")
        digits = re.sub(r"\D", "", self.value)
        if not digits.startswith("0") or not 9 <= len(digits) <= 11:
            raise ValidationError("Invalid phone number", details={"phone": self.value})
        if not (MOBILE_PATTERN.match(digits) or SEOUL_PATTERN.match(digits) or REGIONAL_PATTERN.match(digits)):
            raise ValidationError("Invalid phone number", details={"phone": self.value})
        object.__setattr__(self, "value", digits)

    @classmethod
    def of(cls, value: str) -> "PhoneNumber":
        return cls(value)

    def is_mobile(self) -> bool:
        return bool(MOBILE_PATTERN.match(self.value))

    def is_seoul(self) -> bool:
        return bool(SEOUL_PATTERN.match(self.value))

    def formatted(self) -> str:
        v = self.value
        if self.is_mobile():
            return f"{v[:3]}-{v[3:7]}-{v[7:]}"
        if self.is_seoul():
            split = 5 if len(v) == 9 else 6
            return f"{v[:2]}-{v[2:split]}-{v[split:]}"
        split = 6 if len(v) == 10 else 7
        return f"{v[:3]}-{v[3:split]}-{v[split:]}"

    def masked(self) -> str:
        parts = self.formatted().split("-")
        return f"{parts[0]}-****-{parts[2]}"

    def international(self) -> str:
        return "+82" + self.value[1:]

    def __str__(self):
        return self.formatted()


@dataclass(frozen=True)
class Email:
    """Email address, normalized to lower case"""

    value: str

    def __post_init__(self):
        if self.value is None or not self.value.strip():
            raise ValidationError("Email must not be blank")
        candidate = self.value.strip()
        if len(candidate) > 255:
            raise ValidationError("Email must be at most 255 characters")
        local, _, domain = candidate.rpartition("@")
        if len(local) > 64:
            raise ValidationError("Email local part must be at most 64 characters")
        if "." not in domain:
            raise ValidationError("Email domain must contain a dot", details={"email": candidate})
        try:
            validate_email(candidate, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError(f"Invalid email: {e}", details={"email": candidate})
        object.__setattr__(self, "value", candidate.lower())

    @classmethod
    def of(cls, value: str) -> "Email":
        return cls(value)

    @property
    def local_part(self) -> str:
        return self.value.split("@", 1)[0]

    @property
    def domain(self) -> str:
        return self.value.split("@", 1)[1]

    def masked(self) -> str:
        local = self.local_part
        visible = local[:2] if len(local) > 2 else local[:1]
        return f"{visible}***@{self.domain}"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class ContactInfo:
    """How to reach a candidate; phone or email is required"""

    phone: Optional[PhoneNumber] = None
    email: Optional[Email] = None
    address: Optional[str] = None

    def __post_init__(self):
        if self.phone is None and self.email is None:
            raise ValidationError("Contact info requires a phone number or an email")
        if self.address is not None:
            address = self.address.strip()
            if len(address) > 200:
                raise ValidationError("Address must be at most 200 characters")
            object.__setattr__(self, "address", address or None)

    @classmethod
    def of(cls, phone: Optional[str] = None, email: Optional[str] = None, address: Optional[str] = None) -> "ContactInfo":
        return cls(
            phone=PhoneNumber.of(phone) if phone else None,
            email=Email.of(email) if email else None,
            address=address,
        )

    def has_email(self) -> bool:
        return self.email is not None

    def has_phone_number(self) -> bool:
        return self.phone is not None

    def has_address(self) -> bool:
        return self.address is not None


# Unicode letters separated by single spaces
NAME_PATTERN = re.compile(r"^[^\W\d_]+(?: [^\W\d_]+)*$")
HANGUL_ONLY = re.compile(r"^[가-힣]+$")


@dataclass(frozen=True, eq=False)
class CandidateName:
    """Candidate's display name"""

    value: str

    def __post_init__(self):
        name = _require_text(self.value, "Candidate name", 2, 100)
        if "  " in name:
            raise ValidationError("Candidate name must not contain consecutive spaces")
        if any(ch.isdigit() for ch in name):
            raise ValidationError("Candidate name must not contain digits")
        if not NAME_PATTERN.match(name):
            raise ValidationError("Candidate name contains invalid characters", details={"name": name})
        object.__setattr__(self, "value", name)

    @classmethod
    def of(cls, value: str) -> "CandidateName":
        return cls(value)

    def initials(self) -> str:
        if HANGUL_ONLY.match(self.value):
            return self.value[0]
        return "".join(part[0] for part in self.value.split()).upper()

    def matches(self, name: Optional[str]) -> bool:
        return name is not None and self.value.lower() == name.strip().lower()

    def contains(self, keyword: Optional[str]) -> bool:
        return bool(keyword) and keyword.strip().lower() in self.value.lower()

    def __eq__(self, other):
        if not isinstance(other, CandidateName):
            return NotImplemented
        return self.value.lower() == other.value.lower()

    def __hash__(self):
        return hash(self.value.lower())

    def __str__(self):
        return self.value
