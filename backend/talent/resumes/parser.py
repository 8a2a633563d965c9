"""
Resume parsing service
"""
import io
import re
from abc import abstractmethod
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pdfplumber
from docx import Document
import structlog

from talent.core.exceptions import FileStorageError, ParsingError, TalentException
from talent.resumes.files import FileType
from talent.resumes.ports import (
    FileStoragePort,
    ParsingFailure,
    ParsingResult,
    ParsingSuccess,
    ResumeParsingPort,
)
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

logger = structlog.get_logger()


class ResumeTextExtractor:
    """Extract raw text from PDF and DOCX content"""

    SUPPORTED = (FileType.PDF, FileType.DOCX)

    def can_extract(self, file_type: FileType) -> bool:
        return file_type in self.SUPPORTED

    def extract_text(self, content: bytes, file_type: FileType) -> str:
        """Extract raw text from resume file content"""
        if not self.can_extract(file_type):
            raise ParsingError(f"Unsupported file type: {file_type.value}", details={"file_type": file_type.value})
        try:
            if file_type is FileType.PDF:
                text = self._extract_from_pdf(content)
            else:
                text = self._extract_from_docx(content)
        except Exception as e:
            logger.error("text_extraction_failed", file_type=file_type.value, error=str(e))
            raise ParsingError(f"Could not read {file_type.value} file: {e}")
        if not text.strip():
            raise ParsingError("No text could be extracted from the file")
        return text

    def _extract_from_pdf(self, content: bytes) -> str:
        """Extract text from PDF"""
        text_parts = []
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            for page in pdf.pages:
                text = page.extract_text()
                if text:
                    text_parts.append(text)
        return "\n".join(text_parts)

    def _extract_from_docx(self, content: bytes) -> str:
        """Extract text from DOCX"""
        doc = Document(io.BytesIO(content))
        return "\n".join(paragraph.text for paragraph in doc.paragraphs)


PRESENT_WORDS = {"present", "current", "now", "현재", "재직중", "재직 중"}

DATE_FORMATS = [
    "%Y-%m-%d",   # 2020-01-15
    "%Y-%m",      # 2020-01
    "%Y.%m.%d",   # 2020.01.15
    "%Y.%m",      # 2020.01
    "%Y/%m",      # 2020/01
    "%m/%Y",      # 01/2020
    "%B %Y",      # January 2020
    "%b %Y",      # Jan 2020
    "%Y",         # 2020
]


def parse_date(value: Optional[str], is_end: bool = False) -> Optional[date]:
    """Parse a loosely formatted resume date; None for blanks and 'present'"""
    if not value:
        return None
    text = str(value).strip().lower()
    if not text or text in PRESENT_WORDS:
        return None

    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt).date()
        except ValueError:
            continue
        if fmt == "%Y" and is_end:
            parsed = date(parsed.year, 12, 31)
        return min(parsed, date.today())

    year_match = re.search(r"\b(19|20)\d{2}\b", text)
    if year_match:
        year = int(year_match.group(0))
        parsed = date(year, 12, 31) if is_end else date(year, 1, 1)
        return min(parsed, date.today())

    logger.warning("date_parse_failed", date_str=value)
    return None


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def build_parsing_result(data: Dict[str, Any], raw_text: str = "") -> ParsingResult:
    """
    Map extracted fields onto value objects.
    Entries that fail validation are dropped; a result with nothing usable is a failure.
    """
    candidate_name = None
    if data.get("name"):
        try:
            candidate_name = CandidateName.of(data["name"])
        except TalentException as e:
            logger.warning("parsed_name_rejected", error=e.message)

    skills: List[Skill] = []
    seen = set()
    for entry in data.get("skills") or []:
        if isinstance(entry, str):
            entry = {"name": entry}
        if not isinstance(entry, dict):
            continue
        try:
            level = SkillLevel.from_name(entry["level"]) if entry.get("level") else None
            skill = Skill.of(entry.get("name"), level, _to_int(entry.get("years")))
        except TalentException as e:
            logger.warning("parsed_skill_rejected", skill=entry.get("name"), error=e.message)
            continue
        if skill.name.lower() not in seen:
            seen.add(skill.name.lower())
            skills.append(skill)

    experiences: List[Experience] = []
    for entry in data.get("experience") or []:
        if not isinstance(entry, dict):
            continue
        try:
            experiences.append(
                Experience.of(
                    company=entry.get("company"),
                    position=entry.get("position"),
                    start_date=parse_date(entry.get("start_date")),
                    end_date=parse_date(entry.get("end_date"), is_end=True),
                    description=entry.get("description"),
                )
            )
        except TalentException as e:
            logger.warning("parsed_experience_rejected", company=entry.get("company"), error=e.message)

    educations: List[Education] = []
    for entry in data.get("education") or []:
        if not isinstance(entry, dict):
            continue
        try:
            educations.append(
                Education.of(
                    school=entry.get("school"),
                    degree=entry.get("degree"),
                    major=entry.get("major"),
                    graduation_date=parse_date(entry.get("graduation_date"), is_end=True),
                    gpa=_to_float(entry.get("gpa")),
                )
            )
        except TalentException as e:
            logger.warning("parsed_education_rejected", school=entry.get("school"), error=e.message)

    contact_info = _build_contact(data)

    if candidate_name is None and contact_info is None and not skills and not experiences:
        return ParsingFailure("No resume information could be extracted")

    return ParsingSuccess(
        candidate_name=candidate_name,
        skills=tuple(skills),
        experiences=tuple(experiences),
        educations=tuple(educations),
        contact_info=contact_info,
        raw_text=raw_text,
    )


def _build_contact(data: Dict[str, Any]) -> Optional[ContactInfo]:
    phone = email = None
    if data.get("phone"):
        try:
            phone = PhoneNumber.of(data["phone"])
        except TalentException as e:
            logger.warning("parsed_phone_rejected", error=e.message)
    if data.get("email"):
        try:
            email = Email.of(data["email"])
        except TalentException as e:
            logger.warning("parsed_email_rejected", error=e.message)
    if phone is None and email is None:
        return None
    address = data.get("address")
    if address and len(address.strip()) > 200:
        address = None
    return ContactInfo(phone=phone, email=email, address=address)


class StoredResumeParser(ResumeParsingPort):
    """Downloads the stored file, extracts its text and hands it to parse_text"""

    def __init__(self, storage: FileStoragePort, extractor: Optional[ResumeTextExtractor] = None):
        self.storage = storage
        self.extractor = extractor or ResumeTextExtractor()

    def can_parse(self, file_type: FileType) -> bool:
        return self.extractor.can_extract(file_type)

    def parse_resume(self, storage_key: str, file_type: FileType) -> ParsingResult:
        if not self.can_parse(file_type):
            return ParsingFailure(f"Unsupported file type for parsing: {file_type.value}")
        try:
            content = self.storage.download_file(storage_key)
            raw_text = self.extractor.extract_text(content, file_type)
        except (FileStorageError, ParsingError) as e:
            logger.error("resume_text_unavailable", storage_key=storage_key, error=e.message)
            return ParsingFailure(e.message)
        return self.parse_text(raw_text)

    @abstractmethod
    def parse_text(self, raw_text: str) -> ParsingResult:
        """Parse already extracted text."""


SECTION_HEADERS = {
    "skills": re.compile(r"(?:technical\s+)?skills?|technologies|기술(?:\s*스택)?", re.IGNORECASE),
    "experience": re.compile(
        r"(?:work\s+|professional\s+)?experience|employment(?:\s+history)?|경력(?:\s*사항)?",
        re.IGNORECASE,
    ),
    "education": re.compile(r"education|학력(?:\s*사항)?", re.IGNORECASE),
}

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_PATTERN = re.compile(r"(?<!\d)0\d{1,2}[-.\s]?\d{3,4}[-.\s]?\d{4}(?!\d)")
SKILL_DETAIL_PATTERN = re.compile(
    r"^(?P<name>[^()]+?)\s*\((?P<level>[A-Za-z]+)(?:\s*,\s*(?P<years>\d+)\s*(?:years?|yrs?|년))?\)$",
    re.IGNORECASE,
)
# Commas inside parentheses belong to the skill detail
SKILL_SEPARATOR = re.compile(r"[,;]\s*(?![^()]*\))")
DATE_RANGE_PATTERN = re.compile(r"^(?P<start>.+?)\s*(?:~|–|\s-{1,2}\s|\sto\s)\s*(?P<end>.+)$", re.IGNORECASE)


class RuleBasedResumeParser(StoredResumeParser):
    """Pattern-based extraction of a structured profile from resume text"""

    def __init__(self, storage: FileStoragePort, extractor: Optional[ResumeTextExtractor] = None):
        super().__init__(storage, extractor)
        self.skill_patterns = self._load_skill_patterns()

    def _load_skill_patterns(self) -> List[str]:
        """Load common skill keywords"""
        return [
            "python", "java", "javascript", "typescript", "react", "spring boot",
            "sql", "postgresql", "mongodb", "aws", "docker", "kubernetes",
            "kotlin", "django", "fastapi", "git",
        ]

    def parse_text(self, raw_text: str) -> ParsingResult:
        if not raw_text or not raw_text.strip():
            return ParsingFailure("Resume text is empty")
        data = self.extract_fields(raw_text)
        logger.info(
            "rule_based_parsing_complete",
            skills_count=len(data["skills"]),
            exp_count=len(data["experience"]),
        )
        return build_parsing_result(data, raw_text)

    def extract_fields(self, text: str) -> Dict[str, Any]:
        """Parse resume text into a plain dict of fields"""
        sections = self._split_sections(text)
        email = EMAIL_PATTERN.search(text)
        phone = PHONE_PATTERN.search(text)
        return {
            "name": self._extract_name(sections["header"]),
            "email": email.group(0) if email else None,
            "phone": phone.group(0) if phone else None,
            "skills": self._extract_skills(text, sections["skills"]),
            "experience": [e for e in map(self._parse_experience_entry, sections["experience"]) if e],
            "education": [e for e in map(self._parse_education_entry, sections["education"]) if e],
        }

    def _split_sections(self, text: str) -> Dict[str, List[str]]:
        sections = {"header": [], "skills": [], "experience": [], "education": []}
        current = "header"
        for line in text.splitlines():
            stripped = line.strip().rstrip(":").strip()
            if not stripped:
                continue
            header = next(
                (name for name, pattern in SECTION_HEADERS.items() if pattern.fullmatch(stripped)),
                None,
            )
            if header:
                current = header
                continue
            sections[current].append(stripped)
        return sections

    def _extract_name(self, header_lines: List[str]) -> Optional[str]:
        """First header line that is a plausible person name"""
        for line in header_lines[:5]:
            if EMAIL_PATTERN.search(line) or PHONE_PATTERN.search(line):
                continue
            try:
                return CandidateName.of(line).value
            except TalentException:
                continue
        return None

    def _extract_skills(self, text: str, skill_lines: List[str]) -> List[Dict[str, Any]]:
        """Skills section entries, plus well-known keywords found anywhere"""
        found: List[Dict[str, Any]] = []
        for line in skill_lines:
            for item in SKILL_SEPARATOR.split(line):
                item = item.strip()
                if not item:
                    continue
                detail = SKILL_DETAIL_PATTERN.match(item)
                if detail:
                    found.append({
                        "name": detail.group("name"),
                        "level": detail.group("level"),
                        "years": detail.group("years"),
                    })
                else:
                    found.append({"name": item})

        names = {entry["name"].strip().lower() for entry in found}
        text_lower = text.lower()
        for keyword in self.skill_patterns:
            if keyword not in names and re.search(rf"(?<![\w]){re.escape(keyword)}(?![\w])", text_lower):
                found.append({"name": keyword})
                names.add(keyword)
        return found

    def _parse_experience_entry(self, entry: str) -> Optional[Dict[str, Any]]:
        """'Company | Position | 2019-03 ~ 2021-06 [| description]'"""
        parts = [p.strip() for p in entry.split("|")]
        if len(parts) < 3:
            return None
        period = DATE_RANGE_PATTERN.match(parts[2])
        if period:
            start, end = period.group("start"), period.group("end")
        else:
            start, end = parts[2], None
        return {
            "company": parts[0],
            "position": parts[1],
            "start_date": start,
            "end_date": end,
            "description": parts[3] if len(parts) > 3 else None,
        }

    def _parse_education_entry(self, entry: str) -> Optional[Dict[str, Any]]:
        """'School | Degree | Major | 2018-02 [| GPA 3.8]'"""
        parts = [p.strip() for p in entry.split("|")]
        if len(parts) < 4:
            return None
        gpa = None
        if len(parts) > 4:
            gpa_match = re.search(r"\d+(?:\.\d+)?", parts[4])
            gpa = gpa_match.group(0) if gpa_match else None
        return {
            "school": parts[0],
            "degree": parts[1],
            "major": parts[2],
            "graduation_date": parts[3],
            "gpa": gpa,
        }
