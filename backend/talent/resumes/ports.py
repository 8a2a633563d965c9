"""
Contracts for the collaborators the resume workflow depends on
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union

from talent.resumes.files import FileType
from talent.resumes.value_objects import (
    CandidateName,
    ContactInfo,
    Education,
    Experience,
    Skill,
)


@dataclass(frozen=True)
class FileUploadResult:
    storage_key: str
    access_url: str
    size: int


@dataclass(frozen=True)
class FileMetadata:
    storage_key: str
    file_name: str
    file_size: int
    content_type: str
    last_modified: datetime


class FileStoragePort(ABC):
    """Object storage for resume files; every failure raises FileStorageError"""

    @abstractmethod
    def upload_file(self, content: bytes, file_name: str, size: int, file_type: FileType, user_id: int) -> FileUploadResult:
        """Store bytes and return the key they can be fetched by."""

    @abstractmethod
    def download_file(self, storage_key: str) -> bytes:
        """Read a stored file."""

    @abstractmethod
    def delete_file(self, storage_key: str) -> None:
        """Remove a stored file."""

    @abstractmethod
    def file_exists(self, storage_key: str) -> bool:
        """Whether a file is stored under the key."""

    @abstractmethod
    def generate_access_url(self, storage_key: str, ttl_minutes: int) -> str:
        """Time-limited URL for downloading the file."""

    @abstractmethod
    def get_file_metadata(self, storage_key: str) -> FileMetadata:
        """Size, type and modification time of a stored file."""


@dataclass(frozen=True)
class ParsingSuccess:
    candidate_name: Optional[CandidateName]
    skills: Tuple[Skill, ...] = field(default_factory=tuple)
    experiences: Tuple[Experience, ...] = field(default_factory=tuple)
    educations: Tuple[Education, ...] = field(default_factory=tuple)
    contact_info: Optional[ContactInfo] = None
    raw_text: str = ""

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class ParsingFailure:
    error_message: str

    @property
    def success(self) -> bool:
        return False


ParsingResult = Union[ParsingSuccess, ParsingFailure]


class ResumeParsingPort(ABC):
    """Turns a stored resume file or its text into a structured profile"""

    @abstractmethod
    def parse_resume(self, storage_key: str, file_type: FileType) -> ParsingResult:
        """Parse the stored file."""

    @abstractmethod
    def parse_text(self, raw_text: str) -> ParsingResult:
        """Parse already extracted text."""

    @abstractmethod
    def can_parse(self, file_type: FileType) -> bool:
        """Whether this parser handles the file type."""
