"""
File descriptor value objects for uploaded resumes
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from talent.core.exceptions import ValidationError

MIN_FILE_SIZE_BYTES = 1024
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024

FORBIDDEN_FILE_NAME_CHARS = re.compile(r'[<>:"|?*\\]')
MAX_FILE_NAME_LENGTH = 255


class FileType(str, Enum):
    """Supported resume file formats"""

    PDF = "PDF"
    DOC = "DOC"
    DOCX = "DOCX"
    UNSUPPORTED = "UNSUPPORTED"

    @property
    def mime_type(self) -> str:
        return _FILE_TYPE_INFO[self][0]

    @property
    def extension(self) -> str:
        """Extension with leading dot, empty for unsupported files"""
        return _FILE_TYPE_INFO[self][1]

    @property
    def is_supported(self) -> bool:
        return self is not FileType.UNSUPPORTED

    @classmethod
    def from_mime_type(cls, mime_type: Optional[str]) -> "FileType":
        if not mime_type:
            return cls.UNSUPPORTED
        normalized = mime_type.split(";")[0].strip().lower()
        for file_type, (mime, _) in _FILE_TYPE_INFO.items():
            if file_type.is_supported and mime == normalized:
                return file_type
        return cls.UNSUPPORTED

    @classmethod
    def from_extension(cls, extension: Optional[str]) -> "FileType":
        if not extension:
            return cls.UNSUPPORTED
        normalized = extension.strip().lower()
        if not normalized.startswith("."):
            normalized = "." + normalized
        for file_type, (_, ext) in _FILE_TYPE_INFO.items():
            if file_type.is_supported and ext == normalized:
                return file_type
        return cls.UNSUPPORTED

    @classmethod
    def from_file_name(cls, file_name: Optional[str]) -> "FileType":
        if not file_name or "." not in file_name:
            return cls.UNSUPPORTED
        return cls.from_extension(file_name.rsplit(".", 1)[1])

    @classmethod
    def supported_extensions(cls) -> List[str]:
        return [t.extension.lstrip(".") for t in cls if t.is_supported]


_FILE_TYPE_INFO = {
    FileType.PDF: ("application/pdf", ".pdf"),
    FileType.DOC: ("application/msword", ".doc"),
    FileType.DOCX: (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        ".docx",
    ),
    FileType.UNSUPPORTED: ("application/octet-stream", ""),
}


def _extension_of(value: str) -> str:
    dot = value.rfind(".")
    if dot <= 0 or dot == len(value) - 1:
        return ""
    return value[dot + 1:].lower()


@dataclass(frozen=True, eq=False)
class FileName:
    """Original name of an uploaded resume file"""

    value: str

    def __post_init__(self):
        if self.value is None or not self.value.strip():
            raise ValidationError("File name must not be blank")
        if len(self.value) > MAX_FILE_NAME_LENGTH:
            raise ValidationError(
                f"File name must be at most {MAX_FILE_NAME_LENGTH} characters",
                details={"length": len(self.value)},
            )
        if FORBIDDEN_FILE_NAME_CHARS.search(self.value):
            raise ValidationError(
                "File name contains forbidden characters",
                details={"file_name": self.value},
            )
        if ".." in self.value or self.value.startswith("."):
            raise ValidationError("File name must not contain '..' or start with '.'")
        if "." not in self.value:
            raise ValidationError("File name must have an extension")
        extension = _extension_of(self.value)
        if extension not in FileType.supported_extensions():
            raise ValidationError(
                f"File extension not allowed. Allowed types: {', '.join(FileType.supported_extensions())}",
                details={"extension": extension},
            )

    @classmethod
    def of(cls, value: str) -> "FileName":
        return cls(value.strip() if value is not None else value)

    @property
    def extension(self) -> str:
        return _extension_of(self.value)

    @property
    def name_without_extension(self) -> str:
        return self.value[: self.value.rfind(".")]

    def is_pdf(self) -> bool:
        return self.extension == "pdf"

    def is_word_document(self) -> bool:
        return self.extension in ("doc", "docx")

    def with_name(self, new_base_name: str) -> "FileName":
        """Same extension, different base name"""
        return FileName.of(f"{new_base_name.strip()}.{self.extension}")

    def __eq__(self, other):
        if not isinstance(other, FileName):
            return NotImplemented
        return self.value.lower() == other.value.lower()

    def __hash__(self):
        return hash(self.value.lower())

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class FileSize:
    """Size of an uploaded resume file in bytes"""

    bytes: int

    def __post_init__(self):
        if self.bytes is None or self.bytes < 0:
            raise ValidationError("File size must not be negative")
        if self.bytes < MIN_FILE_SIZE_BYTES:
            raise ValidationError(
                f"File is too small (minimum {MIN_FILE_SIZE_BYTES} bytes)",
                details={"size": self.bytes},
            )
        if self.bytes > MAX_FILE_SIZE_BYTES:
            raise ValidationError(
                "File size exceeds maximum allowed size of 10MB",
                details={"size": self.bytes},
            )

    @classmethod
    def of(cls, size: int) -> "FileSize":
        return cls(int(size))

    @property
    def kilobytes(self) -> float:
        return self.bytes / 1024

    @property
    def megabytes(self) -> float:
        return self.bytes / (1024 * 1024)

    def is_larger_than(self, other: "FileSize") -> bool:
        return self.bytes > other.bytes

    def human_readable(self) -> str:
        if self.bytes >= 1024 * 1024:
            return f"{self.megabytes:.2f} MB"
        if self.bytes >= 1024:
            return f"{self.kilobytes:.2f} KB"
        return f"{self.bytes} bytes"

    def __str__(self):
        return self.human_readable()


@dataclass(frozen=True)
class FileDescriptor:
    """Name, size and format of a resume file, replaced wholesale"""

    name: FileName
    size: FileSize
    file_type: FileType

    def __post_init__(self):
        if not self.file_type.is_supported:
            raise ValidationError("Unsupported file type")
        if self.file_type.extension.lstrip(".") != self.name.extension:
            raise ValidationError(
                "File extension does not match file type",
                details={"extension": self.name.extension, "file_type": self.file_type.value},
            )

    @classmethod
    def of(cls, file_name: str, size: int, content_type: Optional[str] = None) -> "FileDescriptor":
        """Build from raw upload metadata, resolving the type from the MIME type or name"""
        name = FileName.of(file_name)
        file_type = FileType.from_mime_type(content_type)
        if not file_type.is_supported:
            file_type = FileType.from_file_name(name.value)
        return cls(name=name, size=FileSize.of(size), file_type=file_type)

    def renamed(self, new_name: FileName) -> "FileDescriptor":
        return FileDescriptor(name=new_name, size=self.size, file_type=self.file_type)
