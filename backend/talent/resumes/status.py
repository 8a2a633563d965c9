"""
Resume lifecycle status and its transition table
"""
from enum import Enum
from typing import FrozenSet, Tuple

from talent.core.exceptions import InvalidStateTransition


class ResumeStatus(str, Enum):
    """Lifecycle status of a resume"""

    UPLOADED = "UPLOADED"
    PARSING = "PARSING"
    PARSED = "PARSED"
    PARSE_FAILED = "PARSE_FAILED"
    ARCHIVED = "ARCHIVED"
    DELETED = "DELETED"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    def allowed_targets(self) -> FrozenSet["ResumeStatus"]:
        return TRANSITIONS[self]

    def can_transition_to(self, target: "ResumeStatus") -> bool:
        return can_transition(self, target)

    def validate_transition_to(self, target: "ResumeStatus") -> None:
        validate_transition(self, target)

    def can_edit(self) -> bool:
        return CAPABILITIES[self][0]

    def can_search(self) -> bool:
        return CAPABILITIES[self][1]

    def can_parse(self) -> bool:
        return self in (ResumeStatus.UPLOADED, ResumeStatus.PARSE_FAILED)

    def can_reparse(self) -> bool:
        return self is ResumeStatus.PARSE_FAILED

    def can_be_deleted(self) -> bool:
        return self not in (ResumeStatus.PARSING, ResumeStatus.DELETED)

    def can_be_archived(self) -> bool:
        return self is ResumeStatus.PARSED

    def is_parsed(self) -> bool:
        return self is ResumeStatus.PARSED

    def is_usable(self) -> bool:
        return self in (ResumeStatus.UPLOADED, ResumeStatus.PARSED)

    def is_active(self) -> bool:
        return self is not ResumeStatus.DELETED

    def is_terminal(self) -> bool:
        return not TRANSITIONS[self]

    @classmethod
    def default(cls) -> "ResumeStatus":
        return cls.UPLOADED


TRANSITIONS = {
    ResumeStatus.UPLOADED: frozenset({ResumeStatus.PARSING, ResumeStatus.DELETED}),
    ResumeStatus.PARSING: frozenset({ResumeStatus.PARSED, ResumeStatus.PARSE_FAILED}),
    ResumeStatus.PARSED: frozenset({ResumeStatus.ARCHIVED, ResumeStatus.DELETED}),
    ResumeStatus.PARSE_FAILED: frozenset({ResumeStatus.PARSING, ResumeStatus.DELETED}),
    ResumeStatus.ARCHIVED: frozenset({ResumeStatus.PARSED, ResumeStatus.DELETED}),
    ResumeStatus.DELETED: frozenset(),
}

# (editable, searchable)
CAPABILITIES = {
    ResumeStatus.UPLOADED: (True, True),
    ResumeStatus.PARSING: (False, False),
    ResumeStatus.PARSED: (True, True),
    ResumeStatus.PARSE_FAILED: (True, False),
    ResumeStatus.ARCHIVED: (False, False),
    ResumeStatus.DELETED: (False, False),
}

STATUS_LABELS = {
    ResumeStatus.UPLOADED: "업로드 완료",
    ResumeStatus.PARSING: "파싱 중",
    ResumeStatus.PARSED: "파싱 완료",
    ResumeStatus.PARSE_FAILED: "파싱 실패",
    ResumeStatus.ARCHIVED: "보관됨",
    ResumeStatus.DELETED: "삭제됨",
}


def can_transition(current: ResumeStatus, target: ResumeStatus) -> bool:
    """True when the table allows moving from current to a different target"""
    return target is not current and target in TRANSITIONS[current]


def validate_transition(current: ResumeStatus, target: ResumeStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStateTransition(
            f"Cannot change resume status from {current.value} to {target.value}",
            current_status=current.value,
            target_status=target.value,
        )


def searchable_statuses() -> Tuple[ResumeStatus, ...]:
    return tuple(s for s in ResumeStatus if s.can_search())


def active_statuses() -> Tuple[ResumeStatus, ...]:
    return tuple(s for s in ResumeStatus if s.is_active())
